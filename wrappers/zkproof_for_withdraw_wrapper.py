# wrappers/zkproof_for_withdraw_wrapper.py
#
# Builds the input record of the withdraw / borrow circuits and hands it to
# an external prover. Proving itself (witness execution, UltraHonk proof)
# happens in the prover; this module only fixes the record layout.

import logging
from dataclasses import dataclass
from typing import List

from tools import normalize_field_hex, short_hex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofResult:
    proof: bytes
    public_inputs: List[str]

    @property
    def proof_hex(self) -> str:
        return "0x" + self.proof.hex()


def _path_inputs(path_elements, path_indices):
    """
    merkle_proof: sibling hashes as canonical hex
    is_even     : True where the path node is the even (left) child
    """
    if len(path_elements) != len(path_indices):
        raise ValueError(
            f"path_elements and path_indices differ in length: "
            f"{len(path_elements)} vs {len(path_indices)}"
        )
    if len(path_elements) == 0:
        raise ValueError("merkle path must not be empty")

    merkle_proof = []
    is_even = []
    i = 0
    while i < len(path_elements):
        bit = int(path_indices[i])
        if bit not in (0, 1):
            raise ValueError(f"path index at level {i} must be 0 or 1, got {bit}")
        merkle_proof.append(normalize_field_hex(path_elements[i]))
        is_even.append(bit % 2 == 0)
        i += 1
    return merkle_proof, is_even


def build_withdraw_inputs(
    root,
    nullifier_hash,
    recipient,
    nullifier,
    secret,
    path_elements,
    path_indices,
    collateral_nullifier_hash=None,
    yield_index=None,
) -> dict:
    """
    Input record of the withdraw circuit.

    Public : root, nullifier_hash, [collateral_nullifier_hash], recipient, [yield_index]
    Private: nullifier, secret, merkle_proof, is_even

    The bracketed fields are only present for vaults with yield-wrapped
    commitments; the plain circuit takes neither.
    """
    merkle_proof, is_even = _path_inputs(path_elements, path_indices)

    inputs = {
        "root": normalize_field_hex(root),
        "nullifier_hash": normalize_field_hex(nullifier_hash),
    }
    if collateral_nullifier_hash is not None:
        inputs["collateral_nullifier_hash"] = normalize_field_hex(collateral_nullifier_hash)
    inputs["recipient"] = normalize_field_hex(recipient)
    if yield_index is not None:
        inputs["yield_index"] = normalize_field_hex(yield_index)

    inputs["nullifier"] = normalize_field_hex(nullifier)
    inputs["secret"] = normalize_field_hex(secret)
    inputs["merkle_proof"] = merkle_proof
    inputs["is_even"] = is_even
    return inputs


def build_borrow_inputs(
    root,
    collateral_nullifier_hash,
    recipient,
    yield_index,
    nullifier,
    secret,
    path_elements,
    path_indices,
) -> dict:
    """
    Input record of the borrow circuit: like withdraw, but only the
    collateral nullifier hash is revealed.
    """
    merkle_proof, is_even = _path_inputs(path_elements, path_indices)
    return {
        "root": normalize_field_hex(root),
        "collateral_nullifier_hash": normalize_field_hex(collateral_nullifier_hash),
        "recipient": normalize_field_hex(recipient),
        "yield_index": normalize_field_hex(yield_index),
        "nullifier": normalize_field_hex(nullifier),
        "secret": normalize_field_hex(secret),
        "merkle_proof": merkle_proof,
        "is_even": is_even,
    }


def _run_prover(prover, inputs: dict, label: str) -> ProofResult:
    proof, public_inputs = prover.generate_proof(inputs)

    if isinstance(proof, str):
        s = proof[2:] if proof.startswith(("0x", "0X")) else proof
        proof_bytes = bytes.fromhex(s)
    else:
        proof_bytes = bytes(proof)

    public = [normalize_field_hex(x) for x in public_inputs]
    logger.debug("[PROVER][%s] proof=%s, %d public inputs", label, short_hex(proof_bytes), len(public))
    return ProofResult(proof=proof_bytes, public_inputs=public)


def get_zkproof_for_withdraw(prover, *args, **kwargs) -> ProofResult:
    """
    Build the withdraw input record and run the prover on it.
    Arguments are those of build_withdraw_inputs.

    `prover` is any object with generate_proof(inputs) -> (proof, public_inputs).
    """
    inputs = build_withdraw_inputs(*args, **kwargs)
    return _run_prover(prover, inputs, "Withdraw")


def get_zkproof_for_borrow(prover, *args, **kwargs) -> ProofResult:
    """Borrow counterpart of get_zkproof_for_withdraw."""
    inputs = build_borrow_inputs(*args, **kwargs)
    return _run_prover(prover, inputs, "Borrow")
