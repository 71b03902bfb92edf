# client/prepare_withdraw.py
# Spend a note: replay the commitment tree, locate the note's leaf, derive
# the nullifier hashes and run the prover. Only builds the envelope and
# returns it; relaying is handled elsewhere.

import logging

from commitment import (
    compute_collateral_nullifier_hash,
    compute_nullifier_hash,
    note_leaf,
    verify_note_commitment,
)
from merkle_tree import IncrementalMerkleTree
from note import decode_note
from tools import TREE_HEIGHT, field_bytes_to_hex, short_hex
from vault_errors import InvalidNoteFormat, LeafNotFound, NoteCommitmentMismatch
from wrappers.zkproof_for_withdraw_wrapper import get_zkproof_for_borrow, get_zkproof_for_withdraw

logger = logging.getLogger(__name__)


def locate_note(oracle, note, leaves, height=TREE_HEIGHT, zero_values=None):
    """
    Check the note against its commitment, rebuild the tree from the
    on-chain leaves (in emission order) and return the inclusion proof of
    the note's leaf.
    """
    if not verify_note_commitment(oracle, note):
        raise NoteCommitmentMismatch(
            "the note data does not produce its commitment; "
            "it may have been created with an incompatible hash function"
        )

    tree = IncrementalMerkleTree(oracle, height=height, zero_values=zero_values)
    tree.initialize(leaves)

    leaf = note_leaf(oracle, note)
    index = tree.get_index(leaf)
    if index is None:
        raise LeafNotFound(f"Note not found in this vault ({tree.size()} deposits)")

    logger.info("[CLIENT] note leaf %s located, root = %s", short_hex(field_bytes_to_hex(leaf)),
                short_hex(tree.root_hex()))
    return tree.gen_proof(index)


def build_withdraw_envelope(oracle, prover, note_str, leaves, recipient,
                            height=TREE_HEIGHT, zero_values=None):
    """
    Build the Withdraw request envelope.

    Request envelope:
    {
      "application_type": "Withdraw",
      "payload": {
        "version":                   1,
        "proof":                     Hex,
        "public_inputs":             [Hex32, ...],
        "root":                      Hex32,
        "nullifier_hash":            Hex32,
        "collateral_nullifier_hash": Hex32,   prefixed notes only
        "recipient":                 str,
        "yield_index":               Hex32    prefixed notes only
      }
    }

    The leaf index never leaves this function.
    """
    logger.info("[CLIENT][Withdraw] prepare envelope.")

    note = decode_note(note_str)
    proof = locate_note(oracle, note, leaves, height=height, zero_values=zero_values)

    nullifier_hash = compute_nullifier_hash(oracle, note.nullifier)
    collateral_hash = None
    if note.yield_index is not None:
        collateral_hash = compute_collateral_nullifier_hash(oracle, note.nullifier)

    result = get_zkproof_for_withdraw(
        prover,
        proof.root,
        nullifier_hash,
        recipient,
        note.nullifier,
        note.secret,
        proof.path_elements,
        proof.path_indices,
        collateral_nullifier_hash=collateral_hash,
        yield_index=note.yield_index,
    )
    logger.info("[CLIENT][Withdraw] zk_proof = %s", short_hex(result.proof_hex))

    payload = {
        "version": 1,
        "proof": result.proof_hex,
        "public_inputs": result.public_inputs,
        "root": field_bytes_to_hex(proof.root),
        "nullifier_hash": field_bytes_to_hex(nullifier_hash),
    }
    if collateral_hash is not None:
        payload["collateral_nullifier_hash"] = field_bytes_to_hex(collateral_hash)
    payload["recipient"] = recipient.strip()
    if note.yield_index is not None:
        payload["yield_index"] = field_bytes_to_hex(note.yield_index)

    envelope = {
        "application_type": "Withdraw",
        "payload": payload,
    }

    logger.info("[CLIENT][Withdraw] envelope built.")
    return envelope


def build_borrow_envelope(oracle, prover, note_str, leaves, recipient,
                          height=TREE_HEIGHT, zero_values=None):
    """
    Build the Borrow request envelope. Same as withdraw, but only the
    collateral nullifier hash is revealed, so the note stays withdrawable.
    Needs a prefixed note (it carries the yield index).
    """
    logger.info("[CLIENT][Borrow] prepare envelope.")

    note = decode_note(note_str)
    if note.yield_index is None:
        raise InvalidNoteFormat("borrowing needs a prefixed note carrying a yield index")

    proof = locate_note(oracle, note, leaves, height=height, zero_values=zero_values)
    collateral_hash = compute_collateral_nullifier_hash(oracle, note.nullifier)

    result = get_zkproof_for_borrow(
        prover,
        proof.root,
        collateral_hash,
        recipient,
        note.yield_index,
        note.nullifier,
        note.secret,
        proof.path_elements,
        proof.path_indices,
    )
    logger.info("[CLIENT][Borrow] zk_proof = %s", short_hex(result.proof_hex))

    envelope = {
        "application_type": "Borrow",
        "payload": {
            "version": 1,
            "proof": result.proof_hex,
            "public_inputs": result.public_inputs,
            "root": field_bytes_to_hex(proof.root),
            "collateral_nullifier_hash": field_bytes_to_hex(collateral_hash),
            "recipient": recipient.strip(),
            "yield_index": field_bytes_to_hex(note.yield_index),
        },
    }

    logger.info("[CLIENT][Borrow] envelope built.")
    return envelope
