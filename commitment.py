# commitment.py
# Commitments and nullifier hashes.
#
#   commitment              = H(nullifier, secret)
#   deposit leaf            = H(commitment, yield_index)   (wrapped on-chain)
#   nullifier hash          = H(nullifier)
#   collateral null. hash   = H(nullifier, 1)
#
# H is the injected Poseidon2 oracle; argument order and arity are part of
# the circuit contract.

import logging
from dataclasses import dataclass

from tools import (
    COLLATERAL_DOMAIN_TAG_HEX,
    field_bytes_to_hex,
    hex_to_field_bytes,
    random_field_element,
    short_hex,
)

logger = logging.getLogger(__name__)

COLLATERAL_DOMAIN_TAG = hex_to_field_bytes(COLLATERAL_DOMAIN_TAG_HEX)


@dataclass(frozen=True)
class Commitment:
    """Freshly generated secret material and its inner commitment."""

    commitment: bytes
    nullifier: bytes
    secret: bytes

    @property
    def commitment_hex(self) -> str:
        return field_bytes_to_hex(self.commitment)


def compute_commitment(oracle, nullifier, secret) -> bytes:
    return oracle.hash(hex_to_field_bytes(nullifier), hex_to_field_bytes(secret))


def generate_commitment(oracle) -> Commitment:
    """
    Draw an independent random nullifier and secret (top 3 bits cleared)
    and compute the inner commitment H(nullifier, secret).
    """
    nullifier = random_field_element()
    secret = random_field_element()
    commitment = compute_commitment(oracle, nullifier, secret)
    logger.debug("[COMMIT] generated commitment %s", short_hex(commitment))
    return Commitment(commitment=commitment, nullifier=nullifier, secret=secret)


def compute_deposit_leaf(oracle, inner_commitment, yield_index) -> bytes:
    """
    Leaf the vault inserts for a deposit: the inner commitment wrapped
    with the bucketed yield index at deposit time.
    """
    return oracle.hash(hex_to_field_bytes(inner_commitment), hex_to_field_bytes(yield_index))


def compute_nullifier_hash(oracle, nullifier, domain_tag=None) -> bytes:
    """
    Without a tag: H(nullifier), the plain withdraw nullifier hash.
    With a tag: H(nullifier, domain_tag), a separate hash for another
    spend type derived from the same nullifier.
    """
    n = hex_to_field_bytes(nullifier)
    if domain_tag is None:
        return oracle.hash(n)
    return oracle.hash(n, hex_to_field_bytes(domain_tag))


def compute_collateral_nullifier_hash(oracle, nullifier) -> bytes:
    return compute_nullifier_hash(oracle, nullifier, COLLATERAL_DOMAIN_TAG)


def note_leaf(oracle, note) -> bytes:
    """
    Tree leaf a note corresponds to: the yield-wrapped deposit leaf when
    the note carries a yield index, the inner commitment otherwise.
    """
    if note.yield_index is None:
        return note.commitment
    return compute_deposit_leaf(oracle, note.commitment, note.yield_index)


def verify_note_commitment(oracle, note) -> bool:
    """
    Check that the note's nullifier and secret hash to its commitment.
    A mismatch means the note was built with an incompatible hash.
    """
    expected = compute_commitment(oracle, note.nullifier, note.secret)
    return expected == note.commitment
