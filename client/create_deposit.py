# client/create_deposit.py
# Prepare a deposit: fresh secret material, the note the user keeps, and the
# envelope carrying the inner commitment. Sending is handled elsewhere.

import logging

from commitment import generate_commitment
from note import Note, NoteFormat, encode_note
from tools import field_bytes_to_hex, hex_to_field_bytes, short_hex

logger = logging.getLogger(__name__)


def build_deposit_envelope(oracle, metadata=None, yield_index=None):
    """
    Build the Deposit request envelope and the matching note string.

    Request envelope:
    {
      "application_type": "Deposit",
      "payload": {
        "version":    1,
        "commitment": Hex32,       inner commitment H(nullifier, secret)
        "currency":   str,         only with metadata
        "amount":     int,         only with metadata
        "network":    str          only with metadata
      }
    }

    Notes:
    - With a yield_index (the vault's current bucketed yield index) the
      note is written in the prefixed format and metadata is required;
      the contract wraps the commitment as H(commitment, yield_index).
    - Without one, a legacy note is produced and metadata is ignored.
    - The note string is the only copy of the secret material; the caller
      must hand it to the user before submitting the envelope.
    """
    logger.info("[CLIENT][Deposit] prepare envelope.")

    cm = generate_commitment(oracle)

    if yield_index is None:
        note = Note(commitment=cm.commitment, nullifier=cm.nullifier, secret=cm.secret)
        note_str = encode_note(note, NoteFormat.LEGACY)
    else:
        if metadata is None:
            raise ValueError("metadata is required for a deposit with a yield index")
        note = Note(
            commitment=cm.commitment,
            nullifier=cm.nullifier,
            secret=cm.secret,
            yield_index=hex_to_field_bytes(yield_index),
        )
        note_str = encode_note(note, NoteFormat.PREFIXED, metadata)

    logger.info("[CLIENT][Deposit] commitment = %s", short_hex(cm.commitment_hex))

    payload = {
        "version": 1,
        "commitment": field_bytes_to_hex(cm.commitment),
    }
    if metadata is not None and yield_index is not None:
        payload["currency"] = metadata.currency
        payload["amount"] = int(metadata.amount)
        payload["network"] = metadata.network

    envelope = {
        "application_type": "Deposit",
        "payload": payload,
    }

    logger.info("[CLIENT][Deposit] envelope built.")
    return note_str, envelope
