# note.py
# Portable note strings.
#
# Two formats co-exist:
#   legacy   : 0x + commitment | nullifier | secret                 (192 hex chars)
#   prefixed : privacyvaults-{currency}-{amount}-{network}-{hex}
#              hex = commitment | nullifier | secret | yield_index  (256 hex chars)
#
# currency and network never contain a dash (network names use underscores),
# so the payload always starts after the 4th dash.

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tools import (
    FIELD_BYTES,
    LEGACY_NOTE_HEX_LEN,
    NOTE_PREFIX,
    PREFIXED_NOTE_HEX_LEN,
    hex_to_field_bytes,
    short_hex,
)
from vault_errors import InvalidHexEncoding, InvalidNoteFormat, InvalidNoteLength

logger = logging.getLogger(__name__)

LEGACY_MARKER = "0x"
PREFIXED_MARKER = NOTE_PREFIX + "-"

_FIELD_HEX_LEN = FIELD_BYTES * 2
_HEX_DIGITS = "0123456789abcdefABCDEF"


class NoteFormat(Enum):
    LEGACY = "legacy"
    PREFIXED = "prefixed"


@dataclass(frozen=True)
class Note:
    """
    Secret material of one deposit.

    yield_index is None for legacy notes; prefixed notes always carry it.
    """

    commitment: bytes
    nullifier: bytes
    secret: bytes
    yield_index: Optional[bytes] = None


@dataclass(frozen=True)
class NoteMetadata:
    currency: str
    amount: int
    network: str


def sanitize_note_string(s: str) -> str:
    """
    Drop everything outside printable ASCII (0x20..0x7e), then surrounding
    whitespace. Removes zero-width characters, BOMs and control characters
    picked up by copy-paste.
    """
    kept = []
    for ch in s:
        if 0x20 <= ord(ch) <= 0x7E:
            kept.append(ch)
    return "".join(kept).strip()


def detect_note_format(s: str) -> NoteFormat:
    """Format of an already sanitised note string."""
    if s.startswith(LEGACY_MARKER):
        return NoteFormat.LEGACY
    if s.startswith(PREFIXED_MARKER):
        return NoteFormat.PREFIXED
    raise InvalidNoteFormat(
        f"Unrecognised note prefix: expected '{LEGACY_MARKER}' or '{PREFIXED_MARKER}', "
        f"got {short_hex(s)!r}"
    )


def _nth_dash(s: str, n: int) -> int:
    """Position of the n-th dash in s, or -1."""
    seen = 0
    i = 0
    while i < len(s):
        if s[i] == "-":
            seen += 1
            if seen == n:
                return i
        i += 1
    return -1


def _check_hex(payload: str) -> None:
    for ch in payload:
        if ch not in _HEX_DIGITS:
            raise InvalidHexEncoding(f"invalid hex character {ch!r} in note payload")


def _split_fields(payload: str, count: int):
    fields = []
    i = 0
    while i < count:
        chunk = payload[i * _FIELD_HEX_LEN:(i + 1) * _FIELD_HEX_LEN]
        fields.append(hex_to_field_bytes(chunk))
        i += 1
    return fields


def _field_hex(name: str, value) -> str:
    """64 hex chars of a 32-byte field; short values are left-padded."""
    if not isinstance(value, (str, bytes, bytearray, memoryview)):
        raise TypeError(f"note {name} must be hex str or bytes, got: {type(value)!r}")
    return hex_to_field_bytes(value).hex()


def _header_fields(header: str):
    """
    (currency, amount, network) from "{currency}-{amount}-{network}",
    or None if any token is empty or the amount is not a decimal integer.
    """
    parts = header.split("-")
    if len(parts) != 3:
        return None
    currency, amount, network = parts
    if not currency or not network:
        return None
    if not amount or not all(ch in "0123456789" for ch in amount):
        return None
    return currency, int(amount), network


def _check_metadata_token(name: str, value: str) -> None:
    if not value:
        raise ValueError(f"note {name} must not be empty")
    if "-" in value:
        raise ValueError(f"note {name} must not contain '-', got {value!r}")


def encode_note(note: Note, fmt: NoteFormat = NoteFormat.LEGACY,
                metadata: Optional[NoteMetadata] = None) -> str:
    """
    Encode a note.

    LEGACY   : metadata is ignored. A note carrying a yield index cannot
               be encoded this way since the index would be lost.
    PREFIXED : metadata {currency, amount, network} and yield_index are
               mandatory; amount is rendered as a decimal integer.

    Fields may be bytes or hex; each is written as exactly 64 hex chars.
    Values wider than 32 bytes raise InvalidHexEncoding.
    """
    body = (
        _field_hex("commitment", note.commitment)
        + _field_hex("nullifier", note.nullifier)
        + _field_hex("secret", note.secret)
    )

    if fmt is NoteFormat.LEGACY:
        if note.yield_index is not None:
            raise ValueError("legacy notes cannot carry a yield index; use NoteFormat.PREFIXED")
        return LEGACY_MARKER + body

    if fmt is NoteFormat.PREFIXED:
        if metadata is None:
            raise ValueError("prefixed notes require metadata (currency, amount, network)")
        if note.yield_index is None:
            raise ValueError("prefixed notes require a yield index")
        _check_metadata_token("currency", metadata.currency)
        _check_metadata_token("network", metadata.network)
        amount = int(metadata.amount)
        if amount < 0:
            raise ValueError(f"note amount must be non-negative, got {amount}")
        return (
            f"{PREFIXED_MARKER}{metadata.currency}-{amount}-{metadata.network}-"
            f"{body}{_field_hex('yield_index', note.yield_index)}"
        )

    raise ValueError(f"unsupported note format: {fmt!r}")


def decode_note(s: str) -> Note:
    """
    Decode a legacy or prefixed note string.

    Raises InvalidNoteFormat for an unknown prefix, InvalidNoteLength when
    the hex payload is not exactly 192 (legacy) / 256 (prefixed) characters
    and InvalidHexEncoding for non-hex payload characters. A prefixed header
    with an empty currency or network, or a non-decimal amount, is an
    InvalidNoteFormat.
    """
    clean = sanitize_note_string(s)
    fmt = detect_note_format(clean)

    if fmt is NoteFormat.LEGACY:
        payload = clean[len(LEGACY_MARKER):]
        if len(payload) != LEGACY_NOTE_HEX_LEN:
            raise InvalidNoteLength(LEGACY_NOTE_HEX_LEN, len(payload))
        _check_hex(payload)
        commitment, nullifier, secret = _split_fields(payload, 3)
        logger.debug("[NOTE] decoded legacy note, commitment=%s", short_hex(commitment))
        return Note(commitment=commitment, nullifier=nullifier, secret=secret)

    if fmt is NoteFormat.PREFIXED:
        pos = _nth_dash(clean, 4)
        if pos < 0:
            raise InvalidNoteFormat(
                "prefixed note must look like privacyvaults-{currency}-{amount}-{network}-{hex}"
            )
        if _header_fields(clean[len(PREFIXED_MARKER):pos]) is None:
            raise InvalidNoteFormat(
                "prefixed note header needs a currency, a decimal amount and a network"
            )
        payload = clean[pos + 1:]
        if len(payload) != PREFIXED_NOTE_HEX_LEN:
            raise InvalidNoteLength(PREFIXED_NOTE_HEX_LEN, len(payload))
        _check_hex(payload)
        commitment, nullifier, secret, yield_index = _split_fields(payload, 4)
        logger.debug("[NOTE] decoded prefixed note, commitment=%s", short_hex(commitment))
        return Note(
            commitment=commitment,
            nullifier=nullifier,
            secret=secret,
            yield_index=yield_index,
        )

    raise InvalidNoteFormat(f"unsupported note format: {fmt!r}")


def parse_prefix_metadata(s: str) -> Optional[NoteMetadata]:
    """
    Read {currency, amount, network} from a prefixed note without decoding
    the secret payload. Returns None for legacy or malformed input,
    including a missing or non-hex payload.
    """
    clean = sanitize_note_string(s)
    if not clean.startswith(PREFIXED_MARKER):
        return None

    pos = _nth_dash(clean, 4)
    if pos < 0:
        return None

    payload = clean[pos + 1:]
    if not payload or not all(ch in _HEX_DIGITS for ch in payload):
        return None

    fields = _header_fields(clean[len(PREFIXED_MARKER):pos])
    if fields is None:
        return None

    currency, amount, network = fields
    return NoteMetadata(currency=currency, amount=amount, network=network)
