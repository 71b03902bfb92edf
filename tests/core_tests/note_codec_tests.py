#!/usr/bin/env python3
# tests/core_tests/note_codec_tests.py
#
# Legacy and prefixed note strings.

import os
import sys

import pytest

# Add project root to sys.path
THIS_FILE = os.path.abspath(__file__)
THIS_DIR = os.path.dirname(THIS_FILE)
PROJECT_ROOT = os.path.abspath(os.path.join(THIS_DIR, "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from note import (
    Note,
    NoteFormat,
    NoteMetadata,
    decode_note,
    detect_note_format,
    encode_note,
    parse_prefix_metadata,
    sanitize_note_string,
)
from tools import random_field_element
from vault_errors import InvalidHexEncoding, InvalidNoteFormat, InvalidNoteLength


def rand_note(with_yield=False):
    return Note(
        commitment=os.urandom(32),
        nullifier=random_field_element(),
        secret=random_field_element(),
        yield_index=os.urandom(32) if with_yield else None,
    )


META = NoteMetadata(currency="usdc", amount=100, network="base_sepolia")


def test_legacy_round_trip():
    i = 0
    while i < 20:
        note = rand_note()
        s = encode_note(note, NoteFormat.LEGACY)
        assert s.startswith("0x")
        assert len(s) == 2 + 192
        assert decode_note(s) == note
        i += 1


def test_legacy_layout():
    note = Note(commitment=b"\x01" * 32, nullifier=b"\x02" * 32, secret=b"\x03" * 32)
    assert encode_note(note) == "0x" + "01" * 32 + "02" * 32 + "03" * 32


def test_prefixed_round_trip_and_metadata():
    i = 0
    while i < 20:
        note = rand_note(with_yield=True)
        s = encode_note(note, NoteFormat.PREFIXED, META)
        assert s.startswith("privacyvaults-usdc-100-base_sepolia-")
        decoded = decode_note(s)
        assert decoded == note
        assert decoded.yield_index == note.yield_index
        assert parse_prefix_metadata(s) == META
        i += 1


def test_prefixed_amount_is_decimal():
    note = rand_note(with_yield=True)
    meta = NoteMetadata(currency="usdc", amount=1000000, network="base")
    s = encode_note(note, NoteFormat.PREFIXED, meta)
    assert s.split("-")[2] == "1000000"
    assert parse_prefix_metadata(s).amount == 1000000


def test_prefixed_payload_length_error_reports_counts():
    note = rand_note(with_yield=True)
    s = encode_note(note, NoteFormat.PREFIXED, META)[:-1]
    with pytest.raises(InvalidNoteLength) as exc:
        decode_note(s)
    assert exc.value.expected == 256
    assert exc.value.actual == 255
    assert "256" in str(exc.value)
    assert "255" in str(exc.value)


def test_legacy_payload_length_error():
    with pytest.raises(InvalidNoteLength) as exc:
        decode_note("0x" + "ab" * 95)
    assert exc.value.expected == 192
    assert exc.value.actual == 190


def test_unknown_prefix_rejected():
    with pytest.raises(InvalidNoteFormat):
        decode_note("tornado-eth-1-" + "00" * 128)
    with pytest.raises(InvalidNoteFormat):
        decode_note("ab" * 96)


def test_decode_strips_copy_paste_garbage():
    note = rand_note(with_yield=True)
    s = encode_note(note, NoteFormat.PREFIXED, META)
    dirty = "\ufeff  " + s[:40] + "\u200b" + s[40:] + "\r\n"
    assert decode_note(dirty) == note
    assert parse_prefix_metadata(dirty) == META


def test_sanitize_keeps_printable_ascii_only():
    assert sanitize_note_string("\x00 0xab\u200bcd\t ") == "0xabcd"


def test_detect_format():
    assert detect_note_format("0x00") is NoteFormat.LEGACY
    assert detect_note_format("privacyvaults-a-1-b-00") is NoteFormat.PREFIXED
    with pytest.raises(InvalidNoteFormat):
        detect_note_format("privacy-a")


def test_parse_prefix_metadata_returns_none_for_legacy_and_garbage():
    legacy = encode_note(rand_note(), NoteFormat.LEGACY)
    assert parse_prefix_metadata(legacy) is None
    assert parse_prefix_metadata("privacyvaults-usdc-abc-base-00") is None
    assert parse_prefix_metadata("privacyvaults-usdc-100") is None
    assert parse_prefix_metadata("privacyvaults--100-base-00") is None
    assert parse_prefix_metadata("") is None


def test_prefixed_encode_requires_metadata_and_yield_index():
    with pytest.raises(ValueError):
        encode_note(rand_note(with_yield=True), NoteFormat.PREFIXED)
    with pytest.raises(ValueError):
        encode_note(rand_note(), NoteFormat.PREFIXED, META)


def test_network_with_dash_rejected():
    meta = NoteMetadata(currency="usdc", amount=1, network="base-sepolia")
    with pytest.raises(ValueError):
        encode_note(rand_note(with_yield=True), NoteFormat.PREFIXED, meta)


def test_legacy_encode_refuses_yield_index():
    with pytest.raises(ValueError):
        encode_note(rand_note(with_yield=True), NoteFormat.LEGACY)


def test_encode_pads_short_fields():
    note = Note(commitment=b"\x01", nullifier=b"\x02" * 32, secret=b"\x03" * 32)
    s = encode_note(note)
    assert len(s) == 2 + 192
    assert s == "0x" + "00" * 31 + "01" + "02" * 32 + "03" * 32
    decoded = decode_note(s)
    assert decoded.commitment == b"\x00" * 31 + b"\x01"
    assert decoded.nullifier == note.nullifier


def test_encode_accepts_hex_fields():
    as_bytes = rand_note(with_yield=True)
    as_hex = Note(
        commitment="0x" + as_bytes.commitment.hex(),
        nullifier=as_bytes.nullifier.hex(),
        secret="0x" + as_bytes.secret.hex().upper(),
        yield_index="0x" + as_bytes.yield_index.hex(),
    )
    s = encode_note(as_hex, NoteFormat.PREFIXED, META)
    assert s == encode_note(as_bytes, NoteFormat.PREFIXED, META)
    assert decode_note(s) == as_bytes


def test_encode_rejects_unusable_fields():
    too_wide = Note(commitment=b"\x01" * 33, nullifier=b"\x02" * 32, secret=b"\x03" * 32)
    with pytest.raises(InvalidHexEncoding):
        encode_note(too_wide)
    with pytest.raises(InvalidHexEncoding):
        encode_note(Note(commitment="0xnothex", nullifier=b"\x02" * 32, secret=b"\x03" * 32))
    with pytest.raises(TypeError):
        encode_note(Note(commitment=1, nullifier=b"\x02" * 32, secret=b"\x03" * 32))


def test_metadata_needs_hex_payload():
    assert parse_prefix_metadata("privacyvaults-usdc-100-base-NOTHEX") is None
    assert parse_prefix_metadata("privacyvaults-usdc-100-base-") is None
    assert parse_prefix_metadata("privacyvaults-usdc-100-base-00ff") == NoteMetadata(
        currency="usdc", amount=100, network="base"
    )


@pytest.mark.parametrize(
    "header",
    ["---", "usdc-100--", "-100-base-", "usdc--base-", "usdc-1e3-base-", "usdc-one-base-"],
)
def test_decode_rejects_bad_prefixed_header(header):
    with pytest.raises(InvalidNoteFormat):
        decode_note("privacyvaults-" + header + "00" * 128)


if __name__ == "__main__":
    sys.exit(pytest.main([THIS_FILE, "-v"]))
