#!/usr/bin/env python3
# tests/core_tests/field_codec_tests.py
#
# Field element hex <-> 32-byte big-endian encoding.
#
# Goals:
#   - decode(encode(x)) == x for arbitrary 32-byte values.
#   - Short hex is the low-order end of a 256-bit integer (left padding).
#   - encode(decode(s)) canonicalises case and width.
#   - Malformed hex is rejected with InvalidHexEncoding.

import os
import sys

import pytest

# Add project root to sys.path
THIS_FILE = os.path.abspath(__file__)
THIS_DIR = os.path.dirname(THIS_FILE)
PROJECT_ROOT = os.path.abspath(os.path.join(THIS_DIR, "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tools import (
    BN254_SCALAR_FIELD,
    field_bytes_to_hex,
    field_bytes_to_int,
    hex_to_field_bytes,
    int_to_field_bytes,
    normalize_field_hex,
    random_field_element,
    short_hex,
)
from vault_errors import InvalidHexEncoding


def test_round_trip_random_values():
    i = 0
    while i < 200:
        x = os.urandom(32)
        assert hex_to_field_bytes(field_bytes_to_hex(x)) == x
        i += 1


def test_encode_is_canonical():
    x = bytes([0x0A] + [0] * 30 + [0xFF])
    s = field_bytes_to_hex(x)
    assert s.startswith("0x")
    assert len(s) == 66
    assert s == s.lower()
    assert s == "0x0a" + "00" * 30 + "ff"


def test_short_hex_is_left_padded():
    one = hex_to_field_bytes("0x01")
    assert len(one) == 32
    assert one == hex_to_field_bytes("0x" + "00" * 31 + "01")
    assert field_bytes_to_int(one) == 1


def test_twenty_byte_value_is_low_order():
    addr = "0x" + "ab" * 20
    b = hex_to_field_bytes(addr)
    assert b[:12] == b"\x00" * 12
    assert b[12:] == bytes.fromhex("ab" * 20)


def test_prefix_is_optional_and_case_insensitive():
    value = "AbCd" * 16
    assert hex_to_field_bytes(value) == hex_to_field_bytes("0x" + value.lower())
    assert hex_to_field_bytes("0X" + value) == hex_to_field_bytes(value)


def test_normalize_canonicalises_short_uppercase():
    assert normalize_field_hex("0xFF") == "0x" + "00" * 31 + "ff"


def test_bytes_input_is_right_aligned():
    assert hex_to_field_bytes(b"\x01\x02") == b"\x00" * 30 + b"\x01\x02"


@pytest.mark.parametrize("bad", ["0x123", "0xzz", "0x" + "00" * 33, "12 34"])
def test_malformed_hex_rejected(bad):
    with pytest.raises(InvalidHexEncoding):
        hex_to_field_bytes(bad)


def test_invalid_hex_is_a_value_error():
    with pytest.raises(ValueError):
        hex_to_field_bytes("0xg0")


def test_encode_rejects_wrong_width():
    with pytest.raises(ValueError):
        field_bytes_to_hex(b"\x01" * 31)


def test_random_field_element_has_top_bits_cleared():
    i = 0
    while i < 500:
        x = random_field_element()
        assert len(x) == 32
        assert x[0] & 0xE0 == 0
        assert int.from_bytes(x, "big") < BN254_SCALAR_FIELD
        i += 1


def test_int_helpers():
    assert int_to_field_bytes(1) == b"\x00" * 31 + b"\x01"
    assert field_bytes_to_int("0x0100") == 256


def test_short_hex():
    h = "0x" + "ab" * 32
    assert short_hex(h) == "0xababab...abab"
    assert short_hex("0x12") == "0x12"


if __name__ == "__main__":
    sys.exit(pytest.main([THIS_FILE, "-v"]))
