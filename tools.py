# tools.py
# Protocol constants and field-element helpers shared by every module.

import os

from vault_errors import InvalidHexEncoding

# BN254 scalar field order; every field element must be below it
BN254_SCALAR_FIELD = int(
    "21888242871839275222246405745257275088548364400416034343698204186575808495617"
)

FIELD_BYTES = 32

# Commitment tree
TREE_HEIGHT = 20

# Canonical empty leaf of the commitment tree
ZERO_LEAF_HEX = "0x2b0df951ef3a8bf2a23ac5acc4f59acca38c21ca13cbb63d412a8da53f58823b"

# Poseidon2 zero-subtree values for levels 0..20, as deployed on-chain.
# POSEIDON2_ZERO_VALUES[L] = H(POSEIDON2_ZERO_VALUES[L-1], POSEIDON2_ZERO_VALUES[L-1])
POSEIDON2_ZERO_VALUES = [
    "0x2b0df951ef3a8bf2a23ac5acc4f59acca38c21ca13cbb63d412a8da53f58823b",
    "0x0a1cc9dbf552c542379dee34a6616bd37fec1b0962c4fbe314a01cffac8308c3",
    "0x0a6110e905ebe9c8a2a439acd710643468b9f51122440aadf091a4b6f167dba7",
    "0x258e86d2ad936208dc4faebd94dcb560775b4a8a1d706f968387f99f03e9f1af",
    "0x05721de377a87fe563e9012cbe21790b472bb4d430248322a7d55c340e99cc19",
    "0x090bfc4cc3a2866a647c6fa30145eee92e99040f2993d11564bd465664203d05",
    "0x24f174edec8ffbdea445407a17c7561917dab67efc2066314e02169a5f2bd176",
    "0x0a3ecad8587b9b576b30d87b26e7df73a01e0cab533609f89133b635d47da8e6",
    "0x2e90b8eab7dcc8a1fafa1010d660b076ddd9e5ebd03daed8c86b72ab7a283bdc",
    "0x11a1e63d4bcdf3bbd6063b3ed48c4fb16c6a309b13e07580e3f839d499534282",
    "0x2c48eb427f0f886a60397a3fba5d15f6bd143ae5f174a10d22bde36a61101986",
    "0x037cd7c51c74293d8ffb4f0e5f651b0c25c1dc2a353de5d50c9aa1b44bf9ae8a",
    "0x158cfadd0317fc74ea136cf413ae55930ca54df49b188d9dd13f00577daa8087",
    "0x07335e0b5bd0204ec32988ef68a2359fca5a1958bf40f9d71dd4841ee5cec9e9",
    "0x1da000a45af447517f4fca21d41b7673cade7a1211dc6e5d52f65c1799812a81",
    "0x106b7a78ff69c3215c39f302b148d1c570a5285ff53c440577007d078445716b",
    "0x00d4db11baf5c43d1c76c87f22f1f33c5437298a2c6beb780703e7e92bee7d6f",
    "0x1efe71b822044ba01cc663f102b111b0dabd3ca7f73402a29ecce5227706a2a5",
    "0x13754ca04c0c2a7b4e5f82c6aae25705d6e0ee0b7094d05641b7adeef34a8449",
    "0x0657e306bfe45d146af75eb24df29e329a963f4d5936d9ceb9484c023083f593",
    "0x10818f8e49e6bcb2947974a99dd7044f39d593aca03d1d409576fdb4d42c499c",
]

# Notes
NOTE_PREFIX = "privacyvaults"
LEGACY_NOTE_HEX_LEN = 3 * FIELD_BYTES * 2
PREFIXED_NOTE_HEX_LEN = 4 * FIELD_BYTES * 2

# Second argument of the collateral nullifier hash: the field element 1
COLLATERAL_DOMAIN_TAG_HEX = "0x" + "0" * 63 + "1"

_HEX_DIGITS = "0123456789abcdefABCDEF"


# ==========================================================
# Field element encoding
# ==========================================================
def hex_to_field_bytes(s) -> bytes:
    """
    Decode a hex string (with or without 0x prefix) into a 32-byte
    big-endian field element.

    Short input is right-aligned, i.e. "0x01" is the integer 1, not a
    byte string starting with 0x01. Bytes-like input of at most 32 bytes
    is right-aligned the same way.

    Raise InvalidHexEncoding for odd length, non-hex characters or more
    than 32 bytes.
    """
    if isinstance(s, (bytes, bytearray, memoryview)):
        raw = bytes(s)
    elif isinstance(s, str):
        h = s.strip()
        if h.startswith(("0x", "0X")):
            h = h[2:]
        if len(h) % 2 != 0:
            raise InvalidHexEncoding(f"hex string length must be even, got {len(h)}")
        for ch in h:
            if ch not in _HEX_DIGITS:
                raise InvalidHexEncoding(f"invalid hex character {ch!r} in {short_hex(s)!r}")
        raw = bytes.fromhex(h)
    else:
        raise TypeError(f"hex_to_field_bytes only accepts str or bytes, got: {type(s)!r}")

    if len(raw) > FIELD_BYTES:
        raise InvalidHexEncoding(
            f"field element must be at most {FIELD_BYTES} bytes, got {len(raw)}"
        )
    return b"\x00" * (FIELD_BYTES - len(raw)) + raw


def field_bytes_to_hex(b) -> str:
    """
    Encode a 32-byte field element as 0x + 64 lowercase hex characters.
    """
    raw = bytes(b)
    if len(raw) != FIELD_BYTES:
        raise ValueError(f"field element must be {FIELD_BYTES} bytes, got {len(raw)}")
    return "0x" + raw.hex()


def normalize_field_hex(s) -> str:
    """
    Canonical form of a field element given as hex or bytes.
    """
    return field_bytes_to_hex(hex_to_field_bytes(s))


def int_to_field_bytes(i) -> bytes:
    return int(i).to_bytes(FIELD_BYTES, "big")


def field_bytes_to_int(b) -> int:
    return int.from_bytes(hex_to_field_bytes(b), "big")


def random_field_element() -> bytes:
    """
    Return 32 random bytes with the top 3 bits cleared.
    The value is below 2^253 and therefore always inside the BN254 field.
    """
    b = bytearray(os.urandom(FIELD_BYTES))
    b[0] &= 0x1F
    return bytes(b)


def short_hex(h, prefix_len=8):
    """
    Return a shortened hex string like 0x2b0df951...823b.
    If h is bytes or bytearray, convert to hex string first.
    If h is not a string or hex string is already short, return as-is.
    """
    if isinstance(h, (bytes, bytearray)):
        s = bytes(h).hex()
    else:
        s = h

    if not isinstance(s, str):
        return s

    if len(s) <= prefix_len * 2:
        return s

    head = s[:prefix_len]
    tail = s[-4:]
    return head + "..." + tail
