# poseidon_hash_wrapper.py
# Python-side interface to the native Poseidon2 hash used by the vault.
# Field elements are normalised to 32-byte big-endian blocks and handed to a
# block-hash backend; the digest comes back as a 32-byte field element.
# The permutation itself lives in the backend, never here.

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Union

from tools import FIELD_BYTES, hex_to_field_bytes, field_bytes_to_hex, short_hex
from vault_errors import HashOracleFailure

logger = logging.getLogger(__name__)

# Allowed field element inputs
BytesLike = Union[bytes, bytearray, memoryview]
FieldLike = Union[str, BytesLike]

# Backend shape: list of 32-byte blocks -> digest bytes
HashBlocksFn = Callable[[List[bytes]], BytesLike]

# Attempt to import zkcrypto; any import errors are stored and raised when needed.
try:
    import zkcrypto  # type: ignore[import]
    _IMPORT_ERROR = None
except Exception as e:
    zkcrypto = None  # type: ignore[assignment]
    _IMPORT_ERROR = e


def _ensure_zkcrypto_available() -> None:
    """
    Ensure that the zkcrypto module is correctly imported and exposes
    poseidon_hash_blocks. Raise RuntimeError if not available.
    """
    if _IMPORT_ERROR is not None or zkcrypto is None:  # type: ignore[truthy-function]
        raise RuntimeError(
            "zkcrypto module is not available. Ensure the Rust extension is compiled and importable."
        ) from _IMPORT_ERROR

    if not hasattr(zkcrypto, "poseidon_hash_blocks"):  # type: ignore[arg-type]
        raise RuntimeError("zkcrypto module is missing required function: poseidon_hash_blocks")


def _native_hash_blocks(blocks: List[bytes]) -> BytesLike:
    _ensure_zkcrypto_available()
    return zkcrypto.poseidon_hash_blocks(blocks)  # type: ignore[call-arg]


def _to_block(x: FieldLike) -> bytes:
    """
    Convert one input into a 32-byte block:
      - str: hex field element, optional 0x prefix, short values left-padded.
      - bytes / bytearray / memoryview: at most 32 bytes, left-padded.
    Values are passed through as-is; no modular reduction happens here,
    the circuit sees exactly the same bytes.
    """
    if isinstance(x, (str, bytes, bytearray, memoryview)):
        return hex_to_field_bytes(x)
    raise TypeError(
        f"field elements must be hex str or bytes-like (bytes/bytearray/memoryview), got: {type(x)!r}"
    )


class Poseidon2Oracle:
    """
    Hash oracle over a block-hash backend.

    hash(a)    -> Poseidon2 of one field element
    hash(a, b) -> Poseidon2 of two field elements, in that order

    One- and two-argument calls hash a different number of blocks and are
    therefore different functions; callers must keep the arity their flow
    prescribes.

    The default backend is zkcrypto.poseidon_hash_blocks. Any callable
    taking a list of 32-byte blocks and returning the digest bytes can be
    injected instead (a WASM bridge, a remote service, a test double).
    Backend errors are re-raised as HashOracleFailure.
    """

    def __init__(self, hash_blocks: Optional[HashBlocksFn] = None):
        if hash_blocks is None:
            hash_blocks = _native_hash_blocks
        self._hash_blocks = hash_blocks
        self.calls = 0

    def hash(self, a: FieldLike, b: Optional[FieldLike] = None) -> bytes:
        blocks = [_to_block(a)]
        if b is not None:
            blocks.append(_to_block(b))
        return self.hash_blocks(blocks)

    def hash_blocks(self, blocks: Sequence[bytes]) -> bytes:
        block_list = list(blocks)
        if len(block_list) == 0:
            raise ValueError("Poseidon2 needs at least one input block")

        self.calls += 1
        try:
            digest = self._hash_blocks(block_list)
        except Exception as e:
            raise HashOracleFailure(
                f"Poseidon2 backend failed on {len(block_list)} block(s): {e!r}"
            ) from e

        if not isinstance(digest, (bytes, bytearray, memoryview)):
            try:
                digest = bytes(digest)
            except Exception as e:
                raise HashOracleFailure(
                    "Return value of the Poseidon2 backend cannot be converted to bytes."
                ) from e

        digest = bytes(digest)
        if len(digest) != FIELD_BYTES:
            raise HashOracleFailure(
                f"Poseidon2 backend returned a {len(digest)}-byte digest, expected {FIELD_BYTES}"
            )

        logger.debug("[POSEIDON2] %d block(s) -> %s", len(block_list), short_hex(digest))
        return digest

    def __call__(self, a: FieldLike, b: Optional[FieldLike] = None) -> bytes:
        return self.hash(a, b)


_DEFAULT_ORACLE: Optional[Poseidon2Oracle] = None


def get_default_oracle() -> Poseidon2Oracle:
    """Shared oracle over the native zkcrypto backend."""
    global _DEFAULT_ORACLE

    if _DEFAULT_ORACLE is None:
        _DEFAULT_ORACLE = Poseidon2Oracle()
    return _DEFAULT_ORACLE


def get_poseidon2_hash(a: FieldLike, b: Optional[FieldLike] = None) -> str:
    """
    Convenience wrapper: Poseidon2 of one or two field elements on the
    native backend, returned as a canonical 0x-prefixed hex string.
    """
    return field_bytes_to_hex(get_default_oracle().hash(a, b))


__all__ = [
    "Poseidon2Oracle",
    "get_default_oracle",
    "get_poseidon2_hash",
    "BytesLike",
    "FieldLike",
]
