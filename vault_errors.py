# vault_errors.py
# Error kinds raised by the note / commitment core.
#
# Every kind also derives from the builtin exception a caller would
# naturally catch (ValueError for bad input, LookupError for missing
# leaves, ...), so plain `except ValueError` keeps working.


class VaultError(Exception):
    """Base class for all note / commitment / tree errors."""


class InvalidHexEncoding(VaultError, ValueError):
    """Non-hex characters, odd length, or a value wider than 32 bytes."""


class InvalidNoteFormat(VaultError, ValueError):
    """Encoded note with an unrecognised prefix or malformed header."""


class InvalidNoteLength(InvalidNoteFormat):
    """Hex payload of an encoded note has the wrong length."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid note length: expected {expected} hex chars, got {actual}"
        )


class LeafNotFound(VaultError, LookupError):
    """Proof or index query against a leaf that is not in the tree."""


class TreeCapacityExceeded(VaultError, OverflowError):
    """Insert beyond the 2^height leaves a tree can hold."""


class HashOracleFailure(VaultError, RuntimeError):
    """The external hash backend failed or returned something unusable."""


class NoteCommitmentMismatch(VaultError, ValueError):
    """A note's nullifier and secret do not hash to its commitment."""


__all__ = [
    "VaultError",
    "InvalidHexEncoding",
    "InvalidNoteFormat",
    "InvalidNoteLength",
    "LeafNotFound",
    "TreeCapacityExceeded",
    "HashOracleFailure",
    "NoteCommitmentMismatch",
]
