# tests/conftest.py
#
# Shared fixtures. The native Poseidon2 backend is not needed here: the real
# Poseidon2Oracle adapter is driven by a deterministic stand-in block hash
# (SHA-256 over the blocks plus the block count, reduced into BN254), which
# keeps the adapter's normalisation and arity handling under test.

import hashlib
import os
import sys

import pytest

THIS_FILE = os.path.abspath(__file__)
THIS_DIR = os.path.dirname(THIS_FILE)
PROJECT_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tools import BN254_SCALAR_FIELD
from wrappers.poseidon_hash_wrapper import Poseidon2Oracle


def fake_hash_blocks(blocks):
    """
    Stand-in for zkcrypto.poseidon_hash_blocks. Different block counts give
    different functions, like the real one.
    """
    h = hashlib.sha256()
    for b in blocks:
        h.update(b)
    h.update(len(blocks).to_bytes(1, "big"))
    value = int.from_bytes(h.digest(), "big") % BN254_SCALAR_FIELD
    return value.to_bytes(32, "big")


class FakeProver:
    """
    Records every input record it receives and returns a dummy proof whose
    public inputs are the record's public fields in circuit order.
    """

    PUBLIC_FIELDS = ("root", "nullifier_hash", "collateral_nullifier_hash", "recipient", "yield_index")

    def __init__(self):
        self.calls = []

    def generate_proof(self, inputs):
        self.calls.append(inputs)
        public = [inputs[name] for name in self.PUBLIC_FIELDS if name in inputs]
        proof = hashlib.sha256(repr(sorted(inputs.items())).encode("utf-8")).digest() * 4
        return proof, public


@pytest.fixture
def hash_blocks():
    return fake_hash_blocks


@pytest.fixture
def oracle():
    return Poseidon2Oracle(fake_hash_blocks)


@pytest.fixture
def prover():
    return FakeProver()
