# client/core.py
# Client holding the injected hash oracle and prover, and the notes it
# created in this session. Envelope building is delegated to the
# create_deposit / prepare_withdraw modules.

import logging

from tools import TREE_HEIGHT, POSEIDON2_ZERO_VALUES

from client.create_deposit import build_deposit_envelope
from client.prepare_withdraw import build_borrow_envelope, build_withdraw_envelope

logger = logging.getLogger(__name__)


class Client:
    """
    Simplified Client:

      - oracle: Poseidon2 hash oracle (wrappers.poseidon_hash_wrapper.Poseidon2Oracle
        or anything with hash(a, b=None)).
      - prover: object with generate_proof(inputs) -> (proof, public_inputs);
        only needed for withdraw / borrow.
      - zero_values: precomputed zero-subtree table. Defaults to the deployed
        Poseidon2 table when the tree has the deployed height; otherwise the
        tree computes its own.
      - notes: note strings created by this client, newest last. Kept in
        memory only.
    """

    def __init__(self, oracle, prover=None, height=TREE_HEIGHT, zero_values=None):
        self.oracle = oracle
        self.prover = prover
        self.height = height
        if zero_values is None and height == TREE_HEIGHT:
            zero_values = POSEIDON2_ZERO_VALUES
        self.zero_values = zero_values
        self.notes = []
        logger.info("[CLIENT] Client initialized (height = %d).", height)

    def _require_prover(self):
        if self.prover is None:
            raise RuntimeError("no prover configured for this client")
        return self.prover

    def deposit(self, metadata=None, yield_index=None):
        note_str, envelope = build_deposit_envelope(self.oracle, metadata, yield_index)
        self.notes.append(note_str)
        return note_str, envelope

    def withdraw(self, note_str, leaves, recipient):
        return build_withdraw_envelope(
            self.oracle,
            self._require_prover(),
            note_str,
            leaves,
            recipient,
            height=self.height,
            zero_values=self.zero_values,
        )

    def borrow(self, note_str, leaves, recipient):
        return build_borrow_envelope(
            self.oracle,
            self._require_prover(),
            note_str,
            leaves,
            recipient,
            height=self.height,
            zero_values=self.zero_values,
        )
