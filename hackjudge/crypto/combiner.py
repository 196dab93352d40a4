"""
Encryption collaborator interfaces.

The judging core never looks inside a score payload. It needs exactly two
capabilities from whatever encryption backend is plugged in:

- Combiner: fold two encrypted payloads into one (homomorphic addition).
  Must be associative and commutative so submission order never matters.
- ProofVerifier: accept or reject the proof attached to a payload.

Decoding an aggregate is the organizer's off-chain concern and is not part
of these interfaces.
"""
from abc import ABC, abstractmethod
from functools import reduce
from typing import Iterable


class Combiner(ABC):
    """Associative, commutative combination of encrypted payloads."""

    @abstractmethod
    def combine(self, left: bytes, right: bytes) -> bytes:
        """
        Combine two encrypted payloads.

        Args:
            left: Encrypted payload
            right: Encrypted payload

        Returns:
            Encrypted payload representing the sum of both inputs
        """
        pass

    def combine_all(self, payloads: Iterable[bytes]) -> bytes:
        """Fold a non-empty sequence of payloads with combine()."""
        payloads = list(payloads)
        if not payloads:
            raise ValueError("Cannot combine an empty set of payloads")
        return reduce(self.combine, payloads)


class ProofVerifier(ABC):
    """Validity check for the proof accompanying an encrypted payload."""

    @abstractmethod
    def verify(self, payload: bytes, proof: bytes) -> bool:
        pass


class AcceptAllVerifier(ProofVerifier):
    """Verifier for backends whose proofs are checked elsewhere."""

    def verify(self, payload: bytes, proof: bytes) -> bool:
        return True
