"""
Mock additive cipher for development, demos and tests.

NOT encryption. Payloads are fixed-width big-endian integers, so combine()
is modular addition and decode() reads the sum straight back. Proofs are an
HMAC-SHA256 over the payload keyed with MOCK_CIPHER_KEY, which lets the
verifier reject tampered or foreign payloads.

Mirrors the protocol shape a real FHE backend has to satisfy:
encode(score) -> (payload, proof), combine(p1, p2) -> payload,
decode(aggregate) -> score.
"""
import hashlib
import hmac
from typing import Tuple

from hackjudge.crypto.combiner import Combiner, ProofVerifier
from hackjudge.errors import InvalidScoreError

PAYLOAD_BYTES = 32
MODULUS = 2 ** (PAYLOAD_BYTES * 8)


class MockAdditiveCipher(Combiner, ProofVerifier):
    """Additive stand-in for a homomorphic encryption backend."""

    def __init__(self, key: str = "hackjudge-development-key", score_min: int = 1, score_max: int = 10):
        self._key = key.encode("utf-8")
        self.score_min = score_min
        self.score_max = score_max

    @classmethod
    def from_settings(cls, settings) -> "MockAdditiveCipher":
        return cls(
            key=settings.mock_cipher_key,
            score_min=settings.score_min,
            score_max=settings.score_max,
        )

    def _sign(self, payload: bytes) -> bytes:
        return hmac.new(self._key, payload, hashlib.sha256).digest()

    def encode(self, plain_score: int) -> Tuple[bytes, bytes]:
        """Encode a plain score into (payload, proof)."""
        if isinstance(plain_score, bool) or not isinstance(plain_score, int):
            raise InvalidScoreError(f"Score must be an integer, got {plain_score!r}")
        if plain_score < self.score_min or plain_score > self.score_max:
            raise InvalidScoreError(
                f"Score must be between {self.score_min} and {self.score_max}",
                details={"score": plain_score, "min": self.score_min, "max": self.score_max}
            )
        payload = plain_score.to_bytes(PAYLOAD_BYTES, "big")
        return payload, self._sign(payload)

    def combine(self, left: bytes, right: bytes) -> bytes:
        total = (int.from_bytes(left, "big") + int.from_bytes(right, "big")) % MODULUS
        return total.to_bytes(PAYLOAD_BYTES, "big")

    def verify(self, payload: bytes, proof: bytes) -> bool:
        if len(payload) != PAYLOAD_BYTES:
            return False
        return hmac.compare_digest(self._sign(payload), proof)

    def decode(self, payload: bytes) -> int:
        return int.from_bytes(payload, "big")
