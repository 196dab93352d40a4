"""
Mock additive cipher tests.
"""
from itertools import permutations

import pytest

from hackjudge.crypto.combiner import AcceptAllVerifier
from hackjudge.crypto.mock_cipher import PAYLOAD_BYTES, MockAdditiveCipher
from hackjudge.errors import InvalidScoreError


@pytest.fixture
def mock_cipher():
    return MockAdditiveCipher(key="unit-test-key", score_min=1, score_max=10)


class TestEncode:

    def test_payload_is_fixed_width(self, mock_cipher):
        payload, proof = mock_cipher.encode(7)
        assert len(payload) == PAYLOAD_BYTES
        assert len(proof) == 32
        assert mock_cipher.decode(payload) == 7

    @pytest.mark.parametrize("score", [0, 11, -3])
    def test_out_of_range_rejected(self, mock_cipher, score):
        with pytest.raises(InvalidScoreError) as exc_info:
            mock_cipher.encode(score)
        assert exc_info.value.details["min"] == 1
        assert exc_info.value.details["max"] == 10

    @pytest.mark.parametrize("score", [5.0, "5", True])
    def test_non_integer_rejected(self, mock_cipher, score):
        with pytest.raises(InvalidScoreError):
            mock_cipher.encode(score)

    def test_range_boundaries_accepted(self, mock_cipher):
        assert mock_cipher.decode(mock_cipher.encode(1)[0]) == 1
        assert mock_cipher.decode(mock_cipher.encode(10)[0]) == 10


class TestCombine:

    def test_combine_adds(self, mock_cipher):
        a, _ = mock_cipher.encode(3)
        b, _ = mock_cipher.encode(9)
        assert mock_cipher.decode(mock_cipher.combine(a, b)) == 12

    def test_order_independent(self, mock_cipher):
        payloads = [mock_cipher.encode(score)[0] for score in (2, 5, 8, 10)]
        results = {mock_cipher.combine_all(order) for order in permutations(payloads)}
        assert len(results) == 1
        assert mock_cipher.decode(results.pop()) == 25

    def test_combine_all_rejects_empty(self, mock_cipher):
        with pytest.raises(ValueError):
            mock_cipher.combine_all([])


class TestVerify:

    def test_own_proof_accepted(self, mock_cipher):
        payload, proof = mock_cipher.encode(4)
        assert mock_cipher.verify(payload, proof) is True

    def test_tampered_payload_rejected(self, mock_cipher):
        payload, proof = mock_cipher.encode(4)
        tampered = mock_cipher.encode(5)[0]
        assert mock_cipher.verify(tampered, proof) is False

    def test_foreign_key_rejected(self, mock_cipher):
        other = MockAdditiveCipher(key="someone-else")
        payload, proof = other.encode(4)
        assert mock_cipher.verify(payload, proof) is False

    def test_wrong_width_rejected(self, mock_cipher):
        assert mock_cipher.verify(b"\x01", b"\x00" * 32) is False

    def test_accept_all_verifier(self):
        assert AcceptAllVerifier().verify(b"anything", b"") is True
