from .combiner import Combiner, ProofVerifier, AcceptAllVerifier
from .mock_cipher import MockAdditiveCipher

__all__ = ["Combiner", "ProofVerifier", "AcceptAllVerifier", "MockAdditiveCipher"]
