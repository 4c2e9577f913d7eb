"""Partial decryption of the final shuffle by each authority."""

import logging
from typing import List, Sequence

from core.general_algorithms import GeneralAlgorithms
from core.models import DecryptionProof, Encryption, PublicParameters, ShuffleProof
from core.random_generator import RandomGenerator

from .mixing import MixingAlgorithms

logger = logging.getLogger(__name__)


class DecryptionAuthorityAlgorithms:
    def __init__(self, public_parameters: PublicParameters, general_algorithms: GeneralAlgorithms,
                 random_generator: RandomGenerator):
        self.public_parameters = public_parameters
        self.group = public_parameters.encryption_group
        self.general_algorithms = general_algorithms
        self.random_generator = random_generator
        self.mixing = MixingAlgorithms(public_parameters, general_algorithms, random_generator)

    def check_shuffle_proofs(self, proofs: Sequence[ShuffleProof], e_0: Sequence[Encryption],
                             shuffles: Sequence[Sequence[Encryption]], public_key: int, j: int) -> bool:
        """
        Check every other authority's shuffle proof. Authority j trusts its own
        shuffle; shuffle i consumes shuffle i - 1, the first one consumes e_0.
        """
        s = self.public_parameters.s
        if len(proofs) != s or len(shuffles) != s:
            raise ValueError(f"Expected {s} shuffles and proofs")

        for i in range(s):
            if i == j:
                continue
            e_in = e_0 if i == 0 else shuffles[i - 1]
            if not self.mixing.check_shuffle_proof(proofs[i], e_in, shuffles[i], public_key):
                logger.warning(f"Shuffle proof of authority {i} failed verification")
                return False
        return True

    def gen_partial_decryption(self, encryptions: Sequence[Encryption], secret_key: int) -> List[int]:
        p = self.group.p
        return [pow(e_i.b, secret_key, p) for e_i in encryptions]

    def gen_decryption_proof(self, secret_key: int, public_key: int, encryptions: Sequence[Encryption],
                             partial_decryptions: Sequence[int]) -> DecryptionProof:
        """Proof that the same secret key opens public_key and every partial decryption"""
        g, p, q = self.group.g, self.group.p, self.group.q
        omega = self.random_generator.random_in_z_q(q)
        b = [e_i.b for e_i in encryptions]

        t = [pow(g, omega, p)] + [pow(b_i, omega, p) for b_i in b]
        y = (public_key, b, list(partial_decryptions))
        c = self.general_algorithms.get_nizkp_challenge(y, t, q)
        return DecryptionProof(t, (omega + c * secret_key) % q)
