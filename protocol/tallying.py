"""Tally computation by the election administration."""

import logging
from typing import List, Sequence

import numpy as np

from core.arithmetic import mod_inverse, product_mod
from core.general_algorithms import GeneralAlgorithms
from core.models import DecryptionProof, Encryption, PublicParameters

logger = logging.getLogger(__name__)


class TallyingAuthoritiesAlgorithms:
    def __init__(self, public_parameters: PublicParameters, general_algorithms: GeneralAlgorithms):
        self.public_parameters = public_parameters
        self.group = public_parameters.encryption_group
        self.general_algorithms = general_algorithms

    def check_decryption_proofs(self, proofs: Sequence[DecryptionProof], public_key_shares: Sequence[int],
                                encryptions: Sequence[Encryption],
                                partial_decryptions: Sequence[Sequence[int]]) -> bool:
        if not len(proofs) == len(public_key_shares) == len(partial_decryptions):
            raise ValueError("One proof, key share and partial decryption list per authority is needed")
        for j, (proof, pk_j, b_prime) in enumerate(zip(proofs, public_key_shares, partial_decryptions)):
            if not self.check_decryption_proof(proof, pk_j, encryptions, b_prime):
                logger.warning(f"Decryption proof of authority {j} failed verification")
                return False
        return True

    def check_decryption_proof(self, proof: DecryptionProof, public_key: int, encryptions: Sequence[Encryption],
                               partial_decryptions: Sequence[int]) -> bool:
        ga = self.general_algorithms
        g, p, q = self.group.g, self.group.p, self.group.q
        n = len(encryptions)

        if len(proof.t) != n + 1 or len(partial_decryptions) != n:
            return False
        if not all(ga.is_member(t_i) for t_i in proof.t) or not ga.is_in_z_q(proof.s):
            return False

        b = [e_i.b for e_i in encryptions]
        y = (public_key, b, list(partial_decryptions))
        c = ga.get_nizkp_challenge(y, list(proof.t), q)

        if proof.t[0] != (pow(public_key, -c, p) * pow(g, proof.s, p)) % p:
            return False
        return all(t_i == (pow(b_prime_i, -c, p) * pow(b_i, proof.s, p)) % p
                   for t_i, b_i, b_prime_i in zip(proof.t[1:], b, partial_decryptions))

    def get_decryptions(self, encryptions: Sequence[Encryption],
                        partial_decryptions: Sequence[Sequence[int]]) -> List[int]:
        """Plaintext products of primes, removing every authority's decryption share"""
        p = self.group.p
        decryptions = []
        for i, e_i in enumerate(encryptions):
            b_prime = product_mod((shares[i] for shares in partial_decryptions), p)
            decryptions.append((e_i.a * mod_inverse(b_prime, p)) % p)
        return decryptions

    def get_votes(self, decryptions: Sequence[int], n: int) -> np.ndarray:
        """Boolean matrix, True where vote i selects candidate j"""
        primes = self.general_algorithms.get_primes(n)
        votes = np.zeros((len(decryptions), n), dtype=bool)
        for i, m_i in enumerate(decryptions):
            for j, prime in enumerate(primes):
                votes[i, j] = m_i % prime == 0
        return votes

    @staticmethod
    def get_tally(votes: np.ndarray) -> List[int]:
        if votes.ndim != 2:
            raise ValueError("Votes must be a two-dimensional matrix")
        return [int(count) for count in votes.sum(axis=0)]
