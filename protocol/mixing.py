"""
Verifiable re-encryption mix-net.

Every authority in turn re-encrypts and permutes the list of encrypted
votes and publishes a non-interactive proof that the output is a shuffle of
its input, without revealing the permutation.
"""

import logging
from typing import List, Sequence

from core.arithmetic import mod_inverse, product_mod, sum_mod
from core.general_algorithms import GeneralAlgorithms
from core.models import (BallotEntry, CommitmentChain, ConfirmationEntry,
                         Encryption, PermutationCommitment, PublicParameters,
                         ReEncryption, Shuffle, ShuffleProof,
                         ShuffleProofCommitments, ShuffleProofResponses)
from core.random_generator import RandomGenerator

logger = logging.getLogger(__name__)


class MixingAlgorithms:
    def __init__(self, public_parameters: PublicParameters, general_algorithms: GeneralAlgorithms,
                 random_generator: RandomGenerator):
        self.public_parameters = public_parameters
        self.group = public_parameters.encryption_group
        self.general_algorithms = general_algorithms
        self.random_generator = random_generator

    # ========================================================================
    # SHUFFLING
    # ========================================================================

    def get_encryptions(self, ballot_entries: Sequence[BallotEntry],
                        confirmation_entries: Sequence[ConfirmationEntry]) -> List[Encryption]:
        """Encrypted votes of the confirmed ballots, ordered by voter index"""
        p = self.group.p
        confirmed = {entry.i for entry in confirmation_entries}
        return [Encryption(product_mod(entry.ballot.a, p), entry.ballot.b)
                for entry in sorted(ballot_entries, key=lambda e: e.i)
                if entry.i in confirmed]

    def gen_shuffle(self, encryptions: Sequence[Encryption], public_key: int) -> Shuffle:
        psi = self.gen_permutation(len(encryptions))
        shuffled = []
        randomness = []
        for j_i in psi:
            re_encryption = self.gen_re_encryption(encryptions[j_i], public_key)
            shuffled.append(re_encryption.encryption)
            randomness.append(re_encryption.r_prime)
        return Shuffle(shuffled, randomness, psi)

    def gen_permutation(self, n: int) -> List[int]:
        """Uniformly random permutation of range(n) (Knuth shuffle)"""
        indices = list(range(n))
        psi = []
        for i in range(n):
            k = self.random_generator.random_int_in_range(i, n - 1)
            psi.append(indices[k])
            indices[k] = indices[i]
        return psi

    def gen_re_encryption(self, e: Encryption, public_key: int) -> ReEncryption:
        p = self.group.p
        r_prime = self.random_generator.random_in_z_q(self.group.q)
        a_prime = (e.a * pow(public_key, r_prime, p)) % p
        b_prime = (e.b * pow(self.group.g, r_prime, p)) % p
        return ReEncryption(Encryption(a_prime, b_prime), r_prime)

    # ========================================================================
    # SHUFFLE PROOF GENERATION
    # ========================================================================

    def gen_shuffle_proof(self, e: Sequence[Encryption], e_prime: Sequence[Encryption],
                          r_prime: Sequence[int], psi: Sequence[int], public_key: int) -> ShuffleProof:
        """
        Proof that e_prime is a re-encryption of e under the permutation psi.

        Args:
            e: the input encryptions
            e_prime: the shuffled output, e_prime[i] re-encrypts e[psi[i]]
            r_prime: the re-encryption randomness of each output
            psi: the permutation
            public_key: the election public key
        """
        n = len(e)
        if not n == len(e_prime) == len(r_prime) == len(psi):
            raise ValueError("Shuffle input, output, randomness and permutation must have the same length")

        g, p, q = self.group.g, self.group.p, self.group.q
        rand = self.random_generator
        h_list = self.general_algorithms.get_generators(n)

        permutation_commitment = self.gen_permutation_commitment(psi, h_list)
        c = permutation_commitment.commitments
        u = self.general_algorithms.get_challenges(n, (list(e), list(e_prime), c), q)
        u_prime = [u[j_i] for j_i in psi]

        chain = self.gen_commitment_chain(self.group.h, u_prime)
        c_hat = chain.commitments
        r_hat_list = chain.randomizations

        omega_1, omega_2, omega_3, omega_4 = (rand.random_in_z_q(q) for _ in range(4))
        omega_hat = [rand.random_in_z_q(q) for _ in range(n)]
        omega_prime = [rand.random_in_z_q(q) for _ in range(n)]

        t_1 = pow(g, omega_1, p)
        t_2 = pow(g, omega_2, p)
        t_3 = (pow(g, omega_3, p) * product_mod(
            (pow(h_i, w_i, p) for h_i, w_i in zip(h_list, omega_prime)), p)) % p
        t_4_1 = (pow(public_key, -omega_4, p) * product_mod(
            (pow(e_i.a, w_i, p) for e_i, w_i in zip(e_prime, omega_prime)), p)) % p
        t_4_2 = (pow(g, -omega_4, p) * product_mod(
            (pow(e_i.b, w_i, p) for e_i, w_i in zip(e_prime, omega_prime)), p)) % p

        t_hat = []
        previous = self.group.h
        for i in range(n):
            t_hat.append((pow(g, omega_hat[i], p) * pow(previous, omega_prime[i], p)) % p)
            previous = c_hat[i]

        t = ShuffleProofCommitments(t_1, t_2, t_3, (t_4_1, t_4_2), t_hat)
        y = (list(e), list(e_prime), c, c_hat, public_key)
        challenge = self.general_algorithms.get_nizkp_challenge(y, t.as_hashable(), q)

        r_bar = sum_mod(permutation_commitment.randomizations, q)
        v = 1
        r_hat = 0
        for i in reversed(range(n)):
            r_hat = (r_hat + r_hat_list[i] * v) % q
            v = (v * u_prime[i]) % q
        r_tilde = sum_mod((r_i * u_i for r_i, u_i in zip(permutation_commitment.randomizations, u)), q)
        r_prime_sum = sum_mod((r_i * u_i for r_i, u_i in zip(r_prime, u_prime)), q)

        s = ShuffleProofResponses(
            s1=(omega_1 + challenge * r_bar) % q,
            s2=(omega_2 + challenge * r_hat) % q,
            s3=(omega_3 + challenge * r_tilde) % q,
            s4=(omega_4 + challenge * r_prime_sum) % q,
            s_hat=[(w_i + challenge * r_i) % q for w_i, r_i in zip(omega_hat, r_hat_list)],
            s_prime=[(w_i + challenge * u_i) % q for w_i, u_i in zip(omega_prime, u_prime)]
        )
        return ShuffleProof(t, s, c, c_hat)

    def gen_permutation_commitment(self, psi: Sequence[int], h_list: Sequence[int]) -> PermutationCommitment:
        g, p, q = self.group.g, self.group.p, self.group.q
        n = len(psi)
        commitments = [0] * n
        randomizations = [0] * n
        for i, j_i in enumerate(psi):
            r_j = self.random_generator.random_in_z_q(q)
            commitments[j_i] = (pow(g, r_j, p) * h_list[i]) % p
            randomizations[j_i] = r_j
        return PermutationCommitment(commitments, randomizations)

    def gen_commitment_chain(self, c_0: int, u_prime: Sequence[int]) -> CommitmentChain:
        g, p, q = self.group.g, self.group.p, self.group.q
        commitments = []
        randomizations = []
        previous = c_0
        for u_i in u_prime:
            r_i = self.random_generator.random_in_z_q(q)
            previous = (pow(g, r_i, p) * pow(previous, u_i, p)) % p
            commitments.append(previous)
            randomizations.append(r_i)
        return CommitmentChain(commitments, randomizations)

    # ========================================================================
    # SHUFFLE PROOF VERIFICATION
    # ========================================================================

    def check_shuffle_proof(self, proof: ShuffleProof, e: Sequence[Encryption],
                            e_prime: Sequence[Encryption], public_key: int) -> bool:
        ga = self.general_algorithms
        g, p, q = self.group.g, self.group.p, self.group.q
        n = len(e)
        t, s = proof.t, proof.s
        c = list(proof.permutation_commitments)
        c_hat = list(proof.chain_commitments)

        if not (len(e_prime) == len(c) == len(c_hat) == len(t.t_hat) == len(s.s_hat) == len(s.s_prime) == n):
            logger.debug("Shuffle proof has inconsistent lengths")
            return False
        if len(t.t4) != 2:
            return False
        group_elements = [t.t1, t.t2, t.t3, t.t4[0], t.t4[1], *t.t_hat, *c, *c_hat]
        if not all(ga.is_member(x) for x in group_elements):
            logger.debug("Shuffle proof contains values outside G_q")
            return False
        exponents = [s.s1, s.s2, s.s3, s.s4, *s.s_hat, *s.s_prime]
        if not all(ga.is_in_z_q(x) for x in exponents):
            logger.debug("Shuffle proof contains responses outside Z_q")
            return False

        h_list = ga.get_generators(n)
        u = ga.get_challenges(n, (list(e), list(e_prime), c), q)
        y = (list(e), list(e_prime), c, c_hat, public_key)
        challenge = ga.get_nizkp_challenge(y, t.as_hashable(), q)

        c_bar = (product_mod(c, p) * mod_inverse(product_mod(h_list, p), p)) % p
        u_product = product_mod(u, q)
        c_hat_final = c_hat[-1] if n > 0 else self.group.h
        c_hat_bar = (c_hat_final * mod_inverse(pow(self.group.h, u_product, p), p)) % p
        c_tilde = product_mod((pow(c_i, u_i, p) for c_i, u_i in zip(c, u)), p)
        a_tilde = product_mod((pow(e_i.a, u_i, p) for e_i, u_i in zip(e, u)), p)
        b_tilde = product_mod((pow(e_i.b, u_i, p) for e_i, u_i in zip(e, u)), p)

        t_1_prime = (pow(c_bar, -challenge, p) * pow(g, s.s1, p)) % p
        t_2_prime = (pow(c_hat_bar, -challenge, p) * pow(g, s.s2, p)) % p
        t_3_prime = (pow(c_tilde, -challenge, p) * pow(g, s.s3, p) * product_mod(
            (pow(h_i, s_i, p) for h_i, s_i in zip(h_list, s.s_prime)), p)) % p
        t_4_1_prime = (pow(a_tilde, -challenge, p) * pow(public_key, -s.s4, p) * product_mod(
            (pow(e_i.a, s_i, p) for e_i, s_i in zip(e_prime, s.s_prime)), p)) % p
        t_4_2_prime = (pow(b_tilde, -challenge, p) * pow(g, -s.s4, p) * product_mod(
            (pow(e_i.b, s_i, p) for e_i, s_i in zip(e_prime, s.s_prime)), p)) % p

        previous = self.group.h
        for i in range(n):
            t_hat_prime = (pow(c_hat[i], -challenge, p) * pow(g, s.s_hat[i], p)
                           * pow(previous, s.s_prime[i], p)) % p
            if t.t_hat[i] != t_hat_prime:
                return False
            previous = c_hat[i]

        return (t.t1 == t_1_prime and t.t2 == t_2_prime and t.t3 == t_3_prime
                and t.t4[0] == t_4_1_prime and t.t4[1] == t_4_2_prime)
