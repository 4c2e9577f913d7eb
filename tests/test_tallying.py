import dataclasses

import numpy as np
import pytest

from core.models import Encryption
from protocol.decryption import DecryptionAuthorityAlgorithms
from protocol.key_establishment import KeyEstablishmentAlgorithms
from protocol.mixing import MixingAlgorithms
from protocol.tallying import TallyingAuthoritiesAlgorithms

# Candidate indices (0-based) selected by each vote
VOTES = [[0, 3], [1, 3], [0, 4]]
CANDIDATES = 5


@pytest.fixture
def key_pairs(public_parameters, random_generator):
    key_establishment = KeyEstablishmentAlgorithms(random_generator)
    return [key_establishment.generate_key_pair(public_parameters.encryption_group)
            for _ in range(public_parameters.s)]


@pytest.fixture
def public_key(public_parameters, key_pairs):
    return KeyEstablishmentAlgorithms(None).get_public_key(
        [kp.public_key for kp in key_pairs], public_parameters.encryption_group)


@pytest.fixture
def encryptions(public_parameters, general_algorithms, random_generator, public_key):
    group = public_parameters.encryption_group
    primes = general_algorithms.get_primes(CANDIDATES)
    result = []
    for vote in VOTES:
        m = 1
        for j in vote:
            m *= primes[j]
        r = random_generator.random_in_z_q(group.q)
        result.append(Encryption((m * pow(public_key, r, group.p)) % group.p, pow(group.g, r, group.p)))
    return result


@pytest.fixture
def decryption(public_parameters, general_algorithms, random_generator):
    return DecryptionAuthorityAlgorithms(public_parameters, general_algorithms, random_generator)


@pytest.fixture
def tallying(public_parameters, general_algorithms):
    return TallyingAuthoritiesAlgorithms(public_parameters, general_algorithms)


@pytest.fixture
def partial_decryptions(decryption, key_pairs, encryptions, public_key):
    partials = [decryption.gen_partial_decryption(encryptions, kp.secret_key) for kp in key_pairs]
    proofs = [decryption.gen_decryption_proof(kp.secret_key, kp.public_key, encryptions, partial)
              for kp, partial in zip(key_pairs, partials)]
    return partials, proofs


class TestKeyEstablishment:
    def test_public_key_is_product_of_shares(self, public_parameters, key_pairs, public_key):
        group = public_parameters.encryption_group
        secret_key = sum(kp.secret_key for kp in key_pairs) % group.q
        assert public_key == pow(group.g, secret_key, group.p)

    def test_at_least_one_share(self, public_parameters):
        with pytest.raises(ValueError):
            KeyEstablishmentAlgorithms(None).get_public_key([], public_parameters.encryption_group)


class TestDecryptionProofs:
    def test_valid_proofs_verify(self, tallying, key_pairs, encryptions, partial_decryptions):
        partials, proofs = partial_decryptions
        assert tallying.check_decryption_proofs(
            proofs, [kp.public_key for kp in key_pairs], encryptions, partials)

    def test_wrong_partial_decryption_is_detected(self, tallying, key_pairs, encryptions, partial_decryptions,
                                                  public_parameters):
        partials, proofs = partial_decryptions
        tampered = [list(partials[0]), partials[1]]
        tampered[0][0] = (tampered[0][0] * 4) % public_parameters.encryption_group.p
        assert not tallying.check_decryption_proofs(
            proofs, [kp.public_key for kp in key_pairs], encryptions, tampered)

    def test_proof_for_another_key_is_detected(self, tallying, key_pairs, encryptions, partial_decryptions):
        partials, proofs = partial_decryptions
        assert not tallying.check_decryption_proof(proofs[0], key_pairs[1].public_key, encryptions, partials[0])

    def test_modified_response_is_detected(self, tallying, key_pairs, encryptions, partial_decryptions,
                                           public_parameters):
        partials, proofs = partial_decryptions
        proof = dataclasses.replace(proofs[0], s=(proofs[0].s + 1) % public_parameters.encryption_group.q)
        assert not tallying.check_decryption_proof(proof, key_pairs[0].public_key, encryptions, partials[0])

    def test_mismatched_lengths(self, tallying, key_pairs, encryptions, partial_decryptions):
        partials, proofs = partial_decryptions
        assert not tallying.check_decryption_proof(proofs[0], key_pairs[0].public_key, encryptions[:-1],
                                                   partials[0][:-1])
        with pytest.raises(ValueError):
            tallying.check_decryption_proofs(proofs[:1], [kp.public_key for kp in key_pairs],
                                             encryptions, partials)


class TestTally:
    def test_decryptions_recover_the_prime_products(self, tallying, general_algorithms, encryptions,
                                                    partial_decryptions):
        partials, _ = partial_decryptions
        primes = general_algorithms.get_primes(CANDIDATES)
        expected = [primes[a] * primes[b] for a, b in VOTES]
        assert tallying.get_decryptions(encryptions, partials) == expected

    def test_votes_and_tally(self, tallying, encryptions, partial_decryptions):
        partials, _ = partial_decryptions
        votes = tallying.get_votes(tallying.get_decryptions(encryptions, partials), CANDIDATES)

        assert votes.shape == (3, CANDIDATES)
        assert votes.dtype == np.bool_
        assert votes[0].tolist() == [True, False, False, True, False]
        assert tallying.get_tally(votes) == [2, 1, 0, 2, 1]

    def test_tally_needs_a_matrix(self, tallying):
        with pytest.raises(ValueError):
            tallying.get_tally(np.zeros(3, dtype=bool))

    def test_tally_of_no_votes(self, tallying):
        assert tallying.get_tally(tallying.get_votes([], CANDIDATES)) == [0] * CANDIDATES


class TestShuffleProofChain:
    def test_every_other_shuffle_is_checked(self, public_parameters, general_algorithms, random_generator,
                                            decryption, encryptions, public_key):
        mixing = MixingAlgorithms(public_parameters, general_algorithms, random_generator)
        shuffles = []
        proofs = []
        e_in = encryptions
        for _ in range(public_parameters.s):
            shuffle = mixing.gen_shuffle(e_in, public_key)
            proofs.append(mixing.gen_shuffle_proof(e_in, shuffle.encryptions, shuffle.re_encryption_randomness,
                                                   shuffle.permutation, public_key))
            shuffles.append(shuffle.encryptions)
            e_in = shuffle.encryptions

        for j in range(public_parameters.s):
            assert decryption.check_shuffle_proofs(proofs, encryptions, shuffles, public_key, j)

        # a proof of shuffle 1 is only skipped by authority 1
        bad_proofs = [proofs[0], proofs[0]]
        assert not decryption.check_shuffle_proofs(bad_proofs, encryptions, shuffles, public_key, 0)
        assert decryption.check_shuffle_proofs(bad_proofs, encryptions, shuffles, public_key, 1)

        with pytest.raises(ValueError):
            decryption.check_shuffle_proofs(proofs[:1], encryptions, shuffles, public_key, 0)
