import dataclasses

import pytest

from core.exceptions import (IncompatibleParametersError,
                             InvalidObliviousTransferResponseError)
from core.general_algorithms import GeneralAlgorithms
from core.models import BallotEntry, EncryptionGroup, NonInteractiveZKP
from protocol.vote_casting import VoteCastingClientAlgorithms, compute_mask
from protocol.vote_confirmation import check_return_codes

# Voter 0 picks candidate 2 in the first election and 4, 6 in the second
SELECTIONS = [2, 4, 6]


def flip(value: int) -> int:
    return value ^ 1


class TestMask:
    def test_mask_length_and_determinism(self, hash_function):
        mask = compute_mask(hash_function, 12345, 64)
        assert len(mask) == 64
        assert mask == compute_mask(hash_function, 12345, 64)
        assert mask[:20] == hash_function.rec_hash_l(12345, 1)
        assert mask != compute_mask(hash_function, 12346, 64)


class TestBallot:
    def test_valid_ballot_is_accepted(self, prepared_election):
        ballot_and_rand, _ = prepared_election.cast_ballot(0, SELECTIONS)
        ballot = ballot_and_rand.ballot
        assert len(ballot.a) == 3
        assert len(ballot_and_rand.r) == 3
        assert prepared_election.authority.check_ballot(
            0, ballot, prepared_election.public_key, prepared_election.public_credentials, [])

    def test_ballot_proof_verifies(self, prepared_election, public_parameters):
        ballot = prepared_election.cast_ballot(0, SELECTIONS)[0].ballot
        a = 1
        for a_i in ballot.a:
            a = (a * a_i) % public_parameters.encryption_group.p
        assert prepared_election.authority.check_ballot_proof(
            ballot.proof, ballot.x_circ, a, ballot.b, prepared_election.public_key)

    @pytest.mark.parametrize("index", [0, 1, 2])
    @pytest.mark.parametrize("component", ["t", "s"])
    def test_modified_proof_is_rejected(self, prepared_election, component, index):
        ballot = prepared_election.cast_ballot(0, SELECTIONS)[0].ballot
        values = list(getattr(ballot.proof, component))
        values[index] = flip(values[index])
        proof = dataclasses.replace(ballot.proof, **{component: values})
        tampered = dataclasses.replace(ballot, proof=proof)
        assert not prepared_election.authority.check_ballot(
            0, tampered, prepared_election.public_key, prepared_election.public_credentials, [])

    def test_modified_x_circ_fails_the_proof(self, prepared_election, public_parameters):
        ballot = prepared_election.cast_ballot(0, SELECTIONS)[0].ballot
        a = 1
        for a_i in ballot.a:
            a = (a * a_i) % public_parameters.encryption_group.p
        assert not prepared_election.authority.check_ballot_proof(
            ballot.proof, flip(ballot.x_circ), a, ballot.b, prepared_election.public_key)

    def test_proof_with_wrong_shape_is_rejected(self, prepared_election):
        ballot = prepared_election.cast_ballot(0, SELECTIONS)[0].ballot
        tampered = dataclasses.replace(ballot, proof=NonInteractiveZKP(ballot.proof.t[:2], ballot.proof.s))
        assert not prepared_election.authority.check_ballot(
            0, tampered, prepared_election.public_key, prepared_election.public_credentials, [])

    def test_ballot_with_foreign_voting_code_is_rejected(self, prepared_election):
        # voter 1 is only eligible in the first election
        ballot = prepared_election.client.gen_ballot(
            prepared_election.code_sheets[0].voting_code, [3], prepared_election.public_key).ballot
        assert not prepared_election.authority.check_ballot(
            1, ballot, prepared_election.public_key, prepared_election.public_credentials, [])

    def test_wrong_number_of_selections_is_rejected(self, prepared_election):
        ballot = prepared_election.client.gen_ballot(
            prepared_election.code_sheets[0].voting_code, [2, 4], prepared_election.public_key).ballot
        assert not prepared_election.authority.check_ballot(
            0, ballot, prepared_election.public_key, prepared_election.public_credentials, [])

    def test_second_ballot_is_rejected(self, prepared_election):
        ballot_and_rand, responses = prepared_election.cast_ballot(0, SELECTIONS)
        entries = [BallotEntry(0, ballot_and_rand.ballot, responses[0].r)]
        assert prepared_election.authority.has_ballot(0, entries)
        assert not prepared_election.authority.has_ballot(1, entries)
        assert not prepared_election.authority.check_ballot(
            0, ballot_and_rand.ballot, prepared_election.public_key,
            prepared_election.public_credentials, entries)

    def test_unknown_voter_index(self, prepared_election):
        ballot = prepared_election.cast_ballot(0, SELECTIONS)[0].ballot
        with pytest.raises(ValueError):
            prepared_election.authority.check_ballot(
                5, ballot, prepared_election.public_key, prepared_election.public_credentials, [])

    def test_selection_product_must_fit_into_the_group(self, public_parameters, hash_function,
                                                       random_generator, prepared_election):
        small_group = EncryptionGroup(p=23, q=11, g=4, h=9)
        pp = dataclasses.replace(public_parameters, encryption_group=small_group)
        ga = GeneralAlgorithms(hash_function, small_group, pp.identification_group)
        client = VoteCastingClientAlgorithms(pp, ga, random_generator, hash_function)
        # the selected primes 3 and 13 multiply to 39 >= 23
        with pytest.raises(IncompatibleParametersError):
            client.gen_ballot(prepared_election.code_sheets[0].voting_code, [2, 3], 4)


class TestObliviousTransfer:
    def test_points_of_selected_candidates_are_transferred(self, prepared_election):
        ballot_and_rand, responses = prepared_election.cast_ballot(0, SELECTIONS)
        k = prepared_election.election_set.allowed_selections(0)
        point_matrix = prepared_election.client.get_point_matrix(
            [r.response for r in responses], SELECTIONS, k, ballot_and_rand.r)

        for j, points in enumerate(point_matrix):
            expected = [prepared_election.electorate_data[j].points[0][s - 1] for s in SELECTIONS]
            assert points == expected

    def test_response_covers_every_candidate(self, prepared_election):
        _, responses = prepared_election.cast_ballot(0, SELECTIONS)
        response = responses[0].response
        assert len(response.b) == 3
        assert len(response.c) == 7
        assert len(response.d) == 2
        assert len(responses[0].r) == 2
        assert all(len(c_v) == prepared_election.public_parameters.upper_l_m for c_v in response.c)

    def test_voter_not_eligible_in_every_election(self, prepared_election):
        ballot_and_rand, responses = prepared_election.cast_ballot(1, [3])
        k = prepared_election.election_set.allowed_selections(1)
        assert k == [1, 0]
        point_matrix = prepared_election.client.get_point_matrix(
            [r.response for r in responses], [3], k, ballot_and_rand.r)
        assert point_matrix[0] == [prepared_election.electorate_data[0].points[1][2]]

    def test_return_codes_match_the_code_sheet(self, prepared_election):
        ballot_and_rand, responses = prepared_election.cast_ballot(0, SELECTIONS)
        k = prepared_election.election_set.allowed_selections(0)
        point_matrix = prepared_election.client.get_point_matrix(
            [r.response for r in responses], SELECTIONS, k, ballot_and_rand.r)
        return_codes = prepared_election.client.get_return_codes(SELECTIONS, point_matrix)

        sheet = prepared_election.code_sheets[0]
        assert return_codes == [sheet.return_codes[s - 1] for s in SELECTIONS]
        assert check_return_codes(sheet.return_codes, return_codes, SELECTIONS)
        assert not check_return_codes(sheet.return_codes, return_codes, [1, 4, 6])
        assert not check_return_codes(sheet.return_codes, return_codes[:2], SELECTIONS)

    def test_tampered_response_is_detected(self, prepared_election):
        ballot_and_rand, responses = prepared_election.cast_ballot(0, SELECTIONS)
        response = responses[0].response
        c = list(response.c)
        # the decoded x coordinate then exceeds 2^255 > p'
        c[SELECTIONS[0] - 1] = bytes([c[SELECTIONS[0] - 1][0] ^ 0xFF]) + c[SELECTIONS[0] - 1][1:]
        tampered = dataclasses.replace(response, c=c)

        with pytest.raises(InvalidObliviousTransferResponseError):
            prepared_election.client.get_points(
                tampered, SELECTIONS, prepared_election.election_set.allowed_selections(0), ballot_and_rand.r)

    def test_query_size_mismatch_is_detected(self, prepared_election):
        ballot_and_rand, responses = prepared_election.cast_ballot(0, SELECTIONS)
        with pytest.raises(InvalidObliviousTransferResponseError):
            prepared_election.client.get_points(
                responses[0].response, SELECTIONS[:2], [1, 1], ballot_and_rand.r[:2])

    def test_response_needs_one_point_per_candidate(self, prepared_election):
        ballot_and_rand, _ = prepared_election.cast_ballot(0, SELECTIONS)
        with pytest.raises(ValueError):
            prepared_election.authority.gen_response(
                0, ballot_and_rand.ballot.a, prepared_election.public_key,
                prepared_election.electorate_data[0].points[0][:6])

    @pytest.mark.parametrize("malformation", [
        lambda response, p: dataclasses.replace(response, c=response.c[:-1]),
        lambda response, p: dataclasses.replace(response, c=[response.c[0][:-1]] + list(response.c[1:])),
        lambda response, p: dataclasses.replace(response, d=[0] + list(response.d[1:])),
        lambda response, p: dataclasses.replace(response, d=list(response.d[:-1]) + [p]),
        lambda response, p: dataclasses.replace(response, b=[p - 1] + list(response.b[1:])),
    ], ids=["missing_point", "short_point", "zero_d", "d_out_of_range", "b_not_in_group"])
    def test_malformed_response_is_detected(self, prepared_election, malformation):
        ballot_and_rand, responses = prepared_election.cast_ballot(0, SELECTIONS)
        p = prepared_election.public_parameters.encryption_group.p
        tampered = malformation(responses[0].response, p)

        with pytest.raises(InvalidObliviousTransferResponseError):
            prepared_election.client.get_points(
                tampered, SELECTIONS, prepared_election.election_set.allowed_selections(0),
                ballot_and_rand.r, candidate_count=7)

    def test_response_must_cover_the_selected_candidates(self, prepared_election):
        ballot_and_rand, responses = prepared_election.cast_ballot(0, SELECTIONS)
        response = responses[0].response
        tampered = dataclasses.replace(response, c=response.c[:SELECTIONS[-1] - 1])

        with pytest.raises(InvalidObliviousTransferResponseError):
            prepared_election.client.get_point_matrix(
                [tampered], SELECTIONS, prepared_election.election_set.allowed_selections(0), ballot_and_rand.r)
