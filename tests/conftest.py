"""
Shared fixtures.

Every test runs on the 1024-bit safe-prime groups of security level 1 and
the prime field 2^255 - 19, so that no fixture depends on prime generation.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import pytest

from core.general_algorithms import GeneralAlgorithms
from core.hashing import RecursiveHash
from core.models import (BallotQueryAndRand, CodeSheet, DomainOfInfluence,
                         Election, ElectionSet, ElectorateData, KeyPair,
                         ObliviousTransferResponseAndRand, Point, PrimeField,
                         PublicParameters, Voter, Candidate)
from core.parameters import create_public_parameters
from core.random_generator import RandomGenerator
from protocol.code_sheets import CodeSheetPreparationAlgorithms
from protocol.election_preparation import ElectionPreparationAlgorithms
from protocol.key_establishment import KeyEstablishmentAlgorithms
from protocol.vote_casting import VoteCastingAuthorityAlgorithms, VoteCastingClientAlgorithms

logging.getLogger("core").setLevel(logging.WARNING)

P_PRIME = 2 ** 255 - 19


@pytest.fixture(scope="session")
def public_parameters() -> PublicParameters:
    return create_public_parameters(1, 2, prime_field=PrimeField(P_PRIME))


@pytest.fixture(scope="session")
def hash_function(public_parameters) -> RecursiveHash:
    return RecursiveHash(public_parameters.security_parameters)


@pytest.fixture(scope="session")
def general_algorithms(public_parameters, hash_function) -> GeneralAlgorithms:
    return GeneralAlgorithms(hash_function, public_parameters.encryption_group,
                             public_parameters.identification_group)


@pytest.fixture
def random_generator() -> RandomGenerator:
    return RandomGenerator()


def make_election_set(voters_count: int = 1) -> ElectionSet:
    """One election with 3 candidates and 1 selection"""
    canton = DomainOfInfluence("canton")
    voters = [Voter({canton}) for _ in range(voters_count)]
    election = Election(3, 1, canton)
    return ElectionSet(voters, [Candidate(f"candidate {i}") for i in range(3)], [election])


def make_mixed_election_set() -> ElectionSet:
    """
    Voter 0 takes part in both elections, voter 1 only in the first one.
    Election 1: candidates 1..3, 1 selection. Election 2: candidates 4..7, 2 selections.
    """
    canton = DomainOfInfluence("canton")
    municipality = DomainOfInfluence("municipality")
    voters = [Voter({canton, municipality}), Voter({canton})]
    elections = [Election(3, 1, canton), Election(4, 2, municipality)]
    return ElectionSet(voters, [Candidate(f"candidate {i}") for i in range(7)], elections)


@dataclass
class PreparedElection:
    """Every authority's setup output, computed with the algorithms directly"""
    public_parameters: PublicParameters
    election_set: ElectionSet
    general_algorithms: GeneralAlgorithms
    hash_function: RecursiveHash
    random_generator: RandomGenerator
    key_pairs: List[KeyPair]
    public_key: int
    electorate_data: List[ElectorateData]
    public_credentials: List[Point]
    code_sheets: List[CodeSheet]
    client: VoteCastingClientAlgorithms = field(init=False)
    authority: VoteCastingAuthorityAlgorithms = field(init=False)

    def __post_init__(self):
        self.client = VoteCastingClientAlgorithms(
            self.public_parameters, self.general_algorithms, self.random_generator, self.hash_function)
        self.authority = VoteCastingAuthorityAlgorithms(
            self.public_parameters, self.election_set, self.general_algorithms,
            self.random_generator, self.hash_function)

    def cast_ballot(self, i: int, selections: List[int]):
        """Ballot of voter i and every authority's response to it"""
        ballot_and_rand: BallotQueryAndRand = self.client.gen_ballot(
            self.code_sheets[i].voting_code, selections, self.public_key)
        responses: List[ObliviousTransferResponseAndRand] = [
            self.authority.gen_response(i, ballot_and_rand.ballot.a, self.public_key, data.points[i])
            for data in self.electorate_data
        ]
        return ballot_and_rand, responses


def prepare_election(public_parameters, general_algorithms, hash_function, random_generator,
                     election_set) -> PreparedElection:
    group = public_parameters.encryption_group
    key_establishment = KeyEstablishmentAlgorithms(random_generator)
    key_pairs = [key_establishment.generate_key_pair(group) for _ in range(public_parameters.s)]
    public_key = key_establishment.get_public_key([kp.public_key for kp in key_pairs], group)

    preparation = ElectionPreparationAlgorithms(public_parameters, random_generator, hash_function)
    electorate_data = [preparation.gen_electorate_data(election_set) for _ in range(public_parameters.s)]
    public_credentials = preparation.get_public_credentials([data.public_voter_data for data in electorate_data])
    code_sheets = CodeSheetPreparationAlgorithms(public_parameters).get_sheets(
        election_set, [data.secret_voter_data for data in electorate_data])

    return PreparedElection(public_parameters, election_set, general_algorithms, hash_function,
                            random_generator, key_pairs, public_key, electorate_data,
                            public_credentials, code_sheets)


@pytest.fixture
def prepared_election(public_parameters, general_algorithms, hash_function, random_generator) -> PreparedElection:
    return prepare_election(public_parameters, general_algorithms, hash_function, random_generator,
                            make_mixed_election_set())


@pytest.fixture
def single_vote_election_set() -> ElectionSet:
    return make_election_set(3)


@pytest.fixture
def prepare():
    """Factory preparing an election over a given election set"""
    return prepare_election
