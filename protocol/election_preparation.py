"""
Election preparation run independently by every authority: secret
credentials, return-code seeds and the public identification credentials of
each voter.
"""

import logging
from typing import List, Sequence

from core.arithmetic import product_mod
from core.conversion import bytes_to_integer, truncate
from core.hashing import RecursiveHash
from core.models import (ElectionSet, ElectorateData, Point, PublicParameters,
                         SecretVoterData)
from core.random_generator import RandomGenerator

from .polynomial import PolynomialAlgorithms

logger = logging.getLogger(__name__)


class ElectionPreparationAlgorithms:
    def __init__(self, public_parameters: PublicParameters, random_generator: RandomGenerator,
                 hash_function: RecursiveHash):
        self.public_parameters = public_parameters
        self.random_generator = random_generator
        self.hash = hash_function
        self.polynomial = PolynomialAlgorithms(random_generator, public_parameters.prime_field)

    def gen_electorate_data(self, election_set: ElectionSet) -> ElectorateData:
        candidate_counts = election_set.candidate_counts
        secret_voter_data = []
        public_voter_data = []
        points = []
        allowed_selections = []

        for i in range(len(election_set.voters)):
            k_i = election_set.allowed_selections(i)
            points_and_zeroes = self.polynomial.gen_points(candidate_counts, k_i)
            secret_data = self.gen_secret_voter_data(points_and_zeroes.points)

            secret_voter_data.append(secret_data)
            public_voter_data.append(
                self.get_public_voter_data(secret_data.x, secret_data.y, points_and_zeroes.y0s))
            points.append(points_and_zeroes.points)
            allowed_selections.append(k_i)

        logger.debug(f"Generated electorate data for {len(election_set.voters)} voters")
        return ElectorateData(secret_voter_data, public_voter_data, points, allowed_selections)

    def gen_secret_voter_data(self, points: Sequence[Point]) -> SecretVoterData:
        pp = self.public_parameters
        x = self.random_generator.random_in_z_q(pp.q_circ_x // pp.s)
        y = self.random_generator.random_in_z_q(pp.q_circ_y // pp.s)
        upper_f = truncate(self.hash.rec_hash_l(list(points)), pp.upper_l_f)
        rc = [truncate(self.hash.rec_hash_l(point), pp.upper_l_r) for point in points]
        return SecretVoterData(x, y, upper_f, rc)

    def get_public_voter_data(self, x: int, y: int, y0s: Sequence[int]) -> Point:
        group = self.public_parameters.identification_group
        y_prime = (y + bytes_to_integer(self.hash.rec_hash_l(list(y0s)))) % group.q_circ
        return Point(pow(group.g_circ, x, group.p_circ), pow(group.g_circ, y_prime, group.p_circ))

    def get_public_credentials(self, public_credential_parts: Sequence[Sequence[Point]]) -> List[Point]:
        """Multiply, per voter, the credential shares of all authorities"""
        p_circ = self.public_parameters.identification_group.p_circ
        voter_count = len(public_credential_parts[0])
        if any(len(part) != voter_count for part in public_credential_parts):
            raise ValueError("Every authority must publish credentials for every voter")

        return [Point(product_mod((part[i].x for part in public_credential_parts), p_circ),
                      product_mod((part[i].y for part in public_credential_parts), p_circ))
                for i in range(voter_count)]
