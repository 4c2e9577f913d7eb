"""
Vote casting: the voter's ballot with its oblivious-transfer query, the
authorities' responses and the return codes the client derives from them.
"""

import logging
import math
from functools import reduce
from typing import List, Optional, Sequence

from core.arithmetic import mod_inverse, product_mod, sum_mod
from core.conversion import (bytes_to_integer, bytes_to_string, integer_to_bytes,
                             mark_byte_array, string_to_integer, truncate,
                             xor_bytes)
from core.exceptions import (IncompatibleParametersError,
                             InvalidObliviousTransferResponseError)
from core.general_algorithms import GeneralAlgorithms
from core.hashing import RecursiveHash
from core.models import (BallotAndQuery, BallotEntry, BallotQueryAndRand,
                         ElectionSet, NonInteractiveZKP, ObliviousTransferQuery,
                         ObliviousTransferResponse,
                         ObliviousTransferResponseAndRand, Point,
                         PublicParameters)
from core.random_generator import RandomGenerator

logger = logging.getLogger(__name__)


def compute_mask(hash_function: RecursiveHash, k: int, length: int) -> bytes:
    """Key stream of `length` bytes derived from the OT key k"""
    blocks = math.ceil(length / hash_function.output_length)
    stream = b''.join(hash_function.rec_hash_l(k, z) for z in range(1, blocks + 1))
    return truncate(stream, length)


# ============================================================================
# VOTING CLIENT
# ============================================================================


class VoteCastingClientAlgorithms:
    def __init__(self, public_parameters: PublicParameters, general_algorithms: GeneralAlgorithms,
                 random_generator: RandomGenerator, hash_function: RecursiveHash):
        self.public_parameters = public_parameters
        self.general_algorithms = general_algorithms
        self.random_generator = random_generator
        self.hash = hash_function

    def gen_ballot(self, upper_x: str, selections: Sequence[int], public_key: int) -> BallotQueryAndRand:
        """
        Build the ballot for the 1-based candidate `selections`.

        Args:
            upper_x: the voting code printed on the voter's code sheet
            selections: strictly increasing candidate indices over all elections
            public_key: the election public key

        Returns:
            The ballot and the query randomness the client keeps to decode responses
        """
        pp = self.public_parameters
        group = pp.encryption_group
        id_group = pp.identification_group

        x = string_to_integer(upper_x, pp.alphabet_x)
        x_circ = pow(id_group.g_circ, x, id_group.p_circ)

        u = self.general_algorithms.get_selected_primes(selections)
        m = 1
        for u_i in u:
            m *= u_i
        if m >= group.p:
            raise IncompatibleParametersError("The product of the selected primes exceeds p")

        query = self.gen_query(u, public_key)
        a = product_mod(query.a, group.p)
        r = sum_mod(query.r, group.q)
        b = pow(group.g, r, group.p)

        proof = self.gen_ballot_proof(x, m, r, x_circ, a, b, public_key)
        return BallotQueryAndRand(BallotAndQuery(x_circ, query.a, b, proof), query.r)

    def gen_query(self, u: Sequence[int], public_key: int) -> ObliviousTransferQuery:
        group = self.public_parameters.encryption_group
        a = []
        r = []
        for u_i in u:
            r_i = self.random_generator.random_in_z_q(group.q)
            a.append((u_i * pow(public_key, r_i, group.p)) % group.p)
            r.append(r_i)
        return ObliviousTransferQuery(a, r)

    def gen_ballot_proof(self, x: int, m: int, r: int, x_circ: int, a: int, b: int,
                         public_key: int) -> NonInteractiveZKP:
        """Proof of knowledge of (x, m, r) such that x_circ = g_circ^x and (a, b) encrypts m"""
        group = self.public_parameters.encryption_group
        id_group = self.public_parameters.identification_group

        omega_1 = self.random_generator.random_in_z_q(id_group.q_circ)
        omega_2 = self.random_generator.random_in_g_q(group)
        omega_3 = self.random_generator.random_in_z_q(group.q)

        t_1 = pow(id_group.g_circ, omega_1, id_group.p_circ)
        t_2 = (omega_2 * pow(public_key, omega_3, group.p)) % group.p
        t_3 = pow(group.g, omega_3, group.p)

        c = self.general_algorithms.get_nizkp_challenge(
            (x_circ, a, b), (t_1, t_2, t_3), min(group.q, id_group.q_circ))

        s_1 = (omega_1 + c * x) % id_group.q_circ
        s_2 = (omega_2 * pow(m, c, group.p)) % group.p
        s_3 = (omega_3 + c * r) % group.q
        return NonInteractiveZKP([t_1, t_2, t_3], [s_1, s_2, s_3])

    def get_point_matrix(self, responses: Sequence[ObliviousTransferResponse], selections: Sequence[int],
                         selection_counts: Sequence[int], r: Sequence[int],
                         candidate_count: Optional[int] = None) -> List[List[Point]]:
        """Points obtained from every authority, one row per authority"""
        return [self.get_points(response, selections, selection_counts, r, candidate_count)
                for response in responses]

    def get_points(self, response: ObliviousTransferResponse, selections: Sequence[int],
                   selection_counts: Sequence[int], r: Sequence[int],
                   candidate_count: Optional[int] = None) -> List[Point]:
        """
        Decode the points of the selected candidates from one authority's response.

        Args:
            candidate_count: total number of candidates; when omitted the response
                only needs to cover the selected candidates

        Raises:
            InvalidObliviousTransferResponseError: the response is malformed or a
                decoded coordinate is not in Z_p'
        """
        self._check_response(response, selections, selection_counts, r, candidate_count)

        pp = self.public_parameters
        p = pp.encryption_group.p
        p_prime = pp.prime_field.p_prime
        half = pp.upper_l_m // 2

        points = []
        i = 0
        for j, k_j in enumerate(selection_counts):
            for _ in range(k_j):
                k = (response.b[i] * mod_inverse(pow(response.d[j], r[i], p), p)) % p
                upper_m = xor_bytes(response.c[selections[i] - 1], compute_mask(self.hash, k, pp.upper_l_m))
                x = bytes_to_integer(upper_m[:half])
                y = bytes_to_integer(upper_m[half:])
                if x >= p_prime or y >= p_prime:
                    raise InvalidObliviousTransferResponseError(
                        f"Decoded point for selection {selections[i]} is outside the prime field")
                points.append(Point(x, y))
                i += 1
        return points

    def _check_response(self, response: ObliviousTransferResponse, selections: Sequence[int],
                        selection_counts: Sequence[int], r: Sequence[int], candidate_count: Optional[int]):
        if len(response.b) != len(selections) or len(r) != len(selections):
            raise InvalidObliviousTransferResponseError("Response does not match the query size")
        if len(response.d) != len(selection_counts):
            raise InvalidObliviousTransferResponseError("Response does not match the elections")
        if candidate_count is not None and len(response.c) != candidate_count:
            raise InvalidObliviousTransferResponseError(
                f"Expected {candidate_count} encrypted points, got {len(response.c)}")
        if any(not 1 <= s <= len(response.c) for s in selections):
            raise InvalidObliviousTransferResponseError("Response does not cover every selected candidate")
        if any(len(c_v) != self.public_parameters.upper_l_m for c_v in response.c):
            raise InvalidObliviousTransferResponseError("Encrypted point has the wrong length")
        if not all(self.general_algorithms.is_member(x) for x in list(response.b) + list(response.d)):
            raise InvalidObliviousTransferResponseError("Response contains values outside G_q")

    def get_return_codes(self, selections: Sequence[int], point_matrix: Sequence[Sequence[Point]]) -> List[str]:
        pp = self.public_parameters
        return_codes = []
        for i, s_i in enumerate(selections):
            rc = reduce(xor_bytes, (truncate(self.hash.rec_hash_l(points[i]), pp.upper_l_r)
                                    for points in point_matrix))
            return_codes.append(bytes_to_string(mark_byte_array(rc, s_i - 1, pp.n_max), pp.alphabet_r))
        return return_codes


# ============================================================================
# AUTHORITY
# ============================================================================


class VoteCastingAuthorityAlgorithms:
    def __init__(self, public_parameters: PublicParameters, election_set: ElectionSet,
                 general_algorithms: GeneralAlgorithms, random_generator: RandomGenerator,
                 hash_function: RecursiveHash):
        self.public_parameters = public_parameters
        self.election_set = election_set
        self.general_algorithms = general_algorithms
        self.random_generator = random_generator
        self.hash = hash_function

    def check_ballot(self, i: int, ballot: BallotAndQuery, public_key: int,
                     public_credentials: Sequence[Point], ballot_entries: Sequence[BallotEntry]) -> bool:
        """True iff the ballot of voter i may be accepted"""
        if not 0 <= i < len(public_credentials):
            raise ValueError(f"Unknown voter index {i}")

        expected_selections = sum(self.election_set.allowed_selections(i))
        if len(ballot.a) != expected_selections:
            logger.debug(f"Voter {i}: expected {expected_selections} query values, got {len(ballot.a)}")
            return False
        if self.has_ballot(i, ballot_entries):
            logger.debug(f"Voter {i} already has a ballot")
            return False
        if ballot.x_circ != public_credentials[i].x:
            logger.debug(f"Voter {i}: x_circ does not match the public credential")
            return False

        group = self.public_parameters.encryption_group
        a = product_mod(ballot.a, group.p)
        return self.check_ballot_proof(ballot.proof, ballot.x_circ, a, ballot.b, public_key)

    @staticmethod
    def has_ballot(i: int, ballot_entries: Sequence[BallotEntry]) -> bool:
        return any(entry.i == i for entry in ballot_entries)

    def check_ballot_proof(self, proof: NonInteractiveZKP, x_circ: int, a: int, b: int,
                           public_key: int) -> bool:
        ga = self.general_algorithms
        group = self.public_parameters.encryption_group
        id_group = self.public_parameters.identification_group

        if len(proof.t) != 3 or len(proof.s) != 3:
            return False
        t_1, t_2, t_3 = proof.t
        s_1, s_2, s_3 = proof.s
        if not (ga.is_member_g_q_circ(x_circ) and ga.is_member(a) and ga.is_member(b)):
            return False
        if not (ga.is_member_g_q_circ(t_1) and ga.is_member(t_2) and ga.is_member(t_3)):
            return False
        if not (ga.is_in_z_q_circ(s_1) and ga.is_member(s_2) and ga.is_in_z_q(s_3)):
            return False

        c = ga.get_nizkp_challenge((x_circ, a, b), (t_1, t_2, t_3), min(group.q, id_group.q_circ))

        t_1_prime = (pow(x_circ, -c, id_group.p_circ) * pow(id_group.g_circ, s_1, id_group.p_circ)) % id_group.p_circ
        t_2_prime = (pow(a, -c, group.p) * s_2 * pow(public_key, s_3, group.p)) % group.p
        t_3_prime = (pow(b, -c, group.p) * pow(group.g, s_3, group.p)) % group.p
        return t_1 == t_1_prime and t_2 == t_2_prime and t_3 == t_3_prime

    def gen_response(self, i: int, a: Sequence[int], public_key: int,
                     points: Sequence[Point]) -> ObliviousTransferResponseAndRand:
        """
        Answer voter i's query with every candidate's point, each one masked
        under a key only the holder of the matching query randomness can derive.
        """
        pp = self.public_parameters
        group = pp.encryption_group
        half = pp.upper_l_m // 2
        candidate_counts = self.election_set.candidate_counts
        selection_counts = self.election_set.allowed_selections(i)

        if len(a) != sum(selection_counts):
            raise ValueError("Query size does not match the voter's allowed selections")
        if len(points) != sum(candidate_counts):
            raise ValueError("One point per candidate is needed")

        primes = self.general_algorithms.get_primes(sum(candidate_counts))
        b = []
        c = []
        d = []
        r = []
        i_query = 0
        v = 0
        for n_j, k_j in zip(candidate_counts, selection_counts):
            r_j = self.random_generator.random_in_z_q(group.q)
            for _ in range(k_j):
                b.append(pow(a[i_query], r_j, group.p))
                i_query += 1
            for _ in range(n_j):
                upper_m = integer_to_bytes(points[v].x, half) + integer_to_bytes(points[v].y, half)
                k = pow(primes[v], r_j, group.p)
                c.append(xor_bytes(upper_m, compute_mask(self.hash, k, pp.upper_l_m)))
                v += 1
            d.append(pow(public_key, r_j, group.p))
            r.append(r_j)

        return ObliviousTransferResponseAndRand(ObliviousTransferResponse(b, c, d), r)
