"""
Vote confirmation: the voter proves knowledge of the confirmation credential,
authorities release their finalization code parts.
"""

import logging
from functools import reduce
from typing import List, Sequence

from core.conversion import bytes_to_integer, bytes_to_string, string_to_integer, truncate, xor_bytes
from core.general_algorithms import GeneralAlgorithms
from core.hashing import RecursiveHash
from core.models import (BallotEntry, Confirmation, ConfirmationEntry,
                         FinalizationCodePart, NonInteractiveZKP, Point,
                         PublicParameters)
from core.random_generator import RandomGenerator

from .polynomial import PolynomialAlgorithms

logger = logging.getLogger(__name__)


# ============================================================================
# VOTING CLIENT
# ============================================================================


class VoteConfirmationClientAlgorithms:
    def __init__(self, public_parameters: PublicParameters, general_algorithms: GeneralAlgorithms,
                 random_generator: RandomGenerator, hash_function: RecursiveHash):
        self.public_parameters = public_parameters
        self.general_algorithms = general_algorithms
        self.random_generator = random_generator
        self.hash = hash_function
        self.polynomial = PolynomialAlgorithms(random_generator, public_parameters.prime_field)

    def gen_confirmation(self, upper_y: str, point_matrix: Sequence[Sequence[Point]],
                         selection_counts: Sequence[int]) -> Confirmation:
        """
        Build the confirmation from the printed confirmation code and the
        points received during vote casting.
        """
        pp = self.public_parameters
        id_group = pp.identification_group

        h = 0
        for points in point_matrix:
            y0s = self.get_values(points, selection_counts)
            h = (h + bytes_to_integer(self.hash.rec_hash_l(y0s))) % id_group.q_circ

        y = (string_to_integer(upper_y, pp.alphabet_y) + h) % id_group.q_circ
        y_circ = pow(id_group.g_circ, y, id_group.p_circ)
        return Confirmation(y_circ, self.gen_confirmation_proof(y, y_circ))

    def get_values(self, points: Sequence[Point], selection_counts: Sequence[int]) -> List[int]:
        """Values at 0 of every election's polynomial, interpolated from the voter's points"""
        if len(points) != sum(selection_counts):
            raise ValueError("The number of points must match the number of selections")
        values = []
        start = 0
        for k_j in selection_counts:
            values.append(self.polynomial.get_value(points[start:start + k_j]))
            start += k_j
        return values

    def gen_confirmation_proof(self, y: int, y_circ: int) -> NonInteractiveZKP:
        id_group = self.public_parameters.identification_group
        omega = self.random_generator.random_in_z_q(id_group.q_circ)
        t = pow(id_group.g_circ, omega, id_group.p_circ)
        c = self.general_algorithms.get_nizkp_challenge([y_circ], [t], id_group.q_circ)
        s = (omega + c * y) % id_group.q_circ
        return NonInteractiveZKP([t], [s])

    def get_finalization_code(self, parts: Sequence[FinalizationCodePart]) -> str:
        if not parts:
            raise ValueError("At least one finalization code part is needed")
        upper_f = reduce(xor_bytes, (part.upper_f for part in parts))
        return bytes_to_string(upper_f, self.public_parameters.alphabet_f)


# ============================================================================
# AUTHORITY
# ============================================================================


class VoteConfirmationAuthorityAlgorithms:
    def __init__(self, public_parameters: PublicParameters, general_algorithms: GeneralAlgorithms,
                 hash_function: RecursiveHash):
        self.public_parameters = public_parameters
        self.general_algorithms = general_algorithms
        self.hash = hash_function

    def check_confirmation(self, i: int, confirmation: Confirmation, public_credentials: Sequence[Point],
                           ballot_entries: Sequence[BallotEntry],
                           confirmation_entries: Sequence[ConfirmationEntry]) -> bool:
        if not 0 <= i < len(public_credentials):
            raise ValueError(f"Unknown voter index {i}")
        if not any(entry.i == i for entry in ballot_entries):
            return False
        if self.has_confirmation(i, confirmation_entries):
            return False
        if confirmation.y_circ != public_credentials[i].y:
            logger.debug(f"Voter {i}: y_circ does not match the public credential")
            return False
        return self.check_confirmation_proof(confirmation.proof, confirmation.y_circ)

    @staticmethod
    def has_confirmation(i: int, confirmation_entries: Sequence[ConfirmationEntry]) -> bool:
        return any(entry.i == i for entry in confirmation_entries)

    def check_confirmation_proof(self, proof: NonInteractiveZKP, y_circ: int) -> bool:
        ga = self.general_algorithms
        id_group = self.public_parameters.identification_group

        if len(proof.t) != 1 or len(proof.s) != 1:
            return False
        t, s = proof.t[0], proof.s[0]
        if not (ga.is_member_g_q_circ(y_circ) and ga.is_member_g_q_circ(t) and ga.is_in_z_q_circ(s)):
            return False

        c = ga.get_nizkp_challenge([y_circ], [t], id_group.q_circ)
        t_prime = (pow(id_group.g_circ, s, id_group.p_circ) * pow(y_circ, -c, id_group.p_circ)) % id_group.p_circ
        return t == t_prime

    def get_finalization(self, i: int, points: Sequence[Point],
                         ballot_entries: Sequence[BallotEntry]) -> FinalizationCodePart:
        """Finalization code part for voter i, computed from the authority's points of that voter"""
        entry = next((e for e in ballot_entries if e.i == i), None)
        if entry is None:
            raise ValueError(f"No ballot recorded for voter {i}")
        upper_f = truncate(self.hash.rec_hash_l(list(points)), self.public_parameters.upper_l_f)
        return FinalizationCodePart(upper_f, entry.r)


# ============================================================================
# VOTER
# ============================================================================


def check_return_codes(return_codes: Sequence[str], received_codes: Sequence[str],
                       selections: Sequence[int]) -> bool:
    """Compare the codes displayed by the client with the voter's code sheet"""
    if len(received_codes) != len(selections):
        return False
    return all(return_codes[s_i - 1] == rc for s_i, rc in zip(selections, received_codes))


def check_finalization_code(finalization_code: str, received_code: str) -> bool:
    return finalization_code == received_code
