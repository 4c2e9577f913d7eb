"""Code sheet preparation performed by the printing authority."""

from functools import reduce
from typing import List, Sequence

from core.conversion import (bytes_to_string, integer_to_string,
                             mark_byte_array, xor_bytes)
from core.models import (CodeSheet, ElectionSet, PublicParameters,
                         SecretVoterData)


class CodeSheetPreparationAlgorithms:
    def __init__(self, public_parameters: PublicParameters):
        self.public_parameters = public_parameters

    def get_sheets(self, election_set: ElectionSet,
                   voter_data_matrix: Sequence[Sequence[SecretVoterData]]) -> List[CodeSheet]:
        """
        Combine the authorities' secret voter data into one code sheet per voter.

        Args:
            election_set: the election set the data was generated for
            voter_data_matrix: one list of secret voter data per authority
        """
        if len(voter_data_matrix) != self.public_parameters.s:
            raise ValueError("Secret voter data is needed from every authority")
        if any(len(row) != len(election_set.voters) for row in voter_data_matrix):
            raise ValueError("Every authority must provide data for every voter")

        return [self.get_sheet(i, election_set, [row[i] for row in voter_data_matrix])
                for i in range(len(election_set.voters))]

    def get_sheet(self, i: int, election_set: ElectionSet,
                  secret_voter_data: Sequence[SecretVoterData]) -> CodeSheet:
        pp = self.public_parameters

        x = sum(d.x for d in secret_voter_data) % pp.q_circ_x
        y = sum(d.y for d in secret_voter_data) % pp.q_circ_y
        upper_f = reduce(xor_bytes, (d.upper_f for d in secret_voter_data))

        return_codes = []
        for v in range(len(election_set.candidates)):
            rc = reduce(xor_bytes, (d.rc[v] for d in secret_voter_data))
            return_codes.append(bytes_to_string(mark_byte_array(rc, v, pp.n_max), pp.alphabet_r))

        return CodeSheet(
            i=i,
            voter=election_set.voters[i],
            allowed_selections=election_set.allowed_selections(i),
            voting_code=integer_to_string(x, pp.l_x, pp.alphabet_x),
            confirmation_code=integer_to_string(y, pp.l_y, pp.alphabet_y),
            finalization_code=bytes_to_string(upper_f, pp.alphabet_f),
            return_codes=return_codes
        )
