"""Simulated participants: the printing authority, voters and the election administration."""

import logging
import random
from typing import List, Optional, Sequence

from core.exceptions import (InvalidDecryptionProofError, ProtocolStateError,
                             VoteCastingError, VoteConfirmationError)
from core.models import CodeSheet
from protocol.code_sheets import CodeSheetPreparationAlgorithms
from protocol.tallying import TallyingAuthoritiesAlgorithms
from protocol.vote_confirmation import check_finalization_code, check_return_codes
from services.authority import Authority
from services.bulletin_board import BulletinBoard
from services.voting_client import VotingClient
from utils.utils import PerformanceMonitor

logger = logging.getLogger(__name__)


class VoteProcessError(Exception):
    """Raised when a simulated voter could not complete the voting process"""
    pass


class ReturnCodesNotMatchingError(Exception):
    """Raised when the displayed return codes differ from the code sheet"""
    pass


class FinalizationCodeNotMatchingError(Exception):
    """Raised when the displayed finalization code differs from the code sheet"""
    pass


class VoterSimulator:
    def __init__(self, voter_index: int, voting_client: VotingClient, rng: Optional[random.Random] = None):
        self.voter_index = voter_index
        self.voting_client = voting_client
        # Only simulates the voter's choices, no need for a secure source
        self.rng = rng or random.Random()
        self.code_sheet: Optional[CodeSheet] = None

    def send_code_sheet(self, code_sheet: CodeSheet):
        if self.code_sheet is not None:
            raise ProtocolStateError(f"The code sheet of voter {self.voter_index} may not be replaced")
        if code_sheet.i != self.voter_index:
            raise ValueError(f"Voter {self.voter_index} received the code sheet of voter {code_sheet.i}")
        self.code_sheet = code_sheet

    async def vote(self) -> List[int]:
        """
        Run the whole voting process and return the selections made.

        Raises:
            VoteProcessError: casting or confirming failed, or a code did not match the code sheet
        """
        if self.code_sheet is None:
            raise ProtocolStateError("The voter needs their code sheet to vote")

        logger.info(f"Voter {self.voter_index} starting vote")
        voting_page_data = self.voting_client.start_vote_session(self.voter_index)
        selections = self.pick_at_random(voting_page_data.selection_counts, voting_page_data.candidate_counts)
        logger.info(f"Voter {self.voter_index} selections: {selections}")

        try:
            return_codes = await self.voting_client.submit_vote(self.code_sheet.voting_code, selections)
        except VoteCastingError as e:
            logger.error(f"Voter {self.voter_index}: error during vote casting: {e}")
            raise VoteProcessError(f"Voter {self.voter_index} could not cast the vote") from e

        if not check_return_codes(self.code_sheet.return_codes, return_codes, selections):
            raise VoteProcessError(f"Voter {self.voter_index} could not verify the vote") from \
                ReturnCodesNotMatchingError("Return codes do not match")

        try:
            finalization_code = await self.voting_client.confirm_vote(self.code_sheet.confirmation_code)
        except VoteConfirmationError as e:
            logger.error(f"Voter {self.voter_index}: error during vote confirmation: {e}")
            raise VoteProcessError(f"Voter {self.voter_index} could not confirm the vote") from e

        if not check_finalization_code(self.code_sheet.finalization_code, finalization_code):
            raise VoteProcessError(f"Voter {self.voter_index} could not finalize the vote") from \
                FinalizationCodeNotMatchingError("Finalization code does not match")

        logger.info(f"Voter {self.voter_index} done voting")
        return selections

    def pick_at_random(self, selection_counts: Sequence[int], candidate_counts: Sequence[int]) -> List[int]:
        """Random valid 1-based selections over all elections, sorted"""
        if len(selection_counts) != len(candidate_counts):
            raise ValueError("Selection and candidate counts must cover the same elections")

        selections = []
        offset = 1
        for k_j, n_j in zip(selection_counts, candidate_counts):
            selections.extend(offset + c for c in self.rng.sample(range(n_j), k_j))
            offset += n_j
        return sorted(selections)


class PrintingAuthoritySimulator:
    def __init__(self, bulletin_board: BulletinBoard, code_sheet_preparation: CodeSheetPreparationAlgorithms):
        self.bulletin_board = bulletin_board
        self.code_sheet_preparation = code_sheet_preparation
        self.authorities: List[Authority] = []
        self.voter_simulators: List[VoterSimulator] = []

    def set_authorities(self, authorities: Sequence[Authority]):
        if self.authorities:
            raise ProtocolStateError("The authorities cannot be changed once they have been set")
        self.authorities = list(authorities)

    def set_voter_simulators(self, voter_simulators: Sequence[VoterSimulator]):
        if self.voter_simulators:
            raise ProtocolStateError("The voter simulators may not be updated once set")
        self.voter_simulators = list(voter_simulators)

    def print(self):
        """Collect every authority's secret voter data and deliver one code sheet per voter"""
        public_parameters = self.bulletin_board.get_public_parameters()
        election_set = self.bulletin_board.get_election_set()
        if len(self.authorities) != public_parameters.s:
            raise ProtocolStateError("The number of authorities should match the public parameters")
        if len(self.voter_simulators) != len(election_set.voters):
            raise ProtocolStateError("There must be one voter simulator per voter in the election set")

        voter_data_matrix = [authority.get_private_credentials() for authority in self.authorities]
        sheets = self.code_sheet_preparation.get_sheets(election_set, voter_data_matrix)
        for voter_simulator, sheet in zip(self.voter_simulators, sheets):
            voter_simulator.send_code_sheet(sheet)
        logger.info(f"Printed {len(sheets)} code sheets")


class ElectionAdministrationSimulator:
    def __init__(self, total_candidate_count: int, bulletin_board: BulletinBoard,
                 tallying: TallyingAuthoritiesAlgorithms, monitor: Optional[PerformanceMonitor] = None):
        self.total_candidate_count = total_candidate_count
        self.bulletin_board = bulletin_board
        self.tallying = tallying
        self.monitor = monitor or PerformanceMonitor()

    def get_tally(self) -> List[int]:
        """
        Verify the decryption proofs, decrypt and count the votes, then publish the tally.

        Raises:
            InvalidDecryptionProofError: an authority's decryption proof does not verify
        """
        tally_data = self.bulletin_board.get_tally_data()

        with self.monitor.start_operation("decryption_proof_verification"):
            valid = self.tallying.check_decryption_proofs(
                tally_data.decryption_proofs, tally_data.public_key_shares,
                tally_data.final_shuffle, tally_data.partial_decryptions)
        if not valid:
            raise InvalidDecryptionProofError("An invalid decryption proof was found")

        decryptions = self.tallying.get_decryptions(tally_data.final_shuffle, tally_data.partial_decryptions)
        votes = self.tallying.get_votes(decryptions, self.total_candidate_count)
        tally = self.tallying.get_tally(votes)

        self.bulletin_board.publish_tally(tally)
        return tally
