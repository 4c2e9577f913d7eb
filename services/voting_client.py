"""Voting client run on the voter's device."""

import logging
from typing import List, Optional

from core.exceptions import (InvalidObliviousTransferResponseError,
                             ProtocolStateError, VoteCastingError,
                             VoteConfirmationError)
from core.general_algorithms import GeneralAlgorithms
from core.hashing import RecursiveHash
from core.models import Point, VotingPageData
from core.random_generator import RandomGenerator
from protocol.key_establishment import KeyEstablishmentAlgorithms
from protocol.vote_casting import VoteCastingClientAlgorithms
from protocol.vote_confirmation import VoteConfirmationClientAlgorithms
from utils.utils import PerformanceMonitor

from .bulletin_board import BulletinBoard

logger = logging.getLogger(__name__)


class VotingClient:
    def __init__(self, bulletin_board: BulletinBoard, hash_algorithm: str = "sha512",
                 random_generator: Optional[RandomGenerator] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        self.bulletin_board = bulletin_board
        self.public_parameters = bulletin_board.get_public_parameters()
        self.monitor = monitor or PerformanceMonitor()
        random_generator = random_generator or RandomGenerator()

        pp = self.public_parameters
        hash_function = RecursiveHash(pp.security_parameters, hash_algorithm)
        general_algorithms = GeneralAlgorithms(hash_function, pp.encryption_group, pp.identification_group)
        self.key_establishment = KeyEstablishmentAlgorithms(random_generator)
        self.vote_casting = VoteCastingClientAlgorithms(pp, general_algorithms, random_generator, hash_function)
        self.vote_confirmation = VoteConfirmationClientAlgorithms(
            pp, general_algorithms, random_generator, hash_function)

        self.voter_index: Optional[int] = None
        self.selection_counts: Optional[List[int]] = None
        self.candidate_count: Optional[int] = None
        self.point_matrix: Optional[List[List[Point]]] = None

    def start_vote_session(self, voter_index: int) -> VotingPageData:
        election_set = self.bulletin_board.get_election_set()
        if not 0 <= voter_index < len(election_set.voters):
            raise ValueError(f"Unknown voter index {voter_index}")

        self.voter_index = voter_index
        self.selection_counts = election_set.allowed_selections(voter_index)
        self.candidate_count = sum(election_set.candidate_counts)
        self.point_matrix = None
        return VotingPageData(list(self.selection_counts), election_set.candidate_counts)

    async def submit_vote(self, voting_code: str, selections: List[int]) -> List[str]:
        """
        Cast the vote for the 1-based candidate selections.

        Returns:
            The return codes to display, one per selection

        Raises:
            VoteCastingError: the ballot was rejected or the responses could not be decoded
        """
        if self.voter_index is None:
            raise ProtocolStateError("No vote session has been started")
        if len(selections) != sum(self.selection_counts):
            raise VoteCastingError(
                f"Expected {sum(self.selection_counts)} selections, got {len(selections)}")

        public_key = self.key_establishment.get_public_key(
            self.bulletin_board.get_public_key_parts(), self.public_parameters.encryption_group)
        with self.monitor.start_operation("vote_encoding"):
            ballot_and_rand = self.vote_casting.gen_ballot(voting_code, selections, public_key)

        result = await self.bulletin_board.publish_ballot(self.voter_index, ballot_and_rand.ballot)
        if not result.is_accepted:
            raise VoteCastingError(f"Ballot of voter {self.voter_index} was rejected: {result.reason}")

        with self.monitor.start_operation("verification_code_computation"):
            try:
                self.point_matrix = self.vote_casting.get_point_matrix(
                    result.responses, selections, self.selection_counts, ballot_and_rand.r, self.candidate_count)
            except InvalidObliviousTransferResponseError as e:
                raise VoteCastingError(f"Could not decode the authorities' responses: {e}") from e
            return_codes = self.vote_casting.get_return_codes(selections, self.point_matrix)

        logger.debug(f"Voter {self.voter_index} cast a ballot")
        return return_codes

    async def confirm_vote(self, confirmation_code: str) -> str:
        """
        Returns:
            The finalization code to display

        Raises:
            VoteConfirmationError: the confirmation was rejected
        """
        if self.point_matrix is None:
            raise ProtocolStateError("A vote must be submitted before it can be confirmed")

        with self.monitor.start_operation("confirmation_encoding"):
            confirmation = self.vote_confirmation.gen_confirmation(
                confirmation_code, self.point_matrix, self.selection_counts)

        result = await self.bulletin_board.publish_confirmation(self.voter_index, confirmation)
        if not result.is_accepted:
            raise VoteConfirmationError(f"Confirmation of voter {self.voter_index} was rejected: {result.reason}")

        with self.monitor.start_operation("finalization_code_computation"):
            finalization_code = self.vote_confirmation.get_finalization_code(result.parts)

        logger.debug(f"Voter {self.voter_index} confirmed the vote")
        return finalization_code
