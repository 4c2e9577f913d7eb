"""
Election authority.

An authority keeps its key share, the voters' secret data it generated and the
ballots and confirmations it accepted. It only ever talks to the outside
world through the bulletin board.
"""

import logging
import threading
from typing import List, Optional

from core.exceptions import (DuplicateBallotError, DuplicateConfirmationError,
                             IncorrectBallotError, IncorrectConfirmationError,
                             InvalidShuffleProofError, MissingBallotError,
                             ProtocolStateError)
from core.general_algorithms import GeneralAlgorithms
from core.hashing import RecursiveHash
from core.models import (BallotAndQuery, BallotEntry, Confirmation,
                         ConfirmationEntry, ElectorateData, Encryption,
                         FinalizationCodePart, KeyPair,
                         ObliviousTransferResponse, Point, SecretVoterData)
from core.random_generator import RandomGenerator
from protocol.decryption import DecryptionAuthorityAlgorithms
from protocol.election_preparation import ElectionPreparationAlgorithms
from protocol.key_establishment import KeyEstablishmentAlgorithms
from protocol.mixing import MixingAlgorithms
from protocol.vote_casting import VoteCastingAuthorityAlgorithms
from protocol.vote_confirmation import VoteConfirmationAuthorityAlgorithms
from utils.utils import PerformanceMonitor

from .bulletin_board import BulletinBoard

logger = logging.getLogger(__name__)


class Authority:
    def __init__(self, j: int, bulletin_board: BulletinBoard, hash_algorithm: str = "sha512",
                 random_generator: Optional[RandomGenerator] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        self.j = j
        self.bulletin_board = bulletin_board
        self.public_parameters = bulletin_board.get_public_parameters()
        self.monitor = monitor or PerformanceMonitor()
        random_generator = random_generator or RandomGenerator()

        pp = self.public_parameters
        hash_function = RecursiveHash(pp.security_parameters, hash_algorithm)
        self.hash = hash_function
        self.random_generator = random_generator
        self.general_algorithms = GeneralAlgorithms(hash_function, pp.encryption_group, pp.identification_group)
        self.key_establishment = KeyEstablishmentAlgorithms(random_generator)
        self.election_preparation = ElectionPreparationAlgorithms(pp, random_generator, hash_function)
        self.vote_confirmation = VoteConfirmationAuthorityAlgorithms(pp, self.general_algorithms, hash_function)
        self.mixing = MixingAlgorithms(pp, self.general_algorithms, random_generator)
        self.decryption = DecryptionAuthorityAlgorithms(pp, self.general_algorithms, random_generator)
        self.vote_casting: Optional[VoteCastingAuthorityAlgorithms] = None

        self._key_pair: Optional[KeyPair] = None
        self.public_key: Optional[int] = None
        self._electorate_data: Optional[ElectorateData] = None
        self.public_credentials: Optional[List[Point]] = None
        self.ballot_entries: List[BallotEntry] = []
        self.confirmation_entries: List[ConfirmationEntry] = []
        self._lock = threading.Lock()

    # ========================================================================
    # PREPARATION
    # ========================================================================

    def generate_keys(self):
        self._key_pair = self.key_establishment.generate_key_pair(self.public_parameters.encryption_group)
        self.bulletin_board.publish_key_part(self.j, self._key_pair.public_key)

    def build_public_key(self):
        self.public_key = self.key_establishment.get_public_key(
            self.bulletin_board.get_public_key_parts(), self.public_parameters.encryption_group)

    def generate_electorate_data(self):
        election_set = self.bulletin_board.get_election_set()
        self.vote_casting = VoteCastingAuthorityAlgorithms(
            self.public_parameters, election_set, self.general_algorithms, self.random_generator, self.hash)

        self._electorate_data = self.election_preparation.gen_electorate_data(election_set)
        self.bulletin_board.publish_public_credentials(self.j, self._electorate_data.public_voter_data)
        logger.info(f"Authority {self.j} generated electorate data for {len(election_set.voters)} voters")

    def get_private_credentials(self) -> List[SecretVoterData]:
        if self._electorate_data is None:
            raise ProtocolStateError(f"Authority {self.j} has not generated the electorate data yet")
        return self._electorate_data.secret_voter_data

    def build_public_credentials(self):
        self.public_credentials = self.election_preparation.get_public_credentials(
            self.bulletin_board.get_public_credential_parts())

    # ========================================================================
    # VOTING
    # ========================================================================

    def handle_ballot(self, i: int, ballot: BallotAndQuery) -> ObliviousTransferResponse:
        """
        Check voter i's ballot and answer its oblivious-transfer query.

        Raises:
            DuplicateBallotError: voter i already has an accepted ballot
            IncorrectBallotError: the ballot fails verification
        """
        self._require_voting_phase()
        with self._lock:
            if self.vote_casting.has_ballot(i, self.ballot_entries):
                raise DuplicateBallotError(f"Voter {i} has already cast a ballot")

            with self.monitor.start_operation("ballot_verification"):
                valid = self.vote_casting.check_ballot(
                    i, ballot, self.public_key, self.public_credentials, self.ballot_entries)
            if not valid:
                raise IncorrectBallotError(f"Ballot of voter {i} failed verification")

            with self.monitor.start_operation("query_response"):
                response = self.vote_casting.gen_response(
                    i, ballot.a, self.public_key, self._electorate_data.points[i])
            self.ballot_entries.append(BallotEntry(i, ballot, response.r))

        logger.debug(f"Authority {self.j} accepted ballot of voter {i}")
        return response.response

    def handle_confirmation(self, i: int, confirmation: Confirmation) -> FinalizationCodePart:
        """
        Raises:
            MissingBallotError: voter i has no accepted ballot
            DuplicateConfirmationError: voter i already confirmed
            IncorrectConfirmationError: the confirmation fails verification
        """
        self._require_voting_phase()
        with self._lock:
            if not self.vote_casting.has_ballot(i, self.ballot_entries):
                raise MissingBallotError(f"Voter {i} has no ballot to confirm")
            if self.vote_confirmation.has_confirmation(i, self.confirmation_entries):
                raise DuplicateConfirmationError(f"Voter {i} has already confirmed")

            with self.monitor.start_operation("confirmation_verification"):
                valid = self.vote_confirmation.check_confirmation(
                    i, confirmation, self.public_credentials, self.ballot_entries, self.confirmation_entries)
            if not valid:
                raise IncorrectConfirmationError(f"Confirmation of voter {i} failed verification")

            self.confirmation_entries.append(ConfirmationEntry(i, confirmation))
            with self.monitor.start_operation("finalization_computation"):
                part = self.vote_confirmation.get_finalization(
                    i, self._electorate_data.points[i], self.ballot_entries)

        logger.debug(f"Authority {self.j} accepted confirmation of voter {i}")
        return part

    def _require_voting_phase(self):
        if self.vote_casting is None or self.public_key is None or self.public_credentials is None:
            raise ProtocolStateError(f"Authority {self.j} is not ready to receive votes")

    # ========================================================================
    # MIXING AND DECRYPTION
    # ========================================================================

    def get_encryptions(self) -> List[Encryption]:
        with self._lock:
            return self.mixing.get_encryptions(self.ballot_entries, self.confirmation_entries)

    def start_mixing(self):
        if self.j != 0:
            raise ProtocolStateError("Only the first authority starts the mixing")
        self._mix(self.get_encryptions())

    def mix_again(self):
        if self.j == 0:
            raise ProtocolStateError("The first authority starts the mixing, it does not mix again")
        self._mix(self.bulletin_board.get_previous_shuffle(self.j))

    def _mix(self, encryptions: List[Encryption]):
        with self.monitor.start_operation("shuffle"):
            shuffle = self.mixing.gen_shuffle(encryptions, self.public_key)
        with self.monitor.start_operation("shuffle_proof"):
            proof = self.mixing.gen_shuffle_proof(
                encryptions, shuffle.encryptions, shuffle.re_encryption_randomness,
                shuffle.permutation, self.public_key)
        self.bulletin_board.publish_shuffle_and_proof(self.j, shuffle.encryptions, proof)

    def start_partial_decryption(self):
        """
        Check every other authority's shuffle, then publish this authority's
        partial decryption of the final shuffle.

        Raises:
            InvalidShuffleProofError: a shuffle proof does not verify
        """
        shuffles_and_proofs = self.bulletin_board.get_shuffles_and_proofs()

        with self.monitor.start_operation("shuffle_proof_verification"):
            valid = self.decryption.check_shuffle_proofs(
                shuffles_and_proofs.proofs, self.get_encryptions(), shuffles_and_proofs.shuffles,
                self.public_key, self.j)
        if not valid:
            raise InvalidShuffleProofError(f"Authority {self.j} found an invalid shuffle proof")

        final_shuffle = shuffles_and_proofs.shuffles[-1]
        with self.monitor.start_operation("partial_decryption"):
            partial_decryptions = self.decryption.gen_partial_decryption(final_shuffle, self._key_pair.secret_key)
            proof = self.decryption.gen_decryption_proof(
                self._key_pair.secret_key, self._key_pair.public_key, final_shuffle, partial_decryptions)
        self.bulletin_board.publish_partial_decryption_and_proof(self.j, partial_decryptions, proof)
