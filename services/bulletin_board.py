"""
Public bulletin board.

Every published value lives in a write-once slot. Ballots and confirmations
are forwarded to all authorities concurrently and the voter only gets an
answer once every authority has replied.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Set

from core.exceptions import (IncorrectBallotError, IncorrectConfirmationError,
                             ProtocolStateError)
from core.models import (BallotAndQuery, BallotResult, Confirmation,
                         ConfirmationResult, DecryptionProof, ElectionSet,
                         Encryption, Point, PublicParameters, ShuffleProof,
                         ShufflesAndProofs, TallyData)

logger = logging.getLogger(__name__)


class BulletinBoard:
    def __init__(self):
        self._lock = threading.Lock()
        self._authorities: List[Any] = []

        self._public_parameters: Optional[PublicParameters] = None
        self._election_set: Optional[ElectionSet] = None
        self._public_key_parts: Dict[int, int] = {}
        self._public_credential_parts: Dict[int, List[Point]] = {}
        self._claimed_ballots: Set[int] = set()
        self._claimed_confirmations: Set[int] = set()
        self._shuffles: List[List[Encryption]] = []
        self._shuffle_proofs: List[ShuffleProof] = []
        self._partial_decryptions: Dict[int, List[int]] = {}
        self._decryption_proofs: Dict[int, DecryptionProof] = {}
        self._tally: Optional[List[int]] = None

    # ========================================================================
    # SETUP
    # ========================================================================

    def set_authorities(self, authorities: Sequence[Any]):
        with self._lock:
            if self._authorities:
                raise ProtocolStateError("Authorities have already been registered")
            self._authorities = list(authorities)

    def publish_public_parameters(self, public_parameters: PublicParameters):
        with self._lock:
            if self._public_parameters is not None:
                raise ProtocolStateError("Public parameters have already been published")
            self._public_parameters = public_parameters
        logger.info(f"Public parameters published for {public_parameters.s} authorities")

    def get_public_parameters(self) -> PublicParameters:
        if self._public_parameters is None:
            raise ProtocolStateError("Public parameters have not been published")
        return self._public_parameters

    def publish_election_set(self, election_set: ElectionSet):
        with self._lock:
            if self._election_set is not None:
                raise ProtocolStateError("The election set has already been published")
            self._election_set = election_set
        logger.info(f"Election set published: {len(election_set.elections)} elections, "
                    f"{len(election_set.voters)} voters")

    def get_election_set(self) -> ElectionSet:
        if self._election_set is None:
            raise ProtocolStateError("The election set has not been published")
        return self._election_set

    def publish_key_part(self, j: int, public_key: int):
        self._publish_once(self._public_key_parts, j, public_key, "public key part")

    def get_public_key_parts(self) -> List[int]:
        return self._collect(self._public_key_parts, "public key parts")

    def publish_public_credentials(self, j: int, public_credentials: Sequence[Point]):
        self._publish_once(self._public_credential_parts, j, list(public_credentials), "public credentials")

    def get_public_credential_parts(self) -> List[List[Point]]:
        return self._collect(self._public_credential_parts, "public credential parts")

    # ========================================================================
    # VOTING
    # ========================================================================

    async def publish_ballot(self, i: int, ballot: BallotAndQuery) -> BallotResult:
        reason = self._claim(self._claimed_ballots, i, "ballot")
        if reason is not None:
            logger.warning(f"Ballot of voter {i} rejected by the board: {reason}")
            return BallotResult.rejected(reason)

        results = await asyncio.gather(
            *(asyncio.to_thread(authority.handle_ballot, i, ballot) for authority in self._authorities),
            return_exceptions=True
        )
        self._release_if_unused(self._claimed_ballots, i, results)

        for j, result in enumerate(results):
            if isinstance(result, IncorrectBallotError):
                logger.warning(f"Ballot of voter {i} rejected by authority {j}: {result}")
                return BallotResult.rejected(str(result))
            if isinstance(result, BaseException):
                raise result

        logger.debug(f"Ballot of voter {i} accepted by all authorities")
        return BallotResult.accepted(results)

    async def publish_confirmation(self, i: int, confirmation: Confirmation) -> ConfirmationResult:
        reason = self._claim(self._claimed_confirmations, i, "confirmation")
        if reason is not None:
            logger.warning(f"Confirmation of voter {i} rejected by the board: {reason}")
            return ConfirmationResult.rejected(reason)

        results = await asyncio.gather(
            *(asyncio.to_thread(authority.handle_confirmation, i, confirmation)
              for authority in self._authorities),
            return_exceptions=True
        )
        self._release_if_unused(self._claimed_confirmations, i, results)

        for j, result in enumerate(results):
            if isinstance(result, IncorrectConfirmationError):
                logger.warning(f"Confirmation of voter {i} rejected by authority {j}: {result}")
                return ConfirmationResult.rejected(str(result))
            if isinstance(result, BaseException):
                raise result

        logger.debug(f"Confirmation of voter {i} accepted by all authorities")
        return ConfirmationResult.accepted(results)

    def _claim(self, claimed: Set[int], i: int, description: str) -> Optional[str]:
        """Reserve voter i's slot, returning the rejection reason when that is not possible"""
        voter_count = len(self.get_election_set().voters)
        with self._lock:
            if not 0 <= i < voter_count:
                return f"Unknown voter index {i}"
            if i in claimed:
                return f"Voter {i} already has a {description} on the board"
            claimed.add(i)
        return None

    def _release_if_unused(self, claimed: Set[int], i: int, results: Sequence[Any]):
        # the slot stays claimed as soon as one authority stored the value
        if all(isinstance(result, BaseException) for result in results):
            with self._lock:
                claimed.discard(i)

    # ========================================================================
    # MIXING AND DECRYPTION
    # ========================================================================

    def publish_shuffle_and_proof(self, j: int, shuffle: Sequence[Encryption], proof: ShuffleProof):
        with self._lock:
            if j != len(self._shuffles):
                raise ProtocolStateError(
                    f"Authority {j} cannot publish a shuffle, expected authority {len(self._shuffles)}")
            self._shuffles.append(list(shuffle))
            self._shuffle_proofs.append(proof)
        logger.info(f"Shuffle of authority {j} published ({len(shuffle)} encryptions)")

    def get_previous_shuffle(self, j: int) -> List[Encryption]:
        with self._lock:
            if j < 1 or j != len(self._shuffles):
                raise ProtocolStateError(f"No shuffle available for authority {j} to mix")
            return self._shuffles[j - 1]

    def get_shuffles_and_proofs(self) -> ShufflesAndProofs:
        with self._lock:
            if len(self._shuffles) != self._authority_count():
                raise ProtocolStateError("Mixing is not complete")
            return ShufflesAndProofs(list(self._shuffles), list(self._shuffle_proofs))

    def publish_partial_decryption_and_proof(self, j: int, partial_decryptions: Sequence[int],
                                             proof: DecryptionProof):
        with self._lock:
            if len(self._shuffles) != self._authority_count():
                raise ProtocolStateError("Partial decryptions are only accepted once mixing is complete")
            if j in self._partial_decryptions:
                raise ProtocolStateError(f"Authority {j} has already published its partial decryptions")
            self._partial_decryptions[j] = list(partial_decryptions)
            self._decryption_proofs[j] = proof
        logger.info(f"Partial decryptions of authority {j} published")

    def get_tally_data(self) -> TallyData:
        with self._lock:
            s = self._authority_count()
            if len(self._partial_decryptions) != s:
                raise ProtocolStateError("Partial decryptions are missing")
            return TallyData(
                public_key_shares=[self._public_key_parts[j] for j in range(s)],
                final_shuffle=self._shuffles[-1],
                partial_decryptions=[self._partial_decryptions[j] for j in range(s)],
                decryption_proofs=[self._decryption_proofs[j] for j in range(s)]
            )

    def publish_tally(self, tally: Sequence[int]):
        with self._lock:
            if self._tally is not None:
                raise ProtocolStateError("The tally has already been published")
            self._tally = list(tally)
        logger.info(f"Tally published: {self._tally}")

    def get_tally(self) -> List[int]:
        if self._tally is None:
            raise ProtocolStateError("The tally has not been published")
        return self._tally

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _authority_count(self) -> int:
        return self.get_public_parameters().s

    def _publish_once(self, slot: Dict[int, Any], j: int, value: Any, description: str):
        with self._lock:
            if not 0 <= j < self._authority_count():
                raise ValueError(f"Unknown authority index {j}")
            if j in slot:
                raise ProtocolStateError(f"Authority {j} has already published its {description}")
            slot[j] = value
        logger.debug(f"Authority {j} published its {description}")

    def _collect(self, slot: Dict[int, Any], description: str) -> List[Any]:
        with self._lock:
            s = self._authority_count()
            if len(slot) != s:
                raise ProtocolStateError(f"Only {len(slot)} of {s} {description} are available")
            return [slot[j] for j in range(s)]
