"""
End-to-end election simulation: parameters, key establishment, electorate
data, code sheet printing, voting, mixing, decryption and tallying.
"""

import asyncio
import logging
import time
from collections import Counter
from typing import Any, Dict, List, Optional

from config.config import ProtocolConfig
from core.general_algorithms import GeneralAlgorithms
from core.hashing import RecursiveHash
from core.models import (Candidate, DomainOfInfluence, Election, ElectionSet,
                         PublicParameters, Voter)
from core.parameters import create_public_parameters
from protocol.code_sheets import CodeSheetPreparationAlgorithms
from protocol.tallying import TallyingAuthoritiesAlgorithms
from services.authority import Authority
from services.bulletin_board import BulletinBoard
from services.voting_client import VotingClient
from utils.utils import PerformanceMonitor

from .simulators import (ElectionAdministrationSimulator,
                         PrintingAuthoritySimulator, VoterSimulator)

logger = logging.getLogger(__name__)

# ============================================================================
# ELECTION SET TEMPLATES
# ============================================================================


def _candidates(elections: List[Election]) -> List[Candidate]:
    total = sum(e.number_of_candidates for e in elections)
    return [Candidate(f"candidate {i}") for i in range(total)]


def create_single_vote(voters_count: int) -> ElectionSet:
    """One cantonal votation: 3 candidates, 1 selection"""
    canton = DomainOfInfluence("canton")
    voters = [Voter() for _ in range(voters_count)]
    for voter in voters:
        voter.add_domains_of_influence(canton)

    elections = [Election(3, 1, canton)]
    return ElectionSet(voters, _candidates(elections), elections)


def create_simple_sample(voters_count: int) -> ElectionSet:
    """Two cantonal votations, plus a municipal election for one voter in ten"""
    canton = DomainOfInfluence("canton")
    municipality = DomainOfInfluence("municipality1")
    voters = [Voter() for _ in range(voters_count)]
    for voter in voters:
        voter.add_domains_of_influence(canton)
    for voter in voters[:voters_count // 10]:
        voter.add_domains_of_influence(municipality)

    elections = [Election(3, 1, canton), Election(3, 1, canton), Election(10, 2, municipality)]
    return ElectionSet(voters, _candidates(elections), elections)


def create_gc_ce(voters_count: int) -> ElectionSet:
    """
    Cantonal executive and legislative elections, sized after Geneva 2013.
    The selected primes only fit into the 2048-bit group.
    """
    canton = DomainOfInfluence("canton")
    voters = [Voter() for _ in range(voters_count)]
    for voter in voters:
        voter.add_domains_of_influence(canton)

    # 29 nominative + 7 empty seat candidates, 476 nominative + 100 empty seat candidates
    elections = [Election(36, 7, canton), Election(576, 100, canton)]
    return ElectionSet(voters, _candidates(elections), elections)


ELECTION_SETS = {
    'SINGLE_VOTE': create_single_vote,
    'SIMPLE_SAMPLE': create_simple_sample,
    'GC_CE': create_gc_ce,
}


# ============================================================================
# SIMULATION
# ============================================================================


class Simulation:
    """Wires every participant together and runs one election"""

    def __init__(self, protocol_config: ProtocolConfig, election_set_name: str = "SINGLE_VOTE",
                 voters_count: int = 10, public_parameters: Optional[PublicParameters] = None):
        if election_set_name not in ELECTION_SETS:
            raise ValueError(f"Unknown election set {election_set_name}")

        self.protocol_config = protocol_config
        self.election_set_name = election_set_name
        self.voters_count = voters_count
        self.monitor = PerformanceMonitor()

        with self.monitor.start_operation("creating_public_parameters"):
            if public_parameters is None:
                public_parameters = create_public_parameters(
                    protocol_config.security_level, protocol_config.num_authorities,
                    n_max=protocol_config.n_max, alphabet=protocol_config.alphabet,
                    upper_l_r=protocol_config.return_code_length,
                    upper_l_f=protocol_config.finalization_code_length)
        self.public_parameters = public_parameters

        with self.monitor.start_operation("creating_election_set"):
            self.election_set = ELECTION_SETS[election_set_name](voters_count)

        self.bulletin_board: Optional[BulletinBoard] = None
        self.authorities: List[Authority] = []
        self.voter_simulators: List[VoterSimulator] = []
        self.printing_authority: Optional[PrintingAuthoritySimulator] = None
        self.election_administration: Optional[ElectionAdministrationSimulator] = None

    def create_components(self):
        logger.info("creating components")
        pp = self.public_parameters
        hash_algorithm = self.protocol_config.hash_algorithm

        self.bulletin_board = BulletinBoard()
        self.bulletin_board.publish_public_parameters(pp)

        self.authorities = [Authority(j, self.bulletin_board, hash_algorithm, monitor=self.monitor)
                            for j in range(pp.s)]
        self.bulletin_board.set_authorities(self.authorities)

        self.voter_simulators = [
            VoterSimulator(i, VotingClient(self.bulletin_board, hash_algorithm, monitor=self.monitor))
            for i in range(len(self.election_set.voters))
        ]

        self.printing_authority = PrintingAuthoritySimulator(self.bulletin_board, CodeSheetPreparationAlgorithms(pp))
        self.printing_authority.set_authorities(self.authorities)
        self.printing_authority.set_voter_simulators(self.voter_simulators)

        general_algorithms = GeneralAlgorithms(
            RecursiveHash(pp.security_parameters, hash_algorithm), pp.encryption_group, pp.identification_group)
        self.election_administration = ElectionAdministrationSimulator(
            len(self.election_set.candidates), self.bulletin_board,
            TallyingAuthoritiesAlgorithms(pp, general_algorithms), monitor=self.monitor)
        logger.info("created components")

    async def run(self) -> Dict[str, Any]:
        """Run the election and return its results, tally and expected tally included"""
        if self.bulletin_board is None:
            self.create_components()
        start_time = time.time()

        logger.info("generating authorities keys")
        with self.monitor.start_operation("key_generation"):
            await self._for_all_authorities(Authority.generate_keys)
        with self.monitor.start_operation("public_key_building"):
            await self._for_all_authorities(Authority.build_public_key)

        logger.info("publishing election set")
        self.bulletin_board.publish_election_set(self.election_set)

        logger.info("generating electorate data")
        with self.monitor.start_operation("generating_electorate_data"):
            await self._for_all_authorities(Authority.generate_electorate_data)
        with self.monitor.start_operation("building_public_credentials"):
            await self._for_all_authorities(Authority.build_public_credentials)

        logger.info("printing code sheets")
        with self.monitor.start_operation("printing_code_sheets"):
            self.printing_authority.print()

        logger.info("starting the voting phase")
        with self.monitor.start_operation("voting_phase"):
            votes = await asyncio.gather(*(voter.vote() for voter in self.voter_simulators))
        expected_tally = self.expected_tally(votes)
        logger.info(f"Expected results are: {expected_tally}")

        logger.info("starting the mixing")
        with self.monitor.start_operation("mixing"):
            self.authorities[0].start_mixing()
            for authority in self.authorities[1:]:
                authority.mix_again()

        logger.info("starting decryption")
        with self.monitor.start_operation("decryption"):
            await self._for_all_authorities(Authority.start_partial_decryption)

        logger.info("tallying votes")
        with self.monitor.start_operation("tallying"):
            tally = self.election_administration.get_tally()
        logger.info(f"Tally is: {tally}")

        success = tally == expected_tally
        if success:
            logger.info("Vote simulation successful")
        else:
            logger.error("Vote simulation failed")

        return {
            'parameters': {
                'security_level': self.protocol_config.security_level,
                'authorities': self.public_parameters.s,
                'election_set': self.election_set_name,
                'voters': len(self.election_set.voters)
            },
            'expected_tally': expected_tally,
            'tally': tally,
            'verification': {'tally_matches_votes': success},
            'total_duration': time.time() - start_time,
            'performance': self.monitor.get_summary()
        }

    def expected_tally(self, votes: List[List[int]]) -> List[int]:
        counts = Counter(s for selections in votes for s in selections)
        return [counts.get(v + 1, 0) for v in range(len(self.election_set.candidates))]

    async def _for_all_authorities(self, operation):
        """Run `operation` on every authority concurrently and re-raise the first failure"""
        results = await asyncio.gather(
            *(asyncio.to_thread(operation, authority) for authority in self.authorities),
            return_exceptions=True
        )
        for j, result in enumerate(results):
            if isinstance(result, BaseException):
                logger.error(f"Authority {j} failed: {result}")
                raise result
