"""Election simulation harness."""

from .simulation import ELECTION_SETS, Simulation
from .simulators import (ElectionAdministrationSimulator,
                         FinalizationCodeNotMatchingError,
                         PrintingAuthoritySimulator,
                         ReturnCodesNotMatchingError, VoteProcessError,
                         VoterSimulator)

__all__ = [
    'Simulation',
    'ELECTION_SETS',
    'VoterSimulator',
    'PrintingAuthoritySimulator',
    'ElectionAdministrationSimulator',
    'VoteProcessError',
    'ReturnCodesNotMatchingError',
    'FinalizationCodeNotMatchingError'
]
