"""Protocol algorithms, one module per phase of an election."""

from .code_sheets import CodeSheetPreparationAlgorithms
from .decryption import DecryptionAuthorityAlgorithms
from .election_preparation import ElectionPreparationAlgorithms
from .key_establishment import KeyEstablishmentAlgorithms
from .mixing import MixingAlgorithms
from .polynomial import PolynomialAlgorithms
from .tallying import TallyingAuthoritiesAlgorithms
from .vote_casting import (VoteCastingAuthorityAlgorithms,
                           VoteCastingClientAlgorithms, compute_mask)
from .vote_confirmation import (VoteConfirmationAuthorityAlgorithms,
                                VoteConfirmationClientAlgorithms,
                                check_finalization_code, check_return_codes)

__all__ = [
    # Preparation
    'PolynomialAlgorithms',
    'KeyEstablishmentAlgorithms',
    'ElectionPreparationAlgorithms',
    'CodeSheetPreparationAlgorithms',

    # Vote casting and confirmation
    'VoteCastingClientAlgorithms',
    'VoteCastingAuthorityAlgorithms',
    'VoteConfirmationClientAlgorithms',
    'VoteConfirmationAuthorityAlgorithms',
    'compute_mask',
    'check_return_codes',
    'check_finalization_code',

    # Tallying
    'MixingAlgorithms',
    'DecryptionAuthorityAlgorithms',
    'TallyingAuthoritiesAlgorithms',
]
