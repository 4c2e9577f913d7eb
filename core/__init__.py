"""Algebraic core of the voting protocol: parameters, encodings, hashing and shared algorithms."""

from .exceptions import (
    ProtocolError,
    ProtocolStateError,
    ParameterError,
    IncompatibleParametersError,
    NotEnoughPrimesInGroupError,
    VoterProtocolError,
    IncorrectBallotError,
    DuplicateBallotError,
    IncorrectConfirmationError,
    MissingBallotError,
    DuplicateConfirmationError,
    InvalidObliviousTransferResponseError,
    VoteCastingError,
    VoteConfirmationError,
    TallyingError,
    InvalidShuffleProofError,
    InvalidDecryptionProofError
)
from .general_algorithms import GeneralAlgorithms
from .hashing import RecursiveHash
from .parameters import SECURITY_LEVELS, create_public_parameters
from .random_generator import RandomGenerator

__version__ = "1.0.0"

__all__ = [
    # Shared algorithms
    'GeneralAlgorithms',
    'RecursiveHash',
    'RandomGenerator',
    'SECURITY_LEVELS',
    'create_public_parameters',

    # Exceptions
    'ProtocolError',
    'ProtocolStateError',
    'ParameterError',
    'IncompatibleParametersError',
    'NotEnoughPrimesInGroupError',
    'VoterProtocolError',
    'IncorrectBallotError',
    'DuplicateBallotError',
    'IncorrectConfirmationError',
    'MissingBallotError',
    'DuplicateConfirmationError',
    'InvalidObliviousTransferResponseError',
    'VoteCastingError',
    'VoteConfirmationError',
    'TallyingError',
    'InvalidShuffleProofError',
    'InvalidDecryptionProofError',
]
