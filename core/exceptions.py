"""
Exception hierarchy for the voting protocol.

Setup errors are fatal and must be resolved before an election starts,
per-voter errors reject a single ballot or confirmation, tallying errors
halt the publication of results.
"""


class ProtocolError(Exception):
    """Base exception for protocol operations"""
    pass


class ProtocolStateError(ProtocolError):
    """Raised when an operation is invoked in the wrong protocol state"""
    pass


# ============================================================================
# SETUP / PARAMETER ERRORS
# ============================================================================


class ParameterError(ProtocolError):
    """Base class for public parameter problems"""
    pass


class IncompatibleParametersError(ParameterError):
    """Raised when the public parameters cannot support the requested operation"""
    pass


class NotEnoughPrimesInGroupError(ParameterError):
    """Raised when the encryption group holds fewer small primes than candidates"""
    pass


# ============================================================================
# PER-VOTER PROTOCOL VIOLATIONS
# ============================================================================


class VoterProtocolError(ProtocolError):
    """Base class for errors scoped to a single voter"""
    pass


class IncorrectBallotError(VoterProtocolError):
    """Raised when an authority rejects a ballot"""
    pass


class DuplicateBallotError(IncorrectBallotError):
    """Raised when a voter submits a second ballot"""
    pass


class IncorrectConfirmationError(VoterProtocolError):
    """Raised when an authority rejects a confirmation"""
    pass


class MissingBallotError(IncorrectConfirmationError):
    """Raised when a confirmation arrives for a voter without a ballot"""
    pass


class DuplicateConfirmationError(IncorrectConfirmationError):
    """Raised when a voter confirms twice"""
    pass


class InvalidObliviousTransferResponseError(VoterProtocolError):
    """Raised when a decoded point falls outside the prime field"""
    pass


class VoteCastingError(VoterProtocolError):
    """Raised by the voting client when the vote could not be cast"""
    pass


class VoteConfirmationError(VoterProtocolError):
    """Raised by the voting client when the vote could not be confirmed"""
    pass


# ============================================================================
# TALLYING FAILURES
# ============================================================================


class TallyingError(ProtocolError):
    """Base class for soundness failures during mixing and tallying"""
    pass


class InvalidShuffleProofError(TallyingError):
    """Raised when a shuffle proof does not verify"""
    pass


class InvalidDecryptionProofError(TallyingError):
    """Raised when a partial decryption proof does not verify"""
    pass
