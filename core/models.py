"""
Data model of the voting protocol: algebraic parameters, election structure,
per-voter secrets and every value exchanged through the bulletin board.

Values that enter the recursive hash (points, encryptions) are NamedTuples so
they hash exactly like the tuples they represent.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Set, Tuple

from .arithmetic import is_probable_prime, jacobi_symbol
from .exceptions import IncompatibleParametersError

DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_"

# ============================================================================
# ALGEBRAIC STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class SecurityParameters:
    """
    sigma: minimal privacy security level (lambda)
    tau: minimal integrity security level (mu)
    upper_l: output length of the hash function in bits
    epsilon: deterrence factor, probability of detecting a cheating authority
    """
    sigma: int
    tau: int
    upper_l: int
    epsilon: float

    def __post_init__(self):
        if self.upper_l < max(self.sigma, self.tau) / 4:
            raise ValueError("upper_l must be >= max(sigma, tau) / 4")
        if self.upper_l % 8 != 0:
            raise ValueError("upper_l must be a multiple of 8")
        if not 0.0 < self.epsilon <= 1.0:
            raise ValueError("epsilon must be in (0, 1]")

    @property
    def hash_length(self) -> int:
        """Hash output length L in bytes"""
        return self.upper_l // 8


@dataclass(frozen=True)
class EncryptionGroup:
    """Order-q subgroup of the quadratic residues modulo the safe prime p = 2q + 1"""
    p: int
    q: int
    g: int
    h: int

    def __post_init__(self):
        if self.p != 2 * self.q + 1:
            raise ValueError("p must be the safe prime 2q + 1")
        if not is_probable_prime(self.p):
            raise ValueError("p must be prime")
        if not is_probable_prime(self.q):
            raise ValueError("q must be prime")
        for name, value in (('g', self.g), ('h', self.h)):
            if not 1 < value < self.p or jacobi_symbol(value, self.p) != 1:
                raise ValueError(f"{name} must be a generator of G_q")
        if self.g == self.h:
            raise ValueError("g and h must be independent generators")


@dataclass(frozen=True)
class IdentificationGroup:
    p_circ: int
    q_circ: int
    g_circ: int

    def __post_init__(self):
        if self.q_circ.bit_length() > self.p_circ.bit_length():
            raise ValueError("q_circ cannot be larger than p_circ")
        if (self.p_circ - 1) % self.q_circ != 0:
            raise ValueError("q_circ must divide p_circ - 1")
        if self.g_circ == 1 or pow(self.g_circ, self.q_circ, self.p_circ) != 1:
            raise ValueError("g_circ must generate the subgroup of order q_circ")


@dataclass(frozen=True)
class PrimeField:
    p_prime: int

    def __post_init__(self):
        if not is_probable_prime(self.p_prime):
            raise ValueError("p_prime must be prime")


@dataclass
class PublicParameters:
    """Everything published before the election; immutable once on the bulletin board"""
    security_parameters: SecurityParameters
    encryption_group: EncryptionGroup
    identification_group: IdentificationGroup
    prime_field: PrimeField
    q_circ_x: int
    alphabet_x: str
    q_circ_y: int
    alphabet_y: str
    alphabet_r: str
    upper_l_r: int
    alphabet_f: str
    upper_l_f: int
    s: int
    n_max: int

    l_x: int = field(init=False)
    l_y: int = field(init=False)
    l_r: int = field(init=False)
    l_f: int = field(init=False)
    upper_l_m: int = field(init=False)

    def __post_init__(self):
        tau = self.security_parameters.tau
        epsilon = self.security_parameters.epsilon
        q_circ = self.identification_group.q_circ

        if self.s < 1:
            raise IncompatibleParametersError("There must be at least one authority")
        if q_circ.bit_length() < 2 * tau:
            raise IncompatibleParametersError("|q_circ| must be >= 2 * tau")
        for name, q_value, alphabet in (('x', self.q_circ_x, self.alphabet_x),
                                        ('y', self.q_circ_y, self.alphabet_y)):
            if q_value.bit_length() < 2 * tau:
                raise IncompatibleParametersError(f"|q_circ_{name}| must be >= 2 * tau")
            if q_value > q_circ:
                raise IncompatibleParametersError(f"q_circ_{name} must be <= q_circ")
            if len(alphabet) < 2:
                raise IncompatibleParametersError(f"alphabet_{name} needs at least 2 characters")
        if len(self.alphabet_r) < 2 or len(self.alphabet_f) < 2:
            raise IncompatibleParametersError("Code alphabets need at least 2 characters")
        if self.n_max < 2:
            raise IncompatibleParametersError("n_max must be >= 2")
        if epsilon < 1.0:
            if 8 * self.upper_l_r < math.log((self.n_max - 1) / (1.0 - epsilon)):
                raise IncompatibleParametersError("8 * L_r must be >= log((n_max - 1) / (1 - epsilon))")
            if 8 * self.upper_l_f < math.log(1 / (1.0 - epsilon)):
                raise IncompatibleParametersError("8 * L_f must be >= log(1 / (1 - epsilon))")
        hash_length = self.security_parameters.hash_length
        if not 0 < self.upper_l_r <= hash_length or not 0 < self.upper_l_f <= hash_length:
            raise IncompatibleParametersError("Code lengths cannot exceed the hash output length")

        self.l_x = math.ceil(self.q_circ_x.bit_length() / math.log2(len(self.alphabet_x)))
        self.l_y = math.ceil(self.q_circ_y.bit_length() / math.log2(len(self.alphabet_y)))
        self.l_r = math.ceil(8 * self.upper_l_r / math.log2(len(self.alphabet_r)))
        self.l_f = math.ceil(8 * self.upper_l_f / math.log2(len(self.alphabet_f)))
        self.upper_l_m = 2 * math.ceil(self.prime_field.p_prime.bit_length() / 8)


# ============================================================================
# ELECTION STRUCTURE
# ============================================================================


@dataclass(frozen=True)
class DomainOfInfluence:
    identifier: str


@dataclass
class Voter:
    domains_of_influence: Set[DomainOfInfluence] = field(default_factory=set)

    def add_domains_of_influence(self, *domains: DomainOfInfluence):
        self.domains_of_influence.update(domains)


@dataclass(frozen=True)
class Election:
    number_of_candidates: int
    number_of_selections: int
    applicable_domain: DomainOfInfluence

    def __post_init__(self):
        if not 0 < self.number_of_selections < self.number_of_candidates:
            raise ValueError("An election needs more candidates than selections, and at least one selection")


@dataclass(frozen=True)
class Candidate:
    description: str


@dataclass
class ElectionSet:
    voters: List[Voter]
    candidates: List[Candidate]
    elections: List[Election]

    def __post_init__(self):
        expected = sum(e.number_of_candidates for e in self.elections)
        if len(self.candidates) != expected:
            raise ValueError(
                f"Expected {expected} candidates for the elections, got {len(self.candidates)}")

    def is_eligible(self, voter: Voter, election: Election) -> bool:
        return election.applicable_domain in voter.domains_of_influence

    @property
    def candidate_counts(self) -> List[int]:
        return [e.number_of_candidates for e in self.elections]

    def allowed_selections(self, voter_index: int) -> List[int]:
        """Number of selections the voter may make in each election (0 when not eligible)"""
        voter = self.voters[voter_index]
        return [e.number_of_selections if self.is_eligible(voter, e) else 0
                for e in self.elections]


# ============================================================================
# PER-VOTER DATA
# ============================================================================


class Point(NamedTuple):
    x: int
    y: int


@dataclass
class PointsAndZeroImages:
    points: List[Point]
    y0s: List[int]


@dataclass(frozen=True)
class SecretVoterData:
    x: int
    y: int
    upper_f: bytes
    rc: List[bytes]


@dataclass
class ElectorateData:
    secret_voter_data: List[SecretVoterData]
    public_voter_data: List[Point]
    points: List[List[Point]]
    allowed_selections: List[List[int]]


@dataclass(frozen=True)
class CodeSheet:
    """Printed material sent to a voter by the printing authority"""
    i: int
    voter: Voter
    allowed_selections: List[int]
    voting_code: str
    confirmation_code: str
    finalization_code: str
    return_codes: List[str]


@dataclass(frozen=True)
class VotingPageData:
    selection_counts: List[int]
    candidate_counts: List[int]


# ============================================================================
# CRYPTOGRAPHIC VALUES
# ============================================================================


class Encryption(NamedTuple):
    """ElGamal ciphertext (a, b) = (m * pk^r, g^r)"""
    a: int
    b: int


class KeyPair(NamedTuple):
    secret_key: int
    public_key: int


@dataclass(frozen=True)
class NonInteractiveZKP:
    t: List[int]
    s: List[int]


class ObliviousTransferQuery(NamedTuple):
    a: List[int]
    r: List[int]


@dataclass(frozen=True)
class BallotAndQuery:
    x_circ: int
    a: List[int]
    b: int
    proof: NonInteractiveZKP


@dataclass(frozen=True)
class BallotQueryAndRand:
    ballot: BallotAndQuery
    r: List[int]


@dataclass(frozen=True)
class ObliviousTransferResponse:
    b: List[int]
    c: List[bytes]
    d: List[int]


@dataclass(frozen=True)
class ObliviousTransferResponseAndRand:
    response: ObliviousTransferResponse
    r: List[int]


@dataclass(frozen=True)
class BallotEntry:
    i: int
    ballot: BallotAndQuery
    r: List[int]


@dataclass(frozen=True)
class Confirmation:
    y_circ: int
    proof: NonInteractiveZKP


@dataclass(frozen=True)
class ConfirmationEntry:
    i: int
    confirmation: Confirmation


@dataclass(frozen=True)
class FinalizationCodePart:
    upper_f: bytes
    r: List[int]


@dataclass(frozen=True)
class ReEncryption:
    encryption: Encryption
    r_prime: int


@dataclass(frozen=True)
class Shuffle:
    encryptions: List[Encryption]
    re_encryption_randomness: List[int]
    permutation: List[int]


@dataclass(frozen=True)
class PermutationCommitment:
    commitments: List[int]
    randomizations: List[int]


@dataclass(frozen=True)
class CommitmentChain:
    commitments: List[int]
    randomizations: List[int]


@dataclass(frozen=True)
class ShuffleProofCommitments:
    t1: int
    t2: int
    t3: int
    t4: Tuple[int, int]
    t_hat: List[int]

    def as_hashable(self) -> tuple:
        return (self.t1, self.t2, self.t3, tuple(self.t4), tuple(self.t_hat))


@dataclass(frozen=True)
class ShuffleProofResponses:
    s1: int
    s2: int
    s3: int
    s4: int
    s_hat: List[int]
    s_prime: List[int]


@dataclass(frozen=True)
class ShuffleProof:
    t: ShuffleProofCommitments
    s: ShuffleProofResponses
    permutation_commitments: List[int]
    chain_commitments: List[int]


@dataclass(frozen=True)
class DecryptionProof:
    t: List[int]
    s: int


@dataclass(frozen=True)
class ShufflesAndProofs:
    shuffles: List[List[Encryption]]
    proofs: List[ShuffleProof]


@dataclass(frozen=True)
class TallyData:
    public_key_shares: List[int]
    final_shuffle: List[Encryption]
    partial_decryptions: List[List[int]]
    decryption_proofs: List[DecryptionProof]


# ============================================================================
# BULLETIN BOARD OUTCOMES
# ============================================================================


class ResultStatus(Enum):
    """Outcome of a ballot or confirmation submission"""
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class BallotResult:
    status: ResultStatus
    responses: List[ObliviousTransferResponse] = field(default_factory=list)
    reason: Optional[str] = None

    @classmethod
    def accepted(cls, responses: List[ObliviousTransferResponse]) -> 'BallotResult':
        return cls(ResultStatus.ACCEPTED, list(responses))

    @classmethod
    def rejected(cls, reason: str) -> 'BallotResult':
        return cls(ResultStatus.REJECTED, reason=reason)

    @property
    def is_accepted(self) -> bool:
        return self.status is ResultStatus.ACCEPTED


@dataclass(frozen=True)
class ConfirmationResult:
    status: ResultStatus
    parts: List[FinalizationCodePart] = field(default_factory=list)
    reason: Optional[str] = None

    @classmethod
    def accepted(cls, parts: List[FinalizationCodePart]) -> 'ConfirmationResult':
        return cls(ResultStatus.ACCEPTED, list(parts))

    @classmethod
    def rejected(cls, reason: str) -> 'ConfirmationResult':
        return cls(ResultStatus.REJECTED, reason=reason)

    @property
    def is_accepted(self) -> bool:
        return self.status is ResultStatus.ACCEPTED

