"""
General algorithms shared by every party: group membership, candidate
primes, independent generators and Fiat-Shamir challenges.
"""

import logging
import threading
from typing import List, Sequence

from .arithmetic import is_probable_prime, jacobi_symbol, next_probable_prime
from .conversion import bytes_to_integer
from .exceptions import NotEnoughPrimesInGroupError
from .hashing import HashableValue, RecursiveHash
from .models import EncryptionGroup, IdentificationGroup

logger = logging.getLogger(__name__)


class GeneralAlgorithms:
    def __init__(self, hash_function: RecursiveHash, encryption_group: EncryptionGroup,
                 identification_group: IdentificationGroup):
        self.hash = hash_function
        self.encryption_group = encryption_group
        self.identification_group = identification_group
        self._cached_primes: List[int] = []
        self._primes_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def is_member(self, x: int) -> bool:
        """True iff x belongs to G_q"""
        p = self.encryption_group.p
        return 1 <= x < p and jacobi_symbol(x, p) == 1

    def is_member_g_q_circ(self, x: int) -> bool:
        group = self.identification_group
        return 1 <= x < group.p_circ and pow(x, group.q_circ, group.p_circ) == 1

    def is_in_z_q(self, x: int) -> bool:
        return 0 <= x < self.encryption_group.q

    def is_in_z_q_circ(self, x: int) -> bool:
        return 0 <= x < self.identification_group.q_circ

    # ------------------------------------------------------------------
    # Candidate primes
    # ------------------------------------------------------------------

    def get_primes(self, n: int) -> List[int]:
        """First n primes that are members of G_q, in increasing order"""
        with self._primes_lock:
            if len(self._cached_primes) < n:
                self._extend_primes_cache(n)
            return self._cached_primes[:n]

    def _extend_primes_cache(self, n: int):
        p = self.encryption_group.p
        x = self._cached_primes[-1] if self._cached_primes else 1
        while len(self._cached_primes) < n:
            x = next_probable_prime(x)
            if x >= p:
                raise NotEnoughPrimesInGroupError(
                    f"Only found {len(self._cached_primes)} primes "
                    f"({', '.join(str(u) for u in self._cached_primes[:4])}) in group {self.encryption_group}")
            if is_probable_prime(x) and self.is_member(x):
                self._cached_primes.append(x)
        logger.debug(f"Primes cache extended to {len(self._cached_primes)} primes")

    def get_selected_primes(self, selections: Sequence[int]) -> List[int]:
        """Primes for 1-based, strictly increasing selections"""
        if any(s <= 0 for s in selections):
            raise ValueError("Selections are 1-based and must be positive")
        if any(a >= b for a, b in zip(selections, selections[1:])):
            raise ValueError("Selections must be strictly increasing")
        if not selections:
            return []
        primes = self.get_primes(selections[-1])
        return [primes[s - 1] for s in selections]

    # ------------------------------------------------------------------
    # Generators and challenges
    # ------------------------------------------------------------------

    def get_generators(self, n: int) -> List[int]:
        """n independent generators of G_q, derived deterministically from the hash"""
        group = self.encryption_group
        values_to_avoid = {0, 1, group.g, group.h}
        generators = []
        for i in range(n):
            x = 0
            while True:
                x += 1
                h_i = bytes_to_integer(self.hash.rec_hash_l("chVote", i, x)) % group.p
                h_i = (h_i * h_i) % group.p
                if h_i not in values_to_avoid:
                    break
            generators.append(h_i)
            values_to_avoid.add(h_i)
        return generators

    def get_nizkp_challenge(self, y: HashableValue, t: HashableValue, modulus: int) -> int:
        return bytes_to_integer(self.hash.rec_hash_l(y, t)) % modulus

    def get_challenges(self, n: int, y: HashableValue, modulus: int) -> List[int]:
        """n challenges u_1..u_n bound to the public values y"""
        upper_h = self.hash.rec_hash_l(y)
        return [bytes_to_integer(self.hash.hash_l(upper_h + self.hash.rec_hash_l(i))) % modulus
                for i in range(1, n + 1)]
