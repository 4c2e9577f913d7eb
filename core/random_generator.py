"""Cryptographically secure sampling used by all parties."""

import secrets
from random import Random
from typing import Optional

from .models import EncryptionGroup

# Rejection sampling attempts before falling back to one bit less
MAX_ITERATIONS = 255


class RandomGenerator:
    def __init__(self, source: Optional[Random] = None):
        self._random = source if source is not None else secrets.SystemRandom()

    def random_int_in_range(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both bounds included"""
        if low > high:
            raise ValueError("The lowerbound must be less or equal to the upperbound")
        return self._random.randint(low, high)

    def random_big_integer(self, upper_bound: int) -> int:
        """Uniform integer in [0, upper_bound)"""
        if upper_bound < 1:
            raise ValueError("The upper bound must be positive")
        bits = upper_bound.bit_length()
        for _ in range(MAX_ITERATIONS):
            x = self._random.getrandbits(bits)
            if x < upper_bound:
                return x
        return self._random.getrandbits(bits - 1)

    def random_in_z_q(self, q: int) -> int:
        return self.random_big_integer(q)

    def random_in_g_q(self, group: EncryptionGroup) -> int:
        return pow(group.g, self.random_in_z_q(group.q), group.p)
