"""
Recursive, truncated hash used by every protocol algorithm.

The encoding is canonical and must not change: it is the only place where
two independently built parties have to agree bit for bit.
"""

import hashlib
from typing import Sequence, Union

from .conversion import integer_to_bytes, string_to_bytes
from .models import SecurityParameters

# Closed set of values the recursive hash accepts
HashableValue = Union[str, int, bytes, Sequence['HashableValue']]


class RecursiveHash:
    """H_L and RecHash_L over the configured digest, truncated to L bytes"""

    def __init__(self, security_parameters: SecurityParameters, algorithm: str = "sha512"):
        self.algorithm = algorithm
        self.output_length = security_parameters.hash_length

        digest_size = hashlib.new(algorithm).digest_size
        if digest_size < self.output_length:
            raise ValueError(
                f"The length of the message digest should be greater or equal to the expected "
                f"output length. Got {digest_size * 8} expected {security_parameters.upper_l}")

    def hash_l(self, data: bytes) -> bytes:
        return hashlib.new(self.algorithm, data).digest()[:self.output_length]

    def rec_hash_l(self, *values: HashableValue) -> bytes:
        if len(values) == 1:
            return self._hash_value(values[0])
        return self.hash_l(b''.join(self._hash_value(value) for value in values))

    def _hash_value(self, value: HashableValue) -> bytes:
        # bool is an int subclass but has no canonical encoding
        if isinstance(value, bool):
            raise TypeError("Booleans cannot be hashed")
        if isinstance(value, str):
            return self.hash_l(string_to_bytes(value))
        if isinstance(value, int):
            return self.hash_l(integer_to_bytes(value))
        if isinstance(value, (bytes, bytearray)):
            return self.hash_l(bytes(value))
        if isinstance(value, (tuple, list)):
            return self.rec_hash_l(*value)
        raise TypeError(f"Could not determine how to hash value of type {type(value).__name__}")
