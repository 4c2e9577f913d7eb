"""Distributed ElGamal key establishment."""

from typing import Sequence

from core.arithmetic import product_mod
from core.models import EncryptionGroup, KeyPair
from core.random_generator import RandomGenerator


class KeyEstablishmentAlgorithms:
    def __init__(self, random_generator: RandomGenerator):
        self.random_generator = random_generator

    def generate_key_pair(self, group: EncryptionGroup) -> KeyPair:
        secret_key = self.random_generator.random_in_z_q(group.q)
        return KeyPair(secret_key, pow(group.g, secret_key, group.p))

    def get_public_key(self, public_keys: Sequence[int], group: EncryptionGroup) -> int:
        """
        Combine the authorities' key shares. Decrypting under the result
        needs every authority's partial decryption.
        """
        if not public_keys:
            raise ValueError("At least one public key share is needed")
        return product_mod(public_keys, group.p)
