"""Number-theoretic helpers shared by the protocol algorithms."""

from typing import Iterable

import galois


def jacobi_symbol(a: int, n: int) -> int:
    """Jacobi symbol (a/n) for an odd modulus n >= 3"""
    if n < 3 or n % 2 == 0:
        raise ValueError(f"Jacobi symbol requires an odd modulus >= 3, got {n}")
    return galois.jacobi_symbol(a % n, n)


def is_probable_prime(n: int) -> bool:
    return n >= 2 and galois.is_prime(n)


def next_probable_prime(n: int) -> int:
    """Smallest probable prime strictly greater than n"""
    return galois.next_prime(n)


def random_prime(bits: int) -> int:
    """Random prime with at least `bits` bits, used for public prime fields"""
    if bits < 2:
        raise ValueError("A prime needs at least 2 bits")
    return galois.random_prime(bits)


def mod_inverse(x: int, modulus: int) -> int:
    return pow(x, -1, modulus)


def product_mod(values: Iterable[int], modulus: int) -> int:
    result = 1
    for value in values:
        result = (result * value) % modulus
    return result


def sum_mod(values: Iterable[int], modulus: int) -> int:
    return sum(values) % modulus
