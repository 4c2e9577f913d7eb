"""
Random-polynomial secret sharing over the prime field.

Each authority draws, per voter and per election, a polynomial of degree
k_j - 1 and evaluates it at n_j distinct non-zero points. The points are the
database of the oblivious transfer; the values at 0 feed the voter's
confirmation credential.
"""

import logging
from typing import List, Sequence

from core.models import Point, PointsAndZeroImages, PrimeField
from core.random_generator import RandomGenerator

logger = logging.getLogger(__name__)


class PolynomialAlgorithms:
    def __init__(self, random_generator: RandomGenerator, prime_field: PrimeField):
        self.random_generator = random_generator
        self.p_prime = prime_field.p_prime

    def gen_points(self, candidate_counts: Sequence[int], selection_counts: Sequence[int]) -> PointsAndZeroImages:
        """
        Generate the points of one voter.

        Args:
            candidate_counts: number of candidates n_j per election
            selection_counts: number of allowed selections k_j per election

        Returns:
            The sum(n_j) points in election order and one value at 0 per election
        """
        if len(candidate_counts) != len(selection_counts):
            raise ValueError("Candidate and selection counts must cover the same elections")
        if any(n_j <= k_j for n_j, k_j in zip(candidate_counts, selection_counts)):
            raise ValueError("Each election needs more candidates than allowed selections")

        points = []
        y0s = []
        for n_j, k_j in zip(candidate_counts, selection_counts):
            coefficients = self.gen_polynomial(k_j - 1)
            used_xs = set()
            for _ in range(n_j):
                x = 0
                while x == 0 or x in used_xs:
                    x = self.random_generator.random_in_z_q(self.p_prime)
                used_xs.add(x)
                points.append(Point(x, self.get_y_value(x, coefficients)))
            y0s.append(self.get_y_value(0, coefficients))
        return PointsAndZeroImages(points, y0s)

    def gen_polynomial(self, d: int) -> List[int]:
        """Coefficients a_0..a_d of a random polynomial of exact degree d (d = -1 gives [0])"""
        if d < -1:
            raise ValueError("Degree must be at least -1")
        if d == -1:
            return [0]
        coefficients = [self.random_generator.random_in_z_q(self.p_prime) for _ in range(d)]
        coefficients.append(self.random_generator.random_in_z_q(self.p_prime - 1) + 1)
        return coefficients

    def get_y_value(self, x: int, coefficients: Sequence[int]) -> int:
        """Evaluate the polynomial at x using Horner's method"""
        if x == 0:
            return coefficients[0] % self.p_prime
        y = 0
        for coefficient in reversed(coefficients):
            y = (y * x + coefficient) % self.p_prime
        return y

    def get_value(self, points: Sequence[Point]) -> int:
        """Lagrange interpolation of the polynomial through `points`, at x = 0"""
        y = 0
        for i, point_i in enumerate(points):
            numerator = 1
            denominator = 1
            for j, point_j in enumerate(points):
                if i != j:
                    numerator = (numerator * point_j.x) % self.p_prime
                    denominator = (denominator * (point_j.x - point_i.x)) % self.p_prime
            y = (y + point_i.y * numerator * pow(denominator, -1, self.p_prime)) % self.p_prime
        return y
