"""
Geometric Ratio Calculation

Converts an ordered price series into consecutive ratios, each carrying a
significance weight built from:
- the relative size of the price move (logistic around a 5% move)
- the proximity of the ratio to the golden ratio
- a volume weight (1.0 when volume is unavailable)
"""

import math
from typing import List, Optional, Sequence

from ..constants import (
    GOLDEN_RATIO,
    SIGNIFICANCE_GOLDEN_WEIGHT,
    SIGNIFICANCE_MOVE_PIVOT,
    SIGNIFICANCE_MOVE_WEIGHT,
    SIGNIFICANCE_STEEPNESS,
)
from ..exceptions import InputError, InputErrorKind
from ..models.market_data import GeometricRatio, PricePoint


def _sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class RatioCalculator:
    """
    Computes GeometricRatio values for adjacent price pairs.

    N prices always yield N-1 ratios; fewer than two prices yield none.
    """

    def __init__(self, golden_ratio: float = GOLDEN_RATIO, tolerance: float = 0.03):
        """
        Initialize calculator.

        Args:
            golden_ratio: Target ratio for the proximity term
            tolerance: Distance from the golden ratio at which proximity reaches zero
        """
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.golden_ratio = golden_ratio
        self.tolerance = tolerance

    def calculate(self, prices: Sequence[PricePoint]) -> List[GeometricRatio]:
        """Compute every ratio of the series."""
        if len(prices) < 2:
            return []
        return self.calculate_range(prices, 0, len(prices) - 1)

    def calculate_range(self, prices: Sequence[PricePoint], start: int, stop: int) -> List[GeometricRatio]:
        """
        Compute ratio slots ``start`` (inclusive) to ``stop`` (exclusive).

        Slot ``i`` is ``prices[i + 1] / prices[i]``. Each slot depends only on
        its own pair, so disjoint ranges can be computed independently.

        Raises:
            InputError: On a negative price or a zero denominator
        """
        stop = min(stop, len(prices) - 1)
        ratios = []
        for i in range(max(start, 0), stop):
            ratios.append(self.ratio_for(prices[i], prices[i + 1], i))
        return ratios

    def ratio_for(self, previous: PricePoint, current: PricePoint, index: int = 0) -> GeometricRatio:
        """Compute the ratio between two adjacent points."""
        if previous.price < 0 or current.price < 0:
            bad = index if previous.price < 0 else index + 1
            raise InputError(
                f"Negative price at index {bad}",
                kind=InputErrorKind.NON_POSITIVE_PRICE,
                index=bad
            )
        if previous.price == 0:
            raise InputError(
                f"Zero price at index {index} cannot be used as a ratio denominator",
                kind=InputErrorKind.DIVISION_BY_ZERO,
                index=index
            )

        ratio = current.price / previous.price
        return GeometricRatio(
            ratio=ratio,
            significance=self.significance(previous.price, current.price, ratio,
                                           previous.volume, current.volume),
            timestamp=current.timestamp
        )

    def significance(
        self,
        previous_price: float,
        current_price: float,
        ratio: float,
        previous_volume: Optional[float] = None,
        current_volume: Optional[float] = None
    ) -> float:
        """Weight of a single ratio, clamped to [0, 1]."""
        move = abs(current_price - previous_price) / previous_price
        move_score = _sigmoid(SIGNIFICANCE_STEEPNESS * (move - SIGNIFICANCE_MOVE_PIVOT))
        golden_proximity = max(0.0, 1.0 - abs(ratio - self.golden_ratio) / self.tolerance)

        score = move_score * SIGNIFICANCE_MOVE_WEIGHT + golden_proximity * SIGNIFICANCE_GOLDEN_WEIGHT
        return _clamp(score * self.volume_weight(previous_volume, current_volume))

    @staticmethod
    def volume_weight(previous_volume: Optional[float], current_volume: Optional[float]) -> float:
        """Full weight on expanding volume, down to 0.5 as volume dries up."""
        if not previous_volume or not current_volume:
            return 1.0
        return min(1.0, 0.5 + 0.5 * current_volume / previous_volume)
