"""
Fibonacci Retracement Scanning

For every three consecutive swings (P0, P1, P2) the pullback
|P2 - P1| / |P1 - P0| is compared with the canonical retracement levels.
A pullback within the relative tolerance of a level becomes a candidate.
"""

from typing import List, Optional, Sequence, Tuple

from ..constants import FIBONACCI_LEVELS
from ..models.market_data import SwingPoint
from ..models.patterns import Pattern, PatternDirection, PatternKind, PatternMetadata


def nearest_level(retracement: float, levels: Sequence[float] = FIBONACCI_LEVELS) -> float:
    """Canonical level closest to ``retracement``."""
    return min(levels, key=lambda level: abs(retracement - level))


class RetracementScanner:
    """Swing-based Fibonacci retracement detector."""

    def __init__(self, tolerance: float = 0.03, levels: Tuple[float, ...] = FIBONACCI_LEVELS):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance
        self.levels = levels

    def scan(self, swings: Sequence[SwingPoint]) -> List[Pattern]:
        candidates = []
        for start in range(len(swings) - 2):
            candidate = self.match_triple(*swings[start:start + 3])
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def match_triple(self, origin: SwingPoint, extreme: SwingPoint, pullback: SwingPoint) -> Optional[Pattern]:
        impulse = abs(extreme.price - origin.price)
        if impulse == 0:
            return None

        retracement = abs(pullback.price - extreme.price) / impulse
        level = nearest_level(retracement, self.levels)
        deviation = abs(retracement - level) / level
        if deviation > self.tolerance:
            return None

        confidence = max(0.0, 1.0 - deviation)
        direction = (
            PatternDirection.BULLISH if extreme.price > origin.price else PatternDirection.BEARISH
        )
        return Pattern(
            kind=PatternKind.FIBONACCI_RETRACEMENT,
            start_index=origin.index,
            end_index=pullback.index,
            confidence=confidence,
            points=[origin.index, extreme.index, pullback.index],
            metadata=PatternMetadata(
                ratios=[retracement],
                direction=direction,
                template=f"{level:.3f}",
                raw_confidence=confidence
            )
        )
