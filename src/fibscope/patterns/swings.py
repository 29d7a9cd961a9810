"""
Swing Point Extraction

Finds strict local extrema of the price series. Emitted swings always
alternate between highs and lows; a swing on the same side as the previous
one is skipped, as are plateaus.
"""

from typing import List, Sequence

from ..models.market_data import PricePoint, SwingKind, SwingPoint


class SwingExtractor:
    """Extracts alternating swing highs and lows."""

    def extract(self, prices: Sequence[PricePoint]) -> List[SwingPoint]:
        swings: List[SwingPoint] = []
        for i in range(1, len(prices) - 1):
            kind = self.classify(prices[i - 1].price, prices[i].price, prices[i + 1].price)
            if kind is None:
                continue
            if swings and swings[-1].kind == kind:
                continue
            swings.append(SwingPoint(price=prices[i].price, index=i, kind=kind))
        return swings

    @staticmethod
    def classify(before: float, value: float, after: float):
        """Swing kind of ``value`` between its neighbours, None when not strict."""
        if value > before and value > after:
            return SwingKind.HIGH
        if value < before and value < after:
            return SwingKind.LOW
        return None
