"""
Harmonic Pattern Matching

Matches every run of five consecutive swings (X, A, B, C, D) against the
template catalog. Leg ratios:

    AB = |B - A| / |X - A|
    BC = |C - B| / |B - A|
    CD = |D - C| / |C - B|
    AD = |D - A| / |X - A|

Raw confidence per template is one minus the mean relative deviation of the
four legs, clamped to [0, 1]. Only the best template of a window is kept;
ties go to the template listed first in the catalog.
"""

from typing import List, Optional, Sequence, Tuple

from ..constants import HARMONIC_SWING_COUNT
from ..models.market_data import SwingPoint
from ..models.patterns import (
    Pattern,
    PatternDirection,
    PatternMetadata,
    PatternTemplate,
)
from .templates import TemplateCatalog

LegRatios = Tuple[float, float, float, float]


class HarmonicMatcher:
    """XABCD template matcher."""

    def __init__(self, catalog: Optional[TemplateCatalog] = None, enforce_tolerance: bool = False):
        """
        Initialize matcher.

        Args:
            catalog: Templates to match against, defaults to the standard catalog
            enforce_tolerance: Also require every leg to lie within the
                template's relative tolerance
        """
        self.catalog = catalog or TemplateCatalog()
        self.enforce_tolerance = enforce_tolerance

    def match(self, swings: Sequence[SwingPoint]) -> List[Pattern]:
        """Best harmonic candidate for every five-swing window."""
        candidates = []
        for start in range(len(swings) - HARMONIC_SWING_COUNT + 1):
            candidate = self.match_window(swings[start:start + HARMONIC_SWING_COUNT])
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def match_window(self, window: Sequence[SwingPoint]) -> Optional[Pattern]:
        """Candidate for one X, A, B, C, D window, None when nothing matches."""
        if len(window) != HARMONIC_SWING_COUNT:
            raise ValueError(f"Harmonic window needs {HARMONIC_SWING_COUNT} swings, got {len(window)}")

        x, a, b, c, d = window
        legs = self.leg_ratios(x.price, a.price, b.price, c.price, d.price)
        if legs is None:
            return None

        best = self.match_legs(legs)
        if best is None:
            return None
        template, confidence = best

        direction = PatternDirection.BULLISH if d.price < a.price else PatternDirection.BEARISH
        return Pattern(
            kind=template.kind,
            start_index=x.index,
            end_index=d.index,
            confidence=confidence,
            points=[s.index for s in window],
            metadata=PatternMetadata(
                ratios=list(legs),
                direction=direction,
                template=template.name,
                raw_confidence=confidence
            )
        )

    def match_legs(self, legs: LegRatios) -> Optional[Tuple[PatternTemplate, float]]:
        """Best (template, raw confidence) for a leg ratio tuple."""
        best_template = None
        best_confidence = 0.0
        for template in self.catalog:
            if self.enforce_tolerance and not self.within_tolerance(legs, template):
                continue
            confidence = self.score(legs, template)
            # Strict comparison keeps the earlier template on ties
            if confidence > best_confidence:
                best_template = template
                best_confidence = confidence
        if best_template is None:
            return None
        return best_template, best_confidence

    @staticmethod
    def score(legs: LegRatios, template: PatternTemplate) -> float:
        """One minus the mean relative leg deviation, clamped to [0, 1]."""
        deviations = [
            abs(actual - expected) / expected
            for actual, expected in zip(legs, template.ratios)
        ]
        return max(0.0, min(1.0, 1.0 - sum(deviations) / len(deviations)))

    @staticmethod
    def within_tolerance(legs: LegRatios, template: PatternTemplate) -> bool:
        return all(
            abs(actual - expected) <= template.tolerance * expected
            for actual, expected in zip(legs, template.ratios)
        )

    @staticmethod
    def leg_ratios(x: float, a: float, b: float, c: float, d: float) -> Optional[LegRatios]:
        """Normalized leg ratios, None when a reference leg has zero length."""
        xa = abs(x - a)
        ab = abs(b - a)
        bc = abs(c - b)
        if xa == 0 or ab == 0 or bc == 0:
            return None
        return (
            ab / xa,
            bc / ab,
            abs(d - c) / bc,
            abs(d - a) / xa,
        )
