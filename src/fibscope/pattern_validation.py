"""
Pattern Validation

Scores every pattern candidate on five independent metrics and decides
whether it is accepted:

- ratio_accuracy: closeness of observed ratios to the kind's expected ratios
- price_structure: geometric shape of the pattern's points
- time_symmetry: balance of mirrored time intervals
- volume_confirmation: agreement of volume changes with price changes
- trend_consistency: position of the points against the 20/50 period SMAs

A metric that lacks its input raises ValidationDataGap internally and is
replaced by the neutral score; the gap is recorded on the metrics and
exempts that metric from its threshold.
"""

import math
import statistics
from typing import Callable, Dict, List, Optional, Sequence

from .constants import (
    FIBONACCI_EXTENSION_PAIR,
    FIBONACCI_LEVELS,
    GOLDEN_RATIO,
    LONG_MA_PERIOD,
    NEUTRAL_SCORE,
    SHORT_MA_PERIOD,
)
from .exceptions import ValidationDataGap
from .logger import get_logger
from .models.market_data import PricePoint
from .models.patterns import Pattern, PatternKind, ValidationMetrics
from .patterns.retracement import nearest_level
from .patterns.templates import TemplateCatalog

logger = get_logger(__name__)

# Largest angular error that still earns a spiral step any credit
_SPIRAL_ANGLE_TOLERANCE = math.pi / 8


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _closeness(actual: float, expected: float) -> float:
    """One minus the relative deviation, floored at zero."""
    if expected == 0:
        return 0.0
    return max(0.0, 1.0 - abs(actual - expected) / abs(expected))


class MovingAverages:
    """Prefix-sum backed simple moving averages over a price series."""

    def __init__(self, prices: Sequence[PricePoint]):
        self._prefix = [0.0]
        for point in prices:
            self._prefix.append(self._prefix[-1] + point.price)

    def __len__(self) -> int:
        return len(self._prefix) - 1

    def sma(self, index: int, period: int) -> Optional[float]:
        """Mean of the ``period`` prices ending at ``index``, None without enough history."""
        if index + 1 < period or index >= len(self):
            return None
        return (self._prefix[index + 1] - self._prefix[index + 1 - period]) / period


class PatternValidator:
    """Computes ValidationMetrics and final confidence for pattern candidates."""

    def __init__(
        self,
        catalog: Optional[TemplateCatalog] = None,
        golden_ratio: float = GOLDEN_RATIO
    ):
        self.catalog = catalog or TemplateCatalog()
        self.golden_ratio = golden_ratio

        self._ratio_scorers: Dict[PatternKind, Callable[[Pattern], float]] = {
            PatternKind.GOLDEN_SPIRAL: self._golden_ratio_accuracy,
            PatternKind.FIBONACCI_EXTENSION: self._extension_ratio_accuracy,
            PatternKind.FIBONACCI_RETRACEMENT: self._retracement_ratio_accuracy,
            PatternKind.HARMONIC_GARTLEY: self._template_ratio_accuracy,
            PatternKind.HARMONIC_BUTTERFLY: self._template_ratio_accuracy,
            PatternKind.HARMONIC_BAT: self._template_ratio_accuracy,
            PatternKind.HARMONIC_CRAB: self._template_ratio_accuracy,
            PatternKind.NO_PATTERN: lambda pattern: 0.0,
        }
        self._structure_scorers: Dict[PatternKind, Callable[[Pattern, List[float]], float]] = {
            PatternKind.GOLDEN_SPIRAL: self._spiral_structure,
            PatternKind.FIBONACCI_EXTENSION: self._extension_structure,
            PatternKind.FIBONACCI_RETRACEMENT: self._retracement_structure,
            PatternKind.HARMONIC_GARTLEY: self._harmonic_structure,
            PatternKind.HARMONIC_BUTTERFLY: self._harmonic_structure,
            PatternKind.HARMONIC_BAT: self._harmonic_structure,
            PatternKind.HARMONIC_CRAB: self._harmonic_structure,
            PatternKind.NO_PATTERN: lambda pattern, values: 0.0,
        }

    # Public API

    def validate(
        self,
        pattern: Pattern,
        prices: Sequence[PricePoint],
        averages: Optional[MovingAverages] = None
    ) -> ValidationMetrics:
        """
        Score a candidate against the series it was found in.

        Args:
            pattern: Candidate whose points index into ``prices``
            prices: The analyzed price series
            averages: Precomputed moving averages of ``prices``

        Returns:
            ValidationMetrics with data gaps recorded
        """
        self._check_span(pattern, prices)
        if averages is None:
            averages = MovingAverages(prices)

        metric_fns = {
            'ratio_accuracy': lambda: self.ratio_accuracy(pattern),
            'price_structure': lambda: self.price_structure(pattern, prices),
            'time_symmetry': lambda: self.time_symmetry(pattern, prices),
            'volume_confirmation': lambda: self.volume_confirmation(pattern, prices),
            'trend_consistency': lambda: self.trend_consistency(pattern, prices, averages),
        }

        scores = {}
        gaps = []
        for name, fn in metric_fns.items():
            try:
                scores[name] = _clamp(fn())
            except ValidationDataGap as e:
                logger.debug(f"{pattern.kind.value} at {pattern.start_index}: {e}")
                scores[name] = NEUTRAL_SCORE
                gaps.append(name)

        return ValidationMetrics(data_gaps=tuple(gaps), **scores)

    def finalize(
        self,
        pattern: Pattern,
        prices: Sequence[PricePoint],
        averages: Optional[MovingAverages] = None
    ) -> Pattern:
        """
        Attach validation, price and time ranges, and the final confidence.

        The final confidence blends the detector's raw confidence with the
        mean of the measured metrics:

            clamp(0.5 * raw + 0.5 * mean(measured))
        """
        metrics = self.validate(pattern, prices, averages)
        raw = pattern.metadata.raw_confidence or pattern.confidence

        span = prices[pattern.start_index:pattern.end_index + 1]
        span_prices = [p.price for p in span]

        metadata = pattern.metadata.model_copy(update={
            'validation': metrics,
            'price_range': (min(span_prices), max(span_prices)),
            'time_range': (span[0].timestamp, span[-1].timestamp),
            'raw_confidence': raw,
        })
        return pattern.model_copy(update={
            'confidence': self.final_confidence(raw, metrics),
            'metadata': metadata,
        })

    def finalize_all(self, patterns: Sequence[Pattern], prices: Sequence[PricePoint]) -> List[Pattern]:
        """Finalize a batch of candidates against one series."""
        averages = MovingAverages(prices)
        return [self.finalize(pattern, prices, averages) for pattern in patterns]

    @staticmethod
    def final_confidence(raw: float, metrics: ValidationMetrics) -> float:
        measured = [
            score for name, score in metrics.scores().items()
            if name not in metrics.data_gaps
        ]
        quality = statistics.fmean(measured) if measured else NEUTRAL_SCORE
        return _clamp(0.5 * raw + 0.5 * quality)

    # Metrics

    def ratio_accuracy(self, pattern: Pattern) -> float:
        """Closeness of the observed ratios to the kind's expected ratios."""
        if not pattern.metadata.ratios:
            return 0.0
        return self._ratio_scorers[pattern.kind](pattern)

    def price_structure(self, pattern: Pattern, prices: Sequence[PricePoint]) -> float:
        """Shape score of the pattern's points."""
        values = [prices[i].price for i in pattern.points]
        return self._structure_scorers[pattern.kind](pattern, values)

    def time_symmetry(self, pattern: Pattern, prices: Sequence[PricePoint]) -> float:
        """
        Symmetry of the intervals between consecutive points.

        The first interval is paired with the last, the second with the one
        before last, and so on; each pair scores min(a/b, b/a).
        """
        stamps = [prices[i].timestamp for i in pattern.points]
        intervals = [abs(b - a) for a, b in zip(stamps, stamps[1:])]
        if len(intervals) < 2:
            raise ValidationDataGap('time_symmetry', "fewer than two intervals")

        scores = []
        for i in range(len(intervals) // 2):
            first, last = intervals[i], intervals[-1 - i]
            if first == 0 and last == 0:
                scores.append(1.0)
            elif first == 0 or last == 0:
                scores.append(0.0)
            else:
                scores.append(min(first / last, last / first))
        return statistics.fmean(scores)

    def volume_confirmation(self, pattern: Pattern, prices: Sequence[PricePoint]) -> float:
        """Per step min/max of the volume change ratio against the price change ratio."""
        points = [prices[i] for i in pattern.points]
        if len(points) < 2:
            raise ValidationDataGap('volume_confirmation', "fewer than two points")
        if not all(p.has_volume for p in points):
            raise ValidationDataGap('volume_confirmation', "volume unavailable")

        scores = []
        for previous, current in zip(points, points[1:]):
            volume_change = current.volume / previous.volume
            price_change = current.price / previous.price if previous.price > 0 else 0.0
            larger = max(volume_change, price_change)
            scores.append(min(volume_change, price_change) / larger if larger > 0 else 0.0)
        return statistics.fmean(scores)

    def trend_consistency(
        self,
        pattern: Pattern,
        prices: Sequence[PricePoint],
        averages: Optional[MovingAverages] = None
    ) -> float:
        """
        Fraction of points on the trend side of both moving averages.

        The trend is up when the last point closes at or above the first.
        Points without a full long-period history do not count.
        """
        if averages is None:
            averages = MovingAverages(prices)

        first = prices[pattern.points[0]].price if pattern.points else prices[pattern.start_index].price
        last = prices[pattern.points[-1]].price if pattern.points else prices[pattern.end_index].price
        uptrend = last >= first

        counted = 0
        aligned = 0
        for index in pattern.points:
            short_ma = averages.sma(index, SHORT_MA_PERIOD)
            long_ma = averages.sma(index, LONG_MA_PERIOD)
            if short_ma is None or long_ma is None:
                continue
            counted += 1
            price = prices[index].price
            if uptrend and price > short_ma and price > long_ma:
                aligned += 1
            elif not uptrend and price < short_ma and price < long_ma:
                aligned += 1

        if counted == 0:
            raise ValidationDataGap('trend_consistency', f"fewer than {LONG_MA_PERIOD} prices of history")
        return aligned / counted

    # Ratio accuracy per kind

    def _golden_ratio_accuracy(self, pattern: Pattern) -> float:
        return statistics.fmean(_closeness(r, self.golden_ratio) for r in pattern.metadata.ratios)

    def _extension_ratio_accuracy(self, pattern: Pattern) -> float:
        ratios = pattern.metadata.ratios
        first_target, second_target = FIBONACCI_EXTENSION_PAIR
        best = 0.0
        for first, second in zip(ratios, ratios[1:]):
            score = (_closeness(first, first_target) + _closeness(second, second_target)) / 2.0
            best = max(best, score)
        return best

    def _retracement_ratio_accuracy(self, pattern: Pattern) -> float:
        return statistics.fmean(
            _closeness(r, nearest_level(r, FIBONACCI_LEVELS)) for r in pattern.metadata.ratios
        )

    def _template_ratio_accuracy(self, pattern: Pattern) -> float:
        template = self.catalog.get(pattern.kind)
        if template is None:
            return 0.0
        pairs = list(zip(pattern.metadata.ratios, template.ratios))
        return statistics.fmean(_closeness(actual, expected) for actual, expected in pairs)

    # Price structure per kind

    def _spiral_structure(self, pattern: Pattern, values: List[float]) -> float:
        """Angle of each pair of normalized moves against atan(golden ratio)."""
        if len(values) < 3:
            return 0.0
        price_range = max(values) - min(values)
        if price_range == 0:
            return 0.0

        normalized = [(v - values[0]) / price_range for v in values]
        moves = [b - a for a, b in zip(normalized, normalized[1:])]
        target = math.atan(self.golden_ratio)

        scores = []
        for previous, current in zip(moves, moves[1:]):
            # A spiral keeps growing in one direction
            if previous * current <= 0:
                scores.append(0.0)
                continue
            angle = math.atan2(abs(current), abs(previous))
            scores.append(max(0.0, 1.0 - abs(angle - target) / _SPIRAL_ANGLE_TOLERANCE))
        return statistics.fmean(scores)

    @staticmethod
    def _extension_structure(pattern: Pattern, values: List[float]) -> float:
        """Fraction of moves in the dominant direction."""
        moves = [b - a for a, b in zip(values, values[1:]) if b != a]
        if not moves:
            return 0.0
        rising = sum(1 for move in moves if move > 0)
        return max(rising, len(moves) - rising) / len(moves)

    @staticmethod
    def _retracement_structure(pattern: Pattern, values: List[float]) -> float:
        """Proximity of every successive retracement to a canonical level."""
        scores = []
        for origin, extreme, pullback in zip(values, values[1:], values[2:]):
            impulse = abs(extreme - origin)
            if impulse == 0:
                continue
            retracement = abs(pullback - extreme) / impulse
            scores.append(max(0.0, 1.0 - abs(retracement - nearest_level(retracement))))
        return statistics.fmean(scores) if scores else 0.0

    def _harmonic_structure(self, pattern: Pattern, values: List[float]) -> float:
        """Four XABCD shape checks, each worth a quarter."""
        if len(values) != 5:
            return 0.0
        x, a, b, c, d = values
        moves = [a - x, b - a, c - b, d - c]

        alternates = all(first * second < 0 for first, second in zip(moves, moves[1:]))
        b_inside_xa = min(x, a) <= b <= max(x, a)
        c_inside_ab = min(a, b) <= c <= max(a, b)

        template = self.catalog.get(pattern.kind)
        extends_past_x = template is not None and template.ratios[3] > 1.0
        if extends_past_x:
            d_placed = (d - x) * (a - x) < 0
        else:
            d_placed = min(x, a) <= d <= max(x, a)

        checks = [alternates, b_inside_xa, c_inside_ab, d_placed]
        return sum(1 for passed in checks if passed) / len(checks)

    @staticmethod
    def _check_span(pattern: Pattern, prices: Sequence[PricePoint]) -> None:
        if pattern.end_index >= len(prices):
            raise ValueError(
                f"Pattern span ends at {pattern.end_index} but the series has {len(prices)} prices"
            )
