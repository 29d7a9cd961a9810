"""
Structural Pattern Detection

Slides a fixed-size window over the ratio series and flags:
- Golden spirals: at least three ratios within tolerance of the golden ratio
- Fibonacci extensions: a consecutive ratio pair close to (1.618, 2.618)

Overlapping candidates of the same kind are merged into one candidate that
spans both, with the two confidences averaged.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from ..constants import (
    FIBONACCI_EXTENSION_PAIR,
    GOLDEN_RATIO,
    MIN_GOLDEN_RATIOS_PER_WINDOW,
    MIN_STRUCTURAL_RATIOS,
)
from ..models.market_data import GeometricRatio
from ..models.patterns import Pattern, PatternKind, PatternMetadata


class StructuralDetector:
    """Sliding-window golden spiral and Fibonacci extension detector."""

    def __init__(
        self,
        golden_ratio: float = GOLDEN_RATIO,
        tolerance: float = 0.03,
        window_size: int = 3
    ):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if window_size < 2:
            raise ValueError(f"window_size must be at least 2, got {window_size}")
        self.golden_ratio = golden_ratio
        self.tolerance = tolerance
        self.window_size = window_size

    def effective_window(self, ratio_count: int) -> int:
        """Window used for a series; shrinks to the series when it is shorter."""
        return min(self.window_size, ratio_count)

    def window_starts(self, ratio_count: int) -> range:
        """Start offsets of every window over ``ratio_count`` ratios."""
        if ratio_count < MIN_STRUCTURAL_RATIOS:
            return range(0)
        width = self.effective_window(ratio_count)
        return range(0, ratio_count - width + 1)

    def detect(self, ratios: Sequence[GeometricRatio]) -> List[Pattern]:
        """Scan every window and merge overlapping candidates."""
        raw = self.scan_starts(ratios, self.window_starts(len(ratios)))
        return self.merge(raw, ratios)

    def scan_starts(self, ratios: Sequence[GeometricRatio], starts: Iterable[int]) -> List[Pattern]:
        """Unmerged candidates for the given window starts, in start order."""
        candidates = []
        for start in starts:
            candidates.extend(self.scan_window(ratios, start))
        return candidates

    def scan_window(self, ratios: Sequence[GeometricRatio], start: int) -> List[Pattern]:
        """
        Evaluate the single window beginning at ratio ``start``.

        The result depends only on that window's ratios.
        """
        width = self.effective_window(len(ratios))
        window = [r.ratio for r in ratios[start:start + width]]
        if len(window) < width or width < MIN_STRUCTURAL_RATIOS:
            return []

        found = []

        golden_count = sum(
            1 for r in window if abs(r - self.golden_ratio) <= self.tolerance
        )
        if golden_count >= MIN_GOLDEN_RATIOS_PER_WINDOW:
            found.append(self._make_candidate(
                PatternKind.GOLDEN_SPIRAL, start, width, window, golden_count / width
            ))

        extension_confidence = self._best_extension(window)
        if extension_confidence is not None:
            found.append(self._make_candidate(
                PatternKind.FIBONACCI_EXTENSION, start, width, window, extension_confidence
            ))

        return found

    def merge(self, candidates: Sequence[Pattern], ratios: Sequence[GeometricRatio]) -> List[Pattern]:
        """Merge overlapping candidates of the same kind."""
        if len(candidates) <= 1:
            return list(candidates)

        current: Dict[PatternKind, Pattern] = {}
        merged: List[Pattern] = []

        for candidate in candidates:
            previous = current.get(candidate.kind)
            if previous is not None and previous.overlaps(candidate):
                current[candidate.kind] = self._combine(previous, candidate, ratios)
            else:
                if previous is not None:
                    merged.append(previous)
                current[candidate.kind] = candidate

        merged.extend(current.values())
        merged.sort(key=lambda p: (p.start_index, _KIND_ORDER[p.kind], p.end_index))
        return merged

    def _best_extension(self, window: Sequence[float]) -> Optional[float]:
        first_target, second_target = FIBONACCI_EXTENSION_PAIR
        best = None
        for first, second in zip(window, window[1:]):
            first_dev = abs(first - first_target)
            second_dev = abs(second - second_target)
            if first_dev <= self.tolerance and second_dev <= self.tolerance:
                score = (
                    (1.0 - first_dev / self.tolerance) + (1.0 - second_dev / self.tolerance)
                ) / 2.0
                if best is None or score > best:
                    best = score
        return best

    def _make_candidate(
        self,
        kind: PatternKind,
        start: int,
        width: int,
        window: Sequence[float],
        confidence: float
    ) -> Pattern:
        confidence = max(0.0, min(1.0, confidence))
        # Ratio slot i spans prices i and i + 1
        end = start + width
        return Pattern(
            kind=kind,
            start_index=start,
            end_index=end,
            confidence=confidence,
            points=list(range(start, end + 1)),
            metadata=PatternMetadata(ratios=list(window), raw_confidence=confidence)
        )

    def _combine(self, first: Pattern, second: Pattern, ratios: Sequence[GeometricRatio]) -> Pattern:
        start = min(first.start_index, second.start_index)
        end = max(first.end_index, second.end_index)
        confidence = (first.confidence + second.confidence) / 2.0
        return Pattern(
            kind=first.kind,
            start_index=start,
            end_index=end,
            confidence=confidence,
            points=list(range(start, end + 1)),
            metadata=PatternMetadata(
                ratios=[r.ratio for r in ratios[start:end]],
                raw_confidence=confidence
            )
        )


_KIND_ORDER = {kind: order for order, kind in enumerate(PatternKind)}
