"""
Series Confidence

Series-level score of how strongly the ratio sequence as a whole leans on
the golden ratio. Only ratios above the significance threshold count:

    value = min(1, 0.4 * avg_significance
                   + 0.3 * ratio_stability
                   + 0.3 * golden_alignment)

This score is informational; pattern acceptance never depends on it.
"""

import math
import statistics
from typing import Sequence

from ..constants import GOLDEN_RATIO, SIGNIFICANCE_THRESHOLD
from ..models.market_data import GeometricRatio
from ..models.results import SeriesConfidence


class SeriesConfidenceCalculator:

    def __init__(self, golden_ratio: float = GOLDEN_RATIO, threshold: float = SIGNIFICANCE_THRESHOLD):
        self.golden_ratio = golden_ratio
        self.threshold = threshold

    def calculate(self, ratios: Sequence[GeometricRatio]) -> SeriesConfidence:
        significant = [r for r in ratios if r.significance > self.threshold]
        if not significant:
            return SeriesConfidence()

        avg_significance = statistics.fmean(r.significance for r in significant)
        stability = self.ratio_stability(significant)
        alignment = self.golden_alignment(significant)
        value = min(1.0, avg_significance * 0.4 + stability * 0.3 + alignment * 0.3)

        return SeriesConfidence(
            value=value,
            ratio_stability=stability,
            golden_alignment=alignment,
            avg_significance=avg_significance,
            significant_ratios=len(significant)
        )

    @staticmethod
    def ratio_stability(ratios: Sequence[GeometricRatio]) -> float:
        """exp(-variance) of the ratios; 1.0 for a constant series."""
        values = [r.ratio for r in ratios]
        return math.exp(-statistics.pvariance(values))

    def golden_alignment(self, ratios: Sequence[GeometricRatio]) -> float:
        return statistics.fmean(
            math.exp(-abs(r.ratio - self.golden_ratio)) * r.significance for r in ratios
        )
