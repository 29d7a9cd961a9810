"""
Tests for price series models.
"""

import pytest
from pydantic import ValidationError

from fibscope.models.market_data import GeometricRatio, PricePoint, SwingKind, SwingPoint
from fibscope.models.results import AnalysisResult, AnalysisState
from fibscope.models.patterns import Pattern, PatternKind


class TestPricePoint:
    """Test PricePoint validation and helpers."""

    def test_series_helper(self):
        series = PricePoint.series([1.0, 2.0, 3.0], volumes=[10.0, None, 30.0], start=100, step=5)

        assert [p.timestamp for p in series] == [100, 105, 110]
        assert series[1].volume is None
        assert series[0].has_volume
        assert not series[1].has_volume

    def test_series_length_mismatch(self):
        with pytest.raises(ValueError):
            PricePoint.series([1.0, 2.0], volumes=[1.0])

    def test_non_finite_price_rejected(self):
        with pytest.raises(ValidationError):
            PricePoint(price=float("inf"), timestamp=0)
        with pytest.raises(ValidationError):
            PricePoint(price=float("nan"), timestamp=0)

    def test_negative_volume_rejected(self):
        with pytest.raises(ValidationError):
            PricePoint(price=1.0, volume=-1.0, timestamp=0)

    def test_zero_volume_is_not_volume(self):
        assert not PricePoint(price=1.0, volume=0.0, timestamp=0).has_volume

    def test_frozen(self):
        point = PricePoint(price=1.0, timestamp=0)

        with pytest.raises(ValidationError):
            point.price = 2.0


class TestDerivedModels:
    """Test ratio, swing and result models."""

    def test_significance_bounds(self):
        with pytest.raises(ValidationError):
            GeometricRatio(ratio=1.0, significance=1.5, timestamp=0)

    def test_swing_index_non_negative(self):
        with pytest.raises(ValidationError):
            SwingPoint(price=1.0, index=-1, kind=SwingKind.HIGH)

    def test_best_pattern(self):
        low = Pattern(kind=PatternKind.GOLDEN_SPIRAL, start_index=0, end_index=3, confidence=0.6)
        high = Pattern(kind=PatternKind.FIBONACCI_EXTENSION, start_index=1, end_index=4, confidence=0.9)
        result = AnalysisResult(patterns=[low, high], confidence=0.75, timestamp=0)

        assert result.has_patterns
        assert result.best_pattern() == high

    def test_empty_result(self):
        result = AnalysisResult(timestamp=0, stages=[AnalysisState.IDLE, AnalysisState.DONE])

        assert not result.has_patterns
        assert result.best_pattern() is None
        assert result.confidence == 0.0
