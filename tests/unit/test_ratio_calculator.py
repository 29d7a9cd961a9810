"""
Tests for geometric ratio calculation.
"""

import pytest

from fibscope.constants import GOLDEN_RATIO
from fibscope.exceptions import InputError, InputErrorKind
from fibscope.models.market_data import PricePoint
from fibscope.patterns.ratio_calculator import RatioCalculator


class TestRatioCalculation:
    """Test ratio values and counts."""

    def test_n_prices_yield_n_minus_one_ratios(self, golden_prices):
        """Test that every adjacent pair produces one ratio."""
        ratios = RatioCalculator().calculate(golden_prices)

        assert len(ratios) == len(golden_prices) - 1
        assert ratios[0].ratio == pytest.approx(1.618)
        assert ratios[1].ratio == pytest.approx(261.8 / 161.8)
        assert ratios[2].ratio == pytest.approx(423.6 / 261.8)

    def test_ratio_timestamp_is_later_point(self):
        """Test that a ratio carries the timestamp of its later price."""
        prices = PricePoint.series([10.0, 20.0], start=1000, step=60)
        ratios = RatioCalculator().calculate(prices)

        assert ratios[0].timestamp == 1060

    @pytest.mark.parametrize("values", [[], [100.0]])
    def test_short_series_yield_no_ratios(self, values):
        """Test that fewer than two prices produce no ratios."""
        assert RatioCalculator().calculate(PricePoint.series(values)) == []

    def test_calculate_range_matches_full_calculation(self, wave_prices):
        """Test that disjoint ranges concatenate to the full result."""
        calculator = RatioCalculator()
        full = calculator.calculate(wave_prices)
        pieces = (
            calculator.calculate_range(wave_prices, 0, 40)
            + calculator.calculate_range(wave_prices, 40, 90)
            + calculator.calculate_range(wave_prices, 90, len(wave_prices) - 1)
        )

        assert pieces == full

    def test_invalid_tolerance(self):
        """Test that a non-positive tolerance is rejected."""
        with pytest.raises(ValueError):
            RatioCalculator(tolerance=0.0)


class TestRatioErrors:
    """Test malformed input handling."""

    def test_zero_denominator_raises(self):
        """Test that a zero price feeding a division is reported."""
        prices = PricePoint.series([100.0, 0.0, 50.0])

        with pytest.raises(InputError) as exc_info:
            RatioCalculator().calculate(prices)

        assert exc_info.value.kind == InputErrorKind.DIVISION_BY_ZERO
        assert exc_info.value.index == 1

    def test_negative_price_raises(self):
        """Test that negative prices are rejected."""
        prices = PricePoint.series([100.0, -5.0, 50.0])

        with pytest.raises(InputError) as exc_info:
            RatioCalculator().calculate(prices)

        assert exc_info.value.kind == InputErrorKind.NON_POSITIVE_PRICE
        assert exc_info.value.index == 1

    def test_input_error_is_value_error(self):
        """Test that InputError can be handled as a ValueError."""
        with pytest.raises(ValueError):
            RatioCalculator().calculate(PricePoint.series([0.0, 1.0]))


class TestSignificance:
    """Test significance weighting."""

    def test_significance_in_unit_interval(self, wave_prices):
        """Test that every significance lies in [0, 1]."""
        for ratio in RatioCalculator().calculate(wave_prices):
            assert 0.0 <= ratio.significance <= 1.0

    def test_golden_step_is_significant(self):
        """Test that a large golden ratio move scores high."""
        calculator = RatioCalculator()
        score = calculator.significance(100.0, 100.0 * GOLDEN_RATIO, GOLDEN_RATIO)

        assert score > 0.9

    def test_flat_step_is_insignificant(self):
        """Test that an unchanged price scores low."""
        score = RatioCalculator().significance(100.0, 100.0, 1.0)

        assert score < 0.5

    def test_volume_weight(self):
        """Test the volume weight rules."""
        assert RatioCalculator.volume_weight(None, 100.0) == 1.0
        assert RatioCalculator.volume_weight(100.0, 0.0) == 1.0
        assert RatioCalculator.volume_weight(100.0, 200.0) == 1.0
        assert RatioCalculator.volume_weight(100.0, 50.0) == pytest.approx(0.75)

    def test_drying_volume_reduces_significance(self):
        """Test that falling volume lowers the weight of a move."""
        calculator = RatioCalculator()
        without_volume = calculator.significance(100.0, 161.8, 1.618)
        drying_volume = calculator.significance(100.0, 161.8, 1.618, 1000.0, 100.0)

        assert drying_volume < without_volume
