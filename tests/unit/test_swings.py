"""
Tests for swing point extraction.
"""

from fibscope.models.market_data import PricePoint, SwingKind
from fibscope.patterns.swings import SwingExtractor


class TestSwingExtractor:
    """Test local extrema detection."""

    def test_alternating_extrema(self):
        """Test that strict highs and lows are found in order."""
        swings = SwingExtractor().extract(PricePoint.series([1.0, 3.0, 2.0, 4.0, 1.0]))

        assert [s.index for s in swings] == [1, 2, 3]
        assert [s.kind for s in swings] == [SwingKind.HIGH, SwingKind.LOW, SwingKind.HIGH]
        assert [s.price for s in swings] == [3.0, 2.0, 4.0]

    def test_plateau_is_skipped(self):
        """Test that equal neighbours do not form a swing."""
        swings = SwingExtractor().extract(PricePoint.series([1.0, 3.0, 3.0, 1.0]))

        assert swings == []

    def test_same_side_swing_is_skipped(self):
        """Test that two highs in a row keep only the first."""
        swings = SwingExtractor().extract(PricePoint.series([1.0, 3.0, 2.0, 2.0, 4.0, 1.0]))

        assert [s.index for s in swings] == [1]
        assert swings[0].kind == SwingKind.HIGH

    def test_monotonic_series_has_no_swings(self, golden_prices):
        """Test that a steadily rising series has no swings."""
        assert SwingExtractor().extract(golden_prices) == []

    def test_endpoints_are_never_swings(self):
        """Test that the first and last prices are not classified."""
        swings = SwingExtractor().extract(PricePoint.series([5.0, 1.0]))

        assert swings == []

    def test_gartley_swings(self, gartley_prices):
        """Test that the synthetic XABCD series yields its five swings."""
        swings = SwingExtractor().extract(gartley_prices)

        assert [s.index for s in swings] == [1, 2, 3, 4, 5]
        assert swings[0].kind == SwingKind.LOW
        assert swings[-1].kind == SwingKind.LOW

    def test_classify(self):
        """Test single point classification."""
        assert SwingExtractor.classify(1.0, 2.0, 1.0) == SwingKind.HIGH
        assert SwingExtractor.classify(2.0, 1.0, 2.0) == SwingKind.LOW
        assert SwingExtractor.classify(1.0, 2.0, 3.0) is None
