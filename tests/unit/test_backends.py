"""
Tests for the sequential and parallel compute backends.
"""

import threading
from concurrent.futures import Executor

import pytest

from fibscope.compute.backends import ParallelBackend, SequentialBackend
from fibscope.config import AnalysisConfig
from fibscope.exceptions import (
    AnalysisCancelledError,
    ComputeBackendError,
    InputError,
    InputErrorKind,
)
from fibscope.models.market_data import PricePoint
from fibscope.models.patterns import PatternKind


class FailingExecutor(Executor):
    """Executor that refuses every task."""

    def __init__(self, max_workers=None):
        self.max_workers = max_workers

    def submit(self, fn, *args, **kwargs):
        raise RuntimeError("worker pool is broken")


def unavailable_executor(max_workers=None):
    raise RuntimeError("threads unavailable")


def signature(output):
    return [(c.kind, c.start_index, c.end_index, tuple(c.points)) for c in output.candidates]


class TestSequentialBackend:
    """Test the reference backend."""

    def test_golden_series(self, golden_prices):
        output = SequentialBackend().compute(golden_prices, AnalysisConfig())

        assert len(output.ratios) == 3
        assert [c.kind for c in output.candidates] == [PatternKind.GOLDEN_SPIRAL]

    def test_short_series(self):
        output = SequentialBackend().compute(PricePoint.series([100.0]))

        assert output.ratios == []
        assert output.candidates == []

    def test_gartley_series_candidates(self, gartley_prices):
        """Test that harmonic and retracement candidates follow structural ones."""
        output = SequentialBackend().compute(gartley_prices, AnalysisConfig())
        kinds = [c.kind for c in output.candidates]

        assert PatternKind.HARMONIC_GARTLEY in kinds
        assert kinds.count(PatternKind.FIBONACCI_RETRACEMENT) == 2

    def test_retracements_can_be_disabled(self, gartley_prices):
        config = AnalysisConfig(detect_retracements=False)
        output = SequentialBackend().compute(gartley_prices, config)

        assert PatternKind.FIBONACCI_RETRACEMENT not in [c.kind for c in output.candidates]

    def test_not_accelerated(self):
        assert SequentialBackend.accelerated is False
        assert SequentialBackend().is_available()


class TestParallelBackend:
    """Test the thread pool backend."""

    @pytest.mark.parametrize("chunk_size", [1, 7, 64, 1024])
    def test_equivalent_to_sequential(self, wave_prices, chunk_size):
        """Test that chunked output equals the sequential output."""
        config = AnalysisConfig()
        sequential = SequentialBackend().compute(wave_prices, config)
        parallel = ParallelBackend(max_workers=4, chunk_size=chunk_size).compute(wave_prices, config)

        assert parallel.ratios == sequential.ratios
        assert signature(parallel) == signature(sequential)
        for left, right in zip(parallel.candidates, sequential.candidates):
            assert left.confidence == pytest.approx(right.confidence, abs=1e-4)

    def test_wave_series_has_candidates(self, wave_prices):
        output = ParallelBackend(chunk_size=16).compute(wave_prices, AnalysisConfig())

        assert PatternKind.GOLDEN_SPIRAL in [c.kind for c in output.candidates]

    def test_chunks(self):
        backend = ParallelBackend(chunk_size=4)

        assert backend.chunks(10) == [range(0, 4), range(4, 8), range(8, 10)]
        assert backend.chunks(0) == []

    def test_input_error_propagates(self):
        """Test that malformed input is not turned into a backend failure."""
        prices = PricePoint.series([100.0 + i for i in range(30)] + [0.0, 50.0])

        with pytest.raises(InputError) as exc_info:
            ParallelBackend(chunk_size=5).compute(prices, AnalysisConfig())

        assert exc_info.value.kind == InputErrorKind.DIVISION_BY_ZERO
        assert exc_info.value.index == 30

    def test_failure_becomes_backend_error(self, wave_prices):
        backend = ParallelBackend(executor_factory=FailingExecutor)

        with pytest.raises(ComputeBackendError):
            backend.compute(wave_prices, AnalysisConfig())

    def test_unavailable_executor(self, wave_prices):
        backend = ParallelBackend(executor_factory=unavailable_executor)

        assert not backend.is_available()
        with pytest.raises(ComputeBackendError):
            backend.compute(wave_prices, AnalysisConfig())

    def test_cancellation(self, wave_prices):
        event = threading.Event()
        event.set()

        with pytest.raises(AnalysisCancelledError):
            ParallelBackend(chunk_size=8).compute(wave_prices, AnalysisConfig(), event)

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            ParallelBackend(max_workers=0)
        with pytest.raises(ValueError):
            ParallelBackend(chunk_size=0)

    def test_no_threads_left_behind(self, wave_prices):
        """Test that worker threads are released after each call."""
        before = threading.active_count()
        ParallelBackend(max_workers=4, chunk_size=8).compute(wave_prices, AnalysisConfig())

        assert threading.active_count() == before
