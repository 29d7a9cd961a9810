"""
Detection backends.

Both backends run the same pure building blocks: ratio slots, structural
windows, harmonic swing windows and retracement swing triples. Each block
depends only on its own slice of input, so the parallel backend splits every
stage into chunks, runs them on a thread pool and concatenates the chunk
results in chunk order. The merged output equals the sequential output.
"""

import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, List, NamedTuple, Optional, Sequence, TypeVar

from ..config import AnalysisConfig
from ..constants import HARMONIC_SWING_COUNT
from ..exceptions import AnalysisCancelledError, ComputeBackendError, InputError
from ..logger import get_logger
from ..models.market_data import GeometricRatio, PricePoint, SwingPoint
from ..models.patterns import Pattern
from ..patterns.harmonic import HarmonicMatcher
from ..patterns.ratio_calculator import RatioCalculator
from ..patterns.retracement import RetracementScanner
from ..patterns.structural import StructuralDetector
from ..patterns.swings import SwingExtractor

logger = get_logger(__name__)

T = TypeVar('T')

# Runs items [start, stop) of one stage
ChunkTask = Callable[[int, int], List[T]]


class BackendOutput(NamedTuple):
    """Ratios and unvalidated candidates produced by a backend."""
    ratios: List[GeometricRatio]
    candidates: List[Pattern]


def check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    """Raise AnalysisCancelledError when the caller has set ``cancel_event``."""
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelledError("Analysis cancelled by caller")


class ComputeBackend(ABC):
    """Base class for detection backends."""

    name = "base"
    accelerated = False

    def is_available(self) -> bool:
        return True

    def compute(
        self,
        prices: Sequence[PricePoint],
        config: Optional[AnalysisConfig] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> BackendOutput:
        """
        Compute ratios and every pattern candidate for a series.

        Candidates are ordered structural first (by start index), then
        harmonic, then retracement, each in swing order.

        Raises:
            InputError: Malformed prices
            ComputeBackendError: The backend failed for another reason
            AnalysisCancelledError: ``cancel_event`` was set
        """
        config = config or AnalysisConfig()
        if len(prices) < 2:
            return BackendOutput(ratios=[], candidates=[])

        calculator = RatioCalculator(golden_ratio=config.golden_ratio, tolerance=config.tolerance)
        ratios = self.run_stage(
            lambda start, stop: calculator.calculate_range(prices, start, stop),
            len(prices) - 1,
            cancel_event
        )

        detector = StructuralDetector(
            golden_ratio=config.golden_ratio,
            tolerance=config.tolerance,
            window_size=config.window_size
        )
        starts = detector.window_starts(len(ratios))
        raw = self.run_stage(
            lambda start, stop: detector.scan_starts(ratios, starts[start:stop]),
            len(starts),
            cancel_event
        )
        candidates = detector.merge(raw, ratios)

        swings = SwingExtractor().extract(prices)
        candidates.extend(self._harmonic_candidates(swings, config, cancel_event))
        if config.detect_retracements:
            candidates.extend(self._retracement_candidates(swings, config, cancel_event))

        logger.debug(
            f"{self.name} backend: {len(ratios)} ratios, {len(swings)} swings, "
            f"{len(candidates)} candidates"
        )
        return BackendOutput(ratios=ratios, candidates=candidates)

    @abstractmethod
    def run_stage(
        self,
        task: ChunkTask,
        total: int,
        cancel_event: Optional[threading.Event] = None
    ) -> List[T]:
        """Run ``task`` over items ``0..total`` and concatenate results in item order."""

    def _harmonic_candidates(
        self,
        swings: List[SwingPoint],
        config: AnalysisConfig,
        cancel_event: Optional[threading.Event]
    ) -> List[Pattern]:
        matcher = HarmonicMatcher(enforce_tolerance=config.enforce_template_tolerance)
        windows = max(0, len(swings) - HARMONIC_SWING_COUNT + 1)

        def task(start: int, stop: int) -> List[Pattern]:
            found = []
            for i in range(start, stop):
                candidate = matcher.match_window(swings[i:i + HARMONIC_SWING_COUNT])
                if candidate is not None:
                    found.append(candidate)
            return found

        return self.run_stage(task, windows, cancel_event)

    def _retracement_candidates(
        self,
        swings: List[SwingPoint],
        config: AnalysisConfig,
        cancel_event: Optional[threading.Event]
    ) -> List[Pattern]:
        scanner = RetracementScanner(tolerance=config.tolerance)
        triples = max(0, len(swings) - 2)

        def task(start: int, stop: int) -> List[Pattern]:
            found = []
            for i in range(start, stop):
                candidate = scanner.match_triple(*swings[i:i + 3])
                if candidate is not None:
                    found.append(candidate)
            return found

        return self.run_stage(task, triples, cancel_event)


class SequentialBackend(ComputeBackend):
    """Reference backend; runs every stage on the calling thread."""

    name = "sequential"
    accelerated = False

    def run_stage(self, task, total, cancel_event=None):
        check_cancelled(cancel_event)
        if total <= 0:
            return []
        return list(task(0, total))


class ParallelBackend(ComputeBackend):
    """
    Thread pool backend.

    A fresh executor is created for every ``compute`` stage and shut down
    before the stage returns, so no worker threads outlive a call.
    """

    name = "parallel"
    accelerated = True

    def __init__(
        self,
        max_workers: int = 4,
        chunk_size: int = 256,
        executor_factory: Optional[Callable[..., Executor]] = None
    ):
        """
        Initialize backend.

        Args:
            max_workers: Worker threads per executor
            chunk_size: Items of a stage handled by one task
            executor_factory: Callable accepting ``max_workers`` and returning
                an Executor, defaults to ThreadPoolExecutor
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self.max_workers = max_workers
        self.chunk_size = chunk_size
        self.executor_factory = executor_factory or ThreadPoolExecutor

    def is_available(self) -> bool:
        """True when an executor can be created."""
        try:
            executor = self.executor_factory(max_workers=1)
        except (RuntimeError, OSError) as e:
            logger.warning(f"Parallel backend unavailable: {e}")
            return False
        executor.shutdown(wait=False)
        return True

    def chunks(self, total: int) -> List[range]:
        return [
            range(start, min(start + self.chunk_size, total))
            for start in range(0, total, self.chunk_size)
        ]

    def compute(self, prices, config=None, cancel_event=None):
        try:
            return super().compute(prices, config, cancel_event)
        except (InputError, AnalysisCancelledError, ComputeBackendError):
            raise
        except Exception as e:
            raise ComputeBackendError(f"Parallel backend failed: {e}") from e

    def run_stage(self, task, total, cancel_event=None):
        check_cancelled(cancel_event)
        if total <= 0:
            return []

        chunks = self.chunks(total)
        try:
            executor = self.executor_factory(max_workers=min(self.max_workers, len(chunks)))
        except (RuntimeError, OSError) as e:
            raise ComputeBackendError(f"Could not start worker pool: {e}") from e

        results: List = []
        with executor:
            futures = [executor.submit(task, chunk.start, chunk.stop) for chunk in chunks]
            try:
                for future in futures:
                    check_cancelled(cancel_event)
                    results.extend(future.result())
            except BaseException:
                for future in futures:
                    future.cancel()
                raise
        return results
