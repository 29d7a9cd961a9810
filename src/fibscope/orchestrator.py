"""
Analysis Orchestrator

Drives one analysis through its stages:

    IDLE -> FINGERPRINTING -> CACHE_CHECK -> CACHE_HIT -> DONE
                                          -> CACHE_MISS -> DETECTING
                                             -> VALIDATING -> CACHING -> DONE

The cache stages are skipped when caching is disabled. Detection prefers the
parallel backend and falls back to the sequential one when it fails. Only
validated candidates are returned.
"""

import statistics
import threading
import time
from typing import List, Optional, Sequence, Tuple

from .cache import ResultCache, fingerprint
from .compute.backends import (
    BackendOutput,
    ComputeBackend,
    ParallelBackend,
    SequentialBackend,
    check_cancelled,
)
from .config import AnalysisConfig, Config
from .exceptions import CacheError, ComputeBackendError, InputError, InputErrorKind
from .logger import get_analysis_adapter, get_logger
from .models.market_data import PricePoint
from .models.patterns import Pattern
from .models.results import AnalysisResult, AnalysisState, CacheEntry, SeriesConfidence
from .pattern_validation import PatternValidator
from .patterns.confidence import SeriesConfidenceCalculator

logger = get_logger(__name__)


class AnalysisOrchestrator:
    """Runs detection, validation and caching for price series."""

    def __init__(
        self,
        cache: Optional[ResultCache] = None,
        config: Optional[Config] = None,
        sequential: Optional[ComputeBackend] = None,
        parallel: Optional[ComputeBackend] = None,
        validator: Optional[PatternValidator] = None
    ):
        """
        Initialize orchestrator.

        Args:
            cache: Caller-owned result cache, None disables caching
            config: Engine configuration, defaults to Config()
            sequential: Fallback backend
            parallel: Preferred backend
            validator: Candidate validator
        """
        self.config = config or Config()
        self.cache = cache
        self.sequential = sequential or SequentialBackend()
        self.parallel = parallel or ParallelBackend(
            max_workers=self.config.backend.max_workers,
            chunk_size=self.config.backend.chunk_size
        )
        self.validator = validator or PatternValidator()

    def analyze(
        self,
        prices: Sequence[PricePoint],
        config: Optional[AnalysisConfig] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> AnalysisResult:
        """
        Analyze a price series.

        Args:
            prices: Series ordered by timestamp
            config: Per-call options, defaults to the engine's analysis config
            cancel_event: Set by the caller to abandon the analysis

        Returns:
            AnalysisResult with accepted patterns and the visited stages

        Raises:
            InputError: Malformed prices
            AnalysisCancelledError: ``cancel_event`` was set before completion
        """
        options = config or self.config.analysis
        started = time.perf_counter()
        stages = [AnalysisState.IDLE]
        prices = list(prices)

        if len(prices) < 2:
            stages.append(AnalysisState.DONE)
            return AnalysisResult(
                elapsed_ms=self._elapsed_ms(started),
                timestamp=self._now_ms(),
                stages=stages
            )

        self.check_timestamps(prices, options)
        check_cancelled(cancel_event)

        stages.append(AnalysisState.FINGERPRINTING)
        key = fingerprint(prices, options, self.config.cache.fingerprint_window)
        log = get_analysis_adapter(logger, key)

        use_cache = options.use_cache and self.cache is not None
        if use_cache:
            stages.append(AnalysisState.CACHE_CHECK)
            entry = self._cache_get(key, log)
            if entry is not None:
                stages.extend([AnalysisState.CACHE_HIT, AnalysisState.DONE])
                log.debug(f"Cache hit with {len(entry.patterns)} patterns")
                return self._build_result(
                    patterns=entry.patterns,
                    started=started,
                    accelerated=entry.accelerated,
                    cache_hit=True,
                    key=key,
                    stages=stages,
                    series_confidence=entry.series_confidence
                )
            stages.append(AnalysisState.CACHE_MISS)

        stages.append(AnalysisState.DETECTING)
        output, accelerated = self._detect(prices, options, cancel_event, log)
        check_cancelled(cancel_event)

        stages.append(AnalysisState.VALIDATING)
        patterns = self.validate_candidates(output.candidates, prices, options)
        series_confidence = SeriesConfidenceCalculator(golden_ratio=options.golden_ratio).calculate(
            output.ratios
        )
        log.debug(f"Accepted {len(patterns)} of {len(output.candidates)} candidates")
        check_cancelled(cancel_event)

        if use_cache:
            stages.append(AnalysisState.CACHING)
            self._cache_set(
                key,
                CacheEntry(
                    fingerprint=key,
                    patterns=patterns,
                    created_at=self.cache.now_ms(),
                    accelerated=accelerated,
                    series_confidence=series_confidence
                ),
                log
            )

        stages.append(AnalysisState.DONE)
        return self._build_result(
            patterns=patterns,
            started=started,
            accelerated=accelerated,
            cache_hit=False,
            key=key,
            stages=stages,
            series_confidence=series_confidence
        )

    def validate_candidates(
        self,
        candidates: Sequence[Pattern],
        prices: Sequence[PricePoint],
        config: Optional[AnalysisConfig] = None
    ) -> List[Pattern]:
        """Finalize every candidate and keep those whose metrics pass."""
        options = config or self.config.analysis
        validator = self.validator
        if validator.golden_ratio != options.golden_ratio:
            validator = PatternValidator(catalog=validator.catalog, golden_ratio=options.golden_ratio)

        finalized = validator.finalize_all(candidates, prices)
        accepted = []
        for pattern in finalized:
            metrics = pattern.metadata.validation
            if metrics is not None and metrics.is_valid:
                accepted.append(pattern)
            else:
                logger.debug(
                    f"Rejected {pattern.kind.value} [{pattern.start_index}, {pattern.end_index}]: "
                    f"{metrics.failed_metrics if metrics else 'not validated'}"
                )
        return accepted

    @staticmethod
    def check_timestamps(prices: Sequence[PricePoint], config: AnalysisConfig) -> None:
        """Reject decreasing timestamps when ordering is required; duplicates are allowed."""
        if not config.require_ordered_timestamps:
            return
        for i in range(1, len(prices)):
            if prices[i].timestamp < prices[i - 1].timestamp:
                raise InputError(
                    f"Timestamp at index {i} ({prices[i].timestamp}) precedes "
                    f"the previous one ({prices[i - 1].timestamp})",
                    kind=InputErrorKind.NON_MONOTONIC_TIMESTAMPS,
                    index=i
                )

    def _detect(
        self,
        prices: List[PricePoint],
        options: AnalysisConfig,
        cancel_event: Optional[threading.Event],
        log
    ) -> Tuple[BackendOutput, bool]:
        if options.prefer_parallel and self.parallel.is_available():
            try:
                return self.parallel.compute(prices, options, cancel_event), self.parallel.accelerated
            except ComputeBackendError as e:
                log.warning(f"Parallel backend failed, falling back to sequential: {e}")

        return self.sequential.compute(prices, options, cancel_event), self.sequential.accelerated

    def _cache_get(self, key: str, log) -> Optional[CacheEntry]:
        try:
            return self.cache.get(key)
        except CacheError as e:
            log.warning(f"Cache read failed, treating as miss: {e}")
            return None

    def _cache_set(self, key: str, entry: CacheEntry, log) -> None:
        try:
            self.cache.set(key, entry)
        except CacheError as e:
            log.warning(f"Cache write failed, result not cached: {e}")

    def _build_result(
        self,
        patterns: List[Pattern],
        started: float,
        accelerated: bool,
        cache_hit: bool,
        key: str,
        stages: List[AnalysisState],
        series_confidence: Optional[SeriesConfidence]
    ) -> AnalysisResult:
        confidence = statistics.fmean(p.confidence for p in patterns) if patterns else 0.0
        return AnalysisResult(
            patterns=list(patterns),
            confidence=min(1.0, max(0.0, confidence)),
            elapsed_ms=self._elapsed_ms(started),
            accelerated=accelerated,
            timestamp=self._now_ms(),
            cache_hit=cache_hit,
            fingerprint=key,
            stages=list(stages),
            series_confidence=series_confidence
        )

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return max(0.0, (time.perf_counter() - started) * 1000.0)

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)


def analyze(
    prices: Sequence[PricePoint],
    config: Optional[AnalysisConfig] = None,
    cache: Optional[ResultCache] = None
) -> AnalysisResult:
    """Analyze ``prices`` with a default orchestrator."""
    return AnalysisOrchestrator(cache=cache).analyze(prices, config)
