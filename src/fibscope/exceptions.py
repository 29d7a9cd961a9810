"""
Exception hierarchy for the fibscope pattern engine.

Only InputError is fatal to a single analysis call. Every other error is
recovered inside the engine:

- ComputeBackendError: the orchestrator falls back to the sequential backend
- ValidationDataGap: the validator substitutes a neutral score
- CacheError: the orchestrator proceeds as on a cache miss
"""

from enum import Enum
from typing import Optional


class FibscopeError(Exception):
    """Base exception for all fibscope errors."""
    pass


class InputErrorKind(str, Enum):
    """Classification of malformed input."""
    DIVISION_BY_ZERO = "division_by_zero"
    NON_POSITIVE_PRICE = "non_positive_price"
    NON_MONOTONIC_TIMESTAMPS = "non_monotonic_timestamps"


class InputError(FibscopeError, ValueError):
    """Raised when the price series cannot be analyzed as given."""

    def __init__(self, message: str, kind: InputErrorKind, index: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.index = index


class ComputeBackendError(FibscopeError):
    """Raised when a compute backend is unavailable or fails mid-computation."""
    pass


class ValidationDataGap(FibscopeError):
    """Raised by a validation metric whose required input is absent."""

    def __init__(self, metric: str, reason: str):
        super().__init__(f"{metric}: {reason}")
        self.metric = metric
        self.reason = reason


class CacheError(FibscopeError):
    """Raised when the result cache cannot store or read an entry."""
    pass


class AnalysisCancelledError(FibscopeError):
    """Raised when the caller cancels an analysis before it completes."""
    pass
