"""
Compute Backends

Interchangeable executors for the detection stage. The parallel backend
must produce output identical to the sequential one.
"""

from .backends import (
    BackendOutput,
    ComputeBackend,
    ParallelBackend,
    SequentialBackend,
    check_cancelled,
)

__all__ = [
    "BackendOutput",
    "ComputeBackend",
    "ParallelBackend",
    "SequentialBackend",
    "check_cancelled",
]
