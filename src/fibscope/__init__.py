"""
fibscope: Fibonacci and Harmonic Pattern Recognition

Detects golden spiral, Fibonacci and harmonic (XABCD) patterns in price
series, validates every candidate on five quality metrics and caches
results by series fingerprint.
"""

__version__ = "0.1.0"
__author__ = "Fibscope Team"
__description__ = "Fibonacci and Harmonic Pattern Recognition"

# Package-level imports for convenience
from .cache import ResultCache, fingerprint
from .config import AnalysisConfig, Config
from .exceptions import (
    AnalysisCancelledError,
    CacheError,
    ComputeBackendError,
    FibscopeError,
    InputError,
    InputErrorKind,
)
from .logger import get_logger
from .models import (
    AnalysisResult,
    Pattern,
    PatternKind,
    PricePoint,
)
from .orchestrator import AnalysisOrchestrator, analyze

__all__ = [
    "AnalysisConfig",
    "AnalysisOrchestrator",
    "AnalysisResult",
    "AnalysisCancelledError",
    "CacheError",
    "ComputeBackendError",
    "Config",
    "FibscopeError",
    "InputError",
    "InputErrorKind",
    "Pattern",
    "PatternKind",
    "PricePoint",
    "ResultCache",
    "analyze",
    "fingerprint",
    "get_logger",
    "__version__",
]
