"""
fibscope Models Package

Data models for price series, detected patterns and analysis results.
"""

from .market_data import (
    PricePoint,
    GeometricRatio,
    SwingPoint,
    SwingKind
)

from .patterns import (
    PatternKind,
    PatternDirection,
    PatternTemplate,
    ValidationMetrics,
    PatternMetadata,
    Pattern
)

from .results import (
    SeriesConfidence,
    AnalysisState,
    CacheEntry,
    AnalysisResult
)

__all__ = [
    "PricePoint",
    "GeometricRatio",
    "SwingPoint",
    "SwingKind",
    "PatternKind",
    "PatternDirection",
    "PatternTemplate",
    "ValidationMetrics",
    "PatternMetadata",
    "Pattern",
    "SeriesConfidence",
    "AnalysisState",
    "CacheEntry",
    "AnalysisResult",
]
