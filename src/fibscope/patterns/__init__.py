"""
Pattern Recognition Module

Detectors that turn a price series into pattern candidates:

- RatioCalculator: consecutive price ratios with significance weights
- TemplateCatalog: harmonic templates and expected ratio sets
- StructuralDetector: golden spiral and Fibonacci extension windows
- SwingExtractor: alternating swing highs and lows
- HarmonicMatcher: Gartley, Butterfly, Bat and Crab XABCD matching
- RetracementScanner: Fibonacci retracements between swings
- SeriesConfidenceCalculator: series-level golden ratio confidence
"""

from .ratio_calculator import RatioCalculator
from .templates import TemplateCatalog, DEFAULT_TEMPLATES
from .structural import StructuralDetector
from .swings import SwingExtractor
from .harmonic import HarmonicMatcher
from .retracement import RetracementScanner, nearest_level
from .confidence import SeriesConfidenceCalculator

__all__ = [
    "RatioCalculator",
    "TemplateCatalog",
    "DEFAULT_TEMPLATES",
    "StructuralDetector",
    "SwingExtractor",
    "HarmonicMatcher",
    "RetracementScanner",
    "nearest_level",
    "SeriesConfidenceCalculator",
]
