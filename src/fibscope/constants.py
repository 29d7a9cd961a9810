"""Numeric constants shared across the pattern engine."""

import math

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2  # 1.618033988749895

# Extension pair checked by the structural detector
FIBONACCI_EXTENSION_PAIR = (1.618, 2.618)

# Canonical retracement levels
FIBONACCI_LEVELS = (0.236, 0.382, 0.5, 0.618, 0.786)

# Significance weighting
SIGNIFICANCE_MOVE_PIVOT = 0.05
SIGNIFICANCE_STEEPNESS = 10.0
SIGNIFICANCE_MOVE_WEIGHT = 0.7
SIGNIFICANCE_GOLDEN_WEIGHT = 0.3
SIGNIFICANCE_THRESHOLD = 0.5

MIN_GOLDEN_RATIOS_PER_WINDOW = 3
MIN_STRUCTURAL_RATIOS = 3
HARMONIC_SWING_COUNT = 5

SHORT_MA_PERIOD = 20
LONG_MA_PERIOD = 50

NEUTRAL_SCORE = 0.5

# Minimum score per validation metric for a pattern to be accepted
VALIDATION_THRESHOLDS = {
    'ratio_accuracy': 0.85,
    'price_structure': 0.75,
    'time_symmetry': 0.70,
    'volume_confirmation': 0.65,
    'trend_consistency': 0.80,
}
