"""
Pattern Models

Pydantic models describing detected patterns and the evidence behind them:
- PatternKind: closed enumeration of every pattern the engine can emit
- PatternTemplate: expected leg ratios of a named harmonic pattern
- ValidationMetrics: the five quality scores and the acceptance decision
- PatternMetadata: observed ratios, spans and validation of a pattern
- Pattern: a candidate or accepted pattern over a span of the price series
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from ..constants import VALIDATION_THRESHOLDS


class PatternKind(str, Enum):
    """Pattern kind enumeration."""
    GOLDEN_SPIRAL = "golden_spiral"
    FIBONACCI_RETRACEMENT = "fibonacci_retracement"
    FIBONACCI_EXTENSION = "fibonacci_extension"
    HARMONIC_GARTLEY = "harmonic_gartley"
    HARMONIC_BUTTERFLY = "harmonic_butterfly"
    HARMONIC_BAT = "harmonic_bat"
    HARMONIC_CRAB = "harmonic_crab"
    NO_PATTERN = "no_pattern"

    @property
    def is_harmonic(self) -> bool:
        return self in _HARMONIC_KINDS

    @property
    def is_structural(self) -> bool:
        return self in (PatternKind.GOLDEN_SPIRAL, PatternKind.FIBONACCI_EXTENSION)

    @property
    def display_name(self) -> str:
        return self.value.replace("harmonic_", "").replace("_", " ").title()


_HARMONIC_KINDS = frozenset({
    PatternKind.HARMONIC_GARTLEY,
    PatternKind.HARMONIC_BUTTERFLY,
    PatternKind.HARMONIC_BAT,
    PatternKind.HARMONIC_CRAB,
})


class PatternDirection(str, Enum):
    """Expected reversal direction of a pattern."""
    BULLISH = "bullish"
    BEARISH = "bearish"


class PatternTemplate(BaseModel):
    """
    Expected leg ratios of a named harmonic pattern.

    Ratios are ordered (AB, BC, CD, AD) where each leg is normalized by the
    leg before it and AD by the XA leg.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: PatternKind
    ratios: Tuple[float, float, float, float]
    tolerance: float = Field(default=0.05, gt=0.0, lt=1.0)

    @model_validator(mode='after')
    def validate_ratios(self):
        if any(r <= 0 for r in self.ratios):
            raise ValueError(f"Template {self.name} ratios must be positive: {self.ratios}")
        if not self.kind.is_harmonic:
            raise ValueError(f"Template {self.name} must describe a harmonic kind, got {self.kind}")
        return self


class ValidationMetrics(BaseModel):
    """
    Five independent quality scores of a pattern candidate.

    Metrics named in ``data_gaps`` could not be measured and hold the neutral
    substitute score; they are exempt from their threshold.
    """

    model_config = ConfigDict(frozen=True)

    ratio_accuracy: float = Field(..., ge=0.0, le=1.0)
    price_structure: float = Field(..., ge=0.0, le=1.0)
    time_symmetry: float = Field(..., ge=0.0, le=1.0)
    volume_confirmation: float = Field(..., ge=0.0, le=1.0)
    trend_consistency: float = Field(..., ge=0.0, le=1.0)
    data_gaps: Tuple[str, ...] = Field(default=())

    def scores(self) -> dict:
        """Metric name to score mapping."""
        return {name: getattr(self, name) for name in VALIDATION_THRESHOLDS}

    @computed_field
    @property
    def failed_metrics(self) -> List[str]:
        """Measured metrics below their acceptance threshold."""
        return [
            name for name, threshold in VALIDATION_THRESHOLDS.items()
            if name not in self.data_gaps and getattr(self, name) < threshold
        ]

    @computed_field
    @property
    def is_valid(self) -> bool:
        """True when every measured metric meets its threshold."""
        return not self.failed_metrics


class PatternMetadata(BaseModel):
    """Evidence attached to a pattern."""

    model_config = ConfigDict(frozen=True)

    ratios: List[float] = Field(default_factory=list, description="Observed ratios")
    price_range: Optional[Tuple[float, float]] = Field(
        None,
        description="Minimum and maximum price over the pattern span"
    )
    time_range: Optional[Tuple[int, int]] = Field(
        None,
        description="Timestamps of the first and last price in the span"
    )
    validation: Optional[ValidationMetrics] = None
    direction: Optional[PatternDirection] = None
    template: Optional[str] = None
    raw_confidence: float = Field(0.0, ge=0.0, le=1.0)


class Pattern(BaseModel):
    """Pattern found over a span of the price series."""

    model_config = ConfigDict(frozen=True)

    kind: PatternKind
    start_index: int = Field(..., ge=0)
    end_index: int = Field(..., ge=0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    points: List[int] = Field(default_factory=list)
    metadata: PatternMetadata = Field(default_factory=PatternMetadata)

    @model_validator(mode='after')
    def validate_span(self):
        if self.end_index < self.start_index:
            raise ValueError(
                f"end_index {self.end_index} precedes start_index {self.start_index}"
            )
        for point in self.points:
            if point < self.start_index or point > self.end_index:
                raise ValueError(
                    f"point {point} outside pattern span [{self.start_index}, {self.end_index}]"
                )
        return self

    def overlaps(self, other: "Pattern") -> bool:
        return self.start_index <= other.end_index and other.start_index <= self.end_index
