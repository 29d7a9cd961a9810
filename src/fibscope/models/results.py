"""
Analysis Result Models

- SeriesConfidence: series-level ratio quality score
- AnalysisState: stages of the orchestrator state machine
- CacheEntry: memoized analysis output owned by the result cache
- AnalysisResult: everything ``analyze`` returns to its caller
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .patterns import Pattern


class SeriesConfidence(BaseModel):
    """Series-level confidence built from the significant ratios."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(0.0, ge=0.0, le=1.0)
    ratio_stability: float = Field(0.0, ge=0.0, le=1.0)
    golden_alignment: float = Field(0.0, ge=0.0, le=1.0)
    avg_significance: float = Field(0.0, ge=0.0, le=1.0)
    significant_ratios: int = Field(0, ge=0)


class AnalysisState(str, Enum):
    """Orchestrator stages."""
    IDLE = "idle"
    FINGERPRINTING = "fingerprinting"
    CACHE_CHECK = "cache_check"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    DETECTING = "detecting"
    VALIDATING = "validating"
    CACHING = "caching"
    DONE = "done"


class CacheEntry(BaseModel):
    """Cached analysis output for one fingerprint."""

    model_config = ConfigDict(frozen=True)

    fingerprint: str
    patterns: List[Pattern] = Field(default_factory=list)
    created_at: int = Field(..., description="Creation time in milliseconds")
    accelerated: bool = False
    series_confidence: Optional[SeriesConfidence] = None


class AnalysisResult(BaseModel):
    """Result of one ``analyze`` call."""

    model_config = ConfigDict(frozen=True)

    patterns: List[Pattern] = Field(default_factory=list)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    elapsed_ms: float = Field(0.0, ge=0.0)
    accelerated: bool = False
    timestamp: int = Field(..., description="Completion time in milliseconds")
    cache_hit: bool = False
    fingerprint: Optional[str] = None
    stages: List[AnalysisState] = Field(default_factory=list)
    series_confidence: Optional[SeriesConfidence] = None

    @property
    def has_patterns(self) -> bool:
        return bool(self.patterns)

    def best_pattern(self) -> Optional[Pattern]:
        """Highest-confidence pattern, earliest first on ties."""
        best = None
        for pattern in self.patterns:
            if best is None or pattern.confidence > best.confidence:
                best = pattern
        return best
