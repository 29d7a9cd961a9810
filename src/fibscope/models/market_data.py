"""
Price Series Models

This module contains the Pydantic models for the raw and derived series the
engine works on:
- PricePoint: one observation of price, optional volume and timestamp
- GeometricRatio: ratio between adjacent prices with a significance weight
- SwingPoint: local extremum of the price series

All models are frozen; the engine never mutates ingested or derived data.
"""

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class PricePoint(BaseModel):
    """Single price observation."""

    model_config = ConfigDict(frozen=True)

    price: float = Field(..., description="Observed price", allow_inf_nan=False)
    volume: Optional[float] = Field(
        None,
        description="Traded volume, None when unavailable",
        ge=0.0,
        allow_inf_nan=False
    )
    timestamp: int = Field(..., description="Observation time in milliseconds")

    @property
    def has_volume(self) -> bool:
        return self.volume is not None and self.volume > 0

    @classmethod
    def series(
        cls,
        prices: Sequence[float],
        volumes: Optional[Sequence[Optional[float]]] = None,
        start: int = 0,
        step: int = 1
    ) -> List["PricePoint"]:
        """Build an evenly spaced series from plain numbers."""
        if volumes is not None and len(volumes) != len(prices):
            raise ValueError(
                f"volumes length {len(volumes)} does not match prices length {len(prices)}"
            )
        return [
            cls(
                price=price,
                volume=volumes[i] if volumes is not None else None,
                timestamp=start + i * step
            )
            for i, price in enumerate(prices)
        ]


class GeometricRatio(BaseModel):
    """Ratio of a price to its predecessor."""

    model_config = ConfigDict(frozen=True)

    ratio: float = Field(..., description="price[i+1] / price[i]")
    significance: float = Field(
        ...,
        description="Weight of this ratio (0-1)",
        ge=0.0,
        le=1.0
    )
    timestamp: int = Field(..., description="Timestamp of the later price")


class SwingKind(str, Enum):
    """Side of a swing point."""
    HIGH = "high"
    LOW = "low"


class SwingPoint(BaseModel):
    """Local maximum or minimum of the price series."""

    model_config = ConfigDict(frozen=True)

    price: float
    index: int = Field(..., ge=0, description="Index into the originating price series")
    kind: SwingKind
