"""Pydantic schemas for positions and cell geometry.

These models are the value types handed to renderers and written into save
records, so they stay immutable and serializable.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _require_finite_number(value: Any) -> Any:
    # bool is an int subclass; a coordinate of `true` is a malformed record
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("coordinate must be a number")
    if not math.isfinite(value):
        raise ValueError("coordinate must be finite")
    return value


class LatLng(BaseModel):
    """A geographic position in degrees."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lat: float = Field(..., description="Latitude in degrees")
    lng: float = Field(..., description="Longitude in degrees")

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _check_number(cls, value: Any) -> Any:
        return _require_finite_number(value)


class CellBounds(BaseModel):
    """Half-open geographic rectangle ``[south, north) x [west, east)``."""

    model_config = ConfigDict(frozen=True)

    south: float
    west: float
    north: float
    east: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat < self.north and self.west <= lng < self.east
