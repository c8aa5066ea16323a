"""
Pydantic schemas for Dreamwalker sessions.

Design Philosophy:
- Outcomes of a cell activation are values, not exceptions
- The save record is validated field by field before any of it is trusted
- Wire names (heldSpirit, movementMode) are aliases so Python code stays snake_case
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from dreamwalker.world import CellIndex, LatLng, parse_cell_key


# ============================================================================
# Movement
# ============================================================================


class MovementMode(str, Enum):
    """Which movement source drives the player."""

    GEO = "geo"        # continuous real-world tracking
    BUTTON = "button"  # discrete one-cell steps from directional input


# ============================================================================
# Interaction outcomes
# ============================================================================


class InteractionOutcome(str, Enum):
    """Result of activating a cell."""

    PICKUP = "pickup"
    MERGE = "merge"
    DROP = "drop"
    REJECT_TOO_FAR = "reject_too_far"
    # Empty-handed on an empty cell
    REJECT_EMPTY = "reject_empty"
    REJECT_MISMATCH = "reject_mismatch"
    # Victory sequence has input frozen
    INPUT_FROZEN = "input_frozen"

    @property
    def mutates(self) -> bool:
        return self in (InteractionOutcome.PICKUP, InteractionOutcome.MERGE, InteractionOutcome.DROP)


class InteractionResult(BaseModel):
    """Outcome of one activation plus the state it left behind."""

    outcome: InteractionOutcome
    index: CellIndex = Field(..., description="Activated cell")
    cell_value: int = Field(..., description="Effective cell value after the activation")
    held_spirit: Optional[int] = Field(None, description="Held spirit after the activation")
    message: str = Field(..., description="User-facing feedback text")
    victory: bool = Field(False, description="True when this merge reached the victory value")


# ============================================================================
# Save record
# ============================================================================


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    return value


class SaveState(BaseModel):
    """Complete durable snapshot of a session.

    Wire shape::

        {"player": {"lat": 37.0, "lng": -122.0},
         "heldSpirit": 2,
         "overrides": [["12,-7", {"value": 0}], ["12,-6", {"value": 8}]],
         "movementMode": "button"}

    Each override is a memento: the complete value of one cell. On load an
    override may also be a bare number (``["12,-7", 0]``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    player: LatLng
    held_spirit: Optional[int] = Field(..., alias="heldSpirit")
    overrides: List[Tuple[str, int]] = Field(...)
    movement_mode: MovementMode = Field(..., alias="movementMode")

    @field_validator("held_spirit", mode="before")
    @classmethod
    def _check_held_spirit(cls, value: Any) -> Any:
        if value is None:
            return None
        held = _require_int(value, "heldSpirit")
        if held <= 0:
            raise ValueError("heldSpirit must be positive or null")
        return held

    @field_validator("overrides", mode="before")
    @classmethod
    def _check_overrides(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            raise ValueError("overrides must be a list of [key, value] pairs")

        entries: List[Tuple[str, int]] = []
        for position, entry in enumerate(value):
            if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                raise ValueError(f"overrides[{position}] must be a [key, value] pair")
            key, raw = entry
            # Raises ValueError on malformed or non-canonical keys
            parse_cell_key(key)
            if isinstance(raw, dict):
                if set(raw) != {"value"}:
                    raise ValueError(f"overrides[{position}] memento must be {{'value': n}}")
                raw = raw["value"]
            cell_value = _require_int(raw, f"overrides[{position}] value")
            if cell_value < 0:
                raise ValueError(f"overrides[{position}] value cannot be negative")
            entries.append((key, cell_value))
        return entries

    @model_validator(mode="after")
    def _check_unique_keys(self) -> "SaveState":
        keys = [key for key, _ in self.overrides]
        if len(keys) != len(set(keys)):
            raise ValueError("overrides contain duplicate cell keys")
        return self

    @field_serializer("overrides")
    def _serialize_overrides(self, overrides: List[Tuple[str, int]]) -> List[List[Any]]:
        return [[key, {"value": value}] for key, value in overrides]
