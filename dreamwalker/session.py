"""Mutable state of one running game session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .schemas import MovementMode, SaveState
from .world import CellMemory, LatLng, SpiritGenerator, spirit_value


@dataclass
class SessionState:
    """Player position, held spirit, and the cell overrides.

    Owned by the engine. A reset replaces the whole object instead of
    clearing fields one by one.
    """

    player: LatLng
    memory: CellMemory = field(default_factory=CellMemory)
    # None = empty-handed; otherwise the single spirit carried
    held_spirit: Optional[int] = None

    @classmethod
    def fresh(cls, player: LatLng, generator: SpiritGenerator = spirit_value) -> "SessionState":
        return cls(player=player, memory=CellMemory(generator))

    @classmethod
    def from_save_state(
        cls, saved: SaveState, generator: SpiritGenerator = spirit_value
    ) -> "SessionState":
        memory = CellMemory(generator)
        memory.load(saved.overrides)
        return cls(player=saved.player, memory=memory, held_spirit=saved.held_spirit)

    def to_save_state(self, movement_mode: MovementMode) -> SaveState:
        """Return an immutable snapshot; later mutations do not affect it."""
        return SaveState(
            player=self.player,
            held_spirit=self.held_spirit,
            overrides=self.memory.entries(),
            movement_mode=movement_mode,
        )
