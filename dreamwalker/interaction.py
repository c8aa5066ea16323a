"""
Cell activation rules.

Given the held spirit and a cell's effective value, decide what an
activation does and apply it to the session:

    too far                          -> REJECT_TOO_FAR   (checked first, always)
    cell > 0, empty-handed           -> PICKUP   held := cell, cell := 0
    cell > 0, held == cell           -> MERGE    cell := 2 * cell, held := None
    cell == 0, holding               -> DROP     cell := held, held := None
    cell == 0, empty-handed          -> REJECT_EMPTY
    cell > 0, holding something else-> REJECT_MISMATCH

Rejections never raise and never mutate.
"""

from __future__ import annotations

from typing import Optional

from .config import Config
from .schemas import InteractionOutcome, InteractionResult
from .session import SessionState
from .world import CellGrid, CellIndex

TOO_FAR_MESSAGE = "That fragment is too far away."
EMPTY_MESSAGE = "Empty dream fragment."
MISMATCH_MESSAGE = "The spirits resist merging."
FROZEN_MESSAGE = "The dream is shifting..."


class InteractionRules:
    """Decides and applies activation outcomes.

    Subclasses can override the message helpers to change feedback text
    without touching the state machine.
    """

    def __init__(self, victory_value: Optional[int] = None, text_decimals: Optional[int] = None):
        self.victory_value = Config.VICTORY_VALUE if victory_value is None else victory_value
        self.text_decimals = Config.TEXT_DECIMALS if text_decimals is None else text_decimals

    def classify(
        self, *, near: bool, cell_value: int, held_spirit: Optional[int]
    ) -> InteractionOutcome:
        """Pure decision: which outcome applies to this activation."""
        if not near:
            return InteractionOutcome.REJECT_TOO_FAR
        if cell_value > 0 and held_spirit is None:
            return InteractionOutcome.PICKUP
        if cell_value > 0 and held_spirit == cell_value:
            return InteractionOutcome.MERGE
        if cell_value == 0 and held_spirit is not None:
            return InteractionOutcome.DROP
        if cell_value == 0:
            return InteractionOutcome.REJECT_EMPTY
        return InteractionOutcome.REJECT_MISMATCH

    def apply(self, session: SessionState, grid: CellGrid, i: int, j: int) -> InteractionResult:
        """Activate cell ``(i, j)`` and return the outcome with the post-state."""
        index = CellIndex(i, j)
        # Distance gate precedes every value-based branch
        if not grid.is_near(session.player, i, j):
            return self._result(session, index, InteractionOutcome.REJECT_TOO_FAR, TOO_FAR_MESSAGE)

        value = session.memory.get(i, j)
        outcome = self.classify(near=True, cell_value=value, held_spirit=session.held_spirit)

        if outcome is InteractionOutcome.PICKUP:
            session.memory.set(i, j, 0)
            session.held_spirit = value
            return self._result(session, index, outcome, self.pickup_message(value))

        if outcome is InteractionOutcome.MERGE:
            merged = value * 2
            session.memory.set(i, j, merged)
            session.held_spirit = None
            return self._result(
                session,
                index,
                outcome,
                self.merge_message(merged),
                victory=merged >= self.victory_value,
            )

        if outcome is InteractionOutcome.DROP:
            held = session.held_spirit
            session.memory.set(i, j, held)
            session.held_spirit = None
            return self._result(session, index, outcome, self.drop_message(grid, index, held))

        if outcome is InteractionOutcome.REJECT_EMPTY:
            return self._result(session, index, outcome, EMPTY_MESSAGE)

        return self._result(session, index, outcome, MISMATCH_MESSAGE)

    def frozen(self, session: SessionState, i: int, j: int) -> InteractionResult:
        """Result for an activation attempted while input is frozen."""
        return self._result(session, CellIndex(i, j), InteractionOutcome.INPUT_FROZEN, FROZEN_MESSAGE)

    def pickup_message(self, value: int) -> str:
        return f"💫 Picked up a spirit of value {value}."

    def merge_message(self, value: int) -> str:
        return f"⚡ Spirits merged! New value: {value}."

    def drop_message(self, grid: CellGrid, index: CellIndex, value: int) -> str:
        center = grid.cell_center(index.i, index.j)
        return (
            f"🌠 You placed a spirit of value {value} into "
            f"({center.lat:.{self.text_decimals}f}, {center.lng:.{self.text_decimals}f})."
        )

    def _result(
        self,
        session: SessionState,
        index: CellIndex,
        outcome: InteractionOutcome,
        message: str,
        *,
        victory: bool = False,
    ) -> InteractionResult:
        return InteractionResult(
            outcome=outcome,
            index=index,
            cell_value=session.memory.get(index.i, index.j),
            held_spirit=session.held_spirit,
            message=message,
            victory=victory,
        )
