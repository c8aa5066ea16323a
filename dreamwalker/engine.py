"""
Game engine.

Owns the running session and wires every collaborator together. All
dependencies are injected; each falls back to a Config-driven default.

Event flow:
1. A movement controller proposes (lat, lng) -> handle_move() snaps it to a
   cell center, diffs the nearby cell set, and persists
2. A renderer calls activate(i, j) -> InteractionRules decides and applies
   the outcome, mutations are persisted
3. A merge reaching the victory value freezes input and schedules the
   two-phase victory sequence, which ends in a full reset
4. new_game() resets immediately and pre-empts a pending victory reset

Everything runs on one event loop. Handlers run to completion; the only
awaits are starting-position acquisition and the victory delays.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, cast

from .config import Config
from .interaction import InteractionRules
from .logging_utils import (
    log_deterministic,
    log_debug,
    log_error,
    log_info,
    log_success,
    log_timer,
)
from .movement import (
    ActiveMovement,
    ButtonMovementController,
    GeoMovementController,
    MovementController,
)
from .persistence import GamePersistence, KeyValueSlot, PersistenceWriteError
from .positioning import (
    FixedStartingPosition,
    PositionFeed,
    PositionUnavailableError,
    StartingPositionProvider,
)
from .schemas import InteractionOutcome, InteractionResult, MovementMode, SaveState
from .session import SessionState
from .victory import NEW_DREAM_MESSAGE, VICTORY_MESSAGE, VictorySink
from .world import (
    CellBounds,
    CellGrid,
    CellIndex,
    CellMemory,
    CellView,
    LatLng,
    SpiritGenerator,
    describe_cells,
    render_ascii_window,
    sorted_cells,
    spirit_value,
)


# =============================
# Module-level Exceptions
# =============================

class SessionNotStartedError(Exception):
    """Raised when the engine is used before start() has completed."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: no session is running.\n\n"
            "Remediation tips:\n"
            "  - await engine.start() before wiring input to the engine"
        )


@dataclass(frozen=True)
class MoveUpdate:
    """Result of an accepted move."""

    position: LatLng
    entered: List[CellIndex]
    left: List[CellIndex]
    message: str


MoveListener = Callable[[MoveUpdate], None]


class GameEngine:
    """Single-player session engine."""

    def __init__(
        self,
        *,
        slot: Optional[KeyValueSlot] = None,
        grid: Optional[CellGrid] = None,
        generator: SpiritGenerator = spirit_value,
        rules: Optional[InteractionRules] = None,
        position_provider: Optional[StartingPositionProvider] = None,
        geo_feed: Optional[PositionFeed] = None,
        victory_sinks: Optional[List[VictorySink]] = None,
        move_listeners: Optional[List[MoveListener]] = None,
        win_message_seconds: Optional[float] = None,
        reset_delay_seconds: Optional[float] = None,
        default_movement_mode: Optional[MovementMode] = None,
    ):
        """Initialize the engine with all collaborators injected.

        Args:
            slot: Durable slot for the save record (defaults to a JsonFileSlot)
            grid: Grid geometry (defaults to Config cell size and radius)
            generator: Procedural spirit value function for untouched cells
            rules: Interaction rules (defaults to Config victory value)
            position_provider: Starting position source for first run and resets
            geo_feed: Continuous feed used when the movement mode is "geo"
            victory_sinks: Receivers of victory/reset notifications
            move_listeners: Callables receiving a MoveUpdate after each accepted move
            win_message_seconds: Duration of the first victory phase
            reset_delay_seconds: Delay from the victory merge to the full reset
            default_movement_mode: Movement mode of a fresh session
        """
        self.persistence = GamePersistence(slot)
        self.grid = grid or CellGrid()
        self.generator = generator
        self.rules = rules or InteractionRules()
        self.position_provider = position_provider or FixedStartingPosition()
        self.geo_feed = geo_feed
        self.victory_sinks = victory_sinks or []
        self.move_listeners = move_listeners or []
        self.win_message_seconds = (
            Config.WIN_MESSAGE_SECONDS if win_message_seconds is None else win_message_seconds
        )
        self.reset_delay_seconds = (
            Config.RESET_DELAY_SECONDS if reset_delay_seconds is None else reset_delay_seconds
        )
        self.default_movement_mode = default_movement_mode or MovementMode(Config.MOVEMENT_MODE)

        self.session: Optional[SessionState] = None
        self.movement: Optional[ActiveMovement] = None
        # Input is frozen until start() and during the victory sequence
        self.frozen = True
        # False while the last write to the slot failed
        self.durable = True
        self.last_movement_error: Optional[PositionUnavailableError] = None
        self._victory_task: Optional[asyncio.Task] = None
        self._reset_task: Optional[asyncio.Task] = None
        # Loop the session runs on; timers are scheduled here even from sync callers
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionState:
        """Restore the saved session or begin a fresh one, then start movement."""
        self._loop = asyncio.get_running_loop()
        saved = self.persistence.load()
        if saved is not None:
            session = SessionState.from_save_state(saved, self.generator)
            session.player = self.grid.snap_to_cell_center(saved.player.lat, saved.player.lng)
            mode = saved.movement_mode
            log_success(
                f"[Session] Restored save: {len(session.memory)} modified cells, "
                f"holding {session.held_spirit or 'nothing'}"
            )
        else:
            position = await self.position_provider.acquire()
            session = SessionState.fresh(
                self.grid.snap_to_cell_center(position.lat, position.lng), self.generator
            )
            mode = self.default_movement_mode
            log_info(f"[Session] New dream at ({session.player.lat}, {session.player.lng})")

        self.session = session
        self.frozen = False
        self.set_movement_mode(mode)
        return session

    async def stop(self) -> None:
        """Stop movement and cancel any pending victory sequence."""
        self._cancel_victory()
        if self.movement is not None:
            self.movement.controller.stop()
            self.movement = None

    async def new_game(self) -> None:
        """Reset immediately. Pre-empts a pending timer-driven reset.

        Overlapping requests share one reset, so sinks see a single on_reset().
        """
        self._cancel_victory()
        log_info("[Session] New game requested")
        await asyncio.shield(self._start_reset())

    # ------------------------------------------------------------------
    # Read access for renderers
    # ------------------------------------------------------------------

    @property
    def player(self) -> LatLng:
        return self._require_session("read the player position").player

    @property
    def held_spirit(self) -> Optional[int]:
        return self._require_session("read the held spirit").held_spirit

    @property
    def memory(self) -> CellMemory:
        return self._require_session("read cell values").memory

    @property
    def movement_mode(self) -> MovementMode:
        if self.movement is None:
            return self.default_movement_mode
        return self.movement.mode

    @property
    def victory_pending(self) -> bool:
        return self._victory_task is not None and not self._victory_task.done()

    def status_text(self) -> str:
        held = self.held_spirit
        if held:
            return f"✨ Holding spirit of value {held}."
        return "👐 Empty-handed."

    def visible_cells(self, viewport: CellBounds) -> List[CellView]:
        """Every cell intersecting ``viewport`` with its bounds, value, and proximity."""
        session = self._require_session("describe cells")
        return describe_cells(self.grid, session.memory, session.player, viewport)

    def nearby_cells(self) -> List[CellIndex]:
        return sorted_cells(self.grid.near_cells(self.player))

    def render_ascii(self, radius: int) -> str:
        session = self._require_session("render")
        return render_ascii_window(self.grid, session.memory, session.player, radius=radius)

    def snapshot(self) -> SaveState:
        return self._require_session("snapshot").to_save_state(self.movement_mode)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def activate(self, i: int, j: int) -> InteractionResult:
        """Activate cell ``(i, j)`` (a click on the map)."""
        session = self._require_session("activate a cell")
        if self.frozen:
            result = self.rules.frozen(session, i, j)
            log_debug(f"[Interaction] ({i}, {j}) ignored: input frozen")
            return result

        result = self.rules.apply(session, self.grid, i, j)
        log_deterministic(f"[Interaction] ({i}, {j}) -> {result.outcome.value}: {result.message}")

        if result.outcome.mutates:
            self._persist()
        if result.victory:
            self._begin_victory(result.cell_value)
        return result

    def handle_move(self, lat: float, lng: float) -> Optional[MoveUpdate]:
        """Accept a proposed position from the active movement source.

        Returns None when input is frozen or no session is running.
        """
        if self.session is None or self.frozen:
            log_debug(f"[Movement] Ignoring move to ({lat}, {lng}); input frozen")
            return None

        session = self.session
        before = self.grid.near_cells(session.player)
        position = self.grid.snap_to_cell_center(lat, lng)
        after = self.grid.near_cells(position)
        session.player = position

        decimals = self.rules.text_decimals
        update = MoveUpdate(
            position=position,
            entered=sorted_cells(after - before),
            left=sorted_cells(before - after),
            message=f"Dreamwalker moved to ({position.lat:.{decimals}f}, {position.lng:.{decimals}f}).",
        )
        log_deterministic(f"[Movement] {update.message}")
        self._persist()

        for listener in self.move_listeners:
            try:
                listener(update)
            except Exception as exc:
                log_error(f"[Movement] Listener failed: {exc}")
        return update

    def press_key(self, key: str) -> bool:
        """Route a directional key to the discrete-step controller, if it is active."""
        if self.movement is None or self.movement.mode is not MovementMode.BUTTON:
            return False
        controller = cast(ButtonMovementController, self.movement.controller)
        return controller.handle_key(key)

    def set_movement_mode(self, mode: MovementMode) -> None:
        """Switch movement sources. The old one is fully stopped before the new one starts."""
        mode = MovementMode(mode)
        if self.movement is not None and self.movement.mode is mode:
            return

        if self.movement is not None:
            self.movement.controller.stop()
            self.movement = None

        controller = self._build_controller(mode)
        controller.on_move(self.handle_move)
        self.movement = ActiveMovement(mode=mode, controller=controller)
        controller.start()
        log_info(f"[Movement] Mode: {mode.value}")
        self._persist()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_controller(self, mode: MovementMode) -> MovementController:
        if mode is MovementMode.GEO:
            return GeoMovementController(self.geo_feed, on_unavailable=self._on_movement_unavailable)
        return ButtonMovementController(lambda: self.player, self.grid.cell_size)

    def _on_movement_unavailable(self, error: PositionUnavailableError) -> None:
        # Non-fatal: the player stays at the last known position
        self.last_movement_error = error

    def _require_session(self, operation: str) -> SessionState:
        if self.session is None:
            raise SessionNotStartedError(operation)
        return self.session

    def _persist(self) -> None:
        """Write a full snapshot. Failure is logged; in-memory state stays authoritative."""
        if self.session is None:
            return
        try:
            self.persistence.save(self.session.to_save_state(self.movement_mode))
        except PersistenceWriteError as exc:
            if self.durable:
                log_error(f"[Persistence] {exc.underlying}; continuing without saving")
            self.durable = False
            return
        if not self.durable:
            log_success("[Persistence] Saving resumed")
        self.durable = True

    def _begin_victory(self, value: int) -> None:
        # Schedule first: if scheduling fails, input must not stay frozen
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._victory_timeline())
        task.add_done_callback(self._log_task_failure)
        self._victory_task = task
        self.frozen = True

        log_timer(f"[Victory] Spirit of value {value} reached the victory value")
        self._notify_sinks("on_victory", value)
        self._notify_phase(VICTORY_MESSAGE)

    async def _victory_timeline(self) -> None:
        await asyncio.sleep(self.win_message_seconds)
        self._notify_phase(NEW_DREAM_MESSAGE)
        await asyncio.sleep(max(0.0, self.reset_delay_seconds - self.win_message_seconds))
        # Shielded: a new_game() that cancels this timeline joins the same reset
        await asyncio.shield(self._start_reset())

    def _cancel_victory(self) -> None:
        task, self._victory_task = self._victory_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            log_timer("[Victory] Pending reset cancelled")

    def _notify_phase(self, message: str) -> None:
        log_timer(f"[Victory] {message}")
        self._notify_sinks("on_victory_phase", message)

    def _notify_sinks(self, hook: str, *args) -> None:
        for sink in self.victory_sinks:
            try:
                getattr(sink, hook)(*args)
            except Exception as exc:
                log_error(f"[Victory] {type(sink).__name__}.{hook} failed: {exc}")

    def _log_task_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_error(f"[Session] Background task failed: {exc!r}")

    def _start_reset(self) -> asyncio.Task:
        """Return the in-flight reset, starting one if none is running."""
        if self._reset_task is None or self._reset_task.done():
            loop = self._loop or asyncio.get_running_loop()
            self._reset_task = loop.create_task(self._reset())
            self._reset_task.add_done_callback(self._log_task_failure)
        else:
            log_debug("[Session] Reset already in progress; joining it")
        return self._reset_task

    async def _reset(self) -> None:
        """Replace the session wholesale, clear the save, and re-acquire a start."""
        self.frozen = True
        previous = self._require_session("reset")
        self.session = SessionState.fresh(previous.player, self.generator)
        try:
            self.persistence.clear()
        except PersistenceWriteError as exc:
            log_error(f"[Persistence] Could not clear save: {exc.underlying}")
            self.durable = False

        try:
            position = await self.position_provider.acquire()
        except Exception as exc:
            log_error(f"[Position] Starting position failed: {exc}; staying at the last position")
            position = previous.player
        self.session.player = self.grid.snap_to_cell_center(position.lat, position.lng)
        self.frozen = False
        log_success(f"[Session] A new dream begins at ({self.session.player.lat}, {self.session.player.lng})")
        self._notify_sinks("on_reset")

    def __repr__(self) -> str:
        if self.session is None:
            return "GameEngine(not started)"
        i, j = self.grid.to_cell_index(self.session.player.lat, self.session.player.lng)
        return (
            f"GameEngine(cell=({i}, {j}), held={self.session.held_spirit}, "
            f"overrides={len(self.session.memory)}, mode={self.movement_mode.value})"
        )


def outcome_counts(results: List[InteractionResult]) -> List[Tuple[InteractionOutcome, int]]:
    """Tally outcomes in enum order, skipping those that never occurred."""
    counts = {outcome: 0 for outcome in InteractionOutcome}
    for result in results:
        counts[result.outcome] += 1
    return [(outcome, count) for outcome, count in counts.items() if count]
