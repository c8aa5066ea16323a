"""
Movement sources.

A movement controller proposes player positions through a single on_move
callback. It never snaps or validates: the engine does that. Two variants:

- ButtonMovementController: one cell per directional key press
- GeoMovementController: every update from a continuous PositionFeed

Exactly one controller is active at a time. The engine records which
variant is active next to the controller (ActiveMovement), so it never has
to inspect controller types.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .config import Config
from .logging_utils import log_debug, log_error
from .positioning import PositionFeed, PositionUnavailableError
from .schemas import MovementMode
from .world import LatLng

MoveCallback = Callable[[float, float], None]
UnavailableCallback = Callable[[PositionUnavailableError], None]

# key -> (lat steps, lng steps)
KEY_DIRECTIONS: Dict[str, Tuple[int, int]] = {
    "w": (1, 0),
    "up": (1, 0),
    "arrowup": (1, 0),
    "s": (-1, 0),
    "down": (-1, 0),
    "arrowdown": (-1, 0),
    "a": (0, -1),
    "left": (0, -1),
    "arrowleft": (0, -1),
    "d": (0, 1),
    "right": (0, 1),
    "arrowright": (0, 1),
}


class MovementController(ABC):
    """Common capability set of every movement source."""

    def __init__(self) -> None:
        self._callback: Optional[MoveCallback] = None

    def on_move(self, callback: MoveCallback) -> None:
        """Register the single receiver of proposed positions (replaces any previous one)."""
        self._callback = callback

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop emitting. Idempotent; no callback fires after this returns."""
        pass

    def _emit(self, lat: float, lng: float) -> None:
        if self._callback is not None:
            self._callback(lat, lng)


class ButtonMovementController(MovementController):
    """Turns directional key presses into one-cell position offsets."""

    def __init__(self, get_player_pos: Callable[[], LatLng], cell_size: Optional[float] = None):
        super().__init__()
        self.get_player_pos = get_player_pos
        self.cell_size = Config.CELL_SIZE_DEG if cell_size is None else cell_size
        self.active = False

    def start(self) -> None:
        self.active = True

    def stop(self) -> None:
        self.active = False

    def handle_key(self, key: str) -> bool:
        """Emit one proposed position for a recognized key.

        Returns True when a position was emitted. Unrecognized keys, or any
        key while stopped, emit nothing.
        """
        if not self.active or self._callback is None:
            return False
        direction = KEY_DIRECTIONS.get(key.strip().lower())
        if direction is None:
            log_debug(f"[Movement] Ignoring key {key!r}")
            return False

        d_lat, d_lng = direction
        pos = self.get_player_pos()
        self._emit(pos.lat + d_lat * self.cell_size, pos.lng + d_lng * self.cell_size)
        return True


class GeoMovementController(MovementController):
    """Forwards every update of a continuous position feed.

    Each start() gets a fresh subscription token. Updates arriving for a
    token that is no longer current (after stop(), or from a previous
    start()) are dropped, so a feed that delivers late cannot move the
    player after a mode switch.
    """

    def __init__(
        self,
        feed: Optional[PositionFeed],
        *,
        on_unavailable: Optional[UnavailableCallback] = None,
    ):
        super().__init__()
        self.feed = feed
        self.on_unavailable = on_unavailable
        self._watch_id: Optional[int] = None
        self._token: Optional[object] = None

    @property
    def watching(self) -> bool:
        return self._watch_id is not None

    def start(self) -> None:
        if self.watching:
            return
        if self.feed is None or not self.feed.available:
            self._report(PositionUnavailableError("geolocation is not supported on this device"))
            return

        token = object()
        self._token = token
        self._watch_id = self.feed.watch(
            lambda lat, lng: self._deliver(token, lat, lng),
            lambda error: self._fail(token, error),
        )

    def stop(self) -> None:
        watch_id, self._watch_id = self._watch_id, None
        self._token = None
        if watch_id is not None and self.feed is not None:
            self.feed.clear_watch(watch_id)

    def _deliver(self, token: object, lat: float, lng: float) -> None:
        if token is not self._token:
            log_debug("[Movement] Dropping stale position update")
            return
        self._emit(lat, lng)

    def _fail(self, token: object, error: PositionUnavailableError) -> None:
        if token is not self._token:
            return
        self._report(error)

    def _report(self, error: PositionUnavailableError) -> None:
        log_error(f"[Movement] GPS error: {error.reason}")
        if self.on_unavailable is not None:
            self.on_unavailable(error)


@dataclass(frozen=True)
class ActiveMovement:
    """The running controller together with the mode it implements."""

    mode: MovementMode
    controller: MovementController
