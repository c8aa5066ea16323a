"""
Position feeds and starting-position providers.

A PositionFeed is the external source of real-world positions (a GPS
receiver, a browser bridge, a replay file). The engine never talks to a feed
directly: the continuous movement controller subscribes to it, and a
starting-position provider asks it for one fix with a timeout.
"""

from __future__ import annotations

import asyncio
import itertools
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from .config import Config
from .logging_utils import log_error, log_info
from .world import LatLng

PositionCallback = Callable[[float, float], None]
ErrorCallback = Callable[["PositionUnavailableError"], None]


class PositionUnavailableError(Exception):
    """Raised when no position can be obtained (no capability, denied, timed out)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Position unavailable: {reason}")


class PositionFeed(ABC):
    """Source of continuous position updates."""

    @property
    def available(self) -> bool:
        """False when the device has no positioning capability at all."""
        return True

    @abstractmethod
    def watch(self, on_position: PositionCallback, on_error: ErrorCallback) -> int:
        """Subscribe to updates and return a watch id for clear_watch()."""
        pass

    @abstractmethod
    def clear_watch(self, watch_id: int) -> None:
        """Cancel a subscription. Unknown ids are ignored."""
        pass

    @abstractmethod
    async def current_position(self) -> LatLng:
        """Return one position fix.

        Raises:
            PositionUnavailableError: If no fix can be produced
        """
        pass


class ManualPositionFeed(PositionFeed):
    """In-process feed driven by push() calls.

    Used by tests and the terminal demo to stand in for a GPS receiver.
    """

    def __init__(self, *, available: bool = True):
        self._available = available
        self._ids = itertools.count(1)
        self._watchers: Dict[int, Tuple[PositionCallback, ErrorCallback]] = {}
        self._last: Optional[LatLng] = None
        self._waiters: list[asyncio.Future[LatLng]] = []

    @property
    def available(self) -> bool:
        return self._available

    @property
    def watcher_count(self) -> int:
        return len(self._watchers)

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def watch(self, on_position: PositionCallback, on_error: ErrorCallback) -> int:
        watch_id = next(self._ids)
        self._watchers[watch_id] = (on_position, on_error)
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        self._watchers.pop(watch_id, None)

    def push(self, lat: float, lng: float) -> None:
        """Deliver a position to every watcher and any pending current_position() call."""
        self._last = LatLng(lat=lat, lng=lng)
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(self._last)
        # Copy: a callback may clear its own watch
        for on_position, _ in list(self._watchers.values()):
            on_position(lat, lng)

    def fail(self, reason: str) -> None:
        """Report an error (e.g. permission denied) to every watcher."""
        error = PositionUnavailableError(reason)
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)
        for _, on_error in list(self._watchers.values()):
            on_error(error)

    async def current_position(self) -> LatLng:
        if not self._available:
            raise PositionUnavailableError("positioning is not supported on this device")
        if self._last is not None:
            return self._last
        waiter: asyncio.Future[LatLng] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        finally:
            # A timed-out or cancelled caller must not leave its future behind
            if waiter in self._waiters:
                self._waiters.remove(waiter)


# =============================
# Starting position
# =============================

class StartingPositionProvider(ABC):
    """Supplies the player's position on first run and after a reset."""

    @abstractmethod
    async def acquire(self) -> LatLng:
        """Return a best-effort position. Never raises for unavailability."""
        pass


def default_origin() -> LatLng:
    return LatLng(lat=Config.ORIGIN_LAT, lng=Config.ORIGIN_LNG)


class FixedStartingPosition(StartingPositionProvider):
    """Always starts at the same place (defaults to the configured origin)."""

    def __init__(self, position: Optional[LatLng] = None):
        self.position = position or default_origin()

    async def acquire(self) -> LatLng:
        return self.position


class FeedStartingPosition(StartingPositionProvider):
    """Asks a feed for one fix, falling back to a fixed origin.

    Falls back when the feed is missing, reports an error, or does not answer
    within ``timeout`` seconds.
    """

    def __init__(
        self,
        feed: Optional[PositionFeed],
        *,
        fallback: Optional[LatLng] = None,
        timeout: Optional[float] = None,
    ):
        self.feed = feed
        self.fallback = fallback or default_origin()
        self.timeout = Config.POSITION_TIMEOUT_SECONDS if timeout is None else timeout

    async def acquire(self) -> LatLng:
        if self.feed is None or not self.feed.available:
            log_error("[Position] No positioning capability; starting at the default origin")
            return self.fallback
        try:
            position = await asyncio.wait_for(self.feed.current_position(), timeout=self.timeout)
        except asyncio.TimeoutError:
            log_error(
                f"[Position] No fix within {self.timeout}s; starting at the default origin"
            )
            return self.fallback
        except PositionUnavailableError as exc:
            log_error(f"[Position] {exc.reason}; starting at the default origin")
            return self.fallback
        log_info(f"[Position] Starting at ({position.lat}, {position.lng})")
        return position
