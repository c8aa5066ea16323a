"""Coordinate system for the infinite spirit grid.

Maps continuous geographic positions onto integer cell indices and back.
Cell ``(i, j)`` covers ``[i*S, (i+1)*S) x [j*S, (j+1)*S)`` for cell size ``S``;
``floor`` is used everywhere so boundaries always bias toward negative infinity.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, NamedTuple, Set

from dreamwalker.config import Config

from .schemas import CellBounds, LatLng

_CELL_KEY_PATTERN = re.compile(r"^(-?\d+),(-?\d+)$")


class CellIndex(NamedTuple):
    """Integer identity of one grid cell."""

    i: int
    j: int


def cell_key(i: int, j: int) -> str:
    """Return the canonical ``"i,j"`` key used by the override store and saves."""
    return f"{i},{j}"


def parse_cell_key(key: str) -> CellIndex:
    """Parse a canonical ``"i,j"`` key. Raises ValueError on anything else."""
    match = _CELL_KEY_PATTERN.match(key) if isinstance(key, str) else None
    if match is None:
        raise ValueError(f"Malformed cell key: {key!r}")
    index = CellIndex(int(match.group(1)), int(match.group(2)))
    # "01,2" or "-0,3" would alias another key
    if cell_key(index.i, index.j) != key:
        raise ValueError(f"Non-canonical cell key: {key!r}")
    return index


@dataclass(frozen=True)
class CellGrid:
    """Grid geometry: cell size in degrees and the interaction radius in cells."""

    cell_size: float = field(default_factory=lambda: Config.CELL_SIZE_DEG)
    radius: int = field(default_factory=lambda: Config.RADIUS_CELLS)

    def __post_init__(self) -> None:
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if self.radius < 0:
            raise ValueError(f"radius cannot be negative, got {self.radius}")

    def to_cell_index(self, lat: float, lng: float) -> CellIndex:
        return CellIndex(math.floor(lat / self.cell_size), math.floor(lng / self.cell_size))

    def cell_bounds(self, i: int, j: int) -> CellBounds:
        south = i * self.cell_size
        west = j * self.cell_size
        return CellBounds(
            south=south,
            west=west,
            north=south + self.cell_size,
            east=west + self.cell_size,
        )

    def cell_center(self, i: int, j: int) -> LatLng:
        south = i * self.cell_size
        west = j * self.cell_size
        return LatLng(lat=south + self.cell_size / 2, lng=west + self.cell_size / 2)

    def snap_to_cell_center(self, lat: float, lng: float) -> LatLng:
        """Normalize an arbitrary position to the center of the cell containing it."""
        index = self.to_cell_index(lat, lng)
        return self.cell_center(index.i, index.j)

    def is_near(self, player: LatLng, i: int, j: int) -> bool:
        """Box test between the player position and the cell's south/west corner.

        Each axis is checked independently against ``radius * cell_size``, so
        diagonal neighbours at the same per-axis distance count as near. This is
        not a Euclidean radius.
        """
        limit = self.radius * self.cell_size
        dist_lat = abs(i * self.cell_size - player.lat)
        dist_lng = abs(j * self.cell_size - player.lng)
        return dist_lat <= limit and dist_lng <= limit

    def cells_in_bounds(self, viewport: CellBounds) -> Iterator[CellIndex]:
        """Yield every cell whose rectangle intersects ``viewport``, row by row."""
        start = self.to_cell_index(viewport.south, viewport.west)
        end = self.to_cell_index(viewport.north, viewport.east)
        for i in range(start.i, end.i + 1):
            for j in range(start.j, end.j + 1):
                yield CellIndex(i, j)

    def near_cells(self, player: LatLng) -> Set[CellIndex]:
        """Return the set of cells the player can currently interact with."""
        # Candidates one cell wider than the radius on every side; is_near decides.
        center = self.to_cell_index(player.lat, player.lng)
        span = range(-self.radius - 1, self.radius + 2)
        return {
            CellIndex(center.i + di, center.j + dj)
            for di in span
            for dj in span
            if self.is_near(player, center.i + di, center.j + dj)
        }

    def viewport_around(self, player: LatLng, cells: int) -> CellBounds:
        """Return a square viewport extending ``cells`` cells around the player's cell."""
        center = self.to_cell_index(player.lat, player.lng)
        south_west = self.cell_bounds(center.i - cells, center.j - cells)
        north_east = self.cell_bounds(center.i + cells, center.j + cells)
        # Pull the far edges in slightly so the half-open boundary stays inside the last cell
        epsilon = self.cell_size / 1000
        return CellBounds(
            south=south_west.south,
            west=south_west.west,
            north=north_east.north - epsilon,
            east=north_east.east - epsilon,
        )


def sorted_cells(cells: Iterable[CellIndex]) -> list[CellIndex]:
    """Return cells in stable (i, j) order for logging and diffs."""
    return sorted(cells)
