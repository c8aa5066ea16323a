"""Renderer-facing helpers over the grid and the override store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .grid import CellGrid, CellIndex
from .memory import CellMemory
from .schemas import CellBounds, LatLng


@dataclass(frozen=True)
class CellView:
    """Everything a renderer needs to draw one cell."""

    index: CellIndex
    bounds: CellBounds
    value: int
    near: bool


def describe_cells(
    grid: CellGrid,
    memory: CellMemory,
    player: LatLng,
    viewport: CellBounds,
) -> List[CellView]:
    """Return a CellView for every cell intersecting ``viewport``.

    Values are resolved through ``memory`` so untouched cells show their
    procedural default and touched cells show their override.
    """

    return [
        CellView(
            index=index,
            bounds=grid.cell_bounds(index.i, index.j),
            value=memory.get(index.i, index.j),
            near=grid.is_near(player, index.i, index.j),
        )
        for index in grid.cells_in_bounds(viewport)
    ]


_DEFAULT_CELL_SYMBOLS: Dict[str, str] = {
    "player": "@",
    "near_empty": "·",
    "far_empty": " ",
}


def render_ascii_window(
    grid: CellGrid,
    memory: CellMemory,
    player: LatLng,
    *,
    radius: int,
    symbols: Optional[Dict[str, str]] = None,
) -> str:
    """Render the cells within ``radius`` of the player's cell as text.

    North is at the top. Each cell takes three columns: a spirit value is
    printed right-aligned, the player's cell is marked with ``@`` (followed by
    the value when the cell holds a spirit), and empty cells inside the
    interaction radius are dotted.
    """

    if radius <= 0:
        radius = 0

    mapping = {**_DEFAULT_CELL_SYMBOLS}
    if symbols:
        mapping.update(symbols)

    center = grid.to_cell_index(player.lat, player.lng)
    lines: List[str] = []
    for i in range(center.i + radius, center.i - radius - 1, -1):
        row: List[str] = []
        for j in range(center.j - radius, center.j + radius + 1):
            value = memory.get(i, j)
            if (i, j) == center:
                text = mapping["player"] + (str(value) if value > 0 else "")
            elif value > 0:
                text = str(value)
            elif grid.is_near(player, i, j):
                text = mapping["near_empty"]
            else:
                text = mapping["far_empty"]
            row.append(f"{text:>3}")
        lines.append("".join(row).rstrip())

    return "\n".join(lines)
