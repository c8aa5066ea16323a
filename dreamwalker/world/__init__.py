"""World tier: grid geometry, procedural spirits, and the override store."""

from .grid import CellGrid, CellIndex, cell_key, parse_cell_key, sorted_cells
from .schemas import CellBounds, LatLng
from .spirits import SPIRIT_TOPIC, SpiritGenerator, luck, spirit_value
from .memory import CellMemory
from .helpers import CellView, describe_cells, render_ascii_window

__all__ = [
    "CellGrid",
    "CellIndex",
    "cell_key",
    "parse_cell_key",
    "sorted_cells",
    "CellBounds",
    "LatLng",
    "SPIRIT_TOPIC",
    "SpiritGenerator",
    "luck",
    "spirit_value",
    "CellMemory",
    "CellView",
    "describe_cells",
    "render_ascii_window",
]
