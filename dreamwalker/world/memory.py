"""Sparse override store for cell values.

Only cells whose value was set by a gameplay action are kept. A missing key
means the cell was never touched and its procedural value applies; a present
key is the complete replacement value for that cell, including ``0`` for a
cell whose spirit was picked up.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .grid import CellIndex, cell_key, parse_cell_key
from .spirits import SpiritGenerator, spirit_value


class CellMemory:
    """Maps canonical cell keys to override values, falling back to a generator."""

    def __init__(self, generator: SpiritGenerator = spirit_value):
        self.generator = generator
        # Keyed by "i,j". Absence means "never touched".
        self._overrides: Dict[str, int] = {}

    def get(self, i: int, j: int) -> int:
        """Return the effective value of cell ``(i, j)``."""
        key = cell_key(i, j)
        if key in self._overrides:
            return self._overrides[key]
        return self.generator(i, j)

    def set(self, i: int, j: int, value: int) -> None:
        """Record ``value`` for cell ``(i, j)``, even when it is 0."""
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"Cell value must be a non-negative integer, got {value!r}")
        self._overrides[cell_key(i, j)] = value

    def is_modified(self, i: int, j: int) -> bool:
        return cell_key(i, j) in self._overrides

    def clear(self) -> None:
        self._overrides.clear()

    def entries(self) -> List[Tuple[str, int]]:
        """Return a copy of all overrides as ``(key, value)`` pairs in insertion order."""
        return list(self._overrides.items())

    def load(self, entries: Iterable[Tuple[str, int]]) -> None:
        """Replace all overrides with ``entries``.

        The whole batch is validated before anything is replaced, so a bad
        entry leaves the current contents untouched.
        """
        staged: Dict[str, int] = {}
        for key, value in entries:
            index = parse_cell_key(key)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Cell value must be a non-negative integer, got {value!r}")
            staged[cell_key(*index)] = value
        self._overrides = staged

    def modified_cells(self) -> List[CellIndex]:
        return [parse_cell_key(key) for key in self._overrides]

    def __len__(self) -> int:
        return len(self._overrides)

    def __contains__(self, index: object) -> bool:
        if not isinstance(index, tuple) or len(index) != 2:
            return False
        return cell_key(index[0], index[1]) in self._overrides
