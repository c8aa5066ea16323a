"""Tests for renderer-facing grid helpers."""

from dreamwalker.world import CellBounds, CellGrid, CellMemory, LatLng
from dreamwalker.world.helpers import describe_cells, render_ascii_window

PLAYER = LatLng(lat=0.5, lng=0.5)


def make_memory():
    values = {(1, 1): 4, (0, 0): 2}
    return CellMemory(lambda i, j: values.get((i, j), 0))


def test_ascii_window_marks_player_values_and_reach():
    grid = CellGrid(cell_size=1.0, radius=3)

    text = render_ascii_window(grid, make_memory(), PLAYER, radius=1)

    assert text.split("\n") == [
        "  ·  ·  4",
        "  · @2  ·",
        "  ·  ·  ·",
    ]


def test_ascii_window_leaves_out_of_reach_cells_blank():
    grid = CellGrid(cell_size=1.0, radius=0)
    memory = make_memory()
    memory.set(0, 0, 0)

    text = render_ascii_window(grid, memory, PLAYER, radius=1, symbols={"player": "P"})

    assert text.split("\n") == ["        4", "     P", ""]


def test_describe_cells_resolves_overrides_and_proximity():
    grid = CellGrid(cell_size=1.0, radius=1)
    memory = make_memory()
    memory.set(1, 1, 0)

    views = describe_cells(
        grid, memory, PLAYER, CellBounds(south=0.0, west=0.0, north=1.5, east=2.5)
    )

    assert [tuple(view.index) for view in views] == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]
    by_index = {tuple(view.index): view for view in views}
    assert by_index[(0, 0)].value == 2
    assert by_index[(1, 1)].value == 0
    assert by_index[(0, 1)].near is True
    assert by_index[(0, 2)].near is False
    assert by_index[(1, 2)].bounds == grid.cell_bounds(1, 2)
