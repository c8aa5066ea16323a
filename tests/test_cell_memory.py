"""Tests for the sparse cell override store."""

import pytest

from dreamwalker.world import CellIndex, CellMemory, spirit_value


def table_generator(values):
    return lambda i, j: values.get((i, j), 0)


def test_untouched_cells_resolve_to_generator():
    memory = CellMemory(table_generator({(0, 0): 4}))

    assert memory.get(0, 0) == 4
    assert memory.get(5, 5) == 0
    assert len(memory) == 0
    assert not memory.is_modified(0, 0)


def test_default_generator_is_procedural():
    memory = CellMemory()

    for i, j in [(0, 0), (7, -3), (-20, 11)]:
        assert memory.get(i, j) == spirit_value(i, j)


def test_set_zero_is_remembered():
    memory = CellMemory(table_generator({(0, 0): 4}))

    memory.set(0, 0, 0)

    assert memory.get(0, 0) == 0
    assert memory.is_modified(0, 0)
    assert (0, 0) in memory
    assert CellIndex(0, 0) in memory


def test_flyweight_invariant():
    values = {(i, j): (i * 3 + j) % 5 for i in range(-3, 4) for j in range(-3, 4)}
    memory = CellMemory(table_generator(values))
    touched = {(0, 0), (2, -1), (-3, 3)}
    for i, j in touched:
        memory.set(i, j, values[(i, j)] + 8)

    for (i, j), default in values.items():
        if (i, j) in touched:
            assert memory.get(i, j) != default
        else:
            assert memory.get(i, j) == default
            assert not memory.is_modified(i, j)


def test_set_rejects_invalid_values():
    memory = CellMemory()

    for bad in [-1, 1.5, True, "2"]:
        with pytest.raises(ValueError):
            memory.set(0, 0, bad)
    assert len(memory) == 0


def test_no_upper_limit_on_values():
    memory = CellMemory()
    memory.set(1, 1, 2**40)
    assert memory.get(1, 1) == 2**40


def test_entries_and_load_round_trip():
    memory = CellMemory()
    memory.set(0, 0, 0)
    memory.set(-4, 9, 16)

    entries = memory.entries()
    assert entries == [("0,0", 0), ("-4,9", 16)]

    # entries() is a copy
    entries.append(("1,1", 1))
    assert len(memory) == 2

    restored = CellMemory()
    restored.load(memory.entries())
    assert restored.entries() == memory.entries()
    assert restored.modified_cells() == [CellIndex(0, 0), CellIndex(-4, 9)]


def test_load_replaces_and_bad_batch_keeps_contents():
    memory = CellMemory()
    memory.set(3, 3, 2)

    with pytest.raises(ValueError):
        memory.load([("1,1", 4), ("bad", 2)])
    assert memory.entries() == [("3,3", 2)]

    memory.load([("1,1", 4)])
    assert memory.entries() == [("1,1", 4)]


def test_clear_drops_all_overrides():
    memory = CellMemory(table_generator({(0, 0): 1}))
    memory.set(0, 0, 0)

    memory.clear()

    assert len(memory) == 0
    assert memory.get(0, 0) == 1
