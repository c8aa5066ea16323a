"""Tests for the save codec, key-value slots, and GamePersistence."""

import json

import pytest

from dreamwalker import persistence as persistence_module
from dreamwalker.persistence import (
    GamePersistence,
    InMemorySlot,
    JsonFileSlot,
    PersistenceWriteError,
    SaveCodec,
    SaveLoadError,
)
from dreamwalker.schemas import MovementMode, SaveState
from dreamwalker.world import LatLng


def make_state(**overrides) -> SaveState:
    fields = dict(
        player=LatLng(lat=36.99795, lng=-122.05705),
        held_spirit=2,
        overrides=[("12,-7", 0), ("12,-6", 8)],
        movement_mode=MovementMode.BUTTON,
    )
    fields.update(overrides)
    return SaveState(**fields)


def valid_record() -> dict:
    return {
        "player": {"lat": 37.0, "lng": -122.0},
        "heldSpirit": None,
        "overrides": [["1,2", {"value": 4}]],
        "movementMode": "geo",
    }


def test_codec_round_trip():
    codec = SaveCodec()
    state = make_state()

    restored = codec.deserialize(codec.serialize(state))

    assert restored == state
    assert restored.overrides == [("12,-7", 0), ("12,-6", 8)]


def test_codec_wire_shape():
    record = json.loads(SaveCodec().serialize(make_state()))

    assert record == {
        "player": {"lat": 36.99795, "lng": -122.05705},
        "heldSpirit": 2,
        "overrides": [["12,-7", {"value": 0}], ["12,-6", {"value": 8}]],
        "movementMode": "button",
    }


def test_codec_accepts_bare_override_values():
    record = valid_record()
    record["overrides"] = [["-3,5", 2], ["0,0", 0]]

    state = SaveCodec().deserialize(json.dumps(record))

    assert state.overrides == [("-3,5", 2), ("0,0", 0)]
    assert state.held_spirit is None
    assert state.movement_mode is MovementMode.GEO


def _mutate(path, value):
    def apply(record):
        target = record
        for part in path[:-1]:
            target = target[part]
        if value is KeyError:
            del target[path[-1]]
        else:
            target[path[-1]] = value
        return record

    return apply


@pytest.mark.parametrize(
    "mutation",
    [
        _mutate(["heldSpirit"], 0),
        _mutate(["heldSpirit"], -2),
        _mutate(["heldSpirit"], "2"),
        _mutate(["heldSpirit"], True),
        _mutate(["heldSpirit"], 1.5),
        _mutate(["heldSpirit"], KeyError),
        _mutate(["overrides"], KeyError),
        _mutate(["overrides"], {"1,2": 4}),
        _mutate(["overrides"], [["1,2"]]),
        _mutate(["overrides"], [["1;2", 4]]),
        _mutate(["overrides"], [["01,2", 4]]),
        _mutate(["overrides"], [["1,2", -1]]),
        _mutate(["overrides"], [["1,2", {"value": 4, "extra": 1}]]),
        _mutate(["overrides"], [["1,2", {"value": "4"}]]),
        _mutate(["overrides"], [["1,2", False]]),
        _mutate(["overrides"], [["1,2", 4], ["1,2", 8]]),
        _mutate(["player", "lat"], "north"),
        _mutate(["player"], KeyError),
        _mutate(["movementMode"], "teleport"),
        _mutate(["movementMode"], KeyError),
        _mutate(["version"], 2),
        _mutate(["player", "altitude"], 12.0),
    ],
)
def test_codec_rejects_malformed_records(mutation):
    record = mutation(valid_record())

    with pytest.raises(SaveLoadError):
        SaveCodec().deserialize(json.dumps(record))


@pytest.mark.parametrize("text", ["", "not json", "[]", "null", '{"player": 1}'])
def test_codec_rejects_non_records(text):
    with pytest.raises(SaveLoadError):
        SaveCodec().deserialize(text)


def test_in_memory_slot_shares_storage_by_key():
    storage = {}
    first = InMemorySlot("a", storage)
    second = InMemorySlot("b", storage)

    first.write("one")
    second.write("two")
    first.delete()
    first.delete()

    assert first.read() is None
    assert second.read() == "two"
    assert storage == {"b": "two"}


def test_json_file_slot_write_read_delete(tmp_path):
    slot = JsonFileSlot("save", tmp_path / "nested")

    assert slot.read() is None
    slot.write("first")
    slot.write("second")

    assert slot.read() == "second"
    assert slot.path == tmp_path / "nested" / "save.json"
    assert [p.name for p in slot.path.parent.iterdir()] == ["save.json"]

    slot.delete()
    slot.delete()
    assert slot.read() is None


def test_json_file_slot_keeps_previous_record_when_replace_fails(tmp_path, monkeypatch):
    slot = JsonFileSlot("save", tmp_path, max_attempts=3)
    slot.write("original")
    calls = []

    def failing_replace(src, dst):
        calls.append(src)
        raise OSError("disk full")

    monkeypatch.setattr(persistence_module.os, "replace", failing_replace)

    with pytest.raises(PersistenceWriteError) as excinfo:
        slot.write("replacement")

    assert len(calls) == 3
    assert excinfo.value.key == "save"
    assert "disk full" in str(excinfo.value.underlying)
    assert slot.read() == "original"
    assert [p.name for p in tmp_path.iterdir()] == ["save.json"]


def test_json_file_slot_unreadable_record_raises_load_error(tmp_path):
    slot = JsonFileSlot("save", tmp_path)
    slot.path.write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(SaveLoadError):
        slot.read()


def test_game_persistence_round_trip_and_clear():
    persistence = GamePersistence(InMemorySlot("k"))
    state = make_state()

    assert persistence.load() is None
    persistence.save(state)
    assert persistence.load() == state

    persistence.clear()
    assert persistence.load() is None


def test_game_persistence_ignores_garbage(capsys):
    slot = InMemorySlot("k")
    slot.write('{"player": {"lat": 1, "lng": 2}, "heldSpirit": 0}')

    assert GamePersistence(slot).load() is None
    assert "[!]" in capsys.readouterr().out
