"""Tests for the discrete-step and continuous-tracking movement controllers."""

from dreamwalker.movement import ButtonMovementController, GeoMovementController
from dreamwalker.positioning import ManualPositionFeed
from dreamwalker.world import LatLng


class Recorder:
    def __init__(self):
        self.moves = []
        self.errors = []

    def move(self, lat, lng):
        self.moves.append((lat, lng))

    def error(self, exc):
        self.errors.append(exc)


def make_button(position=LatLng(lat=0.5, lng=0.5)):
    recorder = Recorder()
    controller = ButtonMovementController(lambda: position, cell_size=1.0)
    controller.on_move(recorder.move)
    return controller, recorder


def test_button_emits_one_cell_offset_per_key():
    controller, recorder = make_button()
    controller.start()

    assert controller.handle_key("w") is True
    assert controller.handle_key("S") is True
    assert controller.handle_key("a") is True
    assert controller.handle_key("ArrowRight") is True

    assert recorder.moves == [(1.5, 0.5), (-0.5, 0.5), (0.5, -0.5), (0.5, 1.5)]


def test_button_ignores_unrecognized_keys():
    controller, recorder = make_button()
    controller.start()

    assert controller.handle_key("q") is False
    assert controller.handle_key("Enter") is False
    assert recorder.moves == []


def test_button_emits_nothing_when_stopped():
    controller, recorder = make_button()

    assert controller.handle_key("w") is False
    controller.start()
    controller.stop()
    controller.stop()
    assert controller.handle_key("w") is False
    assert recorder.moves == []


def test_geo_forwards_updates_without_snapping():
    feed = ManualPositionFeed()
    recorder = Recorder()
    controller = GeoMovementController(feed, on_unavailable=recorder.error)
    controller.on_move(recorder.move)

    controller.start()
    feed.push(37.00001234, -122.00005678)

    assert controller.watching
    assert recorder.moves == [(37.00001234, -122.00005678)]


def test_geo_stop_releases_subscription_and_is_idempotent():
    feed = ManualPositionFeed()
    recorder = Recorder()
    controller = GeoMovementController(feed)
    controller.on_move(recorder.move)

    controller.start()
    assert feed.watcher_count == 1
    controller.stop()
    controller.stop()
    feed.push(1.0, 1.0)

    assert feed.watcher_count == 0
    assert not controller.watching
    assert recorder.moves == []


class LaggyFeed(ManualPositionFeed):
    """Feed that keeps calling subscribers after clear_watch()."""

    def clear_watch(self, watch_id):
        pass


def test_geo_drops_updates_delivered_after_stop():
    feed = LaggyFeed()
    recorder = Recorder()
    controller = GeoMovementController(feed)
    controller.on_move(recorder.move)

    controller.start()
    controller.stop()
    feed.push(5.0, 5.0)

    # Restarting does not revive the old subscription either
    controller.start()
    feed.push(6.0, 6.0)

    assert recorder.moves == [(6.0, 6.0)]


def test_geo_unavailable_feed_reports_and_emits_nothing():
    recorder = Recorder()
    for feed in (None, ManualPositionFeed(available=False)):
        controller = GeoMovementController(feed, on_unavailable=recorder.error)
        controller.on_move(recorder.move)
        controller.start()
        assert not controller.watching

    assert len(recorder.errors) == 2
    assert recorder.moves == []


def test_geo_feed_error_is_non_fatal(capsys):
    feed = ManualPositionFeed()
    recorder = Recorder()
    controller = GeoMovementController(feed, on_unavailable=recorder.error)
    controller.on_move(recorder.move)
    controller.start()

    feed.fail("permission denied")
    feed.push(2.0, 3.0)

    assert [err.reason for err in recorder.errors] == ["permission denied"]
    assert recorder.moves == [(2.0, 3.0)]
    assert "permission denied" in capsys.readouterr().out
