"""Tests for the persistence, cooldown and hysteresis gating primitives."""

from __future__ import annotations

from thermosentry.detection.cooldown import CooldownScheduler
from thermosentry.detection.hysteresis import HysteresisLatch
from thermosentry.detection.persistence import (
    LocationTracker,
    PersistenceTracker,
    build_location_key,
    round_half_up,
    rule_prefix,
)
from thermosentry.models.alerts import AlertLocation
from thermosentry.models.frame import Region


class TestLocationKey:
    def test_rounds_centroid(self):
        assert build_location_key("hot", (11.5, 10.49)) == "hot:12:10"

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(3.49) == 3

    def test_grid_coarsens_keys(self):
        assert build_location_key("hot", (31.2, 9.8), grid=4) == "hot:8:2"
        assert build_location_key("hot", (30.1, 9.0), grid=4) == "hot:8:2"

    def test_prefix_does_not_match_other_rules(self):
        assert not build_location_key("hot-2", (1, 1)).startswith(rule_prefix("hot"))


class TestPersistenceTracker:
    def test_duration_from_first_violation(self):
        tracker = PersistenceTracker()
        tracker.track("hot:1:1", True, 1000)
        tracker.track("hot:1:1", True, 1500)

        assert tracker.get_duration("hot:1:1", 2500) == 1500
        assert tracker.is_persisted("hot:1:1", 1500, 2500)
        assert not tracker.is_persisted("hot:1:1", 1501, 2500)

    def test_clears_when_violation_stops(self):
        tracker = PersistenceTracker()
        tracker.track("hot:1:1", True, 0)
        tracker.track("hot:1:1", False, 100)

        assert tracker.get_duration("hot:1:1", 200) is None
        assert not tracker.is_tracking("hot:1:1")

    def test_retain_drops_unseen_keys_of_one_rule(self):
        tracker = PersistenceTracker()
        for key in ("hot:1:1", "hot:5:5", "cold:1:1"):
            tracker.track(key, True, 0)

        tracker.retain("hot:", ["hot:1:1"])

        assert tracker.is_tracking("hot:1:1")
        assert not tracker.is_tracking("hot:5:5")
        assert tracker.is_tracking("cold:1:1")

    def test_clear_by_prefix(self):
        tracker = PersistenceTracker()
        tracker.track("hot:1:1", True, 0)
        tracker.track("cold:1:1", True, 0)

        tracker.clear("hot:")
        assert len(tracker) == 1
        tracker.clear()
        assert len(tracker) == 0


class TestLocationTracker:
    def test_new_location_keyed_by_centroid(self):
        tracker = LocationTracker()
        keys = tracker.resolve("hot", [((11.5, 11.5), Region(x_min=10, y_min=10, x_max=13, y_max=13))])
        assert keys == ["hot:12:12"]

    def test_shifted_centroid_keeps_key(self):
        tracker = LocationTracker()
        tracker.resolve("hot", [((11.5, 11.5), Region(x_min=10, y_min=10, x_max=13, y_max=13))])
        keys = tracker.resolve("hot", [((11.65, 11.47), Region(x_min=10, y_min=10, x_max=14, y_max=13))])
        assert keys == ["hot:12:12"]

    def test_distant_detection_gets_new_key(self):
        tracker = LocationTracker()
        tracker.resolve("hot", [((11.5, 11.5), Region(x_min=10, y_min=10, x_max=13, y_max=13))])
        keys = tracker.resolve("hot", [((25.5, 17.5), Region(x_min=24, y_min=16, x_max=27, y_max=19))])
        assert keys == ["hot:26:18"]
        assert len(tracker) == 2

    def test_tracked_location_claimed_once_per_frame(self):
        tracker = LocationTracker()
        wide = Region(x_min=0, y_min=0, x_max=20, y_max=4)
        tracker.resolve("hot", [((10.0, 2.0), wide)])
        keys = tracker.resolve("hot", [
            ((9.0, 2.0), Region(x_min=8, y_min=0, x_max=10, y_max=4)),
            ((11.0, 2.0), Region(x_min=10, y_min=0, x_max=12, y_max=4)),
        ])
        assert keys == ["hot:10:2", "hot:11:2"]

    def test_rules_tracked_independently(self):
        tracker = LocationTracker()
        bounds = Region(x_min=10, y_min=10, x_max=13, y_max=13)
        tracker.resolve("hot", [((11.5, 11.5), bounds)])
        assert tracker.resolve("warm", [((11.6, 11.4), bounds)]) == ["warm:12:11"]

    def test_retain_and_clear(self):
        tracker = LocationTracker()
        bounds = Region(x_min=10, y_min=10, x_max=13, y_max=13)
        tracker.resolve("hot", [((11.5, 11.5), bounds)])
        tracker.resolve("warm", [((11.5, 11.5), bounds)])

        tracker.retain("hot", lambda key: False)
        assert len(tracker) == 1
        tracker.clear()
        assert len(tracker) == 0


class TestCooldownScheduler:
    def test_cooling_window(self):
        scheduler = CooldownScheduler()
        assert scheduler.schedule("hot:1:1", now=0, duration=30000) == 30000

        assert scheduler.is_cooling("hot:1:1", 10000)
        assert scheduler.remaining("hot:1:1", 10000) == 20000
        assert not scheduler.is_cooling("hot:1:1", 30000)

    def test_expire_returns_rearmed_keys(self):
        scheduler = CooldownScheduler()
        scheduler.schedule("a:1:1", now=0, duration=100)
        scheduler.schedule("b:1:1", now=0, duration=500)

        assert scheduler.expire(99) == []
        assert scheduler.expire(100) == ["a:1:1"]
        assert len(scheduler) == 1

    def test_reschedule_ignores_stale_entry(self):
        scheduler = CooldownScheduler()
        scheduler.schedule("a:1:1", now=0, duration=100)
        scheduler.schedule("a:1:1", now=50, duration=100)

        assert scheduler.expire(120) == []
        assert scheduler.is_cooling("a:1:1", 120)
        assert scheduler.expire(150) == ["a:1:1"]

    def test_zero_duration_schedules_nothing(self):
        scheduler = CooldownScheduler()
        assert scheduler.schedule("a:1:1", now=0, duration=0) is None
        assert "a:1:1" not in scheduler

    def test_cancellation(self):
        scheduler = CooldownScheduler()
        for key in ("hot:1:1", "hot:2:2", "cold:1:1"):
            scheduler.schedule(key, now=0, duration=1000)

        assert scheduler.cancel("hot:1:1")
        assert not scheduler.cancel("hot:1:1")
        assert scheduler.cancel_prefix("hot:") == 1
        assert scheduler.cancel_all() == 1
        assert len(scheduler) == 0
        assert scheduler.expire(5000) == []


class TestHysteresisLatch:
    def test_release_outside_regions(self):
        latch = HysteresisLatch()
        latch.latch("hot:5:5", AlertLocation(x=5, y=5))
        latch.latch("hot:40:40", AlertLocation(x=40, y=40))
        latch.latch("cold:5:5", AlertLocation(x=5, y=5))

        released = latch.release_outside("hot:", [Region(x_min=0, y_min=0, x_max=9, y_max=9)])

        assert released == ["hot:40:40"]
        assert latch.is_latched("hot:5:5")
        assert latch.is_latched("cold:5:5")

    def test_release_everything_without_regions(self):
        latch = HysteresisLatch()
        latch.latch("hot:5:5", AlertLocation(x=5, y=5))

        assert latch.release_outside("hot:", []) == ["hot:5:5"]
        assert len(latch) == 0

    def test_clear(self):
        latch = HysteresisLatch()
        latch.latch("hot:5:5", AlertLocation(x=5, y=5))
        latch.latch("cold:5:5", AlertLocation(x=5, y=5))

        assert latch.clear("hot:") == 1
        assert latch.clear() == 1

    def test_follow_moves_only_latched_keys(self):
        latch = HysteresisLatch()
        latch.latch("hot:5:5", AlertLocation(x=5, y=5))
        latch.follow("hot:5:5", AlertLocation(x=30, y=30))
        latch.follow("hot:9:9", AlertLocation(x=9, y=9))

        assert not latch.is_latched("hot:9:9")
        assert latch.release_outside("hot:", [Region(x_min=28, y_min=28, x_max=32, y_max=32)]) == []
