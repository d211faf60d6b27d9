import random

import pytest

from scanner.stability import StabilityTracker


class TestStabilityTracker:
    def test_defaults(self):
        tracker = StabilityTracker()
        assert tracker.cap == 12 and tracker.stable_threshold == 8
        assert tracker.counter == 0
        assert not tracker.has_lock and not tracker.is_stable

    def test_nine_hits_become_stable(self):
        """Eight hits are a lock, the ninth makes it stable"""
        tracker = StabilityTracker()
        for _ in range(8):
            tracker.hit()
        assert tracker.has_lock and not tracker.is_stable

        tracker.hit()
        assert tracker.counter == 9
        assert tracker.is_stable

    def test_single_miss_keeps_lock(self):
        """10 hits, 1 miss, 1 hit stays stable throughout"""
        tracker = StabilityTracker()
        for _ in range(10):
            tracker.hit()
        assert tracker.is_stable

        assert tracker.miss() == 9
        assert tracker.is_stable

        assert tracker.hit() == 10
        assert tracker.is_stable

    def test_counter_is_capped(self):
        tracker = StabilityTracker()
        for _ in range(100):
            tracker.hit()
        assert tracker.counter == 12

        # decays from the cap, not from 100
        for _ in range(4):
            tracker.miss()
        assert tracker.counter == 8
        assert not tracker.is_stable

    def test_counter_never_negative(self):
        tracker = StabilityTracker()
        assert tracker.miss() == 0
        tracker.hit()
        tracker.miss()
        tracker.miss()
        assert tracker.counter == 0
        assert not tracker.has_lock

    def test_random_sequence_stays_in_range(self):
        rng = random.Random(42)
        tracker = StabilityTracker()
        for _ in range(1000):
            if rng.random() < 0.6:
                tracker.hit()
            else:
                tracker.miss()
            assert 0 <= tracker.counter <= tracker.cap
            assert tracker.is_stable == (tracker.counter > 8)

    def test_reset(self):
        tracker = StabilityTracker()
        for _ in range(10):
            tracker.hit()
        tracker.reset()
        assert tracker.counter == 0

    def test_invalid_args(self):
        with pytest.raises(ValueError):
            StabilityTracker(cap=0)
        with pytest.raises(ValueError):
            StabilityTracker(cap=5, stable_threshold=5)
        with pytest.raises(ValueError):
            StabilityTracker(stable_threshold=-1)
