"""Tests for marker appearance animation."""

import pytest
from conftest import FakeHost

from quadcluster.animation import MarkerAnimator


def animator_for(host, frames, duration_ms=1000, tick_ms=250, curve=lambda t: t):
    return MarkerAnimator(
        host,
        lambda handle, t: frames.append((handle, t)),
        ["m1", "c2"],
        duration_ms,
        curve,
        tick_ms,
        clock=host.clock,
    )


class TestMarkerAnimator:
    """Tests for MarkerAnimator class."""

    def test_start_posts_first_tick(self):
        host = FakeHost()
        frames = []
        animator_for(host, frames).start()
        assert len(host.posted) == 1
        assert host.posted[0][1] == 0
        assert frames == []

    def test_ticks_until_done(self):
        host = FakeHost()
        frames = []
        animator = animator_for(host, frames)
        animator.start()
        host.run_posted()

        assert animator.finished
        values = [t for handle, t in frames if handle == "m1"]
        assert values == pytest.approx([0.0, 0.25, 0.5, 0.75, 1.0])
        assert [t for handle, t in frames if handle == "c2"] == values

    def test_reposts_with_tick_delay(self):
        host = FakeHost()
        animator_for(host, [], tick_ms=40).start()
        host.run_posted(limit=1)
        assert host.posted[0][1] == 40

    def test_late_tick_clamped(self):
        """A tick arriving after the duration reports exactly 1 and stops."""
        host = FakeHost()
        frames = []
        animator = animator_for(host, frames, duration_ms=100, tick_ms=300)
        animator.start()
        host.run_posted()
        assert [t for _, t in frames] == [0.0, 0.0, 1.0, 1.0]
        assert animator.finished

    def test_curve(self):
        host = FakeHost()
        frames = []
        animator_for(host, frames, curve=lambda t: t * t).start()
        host.run_posted()
        values = [t for handle, t in frames if handle == "m1"]
        assert values == pytest.approx([0.0, 0.0625, 0.25, 0.5625, 1.0])
