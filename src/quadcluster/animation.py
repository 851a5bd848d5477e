"""
Appearance animation for freshly added markers.

The animator reschedules itself on the host's UI thread every tick and
calls animate(handle, t) for each marker, with t = curve(elapsed / duration)
and elapsed clamped to the duration. The final tick always runs with the
full duration elapsed.
"""

from typing import Callable, List, Sequence
import time

from .host import MapHost, MarkerHandle


MarkerAnimation = Callable[[MarkerHandle, float], None]


class MarkerAnimator:
    """Drives one animation over a batch of markers."""

    def __init__(
        self,
        host: MapHost,
        animation: MarkerAnimation,
        handles: Sequence[MarkerHandle],
        duration_ms: int,
        curve: Callable[[float], float],
        tick_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.host = host
        self.animation = animation
        self.handles: List[MarkerHandle] = list(handles)
        self.duration_ms = duration_ms
        self.curve = curve
        self.tick_ms = tick_ms
        self.clock = clock
        self.started_at = 0.0
        self.finished = False

    def start(self) -> None:
        self.started_at = self.clock()
        self.host.post(self.tick)

    def tick(self) -> None:
        elapsed_ms = (self.clock() - self.started_at) * 1000.0
        fraction = min(1.0, elapsed_ms / self.duration_ms)
        t = self.curve(fraction)
        for handle in self.handles:
            self.animation(handle, t)

        if fraction < 1.0:
            self.host.post(self.tick, self.tick_ms)
        else:
            self.finished = True
