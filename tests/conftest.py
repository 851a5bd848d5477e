"""Shared fakes for clusterer tests."""

from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from quadcluster.bounds import BoundingBox, WORLD
from quadcluster.config import ClustererConfig
from quadcluster.clusterer import Clusterer
from quadcluster.host import CameraEvent, MapHost, MarkerFactory
from quadcluster.projection import LinearProjection, Projection


class RecordingFactory(MarkerFactory):
    """Marker factory handing out string handles and recording every call."""

    def __init__(self):
        self.live: Dict[str, Any] = {}
        self.created: List[str] = []
        self.destroyed: List[str] = []
        self._next = 0

    def _new_handle(self, prefix: str, item: Any) -> str:
        self._next += 1
        handle = f"{prefix}{self._next}"
        self.live[handle] = item
        self.created.append(handle)
        return handle

    def create_singleton(self, point):
        return self._new_handle("m", point)

    def create_cluster(self, cluster):
        return self._new_handle("c", cluster)

    def destroy(self, handle):
        self.destroyed.append(handle)
        del self.live[handle]


class FakeHost(MapHost):
    """
    In-memory map host.

    post() queues callbacks; run_posted() plays them back, advancing a fake
    clock by each callback's delay.
    """

    def __init__(
        self,
        viewport: BoundingBox = WORLD,
        projection: Optional[Projection] = None,
        zoom: float = 15.0,
        target: Tuple[float, float] = (0.0, 0.0),
    ):
        self.factory = RecordingFactory()
        self.current_viewport = viewport
        self.current_projection = projection or LinearProjection(100.0)
        self.zoom = zoom
        self.target = target
        self.posted: List[Tuple[Callable[[], None], int]] = []
        self.now = 0.0
        self.camera_moves: List[Tuple[BoundingBox, int, int]] = []

    def projection(self):
        return self.current_projection

    def viewport(self):
        return self.current_viewport

    def camera(self):
        return CameraEvent(self.zoom, self.target)

    def marker_factory(self):
        return self.factory

    def post(self, callback, delay_ms=0):
        self.posted.append((callback, delay_ms))

    def animate_camera(self, bounds, padding_px, duration_ms):
        self.camera_moves.append((bounds, padding_px, duration_ms))

    def clock(self) -> float:
        return self.now

    def run_posted(self, limit: int = 1000) -> int:
        """Run queued callbacks (including ones they queue). Returns the count run."""
        count = 0
        while self.posted and count < limit:
            callback, delay_ms = self.posted.pop(0)
            self.now += delay_ms / 1000.0
            callback()
            count += 1
        return count


class ImmediateExecutor(Executor):
    """Runs submitted work synchronously in the caller's thread."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Queues submitted work until run_next() is called."""

    def __init__(self):
        self.queue: List[Tuple[Future, Callable, tuple, dict]] = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.queue.append((future, fn, args, kwargs))
        return future

    def run_next(self) -> Future:
        future, fn, args, kwargs = self.queue.pop(0)
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class ManualTimer:
    """threading.Timer stand-in that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.started and not self.cancelled:
            self.function(*self.args, **self.kwargs)


class TimerRecorder:
    """Timer factory remembering every timer it created."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = ManualTimer(interval, function, args, kwargs)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> ManualTimer:
        return self.timers[-1]


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def timers():
    return TimerRecorder()


@pytest.fixture
def executor():
    return ImmediateExecutor()


@pytest.fixture
def make_clusterer(timers, executor):
    """Build a Clusterer wired to synchronous fakes."""
    created = []

    def _make(host, config=None, executor_override=None):
        clusterer = Clusterer(
            host,
            config or ClustererConfig(),
            executor=executor_override or executor,
            timer_factory=timers,
        )
        created.append(clusterer)
        return clusterer

    yield _make
    for clusterer in created:
        clusterer.close()
