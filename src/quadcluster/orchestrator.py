"""
Scheduling of clustering updates.

Camera events are debounced; once the camera has been quiet for the
debounce interval, the orchestrator snapshots viewport, projection and
zoom on the UI thread, runs the engine on a single background worker and
posts the result back to the UI thread to be applied.

Per update the state moves Idle -> Pending -> Running -> Applying -> Idle.
A camera event while Pending restarts the timer; while Running it sets
the run's cancel flag and goes back to Pending. Every launch or reschedule
bumps a generation counter, and only a result whose generation is still
current may be applied.
"""

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from functools import partial
from typing import Callable, Optional
import threading

import structlog

from .cluster import ClusterSet
from .config import UPDATE_INTERVAL_TIME
from .engine import CancelFlag, ClusteringEngine, scaled_grid_size
from .errors import Cancelled, HostDetached
from .host import HostRef, MapHost


logger = structlog.get_logger()

ApplyResult = Callable[[MapHost, ClusterSet], None]


class UpdateState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    RUNNING = "running"
    APPLYING = "applying"


class UpdateOrchestrator:
    """
    Debounces camera changes and runs the engine off the UI thread.

    Methods documented as UI-thread methods must be called from the host's
    UI thread; the rest are thread-safe.
    """

    def __init__(
        self,
        engine: ClusteringEngine,
        host_ref: HostRef,
        apply_result: ApplyResult,
        debounce_ms: int = UPDATE_INTERVAL_TIME,
        density: float = 1.0,
        executor: Optional[Executor] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        """
        Initialize the orchestrator.

        Args:
            engine: Engine to run for each update
            host_ref: Weak handle on the map host
            apply_result: Called on the UI thread, under display_lock, with
                the host and the result of a current run
            debounce_ms: Quiet period before an update runs
            density: Display density used to scale the grid size
            executor: Worker for engine runs (default: one background thread)
            timer_factory: threading.Timer-compatible factory for the
                debounce timer
        """
        self.engine = engine
        self.host_ref = host_ref
        self.apply_result = apply_result
        self.debounce_ms = debounce_ms
        self.density = density

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="quadcluster-engine"
        )
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self.display_lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._cancel: Optional[CancelFlag] = None
        self._generation = 0
        self.state = UpdateState.IDLE
        self.applied_updates = 0

    def schedule(self) -> None:
        """Start or restart the debounce timer, superseding any run in flight."""
        with self._lock:
            self._supersede_locked()
            self._generation += 1
            generation = self._generation
            self.state = UpdateState.PENDING
            timer = self._timer_factory(
                self.debounce_ms / 1000.0, self._on_timer, args=(generation,)
            )
            timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        """Drop any pending or running update."""
        with self._lock:
            self._supersede_locked()
            self._generation += 1
            self.state = UpdateState.IDLE

    def _supersede_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._cancel is not None:
            self._cancel.cancel()
            self._cancel = None

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _on_timer(self, generation: int) -> None:
        # Timer thread: hop onto the UI thread to take the snapshot
        if not self._is_current(generation):
            return
        host = self.host_ref.upgrade()
        if host is None:
            logger.info("Host detached, update skipped")
            self._finish(generation)
            return
        host.post(partial(self._run_scheduled, generation))

    def _run_scheduled(self, generation: int) -> None:
        if self._is_current(generation):
            self.run_now()

    def run_now(self) -> Optional[Future]:
        """
        Snapshot the camera and launch an engine run immediately (UI thread).

        Returns:
            Future of the engine run, or None if the host is gone
        """
        host = self.host_ref.upgrade()
        if host is None:
            logger.info("Host detached, update skipped")
            return None

        try:
            viewport = host.viewport()
            projection = host.projection()
            zoom = host.camera().zoom
        except HostDetached:
            logger.info("Projection unavailable, update skipped")
            return None

        grid_px = scaled_grid_size(zoom, self.density)

        with self._lock:
            self._supersede_locked()
            self._generation += 1
            generation = self._generation
            cancel = CancelFlag()
            self._cancel = cancel
            self.state = UpdateState.RUNNING

        logger.debug("Launching clustering run", generation=generation, zoom=zoom, grid_px=grid_px)
        future = self._executor.submit(self.engine.run, viewport, projection, grid_px, cancel)
        future.add_done_callback(partial(self._on_engine_done, generation, cancel))
        return future

    def _on_engine_done(self, generation: int, cancel: CancelFlag, future: Future) -> None:
        # Worker thread
        if future.cancelled():
            return
        exc = future.exception()
        if isinstance(exc, Cancelled):
            logger.debug("Clustering run cancelled", generation=generation)
            return
        if exc is not None:
            logger.error("Clustering run failed, update skipped", generation=generation, exc_info=exc)
            self._finish(generation)
            return
        if cancel.cancelled or not self._is_current(generation):
            logger.debug("Discarding superseded result", generation=generation)
            return

        host = self.host_ref.upgrade()
        if host is None:
            logger.info("Host detached, update skipped")
            self._finish(generation)
            return
        host.post(partial(self._apply, generation, cancel, future.result()))

    def _apply(self, generation: int, cancel: CancelFlag, result: ClusterSet) -> None:
        # UI thread
        with self._lock:
            if cancel.cancelled or generation != self._generation:
                logger.debug("Discarding superseded result", generation=generation)
                return
            self.state = UpdateState.APPLYING

        try:
            host = self.host_ref.upgrade()
            if host is None:
                logger.info("Host detached, update skipped")
                return
            with self.display_lock:
                try:
                    self.apply_result(host, result)
                except HostDetached:
                    # Raised only before apply_result changes anything
                    logger.info("Marker factory unavailable, update skipped")
                    return
            self.applied_updates += 1
            logger.debug(
                "Update applied",
                generation=generation,
                singletons=len(result.singletons),
                clusters=len(result.clusters),
            )
        finally:
            self._finish(generation)

    def _finish(self, generation: int) -> None:
        with self._lock:
            if generation == self._generation:
                self.state = UpdateState.IDLE
                self._cancel = None

    def close(self) -> None:
        """Cancel pending work and stop the worker if we created it."""
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False)
