"""
Public entry point: clusters a host map's markers as its camera moves.

    clusterer = Clusterer(host, ClustererConfig(density=2.0))
    clusterer.add_all(points)
    clusterer.force_update()
    ...
    clusterer.on_camera_change(event)   # wire to the host's camera listener
"""

from concurrent.futures import Executor, Future
from typing import Callable, Iterable, List, Optional
import threading
import time

import structlog

from .animation import MarkerAnimation, MarkerAnimator
from .bounds import WORLD
from .cluster import Cluster, ClusterSet
from .config import ClustererConfig
from .engine import ClusteringEngine
from .errors import AnimationMisconfigured, HostDetached, UpdateInterrupted
from .host import CameraEvent, HostRef, MapHost, MarkerHandle
from .orchestrator import UpdateOrchestrator
from .points import Clusterable
from .quadtree import QuadTree
from .reconciler import DisplaySet, ReconcileDiff, apply_diff, reconcile


logger = structlog.get_logger()


class Clusterer:
    """
    Keeps a host map's markers clustered.

    Points go into a quadtree; camera events trigger debounced clustering
    runs whose results are diffed against the markers on display.

    Attributes:
        marker_animation: Called as (handle, t) to animate new markers;
            required when config.animation_enabled is set
        on_painting_marker: Optional hook (handle, point) after a point
            marker is created
        on_painting_cluster: Optional hook (handle, cluster) after a
            cluster marker is created
        camera_listener: Optional hook receiving every camera event
    """

    def __init__(
        self,
        host: MapHost,
        config: Optional[ClustererConfig] = None,
        executor: Optional[Executor] = None,
        timer_factory: Optional[Callable[..., threading.Timer]] = None,
    ):
        self.config = config or ClustererConfig()
        self.host_ref = HostRef(host)
        self.tree = QuadTree(WORLD, capacity=self.config.node_capacity)
        self.tree_lock = threading.RLock()
        self.display = DisplaySet()
        self.engine = ClusteringEngine(self.tree, self.tree_lock)

        orchestrator_kwargs = {}
        if timer_factory is not None:
            orchestrator_kwargs["timer_factory"] = timer_factory
        self.orchestrator = UpdateOrchestrator(
            self.engine,
            self.host_ref,
            self._apply_result,
            debounce_ms=self.config.update_debounce_ms,
            density=self.config.density,
            executor=executor,
            **orchestrator_kwargs,
        )

        self.marker_animation: Optional[MarkerAnimation] = None
        self.on_painting_marker: Optional[Callable[[MarkerHandle, Clusterable], None]] = None
        self.on_painting_cluster: Optional[Callable[[MarkerHandle, Cluster], None]] = None
        self.camera_listener: Optional[Callable[[CameraEvent], None]] = None
        self.animation_clock: Callable[[], float] = time.monotonic
        self.last_diff: Optional[ReconcileDiff] = None
        self._last_camera: Optional[CameraEvent] = None

    # Points

    def add(self, point: Clusterable) -> None:
        with self.tree_lock:
            self.tree.insert(point)

    def add_all(self, points: Iterable[Clusterable]) -> None:
        with self.tree_lock:
            self.tree.insert_many(points)

    def clear(self) -> None:
        """Remove every point and every marker this clusterer created."""
        self.orchestrator.cancel()
        with self.tree_lock:
            self.tree.clear()
        with self.orchestrator.display_lock:
            handles = self.display.clear()
        host = self.host_ref.upgrade()
        if host is not None:
            factory = host.marker_factory()
            for handle in handles:
                factory.destroy(handle)
        logger.debug("Clusterer cleared", markers_removed=len(handles))

    # Updates

    def force_update(self) -> Optional[Future]:
        """Recluster now, skipping the debounce delay (UI thread)."""
        return self.orchestrator.run_now()

    def on_camera_change(self, event: CameraEvent) -> None:
        """
        Feed a camera event from the host.

        An update is scheduled only when zoom or target actually changed;
        the camera listener is notified either way.
        """
        if self._last_camera is None or self._last_camera != event:
            self._last_camera = event
            self.orchestrator.schedule()
        if self.camera_listener is not None:
            self.camera_listener(event)

    def _apply_result(self, host: MapHost, result: ClusterSet) -> None:
        # HostDetached from here is absorbed by the orchestrator: nothing
        # has been touched yet
        factory = host.marker_factory()
        diff = reconcile(self.display, result)
        needs_animation = bool(diff.add_singletons or diff.add_clusters)
        if self.config.animation_enabled and needs_animation and self.marker_animation is None:
            raise AnimationMisconfigured(
                "If animation is enabled, a marker animation must be provided"
            )

        try:
            created = apply_diff(
                self.display,
                diff,
                factory,
                on_singleton_created=self.on_painting_marker,
                on_cluster_created=self.on_painting_cluster,
            )
        except HostDetached as e:
            logger.warning(
                "Host detached while applying update",
                markers_shown=len(self.display),
            )
            raise UpdateInterrupted("Host detached part way through an update") from e
        self.last_diff = diff

        if self.config.animation_enabled and created:
            MarkerAnimator(
                host,
                self.marker_animation,
                created,
                self.config.animation_duration_ms,
                self.config.animation_curve,
                self.config.animation_tick_ms,
                clock=self.animation_clock,
            ).start()

    # Markers

    def on_marker_activated(self, handle: MarkerHandle) -> bool:
        """
        Handle a tap on a marker.

        Tapping a cluster zooms the camera onto the cluster's bounds.

        Returns:
            True if the marker was a cluster and the event was consumed
        """
        cluster = self.display.cluster_of(handle)
        if cluster is None:
            return False
        host = self.host_ref.upgrade()
        if host is None:
            return False
        host.animate_camera(
            cluster.bounds,
            self.config.cluster_center_padding_px,
            self.config.camera_animation_ms,
        )
        return True

    def point_of(self, handle: MarkerHandle) -> Optional[Clusterable]:
        return self.display.point_of(handle)

    def handle_of(self, point: Clusterable) -> Optional[MarkerHandle]:
        return self.display.handle_of(point)

    def cluster_of(self, handle: MarkerHandle) -> Optional[Cluster]:
        return self.display.cluster_of(handle)

    @property
    def markers(self) -> List[MarkerHandle]:
        """Handles of every marker on display, in creation order."""
        return self.display.handles

    def close(self) -> None:
        self.orchestrator.close()
