"""
Viewport-driven greedy grid clustering.

One run queries the quadtree for the visible points, projects each to
screen pixels and assigns it to the first existing cluster whose seed
pixel lies within `grid_px` on both axes, or starts a new cluster.
Distances are measured to the seed (first member), not to the running
centroid, which makes the outcome depend on query order.
"""

from contextlib import nullcontext
from dataclasses import dataclass
from typing import ContextManager, Dict, List, Optional, Tuple
import threading
import time

import structlog

from .bounds import BoundingBox
from .cluster import Cluster, ClusterSet
from .errors import Cancelled
from .points import Clusterable
from .projection import Projection
from .quadtree import QuadTree


logger = structlog.get_logger()

DEFAULT_GRID_SIZE = 88
ZOOM_GRID_SIZES: Dict[int, int] = {
    13: 64, 14: 64, 15: 64,
    16: 32, 17: 32, 18: 32,
    19: 16,
}

# Points processed between two cancellation checks
CANCEL_CHECK_INTERVAL = 256


def grid_size_for_zoom(zoom: float) -> int:
    """Clustering threshold in density-independent pixels for a zoom level."""
    return ZOOM_GRID_SIZES.get(int(zoom), DEFAULT_GRID_SIZE)


def scaled_grid_size(zoom: float, density: float = 1.0) -> int:
    """
    Clustering threshold in device pixels.

    Args:
        zoom: Camera zoom; only the integer part matters
        density: Display density (dpi / 160)

    Returns:
        grid_size_for_zoom(zoom) * density rounded to the nearest integer
    """
    return int(grid_size_for_zoom(zoom) * density + 0.5)


class CancelFlag:
    """Cooperative cancellation bit shared between scheduler and worker."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        """Raise Cancelled if the flag is set."""
        if self._event.is_set():
            raise Cancelled()


@dataclass
class EngineStats:
    """Counters from the most recent run."""
    points_in_viewport: int = 0
    singletons: int = 0
    clusters: int = 0
    elapsed_ms: float = 0.0


def in_distance(origin: Tuple[float, float], other: Tuple[float, float], grid_px: float) -> bool:
    """Closed square neighbourhood test of half-side grid_px."""
    return abs(origin[0] - other[0]) <= grid_px and abs(origin[1] - other[1]) <= grid_px


def cluster_points(
    points: List[Clusterable],
    projection: Projection,
    grid_px: int,
    cancel: Optional[CancelFlag] = None,
) -> ClusterSet:
    """
    Greedily group points by screen proximity.

    Args:
        points: Points in the order they should be considered
        projection: Camera snapshot used to place points on screen
        grid_px: Half-side of the square neighbourhood around each seed
        cancel: Optional flag checked periodically

    Returns:
        ClusterSet partitioning the input points
    """
    seeds: List[Tuple[Tuple[float, float], Cluster]] = []

    for i, point in enumerate(points):
        if cancel is not None and i % CANCEL_CHECK_INTERVAL == 0:
            cancel.check()

        pixel = projection.to_pixel(*point.position)
        for seed_pixel, cluster in seeds:
            if in_distance(pixel, seed_pixel, grid_px):
                cluster.add(point)
                break
        else:
            seeds.append((pixel, Cluster(point)))

    singletons = frozenset(c.seed for _, c in seeds if not c.is_cluster())
    clusters = frozenset(c for _, c in seeds if c.is_cluster())
    return ClusterSet(singletons, clusters)


class ClusteringEngine:
    """
    Runs clustering passes over a quadtree.

    The tree is only read while the viewport query runs; `tree_lock`, when
    given, is held for exactly that duration so the owner can serialize
    inserts against it.
    """

    def __init__(self, tree: QuadTree, tree_lock: Optional[ContextManager] = None):
        self.tree = tree
        self.tree_lock = tree_lock
        self.stats = EngineStats()

    def run(
        self,
        viewport: BoundingBox,
        projection: Projection,
        grid_px: int,
        cancel: Optional[CancelFlag] = None,
    ) -> ClusterSet:
        """
        Compute the markers to show for one camera snapshot.

        Args:
            viewport: Visible region
            projection: Projection valid for the same camera as viewport
            grid_px: Clustering threshold in device pixels
            cancel: Optional flag; checked on entry, inside the point loop
                and before returning

        Returns:
            ClusterSet for the viewport

        Raises:
            Cancelled: If the flag was set during the run
        """
        if cancel is not None:
            cancel.check()

        started = time.perf_counter()
        with self.tree_lock if self.tree_lock is not None else nullcontext():
            points = self.tree.query(viewport)

        result = cluster_points(points, projection, grid_px, cancel)

        if cancel is not None:
            cancel.check()

        self.stats = EngineStats(
            points_in_viewport=len(points),
            singletons=len(result.singletons),
            clusters=len(result.clusters),
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
        )
        logger.debug(
            "Clustering completed",
            points=self.stats.points_in_viewport,
            singletons=self.stats.singletons,
            clusters=self.stats.clusters,
            grid_px=grid_px,
            elapsed_ms=round(self.stats.elapsed_ms, 3),
        )
        return result
