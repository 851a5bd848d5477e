"""
Diffing the displayed markers against a fresh clustering result.

The DisplaySet is what the host currently shows. reconcile() compares it
with a new ClusterSet and produces the add/remove/keep instructions;
apply_diff() carries them out through a MarkerFactory. Clusters are
matched by member set, so a cluster whose members did not change keeps
its marker even though it was rebuilt by the engine.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional

from .cluster import Cluster, ClusterSet
from .host import MarkerFactory, MarkerHandle
from .points import Clusterable


class DisplaySet:
    """
    Markers currently on the map, indexed both ways.

    Only the orchestrator mutates a DisplaySet, while holding its display
    lock on the UI thread.
    """

    def __init__(self):
        self._point_handles: Dict[Clusterable, MarkerHandle] = {}
        self._handle_points: Dict[MarkerHandle, Clusterable] = {}
        self._cluster_handles: Dict[Cluster, MarkerHandle] = {}
        self._handle_clusters: Dict[MarkerHandle, Cluster] = {}
        self._handles: Dict[MarkerHandle, None] = {}

    @property
    def singletons(self) -> FrozenSet[Clusterable]:
        return frozenset(self._point_handles)

    @property
    def clusters(self) -> FrozenSet[Cluster]:
        return frozenset(self._cluster_handles)

    @property
    def handles(self) -> List[MarkerHandle]:
        """All marker handles in insertion order."""
        return list(self._handles)

    def handle_of(self, point: Clusterable) -> Optional[MarkerHandle]:
        return self._point_handles.get(point)

    def point_of(self, handle: MarkerHandle) -> Optional[Clusterable]:
        return self._handle_points.get(handle)

    def cluster_handle_of(self, cluster: Cluster) -> Optional[MarkerHandle]:
        return self._cluster_handles.get(cluster)

    def cluster_of(self, handle: MarkerHandle) -> Optional[Cluster]:
        return self._handle_clusters.get(handle)

    def add_singleton(self, point: Clusterable, handle: MarkerHandle) -> None:
        self._point_handles[point] = handle
        self._handle_points[handle] = point
        self._handles[handle] = None

    def add_cluster(self, cluster: Cluster, handle: MarkerHandle) -> None:
        self._cluster_handles[cluster] = handle
        self._handle_clusters[handle] = cluster
        self._handles[handle] = None

    def remove_singleton(self, point: Clusterable) -> Optional[MarkerHandle]:
        """Forget a singleton and return its handle, if it was displayed."""
        handle = self._point_handles.pop(point, None)
        if handle is not None:
            self._handle_points.pop(handle, None)
            del self._handles[handle]
        return handle

    def remove_cluster(self, cluster: Cluster) -> Optional[MarkerHandle]:
        """Forget a cluster and return its handle, if it was displayed."""
        handle = self._cluster_handles.pop(cluster, None)
        if handle is not None:
            self._handle_clusters.pop(handle, None)
            del self._handles[handle]
        return handle

    def clear(self) -> List[MarkerHandle]:
        """Forget everything and return the handles that were displayed."""
        handles = list(self._handles)
        self._point_handles = {}
        self._handle_points = {}
        self._cluster_handles = {}
        self._handle_clusters = {}
        self._handles = {}
        return handles

    def matches(self, result: ClusterSet) -> bool:
        """Check if this display shows exactly the given result."""
        return self.singletons == result.singletons and self.clusters == result.clusters

    def __len__(self) -> int:
        return len(self._handles)


@dataclass
class ReconcileDiff:
    """
    Instructions turning one DisplaySet into the next.

    keep + add equals the new result; keep + remove equals what was shown.
    Kept clusters are the instances already on display, which carry the
    existing marker handles.
    """
    remove_singletons: List[Clusterable] = field(default_factory=list)
    remove_clusters: List[Cluster] = field(default_factory=list)
    add_singletons: List[Clusterable] = field(default_factory=list)
    add_clusters: List[Cluster] = field(default_factory=list)
    keep_singletons: List[Clusterable] = field(default_factory=list)
    keep_clusters: List[Cluster] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        """True when nothing needs to be added or removed."""
        return not (
            self.remove_singletons or self.remove_clusters
            or self.add_singletons or self.add_clusters
        )


def reconcile(display: DisplaySet, result: ClusterSet) -> ReconcileDiff:
    """
    Compute the diff between what is displayed and a new result.

    Any displayed singleton that is not a singleton of the new result is
    removed, including points that vanished from the result entirely
    (e.g. after the tree was cleared behind the display's back).

    Args:
        display: Current display state
        result: Freshly computed clusters

    Returns:
        ReconcileDiff describing the transition
    """
    diff = ReconcileDiff()
    shown_points = display.singletons
    shown_clusters = display.clusters

    for point in shown_points:
        if point in result.singletons:
            diff.keep_singletons.append(point)
        else:
            diff.remove_singletons.append(point)

    for cluster in shown_clusters:
        if cluster in result.clusters:
            diff.keep_clusters.append(cluster)
        else:
            diff.remove_clusters.append(cluster)

    diff.add_clusters = [c for c in result.clusters if c not in shown_clusters]
    diff.add_singletons = [p for p in result.singletons if p not in shown_points]
    return diff


def apply_diff(
    display: DisplaySet,
    diff: ReconcileDiff,
    factory: MarkerFactory,
    on_singleton_created: Optional[Callable[[MarkerHandle, Clusterable], None]] = None,
    on_cluster_created: Optional[Callable[[MarkerHandle, Cluster], None]] = None,
) -> List[MarkerHandle]:
    """
    Carry out a diff: destroy removed markers, then create new ones.

    The display is updated one marker at a time, after the factory call
    for that marker succeeded. If the factory raises part way through,
    the display still lists exactly the markers the host is showing.

    Args:
        display: Display state to update in place
        diff: Output of reconcile() against the same display
        factory: MarkerFactory used to create and destroy markers
        on_singleton_created: Optional hook called for each new point marker
        on_cluster_created: Optional hook called for each new cluster marker

    Returns:
        Handles of the newly created markers, clusters first
    """
    for cluster in diff.remove_clusters:
        handle = display.cluster_handle_of(cluster)
        if handle is not None:
            factory.destroy(handle)
            display.remove_cluster(cluster)

    for point in diff.remove_singletons:
        handle = display.handle_of(point)
        if handle is not None:
            factory.destroy(handle)
            display.remove_singleton(point)

    created: List[MarkerHandle] = []
    for cluster in diff.add_clusters:
        handle = factory.create_cluster(cluster)
        display.add_cluster(cluster, handle)
        created.append(handle)
        if on_cluster_created is not None:
            on_cluster_created(handle, cluster)

    for point in diff.add_singletons:
        handle = factory.create_singleton(point)
        display.add_singleton(point, handle)
        created.append(handle)
        if on_singleton_created is not None:
            on_singleton_created(handle, point)

    return created
