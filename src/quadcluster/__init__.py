"""
quadcluster: viewport-driven marker clustering over a point quadtree.

Points are indexed in a quadtree; on every camera change the points in
the viewport are grouped greedily by screen distance, and the result is
diffed against the markers already on the map so that only changed
markers are created or destroyed.
"""

__version__ = "0.1.0"

from .bounds import BoundingBox, WORLD
from .points import Clusterable, GeoPoint
from .quadtree import QuadTree, QuadTreeNode, LeafNode, InternalNode, NODE_CAPACITY
from .cluster import Cluster, ClusterSet
from .projection import Projection, FunctionProjection, LinearProjection, MercatorProjection
from .engine import ClusteringEngine, CancelFlag, grid_size_for_zoom, scaled_grid_size
from .reconciler import DisplaySet, ReconcileDiff, reconcile, apply_diff
from .host import CameraEvent, MapHost, MarkerFactory, HostRef
from .config import ClustererConfig
from .orchestrator import UpdateOrchestrator, UpdateState
from .clusterer import Clusterer
from .errors import (
    ClustererError,
    InvalidBounds,
    OutOfWorld,
    ConfigError,
    HostDetached,
    AnimationMisconfigured,
    UpdateInterrupted,
)

__all__ = [
    "BoundingBox",
    "WORLD",
    "Clusterable",
    "GeoPoint",
    "QuadTree",
    "QuadTreeNode",
    "LeafNode",
    "InternalNode",
    "NODE_CAPACITY",
    "Cluster",
    "ClusterSet",
    "Projection",
    "FunctionProjection",
    "LinearProjection",
    "MercatorProjection",
    "ClusteringEngine",
    "CancelFlag",
    "grid_size_for_zoom",
    "scaled_grid_size",
    "DisplaySet",
    "ReconcileDiff",
    "reconcile",
    "apply_diff",
    "CameraEvent",
    "MapHost",
    "MarkerFactory",
    "HostRef",
    "ClustererConfig",
    "UpdateOrchestrator",
    "UpdateState",
    "Clusterer",
    "ClustererError",
    "InvalidBounds",
    "OutOfWorld",
    "ConfigError",
    "HostDetached",
    "AnimationMisconfigured",
    "UpdateInterrupted",
]
