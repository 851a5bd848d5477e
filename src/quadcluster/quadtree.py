"""
Point quadtree for viewport queries.

Each node covers a bounding box. Leaves hold up to `capacity` points;
on overflow a leaf is replaced by an internal node with four children
(NW, NE, SW, SE) and its points are redistributed. There is no
rebalancing and no merging back.

A leaf is allowed to exceed its capacity when splitting cannot separate
its points: when they all share one position, when the box has become
too small to split in floating point, or when `max_depth` is reached.
Without that floor, inserting capacity + 1 copies of one position would
recurse forever.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .bounds import BoundingBox, WORLD
from .errors import OutOfWorld
from .points import Clusterable


NODE_CAPACITY = 10
MAX_DEPTH = 64


class QuadTreeNode(ABC):
    """Abstract base class for quadtree nodes."""

    bounds: BoundingBox
    depth: int

    @abstractmethod
    def is_leaf(self) -> bool:
        """Return True if this is a leaf node."""
        pass

    @abstractmethod
    def insert(self, point: Clusterable, lat: float, lng: float) -> QuadTreeNode:
        """
        Insert a point into this subtree.

        Args:
            point: The point to store
            lat: Latitude of the point
            lng: Longitude of the point

        Returns:
            The node that now represents this subtree. A leaf that had
            to split returns the internal node replacing it.
        """
        pass

    @abstractmethod
    def query(self, box: BoundingBox, out: List[Clusterable]) -> None:
        """Append every point of this subtree lying in box to out."""
        pass

    @abstractmethod
    def node_count(self) -> int:
        """Return total number of nodes in this subtree."""
        pass

    @abstractmethod
    def leaf_count(self) -> int:
        """Return number of leaf nodes in this subtree."""
        pass

    @abstractmethod
    def max_depth(self) -> int:
        """Return maximum depth of this subtree."""
        pass


@dataclass
class LeafNode(QuadTreeNode):
    """A leaf holding points directly."""
    bounds: BoundingBox
    capacity: int
    depth: int = 0
    depth_limit: int = MAX_DEPTH
    points: List[Clusterable] = field(default_factory=list)

    def is_leaf(self) -> bool:
        return True

    def insert(self, point: Clusterable, lat: float, lng: float) -> QuadTreeNode:
        if len(self.points) < self.capacity or not self._can_split(lat, lng):
            self.points.append(point)
            return self

        node = InternalNode(
            bounds=self.bounds,
            children=[
                LeafNode(child, self.capacity, self.depth + 1, self.depth_limit)
                for child in self.bounds.subdivide()
            ],
            depth=self.depth,
        )
        for existing in self.points:
            e_lat, e_lng = existing.position
            node.insert(existing, e_lat, e_lng)
        node.insert(point, lat, lng)
        return node

    def _can_split(self, lat: float, lng: float) -> bool:
        if self.depth >= self.depth_limit or not self.bounds.can_subdivide():
            return False
        # Identical positions can never be separated by subdivision
        return any(p.position != (lat, lng) for p in self.points)

    def query(self, box: BoundingBox, out: List[Clusterable]) -> None:
        if not self.bounds.intersects(box):
            return
        for point in self.points:
            lat, lng = point.position
            if box.covers(lat, lng):
                out.append(point)

    def node_count(self) -> int:
        return 1

    def leaf_count(self) -> int:
        return 1

    def max_depth(self) -> int:
        return 0


@dataclass
class InternalNode(QuadTreeNode):
    """
    An internal node with exactly 4 children.

    Children are ordered: NW, NE, SW, SE (indices 0-3).
    """
    bounds: BoundingBox
    children: List[QuadTreeNode]
    depth: int = 0

    def __post_init__(self):
        if len(self.children) != 4:
            raise ValueError("InternalNode must have exactly 4 children")

    def is_leaf(self) -> bool:
        return False

    def insert(self, point: Clusterable, lat: float, lng: float) -> QuadTreeNode:
        idx = self.bounds.child_index_for_point(lat, lng)
        self.children[idx] = self.children[idx].insert(point, lat, lng)
        return self

    def query(self, box: BoundingBox, out: List[Clusterable]) -> None:
        if not self.bounds.intersects(box):
            return
        for child in self.children:
            child.query(box, out)

    def node_count(self) -> int:
        return 1 + sum(child.node_count() for child in self.children)

    def leaf_count(self) -> int:
        return sum(child.leaf_count() for child in self.children)

    def max_depth(self) -> int:
        return 1 + max(child.max_depth() for child in self.children)


class QuadTree:
    """
    A point quadtree over a fixed root box (the world by default).

    The tree is not thread-safe; callers serialize mutation against
    queries (see Clusterer.tree_lock).
    """

    def __init__(
        self,
        bounds: BoundingBox = WORLD,
        capacity: int = NODE_CAPACITY,
        max_depth: int = MAX_DEPTH,
    ):
        """
        Initialize an empty quadtree.

        Args:
            bounds: Root box; inserts outside it are rejected
            capacity: Maximum points per leaf before it splits
            max_depth: Depth at which leaves stop splitting
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.bounds = bounds
        self.capacity = capacity
        self.max_depth = max_depth
        self.root: QuadTreeNode = self._new_root()
        self._size = 0

    def _new_root(self) -> QuadTreeNode:
        return LeafNode(self.bounds, self.capacity, 0, self.max_depth)

    def insert(self, point: Clusterable) -> None:
        """
        Insert a single point.

        Raises:
            OutOfWorld: If the point is outside the root box
        """
        lat, lng = point.position
        if not self.bounds.covers(lat, lng):
            raise OutOfWorld(f"Point ({lat}, {lng}) outside tree bounds {self.bounds}")
        self.root = self.root.insert(point, lat, lng)
        self._size += 1

    def insert_many(self, points: Iterable[Clusterable]) -> None:
        """
        Insert points one after another.

        Points preceding an out-of-world point stay inserted.
        """
        for point in points:
            self.insert(point)

    def query(
        self, box: BoundingBox, out: Optional[List[Clusterable]] = None
    ) -> List[Clusterable]:
        """
        Collect every stored point lying in box (edges included).

        Args:
            box: Query region
            out: Optional list to append to

        Returns:
            The list the points were appended to
        """
        if out is None:
            out = []
        self.root.query(box, out)
        return out

    def clear(self) -> None:
        """Drop all points, leaving a single empty leaf."""
        self.root = self._new_root()
        self._size = 0

    def __len__(self) -> int:
        return self._size

    @property
    def node_count(self) -> int:
        """Total number of nodes in the tree."""
        return self.root.node_count()

    @property
    def leaf_count(self) -> int:
        """Number of leaf nodes in the tree."""
        return self.root.leaf_count()

    @property
    def depth(self) -> int:
        """Maximum depth of the tree."""
        return self.root.max_depth()
