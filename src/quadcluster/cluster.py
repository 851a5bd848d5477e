"""
Clusters of points and the result of a clustering run.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Tuple

from .bounds import BoundingBox
from .points import Clusterable


class Cluster:
    """
    An aggregate of one or more points.

    Centroid and bounds are maintained incrementally as points are added.
    Two clusters are equal when they hold the same set of points, whatever
    the order: clusters are rebuilt from scratch on every run, so identity
    carries no meaning across updates.

    The hash depends on the members; do not mutate a cluster once it has
    been placed in a set or used as a dict key.
    """

    def __init__(self, seed: Clusterable):
        lat, lng = seed.position
        self._members: List[Clusterable] = [seed]
        self._lat_sum = lat
        self._lng_sum = lng
        self._lat_min = self._lat_max = lat
        self._lng_min = self._lng_max = lng

    def add(self, point: Clusterable) -> None:
        lat, lng = point.position
        self._members.append(point)
        self._lat_sum += lat
        self._lng_sum += lng
        if lat < self._lat_min:
            self._lat_min = lat
        elif lat > self._lat_max:
            self._lat_max = lat
        if lng < self._lng_min:
            self._lng_min = lng
        elif lng > self._lng_max:
            self._lng_max = lng

    @property
    def seed(self) -> Clusterable:
        """The first point added."""
        return self._members[0]

    @property
    def weight(self) -> int:
        return len(self._members)

    @property
    def center(self) -> Tuple[float, float]:
        """Centroid (lat, lng) of the members."""
        size = len(self._members)
        return self._lat_sum / size, self._lng_sum / size

    @property
    def bounds(self) -> BoundingBox:
        """Smallest box enclosing every member."""
        return BoundingBox(self._lat_min, self._lng_min, self._lat_max, self._lng_max)

    @property
    def members(self) -> Tuple[Clusterable, ...]:
        """Members in insertion order."""
        return tuple(self._members)

    def member_set(self) -> FrozenSet[Clusterable]:
        return frozenset(self._members)

    def is_cluster(self) -> bool:
        """True when this groups two or more points."""
        return len(self._members) >= 2

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[Clusterable]:
        return iter(self._members)

    def __contains__(self, point: object) -> bool:
        return point in self._members

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cluster):
            return NotImplemented
        return len(self._members) == len(other._members) and self.member_set() == other.member_set()

    def __hash__(self) -> int:
        return hash(self.member_set())

    def __repr__(self) -> str:
        lat, lng = self.center
        return f"Cluster(weight={self.weight}, center=({lat:.6f}, {lng:.6f}))"


@dataclass(frozen=True)
class ClusterSet:
    """
    Output of one clustering run: lone points and multi-point clusters.

    No point may appear both as a singleton and as a cluster member.
    """
    singletons: FrozenSet[Clusterable] = field(default_factory=frozenset)
    clusters: FrozenSet[Cluster] = field(default_factory=frozenset)

    def __post_init__(self):
        for cluster in self.clusters:
            if not cluster.is_cluster():
                raise ValueError(f"{cluster!r} has a single member; it belongs in singletons")
            if not self.singletons.isdisjoint(cluster):
                raise ValueError(f"{cluster!r} shares members with the singletons")

    def points(self) -> List[Clusterable]:
        """Every point in the set, singletons first."""
        out = list(self.singletons)
        for cluster in self.clusters:
            out.extend(cluster)
        return out

    def is_empty(self) -> bool:
        return not self.singletons and not self.clusters

    def __len__(self) -> int:
        """Number of markers needed to show this set."""
        return len(self.singletons) + len(self.clusters)
