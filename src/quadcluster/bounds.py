"""
Axis-aligned bounding boxes in lat/lng space.

Boxes are used both as quadtree node extents and as query regions
(viewports, cluster bounds). Antimeridian crossing is not modeled: a
viewport spanning it must be split by the caller into two queries.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple

from .errors import InvalidBounds


# Quadrant indices, same order as subdivide()
NW, NE, SW, SE = 0, 1, 2, 3


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned rectangle [lat_min, lat_max] x [lng_min, lng_max].

    Membership comes in two flavours:
    - contains(): half-open (closed on the low edges, open on the high
      edges), so the four quadrants of a box partition it without overlap.
    - covers(): fully closed, used when filtering query results so that a
      point lying on the top or right edge of a viewport is still shown.
    """
    lat_min: float
    lng_min: float
    lat_max: float
    lng_max: float

    def __post_init__(self):
        if self.lat_min > self.lat_max or self.lng_min > self.lng_max:
            raise InvalidBounds(
                f"Invalid bounds: lat=[{self.lat_min}, {self.lat_max}], "
                f"lng=[{self.lng_min}, {self.lng_max}]"
            )

    @classmethod
    def from_corners(
        cls, lat1: float, lng1: float, lat2: float, lng2: float
    ) -> BoundingBox:
        """Build a box from two opposite corners given in any order."""
        return cls(min(lat1, lat2), min(lng1, lng2), max(lat1, lat2), max(lng1, lng2))

    @classmethod
    def around(cls, lat: float, lng: float) -> BoundingBox:
        """Degenerate box holding a single position."""
        return cls(lat, lng, lat, lng)

    @property
    def lat_span(self) -> float:
        return self.lat_max - self.lat_min

    @property
    def lng_span(self) -> float:
        return self.lng_max - self.lng_min

    @property
    def center(self) -> Tuple[float, float]:
        return (self.lat_min + self.lat_max) / 2.0, (self.lng_min + self.lng_max) / 2.0

    def contains(self, lat: float, lng: float) -> bool:
        """Half-open membership test."""
        return self.lat_min <= lat < self.lat_max and self.lng_min <= lng < self.lng_max

    def covers(self, lat: float, lng: float) -> bool:
        """Closed membership test."""
        return self.lat_min <= lat <= self.lat_max and self.lng_min <= lng <= self.lng_max

    def intersects(self, other: BoundingBox) -> bool:
        """Standard AABB overlap; boxes that only touch on an edge intersect."""
        return (
            self.lat_min <= other.lat_max
            and other.lat_min <= self.lat_max
            and self.lng_min <= other.lng_max
            and other.lng_min <= self.lng_max
        )

    def contains_box(self, other: BoundingBox) -> bool:
        """Check if other lies fully within this box (closed)."""
        return (
            self.lat_min <= other.lat_min
            and other.lat_max <= self.lat_max
            and self.lng_min <= other.lng_min
            and other.lng_max <= self.lng_max
        )

    def expanded_to(self, lat: float, lng: float) -> BoundingBox:
        """Smallest box enclosing this one and the given position."""
        return BoundingBox(
            min(self.lat_min, lat),
            min(self.lng_min, lng),
            max(self.lat_max, lat),
            max(self.lng_max, lng),
        )

    def midpoints(self) -> Tuple[float, float]:
        """
        Calculate the split point for subdivision.

        Returns:
            Tuple of (lat_mid, lng_mid)
        """
        return (self.lat_min + self.lat_max) / 2.0, (self.lng_min + self.lng_max) / 2.0

    def can_subdivide(self) -> bool:
        """
        Check if splitting at the midpoint yields strictly smaller boxes.

        Once the box is only a few ulps wide the float midpoint collapses
        onto one of the edges and further splitting makes no progress.
        """
        lat_mid, lng_mid = self.midpoints()
        return (
            self.lat_min < lat_mid < self.lat_max
            and self.lng_min < lng_mid < self.lng_max
        )

    def subdivide(self) -> List[BoundingBox]:
        """
        Subdivide the box into 4 quadrants split at the midpoint.

        Child order (fixed for consistency): NW, NE, SW, SE
        - NW: [lat_mid, lat_max] x [lng_min, lng_mid)
        - NE: [lat_mid, lat_max] x [lng_mid, lng_max]
        - SW: [lat_min, lat_mid) x [lng_min, lng_mid)
        - SE: [lat_min, lat_mid) x [lng_mid, lng_max]

        The open upper edges are a property of contains(); the boxes
        themselves share their boundary lines.
        """
        lat_mid, lng_mid = self.midpoints()
        return [
            BoundingBox(lat_mid, self.lng_min, self.lat_max, lng_mid),
            BoundingBox(lat_mid, lng_mid, self.lat_max, self.lng_max),
            BoundingBox(self.lat_min, self.lng_min, lat_mid, lng_mid),
            BoundingBox(self.lat_min, lng_mid, lat_mid, self.lng_max),
        ]

    def child_index_for_point(self, lat: float, lng: float) -> int:
        """
        Determine which quadrant holds a position.

        A position on a split line belongs to the quadrant whose closed
        lower edge it lies on, i.e. the northern or eastern one. Positions on
        the outer upper edges of this box fall in the northern/eastern
        quadrants as well.

        Args:
            lat: Latitude in degrees
            lng: Longitude in degrees

        Returns:
            Child index (0=NW, 1=NE, 2=SW, 3=SE)
        """
        if not self.covers(lat, lng):
            raise ValueError(f"Point ({lat}, {lng}) not in box {self}")

        lat_mid, lng_mid = self.midpoints()

        if lat >= lat_mid:
            return NE if lng >= lng_mid else NW
        return SE if lng >= lng_mid else SW


WORLD = BoundingBox(-85.0, -180.0, 85.0, 180.0)
