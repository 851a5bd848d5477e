"""
Geo-located values that can be clustered.

The host owns its points; the core only reads their position. Points are
compared by identity, so two distinct points at the same position are two
markers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Tuple


class Clusterable(ABC):
    """Anything with a (lat, lng) position the host wants on the map."""

    @property
    @abstractmethod
    def position(self) -> Tuple[float, float]:
        """Return (lat, lng) in degrees."""
        pass


@dataclass(eq=False)
class GeoPoint(Clusterable):
    """
    A plain clusterable with an opaque payload.

    eq=False keeps object identity for hashing and equality.
    """
    lat: float
    lng: float
    payload: Any = None

    @property
    def position(self) -> Tuple[float, float]:
        return self.lat, self.lng
