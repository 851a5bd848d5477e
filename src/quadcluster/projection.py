"""
Projections from geographic coordinates to screen pixels.

A projection is only valid for the camera it was sampled from. The
orchestrator snapshots one per update and hands it to the engine, which
treats it as a pure function.
"""

from abc import ABC, abstractmethod
from typing import Callable, Tuple
import math

from .bounds import BoundingBox


TILE_SIZE = 256
MAX_MERCATOR_LAT = 85.05112878


class Projection(ABC):
    """Maps (lat, lng) to screen pixels (x grows right, y grows down)."""

    @abstractmethod
    def to_pixel(self, lat: float, lng: float) -> Tuple[float, float]:
        pass


class FunctionProjection(Projection):
    """Projection wrapper for a simple function (lat, lng) -> (x, y)."""

    def __init__(self, func: Callable[[float, float], Tuple[float, float]]):
        self._func = func

    def to_pixel(self, lat: float, lng: float) -> Tuple[float, float]:
        return self._func(lat, lng)


class LinearProjection(Projection):
    """
    Equirectangular projection with a fixed scale.

    Useful for tests: distances in pixels are exactly
    degrees * pixels_per_degree on both axes.
    """

    def __init__(
        self,
        pixels_per_degree: float,
        origin: Tuple[float, float] = (0.0, 0.0),
    ):
        self.pixels_per_degree = pixels_per_degree
        self.origin = origin

    def to_pixel(self, lat: float, lng: float) -> Tuple[float, float]:
        lat0, lng0 = self.origin
        return (lng - lng0) * self.pixels_per_degree, (lat0 - lat) * self.pixels_per_degree


class MercatorProjection(Projection):
    """
    Web Mercator projection for a camera centred on `center` at `zoom`.

    Pixel (0, 0) is the top-left corner of a `width` x `height` screen.
    """

    def __init__(
        self,
        zoom: float,
        center: Tuple[float, float],
        width: int,
        height: int,
        tile_size: int = TILE_SIZE,
    ):
        self.zoom = zoom
        self.center = center
        self.width = width
        self.height = height
        self.scale = tile_size * (2.0 ** zoom)
        self._cx, self._cy = self._world_pixel(*center)

    def _world_pixel(self, lat: float, lng: float) -> Tuple[float, float]:
        lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
        siny = math.sin(math.radians(lat))
        x = (lng + 180.0) / 360.0 * self.scale
        y = (0.5 - math.log((1 + siny) / (1 - siny)) / (4 * math.pi)) * self.scale
        return x, y

    def to_pixel(self, lat: float, lng: float) -> Tuple[float, float]:
        x, y = self._world_pixel(lat, lng)
        return x - self._cx + self.width / 2.0, y - self._cy + self.height / 2.0

    def from_pixel(self, x: float, y: float) -> Tuple[float, float]:
        """Inverse of to_pixel."""
        wx = x + self._cx - self.width / 2.0
        wy = y + self._cy - self.height / 2.0
        lng = wx / self.scale * 360.0 - 180.0
        n = math.pi * (1 - 2 * wy / self.scale)
        lat = math.degrees(math.atan(math.sinh(n)))
        return lat, lng

    def visible_bounds(self) -> BoundingBox:
        """
        Lat/lng box of the visible screen, clamped to valid coordinates.

        A screen wider than the world is clamped to [-180, 180] rather than
        wrapped.
        """
        north, west = self.from_pixel(0, 0)
        south, east = self.from_pixel(self.width, self.height)
        return BoundingBox.from_corners(
            max(-90.0, south),
            max(-180.0, west),
            min(90.0, north),
            min(180.0, east),
        )
