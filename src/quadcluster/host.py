"""
Capabilities the map host provides to the clustering core.

The core never draws. It reads the camera, viewport and projection from a
MapHost, asks its MarkerFactory to create and destroy markers, and posts
work back onto the host's UI thread. The core keeps only a weak reference
to the host so a torn-down map simply stops receiving updates.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Hashable, Optional, Tuple
import weakref

from .bounds import BoundingBox
from .cluster import Cluster
from .points import Clusterable
from .projection import Projection


MarkerHandle = Hashable


@dataclass(frozen=True)
class CameraEvent:
    """Camera position reported by the host after it moved."""
    zoom: float
    target: Tuple[float, float]


class MarkerFactory(ABC):
    """Creates and destroys markers on the host map."""

    @abstractmethod
    def create_singleton(self, point: Clusterable) -> MarkerHandle:
        pass

    @abstractmethod
    def create_cluster(self, cluster: Cluster) -> MarkerHandle:
        pass

    @abstractmethod
    def destroy(self, handle: MarkerHandle) -> None:
        pass


class MapHost(ABC):
    """The map the clusterer is attached to."""

    @abstractmethod
    def projection(self) -> Projection:
        """Projection valid for the current camera."""
        pass

    @abstractmethod
    def viewport(self) -> BoundingBox:
        """Currently visible region."""
        pass

    @abstractmethod
    def camera(self) -> CameraEvent:
        """Current camera position."""
        pass

    @abstractmethod
    def marker_factory(self) -> MarkerFactory:
        pass

    @abstractmethod
    def post(self, callback: Callable[[], None], delay_ms: int = 0) -> None:
        """Run callback on the UI thread, after delay_ms."""
        pass

    def animate_camera(
        self, bounds: BoundingBox, padding_px: int, duration_ms: int
    ) -> None:
        """
        Move the camera so that bounds fits the screen.

        Hosts without camera control may leave this as a no-op.
        """
        pass


class HostRef:
    """Weak handle on a MapHost."""

    def __init__(self, host: MapHost):
        self._ref = weakref.ref(host)

    def upgrade(self) -> Optional[MapHost]:
        """Return the host, or None once it has been garbage collected."""
        return self._ref()

    @property
    def attached(self) -> bool:
        return self._ref() is not None
