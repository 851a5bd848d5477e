"""
Configuration for the clusterer.
"""

from dataclasses import dataclass, field
from typing import Callable

from .errors import ConfigError
from .quadtree import NODE_CAPACITY


CLUSTER_CENTER_PADDING = 120
UPDATE_INTERVAL_TIME = 500
CAMERA_ANIMATION_DURATION = 500
ANIMATION_DURATION = 500
ANIMATION_TICK = 16  # 60 fps


def linear(t: float) -> float:
    """Identity easing curve."""
    return t


@dataclass
class ClustererConfig:
    """Configuration for a Clusterer."""

    animation_enabled: bool = False
    """Animate newly added markers. Requires a marker animation callback."""

    animation_duration_ms: int = ANIMATION_DURATION
    """Length of the appearance animation."""

    animation_curve: Callable[[float], float] = field(default=linear)
    """Easing curve mapping elapsed fraction to animation progress."""

    cluster_center_padding_px: int = CLUSTER_CENTER_PADDING
    """Padding kept around a cluster's bounds when zooming onto it."""

    update_debounce_ms: int = UPDATE_INTERVAL_TIME
    """Quiet period after the last camera event before clustering runs."""

    camera_animation_ms: int = CAMERA_ANIMATION_DURATION
    """Duration of the zoom-to-cluster camera animation."""

    node_capacity: int = NODE_CAPACITY
    """Points per quadtree leaf before it splits."""

    density: float = 1.0
    """Display density (dpi / 160) applied to the clustering grid."""

    animation_tick_ms: int = ANIMATION_TICK
    """Period of the animation tick."""

    def __post_init__(self):
        if self.animation_duration_ms <= 0:
            raise ConfigError("animation_duration_ms must be positive")
        if not callable(self.animation_curve):
            raise ConfigError("animation_curve must be callable")
        if self.cluster_center_padding_px < 0:
            raise ConfigError("cluster_center_padding_px must be non-negative")
        if self.update_debounce_ms < 0:
            raise ConfigError("update_debounce_ms must be non-negative")
        if self.camera_animation_ms < 0:
            raise ConfigError("camera_animation_ms must be non-negative")
        if self.node_capacity < 1:
            raise ConfigError("node_capacity must be at least 1")
        if self.density <= 0:
            raise ConfigError("density must be positive")
        if self.animation_tick_ms <= 0:
            raise ConfigError("animation_tick_ms must be positive")
