"""
Error types raised by the clustering core.

Constructor-style errors (bad bounds, points outside the world) surface to
the caller. Runtime failures of an update are absorbed by the orchestrator
and leave the displayed markers untouched.
"""


class ClustererError(Exception):
    """Base class for all quadcluster errors."""


class InvalidBounds(ClustererError, ValueError):
    """A bounding box was built with min > max on some axis."""


class OutOfWorld(ClustererError, ValueError):
    """A point lies outside the root box of the quadtree."""


class ConfigError(ClustererError, ValueError):
    """A configuration value is out of range."""


class HostDetached(ClustererError):
    """The map host went away before an update could be applied."""


class AnimationMisconfigured(ClustererError, RuntimeError):
    """Animation is enabled but no marker animation callback was provided."""


class Cancelled(ClustererError):
    """A clustering run was superseded. Never surfaced to library users."""


class UpdateInterrupted(ClustererError, RuntimeError):
    """
    The host went away part way through applying an update.

    Markers already destroyed or created stay that way; the display lists
    exactly what the host is showing.
    """
