from __future__ import annotations


class SubstrateError(Exception):
    """Base class for every error raised by the simulation substrate itself.

    Errors raised by a State implementation's own update logic are not wrapped;
    they propagate unchanged.
    """


class LockError(SubstrateError, RuntimeError):
    """Shared or exclusive access to a cell's internal stores could not be obtained."""


class TopologyError(SubstrateError, ValueError):
    """The requested tiling is unknown or cannot be built over the given lattice."""


class DimensionError(TopologyError):
    """A dimension vector is malformed (empty, zero or non-integer extents), or its
    dimensionality or extent parity does not suit the tiling (hexagonal, Moore).
    """


class CoordinateMismatchError(SubstrateError, ValueError):
    """A coordinate vector's length disagrees with the lattice's dimensionality."""
