from __future__ import annotations

"""
Coordinate/index arithmetic for n-dimensional periodic lattices.

Linear index is the mixed-radix encoding of the coordinate vector, least-significant
axis first:

    index = c[0] + c[1]*dims[0] + c[2]*dims[0]*dims[1] + ...

`coords_to_index` and `index_to_coords` are exact inverses and are the only place this
convention lives; construction, wiring and lookup all go through them.
"""

import math
import numbers
from typing import Iterator, List, Sequence, Tuple

from .errors import CoordinateMismatchError, DimensionError

Coords = Tuple[int, ...]


def validate_dimensions(dimensions: Sequence[int]) -> Tuple[int, ...]:
    """Return ``dimensions`` as a tuple of positive ints, or raise DimensionError."""
    dims = tuple(dimensions)
    if len(dims) == 0:
        raise DimensionError("Dimension vector must not be empty")
    out: List[int] = []
    for axis, d in enumerate(dims):
        if isinstance(d, bool) or not isinstance(d, numbers.Integral):
            raise DimensionError(f"Extent of axis {axis} must be an integer, got {d!r}")
        if int(d) <= 0:
            raise DimensionError(f"Extent of axis {axis} must be positive, got {d!r} in {dims!r}")
        out.append(int(d))
    return tuple(out)


def cardinality(dimensions: Sequence[int]) -> int:
    return int(math.prod(int(d) for d in dimensions))


def strides(dimensions: Sequence[int]) -> Tuple[int, ...]:
    """Place value of each axis: (1, d0, d0*d1, ...)."""
    out: List[int] = []
    s = 1
    for d in dimensions:
        out.append(s)
        s *= int(d)
    return tuple(out)


def _check_length(coords: Sequence[int], dimensions: Sequence[int]) -> None:
    if len(coords) != len(dimensions):
        raise CoordinateMismatchError(
            f"Coordinates {tuple(coords)!r} have {len(coords)} axes, lattice has {len(dimensions)}"
        )


def coords_to_index(coords: Sequence[int], dimensions: Sequence[int]) -> int:
    _check_length(coords, dimensions)
    index = 0
    place = 1
    for axis, (c, d) in enumerate(zip(coords, dimensions)):
        c = int(c)
        if not 0 <= c < d:
            raise IndexError(f"Coordinate {c} out of range for axis {axis} with extent {d}")
        index += c * place
        place *= int(d)
    return index


def index_to_coords(index: int, dimensions: Sequence[int]) -> Coords:
    index = int(index)
    total = cardinality(dimensions)
    if not 0 <= index < total:
        raise IndexError(f"Index {index} out of range for lattice of {total} cells")
    out: List[int] = []
    for d in dimensions:
        index, c = divmod(index, int(d))
        out.append(c)
    return tuple(out)


def wrap(coords: Sequence[int], dimensions: Sequence[int]) -> Coords:
    """Reduce each coordinate modulo its axis extent (periodic boundary)."""
    _check_length(coords, dimensions)
    return tuple(int(c) % int(d) for c, d in zip(coords, dimensions))


def offset(coords: Sequence[int], deltas: Sequence[int], dimensions: Sequence[int]) -> Coords:
    _check_length(deltas, dimensions)
    return wrap([int(c) + int(dc) for c, dc in zip(coords, deltas)], dimensions)


def iter_coordinates(dimensions: Sequence[int]) -> Iterator[Coords]:
    """Enumerate every coordinate vector, last axis varying fastest.

    Odometer-style: increment the last axis and carry into earlier axes on overflow.
    """
    dims = [int(d) for d in dimensions]
    if not dims or any(d <= 0 for d in dims):
        return
    buf = [0] * len(dims)
    while True:
        yield tuple(buf)
        axis = len(dims) - 1
        while axis >= 0:
            buf[axis] += 1
            if buf[axis] < dims[axis]:
                break
            buf[axis] = 0
            axis -= 1
        if axis < 0:
            return
