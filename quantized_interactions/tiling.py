from __future__ import annotations

"""
Adjacency policies for periodic lattices, and the neighbor-wiring passes that realize them.

Each wiring pass joins cells of an already-built flat cell list, addressed through
`lattice.coords_to_index`. Joins are symmetric and idempotent, so a pass may visit an
edge from both ends (or twice on small extents) without creating duplicates.
"""

import enum
import itertools
import logging
from typing import Dict, Iterator, List, Sequence, Tuple

from .cell import Cell
from .errors import DimensionError, TopologyError
from .lattice import Coords, coords_to_index, iter_coordinates, offset, validate_dimensions

logger = logging.getLogger(__name__)


class Tiling(enum.Enum):
    ORTHOGONAL = "orthogonal"
    ORTHOGONAL_DIAGONAL = "orthogonal_diagonal"
    HEXAGONAL = "hexagonal"
    MOORE = "moore"  # legacy 2-D "touching squares"

    @classmethod
    def parse(cls, name: "str | Tiling") -> "Tiling":
        if isinstance(name, Tiling):
            return name
        key = str(name).strip().upper().replace("-", "_").replace(" ", "_")
        # Friendly aliases to avoid config/CLI surprises.
        if key in {"ORTHOGONAL", "ORTH", "VON_NEUMANN", "ADJACENT_SQUARES", "ADJACENTSQUARES"}:
            return cls.ORTHOGONAL
        if key in {"ORTHOGONAL_DIAGONAL", "ORTHOGONALDIAGONAL", "ORTH_DIAG", "DIAGONAL"}:
            return cls.ORTHOGONAL_DIAGONAL
        if key in {"HEXAGONAL", "HEX", "HEXAGONS"}:
            return cls.HEXAGONAL
        if key in {"MOORE", "TOUCHING_SQUARES", "TOUCHINGSQUARES"}:
            return cls.MOORE
        raise TopologyError(f"Unknown tiling: {name!r}")


def check_dimensions(tiling: Tiling, dimensions: Sequence[int]) -> Tuple[int, ...]:
    """Validate a dimension vector against a tiling's preconditions."""
    dims = validate_dimensions(dimensions)
    if tiling is Tiling.HEXAGONAL:
        if len(dims) != 2:
            raise DimensionError(f"Hexagonal tiling needs exactly 2 dimensions, got {dims!r}")
        if any(d % 2 for d in dims):
            raise DimensionError(f"Hexagonal tiling needs even extents, got {dims!r}")
    elif tiling is Tiling.MOORE:
        if len(dims) != 2:
            raise DimensionError(f"Moore (touching squares) tiling needs exactly 2 dimensions, got {dims!r}")
    return dims


def orthogonal_offsets(dimensionality: int) -> List[Tuple[int, ...]]:
    """Unit steps ±1 along each axis (von Neumann neighborhood)."""
    out: List[Tuple[int, ...]] = []
    for axis in range(dimensionality):
        for step in (1, -1):
            delta = [0] * dimensionality
            delta[axis] = step
            out.append(tuple(delta))
    return out


def corner_offsets(dimensionality: int) -> List[Tuple[int, ...]]:
    """All 2**n hypercube corners: every coordinate independently offset by +1 or -1."""
    return [tuple(c) for c in itertools.product((1, -1), repeat=dimensionality)]


def moore_offsets() -> List[Tuple[int, int]]:
    return [(dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)]


def hexagonal_targets(coords: Coords, dimensions: Sequence[int]) -> List[Coords]:
    """Forward neighbors of (row, column) in the brick packing.

    Same row, next column; and two cells of the next row whose columns depend on the
    parity of the row: ``offset = width - (row % 2)``.
    """
    height, width = (int(d) for d in dimensions)
    r, c = coords
    shift = width - (r % 2)
    below = (r + 1) % height
    return [
        (r, (c + 1) % width),
        (below, (c + shift) % width),
        (below, (c + shift + 1) % width),
    ]


def neighbor_coordinates(tiling: Tiling, coords: Coords, dimensions: Sequence[int]) -> Iterator[Coords]:
    """Coordinates this cell joins to during the wiring pass (may include itself on tiny extents)."""
    n = len(dimensions)
    if tiling is Tiling.ORTHOGONAL:
        deltas = orthogonal_offsets(n)
    elif tiling is Tiling.ORTHOGONAL_DIAGONAL:
        deltas = orthogonal_offsets(n) + corner_offsets(n)
    elif tiling is Tiling.MOORE:
        deltas = moore_offsets()
    elif tiling is Tiling.HEXAGONAL:
        yield from hexagonal_targets(coords, dimensions)
        return
    else:
        raise TopologyError(f"Unsupported tiling: {tiling!r}")
    for delta in deltas:
        yield offset(coords, delta, dimensions)


def wire(tiling: Tiling, cells: Sequence[Cell], dimensions: Sequence[int]) -> int:
    """Run the neighbor-wiring pass for ``tiling`` over ``cells``; return the join count."""
    dims = check_dimensions(tiling, dimensions)
    joins = 0
    for coords in iter_coordinates(dims):
        center = cells[coords_to_index(coords, dims)]
        for target in neighbor_coordinates(tiling, coords, dims):
            if target == coords:
                continue
            center.join(cells[coords_to_index(target, dims)])
            joins += 1
    logger.debug("Wired %s tiling over %s: %d joins", tiling.value, dims, joins)
    return joins


def expected_degree(tiling: Tiling, dimensionality: int) -> int:
    """Neighbor count of every cell when all extents are large enough to avoid collisions."""
    table: Dict[Tiling, int] = {
        Tiling.ORTHOGONAL: 2 * dimensionality,
        Tiling.ORTHOGONAL_DIAGONAL: 2 * dimensionality + 2 ** dimensionality,
        Tiling.HEXAGONAL: 6,
        Tiling.MOORE: 8,
    }
    return table[tiling]
