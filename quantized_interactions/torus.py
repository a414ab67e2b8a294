from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .cell import Cell
from .lattice import Coords, cardinality, coords_to_index, index_to_coords, iter_coordinates, wrap
from .locks import DEFAULT_TIMEOUT
from .space import Region, Space
from .tiling import Tiling, check_dimensions, wire

logger = logging.getLogger(__name__)


@dataclass
class Torus(Space, Region):
    """Periodic n-dimensional lattice of cells (Space with itself as the sole Region).

    Cells live in one flat list addressed by `lattice.coords_to_index`; the list and the
    neighbor relations are fixed once `build` returns. Only per-cell state stores change
    afterwards, each behind its own lock, so the Torus itself needs no locking.
    """

    tiling: Tiling
    dimensions: Tuple[int, ...]
    cells: List[Cell]
    cell_index: Dict[str, int]  # cell id -> linear index

    @classmethod
    def build(
        cls,
        tiling: "Tiling | str",
        dimensions: Sequence[int],
        initial_generation: Any,
        initializer: Callable[[Coords], Any],
        *,
        rule: Any = None,
        lock_timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> "Torus":
        """Create one cell per coordinate, seeded by ``initializer(coords)``, then wire them.

        Raises DimensionError / TopologyError before any cell is created when the
        dimension vector is malformed or incompatible with ``tiling``.
        """
        tiling = Tiling.parse(tiling)
        dims = check_dimensions(tiling, dimensions)
        N = cardinality(dims)

        cells: List[Optional[Cell]] = [None] * N
        for coords in iter_coordinates(dims):
            state = initializer(coords)
            cells[coords_to_index(coords, dims)] = Cell(
                initial_generation, state, rule=rule, lock_timeout=lock_timeout
            )
        logger.debug("Torus: Number of cells: [%d]", N)

        wire(tiling, cells, dims)
        return cls(
            tiling=tiling,
            dimensions=dims,
            cells=cells,
            cell_index={c.id: i for i, c in enumerate(cells)},
        )

    @property
    def N(self) -> int:
        return len(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def dimensionality(self) -> int:
        return len(self.dimensions)

    # --- Space / Region ---

    def regions(self) -> Tuple["Torus", ...]:
        return (self,)

    def locations(self) -> Iterator[Cell]:
        return iter(self.cells)

    def state(self, location: Cell, generation: Any) -> Optional[Any]:
        return location.state(generation)

    # --- addressing ---

    def get(self, coords: Sequence[int]) -> Cell:
        """Cell at ``coords``, wrapping each coordinate around its axis."""
        return self.cells[coords_to_index(wrap(coords, self.dimensions), self.dimensions)]

    def cell_at(self, index: int) -> Cell:
        return self.cells[index]

    def index_of(self, cell: Cell) -> int:
        try:
            return self.cell_index[cell.id]
        except KeyError:
            raise KeyError(f"Cell {cell.id} does not belong to this torus") from None

    def coordinates_of(self, cell: Cell) -> Coords:
        return index_to_coords(self.index_of(cell), self.dimensions)

    def neighbor_indices(self) -> List[List[int]]:
        """Adjacency as index lists into `cells`, in each cell's join order."""
        return [[self.cell_index[n.id] for n in cell.neighbors()] for cell in self.cells]

    # --- driving ---

    def update_all(self, generation: Any, *, workers: int = 1) -> None:
        """Ask every cell to compute the generation after ``generation``.

        Sequential sweeps go in index order and stop at the first failure. With
        ``workers > 1`` cells are updated on a thread pool; every update reads only
        ``generation`` and writes only its successor, so no extra coordination is
        needed. The first failure in index order is raised, and updates that have not
        started by then are cancelled.
        """
        logger.debug("Update all: generation [%s], %d cells", generation, self.N)
        if workers <= 1:
            for i, cell in enumerate(self.cells):
                logger.debug("Update: [%d]", i)
                cell.update(generation)
            return
        with ThreadPoolExecutor(max_workers=int(workers)) as pool:
            futures = [pool.submit(cell.update, generation) for cell in self.cells]
            try:
                for fut in futures:
                    fut.result()
            except Exception:
                # drop the updates that have not started yet
                pool.shutdown(wait=True, cancel_futures=True)
                raise

    # --- readout ---

    def snapshot(
        self,
        generation: Any,
        fn: Optional[Callable[[Any], Any]] = None,
        *,
        fill: Any = None,
        dtype: Any = object,
    ) -> np.ndarray:
        """Array of shape ``dimensions`` with ``fn(state)`` per cell (``fill`` where absent)."""
        out = np.empty(self.dimensions, dtype=object)
        for i, cell in enumerate(self.cells):
            s = cell.state(generation)
            if s is None:
                value = fill
            else:
                value = s if fn is None else fn(s)
            out[index_to_coords(i, self.dimensions)] = value
        if dtype is object:
            return out
        return out.astype(dtype)

    def lines(self, generation: Any) -> List[str]:
        """Text rendering: one string per row (axis 0), one character per column (axis 1).

        For more than two axes every 2-D slice is rendered under a header naming the
        fixed trailing coordinates.
        """
        chars = self.snapshot(generation, _to_char, fill="?")
        if chars.ndim == 1:
            return ["".join(chars.tolist())]
        if chars.ndim == 2:
            return ["".join(row) for row in chars.tolist()]
        out: List[str] = []
        for rest in iter_coordinates(self.dimensions[2:]):
            out.append(f"[:, :, {', '.join(str(x) for x in rest)}]")
            plane = chars[(slice(None), slice(None)) + tuple(rest)]
            out.extend("".join(row) for row in plane.tolist())
        return out

    def info(self, generation: Any) -> None:
        logger.info("Generation: %s", generation)
        for line in self.lines(generation):
            logger.info("Line: [%s]", line)


def _to_char(state: Any) -> str:
    to_char = getattr(state, "to_char", None)
    return to_char() if callable(to_char) else str(state)
