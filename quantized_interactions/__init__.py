"""Quantized interactions: a discrete-time simulation substrate on cell graphs.

Core components:

- **Cell**: graph node with write-once, generation-indexed state and a symmetric
  neighbor set, guarded by per-cell readers/writer locks.
- **Region / Space**: the lookup and fold interfaces a local update rule runs against,
  independent of how a topology stores its locations.
- **Torus**: periodic n-dimensional lattice of cells wired by a **Tiling**
  (orthogonal, orthogonal+diagonal, hexagonal, Moore).

Example rules (`conway`, `wave`, `rotate`) and the `experiment` driver exercise the
substrate; `python -m quantized_interactions --help` lists the command-line entry points.
"""

from .cell import Cell, CellRegion
from .errors import CoordinateMismatchError, DimensionError, LockError, SubstrateError, TopologyError
from .generation import Tick, successor
from .lattice import coords_to_index, index_to_coords, iter_coordinates
from .space import GrayScale, Location, Region, Space, State
from .tiling import Tiling
from .torus import Torus

__all__ = [
    "Cell",
    "CellRegion",
    "CoordinateMismatchError",
    "DimensionError",
    "GrayScale",
    "Location",
    "LockError",
    "Region",
    "Space",
    "State",
    "SubstrateError",
    "Tick",
    "Tiling",
    "TopologyError",
    "Torus",
    "coords_to_index",
    "index_to_coords",
    "iter_coordinates",
    "successor",
]
