from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import numpy as np

from .lattice import Coords
from .space import GrayScale, Region, Space, State

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conway(State, GrayScale):
    """Conway's game of life (B3/S23) over whatever neighbors the topology provides."""

    alive: bool = False

    @classmethod
    def update(cls, region: Region, location: Any, generation: Any) -> "Conway":
        this = region.state(location, generation)
        this_alive = bool(this is not None and this.alive)
        count = 0
        for neighbor in location.neighbors():
            other = region.state(neighbor, generation)
            if other is not None and other.alive:
                count += 1
        logger.debug("Update: [%s] alive=%s live neighbors=%d", location.id, this_alive, count)
        return cls(alive=(count == 3 or (this_alive and count == 2)))

    def to_char(self) -> str:
        return "#" if self.alive else " "

    def gray_value(self, context: Any = None) -> int:
        return 255 if self.alive else 0

    def __str__(self) -> str:
        return self.to_char()


def pattern_initializer(alive: Iterable[Coords]) -> Callable[[Coords], Conway]:
    """Initializer that makes exactly the listed coordinates alive."""
    live = {tuple(int(x) for x in c) for c in alive}
    return lambda coords: Conway(tuple(coords) in live)


def random_soup(rng: np.random.Generator, density: float) -> Callable[[Coords], Conway]:
    """Initializer drawing each cell alive with probability ``density``.

    Draws happen in enumeration order, so a fixed seed gives a fixed board.
    """
    density = float(density)
    if not 0.0 <= density <= 1.0:
        raise ValueError(f"density must be in [0,1], got {density!r}")
    return lambda coords: Conway(bool(rng.random() < density))


def alive_count(space: Space, generation: Any) -> int:
    def step(region: Region, location: Any, acc: int) -> int:
        s = region.state(location, generation)
        return acc + 1 if s is not None and s.alive else acc

    return space.reduce(0, step)
