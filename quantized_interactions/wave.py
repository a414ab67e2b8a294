from __future__ import annotations

"""
Wave propagation over a lattice: each cell carries an amplitude and a velocity; a few
"center" cells are driven sinusoidally and the rest accelerate towards their neighbors.

A cell's first update only learns how many neighbors it has; coupling starts once both
ends of an edge know their neighbor counts, and the coupling strength is divided by the
larger of the two counts so mixed-degree topologies stay stable.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .lattice import Coords
from .space import GrayScale, Region, Space, State

logger = logging.getLogger(__name__)

COUPLING = 0.005
DRIVE_PERIOD = 40.0
DRIVE_AMPLITUDE = 30.0


@dataclass(frozen=True)
class Wave(State, GrayScale):
    amplitude: float = 0.0
    velocity: float = 0.0
    is_center: bool = False
    neighbor_count: Optional[int] = None

    @classmethod
    def update(cls, region: Region, location: Any, generation: Any) -> "Wave":
        this = region.state(location, generation)
        if this is None:
            this = cls()
        neighbors = location.neighbors()

        next_amplitude = this.amplitude + this.velocity
        next_velocity = this.velocity
        count = 0
        missing = 0
        if this.is_center:
            angle = int(generation) / DRIVE_PERIOD
            next_amplitude = math.sin(angle) * DRIVE_AMPLITUDE
            next_velocity = math.cos(angle)
            count = len(neighbors)
        elif this.neighbor_count is not None:
            for neighbor in neighbors:
                other = region.state(neighbor, generation)
                if other is None:
                    missing += 1
                    continue
                if other.neighbor_count is not None:
                    max_c = max(this.neighbor_count, other.neighbor_count)
                    next_velocity += (other.amplitude - this.amplitude) * COUPLING / max_c
                count += 1
        else:
            count = len(neighbors)

        logger.debug("Neighbor count: %s: %d (missing: %d)", location.id, count, missing)
        return cls(
            amplitude=next_amplitude,
            velocity=next_velocity,
            is_center=this.is_center,
            neighbor_count=count if count > 0 else None,
        )

    def to_char(self) -> str:
        if self.amplitude > 0.0:
            return "^"
        if self.amplitude < 0.0:
            return "v"
        return "0"

    def gray_value(self, context: float) -> int:
        """Gray level for this amplitude, scaled by the smallest local maximum ``context``."""
        magnitude = self.amplitude / float(context)
        value = math.atan(magnitude) * 2.0 / math.pi
        return int(127.0 * value + 128.0)

    def __str__(self) -> str:
        return self.to_char()


def centre_initializer(dimensions: Sequence[int]) -> Callable[[Coords], Wave]:
    """Drive the 2x2 block of cells around the quarter point of a 2-D lattice."""
    height, width = (int(d) for d in dimensions)

    def init(coords: Coords) -> Wave:
        r, c = coords
        return Wave(is_center=(r // 2 == height // 4 and c // 2 == width // 4))

    return init


def local_maximum(region: Region, location: Any, generation: Any) -> Optional[float]:
    """|amplitude| of ``location`` if no neighbor exceeds it, else None."""
    this = region.state(location, generation)
    if this is None:
        return None
    amplitude = abs(this.amplitude)
    if amplitude <= 0.0:
        return None
    for neighbor in location.neighbors():
        other = region.state(neighbor, generation)
        if other is not None and abs(other.amplitude) > amplitude:
            return None
    return amplitude


def smallest_local_maximum(space: Space, generation: Any) -> float:
    """Smallest local amplitude maximum across the space; 1.0 when there is none."""

    def step(region: Region, location: Any, acc: float) -> float:
        m = local_maximum(region, location, generation)
        return m if m is not None and m < acc else acc

    result = space.reduce(math.inf, step)
    if result <= 0.0 or math.isinf(result):
        return 1.0
    return result
