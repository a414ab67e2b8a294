from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence, Tuple

from .lattice import Coords
from .space import GrayScale, Region, Space, State

TWO_PI = 2.0 * math.pi
DAMPING = 12.0


def normalize(angle: float) -> float:
    """Angle reduced into [0, 2*pi)."""
    out = math.fmod(angle, TWO_PI)
    if out < 0.0:
        out += TWO_PI
    # fmod of a tiny negative can round up to exactly 2*pi
    return 0.0 if out >= TWO_PI else out


def symmetric(angle: float) -> float:
    """Angle reduced into (-pi, pi]."""
    norm = normalize(angle)
    return norm if norm <= math.pi else norm - TWO_PI


@dataclass(frozen=True)
class Rotate(State, GrayScale):
    """Angle diffusion: each cell turns a fraction of the way towards its neighbors' mean."""

    angle: float = 0.0

    @classmethod
    def update(cls, region: Region, location: Any, generation: Any) -> "Rotate":
        this = region.state(location, generation)
        this_angle = this.angle if this is not None else 0.0
        count = 0
        total = 0.0
        for neighbor in location.neighbors():
            count += 1
            other = region.state(neighbor, generation)
            if other is not None:
                total += normalize(other.angle) + TWO_PI
        if count == 0:
            return cls(angle=this_angle)
        return cls(angle=this_angle + symmetric(total / count) / DAMPING)

    def to_char(self) -> str:
        a = normalize(self.angle)
        u = math.pi / 3.0
        if a < u:
            return "-"
        if a < math.pi:
            return "\\"
        if a < 5.0 * u:
            return "/"
        return "-"

    def gray_value(self, context: Any = None) -> int:
        return int(round(255.0 * normalize(self.angle) / TWO_PI)) % 256

    def __str__(self) -> str:
        return self.to_char()


def radial_initializer(dimensions: Sequence[int]) -> Callable[[Coords], Rotate]:
    """Angle = pi * <unit radius vector from the centre, unit main diagonal>.

    The centre cell itself (zero radius) starts at angle 0.
    """
    dims = [int(d) for d in dimensions]
    diag = 1.0 / math.sqrt(len(dims))

    def init(coords: Coords) -> Rotate:
        x = [float(c) - d / 2.0 for c, d in zip(coords, dims)]
        r = math.sqrt(sum(v * v for v in x))
        if r == 0.0:
            return Rotate(0.0)
        return Rotate(math.pi * sum((v / r) * diag for v in x))

    return init


def mean_angle(space: Space, generation: Any) -> float:
    def step(region: Region, location: Any, acc: Tuple[float, int]) -> Tuple[float, int]:
        s = region.state(location, generation)
        if s is None:
            return acc
        return (acc[0] + symmetric(s.angle), acc[1] + 1)

    total, n = space.reduce((0.0, 0), step)
    return total / n if n else 0.0
