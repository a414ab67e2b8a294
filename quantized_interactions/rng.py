from __future__ import annotations

import hashlib
from typing import Iterable, Sequence, Union

import numpy as np


SeedPart = Union[int, str]


def _seed_bytes(parts: Iterable[SeedPart]) -> bytes:
    return b"|".join(str(p).encode("utf-8") for p in parts)


def derive_seed(base_seed: int, *parts: SeedPart, modulo: int = 2**32 - 1) -> int:
    """Stable 32-bit seed from a base seed and labels (rule name, extents, ...)."""
    h = hashlib.blake2b(_seed_bytes((int(base_seed), *parts)), digest_size=8)
    return int.from_bytes(h.digest(), "big", signed=False) % modulo


def make_rng(seed: int) -> np.random.Generator:
    return np.random.default_rng(int(seed))


def board_rng(seed: int, rule: str, dimensions: Sequence[int]) -> np.random.Generator:
    """Generator for a board's initial condition; same seed, rule and shape give the same board."""
    return make_rng(derive_seed(seed, rule, "x".join(str(int(d)) for d in dimensions)))
