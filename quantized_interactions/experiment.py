from __future__ import annotations

"""
Driver: build a configured torus, sweep it for N generations, and record per-generation
statistics (folded over the whole space with `Space.reduce`), text renders and images.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from . import conway, rotate, wave
from .config import ExperimentConfig
from .errors import TopologyError
from .export import export_generation, write_stats_csv
from .generation import successor
from .lattice import coords_to_index
from .repro import snapshot_digest, write_meta
from .rng import board_rng
from .space import Region, State
from .tiling import Tiling
from .torus import Torus

logger = logging.getLogger(__name__)


def simulate(
    torus: Torus,
    generation: Any,
    steps: int,
    *,
    on_generation: Optional[Callable[[Torus, Any], None]] = None,
    workers: int = 1,
) -> Any:
    """Run ``steps`` sweeps starting at ``generation``; return the last generation computed.

    ``on_generation(torus, g)`` is called after every sweep with the new generation.
    """
    for _ in range(int(steps)):
        torus.update_all(generation, workers=workers)
        generation = successor(generation)
        if on_generation is not None:
            on_generation(torus, generation)
    return generation


def build_torus(cfg: ExperimentConfig, initial_generation: Any = 0) -> Torus:
    dims = cfg.torus.dimensions
    if cfg.rule == "conway":
        init = conway.random_soup(board_rng(cfg.seed, cfg.rule, dims), cfg.density)
    elif cfg.rule == "wave":
        if len(dims) != 2:
            raise TopologyError(f"The wave experiment needs a 2-D torus, got dimensions {dims!r}")
        init = wave.centre_initializer(dims)
    elif cfg.rule == "rotate":
        init = rotate.radial_initializer(dims)
    else:
        raise ValueError(f"Unknown rule: {cfg.rule!r}")
    return Torus.build(cfg.torus.tiling, dims, initial_generation, init)


def generation_stats(rule: str, torus: Torus, generation: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {"generation": int(generation)}
    if rule == "conway":
        row["alive"] = conway.alive_count(torus, generation)
    elif rule == "wave":
        row["smallest_local_maximum"] = wave.smallest_local_maximum(torus, generation)
    elif rule == "rotate":
        row["mean_angle"] = rotate.mean_angle(torus, generation)
    return row


def _gray_context(rule: str, row: Dict[str, Any]) -> Any:
    return row.get("smallest_local_maximum", 1.0) if rule == "wave" else None


@dataclass
class RunResult:
    torus: Torus
    final_generation: Any
    rows: List[Dict[str, Any]] = field(default_factory=list)
    frames: List[Path] = field(default_factory=list)
    digest: str = ""


def run(cfg: ExperimentConfig, out_dir: Optional[Path] = None) -> RunResult:
    """Execute one experiment; write frames, stats.csv and meta.json under ``out_dir``.

    ``out_dir`` defaults to ``cfg.export.dir``; nothing is written when both are None.
    """
    if out_dir is None and cfg.export.dir is not None:
        out_dir = Path(cfg.export.dir)

    torus = build_torus(cfg)
    logger.info(
        "Experiment: rule=%s tiling=%s dimensions=%s generations=%d",
        cfg.rule, cfg.torus.tiling.value, cfg.torus.dimensions, cfg.generations,
    )
    start = 0
    if cfg.log_every > 0 and torus.dimensionality <= 3:
        torus.info(start)

    result = RunResult(torus=torus, final_generation=start)
    result.rows.append(generation_stats(cfg.rule, torus, start))

    def on_generation(t: Torus, g: Any) -> None:
        row = generation_stats(cfg.rule, t, g)
        result.rows.append(row)
        logger.info("Generation [%s]: %s", g, {k: v for k, v in row.items() if k != "generation"})
        n = int(g)
        if cfg.log_every > 0 and n % cfg.log_every == 0 and t.dimensionality <= 3:
            t.info(g)
        if out_dir is not None and cfg.export.every > 0 and n % cfg.export.every == 0:
            result.frames.append(
                export_generation(t, g, _gray_context(cfg.rule, row), out_dir,
                                  prefix=cfg.rule, fmt=cfg.export.format)
            )

    result.final_generation = simulate(
        torus, start, cfg.generations, on_generation=on_generation, workers=cfg.workers
    )
    result.digest = snapshot_digest(torus, result.final_generation)

    if out_dir is not None and cfg.export.stats:
        write_stats_csv(Path(out_dir) / "stats.csv", result.rows)
        write_meta(Path(out_dir) / "meta.json", extra={
            "config": cfg.to_dict(),
            "final_generation": int(result.final_generation),
            "final_digest": result.digest,
            "cells": torus.N,
        })
    return result


@dataclass(frozen=True)
class Label(State):
    """Static payload naming its own coordinates and linear index; never changes."""

    coords: Tuple[int, ...]
    index: int

    @classmethod
    def update(cls, region: Region, location: Any, generation: Any) -> "Label":
        this = region.state(location, generation)
        if this is None:
            raise ValueError(f"Label of {location.id} missing at generation {generation!r}")
        return this

    def to_char(self) -> str:
        return f"({', '.join(str(c) for c in self.coords)})#{self.index} "


def label_torus(tiling: "Tiling | str", dimensions: Sequence[int]) -> Torus:
    """Torus whose cells carry their own coordinates; for checking wiring by eye."""
    dims = tuple(int(d) for d in dimensions)
    return Torus.build(tiling, dims, 0, lambda coords: Label(tuple(coords), coords_to_index(coords, dims)))
