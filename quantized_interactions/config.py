from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .export import FORMATS
from .tiling import Tiling, check_dimensions

RULES = ("conway", "wave", "rotate")


@dataclass(frozen=True)
class TorusConfig:
    tiling: Tiling
    dimensions: Tuple[int, ...]


@dataclass(frozen=True)
class ExportConfig:
    dir: Optional[str] = None  # None disables image export
    every: int = 0             # export every k generations (0 = never)
    format: str = "png"        # "png" | "pgm"
    stats: bool = True         # write stats.csv + meta.json when dir is set


@dataclass(frozen=True)
class ExperimentConfig:
    rule: str  # one of RULES
    torus: TorusConfig
    generations: int
    seed: int = 0
    density: float = 0.35   # initial live fraction for random Conway boards
    workers: int = 1        # > 1 sweeps cells on a thread pool
    log_every: int = 1      # render the board via Torus.info every k generations (0 = never)
    export: ExportConfig = field(default_factory=ExportConfig)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["torus"]["tiling"] = self.torus.tiling.value
        d["torus"]["dimensions"] = list(self.torus.dimensions)
        return d


def _require(d: Mapping[str, Any], key: str) -> Any:
    if key not in d:
        raise KeyError(f"Missing required config key: {key}")
    return d[key]


def _get(d: Mapping[str, Any], key: str, default: Any) -> Any:
    return d[key] if key in d else default


def parse_experiment_config(data: Mapping[str, Any]) -> ExperimentConfig:
    rule = str(_require(data, "rule")).strip().lower()
    if rule not in RULES:
        raise ValueError(f"Unknown rule: {rule!r} (use one of {RULES})")

    tdict = dict(_require(data, "torus"))
    tiling = Tiling.parse(_require(tdict, "tiling"))
    torus = TorusConfig(
        tiling=tiling,
        dimensions=check_dimensions(tiling, list(_require(tdict, "dimensions"))),
    )

    edict = dict(_get(data, "export", None) or {})
    export = ExportConfig(
        dir=None if edict.get("dir") is None else str(edict["dir"]),
        every=int(_get(edict, "every", 0)),
        format=str(_get(edict, "format", "png")).lower(),
        stats=bool(_get(edict, "stats", True)),
    )
    if export.format not in FORMATS:
        raise ValueError(f"Unknown export format: {export.format!r} (use one of {FORMATS})")

    generations = int(_require(data, "generations"))
    if generations < 0:
        raise ValueError(f"generations must be >= 0, got {generations}")
    density = float(_get(data, "density", 0.35))
    if not 0.0 <= density <= 1.0:
        raise ValueError(f"density must be in [0,1], got {density}")

    return ExperimentConfig(
        rule=rule,
        torus=torus,
        generations=generations,
        seed=int(_get(data, "seed", 0)),
        density=density,
        workers=max(1, int(_get(data, "workers", 1))),
        # Backward-compatible: accept info_every as an alias for log_every.
        log_every=int(_get(data, "log_every", _get(data, "info_every", 1))),
        export=export,
    )


def load_yaml(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML file {path} must contain a mapping at the top level")
    return data


def load_experiment_config(path: str | Path) -> ExperimentConfig:
    return parse_experiment_config(load_yaml(path))
