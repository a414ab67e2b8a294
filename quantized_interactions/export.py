from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .errors import TopologyError
from .generation import generation_number
from .torus import Torus

logger = logging.getLogger(__name__)

FORMATS = ("png", "pgm")


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True))


def write_stats_csv(path: Path, rows: List[Dict[str, Any]]) -> None:
    df = pd.DataFrame(rows)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)


def gray_image(torus: Torus, generation: Any, context: Any = None) -> np.ndarray:
    """uint8 image (rows = axis 0) of ``state.gray_value(context)``; absent cells are black."""
    if torus.dimensionality != 2:
        raise TopologyError(f"Gray images need a 2-D torus, got dimensions {torus.dimensions!r}")
    levels = torus.snapshot(generation, lambda s: s.gray_value(context), fill=0, dtype=np.int64)
    return np.clip(levels, 0, 255).astype(np.uint8)


def write_pgm(path: Path, image: np.ndarray) -> None:
    """Binary (P5) portable graymap, for netpbm tooling."""
    image = np.asarray(image, dtype=np.uint8)
    if image.ndim != 2:
        raise ValueError(f"PGM needs a 2-D image, got shape {image.shape!r}")
    height, width = image.shape
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        f.write(f"P5\n{width} {height}\n255\n".encode("ascii"))
        f.write(np.ascontiguousarray(image).tobytes())


def write_png(path: Path, image: np.ndarray) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.imsave(path, np.asarray(image, dtype=np.uint8), cmap="gray", vmin=0, vmax=255)


def frame_path(out_dir: Path, prefix: str, generation: Any, fmt: str) -> Path:
    """``<out_dir>/<prefix>-<generation>.<fmt>``; sorts numerically on the field after '-'."""
    return Path(out_dir) / f"{prefix}-{generation_number(generation)}.{fmt}"


def export_generation(
    torus: Torus,
    generation: Any,
    context: Any,
    out_dir: Path,
    *,
    prefix: str = "frame",
    fmt: str = "png",
) -> Path:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown image format {fmt!r} (use one of {FORMATS})")
    image = gray_image(torus, generation, context)
    path = frame_path(out_dir, prefix, generation, fmt)
    if fmt == "png":
        write_png(path, image)
    else:
        write_pgm(path, image)
    logger.info("Exported generation [%s] to [%s]", generation, path)
    return path
