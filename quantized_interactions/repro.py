from __future__ import annotations

"""
Provenance for experiment outputs: digests of the package sources and of simulated
boards, plus the interpreter and library versions a run used.
"""

import hashlib
import json
import platform
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

from .torus import Torus

TRACKED_DISTRIBUTIONS = ("numpy", "pandas", "networkx", "matplotlib", "PyYAML")


def sha256_file(path: Path, chunk_size: int = 1 << 20) -> str:
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def sha256_tree(root: Path, suffixes: Tuple[str, ...] = (".py",)) -> Dict[str, str]:
    """Digest of every file under ``root`` whose suffix is in ``suffixes``, keyed by posix path."""
    root = Path(root)
    files = (p for p in sorted(root.rglob("*")) if p.is_file() and p.suffix in suffixes)
    return {p.relative_to(root).as_posix(): sha256_file(p) for p in files}


def library_versions(names: Iterable[str] = TRACKED_DISTRIBUTIONS) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for name in names:
        try:
            out[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            out[name] = "missing"
    return out


def environment_stamp() -> Dict[str, Any]:
    return {
        "python": sys.version,
        "implementation": platform.python_implementation(),
        "platform": platform.platform(),
        "libraries": library_versions(),
    }


def snapshot_digest(torus: Torus, generation: Any) -> str:
    """sha256 over the repr of every cell's value at ``generation``, in index order.

    Two runs from the same construction and update sequence produce equal digests;
    absent states hash as ``None``.
    """
    h = hashlib.sha256()
    h.update(repr(tuple(torus.dimensions)).encode("utf-8"))
    for cell in torus.cells:
        h.update(b"|")
        h.update(repr(cell.state(generation)).encode("utf-8"))
    return h.hexdigest()


def write_meta(path: Path, extra: Dict[str, Any]) -> None:
    """Write ``meta.json``: environment, digests of this package's sources, run details."""
    meta = {
        "env": environment_stamp(),
        "code_sha256": sha256_tree(Path(__file__).resolve().parent),
        "extra": extra,
    }
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(meta, indent=2, sort_keys=True, default=str), encoding="utf-8")
