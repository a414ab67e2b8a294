from __future__ import annotations

import json

import pandas as pd
import pytest

from quantized_interactions.config import parse_experiment_config
from quantized_interactions.conway import pattern_initializer
from quantized_interactions.errors import TopologyError
from quantized_interactions.experiment import build_torus, run, simulate
from quantized_interactions.repro import snapshot_digest
from quantized_interactions.tiling import Tiling
from quantized_interactions.torus import Torus


def _cfg(**overrides):
    data = {
        "rule": "conway",
        "seed": 11,
        "density": 0.4,
        "generations": 6,
        "log_every": 0,
        "torus": {"tiling": "moore", "dimensions": [8, 8]},
    }
    data.update(overrides)
    return parse_experiment_config(data)


def test_simulate_returns_the_last_generation_and_reports_each_one() -> None:
    torus = Torus.build(Tiling.MOORE, (5, 5), 0, pattern_initializer([(1, 2), (2, 2), (3, 2)]))
    seen = []
    last = simulate(torus, 0, 4, on_generation=lambda t, g: seen.append(g))
    assert last == 4
    assert seen == [1, 2, 3, 4]
    assert torus.lines(4) == torus.lines(0)
    assert simulate(torus, 4, 0) == 4


def test_runs_are_deterministic() -> None:
    a = run(_cfg())
    b = run(_cfg())
    assert a.digest == b.digest
    for g in range(7):
        assert snapshot_digest(a.torus, g) == snapshot_digest(b.torus, g)
    assert a.rows == b.rows
    c = run(_cfg(seed=12))
    assert snapshot_digest(c.torus, 0) != snapshot_digest(a.torus, 0)


def test_threaded_run_matches_sequential_run() -> None:
    assert run(_cfg(workers=4)).digest == run(_cfg()).digest


def test_run_records_alive_counts() -> None:
    res = run(_cfg())
    assert [r["generation"] for r in res.rows] == list(range(7))
    for r in res.rows:
        alive = sum(bool(c.state(r["generation"]).alive) for c in res.torus.cells)
        assert r["alive"] == alive
    assert res.final_generation == 6


def test_run_writes_frames_stats_and_meta(tmp_path) -> None:
    cfg = _cfg(export={"dir": str(tmp_path / "ignored"), "every": 2, "format": "pgm"})
    res = run(cfg, out_dir=tmp_path)
    assert [p.name for p in res.frames] == ["conway-2.pgm", "conway-4.pgm", "conway-6.pgm"]
    assert all(p.exists() for p in res.frames)
    df = pd.read_csv(tmp_path / "stats.csv")
    assert df["generation"].tolist() == list(range(7))
    meta = json.loads((tmp_path / "meta.json").read_text())
    assert meta["extra"]["final_digest"] == res.digest
    assert meta["extra"]["cells"] == 64
    assert meta["extra"]["config"]["torus"]["tiling"] == "moore"
    assert "torus.py" in meta["code_sha256"]
    assert not (tmp_path / "ignored").exists()


def test_wave_run_exports_scaled_frames(tmp_path) -> None:
    cfg = _cfg(rule="wave", generations=8,
               torus={"tiling": "hexagonal", "dimensions": [8, 8]},
               export={"dir": str(tmp_path), "every": 4, "format": "png"})
    res = run(cfg)
    assert [p.name for p in res.frames] == ["wave-4.png", "wave-8.png"]
    assert all(r["smallest_local_maximum"] > 0 for r in res.rows)


def test_rotate_run_on_three_dimensions() -> None:
    cfg = _cfg(rule="rotate", generations=2, log_every=1,
               torus={"tiling": "orthogonal", "dimensions": [5, 5, 5]})
    res = run(cfg)
    assert res.final_generation == 2
    assert len(res.rows) == 3
    assert "mean_angle" in res.rows[-1]


def test_wave_needs_two_dimensions() -> None:
    with pytest.raises(TopologyError):
        build_torus(_cfg(rule="wave", torus={"tiling": "orthogonal", "dimensions": [4, 4, 4]}))
