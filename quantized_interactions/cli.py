from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from .config import ExperimentConfig, ExportConfig, TorusConfig, load_experiment_config
from .errors import SubstrateError
from .experiment import label_torus, run
from .tiling import Tiling, check_dimensions

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Root logging setup for command-line runs; the library itself never adds handlers."""
    if level is None:
        level = os.environ.get("QI_LOG", "INFO")
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def _experiment(rule: str, tiling: str, dimensions: List[int], args: argparse.Namespace,
                export: Optional[ExportConfig] = None) -> ExperimentConfig:
    t = Tiling.parse(tiling)
    return ExperimentConfig(
        rule=rule,
        torus=TorusConfig(tiling=t, dimensions=check_dimensions(t, dimensions)),
        generations=int(args.generations),
        seed=int(getattr(args, "seed", 0)),
        density=float(getattr(args, "density", 0.35)),
        workers=int(args.workers),
        log_every=int(args.log_every),
        export=export or ExportConfig(),
    )


def _cmd_conway(args: argparse.Namespace) -> None:
    cfg = _experiment("conway", args.tiling, [args.size, args.size], args)
    res = run(cfg)
    print(f"[qi] conway: {res.rows[-1]['alive']} alive after generation {res.final_generation}")


def _cmd_wave(args: argparse.Namespace) -> None:
    export = ExportConfig(dir=str(args.export_dir), every=int(args.export_every or args.size),
                          format=args.format, stats=True)
    generations = args.generations if args.generations is not None else 10 * args.size
    args.generations = generations
    cfg = _experiment("wave", "hexagonal", [args.size, args.size], args, export=export)
    res = run(cfg)
    print(f"[qi] wave: wrote {len(res.frames)} frames to: {args.export_dir}")


def _cmd_rotate(args: argparse.Namespace) -> None:
    cfg = _experiment("rotate", args.tiling, list(args.dimensions), args)
    res = run(cfg)
    print(f"[qi] rotate: mean angle {res.rows[-1]['mean_angle']:.6f} at generation {res.final_generation}")


def _cmd_run(args: argparse.Namespace) -> None:
    cfg = load_experiment_config(args.config)
    res = run(cfg, out_dir=None if args.out_dir is None else Path(args.out_dir))
    print(f"[qi] {cfg.rule}: generation {res.final_generation} digest {res.digest}")


def _cmd_debug(args: argparse.Namespace) -> None:
    torus = label_torus(args.tiling, [args.size, args.size])
    torus.info(0)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="qi", description="Cell-graph simulations on periodic lattices")
    ap.add_argument("--log-level", type=str, default=None,
                    help="Logging level (default: $QI_LOG or INFO)")
    sub = ap.add_subparsers(dest="command", required=True)

    def common(p: argparse.ArgumentParser, generations: Optional[int]) -> None:
        p.add_argument("--generations", type=int, default=generations)
        p.add_argument("--workers", type=int, default=1, help="Threads per sweep")
        p.add_argument("--log-every", type=int, default=1, help="Render the board every k generations")

    p = sub.add_parser("conway", help="Game of life on a square torus")
    p.add_argument("--size", type=int, default=16)
    p.add_argument("--tiling", type=str, default="moore")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--density", type=float, default=0.35)
    common(p, 10)
    p.set_defaults(func=_cmd_conway)

    p = sub.add_parser("wave", help="Driven wave on a hexagonal torus, exported as gray images")
    p.add_argument("size", type=int, nargs="?", default=34)
    p.add_argument("--export-dir", type=str, required=True)
    p.add_argument("--export-every", type=int, default=None, help="Default: size")
    p.add_argument("--format", choices=["png", "pgm"], default="png")
    common(p, None)
    p.set_defaults(func=_cmd_wave, log_every=0)

    p = sub.add_parser("rotate", help="Angle diffusion on an n-dimensional torus")
    p.add_argument("--dimensions", type=int, nargs="+", default=[5, 5, 5])
    p.add_argument("--tiling", type=str, default="orthogonal")
    common(p, 1)
    p.set_defaults(func=_cmd_rotate)

    p = sub.add_parser("run", help="Run an experiment from a YAML config")
    p.add_argument("--config", type=str, required=True, help="YAML config (see configs/)")
    p.add_argument("--out-dir", type=str, default=None, help="Override export.dir")
    p.set_defaults(func=_cmd_run)

    p = sub.add_parser("debug", help="Render a torus of coordinate labels")
    p.add_argument("size", type=int, nargs="?", default=4)
    p.add_argument("--tiling", type=str, default="hexagonal")
    p.set_defaults(func=_cmd_debug)
    return ap


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        args.func(args)
    except SubstrateError as e:
        print(f"[qi] error: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
