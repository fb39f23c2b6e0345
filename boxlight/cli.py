from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from boxlight.engine.pipeline import ConfigError, LightingConfig, check_config, load_config, run_lighting
from boxlight.geometry.primitives import build_cube_scene, light_cube_scene


def _load(args: argparse.Namespace) -> LightingConfig:
    cfg = load_config(Path(args.config)) if args.config else LightingConfig()
    transfer = cfg.transfer
    if args.method is not None:
        transfer = replace(transfer, method=args.method)
    if args.resolution is not None:
        transfer = replace(transfer, resolution=int(args.resolution))
    cfg = replace(cfg, transfer=transfer)
    check_config(cfg)
    return cfg


def _cmd_solve(args: argparse.Namespace) -> int:
    try:
        cfg = _load(args)
    except (ConfigError, OSError) as exc:
        print(f"[ERROR] {exc}")
        return 2

    mesh = light_cube_scene(build_cube_scene(subdivision=int(args.subdivision), inner_box=not args.no_inner_box))
    n = len(mesh)
    step = max(1, n // 20)

    def progress(done: int, total: int) -> None:
        if done % step == 0 or done == total:
            logging.getLogger("boxlight.cli").info("transfer rows %d/%d", done, total)

    res = run_lighting(mesh, cfg, progress=progress)
    status = res.solve.status

    print("Boxlight Solve")
    print(f"  Elements: {n} ({cfg.transfer.method})")
    print(f"  Passes: {status.iterations}  converged: {status.converged}")
    print(f"  Total light: {res.solve.history[-1]:.6g}" if res.solve.history else "  Total light: 0")
    print(f"  Brightness scale: {res.scale:.6g}")
    for w in status.warnings:
        print(f"  [WARN] {w}")

    if args.plots:
        # Import here so solving works without a plotting backend.
        from boxlight.plotting.plots import plot_convergence, plot_transfer_matrix

        outdir = Path(args.plots).expanduser().resolve()
        conv = plot_convergence(res.solve.history, outdir / "convergence.png")
        mat = plot_transfer_matrix(res.transfers, outdir / "transfers.png")
        print(f"  Saved: {conv}")
        print(f"  Saved: {mat}")

    return 0 if status.converged else 1


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="boxlight")
    p.add_argument("--verbose", "-v", action="store_true", help="Log per-row and per-pass detail")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("solve", help="Light the demo cube scene and report convergence.")
    s.add_argument("--subdivision", type=int, default=8, help="Room sub-quads per face edge (default: 8)")
    s.add_argument("--method", choices=["hemicube", "analytic"], default=None, help="Transfer estimator")
    s.add_argument("--resolution", type=int, default=None, help="Cube-map resolution for the hemicube method")
    s.add_argument("--config", default=None, help="JSON lighting config")
    s.add_argument("--no-inner-box", action="store_true", help="Leave out the rotated inner box")
    s.add_argument("--plots", default=None, help="Directory for convergence/transfer plots")
    s.set_defaults(func=_cmd_solve)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
