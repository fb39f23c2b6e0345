from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from boxlight.geometry.core import Mesh, grey_levels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverStatus:
    converged: bool
    iterations: int
    residual: float
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SolverConfig:
    # Relative change in total scene light at which iteration stops.
    convergence_target: float = 0.001
    # None iterates until convergence with no cap.
    max_iters: Optional[int] = 1000
    # Light arriving at an emitter, before its material colour is applied.
    emission: float = 1.0


@dataclass(frozen=True)
class LightSolveResult:
    status: SolverStatus
    history: List[float]
    colours: np.ndarray


def check_transfers(transfers: np.ndarray, n: int) -> np.ndarray:
    T = np.asarray(transfers, dtype=float)
    if T.shape != (n, n):
        raise ValueError(f"transfer matrix must be {n}x{n}, got shape {T.shape}")
    if not np.all(np.isfinite(T)):
        raise ValueError("transfer matrix has non-finite entries")
    if np.any(T < 0.0):
        raise ValueError("transfer matrix has negative entries")
    return T


def iterate_lighting(
    colours: np.ndarray,
    materials: np.ndarray,
    emitters: np.ndarray,
    transfers: np.ndarray,
    emission: float = 1.0,
) -> np.ndarray:
    """
    One gathering pass over all elements.

    Reads only `colours` (the previous pass) and returns a new (n, 3) array:
    emitters receive `emission` white, everything else the transfer-weighted
    sum of the other elements' colours, then both are filtered by the
    element's material colour. Self terms are ignored without copying
    `transfers`.
    """
    incoming = transfers @ colours
    incoming -= np.diagonal(transfers)[:, None] * colours
    incoming[emitters] = emission
    return incoming * materials


def total_light(colours: np.ndarray, areas: np.ndarray) -> float:
    """Area-weighted sum of each element's grey level (mean of RGB)."""
    return float(np.sum(grey_levels(colours) * areas))


def relative_change(previous: float, current: float) -> float:
    if current == 0.0:
        return 0.0 if previous == 0.0 else float("inf")
    return abs(previous / current - 1.0)


def solve_lighting(
    mesh: Mesh,
    transfers: np.ndarray,
    *,
    config: SolverConfig = SolverConfig(),
) -> LightSolveResult:
    """
    Iterate gathering passes until total scene light settles.

    Each pass is computed from the previous pass's colours and committed to
    the mesh's `screen_colour` as a whole. The first comparison is against a
    total of zero, so at least two passes run whenever the scene has light.
    Exceeding `config.max_iters` stops with `converged=False`; it is not an
    error.
    """
    n = len(mesh)
    T = check_transfers(transfers, n)

    materials = mesh.material_array()
    emitters = mesh.emitter_mask()
    areas = mesh.areas()
    colours = mesh.screen_array()
    target = max(float(config.convergence_target), 0.0)
    max_iters = None if config.max_iters is None else max(1, int(config.max_iters))

    warnings: List[str] = []
    history: List[float] = []
    light = 0.0
    residual = float("inf")
    converged = False
    it = 0
    while max_iters is None or it < max_iters:
        colours = iterate_lighting(colours, materials, emitters, T, config.emission)
        mesh.set_screen_colours(colours)
        it += 1
        new_light = total_light(colours, areas)
        residual = relative_change(light, new_light)
        light = new_light
        history.append(light)
        logger.debug("pass %d: total light %.6g (change %.3g)", it, light, residual)
        if residual <= target:
            converged = True
            break

    if converged:
        logger.info("lighting converged after %d passes, total light %.6g", it, light)
    else:
        msg = f"max iterations ({max_iters}) reached before convergence; last relative change {residual:.3g}."
        warnings.append(msg)
        logger.warning(msg)

    status = SolverStatus(converged=converged, iterations=it, residual=float(residual), warnings=warnings)
    return LightSolveResult(status=status, history=history, colours=colours)
