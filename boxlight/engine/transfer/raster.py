"""
Offscreen rasterization context for the cube-map estimator.

A square RGBA8 colour buffer with an inverse-depth buffer, driven with
camera-space polygons (camera at the origin looking down +z, x right, y up,
90 degree field of view). Pixels read back bottom row first.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from boxlight.engine.transfer._raster_jit import fill_convex_polygon
from boxlight.geometry.tolerance import EPS_NEAR, EPS_POS

logger = logging.getLogger(__name__)

MAX_RESOLUTION = 8192


class RasterContextError(RuntimeError):
    pass


def clip_near(points: np.ndarray, near: float) -> np.ndarray:
    """Clip a camera-space polygon to z >= near (Sutherland-Hodgman)."""
    out = []
    n = points.shape[0]
    for k in range(n):
        p = points[k]
        q = points[(k + 1) % n]
        p_in = p[2] >= near
        q_in = q[2] >= near
        if p_in:
            out.append(p)
        if p_in != q_in:
            t = (near - p[2]) / (q[2] - p[2])
            out.append(p + t * (q - p))
    if not out:
        return np.zeros((0, 3), dtype=float)
    return np.array(out, dtype=float)


def _newell_normal(points: np.ndarray) -> np.ndarray:
    nxt = np.roll(points, -1, axis=0)
    return np.array(
        [
            np.sum((points[:, 1] - nxt[:, 1]) * (points[:, 2] + nxt[:, 2])),
            np.sum((points[:, 2] - nxt[:, 2]) * (points[:, 0] + nxt[:, 0])),
            np.sum((points[:, 0] - nxt[:, 0]) * (points[:, 1] + nxt[:, 1])),
        ]
    )


class OffscreenContext:
    """
    Owned rasterization resource.

    Buffers are allocated on construction and dropped by `close()`; a closed
    context refuses further use. Use as a context manager to guarantee
    release.
    """

    def __init__(self, resolution: int, near: float = EPS_NEAR):
        try:
            R = int(resolution)
        except (TypeError, ValueError) as exc:
            raise RasterContextError(f"invalid resolution {resolution!r}") from exc
        if R < 2 or R % 2 or R > MAX_RESOLUTION:
            raise RasterContextError(f"resolution must be an even number in 2..{MAX_RESOLUTION}, got {R}")
        if not near > 0.0:
            raise RasterContextError(f"near plane must be positive, got {near}")
        try:
            self._colour = np.zeros((R, R, 4), dtype=np.uint8)
            self._depth = np.zeros((R, R), dtype=np.float64)
        except MemoryError as exc:
            raise RasterContextError(f"cannot allocate {R}x{R} offscreen buffers") from exc
        self.resolution = R
        self.near = float(near)
        self._scissor_rows: Optional[int] = None
        self._closed = False
        logger.debug("acquired %dx%d offscreen context", R, R)

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open(self) -> None:
        if self._closed:
            raise RasterContextError("offscreen context has been released")

    def clear(self) -> None:
        self._require_open()
        self._colour.fill(0)
        self._depth.fill(0.0)

    def set_scissor(self, rows: Optional[int]) -> None:
        """Restrict drawing to the bottom `rows` rows; None lifts the restriction."""
        self._require_open()
        if rows is not None and not 0 < int(rows) <= self.resolution:
            raise ValueError(f"scissor rows must be in 1..{self.resolution}, got {rows}")
        self._scissor_rows = None if rows is None else int(rows)

    def draw_polygon(self, points: np.ndarray, rgba: np.ndarray) -> int:
        """Draw one planar convex camera-space polygon; returns pixels written."""
        self._require_open()
        clipped = clip_near(np.asarray(points, dtype=float), self.near)
        if clipped.shape[0] < 3:
            return 0
        normal = _newell_normal(clipped)
        d = float(np.dot(normal, clipped[0]))
        if abs(d) <= EPS_POS:
            # Plane passes through the eye: seen edge-on.
            return 0

        R = self.resolution
        half = 0.5 * R
        px = (clipped[:, 0] / clipped[:, 2] + 1.0) * half
        py = (clipped[:, 1] / clipped[:, 2] + 1.0) * half
        nx, ny, nz = (float(v) for v in normal)
        inv_depth = np.array([2.0 * nx / (R * d), 2.0 * ny / (R * d), (nz - nx - ny) / d], dtype=np.float64)
        row_hi = R if self._scissor_rows is None else self._scissor_rows
        return int(
            fill_convex_polygon(
                np.ascontiguousarray(px),
                np.ascontiguousarray(py),
                inv_depth,
                np.asarray(rgba, dtype=np.uint8),
                self._colour,
                self._depth,
                0,
                row_hi,
            )
        )

    def read_pixels(self, rows: Optional[int] = None) -> np.ndarray:
        """Copy of the bottom `rows` rows (all rows by default) as (rows, R, 4) uint8."""
        self._require_open()
        n = self.resolution if rows is None else int(rows)
        return self._colour[:n].copy()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        del self._colour
        del self._depth
        logger.debug("released offscreen context")

    def __enter__(self) -> "OffscreenContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
