from __future__ import annotations

import math

import numba
import numpy as np


@numba.njit(cache=True)
def fill_convex_polygon(
    px: np.ndarray,  # float64[k], pixel-space x
    py: np.ndarray,  # float64[k], pixel-space y
    inv_depth: np.ndarray,  # float64[3], 1/z = a*x + b*y + c
    rgba: np.ndarray,  # uint8[4]
    colour: np.ndarray,  # uint8[rows, cols, 4]
    depth: np.ndarray,  # float64[rows, cols], inverse depth, 0 = empty
    row_lo: int,
    row_hi: int,
) -> int:
    """
    Flat-fill a convex polygon with an inverse-depth test.

    A pixel is covered when its centre lies inside or on the polygon edge.
    Rows outside [row_lo, row_hi) are never written. Returns the number of
    pixels written.
    """
    n = px.shape[0]
    if n < 3:
        return 0
    area = 0.0
    for k in range(n):
        j = (k + 1) % n
        area += px[k] * py[j] - px[j] * py[k]
    if abs(area) < 1e-12:
        return 0
    sign = 1.0 if area > 0.0 else -1.0

    xmin = px[0]
    xmax = px[0]
    ymin = py[0]
    ymax = py[0]
    for k in range(1, n):
        xmin = min(xmin, px[k])
        xmax = max(xmax, px[k])
        ymin = min(ymin, py[k])
        ymax = max(ymax, py[k])

    cols = colour.shape[1]
    c0 = max(0, int(math.ceil(xmin - 0.5)))
    c1 = min(cols - 1, int(math.floor(xmax - 0.5)))
    r0 = max(row_lo, int(math.ceil(ymin - 0.5)))
    r1 = min(row_hi - 1, int(math.floor(ymax - 0.5)))
    if c0 > c1 or r0 > r1:
        return 0

    a = inv_depth[0]
    b = inv_depth[1]
    c = inv_depth[2]
    written = 0
    for r in range(r0, r1 + 1):
        y = r + 0.5
        for col in range(c0, c1 + 1):
            x = col + 0.5
            inside = True
            for k in range(n):
                j = (k + 1) % n
                e = (px[j] - px[k]) * (y - py[k]) - (py[j] - py[k]) * (x - px[k])
                if e * sign < 0.0:
                    inside = False
                    break
            if not inside:
                continue
            w = a * x + b * y + c
            if w > depth[r, col]:
                depth[r, col] = w
                colour[r, col, 0] = rgba[0]
                colour[r, col, 1] = rgba[1]
                colour[r, col, 2] = rgba[2]
                colour[r, col, 3] = rgba[3]
                written += 1
    return written
