"""
Per-pixel weight tables for the cube-map estimator.

Each face of the cube map is a 90 degree square projection at unit distance
with pixel centres at u, v = -1 + (2k + 1) / R. A pixel subtends

    dw = (2 / R)^2 / (u^2 + v^2 + 1)^(3/2)

steradians. Tables are (rows, R) arrays with row 0 at the bottom of the image,
matching the order pixels are read back in.

- subtend weights: 1.5 * dw / pi, so all six faces sum to 6 (the surface area
  of a unit cube).
- forward light weights: cos * dw / pi on the front face, with cos taken
  against the view axis.
- side light weights: the lower half rows of a side face only, cos taken
  against the viewpoint's forward axis (image "down" on side faces). The
  front face plus four half sides sum to 1 over the hemisphere.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np


def _check_resolution(resolution: int) -> int:
    R = int(resolution)
    if R < 2 or R % 2:
        raise ValueError(f"cube-map resolution must be an even number >= 2, got {resolution}")
    return R


def _pixel_grid(resolution: int, rows: int) -> Tuple[np.ndarray, np.ndarray]:
    centres = -1.0 + (2.0 * np.arange(resolution) + 1.0) / resolution
    u = np.broadcast_to(centres[None, :], (rows, resolution))
    v = np.broadcast_to(centres[:rows, None], (rows, resolution))
    return u, v


def _solid_angle(u: np.ndarray, v: np.ndarray, resolution: int) -> np.ndarray:
    s = u * u + v * v + 1.0
    return (2.0 / resolution) ** 2 / (s * np.sqrt(s))


def subtend_weights(resolution: int) -> np.ndarray:
    R = _check_resolution(resolution)
    u, v = _pixel_grid(R, R)
    return 1.5 * _solid_angle(u, v, R) / math.pi


def forward_light_weights(resolution: int) -> np.ndarray:
    R = _check_resolution(resolution)
    u, v = _pixel_grid(R, R)
    cos_theta = 1.0 / np.sqrt(u * u + v * v + 1.0)
    return cos_theta * _solid_angle(u, v, R) / math.pi


def side_light_weights(resolution: int) -> np.ndarray:
    R = _check_resolution(resolution)
    u, v = _pixel_grid(R, R // 2)
    cos_theta = -v / np.sqrt(u * u + v * v + 1.0)
    return cos_theta * _solid_angle(u, v, R) / math.pi
