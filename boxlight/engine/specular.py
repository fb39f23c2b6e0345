"""
Single-bounce specular highlights.

Applied once after the diffuse solve. Every element flagged specular picks up
a Phong highlight from every emitter:

    L = unit(emitter centre - receiver centre)
    R = unit(2 (N . L) N - L)
    V = unit(camera - receiver centre)
    s = factor * max(0, R . V) ** shininess

added as white light to the receiver's colour.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from boxlight.geometry.core import Mesh, Vector3
from boxlight.geometry.tolerance import EPS_POS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecularConfig:
    shininess: float = 32.0
    factor: float = 0.02


def _unit(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v, axis=-1, keepdims=True)
    return np.where(n > EPS_POS, v / np.where(n > EPS_POS, n, 1.0), 0.0)


def specular_contributions(
    mesh: Mesh,
    camera_position: Vector3,
    config: SpecularConfig = SpecularConfig(),
) -> np.ndarray:
    """Highlight intensity per element (zero for non-specular ones)."""
    n = len(mesh)
    out = np.zeros(n, dtype=float)
    receivers = np.flatnonzero(mesh.specular_mask())
    sources = np.flatnonzero(mesh.emitter_mask())
    if receivers.size == 0 or sources.size == 0:
        return out

    C = mesh.centroids()
    N = mesh.normals()
    cam = camera_position.to_array()
    for i in receivers:
        others = sources[sources != i]
        if others.size == 0:
            continue
        L = _unit(C[others] - C[i])
        nrm = N[i]
        R = _unit(2.0 * (L @ nrm)[:, None] * nrm[None, :] - L)
        V = _unit(cam - C[i])
        cos_rv = np.maximum(R @ V, 0.0)
        out[i] = float(np.sum(cos_rv ** config.shininess)) * config.factor
    return out


def apply_specular(
    mesh: Mesh,
    camera_position: Vector3,
    config: SpecularConfig = SpecularConfig(),
) -> np.ndarray:
    """
    Add the highlights to the mesh's screen colours.

    Returns the per-element highlight intensity that was added to each RGB
    channel.
    """
    highlight = specular_contributions(mesh, camera_position, config)
    if np.any(highlight):
        colours = mesh.screen_array() + highlight[:, None]
        mesh.set_screen_colours(colours)
        for i in np.flatnonzero(highlight):
            logger.debug("specular highlight on element %d: %.6g", int(i), float(highlight[i]))
    return highlight
