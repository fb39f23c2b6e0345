from __future__ import annotations

import logging

import numpy as np

from boxlight.geometry.core import Mesh, Vector3

logger = logging.getLogger(__name__)

DEFAULT_TARGET = 1.0

# A peak this close below the target counts as already normalised.
_TARGET_RTOL = 1e-12


def visible_mask(mesh: Mesh, camera_position: Vector3) -> np.ndarray:
    """Elements whose front side faces the camera."""
    if len(mesh) == 0:
        return np.zeros(0, dtype=bool)
    to_element = mesh.centroids() - camera_position.to_array()[None, :]
    return np.einsum("ij,ij->i", to_element, mesh.normals()) < 0.0


def normalise_brightness(
    mesh: Mesh,
    camera_position: Vector3,
    target: float = DEFAULT_TARGET,
) -> float:
    """
    Scale non-emitters up so the brightest visible channel reaches `target`.

    Only brightens: when the visible maximum already meets the target (or
    nothing visible is lit) colours are left alone. Returns the scale used.
    """
    emitters = mesh.emitter_mask()
    candidates = ~emitters & visible_mask(mesh, camera_position)
    colours = mesh.screen_array()
    peak = float(colours[candidates].max()) if np.any(candidates) else 0.0
    if peak >= target * (1.0 - _TARGET_RTOL) or peak <= 0.0:
        logger.debug("brightness left unchanged (visible peak %.6g, target %.6g)", peak, target)
        return 1.0

    scale = target / peak
    colours[~emitters] *= scale
    mesh.set_screen_colours(colours)
    logger.info("brightness scaled by %.6g", scale)
    return scale
