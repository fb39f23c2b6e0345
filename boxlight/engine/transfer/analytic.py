from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from boxlight.engine.transfer.base import ProgressFn, TransferCalculator
from boxlight.geometry.core import Mesh
from boxlight.geometry.tolerance import EPS_POS
from boxlight.geometry.viewpoint import Viewpoint

logger = logging.getLogger(__name__)

# Rows of the transfer matrix evaluated per vectorised block.
_BLOCK_ROWS = 256


class AnalyticTransferCalculator(TransferCalculator):
    """
    Point-to-patch approximation with no occlusion.

    Each source element is reduced to its centroid and area-weighted normal:

        w_j = A_j * max(0, n_j . -d) / |d|^2

    with d the unit direction from the eye to the source centroid. Sources
    coincident with the eye contribute nothing.
    """

    def __init__(self, mesh: Mesh):
        super().__init__(mesh)
        self._centroids = mesh.centroids()
        self._area_vectors = mesh.area_vectors()
        self._normals = mesh.normals() if self.n else np.zeros((0, 3), dtype=float)

    def _source_terms(self, eye: np.ndarray):
        delta = self._centroids - eye[None, :]
        dist2 = np.einsum("ij,ij->i", delta, delta)
        ok = dist2 > EPS_POS
        safe = np.where(ok, dist2, 1.0)
        dirs = delta / np.sqrt(safe)[:, None]
        projected = np.maximum(0.0, -np.einsum("ij,ij->i", self._area_vectors, dirs))
        return np.where(ok, projected / safe, 0.0), dirs

    def calc_subtended(self, viewpoint: Viewpoint) -> np.ndarray:
        # 1.5 / pi normalises the 4 pi sphere to 6.
        w, _ = self._source_terms(viewpoint.eye.to_array())
        return 1.5 * w / math.pi

    def calc_light(self, viewpoint: Viewpoint) -> np.ndarray:
        w, dirs = self._source_terms(viewpoint.eye.to_array())
        cos_view = np.maximum(0.0, dirs @ viewpoint.forward)
        return cos_view * w / math.pi

    def calc_all_lights(self, progress: Optional[ProgressFn] = None) -> np.ndarray:
        n = self.n
        T = np.zeros((n, n), dtype=float)
        logger.info("computing %dx%d transfer matrix (analytic)", n, n)
        C = self._centroids
        for start in range(0, n, _BLOCK_ROWS):
            stop = min(n, start + _BLOCK_ROWS)
            delta = C[None, :, :] - C[start:stop, None, :]
            dist2 = np.einsum("ijk,ijk->ij", delta, delta)
            ok = dist2 > EPS_POS
            safe = np.where(ok, dist2, 1.0)
            dirs = delta / np.sqrt(safe)[:, :, None]
            src = np.maximum(0.0, -np.einsum("jk,ijk->ij", self._area_vectors, dirs))
            recv = np.maximum(0.0, np.einsum("ik,ijk->ij", self._normals[start:stop], dirs))
            T[start:stop] = np.where(ok, recv * src / (math.pi * safe), 0.0)
            logger.debug("transfer rows %d..%d of %d done", start + 1, stop, n)
            if progress is not None:
                progress(stop, n)
        np.fill_diagonal(T, 0.0)
        logger.info("transfer matrix complete")
        return T
