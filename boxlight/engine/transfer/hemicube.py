from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from boxlight.engine.transfer.base import TransferCalculator
from boxlight.engine.transfer.idcodec import MAX_ELEMENT_ID, decode_pixels, encode_index
from boxlight.engine.transfer.raster import OffscreenContext, RasterContextError
from boxlight.engine.transfer.weighting import forward_light_weights, side_light_weights, subtend_weights
from boxlight.geometry.core import Mesh
from boxlight.geometry.tolerance import EPS_NEAR
from boxlight.geometry.viewpoint import Basis, Viewpoint

logger = logging.getLogger(__name__)

ContextFactory = Callable[[int, float], OffscreenContext]


class HemicubeTransferCalculator(TransferCalculator):
    """
    Cube-map estimator: render the scene from the viewpoint with every
    element drawn in its identifier colour, then sum per-pixel weights into
    the element seen at each pixel.

    The offscreen context is acquired here and held until `close()`.
    """

    def __init__(
        self,
        mesh: Mesh,
        resolution: int = 256,
        *,
        near: float = EPS_NEAR,
        context_factory: Optional[ContextFactory] = None,
    ):
        super().__init__(mesh)
        if self.n > MAX_ELEMENT_ID:
            raise ValueError(f"{self.n} elements exceed the {MAX_ELEMENT_ID} identifiers a pixel can carry")
        self._corners = mesh.corners()
        self._centroids = mesh.centroids()
        self._normals = mesh.normals() if self.n else np.zeros((0, 3), dtype=float)
        self._colours = [encode_index(i) for i in range(self.n)]

        factory = context_factory or OffscreenContext
        try:
            self._ctx = factory(resolution, near)
        except (MemoryError, OSError, TypeError, ValueError) as exc:
            raise RasterContextError(f"cannot create offscreen context: {exc}") from exc
        self.resolution = self._ctx.resolution

        self._subtend_weights: Optional[np.ndarray] = None
        self._forward_weights: Optional[np.ndarray] = None
        self._side_weights: Optional[np.ndarray] = None

    # -- weight tables, built on first use -----------------------------------

    def subtend_table(self) -> np.ndarray:
        if self._subtend_weights is None:
            self._subtend_weights = subtend_weights(self.resolution)
        return self._subtend_weights

    def forward_table(self) -> np.ndarray:
        if self._forward_weights is None:
            self._forward_weights = forward_light_weights(self.resolution)
        return self._forward_weights

    def side_table(self) -> np.ndarray:
        if self._side_weights is None:
            self._side_weights = side_light_weights(self.resolution)
        return self._side_weights

    # -- rendering -----------------------------------------------------------

    def _facing(self, eye: np.ndarray) -> np.ndarray:
        """Indices of elements whose front side faces `eye`."""
        to_eye = eye[None, :] - self._centroids
        return np.flatnonzero(np.einsum("ij,ij->i", self._normals, to_eye) > 0.0)

    def _render(self, eye: np.ndarray, basis: Basis, visible: np.ndarray) -> None:
        ctx = self._ctx
        ctx.clear()
        if visible.size == 0:
            return
        M = np.stack(basis)
        cam = (self._corners[visible] - eye[None, None, :]) @ M.T
        z = cam[:, :, 2]
        # Skip polygons wholly behind the near plane or outside the 90 degree frustum.
        ahead = z.max(axis=1) >= ctx.near
        for axis in (0, 1):
            c = cam[:, :, axis]
            ahead &= ~np.all(c > z, axis=1)
            ahead &= ~np.all(c < -z, axis=1)
        for k in np.flatnonzero(ahead):
            idx = int(visible[k])
            ctx.draw_polygon(cam[k], self._colours[idx])

    def _sum_weights(self, sums: np.ndarray, weights: np.ndarray) -> None:
        pixels = self._ctx.read_pixels(weights.shape[0])
        ids = decode_pixels(pixels).ravel()
        totals = np.bincount(ids, weights=weights.ravel(), minlength=self.n + 1)
        sums += totals[1 : self.n + 1]

    def _check_open(self) -> None:
        if self._ctx.closed:
            raise RasterContextError("calculator has been closed")

    def calc_subtended(self, viewpoint: Viewpoint) -> np.ndarray:
        self._check_open()
        sums = np.zeros(self.n, dtype=float)
        eye = viewpoint.eye.to_array()
        visible = self._facing(eye)
        table = self.subtend_table()
        for _, basis in viewpoint.cube_faces():
            self._render(eye, basis, visible)
            self._sum_weights(sums, table)
        return sums

    def calc_light(self, viewpoint: Viewpoint) -> np.ndarray:
        self._check_open()
        sums = np.zeros(self.n, dtype=float)
        eye = viewpoint.eye.to_array()
        visible = self._facing(eye)
        faces = dict(viewpoint.cube_faces())

        self._render(eye, faces["front"], visible)
        self._sum_weights(sums, self.forward_table())

        # Only the half of each side facing forward carries light.
        self._ctx.set_scissor(self.resolution // 2)
        try:
            side = self.side_table()
            for name in ("right", "left", "up", "down"):
                self._render(eye, faces[name], visible)
                self._sum_weights(sums, side)
        finally:
            self._ctx.set_scissor(None)
        return sums

    def close(self) -> None:
        ctx = getattr(self, "_ctx", None)
        if ctx is not None and not ctx.closed:
            ctx.close()
