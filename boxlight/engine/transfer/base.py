from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Literal, Optional

import numpy as np

from boxlight.geometry.core import Mesh
from boxlight.geometry.tolerance import EPS_NEAR
from boxlight.geometry.viewpoint import Viewpoint

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, int], None]


@dataclass(frozen=True)
class TransferConfig:
    method: Literal["hemicube", "analytic"] = "hemicube"
    resolution: int = 256
    near: float = EPS_NEAR


class TransferCalculator(ABC):
    """
    Computes how much light leaving each element arrives at a viewpoint.

    `calc_all_lights` assembles the n x n transfer matrix, T[i, j] being the
    fraction of element j's radiance received by element i, with a zero
    diagonal.
    """

    def __init__(self, mesh: Mesh):
        self.mesh = mesh
        self.n = len(mesh)

    @abstractmethod
    def calc_subtended(self, viewpoint: Viewpoint) -> np.ndarray:
        """Solid angle of each element from `viewpoint`; a full sphere sums to 6."""

    @abstractmethod
    def calc_light(self, viewpoint: Viewpoint) -> np.ndarray:
        """Cosine-weighted light received from each element; the hemisphere sums to 1."""

    def calc_all_lights(self, progress: Optional[ProgressFn] = None) -> np.ndarray:
        n = self.n
        T = np.zeros((n, n), dtype=float)
        logger.info("computing %dx%d transfer matrix (%s)", n, n, type(self).__name__)
        centroids = self.mesh.centroids()
        normals = self.mesh.normals()
        for i in range(n):
            row = self.calc_light(Viewpoint.looking_along(centroids[i], normals[i]))
            row[i] = 0.0
            T[i, :] = row
            logger.debug("transfer row %d/%d done", i + 1, n)
            if progress is not None:
                progress(i + 1, n)
        logger.info("transfer matrix complete")
        return T

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
