"""
Viewpoints used while sampling transfer coefficients.

A viewpoint is an eye position, a look-at target and an up vector. Cube-map
orientations are derived from it for the projection estimator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from boxlight.geometry.core import Mesh, Vector3

Basis = Tuple[np.ndarray, np.ndarray, np.ndarray]


@dataclass(frozen=True)
class Viewpoint:
    eye: Vector3
    look_at: Vector3
    up: Vector3

    @property
    def forward(self) -> np.ndarray:
        f = (self.look_at - self.eye).to_array()
        n = float(np.linalg.norm(f))
        if n <= 1e-12:
            raise ValueError("viewpoint eye and look_at coincide")
        return f / n

    def basis(self) -> Basis:
        """Orthonormal (right, up, forward) frame; `up` is re-orthogonalised."""
        f = self.forward
        u = self.up.to_array()
        u = u - np.dot(u, f) * f
        n = float(np.linalg.norm(u))
        if n <= 1e-9:
            # Degenerate or missing up vector: pick any perpendicular.
            u = Vector3.from_array(f).perpendicular().to_array()
        else:
            u = u / n
        r = np.cross(f, u)
        return r, u, f

    def cube_faces(self) -> Iterator[Tuple[str, Basis]]:
        """
        The six cube-map orientations as (name, (right, up, forward)).

        Side faces use the viewpoint's forward axis as image "down", so the
        forward hemisphere lands in the lower half of each side image.
        """
        r, u, f = self.basis()
        yield "front", (r, u, f)
        yield "back", (-r, u, -f)
        for name, fwd in (("right", r), ("left", -r), ("up", u), ("down", -u)):
            up = -f
            yield name, (np.cross(fwd, up), up, fwd)

    @classmethod
    def looking_along(cls, centroid: np.ndarray, normal: np.ndarray) -> "Viewpoint":
        eye = Vector3.from_array(centroid)
        n = Vector3.from_array(normal)
        return cls(eye=eye, look_at=eye + n, up=n.perpendicular())

    @classmethod
    def for_element(cls, mesh: Mesh, index: int) -> "Viewpoint":
        """Centre of element `index`, looking along its facing normal."""
        return cls.looking_along(mesh.centroid(index).to_array(), mesh.normal(index).to_array())
