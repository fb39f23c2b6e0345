"""
Boxlight Geometry Module

Surface element model consumed by the light-transport core: shared vertex
positions, planar quadrilateral elements referencing them, and the
per-element colour state the solver mutates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from boxlight.geometry.tolerance import EPS_AREA, EPS_POS


class GeometryError(ValueError):
    pass


# =============================================================================
# Vector and Colour Classes
# =============================================================================

@dataclass(frozen=True)
class Vector3:
    """3D vector for positions, directions and normals."""
    x: float
    y: float
    z: float

    def __add__(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: 'Vector3') -> 'Vector3':
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> 'Vector3':
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> 'Vector3':
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> 'Vector3':
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> 'Vector3':
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: 'Vector3') -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: 'Vector3') -> 'Vector3':
        """Cross product."""
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    def length(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def normalize(self) -> 'Vector3':
        """Return unit vector."""
        L = self.length()
        if L < 1e-10:
            return Vector3(0, 0, 1)
        return self / L

    def perpendicular(self) -> 'Vector3':
        """Some unit vector perpendicular to this one."""
        helper = Vector3(0.0, 1.0, 0.0)
        if abs(self.normalize().dot(helper)) > 0.9:
            helper = Vector3(1.0, 0.0, 0.0)
        return self.cross(helper).normalize()

    def to_array(self) -> np.ndarray:
        """Convert to numpy array."""
        return np.array([self.x, self.y, self.z], dtype=float)

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @staticmethod
    def from_array(arr: Sequence[float]) -> 'Vector3':
        return Vector3(float(arr[0]), float(arr[1]), float(arr[2]))

    @staticmethod
    def zero() -> 'Vector3':
        return Vector3(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Colour:
    """RGB triple; used both for reflectance and for radiance."""
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    def __add__(self, other: 'Colour') -> 'Colour':
        return Colour(self.r + other.r, self.g + other.g, self.b + other.b)

    def __mul__(self, other: 'Colour | float') -> 'Colour':
        if isinstance(other, Colour):
            return Colour(self.r * other.r, self.g * other.g, self.b * other.b)
        s = float(other)
        return Colour(self.r * s, self.g * s, self.b * s)

    def __rmul__(self, scalar: float) -> 'Colour':
        return self.__mul__(scalar)

    def to_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=float)

    @staticmethod
    def from_array(arr: Sequence[float]) -> 'Colour':
        return Colour(float(arr[0]), float(arr[1]), float(arr[2]))

    @staticmethod
    def grey(value: float) -> 'Colour':
        return Colour(value, value, value)


WHITE = Colour(1.0, 1.0, 1.0)
BLACK = Colour(0.0, 0.0, 0.0)


# =============================================================================
# Surface Elements
# =============================================================================

@dataclass
class SurfaceElement:
    """
    A planar convex quadrilateral patch.

    Vertices are indices into the owning mesh, wound counter-clockwise when
    viewed from the side the element faces (the side light leaves from).
    """
    indices: Tuple[int, int, int, int]
    material_colour: Colour = field(default_factory=lambda: WHITE)
    screen_colour: Colour = field(default_factory=lambda: BLACK)
    is_emitter: bool = False
    is_specular: bool = False

    def __post_init__(self):
        if len(self.indices) != 4:
            raise GeometryError(f"surface element needs 4 vertex indices, got {len(self.indices)}")
        self.indices = tuple(int(i) for i in self.indices)  # type: ignore[assignment]


@dataclass
class Mesh:
    """
    Ordered vertices plus the elements that reference them.

    The vertex list and element list are fixed once built; only the
    elements' `screen_colour` changes while lighting is solved.
    """
    vertices: List[Vector3]
    elements: List[SurfaceElement]

    def __post_init__(self):
        nv = len(self.vertices)
        for k, e in enumerate(self.elements):
            for idx in e.indices:
                if idx < 0 or idx >= nv:
                    raise GeometryError(f"element {k} references vertex {idx}, mesh has {nv}")

    def __len__(self) -> int:
        return len(self.elements)

    def corners(self) -> np.ndarray:
        """(n, 4, 3) array of element corner positions."""
        verts = self.vertex_array()
        if not self.elements:
            return np.zeros((0, 4, 3), dtype=float)
        idx = np.array([e.indices for e in self.elements], dtype=np.int64)
        return verts[idx]

    def vertex_array(self) -> np.ndarray:
        if not self.vertices:
            return np.zeros((0, 3), dtype=float)
        return np.array([v.to_tuple() for v in self.vertices], dtype=float)

    def centroids(self) -> np.ndarray:
        return self.corners().mean(axis=1)

    def area_vectors(self) -> np.ndarray:
        """
        Facing normal scaled by element area.

        For a planar quad, half the cross product of its diagonals equals the
        area-weighted normal.
        """
        c = self.corners()
        if c.shape[0] == 0:
            return np.zeros((0, 3), dtype=float)
        return 0.5 * np.cross(c[:, 2] - c[:, 0], c[:, 3] - c[:, 1])

    def areas(self) -> np.ndarray:
        return np.linalg.norm(self.area_vectors(), axis=1)

    def normals(self) -> np.ndarray:
        av = self.area_vectors()
        a = np.linalg.norm(av, axis=1, keepdims=True)
        if np.any(a <= EPS_AREA):
            bad = int(np.argmax(a[:, 0] <= EPS_AREA))
            raise GeometryError(f"element {bad} is degenerate (zero area)")
        return av / a

    def _element_corners(self, i: int) -> np.ndarray:
        return np.array([self.vertices[k].to_tuple() for k in self.elements[i].indices], dtype=float)

    def centroid(self, i: int) -> Vector3:
        return Vector3.from_array(self._element_corners(i).mean(axis=0))

    def normal(self, i: int) -> Vector3:
        c = self._element_corners(i)
        av = 0.5 * np.cross(c[2] - c[0], c[3] - c[1])
        L = float(np.linalg.norm(av))
        if L <= EPS_POS:
            raise GeometryError(f"element {i} is degenerate (zero area)")
        return Vector3.from_array(av / L)

    def material_array(self) -> np.ndarray:
        return _colour_rows([e.material_colour for e in self.elements])

    def screen_array(self) -> np.ndarray:
        return _colour_rows([e.screen_colour for e in self.elements])

    def emitter_mask(self) -> np.ndarray:
        return np.array([e.is_emitter for e in self.elements], dtype=bool)

    def specular_mask(self) -> np.ndarray:
        return np.array([e.is_specular for e in self.elements], dtype=bool)

    def set_screen_colours(self, colours: np.ndarray) -> None:
        colours = np.asarray(colours, dtype=float)
        if colours.shape != (len(self.elements), 3):
            raise ValueError(f"expected colours of shape ({len(self.elements)}, 3), got {colours.shape}")
        for e, row in zip(self.elements, colours):
            e.screen_colour = Colour.from_array(row)


def _colour_rows(colours: List[Colour]) -> np.ndarray:
    if not colours:
        return np.zeros((0, 3), dtype=float)
    return np.array([(c.r, c.g, c.b) for c in colours], dtype=float)


def grey_levels(colours: np.ndarray) -> np.ndarray:
    """Greyscale reduction of (..., 3) RGB rows: the mean of the channels."""
    return np.asarray(colours, dtype=float).mean(axis=-1)
