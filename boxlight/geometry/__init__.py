"""
Boxlight Geometry Module

Surface element model, viewpoints and demo scene construction.
"""

from boxlight.geometry.core import (
    BLACK,
    WHITE,
    Colour,
    GeometryError,
    Mesh,
    SurfaceElement,
    Vector3,
    grey_levels,
)
from boxlight.geometry.primitives import build_cube_scene, light_cube_scene, subdivide, unit_cube_faces
from boxlight.geometry.viewpoint import Viewpoint

__all__ = [
    "BLACK",
    "WHITE",
    "Colour",
    "GeometryError",
    "Mesh",
    "SurfaceElement",
    "Vector3",
    "Viewpoint",
    "build_cube_scene",
    "grey_levels",
    "light_cube_scene",
    "subdivide",
    "unit_cube_faces",
]
