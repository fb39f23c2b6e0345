"""
Scene construction for the closed-box demo scene.

The light-transport core only consumes a finished `Mesh`; these helpers build
one: a subdivided room cube, an optional rotated inner box with specular
faces, and the emitter/tint assignment of the classic Cornell-style setup.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import List, Sequence, Tuple

import numpy as np

from boxlight.geometry.core import Colour, GeometryError, Mesh, SurfaceElement, Vector3

# Corner index = (x > 0) + 2 * (y > 0) + 4 * (z > 0).
_CUBE_CORNERS = [
    Vector3(-1.0 if (k & 1) == 0 else 1.0, -1.0 if (k & 2) == 0 else 1.0, -1.0 if (k & 4) == 0 else 1.0)
    for k in range(8)
]

_CUBE_CYCLES = [
    (0, 2, 6, 4),  # x = -1
    (1, 3, 7, 5),  # x = +1
    (0, 1, 5, 4),  # y = -1
    (2, 3, 7, 6),  # y = +1
    (0, 1, 3, 2),  # z = -1
    (4, 5, 7, 6),  # z = +1
]


def unit_cube_faces() -> Tuple[List[Vector3], List[SurfaceElement]]:
    """The cube [-1, 1]^3 as 8 vertices and 6 quads facing into the cube."""
    vertices = list(_CUBE_CORNERS)
    faces: List[SurfaceElement] = []
    for cycle in _CUBE_CYCLES:
        a, b, _, d = (vertices[i] for i in cycle)
        normal = (b - a).cross(d - a)
        centre = sum((vertices[i] for i in cycle), Vector3.zero()) / 4.0
        if normal.dot(centre) > 0.0:
            cycle = tuple(reversed(cycle))
        faces.append(SurfaceElement(indices=cycle))
    return vertices, faces


def subdivide(
    vertices: List[Vector3],
    element: SurfaceElement,
    nu: int,
    nv: int,
) -> List[SurfaceElement]:
    """
    Split `element` into nu x nv sub-quads on a bilinear grid.

    New grid vertices are appended to `vertices`; the sub-quads keep the
    parent's winding, material and flags.
    """
    if nu < 1 or nv < 1:
        raise GeometryError(f"subdivision must be >= 1, got {nu}x{nv}")
    v0, v1, v2, v3 = (vertices[i] for i in element.indices)
    base = len(vertices)
    for b in range(nv + 1):
        t = b / nv
        for a in range(nu + 1):
            s = a / nu
            p = (
                v0 * ((1.0 - s) * (1.0 - t))
                + v1 * (s * (1.0 - t))
                + v2 * (s * t)
                + v3 * ((1.0 - s) * t)
            )
            vertices.append(p)

    def g(a: int, b: int) -> int:
        return base + b * (nu + 1) + a

    out: List[SurfaceElement] = []
    for b in range(nv):
        for a in range(nu):
            out.append(replace(element, indices=(g(a, b), g(a + 1, b), g(a + 1, b + 1), g(a, b + 1))))
    return out


def rotation_matrix(axis: Vector3, angle: float) -> np.ndarray:
    """Rodrigues rotation about `axis` by `angle` radians."""
    k = axis.normalize().to_array()
    K = np.array(
        [
            [0.0, -k[2], k[1]],
            [k[2], 0.0, -k[0]],
            [-k[1], k[0], 0.0],
        ]
    )
    return np.eye(3) + math.sin(angle) * K + (1.0 - math.cos(angle)) * (K @ K)


def transform_vertices(
    vertices: List[Vector3],
    indices: Sequence[int],
    *,
    scale: float = 1.0,
    rotations: Sequence[Tuple[Vector3, float]] = (),
    offset: Vector3 = Vector3(0.0, 0.0, 0.0),
) -> None:
    """Scale, then rotate in order, then translate the given vertices in place."""
    R = np.eye(3)
    for axis, angle in rotations:
        R = rotation_matrix(axis, angle) @ R
    for i in sorted(set(indices)):
        p = R @ (vertices[i].to_array() * scale)
        vertices[i] = Vector3.from_array(p) + offset


def flip(element: SurfaceElement) -> SurfaceElement:
    """Reverse the winding so the element faces the other way."""
    return replace(element, indices=tuple(reversed(element.indices)))


def build_cube_scene(subdivision: int = 8, inner_box: bool = True) -> Mesh:
    """
    Room cube subdivided `subdivision`^2 per face, optionally with an inner box.

    The inner box is the unit cube scaled by 0.4, flipped to face outwards,
    rotated pi/3 about x then pi/6 about z, dropped by 0.25 and subdivided
    at half the room resolution. Its faces are flagged specular.
    """
    vertices: List[Vector3] = []
    elements: List[SurfaceElement] = []

    room_vertices, room_faces = unit_cube_faces()
    vertices.extend(room_vertices)
    for face in room_faces:
        elements.extend(subdivide(vertices, face, subdivision, subdivision))

    if inner_box:
        box_vertices, box_faces = unit_cube_faces()
        base = len(vertices)
        vertices.extend(box_vertices)
        transform_vertices(
            vertices,
            range(base, base + len(box_vertices)),
            scale=0.4,
            rotations=[(Vector3(1.0, 0.0, 0.0), math.pi / 3.0), (Vector3(0.0, 0.0, 1.0), math.pi / 6.0)],
            offset=Vector3(0.0, -0.25, 0.0),
        )
        inner_div = max(1, subdivision // 2)
        for face in box_faces:
            shifted = replace(face, indices=tuple(i + base for i in face.indices), is_specular=True)
            elements.extend(subdivide(vertices, flip(shifted), inner_div, inner_div))

    return Mesh(vertices=vertices, elements=elements)


def light_cube_scene(
    mesh: Mesh,
    emitter_colour: Colour = Colour(2.0, 2.0, 2.0),
    left_tint: Colour = Colour(1.0, 0.5, 0.5),
    right_tint: Colour = Colour(0.5, 0.5, 1.0),
) -> Mesh:
    """
    Put a square light in the middle of the ceiling and tint the side walls.

    Emitters are the elements whose centre has |x| < 0.5, |z| < 0.5 and
    y > 0.9, all three required.
    """
    centroids = mesh.centroids()
    for e, c in zip(mesh.elements, centroids):
        x, y, z = (float(v) for v in c)
        if abs(x) < 0.5 and abs(z) < 0.5 and y > 0.9:
            e.material_colour = emitter_colour
            e.screen_colour = emitter_colour
            e.is_emitter = True
        if x < -0.999:
            e.material_colour = e.material_colour * left_tint
        elif x > 0.999:
            e.material_colour = e.material_colour * right_tint
    return mesh
