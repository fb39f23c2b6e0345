from __future__ import annotations

import numpy as np
import pytest

from boxlight.geometry.core import Colour, GeometryError, Mesh, SurfaceElement, Vector3, grey_levels
from boxlight.geometry.primitives import build_cube_scene, light_cube_scene, subdivide, unit_cube_faces


def _unit_square() -> Mesh:
    verts = [Vector3(0, 0, 0), Vector3(1, 0, 0), Vector3(1, 1, 0), Vector3(0, 1, 0)]
    return Mesh(vertices=verts, elements=[SurfaceElement(indices=(0, 1, 2, 3))])


def test_square_area_normal_centroid() -> None:
    mesh = _unit_square()
    assert mesh.areas()[0] == pytest.approx(1.0)
    assert np.allclose(mesh.normals()[0], [0.0, 0.0, 1.0])
    assert np.allclose(mesh.centroids()[0], [0.5, 0.5, 0.0])
    assert mesh.normal(0) == Vector3(0.0, 0.0, 1.0)


def test_bad_vertex_index_rejected() -> None:
    with pytest.raises(GeometryError):
        Mesh(vertices=[Vector3(0, 0, 0)], elements=[SurfaceElement(indices=(0, 1, 2, 3))])


def test_degenerate_element_rejected_for_normals() -> None:
    verts = [Vector3(0, 0, 0), Vector3(1, 0, 0), Vector3(2, 0, 0), Vector3(3, 0, 0)]
    mesh = Mesh(vertices=verts, elements=[SurfaceElement(indices=(0, 1, 2, 3))])
    with pytest.raises(GeometryError):
        mesh.normals()


def test_colour_arithmetic() -> None:
    c = Colour(0.2, 0.4, 0.6)
    assert grey_levels(np.array([c.to_array(), [1.0, 0.0, 0.5]])) == pytest.approx([0.4, 0.5])
    assert grey_levels(c.to_array()) == pytest.approx(0.4)
    assert (c * Colour(0.5, 0.5, 0.5)) == Colour(0.1, 0.2, 0.3)
    assert (2.0 * c).r == pytest.approx(0.4)


def test_unit_cube_faces_point_inwards() -> None:
    verts, faces = unit_cube_faces()
    mesh = Mesh(vertices=verts, elements=faces)
    dots = np.einsum("ij,ij->i", mesh.normals(), mesh.centroids())
    assert np.all(dots < 0.0)
    assert np.allclose(mesh.areas(), 4.0)


def test_subdivide_preserves_area_and_winding() -> None:
    verts = [Vector3(0, 0, 0), Vector3(2, 0, 0), Vector3(2, 1, 0), Vector3(0, 1, 0)]
    parent = SurfaceElement(indices=(0, 1, 2, 3), material_colour=Colour(0.5, 0.5, 0.5), is_specular=True)
    parts = subdivide(verts, parent, 4, 2)
    mesh = Mesh(vertices=verts, elements=parts)
    assert len(parts) == 8
    assert mesh.areas().sum() == pytest.approx(2.0)
    assert np.allclose(mesh.normals(), [0.0, 0.0, 1.0])
    assert all(p.is_specular and p.material_colour == Colour(0.5, 0.5, 0.5) for p in parts)


def test_cube_scene_inner_box_faces_outwards() -> None:
    mesh = build_cube_scene(subdivision=2, inner_box=True)
    assert len(mesh) == 6 * 4 + 6 * 1
    specular = mesh.specular_mask()
    assert specular.sum() == 6
    box_centre = mesh.centroids()[specular].mean(axis=0)
    assert np.allclose(box_centre, [0.0, -0.25, 0.0], atol=1e-9)
    outward = np.einsum("ij,ij->i", mesh.normals()[specular], mesh.centroids()[specular] - box_centre)
    assert np.all(outward > 0.0)
    assert np.allclose(mesh.areas()[specular], 0.64)


def test_light_cube_scene_places_ceiling_emitters() -> None:
    mesh = light_cube_scene(build_cube_scene(subdivision=4, inner_box=False))
    emitters = mesh.emitter_mask()
    assert emitters.sum() == 4
    c = mesh.centroids()[emitters]
    assert np.all(c[:, 1] > 0.9)
    assert np.all(np.abs(c[:, 0]) < 0.5) and np.all(np.abs(c[:, 2]) < 0.5)
    for e in mesh.elements:
        if e.is_emitter:
            assert e.screen_colour == Colour(2.0, 2.0, 2.0)

    left = mesh.centroids()[:, 0] < -0.999
    assert all(mesh.elements[i].material_colour == Colour(1.0, 0.5, 0.5) for i in np.flatnonzero(left))


def test_set_screen_colours_shape_checked() -> None:
    mesh = _unit_square()
    with pytest.raises(ValueError):
        mesh.set_screen_colours(np.zeros((2, 3)))
    mesh.set_screen_colours(np.array([[0.1, 0.2, 0.3]]))
    assert mesh.elements[0].screen_colour == Colour(0.1, 0.2, 0.3)
