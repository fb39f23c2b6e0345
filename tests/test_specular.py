from __future__ import annotations

import numpy as np
import pytest

from boxlight.engine.specular import SpecularConfig, apply_specular, specular_contributions
from boxlight.geometry.core import Colour, Mesh, SurfaceElement, Vector3


def _scene(receiver_specular: bool = True) -> Mesh:
    verts = [
        # receiver at the origin facing +z
        Vector3(-0.1, -0.1, 0.0), Vector3(0.1, -0.1, 0.0), Vector3(0.1, 0.1, 0.0), Vector3(-0.1, 0.1, 0.0),
        # emitter centred on (1, 0, 1) facing -z
        Vector3(0.9, -0.1, 1.0), Vector3(0.9, 0.1, 1.0), Vector3(1.1, 0.1, 1.0), Vector3(1.1, -0.1, 1.0),
        # plain wall centred on (0, 0, 3) facing -z
        Vector3(-0.1, -0.1, 3.0), Vector3(-0.1, 0.1, 3.0), Vector3(0.1, 0.1, 3.0), Vector3(0.1, -0.1, 3.0),
    ]
    elements = [
        SurfaceElement(indices=(0, 1, 2, 3), is_specular=receiver_specular, screen_colour=Colour(0.2, 0.1, 0.0)),
        SurfaceElement(indices=(4, 5, 6, 7), is_emitter=True, screen_colour=Colour(2.0, 2.0, 2.0)),
        SurfaceElement(indices=(8, 9, 10, 11), screen_colour=Colour(0.3, 0.3, 0.3)),
    ]
    return Mesh(vertices=verts, elements=elements)


def test_mirror_direction_gets_full_highlight() -> None:
    mesh = _scene()
    # Camera on the mirrored light direction: R . V == 1.
    s = specular_contributions(mesh, Vector3(-2.0, 0.0, 2.0))
    assert s[0] == pytest.approx(0.02)
    assert s[1] == 0.0 and s[2] == 0.0


def test_highlight_falls_off_with_shininess() -> None:
    mesh = _scene()
    camera = Vector3(-2.0, 0.0, 3.0)
    v = np.array([-2.0, 0.0, 3.0]) / np.sqrt(13.0)
    r = np.array([-1.0, 0.0, 1.0]) / np.sqrt(2.0)
    expected = 0.02 * float(np.dot(r, v)) ** 32
    assert specular_contributions(mesh, camera)[0] == pytest.approx(expected)
    broad = specular_contributions(mesh, camera, SpecularConfig(shininess=1.0, factor=0.5))
    assert broad[0] == pytest.approx(0.5 * float(np.dot(r, v)))


def test_camera_behind_reflection_gets_nothing() -> None:
    mesh = _scene()
    assert specular_contributions(mesh, Vector3(2.0, 0.0, 2.0))[0] == 0.0


def test_highlight_added_as_white_light() -> None:
    mesh = _scene()
    added = apply_specular(mesh, Vector3(-2.0, 0.0, 2.0))
    assert added[0] == pytest.approx(0.02)
    colours = mesh.screen_array()
    assert colours[0] == pytest.approx([0.22, 0.12, 0.02])
    assert colours[1].tolist() == [2.0, 2.0, 2.0]
    assert colours[2].tolist() == [0.3, 0.3, 0.3]


def test_non_specular_scene_unchanged() -> None:
    mesh = _scene(receiver_specular=False)
    before = mesh.screen_array()
    added = apply_specular(mesh, Vector3(-2.0, 0.0, 2.0))
    assert not np.any(added)
    assert np.array_equal(mesh.screen_array(), before)
