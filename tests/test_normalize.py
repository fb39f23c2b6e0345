from __future__ import annotations

import numpy as np
import pytest

from boxlight.engine.normalize import normalise_brightness, visible_mask
from boxlight.geometry.core import Colour, Mesh, SurfaceElement, Vector3

CAMERA = Vector3(0.0, 0.0, -3.0)


def _panel(verts, x: float, facing_camera: bool):
    base = len(verts)
    if facing_camera:
        quad = [(x, 0, 0), (x, 1, 0), (x + 1, 1, 0), (x + 1, 0, 0)]
    else:
        quad = [(x, 0, 0), (x + 1, 0, 0), (x + 1, 1, 0), (x, 1, 0)]
    verts.extend(Vector3(*p) for p in quad)
    return (base, base + 1, base + 2, base + 3)


def _scene(dim: float = 0.25, bright: float = 0.5) -> Mesh:
    verts = []
    elements = [
        SurfaceElement(indices=_panel(verts, 0.0, True), screen_colour=Colour(dim, dim, dim)),
        SurfaceElement(indices=_panel(verts, 2.0, True), screen_colour=Colour(0.1, bright, 0.2)),
        SurfaceElement(indices=_panel(verts, 4.0, True), screen_colour=Colour(2.0, 2.0, 2.0), is_emitter=True),
        SurfaceElement(indices=_panel(verts, 6.0, False), screen_colour=Colour(3.0, 3.0, 3.0)),
    ]
    return Mesh(vertices=verts, elements=elements)


def test_visibility_is_front_facing_towards_camera() -> None:
    assert visible_mask(_scene(), CAMERA).tolist() == [True, True, True, False]


def test_dim_scene_scaled_to_target() -> None:
    mesh = _scene()
    scale = normalise_brightness(mesh, CAMERA)
    assert scale == pytest.approx(2.0)
    colours = mesh.screen_array()
    assert colours[0] == pytest.approx([0.5, 0.5, 0.5])
    assert colours[1] == pytest.approx([0.2, 1.0, 0.4])
    # Emitters keep their colour, hidden non-emitters are scaled too.
    assert colours[2].tolist() == [2.0, 2.0, 2.0]
    assert colours[3] == pytest.approx([6.0, 6.0, 6.0])
    # Already at target: a second pass changes nothing.
    assert normalise_brightness(mesh, CAMERA) == 1.0
    assert np.allclose(mesh.screen_array(), colours)


def test_bright_scene_never_darkened() -> None:
    mesh = _scene(dim=0.25, bright=1.5)
    before = mesh.screen_array()
    assert normalise_brightness(mesh, CAMERA) == 1.0
    assert np.array_equal(mesh.screen_array(), before)


def test_unlit_scene_left_alone() -> None:
    mesh = _scene(dim=0.0, bright=0.0)
    mesh.elements[1].screen_colour = Colour(0.0, 0.0, 0.0)
    assert normalise_brightness(mesh, CAMERA) == 1.0


def test_custom_target() -> None:
    mesh = _scene()
    assert normalise_brightness(mesh, CAMERA, target=0.75) == pytest.approx(1.5)
    assert mesh.screen_array()[1, 1] == pytest.approx(0.75)


@pytest.mark.parametrize("target", [1.0, 0.75])
def test_normalising_twice_is_a_no_op_for_any_peak(target: float) -> None:
    peaks = np.concatenate([np.linspace(0.3, 0.7, 250), np.random.default_rng(7).uniform(0.3, 0.7, 250)])
    for bright in peaks:
        mesh = _scene(dim=0.25, bright=float(bright))
        normalise_brightness(mesh, CAMERA, target=target)
        once = mesh.screen_array()
        assert normalise_brightness(mesh, CAMERA, target=target) == 1.0
        assert np.array_equal(mesh.screen_array(), once)
