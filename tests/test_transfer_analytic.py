from __future__ import annotations

import math

import numpy as np
import pytest

from boxlight.engine.transfer import AnalyticTransferCalculator, TransferConfig, make_transfer_calculator
from boxlight.geometry.core import Mesh, SurfaceElement, Vector3
from boxlight.geometry.primitives import build_cube_scene
from boxlight.geometry.viewpoint import Viewpoint


def _facing_squares(half_a: float, half_b: float, distance: float) -> Mesh:
    """Square A at z=0 facing +z, square B at z=distance facing -z."""
    verts = [
        Vector3(-half_a, -half_a, 0.0),
        Vector3(half_a, -half_a, 0.0),
        Vector3(half_a, half_a, 0.0),
        Vector3(-half_a, half_a, 0.0),
        Vector3(-half_b, -half_b, distance),
        Vector3(-half_b, half_b, distance),
        Vector3(half_b, half_b, distance),
        Vector3(half_b, -half_b, distance),
    ]
    return Mesh(vertices=verts, elements=[SurfaceElement(indices=(0, 1, 2, 3)), SurfaceElement(indices=(4, 5, 6, 7))])


def test_parallel_patches_match_point_formula() -> None:
    mesh = _facing_squares(0.5, 0.5, 2.0)
    T = AnalyticTransferCalculator(mesh).calc_all_lights()
    expected = 1.0 / (math.pi * 2.0**2)
    assert T[0, 1] == pytest.approx(expected, rel=1e-12)
    assert T[1, 0] == pytest.approx(expected, rel=1e-12)
    assert T[0, 0] == 0.0 and T[1, 1] == 0.0
    areas = mesh.areas()
    assert areas[0] * T[1, 0] == pytest.approx(areas[1] * T[0, 1])


def test_reciprocity_with_unequal_areas() -> None:
    mesh = _facing_squares(0.5, 0.25, 3.0)
    T = AnalyticTransferCalculator(mesh).calc_all_lights()
    A = mesh.areas()
    assert A[0] * T[0, 1] == pytest.approx(A[1] * T[1, 0], rel=1e-12)
    assert T[0, 1] == pytest.approx(A[1] / (math.pi * 9.0), rel=1e-12)


def test_calc_light_row_matches_matrix_row() -> None:
    mesh = build_cube_scene(subdivision=2, inner_box=False)
    calc = AnalyticTransferCalculator(mesh)
    T = calc.calc_all_lights()
    for i in (0, 7, 23):
        row = calc.calc_light(Viewpoint.for_element(mesh, i))
        row[i] = 0.0
        assert np.allclose(row, T[i])
    assert np.all(T >= 0.0)
    assert np.all(np.diag(T) == 0.0)


def test_subtended_uses_sphere_of_six_normalisation() -> None:
    mesh = _facing_squares(0.5, 0.5, 2.0)
    vp = Viewpoint(eye=Vector3(0, 0, 0), look_at=Vector3(0, 0, 1), up=Vector3(0, 1, 0))
    w = AnalyticTransferCalculator(mesh).calc_subtended(vp)
    assert w[0] == 0.0
    assert w[1] == pytest.approx(1.5 * 1.0 / (4.0 * math.pi))


def test_back_facing_source_contributes_nothing() -> None:
    mesh = _facing_squares(0.5, 0.5, 2.0)
    vp = Viewpoint(eye=Vector3(0, 0, 5), look_at=Vector3(0, 0, 0), up=Vector3(0, 1, 0))
    w = AnalyticTransferCalculator(mesh).calc_light(vp)
    # B faces -z, away from an eye at z=5.
    assert w[1] == 0.0
    assert w[0] > 0.0


def test_coincident_elements_are_finite_zero() -> None:
    verts = [Vector3(0, 0, 0), Vector3(1, 0, 0), Vector3(1, 1, 0), Vector3(0, 1, 0)]
    mesh = Mesh(vertices=verts, elements=[SurfaceElement(indices=(0, 1, 2, 3)), SurfaceElement(indices=(3, 2, 1, 0))])
    T = AnalyticTransferCalculator(mesh).calc_all_lights()
    assert np.all(np.isfinite(T))
    assert np.all(T == 0.0)


def test_progress_reported_to_completion() -> None:
    mesh = build_cube_scene(subdivision=2, inner_box=False)
    seen = []
    AnalyticTransferCalculator(mesh).calc_all_lights(progress=lambda done, total: seen.append((done, total)))
    assert seen[-1] == (24, 24)


def test_factory_selects_variant() -> None:
    mesh = _facing_squares(0.5, 0.5, 2.0)
    assert isinstance(make_transfer_calculator(mesh, TransferConfig(method="analytic")), AnalyticTransferCalculator)
    with pytest.raises(ValueError):
        make_transfer_calculator(mesh, TransferConfig(method="raytrace"))  # type: ignore[arg-type]
