""" Tests for geometric mesh traits.
"""

import math

import numpy as np
import pytest

import ddgmesh.traits as traits

from ddgmesh.hds import Mesh
from ddgmesh.traits import NormalScheme


class TestFaces:

    def test_equilateral_triangle(self, triangle):
        f = triangle.faces[0]

        assert f.area() == pytest.approx(0.25 * math.sqrt(3.0))
        np.testing.assert_allclose(f.normal(), [0.0, 0.0, 1.0])
        np.testing.assert_allclose(f.barycenter,
                                   [0.5, 0.5 / math.sqrt(3.0), 0.0])

    def test_square_areas(self, square):
        np.testing.assert_allclose(traits.face_areas(square), [0.5, 0.5])
        assert square.area() == pytest.approx(1.0)

        # Boundary loops are polygons with a vector area.
        assert traits.face_area(square.boundaries[0]) == pytest.approx(1.0)

    def test_closed_surface_vector_area_vanishes(self, closed_mesh):
        areas = traits.face_areas(closed_mesh)
        normals = traits.face_normals(closed_mesh)

        np.testing.assert_allclose(areas @ normals, 0.0, atol=1e-12)

    def test_normals_point_outward(self, closed_mesh):
        for f in closed_mesh.faces:
            assert f.normal().dot(f.barycenter) > 0.0

    def test_degenerate_normal(self):
        mesh = Mesh([[0, 0, 0], [1, 0, 0], [2, 0, 0]], [[0, 1, 2]])

        assert not np.all(np.isfinite(mesh.faces[0].normal()))
        assert mesh.faces[0].area() == 0.0


class TestCotan:

    def test_equilateral_triangle(self, triangle):
        for h in triangle.halfedges:
            if h.on_boundary:
                assert h.cotan() == 0.0
            else:
                assert h.cotan() == pytest.approx(1.0 / math.sqrt(3.0))

    def test_right_angle(self, square):
        # The diagonal is opposite to the right angles.
        for h in square.halfedges:
            if h.on_boundary:
                continue

            if {int(h.vertex), int(h.target)} == {0, 2}:
                assert h.cotan() == pytest.approx(0.0, abs=1e-15)
            else:
                assert h.cotan() == pytest.approx(1.0)

    def test_degenerate_triangle(self):
        mesh = Mesh([[0, 0, 0], [1, 0, 0], [2, 0, 0]], [[0, 1, 2]])

        assert not math.isfinite(mesh.halfedges[0].cotan())


class TestAngles:

    def test_tip_angles(self, triangle):
        for h in triangle.faces[0]._hiter():
            assert traits.tip_angle(h) == pytest.approx(math.pi / 3.0)

    def test_gauss_bonnet(self, closed_mesh):
        total = sum(traits.angle_defect(v) for v in closed_mesh.vertices)
        chi = closed_mesh.euler_characteristic()

        assert total == pytest.approx(2.0 * math.pi * chi)

    def test_flat_interior_vertex(self, disk):
        assert traits.angle_defect(disk.vertices[0]) == \
            pytest.approx(0.0, abs=1e-12)


class TestDualAreas:

    def test_equilateral_triangle(self, triangle):
        area = 0.25 * math.sqrt(3.0)

        for v in triangle.vertices:
            assert v.dual_area() == pytest.approx(area / 3.0)

    def test_partition_of_area(self, any_mesh):
        areas = traits.dual_areas(any_mesh)

        assert areas.sum() == pytest.approx(any_mesh.area())

        for v in any_mesh.vertices:
            assert v.dual_area() == pytest.approx(areas[v])


class TestVertexNormals:

    @pytest.mark.parametrize('scheme', list(NormalScheme))
    def test_unit_and_outward(self, icosphere, scheme):
        normals = traits.vertex_normals(icosphere, scheme)

        np.testing.assert_allclose(np.linalg.norm(normals, axis=1), 1.0)

        for v in icosphere.vertices:
            assert normals[v].dot(v.point) > 0.9

    # The mean curvature normal of a flat vertex is the zero vector.
    @pytest.mark.parametrize('scheme', [s for s in NormalScheme
                                        if s != NormalScheme.MEAN_CURVATURE])
    def test_planar_disk(self, disk, scheme):
        for v in disk.vertices:
            np.testing.assert_allclose(v.normal(scheme), [0.0, 0.0, 1.0],
                                       atol=1e-12)

    def test_octahedron_symmetry(self, octahedron):
        for v in octahedron.vertices:
            for scheme in NormalScheme:
                np.testing.assert_allclose(v.normal(scheme), v.point,
                                           atol=1e-12)


def test_texture_area(square):
    square.texture[:] = square.points[:, :2] * 2.0

    assert square.area_2d() == pytest.approx(4.0)
    assert traits.texture_area(square.faces[0]) == pytest.approx(2.0)


def test_bounds(octahedron):
    a, b = traits.bounds(octahedron)

    np.testing.assert_array_equal(a, [-1.0, -1.0, -1.0])
    np.testing.assert_array_equal(b, [1.0, 1.0, 1.0])


def test_edge_length(square):
    lo, hi, avg = traits.edge_length(square)

    assert lo == pytest.approx(1.0)
    assert hi == pytest.approx(math.sqrt(2.0))
    assert avg == pytest.approx((4.0 + math.sqrt(2.0)) / 5.0)
