""" Tests for the halfedge data structure.
"""

import copy

import numpy as np
import pytest

from ddgmesh.flags import HalfedgeFlag, VertexFlag
from ddgmesh.hds import Mesh, NonManifoldError, PreconditionError
from ddgmesh.iterators import faces, halfs, verts
from ddgmesh.traits import NormalScheme


class TestConstruction:

    def test_empty(self):
        mesh = Mesh()

        assert mesh.size == (0, 0, 0)
        assert mesh.boundaries == []

    def test_square(self, square):
        assert square.size == (4, 5, 2)
        assert len(square.halfedges) == 10
        assert len(square.boundaries) == 1
        assert len(square.boundaries[0]) == 4
        assert square.euler_characteristic() == 1
        assert square.name == 'square'

    def test_closed(self, closed_mesh):
        assert closed_mesh.boundaries == []
        assert closed_mesh.euler_characteristic() == 2
        assert all(not h.on_boundary for h in closed_mesh.halfedges)

    def test_icosphere_size(self, icosphere):
        assert icosphere.size == (42, 120, 80)

    def test_faces_must_be_triangles(self):
        points = np.zeros((4, 3))

        with pytest.raises(ValueError):
            Mesh(points, [[0, 1, 2, 3]])

    def test_repeated_vertex(self):
        with pytest.raises(ValueError):
            Mesh(np.zeros((3, 3)), [[0, 0, 1]])

    def test_missing_vertex(self):
        with pytest.raises(IndexError):
            Mesh(np.zeros((3, 3)), [[0, 1, 5]])

    def test_faces_without_points(self):
        with pytest.raises(ValueError):
            Mesh(faces=[[0, 1, 2]])

    def test_points_shape(self):
        with pytest.raises(ValueError):
            Mesh(np.zeros((3, 2)), [[0, 1, 2]])

    def test_edge_shared_by_three_faces(self):
        points = np.random.default_rng(0).standard_normal((5, 3))

        with pytest.raises(NonManifoldError):
            Mesh(points, [[0, 1, 2], [1, 0, 3], [0, 1, 4]])

    def test_inconsistent_orientation(self):
        points = np.random.default_rng(0).standard_normal((4, 3))

        with pytest.raises(NonManifoldError):
            Mesh(points, [[0, 1, 2], [0, 1, 3]])

    def test_bowtie(self):
        points = np.random.default_rng(0).standard_normal((5, 3))

        with pytest.raises(NonManifoldError):
            Mesh(points, [[0, 1, 2], [0, 3, 4]])

    def test_closed_fans_sharing_a_vertex(self):
        points = np.random.default_rng(0).standard_normal((7, 3))
        tet = [[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]]
        other = [[0 if i == 0 else i + 3 for i in f] for f in tet]

        with pytest.raises(NonManifoldError):
            Mesh(points, tet + other)

    def test_isolated_vertex(self, capsys):
        points = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [5, 5, 5]]
        mesh = Mesh(points, [[0, 1, 2]])

        assert 'isolated' in capsys.readouterr().out

        v = mesh.vertices[3]

        assert v.isolated
        assert v.halfedge is None
        assert v.degree == 0
        assert not v.on_boundary
        assert np.all(np.isnan(v.normal()))
        assert v.dual_area() == 0.0

    def test_name_strips_directory_and_suffix(self):
        mesh = Mesh(name='/some/dir/bunny.obj')
        assert mesh.name == 'bunny'


class TestConnectivity:

    def test_invariants(self, any_mesh):
        for h in any_mesh.halfedges:
            assert h.flip.flip == h
            assert h.flip != h
            assert h.flip.vertex == h.target
            assert h.next.vertex == h.target
            assert h.next.face == h.face
            assert h.prev.next == h
            assert h.flip.edge == h.edge

        for v in any_mesh.vertices:
            assert v.halfedge.vertex == v

        for e in any_mesh.edges:
            assert e.halfedge.edge == e
            assert not e.halfedge.on_boundary

        for f in any_mesh.faces:
            assert f.halfedge.face == f
            assert len(f) == 3
            assert not f.is_boundary

        any_mesh.index_vertices()

    def test_vertex_halfedge_has_lowest_index(self, any_mesh):
        for v in any_mesh.vertices:
            assert v.halfedge.index == min(h.index for h in halfs(v))

    def test_boundary_halfedges_are_stored_last(self, square):
        bnd = [h.on_boundary for h in square.halfedges]
        assert bnd == [False] * 6 + [True] * 4

    def test_boundary_loop(self, disk):
        loop = disk.boundaries[0]

        assert loop.is_boundary
        assert len(loop) == 8
        assert sorted(int(v) for v in loop) == list(range(1, 9))

        for h in halfs(loop):
            assert h.on_boundary
            assert h.flags == HalfedgeFlag.BOUNDARY
            assert h.edge.on_boundary

    def test_one_ring(self, octahedron):
        for v in octahedron.vertices:
            assert v.degree == 4
            assert len(list(faces(v))) == 4

            ring = [int(w) for w in verts(v)]
            assert len(set(ring)) == 4
            assert int(v) not in ring

    def test_boundary_vertices(self, disk):
        assert not disk.vertices[0].on_boundary
        assert all(v.on_boundary for v in disk.vertices[1:])
        assert disk.vertices[0].degree == 8
        assert disk.vertices[1].degree == 3

    def test_face_neighbors(self, square, tetrahedron):
        assert [f.index for f in faces(square.faces[0])] == [1]

        for f in tetrahedron.faces:
            assert len(list(faces(f))) == 3

    def test_face_definitions(self, square):
        assert [[int(v) for v in f] for f in square] == [[0, 1, 2], [0, 2, 3]]

    def test_handles(self, square):
        v = square.vertices[2]

        assert v == square.vertices[2]
        assert v != square.vertices[1]
        assert v != square.halfedges[2]
        assert len({v, square.vertices[2]}) == 1

        np.testing.assert_array_equal(square.points[v], [1.0, 1.0, 0.0])
        np.testing.assert_array_equal(np.asarray(v), [1.0, 1.0, 0.0])
        assert np.asarray(square.faces[1]).shape == (3, 3)

    def test_point_view(self, square):
        v = square.vertices[1]
        v.point = [2.0, 0.0, 0.0]

        assert square.points[1, 0] == 2.0

        v.point[1] = 3.0
        assert square.points[1, 1] == 3.0

    def test_points_setter(self, square):
        with pytest.raises(ValueError):
            square.points = np.zeros((3, 3))

        square.points = square.points * 2.0
        assert square.points[2, 1] == 2.0


class TestCopy:

    def test_copy_is_independent(self, icosphere):
        other = icosphere.copy()

        other.points[0] += 1.0
        other.rho[3] = 2.0
        other.toggle_vertex_tag(5)

        assert not np.allclose(icosphere.points[0], other.points[0])
        assert icosphere.rho[3] == 0.0
        assert icosphere.tagged == []
        assert other.vertices[0] != icosphere.vertices[0]
        assert other.size == icosphere.size

    def test_copy_module(self, square):
        square.build_laplacian()

        for other in (copy.copy(square), copy.deepcopy(square)):
            assert other is not square
            np.testing.assert_array_equal(other.points, square.points)
            np.testing.assert_array_equal(other.L.toarray(),
                                          square.L.toarray())
            assert other.L is not square.L

    def test_clone_replaces_connectivity(self, square, tetrahedron):
        h = square.halfedges[0]

        square.clone(tetrahedron)

        assert square.size == tetrahedron.size
        assert square.boundaries == []
        assert h.index == 0
        assert h.face.index == tetrahedron.halfedges[0].face.index


class TestNormalize:

    def test_unit_ball(self, disk):
        disk.points = 3.0 * disk.points + [1.0, 2.0, 3.0]
        disk.normalize()

        np.testing.assert_allclose(np.mean(disk.points, axis=0), 0.0,
                                   atol=1e-12)
        assert np.max(np.linalg.norm(disk.points, axis=1)) == \
            pytest.approx(1.0)

    def test_idempotent(self, tetrahedron):
        tetrahedron.normalize()
        points = tetrahedron.points.copy()
        tetrahedron.normalize()

        np.testing.assert_allclose(tetrahedron.points, points, atol=1e-12)


class TestSelection:

    def test_toggle_tag(self, octahedron):
        assert octahedron.toggle_vertex_tag(4, winding=1)
        assert octahedron.toggle_vertex_tag(octahedron.vertices[5])

        v = octahedron.vertices[4]

        assert v.tagged
        assert VertexFlag.TAGGED in v.flags
        assert v.winding == 1
        assert octahedron.tagged == [4, 5]

        assert not octahedron.toggle_vertex_tag(4)
        assert not v.tagged
        assert octahedron.tagged == [5]

    def test_toggle_highlight(self, octahedron):
        assert octahedron.toggle_vertex_highlight(2)
        assert octahedron.vertices[2].highlighted
        assert octahedron.highlighted == [2]

        assert not octahedron.toggle_vertex_highlight(2)
        assert octahedron.highlighted == []

    def test_toggle_missing_vertex(self, octahedron):
        with pytest.raises(IndexError):
            octahedron.toggle_vertex_tag(6)

        with pytest.raises(IndexError):
            octahedron.toggle_vertex_highlight(-1)


class TestFileIO:

    def test_round_trip(self, icosphere, tmp_path):
        filename = tmp_path / 'sphere.obj'
        icosphere.write(filename)

        mesh = Mesh.read(filename, normalize=False)

        assert mesh.name == 'sphere'
        assert mesh.source == filename
        assert mesh.size == icosphere.size
        np.testing.assert_array_equal(mesh.points, icosphere.points)
        assert ([[int(v) for v in f] for f in mesh] ==
                [[int(v) for v in f] for f in icosphere])

    def test_texture_round_trip(self, square, tmp_path):
        filename = tmp_path / 'square.obj'
        square.texture[:] = square.points[:, :2] * 0.5
        square.write(filename, texture=True)

        mesh = Mesh.read(filename, normalize=False)

        np.testing.assert_array_equal(mesh.texture, square.texture)

    def test_write_normals(self, octahedron, tmp_path):
        filename = tmp_path / 'octahedron.obj'
        octahedron.write(filename, scheme=NormalScheme.AREA_WEIGHTED)

        lines = filename.read_text().splitlines()

        assert sum(line.startswith('vn ') for line in lines) == 6
        assert '//' in [line for line in lines if line.startswith('f')][0]

        mesh = Mesh.read(filename, normalize=False)
        assert mesh.size == octahedron.size

    def test_read_normalizes(self, square, tmp_path):
        filename = tmp_path / 'square.obj'
        square.write(filename)

        mesh = Mesh.read(filename)

        np.testing.assert_allclose(np.mean(mesh.points, axis=0), 0.0,
                                   atol=1e-12)

    def test_read_reports_line(self, tmp_path):
        filename = tmp_path / 'broken.obj'
        filename.write_text('v 0 0 0\nv 1 x 0\n')

        with pytest.raises(ValueError, match='broken.obj:2'):
            Mesh.read(filename)

    def test_read_negative_indices(self, tmp_path):
        filename = tmp_path / 'relative.obj'
        filename.write_text('# triangle\n'
                            'v 0 0 0\nv 1 0 0\nv 0 1 0\n'
                            'f -3/1 -2/2 -1/3\n')

        mesh = Mesh.read(filename, normalize=False)

        assert [[int(v) for v in f] for f in mesh] == [[0, 1, 2]]

    def test_reload(self, icosphere, tmp_path):
        filename = tmp_path / 'sphere.obj'
        icosphere.write(filename)

        mesh = Mesh.read(filename)
        points = mesh.points.copy()

        mesh.points[:] = 0.0
        mesh.toggle_vertex_tag(0)

        assert mesh.reload() is mesh
        np.testing.assert_array_equal(mesh.points, points)
        assert mesh.tagged == []

    def test_failed_reload_keeps_mesh(self, icosphere, tmp_path):
        filename = tmp_path / 'sphere.obj'
        icosphere.write(filename)

        mesh = Mesh.read(filename)
        points = mesh.points.copy()

        filename.unlink()

        with pytest.raises(OSError):
            mesh.reload()

        assert mesh.size == icosphere.size
        np.testing.assert_array_equal(mesh.points, points)

    def test_reload_requires_source(self, square):
        with pytest.raises(PreconditionError):
            square.reload()

    def test_console_output(self, square, tmp_path, capsys):
        filename = tmp_path / 'square.obj'

        square.write(filename, quiet=False)
        Mesh.read(filename, quiet=False)

        out = capsys.readouterr().out

        assert 'writing' in out
        assert 'reading' in out
        assert '2 faces' in out
