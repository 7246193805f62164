""" Tests for neighborhood and breadth-first iterators.
"""

from ddgmesh.iterators import edges, faces, faces_bfs, halfs, verts


def test_mesh_dispatch(square):
    assert list(verts(square)) == square.vertices
    assert list(halfs(square)) == square.halfedges
    assert list(edges(square)) == square.edges
    assert list(faces(square)) == square.faces


def test_edge_halfedges(square):
    for e in edges(square):
        h, g = halfs(e)

        assert g == h.flip
        assert h == e.halfedge


def test_face_vertices(square):
    assert [int(v) for v in verts(square.faces[1])] == [0, 2, 3]
    assert len(list(halfs(square.faces[1]))) == 3


class TestFacesBFS:

    def test_visits_all_faces_once(self, closed_mesh):
        seen = [f for f, _ in faces_bfs(closed_mesh.faces[0])]

        assert len(seen) == len(closed_mesh.faces)
        assert set(seen) == set(closed_mesh.faces)

    def test_parent_halfedges(self, icosphere):
        visited = set()

        for f, h in faces_bfs(icosphere.faces[3]):
            if h is None:
                assert f == icosphere.faces[3]
            else:
                assert h.flip.face == f
                assert h.face in visited

            visited.add(f)

    def test_skips_boundary_faces(self, disk):
        seen = [f for f, _ in faces_bfs(disk.faces[5])]

        assert len(seen) == 8
        assert not any(f.is_boundary for f in seen)
