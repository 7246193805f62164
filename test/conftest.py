""" Shared mesh fixtures.

All meshes are generated in code, no files are needed. Closed meshes are
oriented with outward pointing normals.
"""

import math

import numpy as np
import pytest

from ddgmesh.hds import Mesh


### Mesh generators ###


def orient_outward(points, faces):
    """ Flip faces of a star-shaped closed mesh to point away from the origin.
    """
    points = np.asarray(points, dtype=float)
    result = []

    for a, b, c in faces:
        n = np.cross(points[b] - points[a], points[c] - points[a])

        if n.dot(points[a] + points[b] + points[c]) < 0.0:
            result.append([a, c, b])
        else:
            result.append([a, b, c])

    return result


def make_square():
    points = [[0.0, 0.0, 0.0],
              [1.0, 0.0, 0.0],
              [1.0, 1.0, 0.0],
              [0.0, 1.0, 0.0]]
    faces = [[0, 1, 2], [0, 2, 3]]

    return Mesh(points, faces, name='square')


def make_disk(k=8):
    """ Planar triangle fan around the origin with `k` rim vertices.
    """
    t = 2.0 * math.pi * np.arange(k) / k

    points = np.zeros((k + 1, 3))
    points[1:, 0] = np.cos(t)
    points[1:, 1] = np.sin(t)

    faces = [[0, 1 + i, 1 + (i + 1) % k] for i in range(k)]

    return Mesh(points, faces, name='disk')


def make_tetrahedron():
    points = [[1.0, 1.0, 1.0],
              [1.0, -1.0, -1.0],
              [-1.0, 1.0, -1.0],
              [-1.0, -1.0, 1.0]]
    faces = [[0, 1, 2], [0, 1, 3], [0, 2, 3], [1, 2, 3]]

    return Mesh(points, orient_outward(points, faces), name='tetrahedron')


def make_octahedron():
    points = [[1.0, 0.0, 0.0],
              [0.0, 1.0, 0.0],
              [-1.0, 0.0, 0.0],
              [0.0, -1.0, 0.0],
              [0.0, 0.0, 1.0],
              [0.0, 0.0, -1.0]]
    faces = [[i, (i + 1) % 4, p] for i in range(4) for p in (4, 5)]

    return Mesh(points, orient_outward(points, faces), name='octahedron')


def make_icosphere(levels=1):
    """ Subdivided icosahedron projected to the unit sphere.
    """
    t = 0.5 * (1.0 + math.sqrt(5.0))

    points = [[-1, t, 0], [1, t, 0], [-1, -t, 0], [1, -t, 0],
              [0, -1, t], [0, 1, t], [0, -1, -t], [0, 1, -t],
              [t, 0, -1], [t, 0, 1], [-t, 0, -1], [-t, 0, 1]]
    points = [list(np.asarray(p, dtype=float) / math.hypot(1.0, t))
              for p in points]

    faces = [[0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
             [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
             [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
             [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1]]

    for _ in range(levels):
        midpoints = dict()

        def midpoint(i, j):
            key = (min(i, j), max(i, j))

            if key not in midpoints:
                p = np.add(points[i], points[j])
                points.append(list(p / np.linalg.norm(p)))
                midpoints[key] = len(points) - 1

            return midpoints[key]

        subdivided = []

        for a, b, c in faces:
            ab, bc, ca = midpoint(a, b), midpoint(b, c), midpoint(c, a)
            subdivided += [[a, ab, ca], [b, bc, ab], [c, ca, bc],
                           [ab, bc, ca]]

        faces = subdivided

    return Mesh(points, orient_outward(points, faces), name='icosphere')


def make_triangle():
    """ Single equilateral triangle with unit edge length.
    """
    points = [[0.0, 0.0, 0.0],
              [1.0, 0.0, 0.0],
              [0.5, 0.5 * math.sqrt(3.0), 0.0]]

    return Mesh(points, [[0, 1, 2]], name='triangle')


### Fixtures ###


@pytest.fixture
def square():
    return make_square()


@pytest.fixture
def disk():
    return make_disk()


@pytest.fixture
def tetrahedron():
    return make_tetrahedron()


@pytest.fixture
def octahedron():
    return make_octahedron()


@pytest.fixture
def icosphere():
    return make_icosphere()


@pytest.fixture
def triangle():
    return make_triangle()


@pytest.fixture(params=['square', 'disk', 'tetrahedron', 'octahedron',
                        'icosphere', 'triangle'])
def any_mesh(request):
    """ Every test mesh in turn. """
    return request.getfixturevalue(request.param)


@pytest.fixture(params=['tetrahedron', 'octahedron', 'icosphere'])
def closed_mesh(request):
    """ Every closed test mesh in turn. """
    return request.getfixturevalue(request.param)


@pytest.fixture
def rng():
    return np.random.default_rng(20240517)
