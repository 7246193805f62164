# Copyright 2024-25, ddgmesh
#
# Permission is hereby granted, free of charge, to any person obtaining a
# copy of this software and associated documentation files (the "Software"),
# to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense,
# and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
# IN THE SOFTWARE.

""" Geometric mesh traits.

Functions that compute geometric quantities of mesh items: face areas
and normals, cotangent weights, vertex dual areas, angles, and vertex
normals with five different weighting schemes.

Geometry queries do not raise for degenerate input. Collinear triangle
vertices result in non-finite values that callers have to check for.
"""

import math

from enum import Enum
from enum import auto

import numpy as np

import ddgmesh.linalg as linalg


class NormalScheme(Enum):
    """ Vertex normal weighting schemes.
    """

    EQUALLY_WEIGHTED = auto()
    """ Sum of incident face normals. """

    AREA_WEIGHTED = auto()
    """ Sum of incident face normals weighted by face area. """

    ANGLE_WEIGHTED = auto()
    """ Sum of incident face normals weighted by tip angle. """

    MEAN_CURVATURE = auto()
    """ Gradient of surface area, the cotangent formula. """

    SPHERE_INSCRIBED = auto()
    """ Normal of the sphere inscribed into the vertex star. """


def _normal_equally_weighted(vertex):
    normal = np.zeros(3)

    for h in vertex._hiter():
        if not h.on_boundary:
            normal += face_normal(h.face)

    return normal


def _normal_area_weighted(vertex):
    normal = np.zeros(3)

    for h in vertex._hiter():
        if not h.on_boundary:
            normal += _four_area(h.face)

    return normal


def _normal_angle_weighted(vertex):
    normal = np.zeros(3)

    for h in vertex._hiter():
        if not h.on_boundary:
            normal += face_normal(h.face) * tip_angle(h.prev)

    return normal


def _normal_mean_curvature(vertex):
    normal = np.zeros(3)

    # Boundary halfedges have vanishing cotangent weight.
    for h in vertex._hiter():
        normal -= (h.cotan() + h.flip.cotan()) * h.vector

    return normal


def _normal_sphere_inscribed(vertex):
    normal = np.zeros(3)

    for h in vertex._hiter():
        if h.on_boundary:
            continue

        u = -h.prev.vector
        v = h.vector

        normal -= linalg.cross(u, v) / (linalg.norm2(u) * linalg.norm2(v))

    return normal


_NORMAL_SCHEMES = {
    NormalScheme.EQUALLY_WEIGHTED: _normal_equally_weighted,
    NormalScheme.AREA_WEIGHTED: _normal_area_weighted,
    NormalScheme.ANGLE_WEIGHTED: _normal_angle_weighted,
    NormalScheme.MEAN_CURVATURE: _normal_mean_curvature,
    NormalScheme.SPHERE_INSCRIBED: _normal_sphere_inscribed,
}


def vertex_normal(vertex, scheme=NormalScheme.EQUALLY_WEIGHTED):
    """ Vertex normal.

    Each scheme visits the one-ring of `vertex` exactly once, stepping
    from an outgoing halfedge ``h`` to ``h.flip.next``. Wedges of
    boundary loops are skipped.

    Parameters
    ----------
    vertex : Vertex
        Vertex of a mesh.
    scheme : NormalScheme, optional
        Weighting scheme.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Unit normal vector.

    Note
    ----
    Vertex normals are not well defined for isolated vertices. The
    result has :obj:`numpy.nan` entries in this case.
    """
    if vertex.isolated:
        return np.full(3, np.nan)

    return linalg.unit(_NORMAL_SCHEMES[scheme](vertex))


def vertex_normals(mesh, scheme=NormalScheme.EQUALLY_WEIGHTED):
    """ Vertex normals.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    scheme : NormalScheme, optional
        Weighting scheme.

    Returns
    -------
    ~numpy.ndarray, shape (n, 3)
        Unit normal vectors for a mesh with n vertices.
    """
    normals = np.empty((len(mesh.vertices), 3))

    for v in mesh.vertices:
        normals[v] = vertex_normal(v, scheme)

    return normals


def _four_area(face):
    r""" Four times the vector area.

    The sum of :math:`(\mathbf{p}_{k+1} + \mathbf{p}_k) \times
    (\mathbf{p}_{k+1} - \mathbf{p}_k)` over all halfedges of the face.
    """
    vector = np.zeros(3)

    for h in face._hiter():
        p = h.vertex.point
        q = h.target.point

        vector += linalg.cross(q + p, q - p)

    return vector


def face_area(face):
    """ Face area.

    Parameters
    ----------
    face : Face
        A face, not necessarily a triangle.

    Returns
    -------
    float
        Face area. For non-planar polygons this is the norm of the vector
        area.
    """
    return 0.25 * linalg.norm(_four_area(face))


def face_areas(mesh):
    """ Face areas.

    Parameters
    ----------
    mesh : Mesh
        A mesh.

    Returns
    -------
    ~numpy.ndarray
        One area value per face, boundary faces excluded.
    """
    return np.array([face_area(f) for f in mesh.faces])


def face_normal(face):
    """ Face normal.

    Normalized cross product of the first two edge vectors of the face.

    Parameters
    ----------
    face : Face
        Face of a mesh.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Unit normal vector. Not finite for degenerate faces.
    """
    h = face.halfedge

    p0 = h.vertex.point
    p1 = h.target.point
    p2 = h.next.target.point

    with np.errstate(divide='ignore', invalid='ignore'):
        return linalg.unit(linalg.cross(p1 - p0, p2 - p0))


def face_normals(mesh):
    """ Face normals.

    Parameters
    ----------
    mesh : Mesh
        A mesh.

    Returns
    -------
    ~numpy.ndarray
        Array of face normal vectors, boundary faces excluded.
    """
    return np.array([face_normal(f) for f in mesh.faces]).reshape(-1, 3)


def halfedge_cotan(halfedge):
    """ Cotangent weight.

    Cotangent of the angle opposite to `halfedge` in its face, computed
    as ``dot(u, v) / norm(cross(u, v))`` for the two edge vectors ``u``
    and ``v`` starting at the opposite vertex.

    Parameters
    ----------
    halfedge : Halfedge
        Halfedge of a triangle mesh.

    Returns
    -------
    float
        Cotangent value, 0.0 for halfedges of boundary loops. Not finite
        for degenerate triangles.
    """
    if halfedge.on_boundary:
        return 0.0

    p = halfedge.next.target.point

    u = halfedge.vertex.point - p
    v = halfedge.target.point - p

    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.float64(u.dot(v)) / linalg.norm(linalg.cross(u, v)))


def tip_angle(halfedge):
    """ Interior angle at the target of a halfedge.

    The angle between the face's edges meeting at ``halfedge.target``,
    computed via ``atan2(norm(cross(a, b)), -dot(a, b))`` of the head to
    tail edge vectors ``a`` and ``b``. Well conditioned for angles close
    to 0 and pi.

    Parameters
    ----------
    halfedge : Halfedge
        Halfedge of a real face.

    Returns
    -------
    float
        Angle in radians.
    """
    a = halfedge.vector
    b = halfedge.next.vector

    return math.atan2(linalg.norm(linalg.cross(a, b)), -a.dot(b))


def angle_defect(vertex):
    r""" Angle defect.

    For a vertex with :math:`k` incident angles :math:`\alpha_i`,
    the value :math:`2\pi - \sum_{i=1}^k \alpha_i` is called angular
    defect or discrete Gaussian curvature.

    Parameters
    ----------
    vertex : Vertex
        Vertex of a mesh.

    Returns
    -------
    float
        Angle defect.

    Note
    ----
    Values obtained for boundary vertices (when interpreted as discrete
    Gaussian curvature) are questionable.
    """
    defect = 2.0 * math.pi

    for h in vertex._hiter():
        if not h.on_boundary:
            defect -= tip_angle(h.prev)

    return defect


def dual_area(vertex):
    """ Barycentric dual area.

    Parameters
    ----------
    vertex : Vertex
        Vertex of a mesh.

    Returns
    -------
    float
        One third of the sum of incident face areas, 0.0 for isolated
        vertices.
    """
    return sum(face_area(f) for f in vertex._fiter()) / 3.0


def dual_areas(mesh):
    """ Barycentric dual areas.

    Each face contributes a third of its area to each of its vertices.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh.

    Returns
    -------
    ~numpy.ndarray
        One dual area value per vertex.
    """
    areas = np.zeros(len(mesh.vertices))

    for f in mesh.faces:
        a = face_area(f) / 3.0

        for v in f:
            areas[v] += a

    return areas


def texture_area(face):
    """ Face area in texture coordinates.

    Parameters
    ----------
    face : Face
        Triangle of a mesh.

    Returns
    -------
    float
        Unsigned area of the triangle spanned by the texture coordinates
        of its vertices.
    """
    a, b, c = (v.texture for v in face)

    u = b - a
    v = c - a

    return 0.5 * abs(u[0] * v[1] - u[1] * v[0])


def bounds(mesh):
    """ Axis-aligned bounding box.

    Parameters
    ----------
    mesh : Mesh
        Mesh with at least one vertex.

    Returns
    -------
    a : ~numpy.ndarray, shape (3, )
        Minimal coordinate in each dimension.
    b : ~numpy.ndarray, shape (3, )
        Maximal coordinate in each dimension.
    """
    return np.min(mesh.points, axis=0), np.max(mesh.points, axis=0)


def edge_length(mesh):
    """ Edge length statistics.

    Minimal, maximal, and average edge length of a mesh.

    Parameters
    ----------
    mesh : Mesh
        Mesh with at least one edge.

    Returns
    -------
    min : float
        Minimal edge length.
    max : float
        Maximal edge length.
    avg : float
        Average edge length.
    """
    lengths = [e.length for e in mesh.edges]
    return min(lengths), max(lengths), sum(lengths) / len(lengths)
