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

r""" Trivial connections.

Tangent vector fields with prescribed singularities on closed surfaces.
Tagged vertices are singularities with integer winding numbers
:math:`k_i`. The winding numbers have to sum up to the Euler
characteristic (Gauss-Bonnet). A discrete connection, one angle per
edge, cancels the holonomy of the Levi-Civita connection everywhere
except at singularities:

.. math::

   d_0^T \star_1 d_0 \, u = -K + 2\pi k, \quad
   \varphi = \star_1 d_0 u,

where :math:`K` holds the angle defects of all vertices. A unit vector
is then transported across faces in breadth-first order, rotated by the
dihedral angle of each crossed edge and by the connection angle.

Reference: K. Crane, M. Desbrun, P. Schröder. *Trivial Connections on
Discrete Surfaces*. Symposium on Geometry Processing, 2010.
"""

import math

from time import time

import numpy as np

import ddgmesh.dec as dec
import ddgmesh.linalg as linalg
import ddgmesh.solve as solve
import ddgmesh.traits as traits

from ddgmesh.hds import PreconditionError
from ddgmesh.iterators import faces_bfs
from ddgmesh.linalg import Quaternion
from ddgmesh.matrix import DenseMatrix


def _winding_correction(mesh):
    """ Vertex and value that balance the winding numbers.

    Returns ``(i, k, highlight)`` where ``k`` is added to the winding
    number of vertex ``i`` and `highlight` tells whether ``i`` still
    needs to be highlighted. ``i`` is :obj:`None` if nothing is tagged.
    Nothing is written to `mesh`.
    """
    if not mesh.tagged:
        return None, 0, False

    euler = mesh.euler_characteristic()
    total = sum(mesh.winding[i] for i in mesh.tagged)

    # Only winding numbers of tagged vertices enter the solve.
    candidates = [i for i in mesh.highlighted if i in mesh.tagged]

    if candidates:
        return candidates[0], euler - total, False

    return mesh.tagged[0], euler - total, euler != total


def _apply_correction(mesh, i, k, highlight):
    if k == 0:
        return

    if highlight:
        mesh.toggle_vertex_highlight(i)

    mesh.winding[i] += k


def balance_winding(mesh):
    """ Enforce the Gauss-Bonnet constraint.

    If the winding numbers of tagged vertices do not sum up to the Euler
    characteristic, the difference is added to the first highlighted
    vertex that is also tagged. The first tagged vertex gets highlighted
    if there is no such vertex.

    Parameters
    ----------
    mesh : Mesh
        Mesh with tagged vertices.

    Returns
    -------
    int
        The correction added to a winding number, 0 if none was needed.
    """
    i, k, highlight = _winding_correction(mesh)
    _apply_correction(mesh, i, k, highlight)

    return k


def solve_for_connection(mesh, winding=None):
    """ Solve for the connection.

    Writes the potential ``u`` to :attr:`~ddgmesh.hds.Mesh.potential` and
    the connection angles to :attr:`~ddgmesh.hds.Mesh.connection`, with
    opposite signs on the two halfedges of an edge.

    Parameters
    ----------
    mesh : Mesh
        Closed triangle mesh with balanced winding numbers.
    winding : array_like, optional
        Winding numbers used instead of :attr:`~ddgmesh.hds.Mesh.winding`.

    Raises
    ------
    SolveError
        On degenerate geometry or solver failure. Nothing is written in
        this case.

    Returns
    -------
    ~numpy.ndarray
        Connection angle per edge.
    """
    n = mesh.index_vertices()

    if winding is None:
        winding = mesh.winding

    b = DenseMatrix(n)
    b.zero(-2.0 * math.pi)

    for f in mesh.faces:
        for h in f._hiter():
            b[h.target.index] += traits.tip_angle(h)

    for i in mesh.tagged:
        b[i] += 2.0 * math.pi * winding[i]

    d0 = dec.exterior_derivative_0form(mesh)
    star1 = dec.hodge_star_1form(mesh)

    if not np.all(np.isfinite(star1.toarray())):
        raise solve.SolveError('non-finite cotangent weights')

    L = d0.T @ star1 @ d0

    u = solve.solve(L, b, singular=True)
    phi = (star1 @ d0 @ u).toarray()[:, 0]

    mesh.potential[:] = u.toarray()[:, 0]

    for e in mesh.edges:
        h = e.halfedge

        h.connection = phi[e.index]
        h.flip.connection = -phi[e.index]

    return phi


def transport_vector_field(mesh):
    """ Parallel transport of a tangent vector.

    Starts at a face of the first tagged vertex with the unit vector
    along one of its edges and visits all faces in breadth-first order.
    Crossing an edge rotates the vector about the edge by the angle
    between the face normals and then about the new face normal by the
    connection angle of the crossed halfedge.

    Parameters
    ----------
    mesh : Mesh
        Closed triangle mesh with at least one tagged vertex and a
        solved connection.

    Returns
    -------
    ~numpy.ndarray
        The direction array, one vector per face.
    """
    h = mesh.vertices[mesh.tagged[0]].halfedge.next
    start = h.face

    start.direction = linalg.unit(h.vector)

    for f, g in faces_bfs(start):
        if g is None:
            continue

        face = g.face

        n0 = face.normal()
        n1 = f.normal()

        axis = linalg.unit(g.vector)
        theta = linalg.angle(n0, n1, axis)

        # Unfold about the edge first, then apply the connection angle.
        q = Quaternion.rotation(n1, g.connection) * \
            Quaternion.rotation(axis, theta)

        f.direction = q.rotate(face.direction)

    return mesh.directions


def run(mesh, quiet=True):
    """ Compute a tangent vector field with prescribed singularities.

    Balances winding numbers, solves for the connection, and transports
    a tangent vector to every face.

    Parameters
    ----------
    mesh : Mesh
        Closed triangle mesh with tagged vertices.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    PreconditionError
        If the mesh has boundary or no vertex is tagged.
    SolveError
        On degenerate geometry or solver failure. No mesh data is
        changed in this case.

    Returns
    -------
    ~numpy.ndarray
        The direction array, one vector per face.
    """
    CBOLD = '\33[1m'                    # bold text, white on black
    CEND = '\33[0m'

    if mesh.boundaries:
        raise PreconditionError('mesh has boundary')

    if not mesh.tagged:
        raise PreconditionError('no vertices are tagged')

    if not quiet:
        start = time()
        print(f'computing {CBOLD}trivial connection{CEND}', end=' ...')

    i, correction, highlight = _winding_correction(mesh)

    winding = mesh.winding.copy()
    winding[i] += correction

    # Winding numbers and highlights change only after a successful solve.
    solve_for_connection(mesh, winding)
    _apply_correction(mesh, i, correction, highlight)

    directions = transport_vector_field(mesh)

    if not quiet:
        print(f' done ({time()-start:.3f} sec, {correction=})')

    return directions
