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

""" Discrete exterior calculus.

Builders for the matrices of the exterior derivative of 0-forms and of
the diagonal Hodge stars of 0-forms and 1-forms on a triangle mesh. The
cotangent Laplacian of a mesh factors as

.. code-block:: python

   d0 = exterior_derivative_0form(mesh)
   star1 = hodge_star_1form(mesh)
   L = d0.T @ star1 @ d0

which is the negative of :meth:`~ddgmesh.hds.Mesh.build_laplacian`.
"""

import ddgmesh.traits as traits

from ddgmesh.matrix import SparseMatrix


def exterior_derivative_0form(mesh, dtype=float):
    """ Exterior derivative of 0-forms.

    Signed vertex-edge incidence matrix. Row ``e`` holds -1 in the column
    of the origin and +1 in the column of the target of the edge's
    representative halfedge.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    dtype : type, optional
        Entry type.

    Returns
    -------
    SparseMatrix
        Matrix of shape (e, v) for a mesh with v vertices and e edges.
    """
    n = mesh.index_vertices()
    d0 = SparseMatrix(len(mesh.edges), n, dtype)

    for e in mesh.edges:
        h = e.halfedge

        d0[e.index, h.vertex.index] = -1.0
        d0[e.index, h.target.index] = 1.0

    return d0


def hodge_star_0form(mesh, dtype=float):
    """ Hodge star of 0-forms.

    Diagonal matrix of barycentric vertex dual areas. Maps primal 0-forms
    to dual 2-forms.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    dtype : type, optional
        Entry type.

    Returns
    -------
    SparseMatrix
        Diagonal matrix of shape (v, v).

    Note
    ----
    Isolated vertices get a zero diagonal entry.
    """
    mesh.index_vertices()
    return SparseMatrix.diag(traits.dual_areas(mesh), dtype=dtype)


def hodge_star_1form(mesh, dtype=float):
    r""" Hodge star of 1-forms.

    Diagonal matrix with entries :math:`\frac{1}{2}(\cot\alpha +
    \cot\beta)` for the angles :math:`\alpha` and :math:`\beta` opposite
    to an edge. Boundary edges only have a single opposite angle. Maps
    primal 1-forms to dual 1-forms.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    dtype : type, optional
        Entry type.

    Returns
    -------
    SparseMatrix
        Diagonal matrix of shape (e, e).
    """
    weights = []

    for e in mesh.edges:
        h = e.halfedge
        weights.append(0.5 * (h.cotan() + h.flip.cotan()))

    return SparseMatrix.diag(weights, dtype=dtype)
