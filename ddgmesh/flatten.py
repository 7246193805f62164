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

r""" Spectral conformal parameterization.

Computes texture coordinates :math:`z = u + iv` of a mesh with boundary
by minimizing the conformal energy

.. math::

   E_C(z) = E_D(z) - A(z)

(Dirichlet energy minus the signed area of the parameter domain) among
all maps that are orthogonal to constant maps and have unit norm with
respect to the mass matrix :math:`\star_0`. The minimizer is the
eigenvector of the smallest eigenvalue of a generalized Hermitian
eigenvalue problem.

Reference: P. Mullen, Y. Tong, P. Alliez, M. Desbrun. *Spectral Conformal
Parameterization*. Symposium on Geometry Processing, 2008.
"""

import math

from time import time

import numpy as np

import ddgmesh.dec as dec
import ddgmesh.solve as solve

from ddgmesh.hds import PreconditionError
from ddgmesh.matrix import SparseMatrix, DenseMatrix


REGULARIZATION = 1e-8
""" Multiple of the mass matrix added to the energy matrix. """


def build_energy(mesh):
    """ Conformal energy matrix.

    Sum of the Dirichlet energy (quarter cotangent weights on halfedges
    of real faces) and the purely imaginary area term accumulated along
    boundary loops.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh with boundary.

    Raises
    ------
    PreconditionError
        If the mesh has no boundary.
    SolveError
        If a cotangent weight is not finite.

    Returns
    -------
    SparseMatrix
        Complex Hermitian matrix of shape (n, n).
    """
    if not mesh.boundaries:
        raise PreconditionError('mesh has no boundary')

    n = mesh.index_vertices()
    A = SparseMatrix(n, n, complex)

    for h in mesh.halfedges:
        if h.on_boundary:
            continue

        w = 0.25 * h.cotan()

        if not math.isfinite(w):
            msg = f'cotangent weight of halfedge #{h.index} is {w}'
            raise solve.SolveError(msg)

        i = h.vertex.index
        j = h.target.index

        A.add(i, i, w)
        A.add(j, j, w)
        A.add(i, j, -w)
        A.add(j, i, -w)

    for f in mesh.boundaries:
        for h in f._hiter():
            i = h.vertex.index
            j = h.target.index

            A.add(i, j, -0.25j)
            A.add(j, i, 0.25j)

    return A


def assign_solution(x, mesh):
    """ Copy eigenvector to texture coordinates.

    Parameters
    ----------
    x : DenseMatrix
        Complex vector, one entry per vertex.
    mesh : Mesh
        Target mesh.
    """
    z = x.toarray()[:, 0]

    mesh.texture[:, 0] = z.real
    mesh.texture[:, 1] = z.imag


def normalize_texture(scale, mesh):
    """ Center and scale texture coordinates.

    Parameters
    ----------
    scale : float
        Scale factor.
    mesh : Mesh
        Target mesh.
    """
    texture = mesh.texture
    texture[:] = scale * (texture - np.mean(texture, axis=0))


def flatten(mesh, rng=None, quiet=True):
    """ Compute conformal texture coordinates.

    Solves the regularized eigenvalue problem, stores the result as
    texture coordinates, and rescales them such that the parameter
    domain and the surface have the same area.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh with boundary.
    rng : numpy.random.Generator, optional
        Random number generator for the initial guess.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    PreconditionError
        If the mesh has no boundary.
    SolveError
        On degenerate geometry or if the eigenvalue iteration fails.

    Returns
    -------
    ~numpy.ndarray
        The texture coordinate array of `mesh`.

    Note
    ----
    Texture coordinates are only written after a successful solve.
    """
    CBOLD = '\33[1m'                    # bold text, white on black
    CEND = '\33[0m'

    if not quiet:
        start = time()
        print(f'flattening {CBOLD}{mesh.name}{CEND}', end=' ...')

    Lc = build_energy(mesh)
    star0 = dec.hodge_star_0form(mesh, dtype=complex)

    Lc = Lc + REGULARIZATION * star0

    x = DenseMatrix(len(mesh.vertices), 1, complex)
    x.randomize(rng)

    solve.smallest_eig(Lc, star0, x)

    assign_solution(x, mesh)

    area_2d = mesh.area_2d()

    if area_2d > 0.0:
        normalize_texture(math.sqrt(mesh.area() / area_2d), mesh)

    if not quiet:
        print(f' done ({time()-start:.3f} sec)')

    return mesh.texture
