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

""" Linear and eigenvalue solvers.

Thin adapter between :mod:`ddgmesh.matrix` and :mod:`scipy.sparse.linalg`.

    - :func:`solve` solves sparse linear systems with any number of
      right-hand sides, either by sparse LU factorization or, for
      singular systems, by computing minimal norm least squares
      solutions.
    - :func:`smallest_eig` computes the eigenvector of the smallest
      eigenvalue of a generalized Hermitian eigenvalue problem by
      inverse power iteration.

Failures are reported as :class:`SolveError`. Results are never
returned with non-finite entries.
"""

import numpy as np
import scipy.sparse.linalg as spla

from ddgmesh.matrix import DenseMatrix


LSQ_TOL = 1e-12
""" Stopping tolerance of the least squares solver. """

LSQ_MAXITER = 100000
""" Iteration limit of the least squares solver. """

LSQ_CONLIM = 1e12
""" Condition number estimate that stops the least squares solver. """

EIG_TOL = 1e-10
""" Relative residual tolerance of the eigenvalue iteration. """

EIG_MAXITER = 500
""" Iteration limit of the eigenvalue iteration. """


def solve(A, b, singular=False):
    """ Solve linear system.

    Solve ``A x = b`` column by column.

    Parameters
    ----------
    A : SparseMatrix
        Square system matrix.
    b : DenseMatrix
        Right-hand side, one system per column.
    singular : bool, optional
        The system is known to be singular. Skips factorization and
        computes the least squares solution of minimal norm.

    Raises
    ------
    ValueError
        If dimensions do not agree.
    SolveError
        If the solution has non-finite entries or the least squares
        solver did not converge.

    Returns
    -------
    DenseMatrix
        The solution, same shape as `b`.

    Note
    ----
    If factorization fails because `A` is singular, the least squares
    solution of minimal norm is computed instead. For a consistent
    positive semi-definite system this is the solution orthogonal to the
    null space of `A`.
    """
    m, n = A.shape

    if m != n:
        raise ValueError(f'square matrix expected, got shape {A.shape}')

    if b.n_rows != n:
        msg = f'right-hand side has {b.n_rows} rows, expected {n}'
        raise ValueError(msg)

    csc = A.tocsc()
    rhs = b.toarray()

    x = None

    if not singular:
        try:
            lu = spla.splu(csc)
        except RuntimeError:
            # Factor is exactly singular, continue with least squares.
            pass
        else:
            x = lu.solve(np.ascontiguousarray(rhs))

    if x is None:
        x = _lsqr(csc, rhs)

    if not np.all(np.isfinite(x)):
        raise SolveError('solution has non-finite entries')

    return DenseMatrix.from_array(x)


def _lsqr(A, b):
    """ Column-wise minimal norm least squares solutions.
    """
    dtype = np.result_type(A.dtype, b.dtype)
    x = np.zeros(b.shape, dtype=dtype)

    for k in range(b.shape[1]):
        col = b[:, k]

        if not np.any(col):
            continue

        result = spla.lsqr(A, col, atol=LSQ_TOL, btol=LSQ_TOL,
                           conlim=LSQ_CONLIM, iter_lim=LSQ_MAXITER)
        x[:, k], istop = result[0], result[1]

        # Codes 1, 2, 4, and 5 signal convergence for consistent and
        # inconsistent systems, 0 means the right-hand side vanishes.
        if istop not in (0, 1, 2, 4, 5):
            raise SolveError(f'least squares solver failed ({istop=})')

    return x


def smallest_eig(A, B, x, tol=None, maxiter=None):
    r""" Smallest eigenpair of generalized eigenvalue problem.

    Solves :math:`A \mathbf{x} = \lambda B \mathbf{x}` for the smallest
    eigenvalue :math:`\lambda` by inverse power iteration. Constant
    vectors are removed from each iterate, which deflates the mode of
    Laplace-like operators with constant null space.

    Parameters
    ----------
    A : SparseMatrix
        Hermitian positive definite matrix.
    B : SparseMatrix
        Hermitian positive definite mass matrix.
    x : DenseMatrix
        Initial guess, a single column. Overwritten with the eigenvector.
    tol : float, optional
        Relative residual tolerance, defaults to :data:`EIG_TOL`.
    maxiter : int, optional
        Iteration limit, defaults to :data:`EIG_MAXITER`.

    Raises
    ------
    ValueError
        If the matrices are complex but the initial guess is real.
    SolveError
        If `A` cannot be factorized or the iteration does not converge.
        The initial guess is not modified in this case.

    Returns
    -------
    DenseMatrix
        The eigenvector `x`, normalized such that
        :math:`\mathbf{x}^H B \mathbf{x} = 1`.
    """
    if np.result_type(A.dtype, B.dtype).kind == 'c' and x.dtype.kind != 'c':
        raise ValueError('complex initial guess required')

    tol = EIG_TOL if tol is None else tol
    maxiter = EIG_MAXITER if maxiter is None else maxiter

    csc_a = A.tocsc()
    csc_b = B.tocsc()

    try:
        lu = spla.splu(csc_a)
    except RuntimeError as e:
        raise SolveError(f'factorization failed: {e}') from e

    dtype = np.result_type(A.dtype, B.dtype, x.dtype)
    y = x.toarray()[:, 0].astype(dtype)

    ones = np.ones(len(y))
    mass = ones @ (csc_b @ ones)

    # Scale of the residual, used for a relative convergence test.
    scale = max(abs(csc_a).max(), abs(csc_b).max())

    for _ in range(maxiter):
        y = lu.solve(csc_b @ y)
        y -= (ones @ (csc_b @ y)) / mass

        norm = np.sqrt(abs(np.vdot(y, csc_b @ y)))

        if not np.isfinite(norm) or norm == 0.0:
            raise SolveError('eigenvalue iteration broke down')

        y /= norm

        ay = csc_a @ y
        by = csc_b @ y
        lam = np.vdot(y, ay).real

        residual = np.max(np.abs(ay - lam * by))

        if residual <= tol * scale * np.max(np.abs(y)):
            break
    else:
        raise SolveError(f'no convergence after {maxiter} iterations')

    x.data[:] = y

    return x


class SolveError(Exception):
    """ Numerical failure.

    Raised for degenerate geometry found during matrix assembly and for
    failing linear or eigenvalue solves. Mesh data is not modified when
    this exception is raised.
    """

    pass
