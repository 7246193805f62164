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

""" Vector and quaternion math.

Non-vectorized helpers for computations on single vectors in 3-space.
For this kind of work they are faster than their vectorized NumPy
counterparts. Rotations used for parallel transport are expressed with
the :class:`Quaternion` type.
"""

import math
import numpy as np


def angle(v, w, a=None):
    r""" Angle between vectors.

    Angle between vectors :math:`\mathbf{v}` and :math:`\mathbf{w}` in
    radians, computed as :math:`\operatorname{atan2}(\|\mathbf{v} \times
    \mathbf{w}\|, \mathbf{v}^T \mathbf{w})`. This is well conditioned for
    angles close to :math:`0` and :math:`\pi` where the arc cosine is not.

    Parameters
    ----------
    v, w : ~numpy.ndarray, shape (3, )
        Vector in 3-space.
    a : ~numpy.ndarray, shape (3, ), optional
        Axis vector. Determines the sign of the angle.

    Returns
    -------
    float
        Angle in radians.

    Note
    ----
    If an axis vector is given the sign is determined via the right-hand
    rule. None of the vectors may be the zero vector.
    """
    n = cross(v, w)
    phi = math.atan2(norm(n), v.dot(w))

    if a is not None and a.dot(n) < 0.0:
        phi *= -1.0

    return phi


def cross(u, v):
    r""" Cross product.

    Alternative to NumPy's vectorized :func:`~numpy.cross` function.

    Parameters
    ----------
    u, v : array_like, shape (3, )
        Vector in :math:`\mathbb{R}^3`.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Cross product of vectors :math:`\mathbf{u}` and :math:`\mathbf{v}`.
    """
    # Unpack the arrays. This will also catch any problem with array shape.
    u0, u1, u2 = u
    v0, v1, v2 = v

    return np.array([u1*v2 - u2*v1,
                     u2*v0 - u0*v2,
                     u0*v1 - u1*v0])


def norm(u):
    r""" Length of vector.

    Alternative to NumPy's vectorized :func:`~numpy.linalg.norm` function.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (n, )
        Vector in :math:`\mathbb{R}^n`.

    Returns
    -------
    float
        Euclidean length of the vector :math:`\mathbf{u}`.
    """
    return math.sqrt(u.dot(u))


def norm2(u):
    r""" Squared length of vector.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (n, )
        Vector in :math:`\mathbb{R}^n`.

    Returns
    -------
    float
        The value :math:`\mathbf{u}^T \mathbf{u}`.
    """
    return float(u.dot(u))


def unit(u):
    r""" Vector normalization.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (3, )
        Vector in :math:`\mathbb{R}^3`.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Normalized copy of input vector.

    Note
    ----
    The zero vector results in a vector of :obj:`numpy.nan` entries.
    """
    return u / norm(u)


class Quaternion:
    r""" Quaternion :math:`q = s + \mathbf{v}`.

    Real part :math:`s` and imaginary part :math:`\mathbf{v} \in
    \mathbb{R}^3`. A unit quaternion

    .. math::

       q = \cos(\varphi/2) + \sin(\varphi/2) \mathbf{a}

    rotates a vector :math:`\mathbf{x}`, interpreted as an imaginary
    quaternion, by the angle :math:`\varphi` about the unit axis
    :math:`\mathbf{a}` via conjugation :math:`q \mathbf{x} \bar{q}`.

    Parameters
    ----------
    s : float, optional
        Real part.
    v : array_like, shape (3, ), optional
        Imaginary part.

    Example
    -------
    Transport of a tangent vector ``x`` by the angle ``phi`` about the
    axis ``a``:

    >>> q = Quaternion.rotation(a, phi)
    >>> y = (q * Quaternion(0.0, x) * q.conj()).im
    """

    __slots__ = ('re', 'im')

    def __init__(self, s=0.0, v=(0.0, 0.0, 0.0)):
        self.re = float(s)
        self.im = np.array(v, dtype=float)

    @classmethod
    def rotation(cls, a, phi):
        """ Rotation quaternion.

        Parameters
        ----------
        a : ~numpy.ndarray, shape (3, )
            Unit axis vector.
        phi : float
            Rotation angle in radians.

        Returns
        -------
        Quaternion
            Unit quaternion that rotates by `phi` about `a`.
        """
        return cls(math.cos(0.5 * phi), math.sin(0.5 * phi) * np.asarray(a))

    def __repr__(self):
        return f'Quaternion({self.re}, {self.im.tolist()})'

    def __mul__(self, other):
        r""" Hamilton product.

        For :math:`p = s + \mathbf{v}` and :math:`q = t + \mathbf{w}`

        .. math::

           pq = st - \mathbf{v}^T\mathbf{w} +
                s\mathbf{w} + t\mathbf{v} + \mathbf{v} \times \mathbf{w}.
        """
        s, v = self.re, self.im
        t, w = other.re, other.im

        return Quaternion(s*t - v.dot(w), s*w + t*v + cross(v, w))

    def conj(self):
        """ Quaternion conjugate.

        Returns
        -------
        Quaternion
            The quaternion with negated imaginary part.
        """
        return Quaternion(self.re, -self.im)

    def rotate(self, x):
        """ Rotate vector by conjugation.

        Parameters
        ----------
        x : array_like, shape (3, )
            Vector in 3-space.

        Returns
        -------
        ~numpy.ndarray, shape (3, )
            Imaginary part of ``self * x * self.conj()``.

        Note
        ----
        Only a rotation if `self` is a unit quaternion.
        """
        return (self * Quaternion(0.0, x) * self.conj()).im
