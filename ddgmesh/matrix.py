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

""" Sparse and dense matrices.

Two small matrix containers used to assemble and exchange linear systems:

    - :class:`SparseMatrix` stores nonzero entries in a dictionary keyed
      on ``(col, row)`` pairs,
    - :class:`DenseMatrix` stores all entries in a flat column-major
      buffer.

Both hold either real (:class:`float`) or complex (:class:`complex`)
entries. Entries are accessed with 0-based ``(row, col)`` subscripts:

.. code-block:: python

    L = SparseMatrix(n, n)
    L[i, j] += w            # insert or update
    a = L[i, j]             # 0.0 if not stored, nothing is inserted

Compressed-column data for the solver adapter in :mod:`ddgmesh.solve`
is obtained via :meth:`SparseMatrix.compress` or directly as a SciPy
matrix via :meth:`SparseMatrix.tocsc`.
"""

import numpy as np
import scipy.sparse as sp


def _result_dtype(a, b):
    """ Common entry type of two matrices or a matrix and a scalar.
    """
    return np.result_type(a, b)


class SparseMatrix:
    """ Sparse matrix.

    Dictionary of keys storage. Keys are ``(col, row)`` pairs such that
    sorting the keys results in column-major (compressed-column) order.

    Parameters
    ----------
    m : int, optional
        Number of rows.
    n : int, optional
        Number of columns.
    dtype : type, optional
        Entry type, :class:`float` or :class:`complex`.

    Note
    ----
    Reading an entry that is not stored returns zero **without** storing
    it. Assigning an entry stores it, even if the assigned value is zero.
    """

    def __init__(self, m=0, n=0, dtype=float):
        self._m = int(m)
        self._n = int(n)
        self._dtype = np.dtype(dtype)
        self._data = dict()

        if self._dtype.kind not in 'fc':
            raise TypeError(f'unsupported entry type {self._dtype}')

    def __repr__(self):
        return (f'SparseMatrix({self._m}, {self._n}, ' +
                f'dtype={self._dtype.name}, nnz={len(self._data)})')

    def __len__(self):
        """ Number of stored entries.
        """
        return len(self._data)

    def __iter__(self):
        """ Entry iterator.

        Yields
        ------
        row : int
            Row index.
        col : int
            Column index.
        value : float or complex
            Stored value.

        Note
        ----
        Entries are visited in column-major order.
        """
        for (col, row) in sorted(self._data.keys()):
            yield row, col, self._data[col, row]

    def __getitem__(self, key):
        row, col = self._check_index(key)
        return self._data.get((col, row), self._dtype.type(0))

    def __setitem__(self, key, value):
        row, col = self._check_index(key)
        self._data[col, row] = self._convert(value)

    def __neg__(self):
        return self * -1.0

    def __add__(self, other):
        if not isinstance(other, SparseMatrix):
            return NotImplemented

        if self.shape != other.shape:
            raise ValueError(f'shape mismatch {self.shape} != {other.shape}')

        result = SparseMatrix(self._m, self._n,
                              _result_dtype(self._dtype, other._dtype))
        result._data = {key: result._convert(value)
                        for key, value in self._data.items()}

        for key, value in other._data.items():
            result._data[key] = result._data.get(key, 0) + value

        return result

    def __sub__(self, other):
        if not isinstance(other, SparseMatrix):
            return NotImplemented

        return self + (-other)

    def __mul__(self, other):
        """ Scalar multiplication.

        Use the ``@`` operator for matrix products.
        """
        if isinstance(other, (SparseMatrix, DenseMatrix, np.ndarray)):
            return NotImplemented

        result = SparseMatrix(self._m, self._n,
                              _result_dtype(self._dtype, type(other)))
        result._data = {key: result._convert(value * other)
                        for key, value in self._data.items()}

        return result

    def __rmul__(self, other):
        return self.__mul__(other)

    def __matmul__(self, other):
        """ Matrix product.

        Parameters
        ----------
        other : SparseMatrix or DenseMatrix or ~numpy.ndarray
            Right factor.

        Raises
        ------
        ValueError
            If inner dimensions do not agree.

        Returns
        -------
        SparseMatrix or DenseMatrix or ~numpy.ndarray
            Product, of the same kind as the right factor.
        """
        if isinstance(other, SparseMatrix):
            if self._n != other._m:
                msg = (f'inner dimensions differ: {self.shape} @ ' +
                       f'{other.shape}')
                raise ValueError(msg)

            return SparseMatrix.from_scipy(self.tocsc() @ other.tocsc())
        elif isinstance(other, DenseMatrix):
            if self._n != other.n_rows:
                msg = (f'inner dimensions differ: {self.shape} @ ' +
                       f'{other.shape}')
                raise ValueError(msg)

            return DenseMatrix.from_array(self.tocsc() @ other.toarray())
        elif isinstance(other, np.ndarray):
            if self._n != other.shape[0]:
                msg = (f'inner dimensions differ: {self.shape} @ ' +
                       f'{other.shape}')
                raise ValueError(msg)

            return self.tocsc() @ other

        return NotImplemented

    @property
    def shape(self):
        """ Matrix shape.

        :type: (int, int)
        """
        return self._m, self._n

    @property
    def n_rows(self):
        """ Number of rows.

        :type: int
        """
        return self._m

    @property
    def n_cols(self):
        """ Number of columns.

        :type: int
        """
        return self._n

    @property
    def length(self):
        """ Size of the largest dimension.

        :type: int
        """
        return max(self._m, self._n)

    @property
    def nnz(self):
        """ Number of stored entries.

        :type: int
        """
        return len(self._data)

    @property
    def dtype(self):
        """ Entry type.

        :type: ~numpy.dtype
        """
        return self._dtype

    @property
    def T(self):
        """ Transposed matrix.

        :type: SparseMatrix
        """
        return self.transpose()

    @classmethod
    def identity(cls, n, dtype=float):
        """ Identity matrix.

        Parameters
        ----------
        n : int
            Matrix dimension.
        dtype : type, optional
            Entry type.

        Returns
        -------
        SparseMatrix
            The :math:`n \\times n` identity matrix.
        """
        return cls.diag(np.ones(n), dtype=dtype)

    @classmethod
    def diag(cls, values, dtype=float):
        """ Diagonal matrix.

        Parameters
        ----------
        values : array_like, shape (n, )
            Diagonal entries.
        dtype : type, optional
            Entry type.

        Returns
        -------
        SparseMatrix
            Square diagonal matrix. Zero diagonal entries are stored
            explicitly.
        """
        n = len(values)
        A = cls(n, n, dtype)

        for i, value in enumerate(values):
            A._data[i, i] = A._convert(value)

        return A

    @classmethod
    def from_scipy(cls, matrix):
        """ Convert SciPy sparse matrix.

        Parameters
        ----------
        matrix : scipy.sparse.spmatrix or scipy.sparse.sparray
            Any SciPy sparse matrix.

        Returns
        -------
        SparseMatrix
            Matrix with the same shape and stored entries.
        """
        coo = sp.coo_matrix(matrix)
        dtype = complex if np.iscomplexobj(coo.data) else float
        A = cls(*coo.shape, dtype)

        # Duplicate entries of a COO matrix are summed, just like SciPy
        # does when converting to a compressed format.
        for row, col, value in zip(coo.row, coo.col, coo.data):
            key = (int(col), int(row))
            A._data[key] = A._data.get(key, 0) + A._convert(value)

        return A

    @classmethod
    def horzcat(cls, A, B):
        """ Horizontal concatenation.

        Parameters
        ----------
        A, B : SparseMatrix
            Matrices with the same number of rows.

        Raises
        ------
        ValueError
            If the number of rows differs.

        Returns
        -------
        SparseMatrix
            The block matrix ``[A, B]``.
        """
        if A._m != B._m:
            raise ValueError(f'row count mismatch {A._m} != {B._m}')

        C = cls(A._m, A._n + B._n, _result_dtype(A._dtype, B._dtype))

        for (col, row), value in A._data.items():
            C._data[col, row] = C._convert(value)

        for (col, row), value in B._data.items():
            C._data[col + A._n, row] = C._convert(value)

        return C

    @classmethod
    def vertcat(cls, A, B):
        """ Vertical concatenation.

        Parameters
        ----------
        A, B : SparseMatrix
            Matrices with the same number of columns.

        Raises
        ------
        ValueError
            If the number of columns differs.

        Returns
        -------
        SparseMatrix
            The block matrix ``[A; B]``.
        """
        if A._n != B._n:
            raise ValueError(f'column count mismatch {A._n} != {B._n}')

        C = cls(A._m + B._m, A._n, _result_dtype(A._dtype, B._dtype))

        for (col, row), value in A._data.items():
            C._data[col, row] = C._convert(value)

        for (col, row), value in B._data.items():
            C._data[col, row + A._m] = C._convert(value)

        return C

    def add(self, row, col, value):
        """ Accumulate entry.

        Equivalent to ``self[row, col] += value`` with a single lookup.
        Used by assembly loops.

        Raises
        ------
        IndexError
            If ``(row, col)`` is out of bounds.
        TypeError
            If a complex value is added to a real matrix.
        """
        row, col = self._check_index((row, col))
        key = (col, row)
        self._data[key] = self._data.get(key, 0) + self._convert(value)

    def zero(self, value=0.0):
        """ Overwrite stored entries.

        Sets all **stored** entries to `value`. Does not change the
        sparsity pattern.

        Parameters
        ----------
        value : float or complex, optional
            New value of all stored entries.
        """
        value = self._convert(value)

        for key in self._data:
            self._data[key] = value

    def transpose(self):
        """ Matrix transpose.

        Returns
        -------
        SparseMatrix
            New matrix with swapped dimensions and entries remapped from
            ``(row, col)`` to ``(col, row)``.

        Note
        ----
        No complex conjugation is performed.
        """
        At = SparseMatrix(self._n, self._m, self._dtype)
        At._data = {(row, col): value
                    for (col, row), value in self._data.items()}

        return At

    def copy(self):
        """ Matrix copy.

        Returns
        -------
        SparseMatrix
            Copy that does not share entry storage with `self`.
        """
        A = SparseMatrix(self._m, self._n, self._dtype)
        A._data = self._data.copy()

        return A

    def compress(self):
        """ Compressed-column representation.

        Returns
        -------
        offsets : ~numpy.ndarray, shape (n + 1, )
            Column pointers. Entries of column ``j`` are stored in the
            range ``offsets[j]:offsets[j+1]``.
        rows : ~numpy.ndarray, shape (nnz, )
            Row indices.
        values : ~numpy.ndarray, shape (nnz, )
            Entry values.

        Note
        ----
        Columns without stored entries get an empty range, i.e.,
        ``offsets[j] == offsets[j+1]``.
        """
        nnz = len(self._data)

        offsets = np.zeros(self._n + 1, dtype=np.int64)
        rows = np.empty(nnz, dtype=np.int64)
        values = np.empty(nnz, dtype=self._dtype)

        i = 0
        j = -1

        for (col, row) in sorted(self._data.keys()):
            if col != j:
                # Fill offsets of all columns skipped since the last
                # stored entry, including the current column.
                offsets[j+1:col+1] = i
                j = col

            rows[i] = row
            values[i] = self._data[col, row]
            i += 1

        offsets[j+1:] = i

        return offsets, rows, values

    def tocsc(self):
        """ Convert to SciPy matrix.

        Returns
        -------
        scipy.sparse.csc_matrix
            Compressed sparse column matrix.
        """
        offsets, rows, values = self.compress()
        return sp.csc_matrix((values, rows, offsets),
                             shape=(self._m, self._n))

    def toarray(self):
        """ Convert to dense array.

        Returns
        -------
        ~numpy.ndarray, shape (m, n)
            Dense matrix.
        """
        array = np.zeros((self._m, self._n), dtype=self._dtype)

        for (col, row), value in self._data.items():
            array[row, col] = value

        return array

    def _check_index(self, key):
        row, col = key

        if not (0 <= row < self._m and 0 <= col < self._n):
            msg = f'index ({row}, {col}) out of bounds for shape {self.shape}'
            raise IndexError(msg)

        return int(row), int(col)

    def _convert(self, value):
        if self._dtype.kind == 'f' and np.iscomplexobj(value):
            if np.imag(value) != 0.0:
                raise TypeError('complex value assigned to real matrix')

            value = np.real(value)

        return self._dtype.type(value)


class DenseMatrix:
    """ Dense matrix.

    All entries are stored in a flat contiguous buffer. Entry ``(row, col)``
    is stored at position ``row + m * col`` (column-major order).

    Parameters
    ----------
    m : int, optional
        Number of rows.
    n : int, optional
        Number of columns.
    dtype : type, optional
        Entry type, :class:`float` or :class:`complex`.


    Vectors are :math:`m \\times 1` matrices and can be indexed with a
    single integer:

    >>> x = DenseMatrix(3)
    >>> x[1] = 2.0
    >>> x[1, 0]
    2.0
    """

    def __init__(self, m=0, n=1, dtype=float):
        self._m = int(m)
        self._n = int(n)
        self._data = np.zeros(self._m * self._n, dtype=dtype)

        if self._data.dtype.kind not in 'fc':
            raise TypeError(f'unsupported entry type {self._data.dtype}')

    def __repr__(self):
        return (f'DenseMatrix({self._m}, {self._n}, ' +
                f'dtype={self._data.dtype.name})')

    def __getitem__(self, key):
        return self._data[self._offset(key)]

    def __setitem__(self, key, value):
        self._data[self._offset(key)] = value

    def __array__(self, dtype=None, copy=None):
        """ NumPy support.

        Parameters
        ----------
        dtype : data-type, optional
            The desired data type for the array.
        copy : bool, optional
            If :obj:`True` then the array data is copied.

        Returns
        -------
        ~numpy.ndarray, shape (m, n)
            Array of matrix entries.
        """
        array = self.toarray()

        if dtype is not None:
            array = array.astype(dtype, copy=False)

        return array.copy() if copy else array

    @property
    def shape(self):
        """ Matrix shape.

        :type: (int, int)
        """
        return self._m, self._n

    @property
    def n_rows(self):
        """ Number of rows.

        :type: int
        """
        return self._m

    @property
    def n_cols(self):
        """ Number of columns.

        :type: int
        """
        return self._n

    @property
    def length(self):
        """ Size of the largest dimension.

        :type: int
        """
        return max(self._m, self._n)

    @property
    def dtype(self):
        """ Entry type.

        :type: ~numpy.dtype
        """
        return self._data.dtype

    @property
    def data(self):
        """ Flat column-major entry buffer.

        :type: ~numpy.ndarray
        """
        return self._data

    @classmethod
    def from_array(cls, array):
        """ Convert array.

        Parameters
        ----------
        array : array_like, shape (m, ) or (m, n)
            Vector or matrix.

        Returns
        -------
        DenseMatrix
            Matrix holding a copy of the array entries.
        """
        array = np.asarray(array)

        if array.ndim == 1:
            array = array[:, None]

        if array.ndim != 2:
            raise ValueError(f'expected 1 or 2 dimensions, got {array.ndim}')

        dtype = complex if np.iscomplexobj(array) else float
        A = cls(*array.shape, dtype)
        A._data[:] = array.ravel(order='F')

        return A

    def zero(self, value=0.0):
        """ Set all entries.

        Parameters
        ----------
        value : float or complex, optional
            New value of all entries.
        """
        self._data[:] = value

    def norm(self):
        """ Maximum norm.

        Returns
        -------
        float
            The maximum magnitude of any entry, 0.0 for an empty matrix.
        """
        if self._data.size == 0:
            return 0.0

        return float(np.max(np.abs(self._data)))

    def randomize(self, rng=None):
        """ Fill with random entries.

        Real and imaginary parts are drawn from a standard normal
        distribution.

        Parameters
        ----------
        rng : numpy.random.Generator, optional
            Random number generator.
        """
        rng = np.random.default_rng() if rng is None else rng
        self._data[:] = rng.standard_normal(self._data.size)

        if self._data.dtype.kind == 'c':
            self._data += 1j * rng.standard_normal(self._data.size)

    def copy(self):
        """ Matrix copy.

        Returns
        -------
        DenseMatrix
            Copy that does not share its buffer with `self`.
        """
        A = DenseMatrix(self._m, self._n, self._data.dtype)
        A._data[:] = self._data

        return A

    def toarray(self):
        """ Array view.

        Returns
        -------
        ~numpy.ndarray, shape (m, n)
            View of the entry buffer, writing to it changes the matrix.
        """
        return self._data.reshape((self._m, self._n), order='F')

    def _offset(self, key):
        if isinstance(key, tuple):
            row, col = key
        else:
            row, col = key, 0

        if not (0 <= row < self._m and 0 <= col < self._n):
            msg = f'index ({row}, {col}) out of bounds for shape {self.shape}'
            raise IndexError(msg)

        return row + self._m * col
