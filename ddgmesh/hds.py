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

""" Halfedge data structure.

An orientable 2-manifold triangle mesh (with or without boundary) is
stored in flat integer arrays owned by a :class:`Mesh` instance:

    - one row per halfedge holding its ``next``, ``flip``, ``vertex``
      (origin), ``edge``, and ``face`` index,
    - one representative halfedge per vertex, edge, and face,
    - and an array of vertex coordinates.

:class:`Vertex`, :class:`Halfedge`, :class:`Edge`, and :class:`Face`
objects are lightweight handles, a pair of a parent mesh and an index
into these arrays. Two handles compare equal if they refer to the same
item of the same mesh.

Each boundary loop is closed by an additional face. These boundary faces
are stored after all real faces and are listed in :attr:`Mesh.boundaries`
but not in :attr:`Mesh.faces`. The halfedges of a boundary face are the
ones reporting :attr:`Halfedge.on_boundary`.

Note
----
To ease debugging, this module relies on assertions which can slow down
script execution. You can disable assertions by running in optimized mode
via the "-O" command line argument.
"""

import math
import operator

from pathlib import Path
from time import time

import numpy as np

import ddgmesh.obj as obj
import ddgmesh.flags as flags
import ddgmesh.solve as solve
import ddgmesh.traits as traits

from ddgmesh.matrix import SparseMatrix, DenseMatrix


FLOW_TIME_STEP = 1e-4
""" Initial time step of :meth:`Mesh.flow_sequence`. """

FLOW_FACTOR = 2.0
""" Time step growth factor of :meth:`Mesh.flow_sequence`. """


class Mesh:
    """ Mesh kernel.

    The combinatorics of a mesh can be built by reading from a file or
    by converting a sequence of vertex coordinates and a sequence of face
    definitions to its halfedge representation.

    Parameters
    ----------
    points : array_like, shape (n, 3), optional
        Vertex coordinates.
    faces : array_like, optional
        Triangle definitions, 0-based vertex indexing. Triangles have to
        be consistently oriented.
    name : str, optional
        Name tag.

    Raises
    ------
    NonManifoldError
        When trying to initialize a mesh from non-manifold data.
    ValueError
        If a face is not a triangle or references a vertex twice.
    IndexError
        If a face references a vertex that does not exist.


    A single triangle:

    >>> mesh = Mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 2]])
    >>> mesh.size
    (3, 3, 1)
    >>> len(mesh.boundaries)
    1
    """

    def __init__(self, points=None, faces=None, *, name=None):
        """ Initialize from vertex and face lists.
        """
        CWHITERED = '\33[41m'               # white on red background
        CEND = '\33[0m'

        if points is None and faces is not None:
            msg = "face definitions require 'points' argument != None"
            raise ValueError(msg)

        if points is None:
            points = np.empty((0, 3))

        self._points = np.array(points, dtype=float)

        if self._points.ndim != 2 or self._points.shape[1] != 3:
            msg = f'points of shape (n, 3) expected, got {self._points.shape}'
            raise ValueError(msg)

        self._build([] if faces is None else faces)
        self._reset()

        # Typically one does not expect isolated vertices in a mesh.
        if np.any(self._vhe < 0):
            print(f'{CWHITERED}there are isolated vertices{CEND}')

        # File the mesh was read from, used by reload().
        self._source = None

        # The corresponding property setter will strip any directory
        # prefix and type suffix from the name.
        self.name = name

    def __repr__(self):
        return f'Mesh(name={self._name!r}, size={self.size})'

    def __iter__(self):
        """ Face iterator.

        Visits all faces of a mesh that are not boundary faces, in order
        of ascending face indices.

        Yields
        ------
        Face
            Next face in insertion order traversal.
        """
        return iter(self._faces)

    def __copy__(self):
        """ Mesh copy.

        Equivalent to :meth:`copy` method.
        """
        return self.copy()

    def __deepcopy__(self, memo):
        """ Mesh copy.

        A mesh does not share any state with its copy, hence there is no
        difference between a shallow and a deep copy.
        """
        return self.copy()

    def __bool__(self):
        return True

    @property
    def points(self):
        """ Vertex coordinate array.

        Direct read and write access to vertex coordinates. Changing the
        size of the coordinate array breaks the halfedge data structure.

        :type: ~numpy.ndarray
        """
        return self._points

    @points.setter
    def points(self, value):
        value = np.array(value, dtype=float)

        if value.shape != self._points.shape:
            msg = (f'coordinate array of shape {self._points.shape} ' +
                   f'expected, got {value.shape}')
            raise ValueError(msg)

        self._points = value

    @property
    def vertices(self):
        """ Vertex list.

        This list should not be modified directly.

        :type: list[Vertex]
        """
        return self._verts

    @property
    def halfedges(self):
        """ Halfedge list.

        Halfedges of real faces come first, halfedges of boundary loops
        are stored at the end.

        :type: list[Halfedge]
        """
        return self._halfs

    @property
    def edges(self):
        """ Edge list.

        :type: list[Edge]
        """
        return self._edges

    @property
    def faces(self):
        """ Face list.

        Real faces only, boundary loops are found in :attr:`boundaries`.

        :type: list[Face]

        The face definitions of a mesh can be generated with a list
        comprehension:

        >>> faces = [[int(v) for v in f] for f in mesh]
        """
        return self._faces

    @property
    def boundaries(self):
        """ Boundary face list.

        One face per boundary loop. Empty for closed meshes.

        :type: list[Face]
        """
        return self._bnds

    @property
    def size(self):
        """ Mesh size.

        The attribute value :math:`(v, e, f)` holds the number of vertices,
        the number of edges, and the number of (real) faces.

        :type: (int, int, int)
        """
        assert len(self._halfs) % 2 == 0
        return len(self._verts), len(self._edges), len(self._faces)

    @property
    def name(self):
        """ Name property.

        :type: str or None

        Note
        ----
        The stored string does not include a type suffix!
        """
        return self._name

    @name.setter
    def name(self, value):
        self._name = value if value is None else Path(value).stem

    @property
    def source(self):
        """ File the mesh was read from.

        :type: ~pathlib.Path or None
        """
        return self._source

    @property
    def L(self):
        """ Cotangent Laplacian.

        Matrix assembled by the most recent call of :meth:`build_laplacian`
        or :obj:`None`.

        :type: SparseMatrix
        """
        return self._L

    @property
    def A(self):
        """ Flow operator.

        Matrix assembled by the most recent call of
        :meth:`build_flow_operator` or :obj:`None`.

        :type: SparseMatrix
        """
        return self._A

    @property
    def rho(self):
        """ Scalar density.

        One value per vertex, a dual 2-form. Input of
        :meth:`solve_scalar_poisson_problem`.

        :type: ~numpy.ndarray
        """
        return self._rho

    @rho.setter
    def rho(self, value):
        self._rho[:] = value

    @property
    def phi(self):
        """ Scalar potential.

        One value per vertex. Written by
        :meth:`solve_scalar_poisson_problem`.

        :type: ~numpy.ndarray
        """
        return self._phi

    @property
    def potential(self):
        """ Connection potential.

        One value per vertex. Written by
        :func:`ddgmesh.connection.solve_for_connection`.

        :type: ~numpy.ndarray
        """
        return self._potential

    @property
    def winding(self):
        """ Winding numbers.

        One integer per vertex. Only the values of tagged vertices are
        taken into account by the connection solver.

        :type: ~numpy.ndarray
        """
        return self._winding

    @property
    def texture(self):
        """ Texture coordinates.

        Array of shape (n, 2). Written by
        :func:`ddgmesh.flatten.flatten`.

        :type: ~numpy.ndarray
        """
        return self._texture

    @property
    def connection(self):
        """ Discrete connection.

        One value per halfedge. Opposite halfedges carry values of
        opposite sign.

        :type: ~numpy.ndarray
        """
        return self._connection

    @property
    def directions(self):
        """ Tangent directions.

        Array of shape (m, 3), one vector per face including boundary
        faces. Written by
        :func:`ddgmesh.connection.transport_vector_field`.

        :type: ~numpy.ndarray
        """
        return self._direction

    @property
    def tagged(self):
        """ Tagged vertex indices.

        In tagging order. This list should not be modified directly, use
        :meth:`toggle_vertex_tag` instead.

        :type: list[int]
        """
        return self._tagged

    @property
    def highlighted(self):
        """ Highlighted vertex indices.

        In highlighting order. This list should not be modified directly,
        use :meth:`toggle_vertex_highlight` instead.

        :type: list[int]
        """
        return self._highlighted

    @classmethod
    def read(cls, filename, *, normalize=True, quiet=True):
        """ Read mesh from file.

        Read face definitions, vertex coordinates, and (if present)
        texture coordinates from an OBJ file.

        Parameters
        ----------
        filename : str or ~pathlib.Path
            Name of an OBJ file.
        normalize : bool, optional
            Call :meth:`normalize` after reading.
        quiet : bool, optional
            Suppress console output.

        Raises
        ------
        OSError
            If the file cannot be read.
        NonManifoldError
            If the file does not describe a manifold mesh.

        Returns
        -------
        Mesh
            Mesh object. Remembers `filename` for :meth:`reload`.
        """
        CBOLD = '\33[1m'                    # bold text, white on black
        CEND = '\33[0m'

        if not quiet:
            start = time()
            print(f'reading {CBOLD}{Path(filename).name}{CEND}', end=' ...')

        verts, faces, uvs = obj.read(filename)

        mesh = cls(verts, faces, name=filename)
        mesh._source = Path(filename)

        # Texture vertices are only used if they correspond to vertices
        # by index.
        if uvs is not None and len(uvs) == len(verts):
            mesh._texture[:] = uvs[:, :2]

        if normalize:
            mesh.normalize()

        if not quiet:
            print(f' done ({time()-start:.3f} sec, {normalize=})')
            print(f'\t├─ {len(mesh._verts)} vertices')
            print(f'\t├─ {len(mesh._faces)} faces')
            print(f'\t└─ {len(mesh._bnds)} boundary loops')

        return mesh

    def write(self, filename, *, texture=False, scheme=None, quiet=True):
        """ Write mesh to file.

        Parameters
        ----------
        filename : str or ~pathlib.Path
            Name of an OBJ file.
        texture : bool, optional
            Write texture coordinates.
        scheme : NormalScheme, optional
            Write vertex normals computed with the given scheme.
        quiet : bool, optional
            Suppress console output.

        Raises
        ------
        OSError
            If the file cannot be written.
        """
        CBOLD = '\33[1m'                    # bold text, white on black
        CEND = '\33[0m'

        if not quiet:
            start = time()
            print(f'writing {CBOLD}{Path(filename).name}{CEND}', end=' ...')

        normals = None

        if scheme is not None:
            normals = traits.vertex_normals(self, scheme)

        obj.write(filename, self._points, self._triangles(),
                  uvs=self._texture if texture else None,
                  normals=normals)

        if not quiet:
            print(f' done ({time()-start:.3f} sec)')

    def reload(self, quiet=True):
        """ Reload mesh from file.

        Replaces connectivity, geometry, and all per-item data by the
        contents of :attr:`source`. The mesh is left untouched if reading
        fails.

        Parameters
        ----------
        quiet : bool, optional
            Suppress console output.

        Raises
        ------
        PreconditionError
            If the mesh was not read from a file.
        OSError
            If the file cannot be read.

        Returns
        -------
        Mesh
            The mesh `self`.
        """
        if self._source is None:
            raise PreconditionError('mesh was not read from a file')

        # Build the replacement completely before touching self.
        mesh = self.__class__.read(self._source, quiet=quiet)

        return self.clone(mesh)

    def normalize(self):
        """ Center and scale vertex coordinates.

        Translates the centroid of all vertices to the origin and scales
        such that the mesh fits into the unit ball. Normalizing a
        normalized mesh does not change it.

        Returns
        -------
        Mesh
            The mesh `self`.
        """
        if len(self._points) == 0:
            return self

        self._points -= np.mean(self._points, axis=0)
        r = np.max(np.linalg.norm(self._points, axis=1))

        if r > 0.0:
            self._points /= r

        return self

    def clone(self, mesh):
        """ In-place mesh copy.

        Implements assignment operator like behavior. Performs the same
        operation as :meth:`copy` but assigns the result to the mesh
        instance `self`. All arrays are copied, `self` and `mesh` do not
        share any state afterwards.

        Parameters
        ----------
        mesh : Mesh
            Source mesh.

        Returns
        -------
        Mesh
            The mesh `self`.

        Note
        ----
        Handles created for `self` before the call refer to the new
        connectivity afterwards.
        """
        # Index arrays store indices, not references. A bulk copy of all
        # arrays yields consistent connectivity.
        for attr in self._ARRAYS:
            setattr(self, attr, getattr(mesh, attr).copy())

        self._vflags = mesh._vflags.copy()
        self._tagged = mesh._tagged.copy()
        self._highlighted = mesh._highlighted.copy()

        self._L = None if mesh._L is None else mesh._L.copy()
        self._A = None if mesh._A is None else mesh._A.copy()

        self._source = mesh._source
        self._name = mesh._name

        self._make_handles()

        return self

    def copy(self):
        """ Return mesh copy.

        Duplicate combinatorics, vertex coordinates, and all per-item data
        of a mesh.

        Returns
        -------
        Mesh
            Copy of the mesh.
        """
        return self.__class__().clone(self)

    def index_vertices(self):
        """ Prepare vertex indices for matrix assembly.

        Vertex indices are positions in the vertex arrays and therefore
        always consecutive in the range ``0, ..., n-1``. They stay valid
        until the connectivity is replaced, e.g., by :meth:`reload` or
        :meth:`clone`. This method validates connectivity (assertions)
        and returns the number of vertices.

        Returns
        -------
        int
            Number of vertices.
        """
        self._check()
        return len(self._verts)

    def euler_characteristic(self):
        r""" Euler characteristic.

        The value :math:`V - E + F`, boundary faces are not counted.

        Returns
        -------
        int
            Euler characteristic.
        """
        v, e, f = self.size
        return v - e + f

    def area(self):
        """ Surface area.

        Returns
        -------
        float
            Sum of all face areas.
        """
        return sum(traits.face_area(f) for f in self._faces)

    def area_2d(self):
        """ Parameter domain area.

        Returns
        -------
        float
            Sum of the areas of all faces in texture coordinates.
        """
        return sum(traits.texture_area(f) for f in self._faces)

    def toggle_vertex_tag(self, index, winding=None):
        """ Tag or untag vertex.

        Tagged vertices are singularities of the tangent vector field
        computed by :mod:`ddgmesh.connection`.

        Parameters
        ----------
        index : int or Vertex
            The vertex.
        winding : int, optional
            Winding number assigned when the vertex gets tagged.

        Raises
        ------
        IndexError
            If there is no such vertex.

        Returns
        -------
        bool
            :obj:`True` if the vertex is tagged after the call.
        """
        i = self._vertex_index(index)

        if i in self._tagged:
            self._tagged.remove(i)
            self._vflags[i] &= ~flags.VertexFlag.TAGGED
            return False

        self._tagged.append(i)
        self._vflags[i] |= flags.VertexFlag.TAGGED

        if winding is not None:
            self._winding[i] = winding

        return True

    def toggle_vertex_highlight(self, index):
        """ Highlight or unhighlight vertex.

        Parameters
        ----------
        index : int or Vertex
            The vertex.

        Raises
        ------
        IndexError
            If there is no such vertex.

        Returns
        -------
        bool
            :obj:`True` if the vertex is highlighted after the call.
        """
        i = self._vertex_index(index)

        if i in self._highlighted:
            self._highlighted.remove(i)
            self._vflags[i] &= ~flags.VertexFlag.HIGHLIGHTED
            return False

        self._highlighted.append(i)
        self._vflags[i] |= flags.VertexFlag.HIGHLIGHTED

        return True

    def build_laplacian(self):
        r""" Build cotangent Laplacian.

        Assembles the matrix

        .. math::

           L_{ij} = \frac{1}{2} (\cot\alpha_{ij} + \cot\beta_{ij}),
           \quad L_{ii} = -\sum_{j \neq i} L_{ij}

        by visiting all halfedges. The result is symmetric, negative
        semi-definite, and constant vectors span its null space. Maps
        0-forms to dual 2-forms.

        Raises
        ------
        SolveError
            If a cotangent weight is not finite (degenerate triangle).

        Returns
        -------
        SparseMatrix
            The Laplacian, also available as :attr:`L`.
        """
        n = self.index_vertices()
        L = SparseMatrix(n, n)

        for h in self._halfs:
            if h.on_boundary:
                continue

            w = 0.5 * h.cotan()

            if not math.isfinite(w):
                msg = f'cotangent weight of halfedge #{h.index} is {w}'
                raise solve.SolveError(msg)

            i = self._hvert[h._idx]
            j = self._hvert[self._hnext[h._idx]]

            L.add(i, i, -w)
            L.add(j, j, -w)
            L.add(i, j, w)
            L.add(j, i, w)

        self._L = L

        return L

    def solve_scalar_poisson_problem(self, normalize=False, quiet=True):
        """ Solve scalar Poisson problem.

        Solves ``L phi = rho`` for the potential :attr:`phi` given the
        density :attr:`rho`. The Laplacian is singular, its range consists
        of vectors with zero sum. The density is shifted by its mean value
        and the solution with minimal norm is computed.

        Parameters
        ----------
        normalize : bool, optional
            Divide the potential by vertex dual areas.
        quiet : bool, optional
            Suppress console output.

        Raises
        ------
        SolveError
            On degenerate geometry or solver failure. The potential is
            not changed in this case.

        Returns
        -------
        ~numpy.ndarray
            The potential :attr:`phi`.
        """
        CBOLD = '\33[1m'                    # bold text, white on black
        CEND = '\33[0m'

        if not quiet:
            start = time()
            print(f'solving {CBOLD}Poisson problem{CEND}', end=' ...')

        L = self.build_laplacian()

        rho = DenseMatrix.from_array(self._rho - np.mean(self._rho))
        phi = solve.solve(L, rho, singular=True).toarray()[:, 0]

        if normalize:
            areas = traits.dual_areas(self)

            if np.any(areas <= 0.0):
                raise solve.SolveError('vanishing vertex dual area')

            phi = phi / areas

        self._phi[:] = phi

        if not quiet:
            print(f' done ({time()-start:.3f} sec, {normalize=})')

        return self._phi

    def build_flow_operator(self, h):
        r""" Build implicit mean curvature flow operator.

        Assembles :math:`A = I - h \star_0^{-1} L` where :math:`L` is the
        cotangent Laplacian and :math:`\star_0` the diagonal matrix of
        vertex dual areas. Maps 0-forms to 0-forms.

        Parameters
        ----------
        h : float
            Time step.

        Raises
        ------
        SolveError
            If a cotangent weight is not finite or a dual area vanishes.

        Returns
        -------
        SparseMatrix
            The flow operator, also available as :attr:`A`.
        """
        n = self.index_vertices()
        areas = traits.dual_areas(self)

        A = SparseMatrix.identity(n)

        for g in self._halfs:
            if g.on_boundary:
                continue

            w = 0.5 * g.cotan()

            if not math.isfinite(w):
                msg = f'cotangent weight of halfedge #{g.index} is {w}'
                raise solve.SolveError(msg)

            i = self._hvert[g._idx]
            j = self._hvert[self._hnext[g._idx]]

            if areas[i] <= 0.0 or areas[j] <= 0.0:
                raise solve.SolveError('vanishing vertex dual area')

            A.add(i, i, h * w / areas[i])
            A.add(j, j, h * w / areas[j])
            A.add(i, j, -h * w / areas[i])
            A.add(j, i, -h * w / areas[j])

        self._A = A

        return A

    def compute_implicit_mean_curvature_flow(self, h, quiet=True):
        """ Implicit mean curvature flow step.

        Backward Euler step: solves ``A x = x0`` for each coordinate
        channel, where ``A`` is the flow operator, and overwrites vertex
        coordinates with the solution.

        Parameters
        ----------
        h : float
            Time step.
        quiet : bool, optional
            Suppress console output.

        Raises
        ------
        SolveError
            On degenerate geometry or solver failure. Vertex coordinates
            are not changed in this case.

        Returns
        -------
        ~numpy.ndarray
            The vertex coordinate array.
        """
        CBOLD = '\33[1m'                    # bold text, white on black
        CEND = '\33[0m'

        if not quiet:
            start = time()
            print(f'computing {CBOLD}mean curvature flow{CEND}', end=' ...')

        A = self.build_flow_operator(h)

        x0 = DenseMatrix.from_array(self._points)
        x = solve.solve(A, x0)

        self._points[:] = x.toarray()

        if not quiet:
            print(f' done ({time()-start:.3f} sec, {h=})')

        return self._points

    def flow_sequence(self, steps, h=None, factor=None, quiet=True):
        """ Mean curvature flow with growing time steps.

        Each step reloads the mesh from :attr:`source`, performs a single
        implicit flow step of size `h`, normalizes the result, and
        multiplies `h` by `factor`. Each result is a single large step
        from the original geometry, not an iteration on the previous
        result.

        Parameters
        ----------
        steps : int
            Number of steps.
        h : float, optional
            Initial time step, defaults to :data:`FLOW_TIME_STEP`.
        factor : float, optional
            Time step factor, defaults to :data:`FLOW_FACTOR`.
        quiet : bool, optional
            Suppress console output.

        Raises
        ------
        PreconditionError
            If the mesh was not read from a file.
        SolveError
            If a flow step fails. The mesh keeps the state of the previous
            step in this case.

        Yields
        ------
        float
            Time step used for the current state of the mesh.
        """
        h = FLOW_TIME_STEP if h is None else h
        factor = FLOW_FACTOR if factor is None else factor

        if self._source is None:
            raise PreconditionError('mesh was not read from a file')

        for _ in range(steps):
            # The step runs on a fresh copy, self is replaced on success.
            mesh = self.__class__.read(self._source, quiet=quiet)
            mesh.compute_implicit_mean_curvature_flow(h, quiet=quiet)
            mesh.normalize()

            self.clone(mesh)

            yield h

            h *= factor

    # Names of all per-mesh arrays, see clone().
    _ARRAYS = ('_points', '_hnext', '_hflip', '_hvert', '_hedge', '_hface',
               '_hbnd', '_vhe', '_ehe', '_fhe', '_fbnd', '_rho', '_phi',
               '_potential', '_winding', '_texture', '_connection',
               '_direction')

    def _build(self, faces):
        """ Build connectivity from face definitions.
        """
        n = len(self._points)

        hvert, hnext, hface = [], [], []
        fhe = []

        # Maps vertex index pairs to halfedge indices.
        halfs = dict()

        for f, face in enumerate(faces):
            face = [operator.index(i) for i in face]

            if len(face) != 3:
                msg = f'face #{f} is not a triangle: {face}'
                raise ValueError(msg)

            if len(set(face)) != len(face):
                msg = f'face #{f} references a vertex twice: {face}'
                raise ValueError(msg)

            for i in face:
                if not 0 <= i < n:
                    msg = f'face #{f} references missing vertex #{i}'
                    raise IndexError(msg)

            base = len(hvert)

            for k, i in enumerate(face):
                j = face[(k + 1) % len(face)]

                # A second halfedge from i to j means that either more
                # than two faces share an edge or orientation is not
                # consistent.
                if (i, j) in halfs:
                    raise NonManifoldError(f'halfedge ({i}, {j}) ' +
                                           'is used twice')

                halfs[i, j] = base + k

                hvert.append(i)
                hnext.append(base + (k + 1) % len(face))
                hface.append(f)

            fhe.append(base)

        nreal = len(hvert)
        hflip = [-1] * nreal

        for (i, j), h in halfs.items():
            hflip[h] = halfs.get((j, i), -1)

        # Each real halfedge without opposite gets a boundary halfedge.
        # The dictionary maps origin vertices to boundary halfedges.
        border = dict()

        for h in range(nreal):
            if hflip[h] >= 0:
                continue

            g = len(hvert)
            j = hvert[hnext[h]]

            # Two boundary halfedges leaving the same vertex: the vertex
            # joins two otherwise disconnected triangle fans.
            if j in border:
                raise NonManifoldError(f'vertex #{j} is non-manifold')

            border[j] = g

            hvert.append(j)
            hnext.append(-1)
            hface.append(-1)

            hflip[h] = g
            hflip.append(h)

        for g in border.values():
            hnext[g] = border[hvert[hflip[g]]]

        # Boundary loops become faces, listed after all real faces.
        nfaces = len(fhe)

        for g in border.values():
            if hface[g] >= 0:
                continue

            f = len(fhe)
            fhe.append(g)

            h = g

            while True:
                hface[h] = f
                h = hnext[h]

                if h == g:
                    break

        # The lower index halfedge of a pair represents the edge. This is
        # always the halfedge of a real face.
        hedge = [-1] * len(hvert)
        ehe = []

        for h in range(len(hvert)):
            if hedge[h] < 0:
                hedge[h] = hedge[hflip[h]] = len(ehe)
                ehe.append(h)

        self._hvert = np.array(hvert, dtype=int)
        self._hnext = np.array(hnext, dtype=int)
        self._hflip = np.array(hflip, dtype=int)
        self._hedge = np.array(hedge, dtype=int)
        self._hface = np.array(hface, dtype=int)
        self._hbnd = self._hface >= nfaces

        self._ehe = np.array(ehe, dtype=int)
        self._fhe = np.array(fhe, dtype=int)
        self._fbnd = np.arange(len(fhe)) >= nfaces

        # Reverse traversal leaves the lowest index outgoing halfedge as
        # vertex halfedge. A negative value marks an isolated vertex.
        self._vhe = np.full(n, -1, dtype=int)

        for h in range(len(hvert) - 1, -1, -1):
            self._vhe[hvert[h]] = h

        # Vertex neighborhood iterators visit a single triangle fan. For
        # a manifold vertex this fan contains all outgoing halfedges.
        degree = np.bincount(self._hvert, minlength=n)

        for v in range(n):
            h = self._vhe[v]

            if h < 0:
                continue

            count = 0
            g = h

            while True:
                count += 1
                g = hnext[hflip[g]]

                if g == h:
                    break

            if count != degree[v]:
                raise NonManifoldError(f'vertex #{v} is non-manifold')

        self._make_handles()

    def _reset(self):
        """ Initialize per-item data.
        """
        n = len(self._points)

        self._rho = np.zeros(n)
        self._phi = np.zeros(n)
        self._potential = np.zeros(n)
        self._winding = np.zeros(n, dtype=int)
        self._texture = np.zeros((n, 2))

        self._connection = np.zeros(len(self._hvert))
        self._direction = np.zeros((len(self._fhe), 3))

        self._vflags = [flags.VertexFlag(0)] * n
        self._tagged = []
        self._highlighted = []

        self._L = None
        self._A = None

    def _make_handles(self):
        """ Create item handles.
        """
        self._verts = [Vertex(self, i) for i in range(len(self._vhe))]
        self._halfs = [Halfedge(self, h) for h in range(len(self._hvert))]
        self._edges = [Edge(self, e) for e in range(len(self._ehe))]

        faces = [Face(self, f) for f in range(len(self._fhe))]
        nfaces = np.count_nonzero(~self._fbnd)

        self._faces = faces[:nfaces]
        self._bnds = faces[nfaces:]

    def _triangles(self):
        """ Vertex indices of real faces.

        Returns
        -------
        ~numpy.ndarray, shape (m, 3)
            One row of vertex indices per face.
        """
        h0 = self._fhe[~self._fbnd]
        h1 = self._hnext[h0]
        h2 = self._hnext[h1]

        return np.stack((self._hvert[h0], self._hvert[h1], self._hvert[h2]),
                        axis=-1).reshape(-1, 3)

    def _vertex_index(self, index):
        i = operator.index(index)

        if not 0 <= i < len(self._verts):
            raise IndexError(f'vertex index {i} out of range')

        return i

    def _check(self):
        """ Connectivity consistency checks.
        """
        h = np.arange(len(self._hvert))

        assert np.all(self._hflip[self._hflip] == h)
        assert np.all(self._hflip != h)
        assert np.all(self._hvert[self._hflip] == self._hvert[self._hnext])
        assert np.all(self._hedge[self._hflip] == self._hedge)
        assert np.all(self._hface[self._hnext] == self._hface)
        assert np.all(self._hbnd == self._fbnd[self._hface])

        v = np.flatnonzero(self._vhe >= 0)
        assert np.all(self._hvert[self._vhe[v]] == v)

        assert np.all(self._hedge[self._ehe] == np.arange(len(self._ehe)))
        assert np.all(self._hface[self._fhe] == np.arange(len(self._fhe)))

    def _viter(self):
        """ Vertex iterator.
        """
        return iter(self._verts)

    def _hiter(self):
        """ Halfedge iterator.
        """
        return iter(self._halfs)

    def _eiter(self):
        """ Edge iterator.
        """
        return iter(self._edges)

    def _fiter(self):
        """ Face iterator, boundary faces excluded.
        """
        return iter(self._faces)


class Vertex:
    """ Vertex handle.

    Parameters
    ----------
    mesh : Mesh
        The parent mesh.
    index : int
        Vertex index.

    Note
    ----
    In addition to :attr:`index`, implementations of the special functions
    :meth:`~object.__int__` and :meth:`~object.__index__` are provided.
    The latter makes it possible to use vertex instances as list and
    array indices.
    """

    __slots__ = ('_mesh', '_idx')

    def __init__(self, mesh, index):
        self._mesh = mesh
        self._idx = index

    def __repr__(self):
        return f'Vertex({self._idx})'

    def __eq__(self, other):
        return (isinstance(other, Vertex) and other._mesh is self._mesh
                and other._idx == self._idx)

    def __hash__(self):
        return hash((id(self._mesh), self._idx))

    def __index__(self):
        return self._idx

    def __int__(self):
        return self._idx

    def __array__(self, dtype=None, copy=None):
        """ NumPy support.

        Returns
        -------
        ~numpy.ndarray
            Vertex coordinates.
        """
        return np.array(self._mesh._points[self._idx], dtype=dtype,
                        copy=copy)

    @property
    def index(self):
        """ Vertex index.

        :type: int
        """
        return self._idx

    @property
    def point(self):
        """ Vertex coordinates.

        Read and write access to vertex coordinates. View of the
        vertex coordinate array.

        :type: ~numpy.ndarray
        """
        return self._mesh._points[self._idx]

    @point.setter
    def point(self, value):
        self._mesh._points[self._idx] = value

    @property
    def halfedge(self):
        """ Outgoing halfedge.

        A halfedge that starts at the vertex or :obj:`None` for isolated
        vertices.

        :type: Halfedge
        """
        h = self._mesh._vhe[self._idx]
        return None if h < 0 else self._mesh._halfs[h]

    @property
    def isolated(self):
        """ Topological state.

        A vertex is isolated if it is not incident to any face or edge.

        :type: bool
        """
        return self._mesh._vhe[self._idx] < 0

    @property
    def on_boundary(self):
        """ Topological state.

        A vertex is a boundary vertex if one of its outgoing halfedges
        belongs to a boundary loop.

        :type: bool
        """
        return any(h.on_boundary for h in self._hiter())

    @property
    def degree(self):
        """ Number of adjacent vertices.

        :type: int
        """
        return sum(1 for _ in self._hiter())

    @property
    def flags(self):
        """ Vertex flags.

        :type: VertexFlag
        """
        return self._mesh._vflags[self._idx]

    @property
    def tagged(self):
        """ Tag state.

        :type: bool
        """
        return flags.VertexFlag.TAGGED in self.flags

    @property
    def highlighted(self):
        """ Highlight state.

        :type: bool
        """
        return flags.VertexFlag.HIGHLIGHTED in self.flags

    @property
    def rho(self):
        """ Scalar density.

        :type: float
        """
        return float(self._mesh._rho[self._idx])

    @rho.setter
    def rho(self, value):
        self._mesh._rho[self._idx] = value

    @property
    def phi(self):
        """ Scalar potential.

        :type: float
        """
        return float(self._mesh._phi[self._idx])

    @property
    def potential(self):
        """ Connection potential.

        :type: float
        """
        return float(self._mesh._potential[self._idx])

    @property
    def winding(self):
        """ Winding number.

        :type: int
        """
        return int(self._mesh._winding[self._idx])

    @winding.setter
    def winding(self, value):
        self._mesh._winding[self._idx] = value

    @property
    def texture(self):
        """ Texture coordinates.

        View of the texture coordinate array.

        :type: ~numpy.ndarray
        """
        return self._mesh._texture[self._idx]

    def normal(self, scheme=traits.NormalScheme.EQUALLY_WEIGHTED):
        """ Vertex normal.

        Parameters
        ----------
        scheme : NormalScheme, optional
            Weighting scheme.

        Returns
        -------
        ~numpy.ndarray, shape (3, )
            Unit normal vector, :obj:`numpy.nan` entries for isolated
            vertices.
        """
        return traits.vertex_normal(self, scheme)

    def dual_area(self):
        """ Barycentric dual area.

        Returns
        -------
        float
            One third of the sum of incident face areas.
        """
        return traits.dual_area(self)

    def _hiter(self):
        """ Outgoing halfedge iterator.
        """
        mesh = self._mesh
        h = start = mesh._vhe[self._idx]

        if h < 0:
            return

        while True:
            yield mesh._halfs[h]
            h = mesh._hnext[mesh._hflip[h]]

            if h == start:
                return

    def _viter(self):
        """ Adjacent vertex iterator.
        """
        return (h.target for h in self._hiter())

    def _fiter(self):
        """ Incident face iterator, boundary faces excluded.
        """
        return (h.face for h in self._hiter() if not h.on_boundary)


class Halfedge:
    """ Halfedge handle.

    A halfedge knows its origin vertex, its edge, the face to its left,
    the next halfedge of that face, and the opposite halfedge.

    Parameters
    ----------
    mesh : Mesh
        The parent mesh.
    index : int
        Halfedge index.
    """

    __slots__ = ('_mesh', '_idx')

    def __init__(self, mesh, index):
        self._mesh = mesh
        self._idx = index

    def __repr__(self):
        return f'Halfedge({self._idx})'

    def __eq__(self, other):
        return (isinstance(other, Halfedge) and other._mesh is self._mesh
                and other._idx == self._idx)

    def __hash__(self):
        return hash((id(self._mesh), self._idx))

    def __index__(self):
        return self._idx

    def __int__(self):
        return self._idx

    @property
    def index(self):
        """ Halfedge index.

        :type: int
        """
        return self._idx

    @property
    def next(self):
        """ Successor halfedge.

        :type: Halfedge
        """
        return self._mesh._halfs[self._mesh._hnext[self._idx]]

    @property
    def prev(self):
        """ Predecessor halfedge.

        :type: Halfedge
        """
        mesh = self._mesh
        h = self._idx

        while mesh._hnext[h] != self._idx:
            h = mesh._hnext[h]

        return mesh._halfs[h]

    @property
    def flip(self):
        """ Opposite halfedge.

        :type: Halfedge
        """
        return self._mesh._halfs[self._mesh._hflip[self._idx]]

    @property
    def vertex(self):
        """ Origin vertex.

        :type: Vertex
        """
        return self._mesh._verts[self._mesh._hvert[self._idx]]

    @property
    def target(self):
        """ Target vertex.

        :type: Vertex
        """
        mesh = self._mesh
        return mesh._verts[mesh._hvert[mesh._hnext[self._idx]]]

    @property
    def edge(self):
        """ Parent edge.

        :type: Edge
        """
        return self._mesh._edges[self._mesh._hedge[self._idx]]

    @property
    def face(self):
        """ Face to the left, possibly a boundary face.

        :type: Face
        """
        mesh = self._mesh
        f = mesh._hface[self._idx]

        return mesh._faces[f] if f < len(mesh._faces) else \
            mesh._bnds[f - len(mesh._faces)]

    @property
    def on_boundary(self):
        """ Topological state.

        :obj:`True` for halfedges of boundary loops.

        :type: bool
        """
        return bool(self._mesh._hbnd[self._idx])

    @property
    def flags(self):
        """ Halfedge flags.

        :type: HalfedgeFlag
        """
        if self.on_boundary:
            return flags.HalfedgeFlag.BOUNDARY

        return flags.HalfedgeFlag(0)

    @property
    def connection(self):
        """ Discrete connection value.

        :type: float
        """
        return float(self._mesh._connection[self._idx])

    @connection.setter
    def connection(self, value):
        self._mesh._connection[self._idx] = value

    @property
    def vector(self):
        """ Halfedge direction vector.

        The vector ``self.target.point - self.vertex.point``.

        :type: ~numpy.ndarray
        """
        mesh = self._mesh
        i = mesh._hvert[self._idx]
        j = mesh._hvert[mesh._hnext[self._idx]]

        return mesh._points[j] - mesh._points[i]

    def cotan(self):
        """ Cotangent of the opposite angle.

        Returns
        -------
        float
            Cotangent of the angle opposite to the halfedge in its face,
            0.0 for boundary halfedges. Not finite for degenerate
            triangles.
        """
        return traits.halfedge_cotan(self)


class Edge:
    """ Edge handle.

    Parameters
    ----------
    mesh : Mesh
        The parent mesh.
    index : int
        Edge index.
    """

    __slots__ = ('_mesh', '_idx')

    def __init__(self, mesh, index):
        self._mesh = mesh
        self._idx = index

    def __repr__(self):
        return f'Edge({self._idx})'

    def __eq__(self, other):
        return (isinstance(other, Edge) and other._mesh is self._mesh
                and other._idx == self._idx)

    def __hash__(self):
        return hash((id(self._mesh), self._idx))

    def __index__(self):
        return self._idx

    def __int__(self):
        return self._idx

    @property
    def index(self):
        """ Edge index.

        :type: int
        """
        return self._idx

    @property
    def halfedge(self):
        """ Representative halfedge.

        Always a halfedge of a real face.

        :type: Halfedge
        """
        return self._mesh._halfs[self._mesh._ehe[self._idx]]

    @property
    def on_boundary(self):
        """ Topological state.

        :type: bool
        """
        return self.halfedge.flip.on_boundary

    @property
    def length(self):
        """ Edge length.

        :type: float
        """
        return float(np.linalg.norm(self.halfedge.vector))

    def _hiter(self):
        """ Halfedge pair iterator.
        """
        h = self.halfedge

        yield h
        yield h.flip


class Face:
    """ Face handle.

    A face is either a triangle of the mesh or a boundary loop of
    arbitrary length.

    Parameters
    ----------
    mesh : Mesh
        The parent mesh.
    index : int
        Face index.
    """

    __slots__ = ('_mesh', '_idx')

    def __init__(self, mesh, index):
        self._mesh = mesh
        self._idx = index

    def __repr__(self):
        return f'Face({self._idx})'

    def __eq__(self, other):
        return (isinstance(other, Face) and other._mesh is self._mesh
                and other._idx == self._idx)

    def __hash__(self):
        return hash((id(self._mesh), self._idx))

    def __index__(self):
        return self._idx

    def __int__(self):
        return self._idx

    def __len__(self):
        return sum(1 for _ in self._hiter())

    def __iter__(self):
        """ Vertex iterator.

        Yields
        ------
        Vertex
            Next vertex in counter-clockwise traversal, starting with
            ``self.halfedge.vertex``.
        """
        return (h.vertex for h in self._hiter())

    def __array__(self, dtype=None, copy=None):
        """ NumPy support.

        Returns
        -------
        ~numpy.ndarray, shape (k, 3)
            Coordinates of the face's vertices.
        """
        idx = [int(v) for v in self]
        return np.array(self._mesh._points[idx], dtype=dtype, copy=copy)

    @property
    def index(self):
        """ Face index.

        :type: int
        """
        return self._idx

    @property
    def halfedge(self):
        """ Representative halfedge.

        :type: Halfedge
        """
        return self._mesh._halfs[self._mesh._fhe[self._idx]]

    @property
    def is_boundary(self):
        """ Boundary loop state.

        :type: bool
        """
        return bool(self._mesh._fbnd[self._idx])

    @property
    def direction(self):
        """ Tangent direction.

        View of the direction vector array.

        :type: ~numpy.ndarray
        """
        return self._mesh._direction[self._idx]

    @direction.setter
    def direction(self, value):
        self._mesh._direction[self._idx] = value

    @property
    def barycenter(self):
        """ Face barycenter.

        :type: ~numpy.ndarray
        """
        return np.mean(np.asarray(self), axis=0)

    def area(self):
        """ Face area.

        Returns
        -------
        float
            Face area.
        """
        return traits.face_area(self)

    def normal(self):
        """ Face normal.

        Returns
        -------
        ~numpy.ndarray, shape (3, )
            Unit normal vector.
        """
        return traits.face_normal(self)

    def _hiter(self):
        """ Halfedge iterator.
        """
        mesh = self._mesh
        h = start = mesh._fhe[self._idx]

        while True:
            yield mesh._halfs[h]
            h = mesh._hnext[h]

            if h == start:
                return

    def _viter(self):
        """ Vertex iterator.
        """
        return iter(self)

    def _fiter(self):
        """ Edge-adjacent face iterator, boundary faces excluded.
        """
        return (h.flip.face for h in self._hiter()
                if not h.flip.on_boundary)


class NonManifoldError(Exception):
    """ Manifold exception.

    Raised if face definitions describe a topological configuration that
    violates the manifold condition or is not consistently oriented.
    """

    pass


class PreconditionError(Exception):
    """ Precondition exception.

    Raised if an operation is invoked on a mesh that lacks a required
    topological feature. Nothing is modified in this case.
    """

    pass
