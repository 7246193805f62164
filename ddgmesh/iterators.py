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

""" Combinatorial mesh item neighborhood iterators.

Adjacent/incident mesh items are visited in counter-clockwise order as
determined by the mesh orientation (whenever it makes sense to consider
oriented item traversal).

Note
----
Boundary faces are never reported by :func:`faces` and
:func:`faces_bfs`.
"""

from collections import deque


def verts(obj):
    """ Vertex iterator.

    The returned iterator traverses adjacent/incident vertices
    of `obj` depending on its type:

    .. table::
       :width: 100%
       :widths: 20, 80

       =============== ================================================
       :class:`Vertex` ↺ traversal of adjacent vertices
       --------------- ------------------------------------------------
       :class:`Face`   ↺ traversal of incident vertices
       --------------- ------------------------------------------------
       :class:`Mesh`   in-order traversal of :attr:`~Mesh.vertices`
       =============== ================================================

    Parameters
    ----------
    obj : Vertex or Face or Mesh
        The base object.

    Yields
    ------
    Vertex
    """
    return obj._viter()


def halfs(obj):
    """ Halfedge iterator.

    The returned iterator traverses incident halfedges of `obj`
    depending on its type:

    .. table::
       :width: 100%
       :widths: 20, 80

       =============== ================================================
       :class:`Vertex` ↺ traversal of outgoing halfedges
       --------------- ------------------------------------------------
       :class:`Edge`   the representative halfedge and its opposite
       --------------- ------------------------------------------------
       :class:`Face`   ↺ traversal of incident halfedges
       --------------- ------------------------------------------------
       :class:`Mesh`   in-order traversal of :attr:`~Mesh.halfedges`
       =============== ================================================

    Parameters
    ----------
    obj : Vertex or Edge or Face or Mesh
        The base object.

    Yields
    ------
    Halfedge
    """
    return obj._hiter()


def edges(mesh):
    """ Edge iterator.

    Parameters
    ----------
    mesh : Mesh
        Mesh instance.

    Yields
    ------
    Edge
    """
    return mesh._eiter()


def faces(obj):
    r""" Face iterator.

    A vertex :math:`v` and a face :math:`f` are incident if
    :math:`v \in f`. Two faces are incident if they share a common edge.
    The returned iterator visits the incident faces of `obj` depending
    on its type:

    .. table::
       :width: 100%
       :widths: 20, 80

       =============== ================================================
       :class:`Vertex` ↺ traversal of incident faces
       --------------- ------------------------------------------------
       :class:`Face`   ↺ traversal of incident faces
       --------------- ------------------------------------------------
       :class:`Mesh`   in-order traversal of :attr:`~Mesh.faces`
       =============== ================================================

    Parameters
    ----------
    obj : Vertex or Face or Mesh
        The base object.

    Yields
    ------
    Face
    """
    return obj._fiter()


def faces_bfs(face):
    """ Breadth-first face traversal.

    Visits all faces of the connected component of `face`, crossing
    edges between real faces only.

    Parameters
    ----------
    face : Face
        The seed face.

    Yields
    ------
    Face
        The next face in breadth-first search.
    Halfedge or None
        The halfedge of an already visited face whose opposite halfedge
        belongs to the yielded face, :obj:`None` for the seed face.
    """
    queue = deque([face])
    visited = {face}

    yield face, None

    while queue:
        f = queue.popleft()

        for h in f._hiter():
            g = h.flip

            if g.on_boundary or g.face in visited:
                continue

            visited.add(g.face)
            queue.append(g.face)

            yield g.face, h
