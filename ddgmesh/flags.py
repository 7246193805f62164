# Copyright 2022-2024, ddgmesh
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

""" Mesh item flags.

Selection state is written by an interaction layer. Solvers only read
these flags.
"""

from enum import Flag
from enum import auto


class VertexFlag(Flag):
    """ Vertex flags enumeration.
    """

    TAGGED = auto()
    """ Tag flag.

    Marks a vertex as a singularity of a tangent vector field. Tagged
    vertices carry a prescribed winding number."""

    HIGHLIGHTED = auto()
    """ Highlight flag.

    The first highlighted vertex absorbs the winding number excess when
    winding numbers are balanced against the Euler characteristic."""


class HalfedgeFlag(Flag):
    """ Halfedge flags enumeration.
    """

    BOUNDARY = auto()
    """ Boundary flag.

    Set for halfedges of boundary loops, i.e., halfedges whose face is
    a synthetic boundary face."""
