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

""" OBJ file I/O.

Minimal reader and writer for the subset of the Wavefront OBJ format
needed to exchange triangle meshes: vertex coordinates (``v``), texture
vertices (``vt``), vertex normals (``vn``), and faces (``f``). All other
lines are ignored when reading.
"""

import numpy as np


def _vertex_ref(block, count):
    """ Parse a vertex reference of a face statement.

    Parameters
    ----------
    block : str
        A ``v``, ``v/vt``, ``v//vn``, or ``v/vt/vn`` string.
    count : int
        Number of vertices read so far, resolves negative (relative)
        indices.

    Raises
    ------
    ValueError
        If the string could not be parsed.

    Returns
    -------
    int
        0-based vertex index.
    """
    bits = block.split('/')

    if len(bits) > 3 or not bits[0]:
        raise ValueError(f'invalid vertex reference: {block}')

    # Texture and normal indices are assumed to match vertex indices.
    v = int(bits[0])

    return count + v if v < 0 else v - 1


def read(filename):
    """ Read from file.

    Parameters
    ----------
    filename : str or ~pathlib.Path
        Name of an OBJ file.

    Raises
    ------
    OSError
        If the file cannot be opened.
    ValueError
        If a line cannot be parsed.

    Returns
    -------
    points : ~numpy.ndarray, shape (n, 3)
        Vertex coordinates.
    faces : list[list[int]]
        Face definitions, 0-based vertex indices.
    uvs : ~numpy.ndarray or None
        Texture vertices, one row per ``vt`` statement. :obj:`None` if
        there are none.
    """
    points = []
    faces = []
    uvs = []

    with open(filename, 'r') as file:
        for number, line in enumerate(file, 1):
            blocks = line.split()

            if not blocks:
                continue

            try:
                if blocks[0] == 'v':
                    points.append([float(x) for x in blocks[1:4]])
                elif blocks[0] == 'vt':
                    uvs.append([float(x) for x in blocks[1:3]])
                elif blocks[0] == 'f':
                    faces.append([_vertex_ref(block, len(points))
                                  for block in blocks[1:]])
            except ValueError as e:
                raise ValueError(f'{filename}:{number}: {e}') from e

    points = np.array(points, dtype=float).reshape(-1, 3)
    uvs = np.array(uvs, dtype=float) if uvs else None

    return points, faces, uvs


def write(filename, points, faces, *, uvs=None, normals=None):
    """ Write to file.

    Texture vertices and normals, if given, correspond to vertices by
    index. Face statements reference them with the vertex index.

    Parameters
    ----------
    filename : str or ~pathlib.Path
        Name of output file.
    points : array_like, shape (n, 3)
        Vertex coordinates.
    faces : array_like
        Face definitions, 0-based vertex indices.
    uvs : array_like, shape (n, 2), optional
        Texture vertices.
    normals : array_like, shape (n, 3), optional
        Vertex normals.

    Raises
    ------
    OSError
        If the file cannot be written.
    ValueError
        If the number of texture vertices or normals does not match the
        number of vertices.
    """
    for tag, data in (('vt', uvs), ('vn', normals)):
        if data is not None and len(data) != len(points):
            msg = (f"number of '{tag}' rows ({len(data)}) != " +
                   f'number of vertices ({len(points)})')
            raise ValueError(msg)

    if uvs is not None and normals is not None:
        ref = '{0}/{0}/{0}'
    elif uvs is not None:
        ref = '{0}/{0}'
    elif normals is not None:
        ref = '{0}//{0}'
    else:
        ref = '{0}'

    with open(filename, 'w') as file:
        for tag, data in (('v', points), ('vt', uvs), ('vn', normals)):
            if data is None:
                continue

            for row in data:
                file.write(tag + ''.join(f' {x!r}' for x in map(float, row)))
                file.write('\n')

        for face in faces:
            file.write('f')

            for v in face:
                file.write(' ' + ref.format(int(v) + 1))

            file.write('\n')
