"""Ear-clipping triangulation of preprocessed polygons.

Triangulation runs on the flat (lon, lat) coordinates with ``mapbox_earcut``
while the same flattened vertex list is projected onto the sphere, so index
``i`` refers to the same logical vertex in both arrays.  Rings are expected
to be closure-free and antimeridian-unwrapped already (see
:mod:`globemesh.rings`).
"""

import mapbox_earcut as earcut
import numpy as np

from ._array_utils import as_lonlat_array
from .projection import project_many


class TriangulationError(ValueError):
    """A polygon could not be turned into a valid triangle list.

    Attributes
    ----------
    name : str
        Feature or polygon label, for diagnostics.
    reason : str
        Short machine-readable cause.
    """

    reason = "triangulation-failed"

    def __init__(self, name, message):
        super().__init__(f"{name}: {message}")
        self.name = name


class MalformedRingError(TriangulationError):
    """Fewer than three usable points, or non-finite coordinates."""

    reason = "malformed-ring"


class EmptyTriangulationError(TriangulationError):
    """Ear clipping produced no triangles (degenerate or self-intersecting)."""

    reason = "no-triangles"


class IndexRangeError(TriangulationError):
    """A triangle index points past the vertex buffer."""

    reason = "index-out-of-range"


def prepare_triangulation_data(exterior, holes=(), radius=2.0):
    """Flatten exterior + holes into matching 2D and 3D vertex arrays.

    Parameters
    ----------
    exterior : array-like
        (N, 2) exterior ring.
    holes : sequence of array-like
        Hole rings, in order.
    radius : float
        Sphere radius for the projected vertices.

    Returns
    -------
    vertices2d : np.ndarray
        (M, 2) float64 lon/lat for every ring, exterior first.
    hole_indices : list of int
        Start index of each hole within ``vertices2d``.
    vertices3d : np.ndarray
        (M, 3) float64 sphere positions, row-aligned with ``vertices2d``.
    """
    rings = [as_lonlat_array(exterior)]
    rings.extend(as_lonlat_array(h) for h in holes)

    hole_indices = []
    offset = len(rings[0])
    for ring in rings[1:]:
        hole_indices.append(offset)
        offset += len(ring)

    vertices2d = np.concatenate(rings)
    vertices3d = project_many(vertices2d, radius, unwrap_antimeridian=True)
    return vertices2d, hole_indices, vertices3d


def _earcut(vertices2d, hole_indices):
    # mapbox_earcut takes the end index of every ring, not hole starts
    ring_ends = np.array(list(hole_indices) + [len(vertices2d)],
                         dtype=np.uint32)
    result = earcut.triangulate_float64(
        np.ascontiguousarray(vertices2d, dtype=np.float64), ring_ends)
    return np.asarray(result, dtype=np.int64).ravel()


def validate_triangles(triangles, vertex_count, name="polygon"):
    """Raise if a triangle list is empty or references missing vertices.

    Parameters
    ----------
    triangles : array-like
        Flat triangle index list.
    vertex_count : int
        Number of vertices the indices refer to.
    name : str
        Label used in the error message.

    Raises
    ------
    EmptyTriangulationError
        No complete triangle is present.
    IndexRangeError
        An index is negative or ``>= vertex_count``.
    """
    tris = np.asarray(triangles)
    if tris.size < 3:
        raise EmptyTriangulationError(name, "no triangles generated")
    if tris.size % 3:
        raise IndexRangeError(
            name, f"index count {tris.size} is not a multiple of 3")
    lo, hi = int(tris.min()), int(tris.max())
    if hi >= vertex_count or lo < 0:
        raise IndexRangeError(
            name,
            f"indices span {lo}..{hi} but vertex count is {vertex_count}",
        )


def triangulate(exterior, holes=(), radius=2.0, name="polygon"):
    """Triangulate one polygon and project its vertices onto the sphere.

    Parameters
    ----------
    exterior : array-like
        Preprocessed (N, 2) exterior ring, no closing duplicate.
    holes : sequence of array-like
        Preprocessed hole rings.
    radius : float
        Sphere radius for the returned vertices.
    name : str
        Label carried by any raised :class:`TriangulationError`.

    Returns
    -------
    vertices : np.ndarray
        (M, 3) float64 sphere positions.
    triangles : np.ndarray
        Flat uint32 triangle index array, 3 entries per triangle.

    Raises
    ------
    MalformedRingError
        The exterior has fewer than three points.
    EmptyTriangulationError
        Ear clipping found no triangles.
    IndexRangeError
        The triangulator returned an index outside the vertex buffer.
    """
    vertices2d, hole_indices, vertices3d = prepare_triangulation_data(
        exterior, holes, radius)
    exterior_size = hole_indices[0] if hole_indices else len(vertices2d)
    if exterior_size < 3:
        raise MalformedRingError(name, "exterior ring has fewer than 3 points")

    triangles = _earcut(vertices2d, hole_indices)
    validate_triangles(triangles, len(vertices3d), name=name)
    return vertices3d, triangles.astype(np.uint32)


def expected_triangle_count(exterior_size, hole_sizes=()):
    """Triangle count of a simple polygon with holes: ``n + m + 2h - 2``.

    ``n`` exterior vertices, ``m`` total hole vertices and ``h`` holes;
    each hole bridge adds two vertices to the outline being clipped.
    """
    hole_sizes = list(hole_sizes)
    return exterior_size + sum(hole_sizes) + 2 * len(hole_sizes) - 2
