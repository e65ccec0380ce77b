"""Mesh buffers for country fills and border lines.

This module turns projected vertices plus a triangle index list into the
buffers handed to a renderer: positions, normals and a bounding sphere.
Fill meshes are always delivered in non-indexed form (three vertices stored
per triangle) so that many country meshes can be concatenated into one draw
call without index collisions, and are pushed slightly outward from the
globe surface to avoid z-fighting.
"""

import numba as nb
import numpy as np

from ._array_utils import has_cupy, to_numpy
from .projection import project_many
from .triangulate import validate_triangles

if has_cupy:
    import cupy


class Mesh:
    """Triangle mesh stored as flat numpy buffers.

    Parameters
    ----------
    vertices : array-like
        Vertex positions, flat (N*3,) or (N, 3).  Stored as float32.
    indices : array-like, optional
        Flat triangle index list (uint32).  ``None`` for a non-indexed mesh
        where every three consecutive vertices form a triangle.
    normals : array-like, optional
        Per-vertex normals, same layout as ``vertices``.
    user_data : dict, optional
        Metadata tags for the scene layer (``name``, ``type``, ids).
    """

    def __init__(self, vertices, indices=None, normals=None, user_data=None):
        self.vertices = to_numpy(vertices, dtype=np.float32).ravel()
        if self.vertices.size % 3:
            raise ValueError(
                f"vertex buffer length {self.vertices.size} is not a "
                "multiple of 3")
        self.indices = (None if indices is None
                        else to_numpy(indices, dtype=np.uint32).ravel())
        self.normals = (None if normals is None
                        else to_numpy(normals, dtype=np.float32).ravel())
        self.bounding_sphere = None
        self.user_data = dict(user_data or {})

    def __repr__(self):
        kind = "indexed" if self.is_indexed else "non-indexed"
        name = self.user_data.get('name')
        label = f" {name!r}" if name is not None else ""
        return (f"<Mesh{label} {kind}, {self.vertex_count} vertices, "
                f"{self.triangle_count} triangles>")

    @property
    def is_indexed(self):
        return self.indices is not None

    @property
    def vertex_count(self):
        return self.vertices.size // 3

    @property
    def triangle_count(self):
        if self.indices is not None:
            return self.indices.size // 3
        return self.vertex_count // 3

    @property
    def positions(self):
        """(N, 3) view of the vertex buffer."""
        return self.vertices.reshape(-1, 3)

    def compute_normals(self):
        """Recompute per-vertex normals in place and return them."""
        self.normals = compute_vertex_normals(self.vertices, self.indices)
        return self.normals

    def compute_bounding_sphere(self):
        """Recompute the bounding sphere in place and return it."""
        self.bounding_sphere = compute_bounding_sphere(self.vertices)
        return self.bounding_sphere

    def to_cupy(self):
        """Return a copy of the mesh with its buffers on the GPU.

        Raises
        ------
        ImportError
            If cupy is not available.
        """
        if not has_cupy:
            raise ImportError(
                "cupy is required for GPU operations. "
                "Install with: conda install -c conda-forge cupy"
            )
        out = Mesh.__new__(Mesh)
        out.vertices = cupy.asarray(self.vertices)
        out.indices = (None if self.indices is None
                       else cupy.asarray(self.indices))
        out.normals = (None if self.normals is None
                       else cupy.asarray(self.normals))
        out.bounding_sphere = self.bounding_sphere
        out.user_data = dict(self.user_data)
        return out


class LineMesh:
    """Line segments stored as a vertex buffer plus index pairs.

    Parameters
    ----------
    vertices : array-like
        Flat (N*3,) or (N, 3) positions, stored as float32.
    indices : array-like
        Flat uint32 list of segment endpoints, two per segment.
    user_data : dict, optional
        Metadata tags.
    """

    def __init__(self, vertices, indices, user_data=None):
        self.vertices = to_numpy(vertices, dtype=np.float32).ravel()
        self.indices = to_numpy(indices, dtype=np.uint32).ravel()
        if self.indices.size % 2:
            raise ValueError("line index buffer must hold pairs")
        self.bounding_sphere = compute_bounding_sphere(self.vertices)
        self.user_data = dict(user_data or {})

    def __repr__(self):
        return (f"<LineMesh {self.vertex_count} vertices, "
                f"{self.segment_count} segments>")

    @property
    def vertex_count(self):
        return self.vertices.size // 3

    @property
    def segment_count(self):
        return self.indices.size // 2

    @property
    def positions(self):
        return self.vertices.reshape(-1, 3)


@nb.njit
def _accumulate_normals(pos, tris, out):
    for t in range(tris.shape[0] // 3):
        a = tris[3 * t]
        b = tris[3 * t + 1]
        c = tris[3 * t + 2]
        # (c - b) x (a - b)
        cbx = pos[c, 0] - pos[b, 0]
        cby = pos[c, 1] - pos[b, 1]
        cbz = pos[c, 2] - pos[b, 2]
        abx = pos[a, 0] - pos[b, 0]
        aby = pos[a, 1] - pos[b, 1]
        abz = pos[a, 2] - pos[b, 2]
        nx = cby * abz - cbz * aby
        ny = cbz * abx - cbx * abz
        nz = cbx * aby - cby * abx
        for v in (a, b, c):
            out[v, 0] += nx
            out[v, 1] += ny
            out[v, 2] += nz


@nb.njit
def _radial_offset(pos, offset):
    for i in range(pos.shape[0]):
        x = pos[i, 0]
        y = pos[i, 1]
        z = pos[i, 2]
        length = np.sqrt(x * x + y * y + z * z)
        if length == 0.0:
            length = 1.0
        factor = (length + offset) / length
        pos[i, 0] = x * factor
        pos[i, 1] = y * factor
        pos[i, 2] = z * factor


def compute_vertex_normals(vertices, indices=None):
    """Area-weighted per-vertex normals.

    For an indexed mesh, face normals are summed into every vertex they
    touch; for a non-indexed mesh each vertex takes its own face's normal.

    Parameters
    ----------
    vertices : array-like
        Flat (N*3,) or (N, 3) positions.
    indices : array-like, optional
        Flat triangle index list, or None for non-indexed input.

    Returns
    -------
    np.ndarray
        Flat float32 (N*3,) unit normals (zero for unused vertices).
    """
    pos = to_numpy(vertices, dtype=np.float64).reshape(-1, 3)
    if indices is None:
        tris = np.arange(len(pos) - len(pos) % 3, dtype=np.int64)
    else:
        tris = to_numpy(indices).astype(np.int64).ravel()
    out = np.zeros_like(pos)
    if len(tris):
        _accumulate_normals(np.ascontiguousarray(pos), tris, out)
    lengths = np.linalg.norm(out, axis=1, keepdims=True)
    np.divide(out, lengths, out=out, where=lengths > 0)
    return out.astype(np.float32).ravel()


def compute_bounding_sphere(vertices):
    """Sphere centred on the bounding-box centre enclosing every vertex.

    Returns
    -------
    (center, radius) : (np.ndarray, float)
        ``center`` is a float64 (3,) array.  An empty buffer gives a zero
        sphere at the origin.
    """
    pos = to_numpy(vertices, dtype=np.float64).reshape(-1, 3)
    if len(pos) == 0:
        return np.zeros(3), 0.0
    center = (pos.min(axis=0) + pos.max(axis=0)) / 2.0
    radius = float(np.sqrt(((pos - center) ** 2).sum(axis=1).max()))
    return center, radius


def to_non_indexed(mesh):
    """Expand an indexed mesh so each triangle owns its three vertices.

    Normals, if present, are expanded alongside.  A mesh that is already
    non-indexed is returned as a copy.
    """
    pos = mesh.positions
    if mesh.indices is None:
        out = Mesh(pos.copy(), None,
                   None if mesh.normals is None else mesh.normals.copy(),
                   mesh.user_data)
        return out
    idx = mesh.indices.astype(np.int64)
    normals = None
    if mesh.normals is not None:
        normals = mesh.normals.reshape(-1, 3)[idx]
    return Mesh(pos[idx], None, normals, mesh.user_data)


def apply_radial_offset(mesh, offset):
    """Push every vertex ``offset`` units outward from the origin, in place.

    Each position is scaled by ``(|v| + offset) / |v|``; a vertex at the
    origin is treated as having length 1.  Normals and the bounding sphere
    are recomputed afterwards.
    """
    pos = mesh.positions.astype(np.float64)
    if offset and len(pos):
        _radial_offset(pos, float(offset))
    mesh.vertices = pos.astype(np.float32).ravel()
    mesh.compute_normals()
    mesh.compute_bounding_sphere()
    return mesh


def assemble(vertices, triangles, radial_offset=0.003, user_data=None,
             name="mesh"):
    """Build a render-ready, non-indexed fill mesh.

    Parameters
    ----------
    vertices : array-like
        (N, 3) projected vertex positions.
    triangles : array-like
        Flat triangle index list into ``vertices``.
    radial_offset : float
        Outward push applied after expansion (0 disables it).
    user_data : dict, optional
        Metadata tags copied onto the mesh.
    name : str
        Label used if the index buffer fails validation.

    Returns
    -------
    Mesh
        Non-indexed mesh with normals and bounding sphere.

    Raises
    ------
    globemesh.triangulate.TriangulationError
        The triangle list is empty or out of range for ``vertices``.
    """
    pos = to_numpy(vertices, dtype=np.float64).reshape(-1, 3)
    validate_triangles(to_numpy(triangles), len(pos), name=name)

    indexed = Mesh(pos, triangles, user_data=user_data)
    indexed.compute_normals()

    mesh = to_non_indexed(indexed)
    mesh.compute_normals()
    return apply_radial_offset(mesh, radial_offset)


def merge_meshes(meshes, user_data=None):
    """Concatenate non-indexed meshes into a single buffer.

    Parameters
    ----------
    meshes : sequence of Mesh
        Non-indexed meshes.  Indexed meshes must be expanded first with
        :func:`to_non_indexed`.
    user_data : dict, optional
        Tags for the merged mesh.

    Returns
    -------
    Mesh

    Raises
    ------
    ValueError
        ``meshes`` is empty or contains an indexed mesh.
    """
    meshes = list(meshes)
    if not meshes:
        raise ValueError("No meshes to merge")
    if any(m.is_indexed for m in meshes):
        raise ValueError("merge_meshes requires non-indexed meshes")

    vertices = np.concatenate([m.vertices for m in meshes])
    if all(m.normals is not None for m in meshes):
        normals = np.concatenate([m.normals for m in meshes])
    else:
        normals = compute_vertex_normals(vertices)
    merged = Mesh(vertices, None, normals, user_data)
    merged.compute_bounding_sphere()
    return merged


def line_segments(paths, radius=2.0, closed=False, user_data=None):
    """Project lon/lat paths into one :class:`LineMesh` of segment pairs.

    Parameters
    ----------
    paths : iterable of array-like
        Each an (N, 2) lon/lat polyline.  Paths with fewer than two points
        are ignored.
    radius : float
        Projection radius.
    closed : bool
        Join each path's last point back to its first (ring outlines).  A
        repeated closing point is dropped first.
    user_data : dict, optional
        Metadata tags.

    Returns
    -------
    LineMesh
    """
    all_verts = []
    all_indices = []
    vert_offset = 0

    for path in paths:
        pts = np.asarray(path, dtype=np.float64)
        if pts.ndim != 2 or len(pts) < 2:
            continue
        if closed and len(pts) > 2 and np.array_equal(pts[0, :2], pts[-1, :2]):
            pts = pts[:-1]
        n = len(pts)
        starts = np.arange(n - 1)
        pairs = np.column_stack([starts, starts + 1])
        if closed and n > 2:
            pairs = np.vstack([pairs, [[n - 1, 0]]])
        all_verts.append(project_many(pts, radius, unwrap_antimeridian=True))
        all_indices.append(pairs.ravel() + vert_offset)
        vert_offset += n

    if not all_verts:
        return LineMesh(np.empty(0, dtype=np.float32),
                        np.empty(0, dtype=np.uint32), user_data)

    return LineMesh(np.concatenate(all_verts),
                    np.concatenate(all_indices), user_data)
