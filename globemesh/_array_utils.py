"""
Internal array helpers shared by the geometry modules.

Mesh buffers are always produced as numpy arrays; callers that keep their
data on the GPU may hand cupy arrays in, and finished meshes can be
uploaded back with ``Mesh.to_cupy()``.
"""

import numpy as np

try:
    import cupy
    has_cupy = True
except ModuleNotFoundError:
    has_cupy = False


def to_numpy(arr, dtype=None):
    """Return ``arr`` as a numpy array, downloading cupy arrays if needed."""
    if has_cupy and isinstance(arr, cupy.ndarray):
        arr = cupy.asnumpy(arr)
    return np.asarray(arr, dtype=dtype)


def as_lonlat_array(coords):
    """Normalise a coordinate sequence to a contiguous (N, 2) float64 array.

    Extra ordinates (altitude, measures) are dropped. Empty input gives a
    (0, 2) array.
    """
    arr = to_numpy(coords, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise ValueError(
            f"Expected coordinates of shape (N, 2+), got {arr.shape}"
        )
    return np.ascontiguousarray(arr[:, :2])
