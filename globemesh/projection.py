"""Longitude/latitude to sphere projection.

Every component that places geometry on the globe goes through this module
so border lines and fill meshes can never drift apart.  The convention puts
the north pole at ``(0, r, 0)`` and longitude 0 on the +X axis.
"""

import math

import numpy as np

from ._array_utils import as_lonlat_array


def normalize_longitude(lon):
    """Fold a longitude (scalar or array) into [-180, 180).

    Uses floored modulo so negative inputs fold the same way as positive
    ones.
    """
    return np.mod(np.asarray(lon, dtype=np.float64) + 180.0, 360.0) - 180.0


def project(lon, lat, radius=2.0, unwrap_antimeridian=False):
    """Convert a single (lon, lat) pair in degrees to a 3D point.

    Parameters
    ----------
    lon, lat : float
        Geographic coordinates in degrees.  Values outside the canonical
        range still map to a deterministic point.
    radius : float
        Sphere radius.
    unwrap_antimeridian : bool
        If True, fold the longitude into [-180, 180) before projecting.

    Returns
    -------
    tuple of float
        ``(x, y, z)``.
    """
    if unwrap_antimeridian:
        lon = ((lon + 180.0) % 360.0) - 180.0
    phi = (90.0 - lat) * (math.pi / 180.0)
    theta = (lon + 180.0) * (math.pi / 180.0)
    x = -(radius * math.sin(phi) * math.cos(theta))
    y = radius * math.cos(phi)
    z = radius * math.sin(phi) * math.sin(theta)
    return (x, y, z)


def project_many(coords, radius=2.0, unwrap_antimeridian=False):
    """Vectorised :func:`project` over an (N, 2) lon/lat array.

    Parameters
    ----------
    coords : array-like
        (N, 2) or (N, 3) lon/lat[/alt] coordinates in degrees.  Only the
        first two columns are used.
    radius : float
        Sphere radius.
    unwrap_antimeridian : bool
        Fold longitudes into [-180, 180) before projecting.

    Returns
    -------
    np.ndarray
        (N, 3) float64 array of ``(x, y, z)`` positions.
    """
    lonlat = as_lonlat_array(coords)
    if len(lonlat) == 0:
        return np.empty((0, 3), dtype=np.float64)

    lon = lonlat[:, 0]
    lat = lonlat[:, 1]
    if unwrap_antimeridian:
        lon = normalize_longitude(lon)

    phi = np.radians(90.0 - lat)
    theta = np.radians(lon + 180.0)
    sin_phi = np.sin(phi)

    out = np.empty((len(lonlat), 3), dtype=np.float64)
    out[:, 0] = -(radius * sin_phi * np.cos(theta))
    out[:, 1] = radius * np.cos(phi)
    out[:, 2] = radius * sin_phi * np.sin(theta)
    return out


def lonlat_from_vector(x, y, z):
    """Inverse of :func:`project`: recover (lon, lat) degrees from a point.

    The radius is implied by the vector length.  Longitude is returned in
    [-180, 180).  The origin maps to ``(0.0, 0.0)``.
    """
    r = math.sqrt(x * x + y * y + z * z)
    if r == 0.0:
        return (0.0, 0.0)
    lat = 90.0 - math.degrees(math.acos(max(-1.0, min(1.0, y / r))))
    theta = math.atan2(z, -x)
    lon = math.degrees(theta) - 180.0
    lon = ((lon + 180.0) % 360.0) - 180.0
    return (lon, lat)
