"""Signed ring area and winding direction.

Two interchangeable area measures are provided.  Only the sign is used to
decide winding; a positive area is what the rest of the package calls
counter-clockwise (CCW), negative is clockwise (CW).

* ``planar_signed_area`` treats (lon, lat) as a flat plane.  Fast, but can
  disagree with the true orientation for large or high-latitude rings.
* ``spherical_signed_area`` sums the spherical excess of each edge and is
  the default.
"""

import math

import numba as nb
import numpy as np

from ._array_utils import as_lonlat_array


@nb.njit
def _planar_signed_area(lon, lat):
    n = lon.shape[0]
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        j = (i + 1) % n
        total += (lon[j] - lon[i]) * (lat[j] + lat[i])
    return 0.5 * total


@nb.njit
def _spherical_signed_area(lon, lat):
    n = lon.shape[0]
    if n < 3:
        return 0.0
    deg = math.pi / 180.0
    total = 0.0
    for i in range(n):
        j = (i + 1) % n
        phi1 = lat[i] * deg
        phi2 = lat[j] * deg
        dlam = (lon[j] - lon[i]) * deg
        # fold into (-pi, pi]
        if abs(dlam) > math.pi:
            if dlam > 0.0:
                dlam -= 2.0 * math.pi
            else:
                dlam += 2.0 * math.pi
        sin1 = math.sin(phi1)
        sin2 = math.sin(phi2)
        total += 2.0 * math.atan2(
            math.tan(dlam / 2.0) * (sin1 + sin2),
            2.0 + sin1 * sin2 + math.cos(phi1) * math.cos(phi2) * math.cos(dlam),
        )
    return total


def planar_signed_area(ring):
    """Planar shoelace area of a ring in square degrees.

    ``0.5 * sum((lon[i+1] - lon[i]) * (lat[i+1] + lat[i]))`` over every edge
    of the implicitly closed ring.  Rings with fewer than three points have
    zero area.
    """
    arr = as_lonlat_array(ring)
    return float(_planar_signed_area(
        np.ascontiguousarray(arr[:, 0]), np.ascontiguousarray(arr[:, 1])))


def spherical_signed_area(ring):
    """Signed spherical excess of a ring on the unit sphere (steradians).

    Each edge contributes
    ``2 * atan2(tan(dl/2) * (sin p1 + sin p2), 2 + sin p1 sin p2 + cos p1 cos p2 cos dl)``
    with ``dl`` folded into (-pi, pi] so antimeridian-adjacent edges take
    the short way round.
    """
    arr = as_lonlat_array(ring)
    return float(_spherical_signed_area(
        np.ascontiguousarray(arr[:, 0]), np.ascontiguousarray(arr[:, 1])))


def signed_area(ring, spherical=True):
    """Dispatch to the spherical or planar area measure."""
    if spherical:
        return spherical_signed_area(ring)
    return planar_signed_area(ring)


def is_counter_clockwise(ring, spherical=True):
    """True when the ring's signed area is strictly positive."""
    return signed_area(ring, spherical=spherical) > 0.0
