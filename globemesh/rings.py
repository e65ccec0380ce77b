"""Ring canonicalisation ahead of ear clipping.

Real-world country rings arrive closed or open, wound either way, and
sometimes jumping across the antimeridian.  :func:`preprocess_ring` turns
each one into the canonical form the triangulator expects:

1. closing duplicate removed (it would produce a zero-area ear),
2. longitudes unwrapped relative to the first point,
3. winding forced to CCW for exteriors and CW for holes (both flipped
   when ``invert`` is set).
"""

import numba as nb
import numpy as np

from ._array_utils import as_lonlat_array
from .diagnostics import SkippedFeature, warn_skipped
from .triangulate import MalformedRingError
from .winding import signed_area


@nb.njit
def _unwrap_longitudes(lon):
    out = np.empty_like(lon)
    if lon.shape[0] == 0:
        return out
    last = lon[0]
    out[0] = last
    for i in range(1, lon.shape[0]):
        value = lon[i]
        delta = value - last
        # same result as repeated +/-360 steps, without the loop
        if delta > 180.0:
            value -= 360.0 * np.ceil((delta - 180.0) / 360.0)
        elif delta < -180.0:
            value += 360.0 * np.ceil((-180.0 - delta) / 360.0)
        out[i] = value
        last = value
    return out


def remove_ring_closure(ring):
    """Drop the last point when it repeats the first.

    Parameters
    ----------
    ring : array-like
        (N, 2) lon/lat ring.

    Returns
    -------
    np.ndarray
        (N, 2) or (N-1, 2) float64 array.
    """
    arr = as_lonlat_array(ring)
    if len(arr) > 1 and arr[0, 0] == arr[-1, 0] and arr[0, 1] == arr[-1, 1]:
        return arr[:-1].copy()
    return arr.copy()


def unwrap_longitudes(ring):
    """Make longitudes continuous so no step exceeds 180 degrees.

    Each longitude is shifted by a multiple of 360 relative to the previous
    (already unwrapped) point; the first point is left untouched.  A ring
    crossing the antimeridian such as ``[(179, 0), (-179, 0)]`` becomes
    ``[(179, 0), (181, 0)]``.
    """
    arr = as_lonlat_array(ring).copy()
    if len(arr):
        arr[:, 0] = _unwrap_longitudes(np.ascontiguousarray(arr[:, 0]))
    return arr


def ensure_winding(ring, counter_clockwise, spherical=True):
    """Return ``ring`` in the requested orientation, reversing if needed.

    Orientation is judged by the sign of :func:`globemesh.winding.signed_area`.
    """
    arr = as_lonlat_array(ring)
    is_ccw = signed_area(arr, spherical=spherical) > 0.0
    if is_ccw != counter_clockwise:
        return arr[::-1].copy()
    return arr


def target_winding(is_exterior, invert=False):
    """True if a ring in this role should be counter-clockwise."""
    return (not is_exterior) if invert else is_exterior


def preprocess_ring(ring, is_exterior=True, invert=False,
                    use_spherical_winding=True, name="ring"):
    """Canonicalise a single ring for triangulation.

    Parameters
    ----------
    ring : array-like
        (N, 2) lon/lat ring, closed or open.
    is_exterior : bool
        Exterior rings are wound CCW, holes CW.
    invert : bool
        Flip both targets, for data in a mirrored coordinate frame.
    use_spherical_winding : bool
        Judge the current winding with the spherical area measure (default)
        or the planar shoelace.
    name : str
        Label used in raised errors.

    Returns
    -------
    np.ndarray
        (M, 2) float64 ring with ``M >= 3``.

    Raises
    ------
    MalformedRingError
        Fewer than three points remain after closure removal, or the ring
        holds NaN/inf coordinates.
    """
    try:
        arr = as_lonlat_array(ring)
    except (ValueError, TypeError) as e:
        raise MalformedRingError(name, f"unreadable coordinates: {e}") from e
    if not np.all(np.isfinite(arr)):
        raise MalformedRingError(name, "ring contains non-finite coordinates")

    arr = remove_ring_closure(arr)
    if len(arr) < 3:
        raise MalformedRingError(
            name, f"ring has {len(arr)} usable points, need at least 3")

    arr = unwrap_longitudes(arr)
    return ensure_winding(
        arr,
        target_winding(is_exterior, invert),
        spherical=use_spherical_winding,
    )


def _align_longitudes(ring, reference):
    # each ring unwraps from its own first point; move holes onto the
    # exterior's side of the antimeridian
    shift = 360.0 * np.round((reference[0, 0] - ring[0, 0]) / 360.0)
    if shift == 0.0:
        return ring
    out = ring.copy()
    out[:, 0] += shift
    return out


def preprocess_polygon(rings, config, name="polygon", skipped=None):
    """Preprocess an exterior ring and its holes.

    Parameters
    ----------
    rings : sequence of array-like
        ``[exterior, hole1, hole2, ...]``.  Holes are trusted to lie inside
        the exterior; containment is not checked.
    config : TriangulationConfig
        Supplies ``invert_winding`` and ``use_spherical_winding``.
    name : str
        Polygon label for errors and warnings.
    skipped : list, optional
        When given, a :class:`SkippedFeature` for every dropped hole is
        appended here instead of being warned about immediately.

    Returns
    -------
    exterior : np.ndarray
    holes : list of np.ndarray
    kept : list of int
        Indices into ``rings`` of the rings that were kept.

    Raises
    ------
    MalformedRingError
        The polygon has no rings or its exterior is malformed.  Malformed
        holes are dropped (with a ``GeometryWarning`` unless ``skipped`` is
        given) instead.
    """
    if rings is None or len(rings) == 0:
        raise MalformedRingError(name, "polygon has no rings")

    exterior = preprocess_ring(
        rings[0], is_exterior=True,
        invert=config.invert_winding,
        use_spherical_winding=config.use_spherical_winding,
        name=name,
    )
    holes = []
    kept = [0]
    for i, hole in enumerate(rings[1:], start=1):
        hole_name = f"{name} hole {i}"
        try:
            ring = preprocess_ring(
                hole, is_exterior=False,
                invert=config.invert_winding,
                use_spherical_winding=config.use_spherical_winding,
                name=hole_name,
            )
        except MalformedRingError as e:
            record = SkippedFeature(hole_name, e.reason, str(e))
            if skipped is None:
                warn_skipped(record)
            else:
                skipped.append(record)
            continue
        holes.append(_align_longitudes(ring, exterior))
        kept.append(i)
    return exterior, holes, kept
