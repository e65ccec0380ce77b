"""TopoJSON decoding: shared arcs back to GeoJSON geometry.

A topology stores every boundary once, as an *arc*, and geometries refer to
arcs by index (``~i`` meaning arc ``i`` reversed).  Neighbouring countries
therefore share the exact same border coordinates, which is what lets
:mod:`globemesh.borders` draw each border a single time.

Only the reading side of the format is implemented: arc decoding,
``feature`` reconstruction and the de-duplicated ``mesh`` of arcs.
"""

import numpy as np

from .geojson import _read_json


def load_topology(source, object_name="countries"):
    """Load a TopoJSON topology and check it holds ``objects.<object_name>``.

    Parameters
    ----------
    source : str, Path, or dict
        File path or parsed topology.
    object_name : str
        Object that callers will read geometries from.

    Returns
    -------
    dict
        The topology.

    Raises
    ------
    FileNotFoundError
        A path was given and does not exist.
    TypeError
        ``source`` is not a dict, str or Path.
    ValueError
        The object is not a topology or lacks ``objects.<object_name>``.
    """
    topology = _read_json(source, "TopoJSON")
    if topology.get("type") != "Topology":
        raise ValueError(
            f"Expected a TopoJSON Topology, got type {topology.get('type')!r}")
    objects = topology.get("objects")
    if not isinstance(objects, dict) or object_name not in objects:
        available = sorted(objects) if isinstance(objects, dict) else []
        raise ValueError(
            f"Topology has no object {object_name!r} "
            f"(available: {', '.join(available) or 'none'})")
    return topology


def _transform(topology):
    transform = topology.get("transform")
    if not transform:
        return None
    scale = np.asarray(transform.get("scale", (1.0, 1.0)), dtype=np.float64)
    translate = np.asarray(transform.get("translate", (0.0, 0.0)),
                           dtype=np.float64)
    return scale[:2], translate[:2]


def decode_arcs(topology):
    """Decode every arc of a topology to absolute lon/lat.

    Quantized topologies (those with a ``transform``) store each arc as
    delta-encoded integer positions; these are accumulated and then scaled
    and translated.

    Returns
    -------
    list of np.ndarray
        One (N, 2) float64 array per arc.
    """
    transform = _transform(topology)
    decoded = []
    for arc in topology.get("arcs", []):
        pts = np.asarray(arc, dtype=np.float64)
        pts = pts.reshape(-1, 2) if pts.size == 0 else pts[:, :2]
        if transform is not None:
            scale, translate = transform
            pts = np.cumsum(pts, axis=0) * scale + translate
        decoded.append(np.ascontiguousarray(pts))
    return decoded


def _arc_index(ref):
    return ~ref if ref < 0 else ref


def _nested(value):
    return value if isinstance(value, (list, tuple)) else []


def arc_coordinates(arcs, ref):
    """Points of one arc reference, reversed when ``ref`` is negative."""
    try:
        pts = arcs[_arc_index(ref)]
    except (IndexError, TypeError) as e:
        raise ValueError(f"Invalid arc reference {ref!r}") from e
    return pts[::-1] if ref < 0 else pts


def stitch(arcs, refs):
    """Join a sequence of arc references into one continuous line.

    Consecutive arcs share their junction point, so the last point of each
    arc is dropped before the next one is appended.
    """
    if not isinstance(refs, (list, tuple)):
        raise ValueError(f"Invalid arc list {refs!r}")
    points = []
    for ref in refs:
        pts = arc_coordinates(arcs, ref)
        if points:
            points.pop()
        points.extend(pts)
    if len(points) == 1:
        points.append(points[0])
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def _ring(arcs, refs):
    ring = stitch(arcs, refs)
    if 0 < len(ring) < 4:
        # keep degenerate rings renderable as closed paths
        pad = np.repeat(ring[:1], 4 - len(ring), axis=0)
        ring = np.vstack([ring, pad])
    return ring


def _point(transform, position):
    pt = np.asarray(position, dtype=np.float64)[:2]
    if transform is not None:
        scale, translate = transform
        pt = pt * scale + translate
    return pt


def _geometry(topology, arcs, obj):
    if not isinstance(obj, dict):
        raise ValueError(f"Invalid topology geometry {obj!r}")
    gtype = obj.get("type")
    refs = obj.get("arcs") or []

    if gtype == "Point":
        return {"type": gtype,
                "coordinates": _point(_transform(topology),
                                      obj["coordinates"])}
    if gtype == "MultiPoint":
        transform = _transform(topology)
        return {"type": gtype,
                "coordinates": [_point(transform, p)
                                for p in obj.get("coordinates", [])]}
    if gtype == "LineString":
        return {"type": gtype, "coordinates": stitch(arcs, refs)}
    if gtype == "MultiLineString":
        return {"type": gtype,
                "coordinates": [stitch(arcs, line) for line in refs]}
    if gtype == "Polygon":
        return {"type": gtype,
                "coordinates": [_ring(arcs, ring) for ring in refs]}
    if gtype == "MultiPolygon":
        return {"type": gtype,
                "coordinates": [[_ring(arcs, ring) for ring in polygon]
                                for polygon in refs]}
    if gtype == "GeometryCollection":
        return {"type": gtype,
                "geometries": [_geometry(topology, arcs, g)
                               for g in _nested(obj.get("geometries"))]}
    return None


def feature(topology, obj, arcs=None):
    """Reconstruct the GeoJSON feature for a topology object.

    Parameters
    ----------
    topology : dict
        The topology.
    obj : dict or str
        A geometry object of the topology, or the name of one of its
        ``objects``.
    arcs : list of np.ndarray, optional
        Pre-decoded arcs from :func:`decode_arcs`, to avoid decoding once
        per call.

    Returns
    -------
    dict
        A GeoJSON Feature (``geometry`` is None for null geometry types), or
        a FeatureCollection when ``obj`` is a GeometryCollection.

    Raises
    ------
    ValueError
        ``obj`` references an arc the topology does not have, or its arcs
        or coordinates are not nested the way its type requires.
    """
    if isinstance(obj, str):
        obj = topology["objects"][obj]
    if not isinstance(obj, dict):
        raise ValueError(f"Invalid topology geometry {obj!r}")
    if arcs is None:
        arcs = decode_arcs(topology)

    if obj.get("type") == "GeometryCollection":
        return {"type": "FeatureCollection",
                "features": [feature(topology, g, arcs)
                             for g in _nested(obj.get("geometries"))]}

    try:
        geometry = _geometry(topology, arcs, obj)
    except (TypeError, KeyError, IndexError) as e:
        raise ValueError(
            f"Invalid arcs or coordinates for {obj.get('type')}: {e!r}") from e

    out = {
        "type": "Feature",
        "properties": obj.get("properties") or {},
        "geometry": geometry,
    }
    if obj.get("id") is not None:
        out["id"] = obj["id"]
    return out


def _collect_arc_owners(obj, owners):
    """Map arc index -> geometries referencing it, in reference order.

    Malformed references are ignored here; :func:`feature` reports them.
    """
    if not isinstance(obj, dict):
        return
    gtype = obj.get("type")
    refs = _nested(obj.get("arcs"))

    def add(ring):
        for ref in _nested(ring):
            if not isinstance(ref, int):
                continue
            owners.setdefault(_arc_index(ref), []).append(obj)

    if gtype == "GeometryCollection":
        for g in _nested(obj.get("geometries")):
            _collect_arc_owners(g, owners)
    elif gtype == "LineString":
        add(refs)
    elif gtype in ("MultiLineString", "Polygon"):
        for ring in refs:
            add(ring)
    elif gtype == "MultiPolygon":
        for polygon in refs:
            for ring in _nested(polygon):
                add(ring)


def mesh_arcs(topology, obj=None, filter=None, arcs=None):
    """Unique arcs of an object, each returned once.

    Parameters
    ----------
    topology : dict
        The topology.
    obj : dict or str, optional
        Object to draw arcs from (or its name).  When omitted every arc of
        the topology is returned.
    filter : callable, optional
        ``filter(a, b)`` receives the first and last geometry that reference
        an arc and returns True to keep it.  ``lambda a, b: a is not b``
        keeps only arcs shared by two different geometries.
    arcs : list of np.ndarray, optional
        Pre-decoded arcs from :func:`decode_arcs`.

    Returns
    -------
    list of np.ndarray
        (N, 2) lon/lat polylines, ordered by arc index.  References to
        arcs missing from the table are left out here; :func:`feature`
        reports them for the geometry concerned.
    """
    if arcs is None:
        arcs = decode_arcs(topology)
    if obj is None:
        return list(arcs)
    if isinstance(obj, str):
        obj = topology["objects"][obj]

    owners = {}
    _collect_arc_owners(obj, owners)
    lines = []
    for index in sorted(owners):
        geoms = owners[index]
        if index >= len(arcs):
            continue
        if filter is not None and not filter(geoms[0], geoms[-1]):
            continue
        lines.append(arcs[index])
    return lines
