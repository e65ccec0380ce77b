"""GeoJSON loading and the polygon geometry model.

Features are normalised to ``(geometry, properties, id)`` triples and their
geometry dicts parsed into a small tagged union so that the rest of the
pipeline dispatches on class instead of on ``"type"`` strings.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path


GEOMETRY_TYPES = ("Point", "MultiPoint", "LineString", "MultiLineString",
                  "Polygon", "MultiPolygon")


# ---------------------------------------------------------------------------
# Geometry model
# ---------------------------------------------------------------------------

@dataclass
class PolygonGeometry:
    """One polygon: ``rings[0]`` is the exterior, the rest are holes."""

    rings: list = field(default_factory=list)

    @property
    def polygons(self):
        return [self.rings]


@dataclass
class MultiPolygonGeometry:
    """Ordered polygon parts of a single feature."""

    polygons: list = field(default_factory=list)


@dataclass
class UnsupportedGeometry:
    """Any geometry the fill pipeline cannot triangulate."""

    type_name: str


def _parse_rings(rings):
    if rings is None:
        return []
    try:
        return list(rings)
    except TypeError:
        # scalar coordinates, rejected later as a malformed ring
        return [rings]


def parse_geometry(geometry):
    """Parse a GeoJSON geometry dict into the tagged union.

    Parameters
    ----------
    geometry : dict or None
        GeoJSON geometry object.

    Returns
    -------
    PolygonGeometry, MultiPolygonGeometry or UnsupportedGeometry
        ``None`` input, anything that is not a dict and non-polygonal types
        all map to :class:`UnsupportedGeometry`.  Rings are kept as given;
        they are validated when preprocessed, so one bad ring cannot abort
        parsing.
    """
    if geometry is None:
        return UnsupportedGeometry("None")
    if not isinstance(geometry, dict):
        return UnsupportedGeometry(type(geometry).__name__)
    if not geometry:
        return UnsupportedGeometry("None")
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")

    if gtype == "Polygon":
        return PolygonGeometry(_parse_rings(coords))
    if gtype == "MultiPolygon":
        return MultiPolygonGeometry(
            [_parse_rings(p) for p in _parse_rings(coords)])
    return UnsupportedGeometry(str(gtype))


# ---------------------------------------------------------------------------
# Feature loading
# ---------------------------------------------------------------------------

def _read_json(source, what):
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"{what} file not found: {path}")
        with open(path) as f:
            source = json.load(f)
    if not isinstance(source, dict):
        raise TypeError(f"Expected dict, str, or Path, got {type(source)}")
    return source


def load_geojson(geojson):
    """Load GeoJSON and normalise to ``[(geometry, properties, id), ...]``.

    Parameters
    ----------
    geojson : str, Path, or dict
        File path or parsed GeoJSON object: a FeatureCollection, a Feature,
        a GeometryCollection or a bare geometry.

    Returns
    -------
    list of (dict or None, dict, object)
        Geometry dict (``None`` when a feature has no geometry), properties
        and the feature id (``None`` if absent).

    Raises
    ------
    FileNotFoundError
        A path was given and does not exist.
    TypeError
        ``geojson`` is not a dict, str or Path.
    ValueError
        The object's ``type`` is not a GeoJSON type.
    """
    geojson = _read_json(geojson, "GeoJSON")
    gtype = geojson.get("type")

    if gtype == "FeatureCollection":
        results = []
        for feature in geojson.get("features", []):
            results.extend(load_geojson(feature))
        return results

    if gtype == "Feature":
        props = geojson.get("properties") or {}
        return [(geojson.get("geometry"), props, geojson.get("id"))]

    if gtype == "GeometryCollection":
        return [(g, {}, None) for g in geojson.get("geometries", [])]

    # Bare geometry
    if gtype in GEOMETRY_TYPES:
        return [(geojson, {}, None)]

    raise ValueError(f"Unsupported GeoJSON type: {gtype}")


def sanitize_label(value):
    """Clean a property value for use in a mesh name.

    Replaces non-alphanumeric characters with '-' and strips leading/trailing
    dashes.
    """
    if value is None:
        return "unknown"
    s = re.sub(r"[^a-zA-Z0-9]", "-", str(value))
    s = s.strip("-")
    return s or "unknown"


def feature_name(properties, feature_id=None, index=0):
    """Display name of a feature.

    Looks at ``NAME`` then ``name`` in the properties, then the feature id,
    and finally falls back to ``country_<index>``.
    """
    if not isinstance(properties, dict):
        properties = {}
    for key in ("NAME", "name"):
        value = properties.get(key)
        if value:
            return str(value)
    if feature_id is not None and feature_id != "":
        return str(feature_id)
    return f"country_{index}"
