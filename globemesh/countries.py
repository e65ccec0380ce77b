"""Per-country fill meshes from GeoJSON-style geometry.

Each polygon goes through the same pipeline::

    rings -> preprocess (closure, unwrap, winding) -> earcut -> assemble

and the parts of a MultiPolygon are merged into one non-indexed mesh per
country.  Bad data never aborts a batch: the offending polygon or feature
is left out and reported as a :class:`~globemesh.diagnostics.SkippedFeature`.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ._array_utils import as_lonlat_array
from .config import DEFAULT_CONFIG
from .diagnostics import (SkippedFeature, triangulation_report,
                          warn_if_inverted, warn_skipped)
from .geojson import (MultiPolygonGeometry, PolygonGeometry,
                      UnsupportedGeometry, feature_name, load_geojson,
                      parse_geometry, sanitize_label)
from .mesh import assemble, line_segments, merge_meshes
from .rings import preprocess_polygon
from .triangulate import IndexRangeError, TriangulationError, triangulate


@dataclass
class CountryMesh:
    """Mesh data for one country feature.

    Attributes
    ----------
    id : object
        Feature (or topology geometry) id, None if absent.
    name : str
        Display name.
    properties : dict
        Feature properties, passed through untouched.
    mesh : Mesh
        Merged non-indexed fill mesh of every polygon part that succeeded.
    part_count : int
        Number of polygon parts merged into ``mesh``.
    outline : LineMesh or None
        Closed exterior outlines, when requested.
    """

    id: object
    name: str
    properties: dict
    mesh: object
    part_count: int
    outline: object = None


@dataclass
class CountryBatch:
    """Result of a batch run: meshes in input order plus what was skipped."""

    countries: list = field(default_factory=list)
    skipped: list = field(default_factory=list)

    def __iter__(self):
        return iter(self.countries)

    def __len__(self):
        return len(self.countries)


def _hole_starts(exterior, holes):
    starts = []
    offset = len(exterior)
    for hole in holes:
        starts.append(offset)
        offset += len(hole)
    return starts


def _polygon_mesh(rings, config, name, user_data=None, skipped=None):
    exterior, holes, kept = preprocess_polygon(rings, config, name, skipped)
    vertices, triangles = triangulate(exterior, holes, config.radius, name)

    if config.debug:
        original = [as_lonlat_array(rings[i]) for i in kept]
        print("\n".join(triangulation_report(
            name, original, [exterior] + holes,
            _hole_starts(exterior, holes), vertices, triangles,
            use_spherical_winding=config.use_spherical_winding,
            invert_winding=config.invert_winding,
        )))
        warn_if_inverted(triangles, vertices, name)

    mesh = assemble(vertices, triangles, config.radial_offset,
                    user_data=user_data, name=name)
    return mesh, exterior


def polygon_mesh(rings, config=None, name="polygon", user_data=None):
    """Triangulate one polygon into a render-ready fill mesh.

    Parameters
    ----------
    rings : sequence of array-like
        ``[exterior, hole1, ...]`` lon/lat rings.
    config : TriangulationConfig, optional
        Defaults to :data:`~globemesh.config.DEFAULT_CONFIG`.
    name : str
        Label used in errors, warnings and debug output.
    user_data : dict, optional
        Metadata tags for the mesh.

    Returns
    -------
    Mesh
        Non-indexed mesh at ``config.radius`` plus the radial offset.

    Raises
    ------
    TriangulationError
        The exterior ring is malformed or triangulation failed.
    """
    config = config or DEFAULT_CONFIG
    mesh, _ = _polygon_mesh(rings, config, name, user_data)
    return mesh


def _skip_record(error):
    severity = "error" if isinstance(error, IndexRangeError) else "warning"
    return SkippedFeature(error.name, error.reason, str(error), severity)


def country_mesh(geometry, config=None, name="country", feature_id=None,
                 properties=None, kind="fill", outline=False):
    """Build the merged mesh for one feature's geometry.

    Parameters
    ----------
    geometry : dict or geometry model instance
        GeoJSON geometry dict, or the result of
        :func:`~globemesh.geojson.parse_geometry`.
    config : TriangulationConfig, optional
    name : str
        Country name; MultiPolygon parts are labelled ``<name>_<i>``.
    feature_id : object, optional
        Stored on the result and in the mesh tags.
    properties : dict, optional
        Feature properties.
    kind : {'fill', 'selection'}
        Tag for the scene layer.  Selection meshes honour
        ``config.enable_fill_meshes``.
    outline : bool
        Also build a closed outline of every exterior ring at
        ``config.border_radius``.

    Returns
    -------
    country : CountryMesh or None
        None when no polygon part could be triangulated.
    skipped : list of SkippedFeature
        Records for the parts (or the whole feature) that were left out.
        Nothing is warned here; callers decide how to report.
    """
    config = config or DEFAULT_CONFIG
    properties = dict(properties) if isinstance(properties, dict) else {}
    skipped = []

    if isinstance(geometry, (PolygonGeometry, MultiPolygonGeometry,
                             UnsupportedGeometry)):
        geom = geometry
    else:
        geom = parse_geometry(geometry)

    if isinstance(geom, UnsupportedGeometry):
        if geom.type_name == "None":
            skipped.append(SkippedFeature(name, "no-geometry",
                                          "feature has no geometry"))
        else:
            skipped.append(SkippedFeature(
                name, "unsupported-geometry",
                f"unsupported geometry type {geom.type_name}"))
        return None, skipped

    polygons = geom.polygons
    multi = isinstance(geom, MultiPolygonGeometry)
    parts = []
    exteriors = []
    for i, rings in enumerate(polygons):
        part_name = f"{name}_{i}" if multi else name
        try:
            mesh, exterior = _polygon_mesh(rings, config, part_name,
                                           skipped=skipped)
        except TriangulationError as e:
            skipped.append(_skip_record(e))
            continue
        parts.append(mesh)
        exteriors.append(exterior)

    if not parts:
        if not polygons:
            skipped.append(SkippedFeature(name, "empty-geometry",
                                          "geometry has no polygons"))
        return None, skipped

    tags = {
        'name': name,
        'mesh_id': f"{kind}-{sanitize_label(name)}",
        'type': kind,
        'feature_id': feature_id,
        'part_count': len(parts),
    }
    if kind == "selection":
        tags['visible'] = config.enable_fill_meshes
        tags['interactive'] = config.enable_fill_meshes
        tags['is_country'] = True
        tags['is_selection_mesh'] = True

    outline_mesh = None
    if outline:
        outline_mesh = line_segments(
            exteriors, config.border_radius, closed=True,
            user_data={'name': name, 'type': 'outline',
                       'feature_id': feature_id},
        )

    return CountryMesh(
        id=feature_id,
        name=name,
        properties=properties,
        mesh=merge_meshes(parts, user_data=tags),
        part_count=len(parts),
        outline=outline_mesh,
    ), skipped


def map_ordered(func, items, max_workers=None):
    """``list(map(func, items))``, fanned out over threads when asked.

    Output order always matches input order.
    """
    items = list(items)
    if max_workers is None or max_workers <= 1 or len(items) < 2:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(func, items))


def report_skipped(records):
    """Warn about every record, in order, from the calling thread."""
    for record in records:
        warn_skipped(record, stacklevel=4)


def build_country_meshes(features, config=None, max_workers=None,
                         kind="fill", outline=False):
    """Build one :class:`CountryMesh` per feature.

    Parameters
    ----------
    features : iterable of (geometry, properties, id)
        As returned by :func:`~globemesh.geojson.load_geojson`.
    config : TriangulationConfig, optional
    max_workers : int, optional
        Build features on a thread pool of this size.
    kind : {'fill', 'selection'}
        Mesh tag, see :func:`country_mesh`.
    outline : bool
        Also build per-country outlines.

    Returns
    -------
    CountryBatch
        Meshes for the features that produced at least one polygon, in
        input order, and the skip records (each also emitted as a warning).
    """
    config = config or DEFAULT_CONFIG

    def build(item):
        index, (geometry, properties, feature_id) = item
        name = feature_name(properties, feature_id, index)
        return country_mesh(geometry, config, name, feature_id, properties,
                            kind=kind, outline=outline)

    batch = CountryBatch()
    for country, skipped in map_ordered(build, enumerate(features),
                                        max_workers):
        if country is not None:
            batch.countries.append(country)
        batch.skipped.extend(skipped)
    report_skipped(batch.skipped)

    if config.debug:
        print(f"Built {len(batch.countries)} country meshes "
              f"({len(batch.skipped)} skipped)")
    return batch


def countries_from_geojson(geojson, config=None, max_workers=None):
    """Fill meshes and outlines for every polygonal feature in a GeoJSON.

    Parameters
    ----------
    geojson : str, Path, or dict
        File path or parsed GeoJSON object.
    config : TriangulationConfig, optional
    max_workers : int, optional
        Thread pool size for the per-feature work.

    Returns
    -------
    CountryBatch
        Every :class:`CountryMesh` carries a fill ``mesh`` and a closed
        ``outline``.
    """
    features = load_geojson(geojson)
    return build_country_meshes(features, config, max_workers,
                                kind="fill", outline=True)
