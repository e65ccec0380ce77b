"""Unified country borders and selection meshes from a TopoJSON topology.

Drawing every country's outline separately draws every shared border
twice, and the two copies z-fight.  Here borders come from the topology's
arc table instead, so each border segment exists exactly once, and the
per-country fill meshes are kept separately for hit-testing.
"""

from dataclasses import dataclass, field

from .config import DEFAULT_CONFIG
from .countries import country_mesh, map_ordered, report_skipped
from .diagnostics import SkippedFeature
from .geojson import feature_name
from .mesh import line_segments
from .topology import decode_arcs, feature, load_topology, mesh_arcs


@dataclass
class UnifiedBorderResult:
    """Everything :func:`extract_borders` produces.

    Attributes
    ----------
    border_mesh : LineMesh
        Every de-duplicated arc as segment pairs, at the border radius.
    selection_meshes : list of CountryMesh
        One per country that triangulated, in topology order.
    country_count : int
        Geometries in the topology object (including skipped ones).
    arc_count : int
        Arcs drawn into ``border_mesh``.
    skipped : list of SkippedFeature
    """

    border_mesh: object
    selection_meshes: list = field(default_factory=list)
    country_count: int = 0
    arc_count: int = 0
    skipped: list = field(default_factory=list)


def _shared_by_two(a, b):
    return a is not b


def _object_geometries(obj):
    if obj.get("type") == "GeometryCollection":
        geometries = obj.get("geometries")
        return list(geometries) if isinstance(geometries, list) else []
    return [obj]


def extract_borders(topology, config=None, object_name="countries",
                    max_workers=None, interior_borders_only=False):
    """Border lines and per-country selection meshes from one topology.

    Parameters
    ----------
    topology : str, Path, or dict
        TopoJSON topology, or a path to one.
    config : TriangulationConfig, optional
        Defaults to :data:`~globemesh.config.DEFAULT_CONFIG`.
    object_name : str
        Topology object holding the countries.
    max_workers : int, optional
        Build selection meshes on a thread pool of this size.
    interior_borders_only : bool
        Only draw arcs shared by two different countries (coastlines are
        left out).

    Returns
    -------
    UnifiedBorderResult

    Raises
    ------
    TypeError, ValueError, FileNotFoundError
        ``topology`` is not a readable topology or lacks ``object_name``.
        Problems with individual countries are reported in
        ``result.skipped`` and as warnings instead.
    """
    config = config or DEFAULT_CONFIG
    topology = load_topology(topology, object_name)
    obj = topology["objects"][object_name]
    arcs = decode_arcs(topology)

    lines = mesh_arcs(topology, obj,
                      filter=_shared_by_two if interior_borders_only else None,
                      arcs=arcs)
    border_mesh = line_segments(
        lines, config.border_radius, closed=False,
        user_data={'name': 'unified-borders', 'type': 'border',
                   'is_unified_border': True},
    )

    geometries = _object_geometries(obj)

    def build(item):
        index, geometry = item
        if not isinstance(geometry, dict):
            return None, [SkippedFeature(
                f"country_{index}", "unsupported-geometry",
                f"geometry is a {type(geometry).__name__}, not an object")]
        name = feature_name(geometry.get("properties"), geometry.get("id"),
                            index)
        try:
            geojson_feature = feature(topology, geometry, arcs)
        except ValueError as e:
            return None, [SkippedFeature(name, "invalid-arcs", str(e))]
        country, skipped = country_mesh(
            geojson_feature.get("geometry"), config, name,
            feature_id=geometry.get("id"),
            properties=geometry.get("properties"),
            kind="selection",
        )
        if country is not None:
            country.mesh.user_data['topo_id'] = geometry.get("id")
            country.mesh.user_data['properties'] = country.properties
        return country, skipped

    result = UnifiedBorderResult(
        border_mesh=border_mesh,
        country_count=len(geometries),
        arc_count=len(lines),
    )
    for country, skipped in map_ordered(build, enumerate(geometries),
                                        max_workers):
        if country is not None:
            result.selection_meshes.append(country)
        result.skipped.extend(skipped)
    report_skipped(result.skipped)

    if config.debug:
        print(f"Created unified borders: {result.country_count} countries, "
              f"{result.arc_count} arcs, "
              f"{len(result.selection_meshes)} selection meshes")
    return result
