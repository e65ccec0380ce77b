from ._array_utils import has_cupy
from .config import TriangulationConfig, DEFAULT_CONFIG
from .projection import project, project_many, normalize_longitude
from .winding import (
    signed_area,
    planar_signed_area,
    spherical_signed_area,
    is_counter_clockwise,
)
from .rings import (
    preprocess_ring,
    preprocess_polygon,
    remove_ring_closure,
    unwrap_longitudes,
    ensure_winding,
)
from .triangulate import (
    triangulate,
    TriangulationError,
    MalformedRingError,
    EmptyTriangulationError,
    IndexRangeError,
)
from .mesh import (
    Mesh,
    LineMesh,
    assemble,
    merge_meshes,
    line_segments,
)
from .diagnostics import (
    GeometryWarning,
    TriangulationContractWarning,
    InvertedWindingWarning,
    SkippedFeature,
    validate_outward_normal,
)
from .geojson import load_geojson, parse_geometry
from .topology import load_topology
from .countries import (
    CountryMesh,
    polygon_mesh,
    build_country_meshes,
    countries_from_geojson,
)
from .borders import UnifiedBorderResult, extract_borders

__version__ = "0.1.0"
