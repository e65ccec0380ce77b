"""Tests for unified border extraction from a topology."""

import json

import numpy as np
import pytest

from globemesh.borders import UnifiedBorderResult, extract_borders
from globemesh.config import TriangulationConfig
from globemesh.diagnostics import GeometryWarning, validate_outward_normal
from globemesh.mesh import LineMesh


def _topology():
    """Two 10x10 degree countries sharing the meridian at lon=10."""
    return {
        "type": "Topology",
        "arcs": [
            [[10, 0], [10, 10]],
            [[10, 10], [0, 10], [0, 0], [10, 0]],
            [[10, 0], [20, 0], [20, 10], [10, 10]],
        ],
        "objects": {
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "arcs": [[0, 1]], "id": "A",
                     "properties": {"NAME": "Alpha"}},
                    {"type": "Polygon", "arcs": [[2, -1]], "id": "B",
                     "properties": {"NAME": "Beta"}},
                ],
            },
        },
    }


class TestBorderMesh:
    def test_counts(self):
        result = extract_borders(_topology())
        assert isinstance(result, UnifiedBorderResult)
        assert isinstance(result.border_mesh, LineMesh)
        assert result.arc_count == 3
        assert result.country_count == 2
        # open paths: 1 + 3 + 3 segments
        assert result.border_mesh.segment_count == 7
        assert result.border_mesh.vertex_count == 10

    def test_border_radius(self):
        config = TriangulationConfig(radius=2.0, border_offset=0.001)
        result = extract_borders(_topology(), config)
        np.testing.assert_allclose(
            np.linalg.norm(result.border_mesh.positions, axis=1), 2.001,
            rtol=1e-6)

    def test_tags(self):
        tags = extract_borders(_topology()).border_mesh.user_data
        assert tags['type'] == 'border'
        assert tags['name'] == 'unified-borders'

    def test_interior_borders_only(self):
        result = extract_borders(_topology(), interior_borders_only=True)
        assert result.arc_count == 1
        assert result.border_mesh.segment_count == 1

    def test_accepts_path(self, tmp_path):
        path = tmp_path / "topo.json"
        path.write_text(json.dumps(_topology()))
        assert extract_borders(path).arc_count == 3


class TestSelectionMeshes:
    def test_one_per_country(self):
        result = extract_borders(_topology())
        names = [c.name for c in result.selection_meshes]
        assert names == ["Alpha", "Beta"]
        assert result.skipped == []

    def test_metadata(self):
        country = extract_borders(_topology()).selection_meshes[1]
        tags = country.mesh.user_data
        assert tags['type'] == 'selection'
        assert tags['topo_id'] == 'B'
        assert tags['properties'] == {"NAME": "Beta"}
        assert tags['visible'] and tags['interactive']
        assert country.id == 'B'

    def test_geometry(self):
        config = TriangulationConfig(radius=2.0, radial_offset=0.003)
        country = extract_borders(_topology(), config).selection_meshes[0]
        mesh = country.mesh
        assert not mesh.is_indexed
        assert mesh.triangle_count == 2
        np.testing.assert_allclose(np.linalg.norm(mesh.positions, axis=1),
                                   2.003, rtol=1e-5)
        assert validate_outward_normal(None, mesh.vertices)

    def test_fill_disabled_still_builds_placeholders(self):
        config = TriangulationConfig(enable_fill_meshes=False)
        result = extract_borders(_topology(), config)
        assert len(result.selection_meshes) == 2
        for country in result.selection_meshes:
            assert country.mesh.user_data['visible'] is False
            assert country.mesh.user_data['interactive'] is False

    def test_skips_without_aborting(self):
        topo = _topology()
        geometries = topo["objects"]["countries"]["geometries"]
        geometries.insert(1, {"type": "LineString", "arcs": [0], "id": "L"})
        geometries.append({"type": None, "id": "Z"})
        geometries.append({"type": "Polygon", "arcs": [[42]], "id": "Q"})

        with pytest.warns(GeometryWarning):
            result = extract_borders(topo)

        assert result.country_count == 5
        assert [c.id for c in result.selection_meshes] == ["A", "B"]
        reasons = [s.reason for s in result.skipped]
        assert reasons == ["unsupported-geometry", "no-geometry",
                           "invalid-arcs"]

    def test_malformed_geometries_do_not_abort(self):
        topo = _topology()
        geometries = topo["objects"]["countries"]["geometries"]
        geometries[1:1] = [
            {"type": "Polygon", "arcs": [0], "id": "P"},
            {"type": "Point", "id": "N"},
            {"type": "MultiPolygon", "arcs": [[0]], "id": "M"},
            {"type": "Polygon", "arcs": [["x"]], "id": "X"},
            "not-a-geometry",
        ]

        with pytest.warns(GeometryWarning):
            result = extract_borders(topo, interior_borders_only=True)

        assert [c.id for c in result.selection_meshes] == ["A", "B"]
        assert result.country_count == 7
        assert result.arc_count == 1
        assert [(s.name, s.reason) for s in result.skipped] == [
            ("P", "invalid-arcs"),
            ("N", "invalid-arcs"),
            ("M", "invalid-arcs"),
            ("X", "invalid-arcs"),
            ("country_5", "unsupported-geometry"),
        ]

    def test_threads_preserve_order(self):
        result = extract_borders(_topology(), max_workers=4)
        assert [c.id for c in result.selection_meshes] == ["A", "B"]


class TestCallerErrors:
    def test_missing_object(self):
        with pytest.raises(ValueError):
            extract_borders(_topology(), object_name="land")

    def test_not_a_dict(self):
        with pytest.raises(TypeError):
            extract_borders(42)
