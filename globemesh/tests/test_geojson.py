"""Tests for GeoJSON loading and geometry parsing."""

import json

import pytest

from globemesh.geojson import (
    MultiPolygonGeometry,
    PolygonGeometry,
    UnsupportedGeometry,
    feature_name,
    load_geojson,
    parse_geometry,
    sanitize_label,
)

SQUARE = [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]


class TestLoadGeojson:
    def test_feature_collection(self):
        fc = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "id": "A",
                 "geometry": {"type": "Polygon", "coordinates": [SQUARE]},
                 "properties": {"NAME": "a"}},
                {"type": "Feature",
                 "geometry": {"type": "Point", "coordinates": [3, 4]},
                 "properties": None},
            ],
        }
        result = load_geojson(fc)
        assert len(result) == 2
        geom, props, fid = result[0]
        assert geom["type"] == "Polygon"
        assert props == {"NAME": "a"}
        assert fid == "A"
        assert result[1][1] == {}
        assert result[1][2] is None

    def test_feature_without_geometry_is_kept(self):
        result = load_geojson({"type": "Feature", "geometry": None,
                               "properties": {"NAME": "Ghost"}})
        assert result == [(None, {"NAME": "Ghost"}, None)]

    def test_bare_geometry(self):
        result = load_geojson({"type": "MultiPolygon",
                               "coordinates": [[SQUARE]]})
        assert len(result) == 1
        assert result[0][1] == {}

    def test_geometry_collection(self):
        gc = {"type": "GeometryCollection", "geometries": [
            {"type": "Polygon", "coordinates": [SQUARE]},
            {"type": "LineString", "coordinates": [[0, 0], [1, 1]]},
        ]}
        assert len(load_geojson(gc)) == 2

    def test_file_path(self, tmp_path):
        path = tmp_path / "countries.geojson"
        path.write_text(json.dumps({"type": "Feature", "properties": {},
                                    "geometry": {"type": "Polygon",
                                                 "coordinates": [SQUARE]}}))
        assert len(load_geojson(path)) == 1
        assert len(load_geojson(str(path))) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_geojson(tmp_path / "nope.geojson")

    def test_bad_input_type(self):
        with pytest.raises(TypeError):
            load_geojson(42)

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Topology"):
            load_geojson({"type": "Topology"})


class TestParseGeometry:
    def test_polygon(self):
        geom = parse_geometry({"type": "Polygon", "coordinates": [SQUARE]})
        assert isinstance(geom, PolygonGeometry)
        assert len(geom.rings) == 1
        assert geom.polygons == [geom.rings]

    def test_multipolygon(self):
        geom = parse_geometry({"type": "MultiPolygon",
                               "coordinates": [[SQUARE], [SQUARE, SQUARE]]})
        assert isinstance(geom, MultiPolygonGeometry)
        assert [len(p) for p in geom.polygons] == [1, 2]

    @pytest.mark.parametrize("gtype", ["Point", "LineString", "Bogus"])
    def test_unsupported(self, gtype):
        geom = parse_geometry({"type": gtype, "coordinates": [0, 0]})
        assert isinstance(geom, UnsupportedGeometry)
        assert geom.type_name == gtype

    def test_none(self):
        assert parse_geometry(None) == UnsupportedGeometry("None")

    def test_missing_coordinates(self):
        assert parse_geometry({"type": "Polygon"}).rings == []

    def test_malformed_ring_does_not_raise(self):
        geom = parse_geometry({"type": "Polygon",
                               "coordinates": [[[0, 0], [1]]]})
        assert isinstance(geom, PolygonGeometry)

    @pytest.mark.parametrize("geometry, type_name", [
        ("not-a-geometry", "str"),
        ([[0, 0]], "list"),
        ({}, "None"),
    ])
    def test_not_a_geometry_object(self, geometry, type_name):
        assert parse_geometry(geometry) == UnsupportedGeometry(type_name)

    def test_scalar_coordinates_kept_as_one_ring(self):
        assert parse_geometry({"type": "Polygon", "coordinates": 5}).rings \
            == [5]
        geom = parse_geometry({"type": "MultiPolygon", "coordinates": [5]})
        assert geom.polygons == [[5]]


class TestLabels:
    def test_feature_name_prefers_NAME(self):
        assert feature_name({"NAME": "France", "name": "fr"}, "250") == "France"

    def test_feature_name_lowercase(self):
        assert feature_name({"name": "Chad"}) == "Chad"

    def test_feature_name_id(self):
        assert feature_name({}, 250) == "250"

    def test_feature_name_fallback(self):
        assert feature_name(None, None, 7) == "country_7"

    def test_sanitize_label(self):
        assert sanitize_label("Côte d'Ivoire") == "C-te-d-Ivoire"
        assert sanitize_label(None) == "unknown"
        assert sanitize_label("!!!") == "unknown"
