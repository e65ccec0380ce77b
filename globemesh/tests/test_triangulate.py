"""Tests for ear-clipping triangulation and its output contract."""

import numpy as np
import pytest

from globemesh.config import TriangulationConfig
from globemesh.diagnostics import check_index_range, validate_outward_normal
from globemesh.rings import preprocess_polygon, preprocess_ring
from globemesh.triangulate import (
    EmptyTriangulationError,
    IndexRangeError,
    MalformedRingError,
    TriangulationError,
    expected_triangle_count,
    prepare_triangulation_data,
    triangulate,
    validate_triangles,
)
from globemesh.winding import is_counter_clockwise

SQUARE = [[0, 0], [10, 0], [10, 10], [0, 10]]
HOLE = [[3, 3], [3, 6], [6, 6], [6, 3]]


class TestPrepareTriangulationData:
    def test_hole_indices(self):
        v2, holes, v3 = prepare_triangulation_data(SQUARE, [HOLE, HOLE], 2.0)
        assert v2.shape == (12, 2)
        assert holes == [4, 8]
        assert v3.shape == (12, 3)

    def test_rows_aligned(self):
        v2, _, v3 = prepare_triangulation_data(SQUARE, [], 2.0)
        np.testing.assert_allclose(np.linalg.norm(v3, axis=1), 2.0)
        np.testing.assert_array_equal(v2, SQUARE)


class TestTriangulate:
    def test_square(self):
        vertices, triangles = triangulate(preprocess_ring(SQUARE))
        assert vertices.shape == (4, 3)
        assert triangles.dtype == np.uint32
        assert len(triangles) == 6
        assert triangles.max() < 4

    def test_square_with_hole(self):
        exterior = preprocess_ring(SQUARE)
        hole = preprocess_ring(HOLE, is_exterior=False)
        vertices, triangles = triangulate(exterior, [hole])
        assert len(vertices) == 8
        assert len(triangles) // 3 == expected_triangle_count(4, [4]) == 8
        assert check_index_range(triangles, len(vertices))

    @pytest.mark.parametrize("invert", [False, True])
    def test_outward_regardless_of_input_winding(self, invert):
        ring = preprocess_ring(SQUARE, invert=invert)
        vertices, triangles = triangulate(ring, radius=2.0)
        assert validate_outward_normal(triangles, vertices)

    def test_antimeridian_ring(self):
        ring = preprocess_ring(
            [[170, -10], [-170, -10], [-170, 10], [170, 10], [170, -10]])
        vertices, triangles = triangulate(ring, radius=2.0)
        assert check_index_range(triangles, len(vertices))
        assert validate_outward_normal(triangles, vertices)
        np.testing.assert_allclose(np.linalg.norm(vertices, axis=1), 2.0)

    def test_radius(self):
        vertices, _ = triangulate(SQUARE, radius=5.0)
        np.testing.assert_allclose(np.linalg.norm(vertices, axis=1), 5.0)

    def test_short_exterior(self):
        with pytest.raises(MalformedRingError):
            triangulate([[0, 0], [1, 1]], name="short")

    def test_collinear_ring_has_no_triangles(self):
        with pytest.raises(EmptyTriangulationError) as exc:
            triangulate([[0, 0], [1, 0], [2, 0]], name="line")
        assert exc.value.reason == "no-triangles"
        assert "line" in str(exc.value)


class TestValidateTriangles:
    def test_valid(self):
        validate_triangles(np.array([0, 1, 2], dtype=np.uint32), 3)

    def test_empty(self):
        with pytest.raises(EmptyTriangulationError):
            validate_triangles(np.array([], dtype=np.uint32), 3)

    def test_out_of_range(self):
        with pytest.raises(IndexRangeError) as exc:
            validate_triangles(np.array([0, 1, 5]), 3, name="bad")
        assert exc.value.name == "bad"
        assert exc.value.reason == "index-out-of-range"

    def test_negative(self):
        with pytest.raises(IndexRangeError):
            validate_triangles(np.array([0, 1, -1]), 3)

    def test_partial_triangle(self):
        with pytest.raises(IndexRangeError):
            validate_triangles(np.array([0, 1, 2, 0]), 3)


class TestErrors:
    def test_hierarchy(self):
        for cls in (MalformedRingError, EmptyTriangulationError,
                    IndexRangeError):
            assert issubclass(cls, TriangulationError)
        assert issubclass(TriangulationError, ValueError)

    def test_expected_triangle_count(self):
        assert expected_triangle_count(4) == 2
        assert expected_triangle_count(5, [3, 3]) == 13


def _star(rng, center, r_min, r_max, n):
    angles = (np.arange(n) + rng.uniform(0.0, 0.8, n)) * (2.0 * np.pi / n)
    radii = rng.uniform(r_min, r_max, n)
    lon = center[0] + radii * np.cos(angles)
    lat = center[1] + radii * np.sin(angles)
    # fold back to [-180, 180) the way source data stores it
    lon = ((lon + 180.0) % 360.0) - 180.0
    return np.column_stack([lon, lat])


class TestRandomPolygons:
    @pytest.mark.parametrize("spherical", [True, False])
    @pytest.mark.parametrize("invert", [False, True])
    def test_contract_holds(self, spherical, invert):
        config = TriangulationConfig(invert_winding=invert,
                                     use_spherical_winding=spherical)
        rng = np.random.default_rng(1234)
        for i in range(100):
            # every fourth polygon straddles the antimeridian
            lon0 = rng.uniform(175.0, 185.0) if i % 4 == 0 \
                else rng.uniform(-170.0, 170.0)
            center = (lon0, rng.uniform(-60.0, 60.0))
            outer = _star(rng, center, 4.0, 10.0, int(rng.integers(8, 30)))
            inner = _star(rng, center, 0.5, 2.0, int(rng.integers(4, 10)))

            exterior, holes, _ = preprocess_polygon([outer, inner], config)
            hole, = holes
            assert is_counter_clockwise(exterior, spherical) is not invert
            assert is_counter_clockwise(hole, spherical) is invert
            assert np.all(np.abs(np.diff(exterior[:, 0])) <= 180.0)
            assert abs(hole[0, 0] - exterior[0, 0]) <= 180.0

            vertices, triangles = triangulate(exterior, [hole], radius=2.0)
            assert len(vertices) == len(exterior) + len(hole)
            assert len(triangles) % 3 == 0
            assert check_index_range(triangles, len(vertices))
            assert validate_outward_normal(triangles, vertices)
