"""Tests for TriangulationConfig."""

import dataclasses

import pytest

from globemesh.config import DEFAULT_CONFIG, TriangulationConfig


class TestDefaults:
    def test_values(self):
        config = TriangulationConfig()
        assert config.radius == 2.0
        assert config.border_offset == 0.001
        assert config.radial_offset == 0.003
        assert config.use_spherical_winding is True
        assert config.invert_winding is False
        assert config.enable_fill_meshes is True
        assert config.debug is False

    def test_border_radius(self):
        assert DEFAULT_CONFIG.border_radius == pytest.approx(2.001)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.radius = 5.0


class TestValidation:
    @pytest.mark.parametrize("radius", [0, -1.0, float("nan"), float("inf")])
    def test_bad_radius(self, radius):
        with pytest.raises(ValueError):
            TriangulationConfig(radius=radius)

    @pytest.mark.parametrize("field", ["border_offset", "radial_offset"])
    def test_negative_offset(self, field):
        with pytest.raises(ValueError):
            TriangulationConfig(**{field: -0.1})

    @pytest.mark.parametrize("value", ["2", None, True])
    def test_non_numeric(self, value):
        with pytest.raises(ValueError):
            TriangulationConfig(radius=value)

    def test_integer_radius(self):
        assert TriangulationConfig(radius=1).radius == 1

    def test_zero_offsets(self):
        config = TriangulationConfig(border_offset=0, radial_offset=0)
        assert config.border_radius == config.radius


class TestConstruction:
    def test_with_options(self):
        config = DEFAULT_CONFIG.with_options(radius=5.0, debug=True)
        assert config.radius == 5.0 and config.debug
        assert DEFAULT_CONFIG.radius == 2.0

    def test_with_options_validates(self):
        with pytest.raises(ValueError):
            DEFAULT_CONFIG.with_options(radius=-2)

    def test_from_mapping(self):
        config = TriangulationConfig.from_mapping(
            {'radius': 3.0, 'invert_winding': True})
        assert config.radius == 3.0
        assert config.invert_winding

    def test_from_none(self):
        assert TriangulationConfig.from_mapping(None) == DEFAULT_CONFIG

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="radiuss"):
            TriangulationConfig.from_mapping({'radiuss': 3.0})
