"""Per-call configuration for the triangulation pipeline."""

from dataclasses import dataclass, fields, replace
import math


@dataclass(frozen=True)
class TriangulationConfig:
    """Settings shared by every stage of mesh generation.

    Parameters
    ----------
    radius : float
        Globe radius in scene units.
    border_offset : float
        Extra radius for border lines so they draw above fills.
    radial_offset : float
        Outward push applied to fill meshes to avoid z-fighting with the
        globe surface.
    use_spherical_winding : bool
        Judge ring orientation with the spherical area measure instead of
        the planar shoelace.
    invert_winding : bool
        Flip the exterior/hole winding targets, for data in a mirrored
        coordinate frame.
    enable_fill_meshes : bool
        When False, selection meshes are still built but tagged as
        invisible, non-interactive placeholders.
    debug : bool
        Print a triangulation report per polygon and warn about meshes that
        fail the outward-normal check.
    """

    radius: float = 2.0
    border_offset: float = 0.001
    radial_offset: float = 0.003
    use_spherical_winding: bool = True
    invert_winding: bool = False
    enable_fill_meshes: bool = True
    debug: bool = False

    def __post_init__(self):
        for name in ("radius", "border_offset", "radial_offset"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")
        if self.radius <= 0:
            raise ValueError(f"radius must be positive, got {self.radius}")
        if self.border_offset < 0 or self.radial_offset < 0:
            raise ValueError("offsets must be non-negative")

    @property
    def border_radius(self):
        """Radius at which border lines are projected."""
        return self.radius + self.border_offset

    def with_options(self, **overrides):
        """Return a copy with some fields replaced."""
        return replace(self, **overrides)

    @classmethod
    def from_mapping(cls, data):
        """Build a config from a plain mapping, rejecting unknown keys.

        >>> TriangulationConfig.from_mapping({'radius': 1.0}).radius
        1.0
        """
        if data is None:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"Unknown configuration key(s): {', '.join(unknown)}")
        return cls(**dict(data))


DEFAULT_CONFIG = TriangulationConfig()
