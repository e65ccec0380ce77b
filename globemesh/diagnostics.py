"""Validation checks and debug reports for generated country meshes.

None of these checks is fatal.  A failed outward-normal check means the
fill would render hollow, which is worth a loud warning while developing
but is still better than dropping the country.
"""

import warnings
from dataclasses import dataclass

import numpy as np

from ._array_utils import to_numpy
from .projection import lonlat_from_vector
from .winding import planar_signed_area


class GeometryWarning(UserWarning):
    """A feature or polygon part was skipped because of bad input data."""


class TriangulationContractWarning(RuntimeWarning):
    """The triangulator broke its own output contract (error severity)."""


class InvertedWindingWarning(UserWarning):
    """A mesh's first triangle faces the sphere centre."""


@dataclass(frozen=True)
class SkippedFeature:
    """Record of one feature (or polygon part) left out of a batch."""

    name: str
    reason: str
    detail: str = ""
    severity: str = "warning"

    def __str__(self):
        text = f"Skipping {self.name}: {self.reason}"
        if self.detail:
            text += f" ({self.detail})"
        return text


def warn_skipped(record, stacklevel=3):
    """Emit the warning that matches a :class:`SkippedFeature` severity."""
    category = (TriangulationContractWarning if record.severity == "error"
                else GeometryWarning)
    warnings.warn(str(record), category, stacklevel=stacklevel)


def check_index_range(triangles, vertex_count):
    """True when every triangle index is in ``[0, vertex_count)``."""
    tris = to_numpy(triangles)
    if tris.size == 0:
        return True
    return int(tris.min()) >= 0 and int(tris.max()) < vertex_count


def outward_normal_report(triangles, vertices):
    """Face normal, expected outward direction and their dot product.

    Parameters
    ----------
    triangles : array-like
        Flat triangle index list (only the first triangle is inspected).
        Pass ``None`` for a non-indexed buffer.
    vertices : array-like
        (N, 3) or flat (N*3,) vertex positions.

    Returns
    -------
    dict or None
        ``{'normal', 'expected', 'dot', 'is_outward'}``, or None if there is
        no complete triangle.
    """
    verts = to_numpy(vertices, dtype=np.float64).reshape(-1, 3)
    if triangles is None:
        if len(verts) < 3:
            return None
        a, b, c = 0, 1, 2
    else:
        tris = to_numpy(triangles).ravel()
        if tris.size < 3:
            return None
        a, b, c = (int(i) for i in tris[:3])

    va, vb, vc = verts[a], verts[b], verts[c]
    normal = np.cross(vb - va, vc - va)
    norm = np.linalg.norm(normal)
    if norm > 0.0:
        normal = normal / norm
    centroid = (va + vb + vc) / 3.0
    clen = np.linalg.norm(centroid)
    expected = centroid / clen if clen > 0.0 else centroid
    dot = float(np.dot(normal, expected))
    return {
        'normal': normal,
        'expected': expected,
        'dot': dot,
        'is_outward': dot > 0.0,
    }


def validate_outward_normal(triangles, vertices):
    """Check that the first triangle's normal points away from the origin.

    Returns False for an inverted triangle and for an empty triangle list.
    """
    report = outward_normal_report(triangles, vertices)
    return bool(report and report['is_outward'])


def warn_if_inverted(triangles, vertices, name):
    """Run :func:`validate_outward_normal` and warn when it fails."""
    report = outward_normal_report(triangles, vertices)
    if report is None or report['is_outward']:
        return True
    warnings.warn(
        f"{name}: first triangle faces inward (dot {report['dot']:.3f}); "
        "fill will render hollow. Try invert_winding=True or "
        "use_spherical_winding=False.",
        InvertedWindingWarning,
        stacklevel=3,
    )
    return False


def triangulation_report(name, original_rings, processed_rings, hole_indices,
                         vertices, triangles, use_spherical_winding=True,
                         invert_winding=False, sample_count=2):
    """Summarise one polygon's triangulation as printable lines.

    Parameters
    ----------
    name : str
        Polygon label.
    original_rings, processed_rings : list of array-like
        Rings before and after preprocessing, aligned by position.
    hole_indices : list of int
        Hole start offsets in the flattened vertex list.
    vertices : np.ndarray
        (N, 3) projected vertices.
    triangles : np.ndarray
        Flat triangle index list.
    use_spherical_winding, invert_winding : bool
        Configuration that produced ``processed_rings``.
    sample_count : int
        Number of leading triangles to list with positions.

    Returns
    -------
    list of str
    """
    verts = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    tris = np.asarray(triangles).ravel()
    lines = [
        f"Triangulating {name}: {len(original_rings)} rings "
        f"(1 outer + {len(original_rings) - 1} holes)",
        f"  Winding: {'spherical' if use_spherical_winding else 'planar'}, "
        f"outer {'CW' if invert_winding else 'CCW'}, "
        f"holes {'CCW' if invert_winding else 'CW'}",
        "  Original rings: "
        + ", ".join(str(len(r)) for r in original_rings),
        "  Processed rings: "
        + ", ".join(str(len(r)) for r in processed_rings),
    ]
    for i, (orig, proc) in enumerate(zip(original_rings, processed_rings)):
        orig_area = planar_signed_area(orig)
        proc_area = planar_signed_area(proc)
        closure = ("removed" if len(orig) != len(proc) else "not needed")
        reversed_ = (orig_area > 0) != (proc_area > 0)
        lines.append(
            f"  Ring {i}: closure {closure}, "
            f"winding {'reversed' if reversed_ else 'kept'} "
            f"({'CCW' if proc_area > 0 else 'CW'})"
        )
    lines.append(f"  Hole indices: {list(hole_indices)}")
    lines.append(f"  Vertices: {len(verts)}")
    if tris.size:
        lines.append(
            f"  Triangles: {tris.size // 3} ({tris.size} indices), "
            f"index range {int(tris.min())} to {int(tris.max())}"
        )
        for t in range(min(sample_count, tris.size // 3)):
            a, b, c = (int(i) for i in tris[3 * t:3 * t + 3])
            pts = " ".join(
                f"[{verts[k, 0]:.2f}, {verts[k, 1]:.2f}, {verts[k, 2]:.2f}]"
                for k in (a, b, c)
            )
            lon, lat = lonlat_from_vector(*verts[[a, b, c]].mean(axis=0))
            lines.append(f"    Triangle {t}: [{a}, {b}, {c}] {pts} "
                         f"near lon {lon:.2f}, lat {lat:.2f}")
        report = outward_normal_report(tris, verts)
        if report is not None:
            n, e = report['normal'], report['expected']
            lines.append(
                f"  First triangle normal [{n[0]:.3f}, {n[1]:.3f}, {n[2]:.3f}]"
                f" vs outward [{e[0]:.3f}, {e[1]:.3f}, {e[2]:.3f}]: "
                f"dot {report['dot']:.3f} "
                f"({'outward' if report['is_outward'] else 'INVERTED'})"
            )
    else:
        lines.append("  Triangles: 0")
    return lines
