"""Intersections between axis-aligned boxes and the unit sphere.

All routines here work on a box in the positive orthant; the McCormick
emitter reflects their results into the other orthants with `flip_vector`.
"""

from __future__ import annotations

import itertools
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .constants import COLINEAR_TOL, COPLANAR_TOL, FACET_TOL, SPHERE_CONTACT_TOL, Solver
from .indexing import orthant_sign_mask
from .program import Maximize, Program


logger = logging.getLogger(__name__)

# Points closer than this are the same vertex of the intersection region.
_DUPLICATE_TOL = 1e-9


class InvalidGeometryError(RuntimeError):
    """Input points are too degenerate to define the requested plane."""


class RelaxationInvariantError(RuntimeError):
    """A computed relaxation broke a property it is guaranteed to have."""


def flip_vector(vec, orthant: int) -> np.ndarray:
    """Reflect a positive-orthant vector into `orthant`."""
    return orthant_sign_mask(orthant) * np.asarray(vec, dtype=float)


def _on_sphere(norm: float) -> bool:
    return abs(norm - 1.0) <= SPHERE_CONTACT_TOL


def _append_unique(points: List[np.ndarray], pt: np.ndarray) -> None:
    if all(np.linalg.norm(pt - q) > _DUPLICATE_TOL for q in points):
        points.append(pt)


def box_sphere_intersection_vertices(box_min, box_max) -> List[np.ndarray]:
    """Vertices of the region where the unit sphere crosses the box.

    Returns a single point when the sphere only touches the box at its min or
    max corner. Otherwise returns the box corners lying on the sphere plus one
    point per box edge whose endpoints straddle the sphere. Since the box is
    in the positive orthant, the norm grows along every edge, so each edge
    crosses the sphere at most once.
    """
    bmin = np.asarray(box_min, dtype=float)
    bmax = np.asarray(box_max, dtype=float)
    if bmin.shape != (3,) or bmax.shape != (3,):
        raise ValueError("Box corners must be 3-vectors")
    if np.any(bmin < 0):
        raise ValueError(f"Box must lie in the positive orthant, got box_min={bmin}")
    if np.any(bmax <= bmin):
        raise ValueError(f"Box must satisfy box_max > box_min, got {bmin} and {bmax}")

    min_norm = np.linalg.norm(bmin)
    max_norm = np.linalg.norm(bmax)
    if min_norm > 1.0 + SPHERE_CONTACT_TOL or max_norm < 1.0 - SPHERE_CONTACT_TOL:
        raise ValueError(
            f"Box [{bmin}, {bmax}] does not intersect the unit sphere"
        )

    if _on_sphere(min_norm):
        return [bmin / min_norm]
    if _on_sphere(max_norm):
        return [bmax / max_norm]

    points: List[np.ndarray] = []

    for i in range(8):
        vertex = np.array([bmin[a] if i & (1 << a) else bmax[a] for a in range(3)])
        norm = np.linalg.norm(vertex)
        if _on_sphere(norm):
            _append_unique(points, vertex / norm)

    for axis in range(3):
        fixed1 = (axis + 1) % 3
        fixed2 = (axis + 2) % 3
        for val1 in (bmin[fixed1], bmax[fixed1]):
            for val2 in (bmin[fixed2], bmax[fixed2]):
                closer = np.empty(3)
                closer[fixed1], closer[fixed2], closer[axis] = val1, val2, bmin[axis]
                farther = closer.copy()
                farther[axis] = bmax[axis]
                if (
                    np.linalg.norm(closer) < 1.0 - SPHERE_CONTACT_TOL
                    and np.linalg.norm(farther) > 1.0 + SPHERE_CONTACT_TOL
                ):
                    pt = closer.copy()
                    pt[axis] = np.sqrt(1.0 - val1 * val1 - val2 * val2)
                    _append_unique(points, pt)

    return points


def triangle_outward_normal(p0, p1, p2) -> Tuple[np.ndarray, float]:
    """Unit normal n and offset d of the plane through three positive-orthant points.

    n points away from the origin, so n . x >= d on the far side of the
    plane.
    """
    pts = [np.asarray(p, dtype=float) for p in (p0, p1, p2)]
    for p in pts:
        if np.any(p < 0):
            raise ValueError(f"Triangle vertices must be in the positive orthant, got {p}")

    n = np.cross(pts[2] - pts[0], pts[1] - pts[0])
    n_norm = np.linalg.norm(n)
    if n_norm < COLINEAR_TOL:
        raise InvalidGeometryError(
            f"Points are almost colinear (|cross| = {n_norm:.3g})"
        )
    n = n / n_norm
    if n.sum() < 0:
        n = -n
    if np.any(n < -1e-12):
        raise RelaxationInvariantError(f"Outward normal {n} has a negative component")
    return n, float(pts[0] @ n)


def _is_almost_colinear(p0, p1, p2) -> bool:
    return np.linalg.norm(np.cross(p2 - p0, p1 - p0)) < COLINEAR_TOL


def _reference_triangle(pts: Sequence[np.ndarray]) -> Optional[Tuple[int, int, int]]:
    """First vertex triple, in combination order, that spans a plane reliably."""
    for triple in itertools.combinations(range(len(pts)), 3):
        if not _is_almost_colinear(*(pts[i] for i in triple)):
            return triple
    return None


def are_vertices_coplanar(points: Sequence) -> Tuple[bool, np.ndarray, float]:
    """Whether all points lie on one plane.

    The plane is taken through the first three points, or through the first
    triple that is not almost colinear when those three are. Returns
    (True, n, d) for that plane, or (False, 0, 0).
    """
    if len(points) < 3:
        raise ValueError(f"Co-planarity needs at least 3 points, got {len(points)}")
    pts = [np.asarray(p, dtype=float) for p in points]
    triple = _reference_triangle(pts) or (0, 1, 2)
    n, d = triangle_outward_normal(*(pts[i] for i in triple))
    for p in pts:
        if abs(n @ np.asarray(p, dtype=float) - d) > COPLANAR_TOL:
            return False, np.zeros(3), 0.0
    return True, n, d


def half_space_relaxation(points: Sequence) -> Tuple[np.ndarray, float]:
    """Tightest half space n . x >= d, ||n|| = 1, containing the intersection region.

    For a fixed n in the positive orthant, n . v over the region is smallest
    at one of its vertices: along any boundary arc the inner product is a
    sinusoid in the arc angle, minimized at an end of the arc. So it is
    enough to solve

        max d   s.t.   n . p_i >= d for every vertex,   ||n|| <= 1.
    """
    if len(points) < 3:
        raise ValueError(f"Half-space relaxation needs at least 3 points, got {len(points)}")

    pts = np.array([np.asarray(p, dtype=float) for p in points])
    # vertices bunched along one short arc have no reliable plane, go to the SOCP
    if _reference_triangle(pts) is not None:
        coplanar, n, d = are_vertices_coplanar(pts)
        if coplanar:
            return n, d

    prog = Program("half_space_relaxation")
    n_var = prog.new_continuous_variables(3, "n")
    d_var = prog.new_continuous_variables(1, "d")[0]
    prog.add_bounding_box_constraint(-1.0, 1.0, n_var)
    prog.add_bounding_box_constraint(-1.0, 1.0, d_var)
    for p in pts:
        prog.add_linear_constraint(
            sum(float(p[i]) * n_var[i] for i in range(3)) - d_var, lb=0.0
        )
    prog.add_lorentz_cone_constraint([1.0, *n_var])
    prog.set_objective(Maximize(d_var))

    centroid = pts.mean(axis=0)
    guess = centroid / np.linalg.norm(centroid)
    for var, val in zip(n_var, guess):
        var.value = val
    d_var.value = float(np.min(pts @ guess))

    result = prog.solve(solver=Solver.SLSQP)
    if not result.is_success:
        logger.warning(
            f"Half-space relaxation of {len(pts)} vertices ended with status {result.status}"
        )

    n = prog.get_solution(n_var)
    n = n / np.linalg.norm(n)
    # recompute d for the normalized n so the half space contains every vertex
    d = float(np.min(pts @ n))

    if not (np.all(n > 0) and 0 < d < 1):
        raise RelaxationInvariantError(
            f"Half-space relaxation produced n={n}, d={d}; expected n > 0 and 0 < d < 1"
        )
    return n, d


def inner_facets(points: Sequence) -> Tuple[np.ndarray, np.ndarray]:
    """Facets A x <= b of the convex hull of the intersection region.

    Every triangle of vertices whose plane c . x >= d has all other vertices
    on its far side gives one row A = -c, b = -d. Almost colinear triangles
    are skipped; leaving out a facet only loosens the hull.
    """
    pts = [np.asarray(p, dtype=float) for p in points]
    for p in pts:
        if np.any(p < 0):
            raise ValueError(f"Vertices must be in the positive orthant, got {p}")

    rows, offsets = [], []
    for i, j, k in itertools.combinations(range(len(pts)), 3):
        if _is_almost_colinear(pts[i], pts[j], pts[k]):
            continue
        c, d = triangle_outward_normal(pts[i], pts[j], pts[k])
        if all(c @ pts[l] >= d - FACET_TOL for l in range(len(pts)) if l not in (i, j, k)):
            rows.append(-c)
            offsets.append(-d)

    A = np.array(rows).reshape(-1, 3)
    b = np.array(offsets, dtype=float)
    return A, b
