"""Mixed-integer McCormick-envelope relaxation of SO(3).

Every entry of R is written as a convex combination of the breakpoints
phi(k) - 1, k = 0 .. 2N, with SOS2 weights whose active interval is selected
by Gray-coded binaries. For every box of the resulting grid that a column
(or row) of R may lie in, the emitter adds constraints that are inactive
unless the binaries select that box:

* boxes that miss the unit sphere are excluded,
* boxes touching the sphere in a single point pin the vector to that point,
* boxes cut by the sphere confine the vector to the convex hull of the cut
  and bound the other two vectors of the frame accordingly.

The geometry is computed once per positive-orthant box and reflected into
the other seven orthants.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..constants import RollPitchYawLimits, SPHERE_CONTACT_TOL
from ..constraint import LinearConstraint
from ..expression import cross, dot, expr_sum
from ..geometry import (
    RelaxationInvariantError,
    box_sphere_intersection_vertices,
    flip_vector,
    half_space_relaxation,
    inner_facets,
)
from ..indexing import box_binary_expression_in_orthant, envelope_breakpoint
from ..mixed_integer import (
    add_logarithmic_sos2_constraint,
    calculate_reflected_gray_codes,
    ceil_log2,
    is_power_of_two,
)
from .continuous import (
    _check_rotation_shape,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary,
)


logger = logging.getLogger(__name__)


class BoxContact(Enum):
    NONE = auto()
    POINT = auto()
    REGION = auto()


@dataclass(frozen=True, eq=False)
class BoxRelaxation:
    """Geometry of one positive-orthant grid box against the unit sphere."""

    contact: BoxContact
    box_min: np.ndarray
    box_max: np.ndarray
    point: Optional[np.ndarray] = None
    vertices: Tuple[np.ndarray, ...] = ()
    normal: Optional[np.ndarray] = None
    offset: float = 0.0
    theta: float = 0.0
    facet_A: Optional[np.ndarray] = None
    facet_b: Optional[np.ndarray] = None

    def __post_init__(self):
        # shared through the cache, so keep the arrays read-only
        for name in ("box_min", "box_max", "point", "normal", "facet_A", "facet_b"):
            arr = getattr(self, name)
            if arr is not None:
                arr = np.array(arr, dtype=float)
                arr.flags.writeable = False
                object.__setattr__(self, name, arr)


@functools.lru_cache(maxsize=None)
def compute_box_relaxation(xi: int, yi: int, zi: int, num_intervals_per_half_axis: int) -> BoxRelaxation:
    """Classify box (xi, yi, zi) of the positive orthant and compute its relaxation data."""
    N = num_intervals_per_half_axis
    if N < 1:
        raise ValueError(f"num_intervals_per_half_axis must be >= 1, got {N}")
    for idx in (xi, yi, zi):
        if not 0 <= idx < N:
            raise ValueError(f"Interval index {idx} out of range for N={N}")

    box_min = np.array([envelope_breakpoint(k, N) for k in (xi, yi, zi)])
    box_max = np.array([envelope_breakpoint(k + 1, N) for k in (xi, yi, zi)])
    min_norm = np.linalg.norm(box_min)
    max_norm = np.linalg.norm(box_max)

    if min_norm > 1.0 + SPHERE_CONTACT_TOL or max_norm < 1.0 - SPHERE_CONTACT_TOL:
        return BoxRelaxation(BoxContact.NONE, box_min, box_max)

    pts = box_sphere_intersection_vertices(box_min, box_max)
    if len(pts) == 1:
        return BoxRelaxation(BoxContact.POINT, box_min, box_max, point=pts[0])
    if len(pts) < 3:
        raise RelaxationInvariantError(
            f"Box [{box_min}, {box_max}] meets the sphere in {len(pts)} vertices"
        )

    normal, offset = half_space_relaxation(pts)
    A, b = inner_facets(pts)
    return BoxRelaxation(
        BoxContact.REGION,
        box_min,
        box_max,
        vertices=tuple(pts),
        normal=normal,
        offset=offset,
        theta=float(np.arccos(offset)),
        facet_A=A,
        facet_b=b,
    )


def clear_box_relaxation_cache() -> None:
    compute_box_relaxation.cache_clear()


def _point_constraints(u, v, v1, v2, c) -> Iterator[LinearConstraint]:
    # v == u, v . v1 == 0, v . v2 == 0 and u x v1 == v2 while c == 0
    for i in range(3):
        yield v[i] - u[i] <= 2 * c
        yield v[i] - u[i] >= -2 * c
    u_dot_v1 = dot(u, v1)
    u_dot_v2 = dot(u, v2)
    yield u_dot_v1 <= c
    yield u_dot_v1 >= -c
    yield u_dot_v2 <= c
    yield u_dot_v2 >= -c
    u_cross_v1 = cross(u, v1)
    for i in range(3):
        yield u_cross_v1[i] - v2[i] <= 2 * c
        yield u_cross_v1[i] - v2[i] >= -2 * c


def _region_constraints(relaxation: BoxRelaxation, orthant, v, v1, v2, c) -> Iterator[LinearConstraint]:
    # A v <= b over the convex hull of the cut, relaxed to A v - b <= 1 - b otherwise
    for a, b in zip(relaxation.facet_A, relaxation.facet_b.tolist()):
        yield dot(flip_vector(a, orthant), v) - b <= (1.0 - b) * c

    n = flip_vector(relaxation.normal, orthant)
    # orthants o and o ^ 7 give the same row
    if orthant % 2 == 0:
        yield LinearConstraint(dot(n, v), -1.0, 1.0)

    # v is within theta of n, so v1 and v2 lie within theta of the plane orthogonal to n
    sin_theta = float(np.sin(relaxation.theta))
    for w in (v1, v2):
        n_dot_w = dot(n, w)
        yield n_dot_w <= sin_theta + c
        yield n_dot_w >= -sin_theta - c

    # |v2 - n x v1| <= 2 sin(theta / 2), elementwise
    bound = 2.0 * float(np.sin(relaxation.theta / 2.0))
    n_cross_v1 = cross(n, v1)
    for i in range(3):
        diff = v2[i] - n_cross_v1[i]
        yield diff <= bound + 2 * c
        yield diff >= -bound - 2 * c


def mccormick_vector_constraints(
    v: Sequence,
    B_vec: Sequence[Sequence],
    v1: Sequence,
    v2: Sequence,
    num_intervals_per_half_axis: int,
    gray_codes: np.ndarray,
) -> Iterator[LinearConstraint]:
    """Yield the McCormick constraints of unit vector v with frame partners v1, v2.

    B_vec[axis] are the Gray-coded binaries that select the interval of
    v[axis]; (v, v1, v2) is meant to be a right-handed orthonormal frame.
    """
    N = num_intervals_per_half_axis
    if len(B_vec) != 3:
        raise ValueError(f"Expected binaries for 3 axes, got {len(B_vec)}")
    for axis_binaries in B_vec:
        if len(axis_binaries) != gray_codes.shape[1]:
            raise ValueError(
                f"Expected {gray_codes.shape[1]} binaries per axis, got {len(axis_binaries)}"
            )

    for xi in range(N):
        for yi in range(N):
            for zi in range(N):
                relaxation = compute_box_relaxation(xi, yi, zi, N)
                for orthant in range(8):
                    c = expr_sum(
                        box_binary_expression_in_orthant(xi, yi, zi, orthant, gray_codes, B_vec, N)
                    )
                    if relaxation.contact == BoxContact.NONE:
                        yield c >= 1
                    elif relaxation.contact == BoxContact.POINT:
                        u = flip_vector(relaxation.point, orthant)
                        yield from _point_constraints(u, v, v1, v2, c)
                    else:
                        yield from _region_constraints(relaxation, orthant, v, v1, v2, c)


def add_mccormick_vector_constraints(
    prog, v, B_vec, v1, v2, num_intervals_per_half_axis, gray_codes
) -> List[LinearConstraint]:
    constraints = prog.add_constraint(
        mccormick_vector_constraints(v, B_vec, v1, v2, num_intervals_per_half_axis, gray_codes)
    )
    logger.debug(
        f"Added {len(constraints)} McCormick constraints for N={num_intervals_per_half_axis}"
    )
    return constraints


def add_not_in_same_or_opposite_orthant_constraint(
    prog, B, num_intervals_per_half_axis: int
) -> List[Tuple[np.ndarray, np.ndarray]]:
    """Forbid two columns of R from sharing, or opposing, an orthant.

    B(i, j) is the sign digit of R(i, j), 1 meaning R(i, j) >= 0, which only
    holds when N is a power of two; for other N nothing is added. For each
    pair of columns (a, b), |B(i, a) + B(i, b) - 1| is 1 exactly when the
    signs agree in row i and |B(i, a) - B(i, b)| is 1 exactly when they
    differ, so bounding both sums over rows by 2 rules out equal and opposite
    sign patterns. Orthogonal columns always admit such an assignment.

    Returns:
        The auxiliary (t, s) pair created for each column pair.
    """
    B = _check_rotation_shape(B)
    if not is_power_of_two(num_intervals_per_half_axis):
        logger.debug(
            f"Skipping orthant cut, N={num_intervals_per_half_axis} is not a power of two"
        )
        return []

    pairs = []
    for a, b in ((0, 1), (0, 2), (1, 2)):
        t = prog.new_continuous_variables(3, "t")
        s = prog.new_continuous_variables(3, "s")
        prog.add_linear_constraint(expr_sum(t), ub=2.0)
        prog.add_linear_constraint(expr_sum(s), ub=2.0)
        for i in range(3):
            same = B[i, a] + B[i, b] - 1
            opposite = B[i, a] - B[i, b]
            prog.add_linear_constraint(t[i] - same, lb=0.0)
            prog.add_linear_constraint(same + t[i], lb=0.0)
            prog.add_linear_constraint(s[i] - opposite, lb=0.0)
            prog.add_linear_constraint(opposite + s[i], lb=0.0)
        pairs.append((t, s))
    return pairs


def add_unit_length_constraint_with_logarithmic_sos2(prog, phi, lambda0, lambda1, lambda2) -> LinearConstraint:
    """Relax x0^2 + x1^2 + x2^2 = 1 for x_i = sum_k phi(k) lambda_i(k).

    Within an interval, x_i^2 is bounded by the chord through its end points,
    so sum_k (lambda0(k) + lambda1(k) + lambda2(k)) phi(k)^2 >= 1.
    """
    phi = np.asarray(phi, dtype=float)
    for lam in (lambda0, lambda1, lambda2):
        if len(lam) != len(phi):
            raise ValueError(
                f"Expected {len(phi)} SOS2 weights per coordinate, got {len(lam)}"
            )
    sum_of_squares_ub = expr_sum(
        float(phi[k] ** 2) * (lambda0[k] + lambda1[k] + lambda2[k]) for k in range(len(phi))
    )
    return prog.add_linear_constraint(sum_of_squares_ub, lb=1.0)


def add_rotation_matrix_mccormick_envelope_milp_constraints(
    prog,
    R,
    num_intervals_per_half_axis: int = 2,
    limits: RollPitchYawLimits = RollPitchYawLimits.NO_LIMITS,
) -> List[np.ndarray]:
    """Relax R in SO(3) with piecewise McCormick envelopes on 2N intervals per axis.

    Args:
        prog: Program the variables and constraints are added to.
        R: 3x3 array of the program's continuous variables.
        num_intervals_per_half_axis: N, the number of intervals on [0, 1].
        limits: Angle limits whose implied sign constraints are added too.

    Returns:
        B, one 3x3 array of binaries per Gray-code digit. B[0] is the sign of
        R when N is a power of two.
    """
    R = _check_rotation_shape(R)
    N = num_intervals_per_half_axis
    if N < 1:
        raise ValueError(f"num_intervals_per_half_axis must be >= 1, got {N}")

    num_lambda = 2 * N + 1
    phi = np.array([envelope_breakpoint(k, N) - 1.0 for k in range(num_lambda)])
    num_digits = ceil_log2(num_lambda - 1)
    gray_codes = calculate_reflected_gray_codes(num_digits)

    B = [np.empty((3, 3), dtype=object) for _ in range(num_digits)]
    lambdas = np.empty((3, 3), dtype=object)
    for i in range(3):
        for j in range(3):
            lam = prog.new_continuous_variables(num_lambda, f"lambda[{i}][{j}]")
            lambdas[i, j] = lam
            y = add_logarithmic_sos2_constraint(prog, lam, f"B[{i}][{j}]")
            for k in range(num_digits):
                B[k][i, j] = y[k]
            prog.add_linear_equality_constraint(R[i, j] - dot(phi, lam), 0.0)

    add_not_in_same_or_opposite_orthant_constraint(prog, B[0], N)
    add_not_in_same_or_opposite_orthant_constraint(prog, B[0].T, N)

    if is_power_of_two(N):
        add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary(prog, B[0], limits)
    else:
        add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits(prog, R, limits)

    for i in range(3):
        add_unit_length_constraint_with_logarithmic_sos2(
            prog, phi, lambdas[0, i], lambdas[1, i], lambdas[2, i]
        )
        add_unit_length_constraint_with_logarithmic_sos2(
            prog, phi, lambdas[i, 0], lambdas[i, 1], lambdas[i, 2]
        )

    for i in range(3):
        col_binaries = [[B[k][j, i] for k in range(num_digits)] for j in range(3)]
        add_mccormick_vector_constraints(
            prog, R[:, i], col_binaries, R[:, (i + 1) % 3], R[:, (i + 2) % 3], N, gray_codes
        )
        row_binaries = [[B[k][i, j] for k in range(num_digits)] for j in range(3)]
        add_mccormick_vector_constraints(
            prog, R[i, :], row_binaries, R[(i + 1) % 3, :], R[(i + 2) % 3, :], N, gray_codes
        )

    logger.debug(
        f"McCormick relaxation with N={N}: {num_digits} binaries per entry, "
        f"{prog.num_vars} variables and {len(prog.constraints)} constraints in program"
    )
    return B
