"""Relaxations of SO(3) that need no binary variables."""

from __future__ import annotations

import logging

import numpy as np

from ..constants import RollPitchYawLimits
from ..expression import expr_sum


logger = logging.getLogger(__name__)


def _check_rotation_shape(R) -> np.ndarray:
    R = np.asarray(R, dtype=object)
    if R.shape != (3, 3):
        raise ValueError(f"Rotation matrix variables must be 3x3, got shape {R.shape}")
    return R


def new_rotation_matrix_vars(prog, name: str = "R") -> np.ndarray:
    """Allocate a 3x3 matrix R with -1 <= R(i, j) <= 1 and -1 <= trace(R) <= 3.

    The trace bound holds for every rotation: its eigenvalues are 1 and a
    unit-modulus conjugate pair whose sum lies in [-2, 2].
    """
    R = prog.new_continuous_variables((3, 3), name)
    prog.add_bounding_box_constraint(-1.0, 1.0, R)
    prog.add_linear_constraint(expr_sum(np.diag(R)), -1.0, 3.0)
    return R


def _add_orthogonal_constraint(prog, v1, v2) -> None:
    # |v1 + v2|^2 <= 2 and |v1 - v2|^2 <= 2, tight for orthonormal v1, v2
    root2 = np.sqrt(2.0)
    prog.add_lorentz_cone_constraint([root2, *(a + b for a, b in zip(v1, v2))])
    prog.add_lorentz_cone_constraint([root2, *(a - b for a, b in zip(v1, v2))])


def add_rotation_matrix_orthonormal_socp_constraint(prog, R) -> None:
    """Second-order cone relaxation of R^T R = I.

    Every row and column gets |r|^2 <= 1 as the rotated cone [1; 1; r], and
    every pair of rows and every pair of columns the two Lorentz cones of
    `_add_orthogonal_constraint`.
    """
    R = _check_rotation_shape(R)
    for i in range(3):
        prog.add_rotated_lorentz_cone_constraint([1.0, 1.0, *R[:, i]])
        prog.add_rotated_lorentz_cone_constraint([1.0, 1.0, *R[i, :]])

    for a, b in ((0, 1), (1, 2), (0, 2)):
        _add_orthogonal_constraint(prog, R[:, a], R[:, b])
    for a, b in ((0, 1), (1, 2), (0, 2)):
        _add_orthogonal_constraint(prog, R[a, :], R[b, :])


def _lmi_matrix(entries) -> np.ndarray:
    F = np.zeros((4, 4))
    for (row, col), val in entries.items():
        F[row, col] = val
    return F


# Coefficients of R(0,0), R(1,0), R(2,0), R(0,1), ..., R(2,2) in the 4x4
# matrix whose positive semidefiniteness describes the convex hull of SO(3).
SPECTRAHEDRON_MATRICES = (
    np.eye(4),
    np.diag([-1.0, 1.0, 1.0, -1.0]),
    _lmi_matrix({(0, 2): -1, (1, 3): 1, (2, 0): -1, (3, 1): 1}),
    _lmi_matrix({(0, 1): 1, (1, 0): 1, (2, 3): 1, (3, 2): 1}),
    _lmi_matrix({(0, 2): 1, (1, 3): 1, (2, 0): 1, (3, 1): 1}),
    np.diag([-1.0, -1.0, 1.0, 1.0]),
    _lmi_matrix({(0, 3): 1, (1, 2): -1, (2, 1): -1, (3, 0): 1}),
    _lmi_matrix({(0, 1): 1, (1, 0): 1, (2, 3): -1, (3, 2): -1}),
    _lmi_matrix({(0, 3): 1, (1, 2): 1, (2, 1): 1, (3, 0): 1}),
    np.diag([1.0, -1.0, 1.0, -1.0]),
)


def add_rotation_matrix_spectrahedral_sdp_constraint(prog, R) -> None:
    """Add the LMI whose feasible set is exactly conv(SO(3))."""
    R = _check_rotation_shape(R)
    prog.add_linear_matrix_inequality_constraint(
        SPECTRAHEDRON_MATRICES, [*R[:, 0], *R[:, 1], *R[:, 2]]
    )


# Sign of each entry of
#   [ cp*cy, cy*sp*sr - cr*sy, sr*sy + cr*cy*sp]
#   [ cp*sy, cr*cy + sp*sr*sy, cr*sp*sy - cy*sr]
#   [   -sp,            cp*sr,            cp*cr]
# implied by a combination of limits. Each rule is (entry, required limits,
# entry is non-negative).
_L = RollPitchYawLimits
_ROLL_PITCH_YAW_SIGN_RULES = (
    ((0, 0), _L.PITCH_NEG_PI_2_TO_PI_2 | _L.YAW_NEG_PI_2_TO_PI_2, True),
    ((1, 0), _L.PITCH_NEG_PI_2_TO_PI_2 | _L.YAW_0_TO_PI, True),
    ((2, 0), _L.PITCH_0_TO_PI, False),
    (
        (1, 1),
        _L.ROLL_NEG_PI_2_TO_PI_2
        | _L.ROLL_0_TO_PI
        | _L.PITCH_0_TO_PI
        | _L.YAW_NEG_PI_2_TO_PI_2
        | _L.YAW_0_TO_PI,
        True,
    ),
    ((2, 1), _L.PITCH_NEG_PI_2_TO_PI_2 | _L.ROLL_0_TO_PI, True),
    (
        (0, 2),
        _L.ROLL_NEG_PI_2_TO_PI_2
        | _L.ROLL_0_TO_PI
        | _L.PITCH_0_TO_PI
        | _L.YAW_NEG_PI_2_TO_PI_2
        | _L.YAW_0_TO_PI,
        True,
    ),
    ((2, 2), _L.PITCH_NEG_PI_2_TO_PI_2 | _L.ROLL_NEG_PI_2_TO_PI_2, True),
)
del _L


def _implied_signs(limits):
    limits = RollPitchYawLimits(limits)
    for entry, required, non_negative in _ROLL_PITCH_YAW_SIGN_RULES:
        if limits & required == required:
            yield entry, non_negative


def add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits(
    prog, R, limits=RollPitchYawLimits.NO_LIMITS
) -> int:
    """Restrict entries of R to [0, 1] or [-1, 0] as implied by `limits`.

    Returns the number of entries that were restricted.
    """
    R = _check_rotation_shape(R)
    count = 0
    for (i, j), non_negative in _implied_signs(limits):
        lb, ub = (0.0, 1.0) if non_negative else (-1.0, 0.0)
        prog.add_bounding_box_constraint(lb, ub, R[i, j])
        count += 1
    logger.debug(f"Angle limits {limits!r} fixed the sign of {count} entries")
    return count


def add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary(
    prog, B0, limits=RollPitchYawLimits.NO_LIMITS
) -> int:
    """Fix the sign digits B0(i, j) (1 for R(i, j) >= 0) implied by `limits`."""
    B0 = _check_rotation_shape(B0)
    count = 0
    for (i, j), non_negative in _implied_signs(limits):
        val = 1.0 if non_negative else 0.0
        prog.add_bounding_box_constraint(val, val, B0[i, j])
        count += 1
    logger.debug(f"Angle limits {limits!r} fixed {count} sign binaries")
    return count
