from enum import StrEnum, Enum, IntFlag, auto

import numpy as np


class Solver(StrEnum):
    SLSQP = "SLSQP"
    HIGHS = "HiGHS"  # Mixed-integer linear programs through scipy.optimize.milp


class VarType(Enum):
    CONTINUOUS = auto()
    BINARY = auto()


class ConstraintKind(StrEnum):
    LINEAR = "linear"
    BOUNDING_BOX = "bounding_box"
    LORENTZ_CONE = "lorentz_cone"
    ROTATED_LORENTZ_CONE = "rotated_lorentz_cone"
    LINEAR_MATRIX_INEQUALITY = "linear_matrix_inequality"


class RollPitchYawLimits(IntFlag):
    """Admissible half ranges of the roll, pitch and yaw angles.

    Each flag promises the sign of one trigonometric term of the
    roll-pitch-yaw to rotation matrix formula, e.g. PITCH_NEG_PI_2_TO_PI_2
    means cos(pitch) >= 0 and YAW_0_TO_PI means sin(yaw) >= 0.
    """

    NO_LIMITS = 0
    ROLL_NEG_PI_2_TO_PI_2 = 1 << 1
    ROLL_0_TO_PI = 1 << 2
    PITCH_NEG_PI_2_TO_PI_2 = 1 << 3
    PITCH_0_TO_PI = 1 << 4
    YAW_NEG_PI_2_TO_PI_2 = 1 << 5
    YAW_0_TO_PI = 1 << 6


# A unit vector perturbed by eps in one coordinate has norm at most 1 + 2 * eps.
SPHERE_CONTACT_TOL = 2 * np.finfo(float).eps
COLINEAR_TOL = 1e-3
COPLANAR_TOL = 1e-10
FACET_TOL = 1e-10
DEFAULT_FEASIBILITY_TOL = 1e-6
NORM_EPS = 1e-12
