__all__ = [
    "Variable",
    "LinearExpr",
    "Constraint",
    "LinearConstraint",
    "BoundingBoxConstraint",
    "LorentzConeConstraint",
    "RotatedLorentzConeConstraint",
    "LinearMatrixInequalityConstraint",
    "Program",
    "Maximize",
    "Minimize",
    "SLSQP",
    "HIGHS",
    "ConstraintKind",
    "RollPitchYawLimits",
    "SolverStatus",
    "InvalidGeometryError",
    "RelaxationInvariantError",
    "reset_variable_ids",
    "expr_sum",
    "dot",
    "cross",
    "calculate_reflected_gray_codes",
    "add_logarithmic_sos2_constraint",
    "box_sphere_intersection_vertices",
    "triangle_outward_normal",
    "are_vertices_coplanar",
    "half_space_relaxation",
    "inner_facets",
    "flip_vector",
    "envelope_breakpoint",
    "orthant_sign_mask",
    "full_axis_interval_index",
    "pick_binary_expression_for_interval",
    "box_binary_expression_in_orthant",
    "new_rotation_matrix_vars",
    "add_rotation_matrix_orthonormal_socp_constraint",
    "add_rotation_matrix_spectrahedral_sdp_constraint",
    "add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits",
    "add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary",
    "compute_box_relaxation",
    "clear_box_relaxation_cache",
    "mccormick_vector_constraints",
    "add_mccormick_vector_constraints",
    "add_not_in_same_or_opposite_orthant_constraint",
    "add_unit_length_constraint_with_logarithmic_sos2",
    "add_rotation_matrix_mccormick_envelope_milp_constraints",
]

from .variable import Variable, reset_variable_ids as reset_variable_ids
from .expression import LinearExpr, expr_sum, dot, cross
from .constraint import (
    Constraint,
    LinearConstraint,
    BoundingBoxConstraint,
    LorentzConeConstraint,
    RotatedLorentzConeConstraint,
    LinearMatrixInequalityConstraint,
)
from .program import Program, Maximize, Minimize
from .constants import Solver, ConstraintKind, RollPitchYawLimits
from .solvers import SolverStatus

SLSQP = Solver.SLSQP
HIGHS = Solver.HIGHS

from .mixed_integer import calculate_reflected_gray_codes, add_logarithmic_sos2_constraint
from .geometry import (
    InvalidGeometryError,
    RelaxationInvariantError,
    box_sphere_intersection_vertices,
    triangle_outward_normal,
    are_vertices_coplanar,
    half_space_relaxation,
    inner_facets,
    flip_vector,
)
from .indexing import (
    envelope_breakpoint,
    orthant_sign_mask,
    full_axis_interval_index,
    pick_binary_expression_for_interval,
    box_binary_expression_in_orthant,
)
from .relaxations import (
    new_rotation_matrix_vars,
    add_rotation_matrix_orthonormal_socp_constraint,
    add_rotation_matrix_spectrahedral_sdp_constraint,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary,
    compute_box_relaxation,
    clear_box_relaxation_cache,
    mccormick_vector_constraints,
    add_mccormick_vector_constraints,
    add_not_in_same_or_opposite_orthant_constraint,
    add_unit_length_constraint_with_logarithmic_sos2,
    add_rotation_matrix_mccormick_envelope_milp_constraints,
)
