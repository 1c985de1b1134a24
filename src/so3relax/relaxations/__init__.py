__all__ = [
    "new_rotation_matrix_vars",
    "add_rotation_matrix_orthonormal_socp_constraint",
    "add_rotation_matrix_spectrahedral_sdp_constraint",
    "add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits",
    "add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary",
    "SPECTRAHEDRON_MATRICES",
    "BoxContact",
    "BoxRelaxation",
    "compute_box_relaxation",
    "clear_box_relaxation_cache",
    "mccormick_vector_constraints",
    "add_mccormick_vector_constraints",
    "add_not_in_same_or_opposite_orthant_constraint",
    "add_unit_length_constraint_with_logarithmic_sos2",
    "add_rotation_matrix_mccormick_envelope_milp_constraints",
]

from .continuous import (
    new_rotation_matrix_vars,
    add_rotation_matrix_orthonormal_socp_constraint,
    add_rotation_matrix_spectrahedral_sdp_constraint,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary,
    SPECTRAHEDRON_MATRICES,
)
from .mccormick import (
    BoxContact,
    BoxRelaxation,
    compute_box_relaxation,
    clear_box_relaxation_cache,
    mccormick_vector_constraints,
    add_mccormick_vector_constraints,
    add_not_in_same_or_opposite_orthant_constraint,
    add_unit_length_constraint_with_logarithmic_sos2,
    add_rotation_matrix_mccormick_envelope_milp_constraints,
)
