"""Comparing the SO(3) relaxations shipped with so3relax.

Each example looks for the rotation that best matches a noisy 3x3 matrix M,
i.e. maximizes trace(M^T R), over one of the relaxations. A tighter
relaxation returns a matrix closer to an actual rotation, so alongside the
bound we print how far the answer is from orthonormal.

Run this module directly to execute all examples.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.spatial.transform import Rotation

import so3relax as so3
from so3relax import Maximize, Program, RollPitchYawLimits


def noisy_rotation(seed=3, noise=0.3):
    rng = np.random.default_rng(seed)
    truth = Rotation.from_rotvec(rng.standard_normal(3)).as_matrix()
    return truth, truth + noise * rng.standard_normal((3, 3))


def alignment_objective(R, M):
    return so3.expr_sum(float(M[i, j]) * R[i, j] for i in range(3) for j in range(3))


def report(name, prog, R, result):
    print("=" * 60)
    print(name)
    print("=" * 60)
    print(f"status:    {result.status}")
    print(f"bound:     {result.objective_value:.4f}")
    if result.is_success:
        R_val = prog.get_solution(R)
        print(f"|R'R - I|: {np.linalg.norm(R_val.T @ R_val - np.eye(3)):.4f}")
        print(f"det(R):    {np.linalg.det(R_val):.4f}")
    print()


def socp_example(M):
    """Second-order cone relaxation, solved with SLSQP."""
    prog = Program("socp")
    R = so3.new_rotation_matrix_vars(prog)
    so3.add_rotation_matrix_orthonormal_socp_constraint(prog, R)
    prog.set_objective(Maximize(alignment_objective(R, M)))
    report("ORTHONORMAL SOCP", prog, R, prog.solve(solver=so3.SLSQP))


def sdp_example(M):
    """The spectrahedron is the exact convex hull, so the bound is attained by a rotation."""
    prog = Program("sdp")
    R = so3.new_rotation_matrix_vars(prog)
    so3.add_rotation_matrix_spectrahedral_sdp_constraint(prog, R)
    prog.set_objective(Maximize(alignment_objective(R, M)))
    report("SPECTRAHEDRAL SDP", prog, R, prog.solve(solver=so3.SLSQP))


def mccormick_example(M, num_intervals_per_half_axis=2):
    prog = Program("mccormick")
    R = so3.new_rotation_matrix_vars(prog)
    so3.add_rotation_matrix_mccormick_envelope_milp_constraints(
        prog, R, num_intervals_per_half_axis
    )
    prog.set_objective(Maximize(alignment_objective(R, M)))
    result = prog.solve(solver=so3.HIGHS, solver_options={"time_limit": 60.0})
    report(f"MCCORMICK MILP (N={num_intervals_per_half_axis})", prog, R, result)


def limits_example():
    """Angle limits shrink the relaxation before any solve."""
    prog = Program("limits")
    R = so3.new_rotation_matrix_vars(prog)
    limits = (
        RollPitchYawLimits.PITCH_NEG_PI_2_TO_PI_2
        | RollPitchYawLimits.YAW_NEG_PI_2_TO_PI_2
        | RollPitchYawLimits.ROLL_NEG_PI_2_TO_PI_2
    )
    count = so3.add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits(prog, R, limits)
    print(f"{limits!r} restricts the sign of {count} entries of R\n")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    truth, M = noisy_rotation()
    print(f"alignment of the true rotation: {np.trace(M.T @ truth):.4f}\n")

    socp_example(M)
    sdp_example(M)
    for N in (1, 2):
        mccormick_example(M, N)
    limits_example()
