import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from so3relax import (
    ConstraintKind,
    Maximize,
    Program,
    RollPitchYawLimits,
    SLSQP,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits,
    add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary,
    add_rotation_matrix_orthonormal_socp_constraint,
    add_rotation_matrix_spectrahedral_sdp_constraint,
    new_rotation_matrix_vars,
)
from so3relax.relaxations import SPECTRAHEDRON_MATRICES

L = RollPitchYawLimits
ALL_LIMITS = (
    L.ROLL_NEG_PI_2_TO_PI_2
    | L.ROLL_0_TO_PI
    | L.PITCH_NEG_PI_2_TO_PI_2
    | L.PITCH_0_TO_PI
    | L.YAW_NEG_PI_2_TO_PI_2
    | L.YAW_0_TO_PI
)

REPEATED_ROW = np.array([[1.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])


def _rotation_program(*relaxations):
    prog = Program()
    R = new_rotation_matrix_vars(prog)
    for add in relaxations:
        add(prog, R)
    return prog, R


class TestBoxAndTrace:
    def test_structure(self):
        prog, R = _rotation_program()
        assert R.shape == (3, 3)
        assert R[0, 1].name == "R(0,1)"
        assert len(prog.constraints_of_kind(ConstraintKind.BOUNDING_BOX)) == 1
        assert len(prog.constraints_of_kind(ConstraintKind.LINEAR)) == 1

    def test_rotations_feasible(self, rotations, assign):
        prog, R = _rotation_program()
        for rot in rotations:
            assert prog.check_satisfied(assign(R, rot))

    def test_negative_identity_rejected(self, assign):
        prog, R = _rotation_program()
        violated = prog.violated_constraints(assign(R, -np.eye(3)))
        assert [c.kind for c in violated] == [ConstraintKind.LINEAR]


class TestOrthonormalSocp:
    def test_structure(self):
        prog, R = _rotation_program(add_rotation_matrix_orthonormal_socp_constraint)
        assert len(prog.constraints_of_kind(ConstraintKind.ROTATED_LORENTZ_CONE)) == 6
        assert len(prog.constraints_of_kind(ConstraintKind.LORENTZ_CONE)) == 12

    def test_rotations_feasible(self, rotations, assign):
        prog, R = _rotation_program(add_rotation_matrix_orthonormal_socp_constraint)
        for rot in rotations:
            assert prog.check_satisfied(assign(R, rot))

    def test_repeated_row_rejected(self, assign):
        prog, R = _rotation_program(add_rotation_matrix_orthonormal_socp_constraint)
        violated = prog.violated_constraints(assign(R, REPEATED_ROW))
        assert any(c.kind == ConstraintKind.LORENTZ_CONE for c in violated)

    def test_long_column_rejected(self, assign):
        prog, R = _rotation_program(add_rotation_matrix_orthonormal_socp_constraint)
        values = np.eye(3)
        values[1, 0] = 0.5
        violated = prog.violated_constraints(assign(R, values))
        assert any(c.kind == ConstraintKind.ROTATED_LORENTZ_CONE for c in violated)

    def test_bound_is_tight(self):
        prog, R = _rotation_program(add_rotation_matrix_orthonormal_socp_constraint)
        prog.set_objective(Maximize(R[0, 0] + R[0, 1]))
        result = prog.solve(solver=SLSQP)
        assert result.is_success
        assert result.objective_value == pytest.approx(np.sqrt(2), abs=1e-4)


class TestSpectrahedralSdp:
    def test_matrices(self):
        assert len(SPECTRAHEDRON_MATRICES) == 10
        for F in SPECTRAHEDRON_MATRICES:
            np.testing.assert_array_equal(F, F.T)

    def test_rotations_feasible(self, rotations, assign):
        prog, R = _rotation_program(add_rotation_matrix_spectrahedral_sdp_constraint)
        (lmi,) = prog.constraints_of_kind(ConstraintKind.LINEAR_MATRIX_INEQUALITY)
        for rot in rotations:
            x = prog.evaluate(assign(R, rot))
            assert lmi.is_satisfied(x)
            # the matrix is rank one on SO(3)
            assert np.linalg.matrix_rank(lmi.matrix(x), tol=1e-8) == 1

    def test_convex_combination_feasible(self, rotations, assign):
        prog, R = _rotation_program(add_rotation_matrix_spectrahedral_sdp_constraint)
        mix = 0.3 * rotations[0] + 0.7 * rotations[1]
        assert prog.check_satisfied(assign(R, mix))

    def test_improper_matrices_rejected(self, rotations, assign):
        prog, R = _rotation_program(add_rotation_matrix_spectrahedral_sdp_constraint)
        (lmi,) = prog.constraints_of_kind(ConstraintKind.LINEAR_MATRIX_INEQUALITY)
        assert not lmi.is_satisfied(prog.evaluate(assign(R, -np.eye(3))))
        reflection = rotations[2] @ np.diag([1.0, 1.0, -1.0])
        assert not lmi.is_satisfied(prog.evaluate(assign(R, reflection)))

    def test_shape_checked(self):
        prog = Program()
        R = prog.new_continuous_variables((3, 2))
        with pytest.raises(ValueError):
            add_rotation_matrix_spectrahedral_sdp_constraint(prog, R)


class TestRollPitchYawLimits:
    def test_no_limits(self):
        prog, R = _rotation_program()
        assert add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits(prog, R) == 0

    def test_all_limits(self):
        prog, R = _rotation_program()
        count = add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits(
            prog, R, ALL_LIMITS
        )
        assert count == 7

    def test_single_flag(self):
        prog, R = _rotation_program()
        count = add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits(
            prog, R, L.PITCH_0_TO_PI
        )
        assert count == 1
        (box,) = prog.constraints_of_kind(ConstraintKind.BOUNDING_BOX)[1:]
        assert box.variables[0] is R[2, 0]
        assert (box.lb[0], box.ub[0]) == (-1.0, 0.0)

    @pytest.mark.parametrize(
        "limits, ranges",
        [
            (ALL_LIMITS, [(0, np.pi / 2)] * 3),
            (
                L.PITCH_NEG_PI_2_TO_PI_2 | L.YAW_0_TO_PI | L.ROLL_0_TO_PI,
                [(0, np.pi), (-np.pi / 2, np.pi / 2), (0, np.pi)],
            ),
            (
                L.PITCH_NEG_PI_2_TO_PI_2 | L.YAW_NEG_PI_2_TO_PI_2 | L.ROLL_NEG_PI_2_TO_PI_2,
                [(-np.pi / 2, np.pi / 2)] * 3,
            ),
        ],
    )
    def test_limits_are_sound(self, limits, ranges, assign):
        prog, R = _rotation_program()
        add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits(prog, R, limits)
        rng = np.random.default_rng(7)
        for _ in range(20):
            angles = [rng.uniform(lo, hi) for lo, hi in ranges]
            rot = Rotation.from_euler("xyz", angles).as_matrix()
            assert prog.check_satisfied(assign(R, rot)), angles

    def test_binary_form(self):
        prog = Program()
        B0 = prog.new_binary_variables((3, 3), "B0")
        count = add_bounding_box_constraints_implied_by_roll_pitch_yaw_limits_to_binary(
            prog, B0, L.PITCH_0_TO_PI | L.PITCH_NEG_PI_2_TO_PI_2 | L.ROLL_0_TO_PI
        )
        assert count == 2
        fixed = {
            box.variables[0].name: box.lb[0]
            for box in prog.constraints_of_kind(ConstraintKind.BOUNDING_BOX)
        }
        assert fixed == {"B0(2,0)": 0.0, "B0(2,1)": 1.0}
