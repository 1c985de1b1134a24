"""Tests for Program and the solver backends."""
import numpy as np
import pytest

import so3relax as so3
from so3relax import ConstraintKind, Maximize, Minimize, Program, SolverStatus
from so3relax.solvers import (
    MilpBackend,
    ScipyBackend,
    SolverResult,
    SolverStats,
    get_solver_backend,
    register_solver_backend,
)


class TestProgramVariables:
    def test_variable_names_and_indices(self):
        prog = Program()
        x = prog.new_continuous_variables(2, "x")
        R = prog.new_continuous_variables((2, 2), "R")
        assert [v.name for v in x] == ["x(0)", "x(1)"]
        assert R[1, 0].name == "R(1,0)"
        assert [v.index for v in prog.variables] == list(range(6))
        assert prog.num_vars == 6

    def test_binary_indices(self):
        prog = Program()
        prog.new_continuous_variables(2)
        b = prog.new_binary_variables(3, "b")
        assert prog.binary_indices == (2, 3, 4)
        assert all(v.is_binary for v in b)


class TestProgramConstraints:
    def test_add_constraint_variants(self):
        prog = Program()
        x = prog.new_continuous_variables(3)
        prog.add_linear_constraint(x[0] + x[1], lb=1.0)
        prog.add_linear_constraint(x[0] <= 2)
        prog.add_linear_equality_constraint(x[2], 0.5)
        prog.add_bounding_box_constraint(-1.0, 1.0, x)
        prog.add_lorentz_cone_constraint([1.0, x[0], x[1]])
        prog.add_constraint(c for c in [x[1] >= -1, x[2] <= 1])
        assert len(prog.constraints) == 7
        assert len(prog.constraints_of_kind(ConstraintKind.LINEAR)) == 5
        assert len(prog.constraints_of_kind("bounding_box")) == 1

    def test_foreign_variables_rejected(self):
        big = Program("big")
        y = big.new_continuous_variables(5)
        small = Program("small")
        small.new_continuous_variables(1)
        with pytest.raises(ValueError):
            small.add_linear_constraint(y[4], ub=1.0)

    def test_non_descriptor_rejected(self):
        prog = Program()
        with pytest.raises(TypeError):
            prog.add_constraint(3.0)

    def test_foreign_objective_rejected(self):
        big = Program("big")
        y = big.new_continuous_variables(5)
        small = Program("small")
        small.new_continuous_variables(1)
        with pytest.raises(ValueError):
            small.set_objective(Minimize(y[4]))

    def test_objective_type_checked(self):
        prog = Program()
        x = prog.new_continuous_variables(1)
        with pytest.raises(TypeError):
            prog.set_objective(x[0])

    def test_evaluate_and_check(self):
        prog = Program()
        x = prog.new_continuous_variables(2)
        prog.add_linear_constraint(x[0] + x[1], ub=1.0)
        prog.add_bounding_box_constraint(0.0, 1.0, x)
        point = prog.evaluate({x[0]: 0.25, x[1]: 0.5})
        np.testing.assert_allclose(point, [0.25, 0.5])
        assert prog.check_satisfied({x[0]: 0.25, x[1]: 0.5})
        violated = prog.violated_constraints({x[0]: 0.75, x[1]: 0.5})
        assert len(violated) == 1
        assert violated[0].kind == ConstraintKind.LINEAR

    def test_evaluate_rejects_other_programs_variables(self):
        prog = Program()
        prog.new_continuous_variables(2)
        other = Program()
        z = other.new_continuous_variables(2)
        with pytest.raises(ValueError):
            prog.evaluate({z[0]: 1.0})


class TestScipyBackend:
    def test_linear_program(self):
        prog = Program()
        x = prog.new_continuous_variables(2)
        prog.add_bounding_box_constraint(0.0, 4.0, x)
        prog.add_linear_constraint(x[0] + 2 * x[1], ub=4.0)
        prog.set_objective(Maximize(x[0] + x[1]))
        result = prog.solve()
        assert result.status == SolverStatus.OPTIMAL
        assert result.stats.solver_name == "SLSQP"
        assert result.objective_value == pytest.approx(4.0, abs=1e-6)
        assert prog.get_solution(x) == pytest.approx([4.0, 0.0], abs=1e-6)

    def test_lorentz_cone_program(self):
        prog = Program()
        x = prog.new_continuous_variables(2)
        prog.add_lorentz_cone_constraint([1.0, x[0], x[1]])
        prog.set_objective(Minimize(x[0] + x[1]))
        result = prog.solve(solver=so3.SLSQP)
        assert result.is_success
        assert result.objective_value == pytest.approx(-np.sqrt(2), abs=1e-4)
        assert x[0].value == pytest.approx(-1 / np.sqrt(2), abs=1e-3)

    def test_equality_constraint(self):
        prog = Program()
        x = prog.new_continuous_variables(2)
        prog.add_linear_equality_constraint(x[0] + x[1], 1.0)
        prog.add_rotated_lorentz_cone_constraint([1.0, 1.0, x[0], x[1]])
        prog.set_objective(Minimize(x[0]))
        prog.solve()
        assert x[0].value + x[1].value == pytest.approx(1.0, abs=1e-6)
        assert x[0].value == pytest.approx(0.0, abs=1e-4)

    def test_binaries_rejected(self):
        prog = Program()
        prog.new_binary_variables(1)
        with pytest.raises(ValueError):
            prog.solve(solver=so3.SLSQP)

    def test_unsupported_method(self):
        with pytest.raises(ValueError):
            ScipyBackend().solve(None, "BFGS", {})


class TestMilpBackend:
    def test_binary_knapsack(self):
        prog = Program()
        b = prog.new_binary_variables(3, "b")
        prog.add_linear_constraint(3 * b[0] + 2 * b[1] + 2 * b[2], ub=4.0)
        prog.set_objective(Maximize(4 * b[0] + 3 * b[1] + 3 * b[2]))
        result = prog.solve()
        assert result.status == SolverStatus.OPTIMAL
        assert result.stats.solver_name == "HiGHS"
        assert result.objective_value == pytest.approx(6.0)
        assert prog.get_solution(b) == pytest.approx([0.0, 1.0, 1.0])

    def test_mixed_integer(self):
        prog = Program()
        x = prog.new_continuous_variables(1)[0]
        b = prog.new_binary_variables(1)[0]
        prog.add_bounding_box_constraint(0.0, 10.0, x)
        prog.add_linear_constraint(x - 10 * b, ub=0.0)
        prog.set_objective(Minimize(b - 0.2 * x))
        result = prog.solve(solver=so3.HIGHS, solver_options={"time_limit": 10.0})
        assert result.status == SolverStatus.OPTIMAL
        assert result.objective_value == pytest.approx(-1.0)
        assert x.value == pytest.approx(10.0)

    def test_infeasible(self):
        prog = Program()
        b = prog.new_binary_variables(1)[0]
        prog.add_linear_constraint(b, 0.3, 0.7)
        result = prog.solve()
        assert result.status == SolverStatus.INFEASIBLE
        assert not result.is_success
        assert b.value is None

    def test_cones_rejected(self):
        prog = Program()
        x = prog.new_continuous_variables(2)
        prog.new_binary_variables(1)
        prog.add_lorentz_cone_constraint([1.0, x[0], x[1]])
        with pytest.raises(ValueError):
            prog.solve()

    def test_unknown_option_rejected(self):
        prog = Program()
        prog.new_binary_variables(1)
        with pytest.raises(ValueError):
            prog.solve(solver_options={"bogus": 1})


class TestSolverRegistry:
    def test_lookup(self):
        assert isinstance(get_solver_backend("SLSQP"), ScipyBackend)
        assert isinstance(get_solver_backend(so3.HIGHS), MilpBackend)

    def test_unknown_solver(self):
        with pytest.raises(ValueError):
            get_solver_backend("not-a-solver")

    def test_register_backend(self):
        class ZeroBackend:
            def solve(self, problem_data, solver, solver_options):
                return SolverResult(
                    x=np.zeros(problem_data.num_vars),
                    status=SolverStatus.OPTIMAL,
                    stats=SolverStats(solver_name=solver),
                    objective_value=0.0,
                )

        register_solver_backend("zero", ZeroBackend())
        prog = Program()
        x = prog.new_continuous_variables(2)
        result = prog.solve(solver="zero")
        assert result.stats.solver_name == "zero"
        assert prog.get_solution(x) == pytest.approx([0.0, 0.0])

    def test_solution_before_solve(self):
        prog = Program()
        x = prog.new_continuous_variables(1)
        with pytest.raises(ValueError):
            prog.get_solution(x)
