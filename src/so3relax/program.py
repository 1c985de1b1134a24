from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List, Sequence

import numpy as np

from .constants import ConstraintKind, DEFAULT_FEASIBILITY_TOL, Solver, VarType
from .constraint import (
    BoundingBoxConstraint,
    Constraint,
    LinearConstraint,
    LinearMatrixInequalityConstraint,
    LorentzConeConstraint,
    RotatedLorentzConeConstraint,
)
from .expression import as_expr
from .solvers import ProblemData, SolverResult, get_solver_backend
from .variable import Variable


logger = logging.getLogger(__name__)


class Minimize:
    def __init__(self, expr):
        self.expr = as_expr(expr)
        self.sense = 1.0


class Maximize:
    def __init__(self, expr):
        self.expr = -as_expr(expr)
        self.sense = -1.0


class Program:
    """A constraint-collecting optimization program over scalar variables.

    Relaxation constructors allocate variables and register constraint
    descriptors here; nothing is compiled until `solve` is called. Variables
    are numbered in allocation order, and that number is the column a
    variable occupies in every solver backend.
    """

    def __init__(self, name: str = "program"):
        self.name = name
        self.variables: List[Variable] = []
        self.constraints: List[Constraint] = []
        self.objective: Minimize | Maximize | None = None

        self.status = None
        self.solver_stats = None
        self._solution: np.ndarray | None = None

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def _new_variables(self, shape, name: str, vtype: VarType) -> np.ndarray:
        shape = (shape,) if isinstance(shape, (int, np.integer)) else tuple(shape)
        if any(dim < 0 for dim in shape):
            raise ValueError(f"Variable shape must be non-negative, got {shape}")

        out = np.empty(shape, dtype=object)
        for idx in np.ndindex(*shape):
            label = f"{name}({','.join(str(i) for i in idx)})" if idx else name
            var = Variable(len(self.variables), name=label, vtype=vtype)
            self.variables.append(var)
            out[idx] = var
        return out

    def new_continuous_variables(self, shape, name: str = "x") -> np.ndarray:
        return self._new_variables(shape, name, VarType.CONTINUOUS)

    def new_binary_variables(self, shape, name: str = "b") -> np.ndarray:
        """Binary variables; the [0, 1] bound is implied and not stored as a constraint."""
        return self._new_variables(shape, name, VarType.BINARY)

    @property
    def num_vars(self) -> int:
        return len(self.variables)

    @property
    def binary_indices(self) -> tuple:
        return tuple(v.index for v in self.variables if v.is_binary)

    def _check_owned(self, indices, what: str) -> None:
        for idx in indices:
            if idx >= self.num_vars:
                raise ValueError(
                    f"{what} refers to variable {idx}, but '{self.name}' has only "
                    f"{self.num_vars} variables"
                )

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def add_constraint(self, constraint):
        """Register a descriptor, or every descriptor of an iterable."""
        if isinstance(constraint, Constraint):
            self._check_owned(constraint.indices, "Constraint")
            self.constraints.append(constraint)
            return constraint
        if isinstance(constraint, Iterable):
            return [self.add_constraint(c) for c in constraint]
        raise TypeError(
            f"Expected a constraint descriptor, got {type(constraint).__name__}"
        )

    def add_linear_constraint(self, expr, lb=-np.inf, ub=np.inf) -> LinearConstraint:
        if isinstance(expr, LinearConstraint):
            return self.add_constraint(expr)
        return self.add_constraint(LinearConstraint(as_expr(expr), lb, ub))

    def add_linear_equality_constraint(self, expr, value=0.0) -> LinearConstraint:
        return self.add_constraint(LinearConstraint(as_expr(expr), value, value))

    def add_bounding_box_constraint(self, lb, ub, variables) -> BoundingBoxConstraint:
        return self.add_constraint(BoundingBoxConstraint(variables, lb, ub))

    def add_lorentz_cone_constraint(self, exprs) -> LorentzConeConstraint:
        return self.add_constraint(LorentzConeConstraint(exprs))

    def add_rotated_lorentz_cone_constraint(self, exprs) -> RotatedLorentzConeConstraint:
        return self.add_constraint(RotatedLorentzConeConstraint(exprs))

    def add_linear_matrix_inequality_constraint(
        self, F, exprs
    ) -> LinearMatrixInequalityConstraint:
        return self.add_constraint(LinearMatrixInequalityConstraint(F, exprs))

    def constraints_of_kind(self, kind: ConstraintKind | str) -> List[Constraint]:
        kind = ConstraintKind(kind)
        return [c for c in self.constraints if c.kind == kind]

    # ------------------------------------------------------------------
    # Objective
    # ------------------------------------------------------------------

    def set_objective(self, objective: Minimize | Maximize) -> None:
        if not isinstance(objective, (Minimize, Maximize)):
            raise TypeError(
                f"Objective must be Minimize or Maximize, got {type(objective).__name__}"
            )
        self._check_owned(objective.expr.coeffs, "Objective")
        self.objective = objective

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, values: Dict[Variable, float], fill: float = 0.0) -> np.ndarray:
        """Flat point from a {Variable: value} mapping, unset entries at `fill`."""
        x = np.full(self.num_vars, fill, dtype=float)
        for var, val in values.items():
            if not isinstance(var, Variable):
                raise TypeError(f"Expected Variable keys, got {type(var).__name__}")
            if var.index >= self.num_vars or self.variables[var.index] is not var:
                raise ValueError(f"{var!r} does not belong to '{self.name}'")
            x[var.index] = float(val)
        return x

    def _as_point(self, values) -> np.ndarray:
        if isinstance(values, dict):
            return self.evaluate(values)
        x = np.asarray(values, dtype=float)
        if x.shape != (self.num_vars,):
            raise ValueError(f"Expected a point of shape ({self.num_vars},), got {x.shape}")
        return x

    def violated_constraints(
        self, values, tol: float = DEFAULT_FEASIBILITY_TOL
    ) -> List[Constraint]:
        x = self._as_point(values)
        return [c for c in self.constraints if not c.is_satisfied(x, tol)]

    def check_satisfied(self, values, tol: float = DEFAULT_FEASIBILITY_TOL) -> bool:
        return not self.violated_constraints(values, tol)

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def _variable_bounds(self):
        lower = np.full(self.num_vars, -np.inf)
        upper = np.full(self.num_vars, np.inf)
        for idx in self.binary_indices:
            lower[idx] = 0.0
            upper[idx] = 1.0
        for c in self.constraints_of_kind(ConstraintKind.BOUNDING_BOX):
            idx = list(c.indices)
            lower[idx] = np.maximum(lower[idx], c.lb)
            upper[idx] = np.minimum(upper[idx], c.ub)
        return lower, upper

    def _select_default_solver(self, has_binaries: bool) -> Solver:
        """Select the default solver based on problem characteristics."""
        if has_binaries:
            return Solver.HIGHS
        return Solver.SLSQP

    def solve(self, solver=None, solver_options=None, verbose=False) -> SolverResult:
        """
        Solve the program.

        Args:
            solver: The solver to use. If None, HiGHS is used for programs
                    with binary variables and SLSQP otherwise.
            solver_options: Options forwarded to the backend.
            verbose: Whether the backend should print its progress.

        Returns:
            SolverResult with solution and status
        """
        options = dict(solver_options or {})
        if verbose and "verbose" not in options:
            options["verbose"] = True

        start_setup_time = time.time()
        objective = self.objective if self.objective is not None else Minimize(0.0)
        lower, upper = self._variable_bounds()

        x0 = np.zeros(self.num_vars)
        for v in self.variables:
            if v.value is not None:
                x0[v.index] = v.value

        problem_data = ProblemData(
            x0=x0,
            var_names=[v.name for v in self.variables],
            objective=objective.expr.coefficient_vector(self.num_vars),
            objective_constant=objective.expr.constant,
            constraints=[
                c for c in self.constraints if c.kind != ConstraintKind.BOUNDING_BOX
            ],
            lower_bounds=lower,
            upper_bounds=upper,
            binary_indices=self.binary_indices,
            setup_time=time.time() - start_setup_time,
        )

        if solver is None:
            solver = self._select_default_solver(bool(problem_data.binary_indices))

        backend = get_solver_backend(solver)
        solver_name = solver.value if isinstance(solver, Solver) else str(solver)

        result = backend.solve(problem_data, solver_name, options)
        if result.objective_value is not None:
            result.objective_value *= objective.sense

        self.status = result.status
        self.solver_stats = result.stats
        logger.info(
            f"{solver_name} solved '{self.name}' ({self.num_vars} variables, "
            f"{len(self.constraints)} constraints): {result.status}, "
            f"objective {result.objective_value}"
        )

        self._solution = np.asarray(result.x, dtype=float)
        for v in self.variables:
            val = self._solution[v.index]
            v.value = None if np.isnan(val) else val

        return result

    def get_solution(self, variables) -> np.ndarray:
        """Solution values with the shape of `variables` (a Variable or an array of them)."""
        if self._solution is None:
            raise ValueError(f"'{self.name}' has not been solved")
        arr = np.asarray(variables, dtype=object)
        out = np.empty(arr.shape, dtype=float)
        for idx in np.ndindex(*arr.shape):
            out[idx] = self._solution[arr[idx].index]
        return out if arr.shape else float(out)
