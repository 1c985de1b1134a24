from __future__ import annotations

import logging
import time
from typing import Dict, List

import autograd.numpy as anp  # type: ignore
import numpy as np
from autograd import jacobian  # type: ignore
from scipy.optimize import minimize  # type: ignore

from ..constants import ConstraintKind
from .base import (
    ConstraintData,
    ProblemData,
    SolverResult,
    SolverStats,
    SolverStatus,
)


logger = logging.getLogger(__name__)


class ScipyBackend:
    SUPPORTED_METHODS = {"SLSQP"}

    def solve(
        self,
        problem_data: ProblemData,
        solver: str,
        solver_options: Dict[str, object],
    ) -> SolverResult:
        method = str(solver)
        if method not in self.SUPPORTED_METHODS:
            raise ValueError(f"Solver '{method}' is not supported by the SciPy backend")

        if len(problem_data.binary_indices) > 0:
            raise ValueError("SciPy backend does not support binary decision variables")

        options = dict(solver_options)
        verbose = bool(options.pop("verbose", False))
        options.setdefault("maxiter", 500)
        options.setdefault("ftol", 1e-10)
        options.setdefault("disp", verbose)

        setup_start = time.time()
        c = np.asarray(problem_data.objective, dtype=float)
        constant = float(problem_data.objective_constant)

        def obj_func(x):
            return anp.dot(c, x) + constant

        def obj_grad(x):
            return c

        constraint_data = self._build_constraint_data(problem_data)
        cons = [self._to_scipy_constraint(cd) for cd in constraint_data]

        # SLSQP only takes finite bounds seriously, clip the start point into them
        x0 = np.clip(
            np.asarray(problem_data.x0, dtype=float),
            problem_data.lower_bounds,
            problem_data.upper_bounds,
        )
        setup_time = problem_data.setup_time + time.time() - setup_start

        start_time = time.time()
        result = minimize(
            obj_func,
            x0,
            jac=obj_grad,
            bounds=problem_data.bounds(),
            constraints=cons,
            method=method,
            options=options,
        )
        solve_time = time.time() - start_time

        solver_status = self._interpret_status(result)
        logger.debug(
            f"SLSQP finished with status {result.status} ({result.message}) "
            f"after {getattr(result, 'nit', None)} iterations"
        )

        stats = SolverStats(
            solver_name=method,
            solve_time=solve_time,
            setup_time=setup_time,
            num_iters=getattr(result, "nit", None),
        )

        return SolverResult(
            x=np.asarray(result.x, dtype=float),
            status=solver_status,
            stats=stats,
            objective_value=float(result.fun),
            raw_result=result,
        )

    @staticmethod
    def _build_constraint_data(problem_data: ProblemData) -> List[ConstraintData]:
        constraints: List[ConstraintData] = []
        n = problem_data.num_vars

        for constraint in problem_data.constraints:
            if constraint.kind == ConstraintKind.LINEAR:
                # Linear rows have a constant jacobian, skip autograd for them
                a = constraint.expr.coefficient_vector(n)
                if constraint.is_equality:

                    def con_fun(x, a=a, b=constraint.lb):
                        return anp.array([anp.dot(a, x) - b])

                    def con_jac(x, a=a):
                        return a[None, :]

                    con_type = "eq"
                else:
                    rows, offsets = [], []
                    if np.isfinite(constraint.lb):
                        rows.append(a)
                        offsets.append(-constraint.lb)
                    if np.isfinite(constraint.ub):
                        rows.append(-a)
                        offsets.append(constraint.ub)
                    if not rows:
                        continue
                    A = np.array(rows)
                    offset = np.array(offsets)

                    def con_fun(x, A=A, offset=offset):
                        return anp.dot(A, x) + offset

                    def con_jac(x, A=A):
                        return A

                    con_type = "ineq"
            else:
                con_fun = constraint.residual
                con_jac = jacobian(con_fun)
                con_type = "ineq"

            constraints.append(
                ConstraintData(
                    type=con_type,
                    fun=con_fun,
                    jac=con_jac,
                    kind=str(constraint.kind),
                )
            )

        return constraints

    @staticmethod
    def _to_scipy_constraint(constraint: ConstraintData) -> Dict[str, object]:
        return {"type": constraint.type, "fun": constraint.fun, "jac": constraint.jac}

    @staticmethod
    def _interpret_status(result) -> SolverStatus:
        status_code = getattr(result, "status", None)
        success = bool(getattr(result, "success", False))

        if success:
            return SolverStatus.OPTIMAL

        # scipy's SLSQP exit modes
        status_map = {
            0: SolverStatus.OPTIMAL,
            2: SolverStatus.INFEASIBLE,
            3: SolverStatus.NUMERICAL_ERROR,
            4: SolverStatus.INFEASIBLE,
            5: SolverStatus.NUMERICAL_ERROR,
            6: SolverStatus.NUMERICAL_ERROR,
            8: SolverStatus.NUMERICAL_ERROR,
            9: SolverStatus.MAX_ITERATIONS,
        }

        if status_code is None:
            return SolverStatus.UNKNOWN

        return status_map.get(status_code, SolverStatus.ERROR)
