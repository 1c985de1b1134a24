"""Mixed-integer linear programs through scipy.optimize.milp (HiGHS).

Every relaxation row produced by the McCormick emitter is linear, so this
backend is the one the mixed-integer relaxations are solved with. Cone and
LMI descriptors are rejected rather than silently dropped.
"""

from __future__ import annotations

import logging
import time
from typing import Dict

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp  # type: ignore
from scipy.sparse import coo_array  # type: ignore

from ..constants import ConstraintKind
from .base import ProblemData, SolverResult, SolverStats, SolverStatus


logger = logging.getLogger(__name__)


class MilpBackend:
    SUPPORTED_METHODS = {"HiGHS"}

    def solve(
        self,
        problem_data: ProblemData,
        solver: str,
        solver_options: Dict[str, object],
    ) -> SolverResult:
        method = str(solver)
        if method not in self.SUPPORTED_METHODS:
            raise ValueError(f"Solver '{method}' is not supported by the MILP backend")

        unsupported = sorted(
            {str(c.kind) for c in problem_data.constraints if c.kind != ConstraintKind.LINEAR}
        )
        if unsupported:
            raise ValueError(
                f"MILP backend only handles linear constraints, got {', '.join(unsupported)}"
            )

        options = dict(solver_options)
        verbose = bool(options.pop("verbose", False))
        milp_options = {
            "disp": bool(options.pop("disp", verbose)),
            "presolve": bool(options.pop("presolve", True)),
        }
        time_limit = options.pop("time_limit", None)
        if time_limit is not None:
            milp_options["time_limit"] = float(time_limit)
        mip_rel_gap = options.pop("mip_rel_gap", None)
        if mip_rel_gap is not None:
            milp_options["mip_rel_gap"] = float(mip_rel_gap)
        if options:
            raise ValueError(f"Unknown HiGHS options: {', '.join(sorted(options))}")

        setup_start = time.time()
        n = problem_data.num_vars
        c = np.asarray(problem_data.objective, dtype=float)

        integrality = np.zeros(n, dtype=int)
        integrality[list(problem_data.binary_indices)] = 1

        rows, cols, vals = [], [], []
        b_lower, b_upper = [], []
        for row, constraint in enumerate(problem_data.constraints):
            for idx, coeff in constraint.expr.coeffs.items():
                rows.append(row)
                cols.append(idx)
                vals.append(coeff)
            b_lower.append(constraint.lb)
            b_upper.append(constraint.ub)

        if b_lower:
            A = coo_array((vals, (rows, cols)), shape=(len(b_lower), n)).tocsr()
            milp_constraints = LinearConstraint(A, b_lower, b_upper)
        else:
            milp_constraints = None
        setup_time = problem_data.setup_time + time.time() - setup_start

        start_time = time.time()
        result = milp(
            c=c,
            constraints=milp_constraints,
            integrality=integrality,
            bounds=Bounds(problem_data.lower_bounds, problem_data.upper_bounds),
            options=milp_options,
        )
        solve_time = time.time() - start_time

        solver_status = self._interpret_status(result)
        logger.debug(
            f"HiGHS finished with status {result.status} ({result.message}) "
            f"on {n} variables and {len(b_lower)} rows"
        )

        if result.x is None:
            x = np.full(n, np.nan)
            objective_value = None
        else:
            x = np.asarray(result.x, dtype=float)
            objective_value = float(result.fun) + float(problem_data.objective_constant)

        stats = SolverStats(
            solver_name=method,
            solve_time=solve_time,
            setup_time=setup_time,
            num_iters=None,
        )

        return SolverResult(
            x=x,
            status=solver_status,
            stats=stats,
            objective_value=objective_value,
            raw_result=result,
        )

    @staticmethod
    def _interpret_status(result) -> SolverStatus:
        status_code = getattr(result, "status", None)

        status_map = {
            0: SolverStatus.OPTIMAL,
            1: SolverStatus.MAX_ITERATIONS,
            2: SolverStatus.INFEASIBLE,
            3: SolverStatus.UNBOUNDED,
            4: SolverStatus.ERROR,
        }

        if status_code is None:
            return SolverStatus.UNKNOWN

        status = status_map.get(status_code, SolverStatus.ERROR)
        # a time limit hit with an incumbent still leaves a usable point
        if status == SolverStatus.MAX_ITERATIONS and getattr(result, "x", None) is not None:
            return SolverStatus.SUBOPTIMAL
        return status
