from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import autograd.numpy as anp  # type: ignore
import numpy as np


ArrayLike = anp.ndarray


class SolverStatus(StrEnum):
    OPTIMAL = "optimal"
    SUBOPTIMAL = "suboptimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    MAX_ITERATIONS = "max_iterations"
    NUMERICAL_ERROR = "numerical_error"
    ERROR = "error"
    UNKNOWN = "unknown"


@dataclass
class ConstraintData:
    type: str
    fun: Callable[[ArrayLike], ArrayLike]
    jac: Callable[[ArrayLike], ArrayLike]
    kind: str


@dataclass
class ProblemData:
    x0: ArrayLike
    var_names: List[str]
    objective: np.ndarray
    objective_constant: float
    constraints: Sequence[object]
    lower_bounds: np.ndarray
    upper_bounds: np.ndarray
    binary_indices: Sequence[int] = field(default_factory=tuple)
    setup_time: float = 0.0

    @property
    def num_vars(self) -> int:
        return len(self.var_names)

    def bounds(self) -> List[Tuple[Optional[float], Optional[float]]]:
        """Bounds in the (lb, ub) list form used by scipy.optimize.minimize."""
        return [
            (None if np.isneginf(lb) else float(lb), None if np.isposinf(ub) else float(ub))
            for lb, ub in zip(self.lower_bounds, self.upper_bounds)
        ]


@dataclass
class SolverStats:
    solver_name: str
    solve_time: Optional[float] = None
    setup_time: Optional[float] = None
    num_iters: Optional[int] = None


@dataclass
class SolverResult:
    x: ArrayLike
    status: SolverStatus
    stats: SolverStats
    objective_value: Optional[float] = None
    raw_result: Optional[object] = None

    @property
    def is_success(self) -> bool:
        return self.status in (SolverStatus.OPTIMAL, SolverStatus.SUBOPTIMAL)


class SolverBackend(Protocol):
    def solve(
        self,
        problem_data: ProblemData,
        solver: str,
        solver_options: Dict[str, object],
    ) -> SolverResult:
        ...
