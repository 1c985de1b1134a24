from __future__ import annotations

from typing import Dict

from ..constants import Solver
from .base import (
    ConstraintData,
    ProblemData,
    SolverBackend,
    SolverResult,
    SolverStats,
    SolverStatus,
)
from .scipy_backend import ScipyBackend
from .milp_backend import MilpBackend


_SCIPY_BACKEND = ScipyBackend()
_MILP_BACKEND = MilpBackend()


_SOLVER_BACKENDS: Dict[str, SolverBackend] = {
    Solver.SLSQP.value: _SCIPY_BACKEND,
    Solver.HIGHS.value: _MILP_BACKEND,
}


def register_solver_backend(solver_name: str, backend: SolverBackend) -> None:
    _SOLVER_BACKENDS[solver_name] = backend


def get_solver_backend(solver: Solver | str) -> SolverBackend:
    solver_name = solver.value if isinstance(solver, Solver) else str(solver)
    if solver_name not in _SOLVER_BACKENDS:
        raise ValueError(f"No solver backend registered for solver '{solver_name}'")
    return _SOLVER_BACKENDS[solver_name]


__all__ = [
    "ConstraintData",
    "ProblemData",
    "SolverBackend",
    "SolverResult",
    "SolverStats",
    "SolverStatus",
    "ScipyBackend",
    "MilpBackend",
    "get_solver_backend",
    "register_solver_backend",
]
