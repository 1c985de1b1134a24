"""Constraint descriptors.

Every relaxation in this package is expressed as a sequence of these tagged
records. A descriptor only refers to variable indices, so it can be checked
against a candidate point, handed to a solver backend, or inspected in a test
without knowing anything about the program it will end up in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

import autograd.numpy as anp
import numpy as np

from .constants import ConstraintKind, DEFAULT_FEASIBILITY_TOL, NORM_EPS
from .expression import LinearExpr, as_expr


class Constraint:
    kind: ConstraintKind

    @property
    def indices(self) -> Tuple[int, ...]:
        raise NotImplementedError

    @property
    def is_linear(self) -> bool:
        return self.kind in (ConstraintKind.LINEAR, ConstraintKind.BOUNDING_BOX)

    def residual(self, x):
        """Residual array, every entry >= 0 iff the constraint holds at x."""
        raise NotImplementedError

    def violation(self, x) -> float:
        res = np.ravel(np.asarray(self.residual(np.asarray(x, dtype=float))))
        if res.size == 0:
            return 0.0
        return float(max(0.0, -np.min(res)))

    def is_satisfied(self, x, tol: float = DEFAULT_FEASIBILITY_TOL) -> bool:
        return self.violation(x) <= tol


def _exprs(items) -> Tuple[LinearExpr, ...]:
    return tuple(as_expr(item) for item in np.ravel(np.asarray(items, dtype=object)))


def _stack(exprs: Sequence[LinearExpr], x):
    return anp.array([e.evaluate(x) for e in exprs])


def _union(exprs: Sequence[LinearExpr]) -> Tuple[int, ...]:
    return tuple(sorted({i for e in exprs for i in e.coeffs}))


@dataclass(frozen=True, eq=False)
class LinearConstraint(Constraint):
    """lb <= expr <= ub, with the constant of `expr` folded into the bounds."""

    expr: LinearExpr
    lb: float = -np.inf
    ub: float = np.inf
    kind: ConstraintKind = field(default=ConstraintKind.LINEAR, init=False)

    def __post_init__(self):
        expr = as_expr(self.expr)
        if expr.constant != 0.0:
            object.__setattr__(self, "lb", self.lb - expr.constant)
            object.__setattr__(self, "ub", self.ub - expr.constant)
            expr = LinearExpr(expr.coeffs)
        object.__setattr__(self, "expr", expr)
        if self.lb > self.ub:
            raise ValueError(f"Linear constraint lower bound {self.lb} > upper bound {self.ub}")

    @classmethod
    def from_comparison(cls, left, op, right) -> LinearConstraint:
        assert op in [">=", "<=", "=="]
        diff = as_expr(left) - as_expr(right)
        if op == "<=":
            return cls(diff, -np.inf, 0.0)
        if op == ">=":
            return cls(diff, 0.0, np.inf)
        return cls(diff, 0.0, 0.0)

    @property
    def is_equality(self) -> bool:
        return self.lb == self.ub

    @property
    def indices(self):
        return self.expr.indices

    def residual(self, x):
        val = self.expr.evaluate(x)
        if self.is_equality:
            # two-sided so that violation() sees |val - lb|
            return anp.array([val - self.lb, self.lb - val])
        res = []
        if np.isfinite(self.lb):
            res.append(val - self.lb)
        if np.isfinite(self.ub):
            res.append(self.ub - val)
        return anp.array(res)


@dataclass(frozen=True, eq=False)
class BoundingBoxConstraint(Constraint):
    """lb <= x[i] <= ub elementwise over a set of variables."""

    variables: Tuple
    lb: np.ndarray
    ub: np.ndarray
    kind: ConstraintKind = field(default=ConstraintKind.BOUNDING_BOX, init=False)

    def __post_init__(self):
        variables = tuple(np.ravel(np.asarray(self.variables, dtype=object)))
        n = len(variables)
        # bounds may come in the shape of the variable array
        lb = np.broadcast_to(np.ravel(np.asarray(self.lb, dtype=float)), (n,)).copy()
        ub = np.broadcast_to(np.ravel(np.asarray(self.ub, dtype=float)), (n,)).copy()
        if np.any(lb > ub):
            raise ValueError("Bounding box lower bound exceeds upper bound")
        object.__setattr__(self, "variables", variables)
        object.__setattr__(self, "lb", lb)
        object.__setattr__(self, "ub", ub)

    @property
    def indices(self):
        return tuple(v.index for v in self.variables)

    def residual(self, x):
        vals = x[list(self.indices)]
        return anp.concatenate([vals - self.lb, self.ub - vals])


@dataclass(frozen=True, eq=False)
class LorentzConeConstraint(Constraint):
    """z[0] >= ||z[1:]||_2 for the affine vector z."""

    exprs: Tuple[LinearExpr, ...]
    kind: ConstraintKind = field(default=ConstraintKind.LORENTZ_CONE, init=False)

    def __post_init__(self):
        exprs = _exprs(self.exprs)
        if len(exprs) < 2:
            raise ValueError("Lorentz cone needs at least two entries")
        object.__setattr__(self, "exprs", exprs)

    @property
    def indices(self):
        return _union(self.exprs)

    def residual(self, x):
        z = _stack(self.exprs, x)
        return anp.array([z[0] - anp.sqrt(anp.sum(z[1:] * z[1:]) + NORM_EPS)])

    def violation(self, x):
        z = _stack(self.exprs, np.asarray(x, dtype=float))
        return float(max(0.0, np.linalg.norm(z[1:]) - z[0]))


@dataclass(frozen=True, eq=False)
class RotatedLorentzConeConstraint(Constraint):
    """z[0] * z[1] >= ||z[2:]||^2 with z[0] >= 0 and z[1] >= 0."""

    exprs: Tuple[LinearExpr, ...]
    kind: ConstraintKind = field(default=ConstraintKind.ROTATED_LORENTZ_CONE, init=False)

    def __post_init__(self):
        exprs = _exprs(self.exprs)
        if len(exprs) < 3:
            raise ValueError("Rotated Lorentz cone needs at least three entries")
        object.__setattr__(self, "exprs", exprs)

    @property
    def indices(self):
        return _union(self.exprs)

    def residual(self, x):
        z = _stack(self.exprs, x)
        return anp.array([z[0], z[1], z[0] * z[1] - anp.sum(z[2:] * z[2:])])


@dataclass(frozen=True, eq=False)
class LinearMatrixInequalityConstraint(Constraint):
    """F[0] + sum_i exprs[i] * F[i + 1] is positive semidefinite."""

    F: Tuple[np.ndarray, ...]
    exprs: Tuple[LinearExpr, ...]
    kind: ConstraintKind = field(
        default=ConstraintKind.LINEAR_MATRIX_INEQUALITY, init=False
    )

    def __post_init__(self):
        F = tuple(np.asarray(Fi, dtype=float) for Fi in self.F)
        exprs = _exprs(self.exprs)
        if len(F) != len(exprs) + 1:
            raise ValueError(
                f"LMI needs len(F) == len(exprs) + 1, got {len(F)} and {len(exprs)}"
            )
        shape = F[0].shape
        for Fi in F:
            if Fi.shape != shape or shape[0] != shape[1]:
                raise ValueError("LMI matrices must be square and of equal size")
            if not np.allclose(Fi, Fi.T):
                raise ValueError("LMI matrices must be symmetric")
        object.__setattr__(self, "F", F)
        object.__setattr__(self, "exprs", exprs)

    @property
    def indices(self):
        return _union(self.exprs)

    def matrix(self, x):
        z = _stack(self.exprs, x)
        stacked = anp.stack(self.F[1:])
        return self.F[0] + anp.tensordot(z, stacked, axes=1)

    def residual(self, x):
        return anp.linalg.eigh(self.matrix(x))[0]
