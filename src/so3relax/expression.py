from __future__ import annotations

from numbers import Real
from typing import Dict, Iterable, Sequence

import autograd.numpy as anp
import numpy as np


def is_constant(obj) -> bool:
    """True for real scalars and 0-d numeric arrays."""
    if isinstance(obj, BaseExpr):
        return False
    if isinstance(obj, np.ndarray):
        return obj.ndim == 0 and np.issubdtype(obj.dtype, np.number)
    return isinstance(obj, (Real, np.number)) and not isinstance(obj, bool)


def as_expr(obj) -> LinearExpr:
    if isinstance(obj, BaseExpr):
        return obj.to_expr()
    if is_constant(obj):
        return LinearExpr(constant=float(obj))
    raise TypeError(f"Cannot convert {type(obj).__name__} to a linear expression")


class BaseExpr:
    """Operator overloading shared by variables and linear expressions.

    Only operations that keep an expression affine are supported. Comparisons
    build `LinearConstraint` descriptors, so `x + y <= 1` reads like the
    constraint it stands for.
    """

    __array_priority__ = 100
    # numpy operands hand binary operators back to us
    __array_ufunc__ = None

    def to_expr(self) -> LinearExpr:
        raise NotImplementedError

    def __add__(self, other):
        return self.to_expr()._combine(as_expr(other), 1.0)

    def __radd__(self, other):
        return as_expr(other)._combine(self.to_expr(), 1.0)

    def __sub__(self, other):
        return self.to_expr()._combine(as_expr(other), -1.0)

    def __rsub__(self, other):
        return as_expr(other)._combine(self.to_expr(), -1.0)

    def __mul__(self, other):
        if not is_constant(other):
            raise TypeError(
                "Only products with constants are linear; got "
                f"{type(self).__name__} * {type(other).__name__}"
            )
        return self.to_expr()._scale(float(other))

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        if not is_constant(other):
            raise TypeError("Only division by a constant is linear")
        return self.to_expr()._scale(1.0 / float(other))

    def __neg__(self):
        return self.to_expr()._scale(-1.0)

    def __pos__(self):
        return self.to_expr()

    def __ge__(self, other):
        from .constraint import LinearConstraint

        return LinearConstraint.from_comparison(self, ">=", other)

    def __le__(self, other):
        from .constraint import LinearConstraint

        return LinearConstraint.from_comparison(self, "<=", other)

    def __eq__(self, other):
        from .constraint import LinearConstraint

        return LinearConstraint.from_comparison(self, "==", other)

    __hash__ = object.__hash__


class LinearExpr(BaseExpr):
    """Sparse affine expression  sum_i coeffs[i] * x[i] + constant.

    Keys of `coeffs` are variable indices of the owning program.
    """

    __slots__ = ("coeffs", "constant")

    def __init__(self, coeffs: Dict[int, float] | None = None, constant: float = 0.0):
        self.coeffs = {int(k): float(v) for k, v in (coeffs or {}).items() if v != 0.0}
        self.constant = float(constant)

    def to_expr(self):
        return self

    def _combine(self, other: LinearExpr, sign: float) -> LinearExpr:
        coeffs = dict(self.coeffs)
        for idx, coeff in other.coeffs.items():
            coeffs[idx] = coeffs.get(idx, 0.0) + sign * coeff
        return LinearExpr(coeffs, self.constant + sign * other.constant)

    def _scale(self, factor: float) -> LinearExpr:
        return LinearExpr(
            {idx: factor * coeff for idx, coeff in self.coeffs.items()},
            factor * self.constant,
        )

    @property
    def indices(self):
        return tuple(sorted(self.coeffs))

    @property
    def is_constant(self) -> bool:
        return not self.coeffs

    def coefficient_vector(self, num_vars: int) -> np.ndarray:
        a = np.zeros(num_vars)
        for idx, coeff in self.coeffs.items():
            a[idx] = coeff
        return a

    def evaluate(self, x) -> float:
        """Evaluate at the flat point `x` (numpy array or autograd box)."""
        if not self.coeffs:
            return self.constant
        idx = list(self.coeffs)
        return anp.dot(anp.array([self.coeffs[i] for i in idx]), x[idx]) + self.constant

    def __repr__(self):
        terms = " + ".join(f"{c:g}*x[{i}]" for i, c in sorted(self.coeffs.items()))
        if not terms:
            return f"LinearExpr({self.constant:g})"
        return f"LinearExpr({terms} + {self.constant:g})"


def expr_sum(items: Iterable) -> LinearExpr:
    total = LinearExpr()
    for item in items:
        total = total._combine(as_expr(item), 1.0)
    return total


def _scalar(obj):
    return float(obj) if is_constant(obj) else obj


def dot(a: Sequence, b: Sequence) -> LinearExpr:
    """Inner product where, elementwise, at least one factor is a constant."""
    if len(a) != len(b):
        raise ValueError(f"Length mismatch in dot: {len(a)} vs {len(b)}")
    return expr_sum(_scalar(ai) * _scalar(bi) for ai, bi in zip(a, b))


def cross(a: Sequence, b: Sequence) -> np.ndarray:
    """Cross product of two 3-vectors, one of which is numeric."""
    if len(a) != 3 or len(b) != 3:
        raise ValueError("cross requires two vectors of length 3")
    a = [_scalar(ai) for ai in a]
    b = [_scalar(bi) for bi in b]
    out = np.empty(3, dtype=object)
    out[0] = as_expr(a[1] * b[2]) - a[2] * b[1]
    out[1] = as_expr(a[2] * b[0]) - a[0] * b[2]
    out[2] = as_expr(a[0] * b[1]) - a[1] * b[0]
    return out
