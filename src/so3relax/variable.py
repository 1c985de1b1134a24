import threading

import numpy as np

from .expression import BaseExpr, LinearExpr
from .constants import VarType


# Thread-local storage for variable ID counter
_thread_local = threading.local()


def _get_next_id() -> int:
    """Get the next variable ID in a thread-safe manner."""
    if not hasattr(_thread_local, "var_id"):
        _thread_local.var_id = 0
    current = _thread_local.var_id
    _thread_local.var_id += 1
    return current


def reset_variable_ids():
    """Reset the variable ID counter for the current thread."""
    _thread_local.var_id = 0


class Variable(BaseExpr):
    """A scalar decision variable living in column `index` of its program.

    Variables are allocated by `Program.new_continuous_variables` and
    `Program.new_binary_variables`; building one by hand is only useful for
    tests of the expression layer.
    """

    __array_priority__ = 100

    def __init__(self, index, name=None, vtype=VarType.CONTINUOUS):
        assert isinstance(index, (int, np.integer)), "Index must be an integer"
        assert index >= 0, "Index must be non-negative"
        assert isinstance(vtype, VarType), "vtype must be a VarType"

        var_id = _get_next_id()
        self.name = name if name else f"x{var_id}"
        self.index = int(index)
        self.vtype = vtype
        self._value = None
        self._id = var_id

    @property
    def is_binary(self):
        return self.vtype == VarType.BINARY

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, val):
        self._value = None if val is None else float(val)

    def to_expr(self):
        return LinearExpr({self.index: 1.0})

    def __repr__(self):
        return f"Var({self.name}, index={self.index})"

    def __hash__(self):
        return hash((self.name, self.index, self._id))
