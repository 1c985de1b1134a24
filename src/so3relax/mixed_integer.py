"""Logarithmic binary encodings for piecewise-linear relaxations."""

from __future__ import annotations

import logging
import math

import numpy as np

from .expression import expr_sum


logger = logging.getLogger(__name__)


def ceil_log2(n: int) -> int:
    """Smallest d with 2**d >= n."""
    if n < 1:
        raise ValueError(f"ceil_log2 needs a positive integer, got {n}")
    return int(math.ceil(math.log2(n))) if n > 1 else 0


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def calculate_reflected_gray_codes(num_digits: int) -> np.ndarray:
    """Reflected Gray codes of 0 .. 2**num_digits - 1.

    Row i holds the code of i with the most significant digit in column 0,
    so consecutive rows differ in exactly one column.
    """
    if num_digits < 0:
        raise ValueError(f"num_digits must be non-negative, got {num_digits}")
    num_codes = 1 << num_digits
    codes = np.zeros((num_codes, num_digits), dtype=int)
    for i in range(num_codes):
        gray = i ^ (i >> 1)
        for j in range(num_digits):
            codes[i, j] = (gray >> (num_digits - 1 - j)) & 1
    return codes


def add_logarithmic_sos2_constraint(prog, lambdas, binary_name: str = "y") -> np.ndarray:
    """Constrain `lambdas` to be an SOS2 vector using log2 many binaries.

    With n = len(lambdas) weights there are n - 1 intervals, each addressed
    by the Gray code of its index. A weight may be positive only if one of
    the (at most two) intervals it borders is selected, which is written per
    digit j as

        sum(lambda_i where both neighbouring codes have digit j == 1) <= y_j
        sum(lambda_i where both neighbouring codes have digit j == 0) <= 1 - y_j

    together with sum(lambda) == 1 and lambda >= 0.

    Returns:
        The binary variables y, most significant digit first.
    """
    lambdas = np.ravel(np.asarray(lambdas, dtype=object))
    num_lambda = len(lambdas)
    if num_lambda < 2:
        raise ValueError(f"SOS2 needs at least two weights, got {num_lambda}")

    num_interval = num_lambda - 1
    num_digits = ceil_log2(num_interval)
    codes = calculate_reflected_gray_codes(num_digits)
    y = prog.new_binary_variables(num_digits, binary_name)

    prog.add_bounding_box_constraint(0.0, 1.0, lambdas)
    prog.add_linear_equality_constraint(expr_sum(lambdas), 1.0)

    for j in range(num_digits):
        ones, zeros = [], []
        # the first and last weights only border one interval
        (ones if codes[0, j] == 1 else zeros).append(lambdas[0])
        for i in range(1, num_lambda - 1):
            if codes[i - 1, j] == 1 and codes[i, j] == 1:
                ones.append(lambdas[i])
            elif codes[i - 1, j] == 0 and codes[i, j] == 0:
                zeros.append(lambdas[i])
        last = num_interval - 1
        (ones if codes[last, j] == 1 else zeros).append(lambdas[-1])

        prog.add_linear_constraint(expr_sum(ones) - y[j], ub=0.0)
        prog.add_linear_constraint(expr_sum(zeros) + y[j], ub=1.0)

    logger.debug(
        f"SOS2 on {num_lambda} weights with {num_digits} binaries '{binary_name}'"
    )
    return y
