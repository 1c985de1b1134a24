"""Mapping between axis intervals, orthants and Gray-coded binaries.

Each axis of [-1, 1] is cut into 2N intervals at the breakpoints
phi(k) - 1, k = 0 .. 2N. A positive-orthant box is addressed by its three
half-axis interval indices (xi, yi, zi) in 0 .. N - 1, and reflected into
the other seven orthants by flipping the sign of some axes.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .expression import LinearExpr, as_expr


def envelope_breakpoint(k: int, num_intervals_per_half_axis: int) -> float:
    """phi(k) = k / N, also for k outside [0, N]."""
    return k / num_intervals_per_half_axis


def orthant_sign_mask(orthant: int) -> np.ndarray:
    """+1/-1 per axis, axis b being negative when bit b of `orthant` is set."""
    if not 0 <= orthant <= 7:
        raise ValueError(f"Orthant index must be in [0, 7], got {orthant}")
    return np.array([-1.0 if orthant & (1 << axis) else 1.0 for axis in range(3)])


def full_axis_interval_index(
    interval_idx: Sequence[int], orthant: int, num_intervals_per_half_axis: int
) -> Tuple[int, int, int]:
    """Full-axis interval indices (0 .. 2N - 1) of a positive-orthant box reflected into `orthant`."""
    N = num_intervals_per_half_axis
    mask = orthant_sign_mask(orthant)
    return tuple(
        int(idx) + N if sign > 0 else N - 1 - int(idx)
        for idx, sign in zip(interval_idx, mask)
    )


def pick_binary_expression_for_interval(interval_idx: int, gray_codes: np.ndarray, b):
    """Zero iff the binaries `b` spell the Gray code of `interval_idx`.

    Every mismatched digit contributes 1, so for binary assignments the
    result is the Hamming distance to the code. Numeric `b` gives a float,
    variables give a LinearExpr.
    """
    if not 0 <= interval_idx < gray_codes.shape[0]:
        raise ValueError(
            f"Interval {interval_idx} has no Gray code in a table of {gray_codes.shape[0]} rows"
        )
    if len(b) != gray_codes.shape[1]:
        raise ValueError(
            f"Expected {gray_codes.shape[1]} binaries, got {len(b)}"
        )

    numeric = all(not hasattr(bi, "to_expr") for bi in b)
    total = 0.0 if numeric else LinearExpr()
    for bit, bi in zip(gray_codes[interval_idx], b):
        if numeric:
            total += (1.0 - float(bi)) if bit else float(bi)
        else:
            total = total + ((1.0 - as_expr(bi)) if bit else as_expr(bi))
    return total


def box_binary_expression_in_orthant(
    xi: int,
    yi: int,
    zi: int,
    orthant: int,
    gray_codes: np.ndarray,
    B_vec: Sequence,
    num_intervals_per_half_axis: int,
) -> list:
    """Per-axis pick expressions of box (xi, yi, zi) reflected into `orthant`.

    All three vanish exactly when the binaries select that box, otherwise
    their sum is at least 1.
    """
    full_idx = full_axis_interval_index((xi, yi, zi), orthant, num_intervals_per_half_axis)
    return [
        pick_binary_expression_for_interval(full_idx[axis], gray_codes, B_vec[axis])
        for axis in range(3)
    ]
