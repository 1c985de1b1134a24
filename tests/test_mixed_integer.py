import itertools

import numpy as np
import pytest

from so3relax import (
    HIGHS,
    Maximize,
    Program,
    SolverStatus,
    add_logarithmic_sos2_constraint,
    calculate_reflected_gray_codes,
)
from so3relax.mixed_integer import ceil_log2, is_power_of_two


class TestGrayCodes:
    def test_two_digits(self):
        codes = calculate_reflected_gray_codes(2)
        np.testing.assert_array_equal(codes, [[0, 0], [0, 1], [1, 1], [1, 0]])

    def test_zero_digits(self):
        codes = calculate_reflected_gray_codes(0)
        assert codes.shape == (1, 0)

    @pytest.mark.parametrize("num_digits", [1, 3, 4])
    def test_neighbours_differ_in_one_digit(self, num_digits):
        codes = calculate_reflected_gray_codes(num_digits)
        assert codes.shape == (2**num_digits, num_digits)
        assert len({tuple(row) for row in codes}) == 2**num_digits
        for a, b in zip(codes[:-1], codes[1:]):
            assert np.sum(a != b) == 1

    def test_negative_digits_rejected(self):
        with pytest.raises(ValueError):
            calculate_reflected_gray_codes(-1)


class TestHelpers:
    def test_ceil_log2(self):
        assert [ceil_log2(n) for n in (1, 2, 3, 4, 5, 8, 9)] == [0, 1, 2, 2, 3, 3, 4]
        with pytest.raises(ValueError):
            ceil_log2(0)

    def test_is_power_of_two(self):
        assert [n for n in range(10) if is_power_of_two(n)] == [1, 2, 4, 8]


class TestLogarithmicSos2:
    def _setup(self, num_lambda):
        prog = Program()
        lam = prog.new_continuous_variables(num_lambda, "lambda")
        y = add_logarithmic_sos2_constraint(prog, lam)
        return prog, lam, y

    def test_binary_count(self):
        _, _, y = self._setup(5)
        assert y.shape == (2,)
        assert y[0].name == "y(0)"
        assert all(v.is_binary for v in y)

    def test_single_interval_needs_no_binaries(self):
        prog, lam, y = self._setup(2)
        assert y.shape == (0,)
        values = {lam[0]: 0.3, lam[1]: 0.7}
        assert prog.check_satisfied(values)

    def test_adjacent_weights_feasible(self, assign):
        prog, lam, y = self._setup(5)
        codes = calculate_reflected_gray_codes(2)
        for interval in range(4):
            weights = np.zeros(5)
            weights[interval] = 0.25
            weights[interval + 1] = 0.75
            values = assign(lam, weights)
            values.update(assign(y, codes[interval]))
            assert prog.check_satisfied(values), interval

    def test_non_adjacent_weights_infeasible(self, assign):
        prog, lam, y = self._setup(5)
        weights = [0.5, 0.0, 0.5, 0.0, 0.0]
        for bits in itertools.product([0.0, 1.0], repeat=2):
            values = assign(lam, weights)
            values.update(assign(y, bits))
            assert not prog.check_satisfied(values), bits

    def test_weights_must_sum_to_one(self, assign):
        prog, lam, y = self._setup(3)
        values = assign(lam, [0.2, 0.2, 0.0])
        values.update(assign(y, [0.0]))
        assert not prog.check_satisfied(values)

    def test_milp_picks_one_interval(self):
        prog, lam, y = self._setup(5)
        prog.set_objective(Maximize(lam[0] + lam[2] + lam[4]))
        result = prog.solve(solver=HIGHS)
        assert result.status == SolverStatus.OPTIMAL
        assert result.objective_value == pytest.approx(1.0)
        support = np.flatnonzero(prog.get_solution(lam) > 1e-9)
        assert len(support) <= 2
        assert np.ptp(support) <= 1

    def test_too_few_weights(self):
        prog = Program()
        lam = prog.new_continuous_variables(1)
        with pytest.raises(ValueError):
            add_logarithmic_sos2_constraint(prog, lam)
