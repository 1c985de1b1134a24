import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from so3relax.variable import reset_variable_ids


@pytest.fixture(autouse=True)
def clear_variable_names():
    """Automatically reset variable IDs between each test"""
    reset_variable_ids()
    yield


@pytest.fixture
def rotations():
    """A fixed batch of random rotation matrices."""
    return Rotation.random(5, 1234).as_matrix()


@pytest.fixture
def assign():
    """Build a {Variable: value} mapping from arrays of variables and values."""

    def _assign(variables, values):
        variables = np.asarray(variables, dtype=object)
        values = np.asarray(values, dtype=float)
        return dict(zip(variables.flat, values.flat))

    return _assign
