# Ensure repository root is on sys.path for `import lagrangiandescriptors` without installing
import os
import sys

import numpy as np
import pytest

_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from lagrangiandescriptors import ODEProblem  # noqa: E402


def duffing(u, p, t):
    x, y = u
    A, w = p
    return np.array([y, x - x**3 + A * np.cos(w * t)])


def saddle(u, p, t):
    return np.array([u[0], -u[1]])


@pytest.fixture
def duffing_prob():
    return ODEProblem(duffing, [0.5, 2.2], (0.0, 2.0), (0.3, np.pi))


@pytest.fixture
def saddle_prob():
    return ODEProblem(saddle, [0.0, 0.0], (0.0, 1.0))


@pytest.fixture
def small_grid():
    # shape (2, 3, 2): 3 x-values by 2 y-values
    xs = np.linspace(-1.0, 1.0, 3)
    ys = np.linspace(-0.5, 0.5, 2)
    return np.stack(np.meshgrid(xs, ys), axis=-1)
