"""
Post Quadrature
===============

Computes a Lagrangian descriptor after the fact, by integrating the pointwise
descriptor `M` along an already solved trajectory. Routes the final quadrature
to the chosen backend.
"""
import numpy as np
from typing import Callable

from .errors import ConfigurationError
from .integrator import Trajectory

from .backends.numpy_backend import NumpyMethods
from .backends.numba_backend import NumbaMethods


class PostQuadrature:
    """
    Integrates ``M(du, u, p, t)`` over a trajectory, weighting by |dt|.

    With ``M = 1`` the result is the elapsed time of the traversal, whatever
    its orientation.

    Parameters
    ----------
    M : Callable
        Pointwise descriptor.
    n_points : int
        Number of equally spaced samples of a dense trajectory. Trajectories
        without dense output are integrated on the solver's own time points.
    backend : str
        "auto", "numpy" or "numba".
    """
    def __init__(self, M: Callable, n_points: int = 2001, backend: str = "auto"):
        self.M = M
        self.n_points = int(n_points)
        self.backend_name = self.selector(backend)

    @staticmethod
    def selector(choice: str):
        choice = str(choice).lower()
        if choice == "auto":
            return "numba"
        elif choice in ("numba", "numpy"):
            return choice
        else:
            raise ConfigurationError(f"Backend '{choice}' is not supported.")

    def get_backend(self, backend_name=None):
        if not backend_name: backend_name = self.backend_name
        if backend_name == "numba":
            return NumbaMethods()
        elif backend_name == "numpy":
            return NumpyMethods()
        else:
            raise ConfigurationError(f"Unknown backend: {backend_name}")

    def samples(self, traj: Trajectory):
        """Times, states (d, n) and M values along `traj`."""
        if traj.dense:
            t = np.linspace(traj.t[0], traj.t[-1], self.n_points)
            u = np.atleast_2d(traj(t))
        else:
            t, u = traj.t, traj.y

        f, p = traj.prob.f, traj.prob.p
        values = np.empty(t.shape[0], dtype=float)
        for k in range(t.shape[0]):
            x = u[:, k]
            values[k] = self.M(np.asarray(f(x, p, t[k]), dtype=float), x, p, t[k])
        return t, u, values

    def __call__(self, traj: Trajectory, backend_name=None) -> float:
        t, _, values = self.samples(traj)
        return self.get_backend(backend_name).integrate(t, values)


def lagrangian_descriptor(traj: Trajectory, M: Callable, n_points: int = 2001, backend: str = "auto") -> float:
    """Descriptor value of a single trajectory. See `PostQuadrature`."""
    return PostQuadrature(M, n_points=n_points, backend=backend)(traj)
