"""
integrator.py
================

Thin adapter over `scipy.integrate.solve_ivp`. Time stepping itself is left
entirely to scipy; this module only normalizes its result and its failures.
"""
import numpy as np
from scipy.integrate import OdeSolver, solve_ivp

from .errors import ConfigurationError, IntegrationError
from .system import ODEProblem

METHODS = ("RK23", "RK45", "DOP853", "Radau", "BDF", "LSODA")


def check_method(alg):
    """Returns `alg` if `solve_ivp` accepts it, raises `ConfigurationError` otherwise."""
    if isinstance(alg, str):
        if alg not in METHODS:
            raise ConfigurationError(f"Integrator '{alg}' is not supported. Must be one of {list(METHODS)}")
        return alg
    if isinstance(alg, type) and issubclass(alg, OdeSolver):
        return alg
    raise ConfigurationError(f"Integrator must be a method name or an OdeSolver subclass, got {alg!r}")


class Trajectory:
    """
    A completed (or failed) solution of an `ODEProblem`.

    Attributes
    ----------
    prob : ODEProblem
        The subproblem that was solved.
    t : np.ndarray
        Solver time points of shape (n,), ordered along the traversal.
    y : np.ndarray
        States of shape (d, n).
    sol : callable or None
        Dense interpolant ``sol(t) -> (d,) or (d, m)`` when requested.
    success : bool
        False for placeholders of failed subproblems.
    message : str
        Solver message.
    """
    def __init__(self, prob, t, y, sol=None, success=True, message=""):
        self.prob = prob
        self.t = t
        self.y = y
        self.sol = sol
        self.success = success
        self.message = message

    @classmethod
    def failed(cls, prob, message: str) -> "Trajectory":
        """Placeholder for a subproblem whose integration failed."""
        return cls(prob, np.empty(0), np.empty((prob.dim, 0)), success=False, message=message)

    @property
    def dense(self) -> bool:
        return self.sol is not None

    def last(self) -> np.ndarray:
        """Terminal state."""
        return self.y[:, -1]

    def __call__(self, t):
        if self.sol is None:
            raise IntegrationError("Trajectory has no dense output; solve with dense_output=True")
        return self.sol(t)


def integrate(prob: ODEProblem, alg: str = "RK45", **kwargs) -> Trajectory:
    """
    Solves `prob` with `solve_ivp`.

    Parameters
    ----------
    prob : ODEProblem
        Problem to solve. A decreasing `tspan` integrates backward in time.
    alg : str or OdeSolver subclass
        Any `solve_ivp` method ("RK45", "DOP853", "LSODA", ...).
    **kwargs
        Forwarded verbatim to `solve_ivp` (rtol, atol, dense_output, ...).

    Raises
    ------
    ConfigurationError
        If `alg` is not a `solve_ivp` method.
    IntegrationError
        If the solver reports failure or the terminal state is not finite.
        Other errors raised by `solve_ivp` or the vector field (e.g. a bad
        keyword or a wrongly shaped derivative) propagate unchanged.
    """
    alg = check_method(alg)
    try:
        res = solve_ivp(prob.rhs, prob.tspan, prob.u0, method=alg, **kwargs)
    except (FloatingPointError, ZeroDivisionError) as e:
        raise IntegrationError(f"solve_ivp raised: {e}") from e

    if not res.success:
        raise IntegrationError("solve_ivp failed: " + res.message)
    if res.y.shape[1] == 0 or not np.all(np.isfinite(res.y[:, -1])):
        raise IntegrationError(f"Non-finite state reached at t = {res.t[-1] if res.t.size else prob.tspan[0]}")

    return Trajectory(prob, res.t, res.y, sol=res.sol, message=res.message)
