"""
system.py
================

The dynamical system template every subproblem is cloned from.
"""
import numpy as np
from dataclasses import dataclass, replace
from typing import Any, Callable, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ODEProblem:
    """
    Initial value problem ``du/dt = f(u, p, t)`` over ``tspan``.

    Instances are immutable; use `remake` to clone with a new initial state
    and/or time span while every other field is left intact.

    Attributes
    ----------
    f : Callable
        Vector field ``f(u, p, t) -> du``, returning an array shaped like `u`.
    u0 : np.ndarray
        Initial state, coerced to a read-only 1D float array.
    tspan : tuple[float, float]
        (start, end) of the integration. ``end < start`` integrates backward in time.
    p : Any
        Parameters passed through to `f` untouched.
    """
    f: Callable
    u0: np.ndarray
    tspan: Tuple[float, float]
    p: Any = None

    def __post_init__(self):
        if not callable(self.f):
            raise ConfigurationError(f"Vector field must be callable, got {type(self.f).__name__}")

        u0 = np.array(self.u0, dtype=float)
        if u0.ndim > 1:
            raise ConfigurationError(f"u0 must be a 1D state vector, got shape {u0.shape}")
        u0 = u0.ravel()
        if u0.size == 0:
            raise ConfigurationError("u0 must contain at least one component")
        u0.setflags(write=False)
        object.__setattr__(self, "u0", u0)

        if not hasattr(self.tspan, "__iter__") or len(tuple(self.tspan)) != 2:
            raise ConfigurationError(f"tspan must be a (start, end) pair, got {self.tspan!r}")
        t0, t1 = (float(t) for t in self.tspan)
        if not (np.isfinite(t0) and np.isfinite(t1)):
            raise ConfigurationError(f"tspan must be finite, got {(t0, t1)}")
        if t0 == t1:
            raise ConfigurationError("tspan must have a non-zero length")
        object.__setattr__(self, "tspan", (t0, t1))

    def remake(self, **overrides) -> "ODEProblem":
        """Clone with overridden fields (typically `u0` and/or `tspan`)."""
        return replace(self, **overrides)

    def reversed(self) -> "ODEProblem":
        """Clone traversing the same interval from its end back to its start."""
        t0, t1 = self.tspan
        return self.remake(tspan=(t1, t0))

    def ordered(self) -> "ODEProblem":
        """Clone whose span runs from ``min(tspan)`` to ``max(tspan)``."""
        t0, t1 = self.tspan
        if t0 < t1:
            return self
        return self.reversed()

    @property
    def dim(self) -> int:
        return self.u0.size

    def rhs(self, t, u):
        """`f` with the ``fun(t, y)`` argument order expected by scipy solvers."""
        return self.f(u, self.p, t)
