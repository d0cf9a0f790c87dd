"""
augment.py
================

Builds the augmented dynamical system whose state carries scalar accumulators
integrating the pointwise descriptor `M` alongside the original trajectory.

Augmented state layout (only the partitions implied by the direction exist)::

    [ fwd (d) | bwd (d) | lfwd (1) | lbwd (1) ]
"""
import numpy as np
from typing import Callable, Dict

from .config import Direction, _check_choice
from .errors import ConfigurationError
from .system import ODEProblem


class StateLayout:
    """
    Named partitions of a flat augmented state vector.

    Parameters
    ----------
    direction : Direction or str
        Selects which of `fwd`, `bwd`, `lfwd`, `lbwd` are present.
    dim : int
        Dimension d of the original state.
    """
    def __init__(self, direction, dim: int):
        self.direction = _check_choice(direction, "direction", Direction)
        self.dim = int(dim)

        parts = []
        if self.direction.has_forward: parts.append(("fwd", self.dim))
        if self.direction.has_backward: parts.append(("bwd", self.dim))
        if self.direction.has_forward: parts.append(("lfwd", 1))
        if self.direction.has_backward: parts.append(("lbwd", 1))

        self.slices: Dict[str, slice] = {}
        offset = 0
        for name, size in parts:
            self.slices[name] = slice(offset, offset + size)
            offset += size
        self.size = offset

    @property
    def names(self) -> tuple:
        return tuple(self.slices)

    @property
    def accumulators(self) -> tuple:
        return self.direction.fields

    def pack(self, state, **overrides) -> np.ndarray:
        """
        Assembles a flat augmented vector.

        Every state partition starts from `state` and every accumulator from 0,
        unless given explicitly in `overrides`.
        """
        unknown = set(overrides) - set(self.slices)
        if unknown:
            raise ConfigurationError(
                f"Partitions {sorted(unknown)} do not exist for direction '{self.direction.value}'"
            )
        state = np.asarray(state, dtype=float).ravel()
        if state.size != self.dim:
            raise ConfigurationError(f"Expected a state of dimension {self.dim}, got {state.size}")

        u = np.empty(self.size, dtype=float)
        for name, sl in self.slices.items():
            default = 0.0 if name in self.accumulators else state
            u[sl] = overrides.get(name, default)
        return u

    def get(self, u, name):
        """Returns the partition `name` of `u` (a float for accumulators)."""
        part = np.asarray(u)[self.slices[name]]
        if name in self.accumulators:
            return float(part[0])
        return part

    def __repr__(self):
        return f"StateLayout(direction='{self.direction.value}', dim={self.dim}, partitions={self.names})"


class AugmentedVectorField:
    """
    Vector field over the augmented state.

    The forward branch follows ``f`` in the integration time ``t``. The backward
    branch follows the original time ``s = t0 + t1 - t``: it starts at ``t1`` and
    ends at ``t0``, so ``d(bwd)/dt = -f(bwd, p, s)``. Both accumulators grow by
    ``M`` per unit of elapsed time, with ``M`` receiving the vector field and the
    time of its own branch.

    Kept as a class (not a closure) so that augmented problems stay picklable.
    """
    def __init__(self, f: Callable, M: Callable, layout: StateLayout, tspan):
        self.f = f
        self.M = M
        self.layout = layout
        self.t0, self.t1 = (float(t) for t in tspan)

    def __call__(self, u, p, t):
        sl = self.layout.slices
        du = np.empty(self.layout.size, dtype=float)

        if "fwd" in sl:
            x = u[sl["fwd"]]
            dx = np.asarray(self.f(x, p, t), dtype=float)
            du[sl["fwd"]] = dx
            du[sl["lfwd"]] = self.M(dx, x, p, t)

        if "bwd" in sl:
            s = self.t0 + self.t1 - t
            x = u[sl["bwd"]]
            dx = np.asarray(self.f(x, p, s), dtype=float)
            du[sl["bwd"]] = -dx
            du[sl["lbwd"]] = self.M(dx, x, p, s)

        return du


def augment(prob: ODEProblem, M: Callable, direction=Direction.BOTH) -> ODEProblem:
    """
    Builds the augmented problem integrating `M` along the trajectories of `prob`.

    Parameters
    ----------
    prob : ODEProblem
        The base system. Its time span is ordered from ``min`` to ``max`` so
        that the accumulators grow with elapsed time; its initial state seeds
        every state partition of the augmented initial state.
    M : Callable
        Pointwise descriptor ``M(du, u, p, t) -> float``.
    direction : Direction or str
        Which branches and accumulators to carry.

    Returns
    -------
    ODEProblem
        New problem whose `f` is an `AugmentedVectorField`. `prob` is not modified.
    """
    if not callable(M):
        raise ConfigurationError(f"M must be callable, got {type(M).__name__}")
    prob = prob.ordered()
    layout = StateLayout(direction, prob.dim)
    field = AugmentedVectorField(prob.f, M, layout, prob.tspan)
    return ODEProblem(f=field, u0=layout.pack(prob.u0), tspan=prob.tspan, p=prob.p)
