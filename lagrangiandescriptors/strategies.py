"""
Subproblem Strategies
=====================

A strategy turns "one template + one grid of initial conditions" into a set of
independent subproblems, each addressed by a `SubproblemKey`, and turns their
solutions back into descriptor records.

`build` and `extract` are pure functions of their arguments, so subproblems may
be built, solved and extracted in any order and on any number of workers.
Results are always placed by key, never by arrival order.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .augment import StateLayout, augment
from .config import Direction, Method, _check_choice
from .errors import IntegrationError
from .grid import InitialConditionGrid
from .integrator import Trajectory
from .quadrature import PostQuadrature
from .system import ODEProblem


class Branch(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def field(self) -> str:
        return "lfwd" if self is Branch.FORWARD else "lbwd"


@dataclass(frozen=True, slots=True)
class SubproblemKey:
    """
    Address of one subproblem: grid index and, for postprocessed runs, the branch.

    Augmented subproblems integrate every branch at once and have ``branch=None``.
    """
    index: int
    branch: Optional[Branch] = None


class SubproblemStrategy(ABC):
    """
    Common interface of the two descriptor strategies.

    Parameters
    ----------
    grid : InitialConditionGrid
        Read-only initial conditions.
    M : Callable
        Pointwise descriptor ``M(du, u, p, t)``.
    direction : Direction
        Branches to compute.
    """
    method: Method
    dense_output: bool = False

    def __init__(self, grid: InitialConditionGrid, M: Callable, direction):
        self.grid = grid
        self.M = M
        self.direction = _check_choice(direction, "direction", Direction)

    @abstractmethod
    def template(self, prob: ODEProblem) -> ODEProblem:
        """Problem every subproblem is cloned from."""

    @abstractmethod
    def keys(self) -> List[SubproblemKey]:
        """All subproblem keys, in generation order."""

    @abstractmethod
    def build(self, template: ODEProblem, key: SubproblemKey) -> ODEProblem:
        """Subproblem for `key`, cloned from `template`."""

    @abstractmethod
    def extract(self, traj: Trajectory, key: SubproblemKey) -> Dict[str, float]:
        """Descriptor record (or half record) of a solved subproblem."""

    @property
    def reduce(self) -> Optional[Callable]:
        """Reduction folding partial records into full ones, or None if unused."""
        return None

    def _nan_record(self, key: SubproblemKey) -> Dict[str, float]:
        names = self.direction.fields if key.branch is None else (key.branch.field,)
        return {name: math.nan for name in names}

    def __repr__(self):
        return f"{type(self).__name__}(N={len(self.grid)}, direction='{self.direction.value}')"


class AugmentedStrategy(SubproblemStrategy):
    """
    One subproblem per grid entry, solving the augmented system.

    The time span is the template's own, forward-oriented span; the backward
    traversal lives inside the augmented vector field.
    """
    method = Method.AUGMENTED
    dense_output = False

    def __init__(self, grid: InitialConditionGrid, M: Callable, direction):
        super().__init__(grid, M, direction)
        self.layout = StateLayout(self.direction, grid.dim)

    def template(self, prob: ODEProblem) -> ODEProblem:
        return augment(prob, self.M, self.direction)

    def keys(self) -> List[SubproblemKey]:
        return [SubproblemKey(i) for i in range(len(self.grid))]

    def build(self, template: ODEProblem, key: SubproblemKey) -> ODEProblem:
        return template.remake(u0=self.layout.pack(self.grid[key.index]))

    def extract(self, traj: Trajectory, key: SubproblemKey) -> Dict[str, float]:
        if not traj.success:
            return self._nan_record(key)
        u = traj.last()
        return {name: self.layout.get(u, name) for name in self.layout.accumulators}


class PostprocessedStrategy(SubproblemStrategy):
    """
    Solves the original system and integrates `M` along the stored trajectory.

    Forward branches run the template span from its minimum to its maximum,
    backward branches from its maximum to its minimum. For
    ``direction=both`` every grid entry ``k`` yields the pair
    ``(k, forward), (k, backward)``, both starting from ``grid[k]``; `reduce`
    merges the halves by ``k``.
    """
    method = Method.POSTPROCESSED
    dense_output = True

    def __init__(self, grid: InitialConditionGrid, M: Callable, direction, quadrature: Optional[PostQuadrature] = None):
        super().__init__(grid, M, direction)
        self.quadrature = quadrature if quadrature is not None else PostQuadrature(M)

    @property
    def branches(self) -> tuple:
        out = ()
        if self.direction.has_forward: out += (Branch.FORWARD,)
        if self.direction.has_backward: out += (Branch.BACKWARD,)
        return out

    def template(self, prob: ODEProblem) -> ODEProblem:
        return prob.ordered()

    def keys(self) -> List[SubproblemKey]:
        return [SubproblemKey(i, b) for i in range(len(self.grid)) for b in self.branches]

    def build(self, template: ODEProblem, key: SubproblemKey) -> ODEProblem:
        t0, t1 = sorted(template.tspan)
        tspan = (t0, t1) if key.branch is Branch.FORWARD else (t1, t0)
        return template.remake(u0=self.grid[key.index], tspan=tspan)

    def extract(self, traj: Trajectory, key: SubproblemKey) -> Dict[str, float]:
        if not traj.success:
            return self._nan_record(key)
        return {key.branch.field: self.quadrature(traj)}

    @property
    def reduce(self) -> Optional[Callable]:
        return self._reduce_pairs if len(self.branches) == 2 else None

    @staticmethod
    def _reduce_pairs(acc: Dict[int, Dict[str, float]], incoming: Dict[str, float], key: SubproblemKey):
        """Merges a half record into the pair at ``key.index``."""
        pair = acc.setdefault(key.index, {})
        if key.branch.field in pair:
            raise IntegrationError(f"Duplicate {key.branch.value} result for pair {key.index}", key=key)
        pair.update(incoming)
        return acc

    def finalize(self, acc: Dict[int, Dict[str, float]]) -> List[Dict[str, float]]:
        """Full records in grid order. A failed half invalidates its whole pair."""
        records = []
        for k in range(len(self.grid)):
            pair = acc.get(k, {})
            missing = [name for name in ("lfwd", "lbwd") if name not in pair]
            if missing:
                raise IntegrationError(f"Pair {k} is missing {missing}")
            if math.isnan(pair["lfwd"]) or math.isnan(pair["lbwd"]):
                records.append({"lfwd": math.nan, "lbwd": math.nan})
            else:
                records.append({"lfwd": pair["lfwd"], "lbwd": pair["lbwd"]})
        return records


def make_strategy(method, grid: InitialConditionGrid, M: Callable, direction,
                  quadrature: Optional[PostQuadrature] = None) -> SubproblemStrategy:
    """
    Picks the strategy class for `method`. `quadrature` is only used by the
    postprocessed strategy.
    """
    method = _check_choice(method, "method", Method)
    if method is Method.AUGMENTED:
        return AugmentedStrategy(grid, M, direction)
    return PostprocessedStrategy(grid, M, direction, quadrature=quadrature)
