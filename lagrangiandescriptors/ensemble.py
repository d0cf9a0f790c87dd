"""
Ensemble Solver
===============

Orchestrates the solution of an ensemble of independent subproblems by routing
every subproblem key through build -> integrate -> extract on the chosen
executor, then reassembling an ordered descriptor field.
"""
import time
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor, as_completed
from typing import Any, Dict, List

from tqdm import tqdm

from .errors import ConfigurationError, IntegrationError
from .field import DescriptorField
from .grid import InitialConditionGrid
from .integrator import Trajectory, check_method, integrate
from .strategies import SubproblemKey, SubproblemStrategy
from .system import ODEProblem


@dataclass(frozen=True)
class EnsembleProblem:
    """
    Specification of an ensemble: a template, a strategy and pass-through options.

    Attributes
    ----------
    prob : ODEProblem
        Template every subproblem is cloned from (augmented for the augmented method).
    strategy : SubproblemStrategy
        Provides `build` (prob_func), `extract` (output_func) and the optional `reduce`.
    kwargs : dict
        Options forwarded verbatim to the integrator.
    """
    prob: ODEProblem
    strategy: SubproblemStrategy
    kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def prob_func(self):
        return self.strategy.build

    @property
    def output_func(self):
        return self.strategy.extract

    @property
    def reduction(self):
        return self.strategy.reduce

    @property
    def grid(self) -> InitialConditionGrid:
        return self.strategy.grid

    @property
    def trajectories(self) -> int:
        """Number of subproblems (N, or 2N for postprocessed with both directions)."""
        return len(self.strategy.keys())


def _solve_subproblem(ensprob: EnsembleProblem, key: SubproblemKey, alg: str, kwargs: dict, on_failure: str):
    """Builds, solves and extracts one subproblem. Safe to run on any worker."""
    sub = ensprob.prob_func(ensprob.prob, key)
    try:
        traj = integrate(sub, alg, **kwargs)
    except IntegrationError as e:
        if on_failure == "raise":
            raise IntegrationError(f"Subproblem {key} failed: {e}", key=key) from e
        traj = Trajectory.failed(sub, str(e))
    return key, ensprob.output_func(traj, key)


class EnsembleSolver:
    """
    Main engine for computing a descriptor field from an `EnsembleProblem`.

    Parameters
    ----------
    ensprob : EnsembleProblem
        The ensemble to solve. It is never mutated, so a solver can run it any
        number of times.
    executor : str
        "serial", "threads" or "processes". Process pools need picklable
        vector fields, descriptors and parameters.
    max_workers : int, optional
        Pool size for the parallel executors.
    on_failure : str
        "raise" aborts on the first failed subproblem; "nan" records NaN for it.
    verbose : bool
        If True, prints a banner, timings and a progress bar.
    """
    def __init__(self, ensprob: EnsembleProblem, executor: str = "serial", max_workers=None,
                 on_failure: str = "raise", verbose: bool = False):
        self.ensprob = ensprob
        self.executor_name = self.selector(executor)
        self.max_workers = max_workers
        self.on_failure = str(on_failure).lower()
        if self.on_failure not in ("raise", "nan"):
            raise ConfigurationError(f"on_failure '{on_failure}' is not supported. Must be one of ['raise', 'nan']")
        if max_workers is not None and (not isinstance(max_workers, int) or max_workers < 1):
            raise ConfigurationError(f"max_workers must be a positive integer, got {max_workers!r}")
        self.verbose = verbose

        if self.verbose:
            print(
                f"--- EnsembleSolver Initialized (Executor: {self.executor_name} | "
                f"Subproblems: {self.ensprob.trajectories}) ---"
            )

    def selector(self, choice: str):
        choice = str(choice).lower()
        if choice in ("serial", "threads", "processes"):
            return choice
        raise ConfigurationError(
            f"Executor '{choice}' is not supported. Must be one of ['serial', 'threads', 'processes']"
        )

    def get_pool(self):
        if self.executor_name == "threads":
            return ThreadPoolExecutor(max_workers=self.max_workers)
        elif self.executor_name == "processes":
            return ProcessPoolExecutor(max_workers=self.max_workers)
        else:
            raise ConfigurationError(f"No pool for executor: {self.executor_name}")

    def _iter_outputs(self, keys: List[SubproblemKey], alg: str, kwargs: dict):
        """Yields (key, output) pairs in completion order."""
        if self.executor_name == "serial":
            for key in keys:
                yield _solve_subproblem(self.ensprob, key, alg, kwargs, self.on_failure)
            return

        with self.get_pool() as exe:
            futures = {exe.submit(_solve_subproblem, self.ensprob, key, alg, kwargs, self.on_failure) for key in keys}
            try:
                for fut in as_completed(futures):
                    yield fut.result()
            except BaseException:
                for fut in futures:
                    fut.cancel()
                raise

    def solve(self, alg: str = "RK45", **kwargs) -> DescriptorField:
        """
        Solves every subproblem and assembles the descriptor field.

        Parameters
        ----------
        alg : str
            `solve_ivp` method.
        **kwargs
            Integrator options; they override the ensemble's stored kwargs.

        Returns
        -------
        DescriptorField
            A new field, index-aligned with the initial condition grid.
        """
        alg = check_method(alg)
        strategy = self.ensprob.strategy
        opts = {**self.ensprob.kwargs, **kwargs}
        if strategy.dense_output:
            opts.setdefault("dense_output", True)

        keys = strategy.keys()
        reduction = self.ensprob.reduction
        outputs = {}
        acc = {}

        if self.verbose:
            t0 = time.time()
        with tqdm(total=len(keys), disable=not self.verbose, desc="Ensemble", unit="traj") as pbar:
            for key, out in self._iter_outputs(keys, alg, opts):
                if reduction is not None:
                    acc = reduction(acc, out, key)
                else:
                    outputs[key.index] = out
                pbar.update(1)

        if reduction is not None:
            records = strategy.finalize(acc)
        else:
            records = [outputs[i] for i in range(len(self.ensprob.grid))]

        if self.verbose:
            print(f"Ensemble complete in {time.time() - t0:.4f}s")

        return DescriptorField(records, strategy.direction, shape=self.ensprob.grid.shape)
