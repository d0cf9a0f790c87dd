"""
problem.py
================

The Lagrangian descriptor problem: validates the configuration, picks the
strategy and holds the assembled ensemble specification until it is solved.
"""
from typing import Callable

from .config import DescriptorConfig, Direction, Method
from .ensemble import EnsembleProblem, EnsembleSolver
from .errors import ConfigurationError
from .field import DescriptorField
from .grid import InitialConditionGrid
from .quadrature import PostQuadrature
from .strategies import make_strategy
from .system import ODEProblem


def get_ensemble_problem(prob: ODEProblem, M: Callable, uu0, config: DescriptorConfig, **kwargs) -> EnsembleProblem:
    """
    Ensemble specification for `prob`, `M` and the initial conditions `uu0`.

    The augmented method clones the augmented system, the postprocessed method
    the original one. `kwargs` are stored for the integrator, uninterpreted.
    """
    if not isinstance(prob, ODEProblem):
        raise ConfigurationError(f"Expected an ODEProblem, got {type(prob).__name__}")
    if not callable(M):
        raise ConfigurationError(f"M must be callable, got {type(M).__name__}")

    grid = InitialConditionGrid(uu0)
    if grid.dim != prob.dim:
        raise ConfigurationError(
            f"Initial conditions have dimension {grid.dim}, but the system has dimension {prob.dim}"
        )

    quadrature = None
    if config.method is Method.POSTPROCESSED:
        quadrature = PostQuadrature(M, n_points=config.quadrature_points, backend=config.backend)
    strategy = make_strategy(config.method, grid, M, config.direction, quadrature=quadrature)

    return EnsembleProblem(prob=strategy.template(prob), strategy=strategy, kwargs=dict(kwargs))


class LagrangianDescriptorProblem:
    """
    Lagrangian descriptor problem for a dynamical system and a grid of initial conditions.

    Nothing is integrated at construction; call `solve` (or the module-level
    `solve`) to compute the descriptor field.

    Parameters
    ----------
    prob : ODEProblem
        The dynamical system (vector field, parameters, time span).
    M : Callable
        Pointwise descriptor ``M(du, u, p, t) -> float``.
    uu0 : array_like or InitialConditionGrid
        Initial conditions, shape (..., d).
    direction : str or Direction
        "forward", "backward" or "both" (default).
    method : str or Method
        "augmented" (default) or "postprocessed".
    backend, quadrature_points, verbose :
        See `DescriptorConfig`.
    **kwargs
        Forwarded verbatim to the integrator (e.g. rtol, atol).

    Example
    -------
    ```
    def f(u, p, t):
        x, y = u
        A, w = p
        return np.array([y, x - x**3 + A * np.cos(w * t)])

    prob = ODEProblem(f, [0.5, 2.2], (0.0, 13.0), (0.3, np.pi))
    uu0 = InitialConditionGrid.from_axes(np.linspace(-1.8, 1.8, 301), np.linspace(-1.0, 1.0, 301))

    lagprob = LagrangianDescriptorProblem(prob, norm_descriptor, uu0)
    lagsol = lagprob.solve("DOP853", executor="processes")
    ```
    """
    def __init__(self, prob: ODEProblem, M: Callable, uu0, direction=Direction.BOTH, method=Method.AUGMENTED,
                 backend: str = "auto", quadrature_points: int = 2001, verbose: bool = False, **kwargs):
        config = DescriptorConfig(
            direction=direction, method=method, backend=backend,
            quadrature_points=quadrature_points, verbose=verbose,
        )
        self._setup(prob, M, uu0, config, kwargs)

    @classmethod
    def from_config(cls, prob: ODEProblem, M: Callable, uu0, config: DescriptorConfig, **kwargs):
        """Builds a problem from an existing (already validated) configuration."""
        if not isinstance(config, DescriptorConfig):
            raise ConfigurationError(f"Expected a DescriptorConfig, got {type(config).__name__}")
        config.validate()
        obj = cls.__new__(cls)
        obj._setup(prob, M, uu0, config, kwargs)
        return obj

    def _setup(self, prob, M, uu0, config, kwargs):
        ensprob = get_ensemble_problem(prob, M, uu0, config, **kwargs)
        self.config = config
        self.ensprob = ensprob
        self.uu0 = ensprob.grid
        self.direction = config.direction
        self.method = config.method

    def __repr__(self):
        return (
            f"LagrangianDescriptorProblem(N={len(self.uu0)}, direction='{self.direction.value}', "
            f"method='{self.method.value}')"
        )

    def solve(self, alg: str = "RK45", **kwargs) -> DescriptorField:
        """Shortcut for ``solve(self, alg, **kwargs)``."""
        return solve(self, alg, **kwargs)


def solve(lagprob: LagrangianDescriptorProblem, alg: str = "RK45", *, executor: str = "serial",
          max_workers=None, on_failure: str = "raise", verbose=None, **kwargs) -> DescriptorField:
    """
    Computes the descriptor field of `lagprob`.

    Parameters
    ----------
    lagprob : LagrangianDescriptorProblem
        Problem to solve; it is left untouched and can be solved again.
    alg : str
        `solve_ivp` method ("RK45", "DOP853", ...); anything else raises `ConfigurationError`.
    executor : str
        "serial", "threads" or "processes".
    max_workers : int, optional
        Pool size for parallel executors.
    on_failure : str
        "raise" (default) or "nan".
    verbose : bool, optional
        Defaults to the problem's configuration.
    **kwargs
        Integrator options, overriding those given at construction.

    Returns
    -------
    DescriptorField
    """
    if not isinstance(lagprob, LagrangianDescriptorProblem):
        raise ConfigurationError(f"Expected a LagrangianDescriptorProblem, got {type(lagprob).__name__}")
    if verbose is None:
        verbose = lagprob.config.verbose
    solver = EnsembleSolver(
        lagprob.ensprob, executor=executor, max_workers=max_workers,
        on_failure=on_failure, verbose=verbose,
    )
    return solver.solve(alg, **kwargs)
