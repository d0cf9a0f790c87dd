"""
LagrangianDescriptors - Lagrangian Descriptor Fields for Dynamical Systems
==========================================================================

A Python library computing Lagrangian descriptors: for every initial condition
of a grid, the integral of a pointwise function along the trajectory launched
from it, forward and/or backward in time.

Public API
----------
Main workflow:
    >>> from lagrangiandescriptors import ODEProblem, LagrangianDescriptorProblem, norm_descriptor
    >>> prob = ODEProblem(f, u0, (0.0, 13.0), p)
    >>> lagprob = LagrangianDescriptorProblem(prob, norm_descriptor, uu0)
    >>> lagsol = lagprob.solve("DOP853")
    >>> lagsol.lfwd, lagsol.lbwd
"""

__version__ = "0.1.0"

# Core configuration
from .config import (
    DescriptorConfig,
    Direction,
    Method,
    get_config,
    load_config
)
from .errors import (
    LagrangianDescriptorError,
    ConfigurationError,
    IntegrationError,
)

# Core Pipeline
from .system import ODEProblem
from .grid import InitialConditionGrid
from .augment import StateLayout, AugmentedVectorField, augment
from .integrator import Trajectory, check_method, integrate
from .quadrature import PostQuadrature, lagrangian_descriptor
from .strategies import (
    Branch,
    SubproblemKey,
    SubproblemStrategy,
    AugmentedStrategy,
    PostprocessedStrategy,
    make_strategy,
)
from .ensemble import EnsembleProblem, EnsembleSolver
from .field import DescriptorField
from .problem import LagrangianDescriptorProblem, get_ensemble_problem, solve

# Pointwise descriptors
from .utils import (
    unit_descriptor,
    norm_descriptor,
    PNormDescriptor,
)


__all__ = [
    # Config
    "DescriptorConfig",
    "Direction",
    "Method",
    "get_config",
    "load_config",

    # Errors
    "LagrangianDescriptorError",
    "ConfigurationError",
    "IntegrationError",

    # Pipeline
    "ODEProblem",
    "InitialConditionGrid",
    "StateLayout",
    "AugmentedVectorField",
    "augment",
    "Trajectory",
    "integrate",
    "check_method",
    "PostQuadrature",
    "lagrangian_descriptor",
    "Branch",
    "SubproblemKey",
    "SubproblemStrategy",
    "AugmentedStrategy",
    "PostprocessedStrategy",
    "make_strategy",
    "EnsembleProblem",
    "EnsembleSolver",
    "DescriptorField",
    "LagrangianDescriptorProblem",
    "get_ensemble_problem",
    "solve",

    # Descriptors
    "unit_descriptor",
    "norm_descriptor",
    "PNormDescriptor",
]
