"""
config.py
========================

This module defines the configuration data structures for Lagrangian descriptor
problems. It employs strict type checking and validation so that an invalid
direction, method or backend is rejected before any subproblem is built.

It includes serialization support (JSON) so a problem setup can be stored next
to the descriptor fields it produced.
"""

import json
import warnings
import numpy as np
from enum import Enum
from dataclasses import dataclass, fields
from typing import Any, Dict, Literal, Type

from .errors import ConfigurationError

CURRENT_VERSION = 1

# =========================================================================
#                       DIRECTION / METHOD
# =========================================================================

class Direction(str, Enum):
    """Which branches of the flow are integrated from each initial condition."""
    FORWARD = "forward"
    BACKWARD = "backward"
    BOTH = "both"

    @property
    def has_forward(self) -> bool:
        return self in (Direction.FORWARD, Direction.BOTH)

    @property
    def has_backward(self) -> bool:
        return self in (Direction.BACKWARD, Direction.BOTH)

    @property
    def fields(self) -> tuple:
        """Names of the descriptor values every output record carries."""
        return tuple(name for name, on in (("lfwd", self.has_forward), ("lbwd", self.has_backward)) if on)


class Method(str, Enum):
    """How the descriptor is computed along each trajectory."""
    AUGMENTED = "augmented"
    POSTPROCESSED = "postprocessed"

# =========================================================================
#                       VALIDATION HELPERS
# =========================================================================

def _check_choice(val: Any, name: str, enum_cls: Type[Enum]) -> Enum:
    """
    Coerces `val` (enum member or case-insensitive string) into `enum_cls`.
    """
    allowed = [m.value for m in enum_cls]
    if isinstance(val, enum_cls):
        return val
    if isinstance(val, str) and val.lower() in allowed:
        return enum_cls(val.lower())
    raise ConfigurationError(
        f"Config Error ['{name}']: Invalid value {val!r}. Must be one of {allowed}"
    )


def _check_scalar(val: Any, name: str, dtype: Type) -> Any:
    """
    Strictly validates a scalar value against a specific type.
    """
    if dtype is int:
        if isinstance(val, (bool, np.bool_)) or not isinstance(val, (int, np.integer)):
            raise ConfigurationError(
                f"Config Error ['{name}']: Expected strict integer, got {type(val).__name__} '{val}'"
            )
    if dtype is bool:
        if not isinstance(val, (bool, np.bool_)):
            raise ConfigurationError(f"Config Error ['{name}']: Expected bool, got {type(val).__name__}")

    try:
        return dtype(val)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(
            f"Config Error ['{name}']: Cannot convert {type(val).__name__} to {dtype.__name__}"
        ) from e

# =========================================================================
#                      SAVING/LOADING CONFIGS
# =========================================================================
class SerializableConfig:
    """
    Base class providing JSON serialization.
    """
    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary."""
        out = {"__version__": CURRENT_VERSION}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, np.generic):
                value = value.item()
            out[f.name] = value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Reconstruct configuration from a dictionary."""
        data = dict(data)

        # 1. Version Check
        if "__version__" in data:
            version = data.pop("__version__")
            if version != CURRENT_VERSION:
                data = cls._migrate(data, version)

        # 2. Strict Typo Checking
        valid_fields = {f.name for f in fields(cls)}
        unknown = set(data.keys()) - valid_fields
        if unknown:
            raise ConfigurationError(f"Unknown configuration fields for {cls.__name__}: {sorted(unknown)}")

        return cls(**data)

    @staticmethod
    def _migrate(data: Dict[str, Any], version: int) -> Dict[str, Any]:
        if version > CURRENT_VERSION:
            raise ConfigurationError("Config version is newer than supported.")
        # future migrations go here
        raise ConfigurationError(f"Unsupported config version: {version}")

    def save(self, filename: str):
        """Saves the config dataclass as json at filename"""
        with open(filename, 'w') as f:
            json.dump(self.to_dict(), f, indent=4)

    @classmethod
    def load(cls, filename: str):
        """Loads json at filename into the config data class : cls"""
        with open(filename, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

# =========================================================================
#                       CONFIGURATION CLASSES
# =========================================================================

@dataclass(slots=True)
class DescriptorConfig(SerializableConfig):
    """
    Main Lagrangian descriptor configuration.

    Validated once at construction and then threaded through every component,
    so no part of the pipeline falls back to ambient defaults.

    Attributes
    ----------
    direction : Direction or str
        Branches of the flow to integrate. Options: "forward", "backward", "both".
    method : Method or str
        Descriptor strategy. Options: "augmented", "postprocessed".
    backend : str
        Quadrature backend used by the postprocessed method.
        Options: "auto", "numpy", "numba".
    quadrature_points : int
        Number of samples of the dense trajectory used by the post-quadrature.
    verbose : bool
        If True, prints progress details.
    """
    direction: Direction = Direction.BOTH
    method: Method = Method.AUGMENTED
    backend: Literal["auto", "numpy", "numba"] = "auto"
    quadrature_points: int = 2001
    verbose: bool = False

    def validate(self):
        """Performs strict type and value checking."""
        # Method first, so an invalid method is reported before anything else
        self.method = _check_choice(self.method, "method", Method)
        self.direction = _check_choice(self.direction, "direction", Direction)

        allowed = ["auto", "numpy", "numba"]
        backend = str(self.backend).lower()
        if backend not in allowed:
            raise ConfigurationError(f"Invalid backend: {self.backend!r}. Must be one of {allowed}")
        self.backend = backend

        self.quadrature_points = _check_scalar(self.quadrature_points, "quadrature_points", int)
        if self.quadrature_points < 2:
            raise ConfigurationError("quadrature_points must be >= 2")
        if self.method is Method.POSTPROCESSED and self.quadrature_points < 101:
            warnings.warn(
                f"Only {self.quadrature_points} quadrature points requested. "
                "Postprocessed descriptors will be noticeably less accurate than augmented ones.",
                UserWarning
            )

        self.verbose = _check_scalar(self.verbose, "verbose", bool)

    def __post_init__(self):
        self.validate()

def get_config(**overrides) -> DescriptorConfig:
    """
    Factory function to create a configuration.

    Returns
    -------
    DescriptorConfig
        Initialized with default values, updated by `overrides`.
    """
    return DescriptorConfig(**overrides)

def load_config(filename: str) -> DescriptorConfig:
    """
    Load a configuration from a JSON file.

    Parameters
    ----------
    filename : str
        Path to the saved JSON configuration file.

    Returns
    -------
    DescriptorConfig
        The configuration object.
    """
    return DescriptorConfig.load(filename)
