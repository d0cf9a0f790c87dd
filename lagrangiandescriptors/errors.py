"""Custom exceptions for the :mod:`lagrangiandescriptors` package."""
from __future__ import annotations


class LagrangianDescriptorError(Exception):
    """Base exception for Lagrangian descriptor computations."""


class ConfigurationError(LagrangianDescriptorError, ValueError):
    """Invalid problem or execution settings, raised before any work is done."""


class IntegrationError(LagrangianDescriptorError, RuntimeError):
    """
    A subproblem could not be integrated (solver failure, non-finite state).

    ``key`` holds the failing subproblem key when the error comes from an ensemble.
    """

    def __init__(self, message: str, key=None):
        super().__init__(message)
        self.key = key


__all__ = [
    "LagrangianDescriptorError",
    "ConfigurationError",
    "IntegrationError",
]
