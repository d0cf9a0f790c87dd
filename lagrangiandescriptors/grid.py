"""
grid.py
================

Collections of initial conditions, indexed in a fixed order.
"""
import numpy as np

from .errors import ConfigurationError


class InitialConditionGrid:
    """
    Ordered, read-only collection of N initial states of dimension d.

    Index ``i`` is the only link between a grid entry and its position in the
    descriptor field. The leading shape of the input (e.g. ``(ny, nx)`` for a
    2D sweep) is kept so fields can be reshaped back onto the grid.

    Parameters
    ----------
    uu0 : array_like
        Array of shape (..., d), or a sequence (possibly nested) of state vectors.
    """
    def __init__(self, uu0):
        if isinstance(uu0, InitialConditionGrid):
            points, shape = uu0.points, uu0.shape
        else:
            try:
                arr = np.array(uu0, dtype=float)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Initial conditions must be a regular array of state vectors: {e}") from e
            if arr.ndim == 0:
                raise ConfigurationError("Initial conditions must be an array of state vectors, got a scalar")
            if arr.ndim == 1:
                # a flat list of scalars is a grid of 1D states
                arr = arr[:, None]
            shape = arr.shape[:-1]
            points = arr.reshape(-1, arr.shape[-1])

        if len(points) == 0:
            raise ConfigurationError("Initial condition grid is empty")
        if not np.all(np.isfinite(points)):
            raise ConfigurationError("Initial conditions must be finite")

        self.points = np.array(points, dtype=float)
        self.points.setflags(write=False)
        self.shape = tuple(shape)

    @classmethod
    def from_axes(cls, *axes):
        """
        Builds the Cartesian product of coordinate axes.

        Follows `np.meshgrid` 'xy' indexing, so for ``from_axes(x, y)`` the grid
        shape is ``(len(y), len(x))`` and entry ``[j, i]`` is ``(x[i], y[j])``.
        """
        if not axes:
            raise ConfigurationError("from_axes needs at least one axis")
        mesh = np.meshgrid(*[np.asarray(a, dtype=float) for a in axes])
        return cls(np.stack(mesh, axis=-1))

    @property
    def dim(self) -> int:
        return self.points.shape[1]

    def __len__(self):
        return self.points.shape[0]

    def __getitem__(self, i) -> np.ndarray:
        return self.points[i]

    def __iter__(self):
        return iter(self.points)

    def __repr__(self):
        return f"InitialConditionGrid(N={len(self)}, dim={self.dim}, shape={self.shape})"
