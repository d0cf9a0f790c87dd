"""
field.py
================

The assembled result of a Lagrangian descriptor computation.
"""
import numpy as np
from typing import Dict, List, Optional, Sequence

from .config import Direction, _check_choice
from .errors import IntegrationError


class DescriptorField:
    """
    Ordered descriptor records, index-aligned with the initial condition grid.

    Record ``i`` is a dict holding exactly the fields implied by the direction
    (``lfwd`` and/or ``lbwd``) for grid entry ``i``.

    Parameters
    ----------
    records : sequence of dict
        One record per grid entry, in grid order.
    direction : Direction or str
        Direction the records were computed for.
    shape : tuple, optional
        Grid shape used by the array accessors. Defaults to ``(len(records),)``.
    """
    def __init__(self, records: Sequence[Dict[str, float]], direction, shape: Optional[tuple] = None):
        self.direction = _check_choice(direction, "direction", Direction)
        self.shape = tuple(shape) if shape is not None else (len(records),)

        expected = set(self.direction.fields)
        self._records: List[Dict[str, float]] = []
        for i, rec in enumerate(records):
            if set(rec) != expected:
                raise IntegrationError(
                    f"Record {i} has fields {sorted(rec)}, expected {sorted(expected)}"
                )
            self._records.append({name: float(rec[name]) for name in self.direction.fields})

        if int(np.prod(self.shape)) != len(self._records):
            raise ValueError(f"{len(self._records)} records do not fit a grid of shape {self.shape}")

    def __len__(self):
        return len(self._records)

    def __getitem__(self, i) -> Dict[str, float]:
        return dict(self._records[i])

    def __iter__(self):
        return (dict(r) for r in self._records)

    def __eq__(self, other):
        if not isinstance(other, DescriptorField):
            return NotImplemented
        return self.direction is other.direction and self.shape == other.shape and self._records == other._records

    def __repr__(self):
        return f"DescriptorField(N={len(self)}, direction='{self.direction.value}', shape={self.shape})"

    @property
    def fields(self) -> tuple:
        return self.direction.fields

    def values(self, name: str) -> np.ndarray:
        """Field `name` ("lfwd" or "lbwd") as an array of the grid shape."""
        if name not in self.fields:
            raise KeyError(f"Field '{name}' not computed for direction '{self.direction.value}'")
        return np.array([r[name] for r in self._records], dtype=float).reshape(self.shape)

    @property
    def lfwd(self) -> Optional[np.ndarray]:
        return self.values("lfwd") if "lfwd" in self.fields else None

    @property
    def lbwd(self) -> Optional[np.ndarray]:
        return self.values("lbwd") if "lbwd" in self.fields else None

    @property
    def total(self) -> np.ndarray:
        """Sum of the forward and backward descriptors (whichever exist)."""
        return sum(self.values(name) for name in self.fields)

    def to_dict(self) -> Dict[str, np.ndarray]:
        return {name: self.values(name) for name in self.fields}
