"""
Utility Functions
=================

Stock pointwise descriptors ``M(du, u, p, t)``.

All of them are module-level functions or small classes, so problems using
them can be solved on a process pool.
"""

import numpy as np

def unit_descriptor(du, u, p, t):
    """
    M = 1. The descriptor is then the elapsed time of the traversal,
    which makes it a handy reference when checking integration spans.
    """
    return 1.0

def norm_descriptor(du, u, p, t):
    """
    Euclidean norm of the vector field, M = |du|.

    The resulting descriptor is the arc length of the trajectory.
    """
    return float(np.linalg.norm(du))

class PNormDescriptor:
    """
    The p-norm descriptor M = sum_i |du_i|^alpha, with 0 < alpha.

    alpha <= 1 gives the classical "p-norm" Lagrangian descriptor, whose
    singular features mark stable and unstable manifolds.

    Args:
        alpha: Exponent applied to each component of the vector field.
    """
    def __init__(self, alpha: float = 0.5):
        alpha = float(alpha)
        if not (alpha > 0 and np.isfinite(alpha)):
            raise ValueError("alpha must be a positive finite float.")
        self.alpha = alpha

    def __call__(self, du, u, p, t):
        return float(np.sum(np.abs(du) ** self.alpha))

    def __repr__(self):
        return f"PNormDescriptor(alpha={self.alpha})"
