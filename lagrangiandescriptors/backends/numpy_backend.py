import numpy as np
import time


def _kernel_trapezoid(t, values):
    """
    Vectorized trapezoid rule over |dt|.

    Samples may be ordered by decreasing time (backward traversals); each
    interval then still contributes its elapsed time with a positive weight.
    """
    dt = np.abs(np.diff(t))
    return float(np.sum(0.5 * (values[1:] + values[:-1]) * dt))


class NumpyMethods:
    def integrate(self, t, values):
        t = np.asarray(t, dtype=float)
        values = np.asarray(values, dtype=float)
        if t.shape[0] < 2:
            return 0.0
        return _kernel_trapezoid(t, values)


def run_benchmark():
    n = 2_000_001
    t = np.linspace(13.0, 0.0, n)
    values = np.random.random(n)

    interface = NumpyMethods()
    print(f"Numpy Implementation | Samples: {n:,}")

    t0 = time.perf_counter()
    interface.integrate(t, values)
    print(f"Trapezoid time: {time.perf_counter() - t0:.4f}s")


if __name__ == "__main__":
    run_benchmark()
