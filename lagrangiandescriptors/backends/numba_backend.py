import numpy as np
import time
from numba import jit

K_ARGS = {'nopython': True, 'parallel': False, 'fastmath': True, 'cache': True}


@jit(**K_ARGS)
def _kernel_trapezoid(t, values):
    total = 0.0
    for k in range(len(t) - 1):
        total += 0.5 * (values[k + 1] + values[k]) * abs(t[k + 1] - t[k])
    return total


class NumbaMethods:
    def integrate(self, t, values):
        t = np.ascontiguousarray(t, dtype=np.float64)
        values = np.ascontiguousarray(values, dtype=np.float64)
        if t.shape[0] < 2:
            return 0.0
        return float(_kernel_trapezoid(t, values))


def run_benchmark():
    n = 2_000_001
    t = np.linspace(13.0, 0.0, n)
    values = np.random.random(n)

    interface = NumbaMethods()
    print(f"Numba Implementation | Samples: {n:,}")

    # Warmup
    interface.integrate(t[:4], values[:4])

    t0 = time.perf_counter()
    interface.integrate(t, values)
    print(f"Trapezoid time: {time.perf_counter() - t0:.4f}s")


if __name__ == "__main__":
    run_benchmark()
