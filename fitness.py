import numpy as np

SPHERE_EPSILON = 1e-5


def sphere(position):
    """
    Inverted sphere function: 1 / sum(x_d^2), maximal at the origin.
    The sum is floored at SPHERE_EPSILON so the origin scores 1 / SPHERE_EPSILON.
    """
    perf = float(np.sum(np.square(np.asarray(position, dtype=float))))
    return 1.0 / max(perf, SPHERE_EPSILON)


class NoisySphere:
    """Sphere fitness with additive gaussian measurement noise."""

    def __init__(self, sigma=1.0, seed=None):
        self.sigma = sigma
        self.rng = np.random.default_rng(seed)

    def __call__(self, position):
        return sphere(position) + float(self.rng.normal(0.0, self.sigma))
