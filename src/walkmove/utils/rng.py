"""Random-number sources for the ensemble samplers."""

import numpy as np


class NumpyRandomSource:
    """Random source backed by a single `numpy.random.Generator` stream.

    Every draw of a sweep (companion coins, proposal normals, acceptance
    uniforms) comes from this one stream, walker by walker, so a fixed seed
    reproduces a run exactly.

    Parameters
    ----------
    seed : int | None, optional
        Seed passed to `numpy.random.default_rng`. Default is None.
    """

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def __repr__(self):
        return f"NumpyRandomSource(seed={self.seed})"

    @property
    def generator(self) -> np.random.Generator:
        """The underlying numpy generator."""
        return self._generator

    def bernoulli(self, p: float) -> int:
        """Return 1 with probability p, otherwise 0."""
        return int(self._generator.random() < p)

    def normal(self, mean: float = 0.0, sd: float = 1.0) -> float:
        """Return a normal deviate."""
        return float(self._generator.normal(mean, sd))

    def uniform(self) -> float:
        """Return a uniform deviate in [0, 1)."""
        return float(self._generator.random())
