"""Custom types for walkmove."""

from typing import Annotated, Protocol, TypeAlias

import numpy as np
import numpy.typing as npt

# These types are not actually supported by type checkers, so this is more for documentation purposes.
# Current numpy type annotations only specify the dtype, not the shape.
IntArray: TypeAlias = npt.NDArray[np.integer]
FloatArray: TypeAlias = npt.NDArray[np.floating]
WalkerPositions: TypeAlias = Annotated[FloatArray, "(n_walkers, n_dims)"]
WalkerChain: TypeAlias = Annotated[FloatArray, "(n_steps, n_walkers, n_dims)"]


class LogDensity(Protocol):
    """Protocol for log-density functions.

    This protocol defines the interface for the density oracle supplied by
    the host model. The density does not need to be normalized.
    """

    def __call__(self, x: FloatArray) -> float:
        """Evaluate the log-density at point x.

        Parameters
        ----------
        x : FloatArray
            Position in unconstrained parameter space, shape (n_dims,).

        Returns
        -------
        float
            Log-density value at x. May be NaN outside the support.
        """
        ...


class RandomSource(Protocol):
    """Protocol for the random-number primitives consumed by the samplers.

    Samplers draw from a single source in a fixed order, so two sources
    producing the same sequence of values give bit-identical chains.
    """

    def bernoulli(self, p: float) -> int:
        """Return 1 with probability p, otherwise 0."""
        ...

    def normal(self, mean: float = 0.0, sd: float = 1.0) -> float:
        """Return a normal deviate with the given mean and standard deviation."""
        ...

    def uniform(self) -> float:
        """Return a uniform deviate in [0, 1)."""
        ...
