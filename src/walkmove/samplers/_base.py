"""Base ensemble abstraction shared by the ensemble samplers."""

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TextIO

import numpy as np
import numpy.typing as npt

from ..exceptions import DegenerateEnsembleError, InputError
from ..utils.types import FloatArray, LogDensity, RandomSource, WalkerPositions

MIN_WALKERS = 3


def check_walker_positions(positions: npt.ArrayLike) -> WalkerPositions:
    """Validate an array of walker positions and return it as a float array.

    Raises
    ------
    InputError
        If the positions are not a 2-D array of shape (n_walkers, n_dims).
    DegenerateEnsembleError
        If there are fewer than 3 walkers.
    """
    positions = np.array(positions, dtype=float)
    if positions.ndim != 2 or positions.shape[1] == 0:
        raise InputError(
            f"Walker positions must have shape (n_walkers, n_dims), got {positions.shape}."
        )
    if positions.shape[0] < MIN_WALKERS:
        raise DegenerateEnsembleError(positions.shape[0])
    return positions


@dataclass
class EnsembleState:
    """Positions, log-densities and acceptance probabilities of all walkers for one sweep."""

    positions: WalkerPositions
    log_prob: FloatArray | None = None
    accept_prob: FloatArray | None = None

    def __post_init__(self):
        """Post-initialization checks."""
        self.positions = check_walker_positions(self.positions)
        if self.log_prob is None:
            self.log_prob = np.full(self.n_walkers, np.nan)
        if self.accept_prob is None:
            self.accept_prob = np.zeros(self.n_walkers)
        self.log_prob = np.asarray(self.log_prob, dtype=float)
        self.accept_prob = np.asarray(self.accept_prob, dtype=float)
        if self.log_prob.shape != (self.n_walkers,) or self.accept_prob.shape != (
            self.n_walkers,
        ):
            raise InputError(
                "log_prob and accept_prob must have one entry per walker."
            )

    def __repr__(self):
        return f"EnsembleState(n_walkers={self.n_walkers}, n_dims={self.n_dims})"

    @property
    def n_walkers(self) -> int:
        """Number of walkers in the ensemble."""
        return self.positions.shape[0]

    @property
    def n_dims(self) -> int:
        """Dimension of each walker position."""
        return self.positions.shape[1]

    def empty_like(self) -> "EnsembleState":
        """Return a next-state buffer with the same shape."""
        return EnsembleState(np.zeros_like(self.positions))


def initialize_ensemble(
    initial_params: npt.ArrayLike,
    rng: RandomSource,
    n_walkers: int | None = None,
    spread: float = 1.0,
) -> WalkerPositions:
    """Scatter walkers around a starting point.

    Every coordinate of every walker is `initial_params + spread * (u - 0.5)`
    with `u` drawn from `rng.uniform()`, walker by walker.

    Parameters
    ----------
    initial_params : array_like
        Starting point in unconstrained space, shape (n_dims,).
    rng : RandomSource
        Source of the uniform draws.
    n_walkers : int, optional
        Number of walkers. Default is max(2 * n_dims, 3).
    spread : float, optional
        Width of the uniform jitter around the starting point. Default is 1.0.

    Returns
    -------
    WalkerPositions
        Array of shape (n_walkers, n_dims).
    """
    initial_params = np.atleast_1d(np.asarray(initial_params, dtype=float))
    if initial_params.ndim != 1:
        raise InputError("initial_params must be a vector.")
    n_dims = initial_params.size
    if n_walkers is None:
        n_walkers = max(2 * n_dims, MIN_WALKERS)
    if n_walkers < MIN_WALKERS:
        raise DegenerateEnsembleError(n_walkers)

    positions = np.empty((n_walkers, n_dims))
    for i in range(n_walkers):
        for j in range(n_dims):
            positions[i, j] = initial_params[j] + spread * (rng.uniform() - 0.5)
    return positions


class BaseEnsemble(ABC):
    """Common machinery for ensemble samplers.

    Holds the log-density oracle, the random source, the diagnostic stream
    and the current ensemble state. Subclasses implement the sweep in
    `ensemble_transition` and describe their tuning in `write_metric`.

    Parameters
    ----------
    log_prob : LogDensity
        Log-density oracle of the host model.
    rng : RandomSource
        Source of every random draw made by the sampler.
    initial_state : array_like
        Starting walker positions, shape (n_walkers, n_dims), n_walkers >= 3.
    output : TextIO | None, optional
        Stream that `write_metric` writes to when called without one.
        Default is sys.stdout. None disables the diagnostic output.
    """

    name = "Ensemble Sampler"

    def __init__(
        self,
        log_prob: LogDensity,
        rng: RandomSource,
        initial_state: npt.ArrayLike,
        output: TextIO | None = sys.stdout,
    ):
        self._log_prob = log_prob
        self.rng = rng
        self.output = output
        self.n_sweeps = 0
        self.state = EnsembleState(initial_state)
        self._next_state = self.state.empty_like()

    def __repr__(self):
        return (
            f"{type(self).__name__}(n_walkers={self.n_walkers}, "
            f"n_dims={self.n_dims}, n_sweeps={self.n_sweeps})"
        )

    @property
    def n_walkers(self) -> int:
        """Number of walkers in the ensemble."""
        return self.state.n_walkers

    @property
    def n_dims(self) -> int:
        """Dimension of the parameter space."""
        return self.state.n_dims

    def log_prob(self, x: FloatArray) -> float:
        """Evaluate the log-density oracle at x."""
        return float(self._log_prob(x))

    def bernoulli(self, p: float) -> int:
        """Draw a Bernoulli(p) indicator."""
        return self.rng.bernoulli(p)

    def normal(self, mean: float = 0.0, sd: float = 1.0) -> float:
        """Draw a normal deviate."""
        return self.rng.normal(mean, sd)

    def uniform(self) -> float:
        """Draw a uniform deviate in [0, 1)."""
        return self.rng.uniform()

    def transition(self) -> EnsembleState:
        """Run one sweep and make its result the current state.

        The next-state buffer is filled from the current positions, then the
        two buffers swap roles for the following sweep.
        """
        self.ensemble_transition(
            self.state.positions,
            self._next_state.positions,
            self._next_state.log_prob,
            self._next_state.accept_prob,
        )
        self.state, self._next_state = self._next_state, self.state
        self.n_sweeps += 1
        return self.state

    def mean_position(self) -> FloatArray:
        """Coordinate-wise mean of the current walker positions."""
        return self.state.positions.mean(axis=0)

    def mean_accept_prob(self) -> float:
        """Mean acceptance probability of the last sweep."""
        return float(np.mean(self.state.accept_prob))

    @abstractmethod
    def ensemble_transition(
        self,
        cur_states: WalkerPositions,
        new_states: WalkerPositions,
        logp: FloatArray,
        accept_prob: FloatArray,
    ) -> None:
        """Advance every walker by one step.

        Reads `cur_states` and writes `new_states`, `logp` and `accept_prob`
        in place.
        """

    @abstractmethod
    def write_metric(self, stream: TextIO | None = None) -> None:
        """Write a description of the sampler's tuning parameters.

        Writes to `stream`, or to `self.output` when no stream is given.
        Nothing is written if both are None.
        """
