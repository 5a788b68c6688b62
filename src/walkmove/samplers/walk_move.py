"""Affine-invariant ensemble sampling with the walk move.

Implements the walk move of Goodman & Weare (2010): each walker is moved
along a random combination of the offsets of a random subset of the other
walkers from their mean, then accepted or rejected with the Metropolis
criterion.
"""

import logging
from dataclasses import dataclass, field
from typing import TextIO

import numpy as np
import numpy.typing as npt
from tqdm import tqdm

from ..exceptions import DegenerateEnsembleError, InputError
from ..utils.rng import NumpyRandomSource
from ..utils.types import (
    FloatArray,
    LogDensity,
    RandomSource,
    WalkerChain,
    WalkerPositions,
)
from ._base import MIN_WALKERS, BaseEnsemble, EnsembleState

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


class WalkMoveEnsemble(BaseEnsemble):
    """Ensemble sampler using the walk move.

    The sampler has no tuning parameters. All randomness is drawn from the
    single random source in a fixed order: for each walker in index order,
    the companion coin flips, then one normal deviate per companion, then one
    uniform for the acceptance test.

    Parameters
    ----------
    log_prob : LogDensity
        Log-density oracle of the host model.
    rng : RandomSource
        Source of every random draw made by the sampler.
    initial_state : array_like
        Starting walker positions, shape (n_walkers, n_dims), n_walkers >= 3.
    output : TextIO | None, optional
        Default stream for `write_metric`. Default is sys.stdout.

    Examples
    --------
    >>> rng = NumpyRandomSource(seed=1)
    >>> sampler = WalkMoveEnsemble(lambda x: -0.5 * x @ x, rng, np.zeros((4, 2)))
    >>> state = sampler.transition()
    """

    name = "Ensemble Sampler using Walk Move"

    def choose_walkers(self, index: int, n_walkers: int) -> list[int]:
        """Choose the companion walkers used to move walker `index`.

        Each of the other n_walkers - 1 walkers joins the set on a fair coin
        flip. Sets with fewer than two members are redrawn from scratch.

        Returns
        -------
        list of int
            Ascending 0-based indices, never containing `index`.
        """
        if n_walkers < MIN_WALKERS:
            raise DegenerateEnsembleError(n_walkers)

        walkers: list[int] = []
        while len(walkers) <= 1:
            walkers = []
            for k in range(n_walkers - 1):
                if self.bernoulli(0.5):
                    # skip over the walker being moved
                    walkers.append(k + 1 if k >= index else k)
        return walkers

    @staticmethod
    def mean_walkers(
        walker_index: list[int], cur_states: WalkerPositions
    ) -> FloatArray:
        """Coordinate-wise mean of the selected walkers."""
        return np.mean(cur_states[walker_index], axis=0)

    def ensemble_transition(
        self,
        cur_states: WalkerPositions,
        new_states: WalkerPositions,
        logp: FloatArray,
        accept_prob: FloatArray,
    ) -> None:
        """Move every walker once.

        Parameters
        ----------
        cur_states : WalkerPositions
            Positions before the sweep, shape (n_walkers, n_dims). Not modified.
        new_states : WalkerPositions
            Receives the positions after the sweep. Same shape as cur_states.
        logp : FloatArray
            Receives the log-density of each walker's new position.
        accept_prob : FloatArray
            Receives the acceptance probability of each walker's proposal.

        Notes
        -----
        A NaN log-density at the proposal is replaced by +inf, so such a
        proposal is always accepted.
        """
        n_walkers = len(cur_states)
        if n_walkers < MIN_WALKERS:
            raise DegenerateEnsembleError(n_walkers)
        if new_states.shape != cur_states.shape:
            raise InputError(
                f"new_states has shape {new_states.shape}, expected {cur_states.shape}."
            )
        if logp.shape != (n_walkers,) or accept_prob.shape != (n_walkers,):
            raise InputError("logp and accept_prob must have one entry per walker.")

        for i in range(n_walkers):
            logp0 = self.log_prob(cur_states[i])

            companions = self.choose_walkers(i, n_walkers)
            mean_companions = self.mean_walkers(companions, cur_states)

            proposal = cur_states[i].copy()
            for j in companions:
                proposal += self.normal(0.0, 1.0) * (cur_states[j] - mean_companions)
            new_states[i] = proposal

            logp_new = self.log_prob(proposal)
            if np.isnan(logp_new):
                logger.debug("NaN log-density at proposal for walker %d", i)
                logp_new = np.inf

            with np.errstate(over="ignore", invalid="ignore"):
                prob = float(np.exp(logp_new - logp0))
            # NaN from inf - inf counts as certain acceptance
            if not prob <= 1.0:
                prob = 1.0
            accept_prob[i] = prob

            if self.uniform() > prob:
                new_states[i] = cur_states[i]
                logp_new = logp0
            logp[i] = logp_new

    def write_metric(self, stream: TextIO | None = None) -> None:
        """Write the (empty) list of tuning parameters to stream or self.output."""
        if stream is None:
            stream = self.output
        if stream is None:
            return
        print("# No free parameters for walk move ensemble sampler", file=stream)


@dataclass
class WalkMoveChain:
    """Data class to hold the results of the walk move sampler."""

    n_walkers: int
    n_dims: int
    positions: list[WalkerPositions] = field(default_factory=list, init=False)
    log_prob: list[FloatArray] = field(default_factory=list, init=False)
    accept_prob: list[FloatArray] = field(default_factory=list, init=False)

    def __repr__(self):
        """String representation of the walk move chain."""
        return (
            f"WalkMoveChain(n_walkers={self.n_walkers}, "
            f"n_dims={self.n_dims}, n_steps={self.n_steps})"
        )

    def __post_init__(self):
        """Post-initialization checks."""
        if not isinstance(self.n_walkers, int) or self.n_walkers < MIN_WALKERS:
            raise DegenerateEnsembleError(self.n_walkers)
        if not isinstance(self.n_dims, int) or self.n_dims <= 0:
            raise ValueError("n_dims must be a positive integer.")

    @classmethod
    def from_arrays(
        cls,
        positions: WalkerChain,
        log_prob: npt.ArrayLike,
        accept_prob: npt.ArrayLike,
    ) -> "WalkMoveChain":
        """Create a chain from arrays of shape (n_steps, n_walkers[, n_dims])."""
        positions = np.asarray(positions, dtype=float)
        if positions.ndim != 3:
            raise InputError(
                f"positions must have shape (n_steps, n_walkers, n_dims), got {positions.shape}."
            )
        log_prob = np.asarray(log_prob, dtype=float)
        accept_prob = np.asarray(accept_prob, dtype=float)
        if log_prob.shape != positions.shape[:2] or accept_prob.shape != positions.shape[:2]:
            raise InputError(
                "log_prob and accept_prob must have shape (n_steps, n_walkers)."
            )
        chain = cls(n_walkers=positions.shape[1], n_dims=positions.shape[2])
        chain.positions = list(positions)
        chain.log_prob = list(log_prob)
        chain.accept_prob = list(accept_prob)
        return chain

    @property
    def n_steps(self) -> int:
        """Number of recorded sweeps."""
        return len(self.positions)

    @property
    def acceptance_fraction(self) -> FloatArray:
        """Mean acceptance probability of each walker over all sweeps."""
        if not self.accept_prob:
            return np.zeros(self.n_walkers)
        return np.mean(self.accept_prob, axis=0)

    def get_chain(self, discard: int = 0, thin: int = 1, flat: bool = False) -> FloatArray:
        """Recorded positions, shape (n_steps, n_walkers, n_dims).

        If `flat` is True the walker axis is merged into the step axis.
        """
        chain = np.array(self.positions, dtype=float).reshape(
            -1, self.n_walkers, self.n_dims
        )[discard::thin]
        if flat:
            return chain.reshape(-1, self.n_dims)
        return chain

    def get_log_prob(self, discard: int = 0, thin: int = 1, flat: bool = False) -> FloatArray:
        """Recorded log-densities, shape (n_steps, n_walkers)."""
        log_prob = np.array(self.log_prob, dtype=float).reshape(-1, self.n_walkers)[
            discard::thin
        ]
        if flat:
            return log_prob.reshape(-1)
        return log_prob


def update_chain(chain: WalkMoveChain, state: EnsembleState) -> None:
    """Append a copy of one sweep's outputs to the chain.

    Args:
        chain (WalkMoveChain): The chain to update.
        state (EnsembleState): The ensemble after the sweep.  Its buffers are reused by the sampler, so they are copied here.
    """
    if state.n_walkers != chain.n_walkers or state.n_dims != chain.n_dims:
        raise InputError("Ensemble state does not match the chain dimensions.")
    chain.positions.append(state.positions.copy())
    chain.log_prob.append(state.log_prob.copy())
    chain.accept_prob.append(state.accept_prob.copy())


def run_walk_move_sampler(
    log_prob: LogDensity,
    initial_state: npt.ArrayLike,
    n_steps: int,
    seed: int = 61254557,
    rng: RandomSource | None = None,
    progress: bool = False,
    output: TextIO | None = None,
) -> WalkMoveChain:
    """Run the walk move ensemble sampler for a number of sweeps.

    Parameters
    ----------
    log_prob : LogDensity
        Function to evaluate the log-density at a position in unconstrained
        space. Must have signature log_prob(x) -> float.
    initial_state : array_like
        Starting walker positions, shape (n_walkers, n_dims), with at least
        3 walkers. See `initialize_ensemble` to scatter walkers around a point.
    n_steps : int
        Number of sweeps to perform.
    seed : int, optional
        Random number seed for reproducible results. Ignored when `rng` is
        given. Default is 61254557.
    rng : RandomSource | None, optional
        User-provided random source. Default is a `NumpyRandomSource` seeded
        with `seed`.
    progress : bool, optional
        Whether to display a progress bar. Default is False.
    output : TextIO | None, optional
        Stream receiving the sampler's diagnostic line. Default is None.

    Returns
    -------
    WalkMoveChain
        Positions, log-densities and acceptance probabilities of every walker
        after every sweep.

    Examples
    --------
    >>> def log_prob(x):
    ...     return -0.5 * np.sum(x**2)
    >>> start = initialize_ensemble(np.zeros(2), NumpyRandomSource(0))
    >>> chain = run_walk_move_sampler(log_prob, start, n_steps=1000)
    >>> samples = chain.get_chain(discard=200, flat=True)
    """
    if not isinstance(n_steps, int) or n_steps < 0:
        raise InputError("n_steps must be a non-negative integer.")
    if rng is None:
        rng = NumpyRandomSource(seed)

    sampler = WalkMoveEnsemble(log_prob, rng, initial_state, output=output)

    logger.info("Running %s", sampler.name)
    logger.info("Number of walkers: %d", sampler.n_walkers)
    logger.info("Number of dimensions: %d", sampler.n_dims)
    logger.info("Number of sweeps: %d", n_steps)
    sampler.write_metric()

    chain = WalkMoveChain(n_walkers=sampler.n_walkers, n_dims=sampler.n_dims)
    for _ in tqdm(range(n_steps), disable=not progress):
        update_chain(chain, sampler.transition())

    logger.info(
        "Mean acceptance probability: %.3f", float(np.mean(chain.acceptance_fraction))
    )
    return chain
