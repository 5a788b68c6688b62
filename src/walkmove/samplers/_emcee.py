"""A helper module for running emcee's walk move as a reference sampler."""

from typing import Any

import numpy as np
import numpy.typing as npt
from emcee import EnsembleSampler
from emcee.moves import WalkMove

from ..exceptions import InputError
from ..utils.types import LogDensity
from ._base import check_walker_positions
from .walk_move import WalkMoveChain


def run_walk_move_with_emcee(
    log_prob: LogDensity,
    initial_state: npt.ArrayLike,
    n_steps: int,
    seed: int = 61254557,
    pool: Any | None = None,
    progress: bool = False,
    **kwargs,
) -> WalkMoveChain:
    """Sample with emcee's implementation of the walk move.

    emcee updates the ensemble in two halves (red-blue scheme), each half
    using the other as its companions, so its chains are statistically but
    not bitwise comparable to `run_walk_move_sampler`.

    Parameters
    ----------
    log_prob : LogDensity
        Function to evaluate the log-density.
    initial_state : array_like
        Starting walker positions, shape (n_walkers, n_dims).
    n_steps : int
        Number of MCMC steps to perform.
    seed : int, optional
        Seed for emcee's random state. Default is 61254557.
    pool : Any | None, optional
        User-provided pool for parallel log-density evaluation. The pool
        must implement a map() method compatible with the standard
        library's map() function. Default is None.
    progress : bool, optional
        Whether to display emcee's progress bar. Default is False.
    **kwargs
        Additional keyword arguments passed to `emcee.moves.WalkMove`,
        e.g. `s` for the size of the companion subset.

    Returns
    -------
    WalkMoveChain
        The emcee chain converted to a WalkMoveChain.
    """
    if not isinstance(n_steps, int) or n_steps <= 0:
        raise InputError("n_steps must be a positive integer.")
    initial_state = check_walker_positions(initial_state)
    n_walkers, n_dims = initial_state.shape

    sampler = EnsembleSampler(
        nwalkers=n_walkers,
        ndim=n_dims,
        log_prob_fn=log_prob,
        moves=WalkMove(**kwargs),
        pool=pool,
    )
    sampler.random_state = np.random.RandomState(seed).get_state()
    sampler.run_mcmc(initial_state, n_steps, progress=progress)

    return from_emcee(sampler, initial_state)


def from_emcee(sampler: EnsembleSampler, initial_state: npt.ArrayLike) -> WalkMoveChain:
    """Create a WalkMoveChain from an emcee EnsembleSampler.

    emcee does not keep per-step acceptance probabilities, so the recorded
    acceptance probability of a step is 1 where the walker moved and 0
    where it stayed.
    """
    positions = sampler.get_chain()
    log_prob = sampler.get_log_prob()

    previous = np.concatenate([np.asarray(initial_state)[np.newaxis], positions[:-1]])
    accept_prob = np.any(positions != previous, axis=2).astype(float)

    return WalkMoveChain.from_arrays(positions, log_prob, accept_prob)
