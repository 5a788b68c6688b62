"""Sampling algorithms for walkmove.

This module provides the ensemble MCMC samplers:

- Walk move ensemble sampler: affine-invariant sweeps over an ensemble of walkers
- emcee walk move: the same move as implemented by emcee, for cross-checking

Both operate in unconstrained parameter space; use walkmove.transforms to
flatten constrained parameters first.
"""

from ._base import BaseEnsemble, EnsembleState, initialize_ensemble
from ._emcee import run_walk_move_with_emcee
from .walk_move import (
    WalkMoveChain,
    WalkMoveEnsemble,
    run_walk_move_sampler,
    update_chain,
)

__all__ = [
    "BaseEnsemble",
    "EnsembleState",
    "WalkMoveChain",
    "WalkMoveEnsemble",
    "initialize_ensemble",
    "run_walk_move_sampler",
    "run_walk_move_with_emcee",
    "update_chain",
]
