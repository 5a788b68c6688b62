"""Summaries of walk move chains."""

import numpy as np

from ..samplers.walk_move import WalkMoveChain
from ..utils.autocorr import integrated_time
from ..utils.types import FloatArray


def integrated_autocorr_time(
    chain: WalkMoveChain,
    discard: int = 0,
    c: float = 5.0,
) -> FloatArray:
    """Integrated autocorrelation time of each parameter.

    Parameters
    ----------
    chain : WalkMoveChain
        Results of the walk move sampler.
    discard : int, optional
        Number of initial sweeps to discard as burn-in. Default is 0.
    c : float, optional
        Window size factor for the automatic windowing. Default is 5.0.

    Returns
    -------
    FloatArray
        Autocorrelation time in sweeps, shape (n_dims,).
    """
    return integrated_time(chain.get_chain(discard=discard), c=c)


def mean_acceptance(chain: WalkMoveChain, discard: int = 0) -> float:
    """Mean acceptance probability over walkers and retained sweeps."""
    accept_prob = np.array(chain.accept_prob, dtype=float)[discard:]
    if accept_prob.size == 0:
        return 0.0
    return float(np.mean(accept_prob))


def summarize_chain(
    chain: WalkMoveChain,
    discard: int = 0,
    thin: int = 1,
) -> dict[str, FloatArray | float]:
    """Posterior summary of a walk move chain.

    Parameters
    ----------
    chain : WalkMoveChain
        Results of the walk move sampler.
    discard : int, optional
        Number of initial sweeps to discard as burn-in. Default is 0.
    thin : int, optional
        Thinning factor - use every `thin`-th sweep. Default is 1.

    Returns
    -------
    dict
        ``mean`` and ``std`` of the flattened samples per dimension,
        ``acceptance`` (mean acceptance probability) and ``tau``
        (integrated autocorrelation time per dimension, before thinning).

    Examples
    --------
    >>> summary = summarize_chain(chain, discard=500, thin=10)
    >>> summary["mean"]
    array([ 0.01, -0.02])
    """
    samples = chain.get_chain(discard=discard, thin=thin, flat=True)
    return {
        "mean": samples.mean(axis=0),
        "std": samples.std(axis=0),
        "acceptance": mean_acceptance(chain, discard=discard),
        "tau": integrated_autocorr_time(chain, discard=discard),
    }
