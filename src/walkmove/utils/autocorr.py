"""Integrated autocorrelation time of ensemble chains.

The estimator averages the normalized autocorrelation function over walkers
before summing it, with the automatic window of Sokal (1989), as recommended
in the emcee documentation for ensemble samplers.
"""

import numpy as np
import numpy.typing as npt

from ..exceptions import InputError
from .types import FloatArray, WalkerChain


def next_pow_two(n: int) -> int:
    """Smallest power of two that is >= n."""
    i = 1
    while i < n:
        i = i << 1
    return i


def autocorr_func_1d(x: npt.ArrayLike, norm: bool = True) -> FloatArray:
    """Autocorrelation function of a 1-D sequence, computed with an FFT.

    A constant sequence has no defined normalized autocorrelation; it is
    returned as a unit spike at lag 0.
    """
    x = np.atleast_1d(np.asarray(x, dtype=float))
    if x.ndim != 1:
        raise InputError("invalid dimensions for 1D autocorrelation function")
    n = next_pow_two(len(x))

    f = np.fft.fft(x - np.mean(x), n=2 * n)
    acf = np.fft.ifft(f * np.conjugate(f))[: len(x)].real
    acf /= 4 * n

    if norm:
        if acf[0] == 0.0:
            spike = np.zeros_like(acf)
            spike[0] = 1.0
            return spike
        acf /= acf[0]
    return acf


def auto_window(taus: FloatArray, c: float) -> int:
    """First index i with c * taus[i] <= i, or the last index if there is none."""
    m = np.arange(len(taus)) < c * taus
    if np.all(m):
        return len(taus) - 1
    return int(np.argmin(m))


def walker_averaged_time(y: FloatArray, c: float = 5.0) -> float:
    """Autocorrelation time of one parameter.

    Parameters
    ----------
    y : FloatArray
        Chain of a single parameter with shape (n_walkers, n_steps).
    c : float, optional
        Window size factor. Default is 5.0.
    """
    f = np.mean([autocorr_func_1d(yy) for yy in y], axis=0)
    taus = 2.0 * np.cumsum(f) - 1.0
    return float(taus[auto_window(taus, c)])


def integrated_time(chain: WalkerChain, c: float = 5.0) -> FloatArray:
    """Autocorrelation time of every parameter of an ensemble chain.

    Parameters
    ----------
    chain : WalkerChain
        Positions with shape (n_steps, n_walkers, n_dims).
    c : float, optional
        Window size factor. Default is 5.0.

    Returns
    -------
    FloatArray
        One autocorrelation time per dimension, shape (n_dims,).
    """
    chain = np.asarray(chain, dtype=float)
    if chain.ndim != 3 or chain.shape[0] == 0:
        raise InputError(
            f"chain must have shape (n_steps, n_walkers, n_dims), got {chain.shape}."
        )
    return np.array(
        [walker_averaged_time(chain[:, :, d].T, c) for d in range(chain.shape[2])]
    )
