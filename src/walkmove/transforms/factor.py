"""Factoring of covariance matrices into partial correlations and scales.

A K x K covariance matrix is represented by K(K-1)/2 canonical partial
correlations (CPCs) and K log standard deviations, all unconstrained.
The CPCs are enumerated row-major over the strict upper triangle of the
Cholesky factor of the implied correlation matrix:
(0, 1), (0, 2), ..., (0, K-1), (1, 2), ..., (K-2, K-1).
"""

import numpy as np
import numpy.typing as npt
from scipy import linalg

from ..exceptions import FactorizationError, InputError
from ..utils.types import FloatArray


def factor_cov_matrix(sigma: npt.ArrayLike) -> tuple[FloatArray, FloatArray]:
    """Factor a covariance matrix into unconstrained CPCs and log scales.

    Parameters
    ----------
    sigma : array_like
        Symmetric positive definite matrix of shape (K, K). Only the upper
        triangle is read by the Cholesky decomposition.

    Returns
    -------
    cpcs : FloatArray
        Canonical partial correlations on the unconstrained (atanh) scale,
        shape (K(K-1)/2,).
    sds : FloatArray
        Log standard deviations, shape (K,).

    Raises
    ------
    InputError
        If sigma is not a non-empty square matrix.
    FactorizationError
        If any variance is not positive, or the correlation matrix is not
        positive definite.
    """
    sigma = np.asarray(sigma, dtype=float)
    if sigma.ndim != 2 or sigma.shape[0] != sigma.shape[1] or sigma.shape[0] == 0:
        raise InputError(
            f"Expected a non-empty square matrix, got shape {sigma.shape}."
        )

    variances = np.diag(sigma)
    if not np.all(variances > 0.0):
        raise FactorizationError("factor_cov_matrix", variances, "variances > 0")

    scales = np.sqrt(variances)
    corr = sigma / np.outer(scales, scales)
    np.fill_diagonal(corr, 1.0)

    try:
        upper = linalg.cholesky(corr, lower=False)
    except linalg.LinAlgError as exc:
        raise FactorizationError(
            "factor_cov_matrix", sigma, "positive definite"
        ) from exc

    return factor_upper(upper), np.log(scales)


def factor_upper(upper: FloatArray) -> FloatArray:
    """Recover unconstrained CPCs from the upper Cholesky factor of a correlation matrix.

    Column j of the factor is built from the partial correlations z[i, j] as
    U[i, j] = z[i, j] * sqrt(1 - sum_{k<i} U[k, j]^2), which is inverted here.
    """
    k = upper.shape[0]
    cpcs = np.empty(k * (k - 1) // 2)
    position = 0
    for i in range(k - 1):
        # remaining unexplained variance of each later column
        acc = 1.0 - np.sum(upper[:i, i + 1 :] ** 2, axis=0)
        n = k - 1 - i
        cpcs[position : position + n] = upper[i, i + 1 :] / np.sqrt(acc)
        position += n
    return np.arctanh(cpcs)
