"""Writer converting constrained values to their unconstrained representation.

Each method appends the unconstrained value(s) of one constrained variable
to a caller-owned buffer. The representation is positional: a constraining
reader must consume the buffer in exactly the order the values were
written, so the number and order of the outputs of every method is fixed.

Outputs per call:

- scalar transforms: 1
- positive ordered vector of size K: K
- simplex of size K: K - 1
- K x K correlation matrix: K(K-1)/2
- K x K covariance matrix: K(K-1)/2 + K

A call whose input fails its precondition raises `ConstraintViolation`
and leaves the buffer untouched.
"""

import numpy as np
import numpy.typing as npt
from scipy.special import logit

from ..exceptions import ConstraintViolation, InputError
from .factor import factor_cov_matrix


def _log(x):
    # log(0) is -inf at the boundary of the constraint
    with np.errstate(divide="ignore"):
        return np.log(x)


def _as_vector(transform: str, y: npt.ArrayLike) -> np.ndarray:
    vector = np.asarray(y, dtype=float)
    if vector.ndim != 1:
        raise InputError(f"{transform}: expected a vector, got shape {vector.shape}.")
    return vector


def _as_square_matrix(transform: str, y: npt.ArrayLike) -> np.ndarray:
    matrix = np.asarray(y, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1] or matrix.shape[0] == 0:
        raise InputError(
            f"{transform}: expected a non-empty square matrix, got shape {matrix.shape}."
        )
    return matrix


class UnconstrainWriter:
    """Append unconstrained values to real and integer buffers.

    Parameters
    ----------
    data_r : list of float, optional
        Buffer receiving real values. Created if not given.
    data_i : list of int, optional
        Buffer receiving integer values. Created if not given.

    Examples
    --------
    >>> writer = UnconstrainWriter()
    >>> writer.scalar_pos_unconstrain(np.e)
    >>> writer.simplex_unconstrain([0.2, 0.3, 0.5])
    >>> writer.data_r()
    [1.0, -0.916..., -0.510...]
    """

    CONSTRAINT_TOLERANCE = 1e-8
    """Tolerance for checking that a value already satisfies its own constraint."""

    def __init__(
        self,
        data_r: list[float] | None = None,
        data_i: list[int] | None = None,
    ):
        self._data_r = data_r if data_r is not None else []
        self._data_i = data_i if data_i is not None else []

    def __repr__(self):
        return (
            f"UnconstrainWriter(n_reals={len(self._data_r)}, "
            f"n_integers={len(self._data_i)})"
        )

    def data_r(self) -> list[float]:
        """Return the underlying buffer of real values."""
        return self._data_r

    def data_i(self) -> list[int]:
        """Return the underlying buffer of integer values."""
        return self._data_i

    def integer(self, n: int) -> None:
        """Write an integer value unchanged to the integer buffer."""
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            raise ConstraintViolation("integer", n, "integral value")
        self._data_i.append(int(n))

    def scalar_unconstrain(self, y: float) -> None:
        """Write an unconstrained scalar. The transform is the identity."""
        self._data_r.append(float(y))

    def scalar_pos_unconstrain(self, y: float) -> None:
        """Write a positive scalar as `log(y)`."""
        if not y >= 0.0:
            raise ConstraintViolation("scalar_pos_unconstrain", y, "y >= 0")
        self._data_r.append(float(_log(y)))

    def scalar_lb_unconstrain(self, lb: float, y: float) -> None:
        """Write a lower-bounded scalar as `log(y - lb)`."""
        if not y >= lb:
            raise ConstraintViolation("scalar_lb_unconstrain", y, f"y >= {lb}")
        self._data_r.append(float(_log(y - lb)))

    def scalar_ub_unconstrain(self, ub: float, y: float) -> None:
        """Write an upper-bounded scalar as `log(ub - y)`."""
        if not y <= ub:
            raise ConstraintViolation("scalar_ub_unconstrain", y, f"y <= {ub}")
        self._data_r.append(float(_log(ub - y)))

    def scalar_lub_unconstrain(self, lb: float, ub: float, y: float) -> None:
        """Write a doubly-bounded scalar as `logit((y - lb) / (ub - lb))`."""
        if not lb < ub:
            raise ConstraintViolation("scalar_lub_unconstrain", (lb, ub), "lb < ub")
        if not lb <= y:
            raise ConstraintViolation("scalar_lub_unconstrain", y, f"y >= {lb}")
        if not y <= ub:
            raise ConstraintViolation("scalar_lub_unconstrain", y, f"y <= {ub}")
        self._data_r.append(float(logit((y - lb) / (ub - lb))))

    def corr_unconstrain(self, y: float) -> None:
        """Write a correlation in [-1, 1] as `atanh(y)`."""
        if not -1.0 <= y:
            raise ConstraintViolation("corr_unconstrain", y, "y >= -1")
        if not y <= 1.0:
            raise ConstraintViolation("corr_unconstrain", y, "y <= 1")
        with np.errstate(divide="ignore"):
            self._data_r.append(float(np.arctanh(y)))

    def prob_unconstrain(self, y: float) -> None:
        """Write a probability in [0, 1] as `logit(y)`."""
        if not 0.0 <= y:
            raise ConstraintViolation("prob_unconstrain", y, "y >= 0")
        if not y <= 1.0:
            raise ConstraintViolation("prob_unconstrain", y, "y <= 1")
        self._data_r.append(float(logit(y)))

    def pos_ordered_unconstrain(self, y: npt.ArrayLike) -> None:
        """Write a positive, non-decreasing vector.

        The first output is `log(y[0])` and output k > 0 is
        `log(y[k] - y[k-1])`. An empty vector writes nothing.
        """
        y = _as_vector("pos_ordered_unconstrain", y)
        if y.size == 0:
            return
        if not y[0] >= 0.0:
            raise ConstraintViolation("pos_ordered_unconstrain", y[0], "y[0] >= 0")
        increments = np.diff(y)
        for k, increment in enumerate(increments, start=1):
            if not increment >= 0.0:
                raise ConstraintViolation(
                    "pos_ordered_unconstrain", y[k], f"y[{k}] >= y[{k - 1}] = {y[k - 1]}"
                )
        self._data_r.append(float(_log(y[0])))
        self._data_r.extend(float(v) for v in _log(increments))

    def simplex_unconstrain(self, y: npt.ArrayLike) -> None:
        """Write a simplex of size K as K - 1 log ratios against the last entry."""
        y = _as_vector("simplex_unconstrain", y)
        if y.size == 0:
            raise InputError("simplex_unconstrain: simplex must have at least one entry.")
        total = y.sum()
        if not abs(1.0 - total) < self.CONSTRAINT_TOLERANCE:
            raise ConstraintViolation(
                "simplex_unconstrain",
                total,
                f"|1 - sum(y)| < {self.CONSTRAINT_TOLERANCE}",
            )
        for k, value in enumerate(y):
            if not value >= 0.0:
                raise ConstraintViolation("simplex_unconstrain", value, f"y[{k}] >= 0")
        log_y = _log(y)
        self._data_r.extend(float(v) for v in log_y[:-1] - log_y[-1])

    def corr_matrix_unconstrain(self, y: npt.ArrayLike) -> None:
        """Write a correlation matrix as its K(K-1)/2 canonical partial correlations."""
        y = _as_square_matrix("corr_matrix_unconstrain", y)
        self._check_symmetric("corr_matrix_unconstrain", y)
        cpcs, sds = factor_cov_matrix(y)
        scales = np.exp(sds)
        for k, scale in enumerate(scales):
            if not abs(scale - 1.0) < self.CONSTRAINT_TOLERANCE:
                raise ConstraintViolation(
                    "corr_matrix_unconstrain", y[k, k], f"y[{k}, {k}] == 1"
                )
        self._data_r.extend(float(v) for v in cpcs)

    def cov_matrix_unconstrain(self, y: npt.ArrayLike) -> None:
        """Write a covariance matrix as its CPCs followed by its log scales."""
        y = _as_square_matrix("cov_matrix_unconstrain", y)
        self._check_symmetric("cov_matrix_unconstrain", y)
        cpcs, sds = factor_cov_matrix(y)
        self._data_r.extend(float(v) for v in cpcs)
        self._data_r.extend(float(v) for v in sds)

    def _check_symmetric(self, transform: str, y: np.ndarray) -> None:
        # tolerance scales with the largest entry, floored at 1
        asymmetry = np.max(np.abs(y - y.T))
        scale = max(1.0, float(np.max(np.abs(y))))
        if not asymmetry <= self.CONSTRAINT_TOLERANCE * scale:
            raise ConstraintViolation(transform, asymmetry, "symmetric matrix")
