"""Transforms from constrained to unconstrained parameter space.

This module provides the writer used to flatten constrained model
parameters (bounded scalars, probabilities, simplexes, ordered vectors,
correlation and covariance matrices) into the unconstrained real vector
explored by the samplers in walkmove.samplers.
"""

from .factor import factor_cov_matrix
from .writer import UnconstrainWriter

__all__ = [
    "UnconstrainWriter",
    "factor_cov_matrix",
]
