"""Analysis tools for walk move ensemble chains.

This module provides utilities for analysing the output of the samplers in
walkmove.samplers, including:

- Integrated autocorrelation times
- Mean acceptance probabilities
- Posterior mean and standard deviation summaries
"""

from .summary import integrated_autocorr_time, mean_acceptance, summarize_chain

__all__ = [
    "integrated_autocorr_time",
    "mean_acceptance",
    "summarize_chain",
]
