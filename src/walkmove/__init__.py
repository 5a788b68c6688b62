"""walkmove: affine-invariant ensemble sampling in unconstrained space.

walkmove provides the numerical core of a Bayesian model-fitting engine:

- A writer that transforms constrained parameters (bounded scalars,
  probabilities, simplexes, ordered vectors, correlation and covariance
  matrices) to unconstrained reals
- An ensemble MCMC sampler using the walk move of Goodman & Weare (2010)
- Analysis tools for the resulting chains

Examples
--------
Flatten constrained parameters and sample:

    >>> from walkmove.transforms import UnconstrainWriter
    >>> from walkmove.samplers import initialize_ensemble, run_walk_move_sampler
    >>> from walkmove.utils.rng import NumpyRandomSource
    >>> writer = UnconstrainWriter()
    >>> writer.scalar_pos_unconstrain(2.0)
    >>> writer.prob_unconstrain(0.3)
    >>> start = initialize_ensemble(writer.data_r(), NumpyRandomSource(1))
    >>> chain = run_walk_move_sampler(my_log_prob, start, n_steps=1000)
"""
