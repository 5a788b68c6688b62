"""Custom exceptions for walkmove.

This module defines the exception hierarchy for the walkmove package,
providing specific error types for different failure modes.
"""


class WalkMoveError(Exception):
    """Base exception class for all walkmove-specific errors.

    This is the root exception class from which all other walkmove
    exceptions inherit. It can be used to catch any walkmove-related
    error in a general exception handler.
    """

    pass


class InputError(WalkMoveError):
    """Raised when required inputs are missing or invalid.

    This exception is raised when:
    - Input arrays have incompatible shapes
    - Matrices are not square or are empty
    - Parameter values are outside acceptable ranges

    Parameters
    ----------
    msg : str, optional
        Human-readable error message describing the input problem.
    """

    def __init__(self, msg="Invalid or missing input parameters"):
        super().__init__(msg)


class ConstraintViolation(InputError):
    """Raised when a constrained value fails the precondition of its transform.

    Parameters
    ----------
    transform : str
        Name of the unconstraining transform that rejected the value.
    value : object
        The offending value.
    bound : str
        Human-readable description of the violated bound.
    """

    def __init__(self, transform: str, value, bound: str):
        self.transform = transform
        self.value = value
        self.bound = bound
        super().__init__(f"{transform}: value {value!r} violates bound {bound}")


class FactorizationError(ConstraintViolation):
    """Raised when a covariance or correlation matrix cannot be factored."""

    pass


class DegenerateEnsembleError(InputError):
    """Raised when an ensemble has too few walkers for the walk move.

    The companion selection needs at least two walkers other than the one
    being moved, so ensembles with fewer than 3 walkers are rejected.
    """

    def __init__(self, n_walkers: int):
        self.n_walkers = n_walkers
        super().__init__(
            f"Walk move ensemble needs at least 3 walkers, got {n_walkers}."
        )
