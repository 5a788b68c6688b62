"""Test the unconstraining writer."""

import numpy as np
import pytest

from walkmove.exceptions import (
    ConstraintViolation,
    FactorizationError,
    InputError,
)
from walkmove.transforms import UnconstrainWriter


@pytest.fixture
def writer() -> UnconstrainWriter:
    """Fixture to create a writer with fresh buffers."""
    return UnconstrainWriter()


def test_writer_appends_to_caller_buffers():
    """The writer appends to the lists it was given, not to copies."""
    data_r = [7.0]
    data_i = []
    writer = UnconstrainWriter(data_r, data_i)

    writer.scalar_unconstrain(1.5)
    writer.integer(4)

    assert writer.data_r() is data_r
    assert writer.data_i() is data_i
    assert data_r == [7.0, 1.5]
    assert data_i == [4]


def test_constraint_tolerance():
    assert UnconstrainWriter.CONSTRAINT_TOLERANCE == 1e-8


def test_outputs_are_written_in_call_order(writer: UnconstrainWriter):
    writer.scalar_unconstrain(-3.0)
    writer.prob_unconstrain(0.5)
    writer.scalar_pos_unconstrain(np.e)

    assert writer.data_r() == pytest.approx([-3.0, 0.0, 1.0])


def test_integer(writer: UnconstrainWriter):
    writer.integer(3)
    writer.integer(np.int64(-2))

    assert writer.data_i() == [3, -2]
    assert writer.data_r() == []


@pytest.mark.parametrize("value", [2.5, "3", True])
def test_integer_invalid(writer: UnconstrainWriter, value):
    with pytest.raises(ConstraintViolation):
        writer.integer(value)
    assert writer.data_i() == []


def test_scalar_unconstrain(writer: UnconstrainWriter):
    writer.scalar_unconstrain(-12.25)
    assert writer.data_r() == [-12.25]


def test_scalar_pos_unconstrain(writer: UnconstrainWriter):
    writer.scalar_pos_unconstrain(np.e)
    assert writer.data_r() == pytest.approx([1.0])


def test_scalar_pos_unconstrain_boundary(writer: UnconstrainWriter):
    """Zero is on the boundary of the constraint and maps to -inf."""
    writer.scalar_pos_unconstrain(0.0)
    assert writer.data_r() == [-np.inf]


def test_scalar_pos_unconstrain_violation(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation) as excinfo:
        writer.scalar_pos_unconstrain(-1e-12)

    assert excinfo.value.transform == "scalar_pos_unconstrain"
    assert excinfo.value.value == -1e-12
    assert excinfo.value.bound == "y >= 0"
    assert writer.data_r() == []


def test_scalar_pos_unconstrain_nan(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation):
        writer.scalar_pos_unconstrain(np.nan)


def test_scalar_lb_unconstrain(writer: UnconstrainWriter):
    writer.scalar_lb_unconstrain(2.0, 2.0 + np.e)
    assert writer.data_r() == pytest.approx([1.0])


def test_scalar_lb_unconstrain_violation(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match="y >= 2.0"):
        writer.scalar_lb_unconstrain(2.0, 1.999999)
    assert writer.data_r() == []


def test_scalar_ub_unconstrain(writer: UnconstrainWriter):
    writer.scalar_ub_unconstrain(1.0, 1.0 - np.e)
    assert writer.data_r() == pytest.approx([1.0])


def test_scalar_ub_unconstrain_violation(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match="y <= 1.0"):
        writer.scalar_ub_unconstrain(1.0, 1.000001)
    assert writer.data_r() == []


def test_scalar_lub_unconstrain_midpoint(writer: UnconstrainWriter):
    writer.scalar_lub_unconstrain(0.0, 1.0, 0.5)
    assert writer.data_r() == pytest.approx([0.0])


def test_scalar_lub_unconstrain(writer: UnconstrainWriter):
    """(1 - -2) / (2 - -2) = 0.75 and logit(0.75) = log(3)."""
    writer.scalar_lub_unconstrain(-2.0, 2.0, 1.0)
    assert writer.data_r() == pytest.approx([np.log(3.0)])


def test_scalar_lub_unconstrain_boundaries(writer: UnconstrainWriter):
    writer.scalar_lub_unconstrain(-2.0, 2.0, -2.0)
    writer.scalar_lub_unconstrain(-2.0, 2.0, 2.0)
    assert writer.data_r() == [-np.inf, np.inf]


@pytest.mark.parametrize("y", [-2.000001, 2.000001])
def test_scalar_lub_unconstrain_violation(writer: UnconstrainWriter, y):
    with pytest.raises(ConstraintViolation):
        writer.scalar_lub_unconstrain(-2.0, 2.0, y)
    assert writer.data_r() == []


def test_scalar_lub_unconstrain_empty_interval(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match="lb < ub"):
        writer.scalar_lub_unconstrain(1.0, 1.0, 1.0)


def test_corr_unconstrain(writer: UnconstrainWriter):
    writer.corr_unconstrain(0.5)
    assert writer.data_r() == pytest.approx([0.5493061443340549])


def test_corr_unconstrain_boundary(writer: UnconstrainWriter):
    writer.corr_unconstrain(1.0)
    writer.corr_unconstrain(-1.0)
    assert writer.data_r() == [np.inf, -np.inf]


@pytest.mark.parametrize("y", [-1.000001, 1.000001])
def test_corr_unconstrain_violation(writer: UnconstrainWriter, y):
    with pytest.raises(ConstraintViolation):
        writer.corr_unconstrain(y)
    assert writer.data_r() == []


def test_prob_unconstrain(writer: UnconstrainWriter):
    writer.prob_unconstrain(0.25)
    assert writer.data_r() == pytest.approx([np.log(1.0 / 3.0)])


@pytest.mark.parametrize("y", [-1e-9, 1.000000001])
def test_prob_unconstrain_violation(writer: UnconstrainWriter, y):
    with pytest.raises(ConstraintViolation):
        writer.prob_unconstrain(y)
    assert writer.data_r() == []


def test_pos_ordered_unconstrain(writer: UnconstrainWriter):
    writer.pos_ordered_unconstrain(np.array([1.0, 2.0, 4.0]))
    assert writer.data_r() == pytest.approx([0.0, 0.0, np.log(2.0)])


def test_pos_ordered_unconstrain_ties(writer: UnconstrainWriter):
    """Equal neighbours are allowed and give a -inf increment."""
    writer.pos_ordered_unconstrain([0.5, 0.5])
    assert writer.data_r() == [pytest.approx(np.log(0.5)), -np.inf]


def test_pos_ordered_unconstrain_empty(writer: UnconstrainWriter):
    writer.pos_ordered_unconstrain([])
    assert writer.data_r() == []


@pytest.mark.parametrize("size", [1, 2, 5, 10])
def test_pos_ordered_unconstrain_output_size(writer: UnconstrainWriter, size):
    y = np.cumsum(np.arange(1, size + 1, dtype=float))
    writer.pos_ordered_unconstrain(y)
    assert len(writer.data_r()) == size


def test_pos_ordered_unconstrain_negative_start(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match=r"y\[0\] >= 0"):
        writer.pos_ordered_unconstrain([-0.1, 1.0])
    assert writer.data_r() == []


def test_pos_ordered_unconstrain_not_ordered(writer: UnconstrainWriter):
    """A violation late in the vector must not leave a partial output."""
    with pytest.raises(ConstraintViolation, match=r"y\[3\]"):
        writer.pos_ordered_unconstrain([1.0, 2.0, 3.0, 2.9999999])
    assert writer.data_r() == []


def test_pos_ordered_unconstrain_not_a_vector(writer: UnconstrainWriter):
    with pytest.raises(InputError):
        writer.pos_ordered_unconstrain(np.ones((2, 2)))


def test_simplex_unconstrain(writer: UnconstrainWriter):
    writer.simplex_unconstrain([0.2, 0.3, 0.5])
    assert writer.data_r() == pytest.approx(
        [np.log(0.2 / 0.5), np.log(0.3 / 0.5)]
    )
    assert writer.data_r() == pytest.approx([-0.9163, -0.5108], abs=1e-4)


@pytest.mark.parametrize("size", [1, 2, 4, 9])
def test_simplex_unconstrain_output_size(writer: UnconstrainWriter, size):
    writer.simplex_unconstrain(np.full(size, 1.0 / size))
    assert len(writer.data_r()) == size - 1


def test_simplex_unconstrain_within_tolerance(writer: UnconstrainWriter):
    writer.simplex_unconstrain([0.2, 0.3, 0.5 + 2e-9])
    assert len(writer.data_r()) == 2


def test_simplex_unconstrain_sum_violation(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match="sum"):
        writer.simplex_unconstrain([0.2, 0.3, 0.5 + 1e-6])
    assert writer.data_r() == []


def test_simplex_unconstrain_sum_just_outside_tolerance(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation):
        writer.simplex_unconstrain([0.2, 0.3, 0.5 + 2e-8])
    assert writer.data_r() == []


def test_simplex_unconstrain_negative_entry(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match=r"y\[1\] >= 0"):
        writer.simplex_unconstrain([1.1, -0.1])
    assert writer.data_r() == []


def test_simplex_unconstrain_negative_last_entry(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match=r"y\[2\] >= 0"):
        writer.simplex_unconstrain([0.6, 0.5, -0.1])
    assert writer.data_r() == []


def test_simplex_unconstrain_empty(writer: UnconstrainWriter):
    with pytest.raises(InputError):
        writer.simplex_unconstrain([])


def test_corr_matrix_unconstrain_identity(writer: UnconstrainWriter):
    writer.corr_matrix_unconstrain(np.eye(3))
    assert writer.data_r() == pytest.approx([0.0, 0.0, 0.0])


def test_corr_matrix_unconstrain_2x2(writer: UnconstrainWriter):
    writer.corr_matrix_unconstrain([[1.0, 0.5], [0.5, 1.0]])
    assert writer.data_r() == pytest.approx([np.arctanh(0.5)])


def test_corr_matrix_unconstrain_3x3(writer: UnconstrainWriter):
    """The third output is the partial correlation of 1 and 2 given 0."""
    r01, r02, r12 = 0.5, 0.3, 0.2
    y = np.array([[1.0, r01, r02], [r01, 1.0, r12], [r02, r12, 1.0]])
    writer.corr_matrix_unconstrain(y)

    r12_0 = (r12 - r01 * r02) / np.sqrt((1 - r01**2) * (1 - r02**2))
    assert writer.data_r() == pytest.approx(
        [np.arctanh(r01), np.arctanh(r02), np.arctanh(r12_0)]
    )


@pytest.mark.parametrize("k", [1, 2, 3, 5])
def test_corr_matrix_unconstrain_output_size(writer: UnconstrainWriter, k):
    rng = np.random.default_rng(42)
    a = rng.normal(size=(k, 2 * k))
    cov = a @ a.T
    scales = np.sqrt(np.diag(cov))
    corr = cov / np.outer(scales, scales)
    np.fill_diagonal(corr, 1.0)

    writer.corr_matrix_unconstrain(corr)
    assert len(writer.data_r()) == k * (k - 1) // 2


def test_corr_matrix_unconstrain_not_unit_diagonal(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match=r"y\[1, 1\] == 1"):
        writer.corr_matrix_unconstrain([[1.0, 0.0], [0.0, 1.0001]])
    assert writer.data_r() == []


def test_corr_matrix_unconstrain_not_positive_definite(writer: UnconstrainWriter):
    with pytest.raises(FactorizationError):
        writer.corr_matrix_unconstrain([[1.0, 0.9, 0.0], [0.9, 1.0, 0.9], [0.0, 0.9, 1.0]])
    assert writer.data_r() == []


def test_corr_matrix_unconstrain_not_symmetric(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match="symmetric"):
        writer.corr_matrix_unconstrain([[1.0, 0.5], [0.4, 1.0]])


def test_corr_matrix_unconstrain_not_square(writer: UnconstrainWriter):
    with pytest.raises(InputError):
        writer.corr_matrix_unconstrain(np.ones((2, 3)))


def test_cov_matrix_unconstrain(writer: UnconstrainWriter):
    """CPCs come first, followed by the log standard deviations."""
    writer.cov_matrix_unconstrain([[4.0, 1.2], [1.2, 9.0]])
    assert writer.data_r() == pytest.approx(
        [np.arctanh(0.2), np.log(2.0), np.log(3.0)]
    )


def test_cov_matrix_unconstrain_large_scale(writer: UnconstrainWriter):
    """Rounding error in large covariances stays within the relative tolerance."""
    scales = np.array([3.1e4, 7.3e4, 1.1e5])
    corr = np.corrcoef(np.random.default_rng(4).normal(size=(3, 6)))
    sigma = np.diag(scales) @ corr @ np.diag(scales)
    writer.cov_matrix_unconstrain(sigma)
    assert len(writer.data_r()) == 6
    assert writer.data_r()[3:] == pytest.approx(np.log(scales))


def test_cov_matrix_unconstrain_one_ulp_asymmetry(writer: UnconstrainWriter):
    sigma = np.array([[1e10, 5e9], [5e9, 1e10]])
    sigma[0, 1] = np.nextafter(sigma[0, 1], np.inf)
    writer.cov_matrix_unconstrain(sigma)
    assert writer.data_r() == pytest.approx(
        [np.arctanh(0.5), np.log(1e5), np.log(1e5)]
    )


def test_cov_matrix_unconstrain_large_scale_not_symmetric(writer: UnconstrainWriter):
    with pytest.raises(ConstraintViolation, match="symmetric"):
        writer.cov_matrix_unconstrain([[1e10, 5e9], [4e9, 1e10]])
    assert writer.data_r() == []


@pytest.mark.parametrize("k", [1, 2, 4])
def test_cov_matrix_unconstrain_output_size(writer: UnconstrainWriter, k):
    rng = np.random.default_rng(0)
    a = rng.normal(size=(k, 3 * k))
    writer.cov_matrix_unconstrain(a @ a.T)
    assert len(writer.data_r()) == k * (k - 1) // 2 + k


def test_cov_matrix_unconstrain_nonpositive_variance(writer: UnconstrainWriter):
    with pytest.raises(FactorizationError, match="variances > 0"):
        writer.cov_matrix_unconstrain([[1.0, 0.0], [0.0, 0.0]])
    assert writer.data_r() == []


def test_cov_matrix_unconstrain_empty(writer: UnconstrainWriter):
    with pytest.raises(InputError):
        writer.cov_matrix_unconstrain(np.empty((0, 0)))
