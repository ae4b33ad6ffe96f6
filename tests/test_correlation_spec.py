"""Validation tests for correlation_spec: sample size, rho/sigma checks."""

import sys
from pathlib import Path
_root = Path(__file__).resolve().parents[1]
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

import numpy as np
import pytest

from correlation_spec import (MatrixCorrelation, ScalarCorrelation,
                              equicorrelation_matrix, make_correlation_spec,
                              pearson_to_spearman, resolve_correlation,
                              spearman_to_pearson, validate_correlation_matrix,
                              validate_sample_size)
from linkage_errors import (AsymmetricMatrixError, DimensionMismatchError,
                            InvalidCorrelationScalar,
                            InvalidHighDimNegativeCorrelation,
                            InvalidSampleSizeError, LinkageError, NonPSDError,
                            OutOfRangeCorrelationError)


# --- Sample size ---

@pytest.mark.parametrize("n", [0, -5, float("nan"), float("inf"), None, 2.5,
                               "10", [10], (10,), np.array([3, 4]), True])
def test_sample_size_rejected(n):
    with pytest.raises(InvalidSampleSizeError):
        validate_sample_size(n)


def test_sample_size_accepts_integral_values():
    assert validate_sample_size(10) == 10
    assert validate_sample_size(10.0) == 10
    assert validate_sample_size(np.int64(7)) == 7
    assert validate_sample_size(np.array(4.0)) == 4
    assert isinstance(validate_sample_size(10.0), int)


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        validate_sample_size(0)
    assert issubclass(NonPSDError, LinkageError)


# --- Scalar rho ---

@pytest.mark.parametrize("rho", [[0.5], "0.5", None, float("nan"),
                                 float("inf"), np.array([0.1, 0.2]), 1j])
def test_rho_must_be_single_finite_number(rho):
    with pytest.raises(InvalidCorrelationScalar):
        make_correlation_spec(rho=rho)


def test_sigma_takes_precedence_over_rho():
    spec = make_correlation_spec(rho="ignored", sigma=np.eye(2))
    assert isinstance(spec, MatrixCorrelation)


def test_rho_zero_signals_independence():
    assert resolve_correlation(ScalarCorrelation(0.0), ndim=4) is None


def test_scalar_rho_builds_equicorrelation():
    sigma = resolve_correlation(make_correlation_spec(rho=0.3), ndim=3)
    expected = np.array([[1.0, 0.3, 0.3],
                         [0.3, 1.0, 0.3],
                         [0.3, 0.3, 1.0]])
    assert np.array_equal(sigma, expected)


def test_rho_one_two_dims_is_valid():
    sigma = resolve_correlation(make_correlation_spec(rho=1.0), ndim=2)
    assert np.array_equal(sigma, np.ones((2, 2)))


def test_negative_rho_allowed_in_two_dims():
    sigma = resolve_correlation(make_correlation_spec(rho=-0.95), ndim=2)
    assert sigma[0, 1] == -0.95


@pytest.mark.parametrize("ndim", [3, 4, 7])
@pytest.mark.parametrize("rho", [-0.01, -0.3, -0.9, -1.0])
def test_negative_rho_high_dim_always_rejected(ndim, rho):
    with pytest.raises(InvalidHighDimNegativeCorrelation):
        resolve_correlation(make_correlation_spec(rho=rho), ndim=ndim)


def test_scalar_rho_out_of_range():
    with pytest.raises(OutOfRangeCorrelationError):
        resolve_correlation(make_correlation_spec(rho=1.5), ndim=2)


# --- Matrix sigma ---

def test_wrong_shape_rejected():
    with pytest.raises(DimensionMismatchError):
        validate_correlation_matrix(np.eye(3), ndim=2)
    with pytest.raises(DimensionMismatchError):
        validate_correlation_matrix(np.ones(4), ndim=2)
    with pytest.raises(DimensionMismatchError):
        validate_correlation_matrix(np.ones((2, 3)), ndim=2)


def test_non_unit_diagonal_rejected():
    sigma = np.array([[1.0, 0.2], [0.2, 0.9]])
    with pytest.raises(DimensionMismatchError):
        validate_correlation_matrix(sigma, ndim=2)


def test_non_numeric_sigma_rejected():
    with pytest.raises(DimensionMismatchError):
        validate_correlation_matrix([["a", "b"], ["c", "d"]], ndim=2)


def test_asymmetric_rejected():
    sigma = [[1.0, 0.5], [0.3, 1.0]]
    with pytest.raises(AsymmetricMatrixError):
        validate_correlation_matrix(sigma, ndim=2)


def test_out_of_range_entry_rejected():
    sigma = [[1.0, 1.5], [1.5, 1.0]]
    with pytest.raises(OutOfRangeCorrelationError):
        validate_correlation_matrix(sigma, ndim=2)


def test_nan_entry_rejected():
    sigma = [[1.0, np.nan], [np.nan, 1.0]]
    with pytest.raises(OutOfRangeCorrelationError):
        validate_correlation_matrix(sigma, ndim=2)


def test_non_psd_rejected():
    sigma = np.full((3, 3), -0.9)
    np.fill_diagonal(sigma, 1.0)
    with pytest.raises(NonPSDError):
        validate_correlation_matrix(sigma, ndim=3)


def test_explicit_negative_matrix_allowed_when_psd():
    # Negative entries in an explicit matrix are fine if PSD.
    sigma = np.array([[1.0, -0.4, 0.0],
                      [-0.4, 1.0, 0.2],
                      [0.0, 0.2, 1.0]])
    out = resolve_correlation(make_correlation_spec(sigma=sigma), ndim=3)
    assert np.array_equal(out, sigma)


def test_valid_matrix_accepts_nested_lists():
    out = validate_correlation_matrix([[1, 0.5], [0.5, 1]], ndim=2)
    assert out.dtype == np.float64


def test_validation_does_not_mutate_input():
    sigma = np.array([[1.0, 0.5], [0.5, 1.0]])
    before = sigma.copy()
    out = validate_correlation_matrix(sigma, ndim=2)
    out[0, 1] = 0.0
    assert np.array_equal(sigma, before)


def test_equicorrelation_matrix():
    m = equicorrelation_matrix(0.25, 4)
    assert m.shape == (4, 4)
    assert np.all(np.diag(m) == 1.0)
    assert np.all(m[~np.eye(4, dtype=bool)] == 0.25)


# --- Spearman/Pearson identity ---

def test_spearman_pearson_round_trip():
    for rho in [-0.9, -0.3, 0.0, 0.4, 1.0]:
        assert np.isclose(pearson_to_spearman(spearman_to_pearson(rho)), rho)
    assert np.isclose(pearson_to_spearman(1.0), 1.0)
