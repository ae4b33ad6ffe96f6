"""
Joint draws of row indices via a Gaussian copula over empirical marginals.

Given one linking variable per dataset, ``joint_draw`` returns N row indices
into each dataset such that the looked-up values are rank-correlated as
requested while each dataset's own value frequencies are preserved:

  1. validate N and the correlation request (correlation_spec)
  2. draw N correlated standard-normal vectors (mvn_sampler)
  3. map each draw to uniform quantiles with the normal CDF
  4. map each quantile column through the variable's sorted order
     (inverse empirical CDF) to a 0-based row index

With ``rho == 0`` and no ``sigma`` the normal machinery is skipped and each
dataset is resampled uniformly with replacement.
"""

from collections.abc import Mapping

import numpy as np
import pandas as pd
from scipy.stats import norm

import config
from correlation_spec import (make_correlation_spec, resolve_correlation,
                              validate_sample_size)
from linkage_errors import EmptyVariableError, VariableMismatchError
from mvn_sampler import get_sampler, select_sampler


class DrawResult(dict):
    """Mapping of variable name -> int64 index array (length N, 0-based).

    ``strategy`` records how the draw was made: 'independent', 'numba' or
    'cholesky'.  Numba and Cholesky draws differ for the same seed.
    """

    def __init__(self, draws, strategy):
        super().__init__(draws)
        self.strategy = strategy

    @property
    def n(self):
        return len(next(iter(self.values()))) if self else 0

    def to_frame(self):
        return pd.DataFrame(dict(self))


# ---------------------------------------------------------------------------
# Copula quantizer / inverse empirical CDF
# ---------------------------------------------------------------------------

def normal_to_quantiles(z):
    """Standard normal CDF applied elementwise."""
    return norm.cdf(z)


def _order_permutation(values):
    """Stable ascending order of *values* with missing values placed last.

    Categoricals sort by their codes.  Missing entries (NaN, None, NaT, pd.NA)
    keep their original relative order after every present value.
    """
    if isinstance(getattr(values, "dtype", None), pd.CategoricalDtype):
        values = pd.Categorical(values).codes
        missing = values < 0
    else:
        values = np.asarray(values)
        missing = np.asarray(pd.isna(values), dtype=bool)
    present = np.flatnonzero(~missing)
    order = present[np.argsort(values[present], kind="stable")]
    return np.concatenate([order, np.flatnonzero(missing)])


def quantiles_to_indices(q, values, rank_rule=None):
    """Map quantiles *q* in (0, 1) to 0-based row indices of *values*.

    The target rank is round(q * n) (or ceil(q * n) with ``rank_rule='ceil'``)
    clamped to [1, n], then looked up in the ascending order permutation.
    Round-half-to-even on a continuous q leaves no systematic tie bias.
    """
    if rank_rule is None:
        rank_rule = config.RANK_RULE
    n = len(values)
    if n == 0:
        raise EmptyVariableError("Cannot draw row indices from an empty variable.")

    q = np.asarray(q, dtype=np.float64)
    if rank_rule == "round":
        ranks = np.rint(q * n)
    elif rank_rule == "ceil":
        ranks = np.ceil(q * n)
    else:
        raise ValueError(f"Unknown rank rule {rank_rule!r}; "
                         f"choose from {list(config.RANK_RULES)}")
    ranks = np.clip(ranks, 1, n).astype(np.int64)

    return _order_permutation(values)[ranks - 1]


# ---------------------------------------------------------------------------
# Core entry point
# ---------------------------------------------------------------------------

def _as_named(data_list):
    if isinstance(data_list, Mapping):
        return dict(data_list)
    return dict(enumerate(data_list))


def joint_draw(data_list, n, sigma=None, rho=0, use_fast_backend=True,
               rng=None, n_threads=None, rank_rule=None, notify=None):
    """Draw *n* joint row indices, one array per linking variable.

    Parameters
    ----------
    data_list : mapping of name -> sequence, or sequence of sequences
        Linking variable of each dataset.  Not modified.
    n : int
        Number of joint draws.
    sigma : array-like (ndim, ndim) or None
        Correlation matrix of the latent normals.  Takes precedence over rho.
    rho : float
        Equicorrelation used when sigma is None.  0 gives independent draws.
    use_fast_backend : bool
        Prefer the Numba sampler when installed.
    rng : numpy.random.Generator, int or None
        Random number generator (or seed) for reproducibility.
    n_threads : int or None
        Thread hint for the Numba sampler.  Defaults to ``config.N_THREADS``.
    rank_rule : str or None
        'round' or 'ceil'.  Defaults to ``config.RANK_RULE``.
    notify : callable or None
        Receives the fallback notice when Numba was requested but missing.

    Returns
    -------
    DrawResult
    """
    n = validate_sample_size(n)
    named = _as_named(data_list)
    ndim = len(named)
    if ndim < 1:
        raise VariableMismatchError(
            "You must supply at least one linking variable to draw from.")
    spec = make_correlation_spec(rho=rho, sigma=sigma)

    for name, values in named.items():
        if len(values) == 0:
            raise EmptyVariableError(
                f"Linking variable {name!r} is empty; nothing to draw from.")

    sigma = resolve_correlation(spec, ndim)
    rng = np.random.default_rng(rng)

    if sigma is None:
        draws = {name: rng.integers(0, len(values), size=n)
                 for name, values in named.items()}
        return DrawResult(draws, "independent")

    strategy = select_sampler(use_fast_backend, notify=notify)
    z = get_sampler(strategy)(sigma, n, rng, n_threads=n_threads)
    quantiles = normal_to_quantiles(z)

    draws = {name: quantiles_to_indices(quantiles[:, j], values, rank_rule)
             for j, (name, values) in enumerate(named.items())}
    return DrawResult(draws, strategy)
