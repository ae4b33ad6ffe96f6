"""
Correlated standard-normal draws for the Gaussian copula.

Two interchangeable strategies, both with the signature
``sampler(sigma, n, rng, n_threads=None) -> ndarray (n, ndim)``:

- "numba"    : symmetric eigen-factor of sigma, rows correlated in a
               JIT-compiled parallel kernel (prange).  Used when Numba is
               installed and config.USE_NUMBA is True.
- "cholesky" : pivoted Cholesky factor (LAPACK dpstrf) with the pivot undone,
               pure NumPy.  Always available.

Both draw the underlying i.i.d. normals from the caller's numpy Generator, so
seeding the Generator makes either strategy reproducible.  The two factors
differ, so the same seed gives different (equally valid) draws under each
strategy; the strategy name is reported back in the draw result.

The Numba kernel is a plain per-row loop, not a BLAS call.  For the small
ndim typical of linkage, NumPy's ``z @ factor`` is usually as fast or
faster, so the "fast backend" mainly buys a thread-count knob; run
benchmarks/benchmark_samplers.py to compare on a given machine.
"""

import warnings

import numpy as np
from scipy.linalg import eigh
from scipy.linalg.lapack import dpstrf

import config


# ---------------------------------------------------------------------------
# Numba JIT block (optional -- falls back to NumPy if unavailable)
# ---------------------------------------------------------------------------
try:
    from numba import njit, prange, get_num_threads, set_num_threads
    from numba import config as numba_config
    _NUMBA_AVAILABLE = True
except ImportError:
    _NUMBA_AVAILABLE = False


def use_numba() -> bool:
    """Return True if Numba is both installed and enabled via config."""
    return _NUMBA_AVAILABLE and config.USE_NUMBA


if _NUMBA_AVAILABLE:
    @njit(cache=True, parallel=True)
    def _correlate_rows_jit(z, factor):
        """Row-wise z @ factor (parallel over rows)."""
        n, d = z.shape
        out = np.empty((n, d), dtype=np.float64)
        for i in prange(n):
            for j in range(d):
                acc = 0.0
                for k in range(d):
                    acc += z[i, k] * factor[k, j]
                out[i, j] = acc
        return out
else:
    _correlate_rows_jit = None


# ---------------------------------------------------------------------------
# Factorisations
# ---------------------------------------------------------------------------

def pivoted_cholesky(sigma):
    """Upper factor R with R.T @ R == sigma, valid for singular PSD sigma.

    LAPACK's dpstrf factors P.T @ sigma @ P = U.T @ U.  Rows of U past the
    numerical rank are left unspecified, so they are zeroed; reordering the
    columns by the inverse pivot then gives R = U @ P.T.
    """
    sigma = np.asarray(sigma, dtype=np.float64)
    c, piv, rank, info = dpstrf(sigma, lower=0)
    if info < 0:
        raise np.linalg.LinAlgError(
            f"dpstrf: illegal value in argument {-info}")
    upper = np.triu(c)
    upper[rank:, :] = 0.0
    return upper[:, np.argsort(piv - 1)]


def symmetric_factor(sigma):
    """Factor F with F.T @ F == sigma from the eigendecomposition of sigma.

    Tiny negative eigenvalues from round-off are clipped to zero.
    """
    w, v = eigh(np.asarray(sigma, dtype=np.float64))
    return (v * np.sqrt(np.clip(w, 0.0, None))).T


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------

def _thread_hint(n_threads):
    if n_threads is None:
        n_threads = config.N_THREADS
    return max(1, min(int(n_threads), numba_config.NUMBA_NUM_THREADS))


def sample_mvn_numba(sigma, n, rng, n_threads=None):
    """N(0, sigma) draws via the Numba kernel.  Requires Numba."""
    if not _NUMBA_AVAILABLE:
        raise RuntimeError("Numba is not installed; use the 'cholesky' sampler.")
    factor = np.ascontiguousarray(symmetric_factor(sigma))
    z = rng.standard_normal((n, factor.shape[0]))

    previous = get_num_threads()
    set_num_threads(_thread_hint(n_threads))
    try:
        return _correlate_rows_jit(z, factor)
    finally:
        set_num_threads(previous)


def sample_mvn_cholesky(sigma, n, rng, n_threads=None):
    """N(0, sigma) draws as standard normals right-multiplied by the pivoted
    Cholesky factor.  *n_threads* is accepted for interface parity and ignored."""
    factor = pivoted_cholesky(sigma)
    z = rng.standard_normal((n, factor.shape[0]))
    return z @ factor


SAMPLERS = {
    "numba": sample_mvn_numba,
    "cholesky": sample_mvn_cholesky,
}


def get_sampler(name):
    """Return the sampling function for *name* ('numba' or 'cholesky')."""
    if name not in SAMPLERS:
        raise ValueError(f"Unknown sampler {name!r}; choose from {list(SAMPLERS)}")
    return SAMPLERS[name]


def _default_notice(msg):
    warnings.warn(msg, UserWarning, stacklevel=4)


def select_sampler(use_fast_backend=True, notify=None):
    """Pick the sampler name for this call.

    When the fast backend is requested but Numba is not installed, *notify*
    (default: a UserWarning) receives a one-line message and the Cholesky
    fallback is used.  Never raises because the backend is missing.
    """
    if use_fast_backend and use_numba():
        return "numba"
    if use_fast_backend and not _NUMBA_AVAILABLE:
        if notify is None:
            notify = _default_notice
        notify("Joint draws are faster if the `numba` package is installed; "
               "using the pivoted-Cholesky NumPy sampler.")
    return "cholesky"
