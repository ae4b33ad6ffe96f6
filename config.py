"""
Configuration for joint-draw dataset linkage.

Module-level switches read at call time, so scripts can flip them (e.g.
``config.USE_NUMBA = False``) before or after importing the sampling modules.
"""

# ---------------------------------------------------------------------------
# Sampling backend
# ---------------------------------------------------------------------------
# Use the Numba-parallel multivariate normal sampler when Numba is installed.
# Falls back to the pivoted-Cholesky NumPy path otherwise.
USE_NUMBA = True

# Thread hint for the Numba kernel.  Clamped to Numba's own pool size.
N_THREADS = 2

# ---------------------------------------------------------------------------
# Correlation validation
# ---------------------------------------------------------------------------
# Eigenvalues down to -PSD_TOLERANCE count as zero.  A singular matrix such as
# rho = 1 has a zero eigenvalue that LAPACK may return as -1e-16.
PSD_TOLERANCE = 1e-8

# ---------------------------------------------------------------------------
# Inverse empirical CDF
# ---------------------------------------------------------------------------
# "round" (default): rank = round(q * n), clamped to [1, n]
# "ceil": rank = ceil(q * n), exact 1/n mass per rank
RANK_RULE = "round"
RANK_RULES = ("round", "ceil")

# ---------------------------------------------------------------------------
# Accuracy check (check_link_accuracy.py)
# ---------------------------------------------------------------------------
DEFAULT_N_SIMS = 200
DEFAULT_DRAW_SIZE = 1000
DEFAULT_RHO_TARGETS = [0.30, 0.60, 0.90, -0.30, -0.60]
FLAG_THRESHOLD = 0.02
