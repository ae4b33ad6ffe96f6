"""Warm up Numba JIT cache by running a small joint draw that triggers compilation."""

import argparse
import time

import numpy as np

import config

parser = argparse.ArgumentParser(description="Warm up Numba JIT cache.")
parser.add_argument("--no-numba", action="store_true",
                    help="Disable Numba (verify fallback works)")
args = parser.parse_args()
if args.no_numba:
    config.USE_NUMBA = False

from copula_draw import joint_draw
from mvn_sampler import use_numba

if not use_numba():
    print("Numba is disabled or not installed -- nothing to warm up.")
    print("Fallback to the pivoted-Cholesky NumPy sampler is active.")
    result = joint_draw([np.arange(5), np.arange(7)], 100, rho=0.5,
                        use_fast_backend=False, rng=0)
    print(f"Fallback draw OK ({result.strategy}, n={result.n}).")
    raise SystemExit(0)

print("=== Warming up Numba (first run compiles; may take 5-15 s) ===")
t0 = time.time()

rng = np.random.default_rng(0)
data_list = [rng.standard_normal(50), rng.standard_normal(80),
             rng.integers(0, 4, size=30)]
joint_draw(data_list, 1000, rho=0.4, rng=1)

elapsed = time.time() - t0
print(f"=== Numba cache written ({elapsed:.1f} s) ===")
print("Subsequent runs will load from cache and skip compilation.")
