"""
Table-level linkage on top of ``copula_draw.joint_draw``.

- link_datasets : correlate one column per DataFrame and bind the drawn rows
- bind_draws    : subset each DataFrame by its drawn indices, column-bind
- cross_join    : full Cartesian product of two or more DataFrames
"""

from collections.abc import Mapping

import numpy as np
import pandas as pd

from copula_draw import joint_draw
from linkage_errors import InputCountError, VariableMismatchError


def _check_tables(tables, caller):
    if isinstance(tables, pd.DataFrame) or len(tables) < 2:
        raise InputCountError(
            f"You must specify at least two data frames in a `{caller}()` call.")


def _as_list(tables):
    if isinstance(tables, Mapping):
        return list(tables.values())
    return list(tables)


def bind_draws(datasets, draws):
    """Column-bind ``datasets[i].iloc[draws[i]]`` with a fresh RangeIndex.

    Original column names are restored as-is, duplicates included.
    """
    frames = [df.iloc[np.asarray(idx)].reset_index(drop=True)
              for df, idx in zip(datasets, draws)]
    columns = [col for df in datasets for col in df.columns]
    merged = pd.concat(frames, axis=1, ignore_index=True)
    merged.columns = columns
    return merged


def link_datasets(datasets, variables, n, sigma=None, rho=0,
                  use_fast_backend=True, rng=None, notify=None):
    """Draw *n* rows from each DataFrame so the chosen *variables* correlate.

    Parameters
    ----------
    datasets : sequence or mapping of DataFrame
        Two or more tables.  Mapping keys name the draws.
    variables : sequence of str
        One linking column per dataset, in the same order.
    n, sigma, rho, use_fast_backend, rng, notify
        Passed through to ``joint_draw``.

    Returns
    -------
    DataFrame with *n* rows and every column of every dataset.  The sampler
    used by the draw is recorded in ``attrs["strategy"]``.
    """
    _check_tables(datasets, "link_datasets")
    if len(datasets) != len(variables):
        raise VariableMismatchError(
            "You must define which variables to join in a `link_datasets()` "
            f"call: got {len(datasets)} datasets and {len(variables)} variables.")
    if len(variables) < 2:
        raise VariableMismatchError(
            "You must define at least two variables to join on in a "
            "`link_datasets()` call.")

    names = list(datasets.keys()) if isinstance(datasets, Mapping) \
        else list(range(len(datasets)))
    frames = _as_list(datasets)

    data_list = {}
    for name, df, var in zip(names, frames, variables):
        if var not in df.columns:
            raise VariableMismatchError(
                f"Linking variable {var!r} not found in dataset {name!r}; "
                f"columns are {list(df.columns)}.")
        data_list[name] = df[var]

    result = joint_draw(data_list, n, sigma=sigma, rho=rho,
                        use_fast_backend=use_fast_backend, rng=rng,
                        notify=notify)
    merged = bind_draws(frames, [result[name] for name in names])
    merged.attrs["strategy"] = result.strategy
    return merged


def cross_join(tables):
    """Every combination of rows across two or more DataFrames."""
    _check_tables(tables, "cross_join")
    frames = _as_list(tables)
    base = frames[0]
    for df in frames[1:]:
        base = base.merge(df, how="cross")
    return base
