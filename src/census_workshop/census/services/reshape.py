"""
Reshaping helpers for Census results: tidy <-> wide, and percent shares.
"""
import logging
from typing import List, Sequence, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

ID_COLUMNS = ["GEOID", "NAME"]


def to_wide(df: pd.DataFrame, value_columns: Union[str, Sequence[str]] = "value") -> pd.DataFrame:
    """
    Pivot a tidy frame (one row per geography and variable) to one row per geography.

    With a single value column the new columns are the variable names. With
    the ACS `estimate`/`moe` pair they become `<variable>E` and `<variable>M`.
    """
    if isinstance(value_columns, str):
        value_columns = [value_columns]
    value_columns = list(value_columns)

    ids = [c for c in ID_COLUMNS if c in df.columns]
    variable_order = list(dict.fromkeys(df["variable"]))

    wide = df.pivot(index=ids, columns="variable", values=value_columns)

    if value_columns == ["estimate", "moe"]:
        suffix = {"estimate": "E", "moe": "M"}
        wide.columns = [f"{var}{suffix[val]}" for val, var in wide.columns]
        ordered = [f"{var}{s}" for var in variable_order for s in ("E", "M")]
    else:
        wide.columns = [var for _, var in wide.columns] if len(value_columns) == 1 \
            else [f"{var}_{val}" for val, var in wide.columns]
        ordered = variable_order if len(value_columns) == 1 \
            else [f"{var}_{val}" for var in variable_order for val in value_columns]

    wide = wide[[c for c in ordered if c in wide.columns]].reset_index()
    wide.columns.name = None
    return wide


def to_tidy(df: pd.DataFrame, id_columns: Sequence[str] = ("GEOID", "NAME")) -> pd.DataFrame:
    """
    Melt a wide frame back to one row per geography and variable.

    Columns ending in `E` that have a matching `M` column are treated as
    ACS estimate/MOE pairs and produce `estimate` and `moe` columns;
    otherwise a single `value` column is produced.
    """
    id_columns = [c for c in id_columns if c in df.columns]
    value_cols = [c for c in df.columns if c not in id_columns]
    pairs = [c[:-1] for c in value_cols if c.endswith("E") and f"{c[:-1]}M" in value_cols]

    if pairs and len(pairs) * 2 == len(value_cols):
        est = df.melt(id_vars=id_columns, value_vars=[f"{p}E" for p in pairs],
                      var_name="variable", value_name="estimate")
        moe = df.melt(id_vars=id_columns, value_vars=[f"{p}M" for p in pairs],
                      var_name="variable", value_name="moe")
        est["variable"] = est["variable"].str[:-1]
        moe["variable"] = moe["variable"].str[:-1]
        tidy = est.merge(moe, on=id_columns + ["variable"], how="left")
    else:
        tidy = df.melt(id_vars=id_columns, value_vars=value_cols,
                       var_name="variable", value_name="value")

    return sort_tidy(tidy, order=pairs or value_cols)


def sort_tidy(df: pd.DataFrame, order: List[str]) -> pd.DataFrame:
    """Sort a tidy frame by GEOID, keeping variables in request order."""
    ranks = {name: i for i, name in enumerate(order)}
    return (df.assign(_rank=df["variable"].map(ranks))
              .sort_values(["GEOID", "_rank"], kind="stable")
              .drop(columns="_rank")
              .reset_index(drop=True))


def add_percent(df: pd.DataFrame, numerator: str, denominator: str,
                name: str = "percent") -> pd.DataFrame:
    """
    Add a column with `100 * numerator / denominator`.

    Rows whose denominator is zero get NaN.
    """
    df = df.copy()
    denom = df[denominator].astype(float).replace(0, np.nan)
    df[name] = 100 * df[numerator].astype(float) / denom
    return df
