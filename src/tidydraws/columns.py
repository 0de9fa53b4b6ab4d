"""Column-name conventions shared by the reshapers, summarizers and plots.

Columns whose names start with a dot are bookkeeping columns added by
tidydraws (chain, iteration, row ids, ...). They are never summarized by
default.
"""

from __future__ import annotations

import pandas as pd

CHAIN = ".chain"
ITERATION = ".iteration"
ROW = ".row"
VARIABLE = ".variable"
VALUE = ".value"
PRED = ".pred"

ESTIMATE = "estimate"
LOW = "low"
HIGH = "high"
PROB = "prob"

GROUPS_ATTR = "groups"


def is_special(column: object) -> bool:
    """True for bookkeeping columns such as ``.chain`` and ``.iteration``."""
    return isinstance(column, str) and column.startswith(".")


def levels_of(values: pd.Series) -> list:
    """Distinct non-null values in level order.

    Categorical columns keep their category order (dropping unused
    categories); anything else is sorted.
    """
    if isinstance(values.dtype, pd.CategoricalDtype):
        present = set(values.dropna())
        return [level for level in values.cat.categories if level in present]
    return sorted(values.dropna().unique().tolist())


def get_groups(df: pd.DataFrame) -> list[str]:
    """Return the grouping columns recorded on a tidy table (may be empty)."""
    return [g for g in df.attrs.get(GROUPS_ATTR, []) if g in df.columns]


def with_groups(df: pd.DataFrame, groups: list[str]) -> pd.DataFrame:
    """Record grouping columns on a table and return it."""
    df.attrs[GROUPS_ATTR] = list(groups)
    return df
