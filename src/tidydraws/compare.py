"""Compare the value of a variable across levels of a factor, draw by draw.

Usage:
    >>> draws = spread_draws(typed_fit, "b[condition]")
    >>> diffs = compare_levels(draws, "b", by="condition")
    >>> median_qi(diffs)
       condition  estimate    low   high  prob
    0      B - A     0.512  0.103  0.921  0.95
    ...
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Sequence
from typing import Any, Literal

import numpy as np
import pandas as pd
import structlog

from tidydraws.columns import CHAIN, ITERATION, get_groups, levels_of, with_groups
from tidydraws.errors import InsufficientData, VariableNotFound

__all__ = ["comparison_pairs", "compare_levels"]

logger = structlog.get_logger(__name__)

ComparisonKind = Literal["pairwise", "ordered", "control"]

_SYMBOLS: dict[Callable, str] = {
    operator.sub: "-",
    operator.truediv: "/",
    operator.add: "+",
    operator.mul: "*",
}


def comparison_pairs(
    levels: Sequence[Any],
    comparison: ComparisonKind | Sequence[tuple[Any, Any]] = "pairwise",
) -> list[tuple[Any, Any]]:
    """List the ``(a, b)`` pairs to compare; each yields ``fun(a, b)``.

    - ``"pairwise"``: every unordered pair once, later level first
      (``B - A``, ``C - A``, ``C - B`` for levels A, B, C)
    - ``"ordered"``: consecutive levels (``B - A``, ``C - B``)
    - ``"control"``: every level against the first (``B - A``, ``C - A``)
    - a sequence of pairs: used as given
    """
    levels = list(levels)
    if isinstance(comparison, str):
        if comparison == "pairwise":
            return [(levels[j], levels[i]) for i in range(len(levels)) for j in range(i + 1, len(levels))]
        if comparison == "ordered":
            return [(levels[i + 1], levels[i]) for i in range(len(levels) - 1)]
        if comparison == "control":
            return [(level, levels[0]) for level in levels[1:]]
        raise ValueError(
            f"Unknown comparison: {comparison!r} (expected pairwise, ordered, control or a list of pairs)"
        )

    pairs = [tuple(pair) for pair in comparison]
    for pair in pairs:
        if len(pair) != 2:
            raise ValueError(f"Comparison pairs must have two levels, got {pair!r}")
        missing = [level for level in pair if level not in levels]
        if missing:
            raise ValueError(f"Unknown level(s) {missing} in comparison {pair!r}; levels are {levels}")
    return pairs


def _label(fun: Callable, a: Any, b: Any) -> str:
    symbol = _SYMBOLS.get(fun)
    if symbol is not None:
        return f"{a} {symbol} {b}"
    return f"{getattr(fun, '__name__', 'f')}({a}, {b})"


def compare_levels(
    data: pd.DataFrame,
    variable: str,
    by: str,
    comparison: ComparisonKind | Sequence[tuple[Any, Any]] = "pairwise",
    fun: Callable[[pd.Series, pd.Series], pd.Series] = operator.sub,
    draw_indices: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Compute per-draw comparisons of ``variable`` between levels of ``by``.

    Parameters
    ----------
    data : pd.DataFrame
        Tidy table, e.g. from spread_draws().
    variable : str
        Value column to compare.
    by : str
        Column whose levels are compared.
    comparison : str or sequence of pairs, default "pairwise"
        Which pairs to compare; see comparison_pairs().
    fun : callable, default operator.sub
        Comparison applied as ``fun(value_a, value_b)``, e.g.
        ``operator.truediv`` for ratios.
    draw_indices : sequence of str, optional
        Columns identifying a draw. Defaults to ``.chain``, ``.iteration``
        and every recorded group of ``data`` other than ``by``.

    Returns
    -------
    pd.DataFrame
        Draw columns, ``by`` (labels like ``"B - A"``) and ``variable``.
        Grouped by the other groups plus ``by``.

    Raises
    ------
    VariableNotFound
        If ``variable`` or ``by`` is not a column.
    InsufficientData
        If ``by`` has fewer than two levels.
    """
    for column in (variable, by):
        if column not in data.columns:
            raise VariableNotFound(column, available=list(data.columns))

    other_groups = [g for g in get_groups(data) if g not in (by, variable)]
    if draw_indices is None:
        draw_indices = [c for c in (CHAIN, ITERATION) if c in data.columns] + other_groups
    draw_indices = list(draw_indices)

    levels = levels_of(data[by])
    if len(levels) < 2:
        raise InsufficientData(f"Need at least two levels of '{by}' to compare, got {levels}", variable=by)
    pairs = comparison_pairs(levels, comparison)

    # Keys that are null throughout (e.g. .chain without chain info) cannot index a pivot
    null_keys = [k for k in draw_indices if data[k].isna().all()]
    keys = [k for k in draw_indices if k not in null_keys]
    if not keys:
        raise ValueError("compare_levels needs at least one non-null draw index column")

    wide = data.set_index(keys + [by])[variable].unstack(by)

    labels = [_label(fun, a, b) for a, b in pairs]
    pieces = []
    for (a, b), label in zip(pairs, labels):
        piece = wide.index.to_frame(index=False)
        piece[by] = label
        piece[variable] = np.asarray(fun(wide[a], wide[b]))
        pieces.append(piece)

    result = pd.concat(pieces, ignore_index=True)
    result[by] = pd.Categorical(result[by], categories=labels)
    for k in null_keys:
        result[k] = data[k].iloc[[0] * len(result)].array
    result = result[draw_indices + [by, variable]]

    logger.debug(
        "compare_levels_computed",
        variable=variable,
        by=by,
        n_pairs=len(pairs),
        n_rows=len(result),
    )
    return with_groups(result, other_groups + [by])
