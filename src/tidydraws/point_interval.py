"""Point estimates and credible intervals for grouped draws.

Summarizes each group of a tidy table with a point estimate (mean, median
or mode) and an interval (equal-tailed quantile interval or highest
density interval) at one or more probability levels.

Key functions:
- point_interval: the general summarizer
- mean_qi, median_qi, mode_qi, mean_hdi, median_hdi, mode_hdi: shortcuts
- qi, hdi, point_estimate: the underlying statistics for a single sample

Output naming follows broom conventions. Summarizing a single existing
column gives ``estimate``, ``low`` and ``high``; summarizing several
columns or a derived expression gives ``<name>``, ``<name>.low`` and
``<name>.high`` for each. The ``prob`` column holds the probability level,
with one row per group and level.

Usage:
    >>> draws = spread_draws(fit, "b[i]")
    >>> median_qi(draws, prob=[0.95, 0.66])
       i  estimate    low   high  prob
    0  1     0.213 -1.702  2.114  0.95
    ...
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Literal

import numpy as np
import pandas as pd
import structlog
from scipy import stats

from tidydraws.columns import ESTIMATE, HIGH, LOW, PRED, PROB, VALUE, get_groups, is_special, with_groups
from tidydraws.errors import InsufficientData, InvalidProbability, VariableNotFound

__all__ = [
    "get_point_interval",
    "hdi",
    "mean_hdi",
    "mean_qi",
    "median_hdi",
    "median_qi",
    "mode_hdi",
    "mode_qi",
    "point_estimate",
    "point_interval",
    "qi",
]

logger = structlog.get_logger(__name__)

PointKind = Literal["mean", "median", "mode"]
IntervalKind = Literal["qi", "hdi"]

DEFAULT_KDE_GRID_SIZE = 512


def _check_probs(prob: float | Iterable[float]) -> list[float]:
    probs = [prob] if np.isscalar(prob) else list(prob)
    if not probs:
        raise InvalidProbability(prob)
    for p in probs:
        if isinstance(p, bool) or not isinstance(p, (int, float, np.number)):
            raise InvalidProbability(p)
        if not 0.0 < float(p) < 1.0:
            raise InvalidProbability(p)
    return [float(p) for p in probs]


def _is_discrete(values: pd.Series) -> bool:
    return not pd.api.types.is_float_dtype(values) and not pd.api.types.is_complex_dtype(values)


def _numeric_sample(x: Any) -> np.ndarray:
    values = pd.Series(x)
    if not pd.api.types.is_numeric_dtype(values) or pd.api.types.is_bool_dtype(values):
        raise TypeError(f"Intervals require numeric samples, got dtype {values.dtype}")
    arr = values.dropna().to_numpy(dtype=float)
    if arr.size == 0:
        raise InsufficientData("Cannot summarize an empty sample")
    return arr


def qi(x: Any, prob: float = 0.95) -> tuple[float, float]:
    """Equal-tailed quantile interval.

    Bounds are the ``(1 - prob) / 2`` and ``(1 + prob) / 2`` empirical
    quantiles (linear interpolation between order statistics).

    Raises:
        InvalidProbability: If prob is outside (0, 1).
        InsufficientData: If the sample is empty after dropping nulls.
    """
    (prob,) = _check_probs(prob)
    arr = _numeric_sample(x)
    low, high = np.quantile(arr, [(1 - prob) / 2, (1 + prob) / 2])
    return float(low), float(high)


def hdi(x: Any, prob: float = 0.95) -> tuple[float, float]:
    """Highest density interval: the narrowest interval holding ``prob`` of the sample.

    The sample is sorted and every window of ``ceil(prob * n)`` consecutive
    values is scanned; the narrowest wins, with ties going to the first
    (lowest) window.

    For small samples the interpolated equal-tailed interval can be
    narrower than every window. The result is then qi(x, prob), whose
    bounds are interpolated quantiles rather than sample values, and is
    not a highest density interval. For example ``hdi([1, 2, 3, 4, 100],
    0.95)`` returns ``(1.1, 90.4)``, not the window ``(1, 100)``.

    Raises:
        InvalidProbability: If prob is outside (0, 1).
        InsufficientData: If the sample is empty after dropping nulls.
    """
    (prob,) = _check_probs(prob)
    arr = np.sort(_numeric_sample(x))
    n = arr.size
    # Tolerance keeps e.g. 0.95 * 1000 from rounding up to 951
    window = min(max(math.ceil(prob * n - 1e-9), 1), n)

    widths = arr[window - 1 :] - arr[: n - window + 1]
    start = int(np.argmin(widths))
    low, high = float(arr[start]), float(arr[start + window - 1])

    qi_low, qi_high = np.quantile(arr, [(1 - prob) / 2, (1 + prob) / 2])
    if qi_high - qi_low < high - low:
        return float(qi_low), float(qi_high)
    return low, high


def _mode(values: pd.Series, kde_grid_size: int) -> Any:
    if _is_discrete(values):
        counts = values.value_counts(sort=False, dropna=True)
        return counts.index[int(np.argmax(counts.to_numpy()))]

    arr = values.to_numpy(dtype=float)
    if np.unique(arr).size == 1:
        return float(arr[0])
    try:
        density = stats.gaussian_kde(arr)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise InsufficientData(f"Cannot estimate density for mode: {e}") from e
    grid = np.linspace(arr.min(), arr.max(), kde_grid_size)
    return float(grid[int(np.argmax(density(grid)))])


def point_estimate(x: Any, kind: PointKind = "mean", kde_grid_size: int = DEFAULT_KDE_GRID_SIZE) -> Any:
    """Central tendency of a sample.

    Parameters
    ----------
    x : array-like
        Sample; nulls are dropped.
    kind : {"mean", "median", "mode"}
        ``mode`` is the most frequent value for discrete samples (integer,
        boolean, categorical, string) and the maximum of a Gaussian kernel
        density estimate (Scott's rule bandwidth, evaluated on
        ``kde_grid_size`` points spanning the sample) for continuous ones.
    kde_grid_size : int, default 512
        Number of grid points for the density estimate.

    Raises
    ------
    InsufficientData
        If the sample is empty, or the density cannot be estimated.
    TypeError
        If a mean or median is requested for non-numeric values.
    """
    values = pd.Series(x).dropna()
    if values.empty:
        raise InsufficientData("Cannot summarize an empty sample")
    if kind == "mode":
        return _mode(values, kde_grid_size)

    arr = _numeric_sample(values)
    if kind == "mean":
        return float(np.mean(arr))
    if kind == "median":
        return float(np.median(arr))
    raise ValueError(f"Unknown point estimate: {kind!r} (expected mean, median or mode)")


_INTERVALS: dict[str, Callable[[Any, float], tuple[float, float]]] = {"qi": qi, "hdi": hdi}


def _as_frame(data: Any) -> pd.DataFrame:
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, pd.Series):
        return data.to_frame(name=data.name if data.name is not None else "x")
    return pd.DataFrame({"x": np.asarray(data)})


def point_interval(
    data: pd.DataFrame | pd.Series | Sequence[float] | np.ndarray,
    *columns: str,
    by: str | Sequence[str] | None = None,
    point: PointKind = "mean",
    interval: IntervalKind = "qi",
    prob: float | Sequence[float] = 0.95,
    kde_grid_size: int = DEFAULT_KDE_GRID_SIZE,
    **expressions: str | Callable[[pd.DataFrame], Any],
) -> pd.DataFrame:
    """Summarize draws with a point estimate and interval per group.

    Parameters
    ----------
    data : pd.DataFrame | pd.Series | array-like
        Tidy table (e.g. from spread_draws), or a bare sample.
    *columns : str
        Existing columns to summarize. Defaults to every column that is
        not a group, skipping bookkeeping columns other than ``.value``
        and ``.pred``.
    by : str | Sequence[str] | None
        Group columns. Defaults to the groups recorded on ``data``
        (``data.attrs["groups"]``); pass ``[]`` to summarize ungrouped.
    point : {"mean", "median", "mode"}, default "mean"
        Point estimate.
    interval : {"qi", "hdi"}, default "qi"
        Interval type.
    prob : float | Sequence[float], default 0.95
        Probability level(s) in (0, 1); one output row per level per group.
    kde_grid_size : int, default 512
        Grid size for the mode's density estimate.
    **expressions : str | Callable
        Derived quantities to summarize, keyed by output name: either a
        ``DataFrame.eval`` string or a function of the frame.

    Returns
    -------
    pd.DataFrame
        Group columns, then point/low/high columns, then ``prob``.

    Raises
    ------
    InvalidProbability
        If a probability level is outside (0, 1).
    InsufficientData
        If a group has no non-null samples.
    VariableNotFound
        If a named column does not exist.

    Examples
    --------
    >>> point_interval(draws, "b", by="i", point="median", prob=[0.95, 0.5])
    >>> mean_qi(draws, diff=lambda d: d["b"] - d["a"])
    """
    if point not in ("mean", "median", "mode"):
        raise ValueError(f"Unknown point estimate: {point!r} (expected mean, median or mode)")
    if interval not in _INTERVALS:
        raise ValueError(f"Unknown interval: {interval!r} (expected qi or hdi)")
    probs = _check_probs(prob)
    interval_fun = _INTERVALS[interval]

    frame = _as_frame(data)
    if by is None:
        groups = get_groups(frame)
    else:
        groups = [by] if isinstance(by, str) else list(by)
    for g in groups:
        if g not in frame.columns:
            raise VariableNotFound(g, available=list(frame.columns))

    targets: dict[str, pd.Series] = {}
    for column in columns:
        if column not in frame.columns:
            raise VariableNotFound(column, available=list(frame.columns))
        targets[column] = frame[column]
    for name, expr in expressions.items():
        if name in groups:
            raise ValueError(f"Expression name '{name}' collides with a group column")
        values = expr(frame) if callable(expr) else frame.eval(expr)
        targets[name] = pd.Series(np.asarray(values), index=frame.index)
    if not targets:
        for column in frame.columns:
            if column not in groups and (column in (VALUE, PRED) or not is_special(column)):
                targets[column] = frame[column]
    if not targets:
        raise ValueError("No columns to summarize")

    bare = len(targets) == 1 and not expressions
    if bare:
        value_columns = [ESTIMATE, LOW, HIGH]
    else:
        value_columns = [c for name in targets for c in (name, f"{name}.low", f"{name}.high")]

    work = pd.DataFrame({**{g: frame[g] for g in groups}, **{f"__{n}": s for n, s in targets.items()}})
    if groups:
        grouped = work.groupby(groups, sort=True, observed=True, dropna=False)
    else:
        grouped = [((), work)]

    rows = []
    for key, sub in grouped:
        key = key if isinstance(key, tuple) else (key,)
        summaries = {}
        for name in targets:
            values = sub[f"__{name}"].dropna()
            if values.empty:
                label = ", ".join(f"{g}={k}" for g, k in zip(groups, key)) or "all rows"
                raise InsufficientData(f"No samples to summarize in group ({label})", variable=name)
            summaries[name] = (point_estimate(values, point, kde_grid_size), values)

        for p in probs:
            row = dict(zip(groups, key))
            for name, (estimate, values) in summaries.items():
                low, high = interval_fun(values, p)
                if bare:
                    row.update({ESTIMATE: estimate, LOW: low, HIGH: high})
                else:
                    row.update({name: estimate, f"{name}.low": low, f"{name}.high": high})
            row[PROB] = p
            rows.append(row)

    result = pd.DataFrame(rows, columns=groups + value_columns + [PROB])
    for g in groups:
        if isinstance(frame[g].dtype, pd.CategoricalDtype):
            result[g] = pd.Categorical(result[g], dtype=frame[g].dtype)

    logger.debug(
        "point_interval_computed",
        point=point,
        interval=interval,
        probs=probs,
        columns=list(targets),
        groups=groups,
        n_rows=len(result),
    )
    return with_groups(result, groups)


def _shortcut(point: PointKind, interval: IntervalKind) -> Callable[..., pd.DataFrame]:
    def summarize(
        data: Any,
        *columns: str,
        by: str | Sequence[str] | None = None,
        prob: float | Sequence[float] = 0.95,
        **expressions: Any,
    ) -> pd.DataFrame:
        return point_interval(
            data, *columns, by=by, point=point, interval=interval, prob=prob, **expressions
        )

    summarize.__name__ = summarize.__qualname__ = f"{point}_{interval}"
    interval_name = "quantile interval" if interval == "qi" else "highest density interval"
    summarize.__doc__ = f"point_interval() with the {point} and the {interval_name}."
    summarize.point = point
    summarize.interval = interval
    return summarize


mean_qi = _shortcut("mean", "qi")
median_qi = _shortcut("median", "qi")
mode_qi = _shortcut("mode", "qi")
mean_hdi = _shortcut("mean", "hdi")
median_hdi = _shortcut("median", "hdi")
mode_hdi = _shortcut("mode", "hdi")

_SHORTCUTS = {
    (f.point, f.interval): f for f in (mean_qi, median_qi, mode_qi, mean_hdi, median_hdi, mode_hdi)
}


def get_point_interval(point: PointKind, interval: IntervalKind) -> Callable[..., pd.DataFrame]:
    """Look up the shortcut summarizer for a point/interval combination."""
    try:
        return _SHORTCUTS[(point, interval)]
    except KeyError:
        raise ValueError(f"Unknown point/interval combination: {point!r}/{interval!r}") from None
