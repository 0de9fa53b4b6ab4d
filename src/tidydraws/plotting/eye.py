"""Eye plots: densities of draws with point estimates and nested intervals.

An eye plot is a compact visual summary of posterior draws: a mirrored
density (violin) per level of a grouping column, overlaid with a point
estimate and credible intervals at several probability levels. Narrower
intervals are drawn with thicker lines. The half-eye variant draws the
density on one side only.

Usage:
    >>> draws = spread_draws(fit, "u_tau[i]")
    >>> ax = plot_eye(draws, "u_tau", by="i", orientation="horizontal")
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Literal

import numpy as np
import pandas as pd
import structlog
from scipy import stats

from tidydraws.columns import ESTIMATE, HIGH, LOW, PROB, levels_of
from tidydraws.errors import VariableNotFound
from tidydraws.plotting.style import COLORBLIND_COLORS, pyplot
from tidydraws.point_interval import mean_qi

__all__ = [
    "plot_eye",
    "plot_halfeye",
    "plot_pointinterval",
]

logger = structlog.get_logger(__name__)

Orientation = Literal["vertical", "horizontal"]

_DENSITY_GRID_SIZE = 200


def _levels_and_samples(
    data: pd.DataFrame, value: str, by: str | None
) -> tuple[list[Any], list[np.ndarray]]:
    for column in (value, by):
        if column is not None and column not in data.columns:
            raise VariableNotFound(column, available=list(data.columns))
    if by is None:
        return [value], [data[value].dropna().to_numpy(dtype=float)]

    levels = levels_of(data[by])
    samples = [data.loc[data[by] == level, value].dropna().to_numpy(dtype=float) for level in levels]
    return levels, samples


def _get_axes(ax: Any) -> Any:
    if ax is not None:
        return ax
    _, ax = pyplot().subplots()
    return ax


def _set_level_axis(ax: Any, levels: list[Any], by: str | None, value: str, orientation: Orientation) -> None:
    positions = np.arange(len(levels))
    labels = [str(level) for level in levels]
    if orientation == "vertical":
        ax.set_xticks(positions)
        ax.set_xticklabels(labels)
        ax.set_xlabel(by or "")
        ax.set_ylabel(value)
    else:
        ax.set_yticks(positions)
        ax.set_yticklabels(labels)
        ax.set_ylabel(by or "")
        ax.set_xlabel(value)


def _draw_densities(
    ax: Any,
    samples: list[np.ndarray],
    orientation: Orientation,
    side: Literal["both", "upper"],
    width: float,
    color: str,
    trim: bool,
) -> None:
    # Every density is scaled to the same maximum half-width
    half_width = width / 2 if side == "both" else width
    for position, sample in enumerate(samples):
        if sample.size < 2 or np.ptp(sample) == 0:
            continue
        kde = stats.gaussian_kde(sample)
        if trim:
            grid = np.linspace(sample.min(), sample.max(), _DENSITY_GRID_SIZE)
        else:
            pad = 3 * kde.factor * sample.std()
            grid = np.linspace(sample.min() - pad, sample.max() + pad, _DENSITY_GRID_SIZE)
        density = kde(grid)
        density = density / density.max() * half_width

        lower = position - density if side == "both" else np.full_like(density, position)
        upper = position + density
        if orientation == "vertical":
            ax.fill_betweenx(grid, lower, upper, color=color, linewidth=0)
        else:
            ax.fill_between(grid, lower, upper, color=color, linewidth=0)


def plot_pointinterval(
    data: pd.DataFrame,
    value: str,
    by: str | None = None,
    ax: Any = None,
    point_interval: Callable[..., pd.DataFrame] = mean_qi,
    prob: Sequence[float] = (0.95, 0.66),
    orientation: Orientation = "vertical",
    color: str = "#000000",
    linewidth: float = 1.0,
    offset: float = 0.0,
) -> Any:
    """Draw point estimates with nested intervals, one per level of ``by``.

    Parameters
    ----------
    data : pd.DataFrame
        Tidy table of draws.
    value : str
        Column holding the draws.
    by : str, optional
        Categorical column; one point/interval per level. If None, a
        single summary of all draws is drawn.
    ax : matplotlib.axes.Axes, optional
        Axes to draw on; a new figure is created if None.
    point_interval : callable, default mean_qi
        Summarizer, called as ``point_interval(data, value, by=..., prob=...)``.
    prob : sequence of float, default (0.95, 0.66)
        Probability levels. The narrower the interval, the thicker its line.
    orientation : {"vertical", "horizontal"}, default "vertical"
        Vertical puts levels on the x axis and values on the y axis.
    color : str, default black
        Color of points and intervals.
    linewidth : float, default 1.0
        Line width of the widest interval.
    offset : float, default 0.0
        Shift of every point and interval along the level axis.

    Returns
    -------
    matplotlib.axes.Axes
    """
    levels, _ = _levels_and_samples(data, value, by)
    ax = _get_axes(ax)

    summary = point_interval(data, value, by=[by] if by is not None else [], prob=list(prob))
    if ESTIMATE not in summary.columns:
        raise ValueError("point_interval must return estimate/low/high columns for a single value column")

    # Widest interval first so narrower, thicker lines sit on top
    ordered_probs = sorted(summary[PROB].unique(), reverse=True)
    for i, level in enumerate(levels):
        rows = summary if by is None else summary[summary[by] == level]
        position = i + offset
        for rank, p in enumerate(ordered_probs):
            row = rows[rows[PROB] == p].iloc[0]
            lw = linewidth * (1 + 2 * rank)
            if orientation == "vertical":
                ax.plot([position, position], [row[LOW], row[HIGH]], color=color, linewidth=lw, solid_capstyle="butt")
            else:
                ax.plot([row[LOW], row[HIGH]], [position, position], color=color, linewidth=lw, solid_capstyle="butt")
        estimate = rows[ESTIMATE].iloc[0]
        point_size = linewidth * (3 + 2 * len(ordered_probs))
        if orientation == "vertical":
            ax.plot([position], [estimate], "o", color=color, markersize=point_size)
        else:
            ax.plot([estimate], [position], "o", color=color, markersize=point_size)

    _set_level_axis(ax, levels, by, value, orientation)
    logger.debug("pointinterval_plotted", value=value, by=by, n_levels=len(levels))
    return ax


def plot_eye(
    data: pd.DataFrame,
    value: str,
    by: str | None = None,
    ax: Any = None,
    point_interval: Callable[..., pd.DataFrame] = mean_qi,
    prob: Sequence[float] = (0.95, 0.66),
    orientation: Orientation = "vertical",
    violin_color: str = COLORBLIND_COLORS[5],
    color: str = "#000000",
    linewidth: float = 1.0,
    width: float = 0.8,
    trim: bool = True,
) -> Any:
    """Eye plot: a violin per level of ``by`` with point estimates and intervals.

    Equivalent to a violin layer plus plot_pointinterval(), with the mean
    and 95% and 66% quantile intervals by default.

    Parameters
    ----------
    data, value, by, ax, point_interval, prob, orientation, color, linewidth
        As for plot_pointinterval().
    violin_color : str
        Fill color of the densities.
    width : float, default 0.8
        Maximum width of each violin, in level-axis units.
    trim : bool, default True
        If True, trim the densities to the range of the draws.

    Returns
    -------
    matplotlib.axes.Axes

    Examples
    --------
    >>> ax = plot_eye(draws, "b", by="condition")
    >>> ax = plot_eye(draws, "b", by="condition", orientation="horizontal")
    """
    _, samples = _levels_and_samples(data, value, by)
    ax = _get_axes(ax)
    _draw_densities(ax, samples, orientation, "both", width, violin_color, trim)
    return plot_pointinterval(
        data,
        value,
        by=by,
        ax=ax,
        point_interval=point_interval,
        prob=prob,
        orientation=orientation,
        color=color,
        linewidth=linewidth,
    )


def plot_halfeye(
    data: pd.DataFrame,
    value: str,
    by: str | None = None,
    ax: Any = None,
    point_interval: Callable[..., pd.DataFrame] = mean_qi,
    prob: Sequence[float] = (0.95, 0.66),
    orientation: Orientation = "horizontal",
    violin_color: str = COLORBLIND_COLORS[5],
    color: str = "#000000",
    linewidth: float = 1.0,
    width: float = 0.9,
    trim: bool = True,
) -> Any:
    """Half-eye plot: a one-sided density above each point/interval.

    Same parameters as plot_eye(); horizontal by default, which is the
    usual layout for half-eye plots of many parameters.
    """
    _, samples = _levels_and_samples(data, value, by)
    ax = _get_axes(ax)
    _draw_densities(ax, samples, orientation, "upper", width, violin_color, trim)
    return plot_pointinterval(
        data,
        value,
        by=by,
        ax=ax,
        point_interval=point_interval,
        prob=prob,
        orientation=orientation,
        color=color,
        linewidth=linewidth,
    )
