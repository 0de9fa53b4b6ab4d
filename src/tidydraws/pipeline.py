"""Config-driven summaries and plots of a fitted model.

Ties the reshapers, summarizers and plots together behind a TidyConfig so
that a YAML file fully describes which variables to extract and how to
summarize them.

Usage:
    >>> config = load_config("configs/summary.yaml")
    >>> summary = summarize_model(fit, config)
    >>> paths = plot_model(fit, "b[condition]", config, "outputs/figures")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd
import structlog

from tidydraws.columns import ESTIMATE, HIGH, LOW, PROB, VARIABLE, with_groups
from tidydraws.config.schema import TidyConfig
from tidydraws.draws import spread_draws
from tidydraws.errors import IndexParseError
from tidydraws.parsing import parse_variable_spec
from tidydraws.point_interval import get_point_interval, point_interval

__all__ = ["plot_model", "summarize_model"]

logger = structlog.get_logger(__name__)


def summarize_model(model: Any, config: TidyConfig | None = None) -> pd.DataFrame:
    """Summarize every configured variable of a fitted model.

    Each spec in ``config.draws.variables`` is spread on its own and
    summarized by its index columns with the configured point estimate,
    interval and probability levels.

    Args:
        model: Any object with a registered draws adapter, or a TypedModel.
        config: Summary settings; defaults to TidyConfig().

    Returns:
        Long table with ``.variable``, the index columns of every spec
        (null where a variable lacks that index), ``estimate``, ``low``,
        ``high`` and ``prob``.

    Raises:
        ValueError: If no variables are configured.
    """
    config = config or TidyConfig()
    specs = [parse_variable_spec(s) for s in config.draws.variables]
    if not specs:
        raise ValueError("No variables configured (set draws.variables)")

    summary_cfg = config.summary
    logger.info(
        "summarize_model_start",
        variables=[str(s) for s in specs],
        point=summary_cfg.point,
        interval=summary_cfg.interval,
        probs=summary_cfg.probs,
    )

    pieces = []
    for spec in specs:
        draws = spread_draws(model, spec, use_coords=config.draws.use_coords)
        summary = point_interval(
            draws,
            spec.name,
            by=list(spec.index_names),
            point=summary_cfg.point,
            interval=summary_cfg.interval,
            prob=summary_cfg.probs,
            kde_grid_size=summary_cfg.kde_grid_size,
        )
        summary.insert(0, VARIABLE, spec.name)
        pieces.append(summary)
        logger.info("variable_summarized", variable=spec.name, n_rows=len(summary))

    result = pd.concat(pieces, ignore_index=True, sort=False)
    # Index columns are gathered between .variable and the summary columns
    value_columns = [ESTIMATE, LOW, HIGH, PROB]
    index_columns = [c for c in result.columns if c != VARIABLE and c not in value_columns]
    result = result[[VARIABLE] + index_columns + value_columns]

    logger.info("summarize_model_complete", n_variables=len(specs), n_rows=len(result))
    return with_groups(result, [VARIABLE] + index_columns)


def plot_model(
    model: Any,
    spec: str,
    config: TidyConfig | None = None,
    output_dir: Path | str = "figures",
    formats: tuple[str, ...] = ("pdf", "png"),
) -> list[Path]:
    """Draw an eye plot of one variable and save it.

    Args:
        model: Any object with a registered draws adapter, or a TypedModel.
        spec: Variable spec with at most one named index, e.g. ``"b[condition]"``.
            The index becomes the categorical axis.
        config: Plot settings (``config.plot``); defaults to TidyConfig().
        output_dir: Directory for the figure files.
        formats: File formats to write.

    Returns:
        Paths of the written files.

    Raises:
        IndexParseError: If the spec names more than one index.
        MissingOptionalDependency: If matplotlib is not installed.
    """
    from tidydraws.plotting import eye_style, plot_eye, save_figure

    config = config or TidyConfig()
    parsed = parse_variable_spec(spec)
    if len(parsed.index_names) > 1:
        raise IndexParseError(
            f"Eye plots need at most one named index, got {list(parsed.index_names)}",
            variable=parsed.name,
        )
    by = parsed.index_names[0] if parsed.index_names else None

    plot_cfg = config.plot
    draws = spread_draws(model, parsed, use_coords=config.draws.use_coords)
    with eye_style():
        ax = plot_eye(
            draws,
            parsed.name,
            by=by,
            point_interval=get_point_interval(plot_cfg.point, plot_cfg.interval),
            prob=plot_cfg.probs,
            orientation="horizontal",
            violin_color=plot_cfg.violin_color,
            color=plot_cfg.interval_color,
            linewidth=plot_cfg.linewidth,
        )
        paths = save_figure(ax.figure, output_dir, f"eye_{parsed.name}", formats=formats)

    logger.info("plot_model_saved", variable=parsed.name, paths=[str(p) for p in paths])
    return paths
