"""Figure styling and export helpers for eye plots.

matplotlib is an optional dependency (the ``plot`` extra); it is imported
on first use and a MissingOptionalDependency names it if it is absent.
"""

from __future__ import annotations

import importlib
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tidydraws.errors import MissingOptionalDependency

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COLORBLIND_COLORS",
    "eye_style",
    "pyplot",
    "save_figure",
]

# Colorblind-safe palette from Wong (2011), Nature Methods
# https://www.nature.com/articles/nmeth.1618
COLORBLIND_COLORS = [
    "#0072B2",  # Blue
    "#E69F00",  # Orange
    "#009E73",  # Green
    "#CC79A7",  # Pink
    "#F0E442",  # Yellow
    "#56B4E9",  # Light blue
    "#D55E00",  # Red-orange
]


def pyplot() -> Any:
    """Import and return matplotlib.pyplot."""
    try:
        return importlib.import_module("matplotlib.pyplot")
    except ImportError as e:
        raise MissingOptionalDependency("matplotlib", "drawing eye plots") from e


@contextmanager
def eye_style() -> Generator[None, None, None]:
    """Context manager for eye plot styling.

    Uses plt.rc_context() to avoid global state pollution. All rcParams
    are restored after the context exits.

    Style settings:
    - Font sizes: 9pt body, 10pt titles, 8pt ticks
    - DPI: 100 for screen, 300 for savefig
    - Removed top/right spines
    - Colorblind-safe color cycle

    Examples
    --------
    >>> with eye_style():
    ...     ax = plot_eye(draws, "b", by="condition")
    """
    plt = pyplot()
    style_params = {
        "font.size": 9,
        "axes.labelsize": 9,
        "axes.titlesize": 10,
        "xtick.labelsize": 8,
        "ytick.labelsize": 8,
        "legend.fontsize": 8,
        "figure.dpi": 100,
        "savefig.dpi": 300,
        "figure.figsize": (6.5, 4),
        "pdf.fonttype": 42,
        "axes.linewidth": 0.8,
        "axes.spines.top": False,
        "axes.spines.right": False,
        "axes.prop_cycle": plt.cycler("color", COLORBLIND_COLORS),
    }

    with plt.rc_context(style_params):
        yield


def save_figure(
    fig: Any,
    output_dir: Path | str,
    filename_base: str,
    formats: tuple[str, ...] = ("pdf", "png"),
) -> list[Path]:
    """Save a figure in each requested format and close it.

    Parameters
    ----------
    fig : matplotlib.figure.Figure
        Figure to save.
    output_dir : Path | str
        Output directory; created if missing.
    filename_base : str
        Base filename without extension.
    formats : tuple[str, ...], default ("pdf", "png")
        File formats understood by matplotlib.

    Returns
    -------
    list[Path]
        Paths of the written files, in ``formats`` order.
    """
    plt = pyplot()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        path = output_dir / f"{filename_base}.{fmt}"
        fig.savefig(path, bbox_inches="tight", format=fmt)
        paths.append(path)

    plt.close(fig)
    return paths
