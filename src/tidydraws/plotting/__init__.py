"""Eye plots of posterior draws.

matplotlib is imported on first use, so importing this package does not
require it.

Usage:
    >>> from tidydraws.plotting import eye_style, plot_eye
    >>> with eye_style():
    ...     ax = plot_eye(draws, "b", by="condition")
"""

from tidydraws.plotting.eye import plot_eye, plot_halfeye, plot_pointinterval
from tidydraws.plotting.style import COLORBLIND_COLORS, eye_style, pyplot, save_figure

__all__ = [
    "COLORBLIND_COLORS",
    "eye_style",
    "plot_eye",
    "plot_halfeye",
    "plot_pointinterval",
    "pyplot",
    "save_figure",
]
