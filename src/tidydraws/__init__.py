"""Tidy data frames and summaries of posterior draws from Bayesian models.

tidydraws turns sampler output (ArviZ, xarray, cmdstanpy, NumPyro, plain
arrays or draw tables) into long pandas DataFrames keyed by chain,
iteration and parameter indices, and summarizes them with point estimates
and credible intervals.

Main entry points:
    spread_draws / gather_draws: extract indexed variables into tidy tables
    recover_types: restore categorical index levels
    point_interval and shortcuts (mean_qi, median_hdi, ...): summaries
    compare_levels: per-draw comparisons between factor levels
    fitted_draws / predicted_draws: draws for rows of new data

Example:
    >>> from tidydraws import median_qi, recover_types, spread_draws
    >>> typed = recover_types(fit, {"condition": ["A", "B", "C"]})
    >>> median_qi(spread_draws(typed, "b[condition]"))
"""

__version__ = "0.1.0"

from tidydraws.adapters import AdapterRegistry, DrawsAdapter, arrays_to_draws, extract_draws
from tidydraws.compare import compare_levels, comparison_pairs
from tidydraws.constructors import TypedModel, as_constructor, get_constructors, recover_types
from tidydraws.draws import gather_draws, spread_draws, tidy_draws
from tidydraws.errors import (
    IndexParseError,
    InvalidDrawTable,
    InsufficientData,
    InvalidProbability,
    MissingOptionalDependency,
    TidyDrawsError,
    UnsupportedModelType,
    VariableNotFound,
)
from tidydraws.parsing import VariableSpec, parse_parameter_name, parse_variable_spec
from tidydraws.point_interval import (
    get_point_interval,
    hdi,
    mean_hdi,
    mean_qi,
    median_hdi,
    median_qi,
    mode_hdi,
    mode_qi,
    point_estimate,
    point_interval,
    qi,
)
from tidydraws.predicted import add_fitted_draws, add_predicted_draws, fitted_draws, predicted_draws
from tidydraws.utils.logging import configure_library_logging

__all__ = [
    "__version__",
    # Extraction
    "AdapterRegistry",
    "DrawsAdapter",
    "arrays_to_draws",
    "extract_draws",
    "gather_draws",
    "spread_draws",
    "tidy_draws",
    # Types
    "TypedModel",
    "as_constructor",
    "get_constructors",
    "recover_types",
    # Parsing
    "VariableSpec",
    "parse_parameter_name",
    "parse_variable_spec",
    # Summaries
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
    # Comparisons and predictions
    "add_fitted_draws",
    "add_predicted_draws",
    "compare_levels",
    "comparison_pairs",
    "fitted_draws",
    "predicted_draws",
    # Errors
    "IndexParseError",
    "InvalidDrawTable",
    "InsufficientData",
    "InvalidProbability",
    "MissingOptionalDependency",
    "TidyDrawsError",
    "UnsupportedModelType",
    "VariableNotFound",
]

configure_library_logging()
