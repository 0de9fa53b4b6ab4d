"""Configuration models and YAML loading."""

from tidydraws.config.loader import load_config
from tidydraws.config.schema import DrawsConfig, PlotConfig, SummaryConfig, TidyConfig

__all__ = [
    "DrawsConfig",
    "PlotConfig",
    "SummaryConfig",
    "TidyConfig",
    "load_config",
]
