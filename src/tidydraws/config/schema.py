"""Config schema definitions."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from tidydraws.parsing import parse_variable_spec


class SummaryConfig(BaseModel):
    point: Literal["mean", "median", "mode"] = "median"
    interval: Literal["qi", "hdi"] = "qi"
    probs: list[float] = Field(default_factory=lambda: [0.95])
    kde_grid_size: int = Field(default=512, ge=16)

    @field_validator("probs")
    @classmethod
    def validate_probs(cls, probs: list[float]) -> list[float]:
        """Validate that every probability level lies in (0, 1)."""
        if not probs:
            raise ValueError("At least one probability level is required")
        bad = [p for p in probs if not 0.0 < p < 1.0]
        if bad:
            raise ValueError(f"Probability levels must be in (0, 1), got {bad}")
        return probs


class DrawsConfig(BaseModel):
    variables: list[str] = Field(default_factory=list)
    use_coords: bool = False

    @field_validator("variables")
    @classmethod
    def validate_variables(cls, variables: list[str]) -> list[str]:
        """Parse every variable spec so malformed ones fail at load time."""
        for spec in variables:
            parse_variable_spec(spec)
        return variables


class PlotConfig(BaseModel):
    probs: list[float] = Field(default_factory=lambda: [0.95, 0.66])
    point: Literal["mean", "median", "mode"] = "mean"
    interval: Literal["qi", "hdi"] = "qi"
    violin_color: str = "#56B4E9"
    interval_color: str = "#000000"
    linewidth: float = 1.0

    @field_validator("probs")
    @classmethod
    def validate_probs(cls, probs: list[float]) -> list[float]:
        """Validate that every probability level lies in (0, 1)."""
        bad = [p for p in probs if not 0.0 < p < 1.0]
        if bad:
            raise ValueError(f"Probability levels must be in (0, 1), got {bad}")
        return probs


class TidyConfig(BaseModel):
    draws: DrawsConfig = DrawsConfig()
    summary: SummaryConfig = SummaryConfig()
    plot: PlotConfig = PlotConfig()
