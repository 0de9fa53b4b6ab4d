"""Unit tests for point estimates, intervals and grouped summaries.

Tests cover:
- qi and hdi on known samples, including qi width >= hdi width
- point_estimate mean/median/mode for continuous and discrete samples
- point_interval output naming, grouping and multiple probability levels
- derived expressions
- probability validation and empty groups
"""

import numpy as np
import pandas as pd
import pytest

from tidydraws.errors import InsufficientData, InvalidProbability, VariableNotFound
from tidydraws.point_interval import (
    get_point_interval,
    hdi,
    mean_hdi,
    mean_qi,
    median_qi,
    mode_hdi,
    point_estimate,
    point_interval,
    qi,
)


@pytest.fixture
def normal_draws() -> np.ndarray:
    return np.random.default_rng(42).normal(0, 1, 1000)


@pytest.fixture
def grouped_draws() -> pd.DataFrame:
    """Three groups of 500 draws centered on 0, 10 and 20."""
    rng = np.random.default_rng(7)
    df = pd.DataFrame(
        {
            ".chain": pd.array([1] * 1500, dtype="Int64"),
            ".iteration": np.tile(np.arange(1, 501), 3),
            "g": np.repeat(["a", "b", "c"], 500),
            "x": np.concatenate([rng.normal(m, 1, 500) for m in (0, 10, 20)]),
            "y": rng.normal(5, 1, 1500),
        }
    )
    df.attrs["groups"] = ["g"]
    return df


class TestIntervals:
    """Tests for qi() and hdi() on single samples."""

    def test_qi_standard_normal(self, normal_draws):
        low, high = qi(normal_draws, 0.95)
        assert low == pytest.approx(-1.96, abs=0.15)
        assert high == pytest.approx(1.96, abs=0.15)

    def test_qi_uses_quantiles(self):
        low, high = qi(np.arange(101), 0.9)
        assert (low, high) == pytest.approx((5.0, 95.0))

    def test_hdi_skewed_sample_shifts_left(self):
        sample = np.random.default_rng(1).exponential(1, 2000)
        hdi_low, hdi_high = hdi(sample, 0.9)
        qi_low, qi_high = qi(sample, 0.9)
        assert hdi_low < qi_low
        assert hdi_high - hdi_low < qi_high - qi_low

    @pytest.mark.parametrize("prob", [0.5, 0.66, 0.8, 0.95, 0.99])
    @pytest.mark.parametrize("n", [5, 20, 1000])
    def test_qi_never_narrower_than_hdi(self, prob, n):
        sample = np.random.default_rng(n).gamma(2, 1, n)
        qi_low, qi_high = qi(sample, prob)
        hdi_low, hdi_high = hdi(sample, prob)
        assert qi_high - qi_low >= hdi_high - hdi_low - 1e-12

    def test_hdi_small_sample_falls_back_to_qi(self):
        sample = [1.0, 2.0, 3.0, 4.0, 100.0]
        assert hdi(sample, 0.95) == pytest.approx((1.1, 90.4))
        assert hdi(sample, 0.95) == pytest.approx(qi(sample, 0.95))

    def test_hdi_contains_requested_mass(self, normal_draws):
        low, high = hdi(normal_draws, 0.8)
        inside = np.mean((normal_draws >= low) & (normal_draws <= high))
        assert inside >= 0.8 - 1e-9

    def test_nulls_are_dropped(self):
        assert qi([1.0, np.nan, 2.0, 3.0], 0.5) == qi([1.0, 2.0, 3.0], 0.5)

    @pytest.mark.parametrize("prob", [0, 1, -0.5, 1.5])
    def test_invalid_probability(self, prob):
        with pytest.raises(InvalidProbability):
            qi([1.0, 2.0], prob)
        with pytest.raises(InvalidProbability):
            hdi([1.0, 2.0], prob)

    def test_empty_sample(self):
        with pytest.raises(InsufficientData):
            qi([np.nan], 0.9)

    def test_non_numeric_sample(self):
        with pytest.raises(TypeError):
            qi(["a", "b"], 0.9)


class TestPointEstimate:
    """Tests for point_estimate()."""

    def test_symmetric_mean_close_to_median(self, normal_draws):
        mean = point_estimate(normal_draws, "mean")
        median = point_estimate(normal_draws, "median")
        assert mean == pytest.approx(median, abs=0.1)

    def test_mode_continuous(self):
        sample = np.random.default_rng(3).normal(4, 1, 5000)
        assert point_estimate(sample, "mode") == pytest.approx(4, abs=0.25)

    def test_mode_discrete(self):
        assert point_estimate([1, 2, 2, 3, 2, 1], "mode") == 2

    def test_mode_strings(self):
        assert point_estimate(["x", "y", "y"], "mode") == "y"

    def test_mode_single_value(self):
        assert point_estimate([2.5, 2.5, 2.5], "mode") == 2.5

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown point estimate"):
            point_estimate([1.0], "max")

    def test_mean_of_strings_raises(self):
        with pytest.raises(TypeError):
            point_estimate(["a"], "mean")


class TestPointInterval:
    """Tests for grouped summaries."""

    def test_standard_normal_mean_qi(self, normal_draws):
        result = mean_qi(normal_draws)
        assert result.columns.tolist() == ["estimate", "low", "high", "prob"]
        row = result.iloc[0]
        assert row["estimate"] == pytest.approx(0, abs=0.1)
        assert row["low"] == pytest.approx(-1.96, abs=0.15)
        assert row["high"] == pytest.approx(1.96, abs=0.15)
        assert row["prob"] == 0.95

    def test_groups_from_attrs(self, grouped_draws):
        result = median_qi(grouped_draws, "x")
        assert result.columns.tolist() == ["g", "estimate", "low", "high", "prob"]
        assert result["g"].tolist() == ["a", "b", "c"]
        np.testing.assert_allclose(result["estimate"], [0, 10, 20], atol=0.2)
        assert result.attrs["groups"] == ["g"]

    def test_explicit_empty_by(self, grouped_draws):
        result = mean_qi(grouped_draws, "x", by=[])
        assert len(result) == 1
        assert result["estimate"].iloc[0] == pytest.approx(10, abs=0.3)

    def test_multiple_probs(self, grouped_draws):
        result = mean_qi(grouped_draws, "x", prob=[0.95, 0.5])
        assert len(result) == 6
        assert result["prob"].tolist() == [0.95, 0.5] * 3
        wide = result[result["prob"] == 0.95].reset_index(drop=True)
        narrow = result[result["prob"] == 0.5].reset_index(drop=True)
        assert (wide["low"] < narrow["low"]).all()
        assert (wide["high"] > narrow["high"]).all()

    def test_multiple_columns_use_name_suffixes(self, grouped_draws):
        result = mean_qi(grouped_draws, "x", "y")
        assert result.columns.tolist() == ["g", "x", "x.low", "x.high", "y", "y.low", "y.high", "prob"]

    def test_default_columns_skip_bookkeeping(self, grouped_draws):
        result = mean_qi(grouped_draws)
        assert "x" in result.columns and "y" in result.columns
        assert ".iteration" not in result.columns

    def test_value_column_summarized_by_default(self):
        df = pd.DataFrame({".iteration": [1, 2, 3], ".value": [1.0, 2.0, 3.0]})
        result = mean_qi(df, by=[])
        assert result["estimate"].iloc[0] == 2.0

    def test_callable_expression(self, grouped_draws):
        result = mean_qi(grouped_draws, diff=lambda d: d["y"] - 5)
        assert result.columns.tolist() == ["g", "diff", "diff.low", "diff.high", "prob"]
        np.testing.assert_allclose(result["diff"], 0, atol=0.2)

    def test_string_expression(self, grouped_draws):
        result = mean_qi(grouped_draws, shifted="x - 10", by=[])
        assert result["shifted"].iloc[0] == pytest.approx(0, abs=0.3)

    def test_hdi_and_mode_shortcuts(self, grouped_draws):
        result = mode_hdi(grouped_draws, "x")
        np.testing.assert_allclose(result["estimate"], [0, 10, 20], atol=0.5)
        assert mean_hdi.point == "mean" and mean_hdi.interval == "hdi"

    def test_categorical_group_order_kept(self, grouped_draws):
        grouped_draws["g"] = pd.Categorical(grouped_draws["g"], categories=["c", "b", "a"])
        result = mean_qi(grouped_draws, "x")
        assert result["g"].tolist() == ["c", "b", "a"]
        assert isinstance(result["g"].dtype, pd.CategoricalDtype)

    def test_series_input(self):
        result = point_interval(pd.Series([1.0, 2.0, 3.0], name="z"), point="median")
        assert result["estimate"].iloc[0] == 2.0

    def test_unknown_column(self, grouped_draws):
        with pytest.raises(VariableNotFound):
            mean_qi(grouped_draws, "nope")

    def test_unknown_group(self, grouped_draws):
        with pytest.raises(VariableNotFound):
            mean_qi(grouped_draws, "x", by="nope")

    def test_invalid_probability(self, grouped_draws):
        with pytest.raises(InvalidProbability):
            mean_qi(grouped_draws, "x", prob=[0.9, 1.0])

    def test_empty_group_raises(self):
        df = pd.DataFrame({"g": ["a", "a", "b"], "x": [1.0, 2.0, np.nan]})
        with pytest.raises(InsufficientData, match="g=b"):
            mean_qi(df, "x", by="g")

    def test_unknown_interval(self, grouped_draws):
        with pytest.raises(ValueError, match="Unknown interval"):
            point_interval(grouped_draws, "x", interval="eti")


class TestGetPointInterval:
    """Tests for shortcut lookup."""

    def test_lookup(self):
        assert get_point_interval("median", "qi") is median_qi

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown point/interval"):
            get_point_interval("max", "qi")
