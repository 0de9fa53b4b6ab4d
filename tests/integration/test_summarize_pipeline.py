"""Integration tests for the config-driven pipeline.

Exercises adapters -> reshaping -> type recovery -> summaries -> plots
on mock ArviZ posteriors and draw tables.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from tidydraws.compare import compare_levels
from tidydraws.config import DrawsConfig, SummaryConfig, TidyConfig, load_config
from tidydraws.constructors import recover_types
from tidydraws.draws import spread_draws
from tidydraws.errors import IndexParseError, VariableNotFound
from tidydraws.pipeline import plot_model, summarize_model
from tidydraws.point_interval import median_qi

pytestmark = pytest.mark.integration


@pytest.fixture
def summary_config() -> TidyConfig:
    return TidyConfig(
        draws=DrawsConfig(variables=["mu", "b[group]"]),
        summary=SummaryConfig(point="mean", interval="hdi", probs=[0.95, 0.5]),
    )


class TestSummarizeModel:
    """End-to-end summaries of an InferenceData posterior."""

    def test_long_summary_table(self, mock_idata, summary_config):
        summary = summarize_model(mock_idata, summary_config)
        assert summary.columns.tolist() == [".variable", "group", "estimate", "low", "high", "prob"]
        # mu: 1 row per prob; b: 3 groups per prob
        assert len(summary) == 2 + 6
        assert summary.attrs["groups"] == [".variable", "group"]

        b_rows = summary[(summary[".variable"] == "b") & (summary["prob"] == 0.95)]
        np.testing.assert_allclose(b_rows["estimate"], [0, 1, 2], atol=0.05)
        assert summary.loc[summary[".variable"] == "mu", "group"].isna().all()

    def test_intervals_nest(self, mock_idata, summary_config):
        summary = summarize_model(mock_idata, summary_config)
        b = summary[summary[".variable"] == "b"]
        wide = b[b["prob"] == 0.95].reset_index(drop=True)
        narrow = b[b["prob"] == 0.5].reset_index(drop=True)
        assert (wide["high"] - wide["low"] > narrow["high"] - narrow["low"]).all()

    def test_coordinates_as_labels(self, mock_idata, summary_config):
        summary_config.draws.use_coords = True
        summary = summarize_model(mock_idata, summary_config)
        assert set(summary["group"].dropna()) == {"g0", "g1", "g2"}

    def test_typed_model(self, mock_idata):
        levels = pd.Categorical(["low", "mid", "high"], categories=["low", "mid", "high"])
        typed = recover_types(mock_idata, {"group": levels})
        cfg = TidyConfig(draws=DrawsConfig(variables=["b[group]"]))
        summary = summarize_model(typed, cfg)
        # Level order comes from the prototype's categories
        assert summary["group"].tolist() == ["low", "mid", "high"]
        np.testing.assert_allclose(summary["estimate"], [0, 1, 2], atol=0.05)

    def test_from_yaml(self, tmp_path, mock_idata):
        path = tmp_path / "summary.yaml"
        path.write_text(
            "draws:\n  variables: ['b[group]']\nsummary:\n  point: median\n  probs: [0.9]\n",
            encoding="utf-8",
        )
        summary = summarize_model(mock_idata, load_config(path))
        assert len(summary) == 3
        assert (summary["prob"] == 0.9).all()

    def test_no_variables(self, mock_idata):
        with pytest.raises(ValueError, match="No variables"):
            summarize_model(mock_idata, TidyConfig())

    def test_unknown_variable(self, mock_idata):
        cfg = TidyConfig(draws=DrawsConfig(variables=["theta"]))
        with pytest.raises(VariableNotFound):
            summarize_model(mock_idata, cfg)


class TestWorkflow:
    """The documented spread -> compare -> summarize workflow."""

    def test_compare_then_summarize(self, idata_factory):
        idata = idata_factory(n_chains=4, n_draws=250)
        typed = recover_types(idata, {"group": pd.Categorical(["A", "B", "C"])})
        diffs = compare_levels(spread_draws(typed, "b[group]"), "b", by="group", comparison="control")
        summary = median_qi(diffs)
        assert summary["group"].tolist() == ["B - A", "C - A"]
        np.testing.assert_allclose(summary["estimate"], [1, 2], atol=0.05)


class TestPlotModel:
    """Eye plots written through the pipeline."""

    def test_writes_files(self, tmp_path, mock_idata):
        paths = plot_model(mock_idata, "b[group]", TidyConfig(), tmp_path, formats=("png",))
        assert [p.name for p in paths] == ["eye_b.png"]
        assert paths[0].stat().st_size > 0

    def test_scalar_variable(self, tmp_path, mock_idata):
        paths = plot_model(mock_idata, "mu", output_dir=tmp_path, formats=("png",))
        assert paths[0].exists()

    def test_two_indices_rejected(self, tmp_path, mock_idata):
        with pytest.raises(IndexParseError, match="at most one"):
            plot_model(mock_idata, "b[i,j]", output_dir=tmp_path)
