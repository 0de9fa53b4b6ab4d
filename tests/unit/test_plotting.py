"""Unit tests for eye plots and figure helpers.

Uses the non-interactive Agg backend; only the artists drawn are checked,
not the rendered pixels.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from tidydraws.errors import MissingOptionalDependency, VariableNotFound
from tidydraws.plotting import (
    COLORBLIND_COLORS,
    eye_style,
    plot_eye,
    plot_halfeye,
    plot_pointinterval,
    save_figure,
)
from tidydraws.plotting import style as style_module
from tidydraws.point_interval import median_qi


@pytest.fixture
def condition_draws() -> pd.DataFrame:
    rng = np.random.default_rng(11)
    return pd.DataFrame(
        {
            "condition": pd.Categorical(np.repeat(["A", "B", "C"], 400), categories=["A", "B", "C"]),
            "b": np.concatenate([rng.normal(m, 1, 400) for m in (0, 2, 4)]),
        }
    )


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


class TestPointInterval:
    """Tests for the point/interval layer."""

    def test_one_line_per_level_and_prob_plus_points(self, condition_draws):
        ax = plot_pointinterval(condition_draws, "b", by="condition", prob=(0.95, 0.66))
        # 3 levels x (2 intervals + 1 point)
        assert len(ax.lines) == 9
        assert [t.get_text() for t in ax.get_xticklabels()] == ["A", "B", "C"]

    def test_narrower_interval_is_thicker(self, condition_draws):
        ax = plot_pointinterval(condition_draws, "b", by="condition", prob=(0.95, 0.5))
        wide, narrow = ax.lines[0], ax.lines[1]
        assert narrow.get_linewidth() > wide.get_linewidth()
        wide_y, narrow_y = wide.get_ydata(), narrow.get_ydata()
        assert wide_y[0] < narrow_y[0] and wide_y[1] > narrow_y[1]

    def test_point_at_estimate(self, condition_draws):
        ax = plot_pointinterval(condition_draws, "b", by="condition", point_interval=median_qi, prob=(0.9,))
        point = ax.lines[1]
        expected = condition_draws.loc[condition_draws["condition"] == "A", "b"].median()
        assert point.get_ydata()[0] == pytest.approx(expected)

    def test_horizontal_orientation(self, condition_draws):
        ax = plot_pointinterval(condition_draws, "b", by="condition", orientation="horizontal")
        assert [t.get_text() for t in ax.get_yticklabels()] == ["A", "B", "C"]
        assert ax.get_xlabel() == "b"

    def test_ungrouped(self, condition_draws):
        ax = plot_pointinterval(condition_draws, "b", prob=(0.95,))
        assert len(ax.lines) == 2

    def test_unknown_column(self, condition_draws):
        with pytest.raises(VariableNotFound):
            plot_pointinterval(condition_draws, "b", by="group")


class TestEye:
    """Tests for eye and half-eye plots."""

    def test_eye_draws_violins(self, condition_draws):
        ax = plot_eye(condition_draws, "b", by="condition")
        assert len(ax.collections) == 3
        assert len(ax.lines) == 9

    def test_violin_width_bounded(self, condition_draws):
        ax = plot_eye(condition_draws, "b", by="condition", width=0.6)
        vertices = ax.collections[0].get_paths()[0].vertices
        assert vertices[:, 0].min() >= -0.3 - 1e-9
        assert vertices[:, 0].max() <= 0.3 + 1e-9

    def test_existing_axes(self, condition_draws):
        fig, ax = plt.subplots()
        assert plot_eye(condition_draws, "b", by="condition", ax=ax) is ax

    def test_halfeye_one_sided(self, condition_draws):
        ax = plot_halfeye(condition_draws, "b", by="condition")
        # Horizontal by default: density sits above each level position
        vertices = ax.collections[0].get_paths()[0].vertices
        assert vertices[:, 1].min() >= -1e-9

    def test_constant_sample_skips_density(self):
        df = pd.DataFrame({"g": ["a"] * 5 + ["b"] * 5, "x": [1.0] * 5 + list(range(5))})
        ax = plot_eye(df, "x", by="g")
        assert len(ax.collections) == 1


class TestStyle:
    """Tests for styling and export helpers."""

    def test_eye_style_restores_rcparams(self):
        before = plt.rcParams["font.size"]
        with eye_style():
            assert plt.rcParams["font.size"] == 9
            assert plt.rcParams["axes.prop_cycle"].by_key()["color"] == COLORBLIND_COLORS
        assert plt.rcParams["font.size"] == before

    def test_save_figure(self, tmp_path, condition_draws):
        ax = plot_eye(condition_draws, "b", by="condition")
        paths = save_figure(ax.figure, tmp_path / "figs", "eye_b", formats=("png", "svg"))
        assert [p.name for p in paths] == ["eye_b.png", "eye_b.svg"]
        assert all(p.exists() for p in paths)

    def test_missing_matplotlib(self, monkeypatch):
        def fail(name):
            raise ImportError(name)

        monkeypatch.setattr(style_module.importlib, "import_module", fail)
        with pytest.raises(MissingOptionalDependency, match="pip install matplotlib"):
            style_module.pyplot()
