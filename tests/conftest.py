"""Pytest configuration and shared fixtures.

The sys.path manipulation below enables running tests directly from a
checkout without requiring `pip install -e .`.
"""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import arviz as az
import numpy as np
import pandas as pd
import pytest
import xarray as xr


def make_draws_frame(
    n_chains: int = 2,
    n_draws: int = 50,
    shape: tuple[int, ...] = (3,),
    name: str = "b",
    seed: int = 42,
) -> pd.DataFrame:
    """Build a wide draw table with ``name[i,...]`` columns.

    Each column's values encode its indices (``100 * i + j``) plus small
    noise, so tests can check that values land on the right index rows.
    """
    rng = np.random.default_rng(seed)
    n_total = n_chains * n_draws
    frame = {
        ".chain": np.repeat(np.arange(1, n_chains + 1), n_draws),
        ".iteration": np.tile(np.arange(1, n_draws + 1), n_chains),
    }
    for position in np.ndindex(*shape):
        index = [p + 1 for p in position]
        base = sum(i * 10 ** (2 * (len(index) - k - 1)) for k, i in enumerate(index))
        label = ",".join(str(i) for i in index)
        frame[f"{name}[{label}]"] = base + rng.normal(0, 0.01, n_total)
    return pd.DataFrame(frame)


def make_mock_idata(
    n_chains: int = 2,
    n_draws: int = 100,
    n_groups: int = 3,
    seed: int = 42,
) -> az.InferenceData:
    """Create mock InferenceData with a scalar and a vector parameter.

    Parameters
    ----------
    n_chains : int
        Number of chains.
    n_draws : int
        Draws per chain.
    n_groups : int
        Length of the vector parameter ``b``.
    seed : int
        Random seed.

    Returns
    -------
    az.InferenceData
        Posterior with ``mu`` (chain, draw) and ``b`` (chain, draw, group),
        where ``b[g]`` is centered on ``g``.
    """
    rng = np.random.default_rng(seed)
    mu = rng.normal(0, 1, (n_chains, n_draws))
    b = rng.normal(0, 0.1, (n_chains, n_draws, n_groups)) + np.arange(n_groups)
    posterior = xr.Dataset(
        {
            "mu": (["chain", "draw"], mu),
            "b": (["chain", "draw", "group"], b),
        },
        coords={
            "chain": np.arange(n_chains),
            "draw": np.arange(n_draws),
            "group": [f"g{i}" for i in range(n_groups)],
        },
    )
    return az.InferenceData(posterior=posterior)


@pytest.fixture
def draws_frame() -> pd.DataFrame:
    """Two chains of 50 draws of b[1]..b[3]."""
    return make_draws_frame()


@pytest.fixture
def matrix_draws() -> pd.DataFrame:
    """Two chains of 50 draws of b[i,j] for a 2x3 matrix."""
    return make_draws_frame(shape=(2, 3))


@pytest.fixture
def mock_idata() -> az.InferenceData:
    """InferenceData with mu and b[group] posteriors."""
    return make_mock_idata()


@pytest.fixture
def draws_factory():
    """Factory for wide draw tables; see make_draws_frame()."""
    return make_draws_frame


@pytest.fixture
def idata_factory():
    """Factory for mock InferenceData; see make_mock_idata()."""
    return make_mock_idata
