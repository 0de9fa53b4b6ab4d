"""Adapters that extract a draw table from sampler output.

Each adapter answers two questions about an object: can I handle it, and
what are its draws as a table? The draw table has one row per draw, a
``.chain`` column (null when the source has no chain identity), a
``.iteration`` column (1-based within chain) and one column per scalar
parameter, with multi-dimensional parameters flattened into
``name[i,j]`` columns.

Supported out of the box:
- pandas DataFrames already in draw-table shape
- ArviZ InferenceData and xarray Datasets (posterior group)
- objects exposing ``draws_pd()`` (cmdstanpy fits)
- objects exposing ``get_samples(group_by_chain=True)`` (NumPyro MCMC)
- mappings of arrays shaped ``(chain, draw, ...)``

Anything else raises UnsupportedModelType. Additional backends can be
added with AdapterRegistry.register().
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable

import arviz as az
import numpy as np
import pandas as pd
import structlog
import xarray as xr

from tidydraws.columns import CHAIN, ITERATION
from tidydraws.constructors import unwrap_model
from tidydraws.errors import UnsupportedModelType
from tidydraws.validation import validate_draws

__all__ = [
    "AdapterRegistry",
    "DrawsAdapter",
    "arrays_to_draws",
    "build_default_registry",
    "extract_draws",
]

logger = structlog.get_logger(__name__)

# cmdstanpy bookkeeping columns
_CMDSTAN_CHAIN = "chain__"
_CMDSTAN_ITER = "iter__"
_CMDSTAN_DRAW = "draw__"


@dataclass(frozen=True)
class DrawsAdapter:
    """A named capability check plus an extraction function.

    Attributes:
        name: Identifier used in logs and for registry lookups.
        can_handle: Predicate deciding whether this adapter applies.
        extract: Function returning the (unvalidated) draw table. Receives
            the model and the ``use_coords`` flag.
    """

    name: str
    can_handle: Callable[[Any], bool]
    extract: Callable[[Any, bool], pd.DataFrame]


class AdapterRegistry:
    """Ordered collection of adapters; the first match wins."""

    def __init__(self) -> None:
        self._adapters: list[DrawsAdapter] = []

    def register(self, adapter: DrawsAdapter, first: bool = False) -> None:
        if any(a.name == adapter.name for a in self._adapters):
            raise ValueError(f"Draws adapter already registered: {adapter.name}")
        if first:
            self._adapters.insert(0, adapter)
        else:
            self._adapters.append(adapter)

    def find(self, model: Any) -> DrawsAdapter:
        for adapter in self._adapters:
            if adapter.can_handle(model):
                return adapter
        raise UnsupportedModelType(model)

    @property
    def names(self) -> list[str]:
        return [a.name for a in self._adapters]


def _index_label(labels: Sequence[Sequence[Any]], position: tuple[int, ...]) -> str:
    return ",".join(str(labels[dim][i]) for dim, i in enumerate(position))


def arrays_to_draws(
    arrays: Mapping[str, Any],
    labels: Mapping[str, Sequence[Sequence[Any]]] | None = None,
) -> pd.DataFrame:
    """Flatten arrays shaped ``(chain, draw, *shape)`` into a draw table.

    Parameters
    ----------
    arrays : Mapping[str, array-like]
        Parameter name to samples. The first two axes are chain and draw.
    labels : Mapping[str, list of label sequences], optional
        Per-parameter labels for each trailing axis. Defaults to 1-based
        positions, matching the indexing convention of Stan.

    Returns
    -------
    pd.DataFrame
        Draw table with ``.chain``, ``.iteration`` and one column per
        scalar element, e.g. ``b[1,2]``.

    Examples
    --------
    >>> arrays_to_draws({"b": np.zeros((2, 10, 3))}).columns.tolist()
    ['.chain', '.iteration', 'b[1]', 'b[2]', 'b[3]']
    """
    labels = labels or {}
    columns: dict[str, np.ndarray] = {}
    n_chains = n_draws = None

    for name, raw in arrays.items():
        values = np.asarray(raw)
        if values.ndim < 2:
            raise ValueError(
                f"Samples for '{name}' must have (chain, draw) leading axes, got shape {values.shape}"
            )
        if n_chains is None:
            n_chains, n_draws = values.shape[:2]
        elif values.shape[:2] != (n_chains, n_draws):
            raise ValueError(
                f"Samples for '{name}' have shape {values.shape[:2]}, expected ({n_chains}, {n_draws})"
            )

        trailing = values.shape[2:]
        if not trailing:
            columns[name] = values.reshape(-1)
            continue

        # C-order reshape matches itertools.product over the trailing axes
        flat = values.reshape(n_chains * n_draws, -1)
        axis_labels = labels.get(name) or [range(1, size + 1) for size in trailing]
        positions = itertools.product(*(range(size) for size in trailing))
        for k, position in enumerate(positions):
            columns[f"{name}[{_index_label(axis_labels, position)}]"] = flat[:, k]

    if n_chains is None:
        return pd.DataFrame({CHAIN: pd.array([], dtype="Int64"), ITERATION: []})

    bookkeeping = pd.DataFrame(
        {
            CHAIN: np.repeat(np.arange(1, n_chains + 1), n_draws),
            ITERATION: np.tile(np.arange(1, n_draws + 1), n_chains),
        }
    )
    return pd.concat([bookkeeping, pd.DataFrame(columns)], axis=1)


def _from_dataframe(df: pd.DataFrame, use_coords: bool = False) -> pd.DataFrame:
    draws = df.copy()
    if CHAIN not in draws.columns:
        draws.insert(0, CHAIN, pd.array([pd.NA] * len(draws), dtype="Int64"))
    if ITERATION not in draws.columns:
        if draws[CHAIN].notna().all():
            iteration = draws.groupby(CHAIN, sort=False).cumcount() + 1
        else:
            iteration = np.arange(1, len(draws) + 1)
        draws.insert(1, ITERATION, iteration)
    return draws


def _from_dataset(posterior: xr.Dataset, use_coords: bool) -> pd.DataFrame:
    arrays: dict[str, np.ndarray] = {}
    labels: dict[str, list[Sequence[Any]]] = {}
    for name, da in posterior.data_vars.items():
        extra_dims = [d for d in da.dims if d not in ("chain", "draw")]
        da = da.transpose("chain", "draw", *extra_dims)
        arrays[str(name)] = da.values
        if use_coords and extra_dims:
            labels[str(name)] = [
                da.coords[d].values.tolist() if d in da.coords else range(1, da.sizes[d] + 1)
                for d in extra_dims
            ]
    return arrays_to_draws(arrays, labels)


def _from_inference_data(idata: az.InferenceData, use_coords: bool) -> pd.DataFrame:
    if "posterior" not in idata.groups():
        raise ValueError("InferenceData must have 'posterior' group")
    return _from_dataset(idata.posterior, use_coords)


def _from_cmdstan(fit: Any, use_coords: bool = False) -> pd.DataFrame:
    draws = fit.draws_pd()
    draws = draws.drop(columns=[_CMDSTAN_DRAW], errors="ignore")
    draws = draws.rename(columns={_CMDSTAN_CHAIN: CHAIN, _CMDSTAN_ITER: ITERATION})
    return _from_dataframe(draws)


def _from_numpyro(mcmc: Any, use_coords: bool = False) -> pd.DataFrame:
    samples = mcmc.get_samples(group_by_chain=True)
    return arrays_to_draws({name: np.asarray(v) for name, v in samples.items()})


def _from_arrays(arrays: Mapping[str, Any], use_coords: bool = False) -> pd.DataFrame:
    return arrays_to_draws(arrays)


def _has_method(name: str) -> Callable[[Any], bool]:
    return lambda model: callable(getattr(model, name, None))


def build_default_registry() -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.register(DrawsAdapter("dataframe", lambda m: isinstance(m, pd.DataFrame), _from_dataframe))
    registry.register(
        DrawsAdapter("inference_data", lambda m: isinstance(m, az.InferenceData), _from_inference_data)
    )
    registry.register(DrawsAdapter("xarray", lambda m: isinstance(m, xr.Dataset), _from_dataset))
    registry.register(DrawsAdapter("cmdstan", _has_method("draws_pd"), _from_cmdstan))
    registry.register(DrawsAdapter("numpyro", _has_method("get_samples"), _from_numpyro))
    registry.register(
        DrawsAdapter(
            "arrays",
            lambda m: isinstance(m, Mapping) and all(np.ndim(v) >= 2 for v in m.values()),
            _from_arrays,
        )
    )
    return registry


DEFAULT_REGISTRY = build_default_registry()


def extract_draws(
    model: Any,
    use_coords: bool = False,
    registry: AdapterRegistry | None = None,
) -> pd.DataFrame:
    """Extract and validate the draw table of a supported model.

    Args:
        model: Sampler output, fit object or TypedModel wrapping one.
        use_coords: For xarray-backed models, label indices with coordinate
            values instead of 1-based positions.
        registry: Adapter registry to consult (default: built-in adapters).

    Returns:
        Validated draw table. A new frame; the model is not modified.

    Raises:
        UnsupportedModelType: If no adapter handles the model.
    """
    model = unwrap_model(model)
    adapter = (registry or DEFAULT_REGISTRY).find(model)
    draws = validate_draws(adapter.extract(model, use_coords))
    logger.debug(
        "draws_extracted",
        adapter=adapter.name,
        n_draws=len(draws),
        n_columns=draws.shape[1] - 2,
    )
    return draws
