"""Recover categorical and boolean types for sampler output.

Samplers only know numbers, so a factor index in the original data comes
back as ``1, 2, 3`` and a boolean as ``0, 1``. recover_types() derives a
converter for each named prototype in the original data and keeps them in
a TypedModel wrapper next to the model. The reshapers consult that
registry and translate columns back into the original types.

Usage:
    >>> data = pd.DataFrame({"condition": pd.Categorical(["A", "B", "C"])})
    >>> typed = recover_types(fit, data)
    >>> spread_draws(typed, "b[condition]")["condition"].unique()
    ['A', 'B', 'C']

New prototype types can be supported by registering an implementation
of the single-dispatch function as_constructor.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import singledispatch
from typing import Any

import numpy as np
import pandas as pd
import structlog

__all__ = [
    "Constructor",
    "TypedModel",
    "as_constructor",
    "get_constructors",
    "recover_types",
    "unwrap_model",
]

logger = structlog.get_logger(__name__)

Constructor = Callable[[pd.Series], Any]


@dataclass(frozen=True)
class TypedModel:
    """A model paired with its registry of type constructors.

    Attributes:
        model: The wrapped sampler output or fit object; never modified.
        constructors: Mapping from column name to converter function.
    """

    model: Any
    constructors: Mapping[str, Constructor] = field(default_factory=dict)

    def __repr__(self) -> str:
        names = ", ".join(self.constructors)
        return f"TypedModel({type(self.model).__name__}, constructors=[{names}])"


def _identity(values: pd.Series) -> pd.Series:
    return values


def _factor_constructor(levels: list[Any], ordered: bool) -> Constructor:
    def construct(values: pd.Series) -> pd.Categorical:
        values = pd.Series(values)
        if pd.api.types.is_numeric_dtype(values) and not pd.api.types.is_bool_dtype(values):
            # 1-based positions into the prototype's levels; anything else is missing
            positions = values.to_numpy(dtype=float, na_value=np.nan)
            in_range = np.isfinite(positions) & (positions >= 1) & (positions <= len(levels))
            in_range &= positions == np.round(positions)
            codes = np.where(in_range, np.nan_to_num(positions) - 1, -1).astype(int)
            return pd.Categorical.from_codes(codes, categories=levels, ordered=ordered)
        return pd.Categorical(values, categories=levels, ordered=ordered)

    return construct


def _bool_constructor(values: pd.Series) -> pd.Series:
    return pd.Series(values).astype(bool)


@singledispatch
def as_constructor(prototype: Any) -> Constructor:
    """Build a converter from an example value.

    The default is an identity passthrough.
    """
    return _identity


@as_constructor.register
def _(prototype: pd.Categorical) -> Constructor:
    return _factor_constructor(list(prototype.categories), bool(prototype.ordered))


@as_constructor.register
def _(prototype: pd.Series) -> Constructor:
    if isinstance(prototype.dtype, pd.CategoricalDtype):
        return as_constructor(prototype.array)
    if pd.api.types.is_bool_dtype(prototype):
        return _bool_constructor
    if pd.api.types.is_object_dtype(prototype) or pd.api.types.is_string_dtype(prototype):
        return as_constructor(pd.Categorical(prototype.dropna()))
    return _identity


@as_constructor.register(list)
@as_constructor.register(tuple)
@as_constructor.register(np.ndarray)
def _(prototype) -> Constructor:
    return as_constructor(pd.Series(prototype))


@as_constructor.register(bool)
@as_constructor.register(np.bool_)
def _(prototype) -> Constructor:
    return _bool_constructor


@as_constructor.register
def _(prototype: str) -> Constructor:
    return as_constructor(pd.Categorical([prototype]))


def _iter_prototypes(prototypes: Any):
    if isinstance(prototypes, pd.DataFrame):
        for name in prototypes.columns:
            yield str(name), prototypes[name]
    elif isinstance(prototypes, Mapping):
        yield from ((str(k), v) for k, v in prototypes.items())
    else:
        raise TypeError(
            f"Prototypes must be a DataFrame or mapping, got {type(prototypes).__name__}"
        )


def recover_types(model: Any, *prototypes: Mapping[str, Any] | pd.DataFrame) -> TypedModel:
    """Attach type constructors derived from prototype data to a model.

    Each argument in ``prototypes`` is a DataFrame or mapping. Every entry
    is used as a prototype for the variable or index column with the same
    name: a categorical restores its levels (and ordering) from 1-based
    positions, a boolean restores booleans, anything else is passed
    through unchanged. The simplest use is to pass the data frame the
    model was fitted on.

    Args:
        model: A supported model or draw table, or an existing TypedModel.
        *prototypes: DataFrames or mappings of example values.

    Returns:
        A new TypedModel. Entries from later prototypes (and later calls)
        overwrite same-named entries from earlier ones; other entries are kept.
    """
    if isinstance(model, TypedModel):
        constructors = dict(model.constructors)
        model = model.model
    else:
        constructors = {}

    for proto in prototypes:
        for name, value in _iter_prototypes(proto):
            constructors[name] = as_constructor(value)

    logger.debug("recover_types", constructors=sorted(constructors))
    return TypedModel(model=model, constructors=constructors)


def get_constructors(model: Any) -> Mapping[str, Constructor]:
    """Return the constructor registry of a model (empty if it has none)."""
    if isinstance(model, TypedModel):
        return model.constructors
    return {}


def unwrap_model(model: Any) -> Any:
    """Return the underlying model of a TypedModel, or the model itself."""
    if isinstance(model, TypedModel):
        return model.model
    return model
