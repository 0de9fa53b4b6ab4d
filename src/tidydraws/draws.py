"""Reshape wide sampler draws into long, tidy tables.

Samplers return one column per scalar element of every parameter, e.g.
``b[1,1]``, ``b[1,2]``, ... This module turns that into one row per draw
and index combination, with the indices as proper columns:

    >>> spread_draws(fit, "b[i,j]")
       .chain  .iteration  i  j         b
    0       1           1  1  1  0.213...

Key functions:
- tidy_draws: the validated draw table itself
- spread_draws: one column per requested variable
- gather_draws: variables stacked into ``.variable`` / ``.value``

Results are grouped by their index columns (recorded in
``DataFrame.attrs["groups"]``), so the summary functions in
tidydraws.point_interval summarize each index combination separately.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
import structlog

from tidydraws.adapters import extract_draws
from tidydraws.columns import CHAIN, ITERATION, VALUE, VARIABLE, is_special, with_groups
from tidydraws.constructors import Constructor, get_constructors
from tidydraws.errors import IndexParseError, VariableNotFound
from tidydraws.parsing import (
    VariableSpec,
    bind_indices,
    convert_index_values,
    parse_parameter_name,
    parse_variable_spec,
)

__all__ = [
    "gather_draws",
    "spread_draws",
    "tidy_draws",
]

logger = structlog.get_logger(__name__)


def tidy_draws(model: Any, use_coords: bool = False) -> pd.DataFrame:
    """Return the draw table of a model: one row per draw, one column per parameter.

    The table has ``.chain`` (null if the model has no chain identity) and
    ``.iteration`` columns followed by the raw parameter columns.
    """
    return extract_draws(model, use_coords=use_coords)


def _base_names(columns: list[str]) -> list[str]:
    bases = []
    for column in columns:
        base = column.split("[", 1)[0]
        if base not in bases:
            bases.append(base)
    return bases


def _matching_columns(draws: pd.DataFrame, spec: VariableSpec) -> list[str]:
    prefix = f"{spec.name}["
    return [
        c
        for c in draws.columns
        if not is_special(c) and (c == spec.name or str(c).startswith(prefix))
    ]


def _long_frame(draws: pd.DataFrame, spec: VariableSpec, key: list[str]) -> pd.DataFrame:
    """Pivot the columns of one variable into long format.

    Every (matched column, draw) pair contributes one row keyed by the
    draw key and the variable's index tokens.
    """
    matches = _matching_columns(draws, spec)
    if not matches:
        params = [c for c in draws.columns if not is_special(c)]
        raise VariableNotFound(spec.name, available=_base_names(params))

    if not spec.has_indices:
        if spec.name not in matches:
            n_tokens = len(parse_parameter_name(matches[0]).tokens)
            placeholders = ",".join(f"i{n}" for n in range(1, n_tokens + 1))
            raise IndexParseError(
                f"Variable is indexed (e.g. '{matches[0]}'); name its index "
                f"columns, e.g. '{spec.name}[{placeholders}]'",
                variable=spec.name,
            )
        return draws[key + [spec.name]].copy()

    bindings = [bind_indices(spec, parse_parameter_name(c), c) for c in matches]

    n_draws = len(draws)
    n_columns = len(matches)
    data: dict[str, Any] = {k: np.tile(draws[k].to_numpy(), n_columns) for k in key}
    for index_name in spec.index_names:
        tokens = convert_index_values([b[index_name] for b in bindings])
        data[index_name] = np.repeat(np.asarray(tokens, dtype=object), n_draws)
        if tokens and isinstance(tokens[0], int):
            data[index_name] = data[index_name].astype(np.int64)
    # Column-major ravel stacks the matched columns one after another
    data[spec.name] = draws[matches].to_numpy().ravel(order="F")

    long = pd.DataFrame(data)
    if CHAIN in key:
        long[CHAIN] = long[CHAIN].astype("Int64")
    return long


def _check_names(specs: list[VariableSpec]) -> None:
    seen_variables: set[str] = set()
    for spec in specs:
        if spec.name in seen_variables:
            raise IndexParseError("Variable requested more than once", variable=spec.name)
        seen_variables.add(spec.name)

    for spec in specs:
        for index_name in spec.index_names:
            if index_name in seen_variables:
                raise IndexParseError(
                    f"Index name '{index_name}' collides with a variable name",
                    variable=spec.name,
                )
            if index_name in (CHAIN, ITERATION):
                raise IndexParseError(
                    f"Index name '{index_name}' is reserved", variable=spec.name
                )


def _apply_constructors(df: pd.DataFrame, constructors: dict[str, Constructor]) -> pd.DataFrame:
    for column in df.columns:
        if column in constructors and not is_special(column):
            df[column] = constructors[column](df[column])
    return df


def _align_index_dtypes(
    left: pd.DataFrame, right: pd.DataFrame, columns: list[str]
) -> tuple[pd.DataFrame, pd.DataFrame]:
    # b[1], b[x] gives object labels while a[1], a[2] gives integers
    for column in columns:
        if left[column].dtype != right[column].dtype:
            left = left.assign(**{column: left[column].astype(str).astype(object)})
            right = right.assign(**{column: right[column].astype(str).astype(object)})
    return left, right


def _spread(
    draws: pd.DataFrame,
    specs: list[VariableSpec],
    constructors: dict[str, Constructor],
) -> pd.DataFrame:
    has_chain = bool(draws[CHAIN].notna().any())
    key = [CHAIN, ITERATION] if has_chain else [ITERATION]

    result: pd.DataFrame | None = None
    index_columns: list[str] = []
    for spec in specs:
        frame = _long_frame(draws, spec, key)
        if result is None:
            result = frame
        else:
            # Joining only on shared indices broadcasts along the others
            shared = [c for c in index_columns if c in spec.index_names]
            result, frame = _align_index_dtypes(result, frame, shared)
            result = result.merge(frame, on=key + shared, how="outer")
        index_columns += [c for c in spec.index_names if c not in index_columns]
        logger.debug(
            "spread_draws_matched",
            variable=spec.name,
            indices=list(spec.index_names),
            n_rows=len(frame),
        )

    if not has_chain:
        result.insert(0, CHAIN, pd.array([pd.NA] * len(result), dtype="Int64"))

    variables = [s.name for s in specs]
    result = result[[CHAIN, ITERATION] + index_columns + variables]
    result = result.sort_values(index_columns + [CHAIN, ITERATION], kind="stable")
    result = result.reset_index(drop=True)

    # Applied only after every join so the result cannot depend on spec order
    result = _apply_constructors(result, constructors)
    return with_groups(result, index_columns)


def spread_draws(model: Any, *specs: str | VariableSpec, use_coords: bool = False) -> pd.DataFrame:
    """Extract draws for the requested variables into a long table.

    Each spec is a base name, optionally followed by bracketed names for
    its index columns: ``"b[term,group,condition]"`` splits every
    ``b[...]`` column's indices into ``term``, ``group`` and ``condition``
    columns. A blank name (``"b[,i]"``) drops that index.

    Variables that share an index name are joined on it; along indices
    they do not share, each variable's values are repeated.

    Parameters
    ----------
    model : Any
        Supported model, draw table, or TypedModel from recover_types().
    *specs : str | VariableSpec
        Variable specs.
    use_coords : bool, default False
        Label xarray-backed indices by coordinate value.

    Returns
    -------
    pd.DataFrame
        Columns ``.chain``, ``.iteration``, each index, each variable;
        grouped by the index columns.

    Raises
    ------
    VariableNotFound
        If a base name has no matching columns.
    IndexParseError
        If a column's index count differs from the spec's placeholder count.

    Examples
    --------
    >>> df = spread_draws(fit, "b[term,group,condition]", "sigma")
    >>> df.attrs["groups"]
    ['term', 'group', 'condition']
    """
    if not specs:
        raise ValueError("spread_draws requires at least one variable spec")
    parsed = [parse_variable_spec(s) for s in specs]
    _check_names(parsed)

    draws = extract_draws(model, use_coords=use_coords)
    result = _spread(draws, parsed, dict(get_constructors(model)))
    logger.debug("spread_draws_done", variables=[p.name for p in parsed], n_rows=len(result))
    return result


def gather_draws(model: Any, *specs: str | VariableSpec, use_coords: bool = False) -> pd.DataFrame:
    """Extract draws for the requested variables in a stacked, long format.

    Like spread_draws(), but rather than one column per variable the
    values go into a ``.value`` column and the variable name into
    ``.variable``. Variables are not joined with each other; index columns
    a variable does not have are null in its rows.

    Returns
    -------
    pd.DataFrame
        Columns ``.chain``, ``.iteration``, index columns, ``.variable``,
        ``.value``; grouped by index columns and ``.variable``.
    """
    if not specs:
        raise ValueError("gather_draws requires at least one variable spec")
    parsed = [parse_variable_spec(s) for s in specs]
    _check_names(parsed)

    draws = extract_draws(model, use_coords=use_coords)
    constructors = dict(get_constructors(model))

    pieces = []
    index_columns: list[str] = []
    for spec in parsed:
        piece = _spread(draws, [spec], constructors)
        piece = piece.rename(columns={spec.name: VALUE})
        piece.insert(piece.columns.get_loc(VALUE), VARIABLE, spec.name)
        index_columns += [c for c in spec.index_names if c not in index_columns]
        pieces.append(piece)

    result = pd.concat(pieces, ignore_index=True)
    result = result[[CHAIN, ITERATION] + index_columns + [VARIABLE, VALUE]]
    return with_groups(result, index_columns + [VARIABLE])
