"""Add draws from a model's posterior fit or posterior prediction to a data frame.

add_fitted_draws() adds draws of the linear predictor (the "link" level)
for each row of ``newdata``; add_predicted_draws() adds draws from the
posterior predictive distribution. Both return a long table with one row
per input row and draw.

fitted_draws() and predicted_draws() are the same functions with the
model first, for pipelines that start from the model.

Supported models expose rstanarm-style methods:
- ``posterior_linpred(newdata, **kwargs)`` for fitted draws
- ``posterior_predict(newdata, **kwargs)`` for predicted draws
each returning an array shaped ``(n_draws, len(newdata))``.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
import structlog

from tidydraws.columns import CHAIN, ITERATION, PRED, ROW, VALUE, with_groups
from tidydraws.constructors import unwrap_model
from tidydraws.errors import UnsupportedModelType

__all__ = [
    "add_fitted_draws",
    "add_predicted_draws",
    "fitted_draws",
    "predicted_draws",
]

logger = structlog.get_logger(__name__)


def _draws_for_rows(
    model: Any,
    newdata: pd.DataFrame,
    method: str,
    value_column: str,
    operation: str,
    **kwargs: Any,
) -> pd.DataFrame:
    fit = unwrap_model(model)
    extract = getattr(fit, method, None)
    if not callable(extract):
        raise UnsupportedModelType(fit, operation=operation)

    samples = np.asarray(extract(newdata, **kwargs))
    if samples.ndim != 2 or samples.shape[1] != len(newdata):
        raise ValueError(
            f"{method}() returned shape {samples.shape}, expected (n_draws, {len(newdata)})"
        )
    n_draws, n_rows = samples.shape

    positions = np.repeat(np.arange(n_rows), n_draws)
    result = newdata.reset_index(drop=True).iloc[positions].reset_index(drop=True)
    result[ROW] = pd.Categorical(positions + 1, categories=range(1, n_rows + 1))
    result[CHAIN] = pd.array([pd.NA] * len(result), dtype="Int64")
    result[ITERATION] = np.tile(np.arange(1, n_draws + 1), n_rows)
    # Transpose so each row's draws are contiguous
    result[value_column] = samples.T.ravel()

    logger.debug(operation, n_rows=n_rows, n_draws=n_draws)
    return with_groups(result, [ROW] + list(newdata.columns))


def fitted_draws(model: Any, newdata: pd.DataFrame, **kwargs: Any) -> pd.DataFrame:
    """Draws from the posterior linear predictor for each row of ``newdata``.

    Returns ``newdata``'s columns plus ``.row``, ``.chain`` (null),
    ``.iteration`` and ``.value``, grouped by ``.row`` and the newdata
    columns. Extra keyword arguments go to the model's
    ``posterior_linpred``.

    Raises:
        UnsupportedModelType: If the model has no ``posterior_linpred``.
    """
    return _draws_for_rows(model, newdata, "posterior_linpred", VALUE, "fitted_draws", **kwargs)


def predicted_draws(model: Any, newdata: pd.DataFrame, **kwargs: Any) -> pd.DataFrame:
    """Draws from the posterior predictive distribution for each row of ``newdata``.

    Like fitted_draws() but the draws go in a ``.pred`` column and come
    from the model's ``posterior_predict``.

    Raises:
        UnsupportedModelType: If the model has no ``posterior_predict``.
    """
    return _draws_for_rows(model, newdata, "posterior_predict", PRED, "predicted_draws", **kwargs)


def add_fitted_draws(newdata: pd.DataFrame, model: Any, **kwargs: Any) -> pd.DataFrame:
    """Data-first spelling of fitted_draws()."""
    return fitted_draws(model, newdata, **kwargs)


def add_predicted_draws(newdata: pd.DataFrame, model: Any, **kwargs: Any) -> pd.DataFrame:
    """Data-first spelling of predicted_draws()."""
    return predicted_draws(model, newdata, **kwargs)
