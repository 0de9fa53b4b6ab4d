"""Schema validation for draw tables."""

import pandas as pd
import pandera.pandas as pa

from tidydraws.columns import CHAIN, ITERATION
from tidydraws.errors import InvalidDrawTable

# Parameter columns vary by model, so only the bookkeeping columns are checked
DrawTableSchema = pa.DataFrameSchema(
    {
        CHAIN: pa.Column("Int64", pa.Check.ge(1), nullable=True),
        ITERATION: pa.Column("int64", pa.Check.ge(1), nullable=False),
    },
    strict=False,
    coerce=True,
    unique=[CHAIN, ITERATION],
)


def _describe_failures(failure_cases: pd.DataFrame) -> str:
    checks = failure_cases[["column", "check"]].astype(str).drop_duplicates()
    return "; ".join(f"{row.column}: {row.check}" for row in checks.itertuples(index=False))


def validate_draws(df: pd.DataFrame, lazy: bool = True) -> pd.DataFrame:
    """
    Validate a draw table against DrawTableSchema.

    Args:
        df: Draw table with ``.chain`` and ``.iteration`` columns
        lazy: If True, collect all errors before raising. If False, fail fast.

    Returns:
        Validated DataFrame (with bookkeeping types coerced)

    Raises:
        InvalidDrawTable: If validation fails. In lazy mode the pandera
            failure cases are attached as ``failure_cases``.
    """
    try:
        return DrawTableSchema.validate(df, lazy=lazy)
    except pa.errors.SchemaErrors as e:
        raise InvalidDrawTable(
            f"Draw table failed validation ({_describe_failures(e.failure_cases)})",
            failure_cases=e.failure_cases,
        ) from e
    except pa.errors.SchemaError as e:
        raise InvalidDrawTable(f"Draw table failed validation ({e})") from e
