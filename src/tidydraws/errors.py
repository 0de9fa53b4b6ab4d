"""Exception hierarchy for tidying and summarizing posterior draws.

Every error raised by this package derives from TidyDrawsError, so callers
can catch the whole family in one place. Errors carry the name of the
variable (or column) involved, when one is known, and include it as a
prefix in the formatted message.
"""

from __future__ import annotations


class TidyDrawsError(Exception):
    """Base exception for tidydraws failures.

    Attributes:
        message: Human-readable error description.
        variable: Name of the variable or column involved (optional).

    Example:
        >>> raise TidyDrawsError("Something went wrong", variable="b")
        TidyDrawsError: [b] Something went wrong
    """

    def __init__(self, message: str, variable: str = "") -> None:
        """Initialize error.

        Args:
            message: Error description.
            variable: Variable or column name (optional).
        """
        self.message = message
        self.variable = variable
        super().__init__(str(self))

    def __str__(self) -> str:
        """Format error with variable prefix if available."""
        if self.variable:
            return f"[{self.variable}] {self.message}"
        return self.message


class VariableNotFound(TidyDrawsError, KeyError):
    """No column of the draw table matches a requested base name.

    Inherits from KeyError so lookups can be handled like a missing
    dictionary key.
    """

    def __init__(self, variable: str, available: list[str] | None = None) -> None:
        message = f"Variable '{variable}' not found in draws"
        if available:
            shown = ", ".join(available[:10])
            more = "" if len(available) <= 10 else f", ... ({len(available)} total)"
            message += f" (available: {shown}{more})"
        super().__init__(message, variable=variable)

    # KeyError.__str__ wraps the message in quotes
    __str__ = TidyDrawsError.__str__


class IndexParseError(TidyDrawsError, ValueError):
    """A parameter name or variable spec could not be parsed.

    Raised for malformed brackets and for a mismatch between the number of
    index tokens in a column name and the number of index placeholders in
    the variable spec.
    """


class UnsupportedModelType(TidyDrawsError, TypeError):
    """No adapter knows how to extract draws from the given object."""

    def __init__(self, model: object, operation: str = "tidy_draws") -> None:
        type_name = f"{type(model).__module__}.{type(model).__qualname__}"
        super().__init__(
            f"Models of type {type_name} are not currently supported by `{operation}`"
        )
        self.model_type = type(model)


class InvalidProbability(TidyDrawsError, ValueError):
    """A probability level lies outside the open interval (0, 1)."""

    def __init__(self, prob: object) -> None:
        super().__init__(f"Probability level must be in (0, 1), got {prob!r}")
        self.prob = prob


class InsufficientData(TidyDrawsError, ValueError):
    """A group has too few samples to compute the requested summary."""


class MissingOptionalDependency(TidyDrawsError, ImportError):
    """An optional library needed for a feature is not installed.

    Attributes:
        library: Distribution name to install.
        purpose: What the library is needed for.
    """

    def __init__(self, library: str, purpose: str) -> None:
        super().__init__(
            f"The `{library}` package is needed for {purpose}. "
            f"Install it with `pip install {library}`."
        )
        self.library = library
        self.purpose = purpose


class InvalidDrawTable(TidyDrawsError, ValueError):
    """A draw table failed validation of its ``.chain``/``.iteration`` columns.

    Attributes:
        failure_cases: pandera failure cases (column, check, failing value),
            or None when validation failed fast.
    """

    def __init__(self, message: str, failure_cases: object = None) -> None:
        super().__init__(message)
        self.failure_cases = failure_cases
