"""Unit tests for the exception hierarchy."""

import pytest

from tidydraws.errors import (
    IndexParseError,
    InvalidDrawTable,
    InsufficientData,
    InvalidProbability,
    MissingOptionalDependency,
    TidyDrawsError,
    UnsupportedModelType,
    VariableNotFound,
)


class TestTidyDrawsError:
    """Tests for message formatting."""

    def test_message_without_variable(self):
        assert str(TidyDrawsError("Something went wrong")) == "Something went wrong"

    def test_message_with_variable_prefix(self):
        err = TidyDrawsError("Something went wrong", variable="b")
        assert str(err) == "[b] Something went wrong"
        assert err.message == "Something went wrong"
        assert err.variable == "b"

    @pytest.mark.parametrize(
        "error",
        [
            VariableNotFound("b"),
            IndexParseError("bad"),
            UnsupportedModelType(object()),
            InvalidProbability(2.0),
            InsufficientData("empty"),
            MissingOptionalDependency("matplotlib", "plots"),
        ],
    )
    def test_all_errors_share_base(self, error):
        assert isinstance(error, TidyDrawsError)


class TestSubclasses:
    """Tests for the standard-library bases and extra attributes."""

    def test_variable_not_found_is_key_error_without_quotes(self):
        err = VariableNotFound("theta", available=["b", "sigma"])
        assert isinstance(err, KeyError)
        assert str(err) == "[theta] Variable 'theta' not found in draws (available: b, sigma)"

    def test_variable_not_found_truncates_long_lists(self):
        err = VariableNotFound("x", available=[f"v{i}" for i in range(15)])
        assert "(15 total)" in str(err)
        assert "v10" not in str(err)

    def test_unsupported_model_records_type(self):
        err = UnsupportedModelType(3.5, operation="spread_draws")
        assert isinstance(err, TypeError)
        assert err.model_type is float
        assert "builtins.float" in str(err)
        assert "`spread_draws`" in str(err)

    def test_invalid_probability(self):
        err = InvalidProbability(1.5)
        assert isinstance(err, ValueError)
        assert err.prob == 1.5
        assert "1.5" in str(err)

    def test_missing_dependency_is_import_error(self):
        err = MissingOptionalDependency("matplotlib", "drawing eye plots")
        assert isinstance(err, ImportError)
        assert "pip install matplotlib" in str(err)
        assert err.library == "matplotlib"

    def test_invalid_draw_table(self):
        err = InvalidDrawTable("Draw table failed validation", failure_cases=[".iteration"])
        assert isinstance(err, TidyDrawsError)
        assert isinstance(err, ValueError)
        assert err.failure_cases == [".iteration"]
