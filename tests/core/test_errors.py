"""Tests for jobrunner.core.errors — typed error hierarchy."""

import pytest

from jobrunner.core.errors import (
    ActivationError,
    AmbiguousTypeError,
    BindingError,
    ConfigurationError,
    ConstructionError,
    DependencyError,
    ErrorCategory,
    ErrorContext,
    JobRunnerError,
    NoCompatibleEntryPointError,
    NullInstanceError,
    ParameterCastError,
    TypeNotFoundError,
    TypeResolutionError,
)


class SampleJob:
    pass


class TestJobRunnerError:
    def test_defaults(self):
        error = JobRunnerError("Something went wrong")
        assert error.category == ErrorCategory.INTERNAL
        assert error.cause is None
        assert error.context.to_dict() == {}

    def test_cause_chaining(self):
        cause = OSError("disk full")
        error = JobRunnerError("Run failed", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "OSError: disk full"

    def test_with_context(self):
        error = JobRunnerError("Run failed").with_context(job_type="acme.Report", attempt=2)

        assert error.context.job_type == "acme.Report"
        assert error.context.metadata == {"attempt": 2}

    def test_to_dict(self):
        error = BindingError("no entry point").with_context(run_id="r1", entry_point="run")
        assert error.to_dict() == {
            "error_type": "BindingError",
            "message": "no entry point",
            "category": "BINDING",
            "run_id": "r1",
            "entry_point": "run",
        }

    def test_repr(self):
        assert repr(ConfigurationError("bad")) == "ConfigurationError('bad', category=CONFIG)"


class TestTaxonomy:
    @pytest.mark.parametrize(
        "error, parent, category",
        [
            (TypeNotFoundError("x"), TypeResolutionError, ErrorCategory.RESOLUTION),
            (AmbiguousTypeError("x", ["a.x", "b.x"]), TypeResolutionError, ErrorCategory.RESOLUTION),
            (ConstructionError(SampleJob, cause=RuntimeError("boom")), ActivationError, ErrorCategory.ACTIVATION),
            (NullInstanceError(SampleJob), ActivationError, ErrorCategory.ACTIVATION),
            (NoCompatibleEntryPointError(SampleJob, "no run"), BindingError, ErrorCategory.BINDING),
            (DependencyError("missing"), JobRunnerError, ErrorCategory.INJECTION),
            (ConfigurationError("bad"), JobRunnerError, ErrorCategory.CONFIG),
        ],
    )
    def test_parents_and_categories(self, error, parent, category):
        assert isinstance(error, parent)
        assert error.category == category

    def test_resolution_errors_are_activation_errors(self):
        assert issubclass(TypeResolutionError, ActivationError)

    def test_parameter_cast_error_is_not_a_binding_error(self):
        error = ParameterCastError("job_param", int, "abc", cause=ValueError("invalid"))

        assert not isinstance(error, BindingError)
        assert not isinstance(error, ActivationError)
        assert error.category == ErrorCategory.VALIDATION
        assert error.to_dict()["target_type"] == "builtins.int"
        assert error.to_dict()["value"] == "'abc'"

    def test_ambiguous_lists_candidates(self):
        error = AmbiguousTypeError("Report", ["a.Report", "b.Report"])
        assert "a.Report, b.Report" in error.message
        assert error.to_dict()["candidates"] == ["a.Report", "b.Report"]
        assert error.context.job_type == "Report"

    def test_not_found_message(self):
        assert TypeNotFoundError("acme.Missing").message == "Unable to resolve the job type 'acme.Missing'"


class TestErrorContext:
    def test_drops_unset_fields(self):
        context = ErrorContext(job_type="acme.Report", metadata={"attempt": 1})
        assert context.to_dict() == {"job_type": "acme.Report", "attempt": 1}
