"""Tests for the typed exception hierarchy.

Validates:
- Class hierarchy is correct (isinstance checks)
- Context and field errors are carried on the exception
- Exceptions are exported from the core package
"""

from __future__ import annotations

import pytest

# ---------------------------------------------------------------------------
# Hierarchy tests (no I/O, no async)
# ---------------------------------------------------------------------------


class TestExceptionHierarchy:
    """Verify the class hierarchy defined in core/exceptions.py."""

    def test_code_review_error_is_base_exception(self):
        from code_review_engine.core.exceptions import CodeReviewError

        err = CodeReviewError("base")
        assert isinstance(err, Exception)
        assert err.context == {}

    @pytest.mark.parametrize(
        "name",
        [
            "ConfigInvalidError",
            "ConfigValidationError",
            "NotConfiguredError",
            "UnknownProviderError",
        ],
    )
    def test_config_errors_inherit_from_config_error(self, name):
        from code_review_engine.core import exceptions

        cls = getattr(exceptions, name)
        assert issubclass(cls, exceptions.ConfigError)
        assert issubclass(cls, exceptions.CodeReviewError)

    @pytest.mark.parametrize(
        "name",
        [
            "ProviderUnavailableError",
            "ProviderTimeoutError",
            "AuthError",
            "RateLimitedError",
            "ProviderRequestError",
        ],
    )
    def test_provider_errors_inherit_from_provider_error(self, name):
        from code_review_engine.core import exceptions

        cls = getattr(exceptions, name)
        assert issubclass(cls, exceptions.ProviderError)

    @pytest.mark.parametrize(
        "name",
        [
            "CompletionError",
            "CompletionCapabilityUnavailableError",
            "FileUnreadableError",
            "TargetNotFoundError",
        ],
    )
    def test_run_level_errors_are_not_provider_errors(self, name):
        from code_review_engine.core import exceptions

        cls = getattr(exceptions, name)
        assert issubclass(cls, exceptions.CodeReviewError)
        assert not issubclass(cls, exceptions.ProviderError)
        assert not issubclass(cls, exceptions.ConfigError)

    def test_context_is_preserved(self):
        from code_review_engine.core.exceptions import TargetNotFoundError

        err = TargetNotFoundError("missing", context={"target": "src/"})
        assert str(err) == "missing"
        assert err.context == {"target": "src/"}


class TestConfigValidationError:
    def test_carries_field_errors(self):
        from code_review_engine.core.exceptions import ConfigValidationError, FieldError

        err = ConfigValidationError(
            "sonarqube",
            [
                FieldError("endpoint", "Please enter a valid URL"),
                FieldError("apiKey", "This field is required"),
            ],
        )

        assert err.provider_id == "sonarqube"
        assert err.fields == ["endpoint", "apiKey"]
        assert "endpoint: Please enter a valid URL" in str(err)
        assert "sonarqube" in str(err)


def test_exceptions_exported_from_core_package():
    from code_review_engine import CodeReviewError as RootError
    from code_review_engine.core import (
        AuthError,
        CodeReviewError,
        ConfigValidationError,
        TargetNotFoundError,
    )

    assert RootError is CodeReviewError
    assert issubclass(AuthError, CodeReviewError)
    assert issubclass(ConfigValidationError, CodeReviewError)
    assert issubclass(TargetNotFoundError, CodeReviewError)
