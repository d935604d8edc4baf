"""
Tests for the pkgfs.exceptions module.

This module tests:
- PkgfsError base class
- Contract error classes and their codes
- Harness error classes
"""

import pytest

from pkgfs.exceptions import (
    ConflictError,
    IsDirectoryError,
    NamespaceUnknownError,
    NoScenariosError,
    NotFoundError,
    ParentMissingError,
    ParseError,
    PathEscapeError,
    PkgfsError,
    ScenarioFailure,
    SuiteConfigurationError,
    SuiteError,
)


# =============================================================================
# PkgfsError Tests
# =============================================================================

class TestPkgfsError:
    """Tests for the base PkgfsError class."""

    def test_basic_creation(self):
        error = PkgfsError("Something went wrong")

        assert "Something went wrong" in str(error)
        assert error.error_code == "PKGFS_ERROR"
        assert error.user_message == "Something went wrong"

    def test_str_includes_code_and_reference(self):
        error = PkgfsError("boom", error_code="X1", reference="app:/a")

        assert str(error) == "[X1] Ref:app:/a boom"

    def test_to_dict(self):
        error = PkgfsError(
            "boom",
            reference="/a",
            namespace="app",
            context={"key": "value"},
            suggestion="try again",
        )
        data = error.to_dict()

        assert data["error_type"] == "PkgfsError"
        assert data["reference"] == "/a"
        assert data["namespace"] == "app"
        assert data["context"] == {"key": "value"}
        assert data["suggestion"] == "try again"
        assert data["timestamp"] > 0


# =============================================================================
# Contract Error Tests
# =============================================================================

class TestContractErrors:
    """Tests for the error taxonomy raised by backends."""

    @pytest.mark.parametrize(
        "cls,code",
        [
            (NotFoundError, "NOT_FOUND"),
            (ConflictError, "CONFLICT"),
            (IsDirectoryError, "IS_A_DIRECTORY"),
            (NamespaceUnknownError, "NAMESPACE_UNKNOWN"),
            (PathEscapeError, "PATH_ESCAPE"),
        ],
    )
    def test_error_codes(self, cls, code):
        error = cls("msg", reference="/x")

        assert error.error_code == code
        assert isinstance(error, PkgfsError)

    def test_parse_error_reason(self):
        error = ParseError("bad", reason="empty reference", reference="")

        assert error.error_code == "PARSE_ERROR"
        assert error.reason == "empty reference"
        assert error.context["reason"] == "empty reference"
        assert error.suggestion

    def test_parent_missing_error(self):
        error = ParentMissingError("no parent", parent="/a/b", reference="app:/a/b/c")

        assert error.error_code == "PARENT_MISSING"
        assert error.parent == "/a/b"
        assert error.context["parent"] == "/a/b"
        assert "mkdir_all" in error.suggestion

    def test_is_directory_is_a_conflict(self):
        assert issubclass(IsDirectoryError, ConflictError)

    def test_namespace_unknown_custom_code(self):
        error = NamespaceUnknownError("none", error_code="NO_CURRENT_NAMESPACE")

        assert error.error_code == "NO_CURRENT_NAMESPACE"

    def test_path_escape_error_host_path(self):
        error = PathEscapeError("escapes", host_path="/outside/x", reference="app:/link")

        assert error.host_path == "/outside/x"
        assert error.context["host_path"] == "/outside/x"
        assert "allow_symlink_escape" in error.suggestion


# =============================================================================
# Harness Error Tests
# =============================================================================

class TestHarnessErrors:
    """Tests for suite errors."""

    def test_suite_configuration_error(self):
        error = SuiteConfigurationError("missing factory", suite_name="memory")

        assert isinstance(error, SuiteError)
        assert error.error_code == "SUITE_CONFIGURATION_ERROR"
        assert error.context["suite_name"] == "memory"

    def test_no_scenarios_error(self):
        error = NoScenariosError("nothing to run", suite_name="memory")

        assert error.error_code == "NO_SCENARIOS"
        assert error.suite_name == "memory"

    def test_scenario_failure_is_assertion(self):
        failure = ScenarioFailure("mismatch", expected=1, actual=2)

        assert isinstance(failure, AssertionError)
        assert failure.expected == 1
        assert failure.actual == 2
