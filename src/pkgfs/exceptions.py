"""
pkgfs Exception Hierarchy

This module defines the errors raised by virtual filesystem backends and by the
conformance harness. Every error carries the reference it was raised for plus
enough context to be logged or serialized without inspecting the traceback.

The hierarchy is designed to:
1. Map each contract failure condition onto exactly one error type
2. Keep contract errors separate from harness (suite) errors
3. Carry structured context for logging and reporting
"""

import time
from typing import Any, Dict, Optional


class PkgfsError(Exception):
    """
    Base exception class for all pkgfs errors.

    Attributes:
        error_code: Unique error code for programmatic handling
        reference: Raw reference or path the error was raised for (if applicable)
        namespace: Namespace the reference resolved to (if known)
        timestamp: When the error occurred
        context: Additional context information
        user_message: User-friendly error message
        developer_message: Detailed technical error message
        suggestion: Suggested fix or next steps (if applicable)
    """

    def __init__(
        self,
        message: str,
        error_code: str = "PKGFS_ERROR",
        reference: Optional[str] = None,
        namespace: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        """
        Initialize error with context.

        Args:
            message: Technical error message for developers
            error_code: Unique error code for programmatic handling
            reference: Reference the error was raised for
            namespace: Namespace the reference resolved to
            context: Additional context information
            user_message: User-friendly error message
            suggestion: Suggested fix or next steps
        """
        super().__init__(message)
        self.error_code = error_code
        self.reference = reference
        self.namespace = namespace
        self.timestamp = time.time()
        self.context = context or {}
        self.user_message = user_message or message
        self.developer_message = message
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.developer_message,
            "user_message": self.user_message,
            "reference": self.reference,
            "namespace": self.namespace,
            "timestamp": self.timestamp,
            "context": self.context,
            "suggestion": self.suggestion,
        }

    def __str__(self) -> str:
        """String representation with context."""
        parts = [f"[{self.error_code}]"]
        if self.reference is not None:
            parts.append(f"Ref:{self.reference}")
        parts.append(self.developer_message)
        return " ".join(parts)


# =============================================================================
# CONTRACT ERRORS
# =============================================================================

class ParseError(PkgfsError):
    """
    Raised when a reference string cannot be resolved to a path.

    Examples:
    - Empty or whitespace-only input
    - A relative string that is not a known namespace
    - An explicit namespace segment that is not known
    - A '..' segment climbing above the namespace root
    """

    def __init__(self, message: str, reason: Optional[str] = None, **kwargs):
        self.reason = reason

        context = kwargs.pop("context", {})
        if reason:
            context["reason"] = reason

        super().__init__(
            message,
            error_code="PARSE_ERROR",
            context=context,
            user_message=kwargs.pop("user_message", "The reference could not be parsed."),
            suggestion=kwargs.pop(
                "suggestion",
                "Use an absolute path ('/dir/file') or 'namespace:/dir/file'.",
            ),
            **kwargs
        )


class NotFoundError(PkgfsError):
    """Raised when stat, open, remove or walk target a missing entry."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            error_code="NOT_FOUND",
            user_message=kwargs.pop("user_message", "No entry exists at this path."),
            **kwargs
        )


class ParentMissingError(PkgfsError):
    """
    Raised when create is called before the parent directory exists.

    Create never provisions directories; call mkdir_all on the parent first.
    """

    def __init__(self, message: str, parent: Optional[str] = None, **kwargs):
        self.parent = parent

        context = kwargs.pop("context", {})
        if parent:
            context["parent"] = parent

        super().__init__(
            message,
            error_code="PARENT_MISSING",
            context=context,
            user_message="The parent directory does not exist.",
            suggestion="Create the parent directory with mkdir_all before creating the file.",
            **kwargs
        )


class ConflictError(PkgfsError):
    """
    Raised when an existing entry has the wrong kind for the operation.

    Examples:
    - mkdir_all over a path segment occupied by a file
    - remove on a directory that still has children
    """

    def __init__(self, message: str, **kwargs):
        error_code = kwargs.pop("error_code", "CONFLICT")
        super().__init__(
            message,
            error_code=error_code,
            user_message=kwargs.pop("user_message", "An existing entry conflicts with the operation."),
            **kwargs
        )


class IsDirectoryError(ConflictError):
    """Raised when open or create targets a directory."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            error_code="IS_A_DIRECTORY",
            user_message="The path denotes a directory, not a file.",
            **kwargs
        )


class NamespaceUnknownError(PkgfsError):
    """Raised when a namespace is not known to the backend, or none is current."""

    def __init__(self, message: str, **kwargs):
        error_code = kwargs.pop("error_code", "NAMESPACE_UNKNOWN")
        super().__init__(
            message,
            error_code=error_code,
            user_message=kwargs.pop("user_message", "The namespace is not known."),
            **kwargs
        )


class PathEscapeError(PkgfsError):
    """Raised when a name resolves, through a symlink, outside its namespace root."""

    def __init__(self, message: str, host_path: Optional[str] = None, **kwargs):
        self.host_path = host_path

        context = kwargs.pop("context", {})
        if host_path:
            context["host_path"] = host_path

        super().__init__(
            message,
            error_code="PATH_ESCAPE",
            context=context,
            user_message="The path leads outside the namespace root.",
            suggestion="Remove the symlink or enable allow_symlink_escape.",
            **kwargs
        )


# =============================================================================
# HARNESS ERRORS
# =============================================================================

class SuiteError(PkgfsError):
    """Base class for conformance suite errors."""

    def __init__(self, message: str, suite_name: Optional[str] = None, **kwargs):
        self.suite_name = suite_name

        context = kwargs.pop("context", {})
        if suite_name:
            context["suite_name"] = suite_name

        error_code = kwargs.pop("error_code", "SUITE_ERROR")
        super().__init__(
            message,
            error_code=error_code,
            context=context,
            **kwargs
        )


class SuiteConfigurationError(SuiteError):
    """Raised when a suite has no usable backend factory."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            error_code="SUITE_CONFIGURATION_ERROR",
            suggestion="Pass a zero-argument callable returning a backend to Suite().",
            **kwargs
        )


class NoScenariosError(SuiteError):
    """Raised when scenario discovery yields nothing to run."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            error_code="NO_SCENARIOS",
            suggestion="Check that the scenario module was imported and registered scenarios.",
            **kwargs
        )


class ScenarioFailure(AssertionError):
    """Raised by scenario checks when the backend breaks the contract."""

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
