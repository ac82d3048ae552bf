"""Exception hierarchy for record type replacement runs.

Every error is terminal for the run. Each one carries enough context
(file, object type, row) to diagnose the failure from the message alone.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "ReplaceError",
    "EmptyCatalogError",
    "IOFailureError",
    "MalformedInputError",
    "MissingColumnError",
    "RemoteQueryError",
    "ConfigurationError",
    "PathNotAllowedError",
]


class ReplaceError(Exception):
    """Base exception for all replacement errors."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]
        if self.details:
            parts.append("Details:")
            parts.extend(f"  {k}: {v}" for k, v in self.details.items())
        if suggestion:
            parts.append(f"Suggestion: {suggestion}")

        super().__init__("\n".join(parts))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging and API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class EmptyCatalogError(ReplaceError):
    """The catalog query returned no entries to resolve against."""

    def __init__(self, object_type: Optional[str] = None, **kwargs: Any) -> None:
        self.object_type = object_type
        details = kwargs.pop("details", {})
        if object_type:
            details["object_type"] = object_type
        kwargs.setdefault(
            "suggestion",
            "Check that the object type exists and has record types defined",
        )
        target = f" for {object_type}" if object_type else ""
        super().__init__(f"No catalog entries found{target}", details=details, **kwargs)


class IOFailureError(ReplaceError):
    """A file could not be opened, decoded or written."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.path = path
        self.operation = operation
        self.cause = cause
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        if operation:
            details["operation"] = operation
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(message, details=details, **kwargs)


class MalformedInputError(ReplaceError):
    """The delimited file is structurally inconsistent with its header."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        line: Optional[int] = None,
        expected_columns: Optional[int] = None,
        actual_columns: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.path = path
        self.line = line
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        if line is not None:
            details["line"] = line
        if expected_columns is not None:
            details["expected_columns"] = expected_columns
        if actual_columns is not None:
            details["actual_columns"] = actual_columns
        super().__init__(message, details=details, **kwargs)


class MissingColumnError(MalformedInputError):
    """The lookup column is not declared in the file header."""

    def __init__(self, column: str, *, path: Optional[str] = None, **kwargs: Any) -> None:
        self.column = column
        details = kwargs.pop("details", {})
        details["column"] = column
        kwargs.setdefault("suggestion", "Pass the name of an existing header column")
        super().__init__(
            f"Lookup column '{column}' not found in header",
            path=path,
            details=details,
            **kwargs,
        )


class RemoteQueryError(ReplaceError):
    """The catalog service could not answer the query."""

    def __init__(
        self,
        message: str,
        *,
        object_type: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.object_type = object_type
        self.url = url
        self.status_code = status_code
        details = kwargs.pop("details", {})
        if object_type:
            details["object_type"] = object_type
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details, **kwargs)


class ConfigurationError(ReplaceError):
    """Required settings are missing or invalid."""

    def __init__(self, message: str, *, key: Optional[str] = None, **kwargs: Any) -> None:
        self.key = key
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key
        super().__init__(message, details=details, **kwargs)


class PathNotAllowedError(ReplaceError):
    """A requested file path resolves outside the configured data directory."""

    def __init__(self, path: str, *, data_dir: Optional[str] = None, **kwargs: Any) -> None:
        self.path = path
        details = kwargs.pop("details", {})
        details["path"] = path
        if data_dir:
            details["data_dir"] = data_dir
        kwargs.setdefault("suggestion", "Use a path inside RTUPDATE_DATA_DIR")
        super().__init__(f"Path '{path}' is outside the data directory", details=details, **kwargs)
