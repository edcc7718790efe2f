#!/usr/bin/python
"""
Exception types raised by the NVCF module utilities.

Modules convert any ``NVCFError`` into ``module.fail_json`` at their boundary.
"""

import typing as t


class NVCFError(Exception):
    """Base class for every NVCF failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(NVCFError):
    """Connection options are missing or invalid."""


class ValidationError(NVCFError):
    """User supplied values cannot be turned into a request."""


class TransportError(NVCFError):
    """The request never produced an HTTP response."""


class AuthenticationError(NVCFError):
    """The API rejected the credentials (HTTP 401)."""

    http_status = 401

    def __init__(self, message: str = "not authenticated") -> None:
        super().__init__(message)


class RemoteAPIError(NVCFError):
    """The API answered with a status code outside the accepted set."""

    def __init__(
        self,
        message: str,
        http_status: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.request_id = request_id


class NotFoundError(RemoteAPIError):
    """The API reported the addressed object as absent (HTTP 404)."""


class DeploymentFailedError(NVCFError):
    """The deployment reached a terminal status other than ACTIVE."""

    def __init__(self, status: str | None) -> None:
        super().__init__(f"unexpected status {status or '<none>'}")
        self.status = status


class DeploymentTimeoutError(NVCFError):
    """The deadline elapsed while the deployment was still in progress."""

    def __init__(self, message: str = "timeout occurred") -> None:
        super().__init__(message)


class OperationError(NVCFError):
    """A lifecycle step failed; carries the step summary and the cause."""

    def __init__(self, summary: str, cause: Exception) -> None:
        super().__init__(f"{summary}: {cause}")
        self.summary = summary
        self.cause = cause
        self.cleanup_error: Exception | None = None

    def to_result(self) -> dict[str, t.Any]:
        """Extra keys reported next to ``msg`` on failure."""
        result: dict[str, t.Any] = {"error_summary": self.summary}
        status = getattr(self.cause, "http_status", None)
        if status is not None:
            result["http_status"] = status
        if self.cleanup_error is not None:
            result["cleanup_error"] = str(self.cleanup_error)
        return result
