"""Cribl MCP custom exceptions.

Exception Design Principles:
1. Use these custom exceptions only when additional useful context can be provided
2. Handle exceptions as late as possible (keep details until the context label is known)
3. Transport failures stay as httpx.RequestError; everything that reached the
   server but could not be used is one of the classes below
"""

from typing import Any

import httpx


class CriblMCPError(Exception):
    """Base exception for all Cribl MCP errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] = None,  # detailed list of errors (if available)
        suggestions: list[str] = None,  # remedial actions
        context: dict = None,  # additional detailed context
    ):
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigError(CriblMCPError):
    """Application configuration errors - recoverable by user reconfiguration.

    Missing or inconsistent CRIBL_* environment variables, an unknown auth
    type, or credentials missing for the selected auth type.
    """

    pass


class RefreshError(CriblMCPError):
    """Credential exchange failed.

    Fatal to the current operation. The stored credential has been cleared and
    the next request starts a brand-new exchange. The message is already
    normalized and safe to show to a caller as-is.
    """

    pass


class UpstreamError(CriblMCPError):
    """A response was received but its status is outside the success range."""

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        reason_phrase: str | None = None,
    ):
        super().__init__(
            f"Upstream responded with status {status_code}",
            context={"status_code": status_code},
        )
        self.status_code = status_code
        self.body = body
        self.reason_phrase = reason_phrase

    @classmethod
    def from_response(cls, response: httpx.Response) -> "UpstreamError":
        """Capture status, decoded body and reason phrase of a failed response."""
        try:
            body = response.json()
        except ValueError:
            body = response.text
        return cls(response.status_code, body, response.reason_phrase)


class MalformedResponseError(CriblMCPError):
    """A successful response whose body could not be interpreted."""

    def __init__(self, status_code: int, raw: str, reason: str):
        super().__init__(
            f"Could not interpret response body: {reason}",
            context={"status_code": status_code},
        )
        self.status_code = status_code
        self.raw = raw
        self.reason = reason
