"""Normalize arbitrary failures into one readable message.

`normalize_error` is total: whatever it is handed, it returns a string of the
shape ``"<category> during <context>: <detail>"`` and never raises.

Detail extraction for a failed response is an ordered chain of small
extractors. Each one either returns a detail string or None to pass to the
next; the first non-None answer wins. If an extractor blows up (say, a body
that cannot be serialized) the chain stops and a raw snippet is used instead.
"""

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from .consts import ERROR_SNIPPET_LENGTH
from .exceptions import CriblMCPError, MalformedResponseError, UpstreamError

logger = logging.getLogger("cribl-mcp.normalizer")

DETAIL_FIELDS = ("message", "error", "text")

Extractor = Callable[[Any, str | None], str | None]


def normalize_error(failure: object, context: str) -> str:
    """Convert a failure of unknown shape into a single message.

    Args:
        failure: Exception (or anything else) raised or produced by a call.
        context: Label of the logical operation, e.g. "list worker groups".

    Returns:
        Normalized message. Never raises.
    """
    try:
        return _normalize(failure, context)
    except Exception as e:
        logger.exception("Error normalization failed")
        return f"Unknown error during {context}: {_safe_str(failure)} ({_safe_str(e)})"


def _normalize(failure: object, context: str) -> str:
    if isinstance(failure, httpx.HTTPStatusError):
        failure = UpstreamError.from_response(failure.response)

    if isinstance(failure, UpstreamError):
        detail = describe_response(
            failure.status_code, failure.body, failure.reason_phrase
        )
        return f"API Error ({failure.status_code}) during {context}: {detail}"

    if isinstance(failure, MalformedResponseError):
        return (
            f"Malformed response ({failure.status_code}) during {context}: "
            f"{failure.reason} (raw: {_snippet(failure.raw)})"
        )

    if isinstance(failure, httpx.RequestError):
        message = f"API Error during {context}: no response received from server"
        cause = _safe_str(failure)
        if cause:
            message = f"{message} ({type(failure).__name__}: {cause})"
        return message

    if isinstance(failure, CriblMCPError):
        # already carries a normalized message
        return failure.message

    if isinstance(failure, Exception):
        return f"Error during {context}: {_safe_str(failure) or type(failure).__name__}"

    return f"Unknown error during {context}: {_safe_str(failure)}"


def describe_response(status_code: int, body: Any, reason_phrase: str | None) -> str:
    """Best-effort detail text for a failed response body."""
    try:
        for extract in _EXTRACTORS:
            detail = extract(body, reason_phrase)
            if detail is not None:
                return detail
    except Exception as e:
        logger.debug(f"Could not extract error detail: {e!r}")
        return f"Failed to parse error response body (raw: {_snippet(body)})"
    return f"Status {status_code} received with no useful error details in body."


def _from_mapping(body: Any, reason_phrase: str | None) -> str | None:
    if not isinstance(body, Mapping) or not body:
        return None
    for field in DETAIL_FIELDS:
        value = body.get(field)
        if value:
            return value if isinstance(value, str) else json.dumps(value)
    return json.dumps(body)


def _from_list(body: Any, reason_phrase: str | None) -> str | None:
    if isinstance(body, list) and body:
        return json.dumps(body)
    return None


def _from_text(body: Any, reason_phrase: str | None) -> str | None:
    if isinstance(body, str) and body.strip():
        return body
    return None


def _from_reason(body: Any, reason_phrase: str | None) -> str | None:
    if _is_empty(body) and reason_phrase:
        return reason_phrase
    return None


def _reject_unrecognized(body: Any, reason_phrase: str | None) -> str | None:
    if not _is_empty(body):
        raise TypeError(f"unrecognized body type {type(body).__name__}")
    return None


_EXTRACTORS: tuple[Extractor, ...] = (
    _from_mapping,
    _from_list,
    _from_text,
    _from_reason,
    _reject_unrecognized,
)


def _is_empty(body: Any) -> bool:
    if body is None:
        return True
    if isinstance(body, str | bytes | Mapping | list):
        return len(body.strip() if isinstance(body, str | bytes) else body) == 0
    return False


def _snippet(raw: Any) -> str:
    return _safe_str(raw)[:ERROR_SNIPPET_LENGTH]


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"
