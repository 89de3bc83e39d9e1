import json
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .consts import SUCCESS_STATUS_RANGE
from .exceptions import MalformedResponseError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

# =============================================================================
# ENVELOPE
# =============================================================================
# Single result type returned by the request gateway, the typed API methods
# and the MCP tools


class Envelope(BaseModel, Generic[T]):
    """Uniform success/data/error wrapper.

    `success` is the discriminant: a success never carries an error, a failure
    always carries a non-empty error and never carries data.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool = Field(..., description="Whether the operation succeeded")
    data: T | None = Field(None, description="Payload on success")
    error: str | None = Field(None, description="Normalized error message on failure")

    @model_validator(mode="after")
    def _check_discriminant(self) -> "Envelope":
        if self.success and self.error is not None:
            raise ValueError("a successful envelope cannot carry an error")
        if not self.success:
            if not self.error:
                raise ValueError("a failed envelope must carry an error message")
            if self.data is not None:
                raise ValueError("a failed envelope cannot carry data")
        return self

    @classmethod
    def ok(cls, data: Any = None) -> "Envelope":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "Envelope":
        return cls(success=False, error=error)


# =============================================================================
# CRIBL API MODELS
# =============================================================================
# Known fields are typed; anything else the server sends is kept in the
# pydantic extra bag so that it survives a dump back to JSON.


class CriblModel(BaseModel):
    """Base for Cribl payloads: typed known fields plus opaque extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        """Dump with server field names, keeping only what the server sent."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class ItemsResponse(CriblModel):
    """Collection wrapper used by most list and read endpoints."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    count: int | None = None


class WorkerGroup(CriblModel):
    """A worker group (Stream), fleet (Edge) or search group."""

    id: str
    is_fleet: bool = Field(False, alias="isFleet")
    is_search: bool = Field(False, alias="isSearch")
    description: str | None = None

    @property
    def product(self) -> str:
        if self.is_fleet:
            return "edge"
        if self.is_search:
            return "search"
        return "stream"


class Pipeline(CriblModel):
    id: str
    conf: dict[str, Any] | None = None


class Source(CriblModel):
    id: str
    type: str | None = None
    disabled: bool | None = None


class TokenResponse(CriblModel):
    """Client-credentials exchange response."""

    access_token: str = Field(..., min_length=1)
    expires_in: int
    token_type: str | None = None


class LoginResponse(CriblModel):
    """Local login response; the token may carry a scheme label."""

    token: str = Field(..., min_length=1)


def parse_body(response: httpx.Response, model: type[M]) -> M:
    """Decode a JSON response body into `model`.

    Raises:
        MalformedResponseError: If the body is not JSON or does not fit the model.
    """
    try:
        return model.model_validate(response.json())
    except ValueError as e:  # JSONDecodeError and ValidationError alike
        raise malformed(response, e) from e


def malformed(response: httpx.Response, error: ValueError) -> MalformedResponseError:
    """Describe why a response body could not be used."""
    return MalformedResponseError(response.status_code, response.text, _describe(error))


def _describe(error: ValueError) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in error.errors()
        )
    if isinstance(error, json.JSONDecodeError):
        return f"invalid JSON ({error})"
    return str(error)


def is_success(response: httpx.Response) -> bool:
    """Only 2xx counts as success; redirects and everything else are failures."""
    return response.status_code in SUCCESS_STATUS_RANGE
