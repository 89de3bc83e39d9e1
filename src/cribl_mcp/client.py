"""Cribl client: the single choke point for outbound API calls."""

import logging
from functools import cache
from typing import Any
from urllib.parse import quote

import httpx

from .auth import create_credential_manager
from .config import Config, get_config
from .consts import API_PREFIX, USER_AGENT
from .exceptions import MalformedResponseError, RefreshError, UpstreamError
from .models import (
    CriblModel,
    Envelope,
    ItemsResponse,
    Pipeline,
    Source,
    WorkerGroup,
    is_success,
    malformed,
    parse_body,
)
from .normalizer import normalize_error
from .protocols import TokenProvider

logger = logging.getLogger("cribl-mcp.client")


class CriblClient:
    """Cribl API client with authentication.

    Responsibilities:
    - Never send a request without a valid credential attached
    - Turn every failure into an `Envelope` with a normalized message
    - Provide typed methods for the resource endpoints

    No method of this class raises; failures come back as envelopes.
    """

    def __init__(
        self,
        config: Config | None = None,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize CriblClient.

        Args:
            config: Config instance. If None, uses get_config().
            token_provider: Credential manager. If None, one is created for
                the configured auth type.
            http_client: HTTP client. If None, creates a new one.
        """
        self.config = config or get_config()

        self.http_client = http_client or httpx.AsyncClient(
            base_url=self.config.base_url,
            headers={"User-Agent": USER_AGENT},
            timeout=self.config.timeout_seconds,
        )

        self.token_provider = token_provider or create_credential_manager(
            self.config, self.http_client
        )

        logger.info(
            f"Cribl client created for {self.config.base_url} "
            f"(auth type: {self.config.auth_type})"
        )

    async def call(
        self,
        method: str,
        path: str,
        *,
        context: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Envelope[httpx.Response]:
        """Send one authenticated request.

        Args:
            method: HTTP method.
            path: Path relative to the base URL (or an absolute URL).
            context: Label of the logical operation, used in error messages.
            json: Optional JSON payload.
            params: Optional query parameters.

        Returns:
            Envelope with the raw response on 2xx, or the normalized error.
        """
        try:
            token = await self.token_provider.get_valid_token()
        except RefreshError as e:
            logger.error(f"Not sending {method} {path}: {e.message}")
            return Envelope.fail(e.message)
        except Exception as e:
            return self._failed(e, context)

        headers = {"Authorization": f"Bearer {token}"}
        logger.debug(f"{method} {path}")
        try:
            response = await self.http_client.request(
                method, path, json=json, params=params, headers=headers
            )
        except Exception as e:
            return self._failed(e, context)

        if not is_success(response):
            return self._failed(UpstreamError.from_response(response), context)

        logger.debug(f"{method} {path} -> {response.status_code}")
        return Envelope.ok(response)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "CriblClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # Worker groups

    async def list_worker_groups(self) -> Envelope[list[WorkerGroup]]:
        context = "list worker groups"
        result = await self.call("GET", f"{API_PREFIX}/master/groups", context=context)
        return self._items(result, WorkerGroup, context)

    async def restart_worker_group(self, group: str) -> Envelope[dict[str, str]]:
        context = f"restart worker group {group}"
        result = await self.call(
            "POST", f"{API_PREFIX}/master/groups/{_seg(group)}/restart", context=context
        )
        if not result.success:
            return result
        return Envelope.ok(
            {
                "message": f"Successfully initiated restart for group {group}. "
                f"Response status: {result.data.status_code}"
            }
        )

    # Pipelines

    async def get_pipelines(self, group: str) -> Envelope[list[Pipeline]]:
        context = f"fetch pipelines for group {group}"
        result = await self.call(
            "GET", _group_path(group, "pipelines"), context=context
        )
        return self._items(result, Pipeline, context)

    async def get_pipeline(self, group: str, pipeline_id: str) -> Envelope[Pipeline]:
        context = f"fetch pipeline {pipeline_id} in group {group}"
        result = await self.call(
            "GET", _group_path(group, f"pipelines/{_seg(pipeline_id)}"), context=context
        )
        return self._single(result, Pipeline, context)

    async def set_pipeline_config(
        self, group: str, pipeline_id: str, config: dict[str, Any]
    ) -> Envelope[Pipeline]:
        context = f"update pipeline {pipeline_id} in group {group}"
        result = await self.call(
            "PATCH",
            _group_path(group, f"pipelines/{_seg(pipeline_id)}"),
            context=context,
            json=config,
        )
        return self._single(result, Pipeline, context)

    # Sources

    async def get_sources(self, group: str) -> Envelope[list[Source]]:
        context = f"fetch sources for group {group}"
        result = await self.call(
            "GET", _group_path(group, "system/inputs"), context=context
        )
        return self._items(result, Source, context)

    # Metrics

    async def get_system_metrics(
        self, group: str, metric_filter: str | None = None
    ) -> Envelope[dict[str, Any]]:
        context = f"fetch system metrics for group {group}"
        params = {"filterExpr": metric_filter} if metric_filter else None
        result = await self.call(
            "GET", _group_path(group, "system/metrics"), context=context, params=params
        )
        return self._raw(result, context)

    # Version control

    async def get_version_status(self, group: str) -> Envelope[dict[str, Any]]:
        context = f"fetch version control status for group {group}"
        result = await self.call(
            "GET",
            f"{API_PREFIX}/version/status",
            context=context,
            params={"group": group},
        )
        return self._raw(result, context)

    async def commit(self, group: str, message: str) -> Envelope[dict[str, Any]]:
        context = f"commit changes for group {group}"
        result = await self.call(
            "POST",
            f"{API_PREFIX}/version/commit",
            context=context,
            json={"message": message, "group": group},
        )
        return self._raw(result, context)

    async def deploy(self, group: str, version: str) -> Envelope[dict[str, Any]]:
        context = f"deploy version {version} to group {group}"
        result = await self.call(
            "PATCH",
            f"{API_PREFIX}/master/groups/{_seg(group)}/deploy",
            context=context,
            json={"version": version},
        )
        return self._raw(result, context)

    # Decoding

    def _failed(self, failure: object, context: str) -> Envelope:
        message = normalize_error(failure, context)
        logger.error(message)
        return Envelope.fail(message)

    def _items(
        self, result: Envelope[httpx.Response], model: type[CriblModel], context: str
    ) -> Envelope:
        """Decode an `{items: [...]}` body into a list of `model`."""
        if not result.success:
            return result
        try:
            body = parse_body(result.data, ItemsResponse)
            items = [model.model_validate(item) for item in body.items]
        except MalformedResponseError as e:
            return self._failed(e, context)
        except ValueError as e:
            return self._failed(malformed(result.data, e), context)
        return Envelope.ok(items)

    def _single(
        self, result: Envelope[httpx.Response], model: type[CriblModel], context: str
    ) -> Envelope:
        """Decode a single resource, unwrapping `{items: [resource]}` if present."""
        if not result.success:
            return result
        try:
            payload = result.data.json()
            if isinstance(payload, dict) and "items" in payload:
                items = payload["items"] or []
                if not isinstance(items, list):
                    raise ValueError(
                        f"items is {type(items).__name__}, expected a list"
                    )
                if not items:
                    return self._failed(
                        LookupError("response contained no items"), context
                    )
                payload = items[0]
            return Envelope.ok(model.model_validate(payload))
        except ValueError as e:
            return self._failed(malformed(result.data, e), context)

    def _raw(self, result: Envelope[httpx.Response], context: str) -> Envelope:
        """Decode a body as plain JSON; a lone item is unwrapped."""
        if not result.success:
            return result
        if not result.data.content:
            return Envelope.ok({})
        try:
            payload = result.data.json()
        except ValueError as e:
            return self._failed(malformed(result.data, e), context)
        if isinstance(payload, dict) and isinstance(payload.get("items"), list):
            if len(payload["items"]) == 1:
                payload = payload["items"][0]
        return Envelope.ok(payload)


def _seg(value: str) -> str:
    return quote(value, safe="")


def _group_path(group: str, resource: str) -> str:
    return f"{API_PREFIX}/m/{_seg(group)}/{resource}"


@cache
def get_client() -> CriblClient:
    """Get a cached CriblClient instance with default configuration.

    May propagate exceptions from Config() initialization via get_config().
    """
    return CriblClient()
