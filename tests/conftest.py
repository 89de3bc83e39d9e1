"""Pytest configuration and shared fixtures"""

import asyncio
import os
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from cribl_mcp.auth import ClientCredentialsManager, LoginManager
from cribl_mcp.client import CriblClient
from cribl_mcp.config import Config

BASE_URL = "https://cribl.test"
TOKEN_PATH = "/oauth/token"
LOGIN_PATH = "/api/v1/auth/login"
GROUPS_PATH = "/api/v1/master/groups"


class FakeClock:
    """Controllable replacement for datetime.now(UTC)"""

    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=UTC)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeCribl:
    """In-memory Cribl API behind an httpx.MockTransport.

    Routes are keyed on (method, path). Each request gets a fresh response;
    a route can instead raise an exception or wait before answering.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        *,
        json: Any = None,
        text: str | None = None,
        exc: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.routes[(method, path)] = {
            "status": status,
            "json": json,
            "text": text,
            "exc": exc,
            "delay": delay,
        }

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Item not found"})
        if route["delay"]:
            await asyncio.sleep(route["delay"])
        if route["exc"] is not None:
            raise route["exc"]
        if route["text"] is not None:
            return httpx.Response(route["status"], text=route["text"])
        if route["json"] is not None:
            return httpx.Response(route["status"], json=route["json"])
        return httpx.Response(route["status"])

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def token_body(token: str = "tok-1", expires_in: int = 300) -> dict:
    return {"access_token": token, "expires_in": expires_in, "token_type": "Bearer"}


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears CRIBL_* environment variables.

    This ensures Config tests see the true defaults without interference
    from environment variables that might be set in the user's shell.
    """
    cribl_vars = {
        key: value for key, value in os.environ.items() if key.startswith("CRIBL_")
    }

    for key in cribl_vars:
        os.environ.pop(key, None)

    try:
        yield
    finally:
        for key in list(os.environ):
            if key.startswith("CRIBL_"):
                os.environ.pop(key)
        os.environ.update(cribl_vars)


@pytest.fixture
def cloud_config(clean_env):
    return Config(
        _env_file=None,
        base_url=BASE_URL,
        auth_type="cloud",
        client_id="client-id",
        client_secret="client-secret",
    )


@pytest.fixture
def local_config(clean_env):
    return Config(
        _env_file=None,
        base_url=BASE_URL,
        auth_type="local",
        username="admin",
        password="hunter2",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_cribl():
    """Fake API with a working client-credentials token endpoint"""
    fake = FakeCribl()
    fake.add("POST", TOKEN_PATH, json=token_body())
    return fake


@pytest.fixture
def http_client(fake_cribl):
    return httpx.AsyncClient(
        base_url=BASE_URL, transport=httpx.MockTransport(fake_cribl.handler)
    )


@pytest.fixture
def cloud_manager(cloud_config, http_client, clock):
    return ClientCredentialsManager(cloud_config, http_client, clock)


@pytest.fixture
def local_manager(local_config, http_client, clock):
    return LoginManager(local_config, http_client, clock)


@pytest.fixture
def client(cloud_config, cloud_manager, http_client):
    """CriblClient wired to the fake API through a real credential manager"""
    return CriblClient(
        config=cloud_config, token_provider=cloud_manager, http_client=http_client
    )
