"""Authentication management with single-flight token refresh."""

import asyncio
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx

from .config import Config
from .consts import LOCAL_TOKEN_LIFETIME_SECONDS, TOKEN_SAFETY_MARGIN_SECONDS
from .exceptions import RefreshError, UpstreamError
from .models import LoginResponse, TokenResponse, is_success, parse_body
from .normalizer import normalize_error

logger = logging.getLogger("cribl-mcp.auth")

Clock = Callable[[], datetime]

# "Bearer abc123" -> "abc123"
_SCHEME_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*\s+")


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Credential:
    """Bearer token and the instant it stops being usable."""

    value: str = field(repr=False)
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class CredentialManager:
    """Owns the current credential and refreshes it at most once at a time.

    Responsibilities:
    - Hand out a valid credential, or
    - start exactly one refresh that every concurrent caller waits on, or
    - report that the refresh failed (to every waiter alike)

    Subclasses only implement `_exchange`, the strategy that turns configured
    credentials into a new `Credential`.
    """

    context = "credential refresh"

    def __init__(
        self,
        config: Config,
        http_client: httpx.AsyncClient,
        clock: Clock = utcnow,
    ):
        """Initialize CredentialManager.

        Args:
            config: Config instance with auth settings.
            http_client: HTTP client (for token requests only).
            clock: Returns the current aware datetime; injectable for tests.
        """
        self.config = config
        self.http_client = http_client
        self.clock = clock
        self._credential: Credential | None = None
        self._refresh: asyncio.Future | None = None

    @property
    def credential(self) -> Credential | None:
        """The stored credential, valid or not."""
        return self._credential

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh is not None

    def has_valid_credential(self) -> bool:
        return self._credential is not None and self._credential.is_valid(
            self.clock()
        )

    async def ensure_valid(self) -> Credential:
        """Make sure a valid credential is held, refreshing if needed.

        Returns without suspending when the stored credential is still valid.
        Otherwise joins the in-flight refresh, starting one if there is none.
        Cancelling one waiter does not cancel the refresh for the others.

        Returns:
            The stored credential, or the one produced by the refresh this
            call joined (even if another refresh has started since).

        Raises:
            RefreshError: If the exchange failed. The stored credential is
                cleared and the next call starts a fresh exchange.
        """
        credential = self._credential
        if credential is not None and credential.is_valid(self.clock()):
            return credential

        if self._refresh is None:
            logger.debug("Starting credential refresh")
            self._credential = None
            self._refresh = asyncio.ensure_future(self._run_refresh())
            self._refresh.add_done_callback(_consume_exception)
        else:
            logger.debug("Joining in-flight credential refresh")

        return await asyncio.shield(self._refresh)

    async def get_valid_token(self) -> str:
        """Get a valid authentication token.

        Raises:
            RefreshError: If a credential could not be obtained.
        """
        credential = await self.ensure_valid()
        return credential.value

    async def _run_refresh(self) -> Credential:
        try:
            credential = await self._exchange()
        except Exception as e:
            self._credential = None
            message = normalize_error(e, self.context)
            logger.error(message)
            raise RefreshError(
                message,
                suggestions=[
                    "Verify the CRIBL_AUTH_TYPE credentials are correct",
                    "Check that the auth endpoint is reachable",
                ],
                context={"auth_type": self.config.auth_type},
            ) from e
        else:
            self._credential = credential
            logger.info(
                f"Credential refreshed, valid until {credential.expires_at.isoformat()}"
            )
            return credential
        finally:
            self._refresh = None

    async def _post(self, url: str, payload: dict) -> httpx.Response:
        logger.debug(f"POST {url}")
        response = await self.http_client.post(url, json=payload)
        if not is_success(response):
            raise UpstreamError.from_response(response)
        return response

    async def _exchange(self) -> Credential:
        raise NotImplementedError


class ClientCredentialsManager(CredentialManager):
    """Cribl.Cloud: exchange client id/secret for an expiring access token."""

    context = "client credentials token exchange"

    async def _exchange(self) -> Credential:
        response = await self._post(
            self.config.token_url,
            {
                "grant_type": "client_credentials",
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "audience": self.config.audience,
            },
        )
        token = parse_body(response, TokenResponse)
        # replace the token a little before the server stops honouring it
        lifetime = max(token.expires_in - TOKEN_SAFETY_MARGIN_SECONDS, 0)
        return Credential(
            value=token.access_token,
            expires_at=self.clock() + timedelta(seconds=lifetime),
        )


class LoginManager(CredentialManager):
    """Local leader: log in with username/password.

    The login response says nothing about expiry, so tokens are renewed on a
    fixed one hour cadence.
    """

    context = "local login"

    async def _exchange(self) -> Credential:
        response = await self._post(
            self.config.login_url,
            {"username": self.config.username, "password": self.config.password},
        )
        login = parse_body(response, LoginResponse)
        return Credential(
            value=strip_scheme(login.token),
            expires_at=self.clock() + timedelta(seconds=LOCAL_TOKEN_LIFETIME_SECONDS),
        )


def _consume_exception(refresh: asyncio.Future) -> None:
    # waiters may all be cancelled; mark the failure as retrieved
    if not refresh.cancelled():
        refresh.exception()


def strip_scheme(token: str) -> str:
    """Drop a leading scheme label such as "Bearer " from a token string."""
    return _SCHEME_PREFIX.sub("", token.strip(), count=1)


def create_credential_manager(
    config: Config, http_client: httpx.AsyncClient, clock: Clock = utcnow
) -> CredentialManager:
    """Pick the refresh strategy for the configured auth type."""
    if config.auth_type == "cloud":
        return ClientCredentialsManager(config, http_client, clock)
    return LoginManager(config, http_client, clock)
