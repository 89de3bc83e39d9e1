"""Configuration management."""

import logging
from functools import cache
from typing import Literal

from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .consts import (
    DEFAULT_AUDIENCE,
    DEFAULT_CLOUD_AUTH_URL,
    LOGIN_URL_PATH,
    TOKEN_URL_PATH,
)

AuthType = Literal["cloud", "local"]


class Config(BaseSettings):
    """Connection and credential settings, loaded once at process start."""

    model_config = SettingsConfigDict(
        env_prefix="CRIBL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    base_url: str = Field(..., description="Base URL of the Cribl leader")
    auth_type: AuthType = Field(
        ..., description="'cloud' (client credentials) or 'local' (login)"
    )

    # cloud
    client_id: str | None = Field(default=None, description="Cribl.Cloud client ID")
    client_secret: str | None = Field(
        default=None, repr=False, description="Cribl.Cloud client secret"
    )
    cloud_auth_url: str = Field(
        default=DEFAULT_CLOUD_AUTH_URL, description="Cribl.Cloud auth server"
    )
    audience: str = Field(
        default=DEFAULT_AUDIENCE, description="Audience for the token exchange"
    )

    # local
    username: str | None = Field(default=None, description="Local leader username")
    password: str | None = Field(
        default=None, repr=False, description="Local leader password"
    )

    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )

    @field_validator("base_url", "cloud_auth_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def _check_credentials(self) -> "Config":
        """Each auth type needs its own pair of credentials."""
        if self.auth_type == "cloud":
            required = {
                "CRIBL_CLIENT_ID": self.client_id,
                "CRIBL_CLIENT_SECRET": self.client_secret,
            }
        else:
            required = {
                "CRIBL_USERNAME": self.username,
                "CRIBL_PASSWORD": self.password,
            }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ValueError(
                f"auth_type '{self.auth_type}' requires {', '.join(missing)} to be set"
            )
        return self

    @computed_field
    @property
    def token_url(self) -> str:
        """URL for the client-credentials exchange."""
        return f"{self.cloud_auth_url}{TOKEN_URL_PATH}"

    @computed_field
    @property
    def login_url(self) -> str:
        """URL for the username/password login."""
        return f"{self.base_url}{LOGIN_URL_PATH}"


@cache
def get_config() -> Config:
    """Get a cached Config instance."""
    return Config()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the entire application.

    Everything goes to stderr; stdout carries the MCP stdio transport.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
    return logging.getLogger("cribl-mcp")
