"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field, field_validator

PLACEHOLDER_USER = "YOUR_EMAIL_HERE"
PLACEHOLDER_PASSWORD = "YOUR_APP_PASSWORD_HERE"


class EmailSettings(BaseModel):
    """Sender account and SMTP endpoint settings."""

    user: str | None = Field(default=None, description="Sender address and login")
    password: str | None = Field(default=None, description="SMTP credential")
    host: str = Field(default="smtp.gmail.com", description="SMTP hostname")
    port: int = Field(default=587, description="SMTP port")
    secure: bool = Field(default=False, description="Use implicit TLS")
    sender_name: str = Field(
        default="Websters - Shivaji College",
        description="Display name used in the From header",
    )

    @field_validator("secure", mode="before")
    @classmethod
    def parse_secure(cls, value: Any) -> bool:
        # Only the literal "true" switches implicit TLS on.
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return value is True

    @property
    def uses_test_account(self) -> bool:
        """Return ``True`` when credentials are absent or still placeholders."""
        return (
            not self.user
            or not self.password
            or self.user == PLACEHOLDER_USER
            or self.password == PLACEHOLDER_PASSWORD
        )


class DeliverySettings(BaseModel):
    """Settings controlling transport reuse and send bounds."""

    transport_ttl_seconds: float = Field(
        default=30 * 60, gt=0, description="Maximum age of a cached transport"
    )
    send_timeout_seconds: float = Field(
        default=30, gt=0, description="Upper bound for a single delivery"
    )
    max_connections: int = Field(
        default=5, ge=1, description="Concurrent pooled SMTP connections"
    )
    max_messages_per_connection: int = Field(
        default=100, ge=1, description="Messages sent before a connection rotates"
    )
    connection_timeout_seconds: float = Field(
        default=10, gt=0, description="SMTP connect timeout"
    )
    socket_timeout_seconds: float = Field(
        default=20, gt=0, description="SMTP socket idle timeout"
    )


class TestAccountSettings(BaseModel):
    """Settings for the disposable test mailbox service."""

    __test__ = False

    api_url: str = Field(
        default="https://api.nodemailer.com",
        description="Base URL of the account provisioning API",
    )
    host: str = Field(default="smtp.ethereal.email", description="Test SMTP host")
    port: int = Field(default=587, description="Test SMTP port")
    timeout_seconds: float = Field(
        default=30, gt=0, description="Provisioning request timeout"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )


class SmtpSettings(BaseModel):
    """Resolved connection parameters for one SMTP transport."""

    host: str
    port: int = 587
    secure: bool = False
    username: str | None = None
    password: str | None = None
    max_connections: int = 5
    max_messages_per_connection: int = 100
    connection_timeout_seconds: float = 10
    socket_timeout_seconds: float = 20


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    email: EmailSettings = Field(default_factory=EmailSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    test_account: TestAccountSettings = Field(default_factory=TestAccountSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "WORKSHOP_MAIL_"

# Flat variables shared with the rest of the site's deployment.
EMAIL_ENV_KEYS: dict[str, list[str]] = {
    "EMAIL_USER": ["email", "user"],
    "EMAIL_PASSWORD": ["email", "password"],
    "EMAIL_HOST": ["email", "host"],
    "EMAIL_PORT": ["email", "port"],
    "EMAIL_SECURE": ["email", "secure"],
}


def _is_recognized(key: str) -> bool:
    return key in EMAIL_ENV_KEYS or key.startswith(ENV_PREFIX)


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    if raw_key in EMAIL_ENV_KEYS:
        return list(EMAIL_ENV_KEYS[raw_key])
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and _is_recognized(key)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value for key, value in os.environ.items() if _is_recognized(key)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        if isinstance(value, str) and value.strip() == "":
            continue
        _merge_into_tree(collected, path, value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "DeliverySettings",
    "EmailSettings",
    "LoggingSettings",
    "PLACEHOLDER_PASSWORD",
    "PLACEHOLDER_USER",
    "SmtpSettings",
    "TestAccountSettings",
    "load_app_settings",
]
