"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from workshop_mail.core.config import EmailSettings, load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.email.host == "smtp.gmail.com"
    assert settings.email.port == 587
    assert settings.email.secure is False
    assert settings.email.uses_test_account
    assert settings.delivery.transport_ttl_seconds == 1800
    assert settings.delivery.send_timeout_seconds == 30
    assert settings.test_account.host == "smtp.ethereal.email"


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "\n".join(
            [
                "EMAIL_USER=events@example.edu",
                "EMAIL_PASSWORD=app-password",
                "EMAIL_HOST=smtp.example.edu",
                "EMAIL_PORT=465",
                "EMAIL_SECURE=true",
                "WORKSHOP_MAIL_DELIVERY__SEND_TIMEOUT_SECONDS=5",
                "UNRELATED=ignored",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.email.user == "events@example.edu"
    assert settings.email.host == "smtp.example.edu"
    assert settings.email.port == 465
    assert settings.email.secure is True
    assert settings.delivery.send_timeout_seconds == 5
    assert not settings.email.uses_test_account


def test_environment_wins_over_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("EMAIL_HOST=smtp.from-file.test\n", encoding="utf-8")
    monkeypatch.setenv("EMAIL_HOST", "smtp.from-env.test")
    monkeypatch.setenv("WORKSHOP_MAIL_LOGGING__LEVEL", "DEBUG")

    settings = load_app_settings(env_file=env_file)
    assert settings.email.host == "smtp.from-env.test"
    assert settings.logging.level == "DEBUG"


def test_empty_values_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EMAIL_HOST", "")
    monkeypatch.setenv("EMAIL_PORT", "")

    settings = load_app_settings()
    assert settings.email.host == "smtp.gmail.com"
    assert settings.email.port == 587


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("TRUE", True), ("false", False), ("yes", False), ("1", False)],
)
def test_only_literal_true_enables_implicit_tls(raw: str, expected: bool) -> None:
    assert EmailSettings(secure=raw).secure is expected


@pytest.mark.parametrize(
    ("user", "password"),
    [
        (None, None),
        ("events@example.edu", None),
        (None, "app-password"),
        ("", ""),
        ("YOUR_EMAIL_HERE", "app-password"),
        ("events@example.edu", "YOUR_APP_PASSWORD_HERE"),
    ],
)
def test_missing_or_placeholder_credentials_select_test_account(
    user: str | None, password: str | None
) -> None:
    assert EmailSettings(user=user, password=password).uses_test_account


def test_real_credentials_select_production() -> None:
    settings = EmailSettings(user="events@example.edu", password="app-password")
    assert not settings.uses_test_account
