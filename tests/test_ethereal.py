"""Tests for the disposable test account client."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from workshop_mail.core.config import TestAccountSettings
from workshop_mail.core.models import TestAccount
from workshop_mail.transport import EtherealAccountProvider, TestAccountError


def _provision(handler) -> TestAccount:
    async def run() -> TestAccount:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = EtherealAccountProvider(
                TestAccountSettings(api_url="https://api.test/"), client=client
            )
            return await provider.create_account()

    return asyncio.run(run())


def test_create_account_parses_credentials() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "status": "success",
                "user": "kyla.smith@ethereal.email",
                "pass": "s3cret",
                "smtp": {"host": "smtp.ethereal.email", "port": 587, "secure": False},
                "web": "https://ethereal.email",
            },
        )

    account = _provision(handler)

    assert account.user == "kyla.smith@ethereal.email"
    assert account.password == "s3cret"
    assert account.smtp_host == "smtp.ethereal.email"
    assert account.smtp_port == 587
    assert account.web_url == "https://ethereal.email"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.test/user"
    assert json.loads(request.content)["requestor"] == "workshop-mail"


def test_unsuccessful_status_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "error", "error": "quota"})

    with pytest.raises(TestAccountError, match="Invalid response") as excinfo:
        _provision(handler)

    assert excinfo.value.code == "EPROVISION"


def test_http_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(TestAccountError, match="Failed to create test account"):
        _provision(handler)


def test_invalid_json_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(TestAccountError, match="invalid JSON"):
        _provision(handler)
