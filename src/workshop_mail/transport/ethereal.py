"""Client for provisioning disposable Ethereal test mailboxes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from workshop_mail import __version__
from workshop_mail.core.config import TestAccountSettings
from workshop_mail.core.models import TestAccount

LOGGER = logging.getLogger(__name__)

REQUESTOR = "workshop-mail"


class TestAccountError(RuntimeError):
    """Raised when a disposable test account cannot be provisioned."""

    __test__ = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.code = "EPROVISION"


@dataclass(slots=True)
class EtherealAccountProvider:
    """Thin asynchronous client for the Ethereal account API.

    ``client`` may be supplied to share a connection pool or to mock the
    API in tests; otherwise a short-lived client is created per request.
    """

    settings: TestAccountSettings
    client: httpx.AsyncClient | None = None

    async def create_account(self) -> TestAccount:
        """Request a fresh test account from the provisioning API."""
        endpoint = self.settings.api_url.rstrip("/") + "/user"
        payload = {"requestor": REQUESTOR, "version": __version__}

        LOGGER.info("Requesting disposable test account from %s", endpoint)
        try:
            if self.client is not None:
                response = await self.client.post(
                    endpoint, json=payload, timeout=self.settings.timeout_seconds
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.settings.timeout_seconds
                ) as client:
                    response = await client.post(endpoint, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise TestAccountError(f"Failed to create test account: {exc}") from exc
        except ValueError as exc:
            raise TestAccountError("Test account API returned invalid JSON") from exc

        return _parse_account(data)


def _parse_account(data: Any) -> TestAccount:
    if not isinstance(data, dict) or data.get("status") != "success":
        raise TestAccountError("Invalid response from test account server")

    user = data.get("user")
    password = data.get("pass")
    if not isinstance(user, str) or not isinstance(password, str):
        raise TestAccountError("Test account response missing credentials")

    smtp = data.get("smtp") or {}
    account = TestAccount(
        user=user,
        password=password,
        smtp_host=smtp.get("host"),
        smtp_port=smtp.get("port"),
        smtp_secure=bool(smtp.get("secure", False)),
        web_url=data.get("web"),
    )
    LOGGER.info("Provisioned test account %s (inbox: %s)", account.user, account.web_url)
    return account


__all__ = ["EtherealAccountProvider", "TestAccountError"]
