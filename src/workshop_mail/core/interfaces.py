"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from typing import Protocol

from .config import SmtpSettings
from .models import OutgoingEmail, TestAccount


class MailTransport(Protocol):
    """Reusable handle capable of delivering a message."""

    settings: SmtpSettings

    async def send(self, message: OutgoingEmail) -> str:
        """Deliver ``message`` and return the identifier reported for it."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any network resources."""
        raise NotImplementedError


class TransportFactory(Protocol):
    """Builds a transport for resolved connection settings."""

    def __call__(self, settings: SmtpSettings) -> MailTransport:
        raise NotImplementedError


class TestAccountProvider(Protocol):
    """Source of disposable mailbox credentials."""

    async def create_account(self) -> TestAccount:
        """Provision a new throwaway account."""
        raise NotImplementedError


__all__ = ["MailTransport", "TestAccountProvider", "TransportFactory"]
