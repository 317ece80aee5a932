"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class OutgoingEmail:
    """Fully resolved message ready to hand to a transport.

    Attributes:
        sender_name: Display name shown in the From header
        sender_address: Envelope and From address
        to: Recipient email address
        subject: Email subject line
        html: HTML body
        text: Plain text alternative
        headers: Extra headers added verbatim
    """

    sender_name: str
    sender_address: str
    to: str
    subject: str
    html: str
    text: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SendResult:
    """Outcome of a send attempt; failures never raise."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    code: str | None = None

    @classmethod
    def sent(cls, message_id: str) -> SendResult:
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error: str, code: str | None = None) -> SendResult:
        return cls(success=False, error=error, code=code)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly mapping with only the populated keys."""
        if self.success:
            return {"success": True, "message_id": self.message_id}
        payload: dict[str, Any] = {"success": False, "error": self.error}
        if self.code is not None:
            payload["code"] = self.code
        return payload


@dataclass(frozen=True, slots=True)
class TestAccount:
    """Disposable mailbox credentials issued by the test account service."""

    __test__ = False

    user: str
    password: str
    smtp_host: str | None = None
    smtp_port: int | None = None
    smtp_secure: bool = False
    web_url: str | None = None


__all__ = ["OutgoingEmail", "SendResult", "TestAccount"]
