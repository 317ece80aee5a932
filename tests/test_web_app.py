"""Tests for the HTTP surface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from workshop_mail.core.config import AppSettings, EmailSettings
from workshop_mail.gateway import EmailGateway
from workshop_mail.transport import SmtpError
from workshop_mail.web import create_app

from .fakes import FakeAccountProvider, RecordingFactory


def _client(factory: RecordingFactory) -> tuple[TestClient, EmailGateway]:
    settings = AppSettings(
        email=EmailSettings(user="events@example.edu", password="app-password")
    )
    gateway = EmailGateway(
        settings, transport_factory=factory, account_provider=FakeAccountProvider()
    )
    return TestClient(create_app(settings, gateway)), gateway


def test_health_reports_mode() -> None:
    client, _ = _client(RecordingFactory())
    with client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "mode": "production"}


def test_send_endpoint_returns_message_id() -> None:
    factory = RecordingFactory()
    client, _ = _client(factory)
    with client:
        response = client.post(
            "/api/email/send",
            json={
                "to": "student@example.com",
                "subject": "Hello",
                "html": "<p>Hi</p>",
            },
        )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message_id": "<1@fake.test>"}
    # Shutdown closes the cached transport.
    assert factory.built[0].closed


def test_send_endpoint_rejects_missing_fields() -> None:
    factory = RecordingFactory()
    client, _ = _client(factory)
    with client:
        response = client.post(
            "/api/email/send", json={"to": "student@example.com", "subject": "Hi"}
        )

    assert response.status_code == 422
    assert factory.built == []


def test_delivery_failure_maps_to_bad_gateway() -> None:
    error = SmtpError("Network error", "ECONNECTION")
    client, _ = _client(RecordingFactory(error=error))
    with client:
        response = client.post(
            "/api/email/send",
            json={"to": "student@example.com", "subject": "Hi", "html": "<p>Hi</p>"},
        )

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "error": "Network error",
        "code": "ECONNECTION",
    }


def test_workshop_confirmation_endpoint() -> None:
    factory = RecordingFactory()
    client, _ = _client(factory)
    with client:
        response = client.post(
            "/api/workshops/confirmation",
            json={
                "email": "student@example.com",
                "name": "Asha",
                "subject": "Workshop confirmed",
                "template": "<h1>See you there</h1>",
            },
        )

    assert response.status_code == 200
    message = factory.built[0].sent[0]
    assert message.to == "student@example.com"
    assert message.text == "See you there"
