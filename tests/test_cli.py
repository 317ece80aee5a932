"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path

import pytest

from workshop_mail import cli
from workshop_mail.core.config import AppSettings, EmailSettings
from workshop_mail.gateway import EmailGateway

from .fakes import FakeAccountProvider, RecordingFactory


@pytest.fixture
def factory(monkeypatch: pytest.MonkeyPatch) -> RecordingFactory:
    recording = RecordingFactory()

    def build_gateway(settings: AppSettings) -> EmailGateway:
        return EmailGateway(
            settings,
            transport_factory=recording,
            account_provider=FakeAccountProvider(),
        )

    monkeypatch.setattr(cli, "EmailGateway", build_gateway)
    return recording


def _settings() -> AppSettings:
    return AppSettings(
        email=EmailSettings(user="events@example.edu", password="app-password")
    )


def test_info_reports_production_host(
    factory: RecordingFactory, capsys: pytest.CaptureFixture[str]
) -> None:
    args = cli.build_parser().parse_args(["info"])

    assert cli.execute(args, _settings()) == 0

    output = capsys.readouterr().out
    assert "Mode: production" in output
    assert "smtp.gmail.com:587" in output
    assert factory.built == []


def test_send_prints_message_id(
    factory: RecordingFactory, capsys: pytest.CaptureFixture[str]
) -> None:
    args = cli.build_parser().parse_args(
        ["send", "--to", "student@example.com", "--subject", "Hi", "--html", "<p>Hi</p>"]
    )

    assert cli.execute(args, _settings()) == 0

    assert "Sent: <1@fake.test>" in capsys.readouterr().out
    assert factory.built[0].closed


def test_confirm_reads_template_file(
    factory: RecordingFactory, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    template = tmp_path / "confirmation.html"
    template.write_text("<p>Welcome aboard</p>", encoding="utf-8")
    args = cli.build_parser().parse_args(
        [
            "confirm",
            "--email",
            "student@example.com",
            "--name",
            "Asha",
            "--subject",
            "Workshop confirmed",
            "--template-file",
            str(template),
        ]
    )

    assert cli.execute(args, _settings()) == 0

    assert factory.built[0].sent[0].text == "Welcome aboard"
    assert "Sent:" in capsys.readouterr().out


def test_failure_returns_non_zero(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        cli,
        "EmailGateway",
        lambda settings: EmailGateway(
            settings, transport_factory=RecordingFactory(error=RuntimeError("refused"))
        ),
    )
    args = cli.build_parser().parse_args(
        ["send", "--to", "student@example.com", "--subject", "Hi", "--html", "<p>Hi</p>"]
    )

    assert cli.execute(args, _settings()) == 1
    assert "Failed: refused" in capsys.readouterr().err


def test_missing_template_file_reports_failure(
    factory: RecordingFactory, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    args = cli.build_parser().parse_args(
        [
            "confirm",
            "--email",
            "student@example.com",
            "--name",
            "Asha",
            "--subject",
            "Workshop confirmed",
            "--template-file",
            str(tmp_path / "missing.html"),
        ]
    )

    assert cli.execute(args, _settings()) == 1

    assert "cannot read" in capsys.readouterr().err
    assert factory.built == []
