"""Command-line entry point for the workshop mail gateway."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from workshop_mail.core import (
    AppSettings,
    SendResult,
    configure_logging,
    load_app_settings,
)
from workshop_mail.gateway import EmailGateway


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Workshop transactional mail sender")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("info", help="Show the resolved mail configuration.")

    send = subparsers.add_parser("send", help="Send a single email.")
    send.add_argument("--to", required=True, help="Recipient address.")
    send.add_argument("--subject", required=True, help="Subject line.")
    body = send.add_mutually_exclusive_group(required=True)
    body.add_argument("--html", help="HTML body given inline.")
    body.add_argument("--html-file", type=Path, help="File containing the HTML body.")
    send.add_argument("--text", default=None, help="Plain text body (optional).")

    confirm = subparsers.add_parser(
        "confirm", help="Send a workshop registration confirmation."
    )
    confirm.add_argument("--email", required=True, help="Registrant address.")
    confirm.add_argument("--name", required=True, help="Registrant name.")
    confirm.add_argument("--subject", required=True, help="Subject line.")
    confirm.add_argument(
        "--template-file",
        type=Path,
        required=True,
        help="File containing the confirmation HTML.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    command = args.command or "info"
    gateway = EmailGateway(settings)
    if command == "info":
        print(f"Mode: {gateway.mode}")
        if gateway.mode == "production":
            print(f"SMTP host: {settings.email.host}:{settings.email.port}")
            print(f"Implicit TLS: {settings.email.secure}")
            print(f"Sender: {settings.email.user}")
        else:
            test_account = settings.test_account
            print(f"Test SMTP host: {test_account.host}:{test_account.port}")
        return 0

    try:
        body = _read_body(args)
    except OSError as exc:
        print(f"Failed: cannot read {exc.filename}: {exc.strerror}", file=sys.stderr)
        return 1

    try:
        if command == "send":
            result = asyncio.run(
                gateway.send_email(
                    to=args.to, subject=args.subject, html=body, text=args.text
                )
            )
        else:
            result = asyncio.run(
                gateway.send_workshop_confirmation(
                    email=args.email,
                    name=args.name,
                    subject=args.subject,
                    template=body,
                )
            )
    finally:
        gateway.close()
    return _report(result)


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    sys.exit(execute(args, settings))


def _read_body(args: argparse.Namespace) -> str:
    if args.command == "send":
        if args.html is not None:
            return args.html
        return args.html_file.read_text(encoding="utf-8")
    return args.template_file.read_text(encoding="utf-8")


def _report(result: SendResult) -> int:
    if result.success:
        print(f"Sent: {result.message_id}")
        return 0
    suffix = f" ({result.code})" if result.code else ""
    print(f"Failed: {result.error}{suffix}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    main()
