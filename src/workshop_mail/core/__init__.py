"""Core utilities for configuration, logging, and shared models."""

from .config import (
    AppSettings,
    DeliverySettings,
    EmailSettings,
    SmtpSettings,
    load_app_settings,
)
from .logging import configure_logging
from .models import OutgoingEmail, SendResult, TestAccount

__all__ = [
    "AppSettings",
    "DeliverySettings",
    "EmailSettings",
    "OutgoingEmail",
    "SendResult",
    "SmtpSettings",
    "TestAccount",
    "configure_logging",
    "load_app_settings",
]
