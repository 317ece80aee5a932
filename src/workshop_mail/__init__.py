"""Transactional email gateway for workshop registrations."""

__version__ = "0.1.0"

from .core.models import SendResult  # noqa: E402
from .gateway import (  # noqa: E402
    EmailGateway,
    send_email,
    send_workshop_confirmation,
)

__all__ = [
    "EmailGateway",
    "SendResult",
    "__version__",
    "send_email",
    "send_workshop_confirmation",
]
