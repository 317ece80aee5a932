"""Email gateway: transport caching and non-raising send operations."""

from .cache import TransportCache
from .service import (
    DeliveryTimeoutError,
    EmailGateway,
    get_default_gateway,
    reset_default_gateway,
    send_email,
    send_workshop_confirmation,
)

__all__ = [
    "DeliveryTimeoutError",
    "EmailGateway",
    "TransportCache",
    "get_default_gateway",
    "reset_default_gateway",
    "send_email",
    "send_workshop_confirmation",
]
