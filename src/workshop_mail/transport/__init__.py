"""Transport adapters for outbound mail delivery."""

from .ethereal import EtherealAccountProvider, TestAccountError
from .pool import PooledSmtpTransport
from .smtp_client import SmtpClient, SmtpError

__all__ = [
    "EtherealAccountProvider",
    "PooledSmtpTransport",
    "SmtpClient",
    "SmtpError",
    "TestAccountError",
]
