"""
SMTP Connection Pool

Reuses authenticated SMTP sessions across messages so a burst of
registrations does not pay the connect/TLS/login cost for every email.

Features:
- Bounded number of open connections (default: 5)
- Connection rotation after a fixed number of messages (default: 100)
- Broken connections are dropped instead of returned to the pool
- Thread-safe; ``send`` runs the blocking SMTP work in a worker thread
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from queue import Empty, Queue
from threading import BoundedSemaphore, Lock

from workshop_mail.core.config import SmtpSettings
from workshop_mail.core.models import OutgoingEmail

from .smtp_client import SmtpClient

LOGGER = logging.getLogger(__name__)


class PooledSmtpTransport:
    """Thread-safe pool of SMTP clients implementing ``MailTransport``."""

    def __init__(
        self,
        settings: SmtpSettings,
        client_factory: Callable[[SmtpSettings], SmtpClient] = SmtpClient,
    ) -> None:
        """
        Initialize the pool. Connections are opened lazily on first use.

        Args:
            settings: Resolved SMTP connection settings
            client_factory: Builds an unconnected client (swapped in tests)
        """
        self.settings = settings
        self._client_factory = client_factory
        self._idle: Queue[SmtpClient] = Queue(maxsize=settings.max_connections)
        self._slots = BoundedSemaphore(settings.max_connections)
        self._lock = Lock()
        self._created_count = 0
        self._closed = False

        LOGGER.debug(
            "Initialized SMTP pool for %s:%d (max %d connections, %d messages each)",
            settings.host,
            settings.port,
            settings.max_connections,
            settings.max_messages_per_connection,
        )

    async def send(self, message: OutgoingEmail) -> str:
        """Deliver a message without blocking the event loop."""
        return await asyncio.to_thread(self.deliver, message)

    def deliver(self, message: OutgoingEmail) -> str:
        """
        Deliver a message on a pooled connection (blocking).

        Waits for a free slot when all connections are busy. A closed pool
        still delivers, on a connection that is retired right afterwards.

        Raises:
            SmtpError: If delivery fails
        """
        with self._slots:
            client = self._checkout()
            try:
                message_id = client.send(message)
            except Exception:
                client.disconnect()
                raise
            self._checkin(client)
            return message_id

    def _checkout(self) -> SmtpClient:
        """Take an idle healthy connection or open a new one."""
        while True:
            try:
                client = self._idle.get_nowait()
            except Empty:
                break
            if client.is_connected and not self._is_exhausted(client):
                LOGGER.debug("Reusing pooled SMTP connection")
                return client
            client.disconnect()

        client = self._client_factory(self.settings)
        client.connect()
        with self._lock:
            self._created_count += 1
            LOGGER.debug("Opened SMTP connection #%d", self._created_count)
        return client

    def _checkin(self, client: SmtpClient) -> None:
        """Return a connection to the pool, or retire it."""
        with self._lock:
            if self._closed or self._is_exhausted(client) or not client.is_connected:
                retire = True
            else:
                self._idle.put_nowait(client)
                retire = False
        if retire:
            LOGGER.debug("Retiring SMTP connection after %d messages", client.messages_sent)
            client.disconnect()

    def _is_exhausted(self, client: SmtpClient) -> bool:
        return client.messages_sent >= self.settings.max_messages_per_connection

    def close(self) -> None:
        """Close idle connections.

        Busy connections are closed when released; later deliveries run on
        one-off connections so senders holding a replaced pool still succeed.
        """
        with self._lock:
            if self._closed:
                return

            self._closed = True

            closed_count = 0
            while True:
                try:
                    client = self._idle.get_nowait()
                except Empty:
                    break
                client.disconnect()
                closed_count += 1

        LOGGER.info("Closed SMTP pool (%d connections closed)", closed_count)

    def __enter__(self) -> PooledSmtpTransport:
        """Enter context manager scope."""
        return self

    def __exit__(self, *args: object) -> None:
        """Exit context manager scope and close pool."""
        self.close()

    @property
    def idle_count(self) -> int:
        """Number of idle connections currently pooled."""
        return self._idle.qsize()

    @property
    def created_count(self) -> int:
        """Total connections opened over the pool's lifetime."""
        return self._created_count

    @property
    def is_closed(self) -> bool:
        """Check if pool is closed."""
        return self._closed


__all__ = ["PooledSmtpTransport"]
