"""Single-entry transport cache with TTL support."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from workshop_mail.core.interfaces import MailTransport

LOGGER = logging.getLogger(__name__)


class TransportCache:
    """Holds at most one transport together with its creation time.

    ``clock`` must be monotonic; tests substitute a controllable one.
    """

    def __init__(
        self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        """Initialize empty cache."""
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._transport: MailTransport | None = None
        self._created_at = 0.0

    def get(self) -> MailTransport | None:
        """Return the cached transport if it is younger than the TTL."""
        if self._transport is None:
            return None
        age = self._clock() - self._created_at
        if age < self.ttl_seconds:
            LOGGER.debug("Reusing cached transport (age %.1fs)", age)
            return self._transport
        LOGGER.debug("Cached transport expired (age %.1fs)", age)
        return None

    def store(self, transport: MailTransport) -> None:
        """Cache ``transport`` stamped with the current time.

        A different transport already in the cache is closed.
        """
        previous = self._transport
        self._transport = transport
        self._created_at = self._clock()
        if previous is not None and previous is not transport:
            _close_quietly(previous)

    def clear(self) -> None:
        """Drop and close the cached transport."""
        previous = self._transport
        self._transport = None
        self._created_at = 0.0
        if previous is not None:
            _close_quietly(previous)

    @property
    def created_at(self) -> float | None:
        """Creation timestamp of the cached transport, if any."""
        return self._created_at if self._transport is not None else None


def _close_quietly(transport: MailTransport) -> None:
    try:
        transport.close()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        LOGGER.warning("Error closing replaced transport: %s", exc)


__all__ = ["TransportCache"]
