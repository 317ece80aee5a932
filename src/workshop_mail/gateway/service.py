"""Email gateway: cached transport, timeout-guarded delivery, helpers."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from workshop_mail.core.config import (
    PLACEHOLDER_USER,
    AppSettings,
    SmtpSettings,
    load_app_settings,
)
from workshop_mail.core.interfaces import (
    MailTransport,
    TestAccountProvider,
    TransportFactory,
)
from workshop_mail.core.models import OutgoingEmail, SendResult, TestAccount
from workshop_mail.core.text_utils import strip_html_tags
from workshop_mail.transport import EtherealAccountProvider, PooledSmtpTransport

from .cache import TransportCache

LOGGER = logging.getLogger(__name__)

MISSING_EMAIL_PARAMETERS = "Missing required email parameters (to, subject, or html)"
MISSING_WORKSHOP_PARAMETERS = (
    "Missing required parameters for workshop confirmation email"
)
SEND_TIMED_OUT = "Email sending timed out"

PRIORITY_HEADERS: dict[str, str] = {
    "X-Priority": "1",
    "X-MSMail-Priority": "High",
    "Importance": "high",
}


class DeliveryTimeoutError(TimeoutError):
    """Raised when a delivery does not settle within the send timeout."""


class EmailGateway:
    """Builds, caches and uses a mail transport; never raises from sends.

    All collaborators are injectable so tests can substitute a fake
    transport, a fake account provider and a controllable clock.
    """

    def __init__(
        self,
        settings: AppSettings,
        *,
        transport_factory: TransportFactory = PooledSmtpTransport,
        account_provider: TestAccountProvider | None = None,
        cache: TransportCache | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._transport_factory = transport_factory
        self._account_provider = account_provider or EtherealAccountProvider(
            settings.test_account
        )
        self.cache = cache or TransportCache(
            settings.delivery.transport_ttl_seconds, clock
        )

    @property
    def mode(self) -> str:
        """``"test"`` when falling back to disposable accounts, else ``"production"``."""
        return "test" if self.settings.email.uses_test_account else "production"

    async def get_transport(self) -> MailTransport:
        """Return the cached transport or build and cache a new one.

        Raises:
            TestAccountError: If test mode is active and provisioning fails
        """
        cached = self.cache.get()
        if cached is not None:
            return cached

        if self.settings.email.uses_test_account:
            LOGGER.warning(
                "Email credentials not configured. Using ethereal.email for testing."
            )
            try:
                account = await self._account_provider.create_account()
            except Exception as exc:
                LOGGER.error("Failed to create test email account: %s", exc)
                raise
            smtp_settings = self._test_smtp_settings(account)
        else:
            smtp_settings = self._production_smtp_settings()

        transport = self._transport_factory(smtp_settings)
        self.cache.store(transport)
        LOGGER.info(
            "Created %s mail transport for %s:%d",
            self.mode,
            smtp_settings.host,
            smtp_settings.port,
        )
        return transport

    def _production_smtp_settings(self) -> SmtpSettings:
        email = self.settings.email
        delivery = self.settings.delivery
        return SmtpSettings(
            host=email.host,
            port=email.port,
            secure=email.secure,
            username=email.user,
            password=email.password,
            max_connections=delivery.max_connections,
            max_messages_per_connection=delivery.max_messages_per_connection,
            connection_timeout_seconds=delivery.connection_timeout_seconds,
            socket_timeout_seconds=delivery.socket_timeout_seconds,
        )

    def _test_smtp_settings(self, account: TestAccount) -> SmtpSettings:
        test_account = self.settings.test_account
        delivery = self.settings.delivery
        # One message per connection: the test endpoint is not pooled.
        return SmtpSettings(
            host=test_account.host,
            port=test_account.port,
            secure=False,
            username=account.user,
            password=account.password,
            max_connections=delivery.max_connections,
            max_messages_per_connection=1,
            connection_timeout_seconds=delivery.connection_timeout_seconds,
            socket_timeout_seconds=delivery.socket_timeout_seconds,
        )

    def _sender_address(self, transport: MailTransport) -> str:
        user = self.settings.email.user
        if user and user != PLACEHOLDER_USER:
            return user
        # Test mode: send as the account the transport logs in with.
        return transport.settings.username or ""

    def build_message(
        self,
        transport: MailTransport,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> OutgoingEmail:
        """Assemble the outgoing message with sender identity and priority headers."""
        return OutgoingEmail(
            sender_name=self.settings.email.sender_name,
            sender_address=self._sender_address(transport),
            to=to,
            subject=subject,
            html=html,
            text=text or strip_html_tags(html),
            headers=dict(PRIORITY_HEADERS),
        )

    async def send_email(
        self,
        to: str | None = None,
        subject: str | None = None,
        html: str | None = None,
        text: str | None = None,
    ) -> SendResult:
        """Send one message; every failure is returned, never raised."""
        if not to or not subject or not html:
            LOGGER.error("Missing required email parameters")
            return SendResult.failed(MISSING_EMAIL_PARAMETERS)

        try:
            transport = await self.get_transport()
            message = self.build_message(transport, to, subject, html, text)
            message_id = await self._deliver_with_timeout(transport, message)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("Error sending email: %s", exc)
            code = getattr(exc, "code", None)
            return SendResult.failed(str(exc), None if code is None else str(code))

        LOGGER.info("Email sent successfully: %s", message_id)
        return SendResult.sent(message_id)

    async def _deliver_with_timeout(
        self, transport: MailTransport, message: OutgoingEmail
    ) -> str:
        delivery = asyncio.ensure_future(transport.send(message))
        done, _ = await asyncio.wait(
            {delivery}, timeout=self.settings.delivery.send_timeout_seconds
        )
        if delivery not in done:
            # Left running; whatever it settles to belongs to no caller.
            delivery.add_done_callback(_discard_late_outcome)
            raise DeliveryTimeoutError(SEND_TIMED_OUT)
        return delivery.result()

    async def send_workshop_confirmation(
        self,
        email: str | None = None,
        name: str | None = None,
        subject: str | None = None,
        template: str | None = None,
    ) -> SendResult:
        """Send the workshop registration confirmation to ``email``.

        ``name`` is required but not interpolated anywhere; ``template`` is
        sent as-is.
        """
        if not email or not name or not subject or not template:
            return SendResult.failed(MISSING_WORKSHOP_PARAMETERS)

        return await self.send_email(to=email, subject=subject, html=template)

    def close(self) -> None:
        """Drop and close the cached transport."""
        self.cache.clear()


def _discard_late_outcome(task: asyncio.Future[str]) -> None:
    if task.cancelled():
        LOGGER.debug("Timed out delivery was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        LOGGER.debug("Timed out delivery failed later: %s", exc)
    else:
        LOGGER.debug("Timed out delivery completed later: %s", task.result())


_default_gateway: EmailGateway | None = None


def get_default_gateway() -> EmailGateway:
    """Return the process-wide gateway, creating it from settings on first use."""
    global _default_gateway  # pylint: disable=global-statement
    if _default_gateway is None:
        _default_gateway = EmailGateway(load_app_settings())
    return _default_gateway


def reset_default_gateway() -> None:
    """Close and forget the process-wide gateway."""
    global _default_gateway  # pylint: disable=global-statement
    if _default_gateway is not None:
        _default_gateway.close()
    _default_gateway = None


async def send_email(
    to: str | None = None,
    subject: str | None = None,
    html: str | None = None,
    text: str | None = None,
) -> SendResult:
    """Send a message through the default gateway."""
    return await get_default_gateway().send_email(
        to=to, subject=subject, html=html, text=text
    )


async def send_workshop_confirmation(
    email: str | None = None,
    name: str | None = None,
    subject: str | None = None,
    template: str | None = None,
) -> SendResult:
    """Send a workshop confirmation through the default gateway."""
    return await get_default_gateway().send_workshop_confirmation(
        email=email, name=name, subject=subject, template=template
    )


__all__ = [
    "DeliveryTimeoutError",
    "EmailGateway",
    "MISSING_EMAIL_PARAMETERS",
    "MISSING_WORKSHOP_PARAMETERS",
    "PRIORITY_HEADERS",
    "SEND_TIMED_OUT",
    "get_default_gateway",
    "reset_default_gateway",
    "send_email",
    "send_workshop_confirmation",
]
