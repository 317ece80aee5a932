"""SMTP client for sending emails with proper error handling and security."""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workshop_mail.core import OutgoingEmail, SmtpSettings

LOGGER = logging.getLogger(__name__)


class SmtpError(Exception):
    """Base exception for SMTP operations.

    Raised when SMTP connection, authentication, or sending fails. ``code``
    carries a short symbolic reason such as ``EAUTH`` or ``ECONNECTION``.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class SmtpClient:
    """Single SMTP connection able to send several messages.

    Provides context manager interface for automatic connection management.
    Supports both implicit TLS and opportunistic STARTTLS connections.

    Example:
        >>> settings = SmtpSettings(host="smtp.gmail.com", ...)
        >>> with SmtpClient(settings) as client:
        ...     client.send(message)
    """

    def __init__(self, settings: SmtpSettings) -> None:
        """Initialize SMTP client with configuration.

        Args:
            settings: Resolved SMTP connection settings
        """
        self._settings = settings
        self._connection: smtplib.SMTP | None = None
        self.messages_sent = 0

    def __enter__(self) -> SmtpClient:
        """Enter context manager, establishing connection."""
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        """Exit context manager, closing connection."""
        self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> None:
        """Establish SMTP connection and authenticate.

        Raises:
            SmtpError: If connection or authentication fails
        """
        settings = self._settings
        if not settings.host:
            raise SmtpError("SMTP host not configured", code="ECONNECTION")

        LOGGER.info("Attempting SMTP connection to %s:%d", settings.host, settings.port)

        try:
            if settings.secure:
                LOGGER.debug("Using implicit TLS for SMTP connection")
                self._connection = smtplib.SMTP_SSL(
                    settings.host,
                    settings.port,
                    timeout=settings.connection_timeout_seconds,
                )
            else:
                self._connection = smtplib.SMTP(
                    settings.host,
                    settings.port,
                    timeout=settings.connection_timeout_seconds,
                )
                self._connection.ehlo()
                if self._connection.has_extn("starttls"):
                    LOGGER.debug("Upgrading SMTP connection with STARTTLS")
                    self._connection.starttls()
                    self._connection.ehlo()

            # Connect timeout no longer applies once the session is up
            if self._connection.sock is not None:
                self._connection.sock.settimeout(settings.socket_timeout_seconds)

            if settings.username and settings.password:
                LOGGER.debug("Authenticating as %s", settings.username)
                self._connection.login(settings.username, settings.password)
                LOGGER.info("SMTP authentication successful")

            LOGGER.info("Connected to SMTP server: %s", settings.host)

        except smtplib.SMTPAuthenticationError as exc:
            LOGGER.error("SMTP authentication failed: %s", exc)
            self._abort()
            raise SmtpError(f"SMTP authentication failed: {exc}", code="EAUTH") from exc
        except smtplib.SMTPConnectError as exc:
            LOGGER.error("SMTP connection failed: %s", exc)
            self._abort()
            raise SmtpError(
                f"Failed to connect to SMTP server: {exc}", code="ECONNECTION"
            ) from exc
        except smtplib.SMTPException as exc:
            LOGGER.error("SMTP error: %s", exc)
            self._abort()
            raise SmtpError(f"SMTP error: {exc}", code="EPROTOCOL") from exc
        except TimeoutError as exc:
            LOGGER.error("Timed out connecting to SMTP server: %s", exc)
            self._abort()
            raise SmtpError(f"Connection timeout: {exc}", code="ETIMEDOUT") from exc
        except OSError as exc:
            LOGGER.error("Network error connecting to SMTP server: %s", exc)
            self._abort()
            raise SmtpError(f"Network error: {exc}", code="ECONNECTION") from exc

    def disconnect(self) -> None:
        """Close SMTP connection gracefully."""
        if self._connection:
            try:
                self._connection.quit()
                LOGGER.debug("SMTP connection closed")
            except (smtplib.SMTPException, OSError) as exc:
                LOGGER.warning("Error closing SMTP connection: %s", exc)
            finally:
                self._connection = None

    def _abort(self) -> None:
        """Drop a half-open connection without the QUIT handshake."""
        if self._connection:
            try:
                self._connection.close()
            finally:
                self._connection = None

    def send(self, message: OutgoingEmail) -> str:
        """Send an email message.

        Args:
            message: The email message to send

        Returns:
            The Message-ID header assigned to the outgoing message

        Raises:
            SmtpError: If sending fails or not connected
        """
        if not self._connection:
            raise SmtpError("Not connected to SMTP server", code="ECONNECTION")

        LOGGER.info("Preparing to send email to %s: %s", message.to, message.subject)

        try:
            mime_message = self._build_mime_message(message)
            LOGGER.debug("Email headers: %s", dict(mime_message.items()))

            refused = self._connection.send_message(mime_message)
            self.messages_sent += 1

            if refused:
                LOGGER.warning("Some recipients were refused: %s", refused)
                raise SmtpError(
                    f"Some recipients were refused: {refused}", code="EENVELOPE"
                )

        except smtplib.SMTPRecipientsRefused as exc:
            LOGGER.error("All recipients refused: %s", exc)
            raise SmtpError(f"All recipients refused: {exc}", code="EENVELOPE") from exc
        except smtplib.SMTPSenderRefused as exc:
            LOGGER.error("Sender refused: %s", exc)
            raise SmtpError(f"Sender refused: {exc}", code="EENVELOPE") from exc
        except smtplib.SMTPDataError as exc:
            LOGGER.error("SMTP data error: %s", exc)
            raise SmtpError(f"SMTP data error: {exc}", code="EMESSAGE") from exc
        except smtplib.SMTPServerDisconnected as exc:
            LOGGER.error("SMTP server disconnected: %s", exc)
            self._connection = None
            raise SmtpError(
                f"Connection closed unexpectedly: {exc}", code="ECONNECTION"
            ) from exc
        except smtplib.SMTPException as exc:
            LOGGER.error("Failed to send email: %s", exc)
            raise SmtpError(f"Failed to send email: {exc}", code="EPROTOCOL") from exc
        except TimeoutError as exc:
            LOGGER.error("SMTP socket timed out: %s", exc)
            self._abort()
            raise SmtpError(f"Socket timeout: {exc}", code="ETIMEDOUT") from exc

        message_id = mime_message["Message-ID"]
        LOGGER.info("Email sent to %s: %s (%s)", message.to, message.subject, message_id)
        return message_id

    def _build_mime_message(self, message: OutgoingEmail) -> MIMEMultipart:
        """Build MIME message from OutgoingEmail.

        Args:
            message: Source email message

        Returns:
            MIME multipart message ready to send
        """
        mime_msg = MIMEMultipart("alternative")

        mime_msg["From"] = formataddr((message.sender_name, message.sender_address))
        mime_msg["To"] = message.to
        mime_msg["Subject"] = message.subject
        mime_msg["Date"] = formatdate(localtime=True)
        mime_msg["Message-ID"] = make_msgid(domain=_sender_domain(message))

        for name, value in message.headers.items():
            mime_msg[name] = value

        # Plain part first so clients prefer the HTML alternative
        mime_msg.attach(MIMEText(message.text, "plain", "utf-8"))
        mime_msg.attach(MIMEText(message.html, "html", "utf-8"))
        LOGGER.debug(
            "Built MIME message: text %d chars, html %d chars",
            len(message.text),
            len(message.html),
        )

        return mime_msg


def _sender_domain(message: OutgoingEmail) -> str | None:
    _, _, domain = message.sender_address.rpartition("@")
    return domain or None


__all__ = ["SmtpClient", "SmtpError"]
