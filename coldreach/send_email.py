"""
SMTP integration for sending emails.

This module builds MIME messages (plain text, HTML alternative and an
optional resume attachment) and delivers them through smtplib.
"""

import logging
import smtplib
import socket
from dataclasses import dataclass
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from html import escape
from typing import Optional

from .config import config
from .exceptions import EmailSendError

logger = logging.getLogger(__name__)

APP_PASSWORD_HINT = (
    "Please check your email and App Password. Make sure you have enabled "
    "2-Step Verification and are using an App Password, not your regular Gmail password."
)


@dataclass(frozen=True)
class Attachment:
    """A file attached to every outgoing message (usually the resume)."""
    filename: str
    content: bytes
    content_type: str = "application/pdf"


def create_message(
    sender_name: str,
    sender_email: str,
    to: str,
    subject: str,
    body_text: str,
    attachment: Optional[Attachment] = None,
) -> MIMEMultipart:
    """
    Create an email message.

    Args:
        sender_name: Display name of sender.
        sender_email: Email address of sender.
        to: Recipient email address.
        subject: Email subject line.
        body_text: Plain text body; an HTML copy is added with line breaks.
        attachment: Optional file to attach.

    Returns:
        The MIME message, ready for ``SmtpTransport.send``.
    """
    message = MIMEMultipart("mixed")
    message["To"] = to
    message["From"] = formataddr((sender_name, sender_email))
    message["Subject"] = subject
    message["Message-ID"] = make_msgid(domain=sender_email.split("@")[-1] or None)

    alternative = MIMEMultipart("alternative")
    alternative.attach(MIMEText(body_text, "plain", "utf-8"))
    alternative.attach(MIMEText(escape(body_text).replace("\n", "<br>"), "html", "utf-8"))
    message.attach(alternative)

    if attachment:
        maintype, _, subtype = attachment.content_type.partition("/")
        part = MIMEBase(maintype or "application", subtype or "octet-stream")
        part.set_payload(attachment.content)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
        message.attach(part)

    return message


def describe_smtp_error(error: Exception) -> EmailSendError:
    """Map an smtplib/socket error to a user-readable EmailSendError."""
    if isinstance(error, EmailSendError):
        return error
    if isinstance(error, smtplib.SMTPAuthenticationError):
        return EmailSendError("Gmail authentication failed", APP_PASSWORD_HINT, code="EAUTH")
    if isinstance(error, (socket.timeout, TimeoutError)):
        return EmailSendError(
            "Email sending timed out",
            "The request took too long to complete. Please try again.",
            code="ETIMEDOUT",
        )
    if isinstance(error, smtplib.SMTPRecipientsRefused):
        return EmailSendError("Recipient address rejected", str(error), code="ERECIPIENT")
    # SMTPException subclasses OSError; only transport-level errors count here
    if isinstance(error, (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected)) or (
        isinstance(error, OSError) and not isinstance(error, smtplib.SMTPException)
    ):
        return EmailSendError(
            "Connection to the mail server failed",
            "Please check your internet connection and try again.",
            code="ECONNECTION",
        )
    return EmailSendError("Failed to send email", str(error))


class SmtpTransport:
    """
    Authenticated SMTP connection, used as a context manager.

    Usage:
        with SmtpTransport(user="me@gmail.com", password="app-password") as smtp:
            smtp.send(message)
    """

    def __init__(
        self,
        user: Optional[str] = None,
        password: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        use_tls: Optional[bool] = None,
        timeout: Optional[float] = None,
    ):
        self.user = user or config.SMTP_USER
        self.password = password or config.SMTP_PASSWORD
        self.host = host or config.SMTP_HOST
        self.port = port or config.SMTP_PORT
        self.use_tls = config.SMTP_USE_TLS if use_tls is None else use_tls
        self.timeout = timeout or config.SMTP_TIMEOUT
        self._smtp: Optional[smtplib.SMTP] = None

    def open(self) -> "SmtpTransport":
        """Connect and log in, raising EmailSendError on failure."""
        if not self.user or not self.password:
            raise EmailSendError("Missing required fields", "Sender email and password are required.", code="EAUTH")

        logger.info(f"Verifying SMTP connection to {self.host}:{self.port}...")
        smtp = None
        try:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            smtp.ehlo()
            if self.use_tls:
                smtp.starttls()
                smtp.ehlo()
            smtp.login(self.user, self.password)
        except Exception as e:
            logger.error(f"SMTP verification failed: {e}")
            if smtp is not None:
                smtp.close()
            raise describe_smtp_error(e) from e

        self._smtp = smtp
        return self

    def send(self, message: MIMEMultipart) -> str:
        """Send one message; returns its Message-ID."""
        if self._smtp is None:
            raise EmailSendError("SMTP connection is not open")
        self._smtp.send_message(message)
        return message["Message-ID"]

    def close(self) -> None:
        if self._smtp is not None:
            try:
                self._smtp.quit()
            except smtplib.SMTPException as e:
                logger.debug(f"Error closing SMTP connection: {e}")
            self._smtp = None

    def __enter__(self) -> "SmtpTransport":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()
