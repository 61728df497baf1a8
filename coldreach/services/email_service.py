"""
Email sending service with delivery tracking.

Sends one message at a time with a fixed pause in between. Each attempt
gets an EmailTracking record that moves from pending to sent or failed;
a failure is recorded and the batch moves on.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional, Protocol

from ..config import config
from ..models import EmailStatus, EmailTemplate, EmailTracking
from ..send_email import Attachment, create_message, describe_smtp_error

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, message) -> str: ...


class EmailService:
    """Service for sending generated emails and tracking the outcome."""

    def __init__(
        self,
        transport: Transport,
        sender_email: str,
        sender_name: Optional[str] = None,
        pause: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.sender_email = sender_email
        self.sender_name = sender_name or sender_email.split("@")[0]
        self.pause = config.EMAIL_SEND_DELAY_SECONDS if pause is None else pause
        self.sleep = sleep

    def send_one(
        self,
        template: EmailTemplate,
        attachment: Optional[Attachment] = None,
    ) -> EmailTracking:
        """Send a single email and return its tracking record."""
        tracking = EmailTracking(contact=template.contact, email_template=template)

        try:
            message = create_message(
                sender_name=self.sender_name,
                sender_email=self.sender_email,
                to=template.contact.email,
                subject=template.subject,
                body_text=template.body,
                attachment=attachment,
            )
            self.transport.send(message)
            tracking.mark_sent(datetime.now())
            logger.info(f"Sent to {template.contact.email}")
        except Exception as e:
            error = describe_smtp_error(e)
            tracking.mark_failed(f"{error.message}: {error.details}" if error.details else error.message)
            logger.error(f"Failed for {template.contact.email}: {e}")

        return tracking

    def send_all(
        self,
        templates: list[EmailTemplate],
        attachment: Optional[Attachment] = None,
        on_progress: Optional[Callable[[int, int, EmailTracking], None]] = None,
    ) -> list[EmailTracking]:
        """
        Send every template in order, pausing between messages.

        Args:
            templates: Emails to send.
            attachment: Optional file attached to every message.
            on_progress: Called after each attempt with (done, total, tracking).

        Returns:
            One tracking record per template, in input order.
        """
        results = []
        total = len(templates)

        for i, template in enumerate(templates):
            if i > 0 and self.pause > 0:
                self.sleep(self.pause)

            tracking = self.send_one(template, attachment)
            results.append(tracking)

            if on_progress:
                on_progress(i + 1, total, tracking)

        return results

    @staticmethod
    def stats(tracking: list[EmailTracking]) -> dict:
        """Summarize a batch of tracking records."""
        sent = sum(1 for t in tracking if t.status is EmailStatus.SENT)
        failed = sum(1 for t in tracking if t.status is EmailStatus.FAILED)
        pending = sum(1 for t in tracking if t.status is EmailStatus.PENDING)

        return {
            "sent": sent,
            "failed": failed,
            "pending": pending,
            "success_rate": round(sent / len(tracking) * 100, 1) if tracking else 0,
        }
