"""
Main outreach orchestration module.

This module coordinates email generation for all contacts and the
session-level send step used by the CLI.
"""

import logging
import time
from typing import Callable, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from .models import Contact, EmailTemplate, GeneratedEmail, ResumeData
from .send_email import Attachment
from .services.email_service import EmailService, Transport
from .services.template_service import generate_template_email

logger = logging.getLogger(__name__)

# Console for rich output
console = Console()

ProgressCallback = Callable[[int, int], None]


def _default_delay(adapter) -> float:
    """Pause between provider calls: the limiter's spacing, or none in template mode."""
    if not getattr(adapter, "is_configured", False):
        return 0.0
    limiter = getattr(adapter, "limiter", None)
    return float(limiter.min_interval) if limiter is not None else 0.0


def generate_batch_emails(
    contacts: list[Contact],
    resume: ResumeData,
    adapter,
    on_progress: Optional[ProgressCallback] = None,
    delay: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[GeneratedEmail]:
    """
    Generate one email per contact, in input order.

    Args:
        contacts: Recipients.
        resume: Sender's resume data.
        adapter: Anything with ``generate_email(contact, resume) -> (subject, body)``.
        on_progress: Called once per contact with (completed, total).
        delay: Seconds to wait before every contact except the first.
        sleep: Injectable sleep function.

    Returns:
        A GeneratedEmail for every contact. A contact whose generation
        raises gets a template email instead.
    """
    if delay is None:
        delay = _default_delay(adapter)

    results = []
    total = len(contacts)

    for i, contact in enumerate(contacts):
        if i > 0 and delay > 0:
            sleep(delay)

        try:
            subject, body = adapter.generate_email(contact, resume)
        except Exception as e:
            logger.error(f"Error generating email for {contact.company}: {e}")
            subject, body = generate_template_email(contact, resume)

        results.append(GeneratedEmail(contact=contact, subject=subject, body=body))

        if on_progress:
            on_progress(i + 1, total)

    logger.info(f"Generated {len(results)} email(s)")
    return results


def build_email_templates(results: list[GeneratedEmail]) -> list[EmailTemplate]:
    """Turn batch results into editable templates with fresh ids."""
    return [
        EmailTemplate(
            subject=result.subject,
            body=result.body,
            company=result.contact.company,
            contact=result.contact,
        )
        for result in results
    ]


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def run_generation(
    contacts: list[Contact],
    resume: ResumeData,
    adapter,
    delay: Optional[float] = None,
) -> list[EmailTemplate]:
    """Generate emails for every contact with a progress bar."""
    with _progress() as progress:
        task = progress.add_task("Generating emails...", total=len(contacts))

        def advance(completed: int, total: int) -> None:
            progress.update(task, completed=completed, description=f"Generated {completed}/{total}")

        results = generate_batch_emails(contacts, resume, adapter, on_progress=advance, delay=delay)

    return build_email_templates(results)


def run_send(
    templates: list[EmailTemplate],
    transport: Transport,
    sender_email: str,
    sender_name: Optional[str] = None,
    attachment: Optional[Attachment] = None,
):
    """Send every template with a progress bar and per-message console output."""
    service = EmailService(transport, sender_email, sender_name)

    with _progress() as progress:
        task = progress.add_task("Sending emails...", total=len(templates))

        def advance(completed, total, tracking):
            if tracking.error:
                console.print(f"  [red]✗ {tracking.contact.email}: {tracking.error}[/red]")
            else:
                console.print(f"  [green]✓ Sent to {tracking.contact.email}[/green]")
            progress.update(task, completed=completed)

        tracking = service.send_all(templates, attachment=attachment, on_progress=advance)

    return tracking, service.stats(tracking)
