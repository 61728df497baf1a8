"""
Command-line interface for cold outreach.

Usage:
    coldreach parse-contacts contacts.pdf      Preview parsed contacts
    coldreach parse-resume resume.pdf          Preview extracted resume data
    coldreach generate resume.pdf contacts.csv Generate emails into a session file
    coldreach send session.json                Send the emails in a session
    coldreach --help                           Show help
"""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .ai_adapter import AIExtractionAdapter
from .config import config
from .exceptions import OutreachError
from .models import Contact, ResumeData
from .send_email import Attachment, SmtpTransport
from .services import ContactService, read_resume_text
from .session import Session

console = Console()


def _fail(error: OutreachError) -> None:
    console.print(f"\n[red]✗ Error: {error.message}[/red]")
    if error.details:
        console.print(f"[dim]{error.details}[/dim]")
    raise click.Abort()


def _contacts_table(contacts: list[Contact]) -> Table:
    table = Table(title=f"{len(contacts)} contact(s)")
    for column in ("SNo", "Name", "Email", "Title", "Company"):
        table.add_column(column)
    for c in contacts:
        table.add_row(str(c.sequence_number), c.name, c.email, c.title, c.company)
    return table


def _resume_panel(resume: ResumeData) -> Panel:
    skills = ", ".join(resume.skills) or "-"
    return Panel(
        f"[bold]{resume.name}[/bold]\n"
        f"Email: {resume.email}\n"
        f"Phone: {resume.phone or '-'}\n"
        f"Skills: {skills}\n\n"
        f"[dim]Experience:[/dim] {resume.experience}\n"
        f"[dim]Education:[/dim] {resume.education}",
        title=f"📄 Resume ({resume.parsing_method.value})",
        border_style="blue",
    )


def _load_contacts(path: str) -> list[Contact]:
    file_path = Path(path)
    result = ContactService().parse_upload(file_path.read_bytes(), file_path.name)
    console.print(f"[dim]{result.message}[/dim]")
    return result.contacts


def _load_resume(path: str, adapter: AIExtractionAdapter) -> ResumeData:
    resume = adapter.extract_resume(read_resume_text(path))
    if resume.extraction_failed:
        console.print("[yellow]⚠️  Could not extract your name from the resume; edit the session file before sending.[/yellow]")
    return resume


def _sender_name(session: Session) -> Optional[str]:
    if session.resume and not session.resume.extraction_failed:
        return session.resume.name
    return None


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def main(verbose: bool) -> None:
    """
    Coldreach - Personalized cold email outreach.

    Import contacts, extract your resume, generate emails with AI and
    send them over SMTP.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


@main.command("parse-contacts")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Write the parsed contacts to a CSV file.")
def parse_contacts(file: str, output: Optional[str]) -> None:
    """Parse a PDF or CSV contact list."""
    try:
        contacts = _load_contacts(file)
    except OutreachError as e:
        _fail(e)

    console.print(_contacts_table(contacts))

    if output:
        Path(output).write_text(ContactService().export_to_csv(contacts), encoding="utf-8")
        console.print(f"[green]✓ Saved to {output}[/green]")


@main.command("parse-resume")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--no-ai", is_flag=True, help="Use the offline regex extractor.")
def parse_resume(file: str, no_ai: bool) -> None:
    """Extract structured data from a PDF or text resume."""
    try:
        resume = _load_resume(file, AIExtractionAdapter(enabled=not no_ai))
    except OutreachError as e:
        _fail(e)

    console.print(_resume_panel(resume))


@main.command()
@click.argument("resume", type=click.Path(exists=True, dir_okay=False))
@click.argument("contacts", type=click.Path(exists=True, dir_okay=False))
@click.option("--session", "session_file", type=click.Path(dir_okay=False),
              default=None, help="Session file to write. Defaults to session.json.")
@click.option("--no-ai", is_flag=True, help="Use template emails instead of the AI provider.")
def generate(resume: str, contacts: str, session_file: Optional[str], no_ai: bool) -> None:
    """Generate one email per contact and save them to a session file."""
    from . import outreach

    adapter = AIExtractionAdapter(enabled=not no_ai)
    session = Session()
    path = session_file or str(config.DEFAULT_SESSION_FILE)

    mode = "AI" if adapter.is_configured else "TEMPLATE"
    console.print(Panel(
        f"Mode: {mode}\n"
        f"Resume: {resume}\n"
        f"Contacts: {contacts}",
        title="✉️  Generating Emails",
        border_style="blue",
    ))

    try:
        session.set_resume(_load_resume(resume, adapter))
        session.set_contacts(_load_contacts(contacts))
    except OutreachError as e:
        _fail(e)

    session.set_templates(outreach.run_generation(session.contacts, session.resume, adapter))
    session.save(path)

    console.print(f"\n[green]✓ {len(session.templates)} email(s) saved to {path}[/green]")
    console.print("[dim]Review and edit the session file, then run 'coldreach send'.[/dim]")


@main.command()
@click.argument("session_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--attach", type=click.Path(exists=True, dir_okay=False), default=None,
              help="File to attach to every email (usually your resume).")
@click.option("--sender-name", default=None, help="Display name for the From header.")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
def send(session_file: str, attach: Optional[str], sender_name: Optional[str], yes: bool) -> None:
    """Send every email in a session file over SMTP."""
    from . import outreach

    try:
        session = Session.load(session_file)
    except OutreachError as e:
        _fail(e)

    if not session.templates:
        console.print("[yellow]No emails to send.[/yellow]")
        return

    sender_email = config.SMTP_USER
    console.print(Panel(
        f"[red bold]Sending {len(session.templates)} email(s)[/red bold]\n"
        f"From: {sender_email or '(SMTP_USER not set)'}\n"
        f"Attachment: {attach or 'none'}",
        title="🚀 Outreach Starting",
        border_style="blue",
    ))

    if not yes:
        if not click.confirm("⚠️  This will send REAL emails. Continue?"):
            console.print("[yellow]Aborted.[/yellow]")
            return

    attachment = None
    if attach:
        attachment = Attachment(filename=Path(attach).name, content=Path(attach).read_bytes())

    try:
        with SmtpTransport() as transport:
            tracking, stats = outreach.run_send(
                session.templates,
                transport,
                sender_email=sender_email,
                sender_name=sender_name or _sender_name(session),
                attachment=attachment,
            )
    except OutreachError as e:
        _fail(e)

    session.set_tracking(tracking)
    session.save(session_file)

    console.print(
        f"\n[green]✓ Sent {stats['sent']}[/green]  "
        f"[red]✗ Failed {stats['failed']}[/red]  "
        f"({stats['success_rate']}% success)"
    )


if __name__ == "__main__":
    main()
