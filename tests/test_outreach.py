"""
Tests for batch generation, email sending and session state.

Run with: pytest tests/
"""

import json
import os
import smtplib
import socket
import sys
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

# Add project to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from coldreach.ai_adapter import AIExtractionAdapter
from coldreach.exceptions import ContactValidationError, EmailSendError, OutreachError
from coldreach.models import (
    Contact,
    EmailStatus,
    EmailTemplate,
    EmailTracking,
    GeneratedEmail,
    ParsingMethod,
    ResumeData,
)
from coldreach.outreach import build_email_templates, generate_batch_emails
from coldreach.rate_limiter import RateLimiter
from coldreach.send_email import Attachment, SmtpTransport, create_message, describe_smtp_error
from coldreach.services.email_service import EmailService
from coldreach.session import STEP_CONTACTS, STEP_DONE, STEP_RESUME, Session


def _contacts(n=3):
    return [
        Contact(
            sequence_number=i,
            name=f"Person {i}",
            email=f"person{i}@corp{i}.com",
            title="Recruiter",
            company=f"Corp {i}",
        )
        for i in range(1, n + 1)
    ]


def _resume():
    return ResumeData(
        name="Jane Doe",
        email="jane@mail.com",
        phone="555-123-4567",
        experience="five years of backend work",
        education="BS CS",
        skills=["Python", "SQL", "AWS"],
        parsing_method=ParsingMethod.AI,
    )


def _templates(n=3):
    return build_email_templates([
        GeneratedEmail(contact=c, subject=f"Hello {c.company}", body=f"Hi {c.name},\nLet's talk.")
        for c in _contacts(n)
    ])


class FakeAdapter:
    """Adapter returning canned emails; raises for selected companies."""

    is_configured = False

    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.calls = []

    def generate_email(self, contact, resume):
        self.calls.append(contact.company)
        if contact.company in self.fail_for:
            raise RuntimeError("boom")
        return f"Subject for {contact.company}", f"Body for {contact.name}"


class FakeTransport:
    """Records messages; raises for selected recipients."""

    def __init__(self, fail_for=None):
        self.fail_for = fail_for or {}
        self.sent = []

    def send(self, message):
        error = self.fail_for.get(message["To"])
        if error:
            raise error
        self.sent.append(message)
        return message["Message-ID"]


class TestBatchGeneration:
    """Tests for the batch orchestrator."""

    def test_one_result_per_contact_in_order(self):
        """Test one email per contact, in contact order."""
        contacts = _contacts(4)

        results = generate_batch_emails(contacts, _resume(), FakeAdapter(), delay=0)

        assert len(results) == 4
        assert [r.contact for r in results] == contacts
        assert results[2].subject == "Subject for Corp 3"

    def test_progress_called_once_per_contact(self):
        """Test progress is reported after each contact."""
        progress = []

        generate_batch_emails(_contacts(3), _resume(), FakeAdapter(), on_progress=lambda c, t: progress.append((c, t)), delay=0)

        assert progress == [(1, 3), (2, 3), (3, 3)]

    def test_failure_replaced_with_template(self):
        """Test a failed contact gets a template email."""
        adapter = FakeAdapter(fail_for={"Corp 2"})

        results = generate_batch_emails(_contacts(3), _resume(), adapter, delay=0)

        assert adapter.calls == ["Corp 1", "Corp 2", "Corp 3"]
        assert "Corp 2" in results[1].subject + results[1].body
        assert "Dear Person 2" in results[1].body
        assert results[2].subject == "Subject for Corp 3"

    def test_sleeps_between_contacts_only(self):
        """Test the delay runs between contacts, not after the last."""
        sleep = MagicMock()

        generate_batch_emails(_contacts(3), _resume(), FakeAdapter(), delay=4.0, sleep=sleep)

        assert sleep.call_count == 2
        sleep.assert_called_with(4.0)

    def test_default_delay_from_limiter(self):
        """Test the default delay is the limiter interval."""
        sleep = MagicMock()
        client = MagicMock()
        client.chat.completions.create.return_value.choices = [MagicMock()]
        client.chat.completions.create.return_value.choices[0].message.content = '{"subject": "s", "body": "b"}'
        adapter = AIExtractionAdapter(client=client, limiter=RateLimiter(min_interval=2.5))

        generate_batch_emails(_contacts(2), _resume(), adapter, sleep=sleep)

        sleep.assert_called_once_with(2.5)

    def test_template_mode_does_not_sleep(self):
        """Test template mode has no delay."""
        sleep = MagicMock()

        generate_batch_emails(_contacts(3), _resume(), FakeAdapter(), sleep=sleep)

        sleep.assert_not_called()

    def test_quota_errors_do_not_stop_batch(self):
        """Test provider quota errors keep the batch going."""
        client = MagicMock()
        client.chat.completions.create.side_effect = Exception("You exceeded your current quota")
        adapter = AIExtractionAdapter(client=client, limiter=RateLimiter(min_interval=0))

        results = generate_batch_emails(_contacts(2), _resume(), adapter, delay=0)

        assert len(results) == 2
        assert all("Dear Person" in r.body for r in results)
        assert client.chat.completions.create.call_count == 2

    def test_empty_batch(self):
        """Test an empty contact list."""
        progress = MagicMock()

        assert generate_batch_emails([], _resume(), FakeAdapter(), on_progress=progress) == []
        progress.assert_not_called()

    def test_build_email_templates(self):
        """Test generated emails become editable templates."""
        templates = _templates(2)

        assert [t.company for t in templates] == ["Corp 1", "Corp 2"]
        assert templates[0].id != templates[1].id


class TestCreateMessage:
    """Tests for MIME message construction."""

    def test_headers_and_parts(self):
        """Test message headers and text/HTML parts."""
        msg = create_message("Jane Doe", "jane@mail.com", "bob@corp.com", "Hello", "Line one\nLine <two>")

        assert msg["To"] == "bob@corp.com"
        assert msg["From"] == "Jane Doe <jane@mail.com>"
        assert msg["Subject"] == "Hello"
        assert msg["Message-ID"]

        plain, html = msg.get_payload()[0].get_payload()
        assert plain.get_payload(decode=True).decode() == "Line one\nLine <two>"
        assert html.get_payload(decode=True).decode() == "Line one<br>Line &lt;two&gt;"

    def test_attachment(self):
        """Test the resume is attached as a PDF."""
        attachment = Attachment(filename="resume.pdf", content=b"%PDF-1.4")

        msg = create_message("Jane", "jane@mail.com", "bob@corp.com", "Hi", "Body", attachment=attachment)

        part = msg.get_payload()[1]
        assert part.get_filename() == "resume.pdf"
        assert part.get_content_type() == "application/pdf"
        assert part.get_payload(decode=True) == b"%PDF-1.4"


class TestSmtp:
    """Tests for the SMTP transport and error mapping."""

    @pytest.mark.parametrize("error,code", [
        (smtplib.SMTPAuthenticationError(535, b"bad credentials"), "EAUTH"),
        (socket.timeout("timed out"), "ETIMEDOUT"),
        (ConnectionRefusedError("refused"), "ECONNECTION"),
        (smtplib.SMTPServerDisconnected("gone"), "ECONNECTION"),
        (smtplib.SMTPDataError(554, b"rejected"), "UNKNOWN_ERROR"),
    ])
    def test_describe_smtp_error(self, error, code):
        """Test SMTP errors map to error codes."""
        assert describe_smtp_error(error).code == code

    def test_auth_error_mentions_app_password(self):
        """Test authentication errors point to App Passwords."""
        error = describe_smtp_error(smtplib.SMTPAuthenticationError(535, b"bad"))

        assert "App Password" in error.details

    @patch("coldreach.send_email.smtplib.SMTP")
    def test_context_manager(self, mock_smtp_class):
        """Test connect, login, send and quit."""
        smtp = mock_smtp_class.return_value

        with SmtpTransport(user="jane@mail.com", password="app-pass", host="smtp.test", port=587, use_tls=True) as transport:
            transport.send(create_message("Jane", "jane@mail.com", "bob@corp.com", "Hi", "Body"))

        mock_smtp_class.assert_called_once_with("smtp.test", 587, timeout=transport.timeout)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("jane@mail.com", "app-pass")
        smtp.send_message.assert_called_once()
        smtp.quit.assert_called_once()

    @patch("coldreach.send_email.smtplib.SMTP")
    def test_login_failure_raises(self, mock_smtp_class):
        """Test a login failure raises and closes the connection."""
        mock_smtp_class.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad")

        with pytest.raises(EmailSendError) as exc_info:
            SmtpTransport(user="jane@mail.com", password="wrong").open()

        assert exc_info.value.code == "EAUTH"
        mock_smtp_class.return_value.close.assert_called_once()

    @patch("coldreach.send_email.smtplib.SMTP")
    def test_starttls_failure_closes_connection(self, mock_smtp_class):
        """Test a STARTTLS failure closes the connection."""
        smtp = mock_smtp_class.return_value
        smtp.starttls.side_effect = smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")

        with pytest.raises(EmailSendError):
            SmtpTransport(user="jane@mail.com", password="app-pass", use_tls=True).open()

        smtp.close.assert_called_once()
        smtp.login.assert_not_called()

    @patch("coldreach.send_email.smtplib.SMTP")
    def test_connect_failure_has_nothing_to_close(self, mock_smtp_class):
        """Test a refused connection raises a connection error."""
        mock_smtp_class.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(EmailSendError) as exc_info:
            SmtpTransport(user="jane@mail.com", password="app-pass").open()

        assert exc_info.value.code == "ECONNECTION"
        mock_smtp_class.return_value.close.assert_not_called()

    def test_missing_credentials(self):
        """Test opening without credentials."""
        with pytest.raises(EmailSendError):
            SmtpTransport(user="", password="").open()


class TestEmailService:
    """Tests for sending with tracking."""

    def test_all_sent(self):
        """Test every message is sent and tracked."""
        transport = FakeTransport()
        service = EmailService(transport, "jane@mail.com", "Jane Doe", pause=0)

        tracking = service.send_all(_templates(3))

        assert [t.status for t in tracking] == [EmailStatus.SENT] * 3
        assert all(isinstance(t.sent_at, datetime) for t in tracking)
        assert [m["To"] for m in transport.sent] == ["person1@corp1.com", "person2@corp2.com", "person3@corp3.com"]

    def test_failure_does_not_stop_batch(self):
        """Test one failed message does not stop the rest."""
        transport = FakeTransport({"person2@corp2.com": smtplib.SMTPServerDisconnected("gone")})
        service = EmailService(transport, "jane@mail.com", pause=0)

        tracking = service.send_all(_templates(3))

        assert [t.status for t in tracking] == [EmailStatus.SENT, EmailStatus.FAILED, EmailStatus.SENT]
        assert tracking[1].sent_at is None
        assert "Connection" in tracking[1].error

    def test_pause_between_messages(self):
        """Test the pause between messages."""
        sleep = MagicMock()
        service = EmailService(FakeTransport(), "jane@mail.com", pause=2.0, sleep=sleep)

        service.send_all(_templates(3))

        assert sleep.call_count == 2
        sleep.assert_called_with(2.0)

    def test_progress(self):
        """Test progress is reported per message."""
        progress = []
        service = EmailService(FakeTransport(), "jane@mail.com", pause=0)

        service.send_all(_templates(2), on_progress=lambda done, total, t: progress.append((done, total, t.status)))

        assert progress == [(1, 2, EmailStatus.SENT), (2, 2, EmailStatus.SENT)]

    def test_attachment_on_every_message(self):
        """Test the attachment goes with every message."""
        transport = FakeTransport()
        service = EmailService(transport, "jane@mail.com", pause=0)

        service.send_all(_templates(2), attachment=Attachment("resume.pdf", b"%PDF"))

        assert all(m.get_payload()[1].get_filename() == "resume.pdf" for m in transport.sent)

    def test_stats(self):
        """Test sent, failed and success rate counts."""
        transport = FakeTransport({"person1@corp1.com": smtplib.SMTPDataError(554, b"no")})
        tracking = EmailService(transport, "jane@mail.com", pause=0).send_all(_templates(4))

        stats = EmailService.stats(tracking)

        assert stats == {"sent": 3, "failed": 1, "pending": 0, "success_rate": 75.0}

    def test_stats_empty(self):
        """Test stats for no messages."""
        assert EmailService.stats([])["success_rate"] == 0

    def test_tracking_transitions(self):
        """Test tracking moves from pending to sent or failed."""
        template = _templates(1)[0]
        tracking = EmailTracking(contact=template.contact, email_template=template)

        tracking.mark_failed("nope")

        assert tracking.status == EmailStatus.FAILED
        with pytest.raises(ValueError):
            tracking.mark_sent()


class TestSession:
    """Tests for session state and JSON export."""

    def test_set_contacts_renumbers(self):
        """Test setting contacts renumbers them."""
        session = Session()
        contacts = [c.with_sequence_number(9) for c in _contacts(2)]

        session.set_contacts(contacts)

        assert [c.sequence_number for c in session.contacts] == [1, 2]

    def test_add_manual_contact(self):
        """Test adding a contact by hand."""
        session = Session(contacts=_contacts(2))

        contact = session.add_manual_contact("Ann Lee", "ann@globex.com", "Globex")

        assert contact.sequence_number == 3
        assert session.contacts[-1] == contact
        with pytest.raises(ContactValidationError):
            session.add_manual_contact("Ann Lee", "ann-at-globex", "Globex")

    def test_remove_contact_renumbers(self):
        """Test removing a contact renumbers the rest."""
        session = Session(contacts=_contacts(3))

        session.remove_contact(2)

        assert [(c.sequence_number, c.name) for c in session.contacts] == [(1, "Person 1"), (2, "Person 3")]

    def test_manual_resume(self):
        """Test entering a resume by hand."""
        session = Session()

        resume = session.set_manual_resume("Jane Doe", "jane@mail.com", skills=["Python", " "], linkedin="li/jd")

        assert resume.parsing_method == ParsingMethod.MANUAL_INPUT
        assert resume.experience == "Professional experience"
        assert resume.skills == ["Python"]
        assert resume.linkedin == "li/jd"
        assert session.current_step == STEP_CONTACTS

    def test_manual_resume_edit(self):
        """Test editing a parsed resume."""
        resume = Session().set_manual_resume("Jane Doe", "jane@mail.com", editing=True)

        assert resume.parsing_method == ParsingMethod.MANUAL_EDIT

    def test_manual_resume_requires_name_and_email(self):
        """Test a manual resume needs name and email."""
        with pytest.raises(OutreachError):
            Session().set_manual_resume("Jane Doe", "  ")

    def test_edit_template(self):
        """Test editing one template."""
        session = Session(templates=_templates(2))
        template_id = session.templates[1].id

        session.edit_template(template_id, subject="New subject")

        assert session.templates[1].subject == "New subject"
        assert session.templates[1].body == "Hi Person 2,\nLet's talk."
        with pytest.raises(KeyError):
            session.edit_template("missing", body="x")

    def test_bulk_edit(self):
        """Test applying one subject and body to every template."""
        session = Session(resume=_resume(), templates=_templates(2))

        session.bulk_edit("Hello [Company Name]", "Hi [Contact Name], I'm [Your Name].")

        assert [t.subject for t in session.templates] == ["Hello Corp 1", "Hello Corp 2"]
        assert session.templates[1].body == "Hi Person 2, I'm Jane Doe."

    def test_json_round_trip(self, tmp_path):
        """Test saving and loading a session file."""
        session = Session(resume=_resume(), contacts=_contacts(2), templates=_templates(2))
        transport = FakeTransport({"person2@corp2.com": smtplib.SMTPDataError(554, b"no")})
        session.set_tracking(EmailService(transport, "jane@mail.com", pause=0).send_all(session.templates))

        path = tmp_path / "session.json"
        session.save(path)
        restored = Session.load(path)

        assert restored.resume == session.resume
        assert restored.contacts == session.contacts
        assert restored.templates == session.templates
        assert restored.tracking == session.tracking
        assert restored.current_step == STEP_DONE

    def test_export_keys(self):
        """Test the exported JSON keys."""
        data = json.loads(Session(resume=_resume(), contacts=_contacts(1)).export_json())

        assert set(data) == {"resume", "contacts", "emailTemplates", "emailTracking", "currentStep", "exportedAt"}
        assert data["resume"]["parsingMethod"] == "AI"
        assert data["contacts"][0]["sno"] == 1

    def test_bad_json(self):
        """Test importing malformed JSON."""
        with pytest.raises(OutreachError):
            Session.from_json("{not json")

    def test_reset(self):
        """Test reset returns to the first step."""
        session = Session(resume=_resume(), contacts=_contacts(1), templates=_templates(1), current_step=4)

        session.reset()

        assert session.resume is None
        assert session.contacts == []
        assert session.templates == []
        assert session.current_step == STEP_RESUME
