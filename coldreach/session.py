"""
Outreach session state.

A Session holds everything one outreach run produces: the sender's
resume, the imported contacts, the generated (and edited) email
templates and the send tracking records. It can be exported to JSON and
restored, which is how the CLI carries work between commands.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .exceptions import MANUAL_RESUME_HINT, OutreachError
from .models import Contact, EmailTemplate, EmailTracking, ParsingMethod, ResumeData
from .services.contact_validator import create_manual_contact, renumber
from .services.template_service import apply_placeholders

logger = logging.getLogger(__name__)

# Wizard steps
STEP_RESUME = 1
STEP_CONTACTS = 2
STEP_GENERATE = 3
STEP_SEND = 4
STEP_DONE = 5


class Session:
    """Mutable state of one outreach run."""

    def __init__(
        self,
        resume: Optional[ResumeData] = None,
        contacts: Optional[list[Contact]] = None,
        templates: Optional[list[EmailTemplate]] = None,
        tracking: Optional[list[EmailTracking]] = None,
        current_step: int = STEP_RESUME,
    ):
        self.resume = resume
        self.contacts = list(contacts or [])
        self.templates = list(templates or [])
        self.tracking = list(tracking or [])
        self.current_step = current_step

    def _advance(self, step: int) -> None:
        self.current_step = max(self.current_step, step)

    # ========================================
    # Resume
    # ========================================

    def set_resume(self, resume: ResumeData) -> None:
        self.resume = resume
        self._advance(STEP_CONTACTS)

    def set_manual_resume(
        self,
        name: str,
        email: str,
        phone: str = "",
        experience: str = "",
        education: str = "",
        skills: Optional[list[str]] = None,
        editing: bool = False,
        **optional: Optional[str],
    ) -> ResumeData:
        """
        Store a hand-entered resume.

        Name and email are required. ``optional`` accepts title, location,
        linkedin, website and summary. Re-entering over an extracted
        resume (``editing=True``) is tagged Manual Edit.
        """
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email:
            raise OutreachError("Name and email are required", MANUAL_RESUME_HINT)

        unknown = set(optional) - set(ResumeData._OPTIONAL)
        if unknown:
            raise TypeError(f"Unknown resume field(s): {', '.join(sorted(unknown))}")

        resume = ResumeData(
            name=name,
            email=email,
            phone=phone or "",
            experience=experience or "Professional experience",
            education=education or "Education background",
            skills=[s.strip() for s in (skills or []) if s and s.strip()],
            parsing_method=ParsingMethod.MANUAL_EDIT if editing else ParsingMethod.MANUAL_INPUT,
            **{key: value or None for key, value in optional.items()},
        )
        self.set_resume(resume)
        return resume

    # ========================================
    # Contacts
    # ========================================

    def set_contacts(self, contacts: list[Contact]) -> None:
        self.contacts = renumber(contacts)
        self._advance(STEP_GENERATE)

    def add_manual_contact(
        self,
        name: str,
        email: str,
        company: str,
        title: Optional[str] = None,
    ) -> Contact:
        """Validate and append one contact; raises ContactValidationError."""
        contact = create_manual_contact(
            name, email, company, title, sequence_number=len(self.contacts) + 1
        )
        self.contacts.append(contact)
        return contact

    def remove_contact(self, sequence_number: int) -> None:
        self.contacts = renumber(c for c in self.contacts if c.sequence_number != sequence_number)

    # ========================================
    # Templates
    # ========================================

    def set_templates(self, templates: list[EmailTemplate]) -> None:
        self.templates = list(templates)
        self._advance(STEP_SEND)

    def get_template(self, template_id: str) -> EmailTemplate:
        for template in self.templates:
            if template.id == template_id:
                return template
        raise KeyError(template_id)

    def edit_template(
        self,
        template_id: str,
        subject: Optional[str] = None,
        body: Optional[str] = None,
    ) -> EmailTemplate:
        template = self.get_template(template_id)
        if subject is not None:
            template.subject = subject
        if body is not None:
            template.body = body
        return template

    def bulk_edit(self, subject: str, body: str) -> None:
        """Apply one subject/body to every template, filling placeholders per recipient."""
        for template in self.templates:
            template.subject = apply_placeholders(subject, template, self.resume)
            template.body = apply_placeholders(body, template, self.resume)
        logger.info(f"Bulk edited {len(self.templates)} template(s)")

    # ========================================
    # Tracking
    # ========================================

    def set_tracking(self, tracking: list[EmailTracking]) -> None:
        self.tracking = list(tracking)
        self._advance(STEP_DONE)

    def reset(self) -> None:
        self.resume = None
        self.contacts = []
        self.templates = []
        self.tracking = []
        self.current_step = STEP_RESUME

    # ========================================
    # Export / import
    # ========================================

    def to_dict(self) -> dict:
        return {
            "resume": self.resume.to_dict() if self.resume else None,
            "contacts": [c.to_dict() for c in self.contacts],
            "emailTemplates": [t.to_dict() for t in self.templates],
            "emailTracking": [t.to_dict() for t in self.tracking],
            "currentStep": self.current_step,
            "exportedAt": datetime.now().isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        resume = data.get("resume") or data.get("resumeData")
        return cls(
            resume=ResumeData.from_dict(resume) if resume else None,
            contacts=[Contact.from_dict(c) for c in data.get("contacts") or []],
            templates=[EmailTemplate.from_dict(t) for t in data.get("emailTemplates") or []],
            tracking=[EmailTracking.from_dict(t) for t in data.get("emailTracking") or []],
            current_step=int(data.get("currentStep") or STEP_RESUME),
        )

    def export_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "Session":
        try:
            return cls.from_dict(json.loads(text))
        except (ValueError, KeyError, TypeError) as e:
            raise OutreachError("Error importing data", "Please check the file format.") from e

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.export_json(), encoding="utf-8")
        logger.info(f"Session saved to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Session":
        return cls.from_json(Path(path).read_text(encoding="utf-8"))
