"""
Record types for the outreach session.

Contacts, resume data, generated emails and send tracking are plain
dataclasses. ``to_dict``/``from_dict`` use the keys of the session export
format so records round-trip through JSON without loss.
"""

import enum
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional


DEFAULT_TITLE = "Not specified"


class ParsingMethod(enum.Enum):
    """Which strategy produced a ResumeData record."""
    AI = "AI"
    AI_FALLBACK = "AI (fallback)"
    AI_ERROR = "AI (error)"
    REGEX_FALLBACK = "Regex Fallback"
    MANUAL_INPUT = "Manual Input"
    MANUAL_EDIT = "Manual Edit"


class EmailStatus(enum.Enum):
    """Status of an individual email send attempt."""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    OPENED = "opened"
    REPLIED = "replied"


# Values a ResumeData carries when extraction did not find a real name.
SENTINEL_NAMES = frozenset({
    "Name not found",
    "Name extracted by AI",
    "AI extraction failed",
    "Name extracted from resume",
})
SENTINEL_EMAILS = frozenset({
    "email@example.com",
    "ai@example.com",
    "resume@example.com",
})


def new_id() -> str:
    return uuid.uuid4().hex


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class Contact:
    """A validated outreach recipient."""
    sequence_number: int
    name: str
    email: str
    title: str
    company: str

    def to_dict(self) -> dict:
        return {
            "sno": self.sequence_number,
            "name": self.name,
            "email": self.email,
            "title": self.title,
            "company": self.company,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Contact":
        return cls(
            sequence_number=int(data.get("sno", data.get("sequence_number", 1))),
            name=data["name"],
            email=data["email"],
            title=data.get("title") or DEFAULT_TITLE,
            company=data["company"],
        )

    def with_sequence_number(self, number: int) -> "Contact":
        return replace(self, sequence_number=number)


@dataclass
class ResumeData:
    """Structured resume information used to personalize emails."""
    name: str
    email: str
    experience: str
    education: str
    skills: list[str] = field(default_factory=list)
    parsing_method: ParsingMethod = ParsingMethod.REGEX_FALLBACK
    phone: str = ""
    title: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None
    summary: Optional[str] = None

    _OPTIONAL = ("title", "location", "linkedin", "website", "summary")

    @property
    def extraction_failed(self) -> bool:
        """True when the name is a sentinel rather than extracted data."""
        return not self.name or self.name in SENTINEL_NAMES

    @property
    def has_real_email(self) -> bool:
        return bool(self.email) and self.email not in SENTINEL_EMAILS

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "experience": self.experience,
            "education": self.education,
            "skills": list(self.skills),
            "parsingMethod": self.parsing_method.value,
        }
        for key in self._OPTIONAL:
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ResumeData":
        return cls(
            name=data.get("name", ""),
            email=data.get("email", ""),
            phone=data.get("phone") or "",
            experience=data.get("experience", ""),
            education=data.get("education", ""),
            skills=list(data.get("skills") or []),
            parsing_method=ParsingMethod(data.get("parsingMethod", ParsingMethod.MANUAL_INPUT.value)),
            **{key: data.get(key) for key in cls._OPTIONAL},
        )


@dataclass
class EmailTemplate:
    """A generated (and possibly user-edited) email for one contact."""
    subject: str
    body: str
    company: str
    contact: Contact
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subject": self.subject,
            "body": self.body,
            "company": self.company,
            "contact": self.contact.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EmailTemplate":
        return cls(
            id=data["id"],
            subject=data.get("subject", ""),
            body=data.get("body", ""),
            company=data.get("company", ""),
            contact=Contact.from_dict(data["contact"]),
        )


@dataclass
class EmailTracking:
    """One send attempt for one email template."""
    contact: Contact
    email_template: EmailTemplate
    status: EmailStatus = EmailStatus.PENDING
    sent_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    replied_at: Optional[datetime] = None
    error: Optional[str] = None
    id: str = field(default_factory=new_id)

    def mark_sent(self, when: Optional[datetime] = None) -> None:
        if self.status is not EmailStatus.PENDING:
            raise ValueError(f"Cannot mark {self.status.value} email as sent")
        self.status = EmailStatus.SENT
        self.sent_at = when or datetime.now()

    def mark_failed(self, error: str) -> None:
        if self.status is not EmailStatus.PENDING:
            raise ValueError(f"Cannot mark {self.status.value} email as failed")
        self.status = EmailStatus.FAILED
        self.error = error

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "contact": self.contact.to_dict(),
            "emailTemplate": self.email_template.to_dict(),
            "status": self.status.value,
        }
        for key, value in (
            ("sentAt", _iso(self.sent_at)),
            ("openedAt", _iso(self.opened_at)),
            ("repliedAt", _iso(self.replied_at)),
            ("error", self.error),
        ):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "EmailTracking":
        return cls(
            id=data["id"],
            contact=Contact.from_dict(data["contact"]),
            email_template=EmailTemplate.from_dict(data["emailTemplate"]),
            status=EmailStatus(data.get("status", "pending")),
            sent_at=_parse_iso(data.get("sentAt")),
            opened_at=_parse_iso(data.get("openedAt")),
            replied_at=_parse_iso(data.get("repliedAt")),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class Fragment:
    """A positioned piece of text from a PDF page (bottom-up y)."""
    text: str
    x: float
    y: float


@dataclass(frozen=True)
class GeneratedEmail:
    """One result of a batch generation pass."""
    contact: Contact
    subject: str
    body: str
