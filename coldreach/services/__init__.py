"""
Services layer for the Coldreach application.
"""

from .contact_service import ContactService, ContactFileKind, ParseResult
from .email_service import EmailService
from .resume_parser import extract_resume_fields, read_resume_text
from .template_service import apply_placeholders, generate_template_email

__all__ = [
    "ContactService",
    "ContactFileKind",
    "ParseResult",
    "EmailService",
    "extract_resume_fields",
    "read_resume_text",
    "apply_placeholders",
    "generate_template_email",
]
