"""
Turns candidate field lists into validated Contact records.

Rows are interpreted by how many fields they have:

    5+ fields: SNo, Name, Email, Title, Company
    4 fields:  Name, Email, Title, Company
    3 fields:  Name, Email, Company

Invalid rows are dropped (``None``), never raised, so a single bad line
can't abort an import. Manual entry goes through
``create_manual_contact`` which raises instead, naming the bad field.
"""

import logging
from typing import Iterable, Optional, Sequence

from ..exceptions import ContactValidationError
from ..models import Contact, DEFAULT_TITLE

_QUOTE_CHARS = "\"'"

logger = logging.getLogger(__name__)


def _unquote(value: str) -> str:
    """Trim and remove one layer of surrounding quote characters."""
    value = (value or "").strip()
    if value[:1] in _QUOTE_CHARS and value:
        value = value[1:]
    if value[-1:] in _QUOTE_CHARS and value:
        value = value[:-1]
    return value.strip()


def is_valid_email(email: str) -> bool:
    """Exactly one '@' with at least one '.' somewhere after it."""
    if email.count("@") != 1:
        return False
    local, domain = email.split("@")
    return bool(local) and "." in domain


def _check(name: str, email: str, company: str) -> Optional[tuple[str, str]]:
    """Return (field, message) for the first failing rule, else None."""
    if len(name) < 2:
        return "name", f'Invalid name: "{name}"'
    if not is_valid_email(email):
        return "email", f'Invalid email: "{email}"'
    if len(company) < 2:
        return "company", f'Invalid company: "{company}"'
    return None


def _parse_serial(value: str) -> int:
    try:
        return max(int(value), 1)
    except ValueError:
        return 1


def validate_fields(fields: Sequence[str], line_number: Optional[int] = None) -> Optional[Contact]:
    """
    Build a Contact from raw fields, or return None if the row is invalid.

    The returned sequence number is the parsed serial (or 1); callers
    renumber the final list with ``renumber``.
    """
    parts = [_unquote(f) for f in fields]
    where = f"Line {line_number}" if line_number is not None else "Row"

    if len(parts) < 3:
        logger.debug(f"{where}: insufficient fields ({len(parts)})")
        return None

    serial, title = 1, ""
    if len(parts) >= 5:
        serial = _parse_serial(parts[0])
        name, email, title, company = parts[1:5]
    elif len(parts) == 4:
        name, email, title, company = parts
    else:
        name, email, company = parts

    problem = _check(name, email, company)
    if problem:
        logger.debug(f"{where}: {problem[1]}")
        return None

    return Contact(
        sequence_number=serial,
        name=name,
        email=email,
        title=title or DEFAULT_TITLE,
        company=company,
    )


def renumber(contacts: Iterable[Contact]) -> list[Contact]:
    """Assign dense sequence numbers 1..N in the given order."""
    return [c.with_sequence_number(i) for i, c in enumerate(contacts, start=1)]


def create_manual_contact(
    name: str,
    email: str,
    company: str,
    title: Optional[str] = None,
    sequence_number: int = 1,
) -> Contact:
    """Validate a manually entered contact, raising on the first bad field."""
    name, email, company = _unquote(name), _unquote(email), _unquote(company)
    problem = _check(name, email, company)
    if problem:
        raise ContactValidationError(*problem)

    return Contact(
        sequence_number=sequence_number,
        name=name,
        email=email,
        title=_unquote(title) or DEFAULT_TITLE,
        company=company,
    )
