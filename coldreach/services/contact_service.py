"""
Contact import service.

Chooses a parsing pipeline for an uploaded contact file and runs its
strategies in order until one produces contacts:

    CSV: csv
    PDF: table (positioned words) -> text (layout text, line heuristics)
"""

import csv
import enum
import logging
import re
from dataclasses import dataclass, field
from io import StringIO
from typing import Callable, Optional

from ..exceptions import NoContactsFoundError, UnsupportedFileError
from ..models import Contact
from . import pdf_text
from .contact_validator import renumber, validate_fields
from .row_tokenizer import split_columns, tokenize_row
from .table_geometry import group_rows, parse_table_rows

logger = logging.getLogger(__name__)

HEADER_SCAN_LINES = 5

_TEXT_HEADER_PATTERNS = [
    re.compile(r"\bserial\b", re.I),
    re.compile(r"\bno\.", re.I),
]


class ContactFileKind(enum.Enum):
    """Declared kind of an uploaded contact file."""
    PDF = "pdf"
    CSV = "csv"


@dataclass(frozen=True)
class ParseStrategy:
    """A named way of turning file bytes into contacts."""
    name: str
    parse: Callable[[bytes], list[Contact]]


@dataclass
class ParseResult:
    """Outcome of running a pipeline over one file."""
    contacts: list[Contact]
    method: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Successfully parsed {len(self.contacts)} contacts using {self.method} parsing"


def detect_file_kind(filename: str, content_type: Optional[str] = None) -> ContactFileKind:
    """Determine the file kind from its name or MIME type."""
    name = (filename or "").lower()
    if name.endswith(".csv") or content_type in ("text/csv", "application/vnd.ms-excel"):
        return ContactFileKind.CSV
    if name.endswith(".pdf") or content_type == "application/pdf":
        return ContactFileKind.PDF
    raise UnsupportedFileError(
        "File must be a PDF or CSV",
        f"Received '{filename or 'unnamed file'}'.",
    )


def decode_text(data: bytes) -> str:
    """Decode uploaded bytes, dropping a BOM from Excel-exported files."""
    text = data.decode("utf-8", errors="replace")
    if text.startswith("\ufeff"):
        text = text[1:]
    return text


# ========================================
# CSV path
# ========================================

def find_header_index(lines: list[str]) -> int:
    """
    Index of the header line within the first few lines, or -1.

    A header mentions name and email plus company or title.
    """
    for i, line in enumerate(lines[:HEADER_SCAN_LINES]):
        lowered = line.lower()
        if "name" in lowered and "email" in lowered and ("company" in lowered or "title" in lowered):
            return i
    return -1


def parse_csv_text(text: str) -> list[Contact]:
    """Parse delimited contact text (header optional) into contacts."""
    lines = [line for line in text.splitlines() if line.strip()]
    header_index = find_header_index(lines)
    if header_index >= 0:
        logger.debug(f"Header found at line {header_index + 1}")

    contacts = []
    for i in range(header_index + 1, len(lines)):
        contact = validate_fields(tokenize_row(lines[i].strip()), line_number=i + 1)
        if contact:
            contacts.append(contact)

    logger.info(f"Parsed {len(contacts)} contact(s) from {len(lines)} CSV line(s)")
    return renumber(contacts)


def parse_csv_bytes(data: bytes) -> list[Contact]:
    return parse_csv_text(decode_text(data))


# ========================================
# Plain-text path
# ========================================

def _is_text_header(line: str) -> bool:
    lowered = line.lower()
    if "sno" in lowered and "name" in lowered:
        return True
    if "name" in lowered and "email" in lowered and "title" in lowered:
        return True
    return any(p.search(line) for p in _TEXT_HEADER_PATTERNS)


def parse_contact_line(line: str) -> Optional[Contact]:
    """
    Parse a free-form line anchored on its email address.

    Layout assumed: [SNo] Name... email Title... Company
    """
    parts = line.split()
    email_index = next(
        (
            i for i, part in enumerate(parts)
            if "@" in part and "." in part and "http" not in part and "www" not in part
        ),
        -1,
    )
    if email_index == -1:
        return None

    start = 1 if parts and parts[0].isdigit() else 0
    name = " ".join(parts[start:email_index])
    after = parts[email_index + 1:]
    company = after[-1] if after else ""
    title = " ".join(after[:-1])

    return validate_fields([name, parts[email_index], title, company])


def parse_contacts_from_text(text: str) -> list[Contact]:
    """
    Parse contacts from loosely structured text, one per line.

    Lines with wide column gaps are treated as table rows first, then as
    free-form lines.
    """
    contacts = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or _is_text_header(line):
            continue

        contact = None
        columns = split_columns(line)
        if len(columns) >= 4:
            contact = validate_fields(columns, line_number=line_number)
        if contact is None:
            contact = parse_contact_line(line)
        if contact:
            contacts.append(contact)

    return renumber(contacts)


# ========================================
# PDF strategies
# ========================================

def parse_table_pdf(data: bytes) -> list[Contact]:
    """Reconstruct table rows from positioned words."""
    rows = group_rows(pdf_text.extract_fragments(data))
    return renumber(parse_table_rows(rows))


def parse_text_pdf(data: bytes) -> list[Contact]:
    """Parse the layout text of the PDF line by line."""
    return parse_contacts_from_text(pdf_text.extract_layout_text(data))


DEFAULT_STRATEGIES: dict[ContactFileKind, list[ParseStrategy]] = {
    ContactFileKind.CSV: [ParseStrategy("csv", parse_csv_bytes)],
    ContactFileKind.PDF: [
        ParseStrategy("table", parse_table_pdf),
        ParseStrategy("text", parse_text_pdf),
    ],
}


class ContactService:
    """Service for importing and exporting contacts."""

    def __init__(self, strategies: Optional[dict[ContactFileKind, list[ParseStrategy]]] = None):
        self.strategies = strategies or DEFAULT_STRATEGIES

    def parse_file(self, data: bytes, kind: ContactFileKind) -> ParseResult:
        """
        Run the strategies for ``kind`` until one yields contacts.

        A strategy that raises is logged and skipped. An empty result is
        not an error here; see ``parse_file_or_raise``.
        """
        result = ParseResult(contacts=[])

        for strategy in self.strategies[kind]:
            try:
                contacts = strategy.parse(data)
            except Exception as e:
                logger.warning(f"{strategy.name} parsing failed, trying next strategy: {e}")
                result.errors.append(f"{strategy.name}: {e}")
                continue

            if contacts:
                result.contacts = contacts
                result.method = strategy.name
                return result

            logger.info(f"{strategy.name} parsing found no contacts")

        return result

    def parse_file_or_raise(self, data: bytes, kind: ContactFileKind) -> ParseResult:
        """Like ``parse_file`` but raises NoContactsFoundError when empty."""
        result = self.parse_file(data, kind)
        if not result.contacts:
            raise NoContactsFoundError()
        return result

    def parse_upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> ParseResult:
        """Detect the file kind from its name, then parse (raising if empty)."""
        return self.parse_file_or_raise(data, detect_file_kind(filename, content_type))

    def export_to_csv(self, contacts: list[Contact]) -> str:
        """Export contacts in the five-column import format."""
        output = StringIO()
        fieldnames = ["SNo", "Name", "Email", "Title", "Company"]
        writer = csv.DictWriter(output, fieldnames=fieldnames, lineterminator="\n")
        writer.writeheader()

        for contact in contacts:
            writer.writerow({
                "SNo": contact.sequence_number,
                "Name": contact.name,
                "Email": contact.email,
                "Title": contact.title,
                "Company": contact.company,
            })

        return output.getvalue()
