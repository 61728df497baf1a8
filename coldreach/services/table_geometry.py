"""
Rebuilds table rows from positioned PDF text.

PDF tables have no delimiters, only positions. Fragments on the same
visual line share (almost) the same y coordinate, so rows are recovered
by chaining fragments whose y values are close, and columns by reading
order plus the wide gaps renderers leave between cells.
"""

import logging
from typing import Callable, Iterable, TypeVar

from ..models import Contact, Fragment
from .contact_validator import validate_fields
from .row_tokenizer import split_columns

logger = logging.getLogger(__name__)

MIN_TABLE_COLUMNS = 4
ROW_TOLERANCE = 0.5

T = TypeVar("T")


def cluster_by_y(
    items: Iterable[T],
    y_of: Callable[[T], float],
    tolerance: float = ROW_TOLERANCE,
) -> list[list[T]]:
    """
    Split items into lines, top of page first.

    Items are taken in descending y; a new line starts whenever the gap to
    the previous item is at least ``tolerance``, so any two items closer
    than that always share a line.
    """
    rows: list[list[T]] = []
    previous_y = None
    for item in sorted(items, key=y_of, reverse=True):
        y = y_of(item)
        if previous_y is None or previous_y - y >= tolerance:
            rows.append([])
        rows[-1].append(item)
        previous_y = y
    return rows


def group_rows(fragments: Iterable[Fragment]) -> list[list[Fragment]]:
    """Group fragments into rows, top first, each ordered left to right."""
    return [sorted(row, key=lambda f: f.x) for row in cluster_by_y(fragments, lambda f: f.y)]


def row_text(row: list[Fragment]) -> str:
    return " ".join(f.text for f in row).strip()


def row_to_columns(row: list[Fragment]) -> list[str]:
    """Join a row with single spaces and split it back on wide gaps."""
    return split_columns(row_text(row))


def is_header_row(text: str) -> bool:
    lowered = text.lower()
    return "sno" in lowered or ("name" in lowered and "email" in lowered)


def parse_table_rows(rows: Iterable[list[Fragment]]) -> list[Contact]:
    """
    Validate reconstructed rows into contacts.

    Header rows and rows with fewer than four columns are skipped. Rows
    with five or more columns are read as SNo, Name, Email, Title,
    Company; four-column rows as Name, Email, Title, Company.
    """
    contacts = []
    for index, row in enumerate(rows, start=1):
        text = row_text(row)
        if not text or is_header_row(text):
            continue

        columns = row_to_columns(row)
        if len(columns) < MIN_TABLE_COLUMNS:
            logger.debug(f"Table row {index}: only {len(columns)} column(s): {text!r}")
            continue

        contact = validate_fields(columns, line_number=index)
        if contact:
            contacts.append(contact)

    return contacts
