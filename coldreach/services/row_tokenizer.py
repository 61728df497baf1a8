"""
Splits raw contact lines into candidate field lists.

Delimited input (CSV) is scanned character by character so that quoted
fields and backslash escapes behave the same whether or not the file was
written by a spreadsheet. Fixed-width text (PDF tables) is split on wide
whitespace gaps instead.
"""

import re

_COLUMN_GAP = re.compile(r"\s{2,}")
_QUOTE_CHARS = "\"'"


def clean_field(value: str) -> str:
    """Trim whitespace and residual quote characters from a field."""
    return value.strip().strip(_QUOTE_CHARS).strip()


def tokenize_row(
    line: str,
    delimiter: str = ",",
    quote: str = '"',
    escape: str = "\\",
) -> list[str]:
    """
    Split one delimited line into fields.

    Args:
        line: The raw line (without trailing newline).
        delimiter: Field separator.
        quote: Quote character; the delimiter is literal inside quotes.
        escape: The character after this one is always taken literally.

    Returns:
        List of cleaned field strings. An unterminated quote runs to the
        end of the line.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    escape_next = False

    for char in line:
        if escape_next:
            current.append(char)
            escape_next = False
        elif char == escape:
            escape_next = True
        elif char == quote:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)

    fields.append("".join(current))
    return [clean_field(f) for f in fields]


def split_columns(text: str) -> list[str]:
    """Split fixed-width table text on runs of two or more spaces."""
    return [part for part in _COLUMN_GAP.split(text.strip()) if part]
