"""
PDF text access via pdfplumber.

- ``extract_fragments``: positioned words for table reconstruction
- ``extract_layout_text``: text with column spacing preserved
- ``extract_plain_text``: reading-order text for resumes

All functions accept a path or raw bytes.
"""

import io
import logging
import re
import warnings
from pathlib import Path
from typing import Union

import pdfplumber

from ..models import Fragment
from .table_geometry import cluster_by_y

# silence noisy PDF logging
logging.getLogger("pdfplumber").setLevel(logging.ERROR)
logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", category=UserWarning, module="pdfminer")

PdfSource = Union[str, Path, bytes]

_CID_RE = re.compile(r"\(cid:\d+\)")

# Horizontal gap (points) wider than this separates two table cells.
COLUMN_GAP = 6.0


def _open(source: PdfSource):
    if isinstance(source, (bytes, bytearray)):
        return pdfplumber.open(io.BytesIO(source))
    return pdfplumber.open(source)


def _pad_column_gaps(words: list[dict], y_of) -> list[Fragment]:
    """
    Convert words to fragments, adding a blank spacer fragment inside every
    wide gap on a line so cell boundaries survive a single-space join.
    """
    fragments: list[Fragment] = []
    for line in cluster_by_y(words, y_of):
        previous = None
        for word in sorted(line, key=lambda w: w["x0"]):
            y = y_of(word)
            if previous is not None and word["x0"] - previous["x1"] > COLUMN_GAP:
                fragments.append(Fragment(text=" ", x=(previous["x1"] + word["x0"]) / 2, y=y))
            fragments.append(Fragment(text=word["text"], x=word["x0"], y=y))
            previous = word
    return fragments


def baseline_doctop(word: dict) -> float:
    """
    Distance of a word's baseline from the top of the document.

    The bbox bottom moves with font size; the baseline (the y of the
    first glyph's text matrix) does not, so cells of one table row set
    in different sizes still line up.
    """
    char = word["chars"][0]
    return char["doctop"] + char["y1"] - char["matrix"][5]


def extract_fragments(source: PdfSource) -> list[Fragment]:
    """
    Extract positioned words from every page.

    y is the negated baseline distance from the top of the document, so
    larger values are higher up, like native PDF coordinates, with page 1
    above page 2.
    """
    fragments: list[Fragment] = []
    with _open(source) as pdf:
        for page in pdf.pages:
            words = page.extract_words(keep_blank_chars=True, use_text_flow=False, return_chars=True)
            fragments.extend(_pad_column_gaps(words, lambda w: -baseline_doctop(w)))
    return fragments


def extract_layout_text(source: PdfSource) -> str:
    """Extract text keeping horizontal layout (columns as runs of spaces)."""
    with _open(source) as pdf:
        pages = [p.extract_text(layout=True) or "" for p in pdf.pages]
    return _CID_RE.sub("", "\n".join(pages))


def extract_plain_text(source: PdfSource) -> str:
    """Extract reading-order text, page by page, without glyph artefacts."""
    with _open(source) as pdf:
        pages = [p.extract_text() or "" for p in pdf.pages]
    return _CID_RE.sub("", "\n\n".join(page.strip() for page in pages)).strip()
