"""
Rule-based resume parser.

Used when the AI provider is throttled or unavailable, and as the
offline mode of the CLI. Every field falls back to a sentinel value so
the result is always a complete ResumeData.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from ..config import config
from ..exceptions import ResumeExtractionError
from ..models import ParsingMethod, ResumeData
from ..prompt_components import SKILL_VOCABULARY
from . import ocr, pdf_text

logger = logging.getLogger(__name__)

NAME_SENTINEL = "Name extracted from resume"
EMAIL_SENTINEL = "resume@example.com"
EXPERIENCE_SENTINEL = "Professional experience extracted from resume"
EDUCATION_SENTINEL = "Education background extracted from resume"

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

# Tried in order; the first pattern that matches anywhere wins.
PHONE_PATTERNS = [
    re.compile(r"\+\d{1,3}[-.\s]?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"),  # +1 555-123-4567
    re.compile(r"\(\d{3}\)\s?\d{3}[-.\s]?\d{4}"),                      # (555) 123-4567
    re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"),                  # 555-123-4567
    re.compile(r"\+\d{1,3}\s?\d{1,4}\s?\d{1,4}\s?\d{1,4}"),           # +44 20 7946 0958
]

NAME_PATTERNS = [
    re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+$"),                # First Last
    re.compile(r"^[A-Z][a-z]+ [A-Z]\. [A-Z][a-z]+$"),        # First M. Last
    re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+ [A-Z][a-z]+$"),    # First Middle Last
]

NAME_SKIP_WORDS = (
    "email", "phone", "experience", "education",
    "resume", "cv", "objective", "summary",
)

EXPERIENCE_KEYWORDS = ["experience", "work history", "employment", "career"]
EDUCATION_KEYWORDS = [
    "education", "academic", "degree", "university",
    "college", "bachelor", "master", "phd",
]

LINKEDIN_RE = re.compile(r"(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/in/[A-Za-z0-9_%-]+/?", re.I)
WEBSITE_RE = re.compile(r"https?://[^\s,;]+", re.I)

MIN_RESUME_TEXT = 50


def extract_email(text: str) -> str:
    match = EMAIL_RE.search(text)
    return match.group() if match else ""


def extract_phone(text: str) -> str:
    for pattern in PHONE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group().strip()
    return ""


def _is_title_case(word: str) -> bool:
    return word[:1].isupper() and word[1:] == word[1:].lower()


def extract_name(lines: list[str]) -> str:
    """Find the candidate's name near the top of the resume."""
    for line in lines[:10]:
        lowered = line.lower()
        if any(word in lowered for word in NAME_SKIP_WORDS):
            continue
        if not 3 <= len(line) <= 50:
            continue

        if any(pattern.match(line) for pattern in NAME_PATTERNS):
            return line

        words = line.split(" ")
        if (
            2 <= len(words) <= 4
            and all(_is_title_case(w) for w in words)
            and "@" not in line
            and ".com" not in line
        ):
            return line

    # Second pass: two capitalized words from a short line near the top
    for line in lines[:5]:
        words = line.split()
        if not 2 <= len(words) <= 4:
            continue
        capitalized = [
            w for w in words
            if w[0].isupper() and len(w) > 1
            and "@" not in w
            and not any(tld in w for tld in (".com", ".org", ".edu"))
        ]
        if len(capitalized) >= 2:
            return " ".join(capitalized[:2])

    return NAME_SENTINEL


def extract_skills(text: str) -> list[str]:
    lowered = text.lower()
    return [skill for skill in SKILL_VOCABULARY if skill.lower() in lowered]


def extract_section(text: str, keywords: list[str], length: int) -> Optional[str]:
    """Return ``length`` characters following the first keyword found."""
    lowered = text.lower()
    for keyword in keywords:
        index = lowered.find(keyword)
        if index != -1:
            start = index + len(keyword)
            snippet = text[start:start + length].strip()
            if snippet:
                return snippet
    return None


def extract_links(text: str) -> tuple[Optional[str], Optional[str]]:
    """Return (linkedin, website) URLs if present."""
    linkedin_match = LINKEDIN_RE.search(text)
    linkedin = linkedin_match.group() if linkedin_match else None

    website = None
    for match in WEBSITE_RE.finditer(text):
        if "linkedin.com" not in match.group().lower():
            website = match.group().rstrip(".")
            break
    return linkedin, website


def extract_resume_fields(text: str) -> ResumeData:
    """
    Extract resume fields with regular expressions and keyword search.

    Never raises; anything that can't be found gets a sentinel value.
    """
    text = text or ""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    linkedin, website = extract_links(text)

    resume = ResumeData(
        name=extract_name(lines),
        email=extract_email(text) or EMAIL_SENTINEL,
        phone=extract_phone(text),
        experience=extract_section(text, EXPERIENCE_KEYWORDS, 200) or EXPERIENCE_SENTINEL,
        education=extract_section(text, EDUCATION_KEYWORDS, 150) or EDUCATION_SENTINEL,
        skills=extract_skills(text),
        parsing_method=ParsingMethod.REGEX_FALLBACK,
        linkedin=linkedin,
        website=website,
    )
    logger.info(f"Regex extraction: name={resume.name!r}, {len(resume.skills)} skill(s)")
    return resume


def _too_little_text(text: str) -> bool:
    return len(text) < MIN_RESUME_TEXT or " " not in text


def read_resume_text(source: Union[str, Path, bytes], filename: Optional[str] = None) -> str:
    """
    Extract text from a resume file.

    Args:
        source: Path to a .pdf or .txt file, or the raw bytes of one.
        filename: Name used to pick the format when ``source`` is bytes.

    Raises:
        ResumeExtractionError: If the format is unsupported, or the PDF
            has no extractable text and OCR (see ``ocr.ocr_pdf``) does not
            recover any either.
    """
    if isinstance(source, (bytes, bytearray)):
        suffix = Path(filename or "resume.pdf").suffix.lower()
    else:
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Resume file not found: {source}")
        suffix = source.suffix.lower()

    if suffix == ".pdf":
        try:
            text = pdf_text.extract_plain_text(source)
        except Exception as e:
            raise ResumeExtractionError(
                "Failed to parse resume",
                "Please check that your PDF contains readable text, or use the manual input option.",
            ) from e
        if _too_little_text(text) and config.OCR_ENABLED:
            logger.info("Little text in PDF, trying OCR...")
            ocr_text = ocr.ocr_pdf(source)
            if len(ocr_text) >= MIN_RESUME_TEXT and ocr.alpha_count(ocr_text) > ocr.alpha_count(text):
                logger.info(f"OCR extracted {len(ocr_text)} chars")
                text = ocr_text
    elif suffix == ".txt":
        if isinstance(source, (bytes, bytearray)):
            text = source.decode("utf-8", errors="replace").strip()
        else:
            text = source.read_text(encoding="utf-8", errors="replace").strip()
    else:
        raise ResumeExtractionError(
            f"Unsupported resume format: '{suffix}'",
            "Use a .pdf or .txt file, or the manual input option.",
        )

    if _too_little_text(text):
        raise ResumeExtractionError(
            "Insufficient text extracted from resume",
            "This PDF appears to be image-based. Please use the manual input option "
            "or upload a text-based PDF.",
        )
    return text
