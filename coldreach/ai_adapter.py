"""
AI extraction and email generation using OpenAI.

Both operations follow the same contract: build a prompt, call the
model, parse its JSON, fill defaults through the response schema and tag
where the result came from. Neither raises; every failure routes to a
non-AI fallback:

    throttled          -> regex extractor / template email
    reply is not JSON  -> best-effort recovery from the raw text
    quota/rate error   -> regex extractor / template email
    other API error    -> sentinel resume / template email
"""

import json
import logging
import re
from typing import Any, Optional

import openai
from openai import OpenAI

from . import prompt_components
from .config import config
from .models import Contact, ParsingMethod, ResumeData
from .rate_limiter import RateLimiter, default_limiter
from .schema import EMAIL_SCHEMA, RESUME_SCHEMA, validate_with_defaults
from .services.resume_parser import extract_email, extract_phone, extract_resume_fields
from .services.template_service import generate_template_email

# Configure logging
logger = logging.getLogger(__name__)

_JSON_FINDER = re.compile(r"\{.*\}", re.S)
_SUBJECT_LINE = re.compile(r"^.*?subject:\s*(.*)$", re.I | re.M)

QUOTA_MARKERS = ("quota", "rate", "limit")
MAX_SUBJECT_LENGTH = 60
MAX_RECOVERED_BODY = 1500


def is_quota_error(error: Exception) -> bool:
    """True if the provider error looks like quota exhaustion or throttling."""
    if isinstance(error, openai.RateLimitError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in QUOTA_MARKERS)


def parse_json_content(content: str) -> Any:
    """
    Parse a model reply as JSON.

    Markdown code fences are removed; if the reply has text around the
    object, the outermost ``{...}`` is tried.

    Raises:
        ValueError: If no JSON can be recovered.
    """
    content = (content or "").strip()

    # Clean markdown code fences if present
    if content.startswith("```"):
        content = content.split("```")[1]
        if content.startswith("json"):
            content = content[4:]
        content = content.strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        match = _JSON_FINDER.search(content)
        if match:
            return json.loads(match.group())
        raise


def default_subject(resume: ResumeData) -> str:
    return f"Job Application - {resume.name or 'Your Name'}"[:MAX_SUBJECT_LENGTH]


def _build_client() -> Optional[OpenAI]:
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; using template mode")
        return None
    return OpenAI(api_key=config.OPENAI_API_KEY, timeout=config.OPENAI_TIMEOUT)


class AIExtractionAdapter:
    """Resume extraction and cold email generation backed by a chat model."""

    def __init__(
        self,
        client: Optional[Any] = None,
        limiter: Optional[RateLimiter] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        enabled: bool = True,
    ):
        if not enabled:
            self.client = None
        else:
            self.client = client if client is not None else _build_client()
        self.limiter = limiter or default_limiter()
        self.model = model or config.OPENAI_MODEL
        self.temperature = config.OPENAI_TEMPERATURE if temperature is None else temperature

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _can_call(self) -> bool:
        if not self.is_configured:
            return False
        if self.limiter.should_throttle():
            logger.warning("Rate limit reached, skipping AI call")
            return False
        return True

    def _complete(self, prompt: str) -> str:
        """Send one prompt and return the raw reply text."""
        self.limiter.record_request()
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": prompt_components.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
        )
        return (response.choices[0].message.content or "").strip()

    # ========================================
    # Resume extraction
    # ========================================

    def extract_resume(self, resume_text: str) -> ResumeData:
        """
        Extract structured resume data.

        Returns a ResumeData tagged AI, AI (fallback), AI (error) or
        Regex Fallback depending on which path produced it.
        """
        if not self._can_call():
            return extract_resume_fields(resume_text)

        try:
            content = self._complete(prompt_components.build_resume_prompt(resume_text))
        except Exception as e:
            logger.error(f"Error in AI resume extraction: {e}")
            if is_quota_error(e):
                logger.warning("AI quota exceeded, using regex fallback")
                return extract_resume_fields(resume_text)
            return self._failed_resume()

        try:
            data = parse_json_content(content)
        except ValueError as e:
            logger.error(f"Failed to parse AI response as JSON: {e}")
            return self._recover_resume(resume_text)

        values, missing = validate_with_defaults(data, RESUME_SCHEMA)
        if missing:
            logger.info(f"AI response missing fields, defaulted: {', '.join(missing)}")
        return ResumeData(parsing_method=ParsingMethod.AI, **values)

    def _recover_resume(self, resume_text: str) -> ResumeData:
        """Salvage contact details from the source text after a bad reply."""
        return ResumeData(
            name="Name extracted by AI",
            email=extract_email(resume_text) or "email@example.com",
            phone=extract_phone(resume_text),
            experience="Experience extracted by AI",
            education="Education extracted by AI",
            skills=["Skills extracted by AI"],
            parsing_method=ParsingMethod.AI_FALLBACK,
        )

    @staticmethod
    def _failed_resume() -> ResumeData:
        return ResumeData(
            name="AI extraction failed",
            email="ai@example.com",
            phone="",
            experience="AI extraction failed",
            education="AI extraction failed",
            skills=["AI extraction failed"],
            parsing_method=ParsingMethod.AI_ERROR,
        )

    # ========================================
    # Email generation
    # ========================================

    def generate_email(self, contact: Contact, resume: ResumeData) -> tuple[str, str]:
        """
        Generate a cold email for one contact.

        Returns:
            Tuple of (subject, body). Always usable; template mode is used
            whenever the model can't be reached or misbehaves.
        """
        if not self._can_call():
            return generate_template_email(contact, resume)

        try:
            content = self._complete(prompt_components.build_email_prompt(contact, resume))
        except Exception as e:
            logger.error(f"Error generating email for {contact.company}: {e}")
            if is_quota_error(e):
                logger.warning("AI quota exceeded, using template-based email generation")
            return generate_template_email(contact, resume)

        try:
            data = parse_json_content(content)
        except ValueError:
            logger.warning(f"Non-JSON email reply for {contact.company}, recovering from text")
            return self._recover_email(content, resume)

        values, _ = validate_with_defaults(data, EMAIL_SCHEMA)
        return values["subject"] or default_subject(resume), values["body"]

    @staticmethod
    def _recover_email(content: str, resume: ResumeData) -> tuple[str, str]:
        """Pull a subject line and body out of a free-text reply."""
        match = _SUBJECT_LINE.search(content)
        subject = match.group(1).strip() if match and match.group(1).strip() else default_subject(resume)
        body = _SUBJECT_LINE.sub("", content, count=1).strip() if match else content.strip()
        return subject[:MAX_SUBJECT_LENGTH], (body or "Default email body")[:MAX_RECOVERED_BODY]
