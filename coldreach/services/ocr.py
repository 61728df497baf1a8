"""
OCR for image-only PDFs (scanned resumes).

Pages are rendered with pdf2image (poppler) and read with pytesseract
(tesseract). Both need their system binaries; when those are missing
the failure is logged and an empty string is returned.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pytesseract
from pdf2image import convert_from_bytes, convert_from_path

from ..config import config

logger = logging.getLogger(__name__)


def alpha_count(text: str) -> int:
    return sum(ch.isalpha() for ch in text)


def ocr_pdf(
    source: Union[str, Path, bytes],
    lang: Optional[str] = None,
    dpi: Optional[int] = None,
) -> str:
    """Render every page and return the recognized text, pages separated by blank lines."""
    lang = lang or config.OCR_LANG
    dpi = dpi or config.OCR_DPI

    try:
        if isinstance(source, (bytes, bytearray)):
            images = convert_from_bytes(bytes(source), dpi=dpi)
        else:
            images = convert_from_path(str(source), dpi=dpi)

        texts = []
        for i, image in enumerate(images, start=1):
            text = pytesseract.image_to_string(image, lang=lang)
            logger.debug(f"OCR page {i}: {len(text)} chars")
            if text.strip():
                texts.append(text.strip())
    except Exception as e:
        logger.warning(f"OCR failed: {e}")
        return ""

    return "\n\n".join(texts)
