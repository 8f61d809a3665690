"""Text extraction from PDF statements."""

import io

import pdfplumber
import structlog

from .errors import ExtractionError

logger = structlog.get_logger()

MIN_TEXT_CHARS = 50


def extract_pdf_text(content: bytes, min_chars: int = MIN_TEXT_CHARS) -> str:
    """Extract the text layer of every page, joined by newlines.

    Raises:
        ExtractionError: pdfplumber failed, or too little text came out
            (usually an image-only scan).
    """
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        logger.warning("pdf_extraction_failed", error=str(e))
        raise ExtractionError(
            "Failed to parse PDF. Try exporting as CSV from your bank instead.",
            details=str(e),
        ) from e

    text = "\n".join(pages)
    if len(text.strip()) < min_chars:
        raise ExtractionError(
            "Could not extract text from PDF. Try exporting as CSV from your bank.",
            details="The PDF might be image-based or empty.",
        )

    logger.debug("pdf_text_extracted", pages=len(pages), chars=len(text))
    return text
