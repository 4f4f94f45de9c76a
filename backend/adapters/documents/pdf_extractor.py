"""
PDF text extraction using pypdf.
"""

import asyncio
import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)


class PdfExtractionError(Exception):
    """Raised when a PDF cannot be parsed."""


def _extract(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        text_parts = []
        for page in reader.pages:
            text = page.extract_text()
            if text:
                text_parts.append(text)
    except PdfReadError as e:
        logger.warning("Failed to parse PDF: %s", e)
        raise PdfExtractionError(str(e)) from e

    return "\n\n".join(text_parts)


async def extract_pdf_text(data: bytes) -> str:
    """
    Extract the text layer of a PDF.

    Parsing is CPU bound and runs in a worker thread.

    Args:
        data: Raw PDF bytes

    Returns:
        Text of all pages joined by blank lines; empty for image-only PDFs
    """
    return await asyncio.to_thread(_extract, data)
