"""Document text extraction."""

from .pdf_extractor import PdfExtractionError, extract_pdf_text

__all__ = ["extract_pdf_text", "PdfExtractionError"]
