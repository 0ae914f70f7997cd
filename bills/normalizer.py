"""
Normalization Service for Bill Text Extraction
===============================================
Converts uploaded PDF bills to plain text for the regex extractor.
Scanned (image-only) PDFs are reported as extraction failures; there is no OCR.
"""

import os
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

import pymupdf  # PyMuPDF 1.26+ uses pymupdf, not fitz

logger = logging.getLogger(__name__)

EXTRACTION_FAILED = "could not extract text"


@dataclass
class NormalizationResult:
    """Result of file normalization."""
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = False
    error: Optional[str] = None


class NormalizationService:
    """
    Normalizes PDF bills to plain text using PyMuPDF's native text layer.

    Empty or whitespace-only text is a failure, not an empty bill.
    """

    PDF_EXTENSIONS = {'.pdf'}
    PDF_MAGIC = b'%PDF'

    def __init__(self, max_pages: int = 20):
        """
        Initialize the normalization service.

        Args:
            max_pages: Only the first ``max_pages`` pages are read
        """
        self.max_pages = max_pages

    def normalize(self, file_path: str) -> NormalizationResult:
        """
        Normalize a PDF on disk to text.

        Args:
            file_path: Path to the file to normalize

        Returns:
            NormalizationResult with text, metadata, and status
        """
        if not os.path.exists(file_path):
            return NormalizationResult(text="", success=False, error=f"File not found: {file_path}")

        ext = os.path.splitext(file_path)[1].lower()
        if ext not in self.PDF_EXTENSIONS:
            return NormalizationResult(
                text="",
                metadata={"extension": ext},
                success=False,
                error=f"Unsupported file type: {ext}"
            )

        with open(file_path, 'rb') as f:
            return self.normalize_bytes(f.read())

    def normalize_bytes(self, data: bytes) -> NormalizationResult:
        """Extract text from in-memory PDF bytes (e.g. an upload)."""
        file_size = len(data or b"")
        if not data or not data.lstrip().startswith(self.PDF_MAGIC):
            return NormalizationResult(
                text="",
                metadata={"file_size": file_size},
                success=False,
                error=EXTRACTION_FAILED
            )

        try:
            doc = pymupdf.open(stream=data, filetype="pdf")
            try:
                page_count = len(doc)
                text_parts = []
                for page_num, page in enumerate(doc):
                    if page_num >= self.max_pages:
                        break
                    text = page.get_text("text")
                    if text:
                        text_parts.append(text)
            finally:
                doc.close()
        except Exception as e:
            logger.warning(f"PDF could not be read ({file_size} bytes): {e}")
            return NormalizationResult(
                text="",
                metadata={"file_size": file_size},
                success=False,
                error=EXTRACTION_FAILED
            )

        text = "\n".join(text_parts)
        char_count = len(text.strip())
        metadata = {
            "method": "pdf_native",
            "pages": page_count,
            "file_size": file_size,
            "char_count": char_count,
        }

        if not char_count:
            logger.info(f"PDF has no native text ({page_count} pages)")
            return NormalizationResult(text="", metadata=metadata, success=False, error=EXTRACTION_FAILED)

        logger.info(f"PDF native text: {char_count} chars from {page_count} pages")
        return NormalizationResult(text=text, metadata=metadata, success=True)


def extract_pdf_text(data: bytes) -> NormalizationResult:
    return NormalizationService().normalize_bytes(data)
