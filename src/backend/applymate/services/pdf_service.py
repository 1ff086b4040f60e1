"""PDF text extraction using PyMuPDF."""

import logging
import os
import random
import time

import fitz  # PyMuPDF

from applymate.core.config import settings
from applymate.core.errors import ExtractionError

logger = logging.getLogger(__name__)


def upload_path(filename: str) -> str:
    """Unique path in the upload directory for an incoming resume."""
    os.makedirs(settings.upload_dir, exist_ok=True)
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    safe_name = os.path.basename(filename) or "upload.pdf"
    return os.path.join(settings.upload_dir, f"resume-{suffix}-{safe_name}")


def extract_text_from_pdf(path: str) -> str:
    """Extract all text from the PDF at ``path``.

    Raises ExtractionError for missing, empty, invalid, password-protected
    or image-only files.
    """
    if not os.path.exists(path):
        raise ExtractionError("Failed to extract text from PDF: PDF file not found")
    if os.path.getsize(path) == 0:
        raise ExtractionError("Failed to extract text from PDF: PDF file is empty")

    try:
        doc = fitz.open(path, filetype="pdf")
    except (fitz.FileDataError, RuntimeError) as exc:
        raise ExtractionError(
            "Invalid PDF file format. Please ensure the file is a valid PDF.",
            cause=exc,
        ) from exc

    try:
        if doc.needs_pass:
            raise ExtractionError("PDF is password-protected. Please remove password protection.")
        if doc.page_count == 0:
            raise ExtractionError("Invalid PDF file format. Please ensure the file is a valid PDF.")
        pages = [page.get_text() for page in doc]
    finally:
        doc.close()

    text = "\n".join(pages).strip()
    if not text:
        raise ExtractionError("PDF appears to be empty or contains only images")
    return text


def cleanup(path: str) -> None:
    """Delete a temporary upload. Failures are logged, never raised."""
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        logger.warning("Failed to clean up file %s: %s", path, exc)
