from __future__ import annotations

import asyncio
import base64
import binascii
import io

from loguru import logger
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from omnichat.errors import DocumentParseError
from omnichat.models import PDF_MIME_TYPE

SUPPORTED_DOCUMENT_TYPES = frozenset({PDF_MIME_TYPE})


def is_supported_document(mime_type: str) -> bool:
    return mime_type in SUPPORTED_DOCUMENT_TYPES


async def extract_text(base64_data: str, mime_type: str) -> str:
    """Decode a base64 document and return its text, pages joined in document order.

    Parsing runs in a worker thread. Raises DocumentParseError for payloads that are not
    valid base64 or not a readable document of ``mime_type``.
    """
    if not is_supported_document(mime_type):
        raise DocumentParseError(f"Unsupported document type: {mime_type or '(none)'}")

    try:
        raw = base64.b64decode(base64_data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DocumentParseError(f"Document payload is not valid base64: {exc}") from exc
    if not raw:
        raise DocumentParseError("Document is empty.")

    return await asyncio.to_thread(_extract_pdf_text, raw)


def _extract_pdf_text(raw: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(raw))
        pages = [" ".join((page.extract_text() or "").split()) for page in reader.pages]
    except (PyPdfError, ValueError, KeyError, TypeError) as exc:
        raise DocumentParseError(f"Could not parse PDF: {exc}") from exc

    logger.debug(f"Extracted PDF text: pages={len(pages)}")
    return " ".join(text for text in pages if text)
