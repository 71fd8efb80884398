from __future__ import annotations

import base64
import mimetypes
from pathlib import Path

from omnichat.errors import UnsupportedAttachmentError
from omnichat.models import PDF_MIME_TYPE, Attachment


def is_supported_attachment(mime_type: str) -> bool:
    return mime_type.startswith("image/") or mime_type == PDF_MIME_TYPE


def attachment_from_bytes(name: str, content: bytes, mime_type: str | None = None) -> Attachment:
    resolved = mime_type or mimetypes.guess_type(name)[0] or ""
    if not is_supported_attachment(resolved):
        raise UnsupportedAttachmentError(
            f"Unsupported attachment type: {resolved or Path(name).suffix or '(unknown)'}. "
            "Attach an image or a PDF."
        )
    if not content:
        raise UnsupportedAttachmentError(f"Attachment is empty: {name}")
    return Attachment(name=name, mime_type=resolved, data=base64.b64encode(content).decode("ascii"))


def load_attachment(path: str | Path) -> Attachment:
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise UnsupportedAttachmentError(f"File not found: {file_path}")
    return attachment_from_bytes(file_path.name, file_path.read_bytes())
