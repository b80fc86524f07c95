from __future__ import annotations

import logging
import re
import secrets
import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.core.errors import ValidationError
from app.core.settings import settings

logger = logging.getLogger(__name__)

ASSIGNMENT_SUBDIR = "assignments"
ALLOWED_SUFFIXES = {".pdf"}
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    # Path(...).name strips any directory component a client sends.
    return _UNSAFE_CHARS.sub("_", Path(name or "upload.pdf").name)


def validate_pdf_upload(upload: UploadFile) -> None:
    if upload is None or not upload.filename:
        raise ValidationError("File is required. Please upload a PDF file.")
    if Path(upload.filename).suffix.lower() not in ALLOWED_SUFFIXES:
        raise ValidationError("Only PDF files are allowed")


def _assignment_upload_dir() -> Path:
    path = settings.ensure_uploads_dir() / ASSIGNMENT_SUBDIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_assignment_file(upload: UploadFile, owner_id: int) -> str:
    """Store an uploaded PDF and return its path.

    Names follow ``<millis>-<owner>-<random>-<sanitized original>`` so two
    uploads never collide.
    """
    validate_pdf_upload(upload)
    content = upload.file.read()
    if len(content) > settings.max_upload_bytes:
        raise ValidationError(f"File size exceeds {settings.max_upload_mb}MB limit")

    filename = "-".join(
        [
            str(int(time.time() * 1000)),
            str(owner_id),
            secrets.token_hex(4),
            sanitize_filename(upload.filename),
        ]
    )
    storage_path = _assignment_upload_dir() / filename
    storage_path.write_bytes(content)
    logger.info("assignment_file_stored owner_id=%s path=%s size=%s", owner_id, storage_path, len(content))
    return str(storage_path)


def remove_file(path: Optional[str]) -> None:
    if not path:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        logger.exception("assignment_file_remove_failed path=%s", path)


def resolve_file(path: Optional[str]) -> Optional[Path]:
    if not path:
        return None
    candidate = Path(path)
    return candidate if candidate.is_file() else None


def download_name(title: str) -> str:
    stem = _UNSAFE_CHARS.sub("_", title or "").strip("_") or "assignment"
    return f"{stem}.pdf"
