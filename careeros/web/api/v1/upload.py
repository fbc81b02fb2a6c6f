"""Upload helpers: size and MIME checks before a file reaches the model."""

from __future__ import annotations

from typing import Iterable

from fastapi import UploadFile

from careeros.core.transport import Attachment

from ...errors import APIError


async def read_upload_with_limit(file: UploadFile, max_bytes: int) -> bytes:
    """Read an upload stream with a hard byte limit instead of buffering it whole first."""
    chunks: list[bytes] = []
    total = 0
    chunk_size = 64 * 1024

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise APIError(
                422,
                "UPLOAD_TOO_LARGE",
                "Uploaded file exceeds size limit",
                {"max_upload_bytes": max_bytes},
            )
        chunks.append(chunk)

    return b"".join(chunks)


def check_mime_type(mime_type: str, allowed: Iterable[str]) -> str:
    allowed = sorted(allowed)
    normalized = (mime_type or "").split(";")[0].strip().lower()
    if normalized not in allowed:
        raise APIError(
            415,
            "UNSUPPORTED_MEDIA_TYPE",
            f"Unsupported file type '{mime_type or 'unknown'}'",
            {"allowed": allowed},
        )
    return normalized


async def read_attachment(file: UploadFile, max_bytes: int, allowed: Iterable[str]) -> Attachment:
    mime_type = check_mime_type(file.content_type or "", allowed)
    content = await read_upload_with_limit(file=file, max_bytes=max_bytes)
    if not content:
        raise APIError(400, "BAD_REQUEST", "Uploaded file is empty")
    return Attachment(data=content, mime_type=mime_type, name=file.filename or "")
