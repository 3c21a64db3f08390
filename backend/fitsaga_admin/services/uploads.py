# fitsaga_admin/services/uploads.py
"""
Image and video upload to Firebase Storage.

`upload(file, folder)` stores the file under `<folder>/<uuid>-<name>` and returns a public URL,
falling back to a long-lived signed URL when the bucket refuses public ACLs.
"""
import logging
import re
from datetime import timedelta
from typing import BinaryIO, Collection, Optional
from uuid import uuid4

from fitsaga_admin.core.errors import GOOGLE_ERRORS, UploadError

logger = logging.getLogger("fitsaga.uploads")

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
ALLOWED_VIDEO_TYPES = {"video/*"}
VIDEO_FOLDER = "tutorials/exercises"
FOLDER_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_\-/]{0,63}$")


def _safe_name(filename: Optional[str]) -> str:
    base = (filename or "image").rsplit("/", 1)[-1]
    return re.sub(r"[^A-Za-z0-9._-]", "_", base) or "image"


def _type_allowed(content_type: Optional[str], allowed: Collection[str]) -> bool:
    if not content_type:
        return False
    major = content_type.split("/", 1)[0]
    return content_type in allowed or f"{major}/*" in allowed


def _size_of(stream: BinaryIO) -> int:
    pos = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(pos)
    return size


def upload(
    bucket,
    stream: BinaryIO,
    folder: str,
    *,
    filename: Optional[str],
    content_type: Optional[str],
    max_bytes: int,
    url_expires: timedelta = timedelta(days=3650),
    allowed_types: Collection[str] = ALLOWED_IMAGE_TYPES,
) -> str:
    if not _type_allowed(content_type, allowed_types):
        raise UploadError("unsupported-type", f"Unsupported file type: {content_type or 'unknown'}")
    if not FOLDER_PATTERN.fullmatch(folder) or ".." in folder:
        raise UploadError("unsupported-type", f"Invalid upload folder: {folder}")
    size = _size_of(stream)
    if size > max_bytes:
        raise UploadError("too-large", f"File is {size} bytes; the limit is {max_bytes} bytes")

    blob = bucket.blob(f"{folder.strip('/')}/{uuid4().hex}-{_safe_name(filename)}")
    try:
        blob.upload_from_file(stream, content_type=content_type)
    except GOOGLE_ERRORS as exc:
        logger.warning("Upload to %s failed: %s", folder, exc)
        raise UploadError("network") from exc

    # Public URL or a long-lived signed URL
    try:
        blob.make_public()
        return blob.public_url
    except GOOGLE_ERRORS as exc:
        logger.info("make_public refused for %s (%s); using a signed URL", blob.name, exc)
    try:
        return blob.generate_signed_url(expiration=url_expires)
    except (GOOGLE_ERRORS + (ValueError, AttributeError)) as exc:
        logger.warning("Signing URL for %s failed: %s", blob.name, exc)
        raise UploadError("network", "File stored but no URL could be issued") from exc


def upload_file(
    bucket,
    file,
    folder: str,
    *,
    max_bytes: int,
    url_expires: timedelta = timedelta(days=3650),
    allowed_types: Collection[str] = ALLOWED_IMAGE_TYPES,
) -> str:
    """Convenience wrapper for FastAPI's UploadFile."""
    return upload(
        bucket,
        file.file,
        folder,
        filename=file.filename,
        content_type=file.content_type,
        max_bytes=max_bytes,
        url_expires=url_expires,
        allowed_types=allowed_types,
    )
