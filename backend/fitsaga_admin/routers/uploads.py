# fitsaga_admin/routers/uploads.py
"""
File uploads (admin only)
- POST /uploads/videos     -> exercise video (`video/*`, MAX_VIDEO_UPLOAD_BYTES), default folder tutorials/exercises
- POST /uploads/{folder}   -> image (jpeg / png / webp / gif, MAX_UPLOAD_BYTES)
"""
from datetime import timedelta

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile, status

from fitsaga_admin.config import get_bucket, settings
from fitsaga_admin.core.errors import UploadError, raise_http
from fitsaga_admin.core.security import require_admin_session
from fitsaga_admin.services.uploads import ALLOWED_VIDEO_TYPES, FOLDER_PATTERN, VIDEO_FOLDER, upload_file

router = APIRouter(
    prefix="/uploads",
    tags=["Uploads"],
    dependencies=[Depends(require_admin_session)],
)


# Declared before `/{folder}` so "videos" is not taken as an image folder.
@router.post("/videos", status_code=status.HTTP_201_CREATED, summary="Upload Video")
def upload_video(
    folder: str = Query(VIDEO_FOLDER, pattern=FOLDER_PATTERN.pattern),
    file: UploadFile = File(..., description="video/*"),
    bucket=Depends(get_bucket),
):
    """Stores an exercise video and returns its URL."""
    try:
        url = upload_file(
            bucket, file, folder,
            max_bytes=settings.max_video_upload_bytes,
            url_expires=timedelta(days=settings.upload_url_expires_days),
            allowed_types=ALLOWED_VIDEO_TYPES,
        )
    except UploadError as exc:
        raise_http(exc)
    return {"url": url}


@router.post("/{folder}", status_code=status.HTTP_201_CREATED, summary="Upload Image")
def upload_image(
    folder: str = Path(..., pattern=FOLDER_PATTERN.pattern),
    file: UploadFile = File(..., description="jpeg / png / webp / gif"),
    bucket=Depends(get_bucket),
):
    """Stores an image for forum posts, tutorials, avatars... and returns its URL."""
    try:
        url = upload_file(
            bucket, file, folder,
            max_bytes=settings.max_upload_bytes,
            url_expires=timedelta(days=settings.upload_url_expires_days),
        )
    except UploadError as exc:
        raise_http(exc)
    return {"url": url}
