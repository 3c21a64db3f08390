# fitsaga_admin/routers/activities.py
"""
Activity Management (admin only)
- GET    /activities            -> list, newest first
- GET    /activities/{id}       -> single activity
- POST   /activities            -> create (multipart: form fields + optional image)
- PUT    /activities/{id}       -> partial update (multipart; a new image replaces the old URL)
- DELETE /activities/{id}       -> delete
"""
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from fitsaga_admin.config import get_bucket, get_db, settings
from fitsaga_admin.core.errors import DataError, UploadError, raise_http
from fitsaga_admin.core.security import require_admin_session
from fitsaga_admin.repositories.documents import DocumentCollection, DocumentQuery
from fitsaga_admin.schemas.activity import Activity, ActivityCreate, ActivityType, ActivityUpdate, parse_activity
from fitsaga_admin.services.uploads import upload_file

router = APIRouter(
    prefix="/activities",
    tags=["Activities"],
    dependencies=[Depends(require_admin_session)],
)

IMAGE_FOLDER = "activities"


def get_activities(db=Depends(get_db)) -> DocumentCollection[Activity]:
    return DocumentCollection("activities", db, parse_activity)


def _upload_image(bucket, image: UploadFile) -> str:
    try:
        return upload_file(
            bucket, image, IMAGE_FOLDER,
            max_bytes=settings.max_upload_bytes,
            url_expires=timedelta(days=settings.upload_url_expires_days),
        )
    except UploadError as exc:
        raise_http(exc)


@router.get("", response_model=List[Activity], summary="List Activities")
def list_activities(
    type: Optional[ActivityType] = Query(None, description="Filter by activity type"),
    limit: int = Query(100, ge=1, le=500),
    activities: DocumentCollection = Depends(get_activities),
):
    query = DocumentQuery(order_by="createdAt", descending=True, limit=limit)
    if type:
        query.filters.append(("type", "==", type))
    try:
        return activities.list(query)
    except DataError as exc:
        raise_http(exc)


@router.get("/{activity_id}", response_model=Activity, summary="Get Activity")
def get_activity(activity_id: str, activities: DocumentCollection = Depends(get_activities)):
    try:
        return activities.get(activity_id)
    except DataError as exc:
        raise_http(exc)


@router.post("", response_model=Activity, status_code=status.HTTP_201_CREATED, summary="Create Activity")
def create_activity(
    activity_in: ActivityCreate = Depends(ActivityCreate.as_form),
    image: Optional[UploadFile] = File(None, description="Cover image (optional)"),
    activities: DocumentCollection = Depends(get_activities),
    bucket=Depends(get_bucket),
):
    """
    Creates a new activity. The image (if any) is uploaded to Firebase Storage first
    and its URL stored as `imageUrl`.
    """
    payload = activity_in.to_document()
    payload["name"] = activity_in.name.strip()
    payload["description"] = activity_in.description.strip()
    if image is not None:
        payload["imageUrl"] = _upload_image(bucket, image)
    try:
        return activities.create(payload)
    except DataError as exc:
        raise_http(exc)


@router.put("/{activity_id}", response_model=Activity, summary="Update Activity")
def update_activity(
    activity_id: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    type: Optional[ActivityType] = Form(None),
    credit_value: Optional[int] = Form(None, alias="creditValue"),
    image: Optional[UploadFile] = File(None, description="New image (optional)"),
    activities: DocumentCollection = Depends(get_activities),
    bucket=Depends(get_bucket),
):
    """
    Field-wise update (multipart/form-data). Only the fields that are sent change.
    """
    try:
        patch = ActivityUpdate(
            name=name.strip() if name is not None else None,
            description=description.strip() if description is not None else None,
            type=type,
            credit_value=credit_value,
        ).to_document()
    except ValueError as exc:
        raise_http(DataError("validation", str(exc)))
    if image is not None:
        patch["imageUrl"] = _upload_image(bucket, image)
    try:
        return activities.update(activity_id, patch)
    except DataError as exc:
        raise_http(exc)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Activity")
def delete_activity(activity_id: str, activities: DocumentCollection = Depends(get_activities)):
    try:
        activities.delete(activity_id)
    except DataError as exc:
        raise_http(exc)
