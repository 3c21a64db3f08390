# fitsaga_admin/routers/sessions.py
"""
Class Session Management (admin only), `sessions` collection.
- GET    /sessions               -> list by start time (`upcoming=true` hides past sessions)
- GET    /sessions/{id}
- POST   /sessions               -> JSON body; `endTime` must be after `startTime`
- PATCH  /sessions/{id}          -> partial update, validated against the stored session
- DELETE /sessions/{id}
"""
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import ValidationError

from fitsaga_admin.config import get_db
from fitsaga_admin.core.errors import DataError, raise_http
from fitsaga_admin.core.security import require_admin_session
from fitsaga_admin.repositories.documents import DocumentCollection, DocumentQuery
from fitsaga_admin.schemas.training_session import (
    TrainingSession,
    TrainingSessionBase,
    TrainingSessionCreate,
    TrainingSessionUpdate,
    parse_training_session,
)

router = APIRouter(
    prefix="/sessions",
    tags=["Sessions"],
    dependencies=[Depends(require_admin_session)],
)


def get_sessions(db=Depends(get_db)) -> DocumentCollection:
    return DocumentCollection("sessions", db, parse_training_session)


@router.get("", response_model=List[TrainingSession], summary="List Sessions")
def list_sessions(
    activity_id: Optional[str] = Query(None, alias="activityId"),
    upcoming: bool = Query(False, description="Only sessions that have not started"),
    limit: int = Query(100, ge=1, le=500),
    sessions: DocumentCollection = Depends(get_sessions),
):
    query = DocumentQuery(order_by="startTime", limit=limit)
    if activity_id:
        query.filters.append(("activityId", "==", activity_id))
    if upcoming:
        query.filters.append(("startTime", ">", datetime.now(timezone.utc)))
    try:
        return sessions.list(query)
    except DataError as exc:
        raise_http(exc)


@router.get("/{session_id}", response_model=TrainingSession, summary="Get Session")
def get_session(session_id: str, sessions: DocumentCollection = Depends(get_sessions)):
    try:
        return sessions.get(session_id)
    except DataError as exc:
        raise_http(exc)


@router.post("", response_model=TrainingSession, status_code=status.HTTP_201_CREATED, summary="Create Session")
def create_session(body: TrainingSessionCreate, sessions: DocumentCollection = Depends(get_sessions)):
    if body.booked_count > body.capacity:
        raise_http(DataError("validation", "bookedCount cannot exceed capacity"))
    try:
        return sessions.create(body.to_document())
    except DataError as exc:
        raise_http(exc)


@router.patch("/{session_id}", response_model=TrainingSession, summary="Update Session")
def update_session(
    session_id: str,
    body: TrainingSessionUpdate,
    sessions: DocumentCollection = Depends(get_sessions),
):
    # Explicit nulls are kept so a patch can clear optional fields such as `recurring`.
    patch = body.model_dump(by_alias=True, exclude_unset=True)
    try:
        current = sessions.get(session_id)
        # Re-validate the merged result so a partial patch cannot invert the time window.
        merged = {**current.to_document(exclude={"id", "created_at", "updated_at"}), **patch}
        candidate = TrainingSessionBase.model_validate(merged)
    except ValidationError as exc:
        raise_http(DataError("validation", "; ".join(e["msg"] for e in exc.errors())))
    except DataError as exc:
        raise_http(exc)
    if candidate.booked_count > candidate.capacity:
        raise_http(DataError("validation", "bookedCount cannot exceed capacity"))
    try:
        return sessions.update(session_id, patch)
    except DataError as exc:
        raise_http(exc)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Session")
def delete_session(session_id: str, sessions: DocumentCollection = Depends(get_sessions)):
    try:
        sessions.delete(session_id)
    except DataError as exc:
        raise_http(exc)
