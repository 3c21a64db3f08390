# fitsaga_admin/routers/forum.py
"""
Forum Moderation (admin only), `forum_threads` collection.
- GET    /forum                    -> threads by last activity (optional `status` / `category`)
- GET    /forum/{id}
- POST   /forum                    -> new thread; author fields come from the session
- PATCH  /forum/{id}               -> edit / change status (open | closed | resolved)
- DELETE /forum/{id}
- POST   /forum/{id}/replies       -> append a reply, bump `replyCount` and `lastActivity`
"""
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, status
from google.cloud import firestore as gcf
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from fitsaga_admin.config import get_db
from fitsaga_admin.core.errors import DataError, raise_http
from fitsaga_admin.core.security import author_fields, require_admin_session
from fitsaga_admin.repositories.documents import DocumentCollection, DocumentQuery
from fitsaga_admin.schemas.auth import Session
from fitsaga_admin.schemas.forum import (
    ForumReplyIn,
    ForumThread,
    ForumThreadCreate,
    ForumThreadUpdate,
    ThreadCategory,
    ThreadStatus,
    parse_forum_thread,
)

router = APIRouter(
    prefix="/forum",
    tags=["Forum"],
    dependencies=[Depends(require_admin_session)],
)


def get_threads(db=Depends(get_db)) -> DocumentCollection:
    return DocumentCollection("forum_threads", db, parse_forum_thread)


@router.get("", response_model=List[ForumThread], summary="List Threads")
def list_threads(
    status_: Optional[ThreadStatus] = Query(None, alias="status"),
    category: Optional[ThreadCategory] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    threads: DocumentCollection = Depends(get_threads),
):
    query = DocumentQuery(order_by="lastActivity", descending=True, limit=limit)
    if status_:
        query.filters.append(("status", "==", status_))
    if category:
        query.filters.append(("category", "==", category))
    try:
        return threads.list(query)
    except DataError as exc:
        raise_http(exc)


@router.get("/{thread_id}", response_model=ForumThread, summary="Get Thread")
def get_thread(
    thread_id: str,
    threads: DocumentCollection = Depends(get_threads),
):
    try:
        return threads.get(thread_id)
    except DataError as exc:
        raise_http(exc)


@router.post("", response_model=ForumThread, status_code=status.HTTP_201_CREATED, summary="Create Thread")
def create_thread(
    body: ForumThreadCreate,
    session: Session = Depends(require_admin_session),
    threads: DocumentCollection = Depends(get_threads),
):
    payload = {
        **body.to_document(),
        **author_fields(session),
        "status": "open",
        "replies": [],
        "replyCount": 0,
        "likes": 0,
        "createdAt": SERVER_TIMESTAMP,
        "updatedAt": SERVER_TIMESTAMP,
        "lastActivity": SERVER_TIMESTAMP,
    }
    try:
        return threads.create(payload)
    except DataError as exc:
        raise_http(exc)


@router.patch("/{thread_id}", response_model=ForumThread, summary="Update Thread")
def update_thread(
    thread_id: str,
    body: ForumThreadUpdate,
    threads: DocumentCollection = Depends(get_threads),
):
    try:
        return threads.update(thread_id, body.to_document(exclude_unset=True))
    except DataError as exc:
        raise_http(exc)


@router.delete("/{thread_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Thread")
def delete_thread(
    thread_id: str,
    threads: DocumentCollection = Depends(get_threads),
):
    try:
        threads.delete(thread_id)
    except DataError as exc:
        raise_http(exc)


@router.post(
    "/{thread_id}/replies",
    response_model=ForumThread,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to Thread",
)
def add_reply(
    thread_id: str,
    body: ForumReplyIn,
    session: Session = Depends(require_admin_session),
    threads: DocumentCollection = Depends(get_threads),
):
    try:
        thread = threads.get(thread_id)
    except DataError as exc:
        raise_http(exc)
    if thread.status == "closed":
        raise_http(DataError("validation", "Thread is closed"))

    # ArrayUnion cannot hold SERVER_TIMESTAMP, so the reply carries the current time.
    now = datetime.now(timezone.utc)
    reply = {
        "id": str(uuid4()),
        "content": body.content.strip(),
        **author_fields(session),
        "likes": 0,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        return threads.update(thread_id, {
            "replies": gcf.ArrayUnion([reply]),
            "replyCount": gcf.Increment(1),
            "lastActivity": SERVER_TIMESTAMP,
        })
    except DataError as exc:
        raise_http(exc)
