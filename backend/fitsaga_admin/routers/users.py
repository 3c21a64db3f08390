"""
# `fitsaga_admin/routers/users.py` - User Management

## Overview
Admin CRUD over the `users` profile documents, plus the only in-portal way to grant or revoke
roles. Every endpoint requires an admin session (`require_admin_session`).

---

## Endpoints

### `GET /users`
Lists profiles, most recently active first. Optional `role` filter.

### `GET /users/{uid}`
Single profile.

### `POST /users`
Creates a profile document (no Firebase Auth account). `memberSince` / `lastActive` are set
to now, `accessStatus` starts `green`, `credits` is numeric. The role is always `user`;
elevate it afterwards with the role endpoint.

### `PATCH /users/{uid}`
Partial update of the editable fields. `role` is not accepted here.

### `POST /users/{uid}/role`
**Privileged action.** Sets `role` (`user` | `trainer` | `admin`) on the profile and mirrors it
into the Firebase custom claims. An admin cannot demote themselves.

### `DELETE /users/{uid}`
Deletes the profile document.
"""
from datetime import datetime, timezone
from functools import partial
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from fitsaga_admin.config import get_db, get_firebase_app
from fitsaga_admin.core.errors import DataError, raise_http
from fitsaga_admin.core.security import require_admin_session
from fitsaga_admin.repositories.documents import DocumentCollection, DocumentQuery
from fitsaga_admin.schemas.auth import Session
from fitsaga_admin.schemas.user import DEFAULT_ROLE, Profile, Role, RoleUpdate, UserCreate, UserUpdate, parse_profile
from fitsaga_admin.services.roles import change_role, sync_role_claim

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(require_admin_session)],
)


def get_users(db=Depends(get_db)) -> DocumentCollection:
    return DocumentCollection("users", db, parse_profile, timestamps=False)


def get_claim_sync():
    return partial(sync_role_claim, app=get_firebase_app())


@router.get("", response_model=List[Profile], summary="List Users")
def list_users(
    role: Optional[Role] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    users: DocumentCollection = Depends(get_users),
):
    query = DocumentQuery(order_by="lastActive", descending=True, limit=limit)
    if role:
        query.filters.append(("role", "==", role))
    try:
        return users.list(query)
    except DataError as exc:
        raise_http(exc)


@router.get("/{uid}", response_model=Profile, summary="Get User")
def get_user(uid: str, users: DocumentCollection = Depends(get_users)):
    try:
        return users.get(uid)
    except DataError as exc:
        raise_http(exc)


@router.post("", response_model=Profile, status_code=status.HTTP_201_CREATED, summary="Create User")
def create_user(body: UserCreate, users: DocumentCollection = Depends(get_users)):
    now = datetime.now(timezone.utc)
    doc_id = users.ref.document().id
    payload = {
        **body.to_document(),
        "uid": doc_id,
        "role": DEFAULT_ROLE,
        "credits": int(body.credits),
        "memberSince": now,
        "lastActive": now,
        "accessStatus": "green",
    }
    try:
        return users.create(payload, doc_id=doc_id)
    except DataError as exc:
        raise_http(exc)


@router.patch("/{uid}", response_model=Profile, summary="Update User")
def update_user(uid: str, body: UserUpdate, users: DocumentCollection = Depends(get_users)):
    try:
        return users.update(uid, body.to_document(exclude_unset=True))
    except DataError as exc:
        raise_http(exc)


@router.post("/{uid}/role", response_model=Profile, summary="Change User Role")
def set_user_role(
    uid: str,
    body: RoleUpdate,
    session: Session = Depends(require_admin_session),
    users: DocumentCollection = Depends(get_users),
    claim_sync=Depends(get_claim_sync),
):
    try:
        return change_role(users, uid, body.role, actor_uid=session.identity.uid, claim_sync=claim_sync)
    except DataError as exc:
        raise_http(exc)


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete User")
def delete_user(uid: str, session: Session = Depends(require_admin_session), users: DocumentCollection = Depends(get_users)):
    if uid == session.identity.uid:
        raise_http(DataError("validation", "You cannot delete your own profile"))
    try:
        users.delete(uid)
    except DataError as exc:
        raise_http(exc)
