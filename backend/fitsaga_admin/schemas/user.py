"""
# `fitsaga_admin/schemas/user.py` - User profile schemas

## Overview
The profile document lives in `users/{uid}` and is owned by the portal (not by Firebase Auth).
Field names in Firestore are camelCase, as written by the mobile app.

| Field               | Type                         | Notes |
|---------------------|------------------------------|-------|
| uid                 | `str`                        | Same as the Firebase UID |
| email               | `str`                        | |
| name                | `str`                        | |
| role                | `user` / `trainer` / `admin` | Only `admin` may use the portal |
| credits             | `int` (>= 0)                 | Booking credit balance |
| memberSince         | `datetime`                   | |
| lastActive          | `datetime`                   | |
| onboardingCompleted | `bool`                       | |
| accessStatus        | `green` / `red`              | Gym access flag |
| photoURL, height, weight, birthday, sex, observations, fidelityScore | optional | |

---

## Role helpers
- `is_admin_profile(profile)`: the single place that decides admin rights. It looks at `role` only.
- `default_profile(identity, role)`: the document created on first sign-in.
"""
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import Field, field_validator

from fitsaga_admin.schemas.common import FirestoreModel, Timestamp, parse_document
from fitsaga_admin.schemas.principal import Identity

Role = Literal["user", "trainer", "admin"]
AccessStatus = Literal["green", "red"]
Sex = Literal["male", "female", "other"]

ADMIN_ROLE = "admin"
DEFAULT_ROLE = "user"


class ProfileFields(FirestoreModel):
    """Editable profile fields shared by the create/out schemas."""
    email: str = Field("", description="E-mail")
    name: str = Field("", description="Full name")
    role: Role = Field(DEFAULT_ROLE, description="user | trainer | admin")
    credits: int = Field(0, ge=0, description="Credit balance")
    photo_url: Optional[str] = Field(None, alias="photoURL")
    height: Optional[float] = Field(None, ge=0, description="cm")
    weight: Optional[float] = Field(None, ge=0, description="kg")
    birthday: Optional[Timestamp] = None
    sex: Optional[Sex] = None
    observations: Optional[str] = None
    fidelity_score: Optional[float] = None
    onboarding_completed: bool = False
    access_status: AccessStatus = "green"


class Profile(ProfileFields):
    """Profile document as read from `users/{uid}`."""
    uid: str = Field(..., description="Firebase UID")
    member_since: Optional[Timestamp] = None
    last_active: Optional[Timestamp] = None

    @field_validator("credits", mode="before")
    @classmethod
    def _credits_from_form(cls, v):
        # The web forms historically stored credits as strings.
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v)
        return v


class UserCreate(ProfileFields):
    """Admin => new user record."""
    email: str = Field(..., min_length=3, description="E-mail")
    name: str = Field(..., min_length=1, description="Full name")


class UserUpdate(FirestoreModel):
    """Admin => partial user update. `role` is changed through the dedicated role endpoint."""
    email: Optional[str] = None
    name: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0)
    photo_url: Optional[str] = Field(None, alias="photoURL")
    height: Optional[float] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    birthday: Optional[Timestamp] = None
    sex: Optional[Sex] = None
    observations: Optional[str] = None
    fidelity_score: Optional[float] = None
    onboarding_completed: Optional[bool] = None
    access_status: Optional[AccessStatus] = None


class RoleUpdate(FirestoreModel):
    role: Role


def parse_profile(uid: str, data: Optional[dict]) -> Profile:
    return parse_document(Profile, uid, data, id_field="uid")


def is_admin_profile(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.role == ADMIN_ROLE


def default_profile(identity: Identity, role: Role = DEFAULT_ROLE) -> Profile:
    now = datetime.now(timezone.utc)
    email = identity.email or ""
    name = identity.display_name or (email.split("@")[0] if email else "")
    return Profile(
        uid=identity.uid,
        email=email,
        name=name,
        role=role,
        credits=0,
        photo_url=identity.photo_url,
        member_since=now,
        last_active=now,
        onboarding_completed=False,
        access_status="green",
    )
