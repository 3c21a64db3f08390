"""
fitsaga_admin/schemas/auth.py
The derived, in-memory Session value and the auth route payloads.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from fitsaga_admin.schemas.principal import Identity
from fitsaga_admin.schemas.user import Profile, is_admin_profile


class SessionState(str, Enum):
    SIGNED_OUT = "signed_out"
    CHECKING = "checking"
    SIGNED_IN = "signed_in"
    SIGNED_IN_NO_PROFILE = "signed_in_no_profile"
    ERROR = "error"


class Session(BaseModel):
    """
    Who is signed in and what they may do. Frozen: the controller replaces it
    wholesale on every change and never mutates a published value.
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    state: SessionState
    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    is_loading: bool = False
    error: Optional[str] = Field(None, description="User-visible error (state=error)")
    warning: Optional[str] = Field(None, description="User-visible warning (e.g. profile not saved)")

    @computed_field
    @property
    def is_admin(self) -> bool:
        return is_admin_profile(self.profile)

    @classmethod
    def signed_out(cls) -> "Session":
        return cls(state=SessionState.SIGNED_OUT)

    @classmethod
    def checking(cls, identity: Optional[Identity] = None) -> "Session":
        return cls(state=SessionState.CHECKING, identity=identity, is_loading=True)


class LoginResponse(BaseModel):
    """Session snapshot after a sign-in attempt; `settled=False` means a notification is still pending."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    settled: bool
    session: Session
    id_token: Optional[str] = Field(None, description="Firebase ID token; send it back as a bearer token")
