"""
fitsaga_admin/schemas/principal.py
Identity issued by Firebase Authentication. The portal only observes it.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    uid: str = Field(..., description="Firebase UID")
    email: Optional[str] = Field(None, description="E-mail (if any)")
    display_name: Optional[str] = Field(None, description="Display name (if any)")
    photo_url: Optional[str] = Field(None, description="Avatar URL (if any)")
