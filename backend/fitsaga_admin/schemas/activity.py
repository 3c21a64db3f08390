# fitsaga_admin/schemas/activity.py
from typing import Literal, Optional

from fastapi import Form
from pydantic import Field

from fitsaga_admin.schemas.common import FirestoreModel, Timestamp, parse_document

ActivityType = Literal["kingboxing", "yoga", "musculation", "free_access", "other"]


class ActivityBase(FirestoreModel):
    """Activity common fields."""
    name: str = Field(..., min_length=1, description="Activity name")
    description: str = Field("", description="Description")
    type: ActivityType = Field("other", description="Activity type")
    credit_value: int = Field(0, ge=0, description="Credits charged per booking")
    image_url: Optional[str] = Field(None, description="Storage URL")


# ---------- input ----------
class ActivityCreate(ActivityBase):
    """
    Admin => new activity. The image is received as a file by the endpoint
    and is not part of the Pydantic model.
    """

    @classmethod
    def as_form(
        cls,
        name: str = Form(...),
        description: str = Form(""),
        type: ActivityType = Form("other"),
        credit_value: int = Form(0, alias="creditValue"),
    ):
        return cls(name=name, description=description, type=type, credit_value=credit_value)


class ActivityUpdate(FirestoreModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    type: Optional[ActivityType] = None
    credit_value: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None


# ---------- output ----------
class Activity(ActivityBase):
    id: str
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


def parse_activity(doc_id: str, data: Optional[dict]) -> Activity:
    return parse_document(Activity, doc_id, data)
