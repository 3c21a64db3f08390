"""
fitsaga_admin/schemas/training_session.py
Scheduled class sessions (`sessions` collection). Named "training session" in code to
keep them apart from the auth Session.
"""
from typing import Literal, Optional

from pydantic import Field, model_validator

from fitsaga_admin.schemas.common import FirestoreModel, Timestamp, parse_document

Frequency = Literal["daily", "weekly", "monthly"]


class Recurrence(FirestoreModel):
    frequency: Frequency
    repeat_every: int = Field(1, ge=1, description="1 = every day/week/month, 2 = every other, ...")
    end_date: Optional[Timestamp] = None


class TrainingSessionBase(FirestoreModel):
    activity_id: str = Field(..., min_length=1)
    activity_name: str = ""
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    notes: Optional[str] = None
    start_time: Timestamp
    end_time: Timestamp
    capacity: int = Field(..., ge=0)
    booked_count: int = Field(0, ge=0)
    recurring: Optional[Recurrence] = None

    @model_validator(mode="after")
    def _check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class TrainingSessionCreate(TrainingSessionBase):
    pass


class TrainingSessionUpdate(FirestoreModel):
    activity_id: Optional[str] = None
    activity_name: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    notes: Optional[str] = None
    start_time: Optional[Timestamp] = None
    end_time: Optional[Timestamp] = None
    capacity: Optional[int] = Field(None, ge=0)
    booked_count: Optional[int] = Field(None, ge=0)
    recurring: Optional[Recurrence] = None


class TrainingSession(TrainingSessionBase):
    id: str
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


def parse_training_session(doc_id: str, data: Optional[dict]) -> TrainingSession:
    return parse_document(TrainingSession, doc_id, data)
