# fitsaga_admin/schemas/tutorial.py
from typing import Annotated, List, Literal, Optional
from uuid import uuid4

from pydantic import AfterValidator, Field

from fitsaga_admin.schemas.common import FirestoreModel, Timestamp, parse_document

Difficulty = Literal["beginner", "intermediate", "advanced"]
TutorialCategory = Literal["exercise", "nutrition"]


class Exercise(FirestoreModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(..., min_length=1)
    description: str = ""
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: int = Field(0, ge=0, description="minutes")
    difficulty: Difficulty = "beginner"
    equipment: List[str] = Field(default_factory=list)
    muscle_groups: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)


class TutorialDay(FirestoreModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    day_number: int = Field(..., ge=1)
    title: str = ""
    description: str = ""
    exercises: List[Exercise] = Field(default_factory=list)


class TutorialDayIn(FirestoreModel):
    """New day; `dayNumber` is assigned by the server."""
    title: str = ""
    description: str = ""
    exercises: List[Exercise] = Field(default_factory=list)


class DietPlan(FirestoreModel):
    """Nutrition plan attached to a tutorial, stored in its `dietPlans` array."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = ""
    description: str = ""
    content: str = ""
    image_url: Optional[str] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# Trimmed, non-blank text
RequiredText = Annotated[str, AfterValidator(_required_text)]


class DietPlanIn(FirestoreModel):
    title: RequiredText
    description: RequiredText
    content: RequiredText
    image_url: Optional[str] = None


class DietPlanUpdate(FirestoreModel):
    title: Optional[RequiredText] = None
    description: Optional[RequiredText] = None
    content: Optional[RequiredText] = None
    image_url: Optional[str] = None


class TutorialBase(FirestoreModel):
    title: str = Field(..., min_length=1)
    category: TutorialCategory = "exercise"
    description: str = ""
    thumbnail_url: Optional[str] = None
    author: str = ""
    duration: int = Field(0, ge=0, description="Total duration in minutes")
    difficulty: Difficulty = "beginner"
    days: List[TutorialDay] = Field(default_factory=list)
    diet_plans: List[DietPlan] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)


class TutorialCreate(TutorialBase):
    pass


class TutorialUpdate(FirestoreModel):
    title: Optional[str] = Field(None, min_length=1)
    category: Optional[TutorialCategory] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    difficulty: Optional[Difficulty] = None
    goals: Optional[List[str]] = None
    requirements: Optional[List[str]] = None


class Tutorial(TutorialBase):
    id: str
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


def parse_tutorial(doc_id: str, data: Optional[dict]) -> Tutorial:
    return parse_document(Tutorial, doc_id, data)


def renumber_days(days: List[TutorialDay]) -> List[TutorialDay]:
    """Days are numbered 1..n in list order."""
    return [day.model_copy(update={"day_number": index}) for index, day in enumerate(days, start=1)]
