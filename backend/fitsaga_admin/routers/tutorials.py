# fitsaga_admin/routers/tutorials.py
"""
Tutorial Management (admin only)
- GET    /tutorials                       -> list (optional `category` filter)
- GET    /tutorials/{id}
- POST   /tutorials                       -> JSON body; days are renumbered 1..n
- PATCH  /tutorials/{id}                  -> partial update of the tutorial fields
- DELETE /tutorials/{id}
- POST   /tutorials/{id}/days             -> append a day (dayNumber = n + 1)
- DELETE /tutorials/{id}/days/{day_id}    -> remove a day, renumber the rest
- POST   /tutorials/{id}/diet-plans                 -> add a diet plan
- GET    /tutorials/{id}/diet-plans/{plan_id}
- PATCH  /tutorials/{id}/diet-plans/{plan_id}       -> edit title / description / content / image
- DELETE /tutorials/{id}/diet-plans/{plan_id}
"""
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from google.cloud import firestore as gcf

from fitsaga_admin.config import get_db
from fitsaga_admin.core.errors import DataError, raise_http
from fitsaga_admin.core.security import require_admin_session
from fitsaga_admin.repositories.documents import DocumentCollection, DocumentQuery
from fitsaga_admin.schemas.tutorial import (
    DietPlan,
    DietPlanIn,
    DietPlanUpdate,
    Tutorial,
    TutorialCategory,
    TutorialCreate,
    TutorialDay,
    TutorialDayIn,
    TutorialUpdate,
    parse_tutorial,
    renumber_days,
)

router = APIRouter(
    prefix="/tutorials",
    tags=["Tutorials"],
    dependencies=[Depends(require_admin_session)],
)


def get_tutorials(db=Depends(get_db)) -> DocumentCollection:
    return DocumentCollection("tutorials", db, parse_tutorial)


def _days_document(days: List[TutorialDay]) -> list:
    return [day.to_document() for day in days]


@router.get("", response_model=List[Tutorial], summary="List Tutorials")
def list_tutorials(
    category: Optional[TutorialCategory] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    tutorials: DocumentCollection = Depends(get_tutorials),
):
    query = DocumentQuery(order_by="createdAt", descending=True, limit=limit)
    if category:
        query.filters.append(("category", "==", category))
    try:
        return tutorials.list(query)
    except DataError as exc:
        raise_http(exc)


@router.get("/{tutorial_id}", response_model=Tutorial, summary="Get Tutorial")
def get_tutorial(tutorial_id: str, tutorials: DocumentCollection = Depends(get_tutorials)):
    try:
        return tutorials.get(tutorial_id)
    except DataError as exc:
        raise_http(exc)


@router.post("", response_model=Tutorial, status_code=status.HTTP_201_CREATED, summary="Create Tutorial")
def create_tutorial(body: TutorialCreate, tutorials: DocumentCollection = Depends(get_tutorials)):
    payload = body.to_document()
    payload["days"] = _days_document(renumber_days(body.days))
    try:
        return tutorials.create(payload)
    except DataError as exc:
        raise_http(exc)


@router.patch("/{tutorial_id}", response_model=Tutorial, summary="Update Tutorial")
def update_tutorial(
    tutorial_id: str,
    body: TutorialUpdate,
    tutorials: DocumentCollection = Depends(get_tutorials),
):
    try:
        return tutorials.update(tutorial_id, body.to_document(exclude_unset=True))
    except DataError as exc:
        raise_http(exc)


@router.delete("/{tutorial_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Tutorial")
def delete_tutorial(tutorial_id: str, tutorials: DocumentCollection = Depends(get_tutorials)):
    try:
        tutorials.delete(tutorial_id)
    except DataError as exc:
        raise_http(exc)


@router.post(
    "/{tutorial_id}/days",
    response_model=Tutorial,
    status_code=status.HTTP_201_CREATED,
    summary="Add Tutorial Day",
)
def add_day(tutorial_id: str, body: TutorialDayIn, tutorials: DocumentCollection = Depends(get_tutorials)):
    try:
        tutorial = tutorials.get(tutorial_id)
        day = TutorialDay(day_number=len(tutorial.days) + 1, **body.model_dump())
        days = renumber_days(tutorial.days + [day])
        return tutorials.update(tutorial_id, {"days": _days_document(days)})
    except DataError as exc:
        raise_http(exc)


@router.delete("/{tutorial_id}/days/{day_id}", response_model=Tutorial, summary="Remove Tutorial Day")
def remove_day(tutorial_id: str, day_id: str, tutorials: DocumentCollection = Depends(get_tutorials)):
    try:
        tutorial = tutorials.get(tutorial_id)
        remaining = [d for d in tutorial.days if d.id != day_id]
        if len(remaining) == len(tutorial.days):
            raise DataError("not-found", "Day not found")
        return tutorials.update(tutorial_id, {"days": _days_document(renumber_days(remaining))})
    except DataError as exc:
        raise_http(exc)


# --------------------------------------------------------------------------- diet plans


def _find_plan(tutorial: Tutorial, plan_id: str) -> DietPlan:
    for plan in tutorial.diet_plans:
        if plan.id == plan_id:
            return plan
    raise DataError("not-found", "Diet plan not found")


@router.post(
    "/{tutorial_id}/diet-plans",
    response_model=Tutorial,
    status_code=status.HTTP_201_CREATED,
    summary="Add Diet Plan",
)
def add_diet_plan(tutorial_id: str, body: DietPlanIn, tutorials: DocumentCollection = Depends(get_tutorials)):
    # ArrayUnion cannot hold SERVER_TIMESTAMP, so the plan carries the current time.
    now = datetime.now(timezone.utc)
    plan = DietPlan(**body.model_dump(), created_at=now, updated_at=now)
    try:
        return tutorials.update(tutorial_id, {"dietPlans": gcf.ArrayUnion([plan.to_document()])})
    except DataError as exc:
        raise_http(exc)


@router.get("/{tutorial_id}/diet-plans/{plan_id}", response_model=DietPlan, summary="Get Diet Plan")
def get_diet_plan(tutorial_id: str, plan_id: str, tutorials: DocumentCollection = Depends(get_tutorials)):
    try:
        return _find_plan(tutorials.get(tutorial_id), plan_id)
    except DataError as exc:
        raise_http(exc)


@router.patch("/{tutorial_id}/diet-plans/{plan_id}", response_model=Tutorial, summary="Edit Diet Plan")
def update_diet_plan(
    tutorial_id: str,
    plan_id: str,
    body: DietPlanUpdate,
    tutorials: DocumentCollection = Depends(get_tutorials),
):
    try:
        tutorial = tutorials.get(tutorial_id)
        # Only the image can be cleared; a null text field leaves it unchanged.
        changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None or k == "image_url"}
        edited = _find_plan(tutorial, plan_id).model_copy(
            update={**changes, "updated_at": datetime.now(timezone.utc)}
        )
        plans = [edited if p.id == plan_id else p for p in tutorial.diet_plans]
        return tutorials.update(tutorial_id, {"dietPlans": [p.to_document() for p in plans]})
    except DataError as exc:
        raise_http(exc)


@router.delete("/{tutorial_id}/diet-plans/{plan_id}", response_model=Tutorial, summary="Remove Diet Plan")
def remove_diet_plan(tutorial_id: str, plan_id: str, tutorials: DocumentCollection = Depends(get_tutorials)):
    try:
        tutorial = tutorials.get(tutorial_id)
        _find_plan(tutorial, plan_id)
        remaining = [p for p in tutorial.diet_plans if p.id != plan_id]
        return tutorials.update(tutorial_id, {"dietPlans": [p.to_document() for p in remaining]})
    except DataError as exc:
        raise_http(exc)
