# fitsaga_admin/services/dashboard.py
from datetime import datetime, timezone
from typing import List, Optional

from fitsaga_admin.repositories.documents import DocumentCollection, DocumentQuery
from fitsaga_admin.schemas.activity import Activity
from fitsaga_admin.schemas.common import FirestoreModel
from fitsaga_admin.schemas.training_session import TrainingSession
from fitsaga_admin.schemas.user import Profile

RECENT_LIMIT = 5


class DashboardStats(FirestoreModel):
    user_count: int
    activity_count: int
    session_count: int
    recent_users: List[Profile]
    recent_activities: List[Activity]
    upcoming_sessions: List[TrainingSession]


def build_dashboard(
    users: DocumentCollection,
    activities: DocumentCollection,
    sessions: DocumentCollection,
    now: Optional[datetime] = None,
) -> DashboardStats:
    """
    Overview for the admin landing page: collection sizes, the most recently active users,
    the newest activities and the next sessions that have not started yet.
    """
    now = now or datetime.now(timezone.utc)
    recent_users = users.list(DocumentQuery(order_by="lastActive", descending=True, limit=RECENT_LIMIT))
    recent_activities = activities.list(DocumentQuery(order_by="createdAt", descending=True, limit=RECENT_LIMIT))
    upcoming = sessions.list(
        DocumentQuery(filters=[("startTime", ">", now)], order_by="startTime", limit=RECENT_LIMIT)
    )
    return DashboardStats(
        user_count=users.count(),
        activity_count=activities.count(),
        session_count=sessions.count(),
        recent_users=recent_users,
        recent_activities=recent_activities,
        upcoming_sessions=upcoming,
    )
