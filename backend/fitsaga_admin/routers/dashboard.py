"""
Admin Dashboard Router
Counts and recent items for the portal landing page.
"""
from fastapi import APIRouter, Depends

from fitsaga_admin.core.errors import DataError, raise_http
from fitsaga_admin.core.security import require_admin_session
from fitsaga_admin.repositories.documents import DocumentCollection
from fitsaga_admin.routers.activities import get_activities
from fitsaga_admin.routers.sessions import get_sessions
from fitsaga_admin.routers.users import get_users
from fitsaga_admin.services.dashboard import DashboardStats, build_dashboard

router = APIRouter(tags=["Dashboard"], dependencies=[Depends(require_admin_session)])


@router.get("/dashboard", response_model=DashboardStats, summary="Dashboard Overview")
def get_dashboard(
    users: DocumentCollection = Depends(get_users),
    activities: DocumentCollection = Depends(get_activities),
    sessions: DocumentCollection = Depends(get_sessions),
):
    """
    Get dashboard statistics for admin panel
    Returns overview statistics including counts and recent activity
    """
    try:
        return build_dashboard(users, activities, sessions)
    except DataError as exc:
        raise_http(exc)
