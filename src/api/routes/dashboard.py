"""Dashboard route.

Returns the dashboard that matches the caller's role.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.routes.auth import get_current_user
from core.dependencies import DashboardBuilderDep
from core.exceptions import UnknownRoleError
from schemas.dashboard import Dashboard
from schemas.ticket import TicketStatus
from schemas.user import User

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("", response_model=Dashboard, summary="Role-specific dashboard")
def get_dashboard(
    builder: DashboardBuilderDep,
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    q: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> Dashboard:
    """Build the student, class representative or admin dashboard.

    Args:
        status_filter: Admin only; the status tab to list.
        q: Search text matched against description, classroom and issue type.

    Raises:
        HTTPException: 403 if the user's role has no dashboard.
    """
    try:
        return builder.build(current_user, status=status_filter, query=q)
    except UnknownRoleError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
