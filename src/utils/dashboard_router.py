"""Role-gated dashboards.

``resolve_dashboard`` maps a user's role to one of three dashboards and
refuses anything else. ``DashboardBuilder`` assembles the tabs each
dashboard shows from the record store.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

from core.exceptions import UnknownRoleError
from schemas.dashboard import Dashboard
from schemas.ticket import Ticket, TicketStatus, TicketView
from schemas.user import PublicUser, Role, User
from utils.ticket_manager import TicketManager, search_tickets
from utils.ticket_workflow import allowed_actions
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)


class DashboardKind(str, Enum):
    STUDENT = "student"
    CLASS_REPRESENTATIVE = "class-representative"
    ADMIN = "admin"


_DASHBOARDS = {
    Role.STUDENT.value: DashboardKind.STUDENT,
    Role.CLASS_REPRESENTATIVE.value: DashboardKind.CLASS_REPRESENTATIVE,
    Role.ADMIN.value: DashboardKind.ADMIN,
}

# Statuses an owner sees counted on the student and class-rep dashboards
OWNER_COUNTED_STATUSES = (
    TicketStatus.PENDING,
    TicketStatus.APPROVED,
    TicketStatus.IN_PROGRESS,
    TicketStatus.RESOLVED,
    TicketStatus.REJECTED,
)

ADMIN_STATUSES = (
    TicketStatus.APPROVED,
    TicketStatus.IN_PROGRESS,
    TicketStatus.RESOLVED,
)


def resolve_dashboard(role: Optional[str]) -> DashboardKind:
    """Select the dashboard for ``role``.

    Raises:
        UnknownRoleError: If the role is missing or unrecognized.
    """
    kind = _DASHBOARDS.get(role or "")
    if kind is None:
        logger.warning("No dashboard for role %r", role)
        raise UnknownRoleError(role)
    return kind


def count_by_status(
    tickets: Iterable[Ticket], statuses: Iterable[TicketStatus]
) -> Dict[str, int]:
    counts = {status.value: 0 for status in statuses}
    for ticket in tickets:
        if ticket.status.value in counts:
            counts[ticket.status.value] += 1
    return counts


class DashboardBuilder:
    """Builds the dashboard payload for the current user."""

    def __init__(self, tickets: TicketManager, users: UserManager):
        self.tickets = tickets
        self.users = users

    def _views(self, tickets: List[Ticket], viewer: User) -> List[TicketView]:
        return [
            TicketView(
                ticket=t,
                allowed_actions=(
                    []
                    if t.user_id == viewer.user_id
                    else allowed_actions(t.status, viewer.role)
                ),
            )
            for t in tickets
        ]

    def build(
        self,
        user: User,
        status: Optional[TicketStatus] = None,
        query: Optional[str] = None,
    ) -> Dashboard:
        """Build the dashboard for ``user``.

        Args:
            user: The session user.
            status: Admin only; which status tab to list (default approved).
            query: Optional search text.

        Raises:
            UnknownRoleError: If the user's role has no dashboard.
        """
        kind = resolve_dashboard(user.role)
        if kind == DashboardKind.ADMIN:
            return self._admin(user, status, query)
        if kind == DashboardKind.CLASS_REPRESENTATIVE:
            return self._class_representative(user, query)
        return self._student(user, query)

    def _student(self, user: User, query: Optional[str]) -> Dashboard:
        mine = self.tickets.list_user_tickets(user.user_id)
        return Dashboard(
            kind=DashboardKind.STUDENT.value,
            tabs={"my_tickets": self._views(search_tickets(mine, query), user)},
            counts=count_by_status(mine, OWNER_COUNTED_STATUSES),
        )

    def _class_representative(self, user: User, query: Optional[str]) -> Dashboard:
        mine = self.tickets.list_user_tickets(user.user_id)
        review = self.tickets.review_queue(user)
        pending = [t for t in review if t.status == TicketStatus.PENDING]
        approved = [t for t in review if t.status == TicketStatus.APPROVED]

        counts = count_by_status(mine, OWNER_COUNTED_STATUSES)
        counts["review_pending"] = len(pending)
        counts["review_approved"] = len(approved)
        return Dashboard(
            kind=DashboardKind.CLASS_REPRESENTATIVE.value,
            tabs={
                "my_tickets": self._views(search_tickets(mine, query), user),
                "review_pending": self._views(search_tickets(pending, query), user),
                "review_approved": self._views(search_tickets(approved, query), user),
            },
            counts=counts,
        )

    def _admin(
        self, user: User, status: Optional[TicketStatus], query: Optional[str]
    ) -> Dashboard:
        status = TicketStatus(status) if status else TicketStatus.APPROVED
        all_tickets = self.tickets.list_tickets()
        listed = [t for t in all_tickets if t.status == status]
        return Dashboard(
            kind=DashboardKind.ADMIN.value,
            tabs={status.value: self._views(search_tickets(listed, query), user)},
            counts=count_by_status(all_tickets, ADMIN_STATUSES),
            role_requests=[
                PublicUser.from_user(u) for u in self.users.list_role_requests()
            ],
        )
