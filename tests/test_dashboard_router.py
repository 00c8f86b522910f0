import pytest

from core.exceptions import UnknownRoleError
from schemas.ticket import TicketAction, TicketStatus
from utils.dashboard_router import DashboardBuilder, DashboardKind, resolve_dashboard


@pytest.fixture
def builder(ticket_manager, user_manager):
    return DashboardBuilder(ticket_manager, user_manager)


@pytest.mark.parametrize(
    "role, kind",
    [
        ("student", DashboardKind.STUDENT),
        ("class-representative", DashboardKind.CLASS_REPRESENTATIVE),
        ("admin", DashboardKind.ADMIN),
    ],
)
def test_known_roles_resolve(role, kind):
    assert resolve_dashboard(role) == kind


@pytest.mark.parametrize("role", [None, "", "guest", "Admin"])
def test_unknown_roles_are_refused(role):
    with pytest.raises(UnknownRoleError):
        resolve_dashboard(role)


def test_student_sees_only_own_tickets(builder, student, make_user, make_ticket):
    mine = make_ticket(student)
    make_ticket(make_user())

    dashboard = builder.build(student)

    assert dashboard.kind == "student"
    assert [v.ticket.ticket_id for v in dashboard.tabs["my_tickets"]] == [mine.ticket_id]
    assert dashboard.tabs["my_tickets"][0].allowed_actions == []
    assert dashboard.counts["pending"] == 1


def test_class_rep_review_tabs_exclude_own_tickets(
    builder, ticket_manager, student, class_rep, make_ticket
):
    own = make_ticket(class_rep)
    pending = make_ticket(student)
    approved = make_ticket(student, classroom="Room 202")
    ticket_manager.apply_action(approved.ticket_id, TicketAction.APPROVE, class_rep)

    dashboard = builder.build(class_rep)

    assert dashboard.kind == "class-representative"
    assert [v.ticket.ticket_id for v in dashboard.tabs["my_tickets"]] == [own.ticket_id]
    review_pending = dashboard.tabs["review_pending"]
    assert [v.ticket.ticket_id for v in review_pending] == [pending.ticket_id]
    assert review_pending[0].allowed_actions == [TicketAction.APPROVE, TicketAction.REJECT]
    assert [v.ticket.ticket_id for v in dashboard.tabs["review_approved"]] == [
        approved.ticket_id
    ]
    assert dashboard.counts["review_pending"] == 1
    assert dashboard.counts["review_approved"] == 1


def test_admin_defaults_to_approved_tab(
    builder, ticket_manager, student, class_rep, admin, make_ticket
):
    ticket = make_ticket(student)
    make_ticket(student)
    ticket_manager.apply_action(ticket.ticket_id, TicketAction.APPROVE, class_rep)

    dashboard = builder.build(admin)

    assert dashboard.kind == "admin"
    assert list(dashboard.tabs) == ["approved"]
    view = dashboard.tabs["approved"][0]
    assert view.ticket.ticket_id == ticket.ticket_id
    assert view.allowed_actions == [TicketAction.START]
    assert dashboard.counts == {"approved": 1, "in-progress": 0, "resolved": 0}


def test_admin_status_tab_and_search(
    builder, ticket_manager, student, class_rep, admin, make_ticket
):
    lab = make_ticket(student, classroom="Lab 3", issue_type="Aircon")
    room = make_ticket(student)
    for ticket in (lab, room):
        ticket_manager.apply_action(ticket.ticket_id, "approve", class_rep)
        ticket_manager.apply_action(ticket.ticket_id, "start", admin)

    dashboard = builder.build(admin, status=TicketStatus.IN_PROGRESS, query="lab")

    assert [v.ticket.ticket_id for v in dashboard.tabs["in-progress"]] == [lab.ticket_id]
    assert dashboard.counts["in-progress"] == 2


def test_admin_sees_role_requests(builder, admin, make_user):
    requester = make_user(requested_role="class-representative")
    make_user()

    dashboard = builder.build(admin)

    assert [u.user_id for u in dashboard.role_requests] == [requester.user_id]


def test_unknown_role_user_gets_no_dashboard(builder, make_user):
    with pytest.raises(UnknownRoleError):
        builder.build(make_user("janitor"))
