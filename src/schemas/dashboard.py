from typing import Dict, List

from pydantic import BaseModel

from schemas.ticket import TicketView
from schemas.user import PublicUser


class Dashboard(BaseModel):
    """Role-specific dashboard payload.

    ``tabs`` maps a tab name (e.g. ``my_tickets``, ``review_pending``) to the
    tickets shown in it; ``counts`` holds the badge numbers per status.
    """

    kind: str
    tabs: Dict[str, List[TicketView]] = {}
    counts: Dict[str, int] = {}
    role_requests: List[PublicUser] = []
