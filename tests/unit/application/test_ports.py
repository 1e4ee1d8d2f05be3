"""Port interfaces whose classes also define a ``list`` method."""

import builtins
from typing import get_type_hints

import pytest

from helpdesk.application.ports.performance_repo import PerformanceLogRepository
from helpdesk.application.ports.ticket_repo import TicketRepository
from helpdesk.application.ports.user_repo import UserRepository


@pytest.mark.parametrize(
    "port, method",
    [
        (PerformanceLogRepository, "get_for_tickets"),
        (TicketRepository, "get_open"),
        (TicketRepository, "get_stale_assigned"),
        (UserRepository, "get_many"),
    ],
)
def test_collection_annotations_resolve_to_builtin_list(port, method):
    hints = get_type_hints(getattr(port, method))
    assert hints["return"].__origin__ is builtins.list
