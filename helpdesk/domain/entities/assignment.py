"""Assignment entity — one technician attached to one ticket."""

from dataclasses import dataclass
from datetime import datetime

from helpdesk.domain.value_objects.enums import AssignmentType


@dataclass
class Assignment:
    id: int | None
    ticket_id: int
    user_id: int
    assigned_at: datetime
    active: bool = True
    assignment_type: AssignmentType = AssignmentType.MANUAL
