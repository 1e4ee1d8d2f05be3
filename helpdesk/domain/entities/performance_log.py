"""Performance log — one technician's outcome on one closed ticket."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from helpdesk.domain.value_objects.enums import PerformStatus


@dataclass
class PerformanceLog:
    id: int | None
    user_id: int
    ticket_id: int
    result: PerformStatus
    completed_within_sla: bool
    duration_minutes: int
    ticket_fee: Decimal = Decimal("0")
    transport_fee: Decimal = Decimal("0")
    bonus: Decimal = Decimal("0")
    created_at: datetime | None = None
