"""Ticket entity — a customer issue or installation request."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from helpdesk.domain.value_objects.enums import (
    TERMINAL_STATUSES,
    ClosedReason,
    PerformStatus,
    TicketClass,
    TicketPriority,
    TicketStatus,
    TicketType,
)
from helpdesk.domain.value_objects.geo_point import GeoPoint


@dataclass
class Ticket:
    id: int | None
    ticket_number: str
    type: TicketType
    priority: TicketPriority
    status: TicketStatus
    title: str
    description: str
    customer_name: str
    customer_phone: str
    customer_location_url: str
    created_at: datetime
    sla_deadline: datetime
    customer_email: str | None = None
    area: str | None = None
    odp_info: str | None = None
    odp_location: str | None = None
    ticket_id_custom: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    description_images: list[str] = field(default_factory=list)

    # Set by the closing technician
    action_description: str | None = None
    proof_image_url: str | None = None
    proof_image_urls: list[str] = field(default_factory=list)
    speedtest_result: str | None = None
    speedtest_image_url: str | None = None

    # Set at closure
    closed_at: datetime | None = None
    duration_minutes: int | None = None
    closed_reason: ClosedReason | None = None
    closed_note: str | None = None
    perform_status: PerformStatus | None = None
    bonus: Decimal = Decimal("0")
    ticket_fee: Decimal = Decimal("0")
    transport_fee: Decimal = Decimal("0")

    rejection_reason: str | None = None
    reopen_reason: str | None = None
    status_before_rejection: TicketStatus | None = None

    @property
    def location(self) -> GeoPoint | None:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)

    @property
    def ticket_class(self) -> TicketClass:
        if self.type == TicketType.INSTALLATION:
            return TicketClass.INSTALLATION
        return TicketClass.MAINTENANCE

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_overdue(self, now: datetime) -> bool:
        """Derived view: still open for work and past its SLA deadline."""
        return not self.is_terminal() and now > self.sla_deadline

    def clear_closure(self) -> None:
        """Drop every field written by a previous close."""
        self.closed_at = None
        self.duration_minutes = None
        self.closed_reason = None
        self.closed_note = None
        self.perform_status = None
        self.bonus = Decimal("0")
        self.ticket_fee = Decimal("0")
        self.transport_fee = Decimal("0")
        self.action_description = None
        self.proof_image_url = None
        self.proof_image_urls = []
        self.speedtest_result = None
        self.speedtest_image_url = None
