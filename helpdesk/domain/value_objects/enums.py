"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class UserRole(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    HELPDESK = "helpdesk"
    TECHNICIAN = "technician"


class TicketType(str, Enum):
    HOME_MAINTENANCE = "home_maintenance"
    BACKBONE_MAINTENANCE = "backbone_maintenance"
    INSTALLATION = "installation"


class TicketClass(str, Enum):
    """Work class used by the auto-assign cycle."""

    MAINTENANCE = "maintenance"
    INSTALLATION = "installation"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """0 is the most urgent."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TicketPriority.CRITICAL: 0,
    TicketPriority.HIGH: 1,
    TicketPriority.MEDIUM: 2,
    TicketPriority.LOW: 3,
}


class TicketStatus(str, Enum):
    OPEN = "open"
    WAITING_ASSIGNMENT = "waiting_assignment"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PENDING_REJECTION = "pending_rejection"
    REJECTED = "rejected"
    CLOSED = "closed"


TERMINAL_STATUSES = frozenset({TicketStatus.CLOSED, TicketStatus.REJECTED})
ACTIVE_WORK_STATUSES = frozenset({TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS})


class PerformStatus(str, Enum):
    PERFORM = "perform"
    NOT_PERFORM = "not_perform"


class AssignmentType(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"


class ClosedReason(str, Enum):
    COMPLETED = "completed"
    CLOSED_BY_HELPDESK = "closed_by_helpdesk"


class ReopenMode(str, Enum):
    CURRENT = "current"
    AUTO = "auto"
