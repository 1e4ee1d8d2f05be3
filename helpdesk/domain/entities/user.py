"""User entity — staff member or field technician."""

from dataclasses import dataclass
from datetime import datetime

from helpdesk.domain.value_objects.enums import UserRole


@dataclass
class User:
    id: int | None
    name: str
    role: UserRole
    email: str | None = None
    username: str | None = None
    phone: str | None = None
    is_backbone_specialist: bool = False
    is_active: bool = True
    created_at: datetime | None = None

    def is_technician(self) -> bool:
        return self.role == UserRole.TECHNICIAN

    def is_assignable(self) -> bool:
        return self.is_technician() and self.is_active

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles
