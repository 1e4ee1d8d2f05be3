"""Port interface for user persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from helpdesk.domain.entities.user import User
from helpdesk.domain.value_objects.enums import UserRole


class UserRepository(ABC):
    @abstractmethod
    async def add(self, user: User) -> User:
        ...

    @abstractmethod
    async def get_by_id(self, user_id: int, for_update: bool = False) -> User | None:
        ...

    @abstractmethod
    async def get_many(self, user_ids: list[int]) -> list[User]:
        ...

    @abstractmethod
    async def list(self, role: UserRole | None = None, active_only: bool = False) -> list[User]:
        ...

    @abstractmethod
    async def update(self, user: User) -> User:
        ...
