"""Port interface for key/value settings."""

from abc import ABC, abstractmethod

from helpdesk.domain.entities.setting import Setting


class SettingsRepository(ABC):
    @abstractmethod
    async def get(self, key: str) -> Setting | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: str | None) -> Setting:
        ...

    @abstractmethod
    async def get_all(self) -> list[Setting]:
        ...

    async def as_mapping(self) -> dict[str, str | None]:
        return {s.key: s.value for s in await self.get_all()}
