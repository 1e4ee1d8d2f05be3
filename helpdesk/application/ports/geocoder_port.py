"""Port interface for customer location lookups."""

from abc import ABC, abstractmethod

from helpdesk.domain.value_objects.geo_point import GeoPoint


class GeocoderPort(ABC):
    @abstractmethod
    async def locate(self, location_url: str) -> GeoPoint | None:
        """Coordinates behind a maps link, following short links.

        Returns None if the link cannot be resolved.
        """
        ...

    @abstractmethod
    async def reverse_area(self, point: GeoPoint) -> str | None:
        """Neighbourhood / village name for the point, or None."""
        ...
