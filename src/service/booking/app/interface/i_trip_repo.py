from abc import ABC, abstractmethod
from typing import Optional

from src.service.booking.domain.entity import Trip


class ITripQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, trip_id: str) -> Optional[Trip]:
        pass


class ITripCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, trip: Trip) -> Trip:
        pass
