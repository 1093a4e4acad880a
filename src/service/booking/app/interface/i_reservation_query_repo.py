from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.service.booking.domain.entity import Payment, Reservation, Ticket


class IReservationQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def get_by_code(self, *, code: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def list_active_by_trip(self, *, trip_id: str) -> List[Reservation]:
        """PENDING and CONFIRMED reservations of a trip."""
        pass

    @abstractmethod
    async def list_pending_by_trip(self, *, trip_id: str) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_expired_pending(self, *, now: datetime, limit: int) -> List[Reservation]:
        """PENDING reservations whose expiry is before ``now``, oldest first."""
        pass

    @abstractmethod
    async def get_tickets(self, *, reservation_id: str) -> List[Ticket]:
        pass

    @abstractmethod
    async def get_payment_by_reference(self, *, processor_reference: str) -> Optional[Payment]:
        pass
