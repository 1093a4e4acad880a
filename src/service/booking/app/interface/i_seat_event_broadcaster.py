"""
Seat Event Broadcaster Interface (Real-time Notifier)

Best-effort, at-most-once delivery to dashboards subscribed per trip and
per company. Never the source of truth; dashboards reconcile via snapshot.
"""

from abc import ABC, abstractmethod
from typing import List

from src.service.booking.domain.entity import Reservation, Ticket


class ISeatEventBroadcaster(ABC):
    @abstractmethod
    async def seats_held(self, *, reservation: Reservation, actor: str) -> None:
        pass

    @abstractmethod
    async def seats_released(self, *, reservation: Reservation, reason: str) -> None:
        pass

    @abstractmethod
    async def reservation_confirmed(
        self, *, reservation: Reservation, tickets: List[Ticket]
    ) -> None:
        pass
