"""
Reservation Command Repository Interface

Every write that touches reservation status happens as a compare-and-set
on the PENDING row, so concurrent confirm / cancel / expire calls on the
same reservation produce exactly one winner.
"""

from abc import ABC, abstractmethod
from typing import List

from src.service.booking.domain.entity import Payment, Reservation, Ticket


class IReservationCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, reservation: Reservation) -> Reservation:
        """
        Persist a PENDING reservation together with one seat row per seat.

        Raises:
            SeatConflictError: A seat row for the same trip already exists
        """
        pass

    @abstractmethod
    async def confirm_with_tickets(
        self, *, reservation: Reservation, tickets: List[Ticket], payment: Payment
    ) -> bool:
        """
        Move PENDING -> CONFIRMED and store tickets and payment in one transaction.

        Returns:
            False when the stored reservation was no longer PENDING (nothing written)
        """
        pass

    @abstractmethod
    async def settle(self, *, reservation: Reservation) -> bool:
        """
        Move PENDING -> CANCELLED or EXPIRED and drop its seat rows.

        Returns:
            False when the stored reservation was no longer PENDING
        """
        pass

    @abstractmethod
    async def add_payment(self, *, payment: Payment) -> Payment:
        pass
