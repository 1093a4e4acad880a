"""
Seat State Handler Interface (Availability Index)

Tracks, per trip, which seats are free, held by a PENDING reservation, or
confirmed. Writes are keyed by reservation id so a reservation can only
release or confirm the seats it holds itself.
"""

from abc import ABC, abstractmethod
from typing import AbstractSet, Dict, Iterable, List, Mapping

from src.service.booking.domain.value_object import HoldResult, SeatSnapshot


class ISeatStateHandler(ABC):
    @abstractmethod
    def is_loaded(self, *, trip_id: str) -> bool:
        pass

    @abstractmethod
    async def initialize_trip(
        self,
        *,
        trip_id: str,
        capacity: int,
        held: Mapping[str, str] | None = None,
        confirmed: Mapping[str, str] | None = None,
    ) -> bool:
        """
        Load a trip's seat state. ``held`` and ``confirmed`` map seat id to
        reservation id. A trip that is already loaded is left untouched.

        Returns:
            True if this call loaded the trip
        """
        pass

    @abstractmethod
    def loaded_trip_ids(self) -> List[str]:
        pass

    @abstractmethod
    async def held_owners(self, *, trip_id: str) -> Dict[str, str]:
        """Seat id to reservation id for every seat this index has held."""
        pass

    @abstractmethod
    async def reconcile_trip(
        self,
        *,
        trip_id: str,
        held: Mapping[str, str],
        confirmed: Mapping[str, str],
        stale_reservation_ids: AbstractSet[str],
    ) -> List[str]:
        """
        Align a loaded trip with the store. Seats in ``held`` / ``confirmed``
        take the stored owner; entries of ``stale_reservation_ids`` and
        confirmed seats the store no longer has are freed. Holds of
        reservations not yet stored are kept.

        Returns:
            Seats whose state changed
        """
        pass

    @abstractmethod
    async def snapshot(self, *, trip_id: str) -> SeatSnapshot:
        pass

    @abstractmethod
    async def try_hold(
        self, *, trip_id: str, seat_ids: Iterable[str], reservation_id: str
    ) -> HoldResult:
        """
        Hold every seat or none. On failure the result names the seats that
        were not free, in seat-map order.
        """
        pass

    @abstractmethod
    async def release(
        self, *, trip_id: str, seat_ids: Iterable[str], reservation_id: str
    ) -> list[str]:
        """Held seats back to free. Returns the seats actually released."""
        pass

    @abstractmethod
    async def confirm(
        self, *, trip_id: str, seat_ids: Iterable[str], reservation_id: str
    ) -> list[str]:
        """Held seats to confirmed. Returns the seats actually confirmed."""
        pass
