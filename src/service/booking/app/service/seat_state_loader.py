"""
Seat State Loader

Hydrates the Availability Index for a trip from persisted reservations the
first time the trip is touched in this process, and reconciles it with the
store afterwards.

The index only sees this process's writes. A reservation cancelled,
expired or confirmed by another process leaves a stale entry here until
`reconcile` runs: after a hold is rejected and on every expiry sweep.
"""

from typing import Dict, List, Optional, Tuple

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.interface import (
    IReservationQueryRepo,
    ISeatStateHandler,
    ITripQueryRepo,
)
from src.service.booking.domain.booking_exceptions import TripNotFoundError
from src.service.booking.domain.entity import Trip
from src.service.booking.domain.enum import ReservationStatus


class SeatStateLoader:
    def __init__(
        self,
        *,
        seat_state_handler: ISeatStateHandler,
        trip_query_repo: ITripQueryRepo,
        reservation_query_repo: IReservationQueryRepo,
    ) -> None:
        self.seat_state_handler = seat_state_handler
        self.trip_query_repo = trip_query_repo
        self.reservation_query_repo = reservation_query_repo

    async def ensure_loaded(self, *, trip_id: str, trip: Optional[Trip] = None) -> None:
        if self.seat_state_handler.is_loaded(trip_id=trip_id):
            return

        if trip is None:
            trip = await self.trip_query_repo.get_by_id(trip_id=trip_id)
            if trip is None:
                raise TripNotFoundError(trip_id)

        held, confirmed = await self._stored_seats(trip_id)
        loaded = await self.seat_state_handler.initialize_trip(
            trip_id=trip_id, capacity=trip.capacity, held=held, confirmed=confirmed
        )
        if loaded:
            Logger.base.info(
                f'💺 [SEAT-STATE] Loaded trip {trip_id}: capacity={trip.capacity}, '
                f'held={len(held)}, confirmed={len(confirmed)}'
            )
            await self.publish_held_count(trip_id=trip_id)

    async def reconcile(self, *, trip_id: str) -> List[str]:
        """
        Align a loaded trip with the store.

        Returns:
            Seats whose state changed
        """
        if not self.seat_state_handler.is_loaded(trip_id=trip_id):
            await self.ensure_loaded(trip_id=trip_id)
            return []

        held, confirmed = await self._stored_seats(trip_id)
        local_owners = set((await self.seat_state_handler.held_owners(trip_id=trip_id)).values())
        stale = await self._settled_reservation_ids(
            local_owners - set(held.values()) - set(confirmed.values())
        )

        changed = await self.seat_state_handler.reconcile_trip(
            trip_id=trip_id, held=held, confirmed=confirmed, stale_reservation_ids=stale
        )
        if changed:
            Logger.base.info(f'🔄 [SEAT-STATE] Reconciled trip {trip_id}: {changed}')
            await self.publish_held_count(trip_id=trip_id)
        return changed

    async def reconcile_loaded(self) -> int:
        """Reconcile every trip loaded in this process; returns the seats changed."""
        changed = 0
        for trip_id in self.seat_state_handler.loaded_trip_ids():
            changed += len(await self.reconcile(trip_id=trip_id))
        return changed

    async def publish_held_count(self, *, trip_id: str) -> None:
        snapshot = await self.seat_state_handler.snapshot(trip_id=trip_id)
        metrics.update_held_seats(trip_id=trip_id, count=len(snapshot.held))

    async def _stored_seats(self, trip_id: str) -> Tuple[Dict[str, str], Dict[str, str]]:
        held: Dict[str, str] = {}
        confirmed: Dict[str, str] = {}
        for reservation in await self.reservation_query_repo.list_active_by_trip(trip_id=trip_id):
            target = confirmed if reservation.status is ReservationStatus.CONFIRMED else held
            for seat_id in reservation.seat_ids:
                target[seat_id] = reservation.id
        return held, confirmed

    async def _settled_reservation_ids(self, reservation_ids: set[str]) -> set[str]:
        # Not stored yet means a hold still on its way to the store
        settled = set()
        for reservation_id in reservation_ids:
            stored = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
            if stored is not None and stored.status in (
                ReservationStatus.CANCELLED,
                ReservationStatus.EXPIRED,
            ):
                settled.add(reservation_id)
        return settled
