"""
Seat State Handler (in-process Availability Index)

Per trip, each seat is free, held by one PENDING reservation, or confirmed
for one reservation. Every write runs under the trip's lock, so two
overlapping holds on the same trip serialize and at most one succeeds.

Across processes the reservation_seat unique constraint is the guard. This
index is the fast path and the read model for snapshots; other processes
change the store behind its back, so SeatStateLoader reconciles it on a
failed hold and on every expiry sweep.
"""

from typing import AbstractSet, Dict, Iterable, List, Mapping

import anyio
import attrs
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_seat_state_handler import ISeatStateHandler
from src.service.booking.domain.booking_exceptions import TripNotFoundError
from src.service.booking.domain.value_object import HoldResult, SeatMap, SeatSnapshot


@attrs.define
class _TripSeats:
    seat_map: SeatMap
    held: Dict[str, str] = attrs.field(factory=dict)  # seat_id -> reservation_id
    confirmed: Dict[str, str] = attrs.field(factory=dict)
    lock: anyio.Lock = attrs.field(factory=anyio.Lock)

    def is_free(self, seat_id: str) -> bool:
        return seat_id not in self.held and seat_id not in self.confirmed


class SeatStateHandlerImpl(ISeatStateHandler):
    def __init__(self) -> None:
        self._trips: Dict[str, _TripSeats] = {}
        self.tracer = trace.get_tracer(__name__)

    def _get(self, trip_id: str) -> _TripSeats:
        trip = self._trips.get(trip_id)
        if trip is None:
            raise TripNotFoundError(trip_id)
        return trip

    def is_loaded(self, *, trip_id: str) -> bool:
        return trip_id in self._trips

    async def initialize_trip(
        self,
        *,
        trip_id: str,
        capacity: int,
        held: Mapping[str, str] | None = None,
        confirmed: Mapping[str, str] | None = None,
    ) -> bool:
        if trip_id in self._trips:
            return False

        seat_map = SeatMap(capacity)
        state = _TripSeats(seat_map=seat_map)
        for seat_id, reservation_id in (held or {}).items():
            if seat_id in seat_map:
                state.held[seat_id] = reservation_id
        for seat_id, reservation_id in (confirmed or {}).items():
            if seat_id in seat_map:
                state.held.pop(seat_id, None)
                state.confirmed[seat_id] = reservation_id

        self._trips[trip_id] = state
        return True

    def loaded_trip_ids(self) -> List[str]:
        return list(self._trips)

    async def held_owners(self, *, trip_id: str) -> Dict[str, str]:
        state = self._get(trip_id)
        async with state.lock:
            return dict(state.held)

    async def reconcile_trip(
        self,
        *,
        trip_id: str,
        held: Mapping[str, str],
        confirmed: Mapping[str, str],
        stale_reservation_ids: AbstractSet[str],
    ) -> List[str]:
        state = self._get(trip_id)
        changed = set()
        async with state.lock:
            for seat_id, owner in list(state.held.items()):
                if owner in stale_reservation_ids or seat_id in confirmed:
                    del state.held[seat_id]
                    changed.add(seat_id)
            for seat_id, owner in list(state.confirmed.items()):
                if confirmed.get(seat_id) != owner:
                    del state.confirmed[seat_id]
                    changed.add(seat_id)

            for seat_id, owner in confirmed.items():
                if seat_id in state.seat_map and state.confirmed.get(seat_id) != owner:
                    state.confirmed[seat_id] = owner
                    changed.add(seat_id)
            for seat_id, owner in held.items():
                if owner in stale_reservation_ids or seat_id not in state.seat_map:
                    continue
                if seat_id not in state.confirmed and state.held.get(seat_id) != owner:
                    # Held by another process; a local hold on it cannot be stored anyway
                    state.held[seat_id] = owner
                    changed.add(seat_id)

        return state.seat_map.ordered(changed)

    async def snapshot(self, *, trip_id: str) -> SeatSnapshot:
        state = self._get(trip_id)
        free, held, confirmed = [], [], []
        for seat_id in state.seat_map.labels:
            if seat_id in state.confirmed:
                confirmed.append(seat_id)
            elif seat_id in state.held:
                held.append(seat_id)
            else:
                free.append(seat_id)
        return SeatSnapshot(
            trip_id=trip_id, free=tuple(free), held=tuple(held), confirmed=tuple(confirmed)
        )

    async def try_hold(
        self, *, trip_id: str, seat_ids: Iterable[str], reservation_id: str
    ) -> HoldResult:
        state = self._get(trip_id)
        requested = list(seat_ids)

        with self.tracer.start_as_current_span(
            'seat_state.try_hold', attributes={'trip.id': trip_id, 'seat.count': len(requested)}
        ) as span:
            async with state.lock:
                unknown = state.seat_map.invalid(requested)
                taken = [
                    seat_id
                    for seat_id in requested
                    if seat_id in state.seat_map and not state.is_free(seat_id)
                ]
                if unknown or taken:
                    conflicts = state.seat_map.ordered(taken) + unknown
                    span.set_attribute('conflict', True)
                    Logger.base.info(
                        f'🚫 [SEAT-STATE] Hold rejected on trip {trip_id}: {conflicts}'
                    )
                    return HoldResult(success=False, conflicts=tuple(conflicts))

                for seat_id in requested:
                    state.held[seat_id] = reservation_id

        return HoldResult(success=True)

    async def release(
        self, *, trip_id: str, seat_ids: Iterable[str], reservation_id: str
    ) -> list[str]:
        state = self._get(trip_id)
        released = []
        async with state.lock:
            for seat_id in seat_ids:
                if state.held.get(seat_id) == reservation_id:
                    del state.held[seat_id]
                    released.append(seat_id)
        return released

    async def confirm(
        self, *, trip_id: str, seat_ids: Iterable[str], reservation_id: str
    ) -> list[str]:
        state = self._get(trip_id)
        moved = []
        async with state.lock:
            for seat_id in seat_ids:
                if state.held.get(seat_id) == reservation_id:
                    del state.held[seat_id]
                    state.confirmed[seat_id] = reservation_id
                    moved.append(seat_id)
        return moved
