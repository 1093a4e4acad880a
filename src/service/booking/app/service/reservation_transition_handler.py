"""
Reservation Transition Handler

Applies terminal transitions (confirm / cancel / expire) to a PENDING
reservation and their side effects on the Availability Index, the
notifier and metrics.

The store decides races: each transition is a compare-and-set on the
PENDING row. The loser re-reads the reservation and either reports the
state that already satisfies it (no-op) or raises the transition error.
"""

from datetime import datetime
from typing import List

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.booking_policy import BookingPolicy
from src.service.booking.app.interface import (
    IReservationCommandRepo,
    IReservationQueryRepo,
    ISeatEventBroadcaster,
    ISeatStateHandler,
    ITripQueryRepo,
)
from src.service.booking.app.service.seat_state_loader import SeatStateLoader
from src.service.booking.domain.booking_exceptions import (
    InvalidTransitionError,
    ReservationNotFoundError,
    TripNotFoundError,
)
from src.service.booking.domain.entity import Payment, Reservation, Ticket
from src.service.booking.domain.enum import ReservationStatus


class ReservationTransitionHandler:
    def __init__(
        self,
        *,
        reservation_command_repo: IReservationCommandRepo,
        reservation_query_repo: IReservationQueryRepo,
        trip_query_repo: ITripQueryRepo,
        seat_state_handler: ISeatStateHandler,
        seat_state_loader: SeatStateLoader,
        seat_event_broadcaster: ISeatEventBroadcaster,
        policy: BookingPolicy,
    ) -> None:
        self.reservation_command_repo = reservation_command_repo
        self.reservation_query_repo = reservation_query_repo
        self.trip_query_repo = trip_query_repo
        self.seat_state_handler = seat_state_handler
        self.seat_state_loader = seat_state_loader
        self.seat_event_broadcaster = seat_event_broadcaster
        self.policy = policy

    @Logger.io
    async def confirm(
        self, *, reservation: Reservation, payment: Payment, now: datetime
    ) -> tuple[Reservation, List[Ticket]]:
        """
        PENDING -> CONFIRMED, minting one ticket per seat.

        Raises:
            ReservationExpiredError: The reservation already expired
            InvalidTransitionError: The reservation was cancelled
        """
        if reservation.is_settled_for(ReservationStatus.CONFIRMED):
            return reservation, await self._tickets_of(reservation)

        confirmed = reservation.confirm(now=now)
        trip = await self.trip_query_repo.get_by_id(trip_id=reservation.trip_id)
        if trip is None:
            raise TripNotFoundError(reservation.trip_id)

        tickets = [
            Ticket.mint(
                reservation_id=reservation.id,
                trip_id=reservation.trip_id,
                seat_id=seat_id,
                passenger=passenger,
                price=reservation.unit_price,
                valid_until=trip.arrival_at,
                issued_at=now,
                secret=self.policy.ticket_signing_secret,
            )
            for seat_id, passenger in zip(reservation.seat_ids, reservation.passengers)
        ]

        won = await self.reservation_command_repo.confirm_with_tickets(
            reservation=confirmed, tickets=tickets, payment=payment
        )
        if not won:
            current = await self._resolve_lost_race(reservation, ReservationStatus.CONFIRMED)
            return current, await self._tickets_of(current)

        await self.seat_state_loader.ensure_loaded(trip_id=trip.id, trip=trip)
        await self.seat_state_handler.confirm(
            trip_id=confirmed.trip_id, seat_ids=confirmed.seat_ids, reservation_id=confirmed.id
        )
        await self.seat_state_loader.publish_held_count(trip_id=confirmed.trip_id)
        metrics.record_transition(target_status=ReservationStatus.CONFIRMED.value)
        Logger.base.info(
            f'🎫 [CONFIRM] Reservation {confirmed.code} confirmed, '
            f'{len(tickets)} tickets for seats {confirmed.seat_ids}'
        )
        await self.seat_event_broadcaster.reservation_confirmed(
            reservation=confirmed, tickets=tickets
        )
        return confirmed, tickets

    @Logger.io
    async def cancel(self, *, reservation: Reservation, now: datetime) -> Reservation:
        return await self._settle(reservation, ReservationStatus.CANCELLED, now)

    @Logger.io
    async def expire(self, *, reservation: Reservation, now: datetime) -> Reservation:
        return await self._settle(reservation, ReservationStatus.EXPIRED, now)

    async def _settle(
        self, reservation: Reservation, target: ReservationStatus, now: datetime
    ) -> Reservation:
        if reservation.is_settled_for(target):
            return reservation

        settled = reservation.transition_to(target, now=now)
        won = await self.reservation_command_repo.settle(reservation=settled)
        if not won:
            return await self._resolve_lost_race(reservation, target)

        await self.seat_state_loader.ensure_loaded(trip_id=settled.trip_id)
        released = await self.seat_state_handler.release(
            trip_id=settled.trip_id, seat_ids=settled.seat_ids, reservation_id=settled.id
        )
        await self.seat_state_loader.publish_held_count(trip_id=settled.trip_id)
        metrics.record_transition(target_status=target.value)
        Logger.base.info(
            f'🔓 [{target.value.upper()}] Reservation {settled.code} released seats {released}'
        )
        await self.seat_event_broadcaster.seats_released(reservation=settled, reason=target.value)
        return settled

    async def _resolve_lost_race(
        self, reservation: Reservation, target: ReservationStatus
    ) -> Reservation:
        current = await self.reservation_query_repo.get_by_id(reservation_id=reservation.id)
        if current is None:
            raise ReservationNotFoundError(reservation.id)

        Logger.base.info(
            f'🏁 [RACE] Reservation {reservation.id} already {current.status} '
            f'when moving to {target}'
        )
        if current.is_settled_for(target):
            return current
        # Raises the matching transition error for the state that won
        current.transition_to(target, now=current.updated_at or reservation.expires_at)
        raise InvalidTransitionError(current.status.value, target.value)

    async def _tickets_of(self, reservation: Reservation) -> List[Ticket]:
        return await self.reservation_query_repo.get_tickets(reservation_id=reservation.id)
