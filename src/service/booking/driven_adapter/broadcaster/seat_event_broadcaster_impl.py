"""
Seat Event Broadcaster

Publishes seat-state events to the in-memory broadcaster on two channels:
``trip:{trip_id}`` for seat grids and ``company:{company_id}`` for company
dashboards.
"""

from datetime import datetime, timezone
from typing import List

from src.platform.event.i_in_memory_broadcaster import IInMemoryEventBroadcaster
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_seat_event_broadcaster import ISeatEventBroadcaster
from src.service.booking.domain.entity import Reservation, Ticket
from src.service.booking.domain.enum import SeatEventType


def trip_channel(trip_id: str) -> str:
    return f'trip:{trip_id}'


def company_channel(company_id: str) -> str:
    return f'company:{company_id}'


class SeatEventBroadcasterImpl(ISeatEventBroadcaster):
    def __init__(self, *, broadcaster: IInMemoryEventBroadcaster) -> None:
        self.broadcaster = broadcaster

    async def _publish(self, *, reservation: Reservation, event_data: dict) -> None:
        event_data['timestamp'] = datetime.now(timezone.utc).isoformat()
        for channel in (
            trip_channel(reservation.trip_id),
            company_channel(reservation.company_id),
        ):
            await self.broadcaster.broadcast(channel=channel, event_data=event_data)

    async def seats_held(self, *, reservation: Reservation, actor: str) -> None:
        await self._publish(
            reservation=reservation,
            event_data={
                'event_type': SeatEventType.SEATS_HELD.value,
                'trip_id': reservation.trip_id,
                'reservation_id': reservation.id,
                'seat_ids': list(reservation.seat_ids),
                'actor': actor,
                'expires_at': reservation.expires_at.isoformat(),
            },
        )

    async def seats_released(self, *, reservation: Reservation, reason: str) -> None:
        await self._publish(
            reservation=reservation,
            event_data={
                'event_type': SeatEventType.SEATS_RELEASED.value,
                'trip_id': reservation.trip_id,
                'reservation_id': reservation.id,
                'seat_ids': list(reservation.seat_ids),
                'reason': reason,
            },
        )

    async def reservation_confirmed(
        self, *, reservation: Reservation, tickets: List[Ticket]
    ) -> None:
        await self._publish(
            reservation=reservation,
            event_data={
                'event_type': SeatEventType.RESERVATION_CONFIRMED.value,
                'trip_id': reservation.trip_id,
                'reservation_id': reservation.id,
                'seat_ids': list(reservation.seat_ids),
                'ticket_codes': [ticket.code for ticket in tickets],
            },
        )
        Logger.base.debug(
            f'📡 [NOTIFIER] reservation-confirmed {reservation.id} '
            f'({len(tickets)} tickets) on trip {reservation.trip_id}'
        )
