"""
Reservation Command Repository

Seat ownership is enforced by the reservation_seat unique constraint on
(trip_id, seat_id): rows exist only while the reservation is PENDING or
CONFIRMED. Status changes are compare-and-set updates guarded by
``status = 'pending'``.
"""

from typing import AsyncContextManager, Callable, List

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.booking.domain.booking_exceptions import SeatConflictError
from src.service.booking.domain.entity import Payment, Reservation, Ticket
from src.service.booking.domain.enum import ReservationStatus
from src.service.booking.driven_adapter.model import (
    PaymentModel,
    ReservationModel,
    ReservationSeatModel,
    TicketModel,
)


class ReservationCommandRepoImpl(IReservationCommandRepo):
    def __init__(
        self, *, session_factory: Callable[..., AsyncContextManager[AsyncSession]]
    ) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_model(reservation: Reservation) -> ReservationModel:
        return ReservationModel(
            id=reservation.id,
            code=reservation.code,
            trip_id=reservation.trip_id,
            company_id=reservation.company_id,
            seat_ids=list(reservation.seat_ids),
            passengers=[p.to_dict() for p in reservation.passengers],
            total_amount=reservation.total_amount,
            payment_method=reservation.payment_method.value,
            channel=reservation.channel.value,
            status=reservation.status.value,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
            expires_at=reservation.expires_at,
            confirmed_at=reservation.confirmed_at,
            cancelled_at=reservation.cancelled_at,
        )

    @staticmethod
    def _ticket_model(ticket: Ticket) -> TicketModel:
        return TicketModel(
            id=ticket.id,
            code=ticket.code,
            reservation_id=ticket.reservation_id,
            trip_id=ticket.trip_id,
            seat_id=ticket.seat_id,
            passenger_name=ticket.passenger_name,
            passenger_phone=ticket.passenger_phone,
            price=ticket.price,
            qr_payload=ticket.qr_payload,
            valid_from=ticket.valid_from,
            valid_until=ticket.valid_until,
            issued_at=ticket.issued_at,
        )

    @staticmethod
    def _payment_model(payment: Payment) -> PaymentModel:
        return PaymentModel(
            id=payment.id,
            reservation_id=payment.reservation_id,
            amount=payment.amount,
            method=payment.method.value,
            status=payment.status.value,
            processor_reference=payment.processor_reference,
            created_at=payment.created_at,
        )

    @Logger.io
    async def create(self, *, reservation: Reservation) -> Reservation:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(self._to_model(reservation))
                    session.add_all(
                        ReservationSeatModel(
                            trip_id=reservation.trip_id,
                            seat_id=seat_id,
                            reservation_id=reservation.id,
                        )
                        for seat_id in reservation.seat_ids
                    )
        except IntegrityError as e:
            taken = await self._taken_seats(reservation)
            if not taken:
                raise
            Logger.base.warning(
                f'🚫 [DB] Seat rows already exist for trip {reservation.trip_id}: {taken}'
            )
            raise SeatConflictError(taken) from e
        return reservation

    async def _taken_seats(self, reservation: Reservation) -> List[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationSeatModel.seat_id)
                .where(ReservationSeatModel.trip_id == reservation.trip_id)
                .where(ReservationSeatModel.seat_id.in_(reservation.seat_ids))
            )
            taken = set(result.scalars().all())
        return [seat_id for seat_id in reservation.seat_ids if seat_id in taken]

    def _cas_update(self, reservation: Reservation):
        return (
            update(ReservationModel)
            .where(ReservationModel.id == reservation.id)
            .where(ReservationModel.status == ReservationStatus.PENDING.value)
            .values(
                status=reservation.status.value,
                updated_at=reservation.updated_at,
                confirmed_at=reservation.confirmed_at,
                cancelled_at=reservation.cancelled_at,
            )
        )

    @Logger.io
    async def confirm_with_tickets(
        self, *, reservation: Reservation, tickets: List[Ticket], payment: Payment
    ) -> bool:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(self._cas_update(reservation))
                if result.rowcount != 1:
                    return False
                session.add_all(self._ticket_model(ticket) for ticket in tickets)
                session.add(self._payment_model(payment))
        return True

    @Logger.io
    async def settle(self, *, reservation: Reservation) -> bool:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(self._cas_update(reservation))
                if result.rowcount != 1:
                    return False
                await session.execute(
                    delete(ReservationSeatModel).where(
                        ReservationSeatModel.reservation_id == reservation.id
                    )
                )
        return True

    @Logger.io
    async def add_payment(self, *, payment: Payment) -> Payment:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(self._payment_model(payment))
        except IntegrityError as e:
            raise ConflictError(
                f'Payment reference {payment.processor_reference} already recorded'
            ) from e
        return payment
