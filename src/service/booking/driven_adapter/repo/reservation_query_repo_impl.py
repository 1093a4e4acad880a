from datetime import datetime
from typing import AsyncContextManager, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_reservation_query_repo import IReservationQueryRepo
from src.service.booking.domain.entity import Payment, Reservation, Ticket
from src.service.booking.domain.enum import (
    BookingChannel,
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
)
from src.service.booking.domain.value_object import Passenger
from src.service.booking.domain.value_object.seat_map import seat_sort_key
from src.service.booking.driven_adapter.model import PaymentModel, ReservationModel, TicketModel


_ACTIVE_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)


class ReservationQueryRepoImpl(IReservationQueryRepo):
    def __init__(
        self, *, session_factory: Callable[..., AsyncContextManager[AsyncSession]]
    ) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_reservation: ReservationModel) -> Reservation:
        return Reservation(
            id=db_reservation.id,
            code=db_reservation.code,
            trip_id=db_reservation.trip_id,
            company_id=db_reservation.company_id,
            seat_ids=list(db_reservation.seat_ids),
            passengers=[Passenger.from_dict(p) for p in db_reservation.passengers],
            total_amount=db_reservation.total_amount,
            payment_method=PaymentMethod(db_reservation.payment_method),
            channel=BookingChannel(db_reservation.channel),
            status=ReservationStatus(db_reservation.status),
            expires_at=db_reservation.expires_at,
            created_at=db_reservation.created_at,
            updated_at=db_reservation.updated_at,
            confirmed_at=db_reservation.confirmed_at,
            cancelled_at=db_reservation.cancelled_at,
        )

    @staticmethod
    def _to_ticket(db_ticket: TicketModel) -> Ticket:
        return Ticket(
            id=db_ticket.id,
            code=db_ticket.code,
            reservation_id=db_ticket.reservation_id,
            trip_id=db_ticket.trip_id,
            seat_id=db_ticket.seat_id,
            passenger_name=db_ticket.passenger_name,
            passenger_phone=db_ticket.passenger_phone,
            price=db_ticket.price,
            qr_payload=db_ticket.qr_payload,
            valid_from=db_ticket.valid_from,
            valid_until=db_ticket.valid_until,
            issued_at=db_ticket.issued_at,
        )

    @staticmethod
    def _to_payment(db_payment: PaymentModel) -> Payment:
        return Payment(
            id=db_payment.id,
            reservation_id=db_payment.reservation_id,
            amount=db_payment.amount,
            method=PaymentMethod(db_payment.method),
            status=PaymentStatus(db_payment.status),
            processor_reference=db_payment.processor_reference,
            created_at=db_payment.created_at,
        )

    async def _list(self, stmt) -> List[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        async with self.session_factory() as session:
            db_reservation = await session.get(ReservationModel, reservation_id)
            return self._to_entity(db_reservation) if db_reservation else None

    @Logger.io
    async def get_by_code(self, *, code: str) -> Optional[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel).where(ReservationModel.code == code)
            )
            db_reservation = result.scalar_one_or_none()
            return self._to_entity(db_reservation) if db_reservation else None

    @Logger.io
    async def list_active_by_trip(self, *, trip_id: str) -> List[Reservation]:
        return await self._list(
            select(ReservationModel)
            .where(ReservationModel.trip_id == trip_id)
            .where(ReservationModel.status.in_(_ACTIVE_STATUSES))
            .order_by(ReservationModel.created_at)
        )

    @Logger.io
    async def list_pending_by_trip(self, *, trip_id: str) -> List[Reservation]:
        return await self._list(
            select(ReservationModel)
            .where(ReservationModel.trip_id == trip_id)
            .where(ReservationModel.status == ReservationStatus.PENDING.value)
            .order_by(ReservationModel.expires_at)
        )

    @Logger.io
    async def list_expired_pending(self, *, now: datetime, limit: int) -> List[Reservation]:
        return await self._list(
            select(ReservationModel)
            .where(ReservationModel.status == ReservationStatus.PENDING.value)
            .where(ReservationModel.expires_at < now)
            .order_by(ReservationModel.expires_at)
            .limit(limit)
        )

    @Logger.io
    async def get_tickets(self, *, reservation_id: str) -> List[Ticket]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TicketModel).where(TicketModel.reservation_id == reservation_id)
            )
            tickets = [self._to_ticket(row) for row in result.scalars().all()]
            return sorted(tickets, key=lambda ticket: seat_sort_key(ticket.seat_id))

    @Logger.io
    async def get_payment_by_reference(self, *, processor_reference: str) -> Optional[Payment]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PaymentModel).where(
                    PaymentModel.processor_reference == processor_reference
                )
            )
            db_payment = result.scalar_one_or_none()
            return self._to_payment(db_payment) if db_payment else None
