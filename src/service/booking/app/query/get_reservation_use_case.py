from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto import ReservationDetail
from src.service.booking.app.interface import IReservationQueryRepo
from src.service.booking.domain.booking_exceptions import ReservationNotFoundError
from src.service.booking.domain.enum import ReservationStatus


class GetReservationUseCase:
    def __init__(self, *, reservation_query_repo: IReservationQueryRepo) -> None:
        self.reservation_query_repo = reservation_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        reservation_query_repo: IReservationQueryRepo = Depends(
            Provide[Container.reservation_query_repo]
        ),
    ) -> Self:
        return cls(reservation_query_repo=reservation_query_repo)

    @Logger.io
    async def execute(self, *, reservation_id: str) -> ReservationDetail:
        reservation = await self.reservation_query_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)

        tickets = []
        if reservation.status is ReservationStatus.CONFIRMED:
            tickets = await self.reservation_query_repo.get_tickets(reservation_id=reservation.id)
        return ReservationDetail(reservation=reservation, tickets=tickets)
