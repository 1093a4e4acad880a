from typing import List, Literal, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface import IReservationQueryRepo, ITripQueryRepo
from src.service.booking.domain.booking_exceptions import TripNotFoundError
from src.service.booking.domain.entity import Reservation


class ListTripReservationsUseCase:
    """Pending-reservation list for cashier and manager dashboards."""

    def __init__(
        self, *, trip_query_repo: ITripQueryRepo, reservation_query_repo: IReservationQueryRepo
    ) -> None:
        self.trip_query_repo = trip_query_repo
        self.reservation_query_repo = reservation_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        trip_query_repo: ITripQueryRepo = Depends(Provide[Container.trip_query_repo]),
        reservation_query_repo: IReservationQueryRepo = Depends(
            Provide[Container.reservation_query_repo]
        ),
    ) -> Self:
        return cls(trip_query_repo=trip_query_repo, reservation_query_repo=reservation_query_repo)

    @Logger.io
    async def execute(
        self, *, trip_id: str, status: Literal['pending', 'active'] = 'pending'
    ) -> List[Reservation]:
        if await self.trip_query_repo.get_by_id(trip_id=trip_id) is None:
            raise TripNotFoundError(trip_id)

        if status == 'pending':
            return await self.reservation_query_repo.list_pending_by_trip(trip_id=trip_id)
        return await self.reservation_query_repo.list_active_by_trip(trip_id=trip_id)
