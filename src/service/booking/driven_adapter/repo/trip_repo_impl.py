from typing import AsyncContextManager, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_trip_repo import ITripCommandRepo, ITripQueryRepo
from src.service.booking.domain.entity import Trip
from src.service.booking.domain.enum import TripStatus
from src.service.booking.driven_adapter.model.trip_model import TripModel


SessionFactory = Callable[..., AsyncContextManager[AsyncSession]]


class TripQueryRepoImpl(ITripQueryRepo):
    def __init__(self, *, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_trip: TripModel) -> Trip:
        return Trip(
            id=db_trip.id,
            company_id=db_trip.company_id,
            route_id=db_trip.route_id,
            vehicle_id=db_trip.vehicle_id,
            departure_at=db_trip.departure_at,
            arrival_at=db_trip.arrival_at,
            base_price=db_trip.base_price,
            current_price=db_trip.current_price,
            capacity=db_trip.capacity,
            status=TripStatus(db_trip.status),
        )

    @Logger.io
    async def get_by_id(self, *, trip_id: str) -> Optional[Trip]:
        async with self.session_factory() as session:
            result = await session.execute(select(TripModel).where(TripModel.id == trip_id))
            db_trip = result.scalar_one_or_none()
            return self._to_entity(db_trip) if db_trip else None


class TripCommandRepoImpl(ITripCommandRepo):
    def __init__(self, *, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    @Logger.io
    async def create(self, *, trip: Trip) -> Trip:
        async with self.session_factory() as session:
            async with session.begin():
                session.add(
                    TripModel(
                        id=trip.id,
                        company_id=trip.company_id,
                        route_id=trip.route_id,
                        vehicle_id=trip.vehicle_id,
                        departure_at=trip.departure_at,
                        arrival_at=trip.arrival_at,
                        base_price=trip.base_price,
                        current_price=trip.current_price,
                        capacity=trip.capacity,
                        status=trip.status.value,
                    )
                )
        return trip
