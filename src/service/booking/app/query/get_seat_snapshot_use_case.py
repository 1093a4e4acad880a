from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface import ISeatStateHandler
from src.service.booking.app.service.seat_state_loader import SeatStateLoader
from src.service.booking.domain.value_object import SeatSnapshot


class GetSeatSnapshotUseCase:
    def __init__(
        self, *, seat_state_handler: ISeatStateHandler, seat_state_loader: SeatStateLoader
    ) -> None:
        self.seat_state_handler = seat_state_handler
        self.seat_state_loader = seat_state_loader

    @classmethod
    @inject
    def depends(
        cls,
        seat_state_handler: ISeatStateHandler = Depends(Provide[Container.seat_state_handler]),
        seat_state_loader: SeatStateLoader = Depends(Provide[Container.seat_state_loader]),
    ) -> Self:
        return cls(seat_state_handler=seat_state_handler, seat_state_loader=seat_state_loader)

    @Logger.io
    async def execute(self, *, trip_id: str) -> SeatSnapshot:
        await self.seat_state_loader.ensure_loaded(trip_id=trip_id)
        return await self.seat_state_handler.snapshot(trip_id=trip_id)
