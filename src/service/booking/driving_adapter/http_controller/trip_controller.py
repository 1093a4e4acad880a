from typing import List, Literal

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.query.get_seat_snapshot_use_case import GetSeatSnapshotUseCase
from src.service.booking.app.query.list_trip_reservations_use_case import (
    ListTripReservationsUseCase,
)
from src.service.booking.driving_adapter.http_controller.schema.reservation_schema import (
    ReservationResponse,
)
from src.service.booking.driving_adapter.http_controller.schema.seat_schema import (
    SeatSnapshotResponse,
)


router = APIRouter()


@router.get('/{trip_id}/seats')
@Logger.io
async def get_seat_snapshot(
    trip_id: str,
    use_case: GetSeatSnapshotUseCase = Depends(GetSeatSnapshotUseCase.depends),
) -> SeatSnapshotResponse:
    """Authoritative seat grid; dashboards poll this to reconcile live events."""
    snapshot = await use_case.execute(trip_id=trip_id)
    return SeatSnapshotResponse.from_value_object(snapshot)


@router.get('/{trip_id}/reservations')
@Logger.io
async def list_trip_reservations(
    trip_id: str,
    status: Literal['pending', 'active'] = 'pending',
    use_case: ListTripReservationsUseCase = Depends(ListTripReservationsUseCase.depends),
) -> List[ReservationResponse]:
    reservations = await use_case.execute(trip_id=trip_id, status=status)
    return [ReservationResponse.from_entity(r) for r in reservations]
