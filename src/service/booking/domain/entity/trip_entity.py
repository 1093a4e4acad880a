from datetime import datetime

import attrs

from src.service.booking.domain.enum.trip_status import BOOKABLE_TRIP_STATUSES, TripStatus
from src.service.booking.domain.value_object.seat_map import SeatMap


@attrs.define
class Trip:
    """Read-only input owned by fleet management; capacity comes from the vehicle."""

    id: str
    company_id: str
    route_id: str
    vehicle_id: str
    departure_at: datetime
    arrival_at: datetime
    base_price: int
    current_price: int
    capacity: int
    status: TripStatus = TripStatus.SCHEDULED

    @property
    def is_bookable(self) -> bool:
        return self.status in BOOKABLE_TRIP_STATUSES

    @property
    def seat_map(self) -> SeatMap:
        return SeatMap(self.capacity)
