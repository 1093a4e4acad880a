import hashlib
from datetime import datetime

import attrs

from src.service.booking.domain.value_object.booking_code import (
    TICKET_CODE_LENGTH,
    generate_code,
    new_id,
)
from src.service.booking.domain.value_object.passenger import Passenger


def build_qr_payload(*, code: str, phone: str, seat_id: str, trip_id: str, secret: str) -> str:
    digest = hashlib.sha256(f'{code}{phone}{seat_id}{trip_id}{secret}'.encode()).hexdigest()
    return digest[:16]


@attrs.define
class Ticket:
    id: str
    code: str
    reservation_id: str
    trip_id: str
    seat_id: str
    passenger_name: str
    passenger_phone: str
    price: int
    qr_payload: str
    valid_from: datetime
    valid_until: datetime
    issued_at: datetime

    @classmethod
    def mint(
        cls,
        *,
        reservation_id: str,
        trip_id: str,
        seat_id: str,
        passenger: Passenger,
        price: int,
        valid_until: datetime,
        issued_at: datetime,
        secret: str,
    ) -> 'Ticket':
        code = generate_code(TICKET_CODE_LENGTH)
        return cls(
            id=new_id(),
            code=code,
            reservation_id=reservation_id,
            trip_id=trip_id,
            seat_id=seat_id,
            passenger_name=passenger.name,
            passenger_phone=passenger.phone,
            price=price,
            qr_payload=build_qr_payload(
                code=code,
                phone=passenger.phone,
                seat_id=seat_id,
                trip_id=trip_id,
                secret=secret,
            ),
            valid_from=issued_at,
            valid_until=valid_until,
            issued_at=issued_at,
        )
