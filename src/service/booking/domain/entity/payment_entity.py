from datetime import datetime
from typing import Optional

import attrs

from src.service.booking.domain.enum import PaymentMethod, PaymentStatus
from src.service.booking.domain.value_object.booking_code import new_id


@attrs.define
class Payment:
    id: str
    reservation_id: str
    amount: int
    method: PaymentMethod
    status: PaymentStatus
    processor_reference: Optional[str]
    created_at: datetime

    @classmethod
    def record(
        cls,
        *,
        reservation_id: str,
        amount: int,
        method: PaymentMethod,
        status: PaymentStatus,
        processor_reference: Optional[str],
        now: datetime,
    ) -> 'Payment':
        return cls(
            id=new_id(),
            reservation_id=reservation_id,
            amount=amount,
            method=method,
            status=status,
            processor_reference=processor_reference,
            created_at=now,
        )
