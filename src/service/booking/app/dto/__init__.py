from src.service.booking.app.dto.reservation_dto import (
    ConfirmPaymentResult,
    CreateReservationResult,
    ReservationDetail,
)

__all__ = ['ConfirmPaymentResult', 'CreateReservationResult', 'ReservationDetail']
