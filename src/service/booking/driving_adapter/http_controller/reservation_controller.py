from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.cancel_reservation_use_case import CancelReservationUseCase
from src.service.booking.app.command.confirm_payment_use_case import ConfirmPaymentUseCase
from src.service.booking.app.command.create_reservation_use_case import CreateReservationUseCase
from src.service.booking.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.booking.domain.enum import BookingChannel
from src.service.booking.driving_adapter.http_controller.schema.reservation_schema import (
    PaymentInstructionResponse,
    PaymentReportRequest,
    PaymentResponse,
    PaymentResultResponse,
    ReservationCreateRequest,
    ReservationCreateResponse,
    ReservationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_reservation(
    request: ReservationCreateRequest,
    use_case: CreateReservationUseCase = Depends(CreateReservationUseCase.depends),
) -> ReservationCreateResponse:
    with tracer.start_as_current_span('controller.create_reservation') as span:
        span.set_attribute('trip_id', request.trip_id)
        span.set_attribute('seat_ids', request.seat_ids)

        result = await use_case.create_reservation(
            trip_id=request.trip_id,
            seat_ids=request.seat_ids,
            passengers=[p.to_value_object() for p in request.passengers],
            payment_method=request.payment_method,
            channel=BookingChannel(request.channel),
        )
        return ReservationCreateResponse(
            reservation=ReservationResponse.from_entity(result.reservation),
            payment_instruction=PaymentInstructionResponse.from_value_object(result.instruction),
        )


@router.get('/{reservation_id}')
@Logger.io
async def get_reservation(
    reservation_id: str,
    use_case: GetReservationUseCase = Depends(GetReservationUseCase.depends),
) -> ReservationResponse:
    detail = await use_case.execute(reservation_id=reservation_id)
    return ReservationResponse.from_entity(detail.reservation, detail.tickets)


@router.post('/{reservation_id}/cancel')
@Logger.io
async def cancel_reservation(
    reservation_id: str,
    use_case: CancelReservationUseCase = Depends(CancelReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.cancel_reservation(reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)


@router.post('/{reservation_id}/payment')
@Logger.io
async def report_payment(
    reservation_id: str,
    request: PaymentReportRequest,
    use_case: ConfirmPaymentUseCase = Depends(ConfirmPaymentUseCase.depends),
) -> PaymentResultResponse:
    """Cashier or manager records an in-person payment."""
    result = await use_case.confirm_payment(
        reservation_id=reservation_id,
        status=request.status,
        amount=request.amount,
        method=request.method,
        processor_reference=request.processor_reference,
    )
    return PaymentResultResponse(
        reservation=ReservationResponse.from_entity(result.reservation, result.tickets),
        payment=PaymentResponse.from_entity(result.payment) if result.payment else None,
    )
