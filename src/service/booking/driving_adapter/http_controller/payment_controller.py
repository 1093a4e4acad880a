from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.confirm_payment_use_case import ConfirmPaymentUseCase
from src.service.booking.driving_adapter.http_controller.schema.reservation_schema import (
    PaymentResponse,
    PaymentResultResponse,
    PaymentWebhookRequest,
    ReservationResponse,
)


router = APIRouter()


@router.post('/webhook')
@Logger.io
async def payment_webhook(
    request: PaymentWebhookRequest,
    use_case: ConfirmPaymentUseCase = Depends(ConfirmPaymentUseCase.depends),
) -> PaymentResultResponse:
    """Payment processor callback; redeliveries with the same processor_reference are no-ops."""
    result = await use_case.confirm_payment_by_code(
        code=request.reference,
        status=request.status,
        amount=request.amount,
        method=request.method,
        processor_reference=request.processor_reference,
    )
    return PaymentResultResponse(
        reservation=ReservationResponse.from_entity(result.reservation, result.tickets),
        payment=PaymentResponse.from_entity(result.payment) if result.payment else None,
    )
