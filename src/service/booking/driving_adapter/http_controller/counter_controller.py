from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.sell_at_counter_use_case import SellAtCounterUseCase
from src.service.booking.driving_adapter.http_controller.schema.reservation_schema import (
    CounterSaleRequest,
    PaymentResponse,
    PaymentResultResponse,
    ReservationResponse,
)


router = APIRouter()


@router.post('/sale', status_code=status.HTTP_201_CREATED)
@Logger.io
async def sell_at_counter(
    request: CounterSaleRequest,
    use_case: SellAtCounterUseCase = Depends(SellAtCounterUseCase.depends),
) -> PaymentResultResponse:
    result = await use_case.sell(
        trip_id=request.trip_id,
        passengers=[p.to_value_object() for p in request.passengers],
        payment_method=request.payment_method,
        cashier=request.cashier,
    )
    return PaymentResultResponse(
        reservation=ReservationResponse.from_entity(result.reservation, result.tickets),
        payment=PaymentResponse.from_entity(result.payment) if result.payment else None,
    )
