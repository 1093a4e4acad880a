"""
Payment Reconciliation

Aligns a reservation with a payment result reported by a cashier or by the
processor webhook.

Outcomes by reported status:
- COMPLETED, amount matches: PENDING -> CONFIRMED, tickets minted
- COMPLETED, amount differs: PaymentAmountMismatchError, nothing recorded
- FAILED: attempt recorded, reservation stays PENDING (or is cancelled
  when the policy says so)
- PENDING: attempt recorded only

A result whose processor reference was already stored is a redelivery and
is answered with the reservation's current state.
"""

from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.booking_policy import BookingPolicy
from src.service.booking.app.dto import ConfirmPaymentResult
from src.service.booking.app.interface import IReservationCommandRepo, IReservationQueryRepo
from src.service.booking.app.service.reservation_transition_handler import (
    ReservationTransitionHandler,
)
from src.service.booking.domain.booking_exceptions import (
    PaymentAmountMismatchError,
    ReservationExpiredError,
    ReservationNotFoundError,
)
from src.service.booking.domain.entity import Payment, Reservation
from src.service.booking.domain.enum import PaymentMethod, PaymentStatus, ReservationStatus


class ConfirmPaymentUseCase:
    def __init__(
        self,
        *,
        reservation_command_repo: IReservationCommandRepo,
        reservation_query_repo: IReservationQueryRepo,
        transition_handler: ReservationTransitionHandler,
        policy: BookingPolicy,
    ) -> None:
        self.reservation_command_repo = reservation_command_repo
        self.reservation_query_repo = reservation_query_repo
        self.transition_handler = transition_handler
        self.policy = policy
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        reservation_command_repo: IReservationCommandRepo = Depends(
            Provide[Container.reservation_command_repo]
        ),
        reservation_query_repo: IReservationQueryRepo = Depends(
            Provide[Container.reservation_query_repo]
        ),
        transition_handler: ReservationTransitionHandler = Depends(
            Provide[Container.reservation_transition_handler]
        ),
        policy: BookingPolicy = Depends(Provide[Container.booking_policy]),
    ) -> Self:
        return cls(
            reservation_command_repo=reservation_command_repo,
            reservation_query_repo=reservation_query_repo,
            transition_handler=transition_handler,
            policy=policy,
        )

    @Logger.io
    async def confirm_payment(
        self,
        *,
        reservation_id: str,
        status: PaymentStatus,
        amount: int,
        method: Optional[PaymentMethod] = None,
        processor_reference: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ConfirmPaymentResult:
        """
        Raises:
            ReservationNotFoundError: Unknown reservation
            PaymentAmountMismatchError: COMPLETED amount differs from the total
            ReservationExpiredError: The hold expired before the payment arrived
            InvalidTransitionError: The reservation was cancelled
        """
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.confirm_payment',
            attributes={'reservation.id': reservation_id, 'payment.status': status.value},
        ):
            reservation = await self.reservation_query_repo.get_by_id(
                reservation_id=reservation_id
            )
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)

            if processor_reference:
                seen = await self.reservation_query_repo.get_payment_by_reference(
                    processor_reference=processor_reference
                )
                if seen is not None:
                    Logger.base.info(
                        f'🔁 [PAYMENT] Reference {processor_reference} already processed, '
                        f'reservation {reservation.code} is {reservation.status}'
                    )
                    return await self._current_state(reservation)

            if status is PaymentStatus.COMPLETED:
                return await self._apply_completed(
                    reservation=reservation,
                    amount=amount,
                    method=method,
                    processor_reference=processor_reference,
                    now=now,
                )
            return await self._record_attempt(
                reservation=reservation,
                status=status,
                amount=amount,
                method=method,
                processor_reference=processor_reference,
                now=now,
            )

    @Logger.io
    async def confirm_payment_by_code(
        self,
        *,
        code: str,
        status: PaymentStatus,
        amount: int,
        method: Optional[PaymentMethod] = None,
        processor_reference: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ConfirmPaymentResult:
        """Webhook entry: processors echo the reservation code as their reference."""
        reservation = await self.reservation_query_repo.get_by_code(code=code)
        if reservation is None:
            raise ReservationNotFoundError(code)
        return await self.confirm_payment(
            reservation_id=reservation.id,
            status=status,
            amount=amount,
            method=method,
            processor_reference=processor_reference,
            now=now,
        )

    async def _apply_completed(
        self,
        *,
        reservation: Reservation,
        amount: int,
        method: Optional[PaymentMethod],
        processor_reference: Optional[str],
        now: datetime,
    ) -> ConfirmPaymentResult:
        if reservation.status is ReservationStatus.CONFIRMED:
            return await self._current_state(reservation)

        if amount != reservation.total_amount:
            raise PaymentAmountMismatchError(expected=reservation.total_amount, received=amount)

        if reservation.status is ReservationStatus.PENDING and reservation.is_past_expiry(now):
            # Sweep has not reached it yet
            await self.transition_handler.expire(reservation=reservation, now=now)
            raise ReservationExpiredError(reservation.id)

        payment = Payment.record(
            reservation_id=reservation.id,
            amount=amount,
            method=method or reservation.payment_method,
            status=PaymentStatus.COMPLETED,
            processor_reference=processor_reference,
            now=now,
        )
        confirmed, tickets = await self.transition_handler.confirm(
            reservation=reservation, payment=payment, now=now
        )
        metrics.record_payment(status=payment.status.value, method=payment.method.value)
        return ConfirmPaymentResult(reservation=confirmed, tickets=tickets, payment=payment)

    async def _record_attempt(
        self,
        *,
        reservation: Reservation,
        status: PaymentStatus,
        amount: int,
        method: Optional[PaymentMethod],
        processor_reference: Optional[str],
        now: datetime,
    ) -> ConfirmPaymentResult:
        try:
            payment = await self.reservation_command_repo.add_payment(
                payment=Payment.record(
                    reservation_id=reservation.id,
                    amount=amount,
                    method=method or reservation.payment_method,
                    status=status,
                    processor_reference=processor_reference,
                    now=now,
                )
            )
        except ConflictError:
            # A concurrent delivery of the same reference stored it first
            Logger.base.info(
                f'🔁 [PAYMENT] Reference {processor_reference} stored concurrently, '
                f'answering with the current state of {reservation.code}'
            )
            current = await self.reservation_query_repo.get_by_id(reservation_id=reservation.id)
            return await self._current_state(current or reservation)
        metrics.record_payment(status=payment.status.value, method=payment.method.value)
        Logger.base.info(
            f'💳 [PAYMENT] {status} attempt recorded for reservation {reservation.code}'
        )

        if (
            status is PaymentStatus.FAILED
            and self.policy.cancel_on_payment_failure
            and reservation.status is ReservationStatus.PENDING
        ):
            reservation = await self.transition_handler.cancel(reservation=reservation, now=now)

        return ConfirmPaymentResult(reservation=reservation, payment=payment)

    async def _current_state(self, reservation: Reservation) -> ConfirmPaymentResult:
        tickets = await self.reservation_query_repo.get_tickets(reservation_id=reservation.id)
        return ConfirmPaymentResult(reservation=reservation, tickets=tickets)
