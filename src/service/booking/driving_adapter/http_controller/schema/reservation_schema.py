from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from src.service.booking.domain.entity import Payment, Reservation, Ticket
from src.service.booking.domain.enum import PaymentMethod, PaymentStatus
from src.service.booking.domain.value_object import Passenger, PaymentInstruction


class PassengerSchema(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=32)
    email: Optional[str] = None

    def to_value_object(self) -> Passenger:
        return Passenger(name=self.name, phone=self.phone, email=self.email)


class ReservationCreateRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'trip_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'seat_ids': ['1A', '1B'],
                'passengers': [
                    {'name': 'Awa Diallo', 'phone': '+221770000001'},
                    {'name': 'Moussa Diallo', 'phone': '+221770000002'},
                ],
                'payment_method': 'mobile_money',
                'channel': 'interactive',
            }
        },
    }

    trip_id: str
    seat_ids: List[str]
    passengers: List[PassengerSchema]
    payment_method: PaymentMethod
    channel: Literal['interactive', 'guest'] = 'interactive'


class TicketResponse(BaseModel):
    id: str
    code: str
    seat_id: str
    passenger_name: str
    passenger_phone: str
    price: int
    qr_payload: str
    valid_from: datetime
    valid_until: datetime

    @classmethod
    def from_entity(cls, ticket: Ticket) -> 'TicketResponse':
        return cls(
            id=ticket.id,
            code=ticket.code,
            seat_id=ticket.seat_id,
            passenger_name=ticket.passenger_name,
            passenger_phone=ticket.passenger_phone,
            price=ticket.price,
            qr_payload=ticket.qr_payload,
            valid_from=ticket.valid_from,
            valid_until=ticket.valid_until,
        )


class ReservationResponse(BaseModel):
    id: str
    code: str
    trip_id: str
    company_id: str
    seat_ids: List[str]
    passengers: List[PassengerSchema]
    total_amount: int
    payment_method: str
    channel: str
    status: str
    created_at: Optional[datetime] = None
    expires_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    tickets: List[TicketResponse] = []

    @classmethod
    def from_entity(
        cls, reservation: Reservation, tickets: Optional[List[Ticket]] = None
    ) -> 'ReservationResponse':
        return cls(
            id=reservation.id,
            code=reservation.code,
            trip_id=reservation.trip_id,
            company_id=reservation.company_id,
            seat_ids=list(reservation.seat_ids),
            passengers=[PassengerSchema(**p.to_dict()) for p in reservation.passengers],
            total_amount=reservation.total_amount,
            payment_method=reservation.payment_method.value,
            channel=reservation.channel.value,
            status=reservation.status.value,
            created_at=reservation.created_at,
            expires_at=reservation.expires_at,
            confirmed_at=reservation.confirmed_at,
            cancelled_at=reservation.cancelled_at,
            tickets=[TicketResponse.from_entity(t) for t in tickets or []],
        )


class PaymentInstructionResponse(BaseModel):
    method: str
    amount: int
    reference: str
    pay_before: datetime
    message: str

    @classmethod
    def from_value_object(cls, instruction: PaymentInstruction) -> 'PaymentInstructionResponse':
        return cls(
            method=instruction.method.value,
            amount=instruction.amount,
            reference=instruction.reference,
            pay_before=instruction.pay_before,
            message=instruction.message,
        )


class ReservationCreateResponse(BaseModel):
    reservation: ReservationResponse
    payment_instruction: PaymentInstructionResponse


class PaymentReportRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {'status': 'completed', 'amount': 10000, 'method': 'cash'}
        },
    }

    status: PaymentStatus
    amount: int = Field(ge=0)
    method: Optional[PaymentMethod] = None
    processor_reference: Optional[str] = None


class PaymentWebhookRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'reference': 'K7QX2M9A',
                'processor_reference': 'MM-20260101-000123',
                'status': 'completed',
                'amount': 10000,
                'method': 'mobile_money',
            }
        },
    }

    reference: str  # reservation code
    processor_reference: str
    status: PaymentStatus
    amount: int = Field(ge=0)
    method: Optional[PaymentMethod] = None


class PaymentResponse(BaseModel):
    id: str
    amount: int
    method: str
    status: str
    processor_reference: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> 'PaymentResponse':
        return cls(
            id=payment.id,
            amount=payment.amount,
            method=payment.method.value,
            status=payment.status.value,
            processor_reference=payment.processor_reference,
            created_at=payment.created_at,
        )


class PaymentResultResponse(BaseModel):
    reservation: ReservationResponse
    payment: Optional[PaymentResponse] = None  # None for a redelivered result


class CounterSaleRequest(BaseModel):
    trip_id: str
    passengers: List[PassengerSchema] = Field(min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    cashier: Optional[str] = None
