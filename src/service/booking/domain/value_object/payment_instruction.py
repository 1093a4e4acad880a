"""
Payment Instruction

What the customer is told to do after a reservation is held. The text
depends on the chosen payment method; the reference is always the
reservation code so that cashiers and processors can match it back.
"""

from datetime import datetime

import attrs

from src.service.booking.domain.enum import PaymentMethod


_MESSAGES: dict[PaymentMethod, str] = {
    PaymentMethod.CASH: 'Pay {amount} at the company counter quoting reference {reference}.',
    PaymentMethod.MOBILE_MONEY: 'Send {amount} by mobile money with reference {reference}.',
    PaymentMethod.CARD: 'Complete the card payment of {amount} for reference {reference}.',
}


@attrs.frozen
class PaymentInstruction:
    method: PaymentMethod
    amount: int
    reference: str
    pay_before: datetime
    message: str

    @classmethod
    def for_method(
        cls, *, method: PaymentMethod, amount: int, reference: str, pay_before: datetime
    ) -> 'PaymentInstruction':
        message = _MESSAGES[method].format(amount=amount, reference=reference)
        return cls(
            method=method,
            amount=amount,
            reference=reference,
            pay_before=pay_before,
            message=message,
        )
