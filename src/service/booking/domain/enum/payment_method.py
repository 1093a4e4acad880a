from enum import StrEnum


class PaymentMethod(StrEnum):
    CASH = 'cash'
    MOBILE_MONEY = 'mobile_money'
    CARD = 'card'
