from enum import StrEnum


class BookingChannel(StrEnum):
    INTERACTIVE = 'interactive'  # multi-step booking form
    GUEST = 'guest'  # guest / bulk form
    COUNTER = 'counter'  # cashier desk sale
