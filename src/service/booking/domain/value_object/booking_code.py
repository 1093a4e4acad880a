import secrets
import string

import uuid_utils


CODE_ALPHABET = string.ascii_uppercase + string.digits
RESERVATION_CODE_LENGTH = 8
TICKET_CODE_LENGTH = 10


def new_id() -> str:
    return str(uuid_utils.uuid7())


def generate_code(length: int = RESERVATION_CODE_LENGTH) -> str:
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(length))
