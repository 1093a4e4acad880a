"""
Loguru sinks and shared log context

Every line carries:
- service_context: which process wrote it (API worker, sweeper)
- booking_ref: the reservation or trip the current call chain works on
- call_target: the @Logger.io function that emitted it
- chain_start_time: when the outermost @Logger.io call of the chain started
"""

from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import os
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.constant.path import LOG_DIR
from src.platform.logging.service_context import get_service_context


LOG_DIR = os.environ.get('TEST_LOG_DIR', LOG_DIR)

# Passenger contact details and ticket signing material never reach the logs
SENSITIVE_KEYWORDS = {
    'phone',
    'secret',
    'signing_secret',
    'signature',
    'qr_payload',
    'password',
}

# Keyword arguments that name the booking a call chain is about, most specific first
BOOKING_REF_KEYS = ('reservation_id', 'code', 'trip_id')
NO_BOOKING_REF = '-'

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)
booking_ref_var: ContextVar[str] = ContextVar('booking_ref_var', default=NO_BOOKING_REF)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    BOOKING_REF = 'booking_ref'
    CALL_TARGET = 'call_target'
    CHAIN_START_TIME = 'chain_start_time'


def _default_extra() -> dict[str, str]:
    return {
        ExtraField.SERVICE_CONTEXT: get_service_context(),
        ExtraField.BOOKING_REF: NO_BOOKING_REF,
        ExtraField.CALL_TARGET: '',
        ExtraField.CHAIN_START_TIME: '',
    }


def _patch_booking_ref(record) -> None:
    # Plain Logger.base calls pick up the ref of the enclosing @Logger.io chain
    if record['extra'].get(ExtraField.BOOKING_REF, NO_BOOKING_REF) == NO_BOOKING_REF:
        record['extra'][ExtraField.BOOKING_REF] = booking_ref_var.get()


class InterceptHandler(logging.Handler):
    """Routes stdlib logging (uvicorn, sqlalchemy, sse-starlette) into loguru."""

    _bound: 'LoguruLogger | None' = None

    @classmethod
    def _logger(cls) -> 'LoguruLogger':
        if cls._bound is None:
            cls._bound = loguru_logger.bind(**_default_extra()).patch(_patch_booking_ref)
        return cls._bound

    def emit(self, record: logging.LogRecord) -> None:
        message = record.getMessage()
        if record.levelno <= logging.DEBUG and 'Using selector:' in message:
            return

        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        self._logger().opt(depth=depth, exception=record.exc_info).log(level, message)


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<m>{{extra[{ExtraField.BOOKING_REF}]}}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)

min_log_level = 'DEBUG' if settings.DEBUG else 'INFO'


def _log_file_path() -> str:
    stamp = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
    prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else 'booking_'
    return f'{LOG_DIR}/{prefix}{stamp}.log'


loguru_logger.remove()
custom_logger = loguru_logger.bind(**_default_extra()).patch(_patch_booking_ref)
custom_logger.add(sys.stdout, format=io_log_format, level=min_log_level, enqueue=True)

# Production ships stdout to the collector; local and test runs also keep files
if settings.DEBUG:
    custom_logger.add(
        _log_file_path(),
        format=io_log_format,
        rotation='1 hour',
        retention='7 days',
        compression='gz',
        enqueue=True,
        level=min_log_level,
    )

logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
