from contextvars import Token
from inspect import getfile, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable, Mapping, Optional

from src.platform.logging.loguru_io_config import (
    BOOKING_REF_KEYS,
    SENSITIVE_KEYWORDS,
    booking_ref_var,
    call_depth_var,
    chain_start_time_var,
)


MASK = '********'
MAX_CONTENT_LENGTH = 500

# Matches `phone='+221...'` inside attrs / pydantic reprs as well as `secret=abc`
_SENSITIVE_PATTERN = re.compile(
    r"(\b(?:%s)\b\s*[=:]\s*)('[^']*'|\"[^\"]*\"|[^\s,)}]+)" % '|'.join(SENSITIVE_KEYWORDS),
    re.IGNORECASE,
)


def enter_call_chain() -> float:
    """Count one more nested @Logger.io call; returns the chain start time."""
    call_depth_var.set(call_depth_var.get() + 1)
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def leave_call_chain() -> None:
    depth = call_depth_var.get() - 1
    if depth <= 0:
        call_depth_var.set(0)
        chain_start_time_var.set(0)
    else:
        call_depth_var.set(depth)


def bind_booking_ref(kwargs: Mapping[str, Any]) -> Optional[Token[str]]:
    """Tag the call chain with the first booking identifier found in kwargs.

    Returns the token to reset, or None when the call names no booking.
    """
    for key in BOOKING_REF_KEYS:
        value = kwargs.get(key)
        if isinstance(value, str) and value:
            return booking_ref_var.set(f'{key.removesuffix("_id")}={value}')
    return None


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    try:
        lineno = getsourcelines(func)[1]
    except (OSError, TypeError):
        lineno = 0
    return f'{basename(getfile(getattr(func, "__func__", func)))}::{func.__qualname__}:{lineno}'


def mask_value(data: Any) -> Any:
    text = str(data)
    masked = _SENSITIVE_PATTERN.sub(lambda m: f'{m.group(1)}{MASK!r}', text)
    return data if masked == text else masked


def mask_keyword(keyword: Any, value: Any) -> Any:
    return MASK if keyword in SENSITIVE_KEYWORDS else value


def truncate_content(data: Any) -> Any:
    if isinstance(data, str) and len(data) > MAX_CONTENT_LENGTH:
        return f'{data[:MAX_CONTENT_LENGTH]}...(+{len(data) - MAX_CONTENT_LENGTH} chars)'
    return data
