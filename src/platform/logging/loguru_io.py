"""
@Logger.io: argument / return / exception logging for use cases and repositories

    @Logger.io
    async def confirm_payment(self, *, reservation_id: str, ...): ...

Arguments and return values are logged at DEBUG only. Exceptions are logged
once per chain: domain errors (CustomBaseError) as a one-line ERROR, anything
else with its traceback. While a decorated call runs, its reservation_id,
code or trip_id keyword becomes the booking_ref of every line it emits.
"""

from functools import wraps
from inspect import iscoroutinefunction
import types
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar, cast, overload


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io_config import ExtraField, booking_ref_var, custom_logger
from src.platform.logging.loguru_io_utils import (
    bind_booking_ref,
    build_call_target_func_path,
    enter_call_chain,
    leave_call_chain,
    mask_keyword,
    mask_value,
    truncate_content,
)

_F = TypeVar('_F', bound=Callable[..., Any])


class LoguruIO:
    # Frames between the decorated function's caller and the loguru call
    DEPTH = 2

    def __init__(
        self, custom_logger: 'LoguruLogger', *, reraise: bool = True, truncate_content: bool = False
    ) -> None:
        self._custom_logger = custom_logger
        self.reraise = reraise
        self.truncate_content = truncate_content
        self.call_target = ''

    def _bound(self, chain_start_time: Any = '') -> 'LoguruLogger':
        return self._custom_logger.bind(
            **{
                ExtraField.CALL_TARGET: self.call_target,
                ExtraField.CHAIN_START_TIME: chain_start_time,
                ExtraField.BOOKING_REF: booking_ref_var.get(),
            }
        )

    def _on_enter(self, args: tuple, kwargs: dict) -> Any:
        ref_token = bind_booking_ref(kwargs)
        chain_start_time = enter_call_chain()
        if settings.DEBUG:
            self._bound(chain_start_time).opt(depth=self.DEPTH).debug(
                f'args: {self.mask(args)}, kwargs: {self.mask(kwargs)}'
            )
        return ref_token, chain_start_time

    def _on_return(self, chain_start_time: float, return_value: Any) -> None:
        if settings.DEBUG:
            self._bound(chain_start_time).opt(depth=self.DEPTH).debug(
                f'return: {self.mask(return_value)}'
            )

    def _on_error(self, e: Exception) -> None:
        if getattr(e, '_has_logged', False):
            return
        e._has_logged = True  # type: ignore[attr-defined]
        bound = self._bound().opt(depth=self.DEPTH)
        if isinstance(e, CustomBaseError):
            bound.error(f'{type(e).__name__}({e.status_code}): {e}')
        else:
            bound.exception(f'{type(e).__name__}: {e}')

    @staticmethod
    def _on_exit(ref_token: Any) -> None:
        leave_call_chain()
        if ref_token is not None:
            booking_ref_var.reset(ref_token)

    def mask(self, data: Any) -> Any:
        if isinstance(data, dict):
            masked: Any = {key: self.mask(mask_keyword(key, value)) for key, value in data.items()}
        elif isinstance(data, list | tuple):
            masked = type(data)(self.mask(item) for item in data)
        else:
            masked = mask_value(data)
        return truncate_content(masked) if self.truncate_content else masked

    def _hide_from_traceback(self, func: Callable[..., Any]) -> Callable[..., Any]:
        func.__code__ = func.__code__.replace(  # type: ignore[attr-defined]
            co_filename=cast(types.FunctionType, self._custom_logger.catch).__code__.co_filename
        )
        return func

    def __call__(self, func: _F) -> _F:
        self.call_target = build_call_target_func_path(func)

        if iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                ref_token, chain_start_time = self._on_enter(args, kwargs)
                try:
                    return_value = await func(*args, **kwargs)
                except Exception as e:
                    self._on_error(e)
                    if self.reraise:
                        raise
                    return None
                finally:
                    self._on_exit(ref_token)
                self._on_return(chain_start_time, return_value)
                return return_value

            return cast(_F, self._hide_from_traceback(async_wrapper))

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            ref_token, chain_start_time = self._on_enter(args, kwargs)
            try:
                return_value = func(*args, **kwargs)
            except Exception as e:
                self._on_error(e)
                if self.reraise:
                    raise
                return None
            finally:
                self._on_exit(ref_token)
            self._on_return(chain_start_time, return_value)
            return return_value

        return cast(_F, self._hide_from_traceback(sync_wrapper))


_P = ParamSpec('_P')
_T = TypeVar('_T')


class Logger:
    base = custom_logger

    @overload
    @staticmethod
    def io(func: Callable[_P, _T]) -> Callable[_P, _T]: ...

    @overload
    @staticmethod
    def io(func: None = ..., *, reraise: bool = ..., truncate_content: bool = ...) -> LoguruIO: ...

    @staticmethod
    def io(
        func: Callable[_P, _T] | None = None, *, reraise: bool = True, truncate_content: bool = True
    ) -> Callable[_P, _T] | LoguruIO:
        decorator = LoguruIO(
            custom_logger=custom_logger, reraise=reraise, truncate_content=truncate_content
        )
        return decorator(func) if func else decorator
