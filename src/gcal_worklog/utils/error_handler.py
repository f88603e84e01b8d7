"""Error handling helpers for public operations.

Failures of remote calls are logged with the operation name and then
re-raised unchanged; nothing here converts an exception into a default
value.
"""

import functools
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

import structlog

from gcal_worklog.errors import WorklogError

logger = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


def log_failure(operation_name: str, exception: BaseException, **kwargs: Any) -> None:
    """Log a failed operation at a level matching the exception kind"""
    if isinstance(exception, WorklogError):
        logger.warning(
            f"Failed to {operation_name}",
            error=str(exception),
            error_type=type(exception).__name__,
            **kwargs,
        )
    else:
        logger.error(
            f"Failed to {operation_name}",
            error=str(exception),
            error_type=type(exception).__name__,
            exc_info=True,
            **kwargs,
        )


def critical_operation(
    operation_name: str, **log_kwargs: Any
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Log and re-raise any exception escaping the wrapped coroutine.

    Args:
        operation_name: Name of the operation used in the log line
        **log_kwargs: Extra key/value pairs for the log line
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"{func.__qualname__} must be a coroutine function")

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                log_failure(operation_name, e, **log_kwargs)
                raise

        return wrapper

    return decorator
