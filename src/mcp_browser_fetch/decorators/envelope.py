# mcp_browser_fetch/decorators/envelope.py

import os
import asyncio
import inspect
import functools
from typing import Callable

from ..errors import BrowserDisconnectedError, BrowserToolError
from ..responses import ErrorResponse, SuccessResponse

import logging
logger = logging.getLogger(__name__)


__all__ = [
    "tool_envelope",
]


GENERIC_NEXT_STEPS = [
    "Retry the operation",
    "Use fetch_webpage to reload the page if the problem persists",
]


def _report_disconnect(err: BrowserDisconnectedError, kwargs: dict) -> None:
    if not err.flavor:
        return
    ctx = kwargs.get("ctx")
    if ctx is None:
        from ..context import get_context
        ctx = get_context()
    if ctx.connections is not None:
        ctx.connections.report_crash(err.flavor)


def _error_response(func_name: str, err: Exception, kwargs: dict, include_tb: bool) -> ErrorResponse:
    if isinstance(err, BrowserDisconnectedError):
        _report_disconnect(err, kwargs)

    if isinstance(err, BrowserToolError):
        logger.info(f"{func_name}: {err.__class__.__name__}: {err.message}")
        return ErrorResponse(err.message, err.next_steps or list(GENERIC_NEXT_STEPS))

    if include_tb:
        logger.exception(f"{func_name} failed unexpectedly")
    else:
        logger.error(f"{func_name} failed unexpectedly: {err!r}")
    return ErrorResponse(f"{err.__class__.__name__}: {err}", list(GENERIC_NEXT_STEPS))


def _check_result(func_name: str, result):
    if isinstance(result, (SuccessResponse, ErrorResponse)):
        return result
    raise TypeError(f"{func_name} returned {type(result).__name__}, expected a response object")


def tool_envelope(func: Callable):
    """
    Decorator for tool implementations:
      - Works with both async and sync callables.
      - On success: passes the SuccessResponse / ErrorResponse through.
      - On error: returns an ErrorResponse; typed BrowserToolErrors keep their message and
        next steps, anything else is logged and reported with generic next steps.
      - A dropped browser connection is reported to the connection manager.
    Environment:
      - Set MBF_TOOL_ERRORS_TRACEBACK=0 to log unexpected errors without a traceback.
    """
    include_tb = os.getenv("MBF_TOOL_ERRORS_TRACEBACK", "1") not in ("0", "false", "False")

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return _check_result(func.__name__, await func(*args, **kwargs))
            except asyncio.CancelledError:
                # Preserve cooperative cancellation semantics
                raise
            except Exception as e:
                return _error_response(func.__name__, e, kwargs, include_tb)
        return wrapper
    else:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return _check_result(func.__name__, func(*args, **kwargs))
            except Exception as e:
                return _error_response(func.__name__, e, kwargs, include_tb)
        return wrapper
