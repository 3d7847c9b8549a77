"""
Centralized error handling for the career story wizard.

Provides helpers for consistent error handling, logging, and fallback
behavior. Generation-provider failures are never surfaced to callers:
they are logged and replaced by a deterministic default.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

# Type variable for generic return types
T = TypeVar("T")


async def generate_or_default(
    attempt: Callable[[], Awaitable[Optional[T]]],
    default: Callable[[], T],
    operation_name: str = "generation",
    timeout: Optional[float] = None,
    logger: Optional[logging.Logger] = None,
) -> T:
    """
    Run a remote generation attempt, falling back to a local default.

    The attempt is awaited at most once, bounded by ``timeout``. Any
    exception, a timeout, or a ``None`` result (validation failure) returns
    ``default()`` instead. The default must be pure and network-independent.

    Args:
        attempt: Zero-arg coroutine factory performing the remote call
        default: Zero-arg function producing the fallback value
        operation_name: Name for logging
        timeout: Seconds before the attempt is abandoned (None = unbounded)
        logger: Logger instance (uses module logger if None)

    Returns:
        The attempt's result, or the default on any failure

    Usage:
        questions = await generate_or_default(
            lambda: self._generate_dynamic(params),
            lambda: static_questions(archetype),
            operation_name="wizard questions",
            timeout=Config.QUESTION_TIMEOUT_SECONDS,
        )
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    try:
        if timeout is not None:
            result = await asyncio.wait_for(attempt(), timeout=timeout)
        else:
            result = await attempt()
    except asyncio.TimeoutError:
        logger.warning(f"[{operation_name}] Timed out after {timeout}s, using fallback")
        return default()
    except Exception as e:
        logger.warning(f"[{operation_name}] Failed: {e}. Using fallback")
        return default()

    if result is None:
        logger.warning(f"[{operation_name}] Response failed validation, using fallback")
        return default()

    return result


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them silently.

    Usage:
        with log_on_exception(logger, "story header insert", level=logging.ERROR):
            collection.insert_one(...)

    Args:
        logger: Logger instance to use
        operation: Operation description for the log message
        level: Log level (default: WARNING)
        include_traceback: Whether to include stack trace in log
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(level, f"[{operation}] Failed: {exc_val}", exc_info=include_traceback)
            # Return False to not suppress the exception
            return False

    return ExceptionLogger()


def safe_execute(
    func: Callable[..., T],
    *args,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    fallback: Any = None,
    critical: bool = False,
    **kwargs,
) -> T:
    """
    Execute a function safely with error handling and logging.

    Use only for secondary work whose failure must not abort the caller
    (e.g. evidence rows written after the story header).

    Args:
        func: Function to execute
        *args: Positional arguments for func
        operation_name: Name for logging
        logger: Logger instance (uses module logger if None)
        fallback: Value to return on failure
        critical: If True, log at ERROR level with traceback
        **kwargs: Keyword arguments for func

    Returns:
        Function result or fallback value on error
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    try:
        return func(*args, **kwargs)
    except Exception as e:
        log_level = logging.ERROR if critical else logging.WARNING
        logger.log(
            log_level,
            f"[{operation_name}] Failed: {e}",
            exc_info=critical,
        )
        return fallback
