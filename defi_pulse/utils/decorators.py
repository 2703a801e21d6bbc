"""Async decorators for upstream resilience and request deadlines."""
import asyncio
import functools
import time
from typing import Callable, Tuple, Type

from defi_pulse.utils.logging import get_logger

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """
    Retry an async callable with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (1 disables retrying)
        delay: Initial delay between attempts in seconds
        backoff: Backoff multiplier for delay
        exceptions: Exception types that trigger another attempt

    Example:
        @retry(max_attempts=2, delay=0.5, exceptions=(httpx.TransportError,))
        async def send(client, url):
            ...
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            current_delay = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        logger.error(
                            f"{func.__name__} failed after {max_attempts} attempts",
                            extra={"error": str(e), "attempts": attempt}
                        )
                        raise
                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt}/{max_attempts}), retrying in {current_delay}s",
                        extra={"error": str(e), "delay": current_delay}
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff

        return wrapper

    return decorator


def timeout(seconds: float):
    """
    Impose an overall deadline on an async callable.

    Raises:
        TimeoutError: when the deadline passes before the call completes
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await asyncio.wait_for(func(*args, **kwargs), timeout=seconds)
            except asyncio.TimeoutError:
                logger.error(
                    f"{func.__name__} timed out after {seconds}s",
                    extra={"function": func.__name__}
                )
                raise TimeoutError(f"{func.__name__} exceeded timeout of {seconds}s")

        return wrapper

    return decorator


def log_execution(log_args: bool = False):
    """
    Log start, completion time and failures of an async callable.

    Example:
        @log_execution()
        async def fetch(url):
            ...
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            name = func.__name__
            extra = {"function": name}
            if log_args:
                extra["call_args"] = str(args[1:])[:200]
            logger.debug(f"Starting {name}", extra=extra)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    f"Failed {name}",
                    extra={"function": name, "execution_time_ms": _elapsed_ms(start), "error": str(e)}
                )
                raise
            logger.debug(
                f"Completed {name}",
                extra={"function": name, "execution_time_ms": _elapsed_ms(start)}
            )
            return result

        return wrapper

    return decorator
