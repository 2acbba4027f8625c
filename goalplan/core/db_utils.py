"""
Database utilities for connection management and error handling
"""
import asyncio
import functools
import logging
from typing import Callable, Any, TypeVar, cast, Awaitable

from .config import settings

logger = logging.getLogger(__name__)

# Define a type variable for the return type of the decorated function
T = TypeVar('T')

CONNECTION_ERROR_NAMES = (
    "ConnectionError", "OperationalError",
    "ConnectionDoesNotExistError", "ConnectionRefusedError",
)

def is_connection_error(error: BaseException) -> bool:
    error_name = type(error).__name__
    return any(name in error_name for name in CONNECTION_ERROR_NAMES)

def with_db_retry(
    max_retries: int = settings.DB_MAX_RETRIES,
    retry_delay: float = settings.DB_RETRY_DELAY
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator that retries store operations on connection errors.

    Args:
        max_retries: Maximum number of retries before giving up
        retry_delay: Delay before the first retry in seconds, doubled on each attempt

    Returns:
        Decorated function with retry logic
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0
            last_error = None

            while retries <= max_retries:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_connection_error(e):
                        raise
                    retries += 1
                    last_error = e
                    if retries <= max_retries:
                        delay = retry_delay * (2 ** (retries - 1))  # Exponential backoff
                        logger.warning(
                            f"Database connection error in {func.__name__}: {str(e)}. "
                            f"Retrying in {delay:.2f}s... (Attempt {retries}/{max_retries})"
                        )
                        await asyncio.sleep(delay)

            logger.error(f"{func.__name__} failed after {max_retries} retries: {last_error}")
            if last_error:
                raise last_error
            raise RuntimeError("Database operation failed with unknown error")

        return cast(Callable[..., Awaitable[T]], wrapper)

    return decorator
