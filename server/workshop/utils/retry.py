"""
Retry utilities with exponential backoff.

Used for calls to external providers (the WhatsApp gateway) where a
transient failure should not lose the message on the first attempt.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def with_retry(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    backoff_factor: float = 1.5,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    operation_name: Optional[str] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> T:
    """
    Retry an async operation with exponential backoff.

    Args:
        func: Async function to retry
        max_retries: Maximum number of attempts (default: 3)
        backoff_factor: Multiplier for delay between retries (default: 1.5)
        initial_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay between retries in seconds (default: 30.0)
        operation_name: Name for logging purposes
        retry_on: Exception types that trigger another attempt; anything
            else propagates immediately

    Returns:
        Result from successful function call

    Raises:
        The last exception raised by ``func`` once all attempts are used.

    Example:
        >>> message_id = await with_retry(
        ...     lambda: gateway.send(phone, text),
        ...     max_retries=3,
        ...     operation_name="WhatsApp send"
        ... )
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    name = operation_name or getattr(func, "__name__", "operation")

    for attempt in range(max_retries):
        try:
            logger.debug(f"Attempt {attempt + 1}/{max_retries}: {name}")
            result = await func()

            if attempt > 0:
                logger.info(f"✅ {name} succeeded on attempt {attempt + 1}/{max_retries}")

            return result

        except retry_on as e:
            if attempt < max_retries - 1:
                # Calculate delay with exponential backoff
                delay = min(initial_delay * (backoff_factor ** attempt), max_delay)

                logger.warning(
                    f"⚠️  {name} failed (attempt {attempt + 1}/{max_retries}): {str(e)}"
                )
                logger.info(f"Retrying in {delay:.1f}s...")

                await asyncio.sleep(delay)
            else:
                logger.error(
                    f"❌ {name} failed after {max_retries} attempts: {str(e)}"
                )
                raise
