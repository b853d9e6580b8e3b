# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Polling waits for browser sessions.
#
# Key Features:
#   - Async polling of sync or async predicates
#   - Fixed timeout in milliseconds with a caller-supplied failure message
#   - Errors raised by the predicate propagate unchanged
#
# Usage:
#   await wait_until(page_has_left_blank, timeout_ms=10000,
#                    message="Timed out waiting for page to load")
#
# ================================================================================

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from loguru import logger


Predicate = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass
class WaitConfig:
    """
    Configuration for wait operations.

    Attributes:
        timeout_ms: Total timeout in milliseconds
        poll_interval: Delay between predicate checks in seconds
    """
    timeout_ms: float = 10000
    poll_interval: float = 0.1


class WaitTimeoutError(Exception):
    """Raised when a wait predicate does not become truthy in time."""
    pass


async def wait_until(
    condition: Predicate,
    timeout_ms: Optional[float] = None,
    message: str = "Timed out waiting for condition",
    config: Optional[WaitConfig] = None,
) -> Any:
    """
    Poll `condition` until it returns a truthy value.

    Args:
        condition: Sync or async callable, checked once per poll
        timeout_ms: Overrides config.timeout_ms
        message: Message of the WaitTimeoutError raised on timeout
        config: Optional custom WaitConfig

    Returns:
        The first truthy value returned by `condition`

    Raises:
        WaitTimeoutError: If the timeout elapses first
    """
    config = config or WaitConfig()
    if timeout_ms is None:
        timeout_ms = config.timeout_ms

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000.0
    attempt = 0

    while True:
        attempt += 1
        result = condition()
        if inspect.isawaitable(result):
            result = await result

        if result:
            logger.debug(f"Wait satisfied after {attempt} attempts")
            return result

        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.error(f"{message} (after {timeout_ms:.0f}ms, {attempt} attempts)")
            raise WaitTimeoutError(message)

        await asyncio.sleep(min(config.poll_interval, remaining))


__all__ = [
    "WaitConfig",
    "WaitTimeoutError",
    "wait_until",
]
