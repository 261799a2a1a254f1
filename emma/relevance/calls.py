"""Timeout-bounded calls to external collaborators."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class CollaboratorCancelledError(Exception):
    """A collaborator raised CancelledError without the caller being cancelled."""

    pass


async def call_with_timeout(awaitable: Awaitable[T], timeout: float, operation: str) -> T:
    """Await a collaborator call under a timeout.

    Timeouts surface as TimeoutError naming the operation. A CancelledError
    raised by the collaborator itself is converted to
    CollaboratorCancelledError so callers can treat it like any other
    failure; cancellation of the calling task still propagates.

    Args:
        awaitable: The collaborator call
        timeout: Seconds to wait
        operation: Name used in error messages

    Returns:
        The collaborator's result
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except TimeoutError:
        raise TimeoutError(f"{operation} timed out after {timeout}s") from None
    except asyncio.CancelledError:
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            raise
        raise CollaboratorCancelledError(f"{operation} was cancelled") from None
