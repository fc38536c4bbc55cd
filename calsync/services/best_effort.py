"""
Best-effort execution of side effects.

Activity logging, task creation and profile lookups must never fail the
request that triggers them. `attempt()` awaits the operation, logs any
failure, and hands back an Outcome instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Result of a best-effort operation."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default


async def attempt(operation: Awaitable[T], description: str) -> Outcome[T]:
    """
    Await an operation without propagating its failure.

    Cancellation still propagates since it is not an Exception subclass.

    Args:
        operation: Awaitable to run
        description: Short label used in the failure log line

    Returns:
        Outcome holding either the value or the error
    """
    try:
        return Outcome(value=await operation)
    except Exception as e:
        logger.warning(f"{description} failed: {e}")
        return Outcome(error=e)
