"""
Timeout Controller
==================
Races a single network attempt against a deadline.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from .exceptions import RequestTimeoutError

T = TypeVar("T")


class TimeoutController:
    """
    Runs one attempt with a wall-clock limit.

    If the deadline passes first the attempt task is cancelled and
    RequestTimeoutError is raised; a late result is never observed.
    """

    async def run(
        self,
        attempt: Callable[[], Awaitable[T]],
        timeout: float,
    ) -> T:
        try:
            return await asyncio.wait_for(attempt(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise RequestTimeoutError(timeout) from exc
