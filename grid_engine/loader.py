"""
Retry-on-not-ready loading.

Right after startup the host may still be connecting, and every query fails
with a "not initialized" message. The loader treats that failure as
transient: it waits a fixed delay and tries the same request again, without
reporting an error. Any other failure ends the attempt.

Each loader instance runs at most one attempt at a time. Starting a new
attempt cancels the previous one, including its pending retry delay.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Generic, TypeVar

from .errors import RemoteOperationError
from .logging_config import get_logger
from .remote import is_not_ready

T = TypeVar("T")

DEFAULT_RETRY_DELAY = 1.0

Sleep = Callable[[float], Awaitable[Any]]


class RetryingLoader(Generic[T]):
    """
    Runs one fetch at a time, retrying while the host is not ready.

    Parameters
    ----------
    name:
        Label used in log entries.
    retry_delay:
        Seconds to wait before retrying a not-ready failure.
    sleep:
        Awaitable delay; injectable for tests.
    """

    def __init__(
        self,
        *,
        name: str,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if retry_delay < 0:
            raise ValueError("retry_delay must be non-negative.")
        self._name = name
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._task: asyncio.Task[T] | None = None
        self._waiting = False
        self._log = get_logger("loader").bind(loader=name)

    @property
    def waiting(self) -> bool:
        """True while the current attempt is waiting for the host to get ready."""
        return self._waiting

    @property
    def busy(self) -> bool:
        """True while an attempt is in flight."""
        return self._task is not None and not self._task.done()

    def run(self, fetch: Callable[[], Awaitable[T]]) -> asyncio.Task[T]:
        """
        Start a new attempt, cancelling any attempt already in flight.

        Parameters
        ----------
        fetch:
            Zero-argument coroutine function performing the remote call.

        Returns
        -------
        asyncio.Task
            Task resolving to the fetched value, or failing with the terminal
            `RemoteOperationError`.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._attempt(fetch))
        return self._task

    def cancel(self) -> None:
        """Cancel the in-flight attempt, if any."""
        task = self._task
        self._task = None
        self._waiting = False
        if task is not None and not task.done():
            task.cancel()
            self._log.debug("load_cancelled")

    async def _attempt(self, fetch: Callable[[], Awaitable[T]]) -> T:
        retries = 0
        try:
            while True:
                try:
                    result = await fetch()
                except RemoteOperationError as exc:
                    if not is_not_ready(exc):
                        self._log.warning("load_failed", error=exc.message, retries=retries)
                        raise
                    retries += 1
                    self._waiting = True
                    self._log.info("host_not_ready", retries=retries, delay=self._retry_delay)
                    await self._sleep(self._retry_delay)
                    continue
                if retries:
                    self._log.info("load_recovered", retries=retries)
                return result
        finally:
            if asyncio.current_task() is self._task:
                self._waiting = False
