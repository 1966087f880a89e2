"""Background asyncio loop for the GUI.

The grid engine is written against asyncio. Qt owns the main thread, so the
engine runs on one event loop hosted by a daemon thread. Adapters submit
coroutines to it and receive results back through queued Qt signals.

Threading model
--------------
- Exactly one loop thread exists per application window.
- Engine objects are created and used only on the loop thread.
- The GUI thread never awaits; it only submits work.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Coroutine, TypeVar

from grid_engine.logging_config import get_logger

T = TypeVar("T")

_log = get_logger("gui.loop")


class LoopThread:
    """Runs an asyncio event loop on a daemon thread."""

    def __init__(self, name: str = "docdesk-engine") -> None:
        self._loop = asyncio.new_event_loop()
        self._stopped = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def submit(self, coro: Coroutine[Any, Any, T]) -> Future[T]:
        """
        Schedule `coro` on the loop thread.

        Returns
        -------
        concurrent.futures.Future
            Future completed with the coroutine's result.
        """
        if self._stopped:
            coro.close()
            raise RuntimeError("The engine loop has been stopped.")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(_log_failure)
        return future

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel outstanding tasks and stop the loop thread."""
        if self._stopped:
            return
        self._stopped = True

        async def _cancel_all() -> None:
            current = asyncio.current_task()
            pending = [t for t in asyncio.all_tasks() if t is not current]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        try:
            asyncio.run_coroutine_threadsafe(_cancel_all(), self._loop).result(timeout)
        except Exception as exc:
            _log.warning("loop_cancel_failed", error=str(exc))
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            _log.warning("loop_thread_still_running")
            return
        self._loop.close()


def _log_failure(future: Future[Any]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        _log.error("engine_task_failed", error=str(exc), error_type=type(exc).__name__)
