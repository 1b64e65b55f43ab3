"""Cancellable task submission bound to the lifetime of a UI component."""

import asyncio
import concurrent.futures
import functools
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Optional, Set

from .dispatchers import ForegroundLoop

logger = logging.getLogger(__name__)


class LifecycleScope:
    """Runs units of work on the foreground loop until cancelled.

    Work is written as coroutines: blocking calls go through ``await
    scope.io(fn, ...)`` which runs them on the IO executor and resumes on the
    foreground loop. Once ``cancel`` has returned no unit of work launched on
    this scope publishes anything: pending work is cancelled, a background
    call that already started may finish but its result is dropped, and
    later ``launch`` calls are no-ops.
    """

    def __init__(self,
                 foreground: ForegroundLoop,
                 io_executor: concurrent.futures.Executor,
                 name: str = "scope"):
        self.foreground = foreground
        self.io_executor = io_executor
        self.name = name
        self.last_error: Optional[BaseException] = None

        self._cancelled = False
        self._lock = threading.Lock()
        self._futures: Set[concurrent.futures.Future] = set()
        # Only touched on the foreground thread
        self._tasks: Set[asyncio.Task] = set()

    @property
    def is_active(self) -> bool:
        return not self._cancelled

    @property
    def outstanding(self) -> int:
        with self._lock:
            return sum(1 for f in self._futures if not f.done())

    def launch(self, work: Callable[..., Awaitable[Any]], *args: Any) -> Optional[concurrent.futures.Future]:
        """Submit ``work(*args)``; returns None when the scope is cancelled."""
        with self._lock:
            if self._cancelled:
                logger.debug(f"Scope '{self.name}' cancelled, ignoring {_work_name(work)}")
                return None
            future = self.foreground.submit(self._run(work, *args))
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return future

    async def _run(self, work: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        if self._cancelled:
            return None
        task = asyncio.current_task()
        self._tasks.add(task)
        try:
            return await work(*args)
        except asyncio.CancelledError:
            logger.debug(f"Scope '{self.name}': {_work_name(work)} cancelled")
            raise
        except Exception as e:
            self.last_error = e
            logger.error(f"Scope '{self.name}': {_work_name(work)} failed: {e}", exc_info=True)
            return None
        finally:
            self._tasks.discard(task)

    def _forget(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._futures.discard(future)

    async def io(self, fn: Callable, *args: Any) -> Any:
        """Run a blocking call on the IO executor and resume on the foreground loop."""
        self._ensure_active()
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(self.io_executor, functools.partial(fn, *args))
        self._ensure_active()
        return result

    def _ensure_active(self) -> None:
        if self._cancelled:
            raise asyncio.CancelledError(f"scope '{self.name}' cancelled")

    def run_on_foreground(self, fn: Callable, *args: Any) -> Any:
        return self.foreground.call(fn, *args)

    def cancel(self) -> None:
        """Cancel all outstanding and future work. Idempotent."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            pending = sum(1 for f in self._futures if not f.done())
        logger.info(f"Cancelling scope '{self.name}' ({pending} outstanding)")
        # Runs on the loop so that no publish step can still be executing
        self.foreground.call(self._cancel_tasks)

    def _cancel_tasks(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until no launched work is outstanding.

        Must not be called from the foreground thread.

        Returns:
            True if everything finished, False on timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = [f for f in self._futures if not f.done()]
            if not pending:
                return True
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            concurrent.futures.wait(pending, timeout=remaining)


def _work_name(work: Callable) -> str:
    return getattr(work, "__name__", repr(work))
