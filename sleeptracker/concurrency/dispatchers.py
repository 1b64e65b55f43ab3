"""Execution contexts: a foreground event loop thread and a background IO pool."""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable, Coroutine, Optional

logger = logging.getLogger(__name__)


class ForegroundLoop:
    """Owner thread for published state.

    Runs an asyncio event loop on a dedicated daemon thread. Only code
    running on this thread may mutate observable state; blocking work goes
    to the IO executor instead.
    """

    def __init__(self, name: str = "foreground"):
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()
        self._stopped = False
        self._lock = threading.Lock()

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped

    def start(self) -> "ForegroundLoop":
        with self._lock:
            if self._thread is not None:
                return self
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        self._started.wait()
        logger.info(f"Foreground loop '{self.name}' started")
        return self

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        try:
            self._loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self._loop.close()
            logger.debug(f"Foreground loop '{self.name}' closed")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and join its thread. Safe to call more than once."""
        with self._lock:
            if self._thread is None or self._stopped:
                return
            self._stopped = True
            thread = self._thread
        self._loop.call_soon_threadsafe(self._loop.stop)
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.info(f"Foreground loop '{self.name}' stopped")

    def is_current(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    def assert_current(self) -> None:
        """Raise if called off the foreground thread while the loop is running."""
        if self.is_running and not self.is_current():
            raise RuntimeError(
                f"Published state must be mutated on the '{self.name}' thread, "
                f"not '{threading.current_thread().name}'"
            )

    def post(self, fn: Callable, *args: Any) -> None:
        """Schedule ``fn(*args)`` on the loop without waiting."""
        if not self.is_running:
            logger.warning(f"Foreground loop '{self.name}' not running, dropping {getattr(fn, '__name__', fn)}")
            return
        self._loop.call_soon_threadsafe(fn, *args)

    def call(self, fn: Callable, *args: Any, timeout: Optional[float] = None) -> Any:
        """Run ``fn(*args)`` on the loop and wait for its result.

        Runs inline when already on the loop, or when the loop is not running.
        """
        if self.is_current() or not self.is_running:
            return fn(*args)

        future: concurrent.futures.Future = concurrent.futures.Future()

        def runner():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(fn(*args))
            except Exception as e:
                future.set_exception(e)

        self._loop.call_soon_threadsafe(runner)
        return future.result(timeout)

    def submit(self, coro: Coroutine) -> concurrent.futures.Future:
        """Run a coroutine on the loop, returning a thread-safe future."""
        if not self.is_running:
            coro.close()
            raise RuntimeError(f"Foreground loop '{self.name}' is not running")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)


def create_io_executor(max_workers: int = 4, name: str = "sleeptracker-io") -> concurrent.futures.ThreadPoolExecutor:
    """Background pool for blocking store calls."""
    logger.info(f"Creating IO executor with {max_workers} workers")
    return concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
