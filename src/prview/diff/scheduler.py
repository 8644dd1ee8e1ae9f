from collections.abc import Callable, Hashable
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
import threading
from typing import Any, Generic, TypeVar

from prview.logger import get_logger


T = TypeVar("T")

logger = get_logger("diff.scheduler")


class TaskHandle(Generic[T]):
    def __init__(self, key: Hashable) -> None:
        self.key = key
        self._cancelled = threading.Event()
        self._future: Future[T | None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def cancel(self) -> None:
        self._cancelled.set()
        if self._future is not None:
            self._future.cancel()

    def result(self, timeout: float | None = None) -> T | None:
        """Result of the work, or None if it was cancelled before applying."""
        if self._future is None or self._future.cancelled():
            return None
        return self._future.result(timeout=timeout)


class TokenizationScheduler:
    """Runs deferred per-file work off the calling thread.

    Work for different keys runs independently. Submitting again for a key
    cancels the earlier handle; cancellation is cooperative, checked before
    the work starts and again before ``on_result`` is applied.
    """

    def __init__(self, max_workers: int = 4, executor: Executor | None = None) -> None:
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="prview-tokenize"
        )
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._pending: dict[Hashable, TaskHandle[Any]] = {}
        self._in_flight: set[Future[Any]] = set()

    def submit(
        self,
        key: Hashable,
        work: Callable[[], T],
        on_result: Callable[[T], None] | None = None,
    ) -> TaskHandle[T]:
        handle: TaskHandle[T] = TaskHandle(key)

        with self._lock:
            previous = self._pending.get(key)
            self._pending[key] = handle
        # cancelling a queued future runs its done callbacks, which take the lock
        if previous is not None:
            logger.debug(f"Superseding pending work for {key}")
            previous.cancel()

        def run() -> T | None:
            if handle.cancelled:
                return None
            try:
                result = work()
            except Exception:
                with self._lock:
                    if self._pending.get(key) is handle:
                        del self._pending[key]
                raise
            with self._lock:
                if handle.cancelled:
                    return None
                if self._pending.get(key) is handle:
                    del self._pending[key]
                if on_result is not None:
                    on_result(result)
            return result

        future = self._executor.submit(run)
        handle._future = future
        with self._lock:
            self._in_flight.add(future)
        future.add_done_callback(self._discard)
        return handle

    def _discard(self, future: Future[Any]) -> None:
        with self._lock:
            self._in_flight.discard(future)

    def cancel(self, key: Hashable) -> None:
        with self._lock:
            handle = self._pending.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        with self._lock:
            handles = list(self._pending.values())
            self._pending.clear()
        for handle in handles:
            handle.cancel()

    def pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._pending

    def wait(self, timeout: float | None = None) -> bool:
        """Block until in-flight work settles. Returns False on timeout."""
        with self._lock:
            futures = list(self._in_flight)
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        self.cancel_all()
        if self._owns_executor:
            self._executor.shutdown(wait=True)
