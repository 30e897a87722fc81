"""Thread pool ownership and join barriers shared by the parallel strategies."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

from mandelzoom.core.errors import RenderTaskFailure


class PooledRenderer:
    """Base for strategies that fan work out to a private thread pool.

    The pool is created on first use and lives until ``close()``. Each
    strategy level owns its own pool, and a task only ever waits on a pool
    below it, so nesting parallel strategies cannot starve a pool.
    """

    thread_name_prefix = "mandelzoom"

    def __init__(self, max_workers: int | None = None):
        self.max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix=self.thread_name_prefix,
                )
            return self._executor

    def close(self):
        """Shut down the pool, waiting for running tasks."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def join_all(tasks: dict[Future, str], output_id: str | None = None) -> None:
    """Block until every task has finished, then surface the first failure.

    Args:
        tasks: Futures mapped to a label for the unit of work they cover
        output_id: Frame identifier for the error message

    Raises:
        RenderTaskFailure: If any task raised. Waiting always completes first,
            so no task is still writing to the buffer when this propagates.
    """
    wait(tasks)
    for future, unit in tasks.items():
        exc = future.exception()
        if exc is None:
            continue
        if isinstance(exc, RenderTaskFailure):
            raise exc
        raise RenderTaskFailure(unit, output_id) from exc
