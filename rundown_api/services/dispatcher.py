"""
Background dispatch for webhook classification.

Tasks run on a small thread pool after the webhook has been acknowledged.
Delivery is best-effort and at-most-once: a full backlog drops the task, a
failing task is logged and forgotten, and work still queued at shutdown is
lost unless ``shutdown(wait=True)`` is used.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Any, Callable, Optional, Set

logger = logging.getLogger(__name__)


class WebhookDispatcher:
    """Bounded fire-and-forget executor."""

    def __init__(self, max_workers: int = 2, max_backlog: int = 100):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_backlog < 1:
            raise ValueError("max_backlog must be at least 1")
        self.max_backlog = max_backlog
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="webhook"
        )
        self._lock = threading.Lock()
        self._futures: Set[Future] = set()
        self._closed = False
        self.submitted = 0
        self.dropped = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        """Tasks queued or running."""
        with self._lock:
            return len(self._futures)

    def submit(self, fn: Callable[..., Any], *args: Any) -> bool:
        """Queue ``fn(*args)``; returns ``False`` when the task was dropped."""

        with self._lock:
            if self._closed:
                self.dropped += 1
                logger.warning("Dispatcher is shut down, dropping %s", getattr(fn, "__name__", fn))
                return False
            if len(self._futures) >= self.max_backlog:
                self.dropped += 1
                logger.warning(
                    "Webhook backlog full (%s tasks), dropping %s",
                    self.max_backlog,
                    getattr(fn, "__name__", fn),
                )
                return False
            future = self._executor.submit(fn, *args)
            self._futures.add(future)
            self.submitted += 1

        future.add_done_callback(self._on_done)
        return True

    def _on_done(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            with self._lock:
                self.failed += 1
            logger.error("Webhook task failed: %s", exc, exc_info=exc)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until in-flight tasks finish; ``True`` if nothing is left."""

        with self._lock:
            futures = list(self._futures)
        if not futures:
            return True
        _, not_done = wait_futures(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            backlog = len(self._futures)
        if backlog:
            logger.info("Shutting down webhook dispatcher with %s pending task(s)", backlog)
        self._executor.shutdown(wait=wait, cancel_futures=not wait)


__all__ = ["WebhookDispatcher"]
