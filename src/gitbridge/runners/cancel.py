"""Cooperative cancellation for git invocations."""

from __future__ import annotations

import threading
from collections.abc import Callable

__all__ = ["CancelToken"]


class CancelToken:
    """A one-shot cancellation signal shared between a caller and the runner.

    The runner checks :attr:`cancelled` before spawning and registers a
    callback with :meth:`on_cancel` to kill an in-flight process. Thread-safe,
    so it can be fired from any thread and observed by the threaded spawn
    strategy.

    Example:
        ```python
        token = CancelToken()
        task = asyncio.create_task(
            service.run("fetch", {}, tenant_id="t", cancel_token=token)
        )
        token.cancel("user pressed stop")
        ```
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """True once :meth:`cancel` has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Subsequent calls are no-ops."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register *callback* to run when the token fires.

        If the token already fired, *callback* runs immediately.

        Returns:
            A function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove(callback)
        callback()
        return lambda: None

    def wait(self, timeout: float | None = None) -> bool:
        """Block the calling thread until fired or *timeout* elapses."""
        return self._event.wait(timeout)

    def _remove(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
