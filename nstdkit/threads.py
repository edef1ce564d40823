"""Joinable worker threads that hand back the return value of their procedure."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable


class Thread:
    """A restartable thread whose ``join`` returns what the procedure returned."""

    def __init__(self) -> None:
        self._thread: threading.Thread | None = None
        self._result: Any = 0
        self._error: BaseException | None = None

    def start(self, proc: Callable[..., Any], *args: Any) -> bool:
        """Run ``proc(*args)`` in a new thread.

        Returns False if a previously started thread has not been joined yet
        or the thread could not be created.
        """
        if self._thread is not None:
            return False
        self._result = 0
        self._error = None

        def run() -> None:
            try:
                result = proc(*args)
            except BaseException as exc:  # handed to the joining thread
                self._error = exc
            else:
                self._result = 0 if result is None else result

        worker = threading.Thread(target=run, daemon=True)
        try:
            worker.start()
        except RuntimeError:
            return False
        self._thread = worker
        return True

    def join(self) -> Any:
        """Wait for the thread and return its result; 0 if nothing was started.

        An exception raised by the procedure is raised again here.
        """
        if self._thread is None:
            return 0
        self._thread.join()
        self._thread = None
        error, self._error = self._error, None
        if error is not None:
            raise error
        return self._result

    def is_running(self) -> bool:
        """Whether a started thread is still executing."""
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self) -> "Thread":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._thread is not None:
            self._thread.join()
            self._thread = None


def yield_thread() -> None:
    """Give up the rest of the current time slice."""
    time.sleep(0)


def sleep(milliseconds: int) -> None:
    """Suspend the calling thread for ``milliseconds``."""
    time.sleep(max(0, milliseconds) / 1000.0)


def current_thread_id() -> int:
    """The operating system's 32-bit identifier of the calling thread."""
    return threading.get_native_id() & 0xFFFFFFFF