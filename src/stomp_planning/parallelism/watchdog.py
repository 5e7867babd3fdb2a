"""Define a thread that enforces a wall-clock time budget by periodically polling a deadline."""

from __future__ import annotations

import threading
import time
from typing import Callable

from stomp_planning.io.logging import log_debug


class Watchdog:
    """Polls elapsed wall-clock time and invokes a callback once a time budget is exceeded.

    The callback is invoked again on every subsequent poll until it returns True (i.e., until
    the expiry has been acknowledged) or the watchdog is stopped.
    """

    def __init__(
        self,
        budget_s: float,
        on_expiry: Callable[[], bool],
        interval_s: float = 0.05,
        name: str = "watchdog",
    ) -> None:
        """Initialize the watchdog without starting its thread.

        :param budget_s: Duration (seconds) after which the budget is considered exceeded
        :param on_expiry: Callback invoked on expiry; returns True once it has taken effect
        :param interval_s: Duration (seconds) between consecutive polls (defaults to 0.05)
        :param name: Name given to the background thread
        """
        if interval_s <= 0:
            raise ValueError(f"Watchdog poll interval must be positive, got {interval_s}")

        self.budget_s = budget_s
        self.interval_s = interval_s
        self._on_expiry = on_expiry
        self._stop_requested = threading.Event()
        self._expired = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)

        self._start_time_s: float | None = None
        self.fired_at_s: float | None = None
        """Elapsed time (seconds since start) at which the callback was first invoked."""

    @property
    def expired(self) -> bool:
        """Check whether the time budget has been exceeded."""
        return self._expired.is_set()

    @property
    def running(self) -> bool:
        """Check whether the polling thread is alive."""
        return self._thread.is_alive()

    def start(self) -> None:
        """Record the start time and launch the polling thread."""
        if self._start_time_s is not None:
            raise RuntimeError("A watchdog can only be started once.")

        self._start_time_s = time.monotonic()
        self._thread.start()

    def stop(self) -> None:
        """Stop polling and wait for the thread to exit."""
        self._stop_requested.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join()

    def elapsed_s(self) -> float:
        """Compute the time (seconds) elapsed since the watchdog started."""
        if self._start_time_s is None:
            return 0.0
        return time.monotonic() - self._start_time_s

    def _loop(self) -> None:
        """Poll the deadline until stopped or until the expiry has been acknowledged."""
        while not self._stop_requested.wait(timeout=self.interval_s):
            elapsed_s = self.elapsed_s()
            if elapsed_s <= self.budget_s:
                continue

            if not self._expired.is_set():
                self._expired.set()
                self.fired_at_s = elapsed_s

            if self._on_expiry():
                log_debug(f"Watchdog '{self._thread.name}' acknowledged after {elapsed_s:.3f} s")
                return
