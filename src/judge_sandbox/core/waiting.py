from __future__ import annotations

import threading
import time
from typing import Callable, Optional, TypeVar

from .errors import Cancelled, WaitTimeout

T = TypeVar("T")


class Waiter:
    """
    Fixed-interval poll loop with a deadline and a cancel flag.

    `probe` returns None while the awaited thing is not there yet; the first
    non-None value is returned. The cancel event is checked before every probe
    and interrupts the sleep between probes.
    """

    def __init__(
        self,
        interval_s: float,
        cancel: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval_s = max(0.0, interval_s)
        self.cancel = cancel
        self.clock = clock

    def check_cancelled(self, what: str = "") -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise Cancelled(f"cancelled while waiting for {what}" if what else "cancelled")

    def sleep(self, what: str = "") -> None:
        if self.cancel is not None:
            if self.cancel.wait(self.interval_s):
                raise Cancelled(f"cancelled while waiting for {what}")
        elif self.interval_s:
            time.sleep(self.interval_s)

    def poll(self, probe: Callable[[], Optional[T]], timeout_s: Optional[float], what: str) -> T:
        deadline = None if timeout_s is None else self.clock() + timeout_s
        while True:
            self.check_cancelled(what)
            value = probe()
            if value is not None:
                return value
            if deadline is not None and self.clock() >= deadline:
                raise WaitTimeout(f"{what} not ready after {timeout_s:g}s")
            self.sleep(what)
