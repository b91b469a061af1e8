"""Timer scheduling used for the post-utterance auto-reset."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from interfaces import Scheduler, TimerHandle


class ThreadingScheduler:
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer


class ResetTimer:
    """Single-slot timer: at most one pending callback at any time.

    Arming replaces (and cancels) whatever was pending, so a reset scheduled
    for an earlier session can never fire after a newer one was armed or
    cancelled.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._lock = threading.RLock()
        self._handle: Optional[TimerHandle] = None
        self._token = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self, delay_s: float, callback: Callable[[], None]) -> None:
        with self._lock:
            self._cancel_locked()
            self._token += 1
            token = self._token

            def fire() -> None:
                with self._lock:
                    if token != self._token or self._handle is None:
                        return
                    self._handle = None
                callback()

            self._handle = self._scheduler.call_later(delay_s, fire)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._token += 1
