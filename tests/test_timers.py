from __future__ import annotations

import threading
from typing import Callable

from timers import ResetTimer, ThreadingScheduler


class _Handle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _ManualScheduler:
    def __init__(self) -> None:
        self.handles: list[_Handle] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> _Handle:
        handle = _Handle(callback)
        self.handles.append(handle)
        return handle


def test_arm_replaces_pending_callback() -> None:
    scheduler = _ManualScheduler()
    timer = ResetTimer(scheduler)
    calls: list[str] = []

    timer.arm(1.0, lambda: calls.append("first"))
    timer.arm(1.0, lambda: calls.append("second"))

    assert scheduler.handles[0].cancelled is True
    scheduler.handles[0].callback()  # late wake-up of the replaced timer
    scheduler.handles[1].callback()

    assert calls == ["second"]
    assert timer.pending is False


def test_cancel_suppresses_callback() -> None:
    scheduler = _ManualScheduler()
    timer = ResetTimer(scheduler)
    calls: list[str] = []

    timer.arm(1.0, lambda: calls.append("reset"))
    assert timer.pending is True
    timer.cancel()
    scheduler.handles[0].callback()

    assert calls == []
    assert timer.pending is False


def test_callback_runs_at_most_once() -> None:
    scheduler = _ManualScheduler()
    timer = ResetTimer(scheduler)
    calls: list[str] = []

    timer.arm(1.0, lambda: calls.append("reset"))
    scheduler.handles[0].callback()
    scheduler.handles[0].callback()

    assert calls == ["reset"]


def test_threading_scheduler_fires() -> None:
    fired = threading.Event()
    timer = ResetTimer(ThreadingScheduler())

    timer.arm(0.01, fired.set)

    assert fired.wait(timeout=1.0) is True


def test_threading_scheduler_cancel() -> None:
    fired = threading.Event()
    timer = ResetTimer(ThreadingScheduler())

    timer.arm(0.2, fired.set)
    timer.cancel()

    assert fired.wait(timeout=0.4) is False
