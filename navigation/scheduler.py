from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, Optional, Protocol

from common.logging_setup import get_logger
from common.utils import RateTimer, RunningStats


log = get_logger("navigation.scheduler")


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TimerLoop(Protocol):
    """The part of asyncio.AbstractEventLoop the scheduler relies on."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


class ThrottleScheduler:
    """
    Trailing-edge throttle: coalesces bursts of signals into at most one run
    per interval.

    The first signal arms a timer; signals arriving while it is armed are
    absorbed. When the timer fires the callback runs once and reads whatever
    state is current at that moment, never a snapshot from signal time.

    All calls must happen on the loop's thread.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        interval_s: float = 0.1,
        loop: Optional[TimerLoop] = None,
    ):
        if interval_s < 0:
            raise ValueError("interval_s must be >= 0")
        self.callback = callback
        self.interval_s = float(interval_s)
        self._loop = loop
        self._handle: Optional[TimerHandle] = None
        self._closed = False
        self.signals = 0
        self.runs = 0
        self.failures = 0
        self.unarmed = 0
        self._rate = RateTimer(window=20)
        self._latency_ms = RunningStats()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def _get_loop(self) -> Optional[TimerLoop]:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                return None
        return self._loop

    def signal(self) -> bool:
        """
        Request a run. Returns True if this signal armed a new timer.

        Without a loop (none injected, none running) nothing is armed and the
        owner is expected to evaluate synchronously.
        """
        if self._closed:
            return False
        self.signals += 1
        if self._handle is not None:
            return False
        loop = self._get_loop()
        if loop is None:
            self.unarmed += 1
            log.debug("No running event loop, update not scheduled")
            return False
        self._handle = loop.call_later(self.interval_s, self._fire)
        return True

    def flush(self) -> bool:
        """Run a pending update immediately. Returns False if nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        """Cancel any pending run and refuse further signals."""
        self.cancel()
        self._closed = True

    def _fire(self) -> None:
        self._handle = None
        if self._closed:
            return
        self.runs += 1
        self._rate.tick()
        t0 = time.perf_counter()
        try:
            self.callback()
        except Exception:
            self.failures += 1
            log.exception("Scheduled update failed")
        finally:
            self._latency_ms.add((time.perf_counter() - t0) * 1e3)

    def stats(self) -> Dict[str, Any]:
        return {
            "signals": self.signals,
            "runs": self.runs,
            "failures": self.failures,
            "unarmed": self.unarmed,
            "pending": self.pending,
            "rate_hz": self._rate.rate(),
            "latency_ms_mean": self._latency_ms.mean,
        }
