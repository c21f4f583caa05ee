"""Throttled scan-progress events."""

from __future__ import annotations

import time
from typing import Callable

from PySide6.QtCore import QObject, Signal

from savescan.models.scan import ScanProgressEvent


class ScanEventBus(QObject):
    """Qt event channel carrying :class:`ScanProgressEvent` payloads."""

    scan_progress = Signal(object)


class ProgressReporter:
    """Forward progress events to *publish*, dropping noisy repeats.

    A change of step always goes through and restarts the window.  Within
    the same step an exact repeat of the last event is dropped, and so is
    anything arriving less than *min_interval* seconds after the last
    emitted event.
    """

    def __init__(
        self,
        publish: Callable[[ScanProgressEvent], None] | None = None,
        min_interval: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.bus: ScanEventBus | None = None
        if publish is None:
            self.bus = ScanEventBus()
            publish = self.bus.scan_progress.emit
        self._publish = publish
        self._min_interval = min_interval
        self._clock = clock
        self._last: ScanProgressEvent | None = None
        self._last_time = 0.0

    def emit(self, event: ScanProgressEvent) -> bool:
        """Publish *event* unless throttled.  Returns whether it was sent."""
        now = self._clock()
        last = self._last
        if last is not None and last.step == event.step:
            if event == last:
                return False
            if now - self._last_time < self._min_interval:
                return False
        self._last = event
        self._last_time = now
        self._publish(event)
        return True

    def report(self, step: str, current: int, total: int, message: str | None = None) -> bool:
        return self.emit(ScanProgressEvent(step=step, current=current, total=total, message=message))

    def reset(self) -> None:
        self._last = None
        self._last_time = 0.0
