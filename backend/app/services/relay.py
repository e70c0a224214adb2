"""In-memory relay of prediction status events awaiting delivery to clients."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_SECONDS = 5 * 60


@dataclass(frozen=True, slots=True)
class RelayEvent:
    """One status update, addressed by its position in the prediction's stream."""

    prediction_id: str
    index: int
    timestamp: float
    payload: dict[str, Any]


@dataclass(slots=True)
class _EventBuffer:
    events: list[RelayEvent] = field(default_factory=list)
    # Count of events already purged from the front of ``events``.
    offset: int = 0

    @property
    def next_index(self) -> int:
        return self.offset + len(self.events)


class UpdateRelay:
    """Process-local, best-effort store of status events keyed by prediction id.

    An append schedules a sweep ``retention_seconds`` later that drops that
    prediction's expired events. Each prediction has at most one pending sweep,
    rescheduled after it runs while events remain. Indices handed out by ``append`` stay stable
    across sweeps, so ``drain(since_index)`` never replays or skips events that
    are still retained. Call ``shutdown`` to cancel pending sweeps.
    """

    def __init__(
        self,
        *,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], float] = time.time,
        schedule_sweeps: bool = True,
    ) -> None:
        self._retention_seconds = retention_seconds
        self._clock = clock
        self._schedule_sweeps = schedule_sweeps
        self._buffers: dict[str, _EventBuffer] = {}
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._closed = False

    def append(self, prediction_id: str, payload: dict[str, Any]) -> RelayEvent:
        with self._lock:
            buffer = self._buffers.setdefault(prediction_id, _EventBuffer())
            event = RelayEvent(
                prediction_id=prediction_id,
                index=buffer.next_index,
                timestamp=self._clock(),
                payload=payload,
            )
            buffer.events.append(event)
            if self._schedule_sweeps and not self._closed:
                self._schedule_sweep(prediction_id)
        logger.debug("relay.appended prediction_id=%s index=%d", prediction_id, event.index)
        return event

    def drain(self, prediction_id: str, since_index: int = 0) -> list[RelayEvent]:
        """Return retained events with ``index >= since_index``."""

        with self._lock:
            buffer = self._buffers.get(prediction_id)
            if buffer is None:
                return []
            start = max(since_index - buffer.offset, 0)
            return list(buffer.events[start:])

    def sweep(self, prediction_id: str) -> int:
        """Drop expired events for ``prediction_id``; return how many remain."""

        cutoff = self._clock() - self._retention_seconds
        with self._lock:
            buffer = self._buffers.get(prediction_id)
            if buffer is None:
                return 0
            recent = [event for event in buffer.events if event.timestamp > cutoff]
            buffer.offset += len(buffer.events) - len(recent)
            buffer.events = recent
            if not recent:
                del self._buffers[prediction_id]
            return len(recent)

    def discard(self, prediction_id: str) -> None:
        """Forget a prediction once its terminal event has been delivered."""

        with self._lock:
            self._buffers.pop(prediction_id, None)

    def prediction_ids(self) -> list[str]:
        with self._lock:
            return list(self._buffers)

    def shutdown(self) -> None:
        """Cancel every pending sweep and clear buffered events."""

        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
            self._buffers.clear()
        for timer in timers:
            timer.cancel()
        logger.info("relay.shutdown cancelled_timers=%d", len(timers))

    def _schedule_sweep(self, prediction_id: str) -> None:
        # Caller holds the lock.
        if prediction_id in self._timers:
            return

        def _run() -> None:
            with self._lock:
                self._timers.pop(prediction_id, None)
            remaining = self.sweep(prediction_id)
            logger.debug("relay.swept prediction_id=%s remaining=%d", prediction_id, remaining)
            if remaining:
                with self._lock:
                    if not self._closed:
                        self._schedule_sweep(prediction_id)

        timer = threading.Timer(self._retention_seconds, _run)
        timer.daemon = True
        self._timers[prediction_id] = timer
        timer.start()

    def pending_sweeps(self) -> int:
        with self._lock:
            return len(self._timers)
