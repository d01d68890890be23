"""
Refresh Layer - Keep per-file raw counts current off the render path.

Each tracked file owns one cache slot and one recurring idle timer. Timer
fires and explicit triggers (save, VCS state change, reload) re-fetch the
counts and swap a complete new snapshot into the slot; renders only ever
read the slot.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .core.log import get_logger
from .metrics import RawCounts

logger = get_logger("scheduler")

Fetch = Callable[[str], RawCounts]
TimerFactory = Callable[..., threading.Timer]


class TriggerEvent(Enum):
    SAVED = "saved"
    VCS_CHANGED = "vcs_changed"
    RELOADED = "reloaded"


class CountsCache:
    """Keyed store of immutable RawCounts snapshots.

    Every slot carries a generation number handed out by ``open``. A publish
    with a stale generation (the slot was discarded or reopened meanwhile) is
    dropped.
    """

    def __init__(self) -> None:
        self._slots: Dict[str, Tuple[int, Optional[RawCounts]]] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def open(self, key: str) -> int:
        with self._lock:
            self._generation += 1
            previous = self._slots.get(key)
            self._slots[key] = (self._generation, previous[1] if previous else None)
            return self._generation

    def generation(self, key: str) -> Optional[int]:
        with self._lock:
            slot = self._slots.get(key)
            return slot[0] if slot else None

    def publish(self, key: str, generation: int, counts: RawCounts) -> bool:
        with self._lock:
            slot = self._slots.get(key)
            if slot is None or slot[0] != generation:
                return False
            self._slots[key] = (generation, counts)
            return True

    def get(self, key: str) -> Optional[RawCounts]:
        with self._lock:
            slot = self._slots.get(key)
            return slot[1] if slot else None

    def discard(self, key: str) -> None:
        with self._lock:
            self._slots.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._slots)


class RefreshScheduler:
    """Refresh policy for tracked files.

    Args:
        fetch: Returns fresh counts for a key; called on timer threads and on
            whichever thread calls ``trigger_now``.
        interval: Seconds between idle refreshes.
        on_refresh: Repaint request, called with the key after a timer
            refresh published new counts.
        timer_factory: ``threading.Timer`` compatible factory.
    """

    def __init__(
        self,
        fetch: Fetch,
        interval: float = 5.0,
        on_refresh: Optional[Callable[[str], None]] = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fetch = fetch
        self.interval = interval
        self.on_refresh = on_refresh
        self.timer_factory = timer_factory
        self.cache = CountsCache()
        self._timers: Dict[str, threading.Timer] = {}
        self.lock = threading.Lock()

    def start(self, key: str) -> RawCounts:
        """Fetch once synchronously, publish, and arm the idle timer.

        Starting an already started key replaces its timer.
        """
        generation = self.cache.open(key)
        counts = self.fetch(key)
        self.cache.publish(key, generation, counts)
        self._arm(key, generation)
        return counts

    def trigger_now(self, key: str, event: TriggerEvent = TriggerEvent.SAVED) -> Optional[RawCounts]:
        """Refresh immediately; ``RELOADED`` also restarts the idle timer."""
        generation = self.cache.generation(key)
        if generation is None:
            return None
        logger.debug("Refreshing %s (%s)", key, event.value)
        counts = self.fetch(key)
        if not self.cache.publish(key, generation, counts):
            return None
        if event is TriggerEvent.RELOADED:
            self._arm(key, generation)
        return counts

    def stop(self, key: str) -> None:
        # _arm re-checks the slot under the same lock.
        with self.lock:
            self.cache.discard(key)
            timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def stop_all(self) -> None:
        for key in self.cache.keys():
            self.stop(key)

    def get(self, key: str) -> Optional[RawCounts]:
        return self.cache.get(key)

    def keys(self) -> List[str]:
        return self.cache.keys()

    def _arm(self, key: str, generation: int) -> None:
        with self.lock:
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()
            if self.cache.generation(key) != generation:
                return
            timer = self.timer_factory(self.interval, self._on_timer, args=(key, generation))
            timer.daemon = True
            self._timers[key] = timer
            timer.start()

    def _on_timer(self, key: str, generation: int) -> None:
        if self.cache.generation(key) != generation:
            return
        try:
            counts = self.fetch(key)
        except Exception:
            logger.exception("Refresh failed for %s", key)
        else:
            if self.cache.publish(key, generation, counts) and self.on_refresh is not None:
                self.on_refresh(key)
        self._arm(key, generation)
