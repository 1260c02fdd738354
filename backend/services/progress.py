import random
import threading
from typing import Callable, Optional


class ProgressTicker:
    """Cosmetic progress counter advanced on a fixed interval.

    The value says nothing about real upstream progress. It stops at
    ``ceiling`` and only reaches 100 through ``complete()``.
    """

    def __init__(
        self,
        on_update: Optional[Callable[[float], None]] = None,
        interval: float = 2.0,
        max_step: float = 10.0,
        ceiling: float = 95.0,
        rng: Optional[random.Random] = None,
    ):
        self.on_update = on_update
        self.interval = interval
        self.max_step = max_step
        self.ceiling = ceiling
        self.value = 0.0
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._cancelled

    def start(self) -> "ProgressTicker":
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._cancelled = False
            self.value = 0.0
            self._schedule()
        return self

    def advance(self) -> float:
        with self._lock:
            value = self._step()
        if self.on_update:
            self.on_update(value)
        return value

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def complete(self) -> None:
        self.cancel()
        self.value = 100.0
        if self.on_update:
            self.on_update(self.value)

    def _step(self) -> float:
        if self.value < self.ceiling:
            self.value = min(self.ceiling, self.value + self._rng.random() * self.max_step)
        return self.value

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._tick)
        self._timer.daemon = True
        self._timer.start()

    def _tick(self) -> None:
        with self._lock:
            # A timer replaced by a restart must not re-arm itself.
            if self._cancelled or threading.current_thread() is not self._timer:
                return
            value = self._step()
            self._schedule()
        if self.on_update:
            self.on_update(value)

    def __enter__(self) -> "ProgressTicker":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()
