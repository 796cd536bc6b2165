"""Countdown that triggers silent refreshes while the live view is open."""
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from .config import REFRESH_INTERVAL_SECONDS, REFRESH_TICK_SECONDS

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    COUNTING = "counting"
    FIRING = "firing"


class RefreshCountdown:
    """
    Cancellable periodic trigger with reset-on-success.

    ``tick()`` advances the countdown by one step; ``start()`` calls it from a
    background thread every ``tick_interval`` seconds.
    """

    def __init__(
        self,
        on_fire: Callable[[], None],
        duration: int = REFRESH_INTERVAL_SECONDS,
        tick_interval: float = REFRESH_TICK_SECONDS
    ):
        self.on_fire = on_fire
        self.duration = duration
        self.tick_interval = tick_interval
        self._state = TimerState.IDLE
        self._remaining = duration
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def remaining(self) -> int:
        return self._remaining

    def update(self, active: bool) -> None:
        """Arm the countdown when active, cancel it otherwise."""
        with self._lock:
            if active and self._state is TimerState.IDLE:
                self._remaining = self.duration
                self._state = TimerState.COUNTING
                logger.debug(f"Refresh countdown armed ({self.duration}s)")
            elif not active and self._state is not TimerState.IDLE:
                self._state = TimerState.IDLE
                logger.debug("Refresh countdown cancelled")

    def reset(self) -> None:
        """Restore the full duration without waiting for the next tick."""
        with self._lock:
            self._remaining = self.duration

    def tick(self) -> bool:
        """Advance one step. Returns True if a refresh fired."""
        with self._lock:
            if self._state is not TimerState.COUNTING:
                return False
            self._remaining -= 1
            if self._remaining > 0:
                return False
            self._state = TimerState.FIRING

        try:
            self.on_fire()
        finally:
            with self._lock:
                # on_fire may have cancelled the countdown
                if self._state is TimerState.FIRING:
                    self._remaining = self.duration
                    self._state = TimerState.COUNTING
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.tick_interval):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Silent refresh failed: {e}")

    def start(self) -> None:
        self._stop.clear()
        if self._thread is not None and self._thread.is_alive():
            # A thread left running by stop() picks up ticking again
            return
        self._thread = threading.Thread(target=self._run, name="kickoff-refresh", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.tick_interval * 2)
        if thread is not None and not thread.is_alive():
            self._thread = None
        self.update(False)
