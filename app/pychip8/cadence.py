import threading
from enum import Enum
from typing import Final, Optional

from util.timer import Clock, Timer

TIMER_FREQUENCY: Final[int] = 60


class CadenceState(Enum):
    Running = 0
    AwaitingKey = 1


class FixedRateCadence:
    """
    Turns wall-clock time into a count of whole periods at a fixed frequency.

    Each call to `due()` reports the periods that completed since the previous
    call, so a caller polling faster than the frequency sees mostly zeros and a
    caller polling slower sees the backlog.

    The host pauses and resumes from its UI thread while the run loop polls
    `due()`, so every access to the timer holds `_lock`.
    """

    def __init__(self, frequency: float, clock: Optional[Clock] = None) -> None:
        if frequency <= 0:
            raise ValueError(f"Cadence frequency must be positive, got {frequency}")
        self.frequency: Final[float] = frequency
        self._timer: Timer = Timer(clock) if clock is not None else Timer()
        self._consumed: int = 0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        with self._lock:
            return f"<FixedRateCadence {self.frequency:g}Hz consumed={self._consumed} {self._timer}>"

    def start(self) -> None:
        with self._lock:
            self._timer.restart()
            self._consumed = 0

    def pause(self) -> None:
        with self._lock:
            self._timer.pause()

    def resume(self) -> None:
        with self._lock:
            self._timer.resume()

    def due(self) -> int:
        with self._lock:
            elapsed_periods = int(self._timer.get_elapsed_time() * self.frequency)
            ticks = elapsed_periods - self._consumed
            self._consumed = elapsed_periods
        return max(ticks, 0)
