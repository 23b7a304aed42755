import time
from typing import Any, Callable, Optional

Clock = Callable[[], float]


class Timer:
    """Pausable stopwatch over a monotonic clock.

    The clock is injectable so callers (and tests) can drive time by hand.
    """

    def __init__(self, clock: Clock = time.perf_counter) -> None:
        self.start_time: Optional[float] = None
        self.elapsed_time: float = 0.0
        self.running: bool = False
        self._clock = clock

    def start(self) -> None:
        if not self.running:
            self.start_time = self._clock()
            self.running = True

    def stop(self) -> None:
        if self.running:
            assert self.start_time is not None
            self.elapsed_time += self._clock() - self.start_time
            self.start_time = None
            self.running = False

    def pause(self) -> None:
        self.stop()

    def resume(self) -> None:
        self.start()

    def get_elapsed_time(self) -> float:
        if self.running:
            assert self.start_time is not None
            return self.elapsed_time + (self._clock() - self.start_time)
        return self.elapsed_time

    def reset(self) -> None:
        self.start_time = None
        self.elapsed_time = 0.0
        self.running = False

    def restart(self) -> None:
        self.reset()
        self.start()

    def is_running(self) -> bool:
        return self.running

    def __str__(self) -> str:
        state = "running" if self.running else "stopped"
        return f"Timer({state}, {self.get_elapsed_time():.4f}s)"

    def __repr__(self) -> str:
        return f"Timer(running={self.running}, elapsed_time={self.elapsed_time:.6f}, start_time={self.start_time})"

    def __format__(self, format_spec: str) -> str:
        return format(self.get_elapsed_time(), format_spec)

    def __call__(self) -> float:
        return self.get_elapsed_time()

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
