import sys
from pathlib import Path

APP_ROOT = Path(__file__).resolve().parent.parent
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

import numpy as np  # noqa: E402
import pytest  # noqa: E402


class FakeClock:
    """Manually advanced stand-in for time.perf_counter."""

    def __init__(self, start: float = 0.0, auto_step: float = 0.0) -> None:
        self.now = start
        self.auto_step = auto_step

    def __call__(self) -> float:
        now = self.now
        self.now += self.auto_step
        return now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def emu(clock):
    from pychip8.emulator import Emulator

    return Emulator(clock=clock, rng=np.random.default_rng(1234))


def program_from_words(*words: int):
    from pychip8.program import Program

    data = b"".join(w.to_bytes(2, "big") for w in words)
    return Program.from_bytes(data).unwrap()


@pytest.fixture
def load():
    def _load(emulator, *words: int):
        emulator.Load(program_from_words(*words))
        return emulator

    return _load
