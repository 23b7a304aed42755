from collections import deque
from typing import Callable

AudioListener = Callable[[bool], None]


class AudioTrigger:
    """Two-state tone signal. Listeners hear about transitions only."""

    def __init__(self) -> None:
        self._active: bool = False
        self._listeners: deque[AudioListener] = deque()

    @property
    def active(self) -> bool:
        return self._active

    def subscribe(self, listener: AudioListener) -> AudioListener:
        self._listeners.append(listener)
        return listener

    def set(self, active: bool) -> None:
        active = bool(active)
        if active == self._active:
            return
        self._active = active
        for listener in self._listeners:
            listener(active)

    def on(self) -> None:
        self.set(True)

    def off(self) -> None:
        self.set(False)
