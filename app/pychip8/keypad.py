import threading
from typing import Final, Mapping, Optional, Sequence, Tuple, Union

from bitarray import bitarray  # type: ignore

KEY_COUNT: Final[int] = 16


class Keypad:
    """Pressed state of the 16 hex keys.

    Written by the host's input collaborator, read by the core through snapshots.
    """

    def __init__(self) -> None:
        self._keys = bitarray(KEY_COUNT)
        self._keys.setall(0)
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        pressed = [f"{k:X}" for k, down in enumerate(self.snapshot()) if down]
        return f"<Keypad pressed={','.join(pressed) or '-'}>"

    @staticmethod
    def _check(key: int) -> int:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Invalid key {key}, must be 0-{KEY_COUNT - 1}")
        return key

    def set(self, key: int, pressed: bool) -> None:
        key = self._check(key)
        with self._lock:
            self._keys[key] = bool(pressed)

    def press(self, key: int) -> None:
        self.set(key, True)

    def release(self, key: int) -> None:
        self.set(key, False)

    def update(self, states: Union[Mapping[int, bool], Sequence[bool]]) -> None:
        """Apply several key states in one step so readers never see half of them."""
        items = states.items() if isinstance(states, Mapping) else enumerate(states)
        changes = [(self._check(k), bool(v)) for k, v in items]
        with self._lock:
            for key, pressed in changes:
                self._keys[key] = pressed

    def reset(self) -> None:
        with self._lock:
            self._keys.setall(0)

    def snapshot(self) -> Tuple[bool, ...]:
        with self._lock:
            return tuple(bool(b) for b in self._keys)

    def is_pressed(self, key: int) -> bool:
        key = self._check(key)
        with self._lock:
            return bool(self._keys[key])

    def first_pressed(self) -> Optional[int]:
        with self._lock:
            if not self._keys.any():
                return None
            return self._keys.index(1)
