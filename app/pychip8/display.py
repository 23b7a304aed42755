import threading
from typing import Final, Sequence

import numpy as np
from numpy.typing import NDArray

DEFAULT_WIDTH: Final[int] = 64
DEFAULT_HEIGHT: Final[int] = 32
SPRITE_WIDTH: Final[int] = 8


class Display:
    """Monochrome framebuffer. The CPU is the only writer; readers get snapshots."""

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Display size must be positive, got {width}x{height}")
        self.width: Final[int] = width
        self.height: Final[int] = height
        self._pixels: NDArray[np.bool_] = np.zeros((height, width), dtype=np.bool_)
        self._lock = threading.Lock()
        self._frame_ready: bool = False

    def __repr__(self) -> str:
        return f"<Display {self.width}x{self.height} lit={int(self._pixels.sum())}>"

    def clear(self) -> None:
        with self._lock:
            self._pixels.fill(False)
            self._frame_ready = True

    def draw_sprite(self, x: int, y: int, rows: Sequence[int]) -> bool:
        """
        XOR an 8-pixel-wide sprite onto the grid with its top-left corner at (x, y).

        A row or column that reaches the edge of the grid restarts at 0.
        Returns True if any lit pixel was switched off.
        """
        collision = False
        row = y
        with self._lock:
            for bits in rows:
                if row >= self.height:
                    row = 0
                col = x
                for shift in range(SPRITE_WIDTH - 1, -1, -1):
                    if col >= self.width:
                        col = 0
                    if (bits >> shift) & 1:
                        if self._pixels[row, col]:
                            collision = True
                        self._pixels[row, col] = not self._pixels[row, col]
                    col += 1
                row += 1
            self._frame_ready = True
        return collision

    def pixel(self, row: int, col: int) -> bool:
        with self._lock:
            return bool(self._pixels[row, col])

    def snapshot(self) -> NDArray[np.bool_]:
        """Return a read-only copy of the grid, indexed [row, col]."""
        with self._lock:
            frame = self._pixels.copy()
        frame.flags.writeable = False
        return frame

    def consume_frame_ready(self) -> bool:
        """True once after each completed clear or draw."""
        with self._lock:
            ready, self._frame_ready = self._frame_ready, False
        return ready

    def reset(self) -> None:
        with self._lock:
            self._pixels.fill(False)
            self._frame_ready = False

    def render_text(self, lit: str = "#", unlit: str = ".") -> str:
        frame = self.snapshot()
        return "\n".join("".join(lit if p else unlit for p in row) for row in frame)
