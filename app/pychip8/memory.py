from typing import Final, Iterable

import numpy as np
from numpy.typing import NDArray
from pychip8.exceptions import InvalidDigit, OutOfRangeAddress, ProgramTooLarge

MEMORY_SIZE: Final[int] = 0x1000
PROGRAM_START: Final[int] = 0x200
FONT_START: Final[int] = 0x000
GLYPH_SIZE: Final[int] = 5

# 4x5 hex digit glyphs, one row per byte, high nibble used
FONT_SPRITES: Final[tuple[int, ...]] = (
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
)  # fmt: skip


class Memory:
    """
    The 4 KB flat address space.

    Notes:
      - $000-$04F: hex font, glyph for digit d at d * 5
      - $200-$FFF: program image and working data (no write protection)
    """

    def __init__(self) -> None:
        self._cells: NDArray[np.uint8] = np.zeros(MEMORY_SIZE, dtype=np.uint8)
        self._seed_font()

    def __len__(self) -> int:
        return MEMORY_SIZE

    def __repr__(self) -> str:
        return f"<Memory size={MEMORY_SIZE} program_start=${PROGRAM_START:03X}>"

    def _seed_font(self) -> None:
        self._cells[FONT_START : FONT_START + len(FONT_SPRITES)] = FONT_SPRITES

    @staticmethod
    def _check(address: int) -> int:
        address = int(address)
        if not 0 <= address < MEMORY_SIZE:
            raise OutOfRangeAddress(address)
        return address

    def reset(self) -> None:
        """Zero every cell and re-seed the font."""
        self._cells.fill(0)
        self._seed_font()

    def read(self, address: int) -> int:
        return int(self._cells[self._check(address)])

    def write(self, address: int, value: int) -> None:
        self._cells[self._check(address)] = int(value) & 0xFF

    def read_block(self, address: int, length: int) -> bytes:
        """Read `length` consecutive bytes; the whole range must be addressable."""
        start = self._check(address)
        if length > 0:
            self._check(start + length - 1)
        return self._cells[start : start + length].tobytes()

    def load_program(self, data: Iterable[int]) -> None:
        """Copy a program image to $200. Nothing is written if it does not fit."""
        image = np.asarray(bytearray(data), dtype=np.uint8)
        limit = MEMORY_SIZE - PROGRAM_START
        if len(image) > limit:
            raise ProgramTooLarge(len(image), limit)
        self._cells[PROGRAM_START : PROGRAM_START + len(image)] = image

    @staticmethod
    def glyph_address(digit: int) -> int:
        if not 0 <= digit <= 0xF:
            raise InvalidDigit(digit)
        return FONT_START + digit * GLYPH_SIZE

    def snapshot(self) -> NDArray[np.uint8]:
        """Return a read-only copy of all 4096 cells."""
        view = self._cells.copy()
        view.flags.writeable = False
        return view
