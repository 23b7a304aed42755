from pathlib import Path
from typing import Final, Iterator, Tuple, Union

import numpy as np
from logger import log
from numpy.typing import NDArray
from pychip8.memory import MEMORY_SIZE, PROGRAM_START
from returns.result import Failure, Result, Success


class Program:
    """
    A CHIP-8 program image: raw big-endian instruction words, no header.

    The image is copied verbatim to $200, so it can be at most 3584 bytes.
    """

    MAX_SIZE: Final[int] = MEMORY_SIZE - PROGRAM_START

    def __init__(self) -> None:
        self.file: str = ""
        self.data: NDArray[np.uint8] = np.zeros(0, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"<Program file={self.file!r} size={len(self.data)} bytes>"

    def __len__(self) -> int:
        return len(self.data)

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def words(self) -> Iterator[Tuple[int, int]]:
        """Yield (address, word) for every complete instruction word."""
        for offset in range(0, len(self.data) - 1, 2):
            yield PROGRAM_START + offset, (int(self.data[offset]) << 8) | int(self.data[offset + 1])

    @classmethod
    def from_bytes(cls, data: bytes) -> Result["Program", str]:
        """
        Validate and wrap a program image.

        Returns:
            Result containing either a Program instance or an error string.
        """
        if not isinstance(data, (bytes, bytearray)):
            return Failure(f"Expected bytes or bytearray, got {type(data).__name__}")

        if len(data) == 0:
            return Failure("Program image is empty")

        if len(data) > cls.MAX_SIZE:
            return Failure(f"Program too large: {len(data)} bytes, maximum {cls.MAX_SIZE}")

        if len(data) % 2:
            log.warning(f"Program image has odd length ({len(data)} bytes), last byte is data only")

        obj = cls()
        obj.data = np.frombuffer(bytes(data), dtype=np.uint8).copy()
        return Success(obj)

    @classmethod
    def from_file(cls, filepath: Union[Path, str]) -> Result["Program", str]:
        try:
            with open(filepath, "rb") as f:
                data = f.read()
        except OSError as e:
            return Failure(f"Failed to read file {filepath}: {e}")

        def attach_file(program: "Program") -> "Program":
            program.file = str(filepath)
            return program

        return cls.from_bytes(data).map(attach_file)

    @classmethod
    def EmptyProgram(cls) -> "Program":
        return cls()
