from dataclasses import dataclass
from typing import Tuple

from util.memoize import memoize


@dataclass(frozen=True)
class Instruction:
    """A 16-bit instruction word split into the fields every opcode family uses.

    Example: 0xD12A -> nibbles (0xD, 0x1, 0x2, 0xA), address 0x12A, x 1, y 2, kk 0x2A, n 0xA
    """

    word: int
    nibbles: Tuple[int, int, int, int]
    address: int
    x: int
    y: int
    kk: int
    n: int

    @property
    def family(self) -> int:
        return self.nibbles[0]

    def __str__(self) -> str:
        return f"{self.word:04X}"


@memoize(maxsize=0x10000)
def decode(word: int) -> Instruction:
    if not 0 <= word <= 0xFFFF:
        raise ValueError(f"Instruction word out of range: {word:#x}")

    nibbles = ((word >> 12) & 0xF, (word >> 8) & 0xF, (word >> 4) & 0xF, word & 0xF)
    return Instruction(
        word=word,
        nibbles=nibbles,
        address=word & 0x0FFF,
        x=nibbles[1],
        y=nibbles[2],
        kk=word & 0x00FF,
        n=nibbles[3],
    )
