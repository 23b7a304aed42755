from typing import Final, Optional, Type


class Chip8Error(Exception):
    """Base exception for all PyCHIP8 machine faults."""


class OutOfRangeAddress(Chip8Error):
    def __init__(self, address: int, message: Optional[str] = None):
        self.address: Final[int] = address
        super().__init__(message or f"Address ${address:04X} is outside $0000-$0FFF")


class ProgramTooLarge(OutOfRangeAddress):
    def __init__(self, size: int, limit: int):
        self.size: Final[int] = size
        self.limit: Final[int] = limit
        super().__init__(0x200 + size - 1, f"Program image of {size} bytes exceeds the {limit} bytes available")


class StackOverflow(Chip8Error):
    pass


class StackUnderflow(Chip8Error):
    pass


class InvalidDigit(Chip8Error):
    def __init__(self, digit: int):
        self.digit: Final[int] = digit
        super().__init__(f"No font glyph for value ${digit:02X} (expected $00-$0F)")


class InvalidKey(Chip8Error):
    def __init__(self, key: int):
        self.key: Final[int] = key
        super().__init__(f"Key index ${key:02X} is outside the 16-key keypad")


class UnrecognizedOpcode(Chip8Error):
    def __init__(self, instruction: int):
        self.instruction: Final[int] = instruction
        super().__init__(f"Unrecognized instruction ${instruction:04X}")


class EmulatorError(Chip8Error):
    """A fatal fault, annotated with where it happened."""

    def __init__(self, exception: BaseException, pc: int, instruction: Optional[int]):
        self.original: Final[BaseException] = exception
        self.exception: Final[Type[BaseException]] = type(exception)
        self.pc: Final[int] = pc
        self.instruction: Final[Optional[int]] = instruction
        word = f"${instruction:04X}" if instruction is not None else "<fetch failed>"
        self.message: Final[str] = f"{self.exception.__name__} at PC=${pc:04X} ({word}): {exception}"
        super().__init__(self.message)
