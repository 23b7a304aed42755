from dataclasses import dataclass, field
from typing import Callable, Dict, Final, Optional, Union

import numpy as np
from logger import log as _logger
from numpy.typing import NDArray
from pychip8.audio import AudioTrigger
from pychip8.decoder import Instruction, decode
from pychip8.display import Display
from pychip8.exceptions import InvalidKey, StackOverflow, StackUnderflow, UnrecognizedOpcode
from pychip8.keypad import KEY_COUNT, Keypad
from pychip8.memory import PROGRAM_START, Memory

REGISTER_COUNT: Final[int] = 16
STACK_DEPTH: Final[int] = 16
FLAG: Final[int] = 0xF


@dataclass
class HaltOn:
    UnknownOpcode: bool = False


@dataclass
class Architecture:
    V: NDArray[np.uint8] = field(default_factory=lambda: np.zeros(REGISTER_COUNT, dtype=np.uint8))
    I: int = 0
    ProgramCounter: int = PROGRAM_START
    StackPointer: int = 0
    Stack: NDArray[np.uint16] = field(default_factory=lambda: np.zeros(STACK_DEPTH, dtype=np.uint16))
    DelayTimer: int = 0
    SoundTimer: int = 0
    OpCode: int = 0


class CPU:
    """
    Fetch and execute for the CHIP-8 instruction set.

    `fetch()` advances PC past the word it returns, so every handler sees PC
    pointing at the following instruction: jumps assign it, skips add 2 and
    calls push it unchanged.
    """

    def __init__(
        self,
        memory: Memory,
        display: Display,
        keypad: Keypad,
        audio: AudioTrigger,
        on_key_wait: Callable[[int], None],
        halt_on: Optional[HaltOn] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.memory = memory
        self.display = display
        self.keypad = keypad
        self.audio = audio
        self.halt_on: HaltOn = halt_on if halt_on is not None else HaltOn()
        self.Architecture: Architecture = Architecture()
        self._on_key_wait = on_key_wait
        self._rng: np.random.Generator = rng if rng is not None else np.random.default_rng()
        self._families: Final[Dict[int, Callable[[Instruction], None]]] = {
            0x0: self._op_system,
            0x1: self._op_JP,
            0x2: self._op_CALL,
            0x3: self._op_SE_byte,
            0x4: self._op_SNE_byte,
            0x5: self._op_SE_reg,
            0x6: self._op_LD_byte,
            0x7: self._op_ADD_byte,
            0x8: self._op_alu,
            0x9: self._op_SNE_reg,
            0xA: self._op_LD_I,
            0xB: self._op_JP_V0,
            0xC: self._op_RND,
            0xD: self._op_DRW,
            0xE: self._op_keys,
            0xF: self._op_misc,
        }

    def reset(self) -> None:
        self.Architecture = Architecture()

    def fetch(self) -> int:
        """Read the big-endian word at PC and move PC past it."""
        pc = self.Architecture.ProgramCounter
        word = (self.memory.read(pc) << 8) | self.memory.read(pc + 1)
        self.Architecture.ProgramCounter = (pc + 2) & 0xFFFF
        return word

    def execute(self, instruction: Union[int, Instruction]) -> None:
        if not isinstance(instruction, Instruction):
            instruction = decode(instruction)
        self.Architecture.OpCode = instruction.word
        self._families[instruction.family](instruction)

    # register helpers; V is uint8 so all arithmetic happens on Python ints
    def _get(self, index: int) -> int:
        return int(self.Architecture.V[index])

    def _set(self, index: int, value: int) -> None:
        self.Architecture.V[index] = value & 0xFF

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.Architecture.ProgramCounter = (self.Architecture.ProgramCounter + 2) & 0xFFFF

    def _do_push(self, address: int) -> None:
        arch = self.Architecture
        if arch.StackPointer >= STACK_DEPTH:
            raise StackOverflow(f"Call stack full ({STACK_DEPTH} frames) calling from ${address - 2:04X}")
        arch.Stack[arch.StackPointer] = address
        arch.StackPointer += 1

    def _do_pop(self) -> int:
        arch = self.Architecture
        if arch.StackPointer == 0:
            raise StackUnderflow("Return with an empty call stack")
        arch.StackPointer -= 1
        return int(arch.Stack[arch.StackPointer])

    def _unrecognized(self, instruction: Instruction) -> None:
        if self.halt_on.UnknownOpcode:
            raise UnrecognizedOpcode(instruction.word)
        _logger.debug(f"Ignoring unrecognized instruction ${instruction.word:04X}")

    def _op_system(self, ins: Instruction) -> None:
        match ins.word:
            case 0x00E0:  # CLS
                self.display.clear()
            case 0x00EE:  # RET
                self.Architecture.ProgramCounter = self._do_pop()
            case _:  # SYS addr, taken as a jump
                self.Architecture.ProgramCounter = ins.address

    def _op_JP(self, ins: Instruction) -> None:
        self.Architecture.ProgramCounter = ins.address

    def _op_CALL(self, ins: Instruction) -> None:
        self._do_push(self.Architecture.ProgramCounter)
        self.Architecture.ProgramCounter = ins.address

    def _op_SE_byte(self, ins: Instruction) -> None:
        self._skip_if(self._get(ins.x) == ins.kk)

    def _op_SNE_byte(self, ins: Instruction) -> None:
        self._skip_if(self._get(ins.x) != ins.kk)

    def _op_SE_reg(self, ins: Instruction) -> None:
        if ins.n != 0:
            return self._unrecognized(ins)
        self._skip_if(self._get(ins.x) == self._get(ins.y))

    def _op_LD_byte(self, ins: Instruction) -> None:
        self._set(ins.x, ins.kk)

    def _op_ADD_byte(self, ins: Instruction) -> None:
        self._set(ins.x, self._get(ins.x) + ins.kk)

    def _op_alu(self, ins: Instruction) -> None:
        x, y = ins.x, ins.y
        match ins.n:
            case 0x0:  # LD Vx, Vy
                self._set(x, self._get(y))
            case 0x1:  # OR
                self._set(x, self._get(x) | self._get(y))
            case 0x2:  # AND
                self._set(x, self._get(x) & self._get(y))
            case 0x3:  # XOR
                self._set(x, self._get(x) ^ self._get(y))
            case 0x4:  # ADD, VF = carry
                result = self._get(x) + self._get(y)
                self._set(x, result)
                self._set(FLAG, 1 if result > 0xFF else 0)
            # the remaining flag opcodes write VF before the result, so VF as
            # an operand sees the new flag
            case 0x5:  # SUB, VF = not borrow
                self._set(FLAG, 1 if self._get(x) > self._get(y) else 0)
                self._set(x, self._get(x) - self._get(y))
            case 0x6:  # SHR
                self._set(FLAG, self._get(x) & 0x01)
                self._set(x, self._get(x) >> 1)
            case 0x7:  # SUBN, VF = not borrow
                self._set(FLAG, 1 if self._get(y) > self._get(x) else 0)
                self._set(x, self._get(y) - self._get(x))
            case 0xE:  # SHL
                self._set(FLAG, (self._get(x) >> 7) & 0x01)
                self._set(x, self._get(x) << 1)
            case _:
                self._unrecognized(ins)

    def _op_SNE_reg(self, ins: Instruction) -> None:
        if ins.n != 0:
            return self._unrecognized(ins)
        self._skip_if(self._get(ins.x) != self._get(ins.y))

    def _op_LD_I(self, ins: Instruction) -> None:
        self.Architecture.I = ins.address

    def _op_JP_V0(self, ins: Instruction) -> None:
        self.Architecture.ProgramCounter = ins.address + self._get(0)

    def _op_RND(self, ins: Instruction) -> None:
        self._set(ins.x, int(self._rng.integers(0, 0x100)) & ins.kk)

    def _op_DRW(self, ins: Instruction) -> None:
        rows = self.memory.read_block(self.Architecture.I, ins.n)
        collision = self.display.draw_sprite(self._get(ins.x), self._get(ins.y), rows)
        self._set(FLAG, 1 if collision else 0)

    def _key_in(self, ins: Instruction) -> int:
        key = self._get(ins.x)
        if key >= KEY_COUNT:
            raise InvalidKey(key)
        return key

    def _op_keys(self, ins: Instruction) -> None:
        match ins.kk:
            case 0x9E:  # SKP Vx
                self._skip_if(self.keypad.is_pressed(self._key_in(ins)))
            case 0xA1:  # SKNP Vx
                self._skip_if(not self.keypad.is_pressed(self._key_in(ins)))
            case _:
                self._unrecognized(ins)

    def _op_misc(self, ins: Instruction) -> None:
        arch = self.Architecture
        x = ins.x
        match ins.kk:
            case 0x07:  # LD Vx, DT
                self._set(x, arch.DelayTimer)
            case 0x0A:  # LD Vx, K
                self._on_key_wait(x)
            case 0x15:  # LD DT, Vx
                arch.DelayTimer = self._get(x)
            case 0x18:  # LD ST, Vx
                arch.SoundTimer = self._get(x)
                self.audio.set(arch.SoundTimer > 0)
            case 0x1E:  # ADD I, Vx
                arch.I = (arch.I + self._get(x)) & 0xFFFF
            case 0x29:  # LD F, Vx
                arch.I = self.memory.glyph_address(self._get(x))
            case 0x33:  # LD B, Vx
                value = self._get(x)
                self.memory.write(arch.I, value // 100)
                self.memory.write(arch.I + 1, (value // 10) % 10)
                self.memory.write(arch.I + 2, value % 10)
            case 0x55:  # LD [I], Vx
                for i in range(x + 1):
                    self.memory.write(arch.I, self._get(i))
                    arch.I = (arch.I + 1) & 0xFFFF
            case 0x65:  # LD Vx, [I]
                for i in range(x + 1):
                    self._set(i, self.memory.read(arch.I))
                    arch.I = (arch.I + 1) & 0xFFFF
            case _:
                self._unrecognized(ins)
