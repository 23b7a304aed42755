from dataclasses import dataclass
from typing import List, Sequence, Tuple

from pychip8.memory import MEMORY_SIZE


@dataclass(frozen=True)
class MachineSnapshot:
    V: Tuple[int, ...]
    I: int
    ProgramCounter: int
    StackPointer: int
    Stack: Tuple[int, ...]
    DelayTimer: int
    SoundTimer: int
    State: str
    Halted: bool


def format_registers(snap: MachineSnapshot) -> str:
    lines: List[str] = []
    for row in range(0, len(snap.V), 4):
        lines.append("  ".join(f"V{i:X}: {snap.V[i]:02X}" for i in range(row, row + 4)))
    lines.append("")
    lines.append(f"I: {snap.I:04X}  PC: {snap.ProgramCounter:04X}  SP: {snap.StackPointer:02X}")
    lines.append(f"DT: {snap.DelayTimer:02X}  ST: {snap.SoundTimer:02X}  State: {snap.State}")
    return "\n".join(lines)


def format_stack(snap: MachineSnapshot) -> List[str]:
    """Occupied frames, innermost call first."""
    return [f"{depth:2d}: {snap.Stack[depth]:04X}" for depth in reversed(range(snap.StackPointer))]


def memory_dump(memory: Sequence[int], start: int = 0x0000, size: int = 256) -> List[str]:
    lines = []
    start = max(0, min(start, MEMORY_SIZE - 1))
    end = min(start + size, len(memory))
    for addr in range(start, end, 16):
        chunk = [int(b) for b in memory[addr : min(addr + 16, end)]]
        hex_vals = [f"{b:02X}" for b in chunk] + ["  "] * (16 - len(chunk))
        ascii_vals = "".join(chr(b) if 32 <= b <= 126 else "." for b in chunk)
        lines.append(f"${addr:04X} | " + " ".join(hex_vals[:8]) + "  " + " ".join(hex_vals[8:]) + " | " + ascii_vals)
    return lines
