from dataclasses import dataclass
from typing import Final, List

from pychip8.decoder import decode
from pychip8.memory import PROGRAM_START

INVALID_INSTRUCTION: Final[str] = "??"


@dataclass(frozen=True)
class DisassembledInstruction:
    address: int
    bytes: int
    opcode: str

    def __str__(self) -> str:
        return f"${self.address:04X}  {self.bytes:04X}  {self.opcode}"


def mnemonic(word: int) -> str:
    """Render one instruction word in the conventional CHIP-8 assembly syntax."""
    ins = decode(word)
    x, y, kk, addr = ins.x, ins.y, ins.kk, ins.address

    match ins.family:
        case 0x0:
            if word == 0x00E0:
                return "CLS"
            if word == 0x00EE:
                return "RET"
            return f"SYS 0x{addr:03X}"
        case 0x1:
            return f"JMP 0x{addr:03X}"
        case 0x2:
            return f"CALL 0x{addr:03X}"
        case 0x3:
            return f"SE V{x:X}, 0x{kk:02X}"
        case 0x4:
            return f"SNE V{x:X}, 0x{kk:02X}"
        case 0x5:
            return f"SE V{x:X}, V{y:X}" if ins.n == 0 else INVALID_INSTRUCTION
        case 0x6:
            return f"LD V{x:X}, 0x{kk:02X}"
        case 0x7:
            return f"ADD V{x:X}, 0x{kk:02X}"
        case 0x8:
            return {
                0x0: f"LD V{x:X}, V{y:X}",
                0x1: f"OR V{x:X}, V{y:X}",
                0x2: f"AND V{x:X}, V{y:X}",
                0x3: f"XOR V{x:X}, V{y:X}",
                0x4: f"ADD V{x:X}, V{y:X}",
                0x5: f"SUB V{x:X}, V{y:X}",
                0x6: f"SHR V{x:X}",
                0x7: f"SUBN V{x:X}, V{y:X}",
                0xE: f"SHL V{x:X}",
            }.get(ins.n, INVALID_INSTRUCTION)
        case 0x9:
            return f"SNE V{x:X}, V{y:X}" if ins.n == 0 else INVALID_INSTRUCTION
        case 0xA:
            return f"LD I, 0x{addr:03X}"
        case 0xB:
            return f"JP V0, 0x{addr:03X}"
        case 0xC:
            return f"RND V{x:X}, 0x{kk:02X}"
        case 0xD:
            return f"DRW V{x:X}, V{y:X}, 0x{ins.n:x}"
        case 0xE:
            return {0x9E: f"SKP V{x:X}", 0xA1: f"SKNP V{x:X}"}.get(kk, INVALID_INSTRUCTION)
        case _:
            return {
                0x07: f"LD V{x:X}, DT",
                0x0A: f"LD V{x:X}, K",
                0x15: f"LD DT, V{x:X}",
                0x18: f"LD ST, V{x:X}",
                0x1E: f"ADD I, V{x:X}",
                0x29: f"LD F, V{x:X}",
                0x33: f"LD B, V{x:X}",
                0x55: f"LD [I], V{x:X}",
                0x65: f"LD V{x:X}, [I]",
            }.get(kk, INVALID_INSTRUCTION)


def disassemble(data: bytes, offset: int = PROGRAM_START) -> List[DisassembledInstruction]:
    data = bytes(data)
    result: List[DisassembledInstruction] = []

    for i in range(0, len(data) - 1, 2):
        word = (data[i] << 8) | data[i + 1]
        result.append(DisassembledInstruction(address=offset + i, bytes=word, opcode=mnemonic(word)))

    if len(data) % 2:
        last = data[-1]
        result.append(DisassembledInstruction(address=offset + len(data) - 1, bytes=last, opcode=f"DB 0x{last:02X}"))

    return result
