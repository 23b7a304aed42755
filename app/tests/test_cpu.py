import numpy as np
import pytest
from pychip8.cpu import FLAG, STACK_DEPTH, CPU, HaltOn
from pychip8.audio import AudioTrigger
from pychip8.display import Display
from pychip8.exceptions import InvalidDigit, InvalidKey, StackOverflow, StackUnderflow, UnrecognizedOpcode
from pychip8.keypad import Keypad
from pychip8.memory import Memory


@pytest.fixture
def cpu():
    waits = []
    c = CPU(Memory(), Display(), Keypad(), AudioTrigger(), on_key_wait=waits.append, rng=np.random.default_rng(7))
    c.waits = waits
    return c


def V(cpu, i):
    return int(cpu.Architecture.V[i])


def setV(cpu, i, value):
    cpu.Architecture.V[i] = value


def test_fetch_advances_pc(cpu):
    cpu.memory.load_program(b"\x12\x34")
    assert cpu.fetch() == 0x1234
    assert cpu.Architecture.ProgramCounter == 0x202


def test_ld_byte_every_register(cpu):
    for x in range(16):
        cpu.execute(0x6000 | (x << 8) | (0x10 + x))
        assert V(cpu, x) == 0x10 + x


def test_add_byte_wraps_without_flag(cpu):
    setV(cpu, 1, 0xFF)
    setV(cpu, FLAG, 0x55)
    cpu.execute(0x7102)
    assert V(cpu, 1) == 0x01
    assert V(cpu, FLAG) == 0x55


@pytest.mark.parametrize(
    "word, vx, vy, result",
    [
        (0x8120, 0x12, 0x34, 0x34),
        (0x8121, 0x0F, 0xF0, 0xFF),
        (0x8122, 0x3C, 0x0F, 0x0C),
        (0x8123, 0xFF, 0x0F, 0xF0),
    ],
)
def test_logic_ops(cpu, word, vx, vy, result):
    setV(cpu, 1, vx)
    setV(cpu, 2, vy)
    cpu.execute(word)
    assert V(cpu, 1) == result


def test_add_sets_carry(cpu):
    setV(cpu, 1, 0xFF)
    setV(cpu, 2, 0x01)
    cpu.execute(0x8124)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0x00, 1)

    setV(cpu, 1, 0x10)
    cpu.execute(0x8124)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0x11, 0)


def test_sub_borrow(cpu):
    setV(cpu, 1, 0x01)
    setV(cpu, 2, 0x02)
    cpu.execute(0x8125)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0xFF, 0)

    setV(cpu, 1, 0x05)
    setV(cpu, 2, 0x05)
    cpu.execute(0x8125)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0x00, 0)

    setV(cpu, 1, 0x07)
    setV(cpu, 2, 0x02)
    cpu.execute(0x8125)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0x05, 1)


def test_subn(cpu):
    setV(cpu, 1, 0x02)
    setV(cpu, 2, 0x05)
    cpu.execute(0x8127)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0x03, 1)


def test_shifts_ignore_vy(cpu):
    setV(cpu, 1, 0x05)
    setV(cpu, 2, 0xFF)
    cpu.execute(0x8126)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0x02, 1)

    setV(cpu, 1, 0x81)
    cpu.execute(0x812E)
    assert (V(cpu, 1), V(cpu, FLAG)) == (0x02, 1)


def test_flag_written_before_result_when_vf_is_the_target(cpu):
    setV(cpu, FLAG, 0x05)
    setV(cpu, 1, 0x03)
    cpu.execute(0x8F15)
    # flag 1 lands first, then VF = 1 - 3
    assert V(cpu, FLAG) == 0xFE


def test_skips(cpu):
    setV(cpu, 1, 0x2A)
    setV(cpu, 2, 0x2A)
    for word, skipped in [(0x312A, True), (0x412A, False), (0x5120, True), (0x9120, False), (0x3100, False)]:
        cpu.Architecture.ProgramCounter = 0x200
        cpu.execute(word)
        assert cpu.Architecture.ProgramCounter == (0x202 if skipped else 0x200), hex(word)


def test_jumps(cpu):
    cpu.execute(0x1345)
    assert cpu.Architecture.ProgramCounter == 0x345
    setV(cpu, 0, 4)
    cpu.execute(0xB300)
    assert cpu.Architecture.ProgramCounter == 0x304
    cpu.execute(0x0456)
    assert cpu.Architecture.ProgramCounter == 0x456


def test_call_and_return(cpu):
    cpu.Architecture.ProgramCounter = 0x202
    cpu.execute(0x2300)
    arch = cpu.Architecture
    assert (arch.ProgramCounter, arch.StackPointer, int(arch.Stack[0])) == (0x300, 1, 0x202)
    cpu.execute(0x00EE)
    assert (arch.ProgramCounter, arch.StackPointer) == (0x202, 0)


def test_stack_overflow(cpu):
    for _ in range(STACK_DEPTH):
        cpu.execute(0x2300)
    with pytest.raises(StackOverflow):
        cpu.execute(0x2300)


def test_stack_underflow(cpu):
    with pytest.raises(StackUnderflow):
        cpu.execute(0x00EE)


def test_ld_i_and_add_i_wraps(cpu):
    cpu.execute(0xA123)
    assert cpu.Architecture.I == 0x123
    cpu.Architecture.I = 0xFFFF
    setV(cpu, 1, 2)
    cpu.execute(0xF11E)
    assert cpu.Architecture.I == 0x0001


def test_rnd_is_masked(cpu):
    for _ in range(50):
        cpu.execute(0xC10F)
        assert V(cpu, 1) <= 0x0F
    cpu.execute(0xC100)
    assert V(cpu, 1) == 0


def test_draw_and_collision(cpu):
    cpu.execute(0xA000)  # glyph 0
    cpu.execute(0xD015)
    assert V(cpu, FLAG) == 0
    assert cpu.display.pixel(0, 0) and cpu.display.pixel(4, 3)
    assert cpu.Architecture.I == 0
    cpu.execute(0xD015)
    assert V(cpu, FLAG) == 1
    assert not cpu.display.snapshot().any()


def test_draw_wraps_at_right_edge(cpu):
    cpu.memory.write(0x300, 0xC0)
    cpu.Architecture.I = 0x300
    setV(cpu, 1, 63)
    cpu.execute(0xD121)
    assert cpu.display.pixel(0, 63)
    assert cpu.display.pixel(0, 0)


def test_cls(cpu):
    cpu.display.draw_sprite(0, 0, [0xFF])
    cpu.execute(0x00E0)
    assert not cpu.display.snapshot().any()


def test_key_skips(cpu):
    setV(cpu, 1, 7)
    cpu.keypad.press(7)
    cpu.execute(0xE19E)
    assert cpu.Architecture.ProgramCounter == 0x202
    cpu.execute(0xE1A1)
    assert cpu.Architecture.ProgramCounter == 0x202
    cpu.keypad.release(7)
    cpu.execute(0xE1A1)
    assert cpu.Architecture.ProgramCounter == 0x204


def test_key_skip_with_out_of_range_key(cpu):
    setV(cpu, 1, 0x10)
    with pytest.raises(InvalidKey):
        cpu.execute(0xE19E)


def test_wait_for_key_is_handed_off(cpu):
    cpu.execute(0xF50A)
    assert cpu.waits == [5]


def test_timers_and_audio(cpu):
    setV(cpu, 1, 3)
    cpu.execute(0xF115)
    cpu.execute(0xF118)
    assert cpu.Architecture.DelayTimer == 3
    assert cpu.Architecture.SoundTimer == 3
    assert cpu.audio.active
    cpu.Architecture.DelayTimer = 9
    cpu.execute(0xF207)
    assert V(cpu, 2) == 9
    setV(cpu, 1, 0)
    cpu.execute(0xF118)
    assert not cpu.audio.active


def test_font_address(cpu):
    setV(cpu, 1, 0xA)
    cpu.execute(0xF129)
    assert cpu.Architecture.I == 50
    setV(cpu, 1, 0x10)
    with pytest.raises(InvalidDigit):
        cpu.execute(0xF129)


def test_bcd(cpu):
    setV(cpu, 1, 156)
    cpu.Architecture.I = 0x300
    cpu.execute(0xF133)
    assert cpu.memory.read_block(0x300, 3) == bytes([1, 5, 6])
    assert cpu.Architecture.I == 0x300


def test_store_and_load_registers_advance_i(cpu):
    values = [0x11, 0x22, 0x33, 0x44]
    for i, v in enumerate(values):
        setV(cpu, i, v)
    cpu.Architecture.I = 0x300
    cpu.execute(0xF355)
    assert cpu.Architecture.I == 0x304
    assert cpu.memory.read_block(0x300, 4) == bytes(values)

    cpu.Architecture.V[:] = 0
    cpu.Architecture.I = 0x300
    cpu.execute(0xF365)
    assert [V(cpu, i) for i in range(4)] == values
    assert V(cpu, 4) == 0
    assert cpu.Architecture.I == 0x304


@pytest.mark.parametrize("word", [0x5121, 0x8128, 0x912F, 0xE1FF, 0xF1FF])
def test_unrecognized_is_ignored_by_default(cpu, word):
    cpu.execute(word)
    assert cpu.Architecture.ProgramCounter == 0x200
    assert not cpu.Architecture.V.any()


@pytest.mark.parametrize("word", [0x5121, 0x8128, 0xE1FF, 0xF1FF])
def test_unrecognized_halts_in_strict_mode(cpu, word):
    cpu.halt_on = HaltOn(UnknownOpcode=True)
    with pytest.raises(UnrecognizedOpcode):
        cpu.execute(word)
