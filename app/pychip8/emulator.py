import threading
import time
from collections import deque
from dataclasses import dataclass, field
from string import Template
from typing import Any, Callable, Dict, Final, Mapping, Optional, Sequence, Union

import numpy as np
from logger import log as _logger
from pychip8.audio import AudioTrigger
from pychip8.cadence import TIMER_FREQUENCY, CadenceState, FixedRateCadence
from pychip8.cpu import CPU, Architecture, HaltOn
from pychip8.debug import MachineSnapshot
from pychip8.disassembler import mnemonic
from pychip8.display import DEFAULT_HEIGHT, DEFAULT_WIDTH, Display
from pychip8.exceptions import Chip8Error, EmulatorError
from pychip8.keypad import Keypad
from pychip8.memory import Memory
from pychip8.program import Program
from util.timer import Clock

TEMPLATE: Final[Template] = Template("${PC}: ${OP}  ${ASM} | I: ${I} | SP: ${SP} | DT: ${DT} | ST: ${ST} | V: ${V}")

# upper bound on instructions run in one burst when a throttled run loop falls behind
MAX_CATCH_UP: Final[int] = 1000
IDLE_SLEEP: Final[float] = 0.0005


@dataclass
class Debug:
    Logging: bool = False
    HaltOn: HaltOn = field(default_factory=HaltOn)


@dataclass
class KeyWait:
    register: int


class Emulator:
    """
    The CHIP-8 machine and its cadence controller.

    One `step()` is one controller tick: the 60 Hz timers catch up with the
    wall clock, then either one instruction runs or, while a key-wait is
    pending, the keypad is polled instead.
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        instructions_per_second: int = 0,
        strict_opcodes: bool = False,
        clock: Clock = time.perf_counter,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.program: Program = Program.EmptyProgram()
        self._events: Dict[str, deque[Callable[..., Any]]] = {}
        self.tracelog: deque[str] = deque(maxlen=2048)
        self.debug: Debug = Debug(HaltOn=HaltOn(UnknownOpcode=strict_opcodes))

        self.memory: Final[Memory] = Memory()
        self.display: Final[Display] = Display(width, height)
        self.keypad: Final[Keypad] = Keypad()
        self.audio: Final[AudioTrigger] = AudioTrigger()
        self.cpu: Final[CPU] = CPU(
            self.memory,
            self.display,
            self.keypad,
            self.audio,
            on_key_wait=self._enter_key_wait,
            halt_on=self.debug.HaltOn,
            rng=rng,
        )
        self.audio.subscribe(lambda active: self._emit("audio", active))

        self.state: CadenceState = CadenceState.Running
        self._key_wait: Optional[KeyWait] = None
        self.halted: bool = False
        self.paused: bool = False
        self.instruction_count: int = 0
        self.timer_ticks: int = 0

        self._timer_cadence = FixedRateCadence(TIMER_FREQUENCY, clock)
        self._instruction_cadence: Optional[FixedRateCadence] = (
            FixedRateCadence(instructions_per_second, clock) if instructions_per_second > 0 else None
        )
        self.Reset()

    @property
    def Architecture(self) -> Architecture:
        return self.cpu.Architecture

    @property
    def waiting_for_key(self) -> Optional[int]:
        """Target register of the pending key-wait, if any."""
        return self._key_wait.register if self._key_wait else None

    def on(self, event_name: str):
        def decorator(func: Callable):
            self._events.setdefault(event_name, deque()).append(func)
            return func

        return decorator

    def _emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        for callback in self._events.get(event_name, ()):
            callback(*args, **kwargs)

    def _tracelogger(self, pc: int, word: int) -> None:
        arch = self.cpu.Architecture
        line = TEMPLATE.substitute(
            PC=f"{pc:04X}",
            OP=f"{word:04X}",
            ASM=f"{mnemonic(word):<16}",
            I=f"{arch.I:04X}",
            SP=f"{arch.StackPointer:02X}",
            DT=f"{arch.DelayTimer:02X}",
            ST=f"{arch.SoundTimer:02X}",
            V=" ".join(f"{int(v):02X}" for v in arch.V),
        )
        self.tracelog.append(line)
        self._emit("tracelogger", line)

    def Load(self, program: Program) -> None:
        """Install a program image and reset the machine to run it."""
        if not isinstance(program, Program):
            raise TypeError(f"Expected Program, got {type(program).__name__}")
        self.program = program
        self.Reset()
        _logger.info(f"Loaded {program.file or 'program'} ({len(program)} bytes)")

    def Reset(self) -> None:
        """Power-on state: font seeded, program image copied to $200, PC = $200."""
        self.memory.reset()
        self.memory.load_program(self.program.to_bytes())
        self.cpu.reset()
        self.display.reset()
        self.audio.off()
        self.state = CadenceState.Running
        self._key_wait = None
        self.halted = False
        self.instruction_count = 0
        self.timer_ticks = 0
        self.tracelog.clear()
        self._timer_cadence.start()
        if self._instruction_cadence is not None:
            self._instruction_cadence.start()
        if self.paused:
            self._pause_cadences()
        _logger.debug(f"Reset: PC=${self.cpu.Architecture.ProgramCounter:04X}, program {len(self.program)} bytes")

    def Input(self, key: Union[int, Mapping[int, bool], Sequence[bool]], pressed: Optional[bool] = None) -> None:
        """Set one key (`Input(7, True)`) or several at once (`Input({7: True, 8: False})`)."""
        if isinstance(key, int):
            if pressed is None:
                raise ValueError("pressed is required when setting a single key")
            self.keypad.set(key, pressed)
        else:
            self.keypad.update(key)

    def _enter_key_wait(self, register: int) -> None:
        self._key_wait = KeyWait(register)
        self.state = CadenceState.AwaitingKey
        self._emit("key_wait", register)

    def _poll_key_wait(self) -> None:
        assert self._key_wait is not None
        key = self.keypad.first_pressed()
        if key is None:
            return
        register = self._key_wait.register
        self.cpu.Architecture.V[register] = key
        self._key_wait = None
        self.state = CadenceState.Running
        self._emit("key_resume", register, key)

    def tick_timers(self) -> None:
        """One 1/60 s timer period."""
        arch = self.cpu.Architecture
        if arch.SoundTimer > 0:
            arch.SoundTimer -= 1
            self.audio.set(arch.SoundTimer > 0)
        else:
            self.audio.off()
        if arch.DelayTimer > 0:
            arch.DelayTimer -= 1
        self.timer_ticks += 1

    def _service_timers(self) -> None:
        for _ in range(self._timer_cadence.due()):
            self.tick_timers()

    def step(self) -> None:
        if self.halted:
            return

        self._service_timers()

        if self.state is CadenceState.AwaitingKey:
            self._poll_key_wait()
            return

        pc = self.cpu.Architecture.ProgramCounter
        word: Optional[int] = None
        try:
            word = self.cpu.fetch()
            if self.debug.Logging:
                self._tracelogger(pc, word)
            self.cpu.execute(word)
        except Chip8Error as e:
            self.halted = True
            error = EmulatorError(e, pc, word)
            _logger.error(f"Machine halted: {error.message}")
            raise error from e

        self.instruction_count += 1
        if self.display.consume_frame_ready():
            self._emit("frame_complete", self.display.snapshot())

    def _pause_cadences(self) -> None:
        self._timer_cadence.pause()
        if self._instruction_cadence is not None:
            self._instruction_cadence.pause()

    def pause(self) -> None:
        self.paused = True
        self._pause_cadences()
        _logger.info("Paused")

    def resume(self) -> None:
        self.paused = False
        self._timer_cadence.resume()
        if self._instruction_cadence is not None:
            self._instruction_cadence.resume()
        _logger.info("Resumed")

    def run(self, stop_event: threading.Event) -> None:
        """Drive the machine until `stop_event` is set or a fatal fault halts it."""
        while not stop_event.is_set() and not self.halted:
            if self.paused:
                stop_event.wait(0.05)
                continue

            if self._instruction_cadence is None:
                self.step()
                continue

            due = self._instruction_cadence.due()
            if due == 0:
                self._service_timers()
                time.sleep(IDLE_SLEEP)
                continue

            for _ in range(min(due, MAX_CATCH_UP)):
                self.step()
                if self.halted:
                    break

    def snapshot(self) -> MachineSnapshot:
        arch = self.cpu.Architecture
        return MachineSnapshot(
            V=tuple(int(v) for v in arch.V),
            I=arch.I,
            ProgramCounter=arch.ProgramCounter,
            StackPointer=arch.StackPointer,
            Stack=tuple(int(s) for s in arch.Stack),
            DelayTimer=arch.DelayTimer,
            SoundTimer=arch.SoundTimer,
            State=self.state.name,
            Halted=self.halted,
        )
