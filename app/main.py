#!/usr/bin/env python3
import argparse
import sys
import threading
import time
from pathlib import Path
from types import TracebackType
from typing import List, Optional, Tuple, Type, TypeVar

import numpy as np
from __version__ import __version_string__ as __version__
from logger import console, setup_logging
from logger import log as _log
from numpy.typing import NDArray
from pychip8.debug import format_registers, format_stack, memory_dump
from pychip8.disassembler import disassemble
from pychip8.emulator import Emulator
from pychip8.exceptions import EmulatorError
from pychip8.memory import PROGRAM_START
from pychip8.program import Program
from resources import roms_path
from returns.result import Failure, Result
from rich.table import Table
from rich.traceback import install
from util.config import Config, load_config

E = TypeVar("E", bound=BaseException)

PIXEL_ON: Tuple[int, int, int] = (0xE0, 0xF0, 0xE0)
PIXEL_OFF: Tuple[int, int, int] = (0x10, 0x18, 0x10)

TONE_FREQUENCY: float = 440.0
TONE_VOLUME: float = 0.25
SAMPLE_RATE: int = 44100


def _extract_exc_info(e: E) -> Tuple[Type[E], E, Optional[TracebackType]]:
    return (type(e), e, e.__traceback__)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pychip8", description=f"PyCHIP8 {__version__}")
    parser.add_argument("rom", help="Path to a CHIP-8 program image (looked up in ./roms if not found)")
    parser.add_argument("--config", help="Path to a config.toml", default=None)
    parser.add_argument("--disasm", action="store_true", help="Print the disassembly and exit")
    parser.add_argument("--headless", action="store_true", help="Run without a window and print the final state")
    parser.add_argument("--seconds", type=float, default=5.0, help="Headless run time")
    parser.add_argument("--strict", action="store_true", help="Halt on unrecognized instructions")
    parser.add_argument("--trace", action="store_true", help="Log every executed instruction")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def _resolve_rom(name: str) -> Path:
    path = Path(name)
    if not path.exists() and (roms_path / name).exists():
        return roms_path / name
    return path


def _build_emulator(cfg: Config, args: argparse.Namespace) -> Emulator:
    machine = cfg["machine"]
    emulator = Emulator(
        width=machine["width"],
        height=machine["height"],
        instructions_per_second=machine["instructions_per_second"],
        strict_opcodes=machine["strict_opcodes"] or args.strict,
    )
    emulator.debug.Logging = args.trace
    if args.trace:

        @emulator.on("tracelogger")
        def _(line: str) -> None:
            _log.debug(line)

    return emulator


def _log_debug_views(emulator: Emulator) -> None:
    snap = emulator.snapshot()
    _log.info("Registers\n" + format_registers(snap))
    _log.info("Stack\n" + ("\n".join(format_stack(snap)) or "(empty)"))
    _log.info("Memory\n" + "\n".join(memory_dump(emulator.memory.snapshot(), PROGRAM_START, 128)))


def print_disassembly(program: Program) -> None:
    table = Table(title=f"{Path(program.file).name} ({len(program)} bytes)")
    table.add_column("Address", style="cyan")
    table.add_column("Bytes", style="magenta")
    table.add_column("Instruction")
    for ins in disassemble(program.to_bytes()):
        table.add_row(f"${ins.address:04X}", f"{ins.bytes:04X}", ins.opcode)
    console.print(table)


def tone_samples(
    sample_rate: int, channels: int, frequency: float = TONE_FREQUENCY, volume: float = TONE_VOLUME
) -> NDArray[np.int16]:
    """One second of sine tone, shaped the way pygame.sndarray expects for `channels`."""
    t = np.arange(sample_rate) / sample_rate
    wave = (np.sin(2 * np.pi * frequency * t) * volume * np.iinfo(np.int16).max).astype(np.int16)
    if channels > 1:
        wave = np.repeat(wave[:, None], channels, axis=1)
    return wave


def _open_tone():
    import pygame

    try:
        pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
        sample_rate, _, channels = pygame.mixer.get_init()
        return pygame.sndarray.make_sound(tone_samples(sample_rate, channels))
    except (pygame.error, ValueError) as e:
        _log.warning(f"Audio unavailable, running without a tone: {e}")
        return None


def run_worker(emulator: Emulator, stop_event: threading.Event, errors: List[Exception]) -> None:
    """Body of the emulator thread. Any failure is recorded and stops the window loop."""
    try:
        emulator.run(stop_event)
    except Exception as e:
        errors.append(e)
        _log.error("Emulator thread stopped", exc_info=_extract_exc_info(e))
    finally:
        stop_event.set()


def run_headless(emulator: Emulator, seconds: float) -> int:
    stop_event = threading.Event()
    timer = threading.Timer(seconds, stop_event.set)
    timer.start()
    try:
        emulator.run(stop_event)
    except EmulatorError as e:
        _log.error("Emulator error", exc_info=_extract_exc_info(e))
        return 1
    finally:
        timer.cancel()

    console.print(emulator.display.render_text())
    console.print(format_registers(emulator.snapshot()))
    _log.info(f"Executed {emulator.instruction_count} instructions, {emulator.timer_ticks} timer ticks")
    return 0


def run_window(emulator: Emulator, cfg: Config, rom_name: str) -> int:
    import pygame
    from backend.Control import Control

    scale: int = cfg["general"]["scale"]
    width, height = emulator.display.width, emulator.display.height

    _log.info(f"Starting pygame {pygame.__version__}")
    pygame.init()
    screen = pygame.display.set_mode((width * scale, height * scale))
    caption = f"PyCHIP8 {__version__} - {rom_name}"
    pygame.display.set_caption(caption)
    clock = pygame.time.Clock()
    user_input = Control(cfg["keyboard"])

    frame_lock = threading.Lock()
    latest_frame: Optional[NDArray[np.bool_]] = emulator.display.snapshot()
    frame_ready = True
    tone = False

    @emulator.on("frame_complete")
    def _(frame: NDArray[np.bool_]) -> None:
        nonlocal latest_frame, frame_ready
        with frame_lock:
            latest_frame = frame
            frame_ready = True

    @emulator.on("audio")
    def _(active: bool) -> None:
        nonlocal tone
        tone = active

    stop_event = threading.Event()
    errors: List[Exception] = []
    sound = _open_tone()

    core_thread = threading.Thread(
        target=run_worker, name="Emulator Cycle Thread", args=(emulator, stop_event, errors), daemon=True
    )
    core_thread.start()

    palette = np.array([PIXEL_OFF, PIXEL_ON], dtype=np.uint8)
    shown_tone = False
    try:
        while not stop_event.is_set():
            events = pygame.event.get()
            if user_input.update(events):
                emulator.Input(user_input.state)
            for event in events:
                if event.type == pygame.QUIT:
                    stop_event.set()
                elif event.type == pygame.KEYDOWN:
                    match event.key:
                        case pygame.K_ESCAPE:
                            stop_event.set()
                        case pygame.K_p:
                            if emulator.paused:
                                emulator.resume()
                            else:
                                emulator.pause()
                        case pygame.K_F1:
                            _log_debug_views(emulator)

            with frame_lock:
                frame = latest_frame if frame_ready else None
                frame_ready = False
            if frame is not None:
                # surfarray is indexed [x, y]
                pixels = palette[frame.T.astype(np.uint8)]
                surface = pygame.surfarray.make_surface(pixels)
                screen.blit(pygame.transform.scale(surface, screen.get_size()), (0, 0))
                pygame.display.flip()

            if tone != shown_tone:
                shown_tone = tone
                pygame.display.set_caption(caption + ("  [BEEP]" if tone else ""))
                if sound is not None:
                    if tone:
                        sound.play(loops=-1)
                    else:
                        sound.stop()

            clock.tick(cfg["general"]["fps"])
    finally:
        stop_event.set()
        core_thread.join(timeout=5)
        pygame.quit()

    if errors:
        _log_debug_views(emulator)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging(args.debug)
    install(console=console)
    cfg = load_config(args.config)
    _log.info(f"Starting PyCHIP8 {__version__}")

    rom_path = _resolve_rom(args.rom)
    result: Result[Program, str] = Program.from_file(rom_path)
    if isinstance(result, Failure):
        _log.error(result.failure())
        return 1
    program = result.unwrap()

    if args.disasm:
        print_disassembly(program)
        return 0

    emulator = _build_emulator(cfg, args)
    emulator.Load(program)

    started = time.perf_counter()
    if args.headless:
        code = run_headless(emulator, args.seconds)
    else:
        code = run_window(emulator, cfg, rom_path.name)
    _log.info(f"Stopped after {time.perf_counter() - started:.2f}s")
    return code


if __name__ == "__main__":
    sys.exit(main())
