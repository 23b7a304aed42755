from pychip8.program import Program
from returns.result import Failure, Success


def test_from_bytes():
    result = Program.from_bytes(b"\x60\x0a\x12\x00")
    assert isinstance(result, Success)
    program = result.unwrap()
    assert len(program) == 4
    assert list(program.words()) == [(0x200, 0x600A), (0x202, 0x1200)]


def test_rejects_empty_and_oversized_images():
    assert isinstance(Program.from_bytes(b""), Failure)
    assert isinstance(Program.from_bytes(b"\x00" * (Program.MAX_SIZE + 1)), Failure)
    assert isinstance(Program.from_bytes(b"\x00" * Program.MAX_SIZE), Success)


def test_rejects_non_bytes():
    result = Program.from_bytes("600A")  # type: ignore[arg-type]
    assert isinstance(result, Failure)
    assert "str" in result.failure()


def test_odd_length_is_accepted():
    program = Program.from_bytes(b"\x60\x0a\xff").unwrap()
    assert list(program.words()) == [(0x200, 0x600A)]
    assert program.to_bytes() == b"\x60\x0a\xff"


def test_from_file(tmp_path):
    rom = tmp_path / "maze.ch8"
    rom.write_bytes(b"\x00\xe0")
    program = Program.from_file(rom).unwrap()
    assert program.file == str(rom)
    assert program.to_bytes() == b"\x00\xe0"


def test_missing_file(tmp_path):
    result = Program.from_file(tmp_path / "missing.ch8")
    assert isinstance(result, Failure)
    assert "Failed to read file" in result.failure()
