import logging
from datetime import datetime
from pathlib import Path
from typing import Final, List, Optional, Tuple, Union

from rich.console import Console
from rich.logging import RichHandler

console: Final[Console] = Console()

LOG_DIR: Final[Path] = Path("log")
LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Modules log through this logger from import time on. Until setup_logging()
# runs, records fall through to the logging module's last-resort handler.
log: Final[logging.Logger] = logging.getLogger("PyCHIP8")


class Chip8FileHandler(logging.Handler):
    """Appends records to a log file, holding back the ones that could not be written yet."""

    def __init__(self, file_name: Union[str, Path]):
        super().__init__()
        self.file_name: Final[Path] = Path(file_name)
        self._pending: List[Tuple[logging.LogRecord, OSError]] = []

    def _append(self, line: str) -> None:
        with open(self.file_name, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _flush_pending(self) -> None:
        still_failed = []
        for record, _ in self._pending:
            try:
                self._append(self.format(record))
            except OSError as e:
                still_failed.append((record, e))
        self._pending = still_failed

    @property
    def pending(self) -> int:
        return len(self._pending)

    def emit(self, record: logging.LogRecord) -> None:
        line = self.format(record)
        with self.lock:
            if self._pending:
                self._flush_pending()
            try:
                self._append(line)
            except OSError as e:
                self._pending.append((record, e))


def log_file_name(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    return f"pychip8_{stamp}.log"


def setup_logging(debug: bool = False, log_dir: Union[str, Path] = LOG_DIR) -> Chip8FileHandler:
    """
    Route all logging to the shared rich console and a timestamped file under `log_dir`.

    Replaces any handlers installed by an earlier call. Returns the file handler.
    """
    log_dir = Path(log_dir).resolve()
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = Chip8FileHandler(log_dir / log_file_name())

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=TIME_FORMAT,
        handlers=[
            RichHandler(
                rich_tracebacks=True,
                show_path=True,
                enable_link_path=True,
                tracebacks_show_locals=debug,
                show_level=False,
                console=console,
            ),
            file_handler,
        ],
        force=True,
    )
    return file_handler
