from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, TypedDict, Union

import tomllib
from logger import log as _log
from resources import config_file

HEX_KEYS: tuple[str, ...] = tuple(f"{i:X}" for i in range(16))


class GeneralConfig(TypedDict):
    fps: int
    scale: int


class MachineConfig(TypedDict):
    instructions_per_second: int
    strict_opcodes: bool
    width: int
    height: int


class Config(TypedDict):
    general: GeneralConfig
    machine: MachineConfig
    keyboard: Dict[str, str]


# 1 2 3 C / 4 5 6 D / 7 8 9 E / A 0 B F laid over the left side of a QWERTY keyboard
DEFAULT_CONFIG: Config = {
    "general": {"fps": 60, "scale": 10},
    "machine": {
        "instructions_per_second": 700,
        "strict_opcodes": False,
        "width": 64,
        "height": 32,
    },
    "keyboard": {
        "0": "x",
        "1": "1",
        "2": "2",
        "3": "3",
        "4": "q",
        "5": "w",
        "6": "e",
        "7": "a",
        "8": "s",
        "9": "d",
        "A": "z",
        "B": "c",
        "C": "4",
        "D": "r",
        "E": "f",
        "F": "v",
    },
}


def _deep_merge(
    target: MutableMapping[str, Any],
    overrides: Mapping[str, Any],
) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_config(cfg: Config) -> None:
    if not _is_positive_int(cfg["general"]["fps"]):
        raise ValueError("general.fps must be a positive integer")

    if not _is_positive_int(cfg["general"]["scale"]):
        raise ValueError("general.scale must be a positive integer")

    ips = cfg["machine"]["instructions_per_second"]
    if not isinstance(ips, int) or isinstance(ips, bool) or ips < 0:
        raise ValueError("machine.instructions_per_second must be a non-negative integer (0 = unthrottled)")

    if not isinstance(cfg["machine"]["strict_opcodes"], bool):
        raise ValueError("machine.strict_opcodes must be a boolean")

    for axis in ("width", "height"):
        if not _is_positive_int(cfg["machine"][axis]):
            raise ValueError(f"machine.{axis} must be a positive integer")

    keyboard = {str(k).upper(): v for k, v in cfg["keyboard"].items()}
    if set(keyboard) != set(HEX_KEYS):
        raise ValueError("keyboard must map exactly the keys 0-F")
    if not all(isinstance(v, str) and v for v in keyboard.values()):
        raise ValueError("keyboard values must be non-empty key names")
    cfg["keyboard"] = keyboard


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    path = Path(path) if path is not None else config_file
    config = deepcopy(DEFAULT_CONFIG)

    if not path.exists():
        return config

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)

        _deep_merge(config, data)
        _validate_config(config)

    except (OSError, tomllib.TOMLDecodeError, ValueError, TypeError) as e:
        _log.error(f"Failed to load config {path}: {e}", exc_info=(type(e), e, e.__traceback__))
        return deepcopy(DEFAULT_CONFIG)

    return config
