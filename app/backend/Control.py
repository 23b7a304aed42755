from typing import Dict

import pygame
from logger import log as _log
from util.config import HEX_KEYS


class Control(object):
    """Host keyboard -> 16-key hex keypad, driven by the `keyboard` config table."""

    def __init__(self, keyboard: Dict[str, str]) -> None:
        self.KEY_MAPPING: Dict[int, int] = self._build_key_mapping(keyboard)
        self.state: list[bool] = [False] * len(HEX_KEYS)

    @staticmethod
    def _build_key_mapping(keyboard: Dict[str, str]) -> Dict[int, int]:
        mapping: Dict[int, int] = {}
        for hex_key in HEX_KEYS:
            key_name = keyboard.get(hex_key, "")
            try:
                py_key = pygame.key.key_code(key_name)
            except ValueError:
                _log.warning(f"Invalid key '{key_name}' in config for keypad {hex_key}")
                continue
            mapping[py_key] = int(hex_key, 16)
        return mapping

    def update(self, events: list[pygame.event.Event]) -> bool:
        """Apply keyboard events; returns True if any keypad key changed."""
        previous = self.state.copy()

        for event in events:
            if event.type == pygame.KEYDOWN and event.key in self.KEY_MAPPING:
                self.state[self.KEY_MAPPING[event.key]] = True
            elif event.type == pygame.KEYUP and event.key in self.KEY_MAPPING:
                self.state[self.KEY_MAPPING[event.key]] = False

        return self.state != previous
