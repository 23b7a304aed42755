import pytest

pygame = pytest.importorskip("pygame")

from backend.Control import Control  # noqa: E402
from util.config import DEFAULT_CONFIG  # noqa: E402


def key_event(kind, name):
    return pygame.event.Event(kind, key=pygame.key.key_code(name))


def test_default_layout_maps_every_key():
    control = Control(DEFAULT_CONFIG["keyboard"])
    assert sorted(control.KEY_MAPPING.values()) == list(range(16))


def test_update_reports_changes():
    control = Control(DEFAULT_CONFIG["keyboard"])
    assert control.update([key_event(pygame.KEYDOWN, "a")]) is True
    assert control.state[7] is True
    assert control.update([key_event(pygame.KEYDOWN, "a")]) is False
    assert control.update([key_event(pygame.KEYUP, "a")]) is True
    assert not any(control.state)


def test_unmapped_keys_are_ignored():
    control = Control(DEFAULT_CONFIG["keyboard"])
    assert control.update([key_event(pygame.KEYDOWN, "p")]) is False


def test_invalid_key_name_is_skipped():
    keyboard = dict(DEFAULT_CONFIG["keyboard"], F="not-a-key")
    control = Control(keyboard)
    assert 0xF not in control.KEY_MAPPING.values()
    assert len(control.KEY_MAPPING) == 15
