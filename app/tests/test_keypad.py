import pytest
from pychip8.keypad import Keypad


def test_press_and_release():
    k = Keypad()
    k.press(0xA)
    assert k.is_pressed(0xA)
    k.release(0xA)
    assert not k.is_pressed(0xA)


def test_first_pressed_is_lowest():
    k = Keypad()
    assert k.first_pressed() is None
    k.update({9: True, 3: True})
    assert k.first_pressed() == 3


def test_update_from_sequence():
    k = Keypad()
    states = [False] * 16
    states[5] = True
    k.update(states)
    assert k.snapshot()[5] is True
    assert sum(k.snapshot()) == 1


def test_invalid_key_is_rejected_without_partial_update():
    k = Keypad()
    with pytest.raises(ValueError):
        k.update({1: True, 16: True})
    assert not k.is_pressed(1)
