from pychip8.audio import AudioTrigger


def test_listeners_hear_transitions_only():
    audio = AudioTrigger()
    heard = []
    audio.subscribe(heard.append)
    audio.on()
    audio.on()
    audio.off()
    audio.off()
    assert heard == [True, False]
    assert audio.active is False
