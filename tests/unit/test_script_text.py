from videogen.services.script_text import estimate_speech_seconds, is_known_voice, normalize_script


def test_normalize_script() -> None:
    assert normalize_script(None) == ""
    assert normalize_script("  hello world \n") == "hello world"
    assert normalize_script(" \t ") == ""


def test_estimate_speech_seconds_rounds_up() -> None:
    assert estimate_speech_seconds("") == 0
    assert estimate_speech_seconds("a") == 1
    assert estimate_speech_seconds("a" * 160) == 1
    assert estimate_speech_seconds("a" * 161) == 2


def test_voice_catalog() -> None:
    for voice in ("sarah", "david", "maria", "james"):
        assert is_known_voice(voice)
    assert not is_known_voice("Sarah")
    assert not is_known_voice("")
