"""Tests for the speech collaborator."""
from unittest.mock import Mock, patch

from vocabhunter.models.quiz_models import Language
from vocabhunter.services.speech_service import SpeechService


def test_speak_renders_and_plays(tmp_path) -> None:
    player = Mock()
    service = SpeechService(player=player, directory=tmp_path, slow=False)

    with patch("vocabhunter.services.speech_service.gTTS") as tts:
        service.speak("hello world", Language.EN)

    tts.assert_called_once_with(text="hello world", lang="en", slow=False)
    path = player.call_args.args[0]
    assert path.parent == tmp_path
    assert path.name.startswith("en_hello_world_")
    assert path.suffix == ".mp3"


def test_cached_audio_is_reused(tmp_path) -> None:
    player = Mock()
    service = SpeechService(player=player, directory=tmp_path)
    path = service.directory / service._filename("猫", Language.JP)
    path.write_bytes(b"ID3")

    with patch("vocabhunter.services.speech_service.gTTS") as tts:
        service.speak("猫", Language.JP)

    tts.assert_not_called()
    player.assert_called_once_with(path)


def test_distinct_files_for_non_latin_terms() -> None:
    assert SpeechService._filename("猫", Language.JP) != SpeechService._filename("犬", Language.JP)


def test_speak_swallows_errors(tmp_path) -> None:
    player = Mock()
    service = SpeechService(player=player, directory=tmp_path)

    with patch("vocabhunter.services.speech_service.gTTS") as tts:
        tts.return_value.save.side_effect = RuntimeError("offline")
        assert service.speak("hello", Language.EN) is None

    player.assert_not_called()


def test_speak_ignores_blank_text(tmp_path) -> None:
    with patch("vocabhunter.services.speech_service.gTTS") as tts:
        SpeechService(directory=tmp_path).speak("  ", Language.EN)

    tts.assert_not_called()
