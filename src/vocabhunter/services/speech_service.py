"""Fire-and-forget pronunciation of terms."""
import hashlib
import logging
import re
from pathlib import Path
from typing import Callable, Optional

from gtts import gTTS

from vocabhunter.config import settings
from vocabhunter.models.quiz_models import Language


logger = logging.getLogger(__name__)

Player = Callable[[Path], None]


class SpeechService:
    """Renders speech with gTTS and hands the audio file to a player."""

    def __init__(
        self,
        player: Optional[Player] = None,
        directory: Optional[Path] = None,
        slow: Optional[bool] = None,
    ):
        self.player = player
        self.directory = Path(directory or settings.paths.pronunciations_dir)
        self.slow = settings.speech.slow if slow is None else slow

    @staticmethod
    def _filename(text: str, language: Language) -> str:
        """Sanitized file name, with a digest so non-Latin terms stay distinct."""
        readable = re.sub(r"[^a-zA-Z0-9]", "_", text.lower())[:40]
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:10]
        return f"{language.code}_{readable}_{digest}.mp3"

    def audio_path(self, text: str, language: Language) -> Path:
        """Render the pronunciation if it is not cached yet."""
        path = self.directory / self._filename(text, language)
        if not path.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            gTTS(text=text, lang=language.code, slow=self.slow).save(str(path))
            logger.info(f"Pronunciation generated for word: {text}, file: {path.name}")
        return path

    def speak(self, text: str, language: Language) -> None:
        """Pronounce the text; failures are logged and dropped."""
        if not text or not text.strip():
            return
        try:
            path = self.audio_path(text.strip(), language)
            if self.player:
                self.player(path)
        except Exception as e:
            logger.error(f"Error generating pronunciation for word: {text}, error: {e}")
