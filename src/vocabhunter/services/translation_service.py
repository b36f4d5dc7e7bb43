"""Best-effort translation lookups for new words."""
import logging
import re
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

from deep_translator import GoogleTranslator

from vocabhunter import monitoring
from vocabhunter.config import settings
from vocabhunter.models.quiz_models import Language


logger = logging.getLogger(__name__)

# Separators between senses in a translator reply
_SENSE_SPLIT = re.compile(r"[、,，;；/\n]")


class TTLCache:
    """Size-bounded cache whose entries expire after a fixed time."""

    def __init__(self, ttl: float, max_size: int, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: "OrderedDict[Hashable, tuple[float, Any]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + self.ttl, value)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)  # evict oldest

    def clear(self) -> None:
        self._entries.clear()


class TranslationService:
    """Translates captured terms into the learner's language.

    The engine works without it: every failure yields None and the user
    types the definition by hand.
    """

    def __init__(self, cache: Optional[TTLCache] = None, target_language: Optional[str] = None):
        self.cache = cache or TTLCache(
            ttl=settings.translation.cache_ttl,
            max_size=settings.translation.cache_max_size,
        )
        self.target_language = target_language or settings.translation.target_language

    @staticmethod
    def first_sense(text: str) -> str:
        """Shortest usable form of a reply: its first sense, trimmed."""
        for part in _SENSE_SPLIT.split(text or ""):
            part = part.strip().strip("。.")
            if part:
                return part
        return ""

    def translate(self, term: str, language: Language) -> Optional[str]:
        """Translate a term, or None if the lookup is unavailable."""
        if not term or not term.strip():
            return None
        key = (language.value, term.strip().lower())

        cached = self.cache.get(key)
        if cached is not None:
            monitoring.translation_cache.labels(result="hit").inc()
            return cached
        monitoring.translation_cache.labels(result="miss").inc()

        try:
            translator = GoogleTranslator(source=language.code, target=self.target_language)
            translation = self.first_sense(translator.translate(term.strip()))
        except Exception as e:
            logger.error(f"Error generating translation for word: {term}, error: {e}")
            return None

        if not translation:
            return None
        logger.info(f"Translation generated for word: {term}, translation: {translation}")
        self.cache.set(key, translation)
        return translation
