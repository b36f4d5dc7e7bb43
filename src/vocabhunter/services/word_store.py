"""In-memory word pool shared by the listing view and the quiz engine."""
import logging
from datetime import datetime, UTC
from typing import Dict, Iterable, List, Optional

from vocabhunter.models.quiz_models import Language, ProgressSnapshot, QuizMode, WordRecord
from vocabhunter.services.achievement_ladder import mastered_count
from vocabhunter.services.word_service import ChangeKind, PoolChange, WordService


logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


def _sort_key(record: WordRecord):
    created_at = record.created_at or _OLDEST
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return created_at


class WordStore:
    """Holds the records supplied by the persistence collaborator."""

    def __init__(self, records: Optional[Iterable[WordRecord]] = None):
        self._records: Dict[object, WordRecord] = {}
        self._service: Optional[WordService] = None
        if records:
            self.load(records)

    def __len__(self) -> int:
        return len(self._records)

    def load(self, records: Iterable[WordRecord], language: Optional[Language] = None) -> None:
        """Replace the whole pool, or one language partition of it."""
        if language is None:
            self._records.clear()
        else:
            for record_id in [r.id for r in self._records.values() if r.language == language]:
                del self._records[record_id]
        for record in records:
            self._records[record.id] = record

    def upsert(self, record: WordRecord) -> None:
        self._records[record.id] = record

    def remove(self, record_id) -> Optional[WordRecord]:
        return self._records.pop(record_id, None)

    def get(self, record_id) -> Optional[WordRecord]:
        return self._records.get(record_id)

    def list(self, language: Language) -> List[WordRecord]:
        """Records of a language, newest first."""
        records = [record for record in self._records.values() if record.language == language]
        return sorted(records, key=_sort_key, reverse=True)

    def progress(self, language: Language, mode: Optional[QuizMode] = None) -> ProgressSnapshot:
        """Mastered and total counts for a language."""
        records = self.list(language)
        return ProgressSnapshot(
            language=language,
            total=len(records),
            mastered=mastered_count(records, mode),
        )

    # Synchronisation with the persistence collaborator

    def attach(self, service: WordService) -> None:
        """Follow the change stream of a persistence collaborator."""
        if self._service is not None:
            self._service.unsubscribe(self._on_change)
        self._service = service
        service.subscribe(self._on_change)
        for language in Language:
            self.load(service.list(language), language)
        logger.info(f"Word store attached with {len(self)} words")

    def detach(self) -> None:
        if self._service is not None:
            self._service.unsubscribe(self._on_change)
            self._service = None

    def _on_change(self, change: PoolChange) -> None:
        if change.kind == ChangeKind.DELETED:
            self.remove(change.word_id)
        else:
            record = self._service.get(change.word_id) if self._service else None
            if record is None:
                self.remove(change.word_id)
            else:
                self.upsert(record)
        logger.debug(f"Pool changed: {change.kind.value} word {change.word_id} ({change.language.value})")
