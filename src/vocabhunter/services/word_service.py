"""Service for managing words in the system."""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabhunter import monitoring
from vocabhunter.config import settings
from vocabhunter.errors import (
    DuplicateTermError,
    PersistenceError,
    ValidationError,
    WordNotFoundError,
)
from vocabhunter.models.models import VocabWord, WordModeStat
from vocabhunter.models.quiz_models import Language, ModeStat, QuizMode, WordRecord


logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Kinds of pool changes broadcast to subscribers."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class PoolChange:
    """Notification that a language partition changed."""
    kind: ChangeKind
    language: Language
    word_id: int


PoolListener = Callable[[PoolChange], None]


def _language(value: Union[Language, str]) -> Language:
    try:
        return value if isinstance(value, Language) else Language(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unsupported language: {value}") from None


def _clean(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required")
    return value.strip()


class WordService:
    """Persistence collaborator for the word pool."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self._listeners: List[PoolListener] = []

    # Change notification stream

    def subscribe(self, listener: PoolListener) -> None:
        """Register a listener called after every committed change."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: PoolListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, change: PoolChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(f"Pool listener failed for {change}: {e}")

    def _commit(self, operation: str) -> None:
        start = time.perf_counter()
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            monitoring.persistence_errors.labels(operation=operation).inc()
            logger.error(f"Database error during {operation}: {e}")
            raise PersistenceError(f"Could not {operation} word") from e
        finally:
            monitoring.persistence_duration.labels(operation=operation).observe(
                time.perf_counter() - start
            )

    # Queries

    def _get_row(self, word_id: int) -> VocabWord:
        word = self.db.query(VocabWord).filter(VocabWord.id == word_id).first()
        if not word:
            raise WordNotFoundError(word_id)
        return word

    def get(self, word_id: int) -> Optional[WordRecord]:
        """Get a word by its ID."""
        word = self.db.query(VocabWord).filter(VocabWord.id == word_id).first()
        return word.to_record() if word else None

    def get_by_term(self, term: str, language: Union[Language, str]) -> Optional[WordRecord]:
        """Get a word by its term, ignoring case."""
        word = (
            self.db.query(VocabWord)
            .filter(
                VocabWord.language == _language(language).value,
                VocabWord.term_key == term.strip().lower(),
            )
            .first()
        )
        return word.to_record() if word else None

    def list(self, language: Union[Language, str]) -> List[WordRecord]:
        """All words of a language, newest first."""
        words = (
            self.db.query(VocabWord)
            .filter(VocabWord.language == _language(language).value)
            .order_by(VocabWord.created_at.desc(), VocabWord.id.desc())
            .all()
        )
        return [word.to_record() for word in words]

    def count(self, language: Union[Language, str]) -> int:
        """Number of words in a language."""
        return (
            self.db.query(func.count(VocabWord.id))
            .filter(VocabWord.language == _language(language).value)
            .scalar()
        )

    # Commands

    def create(self, fields: Mapping[str, Any]) -> int:
        """Create a new word and return its id.

        Term and definition are trimmed and required; the term must be
        unique (case-insensitive) within its language. Statistics start at
        zero for every configured quiz mode.
        """
        term = _clean(fields.get("term"), "term")
        definition = _clean(fields.get("definition"), "definition")
        language = _language(fields.get("language", settings.quiz.languages[0]))

        if self.get_by_term(term, language):
            raise DuplicateTermError(term, language.value)

        word = VocabWord(
            term=term,
            term_key=term.lower(),
            definition=definition,
            language=language.value,
        )
        word.stats = [
            WordModeStat(mode=QuizMode(mode).value, correct_count=0, total_count=0, archived=False)
            for mode in settings.quiz.modes
        ]
        self.db.add(word)
        self._commit("create")
        self.db.refresh(word)

        logger.info(f"Created word {word.id} '{term}' ({language.value})")
        self._notify(PoolChange(ChangeKind.CREATED, language, word.id))
        return word.id

    def update(self, word_id: int, fields: Mapping[str, Any]) -> WordRecord:
        """Update a word's term, definition and/or per-mode stats."""
        word = self._get_row(word_id)
        language = Language(word.language)

        if "term" in fields:
            term = _clean(fields["term"], "term")
            duplicate = self.get_by_term(term, language)
            if duplicate and duplicate.id != word.id:
                raise DuplicateTermError(term, language.value)
            word.term = term
            word.term_key = term.lower()

        if "definition" in fields:
            word.definition = _clean(fields["definition"], "definition")

        for mode, stat in self._parse_stats(fields.get("stats") or {}).items():
            self._write_stat(word, mode, stat)

        self._commit("update")
        self.db.refresh(word)

        logger.debug(f"Updated word {word.id}: {sorted(fields)}")
        self._notify(PoolChange(ChangeKind.UPDATED, language, word.id))
        return word.to_record()

    def delete(self, word_id: int) -> bool:
        """Delete a word and its statistics."""
        word = self.db.query(VocabWord).filter(VocabWord.id == word_id).first()
        if not word:
            return False
        language = Language(word.language)

        self.db.delete(word)
        self._commit("delete")

        logger.info(f"Deleted word {word_id}")
        self._notify(PoolChange(ChangeKind.DELETED, language, word_id))
        return True

    @staticmethod
    def _parse_stats(stats: Mapping[Any, Any]) -> Dict[QuizMode, ModeStat]:
        parsed = {}
        for mode, stat in stats.items():
            mode = mode if isinstance(mode, QuizMode) else QuizMode(mode)
            if not isinstance(stat, ModeStat):
                stat = ModeStat(**stat)
            parsed[mode] = stat
        return parsed

    @staticmethod
    def _write_stat(word: VocabWord, mode: QuizMode, stat: ModeStat) -> None:
        row = next((row for row in word.stats if row.mode == mode.value), None)
        if row is None:
            row = WordModeStat(mode=mode.value)
            word.stats.append(row)
        row.correct_count = stat.correct_count
        row.total_count = stat.total_count
        # Archived is a one-way flag
        row.archived = bool(row.archived) or stat.archived
