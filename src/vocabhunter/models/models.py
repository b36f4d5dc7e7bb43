"""Database models for the word pool."""
from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from vocabhunter.models.base import Base, TimestampMixin
from vocabhunter.models.quiz_models import Language, ModeStat, QuizMode, WordRecord


class VocabWord(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True, index=True)
    term = Column(String, nullable=False)
    term_key = Column(String, nullable=False)  # lower-cased term for uniqueness
    definition = Column(String, nullable=False)
    language = Column(String, nullable=False, index=True)  # e.g., "EN", "JP"

    __table_args__ = (
        UniqueConstraint("language", "term_key", name="uq_words_language_term"),
    )

    # Relationships
    stats = relationship(
        "WordModeStat",
        back_populates="word",
        cascade="all, delete-orphan",
    )

    def to_record(self) -> WordRecord:
        """Convert to the engine's value object."""
        stats = {}
        for row in self.stats:
            try:
                mode = QuizMode(row.mode)
            except ValueError:
                continue
            stats[mode] = ModeStat(
                correct_count=row.correct_count,
                total_count=row.total_count,
                archived=row.archived,
            )
        return WordRecord(
            id=self.id,
            term=self.term,
            definition=self.definition,
            language=Language(self.language),
            created_at=self.created_at,
            stats=stats,
        )


class WordModeStat(Base, TimestampMixin):
    """Per-mode statistics of a word."""

    __tablename__ = "word_mode_stats"

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False)
    mode = Column(String, nullable=False)  # QuizMode value
    correct_count = Column(Integer, default=0, nullable=False)
    total_count = Column(Integer, default=0, nullable=False)
    archived = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("word_id", "mode", name="uq_word_mode_stats_word_mode"),
    )

    # Relationships
    word = relationship("VocabWord", back_populates="stats")
