"""Models for quiz-related data structures."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Language(Enum):
    """Language partitions of the word pool."""
    EN = "EN"
    JP = "JP"

    @property
    def code(self) -> str:
        """ISO code used by the speech and translation collaborators."""
        return {"EN": "en", "JP": "ja"}[self.value]


class QuizMode(Enum):
    """Practice formats with independently tracked mastery."""
    MULTIPLE_CHOICE = "multiple-choice"  # Pick the definition among options
    FILL_IN_BLANK = "fill-in-blank"  # Type the definition


class RoundState(Enum):
    """Lifecycle of a quiz round."""
    IDLE = "idle"  # No round presented
    AWAITING_ANSWER = "awaiting_answer"  # Target selected, answer not yet submitted
    RESOLVING = "resolving"  # Answer accepted, stats being computed and written
    COOLDOWN = "cooldown"  # Feedback shown, waiting for the next round


class NoRoundReason(Enum):
    """Why no round could be composed."""
    EMPTY_POOL = "empty_pool"  # No usable words in the language
    POOL_TOO_SMALL = "pool_too_small"  # Not enough words to build distractors
    ALL_ARCHIVED = "all_archived"  # Every word is mastered for the mode


@dataclass(frozen=True)
class ModeStat:
    """Per-mode proficiency counters of a word."""
    correct_count: int = 0
    total_count: int = 0
    archived: bool = False

    def __post_init__(self):
        if self.correct_count < 0:
            raise ValueError("correct_count cannot be negative")
        if self.total_count < self.correct_count:
            raise ValueError("total_count cannot be lower than correct_count")

    @property
    def accuracy(self) -> float:
        return self.correct_count / self.total_count if self.total_count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correct_count": self.correct_count,
            "total_count": self.total_count,
            "archived": self.archived,
        }


@dataclass(frozen=True)
class WordRecord:
    """A captured term with its translation and per-mode statistics."""
    id: Any
    term: str
    definition: str
    language: Language
    created_at: Optional[datetime] = None
    stats: Dict[QuizMode, ModeStat] = field(default_factory=dict)

    @property
    def is_usable(self) -> bool:
        """Whether the record has a term and definition a round can show."""
        return (
            isinstance(self.term, str) and bool(self.term.strip())
            and isinstance(self.definition, str) and bool(self.definition.strip())
        )

    def stat_for(self, mode: QuizMode) -> ModeStat:
        """Statistics for the mode, all-zero when never practiced."""
        return self.stats.get(mode) or ModeStat()

    def is_archived(self, mode: QuizMode) -> bool:
        return self.stat_for(mode).archived

    def with_stat(self, mode: QuizMode, stat: ModeStat) -> "WordRecord":
        """Copy of the record with the stat for one mode replaced."""
        stats = dict(self.stats)
        stats[mode] = stat
        return replace(self, stats=stats)


@dataclass(frozen=True)
class Round:
    """One presentation of a target word awaiting an answer."""
    target: WordRecord
    mode: QuizMode
    options: Optional[List[str]] = None  # None for free-text modes


@dataclass(frozen=True)
class NoRound:
    """Nothing to practice for the requested language and mode."""
    reason: NoRoundReason

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True, order=True)
class Milestone:
    """Display tier derived from the number of mastered words."""
    threshold: int
    label: str = field(compare=False)


@dataclass
class MasteryUpdate:
    """Result of applying one verdict to a word's mode statistics."""
    stats: ModeStat
    just_archived: bool


@dataclass
class AnswerOutcome:
    """Resolution of a submitted answer, handed to the presentation layer."""
    round: Round
    submitted: str
    correct: bool
    record: Optional[WordRecord] = None
    stats: Optional[ModeStat] = None
    just_archived: bool = False
    milestone: Optional[Milestone] = None
    milestone_reached: bool = False
    persisted: bool = True
    error: Optional[Exception] = None
    amended: bool = False
    record_missing: bool = False


@dataclass
class ProgressSnapshot:
    """Mastered share of a language partition."""
    language: Language
    total: int
    mastered: int

    @property
    def percent(self) -> float:
        return self.mastered / self.total * 100 if self.total else 0.0
