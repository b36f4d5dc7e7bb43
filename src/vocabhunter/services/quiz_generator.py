"""Quiz round composition for the available practice modes."""
import logging
import random
from abc import ABC, abstractmethod
from typing import ClassVar, Dict, List, Optional, Sequence, Union

from vocabhunter.config import settings
from vocabhunter.models.quiz_models import (
    Language,
    NoRound,
    NoRoundReason,
    QuizMode,
    Round,
    WordRecord,
)


logger = logging.getLogger(__name__)


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


class BaseRoundBuilder(ABC):
    """Base class for the per-mode round builders."""

    mode: ClassVar[QuizMode]

    def __init__(self, rng: random.Random):
        self.rng = rng

    def minimum_pool_size(self) -> int:
        """Usable words the whole language pool needs before any round."""
        return 1

    @abstractmethod
    def build_round(self, target: WordRecord, pool: List[WordRecord]) -> Union[Round, NoRound]:
        """Compose a round around an already selected target."""
        raise NotImplementedError("Subclasses must implement this method")


class MultipleChoiceBuilder(BaseRoundBuilder):
    """Options are the target definition plus definitions of other words."""

    mode = QuizMode.MULTIPLE_CHOICE
    min_pool_size: int = 3
    max_distractors: int = 3

    def minimum_pool_size(self) -> int:
        return self.min_pool_size

    def build_round(self, target: WordRecord, pool: List[WordRecord]) -> Union[Round, NoRound]:
        others = [record for record in pool if record.id != target.id]
        self.rng.shuffle(others)

        distractors: List[str] = []
        for record in others:
            if len(distractors) >= self.max_distractors:
                break
            # Identical options would make two buttons correct
            if record.definition == target.definition or record.definition in distractors:
                continue
            distractors.append(record.definition)

        if not distractors:
            logger.debug(f"No distinct distractor for word {target.id}")
            return NoRound(NoRoundReason.POOL_TOO_SMALL)

        options = distractors + [target.definition]
        self.rng.shuffle(options)
        return Round(target=target, mode=self.mode, options=options)


class FillInBlankBuilder(BaseRoundBuilder):
    """Free-text answer, no options."""

    mode = QuizMode.FILL_IN_BLANK

    def build_round(self, target: WordRecord, pool: List[WordRecord]) -> Round:
        return Round(target=target, mode=self.mode, options=None)


class QuizGenerator:
    """Selects a target word and builds one quiz round."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        min_pool_size: Optional[int] = None,
        max_distractors: Optional[int] = None,
    ):
        self.rng = rng or random.Random()
        self.builders: Dict[QuizMode, BaseRoundBuilder] = {}
        for builder_class in get_all_subclasses(BaseRoundBuilder):
            self.builders[builder_class.mode] = builder_class(self.rng)

        multiple_choice = self.builders[QuizMode.MULTIPLE_CHOICE]
        multiple_choice.min_pool_size = (
            settings.quiz.min_pool_size if min_pool_size is None else min_pool_size
        )
        multiple_choice.max_distractors = (
            settings.quiz.max_distractors if max_distractors is None else max_distractors
        )

    def _builder(self, mode: QuizMode) -> BaseRoundBuilder:
        builder = self.builders.get(mode)
        if not builder:
            raise ValueError(f"Unknown quiz mode: {mode}")
        return builder

    @staticmethod
    def usable(pool: Sequence[WordRecord], language: Optional[Language] = None) -> List[WordRecord]:
        """Records with a usable term and definition, optionally language-scoped."""
        return [
            record for record in pool
            if record.is_usable and (language is None or record.language == language)
        ]

    @staticmethod
    def eligible(pool: Sequence[WordRecord], mode: QuizMode) -> List[WordRecord]:
        """Records not yet archived for the mode."""
        return [record for record in pool if not record.is_archived(mode)]

    def next_round(
        self,
        pool: Sequence[WordRecord],
        mode: QuizMode,
        language: Optional[Language] = None,
    ) -> Union[Round, NoRound]:
        """Compose the next round, or NoRound when there is nothing to practice."""
        builder = self._builder(mode)
        usable = self.usable(pool, language)

        if not usable:
            logger.debug(f"No usable words for {mode.value}")
            return NoRound(NoRoundReason.EMPTY_POOL)

        if len(usable) < builder.minimum_pool_size():
            logger.debug(
                f"Pool of {len(usable)} words is below {builder.minimum_pool_size()} for {mode.value}"
            )
            return NoRound(NoRoundReason.POOL_TOO_SMALL)

        candidates = self.eligible(usable, mode)
        if not candidates:
            logger.debug(f"All {len(usable)} words archived for {mode.value}")
            return NoRound(NoRoundReason.ALL_ARCHIVED)

        target = self.rng.choice(candidates)
        round_ = builder.build_round(target, usable)
        if round_:
            logger.debug(f"Round for word {target.id} ({mode.value}), options: {round_.options}")
        return round_
