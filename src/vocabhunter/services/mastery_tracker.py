"""Per-mode proficiency tracking and archive decisions."""
import logging
from typing import Optional

from vocabhunter.config import settings
from vocabhunter.models.quiz_models import MasteryUpdate, ModeStat, QuizMode, WordRecord


logger = logging.getLogger(__name__)


class MasteryTracker:
    """Computes updated mode statistics from answer verdicts.

    Archiving is a ratchet: a stat that is archived stays archived no
    matter what later verdicts or thresholds say.
    """

    def __init__(
        self,
        correct_threshold: Optional[int] = None,
        accuracy_threshold: Optional[float] = None,
        accuracy_inclusive: Optional[bool] = None,
    ):
        self.correct_threshold = (
            settings.mastery.correct_threshold if correct_threshold is None else correct_threshold
        )
        self.accuracy_threshold = (
            settings.mastery.accuracy_threshold if accuracy_threshold is None else accuracy_threshold
        )
        self.accuracy_inclusive = (
            settings.mastery.accuracy_inclusive if accuracy_inclusive is None else accuracy_inclusive
        )

    def should_archive(self, correct_count: int, total_count: int) -> bool:
        """Archive predicate on a pair of counters."""
        if total_count <= 0 or correct_count < self.correct_threshold:
            return False
        accuracy = correct_count / total_count
        if self.accuracy_inclusive:
            return accuracy >= self.accuracy_threshold
        return accuracy > self.accuracy_threshold

    def _apply(self, current: ModeStat, correct_count: int, total_count: int) -> MasteryUpdate:
        archived = current.archived
        if not archived:
            archived = self.should_archive(correct_count, total_count)
        stats = ModeStat(
            correct_count=correct_count,
            total_count=total_count,
            archived=archived,
        )
        return MasteryUpdate(stats=stats, just_archived=archived and not current.archived)

    def record_answer(self, record: WordRecord, mode: QuizMode, was_correct: bool) -> MasteryUpdate:
        """Count one more attempt for the mode."""
        current = record.stat_for(mode)
        update = self._apply(
            current,
            correct_count=current.correct_count + (1 if was_correct else 0),
            total_count=current.total_count + 1,
        )
        logger.debug(
            f"Word {record.id} ({mode.value}): {current.correct_count}/{current.total_count} -> "
            f"{update.stats.correct_count}/{update.stats.total_count}, archived={update.stats.archived}"
        )
        if update.just_archived:
            logger.info(f"Word {record.id} archived for {mode.value}")
        return update

    def amend_last_attempt(self, record: WordRecord, mode: QuizMode) -> MasteryUpdate:
        """Turn the immediately preceding wrong attempt into a correct one.

        The attempt is already part of ``total_count``, so only
        ``correct_count`` moves. The caller guarantees the last verdict for
        this record and mode was wrong.
        """
        current = record.stat_for(mode)
        if current.correct_count + 1 > current.total_count:
            raise ValueError(
                f"Word {record.id} has no wrong attempt to amend for {mode.value}"
            )
        update = self._apply(
            current,
            correct_count=current.correct_count + 1,
            total_count=current.total_count,
        )
        logger.info(
            f"Amended last attempt of word {record.id} ({mode.value}): "
            f"{update.stats.correct_count}/{update.stats.total_count}"
        )
        return update
