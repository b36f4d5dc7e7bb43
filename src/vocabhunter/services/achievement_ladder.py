"""Achievement milestones derived from mastered-word counts."""
from typing import Iterable, List, Optional, Tuple

from vocabhunter.config import settings
from vocabhunter.models.quiz_models import Milestone, QuizMode, WordRecord


# Named tiers below the step base, ascending
NAMED_TIERS: List[Tuple[int, str]] = [
    (1, "見習獵人"),
    (10, "新手獵人"),
    (30, "初級獵人"),
    (50, "中級獵人"),
    (80, "高級獵人"),
    (100, "百字獵人"),
    (150, "資深獵人"),
]

# Unique labels that replace the step ladder from their cutoff upwards
HIGH_TIERS: List[Tuple[int, str]] = [
    (3000, "傳奇獵人"),
    (5000, "神話獵人"),
    (10000, "單字之神"),
]

SPARSE_STEP = 50  # spacing of numbered tiers between the named tiers and the base
SPARSE_START = 200


def _sparse_table(step_base: int) -> List[Tuple[int, str]]:
    """Named tiers plus step-50 tiers up to the base, highest first."""
    table = [(threshold, label) for threshold, label in NAMED_TIERS if threshold < step_base]
    table.extend(
        (threshold, f"{threshold} 字獵人")
        for threshold in range(SPARSE_START, step_base, SPARSE_STEP)
    )
    return sorted(table, reverse=True)


class AchievementLadder:
    """Maps a mastered-word count to the highest milestone reached."""

    def __init__(self, step_base: Optional[int] = None, step: Optional[int] = None):
        self.step_base = settings.achievement.step_base if step_base is None else step_base
        self.step = settings.achievement.step if step is None else step
        self._sparse = _sparse_table(self.step_base)
        self._high = sorted(HIGH_TIERS, reverse=True)

    def milestone_for(self, mastered_count: int) -> Optional[Milestone]:
        """Highest milestone whose threshold does not exceed the count."""
        count = max(int(mastered_count or 0), 0)
        if count < 1:
            return None

        for threshold, label in self._high:
            if count >= threshold:
                return Milestone(threshold, label)

        if count >= self.step_base:
            threshold = count // self.step * self.step
            return Milestone(threshold, f"{threshold} 字大師")

        for threshold, label in self._sparse:
            if count >= threshold:
                return Milestone(threshold, label)
        return None


def mastered_count(records: Iterable[WordRecord], mode: Optional[QuizMode] = None) -> int:
    """Number of records archived for the mode, or for any mode if None."""
    if mode is not None:
        return sum(1 for record in records if record.is_archived(mode))
    return sum(
        1 for record in records
        if any(stat.archived for stat in record.stats.values())
    )


def milestone_reached(previous: Optional[Milestone], current: Optional[Milestone]) -> bool:
    """Whether moving from previous to current is a new, higher milestone."""
    if current is None:
        return False
    return previous is None or current > previous
