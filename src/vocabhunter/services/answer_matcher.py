"""Answer judging for free-text and multiple-choice rounds."""
import logging
import re
from typing import List, Optional

from vocabhunter.models.quiz_models import QuizMode, WordRecord


logger = logging.getLogger(__name__)

# Separators between accepted variants of one definition
VARIANT_DELIMITERS = "、/；;"

# ASCII punctuation, its full-width and CJK counterparts, and all whitespace
_IGNORED_CHARS = re.compile(
    r"[\s.,!?;:()\[\]/\-"
    r"。．，、！？；：（）［］【】「」『』／－・〜～]+"
)
_DELIMITER_SPLIT = re.compile(f"[{re.escape(VARIANT_DELIMITERS)}]")


def normalize(text: Optional[str]) -> str:
    """Lower-case the text and drop punctuation and whitespace."""
    if not isinstance(text, str):
        return ""
    return _IGNORED_CHARS.sub("", text.lower())


def split_variants(definition: Optional[str]) -> List[str]:
    """Normalized, non-empty accepted variants of a definition."""
    if not isinstance(definition, str):
        return []
    variants = [normalize(part) for part in _DELIMITER_SPLIT.split(definition)]
    return [variant for variant in variants if variant]


class AnswerMatcher:
    """Compares submitted answers with canonical definitions."""

    def matches(self, submitted: Optional[str], definition: Optional[str]) -> bool:
        """Whether the free-text answer equals any accepted variant.

        Matching is exact after normalization: no substrings, no edit
        distance. Missing or empty values never match.
        """
        answer = normalize(submitted)
        if not answer:
            return False
        return answer in split_variants(definition)

    def matches_option(self, selected: Optional[str], definition: Optional[str]) -> bool:
        """Strict equality against the option the user picked."""
        if not isinstance(selected, str) or not isinstance(definition, str):
            return False
        if not definition:
            return False
        return selected == definition

    def judge(self, mode: QuizMode, submitted: Optional[str], target: WordRecord) -> bool:
        """Judge an answer for the given round mode."""
        if mode == QuizMode.MULTIPLE_CHOICE:
            verdict = self.matches_option(submitted, target.definition)
        else:
            verdict = self.matches(submitted, target.definition)
        logger.debug(f"Judged answer {submitted!r} for word {target.id} ({mode.value}): {verdict}")
        return verdict
