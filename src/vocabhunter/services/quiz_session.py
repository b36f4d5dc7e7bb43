"""Round lifecycle of a practice session."""
import asyncio
import inspect
import logging
from typing import Any, Callable, Mapping, Optional, Protocol, Tuple, Union

from vocabhunter import monitoring
from vocabhunter.config import settings
from vocabhunter.models.quiz_models import (
    AnswerOutcome,
    Language,
    MasteryUpdate,
    Milestone,
    NoRound,
    QuizMode,
    Round,
    RoundState,
    WordRecord,
)
from vocabhunter.services.achievement_ladder import (
    AchievementLadder,
    mastered_count,
    milestone_reached,
)
from vocabhunter.services.answer_matcher import AnswerMatcher
from vocabhunter.services.mastery_tracker import MasteryTracker
from vocabhunter.services.quiz_generator import QuizGenerator
from vocabhunter.services.speech_service import SpeechService
from vocabhunter.services.word_store import WordStore


logger = logging.getLogger(__name__)


class WordRepository(Protocol):
    """Write side of the persistence collaborator."""

    def update(self, word_id: Any, fields: Mapping[str, Any]) -> Any:
        """Persist partial fields; may return an awaitable."""


class QuizSession:
    """Drives rounds for one language and mode.

    States move IDLE -> AWAITING_ANSWER -> RESOLVING -> COOLDOWN, and from
    COOLDOWN either to the next round or back to IDLE when nothing is left
    to practice. Only one answer is accepted per round; switching language
    or mode, or abandoning, discards whatever is still in flight.
    """

    def __init__(
        self,
        store: WordStore,
        repository: WordRepository,
        language: Language = Language.EN,
        mode: QuizMode = QuizMode.MULTIPLE_CHOICE,
        *,
        generator: Optional[QuizGenerator] = None,
        matcher: Optional[AnswerMatcher] = None,
        tracker: Optional[MasteryTracker] = None,
        ladder: Optional[AchievementLadder] = None,
        speech: Optional[SpeechService] = None,
        auto_advance: bool = True,
        advance_delay: Optional[float] = None,
        archive_advance_delay: Optional[float] = None,
        on_round: Optional[Callable[[Union[Round, NoRound]], None]] = None,
        on_outcome: Optional[Callable[[AnswerOutcome], None]] = None,
    ):
        self.store = store
        self.repository = repository
        self.language = language
        self.mode = mode
        self.generator = generator or QuizGenerator()
        self.matcher = matcher or AnswerMatcher()
        self.tracker = tracker or MasteryTracker()
        self.ladder = ladder or AchievementLadder()
        self.speech = speech
        self.auto_advance = auto_advance
        self.advance_delay = settings.quiz.advance_delay if advance_delay is None else advance_delay
        self.archive_advance_delay = (
            settings.quiz.archive_advance_delay if archive_advance_delay is None else archive_advance_delay
        )
        self.on_round = on_round
        self.on_outcome = on_outcome

        self.state = RoundState.IDLE
        self.current_round: Optional[Round] = None
        self.last_result: Union[Round, NoRound, None] = None
        self.last_outcome: Optional[AnswerOutcome] = None
        self.milestone: Optional[Milestone] = self._current_milestone()
        self._token = 0
        self._advance_handle: Optional[asyncio.TimerHandle] = None

    # Helpers

    def _current_milestone(self) -> Optional[Milestone]:
        return self.ladder.milestone_for(mastered_count(self.store.list(self.language)))

    def _cancel_advance(self) -> None:
        if self._advance_handle is not None:
            self._advance_handle.cancel()
            self._advance_handle = None
            logger.debug("Pending round advance cancelled")

    def _invalidate(self) -> None:
        """Drop the current round and anything still resolving."""
        self._cancel_advance()
        self._token += 1
        self.current_round = None
        self.last_outcome = None
        self.state = RoundState.IDLE

    async def _persist(
        self, record: WordRecord, mode: QuizMode, update: MasteryUpdate, operation: str
    ) -> Optional[Exception]:
        """Write the stat through the repository, returning the error if any."""
        try:
            result = self.repository.update(record.id, {"stats": {mode: update.stats}})
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            monitoring.persistence_errors.labels(operation=operation).inc()
            logger.error(f"Could not persist stats of word {record.id}: {e}")
            return e
        return None

    async def _write_through(
        self,
        base: WordRecord,
        mode: QuizMode,
        update: MasteryUpdate,
        compute: Callable[[WordRecord], MasteryUpdate],
        operation: str,
        token: int,
    ) -> Optional[Tuple[Optional[WordRecord], MasteryUpdate, Optional[Exception]]]:
        """Persist the update and apply it to the freshest copy of the word.

        Returns None when the round was cancelled during the write, otherwise
        (record, update, error); record is None when the word disappeared.
        The stat is recomputed once if another writer changed it meanwhile.
        """
        for attempt in range(2):
            error = await self._persist(base, mode, update, operation)
            if token != self._token:
                return None

            fresh = self.store.get(base.id)
            if fresh is None:
                logger.info(f"Word {base.id} disappeared while its stats were written")
                return None, update, error
            # Our own write echoed back by the change stream counts as unchanged
            if attempt or fresh.stat_for(mode) in (base.stat_for(mode), update.stats):
                break

            logger.debug(f"Stats of word {base.id} changed during the write, recomputing")
            try:
                recomputed = compute(fresh)
            except ValueError as e:
                logger.warning(f"Cannot recompute stats of word {base.id}: {e}")
                break
            base, update = fresh, recomputed

        return self._apply(fresh, mode, update), update, error

    def _apply(self, record: WordRecord, mode: QuizMode, update: MasteryUpdate) -> WordRecord:
        """Optimistically apply the new stat to the shared pool."""
        updated = record.with_stat(mode, update.stats)
        self.store.upsert(updated)
        if update.just_archived:
            monitoring.words_archived.labels(mode=mode.value).inc()
        return updated

    def _update_milestone(self, outcome: AnswerOutcome) -> None:
        current = self._current_milestone()
        outcome.milestone = current
        outcome.milestone_reached = milestone_reached(self.milestone, current)
        if outcome.milestone_reached:
            monitoring.milestones_reached.inc()
            logger.info(f"Milestone reached for {self.language.value}: {current.threshold} {current.label}")
        self.milestone = current

    def _finish(self, outcome: AnswerOutcome) -> None:
        """Enter cooldown and schedule the next round."""
        self.state = RoundState.COOLDOWN
        self.last_outcome = outcome
        if self.on_outcome:
            self.on_outcome(outcome)
        if not self.auto_advance:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, next round must be requested explicitly")
            return
        delay = self.archive_advance_delay if outcome.just_archived else self.advance_delay
        self._advance_handle = loop.call_later(delay, self._auto_advance, self._token)

    def _auto_advance(self, token: int) -> None:
        self._advance_handle = None
        if token != self._token or self.state != RoundState.COOLDOWN:
            logger.debug("Stale round advance ignored")
            return
        self.next_round()

    # Round lifecycle

    def next_round(self) -> Union[Round, NoRound]:
        """Compose the next round from the current pool."""
        self._cancel_advance()
        self._token += 1
        self.last_outcome = None

        result = self.generator.next_round(self.store.list(self.language), self.mode, self.language)
        self.last_result = result
        if result:
            self.current_round = result
            self.state = RoundState.AWAITING_ANSWER
            monitoring.rounds_generated.labels(mode=self.mode.value).inc()
            logger.debug(f"Round started for word {result.target.id} ({self.language.value}, {self.mode.value})")
        else:
            self.current_round = None
            self.state = RoundState.IDLE
            monitoring.no_rounds.labels(reason=result.reason.value).inc()
            logger.info(f"Nothing to practice for {self.language.value} {self.mode.value}: {result.reason.value}")

        if self.on_round:
            self.on_round(result)
        return result

    async def submit_answer(self, answer: str) -> Optional[AnswerOutcome]:
        """Judge the answer for the current round.

        Returns None when no round is awaiting an answer (double submit,
        late callback) or when the round was cancelled while resolving.
        """
        if self.state != RoundState.AWAITING_ANSWER or self.current_round is None:
            monitoring.rejected_submissions.inc()
            logger.warning(f"Answer rejected in state {self.state.value}")
            return None

        self.state = RoundState.RESOLVING
        round_, token = self.current_round, self._token
        correct = self.matcher.judge(round_.mode, answer, round_.target)
        monitoring.answers_judged.labels(
            mode=round_.mode.value, verdict="correct" if correct else "wrong"
        ).inc()

        # Base the update on the latest copy, not the round snapshot
        latest = self.store.get(round_.target.id)
        if latest is None:
            logger.info(f"Word {round_.target.id} disappeared during the round")
            outcome = AnswerOutcome(round=round_, submitted=answer, correct=correct, record_missing=True)
            self._finish(outcome)
            return outcome

        resolved = await self._write_through(
            latest,
            round_.mode,
            self.tracker.record_answer(latest, round_.mode, correct),
            lambda fresh: self.tracker.record_answer(fresh, round_.mode, correct),
            "record_answer",
            token,
        )
        if resolved is None:
            logger.debug(f"Round for word {latest.id} cancelled while resolving, result discarded")
            return None

        record, update, error = resolved
        if record is None:
            outcome = AnswerOutcome(
                round=round_,
                submitted=answer,
                correct=correct,
                persisted=error is None,
                error=error,
                record_missing=True,
            )
            self._finish(outcome)
            return outcome

        outcome = AnswerOutcome(
            round=round_,
            submitted=answer,
            correct=correct,
            record=record,
            stats=update.stats,
            just_archived=update.just_archived,
            persisted=error is None,
            error=error,
        )
        self._update_milestone(outcome)
        logger.info(
            f"Word {record.id} answered {'correctly' if correct else 'wrongly'} "
            f"({update.stats.correct_count}/{update.stats.total_count})"
        )
        self._finish(outcome)
        return outcome

    async def amend_last_attempt(self) -> Optional[AnswerOutcome]:
        """Count the last wrong answer of this round as correct."""
        outcome = self.last_outcome
        if (
            self.state != RoundState.COOLDOWN
            or outcome is None
            or outcome.correct
            or outcome.amended
            or outcome.record_missing
        ):
            logger.warning(f"Nothing to amend in state {self.state.value}")
            return None

        round_, token = outcome.round, self._token
        latest = self.store.get(round_.target.id)
        if latest is None:
            logger.info(f"Word {round_.target.id} disappeared before the amendment")
            return None

        update = self.tracker.amend_last_attempt(latest, round_.mode)
        self._cancel_advance()
        self.state = RoundState.RESOLVING
        resolved = await self._write_through(
            latest,
            round_.mode,
            update,
            lambda fresh: self.tracker.amend_last_attempt(fresh, round_.mode),
            "amend_last_attempt",
            token,
        )
        if resolved is None:
            logger.debug(f"Amendment of word {latest.id} discarded after cancellation")
            return None

        record, update, error = resolved
        if record is None:
            amended = AnswerOutcome(
                round=round_,
                submitted=outcome.submitted,
                correct=True,
                persisted=error is None,
                error=error,
                amended=True,
                record_missing=True,
            )
            self._finish(amended)
            return amended

        amended = AnswerOutcome(
            round=round_,
            submitted=outcome.submitted,
            correct=True,
            record=record,
            stats=update.stats,
            just_archived=update.just_archived,
            persisted=error is None,
            error=error,
            amended=True,
        )
        self._update_milestone(amended)
        self._finish(amended)
        return amended

    def abandon(self) -> None:
        """Leave the quiz; pending results and advances are dropped."""
        logger.debug("Quiz abandoned")
        self._invalidate()

    def switch_language(self, language: Language) -> None:
        self._invalidate()
        self.language = language
        self.milestone = self._current_milestone()
        logger.info(f"Quiz language switched to {language.value}")

    def switch_mode(self, mode: QuizMode) -> None:
        self._invalidate()
        self.mode = mode
        logger.info(f"Quiz mode switched to {mode.value}")

    def pronounce(self) -> None:
        """Speak the current target term, if any."""
        if self.speech and self.current_round:
            self.speech.speak(self.current_round.target.term, self.current_round.target.language)
