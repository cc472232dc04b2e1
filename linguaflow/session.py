"""The learning flow: which screen is shown and what happens between screens."""
from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol, Sequence

from . import config
from .config import ProficiencyLevel, View
from .errors import ContentGenerationError
from .models import PlacementQuestion, PlacementReviewItem, StoryData, UserProfile, VocabWord
from .settings import SettingsStore
from .utils import clamp_daily_target

logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    def request_vocabulary(
        self, level: ProficiencyLevel, count: int, exclude: Sequence[str] = ...
    ) -> List[VocabWord]: ...

    def request_placement_test(self) -> List[PlacementQuestion]: ...

    def request_story(self, words: Sequence[str], level: ProficiencyLevel) -> StoryData: ...


class StoryAudio(Protocol):
    def stop(self) -> None: ...


def level_for_score(score: int) -> ProficiencyLevel:
    """Map a placement score to a level; the highest threshold reached wins."""

    if score >= config.ADVANCED_THRESHOLD:
        return ProficiencyLevel.ADVANCED
    if score >= config.INTERMEDIATE_THRESHOLD:
        return ProficiencyLevel.INTERMEDIATE
    return ProficiencyLevel.BEGINNER


def score_answers(questions: Sequence[PlacementQuestion], answers: Sequence[int]) -> int:
    return sum(1 for question, answer in zip(questions, answers) if question.is_correct(answer))


class RequestGate:
    """Admit one content request at a time and recognise stale results.

    ``begin`` hands out a token, or ``None`` while another request is in
    flight. A result may only be applied while its token is still current;
    ``invalidate`` retires every token handed out so far.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self._in_flight: Optional[int] = None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def begin(self) -> Optional[int]:
        with self._lock:
            if self._in_flight is not None:
                return None
            self._generation += 1
            self._in_flight = self._generation
            return self._generation

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._generation

    def end(self, token: int) -> None:
        with self._lock:
            if self._in_flight == token:
                self._in_flight = None

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            self._in_flight = None


class LearningSession:
    """State machine driving onboarding, placement, learning and stories.

    The settings store and content source are injected. Content failures
    never escape: they become a notice for the page plus a fall back to the
    last safe screen.
    """

    def __init__(
        self,
        store: SettingsStore,
        content: ContentSource,
        audio: Optional[StoryAudio] = None,
    ):
        self.store = store
        self.content = content
        self.audio = audio
        self.gate = RequestGate()

        self.view: Optional[View] = None
        self.loading = False
        self.loading_message: Optional[str] = None
        self.notice: Optional[str] = None
        self.notice_retryable = False

        self.words: List[VocabWord] = []
        self.word_index = 0
        self.card_flipped = False

        self.questions: List[PlacementQuestion] = []
        self.placement_index = 0
        self.placement_answers: List[int] = []
        self.recommended_level = ProficiencyLevel.BEGINNER
        self.pending_daily_target = config.DEFAULT_DAILY_TARGET

        self.story: Optional[StoryData] = None
        self.show_translation = False

    # ------------------------------------------------------------------
    def start(self) -> View:
        """Resolve the first screen once the stored profile is available."""

        if not self.store.is_loaded:
            self.store.load()
        first = View.DASHBOARD if self.store.profile.has_completed_placement else View.ONBOARDING
        self._go(first)
        return first

    @property
    def profile(self) -> UserProfile:
        return self.store.profile

    def consume_notice(self) -> Optional[str]:
        notice, self.notice = self.notice, None
        return notice

    def _go(self, view: View) -> None:
        if view is not self.view:
            logger.info("View %s -> %s", self.view.value if self.view else "start", view.value)
        self.view = view

    def _begin_loading(self, message: str) -> Optional[int]:
        token = self.gate.begin()
        if token is None:
            logger.info("Ignoring request while another one is in flight")
            return None
        self.loading = True
        self.loading_message = message
        return token

    def _end_loading(self, token: int) -> None:
        self.gate.end(token)
        if not self.gate.busy:
            self.loading = False
            self.loading_message = None

    def _fail(self, notice: str, fallback: View, error: ContentGenerationError) -> None:
        logger.warning("%s: %s", notice, error)
        self.notice = notice
        self.notice_retryable = error.retryable
        self._go(fallback)

    # ------------------------------------------------------------------
    # Placement
    def start_placement(self) -> bool:
        token = self._begin_loading("loadingVocab")
        if token is None:
            return False
        try:
            questions = self.content.request_placement_test()
        except ContentGenerationError as exc:
            if self.gate.is_current(token):
                fallback = View.DASHBOARD if self.profile.has_completed_placement else View.ONBOARDING
                self._fail("errorPlacement", fallback, exc)
            return False
        finally:
            self._end_loading(token)

        if not self.gate.is_current(token):
            logger.info("Discarding stale placement test")
            return False
        self.questions = list(questions)
        self.placement_index = 0
        self.placement_answers = []
        self._go(View.PLACEMENT)
        return True

    @property
    def current_question(self) -> Optional[PlacementQuestion]:
        if self.view is not View.PLACEMENT or not self.questions:
            return None
        return self.questions[self.placement_index]

    def answer_placement(self, option_index: int) -> None:
        if self.view is not View.PLACEMENT:
            raise RuntimeError("No placement test in progress")
        self.placement_answers.append(option_index)

        if self.placement_index < len(self.questions) - 1:
            self.placement_index += 1
            return

        self.recommended_level = level_for_score(self.placement_score)
        self.pending_daily_target = self.profile.daily_target
        self._go(View.PLACEMENT_RESULT)

    @property
    def placement_score(self) -> int:
        return score_answers(self.questions, self.placement_answers)

    def placement_review(self) -> List[PlacementReviewItem]:
        return [
            PlacementReviewItem(
                number=number,
                question=question,
                chosen_index=self.placement_answers[number - 1] if number <= len(self.placement_answers) else None,
            )
            for number, question in enumerate(self.questions, start=1)
        ]

    def adjust_pending_target(self, delta: int) -> int:
        self.pending_daily_target = clamp_daily_target(self.pending_daily_target + delta)
        return self.pending_daily_target

    def complete_placement_setup(self) -> None:
        if self.view is not View.PLACEMENT_RESULT:
            raise RuntimeError("Placement result is not being shown")
        self.store.update(
            level=self.recommended_level,
            daily_target=self.pending_daily_target,
            has_completed_placement=True,
        )
        self._go(View.DASHBOARD)

    # ------------------------------------------------------------------
    # Learning
    def start_learning_from_onboarding(self) -> bool:
        """Skip the test: keep the chosen level and start a session."""

        self.store.mark_placement_complete()
        return self.start_session(fallback=View.DASHBOARD)

    def start_session(self, fallback: View = View.DASHBOARD) -> bool:
        token = self._begin_loading("loadingVocab")
        if token is None:
            return False

        profile = self.profile
        try:
            batch = self.content.request_vocabulary(
                profile.level, profile.daily_target, exclude=profile.learned_words
            )
        except ContentGenerationError as exc:
            if self.gate.is_current(token):
                self._fail("errorVocab", fallback, exc)
            return False
        finally:
            self._end_loading(token)

        if not self.gate.is_current(token):
            logger.info("Discarding stale vocabulary batch")
            return False

        learned = set(profile.learned_words)
        fresh = [word for word in batch if word.word not in learned]
        # When every word is already known, use what we have.
        self.words = fresh or list(batch)
        self.word_index = 0
        self.card_flipped = False
        self._go(View.LEARNING)
        return True

    @property
    def current_word(self) -> Optional[VocabWord]:
        if self.view is not View.LEARNING or not self.words:
            return None
        return self.words[self.word_index]

    @property
    def is_last_word(self) -> bool:
        return self.word_index >= len(self.words) - 1

    def progress(self) -> tuple:
        return self.word_index + 1, len(self.words)

    def flip_card(self) -> None:
        self.card_flipped = not self.card_flipped

    def previous_word(self) -> None:
        if self.view is View.LEARNING and self.word_index > 0:
            self.word_index -= 1
            self.card_flipped = False

    def next_word(self) -> None:
        if self.view is not View.LEARNING:
            return
        if not self.is_last_word:
            self.word_index += 1
            self.card_flipped = False
            return
        self.finish_session()

    def finish_session(self) -> bool:
        """Record the session's words in the ledger and fetch their story."""

        token = self._begin_loading("generatingStory")
        if token is None:
            return False

        session_words = [word.word for word in self.words]
        added = self.store.record_learned_words(session_words)
        logger.info("Session finished: %d new words, %d total", added, self.profile.total_learned)

        try:
            story = self.content.request_story(session_words, self.profile.level)
        except ContentGenerationError as exc:
            if self.gate.is_current(token):
                self.story = None
                self._fail("errorStory", View.DASHBOARD, exc)
            return False
        finally:
            self._end_loading(token)

        if not self.gate.is_current(token):
            logger.info("Discarding stale story")
            return False
        self.story = story
        self.show_translation = False
        self._go(View.STORY)
        return True

    # ------------------------------------------------------------------
    # Story
    def toggle_translation(self) -> None:
        self.show_translation = not self.show_translation

    def return_home(self) -> None:
        if self.audio is not None:
            self.audio.stop()
        self.gate.invalidate()
        self.loading = False
        self.loading_message = None
        self.story = None
        self.words = []
        self._go(View.DASHBOARD)
