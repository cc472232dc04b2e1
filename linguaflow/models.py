"""Data models used by the LinguaFlow application."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import config
from .config import ProficiencyLevel, Theme
from .utils import clamp_daily_target, unique_in_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VocabWord:
    """One flashcard."""

    word: str
    pronunciation: str
    definition_en: str
    definition_zh: str
    example_sentence: str
    translation_zh: str


@dataclass(frozen=True)
class PlacementQuestion:
    """A multiple choice item of the placement test."""

    question: str
    options: List[str]
    correct_index: int
    explanation: str

    def is_correct(self, answer_index: int) -> bool:
        return answer_index == self.correct_index

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]


@dataclass(frozen=True)
class StoryKeyword:
    word: str
    definition: str


@dataclass
class StoryData:
    """A generated story built around the words of one session."""

    title: str
    english: str
    chinese: str
    keywords: List[StoryKeyword] = field(default_factory=list)

    @property
    def paragraphs(self) -> List[str]:
        return [part for part in self.english.split("\n") if part.strip()]


@dataclass(frozen=True)
class PlacementReviewItem:
    """A placement question paired with the learner's answer."""

    number: int
    question: PlacementQuestion
    chosen_index: Optional[int]

    @property
    def is_correct(self) -> bool:
        return self.chosen_index is not None and self.question.is_correct(self.chosen_index)

    @property
    def chosen_option(self) -> Optional[str]:
        if self.chosen_index is None or not 0 <= self.chosen_index < len(self.question.options):
            return None
        return self.question.options[self.chosen_index]


@dataclass
class UserProfile:
    """Persisted learner state.

    The JSON representation keeps the camelCase keys of the stored record so
    existing settings files keep loading.
    """

    level: ProficiencyLevel = ProficiencyLevel.BEGINNER
    daily_target: int = config.DEFAULT_DAILY_TARGET
    has_completed_placement: bool = False
    nickname: str = config.DEFAULT_NICKNAME
    theme: Theme = Theme.LIGHT
    learned_words: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.daily_target = clamp_daily_target(self.daily_target)
        self.learned_words = unique_in_order(self.learned_words)

    @property
    def total_learned(self) -> int:
        return len(self.learned_words)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "dailyTarget": self.daily_target,
            "hasCompletedPlacement": self.has_completed_placement,
            "nickname": self.nickname,
            "theme": self.theme.value,
            "learnedWords": list(self.learned_words),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "UserProfile":
        """Build a profile from a stored record.

        Missing keys keep their defaults and a field holding an unusable value
        is reset to its default, so a partially valid record still loads.
        """

        profile = cls()
        if not isinstance(payload, dict):
            logger.warning("Stored settings are not an object; using defaults")
            return profile

        if "level" in payload:
            try:
                profile.level = ProficiencyLevel(payload["level"])
            except ValueError:
                logger.warning("Ignoring unknown level %r", payload["level"])

        target = payload.get("dailyTarget")
        if isinstance(target, int) and not isinstance(target, bool):
            profile.daily_target = clamp_daily_target(target)

        completed = payload.get("hasCompletedPlacement")
        if isinstance(completed, bool):
            profile.has_completed_placement = completed

        nickname = payload.get("nickname")
        if isinstance(nickname, str) and nickname.strip():
            profile.nickname = nickname

        if "theme" in payload:
            try:
                profile.theme = Theme(payload["theme"])
            except ValueError:
                logger.warning("Ignoring unknown theme %r", payload["theme"])

        words = payload.get("learnedWords")
        if isinstance(words, list):
            profile.learned_words = unique_in_order(w for w in words if isinstance(w, str))

        return profile
