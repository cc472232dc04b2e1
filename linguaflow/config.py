"""Configuration constants and enumerations for the LinguaFlow app."""
from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

DEFAULT_TEXT_MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-4o-mini")
DEFAULT_TTS_MODEL = os.getenv("OPENAI_TTS_MODEL", "tts-1")
DEFAULT_TTS_VOICE = os.getenv("OPENAI_TTS_VOICE", "alloy")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "30"))

DATA_DIR = Path(os.getenv("LINGUAFLOW_DATA_DIR", Path.home() / ".linguaflow"))
STORAGE_KEY = "linguaFlowSettings"
SETTINGS_PATH = DATA_DIR / f"{STORAGE_KEY}.json"

LOG_LEVEL = os.getenv("LINGUAFLOW_LOG_LEVEL", "INFO")

FONT_DIR = Path(os.getenv("FONT_DIR", "fonts"))
FONT_CJK_PATH = Path(os.getenv("FONT_PATH_CJK", FONT_DIR / "NotoSansSC-Regular.ttf"))

PDF_FONT_NAME = "AppSans"

# The speech endpoint's "pcm" format is fixed at 24 kHz, 16-bit, mono.
SAMPLE_RATE = 24_000
PCM_SCALE = 32768.0

DAILY_TARGET_MIN = 3
DAILY_TARGET_MAX = 20
DEFAULT_DAILY_TARGET = 5
DEFAULT_NICKNAME = "Student"

PLACEMENT_QUESTION_COUNT = 10
ADVANCED_THRESHOLD = 8
INTERMEDIATE_THRESHOLD = 4

# Most recent ledger words listed in the vocabulary prompt as "avoid".
MAX_EXCLUDED_WORDS = 50


class ProficiencyLevel(Enum):
    """Learner proficiency bands."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

    @property
    def curriculum_size(self) -> int:
        return LEVEL_TOTALS[self]


LEVEL_TOTALS = {
    ProficiencyLevel.BEGINNER: 500,
    ProficiencyLevel.INTERMEDIATE: 1500,
    ProficiencyLevel.ADVANCED: 3000,
}


class Theme(Enum):
    LIGHT = "light"
    DARK = "dark"


class UILanguage(Enum):
    """Languages available for the interface itself."""

    ENGLISH = "en"
    CHINESE = "zh"


class View(Enum):
    """Screens of the learning flow."""

    ONBOARDING = "onboarding"
    PLACEMENT = "placement"
    PLACEMENT_RESULT = "placement_result"
    DASHBOARD = "dashboard"
    LEARNING = "learning"
    STORY = "story"
