"""
Shared fixtures and fakes for the LinguaFlow tests.

The fakes stand in for the OpenAI client, the content client used by the
learning session and the audio sink used by the playback engine.
"""

import json
from types import SimpleNamespace
from typing import List, Optional

import pytest
from hypothesis import settings

from linguaflow.config import ProficiencyLevel
from linguaflow.errors import ContentGenerationError, StoryGenerationError
from linguaflow.models import PlacementQuestion, StoryData, StoryKeyword, VocabWord
from linguaflow.settings import SettingsStore

settings.register_profile("linguaflow", max_examples=100, deadline=None)
settings.load_profile("linguaflow")


def make_word(word: str) -> VocabWord:
    return VocabWord(
        word=word,
        pronunciation=f"/{word}/",
        definition_en=f"meaning of {word}",
        definition_zh=f"{word} 的意思",
        example_sentence=f"This is an example with {word}.",
        translation_zh=f"{word}译",
    )


def make_questions(count: int = 10, correct_index: int = 0) -> List[PlacementQuestion]:
    return [
        PlacementQuestion(
            question=f"Question {number}?",
            options=["right", "wrong", "also wrong", "nope"],
            correct_index=correct_index,
            explanation=f"Because of rule {number}.",
        )
        for number in range(1, count + 1)
    ]


class FakeCompletions:
    """Records ``chat.completions.create`` calls and replays canned content."""

    def __init__(self, content: Optional[str] = None, error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content, refusal=None)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeSpeech:
    def __init__(self, audio: bytes = b"", error: Optional[Exception] = None):
        self.audio = audio
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.audio)


class FakeOpenAI:
    def __init__(self, content=None, error=None, audio: bytes = b"", speech_error=None):
        if content is not None and not isinstance(content, str):
            content = json.dumps(content)
        self.completions = FakeCompletions(content, error)
        self.speech = FakeSpeech(audio, speech_error)
        self.chat = SimpleNamespace(completions=self.completions)
        self.audio = SimpleNamespace(speech=self.speech)


class FakeContent:
    """Content source for the learning session with scripted results."""

    def __init__(self):
        self.vocabulary: List[VocabWord] = [make_word(w) for w in ("apple", "river", "bright")]
        self.questions: List[PlacementQuestion] = make_questions()
        self.story = StoryData(
            title="A Day Out",
            english="We ate an **apple** by the **river** on a **bright** day.",
            chinese="我们在明亮的日子里在河边吃了一个苹果。",
            keywords=[StoryKeyword("apple", "苹果")],
        )
        self.vocabulary_error: Optional[Exception] = None
        self.placement_error: Optional[Exception] = None
        self.story_error: Optional[Exception] = None
        self.vocabulary_calls = []
        self.story_calls = []
        self.placement_calls = 0
        self.on_request = None

    def request_vocabulary(self, level: ProficiencyLevel, count: int, exclude=()):
        self.vocabulary_calls.append((level, count, list(exclude)))
        if self.on_request:
            self.on_request()
        if self.vocabulary_error:
            raise self.vocabulary_error
        return list(self.vocabulary)

    def request_placement_test(self):
        self.placement_calls += 1
        if self.on_request:
            self.on_request()
        if self.placement_error:
            raise self.placement_error
        return list(self.questions)

    def request_story(self, words, level):
        self.story_calls.append((list(words), level))
        if self.on_request:
            self.on_request()
        if self.story_error:
            raise self.story_error
        return self.story


class FakeHandle:
    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


class FakeSink:
    """Audio sink that records clips and lets tests finish them on demand."""

    def __init__(self, sample_rate: int = 24_000):
        self.sample_rate = sample_rate
        self.played = []

    def play(self, clip, on_finished):
        handle = FakeHandle()
        self.played.append((clip, on_finished, handle))
        return handle

    def finish(self, index: int = -1):
        self.played[index][1]()


class CountingSynth:
    def __init__(self, audio: Optional[bytes] = b"\x00\x00\xff\x7f\x00\x80"):
        self.audio = audio
        self.calls = []

    def __call__(self, text: str):
        self.calls.append(text)
        return self.audio


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "linguaFlowSettings.json"


@pytest.fixture
def store(settings_path):
    store = SettingsStore(settings_path)
    store.load()
    return store


@pytest.fixture
def content():
    return FakeContent()


@pytest.fixture
def content_errors():
    return SimpleNamespace(
        generic=ContentGenerationError("boom"),
        timeout=ContentGenerationError("timed out", retryable=True),
        story=StoryGenerationError("no story"),
    )
