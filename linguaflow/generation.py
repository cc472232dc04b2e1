"""Content pipeline for the LinguaFlow app: vocabulary, placement tests, stories and speech."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

import openai
from openai import OpenAI

from . import config
from .config import ProficiencyLevel
from .errors import ContentGenerationError, ResponseDecodeError, StoryGenerationError
from .models import PlacementQuestion, StoryData, StoryKeyword, VocabWord
from .schemas import (
    PLACEMENT_TEST_SCHEMA,
    STORY_SCHEMA,
    VOCAB_FIELDS,
    VOCABULARY_SCHEMA,
    response_format,
)
from .utils import has_balanced_emphasis, normalize_emphasis, safe_join

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)


class ContentClient:
    """Generate learning content through OpenAI models.

    Every request is a single blocking round-trip bounded by the client's
    timeout. There is no retry; callers decide whether to ask again.
    """

    def __init__(
        self,
        client: Optional[OpenAI],
        model: str = config.DEFAULT_TEXT_MODEL,
        tts_model: str = config.DEFAULT_TTS_MODEL,
        voice: str = config.DEFAULT_TTS_VOICE,
    ):
        self.client = client
        self.model = model
        self.tts_model = tts_model
        self.voice = voice

    @classmethod
    def from_api_key(cls, api_key: Optional[str], **kwargs) -> "ContentClient":
        client = OpenAI(api_key=api_key, timeout=config.REQUEST_TIMEOUT_SECONDS) if api_key else None
        return cls(client, **kwargs)

    @property
    def is_available(self) -> bool:
        return self.client is not None

    # ------------------------------------------------------------------
    def request_vocabulary(
        self,
        level: ProficiencyLevel,
        count: int,
        exclude: Sequence[str] = (),
    ) -> List[VocabWord]:
        """Return up to *count* new words for *level*.

        The model may return fewer words than asked for; that is not an error.
        """

        prompt = build_vocabulary_prompt(level, count, exclude)
        payload = self._complete_json("vocabulary", VOCABULARY_SCHEMA, prompt, ContentGenerationError)
        try:
            words = decode_vocabulary(payload)
        except ResponseDecodeError as exc:
            raise ContentGenerationError(f"Invalid vocabulary response: {exc}") from exc

        if len(words) < count:
            logger.info("Requested %d words, received %d", count, len(words))
        return words

    def request_placement_test(self) -> List[PlacementQuestion]:
        prompt = build_placement_prompt()
        payload = self._complete_json("placement_test", PLACEMENT_TEST_SCHEMA, prompt, ContentGenerationError)
        try:
            questions = decode_placement_test(payload)
        except ResponseDecodeError as exc:
            raise ContentGenerationError(f"Invalid placement test response: {exc}") from exc

        if len(questions) != config.PLACEMENT_QUESTION_COUNT:
            logger.warning(
                "Placement test has %d questions instead of %d",
                len(questions),
                config.PLACEMENT_QUESTION_COUNT,
            )
        return questions

    def request_story(self, words: Sequence[str], level: ProficiencyLevel) -> StoryData:
        prompt = build_story_prompt(words, level)
        payload = self._complete_json("story", STORY_SCHEMA, prompt, StoryGenerationError, temperature=0.8)
        try:
            return decode_story(payload)
        except ResponseDecodeError as exc:
            raise StoryGenerationError(f"Invalid story format: {exc}") from exc

    def request_speech(self, text: str) -> Optional[bytes]:
        """Return raw 24 kHz PCM16 mono audio for *text*, or ``None``.

        Speech is optional for the learning flow, so every failure is logged
        and reported as ``None`` instead of raised.
        """

        if not text or not text.strip():
            return None
        if not self.client:
            logger.warning("Speech requested without an OpenAI client")
            return None

        started = time.perf_counter()
        try:
            response = self.client.audio.speech.create(
                model=self.tts_model,
                voice=self.voice,
                input=text,
                response_format="pcm",
            )
            audio = _response_bytes(response)
        except openai.OpenAIError:
            logger.error("Speech synthesis failed for %d characters", len(text), exc_info=True)
            return None

        logger.info(
            "audio.speech.create (model: %s) returned %d bytes in %.0fms",
            self.tts_model,
            len(audio),
            (time.perf_counter() - started) * 1000,
        )
        if not audio:
            logger.error("No audio data in speech response")
            return None
        return audio

    # ------------------------------------------------------------------
    def _complete_json(
        self,
        name: str,
        schema: Dict[str, Any],
        prompt: str,
        error_type: type,
        temperature: float = 0.7,
    ) -> Any:
        if not self.client:
            raise error_type("OpenAI API key not configured")

        started = time.perf_counter()
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                response_format=response_format(name, schema),
                messages=[
                    {
                        "role": "system",
                        "content": (
                            "You create English learning material for Chinese-speaking learners. "
                            "Respond only with JSON that matches the requested schema."
                        ),
                    },
                    {"role": "user", "content": prompt},
                ],
            )
        except RETRYABLE_ERRORS as exc:
            logger.warning("%s request failed: %s", name, exc)
            raise error_type(f"Content service unavailable: {exc}", retryable=True) from exc
        except openai.OpenAIError as exc:
            logger.error("%s request failed", name, exc_info=True)
            raise error_type(f"Content request failed: {exc}") from exc

        logger.info(
            "chat.completions.create (model: %s, %s) took %.0fms",
            self.model,
            name,
            (time.perf_counter() - started) * 1000,
        )

        try:
            return parse_json_payload(completion.choices[0].message.content)
        except (ResponseDecodeError, IndexError, AttributeError) as exc:
            logger.error("Failed to parse %s JSON: %s", name, exc)
            raise error_type(f"Malformed {name} response") from exc


# ----------------------------------------------------------------------
# Prompts


def build_vocabulary_prompt(level: ProficiencyLevel, count: int, exclude: Sequence[str] = ()) -> str:
    recent = list(exclude)[-config.MAX_EXCLUDED_WORDS:]
    avoid_line = f"Do not use any of these words the learner already knows: {', '.join(recent)}." if recent else ""
    return safe_join(
        [
            f"Generate {count} English vocabulary words suitable for a {level.value} level learner.",
            "Include the word, IPA pronunciation, English definition, Chinese definition, "
            "an example sentence, and the Chinese translation of the word.",
            "Ensure the words are useful for daily conversation or academic contexts depending on the level.",
            avoid_line,
            'Return a JSON object of the form {"words": [...]}.',
        ]
    )


def build_placement_prompt() -> str:
    return f"""
Create a comprehensive {config.PLACEMENT_QUESTION_COUNT}-question English placement test.
The questions should progressively increase in difficulty from Beginner (questions 1-3)
to Intermediate (questions 4-7) to Advanced (questions 8-10).
Cover grammar, vocabulary, and reading comprehension logic.
Each question has at least two options and "correctIndex" is the 0-based index of the right option.
For each question, provide a short "explanation" of why the correct answer is right.
Return a JSON object of the form {{"questions": [...]}}.
""".strip()


def build_story_prompt(words: Iterable[str], level: ProficiencyLevel) -> str:
    word_list = ", ".join(words)
    return f"""
Write a short, engaging story (approx 100-150 words) tailored to a {level.value} English learner.
You MUST include the following words in the story: {word_list}.

Return a JSON object with the following fields:
- title: A creative title for the story.
- english: The English story text. Highlight the required words by wrapping them in markdown bold (**word**).
- chinese: A natural Chinese translation of the story.
- keywords: A list of the required words plus 2-3 other potentially difficult words from the story, with concise Chinese definitions.
""".strip()


# ----------------------------------------------------------------------
# Decoding


def parse_json_payload(raw: Optional[str]) -> Any:
    if not raw or not raw.strip():
        raise ResponseDecodeError("empty response")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ResponseDecodeError(f"invalid JSON: {exc}") from exc


def _unwrap_list(payload: Any, key: str) -> List[Any]:
    if isinstance(payload, dict):
        payload = payload.get(key)
    if not isinstance(payload, list):
        raise ResponseDecodeError(f"expected a list of {key}")
    return payload


def _required_text(item: Dict[str, Any], name: str, position: int) -> str:
    value = item.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ResponseDecodeError(f"item {position} is missing '{name}'")
    return value.strip()


def decode_vocabulary(payload: Any) -> List[VocabWord]:
    items = _unwrap_list(payload, "words")
    if not items:
        raise ResponseDecodeError("no words returned")

    words = []
    for position, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ResponseDecodeError(f"item {position} is not an object")
        words.append(VocabWord(**{name: _required_text(item, name, position) for name in VOCAB_FIELDS}))
    return words


def decode_placement_test(payload: Any) -> List[PlacementQuestion]:
    items = _unwrap_list(payload, "questions")
    if not items:
        raise ResponseDecodeError("no questions returned")

    questions = []
    for position, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ResponseDecodeError(f"question {position} is not an object")

        options = item.get("options")
        if not isinstance(options, list) or len(options) < 2:
            raise ResponseDecodeError(f"question {position} needs at least two options")
        if not all(isinstance(option, str) and option.strip() for option in options):
            raise ResponseDecodeError(f"question {position} has an empty option")

        correct_index = item.get("correctIndex")
        if isinstance(correct_index, bool) or not isinstance(correct_index, int):
            raise ResponseDecodeError(f"question {position} is missing 'correctIndex'")
        if not 0 <= correct_index < len(options):
            raise ResponseDecodeError(f"question {position} has correctIndex {correct_index} out of range")

        questions.append(
            PlacementQuestion(
                question=_required_text(item, "question", position),
                options=[option.strip() for option in options],
                correct_index=correct_index,
                explanation=_required_text(item, "explanation", position),
            )
        )
    return questions


def decode_story(payload: Any) -> StoryData:
    if not isinstance(payload, dict):
        raise ResponseDecodeError("expected a story object")

    title = _required_text(payload, "title", 1)
    english = _required_text(payload, "english", 1)
    chinese = _required_text(payload, "chinese", 1)

    if not has_balanced_emphasis(english):
        logger.warning("Story text has an unpaired emphasis marker; dropping it")
        english = normalize_emphasis(english)

    raw_keywords = payload.get("keywords")
    if not isinstance(raw_keywords, list):
        raise ResponseDecodeError("story is missing 'keywords'")
    keywords = []
    for position, item in enumerate(raw_keywords, start=1):
        if not isinstance(item, dict):
            raise ResponseDecodeError(f"keyword {position} is not an object")
        keywords.append(
            StoryKeyword(
                word=_required_text(item, "word", position),
                definition=_required_text(item, "definition", position),
            )
        )

    return StoryData(title=title, english=english, chinese=chinese, keywords=keywords)


def _response_bytes(response: Any) -> bytes:
    if isinstance(response, bytes):
        return response
    if hasattr(response, "content"):
        return response.content
    if hasattr(response, "read"):
        return response.read()
    return bytes(response)
