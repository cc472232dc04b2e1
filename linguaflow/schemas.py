"""
JSON schemas sent to the model as output contracts.

Strict structured output requires an object at the top level, so list
responses are wrapped in a single-key object (``words``, ``questions``).
"""
from __future__ import annotations

from typing import Any, Dict

VOCAB_FIELDS = (
    "word",
    "pronunciation",
    "definition_en",
    "definition_zh",
    "example_sentence",
    "translation_zh",
)

VOCAB_WORD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {name: {"type": "string"} for name in VOCAB_FIELDS},
    "required": list(VOCAB_FIELDS),
    "additionalProperties": False,
}

VOCABULARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "words": {"type": "array", "items": VOCAB_WORD_SCHEMA},
    },
    "required": ["words"],
    "additionalProperties": False,
}

PLACEMENT_QUESTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "question": {"type": "string"},
        "options": {"type": "array", "items": {"type": "string"}},
        "correctIndex": {"type": "integer"},
        "explanation": {"type": "string"},
    },
    "required": ["question", "options", "correctIndex", "explanation"],
    "additionalProperties": False,
}

PLACEMENT_TEST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "questions": {"type": "array", "items": PLACEMENT_QUESTION_SCHEMA},
    },
    "required": ["questions"],
    "additionalProperties": False,
}

STORY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "english": {"type": "string"},
        "chinese": {"type": "string"},
        "keywords": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "word": {"type": "string"},
                    "definition": {"type": "string"},
                },
                "required": ["word", "definition"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["title", "english", "chinese", "keywords"],
    "additionalProperties": False,
}


def response_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap *schema* in the ``response_format`` payload of chat completions."""

    return {
        "type": "json_schema",
        "json_schema": {"name": name, "schema": schema, "strict": True},
    }
