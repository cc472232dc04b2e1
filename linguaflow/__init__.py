"""Core package for the LinguaFlow application."""

from . import audio, config, errors, generation, i18n, models, schemas, session, settings, story_pdf, utils

__all__ = [
    "audio",
    "config",
    "errors",
    "generation",
    "i18n",
    "models",
    "schemas",
    "session",
    "settings",
    "story_pdf",
    "utils",
]
