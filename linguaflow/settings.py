"""Persisted learner settings.

The profile is one JSON record on disk. It is loaded once at startup and the
whole record is rewritten after every change; there is no partial update and
no migration scheme. A missing or unreadable file yields the defaults.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from . import config
from .config import ProficiencyLevel, Theme
from .models import UserProfile
from .utils import clamp_daily_target, unique_in_order

logger = logging.getLogger(__name__)


class SettingsStore:
    """Load, mutate and flush the single :class:`UserProfile` record."""

    def __init__(self, path: Union[str, Path] = config.SETTINGS_PATH):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._profile: Optional[UserProfile] = None

    @property
    def is_loaded(self) -> bool:
        return self._profile is not None

    @property
    def profile(self) -> UserProfile:
        if self._profile is None:
            raise RuntimeError("Settings have not been loaded yet")
        return self._profile

    # ------------------------------------------------------------------
    def load(self) -> UserProfile:
        with self._lock:
            self._profile = self._read()
            return self._profile

    def _read(self) -> UserProfile:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No settings at %s; starting with defaults", self.path)
            return UserProfile()
        except OSError:
            logger.warning("Could not read settings at %s; using defaults", self.path, exc_info=True)
            return UserProfile()

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to load settings (%s); using defaults", exc)
            return UserProfile()
        return UserProfile.from_dict(payload)

    def save(self, profile: Optional[UserProfile] = None) -> None:
        """Write *profile* (the current one by default) to disk atomically."""

        with self._lock:
            profile = profile if profile is not None else self.profile
            data = json.dumps(profile.to_dict(), ensure_ascii=False, indent=2)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".settings-", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(data)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    # ------------------------------------------------------------------
    def mutate(self, change: Callable[[UserProfile], UserProfile]) -> UserProfile:
        """Apply *change* and flush it, as one atomic step.

        The new profile only replaces the current one once it is on disk. If
        the write fails the change is dropped and the current profile is kept.
        """

        with self._lock:
            updated = change(self.profile)
            try:
                self.save(updated)
            except OSError:
                logger.error("Could not save settings to %s; change discarded", self.path, exc_info=True)
                return self.profile
            self._profile = updated
            return updated

    def update(self, **fields) -> UserProfile:
        return self.mutate(lambda profile: replace(profile, **fields))

    def set_level(self, level: ProficiencyLevel) -> UserProfile:
        return self.update(level=level)

    def set_daily_target(self, target: int) -> UserProfile:
        return self.update(daily_target=clamp_daily_target(target))

    def adjust_daily_target(self, delta: int) -> UserProfile:
        return self.mutate(
            lambda profile: replace(profile, daily_target=clamp_daily_target(profile.daily_target + delta))
        )

    def set_nickname(self, nickname: str) -> UserProfile:
        nickname = nickname.strip()
        if not nickname:
            return self.profile
        return self.update(nickname=nickname)

    def toggle_theme(self) -> UserProfile:
        return self.mutate(
            lambda profile: replace(
                profile,
                theme=Theme.LIGHT if profile.theme is Theme.DARK else Theme.DARK,
            )
        )

    def mark_placement_complete(self) -> UserProfile:
        return self.update(has_completed_placement=True)

    def record_learned_words(self, words: Iterable[str]) -> int:
        """Add *words* to the ledger and return how many were new."""

        with self._lock:
            before = self.profile.total_learned
            profile = self.mutate(
                lambda current: replace(
                    current,
                    learned_words=unique_in_order([*current.learned_words, *words]),
                )
            )
            return profile.total_learned - before
