"""Speech playback for LinguaFlow: PCM decoding, clip cache and playback control."""
from __future__ import annotations

import base64
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

import numpy as np
import streamlit as st

from . import config

logger = logging.getLogger(__name__)

Synthesizer = Callable[[str], Optional[Union[bytes, str]]]


def decode_pcm16(data: bytes) -> np.ndarray:
    """Convert little-endian 16-bit PCM into float32 samples in [-1.0, 1.0)."""

    if len(data) % 2:
        logger.warning("PCM payload has an odd byte count; dropping the last byte")
        data = data[:-1]
    return np.frombuffer(data, dtype="<i2").astype(np.float32) / config.PCM_SCALE


def decode_base64_pcm16(payload: str) -> np.ndarray:
    return decode_pcm16(base64.b64decode(payload, validate=True))


def decode_speech_payload(payload: Union[bytes, str]) -> np.ndarray:
    """Decode raw PCM bytes, or the same bytes sent as base64 text."""

    if isinstance(payload, str):
        return decode_base64_pcm16(payload)
    return decode_pcm16(payload)


@dataclass(frozen=True)
class AudioClip:
    """A decoded speech clip, cached by the text it speaks."""

    text: str
    samples: np.ndarray
    sample_rate: int = config.SAMPLE_RATE

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate


class PlaybackHandle(Protocol):
    def stop(self) -> None: ...


class AudioSink(Protocol):
    """Something that can make a clip audible.

    ``play`` must return immediately and call ``on_finished`` once the clip
    reaches its natural end (never after ``stop`` on the returned handle).
    """

    sample_rate: int

    def play(self, clip: AudioClip, on_finished: Callable[[], None]) -> PlaybackHandle: ...


class PlaybackState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"


class PlaybackOutcome(Enum):
    STARTED = "started"
    STOPPED = "stopped"
    IGNORED = "ignored"
    FAILED = "failed"


class AudioEngine:
    """Single-flight speech playback with two capabilities.

    Clips (words, example sentences) are fire-and-forget: no handle is kept
    and nothing can stop them. The story stream is controllable: at most one
    is active, ``stop`` halts it and playing it again while it runs toggles
    it off. Decoded clips are cached by text for the life of the engine.
    """

    def __init__(self, synthesize: Synthesizer, sink: AudioSink):
        if sink.sample_rate != config.SAMPLE_RATE:
            raise ValueError(
                f"Audio sink runs at {sink.sample_rate} Hz but speech is {config.SAMPLE_RATE} Hz"
            )
        self._synthesize = synthesize
        self._sink = sink
        self._cache: Dict[str, AudioClip] = {}
        self._lock = threading.RLock()
        self._state = PlaybackState.IDLE
        self._current_text: Optional[str] = None
        self._current_is_story = False
        self._playback_id = 0
        self._story_handle: Optional[PlaybackHandle] = None
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def current_text(self) -> Optional[str]:
        return self._current_text

    @property
    def loading_text(self) -> Optional[str]:
        return self._current_text if self._state is PlaybackState.LOADING else None

    @property
    def is_playing_story(self) -> bool:
        return self._story_handle is not None

    def is_cached(self, text: str) -> bool:
        return text in self._cache

    # ------------------------------------------------------------------
    def play(self, text: str, story_mode: bool = False) -> PlaybackOutcome:
        if story_mode:
            return self.toggle_story(text)
        return self.play_clip(text)

    def play_clip(self, text: str) -> PlaybackOutcome:
        with self._lock:
            if self._state is PlaybackState.LOADING:
                return PlaybackOutcome.IGNORED
            self._stop_story_locked()
        return self._start(text, story_mode=False)

    def toggle_story(self, text: str) -> PlaybackOutcome:
        with self._lock:
            if self._state is PlaybackState.LOADING:
                return PlaybackOutcome.IGNORED
            if self._story_handle is not None:
                self._stop_story_locked()
                return PlaybackOutcome.STOPPED
        return self._start(text, story_mode=True)

    def stop(self) -> None:
        with self._lock:
            self._stop_story_locked()

    # ------------------------------------------------------------------
    def _start(self, text: str, story_mode: bool) -> PlaybackOutcome:
        with self._lock:
            clip = self._cache.get(text)
            if clip is not None:
                self._begin_playback_locked(clip, story_mode)
                return PlaybackOutcome.STARTED
            self._state = PlaybackState.LOADING
            self._current_text = text
            self._current_is_story = story_mode
            self.last_error = None

        try:
            audio = self._synthesize(text)
        except Exception:
            logger.error("Speech synthesis raised", exc_info=True)
            audio = None

        samples = None
        if audio:
            try:
                samples = decode_speech_payload(audio)
            except ValueError:
                logger.error("Speech payload could not be decoded", exc_info=True)

        with self._lock:
            if samples is None:
                self.last_error = "Could not play audio. Please check connection."
                self._reset_locked()
                return PlaybackOutcome.FAILED
            clip = AudioClip(text=text, samples=samples)
            self._cache[text] = clip
            self._begin_playback_locked(clip, story_mode)
            return PlaybackOutcome.STARTED

    def _begin_playback_locked(self, clip: AudioClip, story_mode: bool) -> None:
        self._playback_id += 1
        playback_id = self._playback_id
        self._state = PlaybackState.PLAYING
        self._current_text = clip.text
        self._current_is_story = story_mode
        handle = self._sink.play(clip, lambda: self._on_finished(playback_id))
        if story_mode:
            self._story_handle = handle
        logger.debug("Playing %.1fs clip (story=%s)", clip.duration_seconds, story_mode)

    def _on_finished(self, playback_id: int) -> None:
        with self._lock:
            if playback_id != self._playback_id:
                return
            self._reset_locked()

    def _stop_story_locked(self) -> None:
        if self._story_handle is None:
            return
        self._story_handle.stop()
        self._story_handle = None
        if self._current_is_story and self._state is PlaybackState.PLAYING:
            # A stopped stream never reports completion; retire its id.
            self._playback_id += 1
            self._reset_locked()

    def _reset_locked(self) -> None:
        self._state = PlaybackState.IDLE
        self._current_text = None
        self._current_is_story = False
        self._story_handle = None


class _TimerHandle:
    def __init__(self, sink: "StreamlitAudioSink", key: int, timer: threading.Timer):
        self._sink = sink
        self._key = key
        self._timer = timer

    def stop(self) -> None:
        self._timer.cancel()
        self._sink._release(self._key)


class StreamlitAudioSink:
    """Queue clips for the page to render as autoplaying ``st.audio`` players.

    The browser does the actual playback; completion is reported after the
    clip's duration by a timer thread.
    """

    sample_rate = config.SAMPLE_RATE

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Dict[int, AudioClip] = {}
        self._next_key = 0

    def play(self, clip: AudioClip, on_finished: Callable[[], None]) -> PlaybackHandle:
        with self._lock:
            self._next_key += 1
            key = self._next_key
            self._active[key] = clip

        def finished() -> None:
            self._release(key)
            on_finished()

        timer = threading.Timer(clip.duration_seconds, finished)
        timer.daemon = True
        timer.start()
        return _TimerHandle(self, key, timer)

    def active_clips(self) -> List[tuple]:
        with self._lock:
            return sorted(self._active.items())

    def _release(self, key: int) -> None:
        with self._lock:
            self._active.pop(key, None)

    def render(self, slot: Any = st) -> None:
        """Emit an audio player for every clip that is still playing.

        *slot* should be a container created at a fixed place on the page. A
        player that changes position between reruns is mounted again by the
        browser and starts over.
        """

        for _, clip in self.active_clips():
            slot.audio(clip.samples, sample_rate=clip.sample_rate, autoplay=True)
