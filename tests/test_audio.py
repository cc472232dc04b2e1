"""
Tests for PCM decoding and the playback engine.
"""

import base64
import struct

import numpy as np
import pytest
from hypothesis import given, strategies as st

from conftest import CountingSynth, FakeSink
from linguaflow.audio import (
    AudioEngine,
    PlaybackOutcome,
    PlaybackState,
    StreamlitAudioSink,
    decode_pcm16,
    decode_speech_payload,
)


class RecordingSlot:
    def __init__(self):
        self.calls = []

    def audio(self, data, **kwargs):
        self.calls.append(kwargs)


class TestDecoding:
    def test_known_samples(self):
        data = struct.pack("<4h", 0, 16384, -32768, 32767)
        samples = decode_pcm16(data)
        assert samples.dtype == np.float32
        assert samples.tolist() == pytest.approx([0.0, 0.5, -1.0, 32767 / 32768.0])

    def test_base64_payload(self):
        data = struct.pack("<2h", -16384, 8192)
        samples = decode_speech_payload(base64.b64encode(data).decode("ascii"))
        assert samples.tolist() == pytest.approx([-0.5, 0.25])

    def test_odd_trailing_byte_is_dropped(self):
        assert len(decode_pcm16(b"\x00\x40\x01")) == 1

    @given(st.lists(st.integers(min_value=-32768, max_value=32767), max_size=64))
    def test_samples_stay_in_range(self, values):
        samples = decode_pcm16(struct.pack(f"<{len(values)}h", *values))
        assert len(samples) == len(values)
        assert np.all(samples >= -1.0)
        assert np.all(samples < 1.0)


class TestEngine:
    def test_sample_rate_mismatch_is_rejected(self):
        with pytest.raises(ValueError):
            AudioEngine(CountingSynth(), FakeSink(sample_rate=44_100))

    def test_second_request_is_served_from_cache(self):
        synth, sink = CountingSynth(), FakeSink()
        engine = AudioEngine(synth, sink)

        assert engine.play("apple") is PlaybackOutcome.STARTED
        assert engine.play("apple") is PlaybackOutcome.STARTED
        assert synth.calls == ["apple"]
        assert len(sink.played) == 2
        assert engine.is_cached("apple")

    def test_distinct_texts_are_synthesised_separately(self):
        synth = CountingSynth()
        engine = AudioEngine(synth, FakeSink())
        engine.play("apple")
        engine.play("river")
        assert synth.calls == ["apple", "river"]

    def test_failed_synthesis_returns_to_idle(self):
        sink = FakeSink()
        engine = AudioEngine(CountingSynth(audio=None), sink)

        assert engine.play("apple") is PlaybackOutcome.FAILED
        assert engine.state is PlaybackState.IDLE
        assert engine.last_error
        assert sink.played == []
        assert not engine.is_cached("apple")

    def test_base64_speech_is_played(self):
        sink = FakeSink()
        payload = base64.b64encode(struct.pack("<2h", 0, 16384)).decode("ascii")
        engine = AudioEngine(CountingSynth(audio=payload), sink)
        assert engine.play("apple") is PlaybackOutcome.STARTED
        assert sink.played[0][0].samples.tolist() == pytest.approx([0.0, 0.5])

    def test_undecodable_speech_is_a_failure(self):
        engine = AudioEngine(CountingSynth(audio="not base64!"), FakeSink())
        assert engine.play("apple") is PlaybackOutcome.FAILED
        assert engine.state is PlaybackState.IDLE

    def test_synthesiser_exception_is_a_failure(self):
        def explode(text):
            raise RuntimeError("network down")

        engine = AudioEngine(explode, FakeSink())
        assert engine.play("apple") is PlaybackOutcome.FAILED
        assert engine.state is PlaybackState.IDLE

    def test_requests_while_loading_are_ignored(self):
        sink = FakeSink()
        outcomes = []

        def synth(text):
            outcomes.append(engine.play("other"))
            outcomes.append(engine.play("story", story_mode=True))
            return b"\x00\x00"

        engine = AudioEngine(synth, sink)
        assert engine.play("apple") is PlaybackOutcome.STARTED
        assert outcomes == [PlaybackOutcome.IGNORED, PlaybackOutcome.IGNORED]
        assert len(sink.played) == 1

    def test_natural_end_returns_to_idle(self):
        sink = FakeSink()
        engine = AudioEngine(CountingSynth(), sink)
        engine.play("apple")
        assert engine.state is PlaybackState.PLAYING
        sink.finish()
        assert engine.state is PlaybackState.IDLE

    def test_stale_completion_does_not_end_newer_playback(self):
        sink = FakeSink()
        engine = AudioEngine(CountingSynth(), sink)
        engine.play("apple")
        engine.play("river")
        sink.finish(0)
        assert engine.state is PlaybackState.PLAYING
        assert engine.current_text == "river"


class TestStoryPlayback:
    def test_toggle_stops_then_restarts_from_beginning(self):
        synth, sink = CountingSynth(), FakeSink()
        engine = AudioEngine(synth, sink)

        assert engine.play("story", story_mode=True) is PlaybackOutcome.STARTED
        assert engine.is_playing_story
        first_handle = sink.played[0][2]

        assert engine.play("story", story_mode=True) is PlaybackOutcome.STOPPED
        assert first_handle.stopped
        assert not engine.is_playing_story
        assert engine.state is PlaybackState.IDLE

        assert engine.play("story", story_mode=True) is PlaybackOutcome.STARTED
        assert len(sink.played) == 2
        assert sink.played[1][2] is not first_handle
        assert synth.calls == ["story"]

    def test_stop_is_idempotent(self):
        engine = AudioEngine(CountingSynth(), FakeSink())
        engine.stop()
        engine.play("story", story_mode=True)
        engine.stop()
        engine.stop()
        assert engine.state is PlaybackState.IDLE
        assert not engine.is_playing_story

    def test_stopped_story_ignores_late_completion(self):
        sink = FakeSink()
        engine = AudioEngine(CountingSynth(), sink)
        engine.play("story", story_mode=True)
        engine.stop()
        engine.play("apple")
        sink.finish(0)
        assert engine.current_text == "apple"

    def test_clip_stops_running_story(self):
        sink = FakeSink()
        engine = AudioEngine(CountingSynth(), sink)
        engine.play("story", story_mode=True)
        engine.play("apple")
        assert sink.played[0][2].stopped
        assert not engine.is_playing_story

    def test_clips_are_never_stopped(self):
        sink = FakeSink()
        engine = AudioEngine(CountingSynth(), sink)
        engine.play("apple")
        engine.play("story", story_mode=True)
        engine.stop()
        assert not sink.played[0][2].stopped
        assert sink.played[1][2].stopped

    def test_story_end_clears_story_flag(self):
        sink = FakeSink()
        engine = AudioEngine(CountingSynth(), sink)
        engine.play("story", story_mode=True)
        sink.finish()
        assert not engine.is_playing_story
        assert engine.state is PlaybackState.IDLE


class TestStreamlitSink:
    def test_players_render_into_given_slot(self):
        sink = StreamlitAudioSink()
        engine = AudioEngine(CountingSynth(audio=b"\x00\x00" * 24_000 * 5), sink)
        engine.play("story", story_mode=True)

        slot = RecordingSlot()
        sink.render(slot)
        sink.render(slot)
        engine.stop()
        sink.render(slot)

        assert len(slot.calls) == 2
        assert all(kwargs == {"sample_rate": 24_000, "autoplay": True} for kwargs in slot.calls)

    def test_stop_removes_clip(self):
        sink = StreamlitAudioSink()
        engine = AudioEngine(CountingSynth(audio=b"\x00\x00" * 24_000 * 5), sink)
        engine.play("story", story_mode=True)
        assert len(sink.active_clips()) == 1
        engine.stop()
        assert sink.active_clips() == []
