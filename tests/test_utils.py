"""
Tests for the text and number helpers.
"""

import pytest
from hypothesis import given, strategies as st

from linguaflow.utils import (
    clamp,
    clamp_daily_target,
    has_balanced_emphasis,
    normalize_emphasis,
    progress_percentage,
    split_emphasis,
    strip_emphasis,
    unique_in_order,
)


class TestEmphasis:
    def test_split_marks_paired_segments(self):
        assert split_emphasis("I saw a **river** and a **bright** sky.") == [
            ("I saw a ", False),
            ("river", True),
            (" and a ", False),
            ("bright", True),
            (" sky.", False),
        ]

    def test_plain_text_is_one_segment(self):
        assert split_emphasis("no markers here") == [("no markers here", False)]

    def test_dangling_marker_is_removed(self):
        assert split_emphasis("a **river** and **sky") == [("a ", False), ("river", True), (" and sky", False)]

    def test_strip_for_speech(self):
        assert strip_emphasis("The **harbor** was **quiet**.") == "The harbor was quiet."

    def test_normalize_keeps_pairs_only(self):
        assert normalize_emphasis("The **harbor** was **quiet.") == "The **harbor** was quiet."

    @given(st.text(alphabet="ab* ", max_size=40))
    def test_normalized_text_is_balanced(self, text):
        assert has_balanced_emphasis(normalize_emphasis(text))

    @given(st.text(alphabet="ab* ", max_size=40))
    def test_stripped_text_has_no_pairs(self, text):
        stripped = strip_emphasis(text)
        assert all(not emphasised for _, emphasised in split_emphasis(stripped))


class TestNumbers:
    @pytest.mark.parametrize("value, expected", [(-4, 3), (3, 3), (11, 11), (20, 20), (99, 20)])
    def test_daily_target_bounds(self, value, expected):
        assert clamp_daily_target(value) == expected

    def test_clamp(self):
        assert clamp(5, 0, 1) == 1
        assert clamp(-5, 0, 1) == 0

    @pytest.mark.parametrize(
        "current, total, expected",
        [(0, 500, 0.0), (250, 500, 50.0), (900, 500, 100.0), (3, 0, 0.0)],
    )
    def test_progress_percentage(self, current, total, expected):
        assert progress_percentage(current, total) == pytest.approx(expected)


def test_unique_in_order():
    assert unique_in_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
