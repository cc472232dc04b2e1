"""
Tests for the data models.
"""

from linguaflow import config
from linguaflow.config import ProficiencyLevel, Theme
from linguaflow.models import PlacementQuestion, PlacementReviewItem, StoryData, UserProfile


def test_profile_clamps_and_dedupes():
    profile = UserProfile(daily_target=1, learned_words=["a", "b", "a"])
    assert profile.daily_target == config.DAILY_TARGET_MIN
    assert profile.learned_words == ["a", "b"]
    assert profile.total_learned == 2


def test_profile_from_dict_resets_bad_fields():
    profile = UserProfile.from_dict(
        {
            "level": "Expert",
            "dailyTarget": True,
            "hasCompletedPlacement": "yes",
            "nickname": "",
            "theme": "dark",
            "learnedWords": ["tree", 3, "tree", "leaf"],
        }
    )
    assert profile.level is ProficiencyLevel.BEGINNER
    assert profile.daily_target == config.DEFAULT_DAILY_TARGET
    assert profile.has_completed_placement is False
    assert profile.nickname == config.DEFAULT_NICKNAME
    assert profile.theme is Theme.DARK
    assert profile.learned_words == ["tree", "leaf"]


def test_profile_round_trip():
    profile = UserProfile(ProficiencyLevel.ADVANCED, 9, True, "Mei", Theme.DARK, ["sky"])
    assert UserProfile.from_dict(profile.to_dict()) == profile


def test_review_item_without_answer():
    question = PlacementQuestion("Pick one", ["x", "y"], 1, "y is right")
    item = PlacementReviewItem(number=1, question=question, chosen_index=None)
    assert not item.is_correct
    assert item.chosen_option is None
    assert question.correct_option == "y"


def test_story_paragraphs_skip_blank_lines():
    story = StoryData("T", "First line.\n\nSecond line.", "中文")
    assert story.paragraphs == ["First line.", "Second line."]
