"""
Tests for the printable story handout.
"""

from linguaflow.models import StoryData, StoryKeyword
from linguaflow.story_pdf import StoryPDF, StoryPDFBuilder

STORY = StoryData(
    title="The Harbor",
    english="The **harbor** was quiet.\nA **gull** flew past the café.",
    chinese="港口很安静。",
    keywords=[StoryKeyword("harbor", "港口"), StoryKeyword("gull", "海鸥")],
)


def test_builds_pdf_without_cjk_font(tmp_path):
    data = StoryPDFBuilder(cjk_font_path=tmp_path / "missing.ttf").build(STORY)
    assert data.startswith(b"%PDF")


def test_builds_pdf_for_story_without_keywords():
    story = StoryData(title="Short", english="Just **one** line.", chinese="")
    data = StoryPDFBuilder(cjk_font_path=None).build(story)
    assert data.startswith(b"%PDF")


def test_header_names_the_story():
    pdf = StoryPDF(title="The Harbor")
    pdf.set_compression(False)
    pdf.add_page()
    assert b"LinguaFlow | The Harbor" in bytes(pdf.output())
