"""PDF rendering of a session story as a printable handout."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from . import config
from .models import StoryData
from .utils import EMPHASIS_MARKER, split_emphasis

logger = logging.getLogger(__name__)

MARGIN = 15
LINE_HEIGHT = 8
SECTION_SPACING = 4


class StoryPDF(FPDF):
    """FPDF with the app's header and page-number footer."""

    def __init__(self, title: str):
        super().__init__(format="A4")
        self.story_title = title
        self.set_auto_page_break(auto=True, margin=MARGIN)
        self.set_margins(MARGIN, MARGIN, MARGIN)

    def header(self) -> None:  # noqa: D401 - FPDF API
        self.set_font("Helvetica", "B", 9)
        self.set_text_color(120, 120, 120)
        self.cell(0, 6, f"LinguaFlow | {_latin(self.story_title)}", new_x=XPos.LMARGIN, new_y=YPos.NEXT, align="R")
        self.ln(2)

    def footer(self) -> None:  # noqa: D401 - FPDF API
        self.set_y(-15)
        self.set_font("Helvetica", size=8)
        self.set_text_color(140, 140, 140)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")


def _latin(text: str) -> str:
    """Core PDF fonts only cover latin-1; replace anything else."""

    return text.encode("latin-1", "replace").decode("latin-1")


class StoryPDFBuilder:
    """Create a handout with the story, its translation and the keywords.

    English text uses the built-in Helvetica so emphasised words can be set
    in bold. Chinese text needs a CJK TrueType font (``FONT_PATH_CJK``);
    without one the translation section is left out.
    """

    def __init__(self, cjk_font_path: Optional[Union[str, Path]] = config.FONT_CJK_PATH):
        self.cjk_font_path = str(cjk_font_path) if cjk_font_path else None
        self._has_cjk_font = False

    def build(self, story: StoryData) -> bytes:
        pdf = StoryPDF(title=story.title)
        self._register_fonts(pdf)
        pdf.add_page()
        self._write_title(pdf, story)
        self._write_story(pdf, story)
        self._write_translation(pdf, story)
        self._write_keywords(pdf, story)
        return bytes(pdf.output())

    # ------------------------------------------------------------------
    def _register_fonts(self, pdf: FPDF) -> None:
        if self.cjk_font_path and os.path.exists(self.cjk_font_path):
            pdf.add_font(config.PDF_FONT_NAME, "", self.cjk_font_path)
            self._has_cjk_font = True
        else:
            logger.info("No CJK font at %s; Chinese text is omitted from the PDF", self.cjk_font_path)

    def _heading(self, pdf: FPDF, text: str) -> None:
        pdf.set_font("Helvetica", "B", 14)
        pdf.set_text_color(25, 25, 25)
        pdf.cell(0, LINE_HEIGHT, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(SECTION_SPACING)

    def _cjk_cell(self, pdf: FPDF, text: str, size: int = 11) -> None:
        pdf.set_font(config.PDF_FONT_NAME, size=size)
        pdf.multi_cell(0, LINE_HEIGHT, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    # ------------------------------------------------------------------
    def _write_title(self, pdf: FPDF, story: StoryData) -> None:
        pdf.set_font("Helvetica", "B", 22)
        pdf.set_text_color(15, 15, 15)
        pdf.multi_cell(0, LINE_HEIGHT + 4, _latin(story.title), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(SECTION_SPACING)

    def _write_story(self, pdf: FPDF, story: StoryData) -> None:
        self._heading(pdf, "Story")
        pdf.set_font("Helvetica", size=12)
        pdf.set_text_color(35, 35, 35)
        for paragraph in story.paragraphs:
            # fpdf's markdown mode understands the same ** markers.
            text = "".join(
                f"{EMPHASIS_MARKER}{_latin(segment)}{EMPHASIS_MARKER}" if emphasised else _latin(segment)
                for segment, emphasised in split_emphasis(paragraph)
            )
            pdf.multi_cell(0, LINE_HEIGHT, text, markdown=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.ln(1)
        pdf.ln(SECTION_SPACING)

    def _write_translation(self, pdf: FPDF, story: StoryData) -> None:
        if not self._has_cjk_font or not story.chinese:
            return
        self._heading(pdf, "Translation")
        pdf.set_text_color(60, 60, 60)
        self._cjk_cell(pdf, story.chinese)
        pdf.ln(SECTION_SPACING)

    def _write_keywords(self, pdf: FPDF, story: StoryData) -> None:
        if not story.keywords:
            return
        self._heading(pdf, "Keywords")
        for keyword in story.keywords:
            pdf.set_font("Helvetica", "B", 11)
            pdf.set_text_color(30, 30, 30)
            if self._has_cjk_font:
                pdf.cell(50, LINE_HEIGHT, _latin(keyword.word))
                pdf.set_text_color(90, 90, 90)
                self._cjk_cell(pdf, keyword.definition, size=10)
            else:
                pdf.cell(0, LINE_HEIGHT, _latin(keyword.word), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
