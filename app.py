"""Streamlit entrypoint for the LinguaFlow vocabulary trainer."""
from __future__ import annotations

import logging
import os
from typing import Optional

import streamlit as st

from linguaflow import config
from linguaflow.audio import AudioEngine, PlaybackOutcome, StreamlitAudioSink
from linguaflow.config import ProficiencyLevel, Theme, UILanguage, View
from linguaflow.generation import ContentClient
from linguaflow.i18n import level_label, translate
from linguaflow.models import StoryData, StoryKeyword
from linguaflow.session import LearningSession
from linguaflow.settings import SettingsStore
from linguaflow.story_pdf import StoryPDFBuilder
from linguaflow.utils import progress_percentage, split_emphasis, strip_emphasis

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DARK_THEME_CSS = """
<style>
.stApp { background-color: #030712; color: #f9fafb; }
</style>
"""


def _get_api_key() -> str:
    """Return the OpenAI key from the environment or Streamlit secrets."""

    api_key = os.getenv("OPENAI_API_KEY", "")
    try:
        # Streamlit secrets may store the key at the root or within an "openai" mapping.
        if not api_key:
            api_key = st.secrets.get("OPENAI_API_KEY", "")
        if not api_key and "openai" in st.secrets:
            api_key = st.secrets["openai"].get("api_key", "")
    except FileNotFoundError:
        pass
    return api_key


@st.cache_resource
def _get_settings_store() -> SettingsStore:
    store = SettingsStore(config.SETTINGS_PATH)
    store.load()
    return store


@st.cache_resource
def _get_content_client() -> ContentClient:
    return ContentClient.from_api_key(_get_api_key())


def _init_state() -> None:
    if "session" in st.session_state:
        return
    content = _get_content_client()
    sink = StreamlitAudioSink()
    engine = AudioEngine(content.request_speech, sink)
    session = LearningSession(_get_settings_store(), content, audio=engine)
    session.start()

    st.session_state.session = session
    st.session_state.audio_sink = sink
    st.session_state.audio = engine
    st.session_state.ui_language = UILanguage.CHINESE
    st.session_state.active_tab = "learning"


def t(key: str, **values) -> str:
    return translate(st.session_state.ui_language, key, **values)


def _session() -> LearningSession:
    return st.session_state.session


def _play(text: str, story_mode: bool = False) -> PlaybackOutcome:
    engine: AudioEngine = st.session_state.audio
    outcome = engine.play(text, story_mode=story_mode)
    if outcome is PlaybackOutcome.FAILED:
        st.warning(t("audioError"))
    return outcome


def _run(action, message_key: str) -> None:
    """Run a content request under a spinner, then redraw the page."""

    with st.spinner(t(message_key)):
        action()
    st.rerun()


def _show_notice(session: LearningSession) -> None:
    notice = session.consume_notice()
    if notice:
        st.error(t(notice))
        if session.notice_retryable:
            st.caption(t("retryHint"))


def _daily_target_stepper(value: int, key: str) -> int:
    """Render -/+ buttons around *value* and return the requested change."""

    cols = st.columns([1, 2, 1])
    delta = 0
    if cols[0].button("−", key=f"{key}-minus", disabled=value <= config.DAILY_TARGET_MIN):
        delta = -1
    cols[1].metric(t("dailyGoal"), f"{value} {t('words')}")
    if cols[2].button("+", key=f"{key}-plus", disabled=value >= config.DAILY_TARGET_MAX):
        delta = 1
    return delta


# ----------------------------------------------------------------------
# Views


def _render_onboarding(session: LearningSession) -> None:
    st.title(t("appTitle"))
    st.write(t("subtitle"))

    with st.container(border=True):
        st.subheader(t("placementTitle"))
        st.caption(t("placementSubtitle"))
        if st.button(t("takePlacement"), type="primary"):
            _run(session.start_placement, "loadingVocab")

    st.markdown(f"**{t('selectLevel')}**")
    st.caption(t("skipPlacement"))
    cols = st.columns(len(ProficiencyLevel))
    for col, level in zip(cols, ProficiencyLevel):
        selected = session.profile.level is level
        if col.button(level_label(st.session_state.ui_language, level), type="primary" if selected else "secondary"):
            session.store.set_level(level)
            st.rerun()

    delta = _daily_target_stepper(session.profile.daily_target, "onboarding-target")
    if delta:
        session.store.adjust_daily_target(delta)
        st.rerun()

    if st.button(t("startLearning"), type="primary", use_container_width=True):
        _run(session.start_learning_from_onboarding, "loadingVocab")


def _render_placement(session: LearningSession) -> None:
    question = session.current_question
    if question is None:
        return
    total = len(session.questions)
    st.caption(f"{t('question')} {session.placement_index + 1} / {total}")
    st.progress(session.placement_index / total)
    st.subheader(question.question)
    for idx, option in enumerate(question.options):
        if st.button(option, key=f"placement-{session.placement_index}-{idx}", use_container_width=True):
            session.answer_placement(idx)
            st.rerun()


def _render_placement_result(session: LearningSession) -> None:
    language = st.session_state.ui_language
    st.title(t("testComplete"))
    st.markdown(f"{t('yourScore')}: **{session.placement_score}/{len(session.questions)}**")
    st.metric(t("recommendedLevel"), level_label(language, session.recommended_level))

    with st.expander(t("reviewAnswers")):
        for item in session.placement_review():
            icon = "✅" if item.is_correct else "❌"
            st.markdown(f"{icon} **{item.number}. {item.question.question}**")
            st.caption(f"{t('yourAnswer')}: {item.chosen_option or '-'}")
            if not item.is_correct:
                st.caption(f"{t('correctAnswer')}: {item.question.correct_option}")
            st.caption(f"{t('explanation')}: {item.question.explanation}")

    st.subheader(t("setupPlan"))
    st.caption(t("goalInstruction"))
    delta = _daily_target_stepper(session.pending_daily_target, "result-target")
    if delta:
        session.adjust_pending_target(delta)
        st.rerun()

    if st.button(t("completeSetup"), type="primary", use_container_width=True):
        session.complete_placement_setup()
        st.rerun()


def _render_dashboard(session: LearningSession) -> None:
    profile = session.profile
    language = st.session_state.ui_language
    st.title(f"{t('welcome')} {profile.nickname}")
    st.write(t("subtitle"))

    with st.container(border=True):
        st.caption(t("dashboardTitle"))
        st.subheader(t("dashboardSubtitle"))
        delta = _daily_target_stepper(profile.daily_target, "dashboard-target")
        if delta:
            session.store.adjust_daily_target(delta)
            st.rerun()
        st.caption(f"{t('currentLevel')}: {level_label(language, profile.level)}")
        if st.button(t("startLearning"), type="primary", use_container_width=True):
            _run(session.start_session, "loadingVocab")

    cols = st.columns(2)
    cols[0].metric(t("totalLearned"), profile.total_learned)
    cols[1].metric(t("dailyGoal"), profile.daily_target)


def _render_learning(session: LearningSession) -> None:
    word = session.current_word
    if word is None:
        return
    position, total = session.progress()
    st.caption(f"{position} / {total}")
    st.progress(progress_percentage(session.word_index, total) / 100)

    with st.container(border=True):
        st.header(word.word)
        st.caption(word.pronunciation)
        if st.button(f"🔊 {t('listen')}", key=f"listen-{session.word_index}"):
            _play(word.word)

        if session.card_flipped:
            st.markdown(f"**{word.translation_zh}**")
            st.write(word.definition_en)
            st.write(word.definition_zh)
            st.info(word.example_sentence)
            if st.button(f"🔊 {t('listenExample')}", key=f"example-{session.word_index}"):
                _play(word.example_sentence)

        if st.button(t("tapToFlip"), key=f"flip-{session.word_index}", use_container_width=True):
            session.flip_card()
            st.rerun()

    cols = st.columns(2)
    if cols[0].button(t("prev"), disabled=session.word_index == 0, use_container_width=True):
        session.previous_word()
        st.rerun()
    label = t("finish") if session.is_last_word else t("next")
    if cols[1].button(label, type="primary", use_container_width=True):
        if session.is_last_word:
            _run(session.next_word, "generatingStory")
        else:
            session.next_word()
            st.rerun()


def _story_markdown(paragraph: str) -> str:
    return "".join(
        f":orange-background[**{segment}**]" if emphasised else segment
        for segment, emphasised in split_emphasis(paragraph)
    )


@st.cache_data(show_spinner=False)
def _story_pdf(title: str, english: str, chinese: str, keywords: tuple) -> bytes:
    story = StoryData(title, english, chinese, [StoryKeyword(word, definition) for word, definition in keywords])
    return StoryPDFBuilder().build(story)


def _render_story(session: LearningSession) -> None:
    story = session.story
    if story is None:
        return
    engine: AudioEngine = st.session_state.audio

    st.caption(f"✨ {t('storyTime')}")
    st.title(story.title)
    st.caption(t("storySubtitle"))

    label = t("stopReading") if engine.is_playing_story else t("readAloud")
    if st.button(f"🔊 {label}", disabled=engine.loading_text is not None and not engine.is_playing_story):
        if _play(strip_emphasis(story.english), story_mode=True) is not PlaybackOutcome.FAILED:
            st.rerun()

    for paragraph in story.paragraphs:
        st.markdown(_story_markdown(paragraph))

    toggle_label = t("hideTranslation") if session.show_translation else t("showTranslation")
    if st.button(toggle_label):
        session.toggle_translation()
        st.rerun()
    if session.show_translation:
        st.info(story.chinese)

    with st.container(border=True):
        st.subheader(f"📖 {t('keywords')}")
        for keyword in story.keywords:
            cols = st.columns([1, 2])
            cols[0].markdown(f"**{keyword.word}**")
            cols[1].caption(keyword.definition)

    st.download_button(
        t("downloadStory"),
        data=_story_pdf(
            story.title,
            story.english,
            story.chinese,
            tuple((keyword.word, keyword.definition) for keyword in story.keywords),
        ),
        file_name=f"{story.title}.pdf",
        mime="application/pdf",
    )

    if st.button(t("backToHome"), type="primary", use_container_width=True):
        session.return_home()
        st.rerun()


def _render_profile(session: LearningSession) -> None:
    profile = session.profile
    language = st.session_state.ui_language
    st.title(profile.nickname)
    st.caption(level_label(language, profile.level))

    with st.form("nickname-form"):
        nickname = st.text_input(t("nickname"), value=profile.nickname)
        if st.form_submit_button(t("save")):
            session.store.set_nickname(nickname)
            st.rerun()

    st.subheader(t("stats"))
    total = profile.level.curriculum_size
    st.metric(t("totalLearned"), f"{profile.total_learned} {t('words')}", help=f"{profile.total_learned} / {total}")
    percent = progress_percentage(profile.total_learned, total)
    st.progress(percent / 100)
    st.caption(t("curriculumProgress", percent=percent, level=level_label(language, profile.level)))

    st.subheader(t("levelSettings"))
    choice = st.selectbox(
        t("changeLevel"),
        list(ProficiencyLevel),
        index=list(ProficiencyLevel).index(profile.level),
        format_func=lambda level: level_label(language, level),
    )
    if choice is not profile.level:
        st.warning(t("resetWarning"))
        if st.button(t("confirm")):
            session.store.set_level(choice)
            st.rerun()

    if st.button(f"🔄 {t('retakeTest')}"):
        st.session_state.active_tab = "learning"
        _run(session.start_placement, "loadingVocab")

    st.subheader(t("appearance"))
    theme_label = t("darkMode") if profile.theme is Theme.DARK else t("lightMode")
    if st.button(f"{t('theme')}: {theme_label}"):
        session.store.toggle_theme()
        st.rerun()


LEARNING_VIEWS = {
    View.ONBOARDING: _render_onboarding,
    View.PLACEMENT: _render_placement,
    View.PLACEMENT_RESULT: _render_placement_result,
    View.DASHBOARD: _render_dashboard,
    View.LEARNING: _render_learning,
    View.STORY: _render_story,
}


def _render_navigation() -> Optional[str]:
    cols = st.columns([3, 3, 2])
    tab = st.session_state.active_tab
    if cols[0].button(t("tabLearning"), type="primary" if tab == "learning" else "secondary", use_container_width=True):
        return "learning"
    if cols[1].button(t("tabProfile"), type="primary" if tab == "profile" else "secondary", use_container_width=True):
        return "profile"
    if cols[2].button(t("interfaceLanguage"), use_container_width=True):
        st.session_state.ui_language = (
            UILanguage.ENGLISH if st.session_state.ui_language is UILanguage.CHINESE else UILanguage.CHINESE
        )
        st.rerun()
    return None


def main() -> None:
    st.set_page_config(page_title="LinguaFlow", page_icon="📚", layout="centered")
    # Audio players live in a fixed slot; a player that moves is remounted.
    audio_slot = st.container()
    _init_state()
    session = _session()

    if session.profile.theme is Theme.DARK:
        st.markdown(DARK_THEME_CSS, unsafe_allow_html=True)

    selected = _render_navigation()
    if selected and selected != st.session_state.active_tab:
        st.session_state.active_tab = selected
        st.rerun()
    st.divider()

    if not _get_content_client().is_available:
        st.info(t("missingKey"))

    _show_notice(session)

    if st.session_state.active_tab == "profile":
        _render_profile(session)
    else:
        LEARNING_VIEWS[session.view](session)

    st.session_state.audio_sink.render(audio_slot)


if __name__ == "__main__":
    main()
