"""Interface strings in English and Chinese."""
from __future__ import annotations

from typing import Dict

from .config import ProficiencyLevel, UILanguage

TRANSLATIONS: Dict[UILanguage, Dict[str, str]] = {
    UILanguage.ENGLISH: {
        "appTitle": "LinguaFlow",
        "subtitle": "Master English vocabulary with AI-powered flashcards",
        "welcome": "Welcome back,",
        "tabLearning": "Learning",
        "tabProfile": "Profile",
        "dashboardTitle": "Today's goal",
        "dashboardSubtitle": "Ready for new words?",
        "startLearning": "Start Learning",
        "currentLevel": "Current level",
        "totalLearned": "Total learned",
        "dailyGoal": "Daily goal",
        "words": "words",
        "placementTitle": "Not sure about your level?",
        "placementSubtitle": "Take a quick 10-question test to find the right level.",
        "takePlacement": "Take Placement Test",
        "selectLevel": "Or choose your level",
        "skipPlacement": "You can change this later in your profile.",
        "beginner": "Beginner",
        "intermediate": "Intermediate",
        "advanced": "Advanced",
        "question": "Question",
        "testComplete": "Test complete!",
        "yourScore": "Your score",
        "recommendedLevel": "Recommended level",
        "reviewAnswers": "Review answers",
        "yourAnswer": "Your answer",
        "correctAnswer": "Correct answer",
        "explanation": "Explanation",
        "setupPlan": "Set up your plan",
        "goalInstruction": "How many new words per day?",
        "completeSetup": "Complete Setup",
        "loadingVocab": "Preparing your lesson...",
        "generatingStory": "Writing a story with your new words...",
        "tapToFlip": "Tap to flip",
        "listen": "Listen",
        "listenExample": "Listen to example",
        "prev": "Previous",
        "next": "Next",
        "finish": "Finish",
        "storyTime": "Story time",
        "storySubtitle": "A short story using the words you just learned.",
        "readAloud": "Read aloud",
        "stopReading": "Stop reading",
        "showTranslation": "Show translation",
        "hideTranslation": "Hide translation",
        "keywords": "Keywords",
        "downloadStory": "Download story (PDF)",
        "backToHome": "Back to Home",
        "stats": "Statistics",
        "curriculumProgress": "{percent:.1f}% of {level} curriculum completed",
        "levelSettings": "Level & curriculum",
        "changeLevel": "Change level",
        "resetWarning": "Changing your level changes the words you will see. Continue?",
        "confirm": "Confirm",
        "retakeTest": "Retake placement test",
        "appearance": "Appearance",
        "theme": "Theme",
        "darkMode": "Dark",
        "lightMode": "Light",
        "nickname": "Nickname",
        "save": "Save",
        "interfaceLanguage": "中文",
        "errorPlacement": "Error loading placement test.",
        "errorVocab": "Failed to generate vocabulary. Please check API key.",
        "errorStory": "Could not generate story. Please try again later.",
        "retryHint": "The service timed out or is busy; trying again may work.",
        "audioError": "Could not play audio. Please check connection.",
        "missingKey": "Set OPENAI_API_KEY or add it to Streamlit secrets to generate content.",
    },
    UILanguage.CHINESE: {
        "appTitle": "LinguaFlow",
        "subtitle": "用 AI 闪卡掌握英语词汇",
        "welcome": "欢迎回来，",
        "tabLearning": "学习",
        "tabProfile": "我的",
        "dashboardTitle": "今日目标",
        "dashboardSubtitle": "准备好学习新单词了吗？",
        "startLearning": "开始学习",
        "currentLevel": "当前级别",
        "totalLearned": "累计学习",
        "dailyGoal": "每日目标",
        "words": "个单词",
        "placementTitle": "不确定自己的水平？",
        "placementSubtitle": "完成 10 道题的快速测试，找到适合你的级别。",
        "takePlacement": "参加分级测试",
        "selectLevel": "或者直接选择级别",
        "skipPlacement": "之后可以在个人页面修改。",
        "beginner": "初级",
        "intermediate": "中级",
        "advanced": "高级",
        "question": "题目",
        "testComplete": "测试完成！",
        "yourScore": "你的得分",
        "recommendedLevel": "推荐级别",
        "reviewAnswers": "查看答案",
        "yourAnswer": "你的答案",
        "correctAnswer": "正确答案",
        "explanation": "解析",
        "setupPlan": "制定学习计划",
        "goalInstruction": "每天学习多少个新单词？",
        "completeSetup": "完成设置",
        "loadingVocab": "正在准备课程……",
        "generatingStory": "正在用新单词编写故事……",
        "tapToFlip": "点击翻转",
        "listen": "发音",
        "listenExample": "听例句",
        "prev": "上一个",
        "next": "下一个",
        "finish": "完成",
        "storyTime": "故事时间",
        "storySubtitle": "用你刚学的单词写成的小故事。",
        "readAloud": "朗读",
        "stopReading": "停止朗读",
        "showTranslation": "显示翻译",
        "hideTranslation": "隐藏翻译",
        "keywords": "关键词",
        "downloadStory": "下载故事 (PDF)",
        "backToHome": "返回首页",
        "stats": "统计",
        "curriculumProgress": "已完成{level}课程的 {percent:.1f}%",
        "levelSettings": "级别与课程",
        "changeLevel": "修改级别",
        "resetWarning": "修改级别会改变你学习的单词，确定继续吗？",
        "confirm": "确定",
        "retakeTest": "重新参加分级测试",
        "appearance": "外观",
        "theme": "主题",
        "darkMode": "深色",
        "lightMode": "浅色",
        "nickname": "昵称",
        "save": "保存",
        "interfaceLanguage": "English",
        "errorPlacement": "分级测试加载失败。",
        "errorVocab": "单词生成失败，请检查 API 密钥。",
        "errorStory": "故事生成失败，请稍后再试。",
        "retryHint": "服务超时或繁忙，可以再试一次。",
        "audioError": "无法播放音频，请检查网络连接。",
        "missingKey": "请设置 OPENAI_API_KEY 或在 Streamlit secrets 中添加密钥以生成内容。",
    },
}

LEVEL_KEYS = {
    ProficiencyLevel.BEGINNER: "beginner",
    ProficiencyLevel.INTERMEDIATE: "intermediate",
    ProficiencyLevel.ADVANCED: "advanced",
}


def translate(language: UILanguage, key: str, **values) -> str:
    """Return the string for *key*, falling back to English and then the key."""

    text = TRANSLATIONS[language].get(key) or TRANSLATIONS[UILanguage.ENGLISH].get(key, key)
    return text.format(**values) if values else text


def level_label(language: UILanguage, level: ProficiencyLevel) -> str:
    return translate(language, LEVEL_KEYS[level])
