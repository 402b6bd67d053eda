"""Static question catalog.

The questionnaire is defined here, in display order, with Chinese primary text
and English alternates. It is read-only at runtime; `seed_catalog` copies it
into an empty store on first boot.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from survey_service.models.question import Question, sort_questions

logger = logging.getLogger(__name__)

DEVICE_TYPE_QUESTION_ID = 4
ANDROID_PRICE_QUESTION_ID = 6


def _opt(value: str, label: str, label_en: str) -> Dict[str, str]:
    return {"value": value, "label": label, "label_en": label_en}


_AI = ("AI Agent 接受程度", "AI Agent Acceptance")
_DEVICE = ("硬件设备与使用习惯", "Device Preferences")
_REWARDS = ("奖励系统", "Incentives & Rewards")
_DEMOGRAPHICS = ("人物画像", "Demographics")
_ENGAGEMENT = ("用户参与意向", "User Engagement")
_CONTACT = ("联系信息", "Contact Info")

_YES_NO = [_opt("yes", "愿意", "Yes"), _opt("no", "不愿意", "No")]

_CATALOG: List[Dict[str, Any]] = [
    {
        "id": 1, "section": _AI,
        "question": ("您是否听说过 ChatGPT 或其他 AI 助手（如 Copilot、Gemini 等）？",
                     "Have you heard of ChatGPT or other AI assistants (e.g., Copilot, Gemini)?"),
        "type": "single", "required": True,
        "options": [
            _opt("heard_used", "听说过并使用", "Heard and used"),
            _opt("heard_not_used", "听说过但没用过", "Heard but never used"),
            _opt("never_heard", "没听说过", "Never heard"),
        ],
    },
    {
        "id": 2, "section": _AI,
        "question": ("如果您用过 AI 助手，您使用它的主要目的是什么？（可多选）",
                     "If you have used an AI assistant, what is your main purpose? (Select all that apply)"),
        "type": "multiple", "required": False,
        "options": [
            _opt("work_study", "工作/学习", "Work/ Study"),
            _opt("entertainment", "娱乐/消遣", "Entertainment"),
            _opt("practical", "生活实用（如查资料、翻译、写作等）", "Practical use (e.g., research, translation, writing)"),
        ],
    },
    {
        "id": 3, "section": _AI,
        "question": ("您大概多久会用一次 AI 助手？", "How often do you use an AI assistant?"),
        "type": "single", "required": True,
        "options": [
            _opt("daily", "每天", "Daily"),
            _opt("weekly", "每周", "Weekly"),
            _opt("monthly", "每月", "Monthly"),
            _opt("rarely", "很少/几乎不用", "Rarely/Never"),
        ],
    },
    {
        "id": DEVICE_TYPE_QUESTION_ID, "section": _DEVICE,
        "question": ("您使用的是什么设备？", "What device are you using?"),
        "type": "single", "required": True,
        "options": [_opt("android", "安卓", "Android"), _opt("ios", "苹果", "iOS Apple")],
    },
    {
        "id": 5, "section": _DEVICE,
        "question": ("您更喜欢使用哪个平台？", "Which platform do you prefer?"),
        "type": "single", "required": True,
        "options": [_opt("mobile", "手机", "Mobile"), _opt("web", "网页版", "Web")],
    },
    {
        "id": ANDROID_PRICE_QUESTION_ID, "section": _DEVICE,
        "question": ("如果是安卓，您的手机大致价格区间是？",
                     "If Android, what is your phone's approximate price range?"),
        "type": "single", "required": False,
        "options": [
            _opt("below_300", "SGD 300 以下", "Below SGD 300"),
            _opt("300_799", "SGD 300–799", "SGD 300–799"),
            _opt("above_800", "SGD 800 以上", "Above SGD 800"),
        ],
        "visible_if": {"question_id": DEVICE_TYPE_QUESTION_ID, "values": ["android"]},
    },
    {
        "id": 7, "section": _DEVICE,
        "question": ("您平时使用 APP 更习惯的语言是？", "Which language do you usually prefer for apps?"),
        "type": "single", "required": True,
        "options": [
            _opt("chinese", "中文", "Chinese"),
            _opt("english", "英文", "English"),
            _opt("mixed", "中英混合", "Mixed"),
        ],
    },
    {
        "id": 8, "section": _DEVICE,
        "question": ("在使用带有字体调节功能的 APP（例如 WhatsApp、Facebook、Telegram）时，您是否会调整字体大小？",
                     "When using apps with font size adjustment (e.g., WhatsApp, Facebook, Telegram), "
                     "do you adjust the font size?"),
        "type": "single", "required": True,
        "options": [
            _opt("often", "经常调整", "Often"),
            _opt("sometimes", "偶尔调整", "Sometimes"),
            _opt("never", "从不调整", "Never"),
        ],
    },
    {
        "id": 9, "section": _DEVICE,
        "question": ("对于学习类应用，你认为字体大小调整功能重要吗？",
                     "For a learning app, do you think font size adjustment is important?"),
        "type": "single", "required": True,
        "options": [_opt("yes", "是", "Yes"), _opt("no", "否", "No")],
    },
    {
        "id": 10, "section": _REWARDS,
        "question": ("您喜欢什么类型的奖励？", "What kind of vouchers do you prefer?"),
        "type": "single", "required": True,
        "options": [_opt("food", "餐饮电子礼券", "Food E-vouchers"), _opt("non_food", "非餐饮奖励", "Non-Food")],
    },
    {
        "id": 11, "section": _REWARDS,
        "question": ("您愿意通过观看广告来获得奖励吗？", "Are you willing to watch ads for rewards?"),
        "type": "single", "required": True,
        "options": _YES_NO,
    },
    {
        "id": 12, "section": _DEMOGRAPHICS,
        "question": ("您的年龄范围是？", "What is your age group?"),
        "type": "single", "required": True,
        "options": [
            _opt("below_18", "18岁以下", "Below 18"),
            _opt("18_24", "18–24", "18–24"),
            _opt("25_34", "25–34", "25–34"),
            _opt("35_44", "35–44", "35–44"),
            _opt("45_54", "45–54", "45–54"),
            _opt("55_above", "55岁及以上", "55 and above"),
        ],
    },
    {
        "id": 13, "section": _DEMOGRAPHICS,
        "question": ("您目前的婚姻状况是？", "What is your current marital status?"),
        "type": "single", "required": True,
        "options": [
            _opt("single", "未婚", "Single"),
            _opt("married_no_children", "已婚无子女", "Married without children"),
            _opt("married_with_children", "已婚有子女", "Married with children"),
        ],
    },
    {
        "id": 14, "section": _DEMOGRAPHICS,
        "question": ("您的年收入范围大致为：", "What is your approximate annual income?"),
        "type": "single", "required": True,
        "options": [
            _opt("below_20k", "少于 SGD 20,000", "Less than SGD 20,000"),
            _opt("20k_50k", "SGD 20,000 – 49,999", "SGD 20,000 – 49,999"),
            _opt("50k_100k", "SGD 50,000 – 99,999", "SGD 50,000 – 99,999"),
            _opt("above_100k", "SGD 100,000 以上", "Above SGD 100,000"),
        ],
    },
    {
        "id": 15, "section": _DEMOGRAPHICS,
        "question": ("您的最高学历是？", "What is your highest education level?"),
        "type": "single", "required": True,
        "options": [
            _opt("secondary", "中学", "Secondary"),
            _opt("post_secondary", "大专", "Post-Secondary"),
            _opt("tertiary", "高等教育", "Tertiary"),
        ],
    },
    {
        "id": 16, "section": _ENGAGEMENT,
        "question": ("您有兴趣加入用户测试或抢先体验项目吗？",
                     "Would you be interested in joining a user testing or early access program?"),
        "type": "single", "required": True,
        "options": _YES_NO,
    },
    {
        "id": 17, "section": _CONTACT,
        "question": ("如果愿意，请留下您的邮箱或联系方式（可选）",
                     "If willing, please leave your email or contact info (Optional)"),
        "type": "text", "required": False,
    },
]


def _build(entry: Dict[str, Any]) -> Question:
    section, section_en = entry["section"], None
    if isinstance(section, tuple):
        section, section_en = section
    text, text_en = entry["question"]
    options = entry.get("options")
    return Question(
        id=entry["id"],
        section=section,
        section_en=section_en,
        question=text,
        question_en=text_en,
        type=entry["type"],
        required=bool(entry.get("required", False)),
        sort_order=entry.get("sort_order", entry["id"]),
        options=[dict(o, sort_order=i) for i, o in enumerate(options, start=1)] if options else None,
        visible_if=entry.get("visible_if"),
    )


QUESTIONS: tuple[Question, ...] = tuple(sort_questions(_build(e) for e in _CATALOG))


def list_questions() -> List[Question]:
    """Return the catalog in display order (sort_order, then id)."""
    return list(QUESTIONS)


def get_question(question_id: int) -> Question:
    for q in QUESTIONS:
        if q.id == int(question_id):
            return q
    raise KeyError(question_id)


def seed_catalog(store) -> int:
    """Write the catalog into an empty store; return the number of questions inserted.

    Check-then-insert, not transactional: two processes booting at once may
    both see an empty table. Question inserts ignore id conflicts, and a
    failure part-way leaves already committed rows in place.
    """
    try:
        if store.questions.has_questions():
            logger.info("questions_already_seeded")
            return 0
    except Exception:
        logger.error("question_seed_check_failed", exc_info=True)
        return 0

    inserted = 0
    try:
        logger.info("question_seed_start count=%s", len(QUESTIONS))
        for q in QUESTIONS:
            if not store.questions.insert_question(q):
                continue
            inserted += 1
            for opt in q.options or []:
                store.questions.insert_option(q.id, opt, opt.sort_order or 0)
        logger.info("question_seed_done inserted=%s", inserted)
    except Exception:
        logger.error("question_seed_failed inserted=%s", inserted, exc_info=True)
    return inserted


__all__ = [
    "QUESTIONS",
    "DEVICE_TYPE_QUESTION_ID",
    "ANDROID_PRICE_QUESTION_ID",
    "list_questions",
    "get_question",
    "seed_catalog",
]
