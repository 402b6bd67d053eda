"""Human-readable rendering of stored answers for listings and exports."""

from __future__ import annotations

from typing import Optional

from survey_service.models.question import Question, QuestionType

MISSING = "-"
SUPPORTED_LANGUAGES = ("zh", "en")


def option_label(question: Question, value: str, lang: str = "zh") -> str:
    opt = question.find_option(value)
    if opt is None:
        return value
    if lang == "en":
        return opt.label_en or opt.label or value
    return opt.label or value


def question_text(question: Question, lang: str = "zh") -> str:
    if lang == "en":
        return question.question_en or question.question
    return question.question


def format_answer(question: Question, answer: object, lang: str = "zh") -> str:
    """Render an answer: option labels for choices, text as-is, '-' when missing."""
    if answer is None or answer == "" or answer == []:
        return MISSING
    if question.type == QuestionType.TEXT:
        return str(answer)
    if isinstance(answer, list):
        return ", ".join(option_label(question, str(v), lang) for v in answer)
    return option_label(question, str(answer), lang)


def normalize_language(lang: Optional[str]) -> str:
    lang = (lang or "zh").strip().lower()
    return lang if lang in SUPPORTED_LANGUAGES else "zh"


__all__ = ["format_answer", "option_label", "question_text", "normalize_language", "MISSING"]
