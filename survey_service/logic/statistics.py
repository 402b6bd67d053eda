"""Aggregation and statistics for the admin dashboard.

`compute_statistics` produces the fixed dashboard payload by grouping stored
answer documents on a handful of tracked question ids. `compute_question_distribution`
generalizes the same grouping to any question with options and adds
percentages for the per-question chart view.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional

from survey_service.models.question import Question
from survey_service.models.response import StoredResponse

logger = logging.getLogger(__name__)

# payload field -> (question id, bucket key, ordered by key)
TRACKED_QUESTIONS: Dict[str, tuple[int, str, bool]] = {
    "deviceStats": (4, "device_type", False),
    "ageStats": (12, "age_group", True),
    "genderStats": (13, "gender", False),
    "aiUsageStats": (1, "ai_agent_awareness", False),
}

DEFAULT_DAILY_SERIES_DAYS = 30


def compute_statistics(store, today: Optional[date] = None, days: int = DEFAULT_DAILY_SERIES_DAYS) -> Dict[str, Any]:
    """Return the dashboard statistics payload.

    `todayResponses` counts the server-local calendar day, so responses near
    midnight are bucketed by server time, not respondent time.
    """
    today = today or date.today()
    day_start = datetime.combine(today, time.min)
    responses = store.responses

    data: Dict[str, Any] = {
        "totalResponses": responses.count(),
        "todayResponses": responses.count_created_between(day_start, day_start + timedelta(days=1)),
    }
    for field, (question_id, key, ordered) in TRACKED_QUESTIONS.items():
        data[field] = [
            {key: value, "count": count}
            for value, count in responses.group_counts(question_id, order_by_key=ordered)
        ]
    # No region question in the current questionnaire.
    data["regionStats"] = []
    data["dailyStats"] = [{"date": day, "count": count} for day, count in responses.daily_counts(days)]
    logger.info(
        "statistics_computed total=%s today=%s days=%s",
        data["totalResponses"],
        data["todayResponses"],
        len(data["dailyStats"]),
    )
    return data


def _option_entry(value: str, label: str, label_en: Optional[str], count: int, answered: int) -> Dict[str, Any]:
    percentage = round(count / answered * 100, 1) if answered else 0.0
    return {"value": value, "label": label, "label_en": label_en, "count": count, "percentage": percentage}


def compute_question_distribution(
    question: Question, responses: Iterable[StoredResponse]
) -> Optional[Dict[str, Any]]:
    """Distribution of answers for one option-bearing question.

    Each element of a multiple-choice answer counts once, so percentages of a
    multiple question can sum past 100. Values not in the catalog are appended
    after the catalog options.
    """
    if not question.options:
        return None
    key = str(question.id)
    counter: Counter = Counter()
    answered = 0
    for response in responses:
        value = (response.answers or {}).get(key)
        if value is None or value == "" or value == []:
            continue
        answered += 1
        if isinstance(value, list):
            counter.update(str(v) for v in value)
        else:
            counter[str(value)] += 1

    options = [
        _option_entry(opt.value, opt.label, opt.label_en, counter.pop(opt.value, 0), answered)
        for opt in question.options
    ]
    for value, count in counter.most_common():
        options.append(_option_entry(value, value, None, count, answered))

    return {
        "question_id": question.id,
        "question": question.question,
        "question_en": question.question_en,
        "type": question.type,
        "total_responses": answered,
        "options": options,
    }


def compute_distributions(store) -> List[Dict[str, Any]]:
    """Distributions for every question that declares options."""
    questions = store.get_questions_with_options()
    responses = store.list_responses()
    result: List[Dict[str, Any]] = []
    for question in questions:
        dist = compute_question_distribution(question, responses)
        if dist is not None:
            result.append(dist)
    return result


__all__ = [
    "TRACKED_QUESTIONS",
    "DEFAULT_DAILY_SERIES_DAYS",
    "compute_statistics",
    "compute_question_distribution",
    "compute_distributions",
]
