"""Step implementations for survey submission scenarios."""

from __future__ import annotations

from typing import Any, Dict

from behave import given, then, when

from survey_service.logic import events
from survey_service.logic.question_catalog import QUESTIONS, seed_catalog
from survey_service.logic.validation import validate_answer_document

REQUIRED_DEFAULTS: Dict[str, Any] = {
    "1": "heard_used",
    "3": "daily",
    "5": "mobile",
    "7": "chinese",
    "8": "often",
    "9": "yes",
    "10": "food",
    "11": "yes",
    "12": "25_34",
    "13": "single",
    "14": "below_20k",
    "15": "tertiary",
    "16": "yes",
}


def _value(question_id: int, raw: str) -> Any:
    question = next(q for q in QUESTIONS if q.id == question_id)
    if question.type == "multiple":
        return [v.strip() for v in raw.split(",") if v.strip()]
    return raw


def _only_response(context):
    rows = context.store.list_responses()
    assert len(rows) == 1, f"expected exactly one stored response, found {len(rows)}"
    return rows[0]


# ------------------
# Given
# ------------------


@given("the question catalog is seeded")
def step_catalog_seeded(context):
    seed_catalog(context.store)
    assert context.store.questions.has_questions()


@given('a complete answer set with device "{device}"')
def step_complete_answer_set(context, device: str):
    context.answers = dict(REQUIRED_DEFAULTS, **{"4": device})


@given('I answer question {question_id:d} with "{value}"')
def step_answer_question(context, question_id: int, value: str):
    context.answers[str(question_id)] = _value(question_id, value)


@given('{count:d} submissions with device "{device}"')
def step_submissions_with_device(context, count: int, device: str):
    for _ in range(count):
        context.store.save_response(validate_answer_document({"4": device}, QUESTIONS))


# ------------------
# When
# ------------------


@when("I submit the answer set")
def step_submit(context):
    context.last_response = context.client.post("/api/survey", json={"answers": context.answers})


@when('I GET "{path}"')
def step_get(context, path: str):
    context.last_response = context.client.get(path)


# ------------------
# Then
# ------------------


@then("the response status is {status:d}")
def step_status(context, status: int):
    resp = context.last_response
    assert resp.status_code == status, f"expected {status}, got {resp.status_code}: {resp.text}"


@then('the response field "{field}" starts with "{prefix}"')
def step_field_prefix(context, field: str, prefix: str):
    value = context.last_response.json().get(field)
    assert isinstance(value, str) and value.startswith(prefix), value


@then('the response field "{field}" is false')
def step_field_false(context, field: str):
    assert context.last_response.json().get(field) is False


@then('question {child:d} is only visible when question {parent:d} is "{value}"')
def step_visibility_rule(context, child: int, parent: int, value: str):
    questions = {q["id"]: q for q in context.last_response.json()["questions"]}
    assert questions[child]["visible_if"] == {"question_id": parent, "values": [value]}


@then('the stored response has answer "{value}" for question {question_id:d}')
def step_stored_answer(context, value: str, question_id: int):
    assert _only_response(context).answers.get(str(question_id)) == _value(question_id, value)


@then("the stored response has no answer for question {question_id:d}")
def step_stored_no_answer(context, question_id: int):
    assert str(question_id) not in _only_response(context).answers


@then("no response is stored")
def step_none_stored(context):
    assert context.store.count_responses() == 0


@then('a "{event_type}" event was published')
def step_event_published(context, event_type: str):
    published = [e["type"] for e in events.get_buffered_events(clear=False)]
    assert event_type in published, published


@then("the total response count is {count:d}")
def step_total_count(context, count: int):
    assert context.last_response.json()["data"]["totalResponses"] == count


@then("the device counts are:")
def step_device_counts(context):
    expected = {row["device_type"]: int(row["count"]) for row in context.table}
    actual = {b["device_type"]: b["count"] for b in context.last_response.json()["data"]["deviceStats"]}
    assert actual == expected, actual


@then('the first listed response has answer "{value}" for question {question_id:d}')
def step_first_listed_answer(context, value: str, question_id: int):
    first = context.last_response.json()["responses"][0]
    assert first["answers"].get(str(question_id)) == _value(question_id, value)
