"""CSV export of stored responses."""

from __future__ import annotations

import csv
import io

from survey_service.logic.answer_display import MISSING, format_answer, normalize_language
from survey_service.logic.csv_io import FIXED_HEADER, build_responses_csv
from survey_service.logic.question_catalog import QUESTIONS, get_question
from survey_service.logic.validation import validate_answer_document


def _rows(data: bytes):
    assert data.startswith(b"\xef\xbb\xbf")
    return list(csv.reader(io.StringIO(data.decode("utf-8-sig"), newline="")))


def test_format_answer_uses_labels_in_requested_language():
    q2 = get_question(2)
    assert format_answer(q2, ["work_study", "entertainment"], "zh") == "工作/学习, 娱乐/消遣"
    assert format_answer(q2, ["work_study", "entertainment"], "en") == "Work/ Study, Entertainment"
    assert format_answer(get_question(4), "ios", "en") == "iOS Apple"


def test_format_answer_passes_text_and_unknown_values_through():
    assert format_answer(get_question(17), "me@example.com") == "me@example.com"
    assert format_answer(get_question(4), "symbian") == "symbian"
    assert format_answer(get_question(4), None) == MISSING
    assert format_answer(get_question(2), []) == MISSING


def test_normalize_language_defaults_to_chinese():
    assert normalize_language(None) == "zh"
    assert normalize_language("EN") == "en"
    assert normalize_language("fr") == "zh"


def test_export_header_and_rows(store):
    saved = store.save_response(
        validate_answer_document({"4": "android", "2": ["practical"], "17": "a,b \"quoted\""}, QUESTIONS)
    )
    rows = _rows(build_responses_csv(store.get_questions_with_options(), store.list_responses(), "en"))
    header, body = rows[0], rows[1:]
    assert header[:2] == FIXED_HEADER
    assert header[2:] == [f"{q.id}. {q.question_en}" for q in QUESTIONS]
    assert len(body) == 1
    row = dict(zip(header, body[0]))
    assert row["id"] == str(saved.id)
    assert row["4. What device are you using?"] == "Android"
    assert row[header[2 + 1]] == "Practical use (e.g., research, translation, writing)"
    assert row[header[-1]] == 'a,b "quoted"'
    assert row[header[2]] == MISSING


def test_export_uses_crlf_line_endings(store):
    data = build_responses_csv(QUESTIONS, [], "zh")
    assert data.endswith(b"\r\n")
    assert len(_rows(data)) == 1
