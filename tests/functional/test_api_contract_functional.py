"""HTTP contract tests: status codes, bodies and JSON Schemas for every endpoint."""

from __future__ import annotations

import csv
import io
import json

import pytest
from jsonschema import Draft202012Validator

from survey_service.logic import events
from survey_service.logic.question_catalog import QUESTIONS


def _assert_schema(load_schema, name, body):
    validator = Draft202012Validator(load_schema(name))
    errors = sorted(validator.iter_errors(body), key=lambda e: list(e.path))
    assert not errors, [f"{list(e.path)}: {e.message}" for e in errors]


# -----------------------------
# POST /api/survey
# -----------------------------


def test_submit_returns_submission_id(client, load_schema, complete_answers):
    resp = client.post("/api/survey", json={"answers": complete_answers(q6="below_300")})
    assert resp.status_code == 200
    body = resp.json()
    _assert_schema(load_schema, "survey_submit_response.schema.json", body)
    assert body["success"] is True
    assert body["message"] == "问卷提交成功"
    assert body["submissionId"].startswith("survey_")
    assert [e["type"] for e in events.get_buffered_events()] == [events.RESPONSE_SAVED]


def test_submit_records_client_metadata(client, store):
    client.post(
        "/api/survey",
        json={"answers": {"4": "ios"}},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "survey-test/1.0"},
    )
    client.post("/api/survey", json={"answers": {"4": "ios"}}, headers={"X-Real-IP": "198.51.100.2"})
    ips = sorted(r.ip_address for r in store.list_responses())
    assert ips == ["198.51.100.2", "203.0.113.7"]
    assert "survey-test/1.0" in {r.user_agent for r in store.list_responses()}


def test_submit_keeps_raw_payload(client, store):
    payload = {"answers": {"4": "ios"}, "startedAt": "2024-05-01T10:00:00Z"}
    client.post("/api/survey", json=payload)
    [row] = store.list_responses()
    assert json.loads(row.raw_data) == payload


def test_submit_rejects_unknown_option_with_400(client, load_schema, store):
    resp = client.post("/api/survey", json={"answers": {"4": "blackberry", "99": "x"}})
    assert resp.status_code == 400
    body = resp.json()
    _assert_schema(load_schema, "survey_submit_response.schema.json", body)
    assert body["success"] is False
    assert {e["reason"] for e in body["errors"]} == {"unknown_option:blackberry", "unknown_question"}
    assert store.count_responses() == 0


def test_submit_without_answers_object_is_400(client):
    resp = client.post("/api/survey", json={"answers": "android"})
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["reason"] == "answers_must_be_object"


def test_submit_non_object_body_is_problem_json(client):
    resp = client.post("/api/survey", json=["not", "an", "object"])
    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("application/problem+json")


def test_submit_purges_hidden_conditional_answers(client, store):
    resp = client.post("/api/survey", json={"answers": {"4": "ios", "6": "300_799"}})
    assert resp.status_code == 200
    [row] = store.list_responses()
    assert row.answers == {"4": "ios"}
    types = [e["type"] for e in events.get_buffered_events()]
    assert events.CONDITIONAL_ANSWERS_SUPPRESSED in types


def test_submit_store_failure_returns_500(client, store, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "save_response", _boom)
    resp = client.post("/api/survey", json={"answers": {"4": "ios"}})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "提交失败，请重试"}


# -----------------------------
# GET /api/survey/*
# -----------------------------


def test_questions_endpoint_lists_catalog(client, load_schema):
    resp = client.get("/api/survey/questions")
    assert resp.status_code == 200
    body = resp.json()
    _assert_schema(load_schema, "questions_response.schema.json", body)
    assert [q["id"] for q in body["questions"]] == [q.id for q in QUESTIONS]
    q6 = next(q for q in body["questions"] if q["id"] == 6)
    assert q6["visible_if"] == {"question_id": 4, "values": ["android"]}


def test_stats_endpoint_lists_saved_responses(client, load_schema):
    client.post("/api/survey", json={"answers": {"2": ["work_study", "entertainment"], "4": "android"}})
    resp = client.get("/api/survey/stats")
    body = resp.json()
    _assert_schema(load_schema, "survey_stats_response.schema.json", body)
    assert body["count"] == 1
    assert body["responses"][0]["answers"]["2"] == ["work_study", "entertainment"]


# -----------------------------
# Admin endpoints
# -----------------------------


def test_admin_statistics(client, load_schema):
    for device in ("android", "android", "android", "ios", "ios"):
        client.post("/api/survey", json={"answers": {"4": device}})
    resp = client.get("/api/admin/statistics")
    assert resp.status_code == 200
    body = resp.json()
    _assert_schema(load_schema, "admin_statistics_response.schema.json", body)
    assert body["data"]["totalResponses"] == 5
    assert body["data"]["todayResponses"] == 5
    assert {b["device_type"]: b["count"] for b in body["data"]["deviceStats"]} == {"android": 3, "ios": 2}


def test_admin_distributions(client):
    client.post("/api/survey", json={"answers": {"4": "ios"}})
    body = client.get("/api/admin/distributions").json()
    assert body["success"] is True
    q4 = next(d for d in body["data"] if d["question_id"] == 4)
    assert {o["value"]: o["count"] for o in q4["options"]} == {"android": 0, "ios": 1}


def test_admin_question_distribution(client, load_schema):
    client.post("/api/survey", json={"answers": {"4": "android"}})
    resp = client.get("/api/admin/questions/4/distribution")
    assert resp.status_code == 200
    _assert_schema(load_schema, "question_distribution.schema.json", resp.json()["data"])


@pytest.mark.parametrize("question_id,status", [(999, 404), (17, 400)])
def test_admin_question_distribution_errors(client, question_id, status):
    resp = client.get(f"/api/admin/questions/{question_id}/distribution")
    assert resp.status_code == status
    assert resp.json()["success"] is False


def test_admin_responses_in_range(client):
    client.post("/api/survey", json={"answers": {"4": "ios"}})
    resp = client.get("/api/admin/responses", params={"start": "2000-01-01", "end": "2999-12-31"})
    assert resp.status_code == 200
    assert resp.json()["count"] == 1
    empty = client.get("/api/admin/responses", params={"start": "2000-01-01", "end": "2000-01-02"})
    assert empty.json()["count"] == 0


@pytest.mark.parametrize(
    "params",
    [{"start": "2024-05-02", "end": "2024-05-01"}, {"start": "yesterday", "end": "2024-05-01"}],
)
def test_admin_responses_bad_range_is_400(client, params):
    resp = client.get("/api/admin/responses", params=params)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_admin_export_csv(client):
    client.post("/api/survey", json={"answers": {"4": "android", "17": "hello"}})
    resp = client.get("/api/admin/responses/export", params={"lang": "en"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "survey_responses_en.csv" in resp.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(resp.content.decode("utf-8-sig"), newline="")))
    assert len(rows) == 2
    assert "Android" in rows[1]


# -----------------------------
# Cross-cutting
# -----------------------------


def test_health_reports_database(client):
    assert client.get("/health").json() == {"status": "ok", "db": True}


def test_request_id_is_echoed_or_generated(client):
    assert client.get("/health", headers={"X-Request-Id": "abc-123"}).headers["X-Request-Id"] == "abc-123"
    assert client.get("/health").headers.get("X-Request-Id")
