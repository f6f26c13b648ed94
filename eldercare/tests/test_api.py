# eldercare/tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from eldercare.main import app

NURSE = {"X-User-Id": "nurse-1", "X-User-Role": "assessor"}
OTHER = {"X-User-Id": "nurse-2", "X-User-Role": "assessor"}


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def _open(client, headers=NURSE, assessment_id=None):
    r = client.post("/sessions/", json={"assessment_id": assessment_id}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _set(client, sid, section, field, value, headers=NURSE):
    r = client.patch(f"/sessions/{sid}/fields", json={"section": section, "field": field, "value": value}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def _fill_basic(client, sid, client_id="client-api"):
    _set(client, sid, "basic", "clientId", client_id)
    _set(client, sid, "basic", "assessmentDate", "2026-10-01")
    _set(client, sid, "basic", "completionDate", "2026-10-02")
    _set(client, sid, "basic", "consultationReasons", ["memory"])


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_identity_required(client):
    r = client.post("/sessions/", json={})
    assert r.status_code == 401
    assert r.json()["error"] == "NO_CURRENT_USER"


def test_open_returns_empty_draft(client):
    snap = _open(client)
    assert snap["assessment"]["id"] == ""
    assert snap["assessment"]["status"] == "draft"
    assert snap["current_section"] == "basic"
    assert set(snap["assessment"]["sections"]) >= {"basic", "slums", "mental", "summary"}
    assert snap["has_unsaved_changes"] is False


def test_save_without_client_is_rejected(client):
    sid = _open(client)["session_id"]
    _set(client, sid, "basic", "assessmentDate", "2026-10-01")

    r = client.post(f"/sessions/{sid}/save", json={"status": "draft"}, headers=NURSE)
    assert r.status_code == 400
    assert r.json()["error"] == "USER_INPUT"


def test_save_create_then_update_and_read_back(client):
    sid = _open(client)["session_id"]
    _fill_basic(client, sid)
    snap = _set(client, sid, "mental", "gds_q1", False)
    assert snap["has_unsaved_changes"] is True
    assert snap["assessment"]["client_id"] == "client-api"

    r = client.post(f"/sessions/{sid}/save", json={"status": "draft"}, headers=NURSE)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["outcome"] == "created"
    assert body["has_unsaved_changes"] is False
    assessment_id = body["assessment_id"]

    _set(client, sid, "medical", "allergies", "none")
    r = client.post(f"/sessions/{sid}/save", json={}, headers=NURSE)
    assert r.json()["outcome"] == "updated"
    assert r.json()["assessment_id"] == assessment_id

    r = client.get(f"/assessments/{assessment_id}", headers=NURSE)
    assert r.status_code == 200
    record = r.json()
    assert record["clientId"] == "client-api"
    assert record["gds_q1"] is False
    assert record["allergies"] == "none"

    listed = client.get("/assessments/", params={"client_id": "client-api"}, headers=NURSE).json()
    assert assessment_id in [row["id"] for row in listed]
    assert client.get("/assessments/", params={"client_id": "client-api"}, headers=OTHER).json() == []

    # reopen in a new session
    snap = _open(client, assessment_id=assessment_id)
    assert snap["assessment"]["id"] == assessment_id
    assert snap["assessment"]["sections"]["mental"]["data"] == {"gds_q1": False}
    assert snap["assessment"]["sections"]["medical"]["data"] == {"allergies": "none"}


def test_complete_with_missing_fields_lists_them(client):
    sid = _open(client)["session_id"]
    _fill_basic(client, sid)

    r = client.post(f"/sessions/{sid}/save", json={"status": "complete"}, headers=NURSE)
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "INCOMPLETE_ASSESSMENT"
    assert "medical" in body["validation_errors"]
    assert "basic" not in body["validation_errors"]


def test_section_validation_and_basic_progress(client):
    sid = _open(client)["session_id"]
    _set(client, sid, "basic", "clientId", "client-api")

    r = client.get(f"/sessions/{sid}/validation/basic", headers=NURSE)
    assert r.status_code == 200
    body = r.json()
    fields = [e["field"] for e in body["errors"]]
    assert fields == ["assessmentDate", "completionDate", "consultationReasons"]
    assert body["basic_progress"] == 25

    r = client.post(f"/sessions/{sid}/validation", headers=NURSE)
    body = r.json()
    assert body["error_count"] > 0
    assert "basic" in body["errors"]
    assert 0 <= body["overall_completion"] <= 100


def test_scores(client):
    sid = _open(client)["session_id"]
    _set(client, sid, "slums", "cognitive_education_level", "High School Graduate")
    _set(client, sid, "slums", "slums_q1_score", 1)
    for i in range(1, 16):
        _set(client, sid, "mental", f"gds_q{i}", i % 2 == 0)

    body = client.get(f"/sessions/{sid}/scores", headers=NURSE).json()
    assert body["cognitive"]["total"] == 1
    assert body["cognitive"]["interpretation"] == "Dementia"
    assert body["depression"]["answered"] == 15
    assert body["depression"]["is_complete"] is True


def test_navigation_and_read_only_modes(client):
    sid = _open(client)["session_id"]

    r = client.post(f"/sessions/{sid}/navigate", json={"direction": "next"}, headers=NURSE)
    assert r.json()["current_section"] == "medical"
    r = client.post(f"/sessions/{sid}/navigate", json={"section": "summary"}, headers=NURSE)
    assert r.json()["current_section"] == "summary"

    r = client.post(f"/sessions/{sid}/mode", json={"mode": "view"}, headers=NURSE)
    assert r.json()["mode"] == "view"
    r = client.patch(f"/sessions/{sid}/fields", json={"section": "basic", "field": "clientId", "value": "x"}, headers=NURSE)
    assert r.status_code == 400


def test_export_formats(client):
    sid = _open(client)["session_id"]
    r = client.get(f"/sessions/{sid}/export", params={"format": "json"}, headers=NURSE)
    assert r.status_code == 200
    assert r.json()["format"] == "json"
    assert "scores" in r.json()

    assert client.get(f"/sessions/{sid}/export", params={"format": "print"}, headers=NURSE).status_code == 200
    assert client.get(f"/sessions/{sid}/export", params={"format": "docx"}, headers=NURSE).status_code == 400


def test_sessions_are_private_and_closable(client):
    sid = _open(client)["session_id"]
    assert client.get(f"/sessions/{sid}", headers=OTHER).status_code == 404

    assert client.delete(f"/sessions/{sid}", headers=NURSE).status_code == 204
    r = client.get(f"/sessions/{sid}", headers=NURSE)
    assert r.status_code == 404
    assert r.json()["error"] == "SESSION_NOT_FOUND"


def test_unknown_assessment_is_404(client):
    r = client.get("/assessments/nope", headers=NURSE)
    assert r.status_code == 404


def test_print_view_renders_html(client):
    sid = _open(client)["session_id"]
    _set(client, sid, "basic", "clientId", "client-<print>")
    _set(client, sid, "mental", "gds_q1", True)

    r = client.get(f"/sessions/{sid}/print", headers=NURSE)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Geriatric Depression Scale" in r.text
    assert "client-&lt;print&gt;" in r.text
    assert "<td>Yes</td>" in r.text


@pytest.mark.parametrize("level", [12, ["High School Graduate"]])
def test_scores_survive_non_text_education_level(client, level):
    sid = _open(client)["session_id"]
    _set(client, sid, "slums", "cognitive_education_level", level)
    _set(client, sid, "slums", "slums_q1_score", 1)

    r = client.get(f"/sessions/{sid}/scores", headers=NURSE)
    assert r.status_code == 200, r.text
    assert r.json()["cognitive"]["interpretation"] == "Undetermined"
    assert r.json()["cognitive"]["education_level"] is None
    assert client.get(f"/sessions/{sid}/export", headers=NURSE).status_code == 200
    assert client.get(f"/sessions/{sid}/print", headers=NURSE).status_code == 200


def test_records_are_private_to_their_author(client):
    sid = _open(client)["session_id"]
    _fill_basic(client, sid, client_id="client-private")
    assessment_id = client.post(f"/sessions/{sid}/save", json={}, headers=NURSE).json()["assessment_id"]

    r = client.get(f"/assessments/{assessment_id}", headers=OTHER)
    assert r.status_code == 404
    assert r.json()["error"] == "RECORD_NOT_FOUND"

    snap = _open(client, headers=OTHER, assessment_id=assessment_id)
    assert snap["assessment"]["id"] == ""
    assert snap["assessment"]["client_id"] == ""

    admin = {"X-User-Id": "lead-1", "X-User-Role": "admin"}
    r = client.get(f"/assessments/{assessment_id}", headers=admin)
    assert r.status_code == 200
    assert r.json()["client_id"] == "client-private"


def test_reading_basic_validation_leaves_form_clean(client):
    sid = _open(client)["session_id"]

    r = client.get(f"/sessions/{sid}/validation/basic", headers=NURSE)
    assert r.json()["basic_progress"] == 0

    snap = client.get(f"/sessions/{sid}", headers=NURSE).json()
    assert snap["has_unsaved_changes"] is False
