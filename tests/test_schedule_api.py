# tests/test_schedule_api.py
from http import HTTPStatus

WEEKLY_RULE = {
    "id": "rule-42",
    "owner_id": "instructor-7",
    "kind": "WEEKLY",
    "day_of_week": 2,
    "start_time": "09:00",
    "end_time": "12:00",
}

BAD_RULE = {**WEEKLY_RULE, "id": "rule-bad", "start_time": "9am"}

WINDOW = {"start": "2025-10-06", "end": "2025-10-12"}


def test_expand_returns_instances_and_diagnostics(client):
    response = client.post(
        "/schedule/expand",
        json={"rules": [WEEKLY_RULE, BAD_RULE], "window": WINDOW, "timezone": "Africa/Nairobi"},
    )

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert [i["key"] for i in data["instances"]] == ["rule-42:2025-10-07"]
    assert data["instances"][0]["start"] == "2025-10-07T09:00:00+03:00"
    assert [d["rule_id"] for d in data["diagnostics"]] == ["rule-bad"]


def test_expand_rejects_unknown_timezone(client):
    response = client.post(
        "/schedule/expand",
        json={"rules": [WEEKLY_RULE], "window": WINDOW, "timezone": "Nowhere/City"},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "Nowhere/City" in response.json()["detail"]


def test_expand_rejects_oversized_window(client):
    response = client.post(
        "/schedule/expand",
        json={
            "rules": [WEEKLY_RULE],
            "window": {"start": "2025-01-01", "end": "2027-01-01"},
            "timezone": "Africa/Nairobi",
        },
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_expand_rejects_unparsable_window(client):
    response = client.post(
        "/schedule/expand",
        json={
            "rules": [WEEKLY_RULE],
            "window": {"start": "06/10/2025", "end": "2025-10-12"},
            "timezone": "Africa/Nairobi",
        },
    )

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_timeline_trims_availability_around_booking(client):
    booking = {
        "source_rule_id": "booking-1",
        "owner_id": "instructor-7",
        "date": "2025-10-07",
        "start": "2025-10-07T10:00:00+03:00",
        "end": "2025-10-07T11:00:00+03:00",
        "status": "BOOKED",
    }

    response = client.post(
        "/schedule/timeline",
        json={
            "rules": [WEEKLY_RULE],
            "one_offs": [booking],
            "window": WINDOW,
            "timezone": "Africa/Nairobi",
        },
    )

    assert response.status_code == HTTPStatus.OK
    keys = [i["key"] for i in response.json()["instances"]]
    assert keys == ["rule-42:2025-10-07", "booking-1:2025-10-07", "rule-42:2025-10-07#1"]


def _resolve_payload(**template_overrides):
    template = {
        "template_id": "yoga-series",
        "owner_id": "instructor-7",
        "window_start": "2025-09-30T09:00:00+03:00",
        "window_end": "2025-09-30T10:00:00+03:00",
        "timezone": "Africa/Nairobi",
        "recurrence": {"type": "WEEKLY", "days_of_week": [2], "occurrence_count": 3},
        "conflict_resolution": "FAIL",
    }
    template.update(template_overrides)
    blocked = {
        "source_rule_id": "block-1",
        "owner_id": "instructor-7",
        "date": "2025-10-07",
        "start": "2025-10-07T09:00:00+03:00",
        "end": "2025-10-07T10:00:00+03:00",
        "status": "BLOCKED",
    }
    return {"template": template, "timeline": [blocked]}


def test_resolve_reports_rejection_as_data(client):
    response = client.post("/schedule/resolve", json=_resolve_payload())

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert data["outcome"] == "REJECTED"
    assert data["accepted_occurrences"] == []
    assert len(data["rejected_occurrences"]) == 3


def test_resolve_skip_returns_partial(client):
    response = client.post("/schedule/resolve", json=_resolve_payload(conflict_resolution="SKIP"))

    assert response.status_code == HTTPStatus.OK
    data = response.json()
    assert data["outcome"] == "PARTIAL"
    assert [o["date"] for o in data["accepted_occurrences"]] == ["2025-09-30", "2025-10-14"]


def test_resolve_rejects_naive_timestamps(client):
    payload = _resolve_payload(window_start="2025-09-30T09:00:00")

    response = client.post("/schedule/resolve", json=payload)

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_resolve_rejects_unknown_timezone(client):
    response = client.post("/schedule/resolve", json=_resolve_payload(timezone="Nowhere/City"))

    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_resolve_rejects_occurrence_count_above_limit(client):
    payload = _resolve_payload(recurrence={"type": "DAILY", "occurrence_count": 501})

    response = client.post("/schedule/resolve", json=payload)

    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_calendar_projection_endpoint(client):
    instance = {
        "source_rule_id": "rule-42",
        "owner_id": "instructor-7",
        "date": "2025-10-07",
        "start": "2025-10-07T09:00:00+03:00",
        "end": "2025-10-07T10:00:00+03:00",
        "status": "AVAILABLE",
    }

    response = client.post(
        "/schedule/calendar",
        json={"instances": [instance], "granularity": "WEEK", "window": WINDOW},
    )

    assert response.status_code == HTTPStatus.OK
    (bucket,) = response.json()["buckets"]
    assert bucket["key"] == "2025-W41"
    assert bucket["available_count"] == 1


def test_slot_grid_endpoint(client):
    response = client.post(
        "/schedule/slots",
        json={"instances": [], "day": "2025-10-07", "timezone": "Africa/Nairobi", "slot_minutes": 60},
    )

    assert response.status_code == HTTPStatus.OK
    cells = response.json()
    assert len(cells) == 19
    assert all(cell["status"] is None for cell in cells)


def test_slot_grid_endpoint_rejects_unknown_timezone(client):
    response = client.post(
        "/schedule/slots",
        json={"day": "2025-10-07", "timezone": "Nowhere/City"},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
