"""
Integration tests for FastAPI endpoints.

Tests verify request validation, error mapping and JSON responses.
"""

import datetime
from unittest.mock import patch

import pytest
from icalendar import Calendar, Event

from shiftpay.core.config import DEFAULT_PROFILE
from shiftpay.core.ics_fetcher import FetchResult, IcsFetchError
from shiftpay.database.database import ConfigOverride


def sample_ics() -> str:
    cal = Calendar()
    cal.add("prodid", "-//shiftpay tests//")
    cal.add("version", "2.0")
    for index, (start, end) in enumerate(
        [
            (datetime.datetime(2025, 3, 4, 8), datetime.datetime(2025, 3, 4, 16)),
            (datetime.datetime(2025, 3, 5, 8), datetime.datetime(2025, 3, 5, 16)),
            (datetime.datetime(2025, 3, 11, 8), datetime.datetime(2025, 3, 11, 16)),
        ]
    ):
        event = Event()
        event.add("uid", f"shift-{index}@tests")
        event.add("summary", "Warehouse")
        event.add("dtstart", start)
        event.add("dtend", end)
        cal.add_component(event)
    return cal.to_ical().decode("utf-8")


class TestHealth:
    def test_health_endpoint_returns_ok(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_echoed(self, test_client):
        response = test_client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"


class TestCalculate:
    def test_reference_shift(self, test_client):
        response = test_client.post(
            "/api/calculate",
            json={"start": "2025-03-04T08:00", "end": "2025-03-04T16:00", "age": 30},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["include_break"] is True
        assert data["total_hours"] == pytest.approx(7.5)
        assert data["net_salary"] == pytest.approx(89.607525)
        assert data["formatted"]["net_salary"] == "89,61\u00a0€"
        assert len(data["segments"]) == 8

    def test_explicit_no_break(self, test_client):
        response = test_client.post(
            "/api/calculate",
            json={"start": "2025-03-04T08:00", "end": "2025-03-04T16:00", "include_break": False},
        )

        assert response.json()["total_hours"] == pytest.approx(8)

    def test_default_age_used_when_omitted(self, test_client):
        data = test_client.post(
            "/api/calculate", json={"start": "2025-03-04T08:00", "end": "2025-03-04T16:00"}
        ).json()

        assert data["pension_rate"] == pytest.approx(7.15)

    def test_null_age_skips_pension(self, test_client):
        data = test_client.post(
            "/api/calculate", json={"start": "2025-03-04T08:00", "end": "2025-03-04T16:00", "age": None}
        ).json()

        assert data["pension_amount"] == 0
        assert data["insurance_amount"] > 0

    @pytest.mark.parametrize(
        "start,end,reason",
        [
            ("2025-03-04T16:00", "2025-03-04T08:00", "End time must be after start time."),
            ("", "2025-03-04T08:00", "Please enter valid start and end times."),
        ],
    )
    def test_invalid_interval(self, test_client, start, end, reason):
        response = test_client.post("/api/calculate", json={"start": start, "end": end})

        assert response.status_code == 400
        assert response.json()["detail"] == reason

    def test_uses_stored_overrides(self, test_client):
        test_client.patch("/api/config", json={"path": "rates.base_hourly_rate", "value": 20})

        data = test_client.post(
            "/api/calculate",
            json={"start": "2025-03-04T08:00", "end": "2025-03-04T09:00", "include_break": False},
        ).json()

        assert data["base_salary"] == pytest.approx(20)


class TestEndTime:
    def test_default_duration(self, test_client):
        response = test_client.get("/api/end-time", params={"start": "2025-03-04T22:00"})

        assert response.status_code == 200
        assert response.json()["end"] == "2025-03-05T06:00"

    def test_explicit_duration(self, test_client):
        response = test_client.get("/api/end-time", params={"start": "2025-03-04T08:00", "duration": 4.5})

        assert response.json()["end"] == "2025-03-04T12:30"

    def test_invalid_start(self, test_client):
        response = test_client.get("/api/end-time", params={"start": "nope"})

        assert response.status_code == 400


class TestConfigEndpoints:
    def test_read_defaults(self, test_client):
        data = test_client.get("/api/config").json()

        assert data["overrides"] == {}
        assert data["config"]["rates"]["base_hourly_rate"] == 12.95
        assert data["windows"]["eveningWeekday"] == "Mon-Fri 18-22"

    def test_put_patch_delete(self, test_client):
        response = test_client.put("/api/config", json={"rates": {"base_hourly_rate": 13.5}})
        assert response.status_code == 200
        assert response.json()["config"]["rates"]["base_hourly_rate"] == 13.5

        response = test_client.patch("/api/config", json={"path": "deductions.insurance_rate", "value": 0.79})
        assert response.json()["overrides"] == {
            "rates": {"base_hourly_rate": 13.5},
            "deductions": {"insurance_rate": 0.79},
        }

        response = test_client.delete("/api/config")
        assert response.json()["overrides"] == {}
        assert response.json()["config"]["rates"]["base_hourly_rate"] == 12.95

    def test_invalid_value_rejected(self, test_client):
        response = test_client.patch("/api/config", json={"path": "rates.base_hourly_rate", "value": -3})

        assert response.status_code == 422
        assert test_client.get("/api/config").json()["overrides"] == {}

    def test_read_single_value(self, test_client):
        response = test_client.get("/api/config/value", params={"path": "rates.bonus_rules.saturday.rate"})

        assert response.json() == {"path": "rates.bonus_rules.saturday.rate", "value": 5.46}
        assert test_client.get("/api/config/value", params={"path": "rates.nothing"}).status_code == 404

    def test_null_value_is_not_missing(self, test_client):
        response = test_client.get("/api/config/value", params={"path": "rates.break_threshold_minutes"})

        assert response.status_code == 200
        assert response.json() == {"path": "rates.break_threshold_minutes", "value": None}

    def test_read_document_can_be_put_back(self, test_client):
        document = test_client.get("/api/config").json()["config"]
        for rule in document["rates"]["bonus_rules"]:
            if rule["key"] == "saturday":
                rule["rate"] = 6.0

        response = test_client.put("/api/config", json=document)

        assert response.status_code == 200
        rates = response.json()["config"]["rates"]
        assert rates["base_hourly_rate"] == 12.95
        assert {rule["key"]: rule["rate"] for rule in rates["bonus_rules"]}["saturday"] == 6.0

    @pytest.mark.parametrize(
        "method,body",
        [
            ("patch", {"path": "rates", "value": 5}),
            ("patch", {"path": "deductions.pension_bands", "value": "high"}),
            ("put", {"rates": {"bonus_rules": 3}}),
        ],
    )
    def test_wrong_shape_rejected(self, test_client, method, body):
        response = getattr(test_client, method)("/api/config", json=body)

        assert response.status_code == 422
        assert test_client.get("/api/config").json()["overrides"] == {}

    def test_broken_stored_overrides(self, test_client, test_db):
        test_db.add(ConfigOverride(profile=DEFAULT_PROFILE, overrides={"rates": {"base_hourly_rate": -1}}))
        test_db.commit()

        assert test_client.get("/api/config").status_code == 422
        assert test_client.get("/api/config/value", params={"path": "rates.break_minutes"}).status_code == 422
        assert test_client.get("/api/calendar").status_code == 422
        assert test_client.get("/api/end-time", params={"start": "2025-03-04T08:00"}).status_code == 422
        response = test_client.post("/api/calculate", json={"start": "2025-03-04T08:00", "end": "2025-03-04T16:00"})
        assert response.status_code == 422

        response = test_client.delete("/api/config")
        assert response.status_code == 200
        assert test_client.get("/api/config").status_code == 200


class TestCalendarEndpoints:
    def test_parse_raw_body(self, test_client):
        response = test_client.post(
            "/api/calendar/parse",
            content=sample_ics(),
            headers={"Content-Type": "text/calendar"},
        )

        assert response.status_code == 200
        data = response.json()
        assert [week["key"] for week in data["weeks"]] == ["2025-W10", "2025-W11"]
        assert data["grand_total"]["shifts_count"] == 3
        assert data["grand_total"]["total_hours"] == pytest.approx(22.5)

    def test_parse_garbage(self, test_client):
        response = test_client.post("/api/calendar/parse", content="")

        assert response.status_code == 400

    def test_import_saved_url(self, test_client):
        test_client.put("/api/calendar/url", json={"url": "https://shifts.example/feed.ics"})

        with patch("shiftpay.routes.calendar.fetch_ics_data") as mock_fetch:
            mock_fetch.return_value = FetchResult(data=sample_ics(), used_proxy=True)
            response = test_client.post("/api/calendar/import", json={})

        mock_fetch.assert_called_once_with("https://shifts.example/feed.ics")
        assert response.status_code == 200
        assert response.json()["used_proxy"] is True
        assert response.json()["grand_total"]["shifts_count"] == 3

        stored = test_client.get("/api/calendar").json()
        assert stored["url"] == "https://shifts.example/feed.ics"
        assert stored["summary"]["grand_total"]["shifts_count"] == 3

    def test_import_without_url(self, test_client):
        response = test_client.post("/api/calendar/import", json={})

        assert response.status_code == 400

    def test_fetch_failure_is_bad_gateway(self, test_client):
        with patch("shiftpay.routes.calendar.fetch_ics_data", side_effect=IcsFetchError("Both failed")):
            response = test_client.post("/api/calendar/import", json={"url": "https://shifts.example/feed.ics"})

        assert response.status_code == 502
        assert response.json()["detail"] == "Both failed"

    def test_toggle_shift_and_week(self, test_client):
        data = test_client.post("/api/calendar/parse", content=sample_ics()).json()
        shift_id = data["weeks"][0]["shifts"][0]["shift"]["id"]

        data = test_client.patch(f"/api/calendar/shifts/{shift_id}", json={"enabled": False}).json()
        assert data["grand_total"]["shifts_count"] == 2

        data = test_client.patch("/api/calendar/weeks/2025-W11", json={"enabled": False}).json()
        assert data["grand_total"]["shifts_count"] == 1

        data = test_client.patch("/api/calendar/weeks/2025-W10", json={"enabled": True}).json()
        assert data["grand_total"]["shifts_count"] == 2

    def test_toggle_uses_given_age(self, test_client):
        data = test_client.post("/api/calendar/parse", content=sample_ics()).json()
        shift_id = data["weeks"][0]["shifts"][0]["shift"]["id"]

        data = test_client.patch(f"/api/calendar/shifts/{shift_id}", params={"age": 55}, json={"enabled": False}).json()
        assert {item["breakdown"]["pension_rate"] for item in data["weeks"][1]["shifts"]} == {8.65}

        data = test_client.patch("/api/calendar/weeks/2025-W10", json={"enabled": True}).json()
        assert {item["breakdown"]["pension_rate"] for item in data["weeks"][1]["shifts"]} == {7.15}

    def test_toggle_unknown(self, test_client):
        assert test_client.patch("/api/calendar/shifts/shift-0", json={"enabled": False}).status_code == 404
        assert test_client.patch("/api/calendar/weeks/2025-W01", json={"enabled": False}).status_code == 404
