from datetime import date
from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from scout.models.domain.delivery_domain import AnalyticsRow
from scout.routes import analytics


def make_client() -> TestClient:
    app = FastAPI()
    app.include_router(analytics.router)
    return TestClient(app)


def test_date_range_is_required():
    response = make_client().get("/analytics/deliveries", params={"send_date_from": "2026-02-01"})

    assert response.status_code == 400


def test_malformed_date_is_400():
    response = make_client().get(
        "/analytics/deliveries",
        params={"send_date_from": "2026-02-01", "send_date_to": "2026/02/28"},
    )

    assert response.status_code == 400
    assert "send_date_to" in response.json()["detail"]


def test_inverted_range_is_400():
    response = make_client().get(
        "/analytics/deliveries",
        params={"send_date_from": "2026-03-01", "send_date_to": "2026-02-01"},
    )

    assert response.status_code == 400


def test_returns_grouped_counts(monkeypatch):
    analytics_mock = AsyncMock(
        return_value=[
            AnalyticsRow(send_date=date(2026, 2, 24), time_slot="12-17", template_type="A", count=3),
            AnalyticsRow(send_date=date(2026, 2, 24), time_slot="18-23", template_type="B", count=1),
        ]
    )
    monkeypatch.setattr("scout.routes.analytics.delivery_analytics", analytics_mock)

    response = make_client().get(
        "/analytics/deliveries",
        params={"send_date_from": "2026-02-01", "send_date_to": "2026-02-28"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "rows": [
            {"send_date": "2026-02-24", "time_slot": "12-17", "template_type": "A", "count": 3},
            {"send_date": "2026-02-24", "time_slot": "18-23", "template_type": "B", "count": 1},
        ]
    }
    analytics_mock.assert_awaited_once_with(date(2026, 2, 1), date(2026, 2, 28))
