"""Tests for the historical data endpoints."""

import pytest
from fastapi.testclient import TestClient

from src.sitewatch.api.deps import get_history_service
from src.sitewatch.api.main import app
from src.sitewatch.history.errors import QueryFailedError
from src.sitewatch.history.query import HistoricalQueryService


class RecordingService:
    """Stands in for the query service and remembers what it was asked."""

    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.calls = []

    def fetch(self, table_name, columns, start_date, end_date, limit=None, day_key="timestamp"):
        self.calls.append((table_name, columns, start_date, end_date, limit, day_key))
        if self.error is not None:
            raise self.error
        return self.rows


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sqlite_service(engine):
    service = HistoricalQueryService(engine)
    app.dependency_overrides[get_history_service] = lambda: service
    return service


def use(service):
    app.dependency_overrides[get_history_service] = lambda: service
    return service


class TestDataEndpoint:

    def test_returns_rows(self, client, sqlite_service):
        response = client.get(
            "/api/data",
            params={
                "table_name": "Al_Faqaa",
                "column_name": "Current_L1",
                "start_time": "2024-03-02",
                "end_time": "2024-03-02",
            },
        )

        assert response.status_code == 200
        assert response.json() == [
            {"timestamp": "2024-03-02 08:05:00", "Current_L1": 10.0},
            {"timestamp": "2024-03-02 08:55:00", "Current_L1": 20.0},
        ]

    def test_long_range_uses_day_key(self, client, sqlite_service):
        response = client.get(
            "/api/data",
            params={
                "table_name": "Al_Faqaa",
                "column_name": "Current_L1",
                "start_time": "2024-03-01",
                "end_time": "2024-05-01",
            },
        )

        assert response.status_code == 200
        assert response.json() == [
            {"day": "2024-03-01", "Current_L1": 40.0},
            {"day": "2024-03-02", "Current_L1": 15.0},
        ]

    def test_missing_parameter_echoes_what_was_received(self, client):
        service = use(RecordingService())
        response = client.get(
            "/api/data",
            params={"table_name": "Al_Faqaa", "column_name": "Current_L1", "start_time": "2024-03-01"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "Missing required parameters",
            "received": {
                "table_name": "Al_Faqaa",
                "column_name": "Current_L1",
                "start_time": "2024-03-01",
                "end_time": None,
            },
        }
        assert service.calls == []

    def test_column_that_sanitizes_to_nothing(self, client, sqlite_service):
        response = client.get(
            "/api/data",
            params={"table_name": "Al_Faqaa", "column_name": "``", "start_time": "2024-03-01", "end_time": "2024-03-01"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Empty column name after processing", "original": "``"}

    def test_database_failure_is_500(self, client):
        use(RecordingService(error=QueryFailedError("Failed to fetch data from database", details={"details": "gone away"})))
        params = {"table_name": "BK1", "column_name": "Ts1", "start_time": "2024-03-01", "end_time": "2024-03-01"}

        response = client.get("/api/data", params=params)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to fetch data from database"
        assert body["details"] == "gone away"
        assert body["query_params"] == params


class TestHistoricalDataEndpoint:

    def test_parameter_expands_to_site_columns(self, client):
        service = use(RecordingService(rows=[{"timestamp": "2024-03-01 00:00:00", "Ts1": 25.0}]))

        response = client.get(
            "/api/historical-data",
            params={"parameter": "Temperature", "startDate": "2024-03-01", "endDate": "2024-03-02", "timeStamp": "f08"},
        )

        assert response.status_code == 200
        assert response.json() == [{"timestamp": "2024-03-01 00:00:00", "Ts1": 25.0}]
        table, columns, start, end, limit, day_key = service.calls[0]
        assert table == "BK1"
        assert columns == ["Ts1", "Ts2", "Ts3", "Ts4"]
        assert (start, end, limit, day_key) == ("2024-03-01", "2024-03-02", None, "timestamp")

    def test_dual_analyser_site(self, client):
        service = use(RecordingService())

        client.get(
            "/api/historical-data",
            params={"parameter": "Voltage", "startDate": "2024-03-01", "endDate": "2024-03-02", "timeStamp": "Faqah"},
        )

        table, columns = service.calls[0][:2]
        assert table == "Al_Faqaa"
        assert columns[-1] == "Phase_L3_Phase_L1_VoltageA"

    def test_missing_dates(self, client):
        use(RecordingService())
        response = client.get("/api/historical-data", params={"parameter": "Current", "timeStamp": "f21"})

        assert response.status_code == 400
        assert response.json()["received"] == {
            "parameter": "Current",
            "startDate": None,
            "endDate": None,
            "timeStamp": "f21",
        }

    def test_missing_site_key(self, client):
        service = use(RecordingService())
        response = client.get(
            "/api/historical-data",
            params={"parameter": "Current", "startDate": "2024-03-01", "endDate": "2024-03-02"},
        )

        assert response.status_code == 400
        assert service.calls == []

    def test_unknown_parameter(self, client):
        use(RecordingService())
        response = client.get(
            "/api/historical-data",
            params={"parameter": "Pressure", "startDate": "2024-03-01", "endDate": "2024-03-02", "timeStamp": "f21"},
        )

        assert response.status_code == 400
        assert response.json()["parameter"] == "Pressure"


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "SiteWatch API"
