"""
Unit Tests - HTTP API
"""
import pytest
from fastapi.testclient import TestClient

from surveyor_stats.config.settings import ReportSettings, Settings
from surveyor_stats.pipeline import PipelineServices
from surveyor_stats.serving.api import create_api_app

from tests.fakes import FakeReportFetcher, RecordingSender, make_report_payload


@pytest.fixture
def services(memory_store, crm_config):
    settings = Settings(APP_ENV="testing")
    settings.crm = crm_config
    settings.report = ReportSettings(email_recipients=["admin@example.com"])
    fetcher = FakeReportFetcher({
        "00OLEAD": make_report_payload([("J. Smith", "Working - Contacted", 4)]),
    })
    return PipelineServices(memory_store, fetcher, RecordingSender(), RecordingSender(), settings)


@pytest.fixture
def client(services):
    app = create_api_app()
    app.state.services = services
    return TestClient(app)


class TestHealthRoutes:
    """Tests for health endpoints"""

    def test_liveness(self, client):
        """Test liveness always answers"""
        response = client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}
        assert "X-Request-ID" in response.headers

    def test_readiness_without_database(self, client):
        """Test readiness fails until the database is initialized"""
        response = client.get("/api/v1/health/ready")

        assert response.status_code == 503


class TestSyncRoutes:
    """Tests for sync endpoints"""

    def test_trigger_sync(self, client, memory_store):
        """Test a manual sync runs and reports its outcome"""
        response = client.post("/api/v1/sync/run")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["records_processed"] == 1
        assert len(memory_store.aggregates) == 1

    def test_list_runs(self, client):
        """Test run history is listed newest first"""
        client.post("/api/v1/sync/run")
        client.post("/api/v1/sync/run")

        response = client.get("/api/v1/sync/runs", params={"limit": 1})

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_services_missing(self):
        """Test pipeline routes answer 503 before startup wiring"""
        client = TestClient(create_api_app())

        assert client.post("/api/v1/sync/run").status_code == 503


class TestReportRoutes:
    """Tests for report endpoints"""

    def test_pipeline_run(self, client, services):
        """Test the combined trigger returns the pipeline summary"""
        response = client.post("/api/v1/pipeline/run", json={})

        assert response.status_code == 200
        body = response.json()
        assert body["records_processed"] == 1
        assert body["emails_sent"] == 1
        assert body["sms_sent"] == 0

    def test_pipeline_run_sync_failure(self, client, services):
        """Test a failed sync returns 500 and sends nothing"""
        services.fetcher.failing = {"00OLEAD"}

        response = client.post("/api/v1/pipeline/run", json={})

        assert response.status_code == 500
        assert services.email_sender.sent == []

    def test_send_report_delivery_failure(self, client, services):
        """Test an unreachable channel returns 502 with the delivery tally"""
        services.email_sender = RecordingSender(configured=False)

        response = client.post("/api/v1/reports/send", json={"period": "yesterday"})

        assert response.status_code == 502
        assert response.json()["detail"]["delivery"]["unreachable_channels"] == ["email"]

    def test_invalid_period(self, client):
        """Test an unknown period is rejected by validation"""
        response = client.post("/api/v1/reports/send", json={"period": "last_month"})

        assert response.status_code == 422


class TestMetrics:
    """Tests for the Prometheus endpoint"""

    def test_metrics_exposed(self, client):
        """Test pipeline metrics are exported"""
        client.post("/api/v1/sync/run")

        response = client.get("/metrics/")

        assert response.status_code == 200
        assert "surveyor_stats_sync_runs_total" in response.text
