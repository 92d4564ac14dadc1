"""
Unit Tests - Prefect Workflows
"""
from workflows.nightly_stats import deliver_period_report, sync_and_report, sync_survey_stats


class TestTaskRetries:
    """Tests for task retry policy"""

    def test_delivery_never_retried(self):
        """Test a failed delivery is not resent"""
        assert deliver_period_report.retries == 0

    def test_sync_tasks_never_retried(self):
        """Test sync tasks run once per flow run"""
        assert sync_survey_stats.retries == 0
        assert sync_and_report.retries == 0
