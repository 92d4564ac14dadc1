"""
Unit Tests - Settings
"""
import pytest
from pydantic import ValidationError

from surveyor_stats.config.settings import ReportSettings


class TestReportSettings:
    """Tests for ReportSettings"""

    def test_default_cron_schedule(self):
        """Test the default send time becomes a daily 18:00 schedule"""
        assert ReportSettings().cron_schedule == "0 18 * * *"

    def test_send_time_normalized(self):
        """Test single-digit hours are accepted"""
        report = ReportSettings(send_time="7:05")

        assert report.send_time == "07:05"
        assert report.cron_schedule == "5 7 * * *"

    @pytest.mark.parametrize("send_time", ["18", "24:00", "18:60", "6pm", "18:5", ""])
    def test_invalid_send_time(self, send_time):
        """Test malformed send times are rejected"""
        with pytest.raises(ValidationError):
            ReportSettings(send_time=send_time)

    def test_invalid_period(self):
        """Test unknown periods are rejected"""
        with pytest.raises(ValidationError):
            ReportSettings(period="fortnight")
