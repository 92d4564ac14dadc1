"""
Surveyor Stats Platform
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import List, Optional, Tuple

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="surveyor_stats", description="Database name")
    user: str = Field(default="surveyor", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Full async URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class CRMSettings(BaseSettings):
    """Salesforce CRM Configuration"""

    model_config = SettingsConfigDict(env_prefix="SALESFORCE_")

    instance_url: Optional[str] = Field(default=None, description="Salesforce instance URL")
    client_id: Optional[str] = Field(default=None, description="Connected app client id")
    client_secret: Optional[SecretStr] = Field(default=None, description="Connected app client secret")
    username: Optional[str] = Field(default=None, description="Integration user name")
    password: Optional[SecretStr] = Field(default=None, description="Integration user password")
    api_version: str = Field(default="v57.0", description="REST API version")
    lead_report_id: Optional[str] = Field(default=None, description="Lead status report id")
    appointment_report_id: Optional[str] = Field(default=None, description="Appointment status report id")
    request_timeout_seconds: int = Field(default=30, description="HTTP timeout for CRM calls")
    token_ttl_minutes: int = Field(default=90, description="Access token cache lifetime")

    def missing_credentials(self) -> List[str]:
        """Names of credential fields that are not set"""
        required = {
            "instance_url": self.instance_url,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": self.username,
            "password": self.password,
        }
        return [name for name, value in required.items() if not value]

    def report_sources(self) -> List[Tuple[str, str]]:
        """Configured (record_type, report_id) pairs, lead first"""
        sources = []
        if self.lead_report_id:
            sources.append(("lead", self.lead_report_id))
        if self.appointment_report_id:
            sources.append(("appointment", self.appointment_report_id))
        return sources


class EmailSettings(BaseSettings):
    """SendGrid Email Configuration"""

    model_config = SettingsConfigDict(env_prefix="SENDGRID_")

    api_key: Optional[SecretStr] = Field(default=None, description="SendGrid API key")
    from_email: str = Field(default="noreply@rainsoft.com", description="Verified sender address")
    api_url: str = Field(default="https://api.sendgrid.com/v3/mail/send", description="Mail send endpoint")
    timeout_seconds: int = Field(default=15, description="HTTP timeout")


class SMSSettings(BaseSettings):
    """Twilio SMS Configuration"""

    model_config = SettingsConfigDict(env_prefix="TWILIO_")

    account_sid: Optional[str] = Field(default=None, description="Twilio account SID")
    auth_token: Optional[SecretStr] = Field(default=None, description="Twilio auth token")
    phone_number: Optional[str] = Field(default=None, description="Sending phone number")
    default_country_code: str = Field(default="+1", description="Prefix for numbers without one")
    timeout_seconds: int = Field(default=15, description="HTTP timeout")


class ReportSettings(BaseSettings):
    """Period Report Configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    enabled: bool = Field(default=True, description="Send scheduled reports")
    email_recipients: List[str] = Field(default_factory=list, description="Admin email addresses")
    sms_recipients: List[str] = Field(default_factory=list, description="Admin phone numbers")
    period: str = Field(default="today", description="Default report period")
    send_time: str = Field(default="18:00", description="Scheduled send time (HH:MM)")
    timezone: str = Field(default="UTC", description="Timezone defining 'today'")
    include_survey_stats: bool = Field(default=True, description="Include survey outcomes")
    include_time_clock: bool = Field(default=True, description="Include time clock data")
    include_inactivity: bool = Field(default=True, description="Include inactivity data")
    incident_detail_limit: int = Field(default=5, description="Max incidents listed individually")
    top_performer_count: int = Field(default=3, description="Entries in the top performer ranking")

    @field_validator("period")
    @classmethod
    def validate_period(cls, v: str) -> str:
        """Validate report period"""
        allowed = ["today", "yesterday", "last_7_days"]
        if v not in allowed:
            raise ValueError(f"Report period must be one of: {allowed}")
        return v

    @field_validator("send_time")
    @classmethod
    def validate_send_time(cls, v: str) -> str:
        """Validate HH:MM send time"""
        hour, sep, minute = v.partition(":")
        if not (sep and hour.isdigit() and minute.isdigit() and len(minute) == 2):
            raise ValueError("Report send_time must be HH:MM")
        if not (0 <= int(hour) <= 23 and 0 <= int(minute) <= 59):
            raise ValueError("Report send_time must be a valid time of day")
        return f"{int(hour):02d}:{minute}"

    @property
    def cron_schedule(self) -> str:
        """Daily cron expression for the scheduled send"""
        hour, minute = self.send_time.split(":")
        return f"{int(minute)} {int(hour)} * * *"


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="surveyor-stats", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    crm: CRMSettings = Field(default_factory=CRMSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    sms: SMSSettings = Field(default_factory=SMSSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Convenience function for accessing settings
settings = get_settings()
