"""
Database Models

Tables read and written by the survey stats pipeline:

Configuration (operator-owned, read-only to the pipeline):
- StatusMappingRecord: CRM status -> outcome category

Workforce (owned by employee management and the time clock):
- Employee: roster with the alias used for CRM matching
- TimeEntry: clock-in / clock-out shifts
- InactivityLog: detected inactivity incidents

Pipeline output:
- EmployeeSurveyStats: one row per employee per day
- StatsSyncLog: audit trail of sync runs
"""

from datetime import date, datetime
from typing import Optional
import uuid

from sqlalchemy import (
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from surveyor_stats.schemas import OutcomeCategory, RecordType, SyncStatus


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


def _enum(enum_cls, name: str) -> SQLEnum:
    """Store enum values (not member names) as portable VARCHARs"""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


def _uuid_str() -> str:
    return str(uuid.uuid4())


# =============================================================================
# CONFIGURATION
# =============================================================================

class StatusMappingRecord(Base):
    """
    Status Mapping Table

    Maps an exact CRM status value of a lead or appointment record to one
    outcome category. Edited by operators from the admin console.
    """
    __tablename__ = "lead_status_mappings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    salesforce_status: Mapped[str] = mapped_column(String(255), nullable=False)
    object_type: Mapped[RecordType] = mapped_column(_enum(RecordType, "record_type"), nullable=False)
    category: Mapped[OutcomeCategory] = mapped_column(_enum(OutcomeCategory, "outcome_category"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("salesforce_status", "object_type", name="uq_status_mapping_status_type"),
    )


# =============================================================================
# WORKFORCE
# =============================================================================

class Employee(Base):
    """
    Employee Table

    Only the columns used for identity resolution and reporting are modeled.
    """
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[Optional[str]] = mapped_column(String(255))
    alias: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_employees_status", "status"),
    )


class TimeEntry(Base):
    """Time clock shift. clock_out is NULL while the shift is active."""
    __tablename__ = "time_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    clock_in: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    clock_out: Mapped[Optional[datetime]] = mapped_column(DateTime)
    store: Mapped[Optional[str]] = mapped_column(String(50))
    store_name: Mapped[Optional[str]] = mapped_column(String(255))

    __table_args__ = (
        Index("ix_time_entries_employee_clock_in", "employee_id", "clock_in"),
    )


class InactivityLog(Base):
    """Inactivity incident detected during a shift"""
    __tablename__ = "inactivity_log"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    time_entry_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("time_entries.id"))
    detected_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    inactive_duration_minutes: Mapped[int] = mapped_column(Integer, default=0)
    current_page: Mapped[Optional[str]] = mapped_column(String(255))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_inactivity_log_employee_detected", "employee_id", "detected_at"),
    )


# =============================================================================
# PIPELINE OUTPUT
# =============================================================================

class EmployeeSurveyStats(Base):
    """
    Daily Survey Outcome Aggregate

    Grain: one row per employee per day. Rewritten in full by every sync
    run for that day.
    """
    __tablename__ = "employee_survey_stats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    stat_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    # Measures
    bad_contact_count: Mapped[int] = mapped_column(Integer, default=0)
    dead_count: Mapped[int] = mapped_column(Integer, default=0)
    still_contacting_count: Mapped[int] = mapped_column(Integer, default=0)
    install_count: Mapped[int] = mapped_column(Integer, default=0)
    demo_count: Mapped[int] = mapped_column(Integer, default=0)
    total_surveys: Mapped[int] = mapped_column(Integer, default=0)

    # Audit
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_employee_survey_stats_employee_date"),
        Index("ix_employee_survey_stats_date", "date"),
    )


class StatsSyncLog(Base):
    """Audit record of one sync run"""
    __tablename__ = "stats_sync_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sync_started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    sync_completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    status: Mapped[SyncStatus] = mapped_column(
        _enum(SyncStatus, "sync_status"), nullable=False, default=SyncStatus.RUNNING
    )
    records_processed: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_stats_sync_log_started", "sync_started_at"),
    )


CATEGORY_COLUMNS = {
    OutcomeCategory.BAD_CONTACT: "bad_contact_count",
    OutcomeCategory.DEAD: "dead_count",
    OutcomeCategory.STILL_CONTACTING: "still_contacting_count",
    OutcomeCategory.INSTALL: "install_count",
    OutcomeCategory.DEMO: "demo_count",
}
