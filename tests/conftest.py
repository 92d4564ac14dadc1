"""
Test Suite Configuration
"""
from datetime import datetime
from typing import List

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from surveyor_stats.config import Settings
from surveyor_stats.config.settings import CRMSettings, ReportSettings
from surveyor_stats.database.models import Base
from surveyor_stats.schemas import EmployeeIdentity, OutcomeCategory, RecordType, StatusMapping

from tests.fakes import InMemoryStore


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(APP_ENV="testing", DEBUG=True)


@pytest.fixture
def crm_config() -> CRMSettings:
    return CRMSettings(
        instance_url="https://example.my.salesforce.com",
        client_id="client-id",
        client_secret="client-secret",
        username="integration@example.com",
        password="password",
        lead_report_id="00OLEAD",
        appointment_report_id="00OAPPT",
    )


@pytest.fixture
def report_config() -> ReportSettings:
    return ReportSettings()


@pytest.fixture
def status_mappings() -> List[StatusMapping]:
    return [
        StatusMapping("Working - Contacted", RecordType.LEAD, OutcomeCategory.STILL_CONTACTING),
        StatusMapping("Bad Contact Info", RecordType.LEAD, OutcomeCategory.BAD_CONTACT),
        StatusMapping("Not Interested", RecordType.LEAD, OutcomeCategory.DEAD),
        StatusMapping("Demo Complete", RecordType.APPOINTMENT, OutcomeCategory.DEMO),
        StatusMapping("Sold - Installed", RecordType.APPOINTMENT, OutcomeCategory.INSTALL),
    ]


@pytest.fixture
def employees() -> List[EmployeeIdentity]:
    return [
        EmployeeIdentity("emp-1", "John", "Smith", "jsmith@example.com", alias="J. Smith"),
        EmployeeIdentity("emp-2", "Maria", "Garcia", "maria.garcia@example.com"),
        EmployeeIdentity("emp-3", "Dana", "Lee", "dlee@example.com", alias="DLee"),
    ]


@pytest.fixture
def memory_store(status_mappings, employees) -> InMemoryStore:
    return InMemoryStore(mappings=status_mappings, employees=employees)


@pytest.fixture
def fixed_clock():
    now = datetime(2025, 3, 14, 18, 30, 0)
    return lambda: now


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine"""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
