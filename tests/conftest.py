"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from succession_engine.api.main import create_app
from succession_engine.api.dependencies import get_notification_client
from succession_engine.infrastructure.database.models import Base
from succession_engine.infrastructure.database.session import get_db
from succession_engine.domain.events import DomainEvent
from succession_engine.domain.models import (
    EstateContext,
    FamilyContext,
    FamilyMember,
    FamilyStructure,
    Gender,
    HotchpotContext,
    LegalContext,
    Role,
)
from succession_engine.domain.money import Money


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingNotificationClient:
    """Stands in for the webhook client; keeps published events in memory"""

    def __init__(self):
        self.published: List[DomainEvent] = []

    async def publish(self, events: List[DomainEvent]) -> None:
        self.published.extend(events)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifications() -> RecordingNotificationClient:
    return RecordingNotificationClient()


@pytest.fixture
def client(db: Session, notifications: RecordingNotificationClient) -> TestClient:
    """Create FastAPI test client with test database and in-memory notifications"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_client] = lambda: notifications
    return TestClient(app)


def kes(amount) -> Money:
    return Money.of(amount, "KES")


def member(member_id: str, role: Role, gender: Gender = Gender.MALE, **kwargs) -> FamilyMember:
    return FamilyMember(member_id=member_id, role=role, gender=gender, full_name=member_id.title(), **kwargs)


@pytest.fixture
def estate() -> EstateContext:
    """Estate worth 1,200,000 KES gross and 1,000,000 KES net of liabilities"""
    return EstateContext(
        estate_id="estate-1",
        deceased_id="deceased-1",
        deceased_full_name="John Kamau",
        date_of_death=date(2024, 3, 1),
        gross_value=kes(1_200_000),
        net_value=kes(1_000_000),
    )


@pytest.fixture
def monogamous_family() -> FamilyStructure:
    """One surviving spouse and two children"""
    return FamilyStructure(
        spouses=(member("wanjiru", Role.SPOUSE, Gender.FEMALE),),
        children=(
            member("kamau", Role.CHILD, date_of_birth=date(1990, 5, 1)),
            member("njeri", Role.CHILD, Gender.FEMALE, date_of_birth=date(1993, 8, 12)),
        ),
    )


@pytest.fixture
def polygamous_family() -> FamilyStructure:
    """House A: living wife and two children. House B: deceased wife and one child."""
    return FamilyStructure(
        spouses=(
            member("wife-a", Role.SPOUSE, Gender.FEMALE, house_id="A"),
            member("wife-b", Role.SPOUSE, Gender.FEMALE, house_id="B", is_deceased=True),
        ),
        children=(
            member("child-a1", Role.CHILD, house_id="A"),
            member("child-a2", Role.CHILD, Gender.FEMALE, house_id="A"),
            member("child-b1", Role.CHILD, house_id="B"),
        ),
        is_polygamous=True,
    )


@pytest.fixture
def children_only_family() -> FamilyStructure:
    return FamilyStructure(
        children=(
            member("otieno", Role.CHILD),
            member("akinyi", Role.CHILD, Gender.FEMALE),
        ),
    )


@pytest.fixture
def contexts(estate: EstateContext, monogamous_family: FamilyStructure):
    """Estate, legal, family and hotchpot contexts for a plain S.35 estate"""
    return estate, LegalContext(), FamilyContext(structure=monogamous_family), HotchpotContext()


def calculation_payload(**overrides) -> dict:
    """Minimal valid POST /v1/calculations body for a monogamous estate"""
    payload = {
        "requested_by": {"user_id": "advocate-1", "full_name": "Grace Muthoni"},
        "estate": {
            "estate_id": "estate-1",
            "deceased_id": "deceased-1",
            "deceased_full_name": "John Kamau",
            "date_of_death": "2024-03-01",
            "gross_value": "1200000",
            "net_value": "1000000",
        },
        "family": {
            "members": [
                {"member_id": "wanjiru", "role": "SPOUSE", "gender": "FEMALE"},
                {"member_id": "kamau", "role": "CHILD", "gender": "MALE"},
                {"member_id": "njeri", "role": "CHILD", "gender": "FEMALE"},
            ],
        },
        "scenarios": [{"name": "Statutory default"}],
    }
    payload.update(overrides)
    return payload
