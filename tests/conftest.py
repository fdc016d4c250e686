"""Pytest fixtures for testing"""

import pytest
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from minibus_ledger.api.main import create_app
from minibus_ledger.domain.models import RateConfiguration
from minibus_ledger.infrastructure.database.models import Base, Bus, Driver, Route
from minibus_ledger.infrastructure.database.session import build_engine, get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def rates() -> RateConfiguration:
    """Default fleet rates: 6000 weekday / 5000 Sunday minimum, 60/40 split"""
    return RateConfiguration(
        weekday_minimum=Decimal("6000"),
        sunday_minimum=Decimal("5000"),
        driver_base_pay=Decimal("800"),
        operator_share_percent=Decimal("60"),
        driver_share_percent=Decimal("40"),
        suspension_threshold=3,
    )


@pytest.fixture
def fleet(db: Session) -> dict:
    """One route with two buses and two drivers"""
    route = Route(name="Cubao - Fairview")
    db.add(route)
    db.flush()

    bus_a = Bus(bus_number="MB-01", plate_number="ABC 1234", route_id=route.id)
    bus_b = Bus(bus_number="MB-02", plate_number="XYZ 5678", route_id=route.id)
    juan = Driver(name="Juan Dela Cruz", route_id=route.id)
    pedro = Driver(name="Pedro Santos", route_id=route.id)
    db.add_all([bus_a, bus_b, juan, pedro])
    db.commit()

    return {"route": route, "buses": [bus_a, bus_b], "drivers": [juan, pedro]}
