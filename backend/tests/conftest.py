"""
Shared pytest fixtures.

Each test gets a fresh in-memory SQLite database (StaticPool keeps the single
connection alive for the test's lifetime) and a TestClient whose ``get_db``
dependency is bound to it.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.main import app as fastapi_app
from app.models.damage_claim import ClaimStatus, DamageClaim, ReplacementStatus


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


def _headers(user_id: str, role: str) -> dict:
    return {"X-User-Id": user_id, "X-User-Role": role}


@pytest.fixture
def admin_headers():
    return _headers("admin-1", "Admin")


@pytest.fixture
def manager_headers():
    return _headers("mlm-1", "Mid-Level Manager")


@pytest.fixture
def godown_headers():
    return _headers("godown-1", "Godown Incharge")


@pytest.fixture
def staff_headers():
    return _headers("staff-1", "Marketing Staff")


@pytest.fixture
def claim_payload():
    return {
        "distributor_id": "dist-100",
        "distributor_name": "Sunrise Traders",
        "brand": "Aqua Fresh",
        "variant": "Mint",
        "size": "500ml",
        "pieces": 10,
        "manufacturing_date": "2026-08-01",
        "batch_details": "B-2026-08-A",
        "damage_type": "Seal Broken",
        "reason": "Seals broken during transit",
        "images": ["/uploads/damage-claims/seal-1.jpg"],
    }


def _make_claim(db, pieces: int = 10, created_by: str = "staff-1") -> DamageClaim:
    claim = DamageClaim(
        distributor_id="dist-100",
        distributor_name="Sunrise Traders",
        brand="Aqua Fresh",
        variant="Mint",
        size="500ml",
        pieces=pieces,
        manufacturing_date=date(2026, 8, 1),
        batch_details="B-2026-08-A",
        damage_type="Box Damage",
        reason="Crushed cartons",
        images=[],
        status=ClaimStatus.PENDING.value,
        replacement_status=ReplacementStatus.PENDING.value,
        created_by=created_by,
    )
    db.add(claim)
    db.commit()
    db.refresh(claim)
    return claim


@pytest.fixture
def pending_claim(db):
    return _make_claim(db)


@pytest.fixture
def claim_factory(db):
    def _factory(pieces: int = 10, created_by: str = "staff-1") -> DamageClaim:
        return _make_claim(db, pieces=pieces, created_by=created_by)

    return _factory
