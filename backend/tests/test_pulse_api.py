from collections.abc import Generator
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from goldpulse.api.deps import get_db
from goldpulse.api.routes import pulse
from goldpulse.db.base import Base
from goldpulse.main import app
from goldpulse.models.enums import RoleName
from goldpulse.models.rate import GoldRate
from goldpulse.models.user import User
from goldpulse.services.formatting import format_grams
from goldpulse.services.seed import seed_demo_data


TODAY = date(2026, 10, 19)
PULSE = "/api/v1/dashboard/pulse"
RATES = "/api/v1/rates"


@pytest.fixture()
def db(monkeypatch: pytest.MonkeyPatch) -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = factory()
    seed_demo_data(session, today=TODAY)

    def override_get_db() -> Generator[Session, None, None]:
        request_db = factory()
        try:
            yield request_db
        finally:
            request_db.close()

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(pulse, "_today", lambda: TODAY)
    yield session
    app.dependency_overrides.clear()
    session.close()


def _client() -> TestClient:
    return TestClient(app)


def _user_id(db: Session, role: RoleName) -> int:
    return db.scalar(select(User.id).where(User.role == role))


def _customer_user(db: Session) -> int:
    admin = db.get(User, _user_id(db, RoleName.admin))
    user = User(
        retailer_id=admin.retailer_id,
        email="member@goldpulse.dev",
        full_name="Member",
        role=RoleName.customer,
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user.id


def test_pulse_requires_identity(db: Session) -> None:
    client = _client()
    assert client.post(PULSE, json={}).status_code == 401
    assert client.post(PULSE, json={}, headers={"X-User-Id": "9999"}).status_code == 401


def test_pulse_rejects_customer_role(db: Session) -> None:
    response = _client().post(PULSE, json={}, headers={"X-User-Id": str(_customer_user(db))})
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient role privileges."


def test_pulse_defaults_to_current_month(db: Session) -> None:
    response = _client().post(PULSE, headers={"X-User-Id": str(_user_id(db, RoleName.admin))})
    assert response.status_code == 200
    body = response.json()
    assert body["period"] == {"start": "2026-10-01", "end": "2026-10-31"}
    assert body["today_label"] == "Monday, 19 October 2026"
    assert body["diagnostics"]["period_fallback"] is True
    analytics = body["analytics"]
    assert analytics["granularity"] == "day"
    assert len(analytics["portfolio_series"]) == 31
    assert Decimal(analytics["summary"]["period_collections"]) == Decimal("17000.00")
    assert body["display"]["period_collections"] == "₹17,000"
    assert body["display"]["silver_allocated"] == format_grams(Decimal(analytics["summary"]["silver_allocated"]))
    assert body["display"]["gold_allocated"].endswith(" g")
    assert analytics["scheme_health"]["is_empty"] is False


def test_pulse_with_explicit_period_and_granularity(db: Session) -> None:
    response = _client().post(
        PULSE,
        json={"start": "2026-05-01", "end": "2026-10-31", "granularity": "month"},
        headers={"X-User-Id": str(_user_id(db, RoleName.staff))},
    )
    assert response.status_code == 200
    body = response.json()
    analytics = body["analytics"]
    assert [point["label"] for point in analytics["portfolio_series"]][0] == "2026-05"
    assert len(analytics["portfolio_series"]) == 6
    assert len(analytics["efficiency_series"]) == 6
    assert analytics["xirr"] is not None
    assert body["diagnostics"]["period_fallback"] is False
    assert body["diagnostics"]["xirr_status"] == "converged"
    assert body["display"]["growth_rate"].endswith("%")
    assert set(body["display"]["revenue_by_metal"]) == {"18K", "22K", "24K", "SILVER", "UNASSIGNED"}


@pytest.mark.parametrize(
    "payload",
    [
        {"start": "2026-10-01"},
        {"end": "2026-10-31"},
        {"start": "2026-10-31", "end": "2026-10-01"},
    ],
)
def test_pulse_rejects_malformed_period(db: Session, payload: dict) -> None:
    response = _client().post(PULSE, json=payload, headers={"X-User-Id": str(_user_id(db, RoleName.admin))})
    assert response.status_code == 400


def test_publish_rate_appends_snapshot(db: Session) -> None:
    client = _client()
    staff_id = _user_id(db, RoleName.staff)
    before = db.scalar(select(func.count()).select_from(GoldRate))

    response = client.post(
        RATES,
        json={"karat": "22K", "rate_per_gram": "7123.456"},
        headers={"X-User-Id": str(staff_id)},
    )
    assert response.status_code == 201
    created = response.json()
    assert created["karat"] == "22K"
    assert Decimal(created["rate_per_gram"]) == Decimal("7123.46")
    assert created["created_by_user_id"] == staff_id
    assert db.scalar(select(func.count()).select_from(GoldRate)) == before + 1

    current = client.get("/api/v1/rates/current", headers={"X-User-Id": str(staff_id)})
    assert current.status_code == 200
    rates = current.json()["rates"]
    assert rates["22K"]["id"] == created["id"]
    assert set(rates) == {"18K", "22K", "24K", "SILVER"}


def test_publish_rate_validates_input_and_role(db: Session) -> None:
    client = _client()
    admin_headers = {"X-User-Id": str(_user_id(db, RoleName.admin))}
    zero = client.post(RATES, json={"karat": "22K", "rate_per_gram": "0"}, headers=admin_headers)
    assert zero.status_code == 422
    unknown = client.post(RATES, json={"karat": "14K", "rate_per_gram": "100"}, headers=admin_headers)
    assert unknown.status_code == 422
    customer_headers = {"X-User-Id": str(_customer_user(db))}
    forbidden = client.post(RATES, json={"karat": "22K", "rate_per_gram": "100"}, headers=customer_headers)
    assert forbidden.status_code == 403


def test_healthz() -> None:
    response = _client().get("/healthz")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_api_health_reaches_database(db: Session) -> None:
    response = _client().get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
