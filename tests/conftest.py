"""
Shared fixtures: in-memory SQLite database, model factories and an API client
"""
import os

# Settings are read at import time; keep tests off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("FRONTEND_URL", "http://localhost:3000")

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models.models import AppUser, Booking, Review, SplitBooking, Studio
from app.services.auth import auth_service
from app.services.mail import MailService
from app.services.notify import NotificationService
from app.services.payments import PaymentsService

NOW = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    """Fixed 'now' for anything time-window based."""
    return lambda: NOW


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(**overrides) -> AppUser:
        counter["n"] += 1
        fields = {
            "email": f"user{counter['n']}@example.com",
            "name": f"User {counter['n']}",
            "role": "client",
            "bio": "Producer and engineer",
            "media": ["https://cdn.example.com/cover.jpg"],
            "completed_bookings": 0,
            "created_at": NOW - timedelta(days=365),
        }
        fields.update(overrides)
        user = AppUser(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


@pytest.fixture
def make_booking(db):
    def factory(provider_id: str, client_id: str, created_at: datetime, **overrides) -> Booking:
        booking = Booking(
            provider_id=provider_id,
            client_id=client_id,
            created_at=created_at,
            status=overrides.pop("status", "completed"),
            refunded=overrides.pop("refunded", False),
            amount=overrides.pop("amount", Decimal("100.00")),
            **overrides
        )
        db.add(booking)
        db.commit()
        return booking

    return factory


@pytest.fixture
def make_review(db):
    def factory(target_id: str, author_id: str, rating: int, created_at: datetime, visible: bool = True) -> Review:
        review = Review(
            target_id=target_id,
            author_id=author_id,
            rating=rating,
            created_at=created_at,
            visible=visible,
        )
        db.add(review)
        db.commit()
        return review

    return factory


@pytest.fixture
def studio(db):
    studio = Studio(name="Blue Room", location="Brooklyn, NY", hourly_rate=Decimal("75.00"))
    db.add(studio)
    db.commit()
    db.refresh(studio)
    return studio


@pytest.fixture
def make_split_booking(db, studio):
    def factory(client_a: AppUser, client_b: AppUser, **overrides) -> SplitBooking:
        fields = {
            "studio_id": studio.id,
            "created_by": client_a.id,
            "client_a_uid": client_a.id,
            "client_b_uid": client_b.id,
            "split_ratio": Decimal("0.6"),
            "scheduled_at": NOW + timedelta(days=5),
            "duration_minutes": 120,
            "total_cost": Decimal("150.00"),
            "client_a_share": Decimal("90.00"),
            "client_b_share": Decimal("60.00"),
            "status": "pending",
            "client_a_payment_status": "pending",
            "client_b_payment_status": "pending",
            "studio_name": studio.name,
            "studio_location": studio.location,
        }
        fields.update(overrides)
        booking = SplitBooking(**fields)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return factory


@pytest.fixture
def mailer():
    mailer = Mock(spec=MailService)
    mailer.enabled = False
    return mailer


@pytest.fixture
def notifications(mailer):
    return NotificationService(mailer=mailer)


@pytest.fixture
def payments():
    payments = Mock(spec=PaymentsService)
    payments.create_split_booking_checkout.return_value = {
        "session_id": "cs_test_123",
        "url": "https://checkout.stripe.com/c/pay/cs_test_123",
        "provider": "stripe",
    }
    payments.refund_checkout_session.return_value = {
        "refund_id": "re_test_123",
        "status": "succeeded",
        "amount_cents": 0,
    }
    return payments


@pytest.fixture
def client(db, payments, notifications):
    """API client bound to the test session and mocked Stripe."""
    from fastapi.testclient import TestClient

    from app.deps.services import get_notification_service, get_payments_service
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payments_service] = lambda: payments
    app.dependency_overrides[get_notification_service] = lambda: notifications

    yield TestClient(app)

    app.dependency_overrides.clear()


def auth_headers(user: AppUser) -> dict:
    token, _ = auth_service.create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}
