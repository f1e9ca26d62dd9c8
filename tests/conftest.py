import os

# must be set before astex.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from astex.core.errors import PaymentProviderError
from astex.core.security import create_access_token, hash_password
from astex.db.models import User, UserRole
from astex.db.session import Base, enable_sqlite_foreign_keys, get_db
from astex.main import app
from astex.services.mailer import get_mailer
from astex.services.payment_provider import get_payment_provider


class FakePaymentProvider:
    """Stands in for the Razorpay client"""

    def __init__(self):
        self.calls = []
        self.fail = False
        self.fixed_id = None

    def create_order(self, amount, currency, notes):
        self.calls.append({"amount": amount, "currency": currency, "notes": notes})
        if self.fail:
            raise PaymentProviderError("Payment provider unreachable")
        return {
            "id": self.fixed_id or f"order_test{len(self.calls):04d}",
            "entity": "order",
            "amount": amount,
            "currency": currency,
            "notes": notes,
            "status": "created",
        }


class FakeMailer:
    def __init__(self):
        self.sent = []

    def send_verification_email(self, to_email):
        self.sent.append(to_email)
        return True


@pytest.fixture
def engine():
    engine = enable_sqlite_foreign_keys(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
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
def provider():
    return FakePaymentProvider()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(session_factory, provider, mailer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_provider] = lambda: provider
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role=UserRole.USER, **overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "email": f"user{n}@astex.example.com",
            "password_hash": hash_password("password123"),
            "name": f"User {n}",
            "phone": f"90000000{n:02d}",
            "role": role,
        }
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth_header(user):
    token = create_access_token({
        "user_id": user.id,
        "email": user.email,
        "role": user.role.value,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, email="admin@astex.example.com", phone="9999999999")


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin)


@pytest.fixture
def headers_for():
    return auth_header
