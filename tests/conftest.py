import os

# paylang.database reads DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_paylang.db")
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["ADMIN_PASSWORD"] = "letmein"
os.environ.pop("SMTP_HOST", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from paylang.database import Base, get_db
from paylang.gateways import Verification, get_gateway
from paylang.main import app as fastapi_app
from paylang.notifications import get_notifier
import paylang.auth

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_temp.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={
                       "check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


class FakeGateway:
    """Answers verify() from a dict of reference -> Verification."""

    def __init__(self):
        self.answers = {}
        self.calls = []

    def add(self, reference, amount=5000, currency="USD", status="success",
            email="jane@example.com", first_name="Jane", last_name="Doe"):
        self.answers[reference] = Verification(
            reference=reference,
            status=status,
            amount=amount,
            currency=currency,
            customer={"email": email, "first_name": first_name, "last_name": last_name},
        )

    def verify(self, reference):
        self.calls.append(reference)
        return self.answers.get(reference) or Verification(reference=reference, status="not_found")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier(mocker):
    fake = mocker.Mock()
    fake.admin_address = "admin@paylang.test"
    return fake


@pytest.fixture
def client(gateway, notifier):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_gateway] = lambda: gateway
    fastapi_app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {paylang.auth.issue_admin_token()}"}


@pytest.fixture
def session_factory():
    return TestingSessionLocal
