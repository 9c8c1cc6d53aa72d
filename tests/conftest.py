import re
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from config import MailSettings, Settings
from database import build_engine, build_session_factory, init_db
from main import create_app
from utils.auth_service import AuthService
from utils.credential_store import CredentialStore
from utils.errors import MailDeliveryError
from utils.security import TokenSigner


TEST_SECRET = "test-secret"


class FakeMailer:
    """Records outgoing messages instead of sending them."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, *, to_email, subject, html, text=None):
        if self.fail:
            raise MailDeliveryError("relay unavailable")
        self.sent.append({"to": to_email, "subject": subject, "html": html, "text": text})

    def last_code(self, to_email):
        for msg in reversed(self.sent):
            if msg["to"] == to_email:
                return re.search(r"\b(\d{6})\b", msg["text"]).group(1)
        raise AssertionError(f"no mail sent to {to_email}")


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 15, 9, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings():
    return Settings(
        jwt_secret=TEST_SECRET,
        port=5000,
        mail=MailSettings(host="smtp.test", port=587, user="bot@notes.test", password="pw"),
        database_url="sqlite://",
    )


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return CredentialStore(db)


@pytest.fixture
def signer():
    return TokenSigner(secret=TEST_SECRET)


@pytest.fixture
def service(store, mailer, signer, clock):
    return AuthService(store, mailer=mailer, signer=signer, clock=clock)


@pytest.fixture
def app(settings, mailer, engine, clock):
    return create_app(settings, mailer=mailer, engine=engine, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
