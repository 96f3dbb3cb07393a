import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("UPLOAD_DIR", str(BASE_DIR / "test_uploads"))
os.environ.setdefault("IMAGE_STORE_BACKEND", "local")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import accounts.main as main  # noqa: E402  (import after env vars are set)
from accounts.database import Base, SessionLocal, engine  # noqa: E402
from accounts.routers import accounts as account_routes  # noqa: E402
from accounts.services.account_repository import AccountRepository  # noqa: E402
from accounts.services.account_service import AccountService  # noqa: E402
from accounts.services.image_store import LocalImageStore  # noqa: E402
from accounts.services.otp_store import OtpStore  # noqa: E402
from accounts.services.password_hasher import PasswordHasher  # noqa: E402


class FakeNotifier:
    """Records outgoing mail instead of talking to an SMTP relay."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, html_body):
        if self.fail:
            return False
        self.sent.append({"to": to_email, "subject": subject, "body": html_body})
        return True


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def otp_store(clock):
    return OtpStore(ttl_seconds=300, clock=clock)


@pytest.fixture()
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture()
def image_store(tmp_path):
    return LocalImageStore(tmp_path / "uploads")


@pytest.fixture()
def repository(db_session):
    return AccountRepository(db_session)


@pytest.fixture()
def service(repository, hasher, otp_store, notifier, image_store):
    return AccountService(
        repository=repository,
        hasher=hasher,
        otp_store=otp_store,
        notifier=notifier,
        image_store=image_store,
        deleted_accounts_recoverable=True,
    )


@pytest.fixture()
def client(notifier, otp_store, image_store, hasher):
    """Provide a TestClient with mail, OTP and image collaborators swapped for fakes."""
    overrides = {
        account_routes.get_notifier: lambda: notifier,
        account_routes.get_otp_store: lambda: otp_store,
        account_routes.get_image_store: lambda: image_store,
        account_routes.get_password_hasher: lambda: hasher,
    }
    main.app.dependency_overrides.update(overrides)
    with TestClient(main.app) as test_client:
        yield test_client
    for dependency in overrides:
        main.app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def signup_form():
    return {
        "first_name": "Asha",
        "last_name": "Verma",
        "user_name": "asha",
        "email": "asha@example.com",
        "address": "12 Market Road",
        "mobile_no": "9876543210",
        "gender": "female",
        "password": "s3cret-pass",
    }
