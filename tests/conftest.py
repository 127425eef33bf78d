"""Shared fixtures.

Every test gets a fresh SQLite file with foreign keys enabled. The async
engine uses ``NullPool`` so no connection outlives the event loop that opened
it (pytest-asyncio and the TestClient portal run on different loops).
"""
import os
import tempfile

import pytest

# Point the application at a throwaway database before survey_backend is imported
_BOOT_DIR = tempfile.mkdtemp(prefix="survey_backend_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_BOOT_DIR, 'boot.db')}"
os.environ["AUTO_CREATE_TABLES"] = "0"
os.environ.pop("EMAIL_USER", None)
os.environ.pop("EMAIL_PASS", None)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from survey_backend import errors  # noqa: E402
from survey_backend.database import (  # noqa: E402
    Base,
    create_engine_for_url,
    create_session_factory,
    get_db_session,
)
from survey_backend.main import app  # noqa: E402
from survey_backend.notifications import (  # noqa: E402
    NotificationDispatcher,
    get_notification_dispatcher,
)


class RecordingMailer:
    def __init__(self):
        self.sent = []

    async def send(self, recipient, subject, body):
        self.sent.append({"recipient": recipient, "subject": subject, "body": body})
        return f"<test-{len(self.sent)}@survey-backend>"


class FailingMailer:
    def __init__(self):
        self.attempts = 0

    async def send(self, recipient, subject, body):
        self.attempts += 1
        raise errors.NotificationFailed(details="mail relay unavailable")


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "survey.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path


@pytest.fixture
def engine(db_path):
    async_engine = create_engine_for_url(
        f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool
    )
    yield async_engine
    async_engine.sync_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def failing_mailer():
    return FailingMailer()


@pytest.fixture
def dispatcher(mailer):
    return NotificationDispatcher(mailer, default_survey_title="Career Readiness Survey")


@pytest.fixture
def client(session_factory, dispatcher):
    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def survey_payload():
    return {
        "title": "Career Readiness Survey",
        "description": "A survey to assess career preparedness and planning",
        "created_by": "career-services",
        "questions": [
            {
                "question_text": "What type of career are you most interested in?",
                "question_type": "text",
            },
            {
                "question_text": "Do you have an updated resume?",
                "question_type": "multiple_choice",
                "options": ["Yes", "No"],
            },
            {
                "question_text": "How confident are you in interviews?",
                "question_type": "range",
                "options": {
                    "min": 0,
                    "max": 10,
                    "labels": ["Not confident at all", "Extremely confident"],
                },
                "required": False,
            },
        ],
    }

