"""Shared fixtures for the journal backend tests."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from server.analysis import JournalEntry
from server.api.journal_server import create_app
from server.datastore.engine import close_db, get_session_factory, init_db
from server.services.errors import EmailDeliveryError
from server.settings import Settings


class RecordingMailer:
    """Mailer that records sent codes instead of talking to SMTP."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str, int]] = []

    async def send_confirmation_code(
        self, recipient: str, code: str, ttl_minutes: int
    ) -> None:
        if self.fail:
            raise EmailDeliveryError(recipient, "connection refused")
        self.sent.append((recipient, code, ttl_minutes))

    def last_code(self, recipient: str) -> str:
        codes = [code for to, code, _ in self.sent if to == recipient]
        return codes[-1]


def make_entry(date: str, pain: str, **fields) -> JournalEntry:
    return JournalEntry(date=date, pain=pain, **fields)


def build_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "DATA_DIR": str(tmp_path / "data"),
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "SMTP_HOST": "",
    }
    values.update(overrides)
    return Settings.model_validate(values)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return build_settings(tmp_path)


@pytest.fixture
async def session_factory(tmp_path: Path):
    """Initialized SQLite database in a temp directory."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'unit.db'}")
    yield get_session_factory()
    await close_db()


@pytest.fixture
def client(test_settings: Settings, mailer: RecordingMailer):
    """TestClient with the app lifespan running."""
    app = create_app(test_settings, mailer)
    with TestClient(app) as test_client:
        yield test_client
