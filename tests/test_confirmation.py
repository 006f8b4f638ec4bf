"""Tests for signup confirmation codes and account creation."""

import asyncio
import threading
from datetime import timedelta

import pytest

from server.datastore.repositories import AccountRepository
from server.services.cache import ExpiringStore
from server.services.confirmation import (
    ConfirmationService,
    generate_code,
    hash_password,
    verify_password,
)
from server.services.errors import ConfirmationError, EmailDeliveryError
from tests.conftest import RecordingMailer


@pytest.fixture
def codes() -> ExpiringStore:
    return ExpiringStore(prefix="confirm_", retention=timedelta(minutes=5))


@pytest.fixture
def service(codes, mailer, session_factory) -> ConfirmationService:
    return ConfirmationService(codes, mailer, session_factory, ttl_minutes=10)


class TestCodes:
    def test_code_is_six_digits(self):
        for _ in range(200):
            code = generate_code()
            assert len(code) == 6
            assert 100000 <= int(code) <= 999999

    def test_password_hash_roundtrip(self):
        encoded = hash_password("hunter22")

        assert encoded.startswith("pbkdf2_sha256$")
        assert "hunter22" not in encoded
        assert verify_password("hunter22", encoded)
        assert not verify_password("wrong", encoded)


class TestRequestCode:
    async def test_sends_code_by_email(self, service, mailer: RecordingMailer):
        code = await service.request_code("a@example.com")

        assert mailer.sent == [("a@example.com", code, 10)]

    async def test_new_request_replaces_pending_code(self, service, mailer):
        first = await service.request_code("a@example.com")
        second = await service.request_code("a@example.com")

        if first != second:
            with pytest.raises(ConfirmationError, match="Invalid confirmation code."):
                await service.confirm("a@example.com", first, "pw")
        await service.confirm("a@example.com", second, "pw")

    async def test_mail_failure_keeps_code_pending(self, codes, session_factory):
        failing = RecordingMailer(fail=True)
        service = ConfirmationService(codes, failing, session_factory)

        with pytest.raises(EmailDeliveryError):
            await service.request_code("a@example.com")

        assert (await codes.get("a@example.com")) is not None


class TestConfirm:
    async def test_creates_account_and_consumes_code(
        self, service, mailer, session_factory
    ):
        code = await service.request_code("a@example.com")

        await service.confirm("a@example.com", code, "secret")

        async with session_factory() as session:
            account = await AccountRepository(session).get("a@example.com")
        assert account is not None
        assert verify_password("secret", account.password_hash)

        with pytest.raises(ConfirmationError, match="No confirmation code found"):
            await service.confirm("a@example.com", code, "secret")

    async def test_unknown_email(self, service):
        with pytest.raises(ConfirmationError) as exc_info:
            await service.confirm("nobody@example.com", "123456", "pw")

        assert str(exc_info.value) == (
            "No confirmation code found for this email. Please request a new one."
        )
        assert exc_info.value.conflict is False

    async def test_wrong_code_keeps_pending(self, service):
        code = await service.request_code("a@example.com")
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(ConfirmationError, match="Invalid confirmation code."):
            await service.confirm("a@example.com", wrong, "pw")

        await service.confirm("a@example.com", code, "pw")

    async def test_expired_then_not_found(self, codes, mailer, session_factory):
        service = ConfirmationService(codes, mailer, session_factory, ttl_minutes=10)
        code = await service.request_code("a@example.com")
        pending = (await codes.get("a@example.com")).data
        await codes.put("a@example.com", pending, ttl=timedelta(milliseconds=1))
        await asyncio.sleep(0.02)

        with pytest.raises(ConfirmationError, match="has expired"):
            await service.confirm("a@example.com", code, "pw")
        with pytest.raises(ConfirmationError, match="No confirmation code found"):
            await service.confirm("a@example.com", code, "pw")

    async def test_existing_account_conflicts(self, service):
        code = await service.request_code("a@example.com")
        await service.confirm("a@example.com", code, "pw")
        code = await service.request_code("a@example.com")

        with pytest.raises(ConfirmationError) as exc_info:
            await service.confirm("a@example.com", code, "pw")

        assert exc_info.value.conflict is True
        assert str(exc_info.value) == "An account already exists for this email."

    async def test_concurrent_confirms_create_one_account(
        self, service, session_factory
    ):
        code = await service.request_code("a@example.com")

        results = await asyncio.gather(
            service.confirm("a@example.com", code, "pw"),
            service.confirm("a@example.com", code, "pw"),
            return_exceptions=True,
        )

        assert results.count(None) == 1
        (error,) = [r for r in results if r is not None]
        assert isinstance(error, ConfirmationError)
        assert str(error).startswith("No confirmation code found")

        async with session_factory() as session:
            assert await AccountRepository(session).exists("a@example.com")

    async def test_duplicate_insert_is_a_conflict(
        self, service, session_factory, monkeypatch: pytest.MonkeyPatch
    ):
        code = await service.request_code("a@example.com")
        async with session_factory() as session:
            await AccountRepository(session).create("a@example.com", hash_password("x"))
            await session.commit()

        async def not_found(self, email):
            return False

        monkeypatch.setattr(AccountRepository, "exists", not_found)

        with pytest.raises(ConfirmationError) as exc_info:
            await service.confirm("a@example.com", code, "pw")

        assert exc_info.value.conflict is True
        assert str(exc_info.value) == "An account already exists for this email."

    async def test_password_is_hashed_off_the_event_loop(
        self, service, monkeypatch: pytest.MonkeyPatch
    ):
        threads = []

        def recording_hash(password):
            threads.append(threading.get_ident())
            return hash_password(password)

        monkeypatch.setattr(
            "server.services.confirmation.hash_password", recording_hash
        )
        code = await service.request_code("a@example.com")

        await service.confirm("a@example.com", code, "pw")

        assert len(threads) == 1
        assert threads[0] != threading.get_ident()
