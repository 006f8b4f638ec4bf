"""Signup confirmation codes and account creation."""

import asyncio
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy.exc import IntegrityError

from server.datastore.repositories import AccountRepository
from server.services.cache import ExpiringStore
from server.services.errors import ConfirmationError
from server.services.mailer import Mailer

PBKDF2_ITERATIONS = 260_000


def generate_code() -> str:
    """Six-digit numeric code in [100000, 999999]."""
    return str(100000 + secrets.randbelow(900000))


def hash_password(password: str, salt: bytes | None = None) -> str:
    """Salted PBKDF2-SHA256 hash as "pbkdf2_sha256$iterations$salt$hash"."""
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt, PBKDF2_ITERATIONS
    )
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt_hex), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), digest_hex)


@dataclass
class PendingConfirmation:
    """A code waiting to be confirmed."""

    code: str
    issued_at: datetime


class ConfirmationService:
    """
    Issues emailed confirmation codes and turns confirmed signups into accounts.

    Pending codes live in an ExpiringStore keyed by email.
    """

    NOT_FOUND_MESSAGE = (
        "No confirmation code found for this email. Please request a new one."
    )
    EXPIRED_MESSAGE = "Confirmation code has expired. Please request a new one."
    INVALID_MESSAGE = "Invalid confirmation code."
    CONFLICT_MESSAGE = "An account already exists for this email."

    def __init__(
        self,
        store: ExpiringStore,
        mailer: Mailer,
        session_factory,
        ttl_minutes: int = 10,
    ):
        self.store = store
        self.mailer = mailer
        self.session_factory = session_factory
        self.ttl_minutes = ttl_minutes

    async def request_code(self, email: str) -> str:
        """Issue and email a new code, replacing any pending one.

        Raises:
            EmailDeliveryError: the email could not be sent; the code stays pending
        """
        code = generate_code()
        await self.store.put(
            email,
            PendingConfirmation(code=code, issued_at=datetime.now()),
            ttl=timedelta(minutes=self.ttl_minutes),
        )
        logger.info(f"Confirmation code issued for {email}")
        logger.debug(f"Confirmation code for {email}: {code}")

        await self.mailer.send_confirmation_code(email, code, self.ttl_minutes)
        return code

    async def confirm(self, email: str, code: str, password: str) -> None:
        """Check a code and create the account.

        Raises:
            ConfirmationError: unknown, expired or wrong code, or the account exists
        """
        result = await self.store.get(email)
        if result is None:
            logger.warning(f"Confirmation rejected for {email}: no pending code")
            raise ConfirmationError(self.NOT_FOUND_MESSAGE)

        if result.expired:
            logger.warning(f"Confirmation rejected for {email}: code expired")
            raise ConfirmationError(self.EXPIRED_MESSAGE)

        pending: PendingConfirmation = result.data
        if not hmac.compare_digest(pending.code.encode(), code.encode()):
            logger.warning(f"Confirmation rejected for {email}: wrong code")
            raise ConfirmationError(self.INVALID_MESSAGE)

        # Consume the code before touching accounts; only one caller wins.
        if not await self.store.delete(email):
            logger.warning(f"Confirmation rejected for {email}: code already used")
            raise ConfirmationError(self.NOT_FOUND_MESSAGE)

        loop = asyncio.get_running_loop()
        password_hash = await loop.run_in_executor(None, hash_password, password)

        async with self.session_factory() as session:
            accounts = AccountRepository(session)
            if await accounts.exists(email):
                raise ConfirmationError(self.CONFLICT_MESSAGE, conflict=True)
            try:
                await accounts.create(email, password_hash)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning(f"Account for {email} created concurrently: {e}")
                raise ConfirmationError(self.CONFLICT_MESSAGE, conflict=True) from e

        logger.info(f"Account created for {email}")
