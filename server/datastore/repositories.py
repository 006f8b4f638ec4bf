"""
Database Repository layer - wraps data access logic
"""

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from server.datastore.models import AccountDB, JournalEntryDB


class AccountRepository:
    """Account Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, email: str) -> AccountDB | None:
        result = await self.session.execute(
            select(AccountDB).where(AccountDB.email == email)
        )
        return result.scalar_one_or_none()

    async def exists(self, email: str) -> bool:
        """Check whether an account exists for the email"""
        return await self.get(email) is not None

    async def create(self, email: str, password_hash: str) -> AccountDB:
        """Create an account"""
        account = AccountDB(
            email=email,
            password_hash=password_hash,
            created_at=datetime.utcnow(),
        )
        self.session.add(account)
        await self.session.flush()
        logger.debug(f"Created account row for {email}")
        return account


class JournalEntryRepository:
    """Journal entry Repository"""

    FIELDS = ("diet", "pain", "exercise", "notes", "timestamp")

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str, date: str) -> JournalEntryDB | None:
        result = await self.session.execute(
            select(JournalEntryDB).where(
                JournalEntryDB.user_id == user_id,
                JournalEntryDB.date == date,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(self, user_id: str, date: str, values: dict) -> None:
        """Insert an entry, overwriting any existing entry for the same date"""
        fields = {k: values.get(k) for k in self.FIELDS}
        existing = await self.get(user_id, date)

        if existing:
            for key, value in fields.items():
                setattr(existing, key, value)
            logger.debug(f"Overwrote entry {user_id}/{date}")
        else:
            self.session.add(JournalEntryDB(user_id=user_id, date=date, **fields))
            logger.debug(f"Inserted entry {user_id}/{date}")

    async def list_dates(self, user_id: str) -> list[str]:
        result = await self.session.execute(
            select(JournalEntryDB.date)
            .where(JournalEntryDB.user_id == user_id)
            .order_by(JournalEntryDB.date)
        )
        return list(result.scalars().all())

    async def list_all(self, user_id: str) -> list[JournalEntryDB]:
        result = await self.session.execute(
            select(JournalEntryDB)
            .where(JournalEntryDB.user_id == user_id)
            .order_by(JournalEntryDB.date)
        )
        return list(result.scalars().all())
