"""
MongoDB store handle.

A single ``Database`` is built by the application factory, opened in the
FastAPI lifespan and handed to request handlers through ``get_db``.
Collections:
- "user"
- "transaction"
- "budget"
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection

import config

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current time as naive UTC, the form pymongo hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Mark a stored naive UTC datetime as UTC so it serializes with an offset."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Database:
    def __init__(self, url: Optional[str] = None, name: Optional[str] = None, client: Optional[MongoClient] = None):
        self.url = url or config.DATABASE_URL
        self.name = name or config.DATABASE_NAME
        self._client = client
        self._db = None

    @classmethod
    def from_env(cls) -> "Database":
        return cls(config.DATABASE_URL, config.DATABASE_NAME)

    def connect(self) -> None:
        if self._client is None:
            self._client = MongoClient(self.url)
        self._db = self._client[self.name]
        logger.info("Using database %s", self.name)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None

    def ping(self) -> bool:
        try:
            self._client.admin.command("ping")
            return True
        except Exception:
            logger.exception("Database ping failed")
            return False

    def ensure_indexes(self) -> None:
        self.users.create_index("email", unique=True)
        self.users.create_index("username", unique=True)
        self.transactions.create_index([("user_id", ASCENDING), ("date", DESCENDING)])
        self.budgets.create_index(
            [("user_id", ASCENDING), ("category", ASCENDING), ("month", ASCENDING)],
            unique=True,
        )

    def collection(self, name: str) -> Collection:
        if self._db is None:
            raise RuntimeError("Database is not connected")
        return self._db[name]

    @property
    def users(self) -> Collection:
        return self.collection("user")

    @property
    def transactions(self) -> Collection:
        return self.collection("transaction")

    @property
    def budgets(self) -> Collection:
        return self.collection("budget")


def get_db(request: Request) -> Database:
    return request.app.state.db
