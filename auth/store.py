"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as qa/store.py).
AccountStore is the repository; _row_to_account is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  The password column holds the encoded argon2 hash only.

Failure policy:
  Every SQLAlchemyError is logged here in full and re-raised as
  DatabaseQueryError with a generic message. Nothing is retried; retry
  policy, if any, belongs to the deployment (connection pool settings).

Layer rule: no imports from api/ or qa/.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth.models import Account
from core.errors import DatabaseQueryError

logger = logging.getLogger("qaservice.store.accounts")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),
)


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine; SQLite connections may be used from worker threads."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def _row_to_account(row) -> Account:
    return Account(id=row.id, email=row.email, password_hash=row.password)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore("sqlite:///qaservice.db")
        account_id = store.add_account(Account(email="a@b.com", password_hash=hash_password("pw")))
        account = store.get_account("a@b.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def add_account(self, account: Account) -> int:
        """Insert a new account and return its assigned id.

        Not idempotent: a duplicate email violates the UNIQUE constraint and
        surfaces as DatabaseQueryError.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _accounts.insert().values(email=account.email, password=account.password_hash)
                )
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("add_account failed: %r", exc)
            raise DatabaseQueryError("Failed to add account") from exc
        return result.inserted_primary_key[0]

    def get_account(self, email: str) -> Account:
        """Return the account registered under email.

        An unknown email is reported the same way as a query failure.
        """
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        except SQLAlchemyError as exc:
            logger.error("get_account failed: %r", exc)
            raise DatabaseQueryError("Failed to query accounts") from exc
        if row is None:
            logger.error("get_account: no account for the given email")
            raise DatabaseQueryError("Failed to query accounts")
        return _row_to_account(row)

    def close(self) -> None:
        """Dispose the connection pool."""
        self.engine.dispose()
