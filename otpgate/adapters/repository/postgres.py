"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Concurrency Design - Per-Account Serialization:
----------------------------------------------
Every update runs inside one transaction:

1. **SELECT ... FOR UPDATE**: Locks the account row, so concurrent
   updates to the same email queue behind each other. Accounts never
   lock each other.

2. **Transition in Python**: The domain state machine computes the new
   row from the locked one. If it raises, the transaction rolls back and
   nothing is written.

3. **Single UPDATE**: Flags, OTP and the full login_records array are
   written together, so a reader never sees a half-applied transition and
   concurrent audit appends cannot lose entries.

approved_by_admin is read but never written here; it belongs to the
out-of-band approval process.
"""

import logging
from datetime import datetime
from importlib import resources
from importlib.resources.abc import Traversable
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from otpgate.domain.account import Account, LoginAction, LoginRecord, OtpPurpose
from otpgate.domain.exceptions import NotFound, RepositoryFailure
from otpgate.domain.ports import Transition

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "email",
    "name",
    "phone",
    "user_type",
    "council_id",
    "email_verified",
    "otp_verified",
    "approved_by_admin",
    "otp",
    "otp_issued_at",
    "otp_purpose",
    "login_records",
    "created_at",
    "last_login_at",
    "dob",
    "address",
    "gender",
    "nationality",
    "aadhaar",
    "passport",
    "pan_card",
)

# Columns a state-machine transition may change.
_MUTABLE_COLUMNS = (
    "email_verified",
    "otp_verified",
    "otp",
    "otp_issued_at",
    "otp_purpose",
    "login_records",
    "last_login_at",
)

_SELECT_COLUMNS = ", ".join(_COLUMNS)


def _records_to_json(records: tuple[LoginRecord, ...]) -> Jsonb:
    return Jsonb([{"action": r.action.value, "time": r.time.isoformat()} for r in records])


def _records_from_json(raw: list[dict[str, str]] | None) -> tuple[LoginRecord, ...]:
    return tuple(
        LoginRecord(LoginAction(item["action"]), datetime.fromisoformat(item["time"]))
        for item in raw or []
    )


def _to_params(account: Account) -> dict[str, Any]:
    params = {column: getattr(account, column) for column in _COLUMNS}
    params["login_records"] = _records_to_json(account.login_records)
    params["otp_purpose"] = account.otp_purpose.value if account.otp_purpose else None
    return params


def _from_row(row: dict[str, Any]) -> Account:
    values = dict(row)
    values["id"] = str(values["id"])
    values["login_records"] = _records_from_json(values["login_records"])
    values["otp_purpose"] = OtpPurpose(values["otp_purpose"]) if values["otp_purpose"] else None
    return Account(**values)


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create(self, account: Account) -> bool:
        """
        Atomically insert a new account.

        The UNIQUE constraint on email decides races: concurrent creates
        for one email insert exactly one row.

        Returns:
            True if inserted, False if the email already exists
        """
        placeholders = ", ".join(f"%({column})s" for column in _COLUMNS)
        sql = f"""
            INSERT INTO accounts ({_SELECT_COLUMNS})
            VALUES ({placeholders})
            ON CONFLICT (email) DO NOTHING
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, _to_params(account))
                conn.commit()
                return cursor.rowcount == 1
        except psycopg.Error as e:
            logger.error("Account insert failed: %s", e)
            raise RepositoryFailure("account insert failed") from e

    def get(self, email: str) -> Account | None:
        sql = f"SELECT {_SELECT_COLUMNS} FROM accounts WHERE email = %s"

        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, (email,))
                row = cursor.fetchone()
        except psycopg.Error as e:
            logger.error("Account lookup failed: %s", e)
            raise RepositoryFailure("account lookup failed") from e

        return _from_row(row) if row is not None else None

    def update(self, email: str, transition: Transition) -> Account:
        """
        Apply transition to one account under a row lock.

        Domain exceptions raised by transition (and NotFound) roll the
        transaction back and propagate unchanged.
        """
        select_sql = f"SELECT {_SELECT_COLUMNS} FROM accounts WHERE email = %s FOR UPDATE"
        assignments = ", ".join(f"{column} = %({column})s" for column in _MUTABLE_COLUMNS)
        update_sql = f"UPDATE accounts SET {assignments} WHERE email = %(email)s"

        try:
            with self._pool.connection() as conn, conn.transaction():
                with conn.cursor(row_factory=dict_row) as cursor:
                    cursor.execute(select_sql, (email,))
                    row = cursor.fetchone()
                    if row is None:
                        raise NotFound(email)

                    updated = transition(_from_row(row))
                    cursor.execute(update_sql, _to_params(updated))
        except psycopg.Error as e:
            logger.error("Account update failed: %s", e)
            raise RepositoryFailure("account update failed") from e

        return updated

    def list_accounts(self) -> list[Account]:
        sql = f"SELECT {_SELECT_COLUMNS} FROM accounts ORDER BY created_at"

        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql)
                rows = cursor.fetchall()
        except psycopg.Error as e:
            logger.error("Account listing failed: %s", e)
            raise RepositoryFailure("account listing failed") from e

        return [_from_row(row) for row in rows]


def run_migrations(pool: ConnectionPool, migrations: Traversable | None = None) -> None:
    """
    Execute all SQL migration files shipped in the otpgate.migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
        migrations: Directory of .sql files; defaults to the packaged one

    Raises:
        RuntimeError: If no migration is found or one fails
    """
    if migrations is None:
        migrations = resources.files("otpgate") / "migrations"

    sql_files = []
    if migrations.is_dir():
        sql_files = sorted(
            (entry for entry in migrations.iterdir() if entry.name.endswith(".sql")),
            key=lambda entry: entry.name,
        )

    if not sql_files:
        logger.error(f"No migration files found in {migrations}")
        raise RuntimeError("Database migrations are missing from the installation")

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text(encoding="utf-8"))
            logger.info(f"Migration complete: {sql_file.name}")
        except psycopg.Error as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
