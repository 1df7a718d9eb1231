"""
PostgreSQL repository adapter - Implements the repository protocols.

This module provides the PostgreSQL implementation of the domain's
repository ports using psycopg3 with raw SQL.

Transactional Guarantees:
------------------------
Every compound operation runs on a single pooled connection and commits
once at the end; any exception inside the block rolls the whole unit back.

1. **At most one ACTIVE ticket per account**: reset_account_creation
   cancels the previous ticket and inserts the new one in the same
   transaction. The partial unique index
   ``verification_ticket_one_active_per_account`` rejects any interleaving
   that would leave two ACTIVE rows.

2. **Verification confirms the checked ticket**: verify_account confirms
   the ticket by id and only while it is still ACTIVE, under the account
   row lock. A concurrent resignup either commits first (the confirm
   matches nothing) or finds the account verified (its UPDATE matches
   nothing).

3. **Active token quota**: create_token locks the owning account row
   (SELECT ... FOR UPDATE) before counting, so concurrent issuances for the
   same account are serialized and cannot both pass the count.
"""

import logging
from pathlib import Path
from uuid import UUID

from psycopg_pool import ConnectionPool

from soko.domain.exceptions import (
    AccountAlreadyVerified,
    ActiveTokenLimitReached,
    InvalidVerificationSecret,
)
from soko.domain.models import (
    AccessToken,
    Account,
    CreateAccessTokenRequest,
    SignupRequest,
    VerifyAccountRequest,
)
from soko.domain.tickets import TicketStatus, VerificationTicket

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "id, email, password_hash, verified, created_at, updated_at"
_TICKET_COLUMNS = "id, account_id, ciphertext, status, created_at, updated_at"
_TOKEN_COLUMNS = (
    "id, account_id, name, mac, created_at, updated_at, expires_at, last_used_at, revoked_at"
)


def _account_from_row(row: tuple) -> Account:
    return Account(
        id=row[0],
        email=row[1],
        password_hash=row[2],
        verified=row[3],
        created_at=row[4],
        updated_at=row[5],
    )


def _ticket_from_row(row: tuple) -> VerificationTicket:
    return VerificationTicket(
        id=row[0],
        account_id=row[1],
        ciphertext=row[2],
        status=TicketStatus(row[3]),
        created_at=row[4],
        updated_at=row[5],
    )


def _token_from_row(row: tuple) -> AccessToken:
    return AccessToken(
        id=row[0],
        account_id=row[1],
        name=row[2],
        mac=bytes(row[3]),
        created_at=row[4],
        updated_at=row[5],
        expires_at=row[6],
        last_used_at=row[7],
        revoked_at=row[8],
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

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

    def get_account_by_email(self, email: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM account WHERE email = %s"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _account_from_row(row) if row is not None else None

    def get_account_by_email_with_verification_ticket(
        self, email: str
    ) -> tuple[Account, VerificationTicket | None] | None:
        account_sql = f"SELECT {_ACCOUNT_COLUMNS} FROM account WHERE email = %s"
        ticket_sql = f"""
            SELECT {_TICKET_COLUMNS}
            FROM verification_ticket
            WHERE account_id = %s AND status = 'active'
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(account_sql, (email,))
            row = cursor.fetchone()
            if row is None:
                return None
            account = _account_from_row(row)

            cursor.execute(ticket_sql, (account.id,))
            ticket_row = cursor.fetchone()

        ticket = _ticket_from_row(ticket_row) if ticket_row is not None else None
        return account, ticket

    def get_verified_account_by_email(self, email: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM account WHERE email = %s AND verified = TRUE"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _account_from_row(row) if row is not None else None

    def create_account(self, request: SignupRequest) -> Account:
        """
        Insert the account and its first ACTIVE ticket in one transaction.

        A concurrent signup for the same email fails on the UNIQUE
        constraint and rolls back.
        """
        account_sql = f"""
            INSERT INTO account (email, password_hash)
            VALUES (%s, %s)
            RETURNING {_ACCOUNT_COLUMNS}
        """
        ticket_sql = "INSERT INTO verification_ticket (account_id, ciphertext) VALUES (%s, %s)"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(account_sql, (request.email, request.password_hash))
            account = _account_from_row(cursor.fetchone())
            cursor.execute(ticket_sql, (account.id, request.verification_ciphertext))
            conn.commit()
        return account

    def reset_account_creation(self, request: SignupRequest) -> Account:
        """
        Update password, cancel the ACTIVE ticket, insert a new one.

        The UPDATE only matches unverified accounts; if the account was
        verified since it was read, nothing changes.

        Raises:
            AccountAlreadyVerified: If the account got verified concurrently
        """
        account_sql = f"""
            UPDATE account
            SET password_hash = %s, updated_at = NOW()
            WHERE email = %s AND verified = FALSE
            RETURNING {_ACCOUNT_COLUMNS}
        """
        cancel_sql = """
            UPDATE verification_ticket
            SET status = 'cancelled', updated_at = NOW()
            WHERE account_id = %s AND status = 'active'
        """
        ticket_sql = "INSERT INTO verification_ticket (account_id, ciphertext) VALUES (%s, %s)"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(account_sql, (request.password_hash, request.email))
            row = cursor.fetchone()
            if row is None:
                conn.rollback()
                raise AccountAlreadyVerified(request.email)
            account = _account_from_row(row)

            cursor.execute(cancel_sql, (account.id,))
            cursor.execute(ticket_sql, (account.id, request.verification_ciphertext))
            conn.commit()
        return account

    def verify_account(self, request: VerifyAccountRequest) -> Account:
        """
        Confirm the checked ticket and set verified in one transaction.

        The account row is locked first, the same order reset_account_creation
        takes its locks in. A resignup that committed before the lock has
        already cancelled the ticket, so the confirm matches no row.

        Raises:
            LookupError: If the account does not exist
            InvalidVerificationSecret: If the ticket is no longer ACTIVE
        """
        lock_sql = "SELECT id FROM account WHERE id = %s FOR UPDATE"
        confirm_sql = """
            UPDATE verification_ticket
            SET status = 'confirmed', updated_at = NOW()
            WHERE id = %s AND account_id = %s AND status = 'active'
            RETURNING id
        """
        account_sql = f"""
            UPDATE account
            SET verified = TRUE, updated_at = NOW()
            WHERE id = %s
            RETURNING {_ACCOUNT_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(lock_sql, (request.account_id,))
            if cursor.fetchone() is None:
                conn.rollback()
                raise LookupError(f"no account with ID: {request.account_id}")

            cursor.execute(confirm_sql, (request.ticket_id, request.account_id))
            if cursor.fetchone() is None:
                conn.rollback()
                logger.info("Ticket %s no longer active, verification refused", request.ticket_id)
                raise InvalidVerificationSecret()

            cursor.execute(account_sql, (request.account_id,))
            account = _account_from_row(cursor.fetchone())
            conn.commit()
        return account


class PostgresAccessTokenRepository:
    """Implements AccessTokenRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create_token(
        self, request: CreateAccessTokenRequest, max_active_tokens: int
    ) -> AccessToken:
        """
        Count active tokens and insert, atomically.

        The account row lock is held until commit, so a concurrent call
        for the same account waits here and then counts the new row.

        Raises:
            ActiveTokenLimitReached: If the quota is reached; nothing is inserted
        """
        lock_sql = "SELECT id FROM account WHERE id = %s FOR UPDATE"
        count_sql = """
            SELECT COUNT(*)
            FROM access_token
            WHERE account_id = %s AND revoked_at IS NULL AND expires_at > NOW()
        """
        insert_sql = f"""
            INSERT INTO access_token (account_id, name, mac, expires_at)
            VALUES (%s, %s, %s, %s)
            RETURNING {_TOKEN_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(lock_sql, (request.account_id,))
            if cursor.fetchone() is None:
                conn.rollback()
                raise LookupError(f"no account with ID: {request.account_id}")

            cursor.execute(count_sql, (request.account_id,))
            count = cursor.fetchone()[0]
            if count >= max_active_tokens:
                conn.rollback()
                raise ActiveTokenLimitReached(max_active_tokens)

            cursor.execute(
                insert_sql, (request.account_id, request.name, request.mac, request.expires_at)
            )
            token = _token_from_row(cursor.fetchone())
            conn.commit()
        return token

    def count_active_tokens(self, account_id: UUID) -> int:
        sql = """
            SELECT COUNT(*)
            FROM access_token
            WHERE account_id = %s AND revoked_at IS NULL AND expires_at > NOW()
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id,))
            return cursor.fetchone()[0]


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: soko/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
