"""
In-memory repository adapter - Implements the repository protocols.

Process-local storage for tests and local development. A single lock
serializes every compound operation, which gives the same atomicity the
PostgreSQL adapter gets from its transactions.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from uuid import UUID

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


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryAccountRepository:
    """
    Implements AccountRepository protocol with dictionaries.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Share one instance between collaborators; it is not a global.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: dict[UUID, Account] = {}
        self._ids_by_email: dict[str, UUID] = {}
        self._tickets: dict[UUID, VerificationTicket] = {}

    def get_account_by_email(self, email: str) -> Account | None:
        with self._lock:
            return self._find(email)

    def get_account_by_email_with_verification_ticket(
        self, email: str
    ) -> tuple[Account, VerificationTicket | None] | None:
        with self._lock:
            account = self._find(email)
            if account is None:
                return None
            return account, self._active_ticket(account.id)

    def get_verified_account_by_email(self, email: str) -> Account | None:
        with self._lock:
            account = self._find(email)
            return account if account is not None and account.verified else None

    def create_account(self, request: SignupRequest) -> Account:
        with self._lock:
            if request.email in self._ids_by_email:
                raise ValueError(f"account already exists for email: {request.email}")
            now = _now()
            account = Account(
                id=uuid.uuid4(),
                email=request.email,
                password_hash=request.password_hash,
                verified=False,
                created_at=now,
                updated_at=now,
            )
            self._accounts[account.id] = account
            self._ids_by_email[account.email] = account.id
            self._insert_ticket(account.id, request.verification_ciphertext, now)
            return account

    def reset_account_creation(self, request: SignupRequest) -> Account:
        with self._lock:
            account = self._find(request.email)
            if account is None:
                raise LookupError(f"no account for email: {request.email}")
            if account.verified:
                raise AccountAlreadyVerified(request.email)
            now = _now()
            account = replace(account, password_hash=request.password_hash, updated_at=now)
            self._accounts[account.id] = account

            active = self._active_ticket(account.id)
            if active is not None:
                self._tickets[active.id] = active.cancel(now)
            self._insert_ticket(account.id, request.verification_ciphertext, now)
            return account

    def verify_account(self, request: VerifyAccountRequest) -> Account:
        with self._lock:
            account = self._accounts.get(request.account_id)
            if account is None:
                raise LookupError(f"no account with ID: {request.account_id}")
            ticket = self._tickets.get(request.ticket_id)
            if (
                ticket is None
                or ticket.account_id != account.id
                or ticket.status is not TicketStatus.ACTIVE
            ):
                raise InvalidVerificationSecret()

            now = _now()
            self._tickets[ticket.id] = ticket.confirm(now)
            account = replace(account, verified=True, updated_at=now)
            self._accounts[account.id] = account
            return account

    def tickets_for(self, account_id: UUID) -> list[VerificationTicket]:
        """All tickets of an account, oldest first."""
        with self._lock:
            tickets = [t for t in self._tickets.values() if t.account_id == account_id]
        return sorted(tickets, key=lambda t: t.created_at)

    def _find(self, email: str) -> Account | None:
        account_id = self._ids_by_email.get(email)
        return self._accounts.get(account_id) if account_id is not None else None

    def _active_ticket(self, account_id: UUID) -> VerificationTicket | None:
        for ticket in self._tickets.values():
            if ticket.account_id == account_id and ticket.status is TicketStatus.ACTIVE:
                return ticket
        return None

    def _insert_ticket(self, account_id: UUID, ciphertext: str, now: datetime) -> None:
        ticket = VerificationTicket(
            id=uuid.uuid4(),
            account_id=account_id,
            ciphertext=ciphertext,
            status=TicketStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self._tickets[ticket.id] = ticket


class InMemoryAccessTokenRepository:
    """Implements AccessTokenRepository protocol with a list guarded by a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: list[AccessToken] = []

    def create_token(
        self, request: CreateAccessTokenRequest, max_active_tokens: int
    ) -> AccessToken:
        with self._lock:
            now = _now()
            if self._count_active(request.account_id, now) >= max_active_tokens:
                raise ActiveTokenLimitReached(max_active_tokens)
            token = AccessToken(
                id=uuid.uuid4(),
                account_id=request.account_id,
                name=request.name,
                mac=request.mac,
                created_at=now,
                updated_at=now,
                expires_at=request.expires_at,
            )
            self._tokens.append(token)
            return token

    def count_active_tokens(self, account_id: UUID) -> int:
        with self._lock:
            return self._count_active(account_id, _now())

    def add(self, token: AccessToken) -> None:
        """Store a token as-is, bypassing the quota (for seeding)."""
        with self._lock:
            self._tokens.append(token)

    def tokens_for(self, account_id: UUID) -> list[AccessToken]:
        with self._lock:
            return [t for t in self._tokens if t.account_id == account_id]

    def _count_active(self, account_id: UUID, now: datetime) -> int:
        return sum(1 for t in self._tokens if t.account_id == account_id and t.is_active(now))
