"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory repositories and a recording email sender
- Domain services wired to them
- Factories for domain records
"""

import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from soko.adapters.repository.memory import (
    InMemoryAccessTokenRepository,
    InMemoryAccountRepository,
)
from soko.domain.models import AccessToken, Account
from soko.domain.passwords import hash_password, validate_and_wrap
from soko.domain.registration import RegistrationService
from soko.domain.tickets import TicketStatus, VerificationTicket
from soko.domain.tokens import AccessTokenService

VALID_PASSWORD = "Ab12!!cdEf"
HMAC_SECRET = "test-hmac-secret"


class RecordingEmailSender:
    """
    Implements EmailSender protocol by remembering the last secret per email.

    Tests read secrets back through secret_for() instead of a global map.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._secrets: dict[str, str] = {}
        self.sent: list[tuple[str, str]] = []

    def send_verification_secret(self, email: str, secret: str) -> None:
        with self._lock:
            self._secrets[email] = secret
            self.sent.append((email, secret))

    def secret_for(self, email: str) -> str:
        """Last secret sent to ``email``; raises LookupError if none."""
        with self._lock:
            try:
                return self._secrets[email]
            except KeyError:
                raise LookupError(f"no verification secret sent to {email}") from None


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Argon2id hash of VALID_PASSWORD, computed once."""
    return hash_password(validate_and_wrap(VALID_PASSWORD))


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def token_repository() -> InMemoryAccessTokenRepository:
    return InMemoryAccessTokenRepository()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def registration_service(
    account_repository: InMemoryAccountRepository, email_sender: RecordingEmailSender
) -> RegistrationService:
    return RegistrationService(repository=account_repository, email_sender=email_sender)


@pytest.fixture
def token_service(
    account_repository: InMemoryAccountRepository,
    token_repository: InMemoryAccessTokenRepository,
) -> AccessTokenService:
    return AccessTokenService(
        accounts=account_repository,
        tokens=token_repository,
        hmac_secret=HMAC_SECRET,
        max_active_tokens=3,
    )


@pytest.fixture
def make_account(password_hash: str) -> Callable[..., Account]:
    """Factory for Account snapshots."""

    def _make(
        email: str = "user@example.com", verified: bool = False, **overrides: object
    ) -> Account:
        now = datetime.now(timezone.utc)
        fields = {
            "id": uuid.uuid4(),
            "email": email,
            "password_hash": password_hash,
            "verified": verified,
            "created_at": now - timedelta(days=2),
            "updated_at": now - timedelta(days=1),
        }
        fields.update(overrides)
        return Account(**fields)

    return _make


@pytest.fixture
def make_ticket() -> Callable[..., VerificationTicket]:
    """Factory for ACTIVE verification tickets."""

    def _make(
        account_id: uuid.UUID,
        ciphertext: str,
        age: timedelta = timedelta(minutes=1),
        status: TicketStatus = TicketStatus.ACTIVE,
    ) -> VerificationTicket:
        created_at = datetime.now(timezone.utc) - age
        return VerificationTicket(
            id=uuid.uuid4(),
            account_id=account_id,
            ciphertext=ciphertext,
            status=status,
            created_at=created_at,
            updated_at=created_at,
        )

    return _make


@pytest.fixture
def make_access_token() -> Callable[..., AccessToken]:
    """Factory for stored access tokens."""

    def _make(
        account_id: uuid.UUID,
        expires_in: timedelta = timedelta(days=1),
        revoked: bool = False,
    ) -> AccessToken:
        now = datetime.now(timezone.utc)
        return AccessToken(
            id=uuid.uuid4(),
            account_id=account_id,
            name="seeded",
            mac=b"\x00" * 32,
            created_at=now,
            updated_at=now,
            expires_at=now + expires_in,
            revoked_at=now if revoked else None,
        )

    return _make
