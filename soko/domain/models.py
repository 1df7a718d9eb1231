"""
Domain records and request DTOs.

Records (Account, AccessToken) are immutable snapshots handed over by a
repository. Bodies carry caller input into the request builders, and the
*Request DTOs carry their validated output back to a repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Account:
    """Account snapshot as stored by the repository."""

    id: UUID
    email: str
    password_hash: str
    verified: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class AccessToken:
    """Stored access token. Only the MAC of the token is ever persisted."""

    id: UUID
    account_id: UUID
    name: str
    mac: bytes
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    last_used_at: datetime | None = None
    revoked_at: datetime | None = None

    def is_active(self, now: datetime) -> bool:
        """True when the token is neither revoked nor expired at ``now``."""
        return self.revoked_at is None and self.expires_at > now


class OpaqueToken(str):
    """Plaintext access token; masked in repr so it stays out of logs."""

    def __repr__(self) -> str:
        return "OpaqueToken('******')"


# Incoming bodies


@dataclass(frozen=True, slots=True)
class SignupBody:
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class VerifyEmailBody:
    email: str
    secret: str


@dataclass(frozen=True, slots=True)
class CreateAccessTokenBody:
    email: str
    password: str
    name: str
    lifetime: int  # seconds


# Validated requests


@dataclass(frozen=True, slots=True)
class SignupRequest:
    """Validated signup, ready to be persisted in a single transaction.

    ``verification_plaintext`` is dispatched to the account holder and never
    stored; only ``verification_ciphertext`` goes to the ticket row.
    """

    email: str
    password_hash: str
    verification_plaintext: str
    verification_ciphertext: str

    def __repr__(self) -> str:
        return f"SignupRequest(email={self.email!r})"


@dataclass(frozen=True, slots=True)
class VerifyAccountRequest:
    """Account whose secret checked out, and the ticket it checked against."""

    account_id: UUID
    ticket_id: UUID


@dataclass(frozen=True, slots=True)
class CreateAccessTokenRequest:
    """Validated token creation. ``token`` is returned to the caller once."""

    account_id: UUID
    name: str
    token: OpaqueToken
    mac: bytes
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class IssuedAccessToken:
    """Stored token row paired with the plaintext shown to the caller once."""

    access_token: AccessToken
    token: OpaqueToken
