"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from typing import Protocol
from uuid import UUID

from .models import (
    AccessToken,
    Account,
    CreateAccessTokenRequest,
    SignupRequest,
    VerifyAccountRequest,
)
from .tickets import VerificationTicket


class AccountRepository(Protocol):
    """Port interface for account and verification ticket persistence."""

    def get_account_by_email(self, email: str) -> Account | None:
        """
        Fetch an account by normalized email.

        Returns:
            The account, or None if no account exists for the email.
            Infrastructure failures raise instead.
        """
        ...

    def get_account_by_email_with_verification_ticket(
        self, email: str
    ) -> tuple[Account, VerificationTicket | None] | None:
        """
        Fetch an account together with its ACTIVE verification ticket.

        Returns:
            None if no account exists; otherwise (account, active ticket or None)
        """
        ...

    def get_verified_account_by_email(self, email: str) -> Account | None:
        """Fetch an account only if its email has been verified."""
        ...

    def create_account(self, request: SignupRequest) -> Account:
        """
        Create an account and its first ACTIVE verification ticket.

        Both inserts happen in one transaction.
        """
        ...

    def reset_account_creation(self, request: SignupRequest) -> Account:
        """
        Restart signup for an existing, unverified account.

        In one transaction:
        1. Update the password hash
        2. Cancel the previous ACTIVE ticket, if any
        3. Insert a new ACTIVE ticket with the request's ciphertext
        """
        ...

    def verify_account(self, request: VerifyAccountRequest) -> Account:
        """
        Confirm the checked ticket and mark the account verified.

        Both updates happen in one transaction. The ticket named by
        ``request.ticket_id`` must still be ACTIVE: a resignup that
        cancelled it in the meantime wins and nothing changes.

        Raises:
            InvalidVerificationSecret: If that ticket is no longer ACTIVE
        """
        ...


class AccessTokenRepository(Protocol):
    """Port interface for access token persistence."""

    def create_token(
        self, request: CreateAccessTokenRequest, max_active_tokens: int
    ) -> AccessToken:
        """
        Insert a token unless the account is at its active-token quota.

        Counting active tokens (not revoked, not expired) and inserting must
        happen atomically so concurrent requests cannot exceed the quota.

        Raises:
            ActiveTokenLimitReached: If count >= max_active_tokens; nothing
                is inserted
        """
        ...

    def count_active_tokens(self, account_id: UUID) -> int:
        """Count tokens that are neither revoked nor expired."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_secret(self, email: str, secret: str) -> None:
        """
        Send a verification secret to an email address.

        Args:
            email: Recipient email address
            secret: One-time verification secret
        """
        ...
