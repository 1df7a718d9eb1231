"""
Registration domain service - signup and email verification.

This module contains the core business logic for user registration:
building validated signup and verification requests out of caller input
and the current account state, then handing them to the repository.

Signup
======
- No account for the email: create it with a fresh ACTIVE ticket.
- Unverified account: update its password, cancel the ACTIVE ticket and
  issue a new one (a "resignup").
- Verified account: rejected with AccountAlreadyVerified.

The plaintext secret is dispatched by email after persistence and is
never stored. Delivery is best-effort: a mail failure is logged and the
signup still succeeds.

Verification
============
Missing, expired and wrong secrets all fail with the same
InvalidVerificationSecret so a caller cannot tell which check failed.
Every failure path pays for one Argon2 verification, so response time
does not tell them either.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import NoReturn

from . import verification
from .exceptions import AccountAlreadyVerified, InvalidVerificationSecret
from .models import (
    Account,
    SignupBody,
    SignupRequest,
    VerifyAccountRequest,
    VerifyEmailBody,
)
from .passwords import hash_password, validate_and_wrap
from .ports import AccountRepository, EmailSender
from .tickets import DEFAULT_TICKET_TTL, TicketStatus, VerificationTicket

logger = logging.getLogger(__name__)

# Verified against when there is no account or no usable ticket (timing oracle prevention)
_DUMMY_CIPHERTEXT = verification.generate("dummy@timing.invalid")[1]


def _reject_with_dummy_work(secret: str, email: str) -> NoReturn:
    # Same Argon2 cost as a wrong secret; fails on the email MAC
    verification.verify(secret, email, _DUMMY_CIPHERTEXT)
    raise InvalidVerificationSecret()


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def build_signup_request(
    body: SignupBody, existing_account: Account | None = None
) -> SignupRequest:
    """
    Build a signup request from the body and the current account state.

    Args:
        body: Signup input (email, raw password)
        existing_account: Account already registered for the email, if any

    Returns:
        SignupRequest with password hash and a new verification secret

    Raises:
        AccountAlreadyVerified: If the existing account is verified
        PasswordError: If the password breaks the policy
    """
    if existing_account is not None and existing_account.verified:
        raise AccountAlreadyVerified(existing_account.email)

    email = normalize_email(body.email)
    password_hash = hash_password(validate_and_wrap(body.password))
    plaintext, ciphertext = verification.generate(email)
    return SignupRequest(
        email=email,
        password_hash=password_hash,
        verification_plaintext=plaintext,
        verification_ciphertext=ciphertext,
    )


def build_verify_account_request(
    body: VerifyEmailBody,
    account: Account,
    active_ticket: VerificationTicket | None,
    now: datetime | None = None,
    ttl: timedelta = DEFAULT_TICKET_TTL,
) -> VerifyAccountRequest:
    """
    Build an account verification request.

    Raises:
        AccountAlreadyVerified: If the account is already verified
        InvalidVerificationSecret: If there is no usable ticket or the secret
            does not verify for the account's email
    """
    if account.verified:
        raise AccountAlreadyVerified(account.email)
    secret = body.secret.strip()
    if (
        active_ticket is None
        or active_ticket.status is not TicketStatus.ACTIVE
        or active_ticket.is_expired(now or datetime.now(timezone.utc), ttl)
    ):
        _reject_with_dummy_work(secret, account.email)

    verification.verify(secret, account.email, active_ticket.ciphertext)
    return VerifyAccountRequest(account_id=account.id, ticket_id=active_ticket.id)


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration flow: email normalization, request
    building, persistence, and secret delivery.
    """

    repository: AccountRepository
    email_sender: EmailSender
    ticket_ttl: timedelta = field(default=DEFAULT_TICKET_TTL)

    def signup(self, body: SignupBody) -> Account:
        """
        Sign up, or restart the signup of an unverified account.

        Args:
            body: Signup input; email is normalized here

        Returns:
            The created or updated account

        Raises:
            AccountAlreadyVerified: If a verified account owns the email
            PasswordError: If the password breaks the policy
        """
        email = normalize_email(body.email)
        existing = self.repository.get_account_by_email(email)
        request = build_signup_request(SignupBody(email=email, password=body.password), existing)

        if existing is None:
            account = self.repository.create_account(request)
            logger.info("Account created: %s", account.id)
        else:
            account = self.repository.reset_account_creation(request)
            logger.info("Account signup restarted: %s", account.id)

        self._dispatch_secret(email, request.verification_plaintext)
        return account

    def verify_email(self, body: VerifyEmailBody) -> Account:
        """
        Redeem a verification secret and mark the account verified.

        An unknown email fails exactly like a wrong secret.

        Raises:
            AccountAlreadyVerified: If the account is already verified
            InvalidVerificationSecret: On any secret or ticket failure
        """
        email = normalize_email(body.email)
        found = self.repository.get_account_by_email_with_verification_ticket(email)
        if found is None:
            _reject_with_dummy_work(body.secret.strip(), email)

        account, ticket = found
        request = build_verify_account_request(body, account, ticket, ttl=self.ticket_ttl)
        verified = self.repository.verify_account(request)
        logger.info("Account verified: %s", verified.id)
        return verified

    def _dispatch_secret(self, email: str, secret: str) -> None:
        try:
            self.email_sender.send_verification_secret(email, secret)
        except Exception:
            logger.exception("Failed to send verification secret to %s", email)
