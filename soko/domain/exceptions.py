"""
Domain exceptions - Semantic error types for the identity core.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Families:
- Validation: PasswordError, InvalidName, InvalidLifetime
- Authentication: InvalidCredentials, PasswordVerificationFailed
- State conflict: AccountAlreadyVerified, ActiveTokenLimitReached,
  InvalidTicketTransition
- Secret verification: InvalidVerificationSecret

Anything else (database driver errors, hashing backend failures) is an
infrastructure error and propagates unchanged.
"""


class SokoError(Exception):
    """Base class for identity domain errors."""

    pass


# Password policy


class PasswordError(SokoError):
    """Password does not satisfy the password policy."""

    pass


class EmptyPassword(PasswordError):
    """Password is empty."""

    def __init__(self) -> None:
        super().__init__("password must not be empty")
        self.reason = "password must not be empty"


class InvalidPassword(PasswordError):
    """Password breaks a policy rule; ``reason`` is safe to show the client."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class PasswordVerificationFailed(SokoError):
    """Password does not match the stored hash, or the hash is unreadable."""

    pass


# Account verification


class AccountAlreadyVerified(SokoError):
    """A verified account already exists for the email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"a verified account already exists for the email: {email}")
        self.email = email


class InvalidVerificationSecret(SokoError):
    """Secret is wrong, expired, or no active ticket exists.

    The causes are intentionally indistinguishable.
    """

    def __init__(self) -> None:
        super().__init__("invalid verification secret")


class InvalidTicketTransition(SokoError):
    """A terminal verification ticket was asked to change state."""

    pass


# Access tokens


class CreateAccessTokenRequestError(SokoError):
    """Base class for rejected access token creation requests."""

    pass


class InvalidCredentials(CreateAccessTokenRequestError):
    """Password re-check failed, or no verified account matches the email."""

    pass


class InvalidName(CreateAccessTokenRequestError):
    """Token name is empty or too long once trimmed."""

    pass


class InvalidLifetime(CreateAccessTokenRequestError):
    """Token lifetime is outside the allowed range."""

    pass


class ActiveTokenLimitReached(SokoError):
    """Account already holds the maximum number of active tokens."""

    def __init__(self, max_active_tokens: int) -> None:
        super().__init__(f"account has reached its access token limit: {max_active_tokens}")
        self.max_active_tokens = max_active_tokens
