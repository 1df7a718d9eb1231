"""
Domain layer - Pure business logic with zero framework imports.

This package contains the identity core: password policy, email-bound
verification secrets, the verification ticket state machine, and the
signup, verification and access token request builders. It defines its
own port interfaces for infrastructure abstraction.
"""

from .exceptions import (
    AccountAlreadyVerified,
    ActiveTokenLimitReached,
    CreateAccessTokenRequestError,
    EmptyPassword,
    InvalidCredentials,
    InvalidLifetime,
    InvalidName,
    InvalidPassword,
    InvalidTicketTransition,
    InvalidVerificationSecret,
    PasswordError,
    PasswordVerificationFailed,
    SokoError,
)
from .models import (
    AccessToken,
    Account,
    CreateAccessTokenBody,
    CreateAccessTokenRequest,
    IssuedAccessToken,
    OpaqueToken,
    SignupBody,
    SignupRequest,
    VerifyAccountRequest,
    VerifyEmailBody,
)
from .ports import AccessTokenRepository, AccountRepository, EmailSender
from .registration import RegistrationService
from .tickets import TicketStatus, VerificationTicket
from .tokens import AccessTokenService

__all__ = [
    "AccessToken",
    "AccessTokenRepository",
    "AccessTokenService",
    "Account",
    "AccountAlreadyVerified",
    "AccountRepository",
    "ActiveTokenLimitReached",
    "CreateAccessTokenBody",
    "CreateAccessTokenRequest",
    "CreateAccessTokenRequestError",
    "EmailSender",
    "EmptyPassword",
    "InvalidCredentials",
    "InvalidLifetime",
    "InvalidName",
    "InvalidPassword",
    "InvalidTicketTransition",
    "InvalidVerificationSecret",
    "IssuedAccessToken",
    "OpaqueToken",
    "PasswordError",
    "PasswordVerificationFailed",
    "RegistrationService",
    "SignupBody",
    "SignupRequest",
    "SokoError",
    "TicketStatus",
    "VerificationTicket",
    "VerifyAccountRequest",
    "VerifyEmailBody",
]
