"""
Access token issuance.

A token is ``soko__`` followed by 64 random bytes in base64 (no padding).
Only ``HMAC-SHA3-256(server secret, token)`` is stored, so a database leak
does not leak usable tokens. The plaintext is returned to the caller once.

Minting a token requires re-entering the account password. The per-account
quota of active tokens is enforced by the repository inside the inserting
transaction.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .exceptions import (
    InvalidCredentials,
    InvalidLifetime,
    InvalidName,
    PasswordVerificationFailed,
)
from .models import (
    Account,
    CreateAccessTokenBody,
    CreateAccessTokenRequest,
    IssuedAccessToken,
    OpaqueToken,
)
from .passwords import Password, hash_password, verify_password
from .ports import AccessTokenRepository, AccountRepository
from .registration import normalize_email

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "soko__"
TOKEN_BYTES = 64
MAX_NAME_LENGTH = 40
MAX_LIFETIME = 90 * 24 * 60 * 60  # seconds
DEFAULT_MAX_ACTIVE_TOKENS = 3

# Checked against when no verified account matches the email, so that an
# unknown email costs the same Argon2 run as a wrong password.
_DUMMY_PASSWORD_HASH = hash_password(Password("dummy-password-for-timing-safety"))


def generate_token() -> OpaqueToken:
    encoded = base64.b64encode(secrets.token_bytes(TOKEN_BYTES)).decode("ascii").rstrip("=")
    return OpaqueToken(TOKEN_PREFIX + encoded)


def compute_mac(hmac_secret: str, token: str) -> bytes:
    """MAC stored in place of the token: HMAC-SHA3-256(secret, token)."""
    return hmac.new(hmac_secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha3_256).digest()


def build_create_access_token_request(
    body: CreateAccessTokenBody,
    account: Account,
    hmac_secret: str,
    now: datetime | None = None,
) -> CreateAccessTokenRequest:
    """
    Validate a token creation body and derive the token and its MAC.

    Raises:
        InvalidCredentials: If the password does not match the account
        InvalidName: If the trimmed name is empty or longer than 40 chars
        InvalidLifetime: If lifetime is not in (0, 90 days]
    """
    try:
        verify_password(body.password, account.password_hash)
    except PasswordVerificationFailed:
        raise InvalidCredentials("invalid password") from None

    name = body.name.strip()
    if not name or len(name) > MAX_NAME_LENGTH:
        raise InvalidName("name must not be empty and must be at most 40 characters long")

    if isinstance(body.lifetime, bool) or not 0 < body.lifetime <= MAX_LIFETIME:
        raise InvalidLifetime("lifetime must be more than 0 and at most 90 days")

    token = generate_token()
    now = now or datetime.now(timezone.utc)
    return CreateAccessTokenRequest(
        account_id=account.id,
        name=name,
        token=token,
        mac=compute_mac(hmac_secret, token),
        expires_at=now + timedelta(seconds=body.lifetime),
    )


@dataclass
class AccessTokenService:
    """Domain service minting access tokens for verified accounts."""

    accounts: AccountRepository
    tokens: AccessTokenRepository
    hmac_secret: str
    max_active_tokens: int = DEFAULT_MAX_ACTIVE_TOKENS

    def create_token(self, body: CreateAccessTokenBody) -> IssuedAccessToken:
        """
        Mint a token for the verified account owning ``body.email``.

        An unknown or unverified email fails like a wrong password.

        Raises:
            InvalidCredentials: Unknown/unverified account or wrong password
            InvalidName, InvalidLifetime: On invalid input
            ActiveTokenLimitReached: If the account is at its quota
        """
        account = self.accounts.get_verified_account_by_email(normalize_email(body.email))
        if account is None:
            try:
                verify_password(body.password, _DUMMY_PASSWORD_HASH)
            except PasswordVerificationFailed:
                pass
            raise InvalidCredentials("invalid password")

        request = build_create_access_token_request(body, account, self.hmac_secret)
        access_token = self.tokens.create_token(request, self.max_active_tokens)
        logger.info("Access token %s created for account %s", access_token.id, account.id)
        return IssuedAccessToken(access_token=access_token, token=request.token)
