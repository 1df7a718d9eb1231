"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from soko.domain.models import AccessToken, Account
from soko.domain.tokens import MAX_LIFETIME, MAX_NAME_LENGTH


class SignupRequestModel(BaseModel):
    """Request model for account signup."""

    email: EmailStr
    password: str = Field(
        ...,
        description="10 to 40 characters, with at least 2 uppercase letters, "
        "2 digits and 2 special characters",
    )


class VerifyEmailRequestModel(BaseModel):
    """Request model for email verification."""

    email: EmailStr
    secret: str = Field(..., min_length=1, max_length=64, description="Secret received by email")


class CreateAccessTokenRequestModel(BaseModel):
    """Request model for access token creation."""

    email: EmailStr
    password: str
    name: str = Field(..., description=f"Token name, 1 to {MAX_NAME_LENGTH} characters")
    lifetime: int = Field(..., description=f"Lifetime in seconds, 1 to {MAX_LIFETIME}")


class AccountResponse(BaseModel):
    """Response model for account endpoints."""

    email: str
    verified: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            email=account.email,
            verified=account.verified,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class AccessTokenCreatedResponse(BaseModel):
    """Response model for a newly created access token.

    ``access_token`` is only ever returned here.
    """

    id: UUID
    name: str
    access_token: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None

    @classmethod
    def from_token(cls, stored: AccessToken, plaintext: str) -> "AccessTokenCreatedResponse":
        return cls(
            id=stored.id,
            name=stored.name,
            access_token=plaintext,
            created_at=stored.created_at,
            updated_at=stored.updated_at,
            expires_at=stored.expires_at,
            revoked_at=stored.revoked_at,
        )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    code: str | None = None
