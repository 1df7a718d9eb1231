"""
API v1 routes.

Defines REST endpoints for account signup, email verification and access
token creation.

Handlers are plain ``def`` so Argon2 hashing runs in the threadpool
instead of blocking the event loop.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from soko.api.dependencies import get_access_token_service, get_registration_service
from soko.api.models import (
    AccessTokenCreatedResponse,
    AccountResponse,
    CreateAccessTokenRequestModel,
    ErrorResponse,
    SignupRequestModel,
    VerifyEmailRequestModel,
)
from soko.domain.exceptions import (
    AccountAlreadyVerified,
    ActiveTokenLimitReached,
    InvalidCredentials,
    InvalidLifetime,
    InvalidName,
    InvalidVerificationSecret,
    PasswordError,
)
from soko.domain.models import CreateAccessTokenBody, SignupBody, VerifyEmailBody
from soko.domain.registration import RegistrationService
from soko.domain.tokens import AccessTokenService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])


def _error(status_code: int, detail: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=detail, code=code).model_dump(),
    )


def _field_error(field: str, message: str) -> HTTPException:
    """422 shaped like FastAPI's own request validation errors."""
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[{"loc": ["body", field], "msg": message, "type": "value_error"}],
    )


def _already_verified() -> JSONResponse:
    return _error(
        status.HTTP_409_CONFLICT,
        "Email is already associated with a verified account",
        "existing-email",
    )


@router.post(
    "/accounts/signup",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email belongs to a verified account"},
        422: {"description": "Validation error"},
    },
    summary="Sign up",
    description="Create an account, or restart the signup of an unverified one. "
    "A verification secret is sent to the email address.",
)
def signup(
    request_data: SignupRequestModel,
    service: RegistrationService = Depends(get_registration_service),
):
    """
    Sign up with email and password.

    - **email**: Email address to register
    - **password**: 10-40 characters, 2 uppercase, 2 digits, 2 special
    """
    try:
        account = service.signup(
            SignupBody(email=request_data.email, password=request_data.password)
        )
    except PasswordError as e:
        raise _field_error("password", e.reason) from None
    except AccountAlreadyVerified:
        return _already_verified()
    return AccountResponse.from_account(account)


@router.post(
    "/accounts/verify-email",
    response_model=AccountResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid verification secret"},
        409: {"model": ErrorResponse, "description": "Account already verified"},
        422: {"description": "Validation error"},
    },
    summary="Verify email",
    description="Redeem the secret received by email to verify the account.",
)
def verify_email(
    request_data: VerifyEmailRequestModel,
    service: RegistrationService = Depends(get_registration_service),
):
    """
    Verify an account email with the secret sent at signup.

    Unknown email, missing/expired ticket and wrong secret share one response.
    """
    try:
        account = service.verify_email(
            VerifyEmailBody(email=request_data.email, secret=request_data.secret)
        )
    except InvalidVerificationSecret:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid secret", "invalid-secret")
    except AccountAlreadyVerified:
        return _already_verified()
    return AccountResponse.from_account(account)


@router.post(
    "/tokens",
    response_model=AccessTokenCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        409: {"model": ErrorResponse, "description": "Active token limit reached"},
        422: {"description": "Validation error"},
    },
    summary="Create an access token",
    description="Re-authenticate with email and password to mint an expiring "
    "access token. The token value is only returned in this response.",
)
def create_access_token(
    request_data: CreateAccessTokenRequestModel,
    service: AccessTokenService = Depends(get_access_token_service),
):
    """
    Create an access token for a verified account.

    - **name**: Display name, 1-40 characters after trimming
    - **lifetime**: Seconds until expiry, at most 90 days
    """
    body = CreateAccessTokenBody(
        email=request_data.email,
        password=request_data.password,
        name=request_data.name,
        lifetime=request_data.lifetime,
    )
    try:
        issued = service.create_token(body)
    except InvalidCredentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from None
    except InvalidName:
        raise _field_error(
            "name", "name must not be empty and must be at most 40 characters long"
        ) from None
    except InvalidLifetime:
        raise _field_error("lifetime", "lifetime must be more than 0 and at most 90 days") from None
    except ActiveTokenLimitReached as e:
        return _error(
            status.HTTP_409_CONFLICT,
            f"Limit of {e.max_active_tokens} active access tokens reached",
            "too-many-tokens",
        )
    return AccessTokenCreatedResponse.from_token(issued.access_token, issued.token)
