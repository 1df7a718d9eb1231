"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import timedelta

from fastapi import Request
from psycopg_pool import ConnectionPool

from soko.adapters.repository.postgres import (
    PostgresAccessTokenRepository,
    PostgresAccountRepository,
)
from soko.adapters.smtp.console import ConsoleEmailSender
from soko.config.settings import get_settings
from soko.domain.registration import RegistrationService
from soko.domain.tokens import AccessTokenService

# Module-level singleton - ConsoleEmailSender is stateless
_email_sender = ConsoleEmailSender()


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_account_repository(request: Request) -> PostgresAccountRepository:
    """Create account repository with connection pool from app state."""
    return PostgresAccountRepository(get_pool(request))


def get_access_token_repository(request: Request) -> PostgresAccessTokenRepository:
    """Create access token repository with connection pool from app state."""
    return PostgresAccessTokenRepository(get_pool(request))


def get_email_sender() -> ConsoleEmailSender:
    """Get console email sender (singleton)."""
    return _email_sender


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the account repository and email sender.
    """
    settings = get_settings()
    return RegistrationService(
        repository=get_account_repository(request),
        email_sender=get_email_sender(),
        ticket_ttl=timedelta(seconds=settings.verification_ttl_seconds),
    )


def get_access_token_service(request: Request) -> AccessTokenService:
    """Create access token service with repositories and token settings."""
    settings = get_settings()
    return AccessTokenService(
        accounts=get_account_repository(request),
        tokens=get_access_token_repository(request),
        hmac_secret=settings.token_hmac_secret,
        max_active_tokens=settings.max_active_tokens,
    )
