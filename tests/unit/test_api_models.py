"""
Unit tests for API request/response models.

Tests Pydantic model validation for signup, verification and token endpoints.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from soko.api.models import (
    AccessTokenCreatedResponse,
    AccountResponse,
    CreateAccessTokenRequestModel,
    ErrorResponse,
    SignupRequestModel,
    VerifyEmailRequestModel,
)
from soko.domain.models import AccessToken, Account, OpaqueToken

NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


class TestSignupRequestModel:
    """Tests for SignupRequestModel."""

    def test_valid(self) -> None:
        request = SignupRequestModel(email="user@example.com", password="Ab12!!cdEf")
        assert request.email == "user@example.com"

    def test_email_domain_normalized(self) -> None:
        """EmailStr lowercases the domain only; the domain layer does the rest."""
        request = SignupRequestModel(email="USER@EXAMPLE.COM", password="Ab12!!cdEf")
        assert request.email == "USER@example.com"

    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SignupRequestModel(email="not-an-email", password="Ab12!!cdEf")
        assert "email" in str(exc_info.value)

    def test_password_policy_not_enforced_here(self) -> None:
        """Weak passwords pass the model; the domain reports the rule broken."""
        assert SignupRequestModel(email="user@example.com", password="weak").password == "weak"

    def test_missing_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SignupRequestModel(email="user@example.com")


class TestVerifyEmailRequestModel:
    """Tests for VerifyEmailRequestModel."""

    def test_valid(self) -> None:
        request = VerifyEmailRequestModel(email="user@example.com", secret="01234567")
        assert request.secret == "01234567"

    @pytest.mark.parametrize("secret", ["", "1" * 65])
    def test_secret_length_bounds(self, secret: str) -> None:
        with pytest.raises(ValidationError):
            VerifyEmailRequestModel(email="user@example.com", secret=secret)


class TestCreateAccessTokenRequestModel:
    """Tests for CreateAccessTokenRequestModel."""

    def test_valid(self) -> None:
        request = CreateAccessTokenRequestModel(
            email="user@example.com", password="Ab12!!cdEf", name="ci", lifetime=3600
        )
        assert request.lifetime == 3600

    def test_lifetime_must_be_integer(self) -> None:
        with pytest.raises(ValidationError):
            CreateAccessTokenRequestModel(
                email="user@example.com", password="Ab12!!cdEf", name="ci", lifetime="soon"
            )

    def test_range_checks_left_to_domain(self) -> None:
        """Zero lifetime and empty name reach the domain for its own errors."""
        request = CreateAccessTokenRequestModel(
            email="user@example.com", password="x", name="", lifetime=0
        )
        assert request.lifetime == 0


class TestAccountResponse:
    """Tests for AccountResponse."""

    def test_from_account_hides_hash(self) -> None:
        account = Account(
            id=uuid.uuid4(),
            email="user@example.com",
            password_hash="$argon2id$secret",
            verified=True,
            created_at=NOW,
            updated_at=NOW,
        )
        data = AccountResponse.from_account(account).model_dump()

        assert data == {
            "email": "user@example.com",
            "verified": True,
            "created_at": NOW,
            "updated_at": NOW,
        }


class TestAccessTokenCreatedResponse:
    """Tests for AccessTokenCreatedResponse."""

    def test_from_token_includes_plaintext_not_mac(self) -> None:
        stored = AccessToken(
            id=uuid.uuid4(),
            account_id=uuid.uuid4(),
            name="ci",
            mac=b"\x01" * 32,
            created_at=NOW,
            updated_at=NOW,
            expires_at=NOW + timedelta(days=1),
        )
        data = AccessTokenCreatedResponse.from_token(stored, OpaqueToken("soko__abc")).model_dump()

        assert data["access_token"] == "soko__abc"
        assert data["revoked_at"] is None
        assert "mac" not in data
        assert "account_id" not in data


class TestErrorResponse:
    """Tests for ErrorResponse."""

    def test_code_optional(self) -> None:
        assert ErrorResponse(detail="Boom").model_dump() == {"detail": "Boom", "code": None}

    def test_with_code(self) -> None:
        error = ErrorResponse(detail="Invalid secret", code="invalid-secret")
        assert error.code == "invalid-secret"
