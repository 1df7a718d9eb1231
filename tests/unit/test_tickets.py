"""
Unit tests for the verification ticket state machine.

Tests verify:
- Forward-only transitions from ACTIVE
- Terminal states reject transitions
- Expiry predicate around the 15-minute boundary
"""

import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from soko.domain.exceptions import InvalidTicketTransition
from soko.domain.tickets import DEFAULT_TICKET_TTL, TicketStatus, VerificationTicket

NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


def _ticket(status: TicketStatus = TicketStatus.ACTIVE, age: timedelta = timedelta()) -> VerificationTicket:
    return VerificationTicket(
        id=uuid.uuid4(),
        account_id=uuid.uuid4(),
        ciphertext="opaque",
        status=status,
        created_at=NOW - age,
        updated_at=NOW - age,
    )


class TestTicketStatusEnum:
    """Tests for TicketStatus values."""

    def test_values_are_lowercase(self) -> None:
        assert [s.value for s in TicketStatus] == ["active", "cancelled", "confirmed"]

    def test_str_mixin_serializes(self) -> None:
        assert json.dumps(TicketStatus.ACTIVE) == '"active"'

    def test_only_active_is_not_terminal(self) -> None:
        assert not TicketStatus.ACTIVE.is_terminal
        assert TicketStatus.CANCELLED.is_terminal
        assert TicketStatus.CONFIRMED.is_terminal


class TestTransitions:
    """Tests for ACTIVE -> CONFIRMED / CANCELLED."""

    def test_confirm_active(self) -> None:
        ticket = _ticket()
        confirmed = ticket.confirm(NOW)
        assert confirmed.status is TicketStatus.CONFIRMED
        assert confirmed.updated_at == NOW
        assert confirmed.id == ticket.id

    def test_cancel_active(self) -> None:
        assert _ticket().cancel(NOW).status is TicketStatus.CANCELLED

    def test_transition_returns_new_instance(self) -> None:
        """The original snapshot is left untouched."""
        ticket = _ticket()
        ticket.confirm(NOW)
        assert ticket.status is TicketStatus.ACTIVE

    @pytest.mark.parametrize("status", [TicketStatus.CANCELLED, TicketStatus.CONFIRMED])
    def test_terminal_cannot_confirm(self, status: TicketStatus) -> None:
        with pytest.raises(InvalidTicketTransition):
            _ticket(status).confirm(NOW)

    @pytest.mark.parametrize("status", [TicketStatus.CANCELLED, TicketStatus.CONFIRMED])
    def test_terminal_cannot_cancel(self, status: TicketStatus) -> None:
        with pytest.raises(InvalidTicketTransition):
            _ticket(status).cancel(NOW)


class TestExpiry:
    """Tests for the expiry predicate."""

    def test_default_ttl_is_15_minutes(self) -> None:
        assert DEFAULT_TICKET_TTL == timedelta(minutes=15)

    def test_fresh_ticket_not_expired(self) -> None:
        assert not _ticket(age=timedelta(minutes=1)).is_expired(NOW)

    def test_just_under_ttl_not_expired(self) -> None:
        assert not _ticket(age=timedelta(minutes=14, seconds=59)).is_expired(NOW)

    def test_exactly_ttl_not_expired(self) -> None:
        """Expiry requires strictly more than the TTL."""
        assert not _ticket(age=timedelta(minutes=15)).is_expired(NOW)

    def test_past_ttl_expired(self) -> None:
        assert _ticket(age=timedelta(minutes=16)).is_expired(NOW)

    def test_custom_ttl(self) -> None:
        assert _ticket(age=timedelta(seconds=61)).is_expired(NOW, ttl=timedelta(seconds=60))

    def test_expired_ticket_stays_active(self) -> None:
        """Expiry does not change the stored state."""
        ticket = _ticket(age=timedelta(hours=1))
        assert ticket.is_expired(NOW)
        assert ticket.status is TicketStatus.ACTIVE
