"""
Verification ticket - lifecycle of one issued verification secret.

Ticket State Machine (Forward-Only Transitions)
===============================================

States:
- ACTIVE: Initial state, the secret may still be redeemed
- CANCELLED: Terminal, superseded by a newer signup attempt
- CONFIRMED: Terminal, the secret was redeemed and the account verified

Valid Transitions:
    ACTIVE -> CANCELLED   (new signup before confirmation)
    ACTIVE -> CONFIRMED   (successful verification)

Expiry is a predicate, not a state: an ACTIVE ticket older than the TTL
is invalid for verification but stays ACTIVE until the next signup
attempt cancels it.

Note: At most one ACTIVE ticket per account is enforced by the repository
(partial unique index plus transactional cancel-then-insert).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import UUID

from .exceptions import InvalidTicketTransition

DEFAULT_TICKET_TTL = timedelta(minutes=15)


class TicketStatus(str, Enum):
    """Verification ticket states, stored lowercase."""

    ACTIVE = "active"
    CANCELLED = "cancelled"
    CONFIRMED = "confirmed"

    @property
    def is_terminal(self) -> bool:
        return self is not TicketStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class VerificationTicket:
    """Server-side record of one issued verification secret."""

    id: UUID
    account_id: UUID
    ciphertext: str
    status: TicketStatus
    created_at: datetime
    updated_at: datetime

    def is_expired(self, now: datetime | None = None, ttl: timedelta = DEFAULT_TICKET_TTL) -> bool:
        """True once more than ``ttl`` has elapsed since creation."""
        now = now or datetime.now(timezone.utc)
        return now - self.created_at > ttl

    def confirm(self, now: datetime | None = None) -> VerificationTicket:
        """Return the CONFIRMED successor of this ticket."""
        return self._transition(TicketStatus.CONFIRMED, now)

    def cancel(self, now: datetime | None = None) -> VerificationTicket:
        """Return the CANCELLED successor of this ticket."""
        return self._transition(TicketStatus.CANCELLED, now)

    def _transition(self, target: TicketStatus, now: datetime | None) -> VerificationTicket:
        if self.status.is_terminal:
            raise InvalidTicketTransition(
                f"ticket {self.id} is {self.status.value}, cannot move to {target.value}"
            )
        return replace(self, status=target, updated_at=now or datetime.now(timezone.utc))
