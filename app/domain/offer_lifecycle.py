"""Offer lifecycle - the moderation and expiry state machine.

    pending ──approve──▶ approved ──(end_date passes)──▶ expired
       │                                                  ▲
       ├──reject──▶ rejected                              │
       └──────────────(end_date passes)───────────────────┘

State is derived, never stored: ``derive_state`` reads the moderation flags,
the rejection record and ``end_date`` against a caller-supplied ``now``.
Nothing leaves ``rejected`` or ``expired``.

All functions here are pure apart from the flag writes performed by the
transition helpers on the passed-in offer; persisting is the caller's job.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from app.core.clock import as_utc


class OfferState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


TERMINAL_STATES = frozenset({OfferState.REJECTED, OfferState.EXPIRED})


class LifecycleOffer(Protocol):
    """The offer fields the state machine reads and writes."""

    is_approved: bool
    is_active: bool
    end_date: datetime | None
    rejected_at: datetime | None
    rejection_reason: str | None


@dataclass(frozen=True)
class InvalidTransition:
    """A moderation action attempted from a state that does not permit it."""

    action: str
    current_state: OfferState

    @property
    def message(self) -> str:
        return f"Cannot {self.action} an offer that is {self.current_state.value}"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a lifecycle operation."""

    state: OfferState
    error: InvalidTransition | None = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def _has_ended(offer: LifecycleOffer, now: datetime) -> bool:
    return offer.end_date is not None and as_utc(now) > as_utc(offer.end_date)


def derive_state(offer: LifecycleOffer, now: datetime) -> OfferState:
    """Compute the offer's status at ``now``."""
    if offer.rejected_at is not None:
        return OfferState.REJECTED
    if _has_ended(offer, now):
        return OfferState.EXPIRED
    if offer.is_approved:
        return OfferState.APPROVED
    return OfferState.PENDING


def is_redeemable(offer: LifecycleOffer, now: datetime) -> bool:
    """Whether customers may redeem against this offer at ``now``."""
    return (
        derive_state(offer, now) == OfferState.APPROVED
        and offer.is_active
        and not _has_ended(offer, now)
    )


def approve(offer: LifecycleOffer, now: datetime) -> TransitionResult:
    """Admin approval. Approving an already-approved offer is a no-op success."""
    state = derive_state(offer, now)
    if state == OfferState.APPROVED:
        return TransitionResult(state=state)
    if state != OfferState.PENDING:
        return TransitionResult(state=state, error=InvalidTransition("approve", state))

    offer.is_approved = True
    return TransitionResult(state=OfferState.APPROVED, changed=True)


def reject(offer: LifecycleOffer, now: datetime, reason: str | None = None) -> TransitionResult:
    """Admin rejection. Final: a merchant must resubmit as a new offer."""
    state = derive_state(offer, now)
    if state != OfferState.PENDING:
        return TransitionResult(state=state, error=InvalidTransition("reject", state))

    offer.is_approved = False
    offer.rejected_at = as_utc(now)
    offer.rejection_reason = reason
    return TransitionResult(state=OfferState.REJECTED, changed=True)


def set_active(offer: LifecycleOffer, is_active: bool, now: datetime) -> TransitionResult:
    """Merchant pause/resume.

    Refused for rejected offers. Expired offers may still be toggled for
    display purposes; they remain non-redeemable either way.
    """
    state = derive_state(offer, now)
    action = "activate" if is_active else "deactivate"
    if state == OfferState.REJECTED:
        return TransitionResult(state=state, error=InvalidTransition(action, state))

    changed = offer.is_active != is_active
    offer.is_active = is_active
    return TransitionResult(state=state, changed=changed)


def counts_towards_quota(offer: LifecycleOffer, now: datetime) -> bool:
    """Pending and approved offers consume plan quota; terminal ones do not."""
    return derive_state(offer, now) not in TERMINAL_STATES
