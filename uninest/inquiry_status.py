# Inquiry status workflow: the states an inquiry moves through and which moves are legal.
from enum import Enum

from .errors import InvalidTransitionError, ValidationError


class InquiryStatus(str, Enum):
    PENDING = "PENDING"
    CONTACTED = "CONTACTED"
    SCHEDULED = "SCHEDULED"
    VISITED = "VISITED"
    RENTED = "RENTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


# An inquiry in one of these blocks a second inquiry for the same (property, student)
OPEN_STATUSES = (InquiryStatus.PENDING, InquiryStatus.CONTACTED)

TERMINAL_STATUSES = frozenset({InquiryStatus.RENTED, InquiryStatus.REJECTED, InquiryStatus.CANCELLED})

TRANSITIONS: dict[InquiryStatus, frozenset[InquiryStatus]] = {
    InquiryStatus.PENDING: frozenset({
        InquiryStatus.CONTACTED,
        InquiryStatus.SCHEDULED,
        InquiryStatus.REJECTED,
        InquiryStatus.CANCELLED,
    }),
    InquiryStatus.CONTACTED: frozenset({
        InquiryStatus.SCHEDULED,
        InquiryStatus.REJECTED,
        InquiryStatus.CANCELLED,
    }),
    # SCHEDULED -> SCHEDULED is a reschedule
    InquiryStatus.SCHEDULED: frozenset({
        InquiryStatus.SCHEDULED,
        InquiryStatus.VISITED,
        InquiryStatus.REJECTED,
        InquiryStatus.CANCELLED,
    }),
    InquiryStatus.VISITED: frozenset({
        InquiryStatus.RENTED,
        InquiryStatus.REJECTED,
        InquiryStatus.CANCELLED,
    }),
    InquiryStatus.RENTED: frozenset(),
    InquiryStatus.REJECTED: frozenset(),
    InquiryStatus.CANCELLED: frozenset(),
}


def parse_status(value: str) -> InquiryStatus:
    """Map a client-supplied status string onto the enum (case-insensitive)."""
    try:
        return InquiryStatus(value.strip().upper())
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid status: {value}") from None


def can_transition(current: InquiryStatus, target: InquiryStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: InquiryStatus, target: InquiryStatus) -> InquiryStatus:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change inquiry status from {current.value} to {target.value}"
        )
    return target
