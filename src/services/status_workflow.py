"""Listing case status transition table."""

from src.models.listing_case import ListcaseStatus
from src.utils.errors import InvalidStatusTransitionError


STATUS_TRANSITIONS: dict[ListcaseStatus, frozenset[ListcaseStatus]] = {
    ListcaseStatus.CREATED: frozenset({ListcaseStatus.PENDING, ListcaseStatus.CANCELLED}),
    ListcaseStatus.PENDING: frozenset({
        ListcaseStatus.CREATED,
        ListcaseStatus.DELIVERED,
        ListcaseStatus.CANCELLED,
    }),
    ListcaseStatus.DELIVERED: frozenset(),
    ListcaseStatus.CANCELLED: frozenset(),
}


def allowed_transitions(current: ListcaseStatus) -> frozenset[ListcaseStatus]:
    """Statuses reachable from `current` in one step."""
    return STATUS_TRANSITIONS.get(current, frozenset())


def is_valid_transition(current: ListcaseStatus, new: ListcaseStatus) -> bool:
    return new in allowed_transitions(current)


def validate_transition(current: ListcaseStatus, new: ListcaseStatus) -> None:
    """Raise InvalidStatusTransitionError unless current -> new is in the table."""
    if not is_valid_transition(current, new):
        raise InvalidStatusTransitionError(
            f"Invalid status transition from {ListcaseStatus(current).value} to {ListcaseStatus(new).value}"
        )
