"""
Moderation state machine.

    PENDING --publish--> PUBLISHED
    PENDING --reject---> CANCELED
    PENDING/CANCELED --owner send to review--> PENDING
    PENDING/CANCELED --owner cancel review---> CANCELED

Nothing leaves PUBLISHED, and the initiator may not edit a published event at all.
"""
import enum
from typing import Optional

from event_explorer.core.errors import ModerationConflictError, OwnerEditConflictError
from event_explorer.models.events import EventState


class AdminStateAction(str, enum.Enum):
    PUBLISH_EVENT = "PUBLISH_EVENT"
    REJECT_EVENT = "REJECT_EVENT"


class UserStateAction(str, enum.Enum):
    SEND_TO_REVIEW = "SEND_TO_REVIEW"
    CANCEL_REVIEW = "CANCEL_REVIEW"


OWNER_EDITABLE_STATES = frozenset({EventState.PENDING, EventState.CANCELED})


def admin_transition(current: EventState, action: Optional[AdminStateAction]) -> EventState:
    """Return the state an administrator action leads to, or raise ModerationConflictError."""
    if action is None:
        return current
    if action is AdminStateAction.PUBLISH_EVENT:
        if current is not EventState.PENDING:
            raise ModerationConflictError(
                f"Cannot publish the event because it's not in the right state: {current.value}"
            )
        return EventState.PUBLISHED
    if action is AdminStateAction.REJECT_EVENT:
        if current is EventState.PUBLISHED:
            raise ModerationConflictError("Cannot reject the event because it's already published")
        return EventState.CANCELED
    raise ValueError(f"Unknown admin state action: {action!r}")


def ensure_owner_can_edit(current: EventState) -> None:
    if current not in OWNER_EDITABLE_STATES:
        raise OwnerEditConflictError("Only pending or canceled events can be changed")


def owner_transition(current: EventState, action: Optional[UserStateAction]) -> EventState:
    """Return the state an initiator action leads to, or raise OwnerEditConflictError."""
    ensure_owner_can_edit(current)
    if action is None:
        return current
    if action is UserStateAction.SEND_TO_REVIEW:
        return EventState.PENDING
    if action is UserStateAction.CANCEL_REVIEW:
        return EventState.CANCELED
    raise ValueError(f"Unknown user state action: {action!r}")
