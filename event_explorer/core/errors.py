"""
Error kinds raised by the event services.

The HTTP layer maps each kind to its own status code, so services must raise
the most specific class and never wrap one kind in another.
"""


class EventExplorerError(Exception):
    pass


class NotFoundError(EventExplorerError):
    """A referenced user, event or category does not exist."""


class InvalidArgumentError(EventExplorerError):
    """Bad input such as an event date in the past or an inverted date range."""


class StateConflictError(EventExplorerError):
    """The requested change conflicts with the event's moderation state."""


class ModerationConflictError(StateConflictError):
    """An administrator action is not allowed from the current state."""


class OwnerEditConflictError(StateConflictError):
    """The initiator tried to change an event that is already published."""


class EventLockedError(StateConflictError):
    """Another request is updating the same event."""


class DependencyFailureError(EventExplorerError):
    """A required collaborator (participation counts) could not be reached."""
