"""
Test the moderation state machine.
"""
import pytest

from event_explorer.core.errors import ModerationConflictError, OwnerEditConflictError
from event_explorer.models.events import EventState
from event_explorer.services.moderation import (
    AdminStateAction,
    UserStateAction,
    admin_transition,
    owner_transition,
)


class TestAdminTransition:
    """Test administrator state actions."""

    def test_publish_pending(self):
        assert admin_transition(EventState.PENDING, AdminStateAction.PUBLISH_EVENT) is EventState.PUBLISHED

    @pytest.mark.parametrize("state", [EventState.PUBLISHED, EventState.CANCELED])
    def test_publish_requires_pending(self, state):
        """Test that only pending events can be published."""
        with pytest.raises(ModerationConflictError):
            admin_transition(state, AdminStateAction.PUBLISH_EVENT)

    @pytest.mark.parametrize("state", [EventState.PENDING, EventState.CANCELED])
    def test_reject_unpublished(self, state):
        assert admin_transition(state, AdminStateAction.REJECT_EVENT) is EventState.CANCELED

    def test_reject_published_conflicts(self):
        """Test that a published event cannot be rejected."""
        with pytest.raises(ModerationConflictError, match="already published"):
            admin_transition(EventState.PUBLISHED, AdminStateAction.REJECT_EVENT)

    @pytest.mark.parametrize("state", list(EventState))
    def test_no_action_keeps_state(self, state):
        assert admin_transition(state, None) is state


class TestOwnerTransition:
    """Test initiator state actions."""

    @pytest.mark.parametrize("state", [EventState.PENDING, EventState.CANCELED])
    def test_send_to_review(self, state):
        assert owner_transition(state, UserStateAction.SEND_TO_REVIEW) is EventState.PENDING

    @pytest.mark.parametrize("state", [EventState.PENDING, EventState.CANCELED])
    def test_cancel_review(self, state):
        assert owner_transition(state, UserStateAction.CANCEL_REVIEW) is EventState.CANCELED

    @pytest.mark.parametrize("action", [None, UserStateAction.SEND_TO_REVIEW, UserStateAction.CANCEL_REVIEW])
    def test_published_event_is_frozen_for_owner(self, action):
        """Test that the initiator cannot touch a published event."""
        with pytest.raises(OwnerEditConflictError):
            owner_transition(EventState.PUBLISHED, action)
