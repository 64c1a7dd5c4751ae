"""Follow-up tasks: durable record of audit and notification work owed after a change."""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field
from ulid import ULID


def generate_follow_up_id() -> str:
    """Generate a text-based follow-up task ID (ULID format)."""
    return str(ULID())


class FollowUpKind(str, Enum):
    """Change that produced the follow-up."""
    STATUS_CHANGED = "status_changed"
    LISTING_CREATED = "listing_created"
    LISTING_UPDATED = "listing_updated"
    LISTING_DELETED = "listing_deleted"


class FollowUpStep(str, Enum):
    """Unit of follow-up work; completed steps are never repeated."""
    STATUS_HISTORY = "status_history"
    CASE_HISTORY = "case_history"
    USER_ACTIVITY = "user_activity"
    AGENT_NOTIFICATION = "agent_notification"


class FollowUpState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Steps run in this order
STEPS_BY_KIND: dict[FollowUpKind, tuple[FollowUpStep, ...]] = {
    FollowUpKind.STATUS_CHANGED: (FollowUpStep.STATUS_HISTORY, FollowUpStep.AGENT_NOTIFICATION),
    FollowUpKind.LISTING_CREATED: (FollowUpStep.CASE_HISTORY, FollowUpStep.USER_ACTIVITY),
    FollowUpKind.LISTING_UPDATED: (FollowUpStep.CASE_HISTORY, FollowUpStep.USER_ACTIVITY),
    FollowUpKind.LISTING_DELETED: (FollowUpStep.CASE_HISTORY, FollowUpStep.USER_ACTIVITY),
}


class FollowUpTask(BaseModel):
    """Row in the listing_case_follow_ups table."""
    task_id: str = Field(default_factory=generate_follow_up_id, description="Task ID (ULID)")
    listing_case_id: int = Field(..., description="Listing case ID")
    kind: FollowUpKind
    actor_id: str = Field(..., description="User who made the change")
    payload: dict[str, Any] = Field(default_factory=dict, description="Kind-specific data")
    steps: list[FollowUpStep] = Field(default_factory=list)
    completed_steps: list[FollowUpStep] = Field(default_factory=list)
    state: FollowUpState = Field(default=FollowUpState.PENDING)
    attempts: int = Field(default=0, ge=0)
    error_message: Optional[str] = None
    created_at: Optional[str] = None
    processed_at: Optional[str] = None

    @classmethod
    def for_change(
        cls,
        kind: FollowUpKind,
        listing_case_id: int,
        actor_id: str,
        **payload: Any
    ) -> "FollowUpTask":
        """Build a pending task with the steps its kind requires."""
        return cls(
            kind=kind,
            listing_case_id=listing_case_id,
            actor_id=actor_id,
            payload=payload,
            steps=list(STEPS_BY_KIND[kind]),
        )

    @property
    def remaining_steps(self) -> list[FollowUpStep]:
        return [step for step in self.steps if step not in self.completed_steps]

    @property
    def is_finished(self) -> bool:
        return self.state != FollowUpState.PENDING

    def to_row(self) -> dict:
        return self.model_dump(mode="json", exclude={"created_at", "processed_at"})
