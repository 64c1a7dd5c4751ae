"""Append-only audit records stored in the document store."""

from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field

from src.models.listing_case import ListcaseStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangeAction(str, Enum):
    """What happened to a listing case."""
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"


class UserActivityType(str, Enum):
    """User actions recorded in the activity log."""
    LOGGED_IN = "LoggedIn"
    CREATED_LISTING = "CreatedListing"
    UPDATED_LISTING = "UpdatedListing"
    DELETED_LISTING = "DeletedListing"


class AuditRecord(BaseModel):
    """Common base; enums are stored as their values so BSON can encode them."""
    model_config = ConfigDict(use_enum_values=True)

    follow_up_id: Optional[str] = Field(
        None,
        description="Follow-up task that wrote the record (unique, used to skip replays)"
    )

    def to_document(self) -> dict:
        document = self.model_dump()
        if document.get("follow_up_id") is None:
            # Sparse unique index only ignores absent fields, not nulls
            document.pop("follow_up_id", None)
        return document


class StatusHistory(AuditRecord):
    """One accepted status transition."""
    listing_case_id: str = Field(..., description="Listing case ID (text)")
    changed_by: str = Field(..., description="Actor user ID")
    old_status: ListcaseStatus
    new_status: ListcaseStatus
    changed_at: datetime = Field(default_factory=_utcnow)


class CaseHistory(AuditRecord):
    """Creation, field update, or deletion of a listing case."""
    listing_case_id: str = Field(..., description="Listing case ID (text)")
    title: Optional[str] = Field(None, description="Title at the time of the change")
    change_action: ChangeAction
    changed_by: str = Field(..., description="Actor user ID")
    changed_at: datetime = Field(default_factory=_utcnow)


class UserActivityLog(AuditRecord):
    """Something a user did."""
    user_id: str = Field(..., description="Actor user ID")
    activity_type: UserActivityType
    listing_case_id: Optional[str] = None
    description: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
