"""Listing case models and their relations to agents and users."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from src.models.roles import UserRole


class ListcaseStatus(str, Enum):
    """Workflow state of a listing case."""
    CREATED = "Created"
    PENDING = "Pending"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class User(BaseModel):
    """Platform user; owner of listing cases and email contact for agents."""
    id: str = Field(..., description="User ID (text)")
    email: str = Field(..., description="Email address")
    role: Optional[UserRole] = Field(None, description="Role: Admin, User, Agent")


class Agent(BaseModel):
    """Agent associated with one or more listing cases."""
    id: str = Field(..., description="Agent ID (text)")
    user_id: Optional[str] = Field(None, description="User ID (text FK)")
    user: Optional[User] = None


class AgentListingCase(BaseModel):
    """Join row linking one listing case to one agent."""
    listing_case_id: int
    agent_id: str
    agent: Optional[Agent] = None


class ListingCase(BaseModel):
    """A property listing being processed through the workflow."""
    id: int = Field(..., description="Listing case ID")
    title: str = Field(..., description="Listing title")
    description: Optional[str] = None
    postcode: Optional[int] = Field(None, description="Property postcode")
    price: Optional[float] = Field(None, ge=0, description="Asking price")
    user_id: Optional[str] = Field(None, description="Owning user ID (text FK)")
    user: Optional[User] = None
    listcase_status: ListcaseStatus = Field(default=ListcaseStatus.CREATED)
    agent_listing_cases: list[AgentListingCase] = Field(default_factory=list)
    is_deleted: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_row(self) -> dict:
        """Columns written to the listing_cases table."""
        return self.model_dump(
            mode="json",
            include={"title", "description", "postcode", "price", "user_id", "listcase_status", "is_deleted"},
        )


class ListingCaseCreateRequest(BaseModel):
    """Fields accepted when creating a listing case."""
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    postcode: Optional[int] = None
    price: Optional[float] = Field(None, ge=0)


class ListingCaseUpdateRequest(BaseModel):
    """Partial update; only fields that are not None are applied."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    postcode: Optional[int] = None
    price: Optional[float] = Field(None, ge=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class ListingCaseUpdateResponse(BaseModel):
    """View of a listing case after an update."""
    id: int
    title: str
    description: Optional[str] = None
    postcode: Optional[int] = None
    price: Optional[float] = None
    listcase_status: ListcaseStatus
    updated_at: Optional[str] = None
