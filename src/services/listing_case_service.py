"""Listing case service - authorization, status workflow, persistence, audit and notification."""

from typing import Iterable, Optional

from src.models.audit import StatusHistory
from src.models.follow_up import FollowUpKind, FollowUpState, FollowUpTask
from src.models.listing_case import (
    ListcaseStatus,
    ListingCase,
    ListingCaseCreateRequest,
    ListingCaseUpdateRequest,
    ListingCaseUpdateResponse,
)
from src.models.roles import Permission, UserRole, has_permission, parse_role
from src.repositories.follow_up_repository import FollowUpRepository
from src.repositories.listing_case_repository import ListingCaseRepository
from src.repositories.status_history_repository import StatusHistoryRepository
from src.services.email_sender import EmailSender
from src.services.follow_up_dispatcher import FollowUpDispatcher
from src.services.status_workflow import validate_transition
from src.utils.errors import InvalidOperationError, KeyNotFoundError, NotFoundError, UnauthorizedError
from src.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

LISTING_NOT_FOUND = "Listing not found"
USER_ID_NOT_FOUND = "UserId not found"
AGENT_CANNOT_CHANGE_STATUS = "Agents cannot change the status."


def _require_actor(actor_id: Optional[str]) -> str:
    if not actor_id:
        raise InvalidOperationError(USER_ID_NOT_FOUND)
    return actor_id


def _require_permission(role: "str | UserRole", permission: Permission, action: str) -> UserRole:
    user_role = parse_role(role)
    if not has_permission(user_role, permission):
        raise UnauthorizedError(f"Role '{user_role.value}' cannot {action}.")
    return user_role


class ListingCaseService:
    """
    Orchestrates listing case operations.

    Every change is persisted first, then the audit and notification work is
    written as a follow-up task and dispatched immediately. If dispatch fails
    the change stands and the task stays pending for the poller.
    """

    def __init__(
        self,
        repository: ListingCaseRepository,
        status_history_repository: StatusHistoryRepository,
        follow_ups: FollowUpRepository,
        email_sender: EmailSender,
        dispatcher: Optional[FollowUpDispatcher] = None,
        frontend_url: Optional[str] = None
    ):
        self.repository = repository
        self.status_history_repository = status_history_repository
        self.follow_ups = follow_ups
        self.dispatcher = dispatcher or FollowUpDispatcher(
            repository,
            follow_ups,
            email_sender,
            frontend_url=frontend_url,
        )

    async def get_listing_case(self, case_id: int) -> ListingCase:
        listing = await self.repository.get_listing_case_by_id(case_id)
        if listing is None:
            raise NotFoundError(LISTING_NOT_FOUND)
        return listing

    @timed("listing_case.update_status")
    async def update_status(
        self,
        case_id: int,
        new_status: ListcaseStatus,
        actor_id: str,
        actor_role: "str | UserRole"
    ) -> ListcaseStatus:
        """
        Move a listing case to `new_status`.

        Raises NotFoundError for a missing case, UnauthorizedError unless the
        role may change status, and InvalidStatusTransitionError when the
        transition is not in the table. On success one StatusHistory record is
        written and every associated agent is emailed.
        """
        listing = await self.get_listing_case(case_id)

        role = parse_role(actor_role)
        if role == UserRole.AGENT:
            raise UnauthorizedError(AGENT_CANNOT_CHANGE_STATUS)
        _require_permission(role, Permission.CHANGE_STATUS, "change the status")

        new_status = ListcaseStatus(new_status)
        previous_status = listing.listcase_status
        validate_transition(previous_status, new_status)

        updated_status = await self.repository.update_status(listing, new_status)

        logger.info(
            "Listing case status changed",
            listing_case_id=case_id,
            previous_status=previous_status.value,
            new_status=updated_status.value,
            actor_id=mask_user_id(actor_id),
            actor_role=role.value
        )

        await self._follow_up(
            FollowUpKind.STATUS_CHANGED,
            listing,
            actor_id,
            previous_status=previous_status.value,
            new_status=updated_status.value,
        )
        return updated_status

    @timed("listing_case.update")
    async def update_listing_case(
        self,
        case_id: int,
        update_request: ListingCaseUpdateRequest,
        actor_id: Optional[str]
    ) -> ListingCaseUpdateResponse:
        """Apply the fields present in `update_request` to a listing case."""
        actor_id = _require_actor(actor_id)

        listing = await self.repository.get_listing_case_by_id(case_id)
        if listing is None:
            raise KeyNotFoundError(f"ListingCase with id {case_id} not found")

        changes = update_request.changes()
        for field, value in changes.items():
            setattr(listing, field, value)

        updated = await self.repository.update_listing_case(case_id, listing)

        logger.info(
            "Listing case updated",
            listing_case_id=case_id,
            fields=sorted(changes),
            actor_id=mask_user_id(actor_id)
        )

        await self._follow_up(FollowUpKind.LISTING_UPDATED, updated, actor_id, fields=sorted(changes))
        return ListingCaseUpdateResponse.model_validate(updated.model_dump())

    @timed("listing_case.create")
    async def create_listing_case(
        self,
        request: ListingCaseCreateRequest,
        actor_id: Optional[str],
        actor_role: "str | UserRole"
    ) -> ListingCase:
        """Create a listing case owned by the actor, starting in Created."""
        actor_id = _require_actor(actor_id)
        _require_permission(actor_role, Permission.CREATE_LISTING, "create listings")

        listing_data = request.model_dump(mode="json")
        listing_data.update({
            "user_id": actor_id,
            "listcase_status": ListcaseStatus.CREATED.value,
            "is_deleted": False,
        })
        listing = await self.repository.create_listing_case(listing_data)

        logger.info("Listing case created", listing_case_id=listing.id, actor_id=mask_user_id(actor_id))

        await self._follow_up(FollowUpKind.LISTING_CREATED, listing, actor_id)
        return listing

    @timed("listing_case.delete")
    async def delete_listing_case(
        self,
        case_id: int,
        actor_id: Optional[str],
        actor_role: "str | UserRole"
    ) -> None:
        """Soft-delete a listing case."""
        actor_id = _require_actor(actor_id)
        _require_permission(actor_role, Permission.DELETE_LISTING, "delete listings")

        listing = await self.get_listing_case(case_id)
        await self.repository.soft_delete_listing_case(listing)

        logger.info("Listing case deleted", listing_case_id=case_id, actor_id=mask_user_id(actor_id))

        await self._follow_up(FollowUpKind.LISTING_DELETED, listing, actor_id)

    async def get_status_history(
        self,
        case_ids: Iterable["str | int"],
        actor_role: "str | UserRole"
    ) -> list[StatusHistory]:
        _require_permission(actor_role, Permission.VIEW_HISTORY, "view status history")
        return await self.status_history_repository.get_by_listing_case_ids(case_ids)

    async def get_pending_follow_ups(self, case_id: int) -> list[FollowUpTask]:
        """Audit/notification work still owed for a listing case."""
        return await self.follow_ups.get_for_listing_case(case_id, state=FollowUpState.PENDING)

    async def _follow_up(self, kind: FollowUpKind, listing: ListingCase, actor_id: str, **payload) -> FollowUpTask:
        task = FollowUpTask.for_change(kind, listing.id, actor_id, title=listing.title, **payload)
        task = await self.follow_ups.enqueue(task)
        return await self.dispatcher.dispatch(task, listing=listing)
