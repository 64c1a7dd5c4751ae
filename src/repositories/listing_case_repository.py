"""Listing case repository: relational reads/writes (Supabase) and audit appends (MongoDB)."""

from datetime import datetime, timezone
from typing import Any, Optional
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.models.audit import (
    AuditRecord,
    CaseHistory,
    ChangeAction,
    StatusHistory,
    UserActivityLog,
    UserActivityType,
)
from src.models.listing_case import Agent, ListcaseStatus, ListingCase
from src.services.mongo_client import MongoDbContext
from src.services.supabase_client import SupabaseClient, first_row
from src.utils.errors import DocumentStoreError, SupabaseError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

LISTING_CASES_TABLE = "listing_cases"
AGENT_LISTING_CASES_TABLE = "agent_listing_cases"

# Embeds the owning user row under "user"
LISTING_CASE_SELECT = "*, user:users(*)"
AGENT_SELECT = "agent:agents(*, user:users(*))"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ListingCaseRepository:
    """Mediates between the listing case service and both stores."""

    def __init__(self, mongo_context: Optional[MongoDbContext] = None):
        self.mongo_context = mongo_context or MongoDbContext()

    # Relational store

    async def get_listing_case_by_id(self, case_id: int) -> Optional[ListingCase]:
        """Get a non-deleted listing case with its owner, or None."""
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(LISTING_CASES_TABLE)
                    .select(LISTING_CASE_SELECT)
                    .eq("id", case_id)
                    .eq("is_deleted", False)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to get listing case {case_id}: {e}")

        row = first_row(result)
        return ListingCase.model_validate(row) if row else None

    async def create_listing_case(self, listing_data: dict[str, Any]) -> ListingCase:
        """Insert a listing case row and return the stored entity."""
        async with SupabaseClient() as client:
            try:
                result = client.table(LISTING_CASES_TABLE).insert(listing_data).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to create listing case: {e}")

        row = first_row(result)
        if row is None:
            raise SupabaseError("Failed to create listing case: no data returned")
        return ListingCase.model_validate(row)

    async def update_status(self, listing: ListingCase, new_status: ListcaseStatus) -> ListcaseStatus:
        """Persist a new status and reflect it on the given entity."""
        updates = {"listcase_status": new_status.value, "updated_at": _now()}
        row = await self._update_row(listing.id, updates)

        listing.listcase_status = ListcaseStatus(row.get("listcase_status", new_status.value))
        listing.updated_at = row.get("updated_at", updates["updated_at"])
        return listing.listcase_status

    async def update_listing_case(self, case_id: int, listing: ListingCase) -> ListingCase:
        """Persist the editable fields of `listing` and return it."""
        updates = listing.to_row()
        updates["updated_at"] = _now()
        row = await self._update_row(case_id, updates)

        listing.updated_at = row.get("updated_at", updates["updated_at"])
        return listing

    async def soft_delete_listing_case(self, listing: ListingCase) -> ListingCase:
        """Flag a listing case as deleted; it disappears from fetches."""
        row = await self._update_row(listing.id, {"is_deleted": True, "updated_at": _now()})

        listing.is_deleted = True
        listing.updated_at = row.get("updated_at")
        return listing

    async def get_agents_of_listing_case(self, case_id: int) -> list[Agent]:
        """Get all agents associated with a listing case, with their users."""
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(AGENT_LISTING_CASES_TABLE)
                    .select(f"listing_case_id, agent_id, {AGENT_SELECT}")
                    .eq("listing_case_id", case_id)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to get agents of listing case {case_id}: {e}")

        return [
            Agent.model_validate(row["agent"])
            for row in (result.data or [])
            if row.get("agent")
        ]

    async def _update_row(self, case_id: int, updates: dict[str, Any]) -> dict:
        async with SupabaseClient() as client:
            try:
                result = client.table(LISTING_CASES_TABLE).update(updates).eq("id", case_id).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to update listing case {case_id}: {e}")

        row = first_row(result)
        if row is None:
            raise SupabaseError(f"Failed to update listing case: {case_id}")
        return row

    # Document store

    async def log_status_history(
        self,
        session,
        listing: ListingCase,
        actor_id: str,
        old_status: ListcaseStatus,
        new_status: ListcaseStatus,
        follow_up_id: Optional[str] = None
    ) -> bool:
        """Append one StatusHistory record. Returns False when the follow-up already wrote it."""
        record = StatusHistory(
            listing_case_id=str(listing.id),
            changed_by=actor_id,
            old_status=old_status,
            new_status=new_status,
            follow_up_id=follow_up_id,
        )
        return await self._append(self.mongo_context.status_histories, record, session, listing.id)

    async def log_case_history(
        self,
        session,
        listing: ListingCase,
        actor_id: str,
        change_action: ChangeAction,
        follow_up_id: Optional[str] = None
    ) -> bool:
        """Append one CaseHistory record."""
        record = CaseHistory(
            listing_case_id=str(listing.id),
            title=listing.title,
            change_action=change_action,
            changed_by=actor_id,
            follow_up_id=follow_up_id,
        )
        return await self._append(self.mongo_context.case_histories, record, session, listing.id)

    async def log_user_activity(
        self,
        session,
        listing: ListingCase,
        actor_id: str,
        activity_type: UserActivityType,
        follow_up_id: Optional[str] = None
    ) -> bool:
        """Append one UserActivityLog record."""
        record = UserActivityLog(
            user_id=actor_id,
            activity_type=activity_type,
            listing_case_id=str(listing.id),
            description=f"{UserActivityType(activity_type).value} on listing case {listing.id}",
            follow_up_id=follow_up_id,
        )
        return await self._append(self.mongo_context.user_activity_logs, record, session, listing.id)

    async def _append(self, collection, record: AuditRecord, session, case_id: int) -> bool:
        try:
            await collection.insert_one(record.to_document(), session=session)
        except DuplicateKeyError:
            logger.info(
                "Audit record already written, skipping",
                record_type=type(record).__name__,
                listing_case_id=case_id,
                follow_up_id=record.follow_up_id
            )
            return False
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to write {type(record).__name__}: {e}")

        logger.debug(
            "Audit record written",
            record_type=type(record).__name__,
            listing_case_id=case_id,
            actor_id=mask_user_id(getattr(record, "changed_by", None) or getattr(record, "user_id", ""))
        )
        return True
