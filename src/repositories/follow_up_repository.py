"""Follow-up (outbox) table operations."""

from datetime import datetime, timezone
from typing import Optional

from src.models.follow_up import FollowUpState, FollowUpStep, FollowUpTask
from src.services.supabase_client import SupabaseClient, first_row
from src.utils.errors import SupabaseError

FOLLOW_UPS_TABLE = "listing_case_follow_ups"


class FollowUpRepository:
    """Durable record of the audit and notification work owed per listing case."""

    async def enqueue(self, task: FollowUpTask) -> FollowUpTask:
        """Insert a pending follow-up and return the stored row."""
        async with SupabaseClient() as client:
            try:
                result = client.table(FOLLOW_UPS_TABLE).insert(task.to_row()).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to enqueue follow-up: {e}")

        row = first_row(result)
        if row is None:
            raise SupabaseError("Failed to enqueue follow-up: no data returned")
        return FollowUpTask.model_validate(row)

    async def get_pending_batch(self, batch_size: int = 10) -> list[FollowUpTask]:
        """Oldest pending follow-ups first."""
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(FOLLOW_UPS_TABLE)
                    .select("*")
                    .eq("state", FollowUpState.PENDING.value)
                    .order("created_at")
                    .limit(batch_size)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to get pending follow-ups: {e}")

        return [FollowUpTask.model_validate(row) for row in (result.data or [])]

    async def get_for_listing_case(
        self,
        listing_case_id: int,
        state: Optional[FollowUpState] = None
    ) -> list[FollowUpTask]:
        """All follow-ups of a listing case, optionally filtered by state."""
        async with SupabaseClient() as client:
            try:
                query = client.table(FOLLOW_UPS_TABLE).select("*").eq("listing_case_id", listing_case_id)
                if state is not None:
                    query = query.eq("state", state.value)
                result = query.order("created_at").execute()
            except Exception as e:
                raise SupabaseError(f"Failed to get follow-ups for listing case {listing_case_id}: {e}")

        return [FollowUpTask.model_validate(row) for row in (result.data or [])]

    async def mark_step_completed(self, task_id: str, completed_steps: list[FollowUpStep]) -> None:
        await self._update(task_id, {
            "completed_steps": [FollowUpStep(step).value for step in completed_steps],
        })

    async def mark_completed(self, task_id: str) -> None:
        await self._update(task_id, {
            "state": FollowUpState.COMPLETED.value,
            "error_message": None,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        })

    async def record_failure(
        self,
        task_id: str,
        attempts: int,
        error_message: str,
        state: FollowUpState = FollowUpState.PENDING
    ) -> None:
        """Store the attempt count and error; state stays pending unless attempts are exhausted."""
        updates = {
            "attempts": attempts,
            "error_message": error_message,
            "state": state.value,
        }
        if state == FollowUpState.FAILED:
            updates["processed_at"] = datetime.now(timezone.utc).isoformat()
        await self._update(task_id, updates)

    async def _update(self, task_id: str, updates: dict) -> None:
        async with SupabaseClient() as client:
            try:
                client.table(FOLLOW_UPS_TABLE).update(updates).eq("task_id", task_id).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to update follow-up {task_id}: {e}")
