"""Tests for the follow-up (outbox) repository."""

import pytest
from unittest.mock import patch

from src.models.follow_up import FollowUpKind, FollowUpState, FollowUpStep, FollowUpTask
from src.repositories.follow_up_repository import FOLLOW_UPS_TABLE, FollowUpRepository
from src.utils.errors import SupabaseError
from tests.utils.helpers import bind_supabase_client, make_supabase_client, make_supabase_query

SUPABASE_CLIENT = "src.repositories.follow_up_repository.SupabaseClient"


def _task() -> FollowUpTask:
    return FollowUpTask.for_change(
        FollowUpKind.STATUS_CHANGED, 1, "user123",
        title="Test Listing", previous_status="Created", new_status="Pending"
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_enqueue_inserts_row_and_returns_stored_task():
    task = _task()
    stored = {**task.to_row(), "created_at": "2024-12-09T12:00:00+00:00"}
    query = make_supabase_query([stored])
    client = make_supabase_client(query)

    with patch(SUPABASE_CLIENT) as mock_client_class:
        bind_supabase_client(mock_client_class, client)

        result = await FollowUpRepository().enqueue(task)

    client.table.assert_called_with(FOLLOW_UPS_TABLE)
    row = query.insert.call_args.args[0]
    assert row["kind"] == "status_changed"
    assert row["steps"] == ["status_history", "agent_notification"]
    assert row["state"] == "pending"
    assert result.task_id == task.task_id
    assert result.created_at == "2024-12-09T12:00:00+00:00"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_enqueue_without_returned_row_raises():
    with patch(SUPABASE_CLIENT) as mock_client_class:
        bind_supabase_client(mock_client_class, make_supabase_client(make_supabase_query([])))

        with pytest.raises(SupabaseError, match="no data returned"):
            await FollowUpRepository().enqueue(_task())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_pending_batch_orders_oldest_first():
    query = make_supabase_query([_task().to_row()])

    with patch(SUPABASE_CLIENT) as mock_client_class:
        bind_supabase_client(mock_client_class, make_supabase_client(query))

        tasks = await FollowUpRepository().get_pending_batch(3)

    assert len(tasks) == 1
    query.eq.assert_called_with("state", "pending")
    query.order.assert_called_with("created_at")
    query.limit.assert_called_with(3)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_for_listing_case_with_state_filter():
    query = make_supabase_query([])

    with patch(SUPABASE_CLIENT) as mock_client_class:
        bind_supabase_client(mock_client_class, make_supabase_client(query))

        await FollowUpRepository().get_for_listing_case(1, state=FollowUpState.PENDING)

    query.eq.assert_any_call("listing_case_id", 1)
    query.eq.assert_any_call("state", "pending")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mark_step_completed_stores_step_values():
    query = make_supabase_query([])

    with patch(SUPABASE_CLIENT) as mock_client_class:
        bind_supabase_client(mock_client_class, make_supabase_client(query))

        await FollowUpRepository().mark_step_completed("01TASK", [FollowUpStep.STATUS_HISTORY])

    query.update.assert_called_once_with({"completed_steps": ["status_history"]})
    query.eq.assert_called_with("task_id", "01TASK")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_record_failure_final_attempt_sets_processed_at(freeze_time_fixture):
    query = make_supabase_query([])

    with patch(SUPABASE_CLIENT) as mock_client_class:
        bind_supabase_client(mock_client_class, make_supabase_client(query))

        await FollowUpRepository().record_failure("01TASK", 5, "SES unavailable", FollowUpState.FAILED)

    updates = query.update.call_args.args[0]
    assert updates["state"] == "failed"
    assert updates["attempts"] == 5
    assert updates["processed_at"] == "2024-12-09T12:00:00+00:00"
