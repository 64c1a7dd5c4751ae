"""Follow-up dispatcher - run the audit and notification work owed after a listing case change."""

from typing import Optional

from src.models.audit import ChangeAction, UserActivityType
from src.models.follow_up import FollowUpKind, FollowUpState, FollowUpStep, FollowUpTask
from src.models.listing_case import ListcaseStatus, ListingCase
from src.repositories.follow_up_repository import FollowUpRepository
from src.repositories.listing_case_repository import ListingCaseRepository
from src.services.email_sender import EmailSender
from src.services.notifications import notify_agents_of_status_change
from src.utils.config import AppConfig
from src.utils.logging import get_correlation_id, get_structured_logger, log_timing, mask_user_id

logger = get_structured_logger(__name__)

CHANGE_ACTION_BY_KIND: dict[FollowUpKind, ChangeAction] = {
    FollowUpKind.LISTING_CREATED: ChangeAction.CREATED,
    FollowUpKind.LISTING_UPDATED: ChangeAction.UPDATED,
    FollowUpKind.LISTING_DELETED: ChangeAction.DELETED,
}

ACTIVITY_BY_KIND: dict[FollowUpKind, UserActivityType] = {
    FollowUpKind.LISTING_CREATED: UserActivityType.CREATED_LISTING,
    FollowUpKind.LISTING_UPDATED: UserActivityType.UPDATED_LISTING,
    FollowUpKind.LISTING_DELETED: UserActivityType.DELETED_LISTING,
}


class FollowUpDispatcher:
    """
    Executes follow-up steps in order and records progress after each one.

    A step that raises leaves the task pending with the error recorded, so the
    poller can resume it from the first incomplete step. After
    `max_attempts` failures the task is marked failed and left for inspection.
    """

    def __init__(
        self,
        repository: ListingCaseRepository,
        follow_ups: FollowUpRepository,
        email_sender: EmailSender,
        frontend_url: Optional[str] = None,
        max_attempts: Optional[int] = None
    ):
        self.repository = repository
        self.follow_ups = follow_ups
        self.email_sender = email_sender
        self._frontend_url = frontend_url
        self.max_attempts = max_attempts or AppConfig.follow_up_max_attempts()

    @property
    def frontend_url(self) -> str:
        return self._frontend_url or AppConfig.frontend_url()

    async def dispatch(self, task: FollowUpTask, listing: Optional[ListingCase] = None) -> FollowUpTask:
        """Run the remaining steps of a task. Errors are recorded on the task, not raised."""
        if task.is_finished:
            return task

        if listing is None:
            listing = ListingCase(id=task.listing_case_id, title=task.payload.get("title", ""))

        try:
            with log_timing("follow_up_dispatch", logger=logger, task_id=task.task_id, kind=task.kind.value):
                for step in task.remaining_steps:
                    await self._run_step(step, task, listing)
                    task.completed_steps.append(step)
                    await self.follow_ups.mark_step_completed(task.task_id, task.completed_steps)
        except Exception as e:
            task.attempts += 1
            task.error_message = str(e)
            if task.attempts >= self.max_attempts:
                task.state = FollowUpState.FAILED
            logger.error(
                "Follow-up step failed",
                correlation_id=get_correlation_id(),
                task_id=task.task_id,
                listing_case_id=task.listing_case_id,
                kind=task.kind.value,
                attempts=task.attempts,
                state=task.state.value,
                error=str(e),
                exc_info=True
            )
            try:
                await self.follow_ups.record_failure(task.task_id, task.attempts, task.error_message, task.state)
            except Exception as record_error:
                # Stored row still says pending with the previous attempt count
                task.state = FollowUpState.PENDING
                self._log_outbox_write_failure("record_failure", task, record_error)
            return task

        try:
            await self.follow_ups.mark_completed(task.task_id)
        except Exception as e:
            task.error_message = str(e)
            self._log_outbox_write_failure("mark_completed", task, e)
            return task

        task.state = FollowUpState.COMPLETED
        task.error_message = None
        logger.info(
            "Follow-up completed",
            task_id=task.task_id,
            listing_case_id=task.listing_case_id,
            kind=task.kind.value,
            actor_id=mask_user_id(task.actor_id)
        )
        return task

    def _log_outbox_write_failure(self, operation: str, task: FollowUpTask, error: Exception) -> None:
        logger.error(
            "Failed to store follow-up progress, task left pending",
            correlation_id=get_correlation_id(),
            operation=operation,
            task_id=task.task_id,
            listing_case_id=task.listing_case_id,
            kind=task.kind.value,
            error=str(error),
            exc_info=True
        )

    async def _run_step(self, step: FollowUpStep, task: FollowUpTask, listing: ListingCase) -> None:
        if step == FollowUpStep.STATUS_HISTORY:
            await self.repository.log_status_history(
                None,
                listing,
                task.actor_id,
                ListcaseStatus(task.payload["previous_status"]),
                ListcaseStatus(task.payload["new_status"]),
                follow_up_id=task.task_id
            )
        elif step == FollowUpStep.AGENT_NOTIFICATION:
            agents = await self.repository.get_agents_of_listing_case(listing.id)
            await notify_agents_of_status_change(
                self.email_sender,
                agents,
                listing,
                ListcaseStatus(task.payload["previous_status"]),
                ListcaseStatus(task.payload["new_status"]),
                self.frontend_url
            )
        elif step == FollowUpStep.CASE_HISTORY:
            await self.repository.log_case_history(
                None,
                listing,
                task.actor_id,
                CHANGE_ACTION_BY_KIND[task.kind],
                follow_up_id=task.task_id
            )
        elif step == FollowUpStep.USER_ACTIVITY:
            await self.repository.log_user_activity(
                None,
                listing,
                task.actor_id,
                ACTIVITY_BY_KIND[task.kind],
                follow_up_id=task.task_id
            )
        else:
            raise ValueError(f"Unknown follow-up step: {step}")

    async def poll_and_dispatch_once(self, max_tasks: Optional[int] = None) -> int:
        """
        Dispatch a batch of pending follow-ups.

        Returns the number of tasks completed.
        """
        correlation_id = get_correlation_id()
        batch_size = max_tasks or AppConfig.follow_up_batch_size()

        batch = await self.follow_ups.get_pending_batch(batch_size)
        if not batch:
            logger.debug("No pending follow-ups", correlation_id=correlation_id)
            return 0

        logger.info(
            "Retrieved pending follow-ups",
            correlation_id=correlation_id,
            batch_size=len(batch),
            max_tasks=batch_size
        )

        completed = 0
        for task in batch:
            result = await self.dispatch(task)
            if result.state == FollowUpState.COMPLETED:
                completed += 1

        logger.info(
            "Follow-up poll completed",
            correlation_id=correlation_id,
            batch_size=len(batch),
            completed=completed,
            remaining=len(batch) - completed
        )
        return completed


# Global dispatcher instance
_follow_up_dispatcher: Optional[FollowUpDispatcher] = None


def get_follow_up_dispatcher() -> FollowUpDispatcher:
    """Get or create the global dispatcher wired to the real stores."""
    global _follow_up_dispatcher
    if _follow_up_dispatcher is None:
        _follow_up_dispatcher = FollowUpDispatcher(
            ListingCaseRepository(),
            FollowUpRepository(),
            EmailSender(),
        )
    return _follow_up_dispatcher
