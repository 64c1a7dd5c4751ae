"""Follow-up outbox processor endpoint (can be called via Vercel cron)."""

import json
import asyncio
from src.services.follow_up_dispatcher import get_follow_up_dispatcher
from src.services.mongo_client import MongoDbContext, close_mongo_client
from src.services.supabase_client import close_supabase_client
from src.utils.logging import correlation_context, setup_logging

logger = setup_logging()


async def _process(max_tasks: int) -> int:
    try:
        await MongoDbContext().ensure_indexes()
        return await get_follow_up_dispatcher().poll_and_dispatch_once(max_tasks)
    finally:
        # Motor clients are bound to the event loop that first used them
        close_mongo_client()
        await close_supabase_client()


def handler(request):
    """
    Resume pending listing case follow-ups.

    Can be called manually or via Vercel cron job.
    """
    try:
        query_params = request.get("query", {}) or {}
        max_tasks = int(query_params.get("max_tasks", "10"))

        with correlation_context() as correlation_id:
            completed = asyncio.run(_process(max_tasks))

        return {
            "statusCode": 200,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({
                "ok": True,
                "completed": completed,
                "max_tasks": max_tasks,
                "correlation_id": correlation_id
            })
        }

    except Exception as e:
        logger.error(f"Error processing follow-up outbox: {e}", exc_info=True)
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"error": str(e)})
        }
