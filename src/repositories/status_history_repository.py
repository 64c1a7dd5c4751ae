"""Status history queries against the document store."""

from typing import Iterable, Optional
from pymongo.errors import PyMongoError

from src.models.audit import StatusHistory
from src.services.mongo_client import MongoDbContext
from src.utils.errors import DocumentStoreError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class StatusHistoryRepository:

    def __init__(self, mongo_context: Optional[MongoDbContext] = None):
        self.mongo_context = mongo_context or MongoDbContext()

    async def get_by_listing_case_ids(self, listing_case_ids: "str | int | Iterable[str | int]") -> list[StatusHistory]:
        """
        Get every status history record for the given listing cases.

        Records come back in store order; ids may be given as int or str,
        singly or as an iterable.
        """
        if isinstance(listing_case_ids, (str, int)):
            listing_case_ids = [listing_case_ids]
        ids = list(dict.fromkeys(str(case_id) for case_id in listing_case_ids))
        if not ids:
            return []

        try:
            cursor = self.mongo_context.status_histories.find({"listing_case_id": {"$in": ids}})
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to query status history: {e}")

        logger.debug(
            "Fetched status history",
            listing_case_count=len(ids),
            record_count=len(documents)
        )
        return [StatusHistory.model_validate(document) for document in documents]
