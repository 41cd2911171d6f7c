"""Abnormality signal: no sales recorded within the lookback window."""

from datetime import timedelta

from pymongo.errors import PyMongoError

from .._storage.mongo import mongo_collection
from .._utils import logger, utc_now
from ..errors import DetectorError
from .base import BaseSignalDetector


class ActivityAbsenceDetector(BaseSignalDetector):
    """Abnormal when the sales collection has no document newer than the lookback."""

    def __init__(
        self,
        uri: str,
        collection: str = "sales",
        lookback: timedelta = timedelta(minutes=5),
        server_selection_timeout_ms: int = 5000,
    ):
        self.uri = uri
        self.collection = collection
        self.lookback = lookback
        self.server_selection_timeout_ms = server_selection_timeout_ms

    @property
    def reason(self) -> str:
        minutes = self.lookback.total_seconds() / 60
        return f"No sales were recorded in the last {minutes:g} minutes."

    async def evaluate(self) -> bool:
        since = utc_now() - self.lookback
        try:
            async with mongo_collection(
                self.uri, self.collection, self.server_selection_timeout_ms
            ) as sales:
                count = await sales.count_documents({"createdAt": {"$gte": since}})
        except PyMongoError as e:
            raise DetectorError(f"Could not count recent sales in '{self.collection}': {e}") from e

        logger.debug(f"{count} sales since {since.isoformat()}")
        return count == 0
