"""Per-operation MongoDB access shared by the record store and the detectors."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection


@asynccontextmanager
async def mongo_collection(
    uri: str,
    collection: str,
    server_selection_timeout_ms: int = 5000,
) -> AsyncIterator[AsyncCollection]:
    """Open a client, yield one collection of the URI's default database, close.

    No connection outlives the operation that needed it.
    """
    client = AsyncMongoClient(
        uri,
        serverSelectionTimeoutMS=server_selection_timeout_ms,
        tz_aware=True,
    )
    try:
        yield client.get_default_database()[collection]
    finally:
        await client.close()
