import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import pymongo
from motor.motor_asyncio import AsyncIOMotorClient

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Key/value storage for session-scoped documents.

    Documents are grouped by namespace, e.g. ``analysis``, ``concepts``,
    ``pathway`` or ``assessment``.
    """

    async def init_indexes(self) -> None:
        """Prepare the backing store, if it needs it."""

    @abstractmethod
    async def get(self, namespace: str, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def put(self, namespace: str, key: str, value: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, namespace: str, key: str) -> None:
        ...

    async def close(self) -> None:
        pass


class InMemorySessionStore(SessionStore):
    def __init__(self):
        self._documents: Dict[Tuple[str, str], Dict[str, Any]] = {}

    async def get(self, namespace: str, key: str) -> Optional[Dict[str, Any]]:
        return self._documents.get((namespace, key))

    async def put(self, namespace: str, key: str, value: Dict[str, Any]) -> None:
        self._documents[(namespace, key)] = value

    async def delete(self, namespace: str, key: str) -> None:
        self._documents.pop((namespace, key), None)


class MongoSessionStore(SessionStore):
    def __init__(self, mongo_uri: str, db_name: str = "adaptive_learning"):
        self.client = AsyncIOMotorClient(mongo_uri)
        self.db = self.client[db_name]

    async def init_indexes(self) -> None:
        await self.db.sessions.create_index(
            [("namespace", pymongo.ASCENDING), ("key", pymongo.ASCENDING)],
            unique=True,
        )
        await self.db.sessions.create_index([("updated_at", pymongo.DESCENDING)])

    async def get(self, namespace: str, key: str) -> Optional[Dict[str, Any]]:
        doc = await self.db.sessions.find_one({"namespace": namespace, "key": key})
        return doc["value"] if doc else None

    async def put(self, namespace: str, key: str, value: Dict[str, Any]) -> None:
        try:
            await self.db.sessions.update_one(
                {"namespace": namespace, "key": key},
                {"$set": {"value": value, "updated_at": datetime.now()}},
                upsert=True,
            )
        except Exception as e:
            logger.error(f"Error storing {namespace}/{key}: {str(e)}")
            raise

    async def delete(self, namespace: str, key: str) -> None:
        await self.db.sessions.delete_one({"namespace": namespace, "key": key})

    async def close(self) -> None:
        self.client.close()


def create_session_store(
    mongo_uri: Optional[str], db_name: str = "adaptive_learning"
) -> SessionStore:
    if mongo_uri:
        logger.info("Using MongoDB session store")
        return MongoSessionStore(mongo_uri, db_name)
    logger.info("Using in-memory session store")
    return InMemorySessionStore()
