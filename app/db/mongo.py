"""
MongoDB-backed document store.

Thin wrapper over pymongo: the store only adds identifier generation
and createdAt/updatedAt stamping, everything else is passed through.
"""

from typing import List, Optional
import logging

from pymongo import MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from app.db.store import (
    Collection,
    Document,
    DocumentStore,
    SortSpec,
    stamp_insert,
    stamp_update,
)

logger = logging.getLogger(__name__)


class MongoCollection(Collection):
    def __init__(self, collection):
        self._collection = collection
        self.name = collection.name

    def insert_one(self, doc: Document) -> Document:
        stored = stamp_insert(doc)
        self._collection.insert_one(stored)
        return stored

    def find_one(self, filter: Document, projection: Optional[Document] = None) -> Optional[Document]:
        return self._collection.find_one(filter, projection)

    def find(
        self,
        filter: Optional[Document] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
        projection: Optional[Document] = None,
    ) -> List[Document]:
        cursor = self._collection.find(filter or {}, projection)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def count(self, filter: Optional[Document] = None) -> int:
        return self._collection.count_documents(filter or {})

    def update_one(self, filter: Document, update: Document) -> Optional[Document]:
        return self._collection.find_one_and_update(
            filter,
            stamp_update(update),
            return_document=ReturnDocument.AFTER,
        )

    def update_many(self, filter: Document, update: Document) -> int:
        result = self._collection.update_many(filter, stamp_update(update))
        return result.modified_count

    def delete_one(self, filter: Document) -> bool:
        return self._collection.delete_one(filter).deleted_count == 1

    def delete_many(self, filter: Optional[Document] = None) -> int:
        return self._collection.delete_many(filter or {}).deleted_count

    def aggregate(self, pipeline: List[Document]) -> List[Document]:
        return list(self._collection.aggregate(pipeline))


class MongoStore(DocumentStore):
    """
    Store backed by a MongoDB deployment.

    The client connects lazily, so constructing the store never blocks;
    the first query (or ping) does.

    Args:
        uri: MongoDB connection string
        default_db: database used when the URI does not name one
    """

    backend = "mongo"

    def __init__(self, uri: str, default_db: str):
        self.client = MongoClient(
            uri,
            serverSelectionTimeoutMS=10000,  # give up on an unreachable cluster after 10s
            socketTimeoutMS=45000,           # close sockets idle for 45s
            tz_aware=True,
        )
        self.db = self.client.get_default_database(default=default_db)
        self._collections = {}
        logger.info(f"MongoDB store configured for database '{self.db.name}'")

    def collection(self, name: str) -> Collection:
        if name not in self._collections:
            self._collections[name] = MongoCollection(self.db[name])
        return self._collections[name]

    def ping(self) -> bool:
        try:
            self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB ping failed: {e}")
            return False

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB connection closed")
