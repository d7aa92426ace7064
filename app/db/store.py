"""
Document store abstraction.

The services talk to a DocumentStore, never to a driver directly.
Two implementations exist and one is picked at startup:

- MongoStore (app.db.mongo)   - backed by a real MongoDB deployment
- MemoryStore (app.db.memory) - process-lifetime dictionaries, dev mode only

Both accept the same filter, sort, update and aggregation documents
(MongoDB query language), so the services are written once.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId

# Collection names
PROPERTIES = "properties"
LEADS = "leads"
APPOINTMENTS = "appointments"
CONVERSATIONS = "conversations"
MESSAGES = "messages"
CONTACTS = "contactsubmissions"
USERS = "users"

ALL_COLLECTIONS = (PROPERTIES, LEADS, APPOINTMENTS, CONVERSATIONS, MESSAGES, CONTACTS, USERS)

Document = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]


def new_id() -> str:
    """Generate a new document identifier (24 hex chars, time-ordered)."""
    return str(ObjectId())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stamp_insert(doc: Document) -> Document:
    """
    Give a new document its identifier and timestamps.

    An _id already present is kept (the caller needed it up front,
    e.g. to build a slug).
    """
    now = utcnow()
    stamped = dict(doc)
    stamped.setdefault("_id", new_id())
    stamped.setdefault("createdAt", now)
    stamped["updatedAt"] = now
    return stamped


def stamp_update(update: Document) -> Document:
    """Add updatedAt to the $set part of an update document."""
    stamped = dict(update)
    stamped["$set"] = {**update.get("$set", {}), "updatedAt": utcnow()}
    return stamped


class Collection(ABC):
    """One named collection of documents."""

    name: str

    @abstractmethod
    def insert_one(self, doc: Document) -> Document:
        """Insert and return the stored document (with _id and timestamps)."""

    @abstractmethod
    def find_one(self, filter: Document, projection: Optional[Document] = None) -> Optional[Document]:
        ...

    @abstractmethod
    def find(
        self,
        filter: Optional[Document] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
        projection: Optional[Document] = None,
    ) -> List[Document]:
        """Matching documents; limit=0 means no limit."""

    @abstractmethod
    def count(self, filter: Optional[Document] = None) -> int:
        ...

    @abstractmethod
    def update_one(self, filter: Document, update: Document) -> Optional[Document]:
        """Apply an update document to the first match and return it after the update."""

    @abstractmethod
    def update_many(self, filter: Document, update: Document) -> int:
        """Apply an update document to every match; returns the number modified."""

    @abstractmethod
    def delete_one(self, filter: Document) -> bool:
        ...

    @abstractmethod
    def delete_many(self, filter: Optional[Document] = None) -> int:
        ...

    @abstractmethod
    def aggregate(self, pipeline: List[Document]) -> List[Document]:
        ...

    def get(self, doc_id: str) -> Optional[Document]:
        return self.find_one({"_id": doc_id})


class DocumentStore(ABC):
    """A set of named collections plus connection lifecycle."""

    backend: str

    @abstractmethod
    def collection(self, name: str) -> Collection:
        ...

    @abstractmethod
    def ping(self) -> bool:
        """True when the store can serve requests."""

    def close(self) -> None:
        pass
