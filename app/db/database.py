"""
Store selection and the request dependency that hands it out.

The concrete store is chosen once at startup (STORE_BACKEND) and kept on
app.state; endpoints receive it through get_db().
"""

from fastapi import Request
from app.core.config import Settings
from app.db.store import DocumentStore
import logging

logger = logging.getLogger(__name__)


def create_store(config: Settings) -> DocumentStore:
    """
    Build the document store named by the configuration.

    Args:
        config: application settings

    Returns:
        DocumentStore: MongoStore for "mongo", MemoryStore for "memory"

    Raises:
        ValueError: for an unknown backend name
    """
    backend = config.store_backend.lower()

    if backend == "memory":
        from app.db.memory import MemoryStore
        logger.info("Store backend: in-memory (development mode, no durability)")
        return MemoryStore()

    if backend == "mongo":
        from app.db.mongo import MongoStore
        logger.info("Store backend: MongoDB")
        return MongoStore(config.mongodb_uri, config.mongodb_db)

    raise ValueError(f"Unknown STORE_BACKEND '{config.store_backend}' (expected 'mongo' or 'memory')")


def get_db(request: Request) -> DocumentStore:
    """
    Dependency function that provides the document store.

    The store is process-wide; each request just borrows it.
    """
    return request.app.state.store
