"""
Property service - Business logic for property listings.

This service handles:
- Listing with query-string filters and pagination
- Create/update with validation and slug generation
- Ownership checks (agent or admin)
- Best-effort view counting on detail fetches
"""

from typing import Any, Dict, List, Mapping
import logging

from app.api.deps import Actor
from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.core.logging import with_context
from app.db.models import PROPERTY_DEFAULTS, serialize_property, slugify, with_defaults
from app.db.store import PROPERTIES, Document, DocumentStore, new_id
from app.services.query_builder import PROPERTY_QUERY, build_list_query, run_list_query
from app.services.validation import ensure_valid, validate_property

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6
NEWEST_FIRST = [("createdAt", -1), ("_id", -1)]


class PropertyService:
    """
    Service class for property operations.

    Every method returns response-ready documents (id alias and
    virtual fields included).
    """

    def __init__(self, db: DocumentStore):
        """
        Initialize the service with the document store.

        Args:
            db: the application's DocumentStore
        """
        self.db = db
        self.properties = db.collection(PROPERTIES)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_properties(self, params: Mapping[str, str]) -> Dict[str, Any]:
        """
        Filtered, sorted, paginated property list.

        Args:
            params: raw query-string parameters

        Returns:
            The list envelope (success, count, total, totalPages, ...)
        """
        query = build_list_query(params, PROPERTY_QUERY)
        docs, total = run_list_query(self.properties, query)
        logger.debug(f"Property list matched {total} document(s), page {query.page}")
        return query.envelope([serialize_property(doc) for doc in docs], total)

    def get_featured(self) -> List[Document]:
        docs = self.properties.find({"featured": True}, sort=NEWEST_FIRST, limit=FEATURED_LIMIT)
        return [serialize_property(doc) for doc in docs]

    def get_by_agent(self, agent_id: str) -> List[Document]:
        docs = self.properties.find({"agent": agent_id}, sort=NEWEST_FIRST)
        return [serialize_property(doc) for doc in docs]

    def get_property(self, property_id: str) -> Document:
        """Fetch one property and count the view."""
        prop = self._get_or_404({"_id": property_id})
        return serialize_property(self._record_view(prop))

    def get_by_slug(self, slug: str) -> Document:
        prop = self._get_or_404({"slug": slug})
        return serialize_property(self._record_view(prop))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_property(self, data: Dict[str, Any], actor: Actor) -> Document:
        """
        Create a property owned by the calling agent.

        Args:
            data: fields sent by the client (wire names)
            actor: the authenticated caller; becomes the owning agent

        Returns:
            The stored property

        Raises:
            ValidationFailed: when a rule is violated
        """
        doc = with_defaults(PROPERTY_DEFAULTS, data)
        doc["agent"] = actor.id
        ensure_valid(validate_property(doc))

        # The slug embeds the identifier, so it is generated up front
        doc["_id"] = new_id()
        doc["slug"] = slugify(doc["title"], doc["_id"])

        created = self.properties.insert_one(doc)
        logger.info(f"Property {created['_id']} created by agent {actor.id}")
        return serialize_property(created)

    def update_property(self, property_id: str, changes: Dict[str, Any], actor: Actor) -> Document:
        """
        Apply a partial update after ownership and validation checks.

        The merged document is validated as a whole; a changed title
        regenerates the slug.

        Raises:
            NotFoundError, ForbiddenError, ValidationFailed
        """
        log = with_context(logger, property_id=property_id, actor_id=actor.id)
        prop = self._get_or_404({"_id": property_id})
        self._check_owner(prop, actor, "update")

        ensure_valid(validate_property({**prop, **changes}))

        updates = dict(changes)
        if "title" in changes and changes["title"] != prop.get("title"):
            updates["slug"] = slugify(changes["title"], prop["_id"])
            log.info(f"Title changed, new slug {updates['slug']}")

        if not updates:
            return serialize_property(prop)

        updated = self.properties.update_one({"_id": property_id}, {"$set": updates})
        log.info(f"Property updated ({', '.join(sorted(updates))})")
        return serialize_property(updated)

    def add_images(self, property_id: str, images: List[str], actor: Actor) -> Document:
        """Append image URLs to the gallery, keeping their order."""
        if not images:
            raise BadRequestError("Please provide image URLs")
        prop = self._get_or_404({"_id": property_id})
        self._check_owner(prop, actor, "update")
        updated = self.properties.update_one(
            {"_id": property_id},
            {"$push": {"images": {"$each": list(images)}}},
        )
        logger.info(f"Added {len(images)} image(s) to property {property_id}")
        return serialize_property(updated)

    def delete_property(self, property_id: str, actor: Actor) -> None:
        prop = self._get_or_404({"_id": property_id})
        self._check_owner(prop, actor, "delete")
        self.properties.delete_one({"_id": property_id})
        logger.info(f"Property {property_id} deleted by {actor.id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_404(self, filter: Document) -> Document:
        prop = self.properties.find_one(filter)
        if not prop:
            raise NotFoundError("Property not found")
        return prop

    @staticmethod
    def _check_owner(prop: Document, actor: Actor, action: str) -> None:
        if actor.is_admin or prop.get("agent") == actor.id:
            return
        logger.warning(f"Actor {actor.id} may not {action} property {prop['_id']} (agent {prop.get('agent')})")
        raise ForbiddenError(f"Not authorized to {action} this property")

    def _record_view(self, prop: Document) -> Document:
        """
        Increment the view counter.

        A failed increment is logged and the property is returned as read.
        """
        try:
            updated = self.properties.update_one({"_id": prop["_id"]}, {"$inc": {"views": 1}})
        except Exception as e:
            logger.warning(f"Could not record view for property {prop['_id']}: {e}")
            return prop
        return updated or prop
