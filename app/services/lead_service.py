"""
Lead service - Business logic for lead management.

This service handles:
- Public inquiries and "list my property" submissions
- Creating and updating leads with an activity log
- Role scoping: agents only see leads assigned to them or created by them
- Pipeline statistics
"""

from typing import Any, Dict, Mapping, Optional
import logging

from app.api.deps import Actor
from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.core.logging import with_context
from app.db.models import (
    LEAD_DEFAULTS,
    PROPERTY_DEFAULTS,
    ActivityType,
    LeadInterest,
    LeadSource,
    LeadStatus,
    ListingType,
    PropertyStatus,
    serialize,
    slugify,
    with_defaults,
)
from app.db.store import LEADS, PROPERTIES, Document, DocumentStore, new_id, utcnow
from app.services.query_builder import LEAD_QUERY, build_list_query, run_list_query
from app.services.validation import ensure_valid, validate_lead, validate_property

logger = logging.getLogger(__name__)


def lead_scope(actor: Actor) -> Optional[Document]:
    """
    Implicit filter for a non-admin actor.

    Returns:
        None for admins, otherwise an OR over assignedTo/createdBy
    """
    if actor.is_admin:
        return None
    return {"$or": [{"assignedTo": actor.id}, {"createdBy": actor.id}]}


def _activity(activity_type: str, description: Optional[str], actor_id: Optional[str]) -> Document:
    return {
        "type": activity_type,
        "description": description,
        "performedBy": actor_id,
        "createdAt": utcnow(),
    }


def _format_amount(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return "" if value is None else str(value)


def listing_summary(submission: Dict[str, Any]) -> str:
    """
    Human-readable summary embedded in the lead of a listing submission.

    "Submitted sale listing: house in Austin. Price: $100000. Area: 1000 sqft."
    """
    what = submission.get("title") or submission.get("propertyType")
    where = submission.get("city") or submission.get("location")
    return (
        f"Submitted {submission.get('purpose')} listing: {what} in {where}. "
        f"Price: ${_format_amount(submission.get('price'))}. "
        f"Area: {_format_amount(submission.get('area'))} {submission.get('areaUnit')}."
    )


class LeadService:
    """
    Service class for lead operations.

    This contains all the business logic for leads.
    """

    def __init__(self, db: DocumentStore):
        """
        Initialize the service with the document store.

        Args:
            db: the application's DocumentStore
        """
        self.db = db
        self.leads = db.collection(LEADS)
        self.properties = db.collection(PROPERTIES)

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def create_public_lead(self, data: Dict[str, Any]) -> Document:
        """
        Create a lead from the public inquiry form.

        Args:
            data: name, email, phone, message, propertyId, source, interestedIn

        Returns:
            The stored lead
        """
        doc = with_defaults(LEAD_DEFAULTS, {
            "name": data.get("name"),
            "email": data.get("email"),
            "phone": data.get("phone"),
            "message": data.get("message"),
            "source": data.get("source") or LeadSource.WEBSITE.value,
            "status": LeadStatus.NEW.value,
            "interestedIn": data.get("interestedIn") or LeadInterest.GENERAL.value,
            "property": data.get("propertyId"),
        })
        ensure_valid(validate_lead(doc))

        lead = self.leads.insert_one(doc)
        logger.info(f"Public inquiry stored as lead {lead['_id']}")
        return serialize(lead)

    def submit_listing(self, submission: Dict[str, Any]) -> Document:
        """
        Handle a public "list my property" form.

        Two independent writes: a pending Property, then a Lead that
        references it. Both documents are validated before the first
        write, so a rejected lead never leaves an orphaned property.

        Args:
            submission: the form fields (wire names)

        Returns:
            The stored property
        """
        purpose = submission.get("purpose") or ListingType.SALE.value
        property_type = submission.get("propertyType")
        city = submission.get("city") or submission.get("location")
        submission = {**submission, "purpose": purpose}

        property_doc = with_defaults(PROPERTY_DEFAULTS, {
            "title": submission.get("title") or f"{property_type} in {city}",
            "description": submission.get("description"),
            "price": submission.get("price"),
            "propertyType": property_type.strip().lower() if property_type else None,
            "status": PropertyStatus.PENDING.value,
            "listingType": ListingType.RENT.value if purpose == "rent" else ListingType.SALE.value,
            "address": {
                "city": city,
                "state": submission.get("location") or city,
                "country": "USA",
            },
            "bedrooms": submission.get("bedrooms") or 0,
            "bathrooms": submission.get("bathrooms") or 0,
            "area": submission.get("area") or 0,
            "features": submission.get("features") or [],
            "images": submission.get("images") or [],
        })
        property_doc["_id"] = new_id()

        lead_doc = with_defaults(LEAD_DEFAULTS, {
            "name": submission.get("name"),
            "email": submission.get("email"),
            "phone": submission.get("phone"),
            "source": LeadSource.WEBSITE.value,
            "status": LeadStatus.NEW.value,
            "interestedIn": LeadInterest.RENTING.value if purpose == "rent" else LeadInterest.SELLING.value,
            "property": property_doc["_id"],
            "message": listing_summary(submission),
        })

        ensure_valid(validate_property(property_doc) + validate_lead(lead_doc))

        property_doc["slug"] = slugify(property_doc["title"], property_doc["_id"])
        prop = self.properties.insert_one(property_doc)
        lead = self.leads.insert_one(lead_doc)

        logger.info(f"Listing submission: property {prop['_id']} pending review, lead {lead['_id']}")
        return prop

    # ------------------------------------------------------------------
    # Agent operations
    # ------------------------------------------------------------------

    def list_leads(self, params: Mapping[str, str], actor: Actor) -> Dict[str, Any]:
        """Filtered, paginated lead list within the actor's scope."""
        query = build_list_query(params, LEAD_QUERY, scope=lead_scope(actor))
        docs, total = run_list_query(self.leads, query)
        return query.envelope([serialize(doc) for doc in docs], total)

    def get_stats(self, actor: Actor) -> Dict[str, Any]:
        """
        Lead counts for the actor's scope.

        Returns:
            byStatus ([{_id: status, count}]), total, thisMonth
        """
        scope = lead_scope(actor) or {}
        by_status = self.leads.aggregate([
            {"$match": scope},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ])
        month_start = utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        this_month = {"createdAt": {"$gte": month_start}}
        if scope:
            this_month = {"$and": [scope, this_month]}
        return {
            "byStatus": by_status,
            "total": self.leads.count(scope),
            "thisMonth": self.leads.count(this_month),
        }

    def get_lead(self, lead_id: str, actor: Actor) -> Document:
        lead = self._get_or_404(lead_id)
        self._check_access(lead, actor, "view")
        return serialize(lead)

    def create_lead(self, data: Dict[str, Any], actor: Actor) -> Document:
        """
        Create a lead on behalf of an agent.

        The lead is assigned to the caller unless assignedTo is given, and
        its activity log starts with a "created" entry.
        """
        doc = with_defaults(LEAD_DEFAULTS, data)
        doc.setdefault("assignedTo", actor.id)
        doc["createdBy"] = actor.id
        doc["activities"] = [_activity(ActivityType.CREATED.value, "Lead created", actor.id)]
        ensure_valid(validate_lead(doc))

        lead = self.leads.insert_one(doc)
        logger.info(f"Lead {lead['_id']} created by {actor.id}")
        return serialize(lead)

    def update_lead(self, lead_id: str, changes: Dict[str, Any], actor: Actor) -> Document:
        """
        Partial update; a status change appends a status_change activity.

        Raises:
            NotFoundError, ForbiddenError, ValidationFailed
        """
        log = with_context(logger, lead_id=lead_id, actor_id=actor.id)
        lead = self._get_or_404(lead_id)
        self._check_access(lead, actor, "update")

        ensure_valid(validate_lead({**lead, **changes}))

        update: Dict[str, Any] = {"$set": dict(changes)} if changes else {}
        new_status = changes.get("status")
        if new_status and new_status != lead.get("status"):
            update["$push"] = {"activities": self._status_activity(lead, new_status, actor)}
            log.info(f"Status {lead.get('status')} -> {new_status}")

        if not update:
            return serialize(lead)
        return serialize(self.leads.update_one({"_id": lead_id}, update))

    def update_status(self, lead_id: str, status: Optional[str], actor: Actor) -> Dict[str, Any]:
        """
        Change only the pipeline stage.

        Returns:
            {"lead": ..., "message": "Status changed from X to Y"}
        """
        if not status:
            raise BadRequestError("Status is required")
        lead = self._get_or_404(lead_id)
        self._check_access(lead, actor, "update")

        old_status = lead.get("status")
        ensure_valid(validate_lead({**lead, "status": status}))

        update: Dict[str, Any] = {"$set": {"status": status}}
        if status != old_status:
            update["$push"] = {"activities": self._status_activity(lead, status, actor)}
        updated = self.leads.update_one({"_id": lead_id}, update)

        with_context(logger, lead_id=lead_id).info(f"Status {old_status} -> {status}")
        return {"lead": serialize(updated), "message": f"Status changed from {old_status} to {status}"}

    def add_activity(self, lead_id: str, activity_type: str, description: Optional[str], actor: Actor) -> Document:
        lead = self._get_or_404(lead_id)
        self._check_access(lead, actor, "update")

        if activity_type not in [t.value for t in ActivityType]:
            raise BadRequestError(f"Invalid activity type '{activity_type}'")

        updated = self.leads.update_one(
            {"_id": lead_id},
            {"$push": {"activities": _activity(activity_type, description, actor.id)}},
        )
        logger.debug(f"Activity '{activity_type}' added to lead {lead_id}")
        return serialize(updated)

    def delete_lead(self, lead_id: str) -> None:
        """Admin-only removal (the role check happens in the router)."""
        self._get_or_404(lead_id)
        self.leads.delete_one({"_id": lead_id})
        logger.info(f"Lead {lead_id} deleted")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_404(self, lead_id: str) -> Document:
        lead = self.leads.get(lead_id)
        if not lead:
            raise NotFoundError("Lead not found")
        return lead

    @staticmethod
    def _check_access(lead: Document, actor: Actor, action: str) -> None:
        if actor.is_admin or actor.id in (lead.get("assignedTo"), lead.get("createdBy")):
            return
        logger.warning(f"Actor {actor.id} may not {action} lead {lead['_id']}")
        raise ForbiddenError(f"Not authorized to {action} this lead")

    @staticmethod
    def _status_activity(lead: Document, new_status: str, actor: Actor) -> Document:
        return _activity(
            ActivityType.STATUS_CHANGE.value,
            f"Status changed from {lead.get('status')} to {new_status}",
            actor.id,
        )
